import threading

from spec_enforcer.metrics import ValidationMetrics


class TestValidationMetrics:
    def test_starts_empty(self):
        metrics = ValidationMetrics()
        assert metrics.total_request_validations == 0
        assert metrics.average_request_validation_time_ms == 0.0
        assert metrics.average_response_validation_time_ms == 0.0

    def test_records_and_averages(self):
        metrics = ValidationMetrics()
        metrics.record_request_validation(2.0, failed=False)
        metrics.record_request_validation(4.0, failed=True)
        metrics.record_response_validation(1.0, failed=True)

        assert metrics.total_request_validations == 2
        assert metrics.total_request_failures == 1
        assert metrics.total_response_validations == 1
        assert metrics.total_response_failures == 1
        assert metrics.average_request_validation_time_ms == 3.0
        assert metrics.average_response_validation_time_ms == 1.0

    def test_reset(self):
        metrics = ValidationMetrics()
        metrics.record_request_validation(5.0, failed=True)
        metrics.reset()
        assert metrics.total_request_validations == 0
        assert metrics.total_request_failures == 0
        assert metrics.average_request_validation_time_ms == 0.0

    def test_snapshot(self):
        metrics = ValidationMetrics()
        metrics.record_response_validation(2.5, failed=False)
        snap = metrics.snapshot()
        assert snap["totalResponseValidations"] == 1
        assert snap["totalResponseFailures"] == 0
        assert snap["averageResponseValidationTimeMs"] == 2.5

    def test_concurrent_recording(self):
        metrics = ValidationMetrics()

        def record():
            for _ in range(1000):
                metrics.record_request_validation(1.0, failed=True)

        threads = [threading.Thread(target=record) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert metrics.total_request_validations == 8000
        assert metrics.total_request_failures == 8000

    def test_snapshot_is_consistent_while_recording(self):
        metrics = ValidationMetrics()
        done = threading.Event()

        def record():
            while not done.is_set():
                metrics.record_request_validation(2.0, failed=True)

        writer = threading.Thread(target=record)
        writer.start()
        try:
            for _ in range(200):
                snap = metrics.snapshot()
                assert snap["totalRequestFailures"] == snap["totalRequestValidations"]
                if snap["totalRequestValidations"]:
                    assert snap["averageRequestValidationTimeMs"] == 2.0
        finally:
            done.set()
            writer.join()
