"""Running totals for validation calls made by the middleware.

Kept outside the validation engine, which stays lock-free.
"""

import threading


class ValidationMetrics:
    def __init__(self):
        self._lock = threading.Lock()
        self._reset_counters()

    def _reset_counters(self) -> None:
        self.total_request_validations = 0
        self.total_response_validations = 0
        self.total_request_failures = 0
        self.total_response_failures = 0
        self._request_time_ms = 0.0
        self._response_time_ms = 0.0

    def record_request_validation(self, elapsed_ms: float, failed: bool) -> None:
        with self._lock:
            self.total_request_validations += 1
            self._request_time_ms += elapsed_ms
            if failed:
                self.total_request_failures += 1

    def record_response_validation(self, elapsed_ms: float, failed: bool) -> None:
        with self._lock:
            self.total_response_validations += 1
            self._response_time_ms += elapsed_ms
            if failed:
                self.total_response_failures += 1

    @property
    def average_request_validation_time_ms(self) -> float:
        with self._lock:
            return _average(self._request_time_ms, self.total_request_validations)

    @property
    def average_response_validation_time_ms(self) -> float:
        with self._lock:
            return _average(self._response_time_ms, self.total_response_validations)

    def reset(self) -> None:
        with self._lock:
            self._reset_counters()

    def snapshot(self) -> dict:
        """Plain dict of the current totals, e.g. for a /metrics endpoint."""
        with self._lock:
            return {
                "totalRequestValidations": self.total_request_validations,
                "totalResponseValidations": self.total_response_validations,
                "totalRequestFailures": self.total_request_failures,
                "totalResponseFailures": self.total_response_failures,
                "averageRequestValidationTimeMs": _average(self._request_time_ms, self.total_request_validations),
                "averageResponseValidationTimeMs": _average(self._response_time_ms, self.total_response_validations),
            }


def _average(total_ms: float, count: int) -> float:
    return total_ms / count if count else 0.0
