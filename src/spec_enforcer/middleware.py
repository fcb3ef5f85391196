"""
Spec enforcer middleware - validate Flask traffic against an OpenAPI contract.

Provides:
- Request validation before the view runs (hard mode answers with an error instead)
- Response validation after the view runs
- Path exclusion and method / status / content-type / size filters
- Optional metrics collection and spec file watching
"""

import logging
import re
import time

from flask import Flask, g, jsonify, request

from spec_enforcer.errors import SpecLoadError, ValidationFailedError
from spec_enforcer.metrics import ValidationMetrics
from spec_enforcer.options import EnforcerOptions
from spec_enforcer.reload import ValidatorHolder
from spec_enforcer.validation.outcome import ValidationOutcome

logger = logging.getLogger(__name__)

EXTENSION_KEY = "spec_enforcer"


def setup_spec_enforcer(app: Flask, options: EnforcerOptions,
                        metrics: ValidationMetrics | None = None) -> ValidatorHolder:
    """
    Set up OpenAPI contract validation on a Flask app.

    The contract is loaded once here; a broken spec file fails app setup
    with SpecLoadError.

    Args:
        app: Flask application instance
        options: Enforcer configuration
        metrics: Accumulator to record into (created when enable_metrics is on)

    Returns:
        The holder of the active validator, usable for explicit reloads
    """
    holder = ValidatorHolder(options.spec_path, strict_mode=options.strict_mode)
    if options.enable_metrics and metrics is None:
        metrics = ValidationMetrics()

    app.extensions[EXTENSION_KEY] = {"holder": holder, "metrics": metrics, "options": options}

    @app.before_request
    def validate_incoming_request():
        """Validate the request before the view runs."""
        g.spec_enforcer_skip = is_path_excluded(request.path, options.excluded_paths)
        if g.spec_enforcer_skip or not options.validate_requests:
            return None

        if options.watch_spec_file:
            _reload_if_changed(holder)

        if options.allowed_methods and request.method.upper() not in {m.upper() for m in options.allowed_methods}:
            return None
        if not _content_type_allowed(request.mimetype, options.allowed_content_types):
            return None
        if _too_large(request.content_length, options.max_body_size):
            return None

        # Chunked requests have no Content-Length
        if _too_large(len(request.get_data(cache=True)), options.max_body_size):
            return None
        body = request.get_data(cache=True, as_text=True) or None

        started = time.perf_counter()
        outcome = holder.current.validate_request(
            request.method,
            request.path,
            request.content_type,
            body,
            headers=list(request.headers.items()),
            query=list(request.args.items(multi=True)),
        )
        if options.enable_metrics and metrics is not None:
            metrics.record_request_validation(_elapsed_ms(started), outcome is not None)

        if outcome is None:
            return None

        _notify(options, outcome)
        if options.hard_mode:
            g.spec_enforcer_short_circuit = True
            if options.log_errors:
                _log_outcome("Hard Mode", outcome)
            return _error_response(options, outcome, body)

        _report(options, outcome)
        return None

    @app.after_request
    def validate_outgoing_response(response):
        """Validate the response produced by the view."""
        if g.get("spec_enforcer_skip") or g.get("spec_enforcer_short_circuit"):
            return response
        if not options.validate_responses:
            return response
        if options.allowed_status_codes and response.status_code not in options.allowed_status_codes:
            return response
        if response.direct_passthrough or response.is_streamed:
            return response  # streamed bodies are never buffered
        if not _content_type_allowed(response.mimetype, options.allowed_content_types):
            return response
        if _too_large(response.content_length, options.max_body_size):
            return response

        body = response.get_data(as_text=True) or None

        started = time.perf_counter()
        outcome = holder.current.validate_response(
            request.method,
            request.path,
            response.status_code,
            response.content_type,
            body,
            headers=list(response.headers.items()),
        )
        if options.enable_metrics and metrics is not None:
            metrics.record_response_validation(_elapsed_ms(started), outcome is not None)

        if outcome is not None:
            _notify(options, outcome)
            _report(options, outcome)
        return response

    return holder


def get_metrics(app: Flask) -> ValidationMetrics | None:
    """Metrics collected for an app set up with enable_metrics."""
    state = app.extensions.get(EXTENSION_KEY)
    return state["metrics"] if state else None


def is_path_excluded(path: str, patterns: list[str]) -> bool:
    """Exact match, or a pattern where ``*`` matches anything (``/admin/*``)."""
    for pattern in patterns:
        if pattern == path:
            return True
        if "*" in pattern:
            regex = "^" + re.escape(pattern).replace(r"\*", ".*") + "$"
            if re.match(regex, path):
                return True
    return False


def default_error_payload(outcome: ValidationOutcome, body: str | None = None) -> dict:
    """Body of the hard mode error response when no custom formatter is set."""
    payload = {
        "error": outcome.message,
        "details": outcome.details,
        "kind": outcome.kind,
        "method": outcome.method,
        "path": outcome.path,
        "statusCode": outcome.status_code,
        "findings": outcome.findings,
        "isGovernanceOnly": outcome.is_governance_only,
        "timestamp": outcome.timestamp.isoformat(),
    }
    if body is not None:
        payload["body"] = body
    return payload


def _error_response(options: EnforcerOptions, outcome: ValidationOutcome, body: str | None):
    if options.custom_error_formatter is not None:
        payload = options.custom_error_formatter(outcome)
    else:
        payload = default_error_payload(outcome, body if options.include_bodies_in_errors else None)

    response = jsonify(payload)
    response.status_code = options.hard_mode_status_code
    return response


def _notify(options: EnforcerOptions, outcome: ValidationOutcome) -> None:
    if options.on_validation_error is not None:
        options.on_validation_error(outcome)


def _report(options: EnforcerOptions, outcome: ValidationOutcome) -> None:
    if options.log_errors:
        _log_outcome(outcome.kind, outcome)
    if options.throw_on_validation_error:
        raise ValidationFailedError(outcome)


def _log_outcome(context: str, outcome: ValidationOutcome) -> None:
    details = outcome.details or "None"
    if outcome.findings:
        details += f" | Validation Errors: {', '.join(outcome.findings)}"

    extra = {
        "event": "spec_validation_failed",
        "validation_kind": outcome.kind,
        "http_method": outcome.method,
        "http_path": outcome.path,
        "http_status": outcome.status_code,
        "governance_only": outcome.is_governance_only,
    }

    if outcome.is_governance_only:
        logger.warning(
            f"{context} - Strict mode violation for {outcome.method} {outcome.path}: "
            f"{outcome.message}. Details: {details}",
            extra=extra,
        )
    elif outcome.kind == "Request":
        logger.warning(
            f"{context} validation failed for {outcome.method} {outcome.path}: "
            f"{outcome.message}. Details: {details}",
            extra=extra,
        )
    else:
        logger.warning(
            f"{context} validation failed for {outcome.method} {outcome.path} "
            f"with status {outcome.status_code}: {outcome.message}. Details: {details}",
            extra=extra,
        )


def _reload_if_changed(holder: ValidatorHolder) -> None:
    try:
        holder.reload_if_changed()
    except SpecLoadError as e:
        logger.error(f"Spec file changed but could not be loaded: {e}")


def _content_type_allowed(mimetype: str | None, allowed: list[str]) -> bool:
    if not allowed or not mimetype:
        return True
    return mimetype.lower() in {ct.lower() for ct in allowed}


def _too_large(content_length: int | None, max_body_size: int | None) -> bool:
    return max_body_size is not None and content_length is not None and content_length > max_body_size


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
