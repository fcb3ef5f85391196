"""Exceptions raised by spec-enforcer.

The validation engine itself never lets these escape a validate call: the
structural errors are turned into terminal outcomes at the call boundary.
"""


class SpecLoadError(Exception):
    """Raised when an OpenAPI document cannot be turned into a Spec Model."""

    def __init__(self, diagnostics: list[str], source: str | None = None):
        self.diagnostics = diagnostics
        self.source = source

        summary = "; ".join(diagnostics[:3])
        if len(diagnostics) > 3:
            summary += f" ... and {len(diagnostics) - 3} more"

        where = f" ({source})" if source else ""
        super().__init__(f"Failed to parse OpenAPI specification{where}: {summary}")


class StructuralError(Exception):
    """The traffic does not map onto the contract at all."""


class PathNotFoundError(StructuralError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path '{path}' not found in OpenAPI specification")


class MethodNotAllowedError(StructuralError):
    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"Method '{method}' not allowed for path '{path}'")


class ValidationFailedError(Exception):
    """Raised by the middleware when configured to throw on validation errors."""

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(f"{outcome.kind} validation failed: {outcome.message}")
