"""The result of one validate call, and how findings become one."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from .strict import is_governance_finding

OutcomeKind = Literal["Request", "Response"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationOutcome(BaseModel):
    """Everything wrong with one request or response.

    A validate call returns None instead of an outcome when nothing is wrong.
    """

    kind: OutcomeKind
    method: str
    path: str
    status_code: int | None = None  # responses only
    message: str
    details: str | None = None
    findings: list[str] = []
    is_governance_only: bool = False
    timestamp: datetime = Field(default_factory=_utcnow)


def classify(kind: OutcomeKind, method: str, path: str, findings: list[str],
             strict_mode: bool, status_code: int | None = None) -> ValidationOutcome | None:
    """Merge accumulated findings into one outcome.

    The governance test is all-or-nothing: a single functional finding in
    the list makes the whole outcome a functional failure.
    """
    if not findings:
        return None

    distinct = list(dict.fromkeys(findings))
    governance_only = strict_mode and all(is_governance_finding(f) for f in distinct)

    if governance_only:
        message = "Strict mode violations detected" if kind == "Request" else "Strict mode violations detected in response"
    else:
        message = f"{kind} validation failed"

    return ValidationOutcome(
        kind=kind,
        method=method,
        path=path,
        status_code=status_code,
        message=message,
        findings=distinct,
        is_governance_only=governance_only,
    )


def terminal(kind: OutcomeKind, method: str, path: str, message: str,
             details: str | None = None, status_code: int | None = None) -> ValidationOutcome:
    """An outcome that ends validation early; its message is its only finding."""
    return ValidationOutcome(
        kind=kind,
        method=method,
        path=path,
        status_code=status_code,
        message=message,
        details=details,
        findings=[message],
    )
