# lendtrust/models/result.py
from typing import Optional

from pydantic import BaseModel

from .enum import FailureKind, NegotiationOutcome
from .lending import Lending


class LendingResult(BaseModel):
    """
    Discriminated outcome of a state-machine operation.

    Failures are values, not exceptions: `kind` tells the transport layer how
    to react and `reason` is the human-readable message shown to the caller.
    """
    success: bool
    lending: Optional[Lending] = None
    reason: Optional[str] = None
    kind: Optional[FailureKind] = None

    @classmethod
    def ok(cls, lending: Lending) -> "LendingResult":
        return cls(success=True, lending=lending)

    @classmethod
    def fail(cls, kind: FailureKind, reason: str) -> "LendingResult":
        return cls(success=False, kind=kind, reason=reason)

    @classmethod
    def not_found(cls) -> "LendingResult":
        return cls.fail(FailureKind.NOT_FOUND, "Lending not found")

    @classmethod
    def unauthorized(cls, reason: str = "Not authorized") -> "LendingResult":
        return cls.fail(FailureKind.UNAUTHORIZED, reason)

    @classmethod
    def invalid_state(cls, reason: str) -> "LendingResult":
        return cls.fail(FailureKind.INVALID_STATE, reason)

    @classmethod
    def invalid(cls, reason: str) -> "LendingResult":
        return cls.fail(FailureKind.VALIDATION_ERROR, reason)


class NegotiationResult(LendingResult):
    """
    Result of a counter-proposal. DECLINED is the one failure that carries a
    mutated record: the lending was auto-declined because the round limit was hit.
    """
    outcome: NegotiationOutcome = NegotiationOutcome.REJECTED

    @classmethod
    def negotiated(cls, lending: Lending) -> "NegotiationResult":
        return cls(success=True, lending=lending, outcome=NegotiationOutcome.NEGOTIATED)

    @classmethod
    def declined(cls, lending: Lending, reason: str) -> "NegotiationResult":
        return cls(
            success=False, lending=lending, reason=reason,
            kind=FailureKind.INVALID_STATE, outcome=NegotiationOutcome.DECLINED,
        )

    @classmethod
    def rejected(cls, failure: LendingResult) -> "NegotiationResult":
        return cls(success=False, reason=failure.reason, kind=failure.kind, outcome=NegotiationOutcome.REJECTED)
