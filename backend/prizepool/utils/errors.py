from fastapi import HTTPException
from starlette import status


class SettlementError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "SETTLEMENT_ERROR"

    def __init__(self, detail: str, *, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(status_code=self.status_code, detail=detail)


class NotFound(SettlementError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "NOT_FOUND"


class Forbidden(SettlementError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "FORBIDDEN"


class PreconditionFailed(SettlementError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "PRECONDITION_FAILED"


class PayoutAlreadyProcessed(SettlementError):
    """The payout left PENDING before this caller could claim it. Poll, do not retry."""

    status_code = status.HTTP_409_CONFLICT
    reason = "ALREADY_PROCESSED"


class EntitlementMismatch(SettlementError):
    """Recomputed entitlement differs from the stored one. Never auto-corrected."""

    status_code = status.HTTP_409_CONFLICT
    reason = "ENTITLEMENT_MISMATCH"


class PaymentProviderFailure(SettlementError):
    status_code = status.HTTP_502_BAD_GATEWAY
    reason = "PROVIDER_FAILURE"


class Unauthorized(SettlementError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "UNAUTHORIZED"


class AlreadyEntered(SettlementError):
    status_code = status.HTTP_409_CONFLICT
    reason = "ALREADY_ENTERED"
