"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Caller/permission
  2xxx: Account
  3xxx: Market
  4xxx: Wager
  6xxx: Settlement
  9xxx: System

Every error carries a stable symbolic ``reason`` surfaced verbatim to callers.
Only errors flagged ``retryable`` may be retried by the caller.
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    reason: str = "APP_ERROR"
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        """Extra data attached to the error response envelope."""
        return {"reason": self.reason, "retryable": self.retryable}


class StakeValidationError(AppError):
    """Wager rejected before any money moved. Never retried automatically."""


class SettlementStateError(AppError):
    """Result/settlement lifecycle transition not legal in the current state."""


# --- 1xxx: Caller/permission ---

class PermissionDeniedError(AppError):
    reason = "PERMISSION_DENIED"

    def __init__(self, detail: str) -> None:
        super().__init__(1003, f"Permission denied: {detail}", 403)


class MissingCallerError(AppError):
    reason = "MISSING_CALLER"

    def __init__(self) -> None:
        super().__init__(1001, "Missing X-Account-Id header", 401)


# --- 2xxx: Account ---

class InsufficientBalanceError(StakeValidationError):
    reason = "INSUFFICIENT_BALANCE"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(AppError):
    reason = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class AccountRestrictedError(StakeValidationError):
    reason = "ACCOUNT_RESTRICTED"

    def __init__(self, account_id: str) -> None:
        super().__init__(2003, f"Account is restricted: {account_id}", 403)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    reason = "MARKET_NOT_FOUND"

    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketClosedError(StakeValidationError):
    reason = "MARKET_CLOSED"

    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market is closed: {market_id}", 422)


# --- 4xxx: Wager ---

class EmptyTicketError(StakeValidationError):
    reason = "EMPTY_TICKET"

    def __init__(self) -> None:
        super().__init__(4001, "Ticket contains no valid numbers", 422)


class LimitExceededError(StakeValidationError):
    reason = "LIMIT_EXCEEDED"

    def __init__(self, subgame_type: str, amount: int, cap: int) -> None:
        super().__init__(
            4002,
            f"Stake {amount} cents per number exceeds {subgame_type} limit of {cap} cents",
            422,
        )


class DrawLimitExceededError(StakeValidationError):
    reason = "DRAW_LIMIT_EXCEEDED"

    def __init__(self, requested_total: int, per_draw: int) -> None:
        super().__init__(
            4003,
            f"Draw total {requested_total} cents exceeds per-draw limit of {per_draw} cents",
            422,
        )


# --- 6xxx: Settlement ---

class MarketNotFinalError(SettlementStateError):
    reason = "MARKET_NOT_FINAL"

    def __init__(self, market_id: str) -> None:
        super().__init__(6001, f"Market result is not final: {market_id}", 409)


class AlreadyApprovedError(SettlementStateError):
    """Payouts were already distributed; carries the (empty) report of this call."""

    reason = "ALREADY_APPROVED"

    def __init__(self, market_id: str, report: Any = None) -> None:
        super().__init__(6002, f"Payouts already approved: {market_id}", 409)
        self.report = report

    def payload(self) -> dict[str, Any]:
        data = super().payload()
        if self.report is not None:
            data["report"] = self.report.model_dump()
        return data


class ApprovalInProgressError(SettlementStateError):
    reason = "APPROVAL_IN_PROGRESS"
    retryable = True

    def __init__(self, market_id: str) -> None:
        super().__init__(6003, f"Payout approval already in progress: {market_id}", 409)


class ResultAlreadyFinalError(SettlementStateError):
    reason = "RESULT_ALREADY_FINAL"

    def __init__(self, market_id: str) -> None:
        super().__init__(
            6004, f"Result already final, use correction instead: {market_id}", 409
        )


class InvalidResultError(SettlementStateError):
    reason = "INVALID_RESULT"

    def __init__(self, value: str, detail: str) -> None:
        super().__init__(6005, f"Invalid result {value!r}: {detail}", 422)


# --- 9xxx: System ---

class RateLimitError(AppError):
    reason = "RATE_LIMITED"
    retryable = True

    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    reason = "INTERNAL_ERROR"

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class BusyError(AppError):
    reason = "BUSY"
    retryable = True

    def __init__(self, resource: str, key: str) -> None:
        super().__init__(9003, f"{resource} {key} is busy, retry later", 503)
