"""Tests for pm_common.errors and pm_common.response."""

from src.pm_admin.application.schemas import SettlementReport
from src.pm_common.errors import (
    AlreadyApprovedError,
    AppError,
    ApprovalInProgressError,
    BusyError,
    DrawLimitExceededError,
    InsufficientBalanceError,
    InvalidResultError,
    LimitExceededError,
    MarketClosedError,
    MarketNotFoundError,
    PermissionDeniedError,
    RateLimitError,
    SettlementStateError,
    StakeValidationError,
)
from src.pm_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)

    def test_payload_carries_reason(self) -> None:
        err = MarketNotFoundError("MKT-1")
        assert err.payload() == {"reason": "MARKET_NOT_FOUND", "retryable": False}


class TestSpecificErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError(required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert err.reason == "INSUFFICIENT_BALANCE"
        assert "6500" in err.message
        assert "3000" in err.message

    def test_stake_validation_family(self) -> None:
        for err in (
            InsufficientBalanceError(1, 0),
            MarketClosedError("MKT-1"),
            LimitExceededError("TWO_DIGIT", 500, 100),
            DrawLimitExceededError(900, 500),
        ):
            assert isinstance(err, StakeValidationError)
            assert err.retryable is False

    def test_settlement_state_family(self) -> None:
        assert isinstance(AlreadyApprovedError("MKT-1"), SettlementStateError)
        assert isinstance(InvalidResultError("abc", "digits only"), SettlementStateError)

    def test_permission_denied(self) -> None:
        err = PermissionDeniedError("nope")
        assert err.http_status == 403
        assert err.reason == "PERMISSION_DENIED"

    def test_retryable_errors(self) -> None:
        assert ApprovalInProgressError("MKT-1").retryable is True
        assert BusyError("account", "USR-1").retryable is True
        assert RateLimitError().retryable is True
        assert RateLimitError().http_status == 429


class TestAlreadyApprovedPayload:
    def test_without_report(self) -> None:
        assert "report" not in AlreadyApprovedError("MKT-1").payload()

    def test_with_zero_report(self) -> None:
        err = AlreadyApprovedError("MKT-1", SettlementReport.empty("MKT-1", "47"))
        payload = err.payload()
        assert payload["reason"] == "ALREADY_APPROVED"
        assert payload["report"]["total_paid"] == 0
        assert payload["report"]["result"] == "47"


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"key": "value"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"key": "value"}
        assert resp.request_id.startswith("req_")

    def test_error_response(self) -> None:
        resp = error_response(3001, "Market not found", {"reason": "MARKET_NOT_FOUND"})
        assert resp.code == 3001
        assert resp.data["reason"] == "MARKET_NOT_FOUND"

    def test_serialization(self) -> None:
        data = ApiResponse(code=0, message="ok", data=None).model_dump()
        assert set(data) == {"code", "message", "data", "timestamp", "request_id"}
