"""
예외 정의

모든 거부 사유는 고유 code를 가진 예외로 표현된다.
코어는 표현(메시지 렌더링)을 모르고, Web 계층이 code를 HTTP 응답으로 매핑한다.

분류:
- ValidationError: 변경 전 동기 거부, 자동 재시도 금지
- StateError: 변경 전 거부, 외부에서 상태 해결 후 재시도
- ConcurrencyError: 재시도 안전 (부분 상태 없음)
- StorageError: 치명적, 트랜잭션 롤백됨
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 코어 예외 기본 클래스"""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details

    def to_dict(self) -> dict[str, Any]:
        """응답 직렬화용 딕셔너리"""
        return {
            "error": self.code,
            "message": self.message,
            "details": {k: _jsonable(v) for k, v in self.details.items()},
        }


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


# -------------------------------------------------------------------------
# Validation
# -------------------------------------------------------------------------


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"


class IdenticalAccounts(ValidationError):
    code = "IDENTICAL_ACCOUNTS"


class UnknownAccount(ValidationError):
    code = "UNKNOWN_ACCOUNT"


class DuplicateAccount(ValidationError):
    code = "DUPLICATE_ACCOUNT"


class EntryNotFound(ValidationError):
    code = "ENTRY_NOT_FOUND"


class TransferNotFound(ValidationError):
    code = "TRANSFER_NOT_FOUND"


class NotCreditAccount(ValidationError):
    code = "NOT_CREDIT_ACCOUNT"


class InvalidReversal(ValidationError):
    code = "INVALID_REVERSAL"


class InvalidIdempotencyKey(ValidationError):
    code = "INVALID_IDEMPOTENCY_KEY"


# -------------------------------------------------------------------------
# State
# -------------------------------------------------------------------------


class StateError(LedgerError):
    code = "STATE_ERROR"


class AccountBlocked(StateError):
    code = "ACCOUNT_BLOCKED"


class InsufficientFunds(StateError):
    code = "INSUFFICIENT_FUNDS"


class DuplicateTransfer(StateError):
    """이미 COMMITTED 된 idempotency key로 재요청"""

    code = "DUPLICATE_TRANSFER"

    def __init__(self, message: str, transfer: Any = None, **details: Any):
        super().__init__(message, **details)
        self.transfer = transfer


# -------------------------------------------------------------------------
# Concurrency / Storage
# -------------------------------------------------------------------------


class ConcurrencyError(LedgerError):
    code = "CONCURRENCY_ERROR"


class LockTimeout(ConcurrencyError):
    code = "LOCK_TIMEOUT"


class StorageError(LedgerError):
    code = "STORAGE_ERROR"
