"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액은 항상 10진수 문자열로 받는다 (JSON 숫자/부동소수점 거부).
"""

from datetime import datetime

from pydantic import BaseModel, Field

from core.types import AccountKind, AccountStatus, Direction


class AccountCreateRequest(BaseModel):
    """계정 등록 요청 (온보딩 협력자용)"""

    account_id: str = Field(..., min_length=1, max_length=64, description="계정 ID")
    name: str = Field(..., min_length=1, description="표시 이름")
    kind: AccountKind = Field(..., description="BANK / CASH / CUSTOMER / VENDOR")
    credit_limit: str | None = Field(default=None, description="신용 한도 (10진수 문자열)")


class AccountStatusRequest(BaseModel):
    """계정 상태 변경 요청"""

    status: AccountStatus = Field(..., description="ACTIVE / BLOCKED")


class CreditLimitRequest(BaseModel):
    """신용 한도 변경 요청"""

    credit_limit: str | None = Field(..., description="신용 한도 (null이면 해제)")


class PostEntryRequest(BaseModel):
    """단독 분개 기록 요청

    판매/구매/환불 등 이체가 아닌 거래.
    """

    account_id: str = Field(..., description="계정 ID")
    direction: Direction = Field(..., description="DEBIT / CREDIT")
    amount: str = Field(..., description="금액 (10진수 문자열, > 0)")
    category: str = Field(..., min_length=1, max_length=64, description="분류 (Sales, Payment ...)")
    note: str | None = Field(default=None, max_length=500, description="메모")
    occurred_at: datetime | None = Field(default=None, description="발생 시각 (기본: 지금)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "account_id": "CUST-9",
                    "direction": "DEBIT",
                    "amount": "92000.00",
                    "category": "Credit",
                    "note": "외상 판매",
                },
            ]
        }
    }


class TransferRequest(BaseModel):
    """이체 요청"""

    from_account_id: str = Field(..., description="출금 계정")
    to_account_id: str = Field(..., description="입금 계정")
    amount: str = Field(..., description="금액 (10진수 문자열, > 0)")
    note: str | None = Field(default=None, max_length=500, description="메모")
    idempotency_key: str | None = Field(
        default=None,
        description="재시도 중복 방지 키 (Idempotency-Key 헤더가 우선)",
    )
    timeout_sec: float | None = Field(default=None, gt=0, description="락 대기 제한 시간(초)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "from_account_id": "BANK-1",
                    "to_account_id": "CASH-1",
                    "amount": "3000.00",
                    "idempotency_key": "tf-2026-0001",
                },
            ]
        }
    }


class ReverseRequest(BaseModel):
    """역분개/역이체 요청"""

    note: str | None = Field(default=None, max_length=500, description="메모")
