"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화. 금액은 고정소수점 문자열.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="앱 버전")
    ledger_ready: bool = Field(..., description="Ledger 서비스 초기화 여부")


class ErrorResponse(BaseModel):
    """오류 응답"""

    error: str = Field(..., description="오류 코드")
    message: str = Field(..., description="오류 메시지")
    details: dict[str, Any] = Field(default_factory=dict, description="추가 정보")


class AccountResponse(BaseModel):
    """계정 응답"""

    account_id: str
    name: str
    kind: str
    credit_limit: str | None = None
    status: str


class AccountListResponse(BaseModel):
    accounts: list[AccountResponse]
    total: int


class BalanceResponse(BaseModel):
    """잔액 응답"""

    account_id: str
    kind: str
    balance: str


class TotalBalanceResponse(BaseModel):
    """종류별 잔액 합계 응답"""

    kind: str
    total: str


class EntryResponse(BaseModel):
    """분개 응답"""

    entry_id: int
    account_id: str
    occurred_at: str
    direction: str
    amount: str
    category: str
    counterparty_entry_id: int | None = None
    transfer_id: str | None = None
    reverses_entry_id: int | None = None
    note: str | None = None
    created_by: str | None = None


class EntryListResponse(BaseModel):
    account_id: str
    entries: list[EntryResponse]
    total: int


class StatementLineResponse(EntryResponse):
    """원장 명세 한 줄 (분개 + 누적 잔액)"""

    balance: str


class StatementResponse(BaseModel):
    account_id: str
    kind: str
    opening_balance: str
    closing_balance: str
    lines: list[StatementLineResponse]


class TransferResponse(BaseModel):
    """이체 응답"""

    transfer_id: str
    from_account_id: str
    to_account_id: str
    amount: str
    status: str
    created_at: str
    idempotency_key: str | None = None
    note: str | None = None
    requested_by: str | None = None
    debit_entry_id: int | None = None
    credit_entry_id: int | None = None
    error_message: str | None = None


class TransferListResponse(BaseModel):
    transfers: list[TransferResponse]
    limit: int
    offset: int


class CreditProfileResponse(BaseModel):
    """신용 프로필 응답"""

    account_id: str
    limit: str
    used: str
    available: str
    utilization_pct: str
    risk_tier: str
    status: str
    can_supply: bool


class ExposureSummaryResponse(BaseModel):
    """신용 노출 요약 응답"""

    total_limit: str
    total_used: str
    total_available: str
    tier_counts: dict[str, int]
    critical_accounts: list[str]
    profiles: list[CreditProfileResponse]
