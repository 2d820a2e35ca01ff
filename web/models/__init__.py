"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountStatusRequest,
    CreditLimitRequest,
    PostEntryRequest,
    ReverseRequest,
    TransferRequest,
)
from web.models.responses import (
    AccountListResponse,
    AccountResponse,
    BalanceResponse,
    CreditProfileResponse,
    EntryListResponse,
    EntryResponse,
    ErrorResponse,
    ExposureSummaryResponse,
    HealthResponse,
    StatementResponse,
    TotalBalanceResponse,
    TransferListResponse,
    TransferResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountStatusRequest",
    "CreditLimitRequest",
    "PostEntryRequest",
    "ReverseRequest",
    "TransferRequest",
    # Responses
    "AccountListResponse",
    "AccountResponse",
    "BalanceResponse",
    "CreditProfileResponse",
    "EntryListResponse",
    "EntryResponse",
    "ErrorResponse",
    "ExposureSummaryResponse",
    "HealthResponse",
    "StatementResponse",
    "TotalBalanceResponse",
    "TransferListResponse",
    "TransferResponse",
]
