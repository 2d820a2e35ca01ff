"""
계정 API 라우터

계정 조회, 잔액/분개/원장 명세, 신용 프로필, 관리자 변경.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from core.types import AccountKind, Principal
from core.utils.money import format_amount
from reconciler.service import LedgerService
from web.dependencies import get_ledger_service, get_principal
from web.models.requests import AccountCreateRequest, AccountStatusRequest, CreditLimitRequest
from web.models.responses import (
    AccountListResponse,
    AccountResponse,
    BalanceResponse,
    CreditProfileResponse,
    EntryListResponse,
    StatementResponse,
)

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    kind: AccountKind | None = Query(default=None, description="계정 종류 필터"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 목록 조회"""
    accounts = await service.list_accounts(principal, kind)
    return {"accounts": [a.to_dict() for a in accounts], "total": len(accounts)}


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_account(
    request: AccountCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 등록 (온보딩)"""
    account = await service.register_account(
        principal,
        request.account_id,
        request.name,
        request.kind,
        credit_limit=request.credit_limit,
    )
    return account.to_dict()


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 단건 조회"""
    account = await service.get_account(principal, account_id)
    return account.to_dict()


@router.get("/{account_id}/balance", response_model=BalanceResponse)
async def get_balance(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 잔액 조회

    BANK/CASH: 입금 - 출금, CUSTOMER/VENDOR: 차변 - 대변
    """
    account = await service.get_account(principal, account_id)
    balance = await service.get_balance(principal, account_id)
    return {
        "account_id": account_id,
        "kind": account.kind.value,
        "balance": format_amount(balance),
    }


@router.get("/{account_id}/entries", response_model=EntryListResponse)
async def list_entries(
    account_id: str,
    start: datetime | None = Query(default=None, description="시작 시각 (포함)"),
    end: datetime | None = Query(default=None, description="종료 시각 (미포함)"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 분개 목록 (발생 시각, entry_id 순)"""
    entries = await service.list_entries(principal, account_id, start=start, end=end)
    return {
        "account_id": account_id,
        "entries": [e.to_dict() for e in entries],
        "total": len(entries),
    }


@router.get("/{account_id}/statement", response_model=StatementResponse)
async def get_statement(
    account_id: str,
    start: datetime | None = Query(default=None, description="시작 시각 (포함)"),
    end: datetime | None = Query(default=None, description="종료 시각 (미포함)"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """원장 명세 (분개별 누적 잔액)"""
    statement = await service.get_statement(principal, account_id, start=start, end=end)
    return statement.to_dict()


@router.get("/{account_id}/credit-profile", response_model=CreditProfileResponse)
async def get_credit_profile(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """신용 프로필 (CUSTOMER/VENDOR)"""
    profile = await service.get_credit_profile(principal, account_id)
    return profile.to_dict()


@router.patch("/{account_id}/status", response_model=AccountResponse)
async def set_account_status(
    account_id: str,
    request: AccountStatusRequest,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """계정 상태 변경 (ACTIVE / BLOCKED)"""
    account = await service.set_account_status(principal, account_id, request.status)
    return account.to_dict()


@router.patch("/{account_id}/credit-limit", response_model=AccountResponse)
async def set_credit_limit(
    account_id: str,
    request: CreditLimitRequest,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """신용 한도 변경"""
    account = await service.set_credit_limit(principal, account_id, request.credit_limit)
    return account.to_dict()
