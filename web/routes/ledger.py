"""
Ledger API 라우터

단독 분개 기록/조회/역분개 및 종류별 잔액 합계.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from core.types import AccountKind, Principal
from core.utils.money import format_amount
from reconciler.service import LedgerService
from web.dependencies import get_ledger_service, get_principal
from web.models.requests import PostEntryRequest, ReverseRequest
from web.models.responses import EntryResponse, TotalBalanceResponse

router = APIRouter(prefix="/api", tags=["Ledger"])


@router.get("/balances/total", response_model=TotalBalanceResponse)
async def get_total_balance(
    kind: AccountKind = Query(..., description="계정 종류"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """종류별 잔액 합계 (총 유동성 / 총 지출 등)"""
    total = await service.get_total(principal, kind)
    return {"kind": kind.value, "total": format_amount(total)}


@router.post("/entries", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def post_entry(
    request: PostEntryRequest,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """단독 분개 기록 (판매/구매/환불 등)"""
    entry = await service.post_entry(
        principal,
        request.account_id,
        request.direction,
        request.amount,
        request.category,
        note=request.note,
        occurred_at=request.occurred_at,
    )
    return entry.to_dict()


@router.get("/entries/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: int,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """분개 단건 조회"""
    entry = await service.get_entry(principal, entry_id)
    return entry.to_dict()


@router.post(
    "/entries/{entry_id}/reverse",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reverse_entry(
    entry_id: int,
    request: ReverseRequest | None = None,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """단독 분개 역분개"""
    note = request.note if request is not None else None
    entry = await service.reverse_entry(principal, entry_id, note=note)
    return entry.to_dict()
