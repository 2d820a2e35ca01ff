"""
이체 API 라우터

계정 간 이체 실행/조회/역이체.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Query, status

from core.types import Principal, TransferStatus
from reconciler.service import LedgerService
from web.dependencies import get_ledger_service, get_principal
from web.models.requests import ReverseRequest, TransferRequest
from web.models.responses import TransferListResponse, TransferResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transfers", tags=["Transfer"])


@router.post("", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
async def execute_transfer(
    request: TransferRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """이체 실행

    같은 idempotency key로 재요청하면 409와 함께 기존 이체 ID를 돌려준다.

    Args:
        request: 이체 요청
        idempotency_key: Idempotency-Key 헤더 (본문 값보다 우선)
    """
    transfer = await service.execute_transfer(
        principal,
        request.from_account_id,
        request.to_account_id,
        request.amount,
        note=request.note,
        idempotency_key=idempotency_key or request.idempotency_key,
        timeout=request.timeout_sec,
    )
    return transfer.to_dict()


@router.get("", response_model=TransferListResponse)
async def list_transfers(
    account_id: str | None = Query(default=None, description="출금/입금 계정 필터"),
    transfer_status: TransferStatus | None = Query(
        default=None, alias="status", description="상태 필터"
    ),
    limit: int = Query(default=50, ge=1, le=500, description="최대 개수"),
    offset: int = Query(default=0, ge=0, description="오프셋"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """이체 내역 (최신순)"""
    transfers = await service.list_transfers(
        principal,
        account_id=account_id,
        status=transfer_status,
        limit=limit,
        offset=offset,
    )
    return {
        "transfers": [t.to_dict() for t in transfers],
        "limit": limit,
        "offset": offset,
    }


@router.get("/{transfer_id}", response_model=TransferResponse)
async def get_transfer(
    transfer_id: str,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """이체 단건 조회"""
    transfer = await service.get_transfer(principal, transfer_id)
    return transfer.to_dict()


@router.post(
    "/{transfer_id}/reverse",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reverse_transfer(
    transfer_id: str,
    request: ReverseRequest | None = None,
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """역이체 (이체당 한 번)"""
    note = request.note if request is not None else None
    transfer = await service.reverse_transfer(principal, transfer_id, note=note)
    return transfer.to_dict()
