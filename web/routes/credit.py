"""
신용 감시 API 라우터

GET /api/credit/exposure - 거래처 신용 노출 요약
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.types import AccountKind, Principal
from reconciler.service import LedgerService
from web.dependencies import get_ledger_service, get_principal
from web.models.responses import ExposureSummaryResponse

router = APIRouter(prefix="/api/credit", tags=["Credit"])


@router.get("/exposure", response_model=ExposureSummaryResponse)
async def get_exposure(
    kind: AccountKind | None = Query(default=None, description="CUSTOMER 또는 VENDOR"),
    service: LedgerService = Depends(get_ledger_service),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """신용 노출 요약 (총 한도/사용액, 등급별 개수, CRITICAL 목록)"""
    summary = await service.get_exposure_summary(principal, kind)
    return summary.to_dict()
