"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter

from core.constants import APP_VERSION
from web.dependencies import is_ledger_ready
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, version, ledger_ready 정보
    """
    ready = is_ledger_ready()
    return HealthResponse(
        status="ok" if ready else "starting",
        version=APP_VERSION,
        ledger_ready=ready,
    )
