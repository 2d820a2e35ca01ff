"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from fastapi import Header, HTTPException

from core.config.loader import Settings, get_settings
from core.constants import Defaults
from core.types import Principal
from reconciler.service import LedgerService


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


# =========================================================================
# LedgerService (lifespan 또는 테스트에서 설정)
# =========================================================================

_ledger_service: LedgerService | None = None


def set_ledger_service(service: LedgerService | None) -> None:
    """LedgerService 설정

    앱 시작 시(lifespan) 또는 테스트에서 호출하여 전역 인스턴스 설정.

    Args:
        service: LedgerService 인스턴스 (None이면 해제)
    """
    global _ledger_service
    _ledger_service = service


def get_ledger_service() -> LedgerService:
    """LedgerService 반환

    Raises:
        HTTPException: 초기화되지 않은 경우 503
    """
    if _ledger_service is None:
        raise HTTPException(status_code=503, detail="Ledger 서비스가 초기화되지 않았습니다")
    return _ledger_service


def is_ledger_ready() -> bool:
    return _ledger_service is not None


def get_principal(
    x_actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
) -> Principal:
    """요청 행위자 (인증은 외부 계층 담당, 헤더 값을 그대로 기록)"""
    actor = (x_actor_id or "").strip() or Defaults.ANONYMOUS_ACTOR
    return Principal.web(actor)
