"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.constants import APP_VERSION
from core.errors import (
    ConcurrencyError,
    DuplicateAccount,
    EntryNotFound,
    LedgerError,
    StateError,
    StorageError,
    TransferNotFound,
    UnknownAccount,
    ValidationError,
)
from core.config.loader import get_settings
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web", level=get_settings().log_level)

from reconciler.bootstrap import LedgerRuntime
from web.dependencies import is_ledger_ready, set_ledger_service
from web.routes import accounts, credit, health, ledger, transfer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    테스트처럼 외부에서 LedgerService를 주입한 경우 그대로 사용한다.
    """
    runtime: LedgerRuntime | None = None

    if not is_ledger_ready():
        runtime = LedgerRuntime()
        await runtime.start()
        set_ledger_service(runtime.service)
        logger.info("Web: LedgerService 초기화 완료")

    yield

    # 종료 시 - 리소스 정리
    if runtime is not None:
        set_ledger_service(None)
        await runtime.close()


def error_status(error: LedgerError) -> int:
    """예외 분류 → HTTP 상태 코드"""
    if isinstance(error, (UnknownAccount, EntryNotFound, TransferNotFound)):
        return 404
    if isinstance(error, (DuplicateAccount, StateError)):
        return 409
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ConcurrencyError):
        return 503
    if isinstance(error, StorageError):
        return 500
    return 400


app = FastAPI(
    title="Ledger Reconciliation API",
    description="계정 잔액/이체/신용 위험 API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"path": request.url.path})
    else:
        logger.info(f"{exc.code}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(ledger.router)
app.include_router(transfer.router)
app.include_router(credit.router)
