"""
로깅 설정 유틸리티

Web 서버와 점검 스크립트가 공유하는 로깅 설정.
- 콘솔 + 일 단위 롤링 파일 (TimedRotatingFileHandler)
- logger.info(..., extra={"account_id": ...})로 넘긴 필드를 메시지 뒤에 key=value로 붙인다

사용법:
    from core.logging import setup_logging
    setup_logging("web", level="INFO")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Defaults, Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 14

# 로그 레코드의 기본 속성 (extra로 넘긴 필드와 구분용)
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

QUIET_LOGGERS = (
    "aiosqlite",
    "asyncio",
    "httpcore",
    "httpx",
    "uvicorn.access",
)


class ExtraFieldsFormatter(logging.Formatter):
    """extra 필드를 메시지 끝에 붙이는 포매터

    예: ``Transfer committed: tf-1a2b | from_account_id=BANK-1 to_account_id=CASH-1``
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not fields:
            return line

        head, sep, tail = line.partition("\n")
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{head} | {pairs}{sep}{tail}"


def get_log_dir(process_name: str) -> Path:
    """프로세스별 로그 디렉토리"""
    if process_name == "web":
        return Paths.WEB_LOGS_DIR
    return Paths.SCRIPT_LOGS_DIR


def setup_logging(
    process_name: str,
    level: str | int = Defaults.LOG_LEVEL,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    기존 핸들러를 제거하고 콘솔/파일 핸들러를 다시 단다.

    Args:
        process_name: "web" 또는 스크립트 이름 (로그 파일명)
        level: 핸들러 레벨 (이름 또는 숫자)
        log_dir: 로그 디렉토리 (None이면 프로세스별 기본 경로)

    Returns:
        루트 Logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    log_dir = log_dir or get_log_dir(process_name)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    formatter = ExtraFieldsFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"

    for handler in (console, file_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"로깅 초기화: {process_name}",
        extra={"log_file": str(log_file), "level": logging.getLevelName(level)},
    )
    return root
