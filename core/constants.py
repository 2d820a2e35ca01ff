"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

APP_VERSION: str = "1.0.0"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 계정 락 획득 대기 시간 (초)
    LOCK_TIMEOUT_SEC: float = 5.0

    # Bank/Cash 이체 시 마이너스 잔액 허용 여부 (원본 화면 동작과 동일)
    ALLOW_OVERDRAFT: bool = True

    # entries_for 페이지 크기 (keyset pagination)
    ENTRY_PAGE_SIZE: int = 500

    # Web 요청의 기본 행위자
    ANONYMOUS_ACTOR: str = "anonymous"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    SCRIPT_LOGS_DIR: Path = LOGS_DIR / "scripts"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"


class Money:
    """금액 표현 상수

    단일 통화 고정소수점. DB에는 minor unit(정수)로 저장.
    """

    SCALE: int = 2
    QUANT: Decimal = Decimal("0.01")
    MINOR_PER_UNIT: int = 100
    ZERO: Decimal = Decimal("0.00")

    # 분개 1건 절대값 상한. minor unit 합계(SUM)가 SQLite 64비트 INTEGER를
    # 넘지 않도록 충분한 여유를 둔다 (상한 금액 분개 9만 건 이상)
    MAX_AMOUNT: Decimal = Decimal("999999999999.99")
    MAX_MINOR: int = 2**63 - 1


class RiskThresholds:
    """신용 위험 등급 경계 (utilization %, 하한 포함)"""

    MEDIUM_PCT: Decimal = Decimal("50")
    CRITICAL_PCT: Decimal = Decimal("90")
