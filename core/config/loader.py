"""
설정 로더

settings.yaml 로드 및 검증
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.errors import InvalidAmount
from core.types import AccountKind, AccountStatus
from core.utils.money import parse_amount

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class TransferConfig:
    """이체 처리 설정"""

    lock_timeout_sec: float = Defaults.LOCK_TIMEOUT_SEC
    allow_overdraft: bool = Defaults.ALLOW_OVERDRAFT


@dataclass(frozen=True)
class WebConfig:
    """Web 서버 설정"""

    host: str = Defaults.WEB_HOST
    port: int = Defaults.WEB_PORT


@dataclass(frozen=True)
class AccountSeed:
    """시작 시 등록할 계정 (온보딩 협력자 대체)"""

    account_id: str
    name: str
    kind: AccountKind
    credit_limit: Decimal | None = None
    status: AccountStatus = AccountStatus.ACTIVE


@dataclass(frozen=True)
class LedgerConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path = Paths.LEDGER_DB
    log_level: str = Defaults.LOG_LEVEL
    transfer: TransferConfig = field(default_factory=TransferConfig)
    web: WebConfig = field(default_factory=WebConfig)
    accounts: tuple[AccountSeed, ...] = ()


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def load_settings(path: Path | None = None) -> LedgerConfig:
    """settings.yaml 파일 로드

    파일이 없으면 기본값을 사용한다.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        SettingsLoadError: 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return LedgerConfig()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return LedgerConfig()

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    return LedgerConfig(
        db_path=_parse_db_path(data.get("db_path")),
        log_level=_parse_log_level(data.get("log_level")),
        transfer=_parse_transfer(data.get("transfer") or {}),
        web=_parse_web(data.get("web") or {}),
        accounts=tuple(_parse_account(item) for item in data.get("accounts") or []),
    )


def _parse_db_path(value: Any) -> Path:
    if value is None:
        return Paths.LEDGER_DB

    db_path = Path(str(value))
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path
    return db_path


def _parse_log_level(value: Any) -> str:
    if value is None:
        return Defaults.LOG_LEVEL

    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise SettingsLoadError(f"log_level 값이 잘못되었습니다: {value!r}")
    return level


def _parse_transfer(section: dict[str, Any]) -> TransferConfig:
    try:
        lock_timeout = float(section.get("lock_timeout_sec", Defaults.LOCK_TIMEOUT_SEC))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"transfer.lock_timeout_sec 값이 잘못되었습니다: {e}") from e

    if lock_timeout <= 0:
        raise SettingsLoadError("transfer.lock_timeout_sec는 0보다 커야 합니다")

    allow_overdraft = section.get("allow_overdraft", Defaults.ALLOW_OVERDRAFT)
    if not isinstance(allow_overdraft, bool):
        raise SettingsLoadError("transfer.allow_overdraft는 true/false 여야 합니다")

    return TransferConfig(lock_timeout_sec=lock_timeout, allow_overdraft=allow_overdraft)


def _parse_web(section: dict[str, Any]) -> WebConfig:
    try:
        port = int(section.get("port", Defaults.WEB_PORT))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"web.port 값이 잘못되었습니다: {e}") from e

    return WebConfig(host=str(section.get("host", Defaults.WEB_HOST)), port=port)


def _parse_account(item: dict[str, Any]) -> AccountSeed:
    if not isinstance(item, dict):
        raise SettingsLoadError(f"accounts 항목은 매핑이어야 합니다: {item!r}")

    account_id = item.get("account_id")
    if not account_id:
        raise SettingsLoadError(f"accounts 항목에 'account_id'가 없습니다: {item!r}")

    try:
        kind = AccountKind(str(item.get("kind", "")).upper())
        status = AccountStatus(str(item.get("status", AccountStatus.ACTIVE.value)).upper())
    except ValueError as e:
        raise SettingsLoadError(f"{account_id}: {e}") from e

    credit_limit = None
    raw_limit = item.get("credit_limit")
    if raw_limit is not None:
        try:
            credit_limit = parse_amount(str(raw_limit))
        except InvalidAmount as e:
            raise SettingsLoadError(f"{account_id}: credit_limit 값이 잘못되었습니다") from e
        if credit_limit < 0:
            raise SettingsLoadError(f"{account_id}: credit_limit는 음수일 수 없습니다")

    return AccountSeed(
        account_id=str(account_id),
        name=str(item.get("name", account_id)),
        kind=kind,
        credit_limit=credit_limit,
        status=status,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: LedgerConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_settings(settings_path)

    @property
    def config(self) -> LedgerConfig:
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """Ledger DB 경로"""
        return self.config.db_path

    @property
    def log_level(self) -> str:
        return self.config.log_level

    @property
    def transfer(self) -> TransferConfig:
        return self.config.transfer

    @property
    def web(self) -> WebConfig:
        return self.config.web

    @property
    def accounts(self) -> tuple[AccountSeed, ...]:
        return self.config.accounts

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
