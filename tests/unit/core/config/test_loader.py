"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, Settings 싱글턴
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    LedgerConfig,
    Settings,
    SettingsLoadError,
    get_settings,
    load_settings,
)
from core.constants import PROJECT_ROOT, Defaults, Paths
from core.types import AccountKind, AccountStatus


def _write(temp_dir: Path, content: str) -> Path:
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadSettings:
    """load_settings 테스트"""

    def test_missing_file_defaults(self, temp_dir: Path) -> None:
        """파일이 없으면 기본값"""
        config = load_settings(temp_dir / "missing.yaml")

        assert config == LedgerConfig()
        assert config.db_path == Paths.LEDGER_DB
        assert config.transfer.lock_timeout_sec == Defaults.LOCK_TIMEOUT_SEC
        assert config.transfer.allow_overdraft is Defaults.ALLOW_OVERDRAFT

    def test_empty_file_defaults(self, temp_dir: Path) -> None:
        assert load_settings(_write(temp_dir, "")) == LedgerConfig()

    def test_full_file(self, temp_dir: Path) -> None:
        path = _write(
            temp_dir,
            """
db_path: data/test.db
log_level: debug
transfer:
  lock_timeout_sec: 1.5
  allow_overdraft: false
web:
  host: 0.0.0.0
  port: 9000
accounts:
  - account_id: BANK-1
    name: 주거래 은행
    kind: bank
  - account_id: CUST-9
    kind: CUSTOMER
    credit_limit: "100000.00"
    status: BLOCKED
""",
        )

        config = load_settings(path)

        assert config.db_path == PROJECT_ROOT / "data" / "test.db"
        assert config.log_level == "DEBUG"
        assert config.transfer.lock_timeout_sec == 1.5
        assert config.transfer.allow_overdraft is False
        assert config.web.host == "0.0.0.0"
        assert config.web.port == 9000

        bank, customer = config.accounts
        assert bank.kind == AccountKind.BANK
        assert bank.credit_limit is None
        assert customer.name == "CUST-9"
        assert customer.credit_limit == Decimal("100000.00")
        assert customer.status == AccountStatus.BLOCKED

    def test_absolute_db_path(self, temp_dir: Path) -> None:
        db_path = temp_dir / "abs.db"
        config = load_settings(_write(temp_dir, f"db_path: {db_path.as_posix()}\n"))

        assert config.db_path == db_path

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "transfer: [unclosed\n"))

    def test_top_level_must_be_mapping(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "- a\n- b\n"))

    def test_non_positive_lock_timeout(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "transfer:\n  lock_timeout_sec: 0\n"))

    def test_unknown_log_level(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "log_level: LOUD\n"))

    def test_overdraft_must_be_bool(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "transfer:\n  allow_overdraft: maybe\n"))

    def test_unknown_kind(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(
                _write(temp_dir, "accounts:\n  - account_id: X-1\n    kind: SAVINGS\n")
            )

    def test_missing_account_id(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(_write(temp_dir, "accounts:\n  - kind: BANK\n"))

    def test_float_like_limit_with_excess_scale(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(
                _write(
                    temp_dir,
                    "accounts:\n  - account_id: C-1\n    kind: CUSTOMER\n"
                    "    credit_limit: \"10.001\"\n",
                )
            )

    def test_negative_limit(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(
                _write(
                    temp_dir,
                    "accounts:\n  - account_id: C-1\n    kind: CUSTOMER\n"
                    "    credit_limit: \"-1\"\n",
                )
            )

    def test_frozen(self) -> None:
        config = LedgerConfig()
        with pytest.raises(AttributeError):
            config.db_path = Path("other.db")  # type: ignore[misc]


class TestSettings:
    """Settings 싱글턴 테스트"""

    def setup_method(self) -> None:
        Settings.reset()

    def teardown_method(self) -> None:
        Settings.reset()

    def test_singleton(self, temp_dir: Path) -> None:
        path = _write(temp_dir, "web:\n  port: 8123\n")

        first = get_settings(path)
        second = get_settings()

        assert first is second
        assert second.web.port == 8123

    def test_reset(self, temp_dir: Path) -> None:
        get_settings(_write(temp_dir, "web:\n  port: 8123\n"))
        Settings.reset()

        settings = get_settings(temp_dir / "missing.yaml")
        assert settings.web.port == Defaults.WEB_PORT
