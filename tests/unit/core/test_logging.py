"""
core/logging.py 테스트

extra 필드 포매팅, 루트 핸들러 구성
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.logging import LOG_FORMAT, ExtraFieldsFormatter, setup_logging


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("reconciler.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestExtraFieldsFormatter:
    """ExtraFieldsFormatter 테스트"""

    def test_appends_sorted_fields(self) -> None:
        formatter = ExtraFieldsFormatter("%(message)s")

        line = formatter.format(
            _record("Transfer committed", to_account_id="CASH-1", from_account_id="BANK-1")
        )

        assert line == "Transfer committed | from_account_id=BANK-1 to_account_id=CASH-1"

    def test_plain_record_unchanged(self) -> None:
        formatter = ExtraFieldsFormatter(LOG_FORMAT)

        line = formatter.format(_record("hello"))

        assert line.endswith("| reconciler.test | hello")
        assert line.count("|") == 3


class TestSetupLogging:
    """setup_logging 테스트"""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_handlers(self, tmp_path: Path) -> None:
        root = setup_logging("check_ledger", level="warning", log_dir=tmp_path)

        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(root.handlers) == 2
        assert len(file_handlers) == 1
        assert all(h.level == logging.WARNING for h in root.handlers)
        assert (tmp_path / "check_ledger.log").exists()

    def test_idempotent(self, tmp_path: Path) -> None:
        setup_logging("web", log_dir=tmp_path)
        root = setup_logging("web", log_dir=tmp_path)

        assert len(root.handlers) == 2
