"""
pytest 공통 fixture 정의

임시 DB 위에 조립된 LedgerRuntime과 기본 계정(BANK-1, CASH-1, CUST-9, VEND-1)
"""

import tempfile
from decimal import Decimal
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from core.config.loader import AccountSeed, LedgerConfig, TransferConfig
from core.types import AccountKind, Principal
from reconciler.bootstrap import LedgerRuntime


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def seed_accounts() -> tuple[AccountSeed, ...]:
    """테스트 기본 계정"""
    return (
        AccountSeed(account_id="BANK-1", name="주거래 은행", kind=AccountKind.BANK),
        AccountSeed(account_id="BANK-2", name="보조 은행", kind=AccountKind.BANK),
        AccountSeed(account_id="CASH-1", name="현금", kind=AccountKind.CASH),
        AccountSeed(
            account_id="CUST-9",
            name="단골 거래처",
            kind=AccountKind.CUSTOMER,
            credit_limit=Decimal("100000.00"),
        ),
        AccountSeed(
            account_id="VEND-1",
            name="원자재 공급처",
            kind=AccountKind.VENDOR,
            credit_limit=Decimal("50000.00"),
        ),
    )


@pytest.fixture
def ledger_config(seed_accounts: tuple[AccountSeed, ...]) -> LedgerConfig:
    """테스트용 설정 (overdraft 허용, 짧은 락 제한 시간)"""
    return LedgerConfig(
        transfer=TransferConfig(lock_timeout_sec=2.0, allow_overdraft=True),
        accounts=seed_accounts,
    )


@pytest_asyncio.fixture
async def runtime(temp_dir: Path, ledger_config: LedgerConfig) -> AsyncIterator[LedgerRuntime]:
    """시작된 LedgerRuntime (임시 DB)"""
    rt = LedgerRuntime(config=ledger_config, db_path=temp_dir / "ledger.db")
    await rt.start()
    yield rt
    await rt.close()


@pytest.fixture
def principal() -> Principal:
    """테스트 호출 주체"""
    return Principal.user("tester")
