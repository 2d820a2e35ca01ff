"""
Ledger Bootstrap

DB 연결, 스키마 초기화, 컴포넌트 조립, 설정 계정 등록.
Web/스크립트/테스트가 같은 조립 경로를 사용한다.
"""

import logging
from pathlib import Path

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig, get_settings
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from reconciler.accounts.registry import AccountRegistry
from reconciler.balance.calculator import BalanceCalculator
from reconciler.locks import AccountLockManager
from reconciler.risk.evaluator import CreditRiskEvaluator
from reconciler.service import LedgerService
from reconciler.transfer.processor import TransferProcessor
from reconciler.transfer.repository import TransferRepository

logger = logging.getLogger(__name__)


class LedgerRuntime:
    """조립된 Ledger 컴포넌트와 DB 연결 수명 관리

    Args:
        config: 애플리케이션 설정 (None이면 Settings 싱글턴)
        db_path: DB 경로 재지정 (테스트용)

    사용 예시:
    ```python
    async with LedgerRuntime() as runtime:
        balance = await runtime.service.get_balance(principal, "BANK-1")
    ```
    """

    def __init__(self, config: LedgerConfig | None = None, db_path: Path | str | None = None):
        self.config = config if config is not None else get_settings().config
        self.db_path = Path(db_path) if db_path is not None else self.config.db_path

        self.db = SQLiteAdapter(self.db_path)
        self.reader = SQLiteAdapter(self.db_path, readonly=True)

        self.locks = AccountLockManager(default_timeout=self.config.transfer.lock_timeout_sec)
        self.store = LedgerStore(self.db, reader=self.reader)
        self.registry = AccountRegistry(self.db, reader=self.reader, locks=self.locks)
        self.calculator = BalanceCalculator(self.store, self.registry)
        self.repository = TransferRepository(self.db, reader=self.reader)
        self.processor = TransferProcessor(
            self.store,
            self.registry,
            self.repository,
            self.calculator,
            self.locks,
            allow_overdraft=self.config.transfer.allow_overdraft,
        )
        self.evaluator = CreditRiskEvaluator(self.registry, self.calculator)
        self.service = LedgerService(
            self.store,
            self.registry,
            self.calculator,
            self.processor,
            self.evaluator,
            self.locks,
        )

        # 캐시 무효화가 위험 재계산보다 먼저
        self.store.subscribe(self.calculator.on_entries)
        self.store.subscribe(self.evaluator.on_entries)
        self.store.subscribe_stale(self.calculator.on_stale)

    async def start(self) -> None:
        """연결 생성, 스키마 초기화, 설정 계정 등록"""
        # 읽기 전용 연결은 DB 파일과 WAL이 준비된 뒤에 연다
        await self.db.connect()
        await init_ledger_schema(self.db)
        await self.reader.connect()

        if self.config.accounts:
            await self.registry.ensure_accounts(self.config.accounts)

        await self.evaluator.prime()

        logger.info(
            "Ledger runtime started",
            extra={
                "db_path": str(self.db_path),
                "allow_overdraft": self.config.transfer.allow_overdraft,
            },
        )

    async def close(self) -> None:
        await self.reader.close()
        await self.db.close()
        logger.info("Ledger runtime stopped")

    async def __aenter__(self) -> "LedgerRuntime":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
