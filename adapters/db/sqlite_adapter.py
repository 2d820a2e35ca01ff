"""
SQLite 어댑터

원장 DB 연결. 런타임은 연결을 두 개 연다:
- 쓰기 연결: WAL, 모든 코루틴이 공유, BEGIN..COMMIT 구간을 락으로 직렬화
- 읽기 전용 연결: 커밋된 스냅샷만 조회 (URI mode=ro)

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_MS = 30_000

# 쓰기 연결 전용. 읽기 전용 연결은 journal_mode를 바꿀 수 없다
_WRITER_PRAGMAS: tuple[str, ...] = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
)
_COMMON_PRAGMAS: tuple[str, ...] = ("PRAGMA foreign_keys=ON",)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """원장 DB 연결 생성

    Args:
        db_path: DB 파일 경로 (상위 디렉토리는 쓰기 연결일 때 생성)
        readonly: True면 mode=ro URI로 연다 (파일이 이미 있어야 함)
        busy_timeout_ms: 다른 연결의 쓰기 락 대기 시간
    """
    path = Path(db_path)

    if readonly:
        conn = await aiosqlite.connect(f"file:{path}?mode=ro", uri=True)
        pragmas = _COMMON_PRAGMAS
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(path))
        pragmas = _WRITER_PRAGMAS + _COMMON_PRAGMAS

    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    for pragma in pragmas:
        await conn.execute(pragma)

    logger.info(
        "원장 DB 연결",
        extra={"db_path": str(path), "readonly": readonly},
    )
    return conn


class SQLiteAdapter:
    """원장 DB 어댑터

    Args:
        db_path: DB 파일 경로
        readonly: 조회 전용 연결 여부
        busy_timeout_ms: 쓰기 락 대기 시간

    execute()는 락을 잡지 않는다. 이미 transaction()/locked() 구간 안에 있는
    호출자(Store의 insert_pair 등)가 같은 구간에서 여러 문장을 실행하기 위함이다.

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        async with db.transaction() as tx:
            await tx.execute("INSERT INTO ledger_entry ...")
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """커밋되지 않은 트랜잭션이 열려 있는지"""
        return self._conn is not None and self._conn.in_transaction

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"원장 DB에 연결되지 않음: {self.db_path}")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(
                self.db_path, readonly=self.readonly, busy_timeout_ms=self.busy_timeout_ms
            )

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()
        logger.info("원장 DB 연결 종료", extra={"readonly": self.readonly})

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # 실행 / 조회
    # -------------------------------------------------------------------------

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        return await self._require().execute(sql, parameters or ())

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        try:
            return await cursor.fetchone()
        finally:
            await cursor.close()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        try:
            return list(await cursor.fetchall())
        finally:
            await cursor.close()

    async def commit(self) -> None:
        await self._require().commit()

    async def rollback(self) -> None:
        await self._require().rollback()

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return row is not None

    # -------------------------------------------------------------------------
    # 직렬화 구간
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteAdapter"]:
        """원자적 쓰기 구간

        블록이 정상 종료하면 커밋, 예외(취소 포함)면 롤백 후 재발생.
        """
        conn = self._require()
        async with self._tx_lock:
            try:
                yield self
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def locked(self) -> AsyncIterator["SQLiteAdapter"]:
        """트랜잭션 없이 쓰기 연결을 독점 (진행 중인 트랜잭션과 섞이지 않는 조회)"""
        self._require()
        async with self._tx_lock:
            yield self
