"""
Ledger 저장소

append-only 분개 저장 및 조회.
잔액은 저장하지 않고 항상 분개에서 파생한다.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.errors import EntryNotFound, InvalidAmount, UnknownAccount
from core.ledger.models import EntryDraft, LedgerEntry
from core.types import AccountKind, Direction
from core.utils.money import from_minor, parse_positive_amount, to_minor
from core.utils.timezone import now_utc, to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 커밋 후 통지 리스너 (동기/비동기 모두 허용)
EntryListener = Callable[[list[LedgerEntry]], Awaitable[None] | None]
StaleListener = Callable[[set[str]], None]

_ENTRY_COLUMNS = (
    "entry_id, account_id, occurred_at, direction, amount_minor, category, "
    "counterparty_entry_id, transfer_id, reverses_entry_id, note, created_by"
)


def _row_to_dict(row: tuple[Any, ...]) -> dict[str, Any]:
    keys = [c.strip() for c in _ENTRY_COLUMNS.split(",")]
    return dict(zip(keys, row))


class EntrySequence:
    """계정별 분개 시퀀스 (지연, 유한, 재시작 가능)

    `async for` 할 때마다 처음부터 다시 조회한다.
    순회 시작 시점의 최대 entry_id를 스냅샷 상한으로 잡아,
    순회 중 커밋된 분개는 섞이지 않는다.

    사용 예시:
    ```python
    async for entry in store.entries_for("BANK-1"):
        ...

    entries = await store.entries_for("BANK-1", start=day_start).to_list()
    ```
    """

    def __init__(
        self,
        store: LedgerStore,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        page_size: int = Defaults.ENTRY_PAGE_SIZE,
    ):
        self._store = store
        self.account_id = account_id
        self.start = start
        self.end = end
        self.page_size = page_size

    def __aiter__(self) -> AsyncIterator[LedgerEntry]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[LedgerEntry]:
        high_water = await self._store.max_entry_id()
        cursor: tuple[str, int] | None = None

        while True:
            page = await self._store._fetch_page(
                account_id=self.account_id,
                start=self.start,
                end=self.end,
                high_water=high_water,
                cursor=cursor,
                limit=self.page_size,
            )
            for entry in page:
                yield entry

            if len(page) < self.page_size:
                return

            last = page[-1]
            cursor = (to_db_ts(last.occurred_at), last.entry_id)

    async def to_list(self) -> list[LedgerEntry]:
        """전체 분개를 리스트로 반환"""
        return [entry async for entry in self]


class LedgerStore:
    """Ledger 저장소

    append-only 분개 저장소. 쓰기는 공유 쓰기 연결의 트랜잭션 락으로 직렬화되고,
    조회는 읽기 전용 연결(WAL)에서 커밋된 데이터만 본다.

    Args:
        db: 쓰기 가능한 SQLite 어댑터
        reader: 읽기 전용 SQLite 어댑터 (None이면 쓰기 연결을 락으로 보호해서 조회)
        page_size: entries_for 페이지 크기
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        reader: SQLiteAdapter | None = None,
        page_size: int = Defaults.ENTRY_PAGE_SIZE,
    ):
        self.db = db
        self.reader = reader
        self.page_size = page_size
        self._listeners: list[EntryListener] = []
        self._stale_listeners: list[StaleListener] = []

    # -------------------------------------------------------------------------
    # 구독
    # -------------------------------------------------------------------------

    def subscribe(self, listener: EntryListener) -> None:
        """커밋 후 통지 리스너 등록

        Args:
            listener: 새로 보이게 된 분개 목록을 받는 함수
        """
        self._listeners.append(listener)

    def subscribe_stale(self, listener: StaleListener) -> None:
        """커밋 후 분개 재조회에 실패했을 때 받을 리스너 등록

        Args:
            listener: 영향받은 account_id 집합을 받는 함수 (빈 집합이면 전체)
        """
        self._stale_listeners.append(listener)

    async def publish(
        self,
        entry_ids: Iterable[int],
        account_ids: Iterable[str] = (),
    ) -> list[LedgerEntry]:
        """커밋된 분개를 리스너에 통지

        쓰기는 이미 커밋되었으므로 여기서 예외를 올리지 않는다.
        분개 재조회가 실패하면 stale 리스너에 account_id만 넘긴다.

        Args:
            entry_ids: 방금 커밋된 분개 ID
            account_ids: 그 분개들의 계정

        Returns:
            통지된 분개 목록 (재조회 실패 시 빈 목록)
        """
        entry_ids = list(entry_ids)
        try:
            entries = [await self.by_id(entry_id) for entry_id in entry_ids]
        except Exception:
            logger.exception(
                "커밋된 분개 재조회 실패",
                extra={"entry_ids": entry_ids},
            )
            self._notify_stale(set(account_ids))
            return []

        for listener in self._listeners:
            try:
                result = listener(entries)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # 쓰기는 이미 커밋됨. 리스너 실패가 쓰기 결과를 바꾸지 않는다.
                logger.exception(
                    "Ledger 리스너 실패",
                    extra={"entry_ids": [e.entry_id for e in entries]},
                )

        return entries

    def _notify_stale(self, account_ids: set[str]) -> None:
        for listener in self._stale_listeners:
            try:
                listener(account_ids)
            except Exception:
                logger.exception("Ledger stale 리스너 실패")

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteAdapter]:
        """쓰기 트랜잭션 (실패 시 전체 롤백)"""
        async with self.db.transaction() as tx:
            yield tx

    async def append(self, draft: EntryDraft) -> int:
        """단독 분개 저장

        판매/구매 기록처럼 이체가 아닌 분개를 저장한다.

        Args:
            draft: 저장할 분개

        Returns:
            부여된 entry_id

        Raises:
            InvalidAmount: 금액이 0 이하
            UnknownAccount: 존재하지 않는 계정
        """
        async with self.transaction():
            entry_id = await self._insert_entry(draft)

        await self.publish([entry_id], [draft.account_id])
        return entry_id

    async def append_pair(self, debit: EntryDraft, credit: EntryDraft) -> tuple[int, int]:
        """서로 연결된 분개 쌍 저장 (하나의 트랜잭션)"""
        async with self.transaction():
            ids = await self.insert_pair(debit, credit)

        await self.publish(ids, [debit.account_id, credit.account_id])
        return ids

    async def insert_pair(self, debit: EntryDraft, credit: EntryDraft) -> tuple[int, int]:
        """분개 쌍 INSERT 및 상호 연결

        호출자가 연 트랜잭션 안에서만 호출한다. 어느 단계든 실패하면
        트랜잭션 롤백으로 두 분개 모두 보이지 않는다.

        Returns:
            (debit_entry_id, credit_entry_id)
        """
        if debit.direction != Direction.DEBIT or credit.direction != Direction.CREDIT:
            raise ValueError("insert_pair는 (DEBIT, CREDIT) 순서여야 합니다")

        debit_id = await self._insert_entry(debit)
        credit_id = await self._insert_entry(credit, counterparty_entry_id=debit_id)

        await self.db.execute(
            "UPDATE ledger_entry SET counterparty_entry_id = ? WHERE entry_id = ?",
            (credit_id, debit_id),
        )

        return debit_id, credit_id

    async def _insert_entry(
        self,
        draft: EntryDraft,
        counterparty_entry_id: int | None = None,
    ) -> int:
        """분개 1건 INSERT (트랜잭션 내부 전용)"""
        if draft.amount <= 0:
            raise InvalidAmount(
                f"분개 금액은 0보다 커야 합니다: {draft.amount}",
                account_id=draft.account_id,
                amount=draft.amount,
            )
        # 소수 자릿수 초과 금액은 반올림하지 않고 거부
        amount = parse_positive_amount(draft.amount)

        row = await self.db.fetchone(
            "SELECT 1 FROM account WHERE account_id = ?",
            (draft.account_id,),
        )
        if row is None:
            raise UnknownAccount(
                f"존재하지 않는 계정입니다: {draft.account_id}",
                account_id=draft.account_id,
            )

        cursor = await self.db.execute(
            """
            INSERT INTO ledger_entry (
                account_id, occurred_at, direction, amount_minor, category,
                counterparty_entry_id, transfer_id, reverses_entry_id,
                note, created_by, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                draft.account_id,
                to_db_ts(draft.occurred_at),
                draft.direction.value,
                to_minor(amount),
                draft.category,
                counterparty_entry_id,
                draft.transfer_id,
                draft.reverses_entry_id,
                draft.note,
                draft.created_by,
                to_db_ts(now_utc()),
            ),
        )
        entry_id = cursor.lastrowid
        assert entry_id is not None

        logger.debug(
            f"Ledger entry inserted: {entry_id}",
            extra={"account_id": draft.account_id, "direction": draft.direction.value},
        )
        return entry_id

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[SQLiteAdapter]:
        """커밋된 스냅샷 조회용 연결"""
        if self.reader is not None:
            yield self.reader
            return

        async with self.db.locked() as db:
            yield db

    def entries_for(
        self,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> EntrySequence:
        """계정별 분개 시퀀스

        (occurred_at, entry_id) 순서. start 포함, end 미포함.

        Args:
            account_id: 계정 ID
            start: 시작 시각 (포함)
            end: 종료 시각 (미포함)
        """
        return EntrySequence(self, account_id, start, end, self.page_size)

    async def _fetch_page(
        self,
        account_id: str,
        start: datetime | None,
        end: datetime | None,
        high_water: int,
        cursor: tuple[str, int] | None,
        limit: int,
    ) -> list[LedgerEntry]:
        conditions = ["account_id = ?", "entry_id <= ?"]
        params: list[Any] = [account_id, high_water]

        if start is not None:
            conditions.append("occurred_at >= ?")
            params.append(to_db_ts(start))

        if end is not None:
            conditions.append("occurred_at < ?")
            params.append(to_db_ts(end))

        if cursor is not None:
            conditions.append("(occurred_at > ? OR (occurred_at = ? AND entry_id > ?))")
            params.extend([cursor[0], cursor[0], cursor[1]])

        params.append(limit)

        async with self._reading() as db:
            rows = await db.fetchall(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM ledger_entry
                WHERE {" AND ".join(conditions)}
                ORDER BY occurred_at, entry_id
                LIMIT ?
                """,
                tuple(params),
            )

        return [LedgerEntry.from_row(_row_to_dict(row)) for row in rows]

    async def by_id(self, entry_id: int) -> LedgerEntry:
        """분개 단건 조회

        Raises:
            EntryNotFound: 없는 entry_id
        """
        async with self._reading() as db:
            row = await db.fetchone(
                f"SELECT {_ENTRY_COLUMNS} FROM ledger_entry WHERE entry_id = ?",
                (entry_id,),
            )

        if row is None:
            raise EntryNotFound(f"분개를 찾을 수 없습니다: {entry_id}", entry_id=entry_id)

        return LedgerEntry.from_row(_row_to_dict(row))

    async def max_entry_id(self) -> int:
        """현재 커밋된 최대 entry_id (없으면 0)"""
        async with self._reading() as db:
            row = await db.fetchone("SELECT COALESCE(MAX(entry_id), 0) FROM ledger_entry")
        return int(row[0]) if row else 0

    async def totals_for(
        self,
        account_id: str,
        before: datetime | None = None,
    ) -> tuple[Decimal, Decimal]:
        """계정의 (차변 합계, 대변 합계)

        Args:
            account_id: 계정 ID
            before: 이 시각 이전 분개만 (None이면 전체)
        """
        sql = """
            SELECT
                COALESCE(SUM(CASE WHEN direction = 'DEBIT' THEN amount_minor END), 0),
                COALESCE(SUM(CASE WHEN direction = 'CREDIT' THEN amount_minor END), 0)
            FROM ledger_entry
            WHERE account_id = ?
        """
        params: tuple[Any, ...] = (account_id,)
        if before is not None:
            sql += " AND occurred_at < ?"
            params = (account_id, to_db_ts(before))

        async with self._reading() as db:
            row = await db.fetchone(sql, params)

        assert row is not None
        return from_minor(row[0]), from_minor(row[1])

    async def totals_by_account(
        self,
        kind: AccountKind | None = None,
    ) -> dict[str, tuple[Decimal, Decimal]]:
        """계정별 (차변 합계, 대변 합계) - 한 번의 조회로 일관된 스냅샷

        Args:
            kind: 계정 종류 필터 (None이면 전체)
        """
        sql = """
            SELECT
                a.account_id,
                COALESCE(SUM(CASE WHEN e.direction = 'DEBIT' THEN e.amount_minor END), 0),
                COALESCE(SUM(CASE WHEN e.direction = 'CREDIT' THEN e.amount_minor END), 0)
            FROM account a
            LEFT JOIN ledger_entry e ON e.account_id = a.account_id
        """
        params: tuple[Any, ...] = ()
        if kind is not None:
            sql += " WHERE a.kind = ?"
            params = (kind.value,)
        sql += " GROUP BY a.account_id ORDER BY a.account_id"

        async with self._reading() as db:
            rows = await db.fetchall(sql, params)

        return {row[0]: (from_minor(row[1]), from_minor(row[2])) for row in rows}

    async def net_position(self, account_id: str) -> Decimal:
        """계정 종류와 무관한 순포지션 (대변 - 차변)"""
        debit, credit = await self.totals_for(account_id)
        return credit - debit

    async def ledger_net_total(self) -> Decimal:
        """전체 원장 순포지션 합계

        이체는 이 값을 바꾸지 않는다 (보존 법칙 검증용).
        """
        async with self._reading() as db:
            row = await db.fetchone(
                """
                SELECT COALESCE(SUM(
                    CASE WHEN direction = 'CREDIT' THEN amount_minor ELSE -amount_minor END
                ), 0)
                FROM ledger_entry
                """
            )
        assert row is not None
        return from_minor(row[0])

    async def entries_for_transfer(self, transfer_id: str) -> list[LedgerEntry]:
        """이체에 속한 분개 조회"""
        async with self._reading() as db:
            rows = await db.fetchall(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM ledger_entry
                WHERE transfer_id = ?
                ORDER BY entry_id
                """,
                (transfer_id,),
            )
        return [LedgerEntry.from_row(_row_to_dict(row)) for row in rows]

    async def reversal_of(self, entry_id: int) -> LedgerEntry | None:
        """해당 분개를 역분개한 분개 (없으면 None)"""
        async with self._reading() as db:
            row = await db.fetchone(
                f"SELECT {_ENTRY_COLUMNS} FROM ledger_entry WHERE reverses_entry_id = ?",
                (entry_id,),
            )
        return LedgerEntry.from_row(_row_to_dict(row)) if row else None
