"""
Transfer Repository

transfer 테이블 저장/조회.
"""

import logging
import uuid
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.models import Transfer
from core.types import TransferStatus
from core.utils.money import to_minor
from core.utils.timezone import to_db_ts

logger = logging.getLogger(__name__)


def new_transfer_id() -> str:
    """이체 ID 생성"""
    return f"tf-{uuid.uuid4().hex[:12]}"


class TransferRepository:
    """Transfer Repository

    COMMITTED 행은 분개 쌍과 같은 트랜잭션에서 insert 된다 (호출자가 트랜잭션 소유).
    REJECTED 행은 감사 기록용으로 별도 트랜잭션에 남긴다.

    Args:
        db: 쓰기 가능한 SQLiteAdapter
        reader: 읽기 전용 SQLiteAdapter (None이면 db 사용)
    """

    def __init__(self, db: SQLiteAdapter, reader: SQLiteAdapter | None = None):
        self.db = db
        self.reader = reader

    async def insert(self, tx: SQLiteAdapter, transfer: Transfer) -> None:
        """이체 행 INSERT (호출자 트랜잭션 안에서)"""
        await tx.execute(
            """
            INSERT INTO transfer (
                transfer_id, from_account_id, to_account_id, amount_minor,
                status, idempotency_key, note, requested_by,
                debit_entry_id, credit_entry_id, error_message, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transfer.transfer_id,
                transfer.from_account_id,
                transfer.to_account_id,
                to_minor(transfer.amount),
                transfer.status.value,
                transfer.idempotency_key,
                transfer.note,
                transfer.requested_by,
                transfer.debit_entry_id,
                transfer.credit_entry_id,
                transfer.error_message,
                to_db_ts(transfer.created_at),
            ),
        )

    async def record_rejected(self, transfer: Transfer) -> None:
        """REJECTED 이체 기록 (자체 트랜잭션)"""
        async with self.db.transaction() as tx:
            await self.insert(tx, transfer)

        logger.warning(
            f"Transfer rejected: {transfer.transfer_id}",
            extra={
                "from_account_id": transfer.from_account_id,
                "to_account_id": transfer.to_account_id,
                "amount": str(transfer.amount),
                "error_message": transfer.error_message,
            },
        )

    async def get(self, transfer_id: str) -> Transfer | None:
        """이체 조회

        Returns:
            Transfer 객체 또는 None
        """
        rows = await self._select(
            "SELECT * FROM transfer WHERE transfer_id = ?",
            (transfer_id,),
        )
        return Transfer.from_row(rows[0]) if rows else None

    async def find_committed_by_key(
        self,
        idempotency_key: str,
        conn: SQLiteAdapter | None = None,
    ) -> Transfer | None:
        """idempotency key로 COMMITTED 이체 조회

        Args:
            idempotency_key: 호출자 키
            conn: 쓰기 트랜잭션 안에서 재확인할 때 전달
        """
        rows = await self._select(
            """
            SELECT * FROM transfer
            WHERE idempotency_key = ? AND status = ?
            """,
            (idempotency_key, TransferStatus.COMMITTED.value),
            conn,
        )
        return Transfer.from_row(rows[0]) if rows else None

    async def history(
        self,
        account_id: str | None = None,
        status: TransferStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transfer]:
        """이체 목록 (최신순)

        Args:
            account_id: 출금/입금 계정 필터
            status: 상태 필터
            limit: 최대 개수
            offset: 오프셋
        """
        conditions: list[str] = []
        params: list[Any] = []

        if account_id is not None:
            conditions.append("(from_account_id = ? OR to_account_id = ?)")
            params.extend([account_id, account_id])

        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = await self._select(
            f"""
            SELECT * FROM transfer
            {where}
            ORDER BY created_at DESC, transfer_id DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params),
        )
        return [Transfer.from_row(row) for row in rows]

    async def _select(
        self,
        sql: str,
        params: tuple[Any, ...],
        conn: SQLiteAdapter | None = None,
    ) -> list[dict[str, Any]]:
        if conn is not None:
            return await _fetch_dicts(conn, sql, params)
        if self.reader is not None:
            return await _fetch_dicts(self.reader, sql, params)
        async with self.db.locked() as db:
            return await _fetch_dicts(db, sql, params)


async def _fetch_dicts(
    db: SQLiteAdapter,
    sql: str,
    params: tuple[Any, ...],
) -> list[dict[str, Any]]:
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    # row를 dict로 변환
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row)) for row in rows]
