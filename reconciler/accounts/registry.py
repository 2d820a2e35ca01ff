"""
Account Registry

계정 식별/메타데이터 조회 및 관리자 경로(상태, 신용 한도 변경).
계정은 물리 삭제하지 않고 BLOCKED로만 전환한다.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import DuplicateAccount, InvalidAmount, UnknownAccount
from core.ledger.models import Account
from core.types import AccountKind, AccountStatus
from core.utils.money import to_minor
from core.utils.timezone import now_utc, to_db_ts
from reconciler.locks import AccountLockManager

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = (
    "account_id, name, kind, credit_limit_minor, status, created_at, updated_at"
)
_ACCOUNT_KEYS = [c.strip() for c in _ACCOUNT_COLUMNS.split(",")]


class AccountRegistry:
    """Account Registry

    Args:
        db: 쓰기 가능한 SQLiteAdapter (관리자 경로)
        reader: 읽기 전용 SQLiteAdapter (조회, None이면 db 사용)
        locks: 계정별 락 관리자 (이체와 공유)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        reader: SQLiteAdapter | None = None,
        locks: AccountLockManager | None = None,
    ):
        self.db = db
        self.reader = reader
        self.locks = locks or AccountLockManager()

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get(self, account_id: str, conn: SQLiteAdapter | None = None) -> Account:
        """계정 조회

        Args:
            account_id: 계정 ID
            conn: 조회에 쓸 연결 (쓰기 트랜잭션 안에서 재확인할 때 전달)

        Raises:
            UnknownAccount: 존재하지 않는 계정
        """
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE account_id = ?",
            (account_id,),
            conn,
        )
        if row is None:
            raise UnknownAccount(
                f"존재하지 않는 계정입니다: {account_id}",
                account_id=account_id,
            )
        return Account.from_row(dict(zip(_ACCOUNT_KEYS, row)))

    async def exists(self, account_id: str) -> bool:
        row = await self._fetchone(
            "SELECT 1 FROM account WHERE account_id = ?", (account_id,)
        )
        return row is not None

    async def is_blocked(self, account_id: str) -> bool:
        """BLOCKED 여부

        Raises:
            UnknownAccount: 존재하지 않는 계정
        """
        account = await self.get(account_id)
        return account.is_blocked

    async def list_by_kind(self, kind: AccountKind) -> list[Account]:
        """종류별 계정 목록 (account_id 순)"""
        rows = await self._fetchall(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE kind = ? ORDER BY account_id",
            (kind.value,),
        )
        return [Account.from_row(dict(zip(_ACCOUNT_KEYS, row))) for row in rows]

    async def list_all(self) -> list[Account]:
        """전체 계정 목록 (account_id 순)"""
        rows = await self._fetchall(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account ORDER BY account_id"
        )
        return [Account.from_row(dict(zip(_ACCOUNT_KEYS, row))) for row in rows]

    async def _fetchone(
        self,
        sql: str,
        params: tuple[Any, ...] | None = None,
        conn: SQLiteAdapter | None = None,
    ) -> tuple[Any, ...] | None:
        if conn is not None:
            return await conn.fetchone(sql, params)
        if self.reader is not None:
            return await self.reader.fetchone(sql, params)
        async with self.db.locked() as db:
            return await db.fetchone(sql, params)

    async def _fetchall(
        self,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        if self.reader is not None:
            return await self.reader.fetchall(sql, params)
        async with self.db.locked() as db:
            return await db.fetchall(sql, params)

    # -------------------------------------------------------------------------
    # 온보딩 / 관리자 경로
    # -------------------------------------------------------------------------

    async def register(
        self,
        account_id: str,
        name: str,
        kind: AccountKind,
        credit_limit: Decimal | None = None,
        status: AccountStatus = AccountStatus.ACTIVE,
    ) -> Account:
        """계정 등록 (온보딩 협력자용)

        Raises:
            DuplicateAccount: 이미 존재하는 account_id
            InvalidAmount: 음수 신용 한도
        """
        _check_limit(account_id, credit_limit)

        async with self.db.transaction() as tx:
            existing = await tx.fetchone(
                "SELECT 1 FROM account WHERE account_id = ?", (account_id,)
            )
            if existing is not None:
                raise DuplicateAccount(
                    f"이미 존재하는 계정입니다: {account_id}",
                    account_id=account_id,
                )
            await self._insert(tx, account_id, name, kind, credit_limit, status)

        logger.info(
            f"Account registered: {account_id}",
            extra={"kind": kind.value, "status": status.value},
        )
        return await self.get(account_id)

    async def ensure_accounts(self, seeds: Any) -> int:
        """설정의 계정 목록을 없는 것만 등록

        Args:
            seeds: AccountSeed 반복자 (account_id, name, kind, credit_limit, status)

        Returns:
            새로 등록된 계정 수
        """
        created = 0
        async with self.db.transaction() as tx:
            for seed in seeds:
                _check_limit(seed.account_id, seed.credit_limit)
                existing = await tx.fetchone(
                    "SELECT 1 FROM account WHERE account_id = ?", (seed.account_id,)
                )
                if existing is not None:
                    continue
                await self._insert(
                    tx, seed.account_id, seed.name, seed.kind, seed.credit_limit, seed.status
                )
                created += 1

        if created:
            logger.info(f"Seeded {created} accounts from settings")
        return created

    async def set_status(self, account_id: str, status: AccountStatus) -> Account:
        """계정 상태 변경 (명시적 관리자 동작)

        이체와 같은 계정 락을 잡아 진행 중인 이체와 섞이지 않는다.

        Raises:
            UnknownAccount: 존재하지 않는 계정
            LockTimeout: 계정 락 획득 실패
        """
        async with self.locks.hold(account_id):
            async with self.db.transaction() as tx:
                before = await self.get(account_id, conn=tx)
                await tx.execute(
                    "UPDATE account SET status = ?, updated_at = ? WHERE account_id = ?",
                    (status.value, to_db_ts(now_utc()), account_id),
                )

        if before.status != status:
            logger.info(
                f"Account status changed: {account_id} {before.status.value} -> {status.value}",
                extra={"account_id": account_id, "status": status.value},
            )
        return await self.get(account_id)

    async def set_credit_limit(self, account_id: str, limit: Decimal | None) -> Account:
        """신용 한도 변경

        Raises:
            UnknownAccount: 존재하지 않는 계정
            InvalidAmount: 음수 한도
            LockTimeout: 계정 락 획득 실패
        """
        _check_limit(account_id, limit)

        async with self.locks.hold(account_id):
            async with self.db.transaction() as tx:
                await self.get(account_id, conn=tx)
                await tx.execute(
                    "UPDATE account SET credit_limit_minor = ?, updated_at = ? WHERE account_id = ?",
                    (
                        to_minor(limit) if limit is not None else None,
                        to_db_ts(now_utc()),
                        account_id,
                    ),
                )

        logger.info(
            f"Credit limit changed: {account_id}",
            extra={"account_id": account_id, "credit_limit": str(limit)},
        )
        return await self.get(account_id)

    async def _insert(
        self,
        tx: SQLiteAdapter,
        account_id: str,
        name: str,
        kind: AccountKind,
        credit_limit: Decimal | None,
        status: AccountStatus,
    ) -> None:
        now = to_db_ts(now_utc())
        await tx.execute(
            f"""
            INSERT INTO account ({_ACCOUNT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                account_id,
                name,
                kind.value,
                to_minor(credit_limit) if credit_limit is not None else None,
                status.value,
                now,
                now,
            ),
        )


def _check_limit(account_id: str, limit: Decimal | None) -> None:
    if limit is not None and limit < 0:
        raise InvalidAmount(
            f"신용 한도는 음수일 수 없습니다: {limit}",
            account_id=account_id,
            credit_limit=limit,
        )
