"""
Ledger 스키마 초기화

Web/스크립트 시작 시 자동으로 Ledger 테이블, 인덱스, 트리거 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스 + 트리거)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 쓰기 가능한 SQLiteAdapter 인스턴스
    """
    async with db.transaction():
        await _create_tables(db)
        await _create_indexes(db)
        await _create_triggers(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_tables(db: "SQLiteAdapter") -> None:
    # account 테이블 (물리 삭제 없음, BLOCKED로만 전환)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            account_id         TEXT PRIMARY KEY,
            name               TEXT NOT NULL,
            kind               TEXT NOT NULL
                               CHECK (kind IN ('BANK', 'CASH', 'CUSTOMER', 'VENDOR')),
            credit_limit_minor INTEGER CHECK (credit_limit_minor IS NULL OR credit_limit_minor >= 0),
            status             TEXT NOT NULL DEFAULT 'ACTIVE'
                               CHECK (status IN ('ACTIVE', 'BLOCKED')),
            created_at         TEXT NOT NULL,
            updated_at         TEXT NOT NULL
        )
    """)

    # ledger_entry 테이블 (append-only)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_entry (
            entry_id              INTEGER PRIMARY KEY AUTOINCREMENT,
            account_id            TEXT NOT NULL,
            occurred_at           TEXT NOT NULL,
            direction             TEXT NOT NULL CHECK (direction IN ('DEBIT', 'CREDIT')),
            amount_minor          INTEGER NOT NULL CHECK (amount_minor > 0),
            category              TEXT NOT NULL,
            counterparty_entry_id INTEGER,
            transfer_id           TEXT,
            reverses_entry_id     INTEGER,
            note                  TEXT,
            created_by            TEXT,
            created_at            TEXT NOT NULL,
            FOREIGN KEY (account_id) REFERENCES account(account_id),
            FOREIGN KEY (counterparty_entry_id) REFERENCES ledger_entry(entry_id),
            FOREIGN KEY (reverses_entry_id) REFERENCES ledger_entry(entry_id)
        )
    """)

    # transfer 테이블 (두 분개 ID 연결)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transfer (
            transfer_id      TEXT PRIMARY KEY,
            from_account_id  TEXT NOT NULL,
            to_account_id    TEXT NOT NULL,
            amount_minor     INTEGER NOT NULL CHECK (amount_minor > 0),
            status           TEXT NOT NULL CHECK (status IN ('COMMITTED', 'REJECTED')),
            idempotency_key  TEXT,
            note             TEXT,
            requested_by     TEXT,
            debit_entry_id   INTEGER,
            credit_entry_id  INTEGER,
            error_message    TEXT,
            created_at       TEXT NOT NULL,
            CHECK (from_account_id <> to_account_id),
            FOREIGN KEY (from_account_id) REFERENCES account(account_id),
            FOREIGN KEY (to_account_id) REFERENCES account(account_id),
            FOREIGN KEY (debit_entry_id) REFERENCES ledger_entry(entry_id),
            FOREIGN KEY (credit_entry_id) REFERENCES ledger_entry(entry_id)
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_ledger_entry_account_ts
        ON ledger_entry(account_id, occurred_at, entry_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_ledger_entry_transfer
        ON ledger_entry(transfer_id)
    """)

    # 한 분개는 한 번만 역분개 가능
    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS ux_ledger_entry_reverses
        ON ledger_entry(reverses_entry_id)
        WHERE reverses_entry_id IS NOT NULL
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_account_kind
        ON account(kind)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_transfer_created_at
        ON transfer(created_at)
    """)

    # COMMITTED 이체만 idempotency key 유일 (REJECTED 후 같은 키로 재시도 가능)
    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS ux_transfer_idempotency_committed
        ON transfer(idempotency_key)
        WHERE status = 'COMMITTED' AND idempotency_key IS NOT NULL
    """)


async def _create_triggers(db: "SQLiteAdapter") -> None:
    # 분개 삭제 금지
    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_ledger_entry_no_delete
        BEFORE DELETE ON ledger_entry
        BEGIN
            SELECT RAISE(ABORT, 'ledger_entry is append-only');
        END
    """)

    # 분개 수정 금지 (이체 쌍 연결을 위한 counterparty 최초 1회 설정만 허용)
    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_ledger_entry_no_update
        BEFORE UPDATE ON ledger_entry
        WHEN OLD.counterparty_entry_id IS NOT NULL
          OR NEW.account_id IS NOT OLD.account_id
          OR NEW.occurred_at IS NOT OLD.occurred_at
          OR NEW.direction IS NOT OLD.direction
          OR NEW.amount_minor IS NOT OLD.amount_minor
          OR NEW.category IS NOT OLD.category
          OR NEW.transfer_id IS NOT OLD.transfer_id
          OR NEW.reverses_entry_id IS NOT OLD.reverses_entry_id
          OR NEW.note IS NOT OLD.note
          OR NEW.created_by IS NOT OLD.created_by
          OR NEW.created_at IS NOT OLD.created_at
        BEGIN
            SELECT RAISE(ABORT, 'ledger_entry is append-only');
        END
    """)
