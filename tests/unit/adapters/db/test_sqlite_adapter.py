"""
SQLite 어댑터 테스트

연결 생성, 트랜잭션 커밋/롤백, 읽기 전용 연결
"""

import sqlite3
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_wal_mode(self, tmp_path: Path) -> None:
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_foreign_keys_on(self, tmp_path: Path) -> None:
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("PRAGMA foreign_keys")
        row = await cursor.fetchone()
        assert row[0] == 1

        await conn.close()

    @pytest.mark.asyncio
    async def test_busy_timeout(self, tmp_path: Path) -> None:
        conn = await create_connection(tmp_path / "test.db", busy_timeout_ms=1234)

        cursor = await conn.execute("PRAGMA busy_timeout")
        row = await cursor.fetchone()
        assert row[0] == 1234

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()
        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        await adapter.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, name TEXT)")
        await adapter.commit()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")
        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        async with adapter.transaction() as tx:
            await tx.execute("INSERT INTO item (name) VALUES (?)", ("장부",))

        rows = await adapter.fetchall("SELECT name FROM item")
        assert rows == [("장부",)]

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """예외 시 전체 롤백"""
        with pytest.raises(ValueError):
            async with adapter.transaction() as tx:
                await tx.execute("INSERT INTO item (name) VALUES (?)", ("a",))
                await tx.execute("INSERT INTO item (name) VALUES (?)", ("b",))
                raise ValueError("fail")

        row = await adapter.fetchone("SELECT COUNT(*) FROM item")
        assert row[0] == 0
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_in_transaction(self, adapter: SQLiteAdapter) -> None:
        async with adapter.transaction() as tx:
            await tx.execute("INSERT INTO item (name) VALUES (?)", ("a",))
            assert tx.in_transaction is True

        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        assert await adapter.table_exists("item") is True
        assert await adapter.table_exists("missing") is False

    @pytest.mark.asyncio
    async def test_readonly_sees_committed(self, adapter: SQLiteAdapter, tmp_path: Path) -> None:
        """읽기 전용 연결은 커밋된 데이터만 본다"""
        async with SQLiteAdapter(tmp_path / "test.db", readonly=True) as reader:
            async with adapter.transaction() as tx:
                await tx.execute("INSERT INTO item (name) VALUES (?)", ("x",))

            row = await reader.fetchone("SELECT COUNT(*) FROM item")
            assert row[0] == 1

            with pytest.raises(sqlite3.OperationalError):
                await reader.execute("INSERT INTO item (name) VALUES ('y')")
