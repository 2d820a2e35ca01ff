from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection

__all__ = ["SQLiteAdapter", "create_connection"]
