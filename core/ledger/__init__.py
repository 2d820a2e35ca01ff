"""
Ledger (append-only 분개 원장)

계정 잔액의 유일한 원천. 잔액은 저장하지 않고 분개에서 파생한다.

사용 예시:
```python
from core.ledger import LedgerStore, EntryDraft, init_ledger_schema

await init_ledger_schema(db)
store = LedgerStore(db, reader=reader)

entry_id = await store.append(EntryDraft(...))

async for entry in store.entries_for("CUST-1"):
    ...
```
"""

from core.ledger.models import (
    Account,
    CreditProfile,
    EntryDraft,
    LedgerEntry,
    Statement,
    StatementLine,
    Transfer,
)
from core.ledger.schema import init_ledger_schema
from core.ledger.store import EntrySequence, LedgerStore

__all__ = [
    # 저장소
    "LedgerStore",
    "EntrySequence",
    "init_ledger_schema",
    # 모델
    "Account",
    "EntryDraft",
    "LedgerEntry",
    "Transfer",
    "CreditProfile",
    "Statement",
    "StatementLine",
]
