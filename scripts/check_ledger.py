#!/usr/bin/env python3
"""Ledger 무결성 검사 스크립트

사용법:
    python scripts/check_ledger.py
    python scripts/check_ledger.py --db data/ledger.db
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger.store import LedgerStore
from core.logging import setup_logging
from core.types import AccountKind
from core.utils.money import format_amount
from reconciler.integrity import IntegrityChecker

logger = logging.getLogger("scripts.check_ledger")


async def main(db_path: Path) -> int:
    """무결성 검사 실행

    Args:
        db_path: Ledger DB 경로

    Returns:
        종료 코드 (0: 통과, 1: 위반 발견)
    """
    if not db_path.exists():
        logger.error(f"DB 파일이 없습니다: {db_path}")
        return 1

    async with SQLiteAdapter(db_path, readonly=True) as db:
        report = await IntegrityChecker(db).run()

        store = LedgerStore(db)
        net_total = await store.ledger_net_total()
        totals = await store.totals_by_account()
        kinds = {
            row[0]: AccountKind(row[1])
            for row in await db.fetchall("SELECT account_id, kind FROM account")
        }

    print("=" * 60)
    print(f"DB Path: {db_path}")
    print(f"COMMITTED transfers: {report.checked_transfers}")
    print(f"Entries: {report.checked_entries}")
    print(f"Ledger net total: {format_amount(net_total)}")
    print("=" * 60)

    for account_id, (debit, credit) in totals.items():
        kind = kinds[account_id]
        print(
            f"  {account_id:16} | {kind.value:8} | "
            f"debit {format_amount(debit):>14} | credit {format_amount(credit):>14}"
        )

    if report.ok:
        print("\n무결성 검사 통과 ✓")
        return 0

    print(f"\n무결성 위반 {len(report.issues)}건:")
    for issue in report.issues:
        print(f"  - [{issue.check}] {issue.message} {issue.refs}")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ledger 무결성 검사")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Ledger DB 경로 (기본: settings.yaml의 db_path)",
    )
    args = parser.parse_args()

    settings = get_settings()
    setup_logging("check_ledger", level=settings.log_level)
    db_path = args.db if args.db is not None else settings.db_path

    sys.exit(asyncio.run(main(db_path)))
