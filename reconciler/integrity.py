"""
Ledger 무결성 검사

저장된 원장이 불변식을 지키는지 사후 감사한다.

검사 항목:
1. COMMITTED 이체 ↔ 분개 쌍 (존재, 방향, 금액, 계정, 상호 참조)
2. 고아 이체 분개 (COMMITTED 이체에 속하지 않는 transfer_id)
3. counterparty 상호 참조
4. 이체 분개 순합계 = 0 (보존 법칙)
5. 역분개 (같은 계정, 반대 방향, 같은 금액)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.utils.money import format_amount, from_minor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrityIssue:
    """무결성 위반 1건"""

    check: str
    message: str
    refs: dict[str, Any] = field(default_factory=dict)


@dataclass
class IntegrityReport:
    """무결성 검사 결과"""

    issues: list[IntegrityIssue] = field(default_factory=list)
    checked_transfers: int = 0
    checked_entries: int = 0

    @property
    def ok(self) -> bool:
        return not self.issues

    def add(self, check: str, message: str, **refs: Any) -> None:
        self.issues.append(IntegrityIssue(check=check, message=message, refs=refs))


class IntegrityChecker:
    """Ledger 무결성 검사기

    Args:
        db: 조회용 SQLiteAdapter (읽기 전용 권장)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def run(self) -> IntegrityReport:
        """전체 검사 실행"""
        report = IntegrityReport()

        await self._check_transfer_pairs(report)
        await self._check_orphan_transfer_entries(report)
        await self._check_counterparty_links(report)
        await self._check_transfer_conservation(report)
        await self._check_reversals(report)

        row = await self.db.fetchone("SELECT COUNT(*) FROM ledger_entry")
        report.checked_entries = int(row[0]) if row else 0

        if report.ok:
            logger.info(
                "Ledger 무결성 검사 통과",
                extra={
                    "transfers": report.checked_transfers,
                    "entries": report.checked_entries,
                },
            )
        else:
            logger.error(
                f"Ledger 무결성 위반 {len(report.issues)}건",
                extra={"checks": sorted({i.check for i in report.issues})},
            )
        return report

    async def _check_transfer_pairs(self, report: IntegrityReport) -> None:
        rows = await self.db.fetchall(
            """
            SELECT
                t.transfer_id, t.from_account_id, t.to_account_id, t.amount_minor,
                d.entry_id, d.account_id, d.direction, d.amount_minor, d.counterparty_entry_id,
                c.entry_id, c.account_id, c.direction, c.amount_minor, c.counterparty_entry_id
            FROM transfer t
            LEFT JOIN ledger_entry d ON d.entry_id = t.debit_entry_id
            LEFT JOIN ledger_entry c ON c.entry_id = t.credit_entry_id
            WHERE t.status = 'COMMITTED'
            """
        )
        report.checked_transfers = len(rows)

        for row in rows:
            (transfer_id, from_id, to_id, amount,
             d_id, d_account, d_dir, d_amount, d_cp,
             c_id, c_account, c_dir, c_amount, c_cp) = row

            if d_id is None or c_id is None:
                report.add("transfer_pair", "이체 분개 누락", transfer_id=transfer_id)
                continue

            if d_account != from_id or d_dir != "DEBIT" or d_amount != amount:
                report.add(
                    "transfer_pair",
                    "출금 분개가 이체와 일치하지 않음",
                    transfer_id=transfer_id,
                    entry_id=d_id,
                )
            if c_account != to_id or c_dir != "CREDIT" or c_amount != amount:
                report.add(
                    "transfer_pair",
                    "입금 분개가 이체와 일치하지 않음",
                    transfer_id=transfer_id,
                    entry_id=c_id,
                )
            if d_cp != c_id or c_cp != d_id:
                report.add(
                    "transfer_pair",
                    "이체 분개 상호 참조 불일치",
                    transfer_id=transfer_id,
                    debit_entry_id=d_id,
                    credit_entry_id=c_id,
                )

    async def _check_orphan_transfer_entries(self, report: IntegrityReport) -> None:
        rows = await self.db.fetchall(
            """
            SELECT e.entry_id, e.transfer_id
            FROM ledger_entry e
            LEFT JOIN transfer t
                ON t.transfer_id = e.transfer_id AND t.status = 'COMMITTED'
            WHERE e.transfer_id IS NOT NULL AND t.transfer_id IS NULL
            """
        )
        for entry_id, transfer_id in rows:
            report.add(
                "orphan_entry",
                "COMMITTED 이체에 속하지 않는 이체 분개",
                entry_id=entry_id,
                transfer_id=transfer_id,
            )

    async def _check_counterparty_links(self, report: IntegrityReport) -> None:
        rows = await self.db.fetchall(
            """
            SELECT e.entry_id, e.counterparty_entry_id, p.counterparty_entry_id
            FROM ledger_entry e
            LEFT JOIN ledger_entry p ON p.entry_id = e.counterparty_entry_id
            WHERE e.counterparty_entry_id IS NOT NULL
              AND (p.entry_id IS NULL OR p.counterparty_entry_id IS NOT e.entry_id)
            """
        )
        for entry_id, counterparty_id, back_ref in rows:
            report.add(
                "counterparty",
                "counterparty 상호 참조 불일치",
                entry_id=entry_id,
                counterparty_entry_id=counterparty_id,
                back_ref=back_ref,
            )

    async def _check_transfer_conservation(self, report: IntegrityReport) -> None:
        row = await self.db.fetchone(
            """
            SELECT COALESCE(SUM(
                CASE WHEN direction = 'CREDIT' THEN amount_minor ELSE -amount_minor END
            ), 0)
            FROM ledger_entry
            WHERE transfer_id IS NOT NULL
            """
        )
        net = int(row[0]) if row else 0
        if net != 0:
            report.add(
                "conservation",
                f"이체 분개 순합계가 0이 아님: {format_amount(from_minor(net))}",
                net=format_amount(from_minor(net)),
            )

    async def _check_reversals(self, report: IntegrityReport) -> None:
        rows = await self.db.fetchall(
            """
            SELECT r.entry_id, r.reverses_entry_id
            FROM ledger_entry r
            JOIN ledger_entry o ON o.entry_id = r.reverses_entry_id
            WHERE r.account_id <> o.account_id
               OR r.direction = o.direction
               OR r.amount_minor <> o.amount_minor
            """
        )
        for entry_id, original_id in rows:
            report.add(
                "reversal",
                "역분개가 원 분개와 대응하지 않음",
                entry_id=entry_id,
                reverses_entry_id=original_id,
            )
