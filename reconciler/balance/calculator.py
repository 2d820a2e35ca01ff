"""
Balance Calculator

분개에서 잔액을 파생한다. 잔액을 별도로 저장하지 않는다.

부호 규칙:
- BANK/CASH: 대변(입금) - 차변(출금)
- CUSTOMER/VENDOR: 차변(받을 돈 증가) - 대변(감소)
"""

import logging
from datetime import datetime
from decimal import Decimal

from core.constants import Money
from core.ledger.models import LedgerEntry, Statement, StatementLine
from core.ledger.store import LedgerStore
from core.types import AccountKind, Direction
from reconciler.accounts.registry import AccountRegistry

logger = logging.getLogger(__name__)


def signed_balance(kind: AccountKind, debit_total: Decimal, credit_total: Decimal) -> Decimal:
    """계정 종류별 부호 규칙 적용"""
    if kind.is_credit_party:
        return debit_total - credit_total
    return credit_total - debit_total


def entry_effect(kind: AccountKind, entry: LedgerEntry) -> Decimal:
    """분개 1건이 계정 잔액에 주는 영향"""
    if entry.direction == Direction.DEBIT:
        return signed_balance(kind, entry.amount, Money.ZERO)
    return signed_balance(kind, Money.ZERO, entry.amount)


class BalanceCalculator:
    """Balance Calculator

    계정별 잔액 캐시를 두고, Ledger 커밋 통지로 해당 계정만 무효화한다.
    세대(generation) 카운터로 쓰기와 경쟁한 조회 결과는 캐시하지 않는다.

    Args:
        store: Ledger 저장소
        registry: 계정 레지스트리 (계정 종류 조회)

    사용 예시:
    ```python
    calculator = BalanceCalculator(store, registry)
    store.subscribe(calculator.on_entries)

    balance = await calculator.balance_of("BANK-1")
    ```
    """

    def __init__(self, store: LedgerStore, registry: AccountRegistry):
        self.store = store
        self.registry = registry
        self._cache: dict[str, Decimal] = {}
        self._generation: dict[str, int] = {}
        # 계정 종류는 불변
        self._kinds: dict[str, AccountKind] = {}

    def on_entries(self, entries: list[LedgerEntry]) -> None:
        """Ledger 커밋 통지 (잔액 캐시 무효화)"""
        for account_id in {entry.account_id for entry in entries}:
            self.invalidate(account_id)

    def on_stale(self, account_ids: set[str]) -> None:
        """분개 재조회 실패 통지 (빈 집합이면 캐시 전체 무효화)"""
        for account_id in account_ids or set(self._cache) | set(self._generation):
            self.invalidate(account_id)

    def invalidate(self, account_id: str) -> None:
        self._generation[account_id] = self._generation.get(account_id, 0) + 1
        self._cache.pop(account_id, None)

    async def kind_of(self, account_id: str) -> AccountKind:
        """계정 종류 (UnknownAccount 전파)"""
        kind = self._kinds.get(account_id)
        if kind is None:
            account = await self.registry.get(account_id)
            kind = account.kind
            self._kinds[account_id] = kind
        return kind

    async def balance_of(self, account_id: str, fresh: bool = False) -> Decimal:
        """계정 잔액

        Args:
            account_id: 계정 ID
            fresh: True면 캐시를 건너뛰고 다시 계산

        Raises:
            UnknownAccount: 존재하지 않는 계정
        """
        kind = await self.kind_of(account_id)

        if not fresh:
            cached = self._cache.get(account_id)
            if cached is not None:
                return cached

        generation = self._generation.get(account_id, 0)
        debit_total, credit_total = await self.store.totals_for(account_id)
        balance = signed_balance(kind, debit_total, credit_total)

        if self._generation.get(account_id, 0) == generation:
            self._cache[account_id] = balance

        return balance

    async def total_for(self, kind: AccountKind) -> Decimal:
        """종류별 잔액 합계 (한 번의 조회로 일관된 스냅샷)"""
        totals = await self.store.totals_by_account(kind)
        return sum(
            (signed_balance(kind, debit, credit) for debit, credit in totals.values()),
            Money.ZERO,
        )

    async def balances_by_kind(self, kind: AccountKind) -> dict[str, Decimal]:
        """종류별 계정 잔액 (account_id → balance)"""
        totals = await self.store.totals_by_account(kind)
        return {
            account_id: signed_balance(kind, debit, credit)
            for account_id, (debit, credit) in totals.items()
        }

    async def statement(
        self,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Statement:
        """계정 원장 명세 (분개별 누적 잔액)

        Args:
            account_id: 계정 ID
            start: 시작 시각 (포함, 이전 분개는 기초 잔액으로 합산)
            end: 종료 시각 (미포함)

        Raises:
            UnknownAccount: 존재하지 않는 계정
        """
        kind = await self.kind_of(account_id)

        if start is not None:
            debit_total, credit_total = await self.store.totals_for(account_id, before=start)
            opening = signed_balance(kind, debit_total, credit_total)
        else:
            opening = Money.ZERO

        running = opening
        lines: list[StatementLine] = []
        async for entry in self.store.entries_for(account_id, start=start, end=end):
            running += entry_effect(kind, entry)
            lines.append(StatementLine(entry=entry, balance=running))

        return Statement(
            account_id=account_id,
            kind=kind,
            opening_balance=opening,
            closing_balance=running,
            lines=lines,
        )
