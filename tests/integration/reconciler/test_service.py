"""LedgerService 통합 테스트

단독 분개, 역분개, 관리자 경로
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.errors import (
    AccountBlocked,
    EntryNotFound,
    InvalidAmount,
    InvalidReversal,
    UnknownAccount,
)
from core.types import AccountKind, AccountStatus, Direction, EntryCategory, Principal, RiskTier
from reconciler.bootstrap import LedgerRuntime


class TestPostEntry:
    """단독 분개 테스트"""

    @pytest.mark.asyncio
    async def test_sale_on_credit(self, runtime: LedgerRuntime, principal: Principal) -> None:
        service = runtime.service

        entry = await service.post_entry(
            principal, "CUST-9", Direction.DEBIT, "92000.00", EntryCategory.CREDIT, note="외상"
        )

        assert entry.created_by == principal.label
        assert entry.category == "Credit"
        assert await service.get_balance(principal, "CUST-9") == Decimal("92000.00")
        assert (await service.get_credit_profile(principal, "CUST-9")).risk_tier == RiskTier.CRITICAL
        assert await service.can_supply(principal, "CUST-9") is False

    @pytest.mark.asyncio
    async def test_occurred_at_kept(self, runtime: LedgerRuntime, principal: Principal) -> None:
        ts = datetime(2026, 1, 15, 12, 30, tzinfo=timezone.utc)

        entry = await runtime.service.post_entry(
            principal, "BANK-1", Direction.CREDIT, "5", "Deposit", occurred_at=ts
        )

        assert entry.occurred_at == ts

    @pytest.mark.asyncio
    async def test_invalid_amount(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(InvalidAmount):
            await runtime.service.post_entry(
                principal, "BANK-1", Direction.CREDIT, "-50", "Deposit"
            )

    @pytest.mark.asyncio
    async def test_out_of_range_amount(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(InvalidAmount):
            await runtime.service.post_entry(
                principal, "BANK-1", Direction.CREDIT, "100000000000000000", "Sales"
            )

        assert await runtime.store.max_entry_id() == 0

    @pytest.mark.asyncio
    async def test_unknown_account(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(UnknownAccount):
            await runtime.service.post_entry(
                principal, "NOPE-1", Direction.CREDIT, "5", "Deposit"
            )

    @pytest.mark.asyncio
    async def test_blocked_rejects_debit(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        """BLOCKED 거래처에 새 외상은 기록할 수 없다"""
        await runtime.service.set_account_status(principal, "CUST-9", AccountStatus.BLOCKED)

        with pytest.raises(AccountBlocked):
            await runtime.service.post_entry(
                principal, "CUST-9", Direction.DEBIT, "10", EntryCategory.SALES
            )

        assert await runtime.store.max_entry_id() == 0

    @pytest.mark.asyncio
    async def test_blocked_accepts_credit(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        """BLOCKED 거래처의 상환(CREDIT)은 허용"""
        await runtime.service.post_entry(
            principal, "CUST-9", Direction.DEBIT, "100", EntryCategory.SALES
        )
        await runtime.service.set_account_status(principal, "CUST-9", AccountStatus.BLOCKED)

        await runtime.service.post_entry(
            principal, "CUST-9", Direction.CREDIT, "40", EntryCategory.PAYMENT
        )

        assert await runtime.service.get_balance(principal, "CUST-9") == Decimal("60.00")


class TestReverseEntry:
    """단독 분개 역분개 테스트"""

    @pytest.mark.asyncio
    async def test_reverse(self, runtime: LedgerRuntime, principal: Principal) -> None:
        original = await runtime.service.post_entry(
            principal, "CUST-9", Direction.DEBIT, "300", EntryCategory.SALES
        )

        reversal = await runtime.service.reverse_entry(principal, original.entry_id)

        assert reversal.direction == Direction.CREDIT
        assert reversal.amount == original.amount
        assert reversal.reverses_entry_id == original.entry_id
        assert reversal.category == EntryCategory.REVERSAL
        assert await runtime.service.get_balance(principal, "CUST-9") == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_reverse_once(self, runtime: LedgerRuntime, principal: Principal) -> None:
        original = await runtime.service.post_entry(
            principal, "BANK-1", Direction.CREDIT, "10", "Deposit"
        )
        await runtime.service.reverse_entry(principal, original.entry_id)

        with pytest.raises(InvalidReversal):
            await runtime.service.reverse_entry(principal, original.entry_id)

    @pytest.mark.asyncio
    async def test_reversal_not_reversible(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        original = await runtime.service.post_entry(
            principal, "BANK-1", Direction.CREDIT, "10", "Deposit"
        )
        reversal = await runtime.service.reverse_entry(principal, original.entry_id)

        with pytest.raises(InvalidReversal):
            await runtime.service.reverse_entry(principal, reversal.entry_id)

    @pytest.mark.asyncio
    async def test_transfer_entry_rejected(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        transfer = await runtime.service.execute_transfer(principal, "BANK-1", "CASH-1", "10")

        with pytest.raises(InvalidReversal):
            await runtime.service.reverse_entry(principal, transfer.debit_entry_id)

    @pytest.mark.asyncio
    async def test_unknown_entry(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(EntryNotFound):
            await runtime.service.reverse_entry(principal, 12345)


class TestQueries:
    """조회 연산 테스트"""

    @pytest.mark.asyncio
    async def test_list_entries_unknown_account(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        with pytest.raises(UnknownAccount):
            await runtime.service.list_entries(principal, "NOPE-1")

    @pytest.mark.asyncio
    async def test_list_entries_range(self, runtime: LedgerRuntime, principal: Principal) -> None:
        base = datetime(2026, 2, 1, tzinfo=timezone.utc)
        for day in range(3):
            await runtime.service.post_entry(
                principal,
                "CASH-1",
                Direction.CREDIT,
                "1",
                "Sales",
                occurred_at=base + timedelta(days=day),
            )

        entries = await runtime.service.list_entries(
            principal, "CASH-1", start=base + timedelta(days=1)
        )

        assert len(entries) == 2

    @pytest.mark.asyncio
    async def test_iter_entries_lazy(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.service.post_entry(principal, "CASH-1", Direction.CREDIT, "1", "Sales")

        ids = [e.entry_id async for e in runtime.service.iter_entries(principal, "CASH-1")]

        assert len(ids) == 1

    @pytest.mark.asyncio
    async def test_total(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.service.post_entry(principal, "BANK-1", Direction.CREDIT, "10", "Deposit")
        await runtime.service.post_entry(principal, "BANK-2", Direction.CREDIT, "5", "Deposit")

        assert await runtime.service.get_total(principal, AccountKind.BANK) == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_list_accounts(self, runtime: LedgerRuntime, principal: Principal) -> None:
        vendors = await runtime.service.list_accounts(principal, AccountKind.VENDOR)

        assert [a.account_id for a in vendors] == ["VEND-1"]
        assert len(await runtime.service.list_accounts(principal)) == 5


class TestAdmin:
    """관리자 연산 테스트"""

    @pytest.mark.asyncio
    async def test_register_account(self, runtime: LedgerRuntime, principal: Principal) -> None:
        account = await runtime.service.register_account(
            principal, "CUST-20", "신규 거래처", AccountKind.CUSTOMER, credit_limit="2500.50"
        )

        assert account.credit_limit == Decimal("2500.50")

    @pytest.mark.asyncio
    async def test_lowering_limit_refreshes_tier(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        await runtime.service.post_entry(
            principal, "CUST-9", Direction.DEBIT, "10000", EntryCategory.SALES
        )
        assert runtime.evaluator.last_tier("CUST-9") == RiskTier.LOW

        await runtime.service.set_credit_limit(principal, "CUST-9", "10000")

        assert runtime.evaluator.last_tier("CUST-9") == RiskTier.CRITICAL
        assert await runtime.service.can_supply(principal, "CUST-9") is False

    @pytest.mark.asyncio
    async def test_exposure_summary(self, runtime: LedgerRuntime, principal: Principal) -> None:
        summary = await runtime.service.get_exposure_summary(principal, AccountKind.CUSTOMER)

        assert [p.account_id for p in summary.profiles] == ["CUST-9"]
