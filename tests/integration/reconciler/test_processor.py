"""TransferProcessor 통합 테스트"""

import sqlite3
from decimal import Decimal

import pytest

from core.errors import (
    AccountBlocked,
    DuplicateTransfer,
    IdenticalAccounts,
    InsufficientFunds,
    InvalidAmount,
    InvalidIdempotencyKey,
    InvalidReversal,
    StorageError,
    TransferNotFound,
    UnknownAccount,
)
from core.ledger.models import EntryDraft
from core.types import AccountStatus, Direction, EntryCategory, Principal, TransferStatus
from core.utils.timezone import now_utc
from reconciler.bootstrap import LedgerRuntime


async def _fund(runtime: LedgerRuntime, account_id: str, direction: Direction, amount: str) -> None:
    await runtime.store.append(
        EntryDraft(
            account_id=account_id,
            direction=direction,
            amount=Decimal(amount),
            category=EntryCategory.SALES,
            occurred_at=now_utc(),
        )
    )


async def _bank_example(runtime: LedgerRuntime) -> None:
    """BANK-1: Credit 10000, Debit 2000 → 8000"""
    await _fund(runtime, "BANK-1", Direction.CREDIT, "10000")
    await _fund(runtime, "BANK-1", Direction.DEBIT, "2000")


class TestExecute:
    """이체 실행 테스트"""

    @pytest.mark.asyncio
    async def test_moves_balance(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await _bank_example(runtime)
        cash_before = await runtime.calculator.balance_of("CASH-1")

        transfer = await runtime.processor.execute(principal, "BANK-1", "CASH-1", "3000")

        assert transfer.status == TransferStatus.COMMITTED
        assert transfer.amount == Decimal("3000.00")
        assert transfer.requested_by == principal.label
        assert await runtime.calculator.balance_of("BANK-1") == Decimal("5000.00")
        assert await runtime.calculator.balance_of("CASH-1") == cash_before + Decimal("3000")

    @pytest.mark.asyncio
    async def test_entry_pair_linked(self, runtime: LedgerRuntime, principal: Principal) -> None:
        transfer = await runtime.processor.execute(principal, "BANK-1", "CASH-1", "10.00")

        debit = await runtime.store.by_id(transfer.debit_entry_id)
        credit = await runtime.store.by_id(transfer.credit_entry_id)

        assert debit.account_id == "BANK-1"
        assert debit.direction == Direction.DEBIT
        assert credit.account_id == "CASH-1"
        assert credit.direction == Direction.CREDIT
        assert debit.amount == credit.amount == Decimal("10.00")
        assert debit.counterparty_entry_id == credit.entry_id
        assert credit.counterparty_entry_id == debit.entry_id
        assert debit.transfer_id == credit.transfer_id == transfer.transfer_id
        assert debit.category == EntryCategory.TRANSFER

    @pytest.mark.asyncio
    async def test_persisted(self, runtime: LedgerRuntime, principal: Principal) -> None:
        transfer = await runtime.processor.execute(
            principal, "BANK-1", "CASH-1", "1", note="시재 보충"
        )

        stored = await runtime.processor.get(transfer.transfer_id)
        assert stored == transfer

    @pytest.mark.asyncio
    async def test_conservation(self, runtime: LedgerRuntime, principal: Principal) -> None:
        """이체는 원장 전체 순포지션을 바꾸지 않는다"""
        await _bank_example(runtime)
        before = await runtime.store.ledger_net_total()

        await runtime.processor.execute(principal, "BANK-1", "CASH-1", "3000")
        await runtime.processor.execute(principal, "CASH-1", "CUST-9", "120.50")
        await runtime.processor.execute(principal, "VEND-1", "BANK-2", "75")

        assert await runtime.store.ledger_net_total() == before

    @pytest.mark.asyncio
    async def test_overdraft_allowed_by_default(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        await runtime.processor.execute(principal, "CASH-1", "BANK-1", "50")

        assert await runtime.calculator.balance_of("CASH-1") == Decimal("-50.00")


class TestValidation:
    """변경 전 거부 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["-50", "0", "1.005", "abc"])
    async def test_invalid_amount(
        self, runtime: LedgerRuntime, principal: Principal, amount: str
    ) -> None:
        await _bank_example(runtime)

        with pytest.raises(InvalidAmount):
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", amount)

        assert await runtime.calculator.balance_of("BANK-1") == Decimal("8000.00")
        assert await runtime.calculator.balance_of("CASH-1") == Decimal("0.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["100000000000000000", "1E+27"])
    async def test_out_of_range_amount(
        self, runtime: LedgerRuntime, principal: Principal, amount: str
    ) -> None:
        """저장 범위를 넘는 금액은 StorageError가 아닌 InvalidAmount, 이체 행도 남지 않는다"""
        with pytest.raises(InvalidAmount):
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", amount)

        assert await runtime.store.max_entry_id() == 0
        assert await runtime.processor.history() == []

    @pytest.mark.asyncio
    async def test_float_amount(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(InvalidAmount):
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", 10.5)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_identical_accounts(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(IdenticalAccounts):
            await runtime.processor.execute(principal, "BANK-1", "BANK-1", "10")

    @pytest.mark.asyncio
    async def test_unknown_account(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(UnknownAccount):
            await runtime.processor.execute(principal, "BANK-1", "NOPE-1", "10")

        assert await runtime.store.max_entry_id() == 0

    @pytest.mark.asyncio
    async def test_invalid_idempotency_key(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        with pytest.raises(InvalidIdempotencyKey):
            await runtime.processor.execute(
                principal, "BANK-1", "CASH-1", "10", idempotency_key="bad key!"
            )

    @pytest.mark.asyncio
    async def test_blocked_source(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.registry.set_status("CUST-9", AccountStatus.BLOCKED)

        with pytest.raises(AccountBlocked):
            await runtime.processor.execute(principal, "CUST-9", "BANK-1", "10")

        assert await runtime.store.max_entry_id() == 0

    @pytest.mark.asyncio
    async def test_blocked_target(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.registry.set_status("CASH-1", AccountStatus.BLOCKED)

        with pytest.raises(AccountBlocked) as exc_info:
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", "10")

        assert exc_info.value.details["account_id"] == "CASH-1"

    @pytest.mark.asyncio
    async def test_insufficient_funds_when_overdraft_disabled(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        runtime.processor.allow_overdraft = False
        await _bank_example(runtime)

        with pytest.raises(InsufficientFunds):
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", "8000.01")

        transfer = await runtime.processor.execute(principal, "BANK-1", "CASH-1", "8000")
        assert transfer.is_committed
        assert await runtime.calculator.balance_of("BANK-1") == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_overdraft_check_skips_counterparties(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        """CUSTOMER/VENDOR 출금에는 잔액 검사를 하지 않는다"""
        runtime.processor.allow_overdraft = False

        transfer = await runtime.processor.execute(principal, "VEND-1", "BANK-1", "500")

        assert transfer.is_committed


class TestIdempotency:
    """idempotency key 테스트"""

    @pytest.mark.asyncio
    async def test_duplicate_key(self, runtime: LedgerRuntime, principal: Principal) -> None:
        first = await runtime.processor.execute(
            principal, "BANK-1", "CASH-1", "100", idempotency_key="tf-2026-0001"
        )

        with pytest.raises(DuplicateTransfer) as exc_info:
            await runtime.processor.execute(
                principal, "BANK-1", "CASH-1", "100", idempotency_key=" tf-2026-0001 "
            )

        assert exc_info.value.transfer.transfer_id == first.transfer_id
        assert len(await runtime.store.entries_for("BANK-1").to_list()) == 1
        assert await runtime.calculator.balance_of("CASH-1") == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_no_key_no_dedup(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.processor.execute(principal, "BANK-1", "CASH-1", "100")
        await runtime.processor.execute(principal, "BANK-1", "CASH-1", "100")

        assert await runtime.calculator.balance_of("CASH-1") == Decimal("200.00")


class TestAtomicity:
    """저장 실패 시 전체 롤백"""

    @pytest.fixture
    def failing_second_insert(self, runtime: LedgerRuntime, monkeypatch: pytest.MonkeyPatch):
        """두 번째 분개 INSERT에서 저장 오류"""
        original = runtime.store._insert_entry
        calls = {"count": 0}

        async def flaky(draft: EntryDraft, counterparty_entry_id: int | None = None) -> int:
            calls["count"] += 1
            if calls["count"] == 2:
                raise sqlite3.OperationalError("disk I/O error")
            return await original(draft, counterparty_entry_id)

        monkeypatch.setattr(runtime.store, "_insert_entry", flaky)
        return calls

    @pytest.mark.asyncio
    async def test_rolls_back_both_entries(
        self, runtime: LedgerRuntime, principal: Principal, failing_second_insert
    ) -> None:
        with pytest.raises(StorageError) as exc_info:
            await runtime.processor.execute(
                principal, "BANK-1", "CASH-1", "3000", idempotency_key="tf-retry-1"
            )

        assert failing_second_insert["count"] == 2
        assert await runtime.store.max_entry_id() == 0
        assert await runtime.calculator.balance_of("BANK-1") == Decimal("0.00")
        assert await runtime.calculator.balance_of("CASH-1") == Decimal("0.00")

        transfer_id = exc_info.value.details["transfer_id"]
        rejected = await runtime.processor.get(transfer_id)
        assert rejected.status == TransferStatus.REJECTED
        assert rejected.debit_entry_id is None
        assert "disk I/O error" in rejected.error_message
        assert await runtime.store.entries_for_transfer(transfer_id) == []

    @pytest.mark.asyncio
    async def test_retry_after_rejection(
        self, runtime: LedgerRuntime, principal: Principal, failing_second_insert
    ) -> None:
        """REJECTED 이후 같은 키로 재시도 가능"""
        with pytest.raises(StorageError):
            await runtime.processor.execute(
                principal, "BANK-1", "CASH-1", "3000", idempotency_key="tf-retry-1"
            )

        transfer = await runtime.processor.execute(
            principal, "BANK-1", "CASH-1", "3000", idempotency_key="tf-retry-1"
        )

        assert transfer.is_committed
        assert await runtime.calculator.balance_of("CASH-1") == Decimal("3000.00")

        rejected = await runtime.processor.history(status=TransferStatus.REJECTED)
        assert len(rejected) == 1


class TestReverse:
    """역이체 테스트"""

    @pytest.mark.asyncio
    async def test_reverse_restores_balances(
        self, runtime: LedgerRuntime, principal: Principal
    ) -> None:
        await _bank_example(runtime)
        original = await runtime.processor.execute(principal, "BANK-1", "CASH-1", "3000")

        reversal = await runtime.processor.reverse(principal, original.transfer_id)

        assert reversal.from_account_id == "CASH-1"
        assert reversal.to_account_id == "BANK-1"
        assert reversal.amount == original.amount
        assert reversal.idempotency_key == f"reversal:{original.transfer_id}"
        assert await runtime.calculator.balance_of("BANK-1") == Decimal("8000.00")
        assert await runtime.calculator.balance_of("CASH-1") == Decimal("0.00")

        entry = await runtime.store.by_id(reversal.debit_entry_id)
        assert entry.category == EntryCategory.REVERSAL

    @pytest.mark.asyncio
    async def test_reverse_once(self, runtime: LedgerRuntime, principal: Principal) -> None:
        original = await runtime.processor.execute(principal, "BANK-1", "CASH-1", "10")
        await runtime.processor.reverse(principal, original.transfer_id)

        with pytest.raises(DuplicateTransfer):
            await runtime.processor.reverse(principal, original.transfer_id)

    @pytest.mark.asyncio
    async def test_reverse_unknown(self, runtime: LedgerRuntime, principal: Principal) -> None:
        with pytest.raises(TransferNotFound):
            await runtime.processor.reverse(principal, "tf-000000000000")

    @pytest.mark.asyncio
    async def test_reverse_rejected(
        self, runtime: LedgerRuntime, principal: Principal, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def broken(draft: EntryDraft, counterparty_entry_id: int | None = None) -> int:
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(runtime.store, "_insert_entry", broken)
        with pytest.raises(StorageError) as exc_info:
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", "10")
        monkeypatch.undo()

        with pytest.raises(InvalidReversal):
            await runtime.processor.reverse(principal, exc_info.value.details["transfer_id"])


class TestHistory:
    """이체 목록 테스트"""

    @pytest.mark.asyncio
    async def test_filter_by_account(self, runtime: LedgerRuntime, principal: Principal) -> None:
        await runtime.processor.execute(principal, "BANK-1", "CASH-1", "1")
        await runtime.processor.execute(principal, "BANK-2", "CUST-9", "2")
        await runtime.processor.execute(principal, "CASH-1", "BANK-2", "3")

        cash = await runtime.processor.history(account_id="CASH-1")

        assert {t.amount for t in cash} == {Decimal("1.00"), Decimal("3.00")}

    @pytest.mark.asyncio
    async def test_limit_offset(self, runtime: LedgerRuntime, principal: Principal) -> None:
        for i in range(5):
            await runtime.processor.execute(principal, "BANK-1", "CASH-1", str(i + 1))

        page = await runtime.processor.history(limit=2, offset=1)

        assert len(page) == 2
