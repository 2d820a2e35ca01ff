"""
Ledger Service

외부(UI/리포트/Web)가 호출하는 연산 모음.
모든 연산은 호출 주체(Principal)를 첫 인자로 명시적으로 받는다.
"""

import logging
import sqlite3
from datetime import datetime
from decimal import Decimal

from core.errors import AccountBlocked, InvalidReversal, LedgerError, StorageError
from core.ledger.models import (
    Account,
    CreditProfile,
    EntryDraft,
    LedgerEntry,
    Statement,
    Transfer,
)
from core.ledger.store import EntrySequence, LedgerStore
from core.types import AccountKind, AccountStatus, Direction, EntryCategory, Principal, TransferStatus
from core.utils.money import parse_amount, parse_positive_amount
from core.utils.timezone import ensure_utc, now_utc
from reconciler.accounts.registry import AccountRegistry
from reconciler.balance.calculator import BalanceCalculator
from reconciler.locks import AccountLockManager
from reconciler.risk.evaluator import CreditRiskEvaluator, ExposureSummary
from reconciler.transfer.processor import TransferProcessor

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 서비스 (외부 연산 파사드)

    Args:
        store: Ledger 저장소
        registry: 계정 레지스트리
        calculator: 잔액 계산기
        processor: 이체 처리기
        evaluator: 신용 위험 평가기
        locks: 계정별 락 관리자
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AccountRegistry,
        calculator: BalanceCalculator,
        processor: TransferProcessor,
        evaluator: CreditRiskEvaluator,
        locks: AccountLockManager,
    ):
        self.store = store
        self.registry = registry
        self.calculator = calculator
        self.processor = processor
        self.evaluator = evaluator
        self.locks = locks

    # -------------------------------------------------------------------------
    # 계정
    # -------------------------------------------------------------------------

    async def get_account(self, principal: Principal, account_id: str) -> Account:
        return await self.registry.get(account_id)

    async def list_accounts(
        self,
        principal: Principal,
        kind: AccountKind | None = None,
    ) -> list[Account]:
        if kind is None:
            return await self.registry.list_all()
        return await self.registry.list_by_kind(kind)

    async def register_account(
        self,
        principal: Principal,
        account_id: str,
        name: str,
        kind: AccountKind,
        credit_limit: Decimal | str | None = None,
    ) -> Account:
        """계정 등록 (온보딩 협력자용)"""
        limit = parse_amount(credit_limit) if credit_limit is not None else None
        account = await self.registry.register(account_id, name, kind, credit_limit=limit)
        logger.info(
            f"Account registered by {principal.label}: {account_id}",
            extra={"actor": principal.label},
        )
        return account

    async def set_account_status(
        self,
        principal: Principal,
        account_id: str,
        status: AccountStatus,
    ) -> Account:
        """계정 상태 변경 (관리자 동작, 자동 변경 없음)"""
        account = await self.registry.set_status(account_id, status)
        logger.info(
            f"Account status set by {principal.label}: {account_id} -> {status.value}",
            extra={"actor": principal.label, "account_id": account_id},
        )
        return account

    async def set_credit_limit(
        self,
        principal: Principal,
        account_id: str,
        limit: Decimal | str | None,
    ) -> Account:
        """신용 한도 변경 후 등급 재계산"""
        parsed = parse_amount(limit) if limit is not None else None
        account = await self.registry.set_credit_limit(account_id, parsed)
        logger.info(
            f"Credit limit set by {principal.label}: {account_id}",
            extra={"actor": principal.label, "account_id": account_id},
        )
        if account.kind.is_credit_party:
            await self.evaluator.refresh(account_id)
        return account

    # -------------------------------------------------------------------------
    # 잔액 / 분개 조회
    # -------------------------------------------------------------------------

    async def get_balance(self, principal: Principal, account_id: str) -> Decimal:
        return await self.calculator.balance_of(account_id)

    async def get_total(self, principal: Principal, kind: AccountKind) -> Decimal:
        return await self.calculator.total_for(kind)

    async def list_entries(
        self,
        principal: Principal,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[LedgerEntry]:
        """계정 분개 목록 (occurred_at, entry_id 순)

        Raises:
            UnknownAccount: 존재하지 않는 계정
        """
        await self.registry.get(account_id)
        return await self.iter_entries(principal, account_id, start, end).to_list()

    def iter_entries(
        self,
        principal: Principal,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> EntrySequence:
        """계정 분개 지연 시퀀스 (대량 내보내기용)"""
        return self.store.entries_for(account_id, start=start, end=end)

    async def get_entry(self, principal: Principal, entry_id: int) -> LedgerEntry:
        return await self.store.by_id(entry_id)

    async def get_statement(
        self,
        principal: Principal,
        account_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Statement:
        return await self.calculator.statement(account_id, start=start, end=end)

    # -------------------------------------------------------------------------
    # 신용 위험
    # -------------------------------------------------------------------------

    async def get_credit_profile(self, principal: Principal, account_id: str) -> CreditProfile:
        return await self.evaluator.profile_of(account_id)

    async def can_supply(self, principal: Principal, account_id: str) -> bool:
        return await self.evaluator.can_supply(account_id)

    async def get_exposure_summary(
        self,
        principal: Principal,
        kind: AccountKind | None = None,
    ) -> ExposureSummary:
        return await self.evaluator.exposure_summary(kind)

    # -------------------------------------------------------------------------
    # 단독 분개
    # -------------------------------------------------------------------------

    async def post_entry(
        self,
        principal: Principal,
        account_id: str,
        direction: Direction,
        amount: Decimal | str | int,
        category: str,
        note: str | None = None,
        occurred_at: datetime | None = None,
        timeout: float | None = None,
    ) -> LedgerEntry:
        """단독 분개 기록 (판매/구매/환불 등 이체가 아닌 거래)

        BLOCKED 계정에는 DEBIT을 기록할 수 없다 (CREDIT은 허용).

        Raises:
            InvalidAmount, UnknownAccount, AccountBlocked, LockTimeout, StorageError
        """
        parsed = parse_positive_amount(amount)
        await self.registry.get(account_id)

        draft = EntryDraft(
            account_id=account_id,
            direction=direction,
            amount=parsed,
            category=category,
            occurred_at=ensure_utc(occurred_at) if occurred_at else now_utc(),
            note=note,
            created_by=principal.label,
        )

        async with self.locks.hold(account_id, timeout=timeout):
            await self._check_debit_allowed(account_id, direction)
            entry_id = await self._append(draft)

        entry = await self.store.by_id(entry_id)
        logger.info(
            f"Entry posted: {entry_id}",
            extra={
                "account_id": account_id,
                "direction": direction.value,
                "amount": str(parsed),
                "category": category,
                "actor": principal.label,
            },
        )
        return entry

    async def reverse_entry(
        self,
        principal: Principal,
        entry_id: int,
        note: str | None = None,
        timeout: float | None = None,
    ) -> LedgerEntry:
        """단독 분개 역분개 (반대 방향, 같은 금액)

        이체 분개는 reverse_transfer로만 정정한다.

        Raises:
            EntryNotFound: 없는 분개
            InvalidReversal: 이체 분개, 역분개 분개, 이미 역분개된 분개
        """
        original = await self.store.by_id(entry_id)

        if original.transfer_id is not None:
            raise InvalidReversal(
                f"이체 분개는 이체 역이체로 정정해야 합니다: {entry_id}",
                entry_id=entry_id,
                transfer_id=original.transfer_id,
            )
        if original.reverses_entry_id is not None:
            raise InvalidReversal(
                f"역분개 분개는 다시 역분개할 수 없습니다: {entry_id}",
                entry_id=entry_id,
            )

        direction = original.direction.opposite()
        draft = EntryDraft(
            account_id=original.account_id,
            direction=direction,
            amount=original.amount,
            category=EntryCategory.REVERSAL,
            occurred_at=now_utc(),
            note=note or f"reversal of entry {entry_id}",
            created_by=principal.label,
            reverses_entry_id=entry_id,
        )

        async with self.locks.hold(original.account_id, timeout=timeout):
            if await self.store.reversal_of(entry_id) is not None:
                raise InvalidReversal(
                    f"이미 역분개된 분개입니다: {entry_id}",
                    entry_id=entry_id,
                )
            await self._check_debit_allowed(original.account_id, direction)
            reversal_id = await self._append(draft)

        logger.info(
            f"Entry reversed: {entry_id} -> {reversal_id}",
            extra={"account_id": original.account_id, "actor": principal.label},
        )
        return await self.store.by_id(reversal_id)

    async def _check_debit_allowed(self, account_id: str, direction: Direction) -> None:
        if direction != Direction.DEBIT:
            return
        if await self.registry.is_blocked(account_id):
            logger.warning("BLOCKED 계정 DEBIT 거부", extra={"account_id": account_id})
            raise AccountBlocked(
                f"차단된 계정입니다: {account_id}",
                account_id=account_id,
            )

    async def _append(self, draft: EntryDraft) -> int:
        try:
            return await self.store.append(draft)
        except LedgerError:
            raise
        except sqlite3.Error as e:
            logger.error(
                "Entry storage failure",
                extra={"account_id": draft.account_id},
                exc_info=True,
            )
            raise StorageError(
                f"분개 저장 실패 (롤백됨): {draft.account_id}",
                account_id=draft.account_id,
            ) from e

    # -------------------------------------------------------------------------
    # 이체
    # -------------------------------------------------------------------------

    async def execute_transfer(
        self,
        principal: Principal,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal | str | int,
        note: str | None = None,
        idempotency_key: str | None = None,
        timeout: float | None = None,
    ) -> Transfer:
        return await self.processor.execute(
            principal,
            from_account_id,
            to_account_id,
            amount,
            note=note,
            idempotency_key=idempotency_key,
            timeout=timeout,
        )

    async def reverse_transfer(
        self,
        principal: Principal,
        transfer_id: str,
        note: str | None = None,
        timeout: float | None = None,
    ) -> Transfer:
        return await self.processor.reverse(principal, transfer_id, note=note, timeout=timeout)

    async def get_transfer(self, principal: Principal, transfer_id: str) -> Transfer:
        return await self.processor.get(transfer_id)

    async def list_transfers(
        self,
        principal: Principal,
        account_id: str | None = None,
        status: TransferStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transfer]:
        return await self.processor.history(
            account_id=account_id, status=status, limit=limit, offset=offset
        )
