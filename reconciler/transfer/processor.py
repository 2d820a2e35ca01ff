"""
Transfer Processor

두 계정 사이 자금 이동의 유일한 경로.

흐름:
1. 검증 (금액, 동일 계정, 계정 존재, idempotency key)
2. 두 계정 락을 account_id 오름차순으로 획득 (제한 시간)
3. 락 안에서 BLOCKED/잔액 재확인
4. 하나의 DB 트랜잭션에서 DEBIT(from) + CREDIT(to) + COMMITTED 이체 행 기록
5. 커밋 후 구독자 통지 (잔액 캐시 무효화, 신용 위험 재계산)

저장 실패 시 트랜잭션 전체 롤백, REJECTED 이체 기록 후 StorageError.
"""

import logging
from decimal import Decimal

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import (
    AccountBlocked,
    DuplicateTransfer,
    IdenticalAccounts,
    InsufficientFunds,
    InvalidIdempotencyKey,
    InvalidReversal,
    LedgerError,
    StorageError,
    TransferNotFound,
)
from core.ledger.models import Account, EntryDraft, Transfer
from core.ledger.store import LedgerStore
from core.types import Direction, EntryCategory, Principal, TransferStatus
from core.utils.idempotency import make_reversal_key, normalize_idempotency_key
from core.utils.money import parse_positive_amount
from core.utils.timezone import now_utc
from reconciler.accounts.registry import AccountRegistry
from reconciler.balance.calculator import BalanceCalculator
from reconciler.locks import AccountLockManager
from reconciler.transfer.repository import TransferRepository, new_transfer_id

logger = logging.getLogger(__name__)


class TransferProcessor:
    """Transfer Processor

    Args:
        store: Ledger 저장소
        registry: 계정 레지스트리
        repository: 이체 저장소
        calculator: 잔액 계산기 (잔액 부족 검사용)
        locks: 계정별 락 관리자 (레지스트리와 공유)
        allow_overdraft: False면 BANK/CASH 출금 계정의 잔액 부족을 거부

    사용 예시:
    ```python
    processor = TransferProcessor(store, registry, repository, calculator, locks)

    transfer = await processor.execute(
        Principal.user("kim"),
        "BANK-1",
        "CASH-1",
        Decimal("3000"),
        idempotency_key="tf-2026-0001",
    )
    ```
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AccountRegistry,
        repository: TransferRepository,
        calculator: BalanceCalculator,
        locks: AccountLockManager,
        allow_overdraft: bool = True,
    ):
        self.store = store
        self.registry = registry
        self.repository = repository
        self.calculator = calculator
        self.locks = locks
        self.allow_overdraft = allow_overdraft

    async def execute(
        self,
        principal: Principal,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal | str | int,
        note: str | None = None,
        idempotency_key: str | None = None,
        timeout: float | None = None,
        category: str = EntryCategory.TRANSFER,
    ) -> Transfer:
        """이체 실행

        Args:
            principal: 호출 주체
            from_account_id: 출금 계정 (DEBIT)
            to_account_id: 입금 계정 (CREDIT)
            amount: 이체 금액 (> 0)
            note: 메모
            idempotency_key: 재시도 중복 방지 키
            timeout: 락 획득 제한 시간(초). None이면 기본값

        Returns:
            COMMITTED Transfer

        Raises:
            InvalidAmount, IdenticalAccounts, UnknownAccount, InvalidIdempotencyKey
            AccountBlocked, InsufficientFunds, DuplicateTransfer
            LockTimeout: 제한 시간 안에 락 획득 실패 (부분 상태 없음)
            StorageError: 저장 실패 (롤백됨)
        """
        amount = parse_positive_amount(amount)

        if from_account_id == to_account_id:
            raise IdenticalAccounts(
                f"출금/입금 계정이 같습니다: {from_account_id}",
                account_id=from_account_id,
            )

        try:
            key = normalize_idempotency_key(idempotency_key)
        except ValueError as e:
            raise InvalidIdempotencyKey(str(e), idempotency_key=idempotency_key) from e

        # UnknownAccount 전파
        await self.registry.get(from_account_id)
        await self.registry.get(to_account_id)

        if key is not None:
            await self._check_duplicate(key)

        async with self.locks.hold(from_account_id, to_account_id, timeout=timeout):
            return await self._execute_locked(
                principal=principal,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                note=note,
                key=key,
                category=category,
            )

    async def _execute_locked(
        self,
        principal: Principal,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        note: str | None,
        key: str | None,
        category: str,
    ) -> Transfer:
        # 락 안에서 재확인 (상태 변경도 같은 락을 잡으므로 경쟁 없음)
        source = await self.registry.get(from_account_id)
        target = await self.registry.get(to_account_id)
        self._check_not_blocked(source)
        self._check_not_blocked(target)

        if not self.allow_overdraft and not source.kind.is_credit_party:
            balance = await self.calculator.balance_of(from_account_id, fresh=True)
            if balance < amount:
                logger.warning(
                    "잔액 부족으로 이체 거부",
                    extra={"account_id": from_account_id, "balance": str(balance)},
                )
                raise InsufficientFunds(
                    f"잔액이 부족합니다: {from_account_id}",
                    account_id=from_account_id,
                    balance=balance,
                    amount=amount,
                )

        transfer_id = new_transfer_id()
        occurred_at = now_utc()
        debit = EntryDraft(
            account_id=from_account_id,
            direction=Direction.DEBIT,
            amount=amount,
            category=category,
            occurred_at=occurred_at,
            note=note,
            created_by=principal.label,
            transfer_id=transfer_id,
        )
        credit = EntryDraft(
            account_id=to_account_id,
            direction=Direction.CREDIT,
            amount=amount,
            category=category,
            occurred_at=occurred_at,
            note=note,
            created_by=principal.label,
            transfer_id=transfer_id,
        )

        try:
            async with self.store.transaction() as tx:
                if key is not None:
                    await self._check_duplicate(key, conn=tx)

                debit_id, credit_id = await self.store.insert_pair(debit, credit)

                transfer = Transfer(
                    transfer_id=transfer_id,
                    from_account_id=from_account_id,
                    to_account_id=to_account_id,
                    amount=amount,
                    status=TransferStatus.COMMITTED,
                    created_at=occurred_at,
                    idempotency_key=key,
                    note=note,
                    requested_by=principal.label,
                    debit_entry_id=debit_id,
                    credit_entry_id=credit_id,
                )
                await self.repository.insert(tx, transfer)
        except LedgerError:
            raise
        except Exception as e:
            logger.error(
                f"Transfer storage failure: {transfer_id}",
                extra={"from_account_id": from_account_id, "to_account_id": to_account_id},
                exc_info=True,
            )
            await self._record_rejected(
                transfer_id, from_account_id, to_account_id, amount, note, key, principal, e
            )
            raise StorageError(
                f"이체 저장 실패 (롤백됨): {transfer_id}",
                transfer_id=transfer_id,
            ) from e

        # 락을 쥔 채로 통지해 캐시 무효화가 다음 이체보다 먼저 끝나게 한다
        await self.store.publish([debit_id, credit_id], [from_account_id, to_account_id])

        logger.info(
            f"Transfer committed: {transfer_id}",
            extra={
                "from_account_id": from_account_id,
                "to_account_id": to_account_id,
                "amount": str(amount),
                "requested_by": principal.label,
            },
        )
        return transfer

    async def _check_duplicate(self, key: str, conn: SQLiteAdapter | None = None) -> None:
        existing = await self.repository.find_committed_by_key(key, conn=conn)
        if existing is not None:
            logger.warning(
                "이미 처리된 idempotency key",
                extra={"idempotency_key": key, "transfer_id": existing.transfer_id},
            )
            raise DuplicateTransfer(
                f"이미 처리된 이체입니다: {existing.transfer_id}",
                transfer=existing,
                transfer_id=existing.transfer_id,
                idempotency_key=key,
            )

    def _check_not_blocked(self, account: Account) -> None:
        if account.is_blocked:
            logger.warning(
                "BLOCKED 계정 이체 거부",
                extra={"account_id": account.account_id},
            )
            raise AccountBlocked(
                f"차단된 계정입니다: {account.account_id}",
                account_id=account.account_id,
            )

    async def _record_rejected(
        self,
        transfer_id: str,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        note: str | None,
        key: str | None,
        principal: Principal,
        error: Exception,
    ) -> None:
        rejected = Transfer(
            transfer_id=transfer_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            status=TransferStatus.REJECTED,
            created_at=now_utc(),
            idempotency_key=key,
            note=note,
            requested_by=principal.label,
            error_message=str(error)[:500],
        )
        try:
            await self.repository.record_rejected(rejected)
        except Exception:
            # 원래 저장 실패를 StorageError로 올리는 것이 우선
            logger.exception(f"REJECTED 이체 기록 실패: {transfer_id}")

    # -------------------------------------------------------------------------
    # 역이체 / 조회
    # -------------------------------------------------------------------------

    async def reverse(
        self,
        principal: Principal,
        transfer_id: str,
        note: str | None = None,
        timeout: float | None = None,
    ) -> Transfer:
        """이체 역이체 (반대 방향 이체)

        같은 이체는 결정적 키(reversal:{transfer_id})로 한 번만 역이체된다.

        Raises:
            TransferNotFound: 없는 이체
            InvalidReversal: COMMITTED가 아닌 이체
            DuplicateTransfer: 이미 역이체됨
        """
        original = await self.get(transfer_id)
        if not original.is_committed:
            raise InvalidReversal(
                f"COMMITTED 이체만 역이체할 수 있습니다: {transfer_id}",
                transfer_id=transfer_id,
                status=original.status.value,
            )

        return await self.execute(
            principal,
            original.to_account_id,
            original.from_account_id,
            original.amount,
            note=note or f"reversal of {transfer_id}",
            idempotency_key=make_reversal_key(transfer_id),
            timeout=timeout,
            category=EntryCategory.REVERSAL,
        )

    async def get(self, transfer_id: str) -> Transfer:
        """이체 조회

        Raises:
            TransferNotFound: 없는 이체
        """
        transfer = await self.repository.get(transfer_id)
        if transfer is None:
            raise TransferNotFound(
                f"이체를 찾을 수 없습니다: {transfer_id}",
                transfer_id=transfer_id,
            )
        return transfer

    async def history(
        self,
        account_id: str | None = None,
        status: TransferStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transfer]:
        """이체 목록 (최신순)"""
        return await self.repository.history(
            account_id=account_id, status=status, limit=limit, offset=offset
        )
