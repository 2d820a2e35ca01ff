"""
Ledger 데이터 모델

계정, 분개, 이체 및 파생 값(신용 프로필, 원장 명세) 정의.
모든 금액은 Decimal. DB 행 ↔ 모델 변환은 from_row에서 한 번만 수행.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.types import (
    AccountKind,
    AccountStatus,
    Direction,
    RiskTier,
    TransferStatus,
)
from core.utils.money import format_amount, from_minor
from core.utils.timezone import from_db_ts


@dataclass(frozen=True)
class Account:
    """계정

    Attributes:
        account_id: 계정 ID (불투명 문자열)
        name: 표시 이름
        kind: BANK / CASH / CUSTOMER / VENDOR
        credit_limit: 신용 한도 (CUSTOMER/VENDOR만 의미 있음)
        status: ACTIVE / BLOCKED
    """

    account_id: str
    name: str
    kind: AccountKind
    credit_limit: Decimal | None = None
    status: AccountStatus = AccountStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_blocked(self) -> bool:
        return self.status == AccountStatus.BLOCKED

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Account:
        """DB 행에서 생성"""
        limit_minor = row.get("credit_limit_minor")
        return cls(
            account_id=row["account_id"],
            name=row["name"],
            kind=AccountKind(row["kind"]),
            credit_limit=from_minor(limit_minor) if limit_minor is not None else None,
            status=AccountStatus(row["status"]),
            created_at=from_db_ts(row["created_at"]) if row.get("created_at") else None,
            updated_at=from_db_ts(row["updated_at"]) if row.get("updated_at") else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "name": self.name,
            "kind": self.kind.value,
            "credit_limit": (
                format_amount(self.credit_limit) if self.credit_limit is not None else None
            ),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class EntryDraft:
    """저장 전 분개 (entry_id는 저장소가 부여)"""

    account_id: str
    direction: Direction
    amount: Decimal
    category: str
    occurred_at: datetime
    note: str | None = None
    created_by: str | None = None
    transfer_id: str | None = None
    reverses_entry_id: int | None = None


@dataclass(frozen=True)
class LedgerEntry:
    """분개 (불변)

    생성 후 수정/삭제하지 않는다. 정정은 역분개로만 한다.
    """

    entry_id: int
    account_id: str
    occurred_at: datetime
    direction: Direction
    amount: Decimal
    category: str
    counterparty_entry_id: int | None = None
    transfer_id: str | None = None
    reverses_entry_id: int | None = None
    note: str | None = None
    created_by: str | None = None

    @property
    def signed_net(self) -> Decimal:
        """계정 종류와 무관한 순포지션 기여분 (Credit +, Debit -)"""
        return self.amount if self.direction == Direction.CREDIT else -self.amount

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> LedgerEntry:
        """DB 행에서 생성"""
        return cls(
            entry_id=row["entry_id"],
            account_id=row["account_id"],
            occurred_at=from_db_ts(row["occurred_at"]),
            direction=Direction(row["direction"]),
            amount=from_minor(row["amount_minor"]),
            category=row["category"],
            counterparty_entry_id=row.get("counterparty_entry_id"),
            transfer_id=row.get("transfer_id"),
            reverses_entry_id=row.get("reverses_entry_id"),
            note=row.get("note"),
            created_by=row.get("created_by"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "account_id": self.account_id,
            "occurred_at": self.occurred_at.isoformat(),
            "direction": self.direction.value,
            "amount": format_amount(self.amount),
            "category": self.category,
            "counterparty_entry_id": self.counterparty_entry_id,
            "transfer_id": self.transfer_id,
            "reverses_entry_id": self.reverses_entry_id,
            "note": self.note,
            "created_by": self.created_by,
        }


@dataclass(frozen=True)
class Transfer:
    """이체

    COMMITTED 이체는 서로를 가리키는 두 분개(from DEBIT, to CREDIT)와 대응한다.
    """

    transfer_id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    status: TransferStatus
    created_at: datetime
    idempotency_key: str | None = None
    note: str | None = None
    requested_by: str | None = None
    debit_entry_id: int | None = None
    credit_entry_id: int | None = None
    error_message: str | None = None

    @property
    def is_committed(self) -> bool:
        return self.status == TransferStatus.COMMITTED

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Transfer:
        """DB 행에서 생성"""
        return cls(
            transfer_id=row["transfer_id"],
            from_account_id=row["from_account_id"],
            to_account_id=row["to_account_id"],
            amount=from_minor(row["amount_minor"]),
            status=TransferStatus(row["status"]),
            created_at=from_db_ts(row["created_at"]),
            idempotency_key=row.get("idempotency_key"),
            note=row.get("note"),
            requested_by=row.get("requested_by"),
            debit_entry_id=row.get("debit_entry_id"),
            credit_entry_id=row.get("credit_entry_id"),
            error_message=row.get("error_message"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "transfer_id": self.transfer_id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "amount": format_amount(self.amount),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "idempotency_key": self.idempotency_key,
            "note": self.note,
            "requested_by": self.requested_by,
            "debit_entry_id": self.debit_entry_id,
            "credit_entry_id": self.credit_entry_id,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class CreditProfile:
    """신용 프로필 (파생 값, 저장하지 않음)"""

    account_id: str
    limit: Decimal
    used: Decimal
    available: Decimal
    utilization_pct: Decimal
    risk_tier: RiskTier
    status: AccountStatus
    can_supply: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "limit": format_amount(self.limit),
            "used": format_amount(self.used),
            "available": format_amount(self.available),
            "utilization_pct": str(self.utilization_pct),
            "risk_tier": self.risk_tier.value,
            "status": self.status.value,
            "can_supply": self.can_supply,
        }


@dataclass(frozen=True)
class StatementLine:
    """원장 명세 한 줄 (분개 + 이후 잔액)"""

    entry: LedgerEntry
    balance: Decimal

    def to_dict(self) -> dict[str, Any]:
        data = self.entry.to_dict()
        data["balance"] = format_amount(self.balance)
        return data


@dataclass(frozen=True)
class Statement:
    """계정 원장 명세 (고객/거래처 원장 화면의 Balance 컬럼)"""

    account_id: str
    kind: AccountKind
    opening_balance: Decimal
    closing_balance: Decimal
    lines: list[StatementLine] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "kind": self.kind.value,
            "opening_balance": format_amount(self.opening_balance),
            "closing_balance": format_amount(self.closing_balance),
            "lines": [line.to_dict() for line in self.lines],
        }
