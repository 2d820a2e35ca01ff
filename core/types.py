"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class AccountKind(str, Enum):
    """계정 종류"""

    BANK = "BANK"
    CASH = "CASH"
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"

    @property
    def is_credit_party(self) -> bool:
        """신용 한도가 의미 있는 거래처 계정인지 여부"""
        return self in (AccountKind.CUSTOMER, AccountKind.VENDOR)


class AccountStatus(str, Enum):
    """계정 상태"""

    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class Direction(str, Enum):
    """분개 방향"""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    def opposite(self) -> "Direction":
        """반대 방향 (역분개용)"""
        return Direction.CREDIT if self == Direction.DEBIT else Direction.DEBIT


class TransferStatus(str, Enum):
    """이체 상태"""

    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


class RiskTier(str, Enum):
    """신용 위험 등급"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    CRITICAL = "CRITICAL"


class ActorKind(str, Enum):
    """행위자 종류"""

    USER = "USER"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class Principal:
    """호출 주체 (불변)

    모든 코어 연산에 명시적으로 전달된다.
    코어는 쿠키/세션 같은 전역 상태를 읽지 않는다.
    """

    kind: str
    id: str

    @property
    def label(self) -> str:
        """기록용 문자열 (created_by / requested_by 컬럼)"""
        return self.id

    @classmethod
    def user(cls, user_id: str) -> "Principal":
        """사용자 Principal 생성"""
        return cls(kind=ActorKind.USER.value, id=f"user:{user_id}")

    @classmethod
    def system(cls, system_name: str) -> "Principal":
        """시스템 Principal 생성"""
        return cls(kind=ActorKind.SYSTEM.value, id=f"system:{system_name}")

    @classmethod
    def web(cls, actor_id: str) -> "Principal":
        """Web 요청 Principal 생성"""
        return cls(kind=ActorKind.USER.value, id=f"web:{actor_id}")


# 분개 카테고리 (자유 태그, 화면에서 사용하던 값)
class EntryCategory:
    """자주 쓰는 분개 카테고리"""

    SALES = "Sales"
    ADVANCE = "Advance"
    CREDIT = "Credit"
    PURCHASE = "Purchase"
    PAYMENT = "Payment"
    RETURN = "Return"
    REFUND = "Refund"
    TRANSFER = "Transfer"
    REVERSAL = "Reversal"
