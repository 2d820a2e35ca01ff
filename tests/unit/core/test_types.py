"""
core/types.py 테스트

Enum 직렬화와 Principal 생성
"""

import pytest

from core.types import (
    AccountKind,
    AccountStatus,
    ActorKind,
    Direction,
    Principal,
    RiskTier,
    TransferStatus,
)


class TestEnums:
    """Enum 테스트"""

    def test_str_serialization(self) -> None:
        """str 상속으로 값 비교 가능"""
        assert AccountKind.BANK == "BANK"
        assert AccountStatus.BLOCKED == "BLOCKED"
        assert TransferStatus.COMMITTED == "COMMITTED"
        assert RiskTier.CRITICAL == "CRITICAL"

    def test_from_value(self) -> None:
        assert AccountKind("CUSTOMER") is AccountKind.CUSTOMER

    def test_invalid_value(self) -> None:
        with pytest.raises(ValueError):
            AccountKind("SAVINGS")

    def test_credit_party(self) -> None:
        assert AccountKind.CUSTOMER.is_credit_party is True
        assert AccountKind.VENDOR.is_credit_party is True
        assert AccountKind.BANK.is_credit_party is False
        assert AccountKind.CASH.is_credit_party is False

    def test_direction_opposite(self) -> None:
        assert Direction.DEBIT.opposite() is Direction.CREDIT
        assert Direction.CREDIT.opposite() is Direction.DEBIT


class TestPrincipal:
    """Principal 테스트"""

    def test_user(self) -> None:
        principal = Principal.user("kim")

        assert principal.kind == ActorKind.USER.value
        assert principal.label == "user:kim"

    def test_system(self) -> None:
        assert Principal.system("seed").label == "system:seed"

    def test_web(self) -> None:
        assert Principal.web("anonymous").label == "web:anonymous"

    def test_frozen(self) -> None:
        principal = Principal.user("kim")
        with pytest.raises(AttributeError):
            principal.id = "user:lee"  # type: ignore[misc]
