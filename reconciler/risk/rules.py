"""
Credit Risk Rules

utilization → 위험 등급 분류와 공급 가능 여부 규칙
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any

from core.constants import Money, RiskThresholds
from core.ledger.models import Account
from core.types import RiskTier

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")


def utilization_pct(used: Decimal, limit: Decimal) -> Decimal:
    """한도 대비 사용률(%) - 반올림하지 않은 값

    한도가 0이면 사용액이 있을 때 100%, 없을 때 0%로 본다.
    """
    if limit <= 0:
        return _HUNDRED if used > 0 else Decimal("0")
    return used / limit * _HUNDRED


def display_pct(pct: Decimal) -> Decimal:
    """표시용 사용률 (소수 둘째 자리 내림)

    내림이라 표시값과 등급 경계가 어긋나지 않는다 (89.999 → 89.99, MEDIUM).
    """
    return pct.quantize(Money.QUANT, rounding=ROUND_DOWN)


def classify_risk(pct: Decimal) -> RiskTier:
    """위험 등급 분류 (하한 포함)

    - pct < 50 → LOW
    - 50 <= pct < 90 → MEDIUM
    - pct >= 90 → CRITICAL

    Example:
        >>> classify_risk(Decimal("49.999"))
        <RiskTier.LOW: 'LOW'>
        >>> classify_risk(Decimal("90"))
        <RiskTier.CRITICAL: 'CRITICAL'>
    """
    if pct >= RiskThresholds.CRITICAL_PCT:
        return RiskTier.CRITICAL
    if pct >= RiskThresholds.MEDIUM_PCT:
        return RiskTier.MEDIUM
    return RiskTier.LOW


@dataclass
class SupplyCheckResult:
    """공급 가능 검사 결과"""
    passed: bool
    rule_name: str
    reason: str | None = None
    details: dict[str, Any] | None = None


class SupplyRule(ABC):
    """공급 규칙 추상 클래스

    모든 공급 차단 규칙은 이 클래스를 상속하여 구현.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """규칙 이름"""
        pass

    @abstractmethod
    def check(self, account: Account, risk_tier: RiskTier) -> SupplyCheckResult:
        """공급 가능 검사

        Args:
            account: 검사할 계정
            risk_tier: 현재 위험 등급

        Returns:
            SupplyCheckResult
        """
        pass


class BlockedAccountRule(SupplyRule):
    """차단 계정 규칙

    관리자가 BLOCKED로 전환한 계정은 공급 불가.
    """

    @property
    def name(self) -> str:
        return "BlockedAccount"

    def check(self, account: Account, risk_tier: RiskTier) -> SupplyCheckResult:
        if account.is_blocked:
            return SupplyCheckResult(
                passed=False,
                rule_name=self.name,
                reason="Account is blocked",
                details={"account_id": account.account_id},
            )
        return SupplyCheckResult(passed=True, rule_name=self.name)


class CriticalUtilizationRule(SupplyRule):
    """사용률 규칙

    사용률 90% 이상(CRITICAL)이면 공급 중단.
    """

    @property
    def name(self) -> str:
        return "CriticalUtilization"

    def check(self, account: Account, risk_tier: RiskTier) -> SupplyCheckResult:
        if risk_tier == RiskTier.CRITICAL:
            return SupplyCheckResult(
                passed=False,
                rule_name=self.name,
                reason=f"Utilization >= {RiskThresholds.CRITICAL_PCT}%",
                details={"account_id": account.account_id},
            )
        return SupplyCheckResult(passed=True, rule_name=self.name)


def default_supply_rules() -> list[SupplyRule]:
    return [BlockedAccountRule(), CriticalUtilizationRule()]
