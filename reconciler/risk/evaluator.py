"""
Credit Risk Evaluator

CUSTOMER/VENDOR 계정의 신용 노출도와 공급 가능 여부를 파생한다.
계정 상태는 절대 바꾸지 않는다 (차단은 관리자 경로에서만).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from core.constants import Money
from core.errors import NotCreditAccount
from core.ledger.models import Account, CreditProfile, LedgerEntry
from core.types import AccountKind, RiskTier
from core.utils.money import format_amount
from reconciler.accounts.registry import AccountRegistry
from reconciler.balance.calculator import BalanceCalculator
from reconciler.risk.rules import (
    SupplyCheckResult,
    SupplyRule,
    classify_risk,
    default_supply_rules,
    display_pct,
    utilization_pct,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExposureSummary:
    """신용 노출 요약 (신용 감시 화면의 Exposure / Risk 패널)"""

    total_limit: Decimal
    total_used: Decimal
    total_available: Decimal
    tier_counts: dict[str, int]
    critical_accounts: list[str]
    profiles: list[CreditProfile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_limit": format_amount(self.total_limit),
            "total_used": format_amount(self.total_used),
            "total_available": format_amount(self.total_available),
            "tier_counts": dict(self.tier_counts),
            "critical_accounts": list(self.critical_accounts),
            "profiles": [p.to_dict() for p in self.profiles],
        }


class CreditRiskEvaluator:
    """Credit Risk Evaluator

    used = max(0, balance_of) (거래처가 갚아야 할 금액, 선입금은 0으로 본다)
    한도가 없으면 0으로 간주한다.

    Args:
        registry: 계정 레지스트리
        calculator: 잔액 계산기
        rules: 공급 규칙 목록 (None이면 기본 규칙)

    사용 예시:
    ```python
    evaluator = CreditRiskEvaluator(registry, calculator)
    store.subscribe(evaluator.on_entries)

    profile = await evaluator.profile_of("CUST-9")
    if not await evaluator.can_supply("CUST-9"):
        ...
    ```
    """

    def __init__(
        self,
        registry: AccountRegistry,
        calculator: BalanceCalculator,
        rules: list[SupplyRule] | None = None,
    ):
        self.registry = registry
        self.calculator = calculator
        self._rules = rules if rules is not None else default_supply_rules()
        # 마지막으로 관측한 등급 (전이 로그용)
        self._tiers: dict[str, RiskTier] = {}

    def add_rule(self, rule: SupplyRule) -> None:
        self._rules.append(rule)

    async def profile_of(self, account_id: str) -> CreditProfile:
        """신용 프로필

        Raises:
            UnknownAccount: 존재하지 않는 계정
            NotCreditAccount: BANK/CASH 계정
        """
        account = await self.registry.get(account_id)
        if not account.kind.is_credit_party:
            raise NotCreditAccount(
                f"신용 프로필은 CUSTOMER/VENDOR 계정만 가능합니다: {account_id}",
                account_id=account_id,
                kind=account.kind.value,
            )

        balance = await self.calculator.balance_of(account_id)
        return self._build_profile(account, balance)

    async def can_supply(self, account_id: str) -> bool:
        """공급 가능 여부 (BLOCKED 또는 CRITICAL이면 False)"""
        profile = await self.profile_of(account_id)
        return profile.can_supply

    async def supply_checks(self, account_id: str) -> list[SupplyCheckResult]:
        """규칙별 공급 검사 결과 (거부 사유 확인용)"""
        account = await self.registry.get(account_id)
        profile = await self.profile_of(account_id)
        return [rule.check(account, profile.risk_tier) for rule in self._rules]

    def _build_profile(self, account: Account, balance: Decimal) -> CreditProfile:
        limit = account.credit_limit if account.credit_limit is not None else Money.ZERO
        used = max(balance, Money.ZERO)
        pct = utilization_pct(used, limit)
        tier = classify_risk(pct)

        can_supply = all(rule.check(account, tier).passed for rule in self._rules)

        return CreditProfile(
            account_id=account.account_id,
            limit=limit,
            used=used,
            available=limit - used,
            utilization_pct=display_pct(pct),
            risk_tier=tier,
            status=account.status,
            can_supply=can_supply,
        )

    async def exposure_summary(self, kind: AccountKind | None = None) -> ExposureSummary:
        """신용 노출 요약

        Args:
            kind: CUSTOMER 또는 VENDOR (None이면 둘 다)

        Raises:
            NotCreditAccount: BANK/CASH 종류 지정
        """
        if kind is not None and not kind.is_credit_party:
            raise NotCreditAccount(
                f"신용 노출 요약은 CUSTOMER/VENDOR만 가능합니다: {kind.value}",
                kind=kind.value,
            )

        kinds = [kind] if kind is not None else [AccountKind.CUSTOMER, AccountKind.VENDOR]

        profiles: list[CreditProfile] = []
        for k in kinds:
            balances = await self.calculator.balances_by_kind(k)
            for account in await self.registry.list_by_kind(k):
                balance = balances.get(account.account_id, Money.ZERO)
                profiles.append(self._build_profile(account, balance))

        tier_counts = {tier.value: 0 for tier in RiskTier}
        for profile in profiles:
            tier_counts[profile.risk_tier.value] += 1

        total_limit = sum((p.limit for p in profiles), Money.ZERO)
        total_used = sum((p.used for p in profiles), Money.ZERO)

        return ExposureSummary(
            total_limit=total_limit,
            total_used=total_used,
            total_available=total_limit - total_used,
            tier_counts=tier_counts,
            critical_accounts=[
                p.account_id for p in profiles if p.risk_tier == RiskTier.CRITICAL
            ],
            profiles=profiles,
        )

    # -------------------------------------------------------------------------
    # Ledger 구독
    # -------------------------------------------------------------------------

    async def on_entries(self, entries: list[LedgerEntry]) -> None:
        """Ledger 커밋 통지 (거래처 계정 사용률 재계산)"""
        for account_id in sorted({entry.account_id for entry in entries}):
            kind = await self.calculator.kind_of(account_id)
            if kind.is_credit_party:
                await self.refresh(account_id)

    async def refresh(self, account_id: str) -> CreditProfile:
        """등급 재계산 및 전이 로그 (CRITICAL 진입은 WARNING)"""
        profile = await self.profile_of(account_id)
        # 관측 전 계정은 잔액 0(LOW)에서 시작한 것으로 본다
        previous = self._tiers.get(account_id, RiskTier.LOW)
        self._tiers[account_id] = profile.risk_tier

        if previous == profile.risk_tier:
            return profile

        extra = {
            "account_id": account_id,
            "from_tier": previous.value,
            "to_tier": profile.risk_tier.value,
            "utilization_pct": str(profile.utilization_pct),
        }
        if profile.risk_tier == RiskTier.CRITICAL:
            logger.warning(f"Credit risk CRITICAL: {account_id}", extra=extra)
        else:
            logger.info(f"Credit risk tier changed: {account_id}", extra=extra)
        return profile

    async def prime(self) -> None:
        """시작 시 현재 등급을 기준값으로 기록"""
        summary = await self.exposure_summary()
        for profile in summary.profiles:
            self._tiers[profile.account_id] = profile.risk_tier

        if summary.critical_accounts:
            logger.warning(
                f"CRITICAL 거래처 {len(summary.critical_accounts)}건",
                extra={"account_ids": summary.critical_accounts},
            )

    def last_tier(self, account_id: str) -> RiskTier | None:
        """마지막으로 관측한 등급 (관측 전이면 None)"""
        return self._tiers.get(account_id)
