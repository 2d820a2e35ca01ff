"""
Credit Risk 모듈

거래처 사용률 → 위험 등급, 공급 가능 여부
"""

from reconciler.risk.evaluator import CreditRiskEvaluator, ExposureSummary
from reconciler.risk.rules import (
    BlockedAccountRule,
    CriticalUtilizationRule,
    SupplyCheckResult,
    SupplyRule,
    classify_risk,
)

__all__ = [
    "CreditRiskEvaluator",
    "ExposureSummary",
    "SupplyRule",
    "SupplyCheckResult",
    "BlockedAccountRule",
    "CriticalUtilizationRule",
    "classify_risk",
]
