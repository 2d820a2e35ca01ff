"""
잔액 계산 모듈

분개에서 계정 잔액/합계/원장 명세를 파생
"""

from reconciler.balance.calculator import BalanceCalculator, entry_effect, signed_balance

__all__ = [
    "BalanceCalculator",
    "entry_effect",
    "signed_balance",
]
