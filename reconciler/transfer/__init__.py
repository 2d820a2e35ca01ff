"""
이체 모듈

계정 간 원자적 자금 이동 (분개 쌍 + 이체 행을 하나의 트랜잭션으로)
"""

from reconciler.transfer.processor import TransferProcessor
from reconciler.transfer.repository import TransferRepository

__all__ = [
    "TransferProcessor",
    "TransferRepository",
]
