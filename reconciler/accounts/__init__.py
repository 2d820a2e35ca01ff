"""
계정 레지스트리 모듈

계정 식별/메타데이터 조회 및 관리자 경로
"""

from reconciler.accounts.registry import AccountRegistry

__all__ = ["AccountRegistry"]
