"""
Idempotency 유틸리티

이체 재시도 시 중복 전기를 막기 위한 idempotency key 검증 및 생성
"""

import re

# 역이체 전용 접두사
REVERSAL_KEY_PREFIX: str = "reversal"

# 허용 문자: 영숫자, '-', '_', ':', '.'
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.:\-]{1,128}$")


def normalize_idempotency_key(key: str | None) -> str | None:
    """클라이언트 idempotency key 정규화

    Args:
        key: 클라이언트가 생성한 키 (None 허용)

    Returns:
        공백 제거된 키 또는 None (키 없음)

    Raises:
        ValueError: 형식이 잘못된 경우

    Example:
        >>> normalize_idempotency_key("  tf-2026-0001 ")
        'tf-2026-0001'
        >>> normalize_idempotency_key("") is None
        True
    """
    if key is None:
        return None

    key = key.strip()
    if not key:
        return None

    if not _KEY_PATTERN.match(key):
        raise ValueError(f"유효하지 않은 idempotency key입니다: {key!r}")

    return key


def make_reversal_key(transfer_id: str) -> str:
    """역이체용 결정적 idempotency key 생성

    같은 이체는 한 번만 역이체할 수 있도록 transfer_id에서 결정적으로 만든다.

    Example:
        >>> make_reversal_key("tf-1a2b3c4d5e6f")
        'reversal:tf-1a2b3c4d5e6f'
    """
    if not transfer_id:
        raise ValueError("transfer_id는 비어 있을 수 없습니다")

    return f"{REVERSAL_KEY_PREFIX}:{transfer_id}"


def is_reversal_key(key: str | None) -> bool:
    """역이체 키인지 확인"""
    if not key:
        return False
    return key.startswith(f"{REVERSAL_KEY_PREFIX}:")
