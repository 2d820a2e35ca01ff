"""
유틸리티 패키지

금액 파싱, idempotency key, 타임존 처리 등 공통 유틸리티
"""

from core.utils.money import (
    format_amount,
    from_minor,
    parse_amount,
    parse_positive_amount,
    to_minor,
)
from core.utils.timezone import (
    ensure_utc,
    from_db_ts,
    now_utc,
    to_db_ts,
)

__all__ = [
    "format_amount",
    "from_minor",
    "parse_amount",
    "parse_positive_amount",
    "to_minor",
    "ensure_utc",
    "from_db_ts",
    "now_utc",
    "to_db_ts",
]
