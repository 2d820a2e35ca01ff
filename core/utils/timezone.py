"""
타임존 유틸리티

내부 저장: UTC 고정 포맷 문자열 (사전식 정렬 = 시간 순서)
"""

from datetime import datetime, timezone

# DB 저장 포맷. 마이크로초를 항상 포함해야 문자열 정렬이 시간 순서와 일치한다.
DB_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """UTC datetime으로 정규화

    naive datetime은 UTC로 간주한다.

    Args:
        dt: datetime 객체

    Returns:
        tzinfo=timezone.utc 인 datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db_ts(dt: datetime) -> str:
    """datetime을 DB 저장용 문자열로 변환

    Example:
        >>> to_db_ts(datetime(2026, 2, 20, 16, 0, tzinfo=timezone.utc))
        '2026-02-20T16:00:00.000000Z'
    """
    return ensure_utc(dt).strftime(DB_TS_FORMAT)


def from_db_ts(value: str) -> datetime:
    """DB 문자열을 UTC datetime으로 변환"""
    return datetime.strptime(value, DB_TS_FORMAT).replace(tzinfo=timezone.utc)
