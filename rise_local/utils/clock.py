"""
시간 유틸리티

DB 컬럼은 timezone 정보 없는 UTC(DateTime)로 저장합니다.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """현재 UTC 시각 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """aware datetime을 naive UTC로 변환 (naive 값은 UTC로 간주)"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
