"""
리딤 빈도 정책

목적: 딜의 redemption_frequency 로부터 현재 집계 구간과 다음 가능 시각을 계산
I/O 없이 순수 함수로만 구성됩니다.

구간 정의:
    - once: 전체 기간 (평생 1회)
    - weekly: now 가 속한 ISO 주의 월요일 00:00 부터
    - monthly: now 가 속한 달의 1일 00:00 부터
    - custom: now - custom_days 일 (이동 구간)
    - unlimited: 제한 없음
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from rise_local.models.deal import (
    Deal,
    DealType,
    DiscountType,
    RedemptionFrequency,
)

# 구간 당 허용 리딤 횟수
REDEMPTIONS_PER_WINDOW = 1


def _normalize(frequency: Optional[str]) -> str:
    return (frequency or RedemptionFrequency.ONCE.value).lower()


def is_unlimited(frequency: Optional[str]) -> bool:
    return _normalize(frequency) == RedemptionFrequency.UNLIMITED.value


def window_start(
    frequency: Optional[str],
    now: datetime,
    custom_days: Optional[int] = None,
) -> Optional[datetime]:
    """
    현재 집계 구간의 시작 시각

    Returns:
        구간 시작 시각. once 와 unlimited 는 None (once 는 전체 기간을 집계)
    """
    frequency = _normalize(frequency)

    if frequency == RedemptionFrequency.WEEKLY.value:
        monday = now - timedelta(days=now.weekday())
        return monday.replace(hour=0, minute=0, second=0, microsecond=0)

    if frequency == RedemptionFrequency.MONTHLY.value:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    if frequency == RedemptionFrequency.CUSTOM.value:
        return now - timedelta(days=custom_days or 1)

    return None


def next_eligible_at(
    frequency: Optional[str],
    last_redeemed_at: Optional[datetime],
    custom_days: Optional[int] = None,
) -> Optional[datetime]:
    """
    마지막 리딤 이후 다시 리딤 가능한 시각

    Returns:
        다음 구간 시작 시각. once / unlimited 이거나 이력이 없으면 None
    """
    if last_redeemed_at is None:
        return None

    frequency = _normalize(frequency)

    if frequency == RedemptionFrequency.WEEKLY.value:
        start = window_start(frequency, last_redeemed_at)
        return start + timedelta(days=7)

    if frequency == RedemptionFrequency.MONTHLY.value:
        start = window_start(frequency, last_redeemed_at)
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)

    if frequency == RedemptionFrequency.CUSTOM.value:
        return last_redeemed_at + timedelta(days=custom_days or 1)

    return None


def frequency_label(
    frequency: Optional[str], custom_days: Optional[int] = None
) -> Optional[str]:
    """
    딜 카드용 빈도 라벨

    Example:
        >>> frequency_label("weekly")
        '1x/week'
        >>> frequency_label("custom", 14)
        '1x/14d'
    """
    frequency = _normalize(frequency)
    if frequency == RedemptionFrequency.ONCE.value:
        return "1x only"
    if frequency == RedemptionFrequency.WEEKLY.value:
        return "1x/week"
    if frequency == RedemptionFrequency.MONTHLY.value:
        return "1x/month"
    if frequency == RedemptionFrequency.CUSTOM.value and custom_days:
        return f"1x/{custom_days}d"
    return None


def _format_amount(value: Decimal) -> str:
    """$5 / $5.50 형태의 금액 문자열"""
    quantized = value.quantize(Decimal("0.01"))
    if quantized == quantized.to_integral_value():
        return f"${int(quantized)}"
    return f"${quantized}"


def savings_label(deal: Deal) -> Optional[str]:
    """
    딜 카드용 할인 라벨

    Example:
        PERCENT 20 → "Save 20%", FIXED 5 → "Save $5", 할인 없는 BOGO → "Buy 1, Get 1"
    """
    if deal.discount_type and deal.discount_value is not None:
        value = Decimal(str(deal.discount_value))
        if deal.discount_type == DiscountType.PERCENT.value:
            percent = value.normalize()
            if percent == percent.to_integral_value():
                percent = percent.quantize(Decimal("1"))
            return f"Save {percent}%"
        if deal.discount_type == DiscountType.FIXED.value:
            return f"Save {_format_amount(value)}"

    if deal.deal_type == DealType.BOGO.value:
        return "Buy 1, Get 1"

    return None
