"""
证书有效期计算。
所有时间均为带时区的 UTC 时间；函数均为纯函数，可通过 now 参数注入当前时间。
"""

from datetime import datetime, timedelta, timezone
from enum import Enum


class FallbackPolicy(str, Enum):
    """请求的到期时间不在未来时采用的回退策略。"""

    END_OF_DAY = "end_of_day"
    CENTURY = "century"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # 无时区信息的时间视为 UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def end_of_day(moment: datetime) -> datetime:
    """返回 moment 所在 UTC 日的 23:59:59。"""
    moment = as_utc(moment)
    return moment.replace(hour=23, minute=59, second=59, microsecond=0)


def add_years_end_of_day(moment: datetime, years: int) -> datetime:
    """
    返回 moment 的年份加 years 后同月同日的 23:59:59 UTC。
    2 月 29 日在非闰年落到 2 月 28 日。
    """
    moment = end_of_day(moment)
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, day=28)


def cert_not_before(skew_days: int, now: datetime | None = None) -> datetime:
    """
    计算证书生效时间：当前时间减去 skew_days 天，用于容忍签发方与校验方的时钟偏差。
    """
    current = as_utc(now) if now is not None else _utcnow()
    return current - timedelta(days=skew_days)


def cert_not_after(
    requested: datetime | None,
    policy: FallbackPolicy,
    now: datetime | None = None,
    not_before: datetime | None = None,
    years: int = 100,
) -> datetime:
    """
    计算证书到期时间。
    :param requested: 调用方请求的到期时间，为 None 时直接使用回退策略。
    :param policy: 回退策略。END_OF_DAY 为当日结束；CENTURY 为 not_before（缺省为 now）加 years 年。
    :param now: 当前时间，默认取系统 UTC 时间。
    :param not_before: CENTURY 策略的起点。
    :param years: CENTURY 策略增加的年数。
    :return: 到期时间（UTC）。
    """
    current = as_utc(now) if now is not None else _utcnow()
    if requested is not None:
        requested = as_utc(requested)
        if requested > current:
            return requested

    if policy == FallbackPolicy.CENTURY:
        anchor = as_utc(not_before) if not_before is not None else current
        return add_years_end_of_day(anchor, years)
    return end_of_day(current)
