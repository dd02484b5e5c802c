"""
Pure helpers for displaying threads: relative-date buckets, search and titles.
"""

from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, List

from ..models import Thread

DEFAULT_TITLE = "New chat"


class DateBucket(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    OLDER = "older"


BUCKET_TITLES = {
    DateBucket.TODAY: "Today",
    DateBucket.YESTERDAY: "Yesterday",
    DateBucket.THIS_WEEK: "This Week",
    DateBucket.OLDER: "Older",
}


def _local_now(now: datetime) -> datetime:
    # A naive "now" is local wall-clock time
    return now if now.tzinfo is not None else now.astimezone()


def _aware(value: datetime) -> datetime:
    # Naive stored timestamps are UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def bucket_for(updated_at: datetime, now: datetime) -> DateBucket:
    """
    Place a timestamp relative to the local calendar day of ``now``.

    today: since local midnight (future timestamps included)
    yesterday: the previous calendar day
    this week: the 7 days before today, minus yesterday
    older: everything before that
    """
    now = _local_now(now)
    today_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    moment = _aware(updated_at)

    if moment >= today_start:
        return DateBucket.TODAY
    if moment >= today_start - timedelta(days=1):
        return DateBucket.YESTERDAY
    if moment >= today_start - timedelta(days=7):
        return DateBucket.THIS_WEEK
    return DateBucket.OLDER


def group_threads_by_date(threads: Iterable[Thread], now: datetime) -> Dict[DateBucket, List[Thread]]:
    """
    Split threads into the four buckets.

    Every bucket key is present, in display order, and each bucket keeps the
    relative order of the input.
    """
    groups: Dict[DateBucket, List[Thread]] = {bucket: [] for bucket in DateBucket}
    for thread in threads:
        groups[bucket_for(thread.updated_at, now)].append(thread)
    return groups


def search_threads(threads: Iterable[Thread], term: str) -> List[Thread]:
    """Case-insensitive title search. A blank term matches nothing."""
    needle = term.strip().casefold()
    if not needle:
        return []
    return [thread for thread in threads if needle in thread.title.casefold()]


def format_relative_date(value: datetime, now: datetime) -> str:
    """Short label such as "Yesterday" or "3 weeks ago", by local calendar days."""
    now = _local_now(now)
    days = (now.date() - _aware(value).astimezone(now.tzinfo).date()).days

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return _plural(days // 7, "week")
    if days < 365:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def make_thread_title(message: str, limit: int = 50) -> str:
    """Title for a new thread: the first message, cut to ``limit`` characters."""
    text = " ".join(message.split())
    if not text:
        return DEFAULT_TITLE
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
