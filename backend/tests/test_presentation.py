"""
Tests for date grouping, search, labels and the sidebar navigation view.
"""

from datetime import datetime, timedelta, timezone

import pytest

from genie.client import Fetching, Ready
from genie.models import Thread
from genie.presentation import (
    DateBucket,
    ThreadNavigation,
    bucket_for,
    format_relative_date,
    group_threads_by_date,
    make_thread_title,
    search_threads,
)

CEST = timezone(timedelta(hours=2))
# A Wednesday morning in a UTC+2 zone
NOW = datetime(2024, 5, 15, 10, 0, tzinfo=CEST)


def at(*args, tz=CEST) -> datetime:
    return datetime(*args, tzinfo=tz)


def make_thread(thread_id: str, updated_at: datetime, title: str = None) -> Thread:
    return Thread(
        id=thread_id,
        user_id="u1",
        title=title or thread_id,
        created_at=updated_at,
        updated_at=updated_at,
    )


class TestBuckets:

    @pytest.mark.parametrize("moment,bucket", [
        (at(2024, 5, 15, 0, 0), DateBucket.TODAY),
        (at(2024, 5, 15, 8, 30), DateBucket.TODAY),
        (at(2024, 5, 15, 23, 0), DateBucket.TODAY),
        (at(2024, 5, 14, 23, 59), DateBucket.YESTERDAY),
        (at(2024, 5, 14, 0, 0), DateBucket.YESTERDAY),
        (at(2024, 5, 13, 23, 59), DateBucket.THIS_WEEK),
        (at(2024, 5, 8, 0, 0), DateBucket.THIS_WEEK),
        (at(2024, 5, 7, 23, 59), DateBucket.OLDER),
        (at(2023, 1, 1, 12, 0), DateBucket.OLDER),
    ])
    def test_local_calendar_boundaries(self, moment, bucket):
        assert bucket_for(moment, NOW) == bucket

    def test_other_timezone_is_converted(self):
        # 21:30 UTC is 23:30 local on the previous day
        assert bucket_for(at(2024, 5, 14, 21, 30, tz=timezone.utc), NOW) == DateBucket.YESTERDAY
        # 22:30 UTC is already past local midnight
        assert bucket_for(at(2024, 5, 14, 22, 30, tz=timezone.utc), NOW) == DateBucket.TODAY

    def test_naive_timestamp_is_utc(self):
        assert bucket_for(datetime(2024, 5, 14, 22, 30), NOW) == DateBucket.TODAY

    def test_group_keeps_order_and_every_bucket(self):
        threads = [
            make_thread("t1", at(2024, 5, 15, 9, 0)),
            make_thread("o1", at(2024, 4, 1, 9, 0)),
            make_thread("t2", at(2024, 5, 15, 7, 0)),
            make_thread("y1", at(2024, 5, 14, 9, 0)),
            make_thread("o2", at(2024, 3, 1, 9, 0)),
        ]

        groups = group_threads_by_date(threads, NOW)

        assert list(groups) == [DateBucket.TODAY, DateBucket.YESTERDAY, DateBucket.THIS_WEEK, DateBucket.OLDER]
        assert [t.id for t in groups[DateBucket.TODAY]] == ["t1", "t2"]
        assert [t.id for t in groups[DateBucket.YESTERDAY]] == ["y1"]
        assert groups[DateBucket.THIS_WEEK] == []
        assert [t.id for t in groups[DateBucket.OLDER]] == ["o1", "o2"]

    def test_concatenated_buckets_reproduce_input(self):
        threads = [make_thread(f"t{hours}", NOW - timedelta(hours=hours)) for hours in range(0, 24 * 40, 7)]

        groups = group_threads_by_date(threads, NOW)

        concatenated = [t for bucket in DateBucket for t in groups[bucket]]
        assert concatenated == threads
        assert all(groups[bucket_for(t.updated_at, NOW)].count(t) == 1 for t in threads)

    def test_group_empty(self):
        groups = group_threads_by_date([], NOW)
        assert all(threads == [] for threads in groups.values())
        assert len(groups) == 4


class TestSearch:

    THREADS = [
        make_thread("1", NOW, title="Trip to Paris"),
        make_thread("2", NOW, title="Grocery list"),
        make_thread("3", NOW, title="paris notes"),
    ]

    def test_case_insensitive_in_order(self):
        assert [t.id for t in search_threads(self.THREADS, "PARIS")] == ["1", "3"]

    def test_blank_term_matches_nothing(self):
        assert search_threads(self.THREADS, "") == []
        assert search_threads(self.THREADS, "   ") == []

    def test_no_match(self):
        assert search_threads(self.THREADS, "zzz") == []

    def test_term_is_trimmed(self):
        assert [t.id for t in search_threads(self.THREADS, "  grocery ")] == ["2"]


class TestRelativeDate:

    @pytest.mark.parametrize("days,label", [
        (0, "Today"),
        (1, "Yesterday"),
        (3, "3 days ago"),
        (6, "6 days ago"),
        (7, "1 week ago"),
        (20, "2 weeks ago"),
        (45, "1 month ago"),
        (90, "3 months ago"),
        (400, "1 year ago"),
        (800, "2 years ago"),
    ])
    def test_labels(self, days, label):
        assert format_relative_date(NOW - timedelta(days=days), NOW) == label

    def test_calendar_days_not_elapsed_hours(self):
        # Less than 24 hours ago, but on the previous local day
        assert format_relative_date(at(2024, 5, 14, 23, 0), at(2024, 5, 15, 0, 30)) == "Yesterday"

    def test_future_is_today(self):
        assert format_relative_date(NOW + timedelta(days=2), NOW) == "Today"


class TestThreadTitle:

    def test_short_message_kept(self):
        assert make_thread_title("Plan my trip") == "Plan my trip"

    def test_whitespace_collapsed(self):
        assert make_thread_title("  Plan \n my   trip  ") == "Plan my trip"

    def test_empty_message(self):
        assert make_thread_title("") == "New chat"
        assert make_thread_title(" \n\t ") == "New chat"

    def test_exact_limit_not_truncated(self):
        assert make_thread_title("a" * 50) == "a" * 50

    def test_long_message_truncated(self):
        assert make_thread_title("a" * 60) == "a" * 50 + "..."

    def test_custom_limit(self):
        assert make_thread_title("hello world", limit=5) == "hello..."


class StubSync:
    """Just enough of ThreadSync for the navigation view."""

    def __init__(self, threads=None, state=None):
        self._threads = list(threads or [])
        self._state = state or Ready(fetched_at=0)
        self.listeners = []

    def threads(self):
        return list(self._threads)

    def state(self):
        return self._state

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def publish(self, threads):
        self._threads = list(threads)
        for listener in list(self.listeners):
            listener("u1", list(threads))


class MutableClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def threads():
    return [
        make_thread("today", at(2024, 5, 15, 9, 0)),
        make_thread("older", at(2024, 1, 2, 9, 0)),
    ]


@pytest.fixture
def sync(threads):
    return StubSync(threads)


@pytest.fixture
def clock():
    return MutableClock(NOW)


@pytest.fixture
def routes():
    return []


@pytest.fixture
def nav(sync, clock, routes):
    return ThreadNavigation(sync, clock=clock, navigate=routes.append)


class TestThreadNavigation:

    def test_render_groups(self, nav):
        view = nav.render()

        assert view.expanded is True
        assert [(g.title, [t.id for t in g.threads]) for g in view.groups] == [
            ("Today", ["today"]),
            ("Older", ["older"]),
        ]
        assert view.empty_message is None
        assert nav.render_count == 1

    def test_ui_state_does_not_regroup(self, nav, routes):
        nav.render()
        nav.toggle()
        nav.render()
        nav.toggle()
        nav.select("older")
        view = nav.render()

        assert nav.render_count == 1
        assert view.active_thread_id == "older"
        assert routes == ["/chat/older"]

    def test_collapsed_view(self, nav):
        assert nav.toggle() is False
        view = nav.render()
        assert view.expanded is False
        assert view.groups == ()

    def test_equal_list_does_not_regroup(self, nav, sync, threads):
        nav.render()
        sync.publish([t.model_copy() for t in threads])
        nav.render()
        assert nav.render_count == 1

    def test_changed_list_regroups(self, nav, sync, threads):
        nav.render()
        sync.publish([make_thread("new", at(2024, 5, 15, 9, 30))] + threads)
        view = nav.render()

        assert nav.render_count == 2
        assert [t.id for t in view.groups[0].threads] == ["new", "today"]

    def test_bumped_timestamp_regroups(self, nav, sync, threads):
        nav.render()
        sync.publish([threads[0], threads[1].model_copy(update={"updated_at": at(2024, 5, 15, 9, 45)})])
        view = nav.render()

        assert nav.render_count == 2
        assert [g.title for g in view.groups] == ["Today"]

    def test_day_rollover_regroups(self, nav, clock):
        nav.render()
        clock.now = NOW + timedelta(days=1)
        view = nav.render()

        assert nav.render_count == 2
        assert [g.title for g in view.groups] == ["Yesterday", "Older"]

    def test_empty_message(self, clock):
        nav = ThreadNavigation(StubSync([]), clock=clock)
        assert nav.render().empty_message == "No chat threads yet"
        assert nav.render().groups == ()

    def test_no_empty_message_while_loading(self, clock):
        nav = ThreadNavigation(StubSync([], state=Fetching(token=1)), clock=clock)
        assert nav.render().empty_message is None

        revalidating = ThreadNavigation(StubSync([], state=Fetching(token=2, revalidating=True)), clock=clock)
        assert revalidating.render().empty_message == "No chat threads yet"

    def test_close_unsubscribes(self, nav, sync):
        assert len(sync.listeners) == 1
        nav.close()
        assert sync.listeners == []
