"""Presentation module - date grouping, search and the sidebar navigation view."""

from .grouping import (
    DateBucket,
    BUCKET_TITLES,
    bucket_for,
    group_threads_by_date,
    search_threads,
    format_relative_date,
    make_thread_title,
)
from .navigation import ThreadNavigation, NavGroup, NavigationView, thread_fingerprint

__all__ = [
    'DateBucket', 'BUCKET_TITLES', 'bucket_for', 'group_threads_by_date', 'search_threads',
    'format_relative_date', 'make_thread_title',
    'ThreadNavigation', 'NavGroup', 'NavigationView', 'thread_fingerprint'
]
