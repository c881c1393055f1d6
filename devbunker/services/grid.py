"""
Grid filtering and pagination.

Every grid page (users, tag/category requests, content, drafts,
bookmarks, read-later, notifications) fetches a full list from the API
and narrows it here: a GridQuery is parsed from the request arguments,
the matching filter_* function applies it, and paginate() slices the
result into a Page.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from devbunker.models.base import parse_datetime


PER_PAGE_ALL = 'all'
DEFAULT_PER_PAGE = 5
PER_PAGE_OPTIONS = (5, 10, 20, 50)

READ_FILTER_READ = 'read'
READ_FILTER_UNREAD = 'unread'

PerPage = Union[int, str]

# Query arguments owned by GridQuery; anything else in the URL belongs to the page
GRID_ARGS = (
    'q', 'status', 'role', 'category', 'author', 'created_from', 'created_to',
    'read', 'page', 'per_page',
)


@dataclass
class Page:
    """One page of a filtered list, with the numbers a pager needs."""

    items: List[Any]
    page: int
    per_page: PerPage
    total: int
    pages: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def prev_num(self) -> Optional[int]:
        return self.page - 1 if self.has_prev else None

    @property
    def next_num(self) -> Optional[int]:
        return self.page + 1 if self.has_next else None

    @property
    def first_index(self) -> int:
        """1-based index of the first item on the page (0 when empty)."""
        if not self.items:
            return 0
        if self.per_page == PER_PAGE_ALL:
            return 1
        return (self.page - 1) * self.per_page + 1

    @property
    def last_index(self) -> int:
        return self.first_index + len(self.items) - 1 if self.items else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'page': self.page,
            'per_page': self.per_page,
            'pages': self.pages,
        }


def paginate(items: Sequence[Any], page: int = 1, per_page: PerPage = DEFAULT_PER_PAGE) -> Page:
    """
    Slice a list into a page.

    There is always at least one page. A page number past the end is
    clamped to the last page, and per_page='all' puts every item on a
    single page.
    """
    items = list(items)
    total = len(items)

    if per_page == PER_PAGE_ALL:
        return Page(items=items, page=1, per_page=PER_PAGE_ALL, total=total, pages=1)

    per_page = max(1, int(per_page))
    pages = max(1, math.ceil(total / per_page))
    page = min(max(1, int(page)), pages)
    start = (page - 1) * per_page
    return Page(items=items[start:start + per_page], page=page, per_page=per_page,
                total=total, pages=pages)


def _parse_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_date_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Parse a date filter; a bare date as upper bound covers the whole day."""
    dt = parse_datetime(value)
    if dt is None:
        return None
    if end_of_day and len(value.strip()) == 10:
        dt = datetime.combine(dt.date(), time.max, tzinfo=dt.tzinfo)
    return dt


def _multi(args, key: str) -> List[str]:
    """Read a multi-valued argument given as repeated keys or a comma list."""
    if hasattr(args, 'getlist'):
        raw = args.getlist(key)
    else:
        raw = args.get(key) or []
        if isinstance(raw, str):
            raw = [raw]
    values = []
    for chunk in raw:
        for value in str(chunk).split(','):
            value = value.strip()
            if value and value not in values:
                values.append(value)
    return values


@dataclass
class GridQuery:
    """Filter, search and paging state for a grid, parsed from query args."""

    search: str = ''
    statuses: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    read: str = ''
    page: int = 1
    per_page: PerPage = DEFAULT_PER_PAGE

    # Raw date strings, echoed back into the filter form
    created_from_raw: str = ''
    created_to_raw: str = ''

    @classmethod
    def from_args(cls, args, default_per_page: int = DEFAULT_PER_PAGE,
                  per_page_options: Iterable[int] = PER_PAGE_OPTIONS) -> 'GridQuery':
        """
        Build a query from request.args (or any mapping).

        Unknown per_page values fall back to the default; unparseable dates
        are ignored.
        """
        per_page_raw = (args.get('per_page') or '').strip().lower()
        if per_page_raw == PER_PAGE_ALL:
            per_page: PerPage = PER_PAGE_ALL
        else:
            per_page = _parse_int(per_page_raw, default_per_page)
            if per_page not in tuple(per_page_options):
                per_page = default_per_page

        created_from_raw = (args.get('created_from') or '').strip()
        created_to_raw = (args.get('created_to') or '').strip()
        read = (args.get('read') or '').strip().lower()

        return cls(
            search=(args.get('q') or '').strip(),
            statuses=_multi(args, 'status'),
            roles=_multi(args, 'role'),
            categories=_multi(args, 'category'),
            authors=_multi(args, 'author'),
            created_from=_parse_date_bound(created_from_raw),
            created_to=_parse_date_bound(created_to_raw, end_of_day=True),
            read=read if read in (READ_FILTER_READ, READ_FILTER_UNREAD) else '',
            page=max(1, _parse_int(args.get('page'), 1)),
            per_page=per_page,
            created_from_raw=created_from_raw,
            created_to_raw=created_to_raw,
        )

    @property
    def has_filters(self) -> bool:
        return bool(
            self.search or self.statuses or self.roles or self.categories
            or self.authors or self.created_from or self.created_to or self.read
        )

    def to_args(self, **overrides) -> Dict[str, Any]:
        """
        Query arguments reproducing this state, for pager and sort links.

        Pass page=None to drop the page, which is what filter forms do so
        that a filter change always starts from page 1.
        """
        args: Dict[str, Any] = {
            'q': self.search or None,
            'status': self.statuses or None,
            'role': self.roles or None,
            'category': self.categories or None,
            'author': self.authors or None,
            'created_from': self.created_from_raw or None,
            'created_to': self.created_to_raw or None,
            'read': self.read or None,
            'page': self.page if self.page > 1 else None,
            'per_page': self.per_page if self.per_page != DEFAULT_PER_PAGE else None,
        }
        args.update(overrides)
        return {k: v for k, v in args.items() if v is not None}


# ============================================================================
# Filters
# ============================================================================

def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def _partial_match(value: Optional[str], selected: List[str]) -> bool:
    value = (value or '').lower()
    return any(choice.lower() in value for choice in selected)


def _in_date_range(value: Optional[datetime], query: GridQuery) -> bool:
    if not query.created_from and not query.created_to:
        return True
    if value is None:
        return False
    if query.created_from and value < query.created_from:
        return False
    if query.created_to and value > query.created_to:
        return False
    return True


def filter_users(users: Iterable[Any], query: GridQuery) -> List[Any]:
    """
    Filter admin-view users.

    - search: case-insensitive substring of email or id
    - statuses / roles: partial match against any selected value
    - created date range: inclusive; users without a date are dropped
    """
    needle = query.search.lower()
    result = []
    for user in users:
        if needle and not (_contains(user.email, needle) or _contains(user.id, needle)):
            continue
        if query.statuses and not _partial_match(user.status, query.statuses):
            continue
        if query.roles and not _partial_match(user.role, query.roles):
            continue
        if not _in_date_range(user.created_at, query):
            continue
        result.append(user)
    return result


def filter_requests(requests: Iterable[Any], query: GridQuery) -> List[Any]:
    """Filter tag/category requests by name or requester id, status and date."""
    needle = query.search.lower()
    result = []
    for request in requests:
        if needle and not (_contains(request.name, needle) or _contains(request.user_id, needle)):
            continue
        if query.statuses and not _partial_match(request.status, query.statuses):
            continue
        if not _in_date_range(request.created_at, query):
            continue
        result.append(request)
    return result


def filter_content(items: Iterable[Any], query: GridQuery) -> List[Any]:
    """
    Filter content items.

    - search: case-insensitive substring of title or body
    - statuses: exact match
    - categories: category name, or id for items without a name
    - authors: exact author email
    - created date range: inclusive
    """
    needle = query.search.lower()
    result = []
    for item in items:
        if needle and not (_contains(item.title, needle) or _contains(item.content_body, needle)):
            continue
        if query.statuses and item.status not in query.statuses:
            continue
        if query.categories and item.category_label not in query.categories:
            continue
        if query.authors and item.author_email not in query.authors:
            continue
        if not _in_date_range(item.created_at, query):
            continue
        result.append(item)
    return result


def filter_notifications(notifications: Iterable[Any], query: GridQuery) -> List[Any]:
    if query.read == READ_FILTER_READ:
        return [n for n in notifications if n.read]
    if query.read == READ_FILTER_UNREAD:
        return [n for n in notifications if not n.read]
    return list(notifications)


# ============================================================================
# Stats and dropdown options
# ============================================================================

def status_counts(items: Iterable[Any], attr: str = 'status',
                  keys: Optional[Iterable[str]] = None) -> Dict[str, int]:
    """
    Count items per value of an attribute, plus a 'total' entry.

    Counts come from the unfiltered list so stat boxes stay stable while
    filters change. Keys listed in 'keys' always appear, even at zero.
    """
    counts: Dict[str, int] = {key: 0 for key in keys or []}
    total = 0
    for item in items:
        value = getattr(item, attr, None)
        if isinstance(value, bool):
            value = READ_FILTER_READ if value else READ_FILTER_UNREAD
        if value is not None:
            counts[value] = counts.get(value, 0) + 1
        total += 1
    counts['total'] = total
    return counts


def unique_values(items: Iterable[Any], attr: str) -> List[str]:
    """Sorted distinct non-empty values of an attribute, for filter dropdowns."""
    return sorted({getattr(item, attr) for item in items if getattr(item, attr, None)})


def newest_first(items: Iterable[Any]) -> List[Any]:
    """Sort by created_at descending; undated items go last."""
    items = list(items)
    dated = [i for i in items if i.created_at is not None]
    undated = [i for i in items if i.created_at is None]
    return sorted(dated, key=lambda i: i.created_at, reverse=True) + undated


__all__ = [
    'PER_PAGE_ALL',
    'DEFAULT_PER_PAGE',
    'PER_PAGE_OPTIONS',
    'GRID_ARGS',
    'Page',
    'paginate',
    'GridQuery',
    'filter_users',
    'filter_requests',
    'filter_content',
    'filter_notifications',
    'status_counts',
    'unique_values',
    'newest_first',
]
