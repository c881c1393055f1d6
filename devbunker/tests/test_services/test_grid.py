"""
Tests for grid filtering and pagination.
"""

from datetime import datetime, timezone

import pytest
from werkzeug.datastructures import MultiDict

from devbunker.services.grid import (
    PER_PAGE_ALL,
    GridQuery,
    filter_content,
    filter_notifications,
    filter_requests,
    filter_users,
    newest_first,
    paginate,
    status_counts,
    unique_values,
)
from devbunker.tests.factories import make_content, make_notification, make_request, make_user


def _day(day):
    return datetime(2026, 1, day, 12, 0, tzinfo=timezone.utc)


class TestPaginate:
    """Tests for paginate()."""

    def test_first_page(self):
        """paginate should return the first slice and page counts."""
        page = paginate(list(range(12)), 1, 5)

        assert page.items == [0, 1, 2, 3, 4]
        assert page.pages == 3
        assert page.total == 12
        assert not page.has_prev
        assert page.next_num == 2

    def test_last_partial_page(self):
        """The last page should hold the remainder."""
        page = paginate(list(range(12)), 3, 5)

        assert page.items == [10, 11]
        assert page.first_index == 11
        assert page.last_index == 12
        assert not page.has_next

    def test_page_past_end_is_clamped(self):
        """A page number past the end should show the last page."""
        page = paginate(list(range(7)), 9, 5)

        assert page.page == 2
        assert page.items == [5, 6]

    def test_empty_list_has_one_page(self):
        """An empty list should still report one page."""
        page = paginate([], 3, 10)

        assert page.pages == 1
        assert page.page == 1
        assert page.first_index == 0
        assert page.last_index == 0

    def test_all_puts_everything_on_one_page(self):
        """per_page='all' should return every item."""
        page = paginate(list(range(60)), 4, PER_PAGE_ALL)

        assert len(page.items) == 60
        assert page.pages == 1
        assert page.first_index == 1


class TestGridQuery:
    """Tests for parsing grid query arguments."""

    def test_defaults(self):
        """An empty query should use page 1 and the default page size."""
        query = GridQuery.from_args(MultiDict())

        assert query.page == 1
        assert query.per_page == 5
        assert not query.has_filters

    def test_multi_values_from_repeats_and_commas(self):
        """Multi-select filters should accept repeated keys and comma lists."""
        query = GridQuery.from_args(MultiDict([
            ('status', 'active,banned'), ('status', 'banned'), ('role', 'admin'),
        ]))

        assert query.statuses == ['active', 'banned']
        assert query.roles == ['admin']
        assert query.has_filters

    @pytest.mark.parametrize('raw,expected', [
        ('20', 20),
        ('all', PER_PAGE_ALL),
        ('ALL', PER_PAGE_ALL),
        ('7', 5),
        ('abc', 5),
    ])
    def test_per_page(self, raw, expected):
        """per_page should accept listed sizes and 'all', else the default."""
        assert GridQuery.from_args(MultiDict({'per_page': raw})).per_page == expected

    def test_invalid_page_and_dates(self):
        """Bad page numbers and unparseable dates should be ignored."""
        query = GridQuery.from_args(MultiDict({'page': '-3', 'created_from': 'yesterday'}))

        assert query.page == 1
        assert query.created_from is None

    def test_date_only_upper_bound_covers_day(self):
        """A bare end date should include the whole day."""
        query = GridQuery.from_args(MultiDict({'created_to': '2026-01-15'}))

        assert query.created_to.hour == 23
        assert query.created_to.minute == 59

    def test_to_args_round_trips_filters(self):
        """to_args should rebuild the arguments and apply overrides."""
        query = GridQuery.from_args(MultiDict([
            ('q', 'flask'), ('status', 'draft'), ('page', '3'), ('per_page', '10'),
        ]))

        assert query.to_args() == {'q': 'flask', 'status': ['draft'], 'page': 3, 'per_page': 10}
        assert query.to_args(page=None) == {'q': 'flask', 'status': ['draft'], 'per_page': 10}


class TestFilters:
    """Tests for the filter_* functions."""

    def test_filter_users_search_status_role(self):
        """filter_users should combine search, partial status and role matches."""
        users = [
            make_user('u1', 'alice@example.com', 'admin', 'active'),
            make_user('u2', 'bob@example.com', 'creator', 'banned'),
            make_user('u3', 'carol@example.com', 'consumer', 'active'),
        ]

        assert [u.id for u in filter_users(users, GridQuery(search='BOB'))] == ['u2']
        assert [u.id for u in filter_users(users, GridQuery(statuses=['act']))] == ['u1', 'u3']
        assert [u.id for u in filter_users(users, GridQuery(roles=['creator', 'admin']))] == ['u1', 'u2']
        assert [u.id for u in filter_users(users, GridQuery(search='u3'))] == ['u3']

    def test_filter_users_date_range(self):
        """The created range should be inclusive and drop undated rows."""
        users = [
            make_user('u1', created_at=_day(5)),
            make_user('u2', created_at=_day(15)),
            make_user('u3', created_at=_day(25)),
        ]
        query = GridQuery.from_args(MultiDict({'created_from': '2026-01-05', 'created_to': '2026-01-15'}))

        assert [u.id for u in filter_users(users, query)] == ['u1', 'u2']

    def test_filter_requests(self):
        """filter_requests should search name or requester and filter status."""
        requests = [
            make_request('r1', 'python', status='pending', user_id='u9'),
            make_request('r2', 'rust', status='approved'),
        ]

        assert [r.id for r in filter_requests(requests, GridQuery(search='pyth'))] == ['r1']
        assert [r.id for r in filter_requests(requests, GridQuery(search='u9'))] == ['r1']
        assert [r.id for r in filter_requests(requests, GridQuery(statuses=['approved']))] == ['r2']

    def test_filter_content(self):
        """filter_content should match title or body, status, category and author."""
        items = [
            make_content('c1', 'Flask tips', status='published', category_name='Web'),
            make_content('c2', 'Notes', content_body='all about FLASK', status='draft'),
            make_content('c3', 'Rust', status='published', category_id='cat-9',
                         author_email='other@example.com'),
        ]

        assert [i.id for i in filter_content(items, GridQuery(search='flask'))] == ['c1', 'c2']
        assert [i.id for i in filter_content(items, GridQuery(statuses=['published']))] == ['c1', 'c3']
        assert [i.id for i in filter_content(items, GridQuery(categories=['cat-9']))] == ['c3']
        assert [i.id for i in filter_content(items, GridQuery(authors=['other@example.com']))] == ['c3']

    def test_filter_notifications(self):
        """filter_notifications should split read and unread."""
        items = [make_notification('n1', read=True), make_notification('n2', read=False)]

        assert [n.id for n in filter_notifications(items, GridQuery(read='unread'))] == ['n2']
        assert [n.id for n in filter_notifications(items, GridQuery(read='read'))] == ['n1']
        assert len(filter_notifications(items, GridQuery())) == 2


class TestStats:
    """Tests for stat boxes and option lists."""

    def test_status_counts_include_zero_keys(self):
        """status_counts should count values and list requested keys at zero."""
        users = [make_user('u1', status='active'), make_user('u2', status='active')]

        counts = status_counts(users, 'status', ['active', 'banned'])

        assert counts == {'active': 2, 'banned': 0, 'total': 2}

    def test_status_counts_for_read_flag(self):
        """Boolean attributes should count as read/unread."""
        items = [make_notification('n1', read=True), make_notification('n2'), make_notification('n3')]

        assert status_counts(items, 'read') == {'read': 1, 'unread': 2, 'total': 3}

    def test_unique_values(self):
        """unique_values should be sorted and skip blanks."""
        items = [
            make_content('c1', author_email='b@example.com'),
            make_content('c2', author_email='a@example.com'),
            make_content('c3', author_email=''),
            make_content('c4', author_email='b@example.com'),
        ]

        assert unique_values(items, 'author_email') == ['a@example.com', 'b@example.com']

    def test_newest_first(self):
        """newest_first should sort descending and put undated items last."""
        items = [
            make_content('old', created_at=_day(1)),
            make_content('new', created_at=_day(20)),
        ]
        undated = make_content('undated')
        undated.created_at = None

        assert [i.id for i in newest_first(items + [undated])] == ['new', 'old', 'undated']
