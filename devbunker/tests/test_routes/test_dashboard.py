"""
Tests for the dashboard routes.

Tests cover:
- Content grids: visibility, ownership, filters and pagination
- Bookmarks, read-later and search
- Content detail, comments and share
- Card actions (bookmark, read later, vote, request approval, delete)
- The post/research editor and tag/category requests
- JSON pickers
"""

from datetime import datetime, timezone

from devbunker.api.errors import ApiError, NotFoundError
from devbunker.models import Tag
from devbunker.models.notification import Reference
from devbunker.tests.factories import make_comment, make_content, make_saved


def _dated(day):
    return datetime(2026, 1, day, tzinfo=timezone.utc)


class TestGrids:
    """Tests for the content grids."""

    def test_requires_login(self, client, api):
        """Anonymous users should be sent to the login page."""
        response = client.get('/dashboard/explore')

        assert response.status_code == 302
        assert '/auth/login' in response.location

    def test_explore_shows_visible_content_only(self, client, api, login_as):
        """Explore should list published and approved content, not drafts."""
        login_as('consumer')
        api.list_content.return_value = [
            make_content('p1', 'Visible post'),
            make_content('d1', 'Hidden draft', status='draft'),
            make_content('r1', 'Approved research', content_type='research', status='approved'),
        ]

        response = client.get('/dashboard/explore')

        assert response.status_code == 200
        assert b'Visible post' in response.data
        assert b'Approved research' in response.data
        assert b'Hidden draft' not in response.data

    def test_cards_get_counts_for_visible_page(self, client, api, login_as):
        """Comment and vote counts should be fetched for the items on the page."""
        login_as('consumer')
        api.list_content.return_value = [make_content(f'c{n}', f'Item {n}', created_at=_dated(n)) for n in range(1, 8)]
        api.comment_counts.return_value = {'c7': 4}

        response = client.get('/dashboard/explore')

        assert api.comment_counts.call_args.args[0] == ['c7', 'c6', 'c5', 'c4', 'c3']
        assert b'Item 7' in response.data
        assert b'Item 2' not in response.data

    def test_pagination(self, client, api, login_as):
        """Page 2 should show the remaining items, newest first."""
        login_as('consumer')
        api.list_content.return_value = [make_content(f'c{n}', f'Item {n}', created_at=_dated(n)) for n in range(1, 8)]

        response = client.get('/dashboard/explore?page=2')

        assert b'Item 2' in response.data
        assert b'Item 1' in response.data
        assert b'Item 3' not in response.data
        assert b'6-7 of 7' in response.data

    def test_search_filter(self, client, api, login_as):
        """The q filter should match titles."""
        login_as('consumer')
        api.list_content.return_value = [make_content('c1', 'Flask basics'), make_content('c2', 'Rust ownership')]

        response = client.get('/dashboard/explore?q=flask')

        assert b'Flask basics' in response.data
        assert b'Rust ownership' not in response.data

    def test_explore_shared_link(self, client, api, login_as):
        """?id= should open the shared item's detail page."""
        login_as('consumer')
        api.find_content.return_value = make_content('m1', content_type='mindmap')

        response = client.get('/dashboard/explore?id=m1')

        assert response.location.endswith('/dashboard/content/mindmap/m1')

    def test_explore_shared_link_missing(self, client, api, login_as):
        """A shared link to missing content should return to explore."""
        login_as('consumer')

        response = client.get('/dashboard/explore?id=gone')

        assert response.location.endswith('/dashboard/explore')

    def test_post_drafts_require_author_role(self, client, api, login_as):
        """Consumers cannot open post drafts."""
        login_as('consumer')

        response = client.get('/dashboard/posts/drafts')

        assert response.status_code == 403

    def test_post_drafts_show_own_only(self, client, api, login_as):
        """Drafts grids should only list the user's own drafts."""
        login_as('creator', user_id='user-1')
        api.list_content.return_value = [
            make_content('d1', 'My draft', status='draft', author_id='user-1'),
            make_content('d2', 'Their draft', status='draft', author_id='user-2'),
        ]

        response = client.get('/dashboard/posts/drafts')

        assert response.status_code == 200
        assert b'My draft' in response.data
        assert b'Their draft' not in response.data
        api.list_content.assert_called_once_with('post', status='draft')

    def test_research_shows_status(self, client, api, login_as):
        """My Research should list submitted research with status boxes."""
        login_as('consumer', user_id='user-1')
        api.list_content.return_value = [
            make_content('r1', 'Pending study', content_type='research', status='pending_approval'),
            make_content('r2', 'Draft study', content_type='research', status='draft'),
        ]

        response = client.get('/dashboard/research')

        assert b'Pending study' in response.data
        assert b'Draft study' not in response.data
        assert b'badge-pending_approval' in response.data

    def test_bookmarks_grid(self, client, api, login_as):
        """Bookmarks should list only bookmarked content."""
        login_as('consumer')
        api.bookmarks.return_value = [make_saved('b1', 'c2')]
        api.list_content.return_value = [make_content('c1', 'Not saved'), make_content('c2', 'Saved one')]

        response = client.get('/dashboard/bookmarks')

        assert b'Saved one' in response.data
        assert b'Not saved' not in response.data
        assert b'Remove bookmark' in response.data

    def test_search_json(self, client, api, login_as):
        """Search should return JSON results for fetch callers."""
        login_as('consumer')
        api.search.return_value = [make_content('c1', 'Flask basics')]

        response = client.get('/dashboard/search?q=flask&tags=web&tags=api',
                              headers={'Accept': 'application/json'})

        assert response.status_code == 200
        assert response.get_json()['results'][0]['title'] == 'Flask basics'
        api.search.assert_called_once_with('flask', content_type=None, category=None, tags=['web', 'api'])

    def test_empty_search_skips_api(self, client, api, login_as):
        """An empty search should not call the API."""
        login_as('consumer')

        response = client.get('/dashboard/search')

        assert response.status_code == 200
        api.search.assert_not_called()


class TestContentDetail:
    """Tests for the content detail view, comments and share."""

    def test_detail(self, client, api, login_as):
        """The detail page should show the item, tags, references and comment tree."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1', 'Intro to Flask', content_body='Body text')
        api.content_tags.return_value = [Tag(id='t1', name='python')]
        api.references.return_value = [Reference(id='ref1', text='https://flask.palletsprojects.com')]
        api.comments.return_value = [
            make_comment('k1', 'First!', minute=1),
            make_comment('k2', 'A reply', parent_id='k1', minute=2),
        ]
        api.votes.return_value = {'likes': 3, 'dislikes': 1}

        response = client.get('/dashboard/content/post/c1')

        assert response.status_code == 200
        assert b'Body text' in response.data
        assert b'python' in response.data
        assert b'Comments (2)' in response.data
        assert b'A reply' in response.data
        api.get_content.assert_called_once_with('post', 'c1')

    def test_reply_form_only_for_selected_comment(self, client, api, login_as):
        """?reply_to should open the reply form under that comment."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1')
        api.comments.return_value = [make_comment('k1', 'First!')]

        without = client.get('/dashboard/content/post/c1')
        with_reply = client.get('/dashboard/content/post/c1?reply_to=k1')

        assert b'reply-form' not in without.data
        assert b'reply-form' in with_reply.data

    def test_mindmap_detail_renders_svg(self, client, api, login_as):
        """Mindmaps should render their diagram as SVG."""
        login_as('consumer')
        api.get_content.return_value = make_content('m1', 'Map', content_type='mindmap')

        response = client.get('/dashboard/content/mindmap/m1')

        assert b'<svg' in response.data
        assert b'Central Node' in response.data

    def test_mindmap_detail_with_bad_stored_color(self, client, api, login_as):
        """A stored node color that is not a string should render with the default color."""
        login_as('consumer')
        stored = {'nodes': [{'id': '1', 'data': {'label': 'Hub', 'color': 5}}], 'edges': []}
        api.get_content.return_value = make_content('m1', 'Map', content_type='mindmap',
                                                    excalidraw_data=stored)

        response = client.get('/dashboard/content/mindmap/m1')

        assert response.status_code == 200
        assert b'Hub' in response.data

    def test_missing_content(self, client, api, login_as):
        """Unknown ids should return 404."""
        login_as('consumer')
        api.get_content.side_effect = NotFoundError('Post not found')

        response = client.get('/dashboard/content/post/nope')

        assert response.status_code == 404

    def test_unknown_type(self, client, api, login_as):
        """Unknown content types should return 404."""
        login_as('consumer')

        response = client.get('/dashboard/content/video/c1')

        assert response.status_code == 404
        api.get_content.assert_not_called()

    def test_other_users_draft_hidden(self, client, api, login_as):
        """Drafts should only be visible to their author and admins."""
        login_as('consumer', user_id='user-9')
        api.get_content.return_value = make_content('d1', status='draft', author_id='user-1')

        response = client.get('/dashboard/content/post/d1')

        assert response.status_code == 404

    def test_add_comment(self, client, api, login_as):
        """Posting a comment should call the API and return to the comments."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1')

        response = client.post('/dashboard/content/post/c1/comments', data={'text': '  Great post  '})

        assert response.status_code == 302
        assert response.location.endswith('/dashboard/content/post/c1#comments')
        api.add_comment.assert_called_once_with('c1', 'Great post', None)

    def test_empty_comment_rejected(self, client, api, login_as):
        """Empty comments should not reach the API."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1')

        response = client.post('/dashboard/content/post/c1/comments', data={'text': '   '},
                               headers={'Accept': 'application/json'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Comment text is required'
        api.add_comment.assert_not_called()

    def test_reply_to_reply_rejected(self, client, api, login_as):
        """Replies can only target top-level comments."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1')
        api.comments.return_value = [make_comment('k1'), make_comment('k2', parent_id='k1')]

        client.post('/dashboard/content/post/c1/comments', data={'text': 'Deep', 'parent_id': 'k2'})

        api.add_comment.assert_not_called()

    def test_add_reply_json(self, client, api, login_as):
        """Fetch callers should get the new comment back with 201."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1')
        api.comments.return_value = [make_comment('k1')]
        api.add_comment.return_value = make_comment('k2', 'Agreed', parent_id='k1')

        response = client.post('/dashboard/content/post/c1/comments',
                               data={'text': 'Agreed', 'parent_id': 'k1'},
                               headers={'Accept': 'application/json'})

        assert response.status_code == 201
        assert response.get_json()['comment']['parent_id'] == 'k1'

    def test_share_page(self, client, api, login_as):
        """The share page should link to the explore URL on every target."""
        login_as('consumer')
        api.get_content.return_value = make_content('c1', 'Flask tips')

        response = client.get('/dashboard/content/post/c1/share')

        assert response.status_code == 200
        assert b'http://portal.test/dashboard/explore?id=c1' in response.data
        assert b'api.whatsapp.com' in response.data
        assert b'facebook.com/dialog/send' not in response.data


class TestCardActions:
    """Tests for bookmark, read later, vote, approval and delete."""

    def test_bookmark_adds(self, client, api, login_as):
        """Bookmarking unsaved content should add a bookmark."""
        login_as('consumer')

        response = client.post('/dashboard/content/c1/bookmark', headers={'Accept': 'application/json'})

        assert response.get_json() == {'message': 'Bookmarked', 'bookmarked': True}
        api.add_bookmark.assert_called_once_with('c1')

    def test_bookmark_toggles_off(self, client, api, login_as):
        """Bookmarking saved content should remove the bookmark record."""
        login_as('consumer')
        api.bookmarks.return_value = [make_saved('b7', 'c1')]

        response = client.post('/dashboard/content/c1/bookmark', data={'next': '/dashboard/bookmarks'})

        assert response.location.endswith('/dashboard/bookmarks')
        api.remove_bookmark.assert_called_once_with('b7')
        api.add_bookmark.assert_not_called()

    def test_read_later_toggle(self, client, api, login_as):
        """Read later should add or remove like bookmarks."""
        login_as('consumer')
        api.read_later.return_value = [make_saved('r5', 'c2')]

        client.post('/dashboard/content/c1/read-later')
        client.post('/dashboard/content/c2/read-later')

        api.add_read_later.assert_called_once_with('c1')
        api.remove_read_later.assert_called_once_with('r5')

    def test_unsafe_next_ignored(self, client, api, login_as):
        """External next targets should fall back to explore."""
        login_as('consumer')

        response = client.post('/dashboard/content/c1/bookmark', data={'next': '//evil.example.com'})

        assert response.location.endswith('/dashboard/explore')

    def test_vote(self, client, api, login_as):
        """Voting should return the API message and fresh counts."""
        login_as('consumer')
        api.vote.return_value = 'Vote recorded'
        api.votes.return_value = {'likes': 5, 'dislikes': 0}

        response = client.post('/dashboard/content/c1/vote', json={'vote_type': 'like'})

        assert response.get_json() == {'message': 'Vote recorded', 'likes': 5, 'dislikes': 0}
        api.vote.assert_called_once_with('c1', 'like')

    def test_invalid_vote(self, client, api, login_as):
        """Invalid vote types should return 400."""
        login_as('consumer')
        api.vote.side_effect = ValueError('Invalid vote type: love')

        response = client.post('/dashboard/content/c1/vote', json={'vote_type': 'love'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid vote type: love'

    def test_request_approval_error(self, client, api, login_as):
        """API failures should be reported with their status."""
        login_as('consumer')
        api.request_approval.side_effect = ApiError('Only drafts can be submitted', 400)

        response = client.post('/dashboard/content/r1/request-approval', json={})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Only drafts can be submitted'}

    def test_delete_confirm_page(self, client, api, login_as):
        """GET delete should show a confirmation page."""
        login_as('creator', user_id='user-1')
        api.get_content.return_value = make_content('c1', 'Doomed post')

        response = client.get('/dashboard/content/post/c1/delete')

        assert response.status_code == 200
        assert b'Doomed post' in response.data
        api.delete_content.assert_not_called()

    def test_delete_confirm_ignores_unsafe_next(self, client, api, login_as):
        """The cancel link should only use same-site next targets."""
        login_as('creator', user_id='user-1')
        api.get_content.return_value = make_content('c1')

        response = client.get('/dashboard/content/post/c1/delete?next=javascript:alert(document.cookie)')

        assert response.status_code == 200
        assert b'javascript:' not in response.data
        assert b'href="/dashboard/content/post/c1"' in response.data

    def test_delete_confirm_keeps_safe_next(self, client, api, login_as):
        """A same-site next target should become the cancel link."""
        login_as('creator', user_id='user-1')
        api.get_content.return_value = make_content('c1')

        response = client.get('/dashboard/content/post/c1/delete?next=/dashboard/posts')

        assert b'href="/dashboard/posts"' in response.data

    def test_delete_removes_bookmark(self, client, api, login_as):
        """Deleting should also drop the user's bookmark of the item."""
        login_as('creator', user_id='user-1')
        api.get_content.return_value = make_content('c1')
        api.bookmarks.return_value = [make_saved('b1', 'c1')]

        response = client.post('/dashboard/content/post/c1/delete')

        assert response.location.endswith('/dashboard/posts')
        api.delete_content.assert_called_once_with('post', 'c1')
        api.remove_bookmark.assert_called_once_with('b1')

    def test_delete_draft_returns_to_drafts(self, client, api, login_as):
        """Deleting a draft should return to the drafts grid."""
        login_as('creator', user_id='user-1')
        api.get_content.return_value = make_content('m1', content_type='mindmap', status='draft')

        response = client.post('/dashboard/content/mindmap/m1/delete')

        assert response.location.endswith('/dashboard/mindmaps/drafts')

    def test_delete_forbidden_for_others(self, client, api, login_as):
        """Only the author or an admin can delete."""
        login_as('creator', user_id='user-2')
        api.get_content.return_value = make_content('c1', author_id='user-1')

        response = client.post('/dashboard/content/post/c1/delete')

        assert response.status_code == 403
        api.delete_content.assert_not_called()

    def test_admin_can_delete_any(self, client, api, login_as):
        """Admins can delete other users' content."""
        login_as('admin', user_id='admin-1')
        api.get_content.return_value = make_content('c1', author_id='user-1')

        client.post('/dashboard/content/post/c1/delete')

        api.delete_content.assert_called_once_with('post', 'c1')


class TestEditor:
    """Tests for creating and editing posts and research."""

    def test_consumer_cannot_create_post(self, client, api, login_as):
        """Consumers cannot open the post editor."""
        login_as('consumer')

        response = client.get('/dashboard/posts/new')

        assert response.status_code == 403

    def test_editor_page(self, client, api, login_as):
        """The editor should list categories, tags and reference suggestions."""
        login_as('creator')
        api.categories.return_value = [Tag(id='cat1', name='Backend')]
        api.tags.return_value = [Tag(id='t1', name='flask')]
        api.reference_texts.return_value = ['RFC 7231']

        response = client.get('/dashboard/posts/new')

        assert response.status_code == 200
        assert b'Backend' in response.data
        assert b'RFC 7231' in response.data

    def test_create_post(self, client, api, login_as):
        """Publishing a post should create it with tags and references."""
        login_as('creator')
        api.create_content.return_value = make_content('new1')

        response = client.post('/dashboard/posts/new', data={
            'title': 'Hello',
            'content_body': 'World',
            'category_id': 'cat1',
            'tag_ids': ['t1', 't2'],
            'references': 'https://a.example\n\nhttps://b.example\nhttps://a.example',
            'action': 'publish',
        })

        assert response.location.endswith('/dashboard/posts')
        api.create_content.assert_called_once_with('post', {
            'title': 'Hello',
            'content_body': 'World',
            'description': '',
            'category_id': 'cat1',
            'status': 'published',
            'tag_ids': ['t1', 't2'],
        })
        assert [c.args for c in api.add_reference.call_args_list] == [
            ('new1', 'https://a.example'),
            ('new1', 'https://b.example'),
        ]

    def test_title_required(self, client, api, login_as):
        """A post without a title should not be saved."""
        login_as('creator')

        response = client.post('/dashboard/posts/new', data={'title': '  ', 'action': 'publish'})

        assert response.status_code == 400
        assert b'Title is required' in response.data
        api.create_content.assert_not_called()

    def test_save_draft(self, client, api, login_as):
        """Saving as draft should go to the drafts grid."""
        login_as('creator')
        api.create_content.return_value = make_content('new1', status='draft')

        response = client.post('/dashboard/posts/new', data={'title': 'Later', 'action': 'draft'})

        assert response.location.endswith('/dashboard/posts/drafts')
        assert api.create_content.call_args.args[1]['status'] == 'draft'

    def test_research_goes_to_approval(self, client, api, login_as):
        """Published research should be submitted for approval."""
        login_as('consumer')
        api.create_content.return_value = make_content('r1', content_type='research')

        response = client.post('/dashboard/research/new', data={'title': 'Study', 'action': 'publish'})

        assert response.location.endswith('/dashboard/research')
        assert api.create_content.call_args.args[0] == 'research'
        assert api.create_content.call_args.args[1]['status'] == 'pending_approval'

    def test_edit_syncs_tags(self, client, api, login_as):
        """Editing should add new tags and remove deselected ones."""
        login_as('creator', user_id='user-1')
        item = make_content('c1', 'Old title')
        api.get_content.return_value = item
        api.update_content.return_value = item
        api.content_tags.return_value = [Tag(id='t1', name='a'), Tag(id='t2', name='b')]

        response = client.post('/dashboard/posts/c1/edit', data={
            'title': 'New title',
            'tag_ids': ['t2', 't3'],
            'action': 'publish',
        })

        assert response.status_code == 302
        assert api.update_content.call_args.args[:2] == ('post', 'c1')
        api.add_content_tag.assert_called_once_with('c1', 't3')
        api.remove_content_tag.assert_called_once_with('c1', 't1')

    def test_edit_forbidden_for_others(self, client, api, login_as):
        """Creators cannot edit other users' posts."""
        login_as('creator', user_id='user-2')
        api.get_content.return_value = make_content('c1', author_id='user-1')

        response = client.get('/dashboard/posts/c1/edit')

        assert response.status_code == 403


class TestRequestsAndPickers:
    """Tests for tag/category requests and JSON pickers."""

    def test_request_tag(self, client, api, login_as):
        """Requesting a tag should submit it for approval."""
        login_as('consumer')

        response = client.post('/dashboard/requests/tag', data={'name': 'graphql', 'description': 'Query language'})

        assert response.status_code == 302
        api.request_tag.assert_called_once_with('graphql', 'Query language')

    def test_request_category_name_required(self, client, api, login_as):
        """A request without a name should be rejected."""
        login_as('consumer')

        response = client.post('/dashboard/requests/category', data={'name': ''})

        assert response.status_code == 400
        api.request_category.assert_not_called()

    def test_unknown_request_kind(self, client, api, login_as):
        """Only tag and category requests exist."""
        login_as('consumer')

        assert client.get('/dashboard/requests/widget').status_code == 404

    def test_tag_picker(self, client, api, login_as):
        """The tag picker should page through matching tags."""
        login_as('creator')
        api.search_tags.return_value = ([Tag(id='t1', name='python')], True)

        response = client.get('/dashboard/pickers/tags?q=py&page=2')

        assert response.get_json() == {'items': [{'id': 't1', 'name': 'python'}], 'hasMore': True}
        api.search_tags.assert_called_once_with('py', page=2)

    def test_reference_picker(self, client, api, login_as):
        """The reference picker should return reference texts."""
        login_as('creator')
        api.search_references.return_value = (['RFC 7231'], False)

        response = client.get('/dashboard/pickers/references?q=rfc&page=x')

        assert response.get_json() == {'items': ['RFC 7231'], 'hasMore': False}
        api.search_references.assert_called_once_with('rfc', page=1)
