"""Unit tests for DriveClient."""

import io
import json
import zipfile

import httpx
import pytest

from drive.client import DriveClient
from drive.exceptions import (
    AlreadyExistsError,
    AuthExpiredError,
    HTTPStatusError,
    MissingFieldsError,
    NotFoundError,
    ProtocolError,
    RateLimitedError,
    RootOperationError,
    TransportError,
)
from drive.models import Node

GET = '/v2/file/get'
LIST = '/v2/file/list'


def body(request):
    return json.loads(request.content)


def node_json(file_id, name, kind='file', size=None):
    return {'file_id': file_id, 'name': name, 'type': kind, 'size': size}


def test_connect_sets_drive_id(drive_client):
    """Test that connect resolves the default drive."""
    drive_client.drive_id = ''

    assert drive_client.connect() == 'drive-1'
    assert drive_client.drive_id == 'drive-1'


def test_connect_album_drive(drive_client, fake_drive, temp_config):
    """Test album mode uses the album drive id."""
    temp_config.data['is_album'] = True
    fake_drive.route('/adrive/v1/user/albums_info', lambda r: {'data': {'drive_id': 'album-7'}})

    assert drive_client.connect() == 'album-7'


def test_first_request_refreshes_and_persists_token(temp_config, fake_drive):
    """Test a fresh client obtains an access token and saves the rotated refresh token."""
    client = DriveClient(temp_config, session=httpx.Client(transport=httpx.MockTransport(fake_drive.handler)))

    client.connect()

    assert fake_drive.token_refreshes == 1
    assert body(fake_drive.calls('/v2/account/token')[0]) == {
        'refresh_token': 'refresh-0',
        'grant_type': 'refresh_token',
    }
    assert fake_drive.calls('/v2/user/get')[0].headers['Authorization'] == 'Bearer access-1'
    assert temp_config.get_refresh_token() == 'refresh-1'
    with open(temp_config.config_path) as f:
        assert json.load(f)['refresh_token'] == 'refresh-1'


def test_unauthorized_refreshes_once_and_retries(drive_client, fake_drive):
    """Test a 401 triggers one refresh and one retry with the new token."""
    answers = iter([httpx.Response(401, json={'code': 'AccessTokenInvalid'}), node_json('f1', 'a.txt')])
    fake_drive.route(GET, lambda r: next(answers))

    node = drive_client.get('f1')

    assert node.file_id == 'f1'
    assert fake_drive.token_refreshes == 1
    calls = fake_drive.calls(GET)
    assert [c.headers['Authorization'] for c in calls] == ['Bearer access-0', 'Bearer access-1']


def test_unauthorized_twice_raises(drive_client, fake_drive):
    """Test that a second 401 surfaces AuthExpiredError without a third attempt."""
    fake_drive.route(GET, lambda r: httpx.Response(401, json={'code': 'AccessTokenInvalid'}))

    with pytest.raises(AuthExpiredError):
        drive_client.get('f1')

    assert len(fake_drive.calls(GET)) == 2
    assert fake_drive.token_refreshes == 1


def test_rejected_refresh_raises(drive_client, fake_drive):
    """Test that a refused refresh ends the call after one attempt."""
    fake_drive.route(GET, lambda r: httpx.Response(401))
    fake_drive.token_status = 400

    with pytest.raises(AuthExpiredError):
        drive_client.get('f1')

    assert len(fake_drive.calls(GET)) == 1


@pytest.mark.parametrize('status,error', [
    (404, NotFoundError),
    (409, AlreadyExistsError),
    (429, RateLimitedError),
    (500, HTTPStatusError),
    (400, HTTPStatusError),
])
def test_status_mapping(drive_client, fake_drive, status, error):
    """Test HTTP status codes map to typed errors."""
    fake_drive.route(GET, lambda r: httpx.Response(status, json={'code': 'Some.Code', 'message': 'nope'}))

    with pytest.raises(error):
        drive_client.get('f1')


def test_status_error_carries_code(drive_client, fake_drive):
    """Test the backend error code is kept on the exception."""
    fake_drive.route(GET, lambda r: httpx.Response(503, json={'code': 'ServiceUnavailable'}))

    with pytest.raises(HTTPStatusError) as exc_info:
        drive_client.get('f1')

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == 'ServiceUnavailable'


def test_malformed_response_is_protocol_error(drive_client, fake_drive):
    """Test that unparsable JSON is reported as ProtocolError."""
    fake_drive.route(GET, lambda r: httpx.Response(200, text='<html>oops</html>'))

    with pytest.raises(ProtocolError):
        drive_client.get('f1')


def test_network_failure_is_transport_error(drive_client, fake_drive):
    """Test connection failures map to TransportError."""
    def fail(request):
        raise httpx.ConnectError('connection refused', request=request)

    fake_drive.route(GET, fail)

    with pytest.raises(TransportError):
        drive_client.get('f1')


def test_requests_carry_browser_headers(drive_client, fake_drive):
    """Test referer and user agent are sent with API calls."""
    fake_drive.route(GET, lambda r: node_json('f1', 'a.txt'))

    drive_client.get('f1')

    request = fake_drive.calls(GET)[0]
    assert request.headers['Referer'] == 'https://www.aliyundrive.com/'
    assert 'Mozilla' in request.headers['User-Agent']


def test_pager_follows_markers(drive_client, fake_drive):
    """Test listing walks pages until the marker is empty."""
    pages = {
        '': {'items': [node_json('a', 'a.txt')], 'next_marker': 'm1'},
        'm1': {'items': [node_json('b', 'b.txt'), node_json('c', 'c', 'folder')], 'next_marker': ''},
    }
    fake_drive.route(LIST, lambda r: pages[body(r)['marker']])

    pager = drive_client.list('parent')
    first = pager.next_page()

    assert [n.file_id for n in first] == ['a']
    assert pager.has_next()
    assert [n.file_id for n in drive_client.list_all('parent')] == ['a', 'b', 'c']
    assert body(fake_drive.calls(LIST)[0])['parent_file_id'] == 'parent'


def test_pager_iteration(drive_client, fake_drive):
    """Test iterating a pager yields every node."""
    fake_drive.route(LIST, lambda r: {'items': [node_json('x', 'x')], 'next_marker': ''})

    assert [n.name for n in drive_client.list('root')] == ['x']


def test_about(drive_client, fake_drive):
    """Test space usage lookup."""
    fake_drive.route('/v2/databox/get_personal_info', lambda r: {
        'personal_space_info': {'used_size': 10, 'total_size': 100},
    })

    space = drive_client.about()

    assert space.used_size == 10
    assert space.total_size == 100


def test_create_folder(drive_client, fake_drive):
    """Test folder creation request."""
    fake_drive.route('/v2/file/create', lambda r: {'file_id': 'new_folder'})

    assert drive_client.create_folder('root', 'docs') == 'new_folder'
    assert body(fake_drive.calls('/v2/file/create')[0]) == {
        'drive_id': 'drive-1',
        'check_name_mode': 'refuse',
        'name': 'docs',
        'parent_file_id': 'root',
        'type': 'folder',
    }


def test_create_folder_missing_fields(drive_client, fake_drive):
    """Test empty name is refused locally."""
    with pytest.raises(MissingFieldsError):
        drive_client.create_folder('root', '')
    assert fake_drive.requests == []


@pytest.mark.parametrize('operation', [
    lambda c: c.move('root', 'dst', 'x'),
    lambda c: c.update('root', 'x'),
    lambda c: c.remove('root'),
    lambda c: c.remove(''),
])
def test_root_mutations_rejected(drive_client, fake_drive, operation):
    """Test that the root folder cannot be moved, renamed or trashed."""
    with pytest.raises(RootOperationError):
        operation(drive_client)
    assert fake_drive.requests == []


def test_move_clears_folder_cache(drive_client, fake_drive):
    """Test a move drops every cached folder."""
    drive_client.resolver.cache.put('/docs', Node(file_id='d', name='docs', type='folder'))
    fake_drive.route('/v2/file/move', lambda r: {'file_id': 'f1'})

    assert drive_client.move('f1', 'dst', 'renamed.txt') == 'f1'
    assert len(drive_client.resolver.cache) == 0
    assert body(fake_drive.calls('/v2/file/move')[0])['to_parent_file_id'] == 'dst'


def test_failed_rename_still_clears_folder_cache(drive_client, fake_drive):
    """Test the cache is dropped even when the rename fails."""
    drive_client.resolver.cache.put('/docs', Node(file_id='d', name='docs', type='folder'))
    fake_drive.route('/v2/file/update', lambda r: httpx.Response(500))

    with pytest.raises(HTTPStatusError):
        drive_client.update('d', 'papers')
    assert len(drive_client.resolver.cache) == 0


def test_remove_trashes_node(drive_client, fake_drive):
    """Test remove moves a node to the recycle bin and clears the cache."""
    drive_client.resolver.cache.put('/docs', Node(file_id='d', name='docs', type='folder'))
    fake_drive.route('/v2/recyclebin/trash', lambda r: httpx.Response(204))

    drive_client.remove('d')

    assert body(fake_drive.calls('/v2/recyclebin/trash')[0]) == {'drive_id': 'drive-1', 'file_id': 'd'}
    assert '/docs' not in drive_client.resolver.cache


def test_copy_keeps_folder_cache(drive_client, fake_drive):
    """Test a copy does not invalidate cached folders."""
    drive_client.resolver.cache.put('/docs', Node(file_id='d', name='docs', type='folder'))
    fake_drive.route('/v2/file/copy', lambda r: {'file_id': 'copy_1'})

    assert drive_client.copy('f1', 'd', 'copy.txt') == 'copy_1'
    assert '/docs' in drive_client.resolver.cache


def test_download_streams_content(drive_client, fake_drive):
    """Test download writes the file content and reports progress."""
    fake_drive.route('/v2/file/get_download_url', lambda r: {'url': 'https://cdn.example.com/blob', 'size': 11})
    fake_drive.route('/blob', lambda r: httpx.Response(200, content=b'hello world'))
    dest = io.BytesIO()
    progress = []

    written = drive_client.download('f1', dest, on_progress=lambda done, total: progress.append((done, total)))

    assert written == 11
    assert dest.getvalue() == b'hello world'
    assert progress[-1] == (11, 11)


def test_download_missing_content(drive_client, fake_drive):
    """Test a failed content request maps to a typed error."""
    fake_drive.route('/v2/file/get_download_url', lambda r: {'url': 'https://cdn.example.com/gone'})

    with pytest.raises(NotFoundError):
        drive_client.download('f1', io.BytesIO())


def test_download_live_photo_as_zip(drive_client, fake_drive):
    """Test live photo streams are bundled into a zip archive."""
    fake_drive.route('/v2/file/get_download_url', lambda r: {
        'streams_url': {
            'heic': 'https://cdn.example.com/photo.heic',
            'mov': 'https://cdn.example.com/photo.mov',
        },
    })
    fake_drive.route('/photo.heic', lambda r: httpx.Response(200, content=b'image'))
    fake_drive.route('/photo.mov', lambda r: httpx.Response(200, content=b'video'))
    dest = io.BytesIO()

    written = drive_client.download('f1', dest)

    assert written == len(dest.getvalue())
    with zipfile.ZipFile(io.BytesIO(dest.getvalue())) as archive:
        assert archive.read('output.heic') == b'image'
        assert archive.read('output.mov') == b'video'


def test_download_without_url(drive_client, fake_drive):
    """Test a download answer with no url is a protocol error."""
    fake_drive.route('/v2/file/get_download_url', lambda r: {})

    with pytest.raises(ProtocolError):
        drive_client.download('f1', io.BytesIO())


def test_create_share_link(drive_client, fake_drive):
    """Test share creation with password and expiry."""
    fake_drive.route('/v2/share_link/create', lambda r: {
        'share_id': 'share_1', 'share_pwd': body(r)['share_pwd'], 'expiration': body(r)['expiration'],
    })

    link = drive_client.create_share_link(['f1', 'f2'], pwd='abcd', expires_in=3600)

    payload = body(fake_drive.calls('/v2/share_link/create')[0])
    assert payload['file_id_list'] == ['f1', 'f2']
    assert payload['drive_id'] == 'drive-1'
    assert payload['expiration'].endswith('.999Z')
    assert link.share_id == 'share_1'
    assert link.share_pwd == 'abcd'


def test_create_share_link_without_expiry(drive_client, fake_drive):
    """Test that zero lifetime sends an empty expiration."""
    fake_drive.route('/v2/share_link/create', lambda r: {'share_id': 'share_1'})

    drive_client.create_share_link(['f1'])

    assert body(fake_drive.calls('/v2/share_link/create')[0])['expiration'] == ''


def test_list_share_links_follows_markers(drive_client, fake_drive):
    """Test share listing walks every page."""
    pages = {
        None: {'items': [{'share_id': 's1'}], 'next_marker': 'next'},
        'next': {'items': [{'share_id': 's2'}], 'next_marker': ''},
    }
    fake_drive.route('/v2/share_link/list', lambda r: pages[body(r).get('marker')])

    assert [link.share_id for link in drive_client.list_share_links()] == ['s1', 's2']


def test_share_token_and_anonymous_info(drive_client, fake_drive):
    """Test share token lookup and anonymous share info."""
    fake_drive.route('/v2/share_link/get_share_token', lambda r: {'share_token': 'tok', 'expires_in': 7200})
    fake_drive.route('/v2/share_link/get_by_anonymous', lambda r: {
        'share_id': 's1', 'expiration': '2030-01-01T00:00:00.999Z', 'creator': 'user_1',
    })

    assert drive_client.get_share_token('s1', pwd='abcd') == 'tok'
    assert body(fake_drive.calls('/v2/share_link/get_share_token')[0]) == {'share_id': 's1', 'share_pwd': 'abcd'}
    assert drive_client.get_share_link_by_anonymous('s1') == ('2030-01-01T00:00:00.999Z', 'user_1')


def test_get_and_cancel_share_link(drive_client, fake_drive):
    """Test share info lookup and cancellation."""
    fake_drive.route('/v2/share_link/get', lambda r: {'share_id': 's1', 'share_name': 'docs'})
    fake_drive.route('/v2/share_link/cancel', lambda r: {})

    assert drive_client.get_share_info('s1').share_name == 'docs'
    drive_client.cancel_share_link('s1')
    assert body(fake_drive.calls('/v2/share_link/cancel')[0]) == {'share_id': 's1'}
