"""Shared pytest fixtures for all tests."""

from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

from drive.client import DriveClient
from drive.config import Config

UPLOAD_HOST = 'upload.example.com'

Responder = Callable[[httpx.Request], Union[httpx.Response, dict]]


class FakeDrive:
    """
    In-memory stand-in for the drive API, served through httpx.MockTransport.

    API endpoints are routed by URL path; requests to UPLOAD_HOST are
    recorded as part uploads.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Responder] = {}
        self.part_uploads: List[Tuple[str, bytes, str]] = []
        self.part_status = 200
        self.token_refreshes = 0
        self.token_status = 200
        self.route('/v2/user/get', lambda request: {'default_drive_id': 'drive-1'})

    def route(self, path: str, responder: Responder) -> None:
        self.routes[path] = responder

    @staticmethod
    def part_url(number: int) -> str:
        return f"https://{UPLOAD_HOST}/part/{number}?signature=abc"

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path and r.url.host != UPLOAD_HOST]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == UPLOAD_HOST:
            body = request.read()
            self.part_uploads.append((str(request.url), body, request.headers.get('Content-Length')))
            return httpx.Response(self.part_status)

        if request.url.path == '/v2/account/token':
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={'code': 'InvalidParameter.RefreshToken'})
            self.token_refreshes += 1
            return httpx.Response(200, json={
                'access_token': f'access-{self.token_refreshes}',
                'refresh_token': f'refresh-{self.token_refreshes}',
                'expires_in': 7200,
            })

        responder = self.routes.get(request.url.path)
        if responder is None:
            return httpx.Response(404, json={'code': 'NotFound.File', 'message': 'not found'})
        result = responder(request)
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .alidrive directory
    """
    config_dir = tmp_path / '.alidrive'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, monkeypatch):
    """
    Create temporary config instance with a small part size.

    Returns:
        Config instance with temp config file
    """
    monkeypatch.delenv('ALIDRIVE_REFRESH_TOKEN', raising=False)
    monkeypatch.delenv('ALIDRIVE_TIMEOUT', raising=False)
    config = Config(temp_config_dir / 'config.json')
    config.data['max_part_size'] = 4
    config.set_refresh_token('refresh-0')
    return config


@pytest.fixture
def fake_drive():
    return FakeDrive()


@pytest.fixture
def drive_client(temp_config, fake_drive):
    """
    DriveClient wired to the fake backend with a valid access token.
    """
    session = httpx.Client(transport=httpx.MockTransport(fake_drive.handler))
    client = DriveClient(temp_config, session=session)
    client.credentials.set_access_token('access-0', 7200)
    client.drive_id = 'drive-1'
    yield client
    client.close()


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Returns:
        Path to a 10-byte binary file
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(b'0123456789')
    return file_path
