"""Pytest fixtures for Schwab client tests.

Requests are sent through a mocked requests.Session so tests can inspect
the method, URL, query parameters and body of every call.
"""

import json
from unittest import mock

import pytest
import requests

from src.oauth.coordinator import OAuthCoordinator
from src.schwab.client import SchwabClient


def _make_response(status_code=200, payload=None, text=None, headers=None):
    """Build a mock requests.Response."""
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response.text = text
    response.content = text.encode()
    response.json.return_value = payload
    response.headers = headers or {}
    return response


@pytest.fixture
def make_response():
    """Factory for mock responses."""
    return _make_response


@pytest.fixture
def mock_oauth():
    """Create mock OAuth coordinator."""
    oauth = mock.Mock(spec=OAuthCoordinator)
    oauth.get_authorization_header.side_effect = lambda: {
        "Authorization": "Bearer test_token_123"
    }
    return oauth


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(mock_oauth, session):
    """Create Schwab client with mocked OAuth and session."""
    return SchwabClient(oauth_coordinator=mock_oauth, session=session)
