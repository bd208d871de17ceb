from unittest.mock import MagicMock

import pytest

from aws_checks.cli_parser import CliParser
from aws_checks.session import SessionManager


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_CHECKS_CONFIG", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    SessionManager.clear_sessions()
    yield
    SessionManager.clear_sessions()


@pytest.fixture
def parse():
    """Parse a sub-command line into the namespace a check receives."""

    def _parse(*argv):
        return CliParser.parse_arguments(list(argv)).namespace

    return _parse


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def session(client):
    session = MagicMock()
    session.client.return_value = client
    return session


@pytest.fixture
def paginate(client):
    """Make ``client.get_paginator(...).paginate(...)`` yield the given pages."""

    def _paginate(*pages):
        client.get_paginator.return_value.paginate.return_value = list(pages)

    return _paginate
