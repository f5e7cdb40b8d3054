"""Pytest configuration and fixtures for edge router tests.

Provides CloudFront Lambda@Edge event factories and a mock upstream
built on httpx.MockTransport.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any
from typing import Callable
from typing import Generator
from uuid import uuid4

import pytest

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch) -> Generator:
    """Start every test from default settings."""
    from consent_edge.config import reset_settings

    monkeypatch.delenv('CONSENT_SDK_BASE_URL', raising=False)
    monkeypatch.delenv('CONSENT_API_BASE_URL', raising=False)
    reset_settings()
    yield
    reset_settings()


# --- CloudFront Event Fixtures ---


def make_headers(**headers: str) -> dict[str, list[dict[str, str]]]:
    """Build CloudFront headers from ``Header_Name='value'`` kwargs."""
    result: dict[str, list[dict[str, str]]] = {}
    for name, value in headers.items():
        key = name.replace('_', '-')
        result[key.lower()] = [{'key': key, 'value': value}]
    return result


@pytest.fixture
def cf_request_factory() -> Callable[..., dict[str, Any]]:
    """Factory for raw CloudFront request dicts."""

    def _create(
        method: str = 'GET',
        uri: str = '/consent/sdk/loader.js',
        querystring: str = '',
        headers: dict[str, list[dict[str, str]]] | None = None,
        client_ip: str | None = '203.0.113.7',
        body: Any = None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            'method': method,
            'uri': uri,
            'querystring': querystring,
            'headers': headers if headers is not None else make_headers(
                Host='www.example.com',
                User_Agent='pytest',
            ),
        }
        if client_ip is not None:
            request['clientIp'] = client_ip
        if body is not None:
            request['body'] = body
        return request

    return _create


@pytest.fixture
def edge_event_factory(cf_request_factory) -> Callable[..., dict[str, Any]]:
    """Factory for full Lambda@Edge origin-request events."""

    def _create(**kwargs: Any) -> dict[str, Any]:
        return {
            'Records': [
                {
                    'cf': {
                        'config': {
                            'distributionId': 'EDFDVBD6EXAMPLE',
                            'eventType': 'origin-request',
                            'requestId': str(uuid4()),
                        },
                        'request': cf_request_factory(**kwargs),
                    },
                },
            ],
        }

    return _create


@pytest.fixture
def lambda_context(mocker):
    """Minimal Lambda context object."""
    context = mocker.Mock()
    context.aws_request_id = str(uuid4())
    return context
