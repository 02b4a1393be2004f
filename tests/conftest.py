"""Shared fixtures for the proxy test suite."""

import pytest

from core.config import ExcludeRoutes, ResolvedConfig
from core.request_types import ProxyResponseSnapshot
from tests.helpers import RecordingLogger, make_config, upstream_response


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def config() -> ResolvedConfig:
    return make_config(exclusion=ExcludeRoutes(("/-/MEDIA", "/API/")))


@pytest.fixture
def proxy_response() -> ProxyResponseSnapshot:
    return ProxyResponseSnapshot.from_response(
        upstream_response(200, headers=[("content-type", "application/json")])
    )
