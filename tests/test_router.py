"""Tests for response classification."""

import pytest

from core.config import ExcludePredicate, ExcludeRoutes, ProxyHooks
from core.exceptions import HookError
from core.router import (
    ResponseClassifier,
    ResponseStrategy,
    is_pipeable_response,
    is_transformable_layout_service_request,
)
from tests.helpers import LAYOUT_ROUTE, make_config, make_request


def _transform(data, request, proxy_response):
    return data


class TestResponseClassifier:
    """Test ResponseClassifier.classify."""

    def test_excluded_url_is_pipeable(self):
        config = make_config(exclusion=ExcludeRoutes(("/-/MEDIA",)))

        assert ResponseClassifier(config).classify("/-/media/cat.gif") is ResponseStrategy.PIPEABLE

    def test_app_route_is_rendered(self):
        config = make_config(exclusion=ExcludeRoutes(("/-/MEDIA",)))

        assert ResponseClassifier(config).classify("/about") is ResponseStrategy.RENDER_TARGET

    def test_layout_request_with_transform_is_transformable(self):
        config = make_config(
            exclusion=ExcludeRoutes(("/SITECORE/API",)),
            hooks=ProxyHooks(transform_layout_service_data=_transform),
        )

        strategy = ResponseClassifier(config).classify(f"{LAYOUT_ROUTE}?item=/")

        assert strategy is ResponseStrategy.TRANSFORMABLE_LAYOUT_DATA

    def test_layout_request_without_transform_is_pipeable_when_excluded(self):
        config = make_config(exclusion=ExcludeRoutes(("/SITECORE/API",)))

        assert ResponseClassifier(config).classify(f"{LAYOUT_ROUTE}?item=/") is ResponseStrategy.PIPEABLE

    def test_predicate_not_called_for_transformable_requests(self):
        calls = []

        def predicate(url):
            calls.append(url)
            return True

        config = make_config(
            exclusion=ExcludePredicate(predicate),
            hooks=ProxyHooks(transform_layout_service_data=_transform),
        )

        ResponseClassifier(config).classify(f"{LAYOUT_ROUTE}?item=/")

        assert calls == []

    def test_selector_picks_strategy(self):
        def selector(request, config):
            return "pipeable" if request.path.startswith("/feeds") else None

        classifier = ResponseClassifier(make_config(), selector)

        assert classifier.classify("/feeds/rss", make_request("/feeds/rss")) is ResponseStrategy.PIPEABLE
        assert classifier.classify("/about", make_request("/about")) is ResponseStrategy.RENDER_TARGET

    def test_selector_is_skipped_without_request(self):
        classifier = ResponseClassifier(make_config(), lambda request, config: "pipeable")

        assert classifier.classify("/about") is ResponseStrategy.RENDER_TARGET

    def test_unknown_selector_result_raises(self):
        classifier = ResponseClassifier(make_config(), lambda request, config: "stream")

        with pytest.raises(ValueError):
            classifier.classify("/about", make_request("/about"))

    def test_selector_error_is_wrapped(self):
        def selector(request, config):
            raise LookupError("no strategy")

        classifier = ResponseClassifier(make_config(), selector)

        with pytest.raises(HookError, match="response_strategy_selector"):
            classifier.classify("/about", make_request("/about"))


def test_layout_route_match_is_case_insensitive():
    config = make_config(
        layout_service_route="/sitecore/api",
        hooks=ProxyHooks(transform_layout_service_data=_transform),
    )

    assert is_transformable_layout_service_request("/SiteCore/api/x", config)


def test_layout_route_requires_transform_hook():
    config = make_config(layout_service_route="/sitecore/api")

    assert not is_transformable_layout_service_request("/sitecore/api/x", config)


def test_is_pipeable_response():
    config = make_config(exclusion=ExcludeRoutes(("/-/MEDIA",)))

    assert is_pipeable_response("/-/media/a.png", config)
    assert not is_pipeable_response("/about", config)


def test_nothing_is_pipeable_without_exclusion():
    assert not is_pipeable_response("/-/media/a.png", make_config())
