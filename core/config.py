"""Configuration models, loading and one-time resolution."""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, Field, ImportString, ValidationError

from core.exceptions import ConfigurationError, HookError

CONFIG_DIR = Path.home() / ".config" / "layout-render-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_MAX_RESPONSE_SIZE_BYTES = 10 * 1024 * 1024

Hook = ImportString[Callable[..., Any]]


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    keep_alive_timeout: int = 5
    dashboard: bool = False


class ProxySettings(BaseModel):
    api_host: str = "http://localhost"
    layout_service_route: str = "/sitecore/api/layout/render/jss"
    api_key: str = ""
    qs_params: str | None = None
    path_rewrite_exclude_routes: list[str] | None = None
    path_rewrite_exclude_predicate: Hook | None = None
    max_response_size_bytes: int | None = Field(default=None, gt=0)
    upstream_timeout: float = 300.0
    render_timeout: float | None = Field(default=None, gt=0)
    debug: bool = False


class HookSettings(BaseModel):
    on_error: Hook | None = None
    transform_ssr_content: Hook | None = None
    create_view_bag: Hook | None = None
    set_headers: Hook | None = None
    transform_layout_service_data: Hook | None = None


class AppSettings(BaseModel):
    renderer: Hook | None = None
    route_url_parser: Hook | None = None
    # Pipeline stage overrides
    request_path_rewriter: Hook | None = None
    response_strategy_selector: Hook | None = None
    pipeable_handler: Hook | None = None
    layout_data_handler: Hook | None = None
    render_handler: Hook | None = None


class Config(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    hooks: HookSettings = Field(default_factory=HookSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@dataclass(frozen=True)
class ExcludeRoutes:
    """Case-insensitive route-prefix exclusion list (upper-cased once)."""

    prefixes: tuple[str, ...]

    def matches(self, url: str) -> bool:
        match_route = unquote(url).upper()
        return any(prefix and match_route.startswith(prefix) for prefix in self.prefixes)


@dataclass(frozen=True)
class ExcludePredicate:
    """User predicate deciding whether a URL is proxied verbatim."""

    predicate: Callable[[str], bool]

    def matches(self, url: str) -> bool:
        try:
            return bool(self.predicate(url))
        except Exception as e:
            raise HookError("path_rewrite_exclude_predicate", e) from e


ExclusionRule = ExcludeRoutes | ExcludePredicate


@dataclass(frozen=True)
class ProxyHooks:
    on_error: Callable[..., Any] | None = None
    transform_ssr_content: Callable[..., Any] | None = None
    create_view_bag: Callable[..., Any] | None = None
    set_headers: Callable[..., Any] | None = None
    transform_layout_service_data: Callable[..., Any] | None = None


@dataclass(frozen=True)
class ResolvedConfig:
    """Normalized, read-only proxy configuration shared by all requests."""

    api_host: str
    layout_service_route: str
    api_key: str
    qs_params: str | None = None
    exclusion: ExclusionRule | None = None
    max_response_size_bytes: int = DEFAULT_MAX_RESPONSE_SIZE_BYTES
    upstream_timeout: float = 300.0
    render_timeout: float | None = None
    debug: bool = False
    hooks: ProxyHooks = field(default_factory=ProxyHooks)


def resolve_config(config: Config) -> ResolvedConfig:
    """Validate and normalize configuration once, before serving requests."""
    proxy = config.proxy
    routes = proxy.path_rewrite_exclude_routes
    predicate = proxy.path_rewrite_exclude_predicate
    if routes is not None and predicate is not None:
        raise ConfigurationError(
            "path_rewrite_exclude_predicate and path_rewrite_exclude_routes were both "
            "provided in config. Provide only one."
        )
    if not proxy.layout_service_route:
        raise ConfigurationError("proxy.layout_service_route must not be empty")

    exclusion: ExclusionRule | None = None
    if routes is not None:
        exclusion = ExcludeRoutes(tuple(route.upper() for route in routes))
    elif predicate is not None:
        exclusion = ExcludePredicate(predicate)

    hooks = config.hooks
    return ResolvedConfig(
        api_host=proxy.api_host,
        layout_service_route=proxy.layout_service_route,
        api_key=proxy.api_key,
        qs_params=proxy.qs_params or None,
        exclusion=exclusion,
        max_response_size_bytes=proxy.max_response_size_bytes or DEFAULT_MAX_RESPONSE_SIZE_BYTES,
        upstream_timeout=proxy.upstream_timeout,
        render_timeout=proxy.render_timeout,
        debug=proxy.debug,
        hooks=ProxyHooks(
            on_error=hooks.on_error,
            transform_ssr_content=hooks.transform_ssr_content,
            create_view_bag=hooks.create_view_bag,
            set_headers=hooks.set_headers,
            transform_layout_service_data=hooks.transform_layout_service_data,
        ),
    )


def load_config() -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not CONFIG_FILE.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(CONFIG_FILE.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = CONFIG_FILE.with_suffix(".json.bak")
        CONFIG_FILE.rename(backup)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return default
