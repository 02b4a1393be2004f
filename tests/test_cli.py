"""Tests for the command line entry point."""

import pytest

import cli
from core.config import AppSettings, Config, ProxySettings


@pytest.fixture
def run(monkeypatch, capsys):
    def _run(*args, config=None):
        monkeypatch.setattr(cli, "load_config", lambda: config or Config())
        monkeypatch.setattr("sys.argv", ["layout-render-proxy", *args])
        cli.main()
        return capsys.readouterr().out

    return _run


def test_config_location(run):
    assert "config.json" in run("--config")


def test_help(run):
    assert "--check" in run("--help")


def test_check_valid_config(run):
    config = Config(proxy=ProxySettings(api_host="http://cms.local", api_key="0123456789abcdef"))

    out = run("--check", config=config)

    assert "Configuration OK" in out
    assert "http://cms.local" in out
    assert "0123456789abcdef" not in out


def test_check_invalid_config(run):
    config = Config(
        proxy=ProxySettings(
            path_rewrite_exclude_routes=["/-/media"],
            path_rewrite_exclude_predicate=lambda url: False,
        )
    )

    with pytest.raises(SystemExit) as exc_info:
        run("--check", config=config)

    assert exc_info.value.code == 1


def test_start_without_renderer_exits(run):
    with pytest.raises(SystemExit) as exc_info:
        run(config=Config(app=AppSettings()))

    assert exc_info.value.code == 1
