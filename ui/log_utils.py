"""Log file helpers and secret masking."""

import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie")

_API_KEY_PATTERN = re.compile(r"(sc_apikey=)([^&\s'\"]+)", re.IGNORECASE)


def write_cli_log(level: str, message: str, *, log_file: Path | None = None, **extra: Any) -> None:
    """Append one ``[time] LEVEL: message key=value ...`` line; secrets are masked."""
    path = log_file or CLI_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    parts = [f"[{datetime.now(UTC):%Y-%m-%d %H:%M:%S}] {level}: {message}"]
    parts.extend(f"{key}={value}" for key, value in extra.items())
    with path.open("a", encoding="utf-8") as fh:
        fh.write(redact_text(" ".join(parts)) + "\n")


def clear_logs(log_file: Path | None = None) -> None:
    path = log_file or CLI_LOG_FILE
    if path.exists():
        path.write_text("")


def redact_text(text: str) -> str:
    """Mask layout service API keys in URLs."""
    return _API_KEY_PATTERN.sub(lambda m: m.group(1) + _mask(m.group(2)), text)


def redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``headers`` with credentials and cookies masked."""
    return {
        key: _mask(str(value)) if _is_sensitive(key) else value
        for key, value in headers.items()
    }


def _is_sensitive(header: str) -> bool:
    header = header.lower()
    return "key" in header or header in SENSITIVE_HEADERS


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return f"{value[:6]}...{value[-4:]}"
