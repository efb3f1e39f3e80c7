from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Final, Literal, Protocol, TextIO, runtime_checkable

from .request_context import request_id_var

_LOGGER_NAME: Final[str] = "stylegate"
_INT_FIELDS: Final[frozenset[str]] = frozenset(
    {"latency_ms", "violations", "files", "errors", "line", "workers"}
)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        rid = request_id_var.get()
        payload: dict[str, object] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if rid:
            payload["request_id"] = rid
        extra = _parse_evt_fields(record.getMessage())
        if extra:
            if "event" in extra:
                payload["message"] = str(extra.pop("event"))
            for k, v in extra.items():
                payload[k] = v
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class _ConsoleFormatter(logging.Formatter):
    """Colorized formatter for interactive terminals.

    Renders a level tag, the event token in bold, and key=value pairs with
    colored keys. Violation counts above zero are shown in red.
    """

    _RESET = "\x1b[0m"
    _BOLD = "\x1b[1m"
    _DIM = "\x1b[2m"
    _FG_GRAY = "\x1b[90m"
    _FG_RED = "\x1b[91m"
    _FG_GREEN = "\x1b[92m"
    _FG_YELLOW = "\x1b[93m"
    _FG_BLUE_BRIGHT = "\x1b[94m"
    _FG_MAGENTA = "\x1b[95m"
    _FG_CYAN = "\x1b[36m"
    _FG_WHITE = "\x1b[97m"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(UTC).strftime("%H:%M:%S")
        lvl_tag = self._level_tag(record.levelno)

        rid = request_id_var.get()
        rid_part = f" {self._DIM}{self._FG_GRAY}rid={rid}{self._RESET}" if rid else ""

        event, kv_pairs, tail = self._split_message(record.getMessage())

        parts: list[str] = [f"{self._DIM}[{ts}]{self._RESET}", lvl_tag]
        if record.name and record.name != _LOGGER_NAME:
            parts.append(f"{self._DIM}{self._FG_GRAY}{record.name}{self._RESET}")
        if event:
            parts.append(f"{self._BOLD}{self._FG_BLUE_BRIGHT}{event}{self._RESET}")
        for k, v in kv_pairs:
            parts.append(f"{self._DIM}{self._FG_CYAN}{k}{self._RESET}={self._color_value(k, v)}")
        if tail:
            parts.append(tail)
        if record.exc_info:
            exc = self.formatException(record.exc_info)
            parts.append(f"\n{self._FG_RED}{exc}{self._RESET}")
        return " ".join(parts) + rid_part

    def _level_tag(self, level: int) -> str:
        if level >= logging.CRITICAL:
            c, name = self._FG_MAGENTA, "CRIT"
        elif level >= logging.ERROR:
            c, name = self._FG_RED, "ERROR"
        elif level >= logging.WARNING:
            c, name = self._FG_YELLOW, "WARN"
        elif level >= logging.INFO:
            c, name = self._FG_CYAN, "INFO"
        else:
            c, name = self._FG_GRAY, "DEBUG"
        return f"{self._BOLD}{c}[{name}]{self._RESET}"

    def _split_message(self, msg: str) -> tuple[str | None, list[tuple[str, str]], str | None]:
        if msg.startswith("EVT "):
            extra = _parse_evt_fields(msg)
            evt_name = str(extra.pop("event")) if "event" in extra else "event"
            return evt_name, [(k, str(v)) for k, v in extra.items()], None
        toks = msg.split()
        if not toks:
            return None, [], None

        event: str | None = None
        rest = toks
        if "=" not in toks[0]:
            event = toks[0]
            rest = toks[1:]

        kv: list[tuple[str, str]] = []
        tail_parts: list[str] = []
        for t in rest:
            k, sep, v = t.partition("=")
            if sep and k.strip():
                kv.append((k.strip(), v))
            else:
                tail_parts.append(t)
        return event, kv, (" ".join(tail_parts) if tail_parts else None)

    def _color_value(self, key: str, v: str) -> str:
        ks = key.lower()
        vs = v.strip()
        if ks.endswith("_ms") or ks.endswith("_s"):
            return f"{self._FG_MAGENTA}{vs}{self._RESET}"
        if ks in {"violations", "errors"} and vs.isdigit():
            color = self._FG_RED if int(vs) > 0 else self._FG_GREEN
            return f"{color}{vs}{self._RESET}"
        if vs.lower() in {"true", "false"}:
            return f"{self._FG_CYAN}{vs}{self._RESET}"
        if vs.isdigit():
            return f"{self._FG_GREEN}{vs}{self._RESET}"
        return f"{self._FG_WHITE}{vs}{self._RESET}"


def log_event(event: str, fields: Mapping[str, object] | None = None) -> None:
    """Emit a structured `EVT` line; values must not contain spaces."""
    parts: list[str] = [f"event={event}"]
    if fields is not None:
        for key, value in fields.items():
            if isinstance(value, bool):
                parts.append(f"{key}={'true' if value else 'false'}")
            elif isinstance(value, int | str):
                parts.append(f"{key}={str(value).replace(' ', '_')}")
    get_logger().info("EVT " + " ".join(parts))


def _parse_evt_fields(msg: str) -> dict[str, object]:
    if not msg.startswith("EVT "):
        return {}
    out: dict[str, object] = {}
    for tok in msg[4:].split():
        k, sep, v = tok.partition("=")
        key = k.strip()
        if not sep or not key:
            continue
        val: object = v
        if key in _INT_FIELDS and v.isdigit():
            val = int(v)
        elif v in {"true", "false"}:
            val = v == "true"
        out[key] = val
    return out


LogStyle = Literal["json", "pretty", "auto"]


def _env_level() -> int:
    v = os.environ.get("STYLEGATE_LOG_LEVEL")
    if not v:
        return logging.WARNING
    return {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }.get(v.strip().upper(), logging.WARNING)


def init_logging(
    style: LogStyle = "auto", *, level: int | None = None, stream: TextIO | None = None
) -> logging.Logger:
    """Initialize or refresh the project logger.

    Log records go to stderr by default so that reports written to stdout stay
    parseable. Re-binds any existing StreamHandler to the current stream, which
    keeps pytest's capture fixtures working across repeated calls.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    lvl = level if level is not None else _env_level()
    logger.setLevel(lvl)
    logger.propagate = _env_truthy("STYLEGATE_LOG_PROPAGATE")

    out_stream = stream if stream is not None else sys.stderr
    for h in list(logger.handlers):
        if isinstance(h, logging.StreamHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream=out_stream)
    handler.setFormatter(_choose_formatter(style, out_stream))
    handler.setLevel(lvl)
    logger.addHandler(handler)
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _env_truthy(name: str) -> bool:
    v = os.environ.get(name)
    if not v:
        return False
    return v.strip().lower() in {"1", "true", "yes", "on", "y"}


@runtime_checkable
class _HasIsatty(Protocol):
    def isatty(self) -> bool: ...


def _choose_formatter(style: LogStyle = "auto", stream: object = None) -> logging.Formatter:
    if style == "json":
        return _JsonFormatter()
    if style == "pretty":
        return _ConsoleFormatter()

    # Auto: honor env, then TTY
    if _env_truthy("STYLEGATE_LOG_JSON"):
        return _JsonFormatter()
    if _env_truthy("STYLEGATE_LOG_PRETTY"):
        return _ConsoleFormatter()
    out_stream = stream if stream is not None else sys.stderr
    if isinstance(out_stream, _HasIsatty) and bool(out_stream.isatty()):
        return _ConsoleFormatter()
    return _JsonFormatter()
