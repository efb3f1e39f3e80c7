from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

from .errors import ConfigurationError
from .rules import RULE_CODES
from .rules.imports import ImportClassifier
from .rules.line_length import DEFAULT_MAX_LINE_LENGTH

_DEFAULT_CONFIG_PATH: Final[Path] = Path("stylegate.toml")
_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on", "y"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "no", "off", "n"})


@dataclass(frozen=True)
class CheckConfig:
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    indent_size: int = 4
    select: tuple[str, ...] = RULE_CODES
    # 0 lets the executor pick its default pool size
    workers: int = 0
    exit_nonzero_on_violation: bool = True


@dataclass(frozen=True)
class ImportsConfig:
    known_stdlib: frozenset[str] = frozenset()
    known_third_party: frozenset[str] = frozenset()
    known_local: frozenset[str] = frozenset()

    def classifier(self) -> ImportClassifier:
        return ImportClassifier(
            known_stdlib=self.known_stdlib,
            known_third_party=self.known_third_party,
            known_local=self.known_local,
        )


@dataclass(frozen=True)
class ServerConfig:
    max_source_kb: int = 512


@dataclass(frozen=True)
class SecurityConfig:
    # Empty string disables the API key check
    api_key: str = ""


@dataclass(frozen=True)
class Settings:
    check: CheckConfig
    imports: ImportsConfig
    server: ServerConfig
    security: SecurityConfig

    @classmethod
    def default(cls) -> Settings:
        return cls(
            check=CheckConfig(),
            imports=ImportsConfig(),
            server=ServerConfig(),
            security=SecurityConfig(),
        )

    @staticmethod
    def _toml_path() -> Path:
        env_val = os.getenv("STYLEGATE_CONFIG")
        if env_val:
            return Path(env_val)
        return _DEFAULT_CONFIG_PATH

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from the environment, then override from TOML.

        An explicit `path` must exist; the implicit one (`STYLEGATE_CONFIG` or
        `stylegate.toml`) is optional. Every invalid value raises
        ConfigurationError.
        """
        base = cls(
            check=_load_check_from_env(),
            imports=_load_imports_from_env(),
            server=_load_server_from_env(),
            security=_load_security_from_env(),
        )
        cfg_path = path if path is not None else cls._toml_path()
        if not cfg_path.exists():
            if path is not None:
                raise ConfigurationError(f"config file not found: {cfg_path}")
            return base
        try:
            raw: object = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"failed to read config TOML: {cfg_path}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"invalid TOML config: {cfg_path}: {exc}") from exc
        return cls(
            check=_merge_check(base.check, _toml_table(raw, "check")),
            imports=_merge_imports(base.imports, _toml_table(raw, "imports")),
            server=_merge_server(base.server, _toml_table(raw, "server")),
            security=_merge_security(base.security, _toml_table(raw, "security")),
        )


def apply_overrides(
    cfg: CheckConfig,
    *,
    max_line_length: object = None,
    select: object = None,
    workers: object = None,
    exit_nonzero_on_violation: bool | None = None,
) -> CheckConfig:
    """Validate invocation-time overrides and fold them into `cfg`."""
    out = cfg
    if max_line_length is not None:
        out = replace(out, max_line_length=parse_positive_int("max_line_length", max_line_length))
    if select is not None:
        out = replace(out, select=parse_select(select))
    if workers is not None:
        out = replace(out, workers=parse_non_negative_int("workers", workers))
    if exit_nonzero_on_violation is not None:
        out = replace(out, exit_nonzero_on_violation=exit_nonzero_on_violation)
    return out


def parse_select(value: object) -> tuple[str, ...]:
    """Turn a comma list or a sequence of rule codes into registration order."""
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, Iterable):
        items = [str(part).strip() for part in value]
    else:
        raise ConfigurationError(f"select must be a list of rule codes, got {value!r}")
    codes = {item for item in items if item}
    if not codes:
        raise ConfigurationError("select must name at least one rule")
    unknown = sorted(codes.difference(RULE_CODES))
    if unknown:
        raise ConfigurationError(
            f"unknown rule code(s): {', '.join(unknown)} (known: {', '.join(RULE_CODES)})"
        )
    return tuple(code for code in RULE_CODES if code in codes)


def parse_positive_int(name: str, value: object) -> int:
    n = _parse_int(name, value)
    if n <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return n


def parse_non_negative_int(name: str, value: object) -> int:
    n = _parse_int(name, value)
    if n < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value!r}")
    return n


def _parse_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _parse_bool(name: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_names(name: str, value: object) -> frozenset[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [str(v) for v in value]
    else:
        raise ConfigurationError(f"{name} must be a list of module names, got {value!r}")
    return frozenset(item.strip() for item in items if item.strip())


def _load_check_from_env() -> CheckConfig:
    c = CheckConfig()
    ml = os.getenv("CHECK__MAX_LINE_LENGTH")
    ind = os.getenv("CHECK__INDENT_SIZE")
    sel = os.getenv("CHECK__SELECT")
    wk = os.getenv("CHECK__WORKERS")
    ex = os.getenv("CHECK__EXIT_NONZERO_ON_VIOLATION")
    if ml:
        c = replace(c, max_line_length=parse_positive_int("CHECK__MAX_LINE_LENGTH", ml))
    if ind:
        c = replace(c, indent_size=parse_positive_int("CHECK__INDENT_SIZE", ind))
    if sel:
        c = replace(c, select=parse_select(sel))
    if wk:
        c = replace(c, workers=parse_non_negative_int("CHECK__WORKERS", wk))
    if ex:
        c = replace(
            c, exit_nonzero_on_violation=_parse_bool("CHECK__EXIT_NONZERO_ON_VIOLATION", ex)
        )
    return c


def _load_imports_from_env() -> ImportsConfig:
    i = ImportsConfig()
    std = os.getenv("IMPORTS__KNOWN_STDLIB")
    third = os.getenv("IMPORTS__KNOWN_THIRD_PARTY")
    local = os.getenv("IMPORTS__KNOWN_LOCAL")
    if std:
        i = replace(i, known_stdlib=_parse_names("IMPORTS__KNOWN_STDLIB", std))
    if third:
        i = replace(i, known_third_party=_parse_names("IMPORTS__KNOWN_THIRD_PARTY", third))
    if local:
        i = replace(i, known_local=_parse_names("IMPORTS__KNOWN_LOCAL", local))
    return i


def _load_server_from_env() -> ServerConfig:
    s = ServerConfig()
    kb = os.getenv("SERVER__MAX_SOURCE_KB")
    if kb:
        s = replace(s, max_source_kb=parse_positive_int("SERVER__MAX_SOURCE_KB", kb))
    return s


def _load_security_from_env() -> SecurityConfig:
    s = SecurityConfig()
    key = os.getenv("SECURITY__API_KEY")
    if key is not None:
        s = replace(s, api_key=key)
    return s


def _merge_check(base: CheckConfig, data: dict[str, object]) -> CheckConfig:
    out = base
    if "max_line_length" in data:
        out = replace(
            out, max_line_length=parse_positive_int("max_line_length", data["max_line_length"])
        )
    if "indent_size" in data:
        out = replace(out, indent_size=parse_positive_int("indent_size", data["indent_size"]))
    if "select" in data:
        out = replace(out, select=parse_select(data["select"]))
    if "workers" in data:
        out = replace(out, workers=parse_non_negative_int("workers", data["workers"]))
    if "exit_nonzero_on_violation" in data:
        out = replace(
            out,
            exit_nonzero_on_violation=_parse_bool(
                "exit_nonzero_on_violation", data["exit_nonzero_on_violation"]
            ),
        )
    return out


def _merge_imports(base: ImportsConfig, data: dict[str, object]) -> ImportsConfig:
    out = base
    if "known_stdlib" in data:
        out = replace(out, known_stdlib=_parse_names("known_stdlib", data["known_stdlib"]))
    if "known_third_party" in data:
        out = replace(
            out, known_third_party=_parse_names("known_third_party", data["known_third_party"])
        )
    if "known_local" in data:
        out = replace(out, known_local=_parse_names("known_local", data["known_local"]))
    return out


def _merge_server(base: ServerConfig, data: dict[str, object]) -> ServerConfig:
    out = base
    if "max_source_kb" in data:
        out = replace(out, max_source_kb=parse_positive_int("max_source_kb", data["max_source_kb"]))
    return out


def _merge_security(base: SecurityConfig, data: dict[str, object]) -> SecurityConfig:
    out = base
    api_key_val = data.get("api_key")
    if isinstance(api_key_val, str):
        out = replace(out, api_key=api_key_val)
    enabled = data.get("api_key_enabled")
    if isinstance(enabled, bool) and not enabled:
        out = replace(out, api_key="")
    return out


def _toml_table(raw: object, key: str) -> dict[str, object]:
    if isinstance(raw, dict):
        tab: object = raw.get(key, {})
        if isinstance(tab, dict):
            return {str(k): v for k, v in tab.items()}
    return {}
