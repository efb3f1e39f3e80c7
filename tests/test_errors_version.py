from __future__ import annotations

import io
import logging

import pytest

from stylegate import version as version_mod
from stylegate.errors import (
    ConfigurationError,
    ErrorCode,
    ReadFailure,
    new_error,
    status_for,
)
from stylegate.logging import _JsonFormatter, get_logger


def test_status_mapping() -> None:
    assert status_for(ErrorCode.invalid_configuration) == 400
    assert status_for(ErrorCode.too_large) == 413
    assert status_for(ErrorCode.unauthorized) == 401
    assert status_for(ErrorCode.internal_error) == 500


def test_new_error_default_message() -> None:
    e = new_error(ErrorCode.too_large, "abc-123")
    assert e.message != "" and e.request_id == "abc-123"
    assert e.to_dict()["code"] == "too_large"


def test_exception_payloads() -> None:
    rf = ReadFailure("pkg/m.py", "file not found")
    assert (rf.path, rf.reason) == ("pkg/m.py", "file not found")
    assert str(rf) == "pkg/m.py: file not found"
    assert ConfigurationError("bad select").message == "bad select"


def test_version_fallback_logs_and_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise(_: str) -> str:
        raise version_mod.PackageNotFoundError("stylegate")

    monkeypatch.setattr(version_mod, "version", _raise)
    monkeypatch.setenv("GIT_COMMIT", "deadbeef")

    buf = io.StringIO()
    h = logging.StreamHandler(buf)
    h.setFormatter(_JsonFormatter())
    logger = get_logger()
    logger.addHandler(h)
    try:
        info = version_mod.get_version()
    finally:
        logger.removeHandler(h)

    assert info.version == "0.0.0+unknown"
    assert info.commit == "deadbeef"
    assert "pkg_version_fallback" in buf.getvalue()
