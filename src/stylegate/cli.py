from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final, NoReturn, TextIO

from .config import CheckConfig, Settings, apply_overrides
from .engine import RuleEngine
from .errors import ConfigurationError
from .logging import get_logger, init_logging
from .report import BatchReport
from .rules import RULE_CODES
from .source import iter_py_files

EXIT_OK: Final[int] = 0
EXIT_VIOLATIONS: Final[int] = 1
EXIT_READ_ERROR: Final[int] = 2
EXIT_CONFIG_ERROR: Final[int] = 3


class _ArgumentParser(argparse.ArgumentParser):
    # Usage errors are configuration errors with their own exit code
    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(message)


def _build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(prog="check", description="Check Python source style conformance")
    ap.add_argument("paths", nargs="+", type=Path, metavar="path", help="files or directories")
    ap.add_argument("--max-line-length", metavar="N", help="maximum line length (default 79)")
    ap.add_argument(
        "--select",
        metavar="RULES",
        help=f"comma-separated rule codes to run (default: {','.join(RULE_CODES)})",
    )
    exit_mode = ap.add_mutually_exclusive_group()
    exit_mode.add_argument(
        "--exit-nonzero-on-violation",
        dest="exit_nonzero",
        action="store_const",
        const=True,
        help="exit 1 when any violation is found (default)",
    )
    exit_mode.add_argument(
        "--exit-zero",
        dest="exit_nonzero",
        action="store_const",
        const=False,
        help="exit 0 even when violations are found",
    )
    ap.add_argument("--workers", metavar="N", help="parallel file checks (0 = automatic)")
    ap.add_argument("--config", type=Path, metavar="PATH", help="TOML config file")
    ap.add_argument("--verbose", "-v", action="store_true", help="log a per-rule summary")
    return ap


def _exit_code(batch: BatchReport, cfg: CheckConfig) -> int:
    if batch.error_count:
        return EXIT_READ_ERROR
    if batch.violation_count and cfg.exit_nonzero_on_violation:
        return EXIT_VIOLATIONS
    return EXIT_OK


def _write_report(batch: BatchReport, out: TextIO) -> None:
    for line in batch.render():
        out.write(line + "\n")


def _log_rule_summary(batch: BatchReport) -> None:
    log = get_logger()
    for code, count in batch.counts_by_rule().items():
        log.info("rule_summary rule=%s violations=%d", code, count)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = _build_parser().parse_args(list(argv) if argv is not None else None)
        settings = Settings.load(args.config)
        cfg = apply_overrides(
            settings.check,
            max_line_length=args.max_line_length,
            select=args.select,
            workers=args.workers,
            exit_nonzero_on_violation=args.exit_nonzero,
        )
    except ConfigurationError as exc:
        sys.stderr.write(f"check: configuration error: {exc.message}\n")
        return EXIT_CONFIG_ERROR

    init_logging(level=logging.INFO if args.verbose else None)
    engine = RuleEngine.from_config(cfg, settings.imports)
    batch = engine.check_paths(iter_py_files(args.paths), workers=cfg.workers)
    _write_report(batch, sys.stdout)
    if args.verbose:
        _log_rule_summary(batch)
    return _exit_code(batch, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
