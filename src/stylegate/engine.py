from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Final

from .config import CheckConfig, ImportsConfig
from .errors import ReadFailure
from .logging import get_logger, log_event
from .report import BatchReport, CheckReport
from .rules import RULE_CODES, Rule, Violation
from .rules.blank_lines import BlankLinesRule
from .rules.commas import CommaSpacingRule
from .rules.imports import ImportOrderRule
from .rules.indentation import IndentationRule
from .rules.lexer import scan
from .rules.line_length import LineLengthRule
from .rules.operators import OperatorSpacingRule
from .source import SourceUnit, load_source

_RuleFactory = Callable[[CheckConfig, ImportsConfig], Rule]

_FACTORIES: Final[dict[str, _RuleFactory]] = {
    "indentation": lambda c, _i: IndentationRule(indent_size=c.indent_size),
    "line-length": lambda c, _i: LineLengthRule(max_line_length=c.max_line_length),
    "blank-lines": lambda _c, _i: BlankLinesRule(),
    "operator-spacing": lambda _c, _i: OperatorSpacingRule(),
    "comma-spacing": lambda _c, _i: CommaSpacingRule(),
    "import-order": lambda _c, i: ImportOrderRule(i.classifier()),
}


def build_rules(check: CheckConfig, imports: ImportsConfig) -> list[Rule]:
    """Instantiate the selected rules in registration order."""
    return [_FACTORIES[code](check, imports) for code in RULE_CODES if code in check.select]


def _violation_order(v: Violation) -> tuple[int, int]:
    return v.line, v.column if v.column is not None else 0


class RuleEngine:
    """Runs an ordered rule set over source units.

    Rules hold only immutable configuration, so one engine can check many
    files concurrently without locking.
    """

    def __init__(self, rules: Sequence[Rule]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)
        self._logger = get_logger()

    @classmethod
    def from_config(
        cls, check: CheckConfig | None = None, imports: ImportsConfig | None = None
    ) -> RuleEngine:
        return cls(build_rules(check or CheckConfig(), imports or ImportsConfig()))

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def check(self, unit: SourceUnit) -> CheckReport:
        lines = scan(unit)
        violations: list[Violation] = []
        for rule in self._rules:
            violations.extend(sorted(rule.run(unit, lines), key=_violation_order))
        return CheckReport(path=unit.path, violations=tuple(violations))

    def check_path(self, path: Path) -> CheckReport:
        try:
            unit = load_source(path)
        except ReadFailure as exc:
            self._logger.warning("read_failed path=%s reason=%s", exc.path, exc.reason)
            return CheckReport(path=exc.path, error=exc.reason)
        return self.check(unit)

    def check_paths(self, paths: Iterable[Path], *, workers: int = 0) -> BatchReport:
        """Check every path on a thread pool; reports come back sorted by path."""
        files = list(paths)
        t0 = time.perf_counter()
        reports: list[CheckReport] = []
        with ThreadPoolExecutor(
            max_workers=workers if workers > 0 else None, thread_name_prefix="stylegate-check"
        ) as pool:
            futures = [pool.submit(self.check_path, p) for p in files]
            for fut in as_completed(futures):
                reports.append(fut.result())
        reports.sort(key=lambda r: r.path)
        batch = BatchReport(reports=tuple(reports))
        log_event(
            "batch_checked",
            {
                "files": batch.file_count,
                "violations": batch.violation_count,
                "errors": batch.error_count,
                "latency_ms": int((time.perf_counter() - t0) * 1000.0),
            },
        )
        return batch
