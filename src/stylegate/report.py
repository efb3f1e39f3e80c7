from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from .rules import RULE_CODES, Violation


def format_violation(path: str, v: Violation) -> str:
    col = f"{v.column}:" if v.column is not None else ""
    return f"{path}:{v.line}:{col} [{v.rule_code}] {v.message}"


@dataclass(frozen=True)
class CheckReport:
    path: str
    violations: tuple[Violation, ...] = ()
    # Set when the source could not be read; such a report has no violations
    error: str | None = None

    @property
    def passed(self) -> bool:
        return not self.violations and self.error is None

    def render(self) -> list[str]:
        if self.error is not None:
            return [f"{self.path}: [read-error] {self.error}"]
        return [format_violation(self.path, v) for v in self.violations]

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "passed": self.passed,
            "error": self.error,
            "violation_count": len(self.violations),
            "violations": [
                {
                    "rule_code": v.rule_code,
                    "line": v.line,
                    "column": v.column,
                    "message": v.message,
                }
                for v in self.violations
            ],
        }


@dataclass(frozen=True)
class BatchReport:
    reports: tuple[CheckReport, ...]

    @property
    def violation_count(self) -> int:
        return sum(len(r.violations) for r in self.reports)

    @property
    def file_count(self) -> int:
        return len(self.reports)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.reports if r.error is not None)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.reports)

    def counts_by_rule(self) -> dict[str, int]:
        counts = Counter(v.rule_code for r in self.reports for v in r.violations)
        return {code: counts.get(code, 0) for code in RULE_CODES}

    def render(self) -> list[str]:
        out: list[str] = []
        for r in self.reports:
            out.extend(r.render())
        if self.error_count:
            out.append(f"{self.error_count} file(s) could not be read")
        # The summary line is always last
        out.append(self.summary())
        return out

    def summary(self) -> str:
        return f"{self.violation_count} violation(s) in {self.file_count} file(s)"
