from __future__ import annotations

from .engine import RuleEngine
from .report import BatchReport, CheckReport
from .rules import RULE_CODES, Violation
from .source import SourceUnit, load_source

__all__ = [
    "RULE_CODES",
    "BatchReport",
    "CheckReport",
    "RuleEngine",
    "SourceUnit",
    "Violation",
    "load_source",
]
