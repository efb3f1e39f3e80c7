from __future__ import annotations

from pydantic.dataclasses import dataclass as pydantic_dataclass


@pydantic_dataclass(frozen=True)
class CheckRequest:
    source: str
    path: str = "<input>"
    max_line_length: int | None = None
    select: list[str] | None = None


@pydantic_dataclass(frozen=True)
class ViolationOut:
    rule_code: str
    line: int
    column: int | None
    message: str


@pydantic_dataclass(frozen=True)
class CheckResponse:
    path: str
    passed: bool
    violation_count: int
    violations: list[ViolationOut]
    latency_ms: int


@pydantic_dataclass(frozen=True)
class RuleInfo:
    code: str
    description: str
