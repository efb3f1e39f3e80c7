from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import replace

from fastapi import Depends, FastAPI, Request
from fastapi.params import Depends as DependsParamType
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..config import Settings, apply_overrides
from ..engine import RuleEngine, build_rules
from ..errors import AppError, ConfigurationError, ErrorCode, new_error, status_for
from ..logging import init_logging, log_event
from ..middleware import RequestIdMiddleware, api_key_dependency
from ..request_context import request_id_var
from ..rules import RULE_CODES
from ..source import SourceUnit
from ..version import get_version
from .schemas import CheckRequest, CheckResponse, RuleInfo


# Exception handlers (module-level to keep app factory simple)
async def _handle_app_error(_: Request, exc: Exception) -> JSONResponse:
    rid = request_id_var.get()
    if not isinstance(exc, AppError):
        body = new_error(ErrorCode.internal_error, rid, message=str(exc))
        return JSONResponse(status_code=500, content=body.to_dict())
    body = new_error(exc.code, rid, message=exc.message)
    return JSONResponse(status_code=exc.http_status, content=body.to_dict())


async def _handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
    rid = request_id_var.get()
    body = new_error(ErrorCode.internal_error, rid, message="Internal server error.")
    return JSONResponse(status_code=500, content=body.to_dict())


def _register_basic(app: FastAPI, settings: Settings) -> None:
    async def _healthz() -> dict[str, str]:
        return {"status": "ok"}

    async def _version() -> dict[str, object]:
        v = get_version()
        return {"service": v.service, "version": v.version, "build": v.build, "commit": v.commit}

    async def _rules() -> list[RuleInfo]:
        every_rule = replace(settings.check, select=RULE_CODES)
        return [
            RuleInfo(code=r.code, description=r.description)
            for r in build_rules(every_rule, settings.imports)
        ]

    app.add_api_route("/healthz", _healthz, methods=["GET"])
    app.add_api_route("/version", _version, methods=["GET"])
    app.add_api_route("/v1/rules", _rules, methods=["GET"], response_model=list[RuleInfo])


def _engine_for(request: CheckRequest, settings: Settings, default: RuleEngine) -> RuleEngine:
    if request.max_line_length is None and request.select is None:
        return default
    try:
        cfg = apply_overrides(
            settings.check,
            max_line_length=request.max_line_length,
            select=request.select,
        )
    except ConfigurationError as exc:
        raise AppError(
            ErrorCode.invalid_configuration,
            status_for(ErrorCode.invalid_configuration),
            exc.message,
        ) from None
    return RuleEngine.from_config(cfg, settings.imports)


def _register_check(
    app: FastAPI,
    dep_api_key: DependsParamType,
    provide_settings: Callable[[], Settings],
    provide_engine: Callable[[], RuleEngine],
) -> None:
    async def _check(body: CheckRequest) -> dict[str, object]:
        settings = provide_settings()
        max_bytes = int(settings.server.max_source_kb) * 1024
        if len(body.source.encode("utf-8")) > max_bytes:
            raise AppError(
                ErrorCode.too_large,
                status_for(ErrorCode.too_large),
                "Source exceeds size limit",
            )
        engine = _engine_for(body, settings, provide_engine())
        unit = SourceUnit.from_text(body.source, path=body.path)

        t0 = time.perf_counter()
        report = await run_in_threadpool(engine.check, unit)
        dt_ms = int((time.perf_counter() - t0) * 1000.0)

        log_event(
            "source_checked",
            fields={
                "path": body.path,
                "violations": len(report.violations),
                "latency_ms": dt_ms,
                "passed": report.passed,
            },
        )
        out = report.to_dict()
        out.pop("error", None)
        out["latency_ms"] = dt_ms
        return out

    app.add_api_route(
        "/v1/check",
        _check,
        methods=["POST"],
        response_model=CheckResponse,
        dependencies=[dep_api_key],
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory.

    Parameters:
    - `settings`: Optional pre-loaded settings; when omitted, loads from env and TOML.
    """
    s = settings or Settings.load()
    init_logging()
    app = FastAPI(title="stylegate", version=get_version().version)
    app.add_middleware(RequestIdMiddleware)

    engine = RuleEngine.from_config(s.check, s.imports)

    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(Exception, _handle_unexpected)

    def _provide_settings() -> Settings:
        return s

    def _provide_engine() -> RuleEngine:
        return engine

    # Expose providers for dependency overrides in tests
    app.state.provide_settings = _provide_settings
    app.state.provide_engine = _provide_engine

    _register_basic(app, s)
    api_dep: DependsParamType = Depends(api_key_dependency(s))
    _register_check(app, api_dep, _provide_settings, _provide_engine)
    return app
