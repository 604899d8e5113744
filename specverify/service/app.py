"""FastAPI application entrypoint for specverify service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import ConfigError, SpecVerifyConfig, load_config
from ..coverage import CoverageReconciler
from ..judge import create_judge
from ..judge.base import Judge
from ..routes import ExtractionError
from ..verifier import Verifier, sort_results


class VerifyRequest(BaseModel):
    config_path: Optional[str] = None
    spec_type: Optional[str] = None
    concurrency: Optional[int] = None
    threshold: Optional[int] = None
    fail_under: Optional[int] = None


class CoverageRequest(BaseModel):
    config_path: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_config_loader(config_path: Optional[str]) -> SpecVerifyConfig:
    return load_config(Path(config_path) if config_path else None)


def _optional_judge(config: SpecVerifyConfig) -> Judge | None:
    return create_judge(config) if config.ai_api_key else None


def create_app(
    config_loader: Callable[[Optional[str]], SpecVerifyConfig] = _default_config_loader,
    judge_factory: Callable[[SpecVerifyConfig], Judge | None] = _optional_judge,
) -> FastAPI:
    """Create the FastAPI application exposing verification and coverage."""

    app = FastAPI(title="specverify", version=__version__)

    async def _in_executor(func: Callable[[], Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/verify")
    async def verify(payload: VerifyRequest) -> Dict[str, Any]:
        def _run() -> Dict[str, Any]:
            config = config_loader(payload.config_path)
            if payload.fail_under is not None and payload.fail_under > 0:
                config.options.fail_under = payload.fail_under
            if payload.threshold is not None and payload.threshold > 0:
                config.options.pass_threshold = payload.threshold
            judge = judge_factory(config)
            if judge is None:
                raise ConfigError("No API key configured for the AI provider")
            summary = Verifier(config, judge).verify_all(
                payload.spec_type, concurrency=payload.concurrency
            )
            data = summary.to_dict()
            data["results"] = [result.to_dict() for result in sort_results(summary.results)]
            data["passing"] = summary.is_passing(config.options.pass_threshold) and not summary.failing_specs
            return data

        return await _in_executor(_run)

    @app.post("/coverage")
    async def coverage(payload: CoverageRequest) -> Dict[str, Any]:
        def _run() -> Dict[str, Any]:
            config = config_loader(payload.config_path)
            sources = config.all_route_sources()
            if not sources:
                raise ConfigError("No route sources configured")
            reconciler = CoverageReconciler(
                judge=judge_factory(config), max_batch_bytes=config.options.max_batch_bytes
            )
            report = reconciler.reconcile(sources, config.specs_path, root=str(config.root))
            return report.to_dict()

        return await _in_executor(_run)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ExtractionError)
    async def extraction_error_handler(_: Any, exc: ExtractionError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["CoverageRequest", "VerifyRequest", "create_app", "run_service"]
