"""ASGI application for Aislewise."""
# mypy: ignore-errors

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Optional, TypeVar
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field

from aislewise import __version__, metrics
from aislewise.config import Settings, get_settings
from aislewise.llm.client import build_model_client
from aislewise.logging_utils import (
    bind_request_id,
    configure_logging as configure_app_logging,
    reset_request_id,
)
from aislewise.models.shopping import GenerationResult, Ingredient, IngredientListResult
from aislewise.pipeline.orchestrator import (
    RecipeValidationError,
    ShoppingListGenerator,
    validate_recipe_name,
)
from aislewise.server import deps

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How often a long-running generation checks whether the client went away.
DISCONNECT_POLL_SECONDS = 0.5
CLIENT_CLOSED_REQUEST = 499


class RecipeRequest(BaseModel):
    recipe_name: Optional[str] = Field(default=None, alias="recipeName")

    model_config = ConfigDict(populate_by_name=True)


class OrganizeRequest(BaseModel):
    ingredients: list[Ingredient] = Field(default_factory=list)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.llm_api_key or ""])


def _client_error(exc: RecipeValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def _run_until_disconnect(request: Request, work: Awaitable[T]) -> T:
    """Await ``work``, cancelling it (and any in-flight model call) if the client leaves."""

    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(
                    "Client disconnected from %s; cancelling generation",
                    request.url.path,
                    extra={"request_id": getattr(request.state, "request_id", None)},
                )
                task.cancel()
                raise HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="Client closed request")
    finally:
        if not task.done():
            task.cancel()


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Aislewise Shopping Lists", version=__version__)
    application.state.model_client = build_model_client(settings)

    @application.on_event("shutdown")
    async def close_model_client() -> None:
        close = getattr(application.state.model_client, "aclose", None)
        if close is not None:
            await close()

    logger.debug(
        "Application created with provider=%s fast_model=%s reliable_model=%s",
        settings.llm_provider,
        settings.fast_model,
        settings.reliable_model,
    )

    if settings.log_requests:
        access_logger = logging.getLogger("aislewise.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            token = bind_request_id(request_id)
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise
            finally:
                reset_request_id(token)

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body_preview: str | None = None
        try:
            raw_body = await request.body()
            if raw_body:
                decoded = raw_body.decode("utf-8", errors="replace")
                if len(decoded) > 2048:
                    decoded = decoded[:2048] + "...(truncated)"
                body_preview = decoded
        except Exception:  # pragma: no cover - preview is best effort
            body_preview = "<unable to read body>"

        logger.warning(
            "Validation error on %s %s: %s | body=%s",
            request.method,
            request.url.path,
            exc.errors(),
            body_preview,
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _json_safe(exc.errors())},
        )

    @application.post(
        "/shopping-list",
        response_model=GenerationResult,
        response_model_exclude_none=True,
        summary="Generate an aisle-grouped shopping list for a recipe",
    )
    async def shopping_list_generate(
        request: Request,
        payload: RecipeRequest = Body(...),
        generator: ShoppingListGenerator = Depends(deps.get_generator),
    ) -> GenerationResult:
        try:
            recipe_name = validate_recipe_name(payload.recipe_name)
        except RecipeValidationError as exc:
            raise _client_error(exc) from exc
        return await _run_until_disconnect(request, generator.generate(recipe_name))

    @application.post(
        "/recipe",
        response_model=IngredientListResult,
        response_model_exclude_none=True,
        summary="List the ingredients for a recipe",
    )
    async def recipe_ingredients(
        request: Request,
        payload: RecipeRequest = Body(...),
        generator: ShoppingListGenerator = Depends(deps.get_generator),
    ) -> IngredientListResult:
        try:
            recipe_name = validate_recipe_name(payload.recipe_name)
        except RecipeValidationError as exc:
            raise _client_error(exc) from exc
        return await _run_until_disconnect(request, generator.list_ingredients(recipe_name))

    @application.post(
        "/organize",
        response_model=GenerationResult,
        response_model_exclude_none=True,
        summary="Group an ingredient list by supermarket aisle",
    )
    async def organize_ingredients(
        request: Request,
        payload: OrganizeRequest = Body(...),
        generator: ShoppingListGenerator = Depends(deps.get_generator),
    ) -> GenerationResult:
        if not payload.ingredients:
            raise _client_error(RecipeValidationError("At least one ingredient is required"))
        return await _run_until_disconnect(request, generator.organize(payload.ingredients))

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()

__all__ = ["app", "create_app"]
