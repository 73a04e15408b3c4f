"""ASGI application for Mealmerge."""
# mypy: ignore-errors

from __future__ import annotations

import logging
import math
import traceback
from datetime import datetime, timezone
from time import perf_counter
from typing import Any
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mealmerge import __version__, metrics
from mealmerge.config import Settings, get_settings
from mealmerge.errors import MergeGatewayError, RateLimitError
from mealmerge.gateway.auth import AuthenticationValidator
from mealmerge.gateway.service import MergeGateway, MergeOutcome
from mealmerge.logging_utils import configure_logging as configure_app_logging
from mealmerge.server import deps

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    secrets = [settings.admin_password or "", settings.identity_provider_api_key or ""]
    configure_app_logging(settings.log_level, settings.log_format, secrets)


def _error_response(exc: MergeGatewayError, settings: Settings) -> JSONResponse:
    """Render a gateway error; internal detail is only exposed in development."""

    content: dict[str, Any] = {"success": False, "error": exc.message}
    cause = exc.__cause__
    if settings.is_development and cause is not None:
        content["details"] = str(cause)
        content["stack"] = "".join(traceback.format_exception(cause))

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers["Retry-After"] = str(max(math.ceil(exc.retry_after), 1))
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers or None)


def _merge_body(outcome: MergeOutcome) -> dict[str, Any]:
    if outcome.skipped:
        return {"success": True, "skipped": True}

    result = outcome.result
    return {
        "success": True,
        "message": "Data merged successfully",
        "details": {
            "mealLogsTransferred": result.count("meal_logs"),
            "userNamesTransferred": result.count("user_names"),
            "pushSubscriptionsTransferred": result.count("push_subscriptions"),
            "authUserId": outcome.command.target_id,
            "guestUserId": outcome.command.source_id,
            "authMethod": outcome.auth_method,
        },
    }


def _recovery_body(outcome: MergeOutcome) -> dict[str, Any]:
    result = outcome.result
    return {
        "success": True,
        "message": "Data recovered successfully",
        "data": {
            "mealLogsCount": result.count("meal_logs"),
            "summariesCount": result.count("daily_summaries"),
            "nameTransferred": result.count("user_names") > 0,
            "legacyUserId": outcome.command.source_id,
            "currentUserId": outcome.command.target_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Mealmerge Identity Gateway", version=__version__)
    application.state.rate_limiters = deps.build_rate_limiters(settings)

    if settings.rate_limit_sweep_enabled:
        sweep_scheduler = AsyncIOScheduler()
        for limiter in application.state.rate_limiters.values():
            sweep_scheduler.add_job(
                limiter.prune,
                "interval",
                seconds=settings.rate_limit_sweep_interval,
                max_instances=1,
                coalesce=True,
            )

        @application.on_event("startup")
        async def start_rate_limit_sweeper() -> None:
            sweep_scheduler.start()

        @application.on_event("shutdown")
        async def stop_rate_limit_sweeper() -> None:
            if sweep_scheduler.running:
                sweep_scheduler.shutdown(wait=False)

    logger.debug(
        "Application created environment=%s log_level=%s",
        settings.environment,
        settings.log_level,
    )

    if settings.log_requests:
        access_logger = logging.getLogger("mealmerge.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.error(
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
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                duration_ms / 1000.0
            )
            return response

    @application.exception_handler(MergeGatewayError)
    async def gateway_exception_handler(request: Request, exc: MergeGatewayError):
        return _error_response(exc, get_settings())

    @application.post("/api/merge-user-data", summary="Merge guest data into an account")
    def merge_user_data(
        request: Request,
        client: str = Depends(deps.enforce_merge_rate_limit),
        payload: Any = Depends(deps.merge_payload),
        gateway: MergeGateway = Depends(deps.get_merge_gateway),
    ) -> dict[str, Any]:
        outcome = gateway.run(payload, headers=request.headers, client_key=client)
        return _merge_body(outcome)

    @application.post("/api/recover-legacy-data", summary="Recover data left under a legacy id")
    def recover_legacy_data(
        request: Request,
        client: str = Depends(deps.enforce_recovery_rate_limit),
        payload: Any = Depends(deps.recovery_payload),
        gateway: MergeGateway = Depends(deps.get_recovery_gateway),
    ) -> dict[str, Any]:
        outcome = gateway.run(payload, headers=request.headers, client_key=client)
        return _recovery_body(outcome)

    @application.get("/api/push/subscriptions", summary="List push subscriptions")
    def push_subscriptions_list(
        request: Request,
        client: str = Depends(deps.enforce_listing_rate_limit),
        validator: AuthenticationValidator = Depends(deps.get_authentication_validator),
        lister: deps.SubscriptionLister = Depends(deps.get_subscription_lister),
    ) -> dict[str, Any]:
        validator.require_admin(request.headers)
        subscriptions = [entry.model_dump(mode="json") for entry in lister()]
        return {"success": True, "subscriptions": subscriptions, "total": len(subscriptions)}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()

__all__ = ["app", "create_app"]
