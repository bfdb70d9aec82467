"""
Tracking probe for services built on Starlette/FastAPI.

Records method, route pattern, status code and latency of every request
and posts it to a CodePruner collector. Delivery is fire-and-forget: one
attempt with a bounded timeout, no retries, and errors never reach the
host application.

    app.add_middleware(TrackingMiddleware, emitter=TrackingEmitter(api_key="cp_..."))
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import httpx
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_ROUTES = ("/health", "/metrics", "/healthz", "/readyz")


class TrackingEmitter:
    """Posts tracking events to the collector's ``/track`` endpoint."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = "http://localhost:8080/track",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self._http = client

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    async def send(self, event: dict[str, Any]) -> bool:
        """Send one event. Returns True on a 2xx answer; never raises."""
        try:
            resp = await self._get_http_client().post(
                self.endpoint,
                json=event,
                headers={"X-API-Key": self.api_key},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.debug("Tracking request failed: %s", e)
            return False
        if not 200 <= resp.status_code < 300:
            logger.debug("Tracking rejected with HTTP %s", resp.status_code)
            return False
        return True

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None


class TrackingMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that reports each request to CodePruner."""

    def __init__(
        self,
        app: Any,
        emitter: TrackingEmitter,
        excluded_routes: Iterable[str] = DEFAULT_EXCLUDED_ROUTES,
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self.emitter = emitter
        self.excluded_routes = frozenset(excluded_routes)
        self.enabled = enabled
        self._pending: set[asyncio.Task] = set()

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if not self.enabled:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000

        try:
            route = route_pattern(request)
            if route not in self.excluded_routes:
                self._emit({
                    "method": request.method,
                    "route": route,
                    "statusCode": response.status_code,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "latency": round(latency_ms, 2),
                })
        except Exception:
            # Never block requests for tracking.
            logger.debug("Error tracking endpoint", exc_info=True)

        return response

    def _emit(self, event: dict[str, Any]) -> None:
        task = asyncio.create_task(self.emitter.send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


def route_pattern(request: Request) -> str:
    """Prefer the matched route template (e.g. /users/{id}) over the raw path."""
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(template, str) and template.startswith("/"):
        return template
    return request.url.path


def install_probe(app: Any, api_key: str, settings: Any = None) -> TrackingEmitter:
    """Attach :class:`TrackingMiddleware` to ``app`` using the ``probe_*`` settings."""
    if settings is None:
        from codepruner.common.config import get_settings
        settings = get_settings()
    emitter = TrackingEmitter(
        api_key=api_key,
        endpoint=settings.probe_endpoint,
        timeout=settings.probe_timeout,
    )
    app.add_middleware(
        TrackingMiddleware,
        emitter=emitter,
        excluded_routes=settings.probe_excluded_routes,
    )
    return emitter
