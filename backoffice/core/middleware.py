"""
Core middleware for the back-office API.

- RequestContextMiddleware: request id propagation, access log with
  timing, and error logging for the request as a whole
- SecurityHeadersMiddleware: static response hardening headers
"""
from __future__ import annotations

import time
import uuid
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from backoffice.config.settings import settings
from backoffice.core.logging import get_logger, request_id as request_id_var, user_id as user_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id to the logging context and log each request once.

    An incoming X-Request-ID is reused so ids survive proxies; otherwise
    a new UUID is issued. Responses carry the id and the processing time.
    Client and server errors are logged at WARNING, unhandled exceptions
    at ERROR before they propagate to the exception handlers.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = request_id_var.set(request_id)
        user_token = user_id_var.set(None)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {exc}",
                extra=self._describe(request, error_type=type(exc).__name__),
                exc_info=True,
            )
            raise
        finally:
            elapsed = time.perf_counter() - started
            user_id_var.reset(user_token)
            request_id_var.reset(request_token)

        response.headers[self.header_name] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.4f}"

        details = self._describe(
            request,
            status_code=response.status_code,
            process_time=f"{elapsed:.4f}s",
            request_id=request_id,
        )
        if response.status_code >= 400:
            logger.warning(f"{request.method} {request.url.path} -> {response.status_code}", extra=details)
        else:
            logger.info("Request completed", extra=details)
        return response

    @staticmethod
    def _describe(request: Request, **fields) -> Dict[str, Optional[str]]:
        return {
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else None,
            **fields,
        }


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers; HSTS is sent only in production."""

    BASE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
    }

    def __init__(self, app: ASGIApp, hsts: bool = False):
        super().__init__(app)
        self.headers = dict(self.BASE_HEADERS)
        if hsts:
            self.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


def register_middlewares(app: FastAPI, include_security: bool = True) -> None:
    """
    Register the core middlewares.

    Starlette runs the last added middleware first, so the request
    context is bound before the security headers are applied.
    """
    if include_security:
        app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production())
    app.add_middleware(RequestContextMiddleware)

    logger.debug("Core middlewares registered", extra={"include_security": include_security})
