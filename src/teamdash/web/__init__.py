"""Web interface for TeamDash.

FastAPI application exposing the staffing engine over HTTP, plus the
Server-Sent Events change feed.
"""

from __future__ import annotations

from teamdash.web.app import attach_services, create_app
from teamdash.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "attach_services",
    "RequestLoggingMiddleware",
]
