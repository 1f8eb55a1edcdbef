"""
Middleware components for request processing:
- Request context (request ID)
- CORS for the browser frontend
- JSON error envelope handlers
"""

from app.middleware.cors import CORSMiddleware
from app.middleware.error_handlers import register_error_handlers
from app.middleware.request_context import RequestContextMiddleware

__all__ = [
    "CORSMiddleware",
    "RequestContextMiddleware",
    "register_error_handlers",
]
