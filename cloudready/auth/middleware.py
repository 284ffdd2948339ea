"""Request-level security gate.

Runs before routing on every request:
- assigns a correlation id
- lets allow-listed paths through unauthenticated
- requires a verifiable bearer token everywhere else (401 otherwise)
- requires the admin authority on the operations prefix (403 otherwise)
- adds security headers to the response

Stateless: the principal lives on `request.state` for one request only.
"""

import logging
import uuid
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cloudready.auth.jwt import Principal, principal_from_token
from cloudready.auth.permissions import is_admin
from cloudready.config import Settings
from cloudready.errors import AppError, ForbiddenError, UnauthenticatedError
from cloudready.models.error import ErrorResponse

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
OPERATIONS_PREFIX = "/actuator"
HEALTH_PREFIX = "/actuator/health"
DOCS_PREFIXES = ("/swagger-ui", "/api-docs")

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


class SecurityGateMiddleware(BaseHTTPMiddleware):
    """Authenticate bearer tokens and enforce path-level access rules."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings
        self.public_prefixes: Tuple[str, ...] = (
            f"{settings.base_path}/public",
            HEALTH_PREFIX,
            *DOCS_PREFIXES,
        )

    def is_public(self, path: str) -> bool:
        return any(_matches(path, prefix) for prefix in self.public_prefixes)

    def authenticate(self, request: Request) -> Optional[Principal]:
        jwt_settings = self.settings.security.jwt
        header = request.headers.get(jwt_settings.header)
        if not header or not header.startswith(jwt_settings.prefix):
            return None
        token = header[len(jwt_settings.prefix):].strip()
        if not token:
            return None
        return principal_from_token(token, jwt_settings)

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        request.state.principal = None

        path = request.url.path
        if request.method == "OPTIONS" or self.is_public(path):
            response = await call_next(request)
        else:
            principal = self.authenticate(request)
            if principal is None:
                logger.warning(f"Rejected unauthenticated {request.method} {path} [{correlation_id}]")
                response = self._reject(
                    request, UnauthenticatedError("Full authentication is required to access this resource")
                )
                response.headers["WWW-Authenticate"] = "Bearer"
            elif _matches(path, OPERATIONS_PREFIX) and not is_admin(principal):
                logger.warning(f"Rejected {principal.username} on {path} [{correlation_id}]")
                response = self._reject(request, ForbiddenError("Access is denied"))
            else:
                request.state.principal = principal
                response = await call_next(request)

        response.headers[CORRELATION_HEADER] = correlation_id
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if request.url.scheme == "https":
            response.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        return response

    @staticmethod
    def _reject(request: Request, error: AppError) -> JSONResponse:
        body = ErrorResponse.for_request(request, error.status_code, error.code, error.message)
        return JSONResponse(body.to_body(), status_code=error.status_code)
