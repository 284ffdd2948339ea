"""FastAPI web application for CloudReady user management."""

import logging
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from cloudready.api.error_handlers import register_error_handlers
from cloudready.api.users import router as users_router
from cloudready.auth.dependencies import require_admin
from cloudready.auth.jwt import Principal
from cloudready.auth.middleware import SecurityGateMiddleware
from cloudready.config import settings
from cloudready.database.database import check_connection, init_db
from cloudready.services.cache import init_user_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    init_user_cache(settings.cache.ttl_seconds)
    logger.info(f"{settings.name} {settings.version} started, serving under {settings.base_path}")
    yield
    logger.info(f"{settings.name} shutting down")


# Initialize FastAPI app
app = FastAPI(
    title=settings.name,
    description=settings.description,
    version=settings.version,
    docs_url="/swagger-ui",
    openapi_url="/api-docs",
    redoc_url=None,
    swagger_ui_oauth2_redirect_url="/swagger-ui/oauth2-redirect",
    lifespan=lifespan,
)

register_error_handlers(app)

# Middleware added last runs first: CORS must wrap the security gate
app.add_middleware(SecurityGateMiddleware, settings=settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allowed_origins,
    allow_methods=settings.cors.allowed_methods,
    allow_headers=settings.cors.allowed_headers,
    allow_credentials=settings.cors.allow_credentials,
    max_age=settings.cors.max_age,
)

app.include_router(users_router, prefix=settings.base_path)


def custom_openapi() -> Dict:
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        contact={"name": "API Support", "email": "support@example.com"},
        license_info={"name": "MIT License", "url": "https://opensource.org/licenses/MIT"},
        servers=[{"url": "/", "description": "Default server"}],
    )
    components = schema.setdefault("components", {})
    components.setdefault("securitySchemes", {})["bearer-jwt"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    schema["security"] = [{"bearer-jwt": []}]
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.get("/actuator/health", tags=["Operations"])
def health():
    """Health check endpoint. Reports database reachability."""
    database_up = check_connection()
    body = {
        "status": "UP" if database_up else "DOWN",
        "components": {"db": {"status": "UP" if database_up else "DOWN"}},
    }
    return JSONResponse(body, status_code=200 if database_up else 503)


@app.get("/actuator/info", tags=["Operations"])
def info(principal: Principal = Depends(require_admin)):
    return {
        "app": {
            "name": settings.name,
            "version": settings.version,
            "description": settings.description,
        }
    }


@app.get(f"{settings.base_path}/public/info", tags=["Public"])
def public_info():
    return {"name": settings.name, "version": settings.version, "description": settings.description}
