"""FastAPI application factory."""

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dietly.api.admin import router as admin_router
from dietly.api.meal_plans import router as meal_plans_router
from dietly.api.meals import router as meals_router
from dietly.api.progress import router as progress_router
from dietly.api.recommendations import router as recommendations_router
from dietly.api.responses import failure
from dietly.api.users import router as users_router
from dietly.app_logging import configure_logging
from dietly.config import parse_cors_origins
from dietly.containers import AppContainer
from dietly.domain.errors import DietlyError, PersistenceError

API_PREFIX = "/api/v1"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Dietly AI")
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DietlyError)
    async def dietly_error_handler(request: Request, exc: DietlyError) -> JSONResponse:
        if isinstance(exc, PersistenceError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            body = failure("Something went wrong, please try again later")
            if container.settings.is_development:
                body["error"] = exc.message
            return JSONResponse(status_code=exc.status_code, content=body)
        return JSONResponse(
            status_code=exc.status_code, content=failure(exc.message, exc.details)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=failure(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=failure("Validation failed", {"errors": errors}),
        )

    api = APIRouter(prefix=API_PREFIX)

    @api.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    api.include_router(meal_plans_router)
    api.include_router(meals_router)
    api.include_router(users_router)
    api.include_router(progress_router)
    api.include_router(recommendations_router)
    api.include_router(admin_router)
    app.include_router(api)
    return app
