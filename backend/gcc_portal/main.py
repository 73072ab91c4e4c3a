from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .auth.claims import ClaimsService
from .auth.passwords import PasswordHasher
from .db.dynamodb.errors import (
    DdbConflict,
    DdbError,
    DdbThrottled,
    DdbUnavailable,
    DdbValidation,
)
from .db.dynamodb.table import DynamoTable
from .errors import PortalError
from .middleware import (
    AccessLogMiddleware,
    IdentityMiddleware,
    LoginRateLimitMiddleware,
    RequestContextMiddleware,
)
from .middleware.cors import build_allowed_origins
from .observability.logging import configure_logging, get_logger
from .observability.otel import configure_otel, instrument_app
from .problem_details import problem_response
from .routers.admin import router as admin_router
from .routers.auth import router as auth_router
from .routers.gcc import router as gcc_router
from .routers.health import router as health_router
from .routers.requirements import router as requirements_router
from .routers.startup import router as startup_router
from .routers.users import router as users_router
from .settings import Settings, get_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    settings.require_in_production()

    configure_logging(level=settings.log_level)
    log = get_logger("startup")
    configure_otel(settings)

    app = FastAPI(
        title="GCC Startup Portal",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )

    # Collaborators are explicit and shared by every request.
    app.state.settings = settings
    app.state.claims = ClaimsService(
        secret=settings.effective_jwt_secret,
        default_ttl_seconds=settings.jwt_expires_in_seconds,
    )
    app.state.hasher = PasswordHasher()
    app.state.table = DynamoTable(
        table_name=settings.effective_table_name,
        region_name=settings.aws_region,
        endpoint_url=settings.ddb_endpoint_url,
    )

    log.info("app_starting", settings=settings.to_log_safe_dict())

    # Last added is outermost.
    app.add_middleware(IdentityMiddleware)
    app.add_middleware(
        LoginRateLimitMiddleware,
        rpm=settings.login_rate_limit_rpm,
        trusted_proxies=settings.trusted_proxy_count,
    )
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/", "/api/health"})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=build_allowed_origins(
            frontend_urls=settings.frontend_urls,
            include_local=not settings.is_production,
        ),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
        expose_headers=["X-Request-Id", "Retry-After"],
        max_age=3000,
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(PortalError, _portal_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DdbError, _ddb_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(users_router, prefix="/api/users")
    app.include_router(gcc_router, prefix="/api/gcc")
    app.include_router(startup_router, prefix="/api/startup")
    app.include_router(requirements_router, prefix="/api/requirements")
    app.include_router(admin_router, prefix="/api/admin")

    instrument_app(app)
    return app


def _portal_error_handler(request: Request, exc: PortalError) -> Response:
    if exc.status_code >= 500:
        get_logger("errors").error("portal_error", error=exc.message, path=request.url.path)
    return problem_response(
        request=request,
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.message,
        extensions=exc.extensions or None,
    )


def _ddb_error_handler(request: Request, exc: DdbError) -> Response:
    status_code, title = 500, "Storage Error"
    if isinstance(exc, DdbValidation):
        status_code, title = 400, "Bad Request"
    elif isinstance(exc, DdbConflict):
        status_code, title = 409, "Conflict"
    elif isinstance(exc, (DdbThrottled, DdbUnavailable)):
        status_code, title = 503, "Service Unavailable"

    if status_code >= 500:
        get_logger("storage").error(
            "storage_error",
            operation=exc.operation,
            table=exc.table_name,
            aws_request_id=exc.aws_request_id,
            error=exc.message,
        )
    extensions = {
        "operation": exc.operation,
        "retryable": bool(exc.retryable),
        "awsRequestId": exc.aws_request_id,
    }
    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=exc.message,
        extensions={k: v for k, v in extensions.items() if v is not None},
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(exc.status_code or 500)
    detail = exc.detail if isinstance(exc.detail, str) else None
    if status_code == 404:
        detail = "Route not found" if detail in (None, "Not Found") else detail
    return problem_response(
        request=request,
        status_code=status_code,
        detail=detail,
        headers=getattr(exc, "headers", None),
    )


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        errors.append(
            {
                "location": [str(x) for x in loc],
                "path": ".".join(str(x) for x in loc if x != "body"),
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    user = getattr(request.state, "user", None)
    get_logger("unhandled").exception(
        "unhandled_exception",
        http_method=request.method.upper(),
        path=request.url.path,
        user_id=getattr(user, "id", None),
    )
    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) or None,
    )


app = create_app()
