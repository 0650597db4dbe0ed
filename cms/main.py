from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from cms.api.api import api_router
from cms.core.config import Settings, get_settings
from cms.core.exceptions import CMSError, InternalError, ValidationFailed
from cms.db.database import Store
import logging
import json
import traceback

logger = logging.getLogger("cms")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
REDACTED = "***"
SENSITIVE_HEADERS = {"authorization", "cookie"}


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)


def _redact_body(body: bytes) -> str | None:
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        return body.decode(errors="replace")
    if isinstance(payload, dict):
        payload = {
            key: REDACTED if "password" in key.lower() else value
            for key, value in payload.items()
        }
    return json.dumps(payload)


def format_validation_errors(exc: RequestValidationError) -> list[str]:
    """One "<field>: <message>" line per failed field, in Pydantic's order."""
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        ctx = error.get("ctx") or {}
        if error.get("type") == "value_error" and "error" in ctx:
            msg = str(ctx["error"])
        else:
            msg = error.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CMSError)
    async def handle_cms_error(request: Request, exc: CMSError):
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        error = ValidationFailed(errors=format_validation_errors(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        # unmatched path or method
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"success": False, "message": "Route not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def create_app(settings: Settings | None = None, store: Store | None = None) -> FastAPI:
    settings = settings or get_settings()
    store = store or Store(settings.sqlalchemy_url)
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        # make sure tables are created
        store.create_tables()
        logger.info("Serving %s on database %s", settings.api_prefix, store.url)
        yield
        store.dispose()

    app = FastAPI(title="Headless CMS API", version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        body = await request.body()
        request_info = {
            "url": str(request.url),
            "method": request.method,
            "headers": {
                key: REDACTED if key.lower() in SENSITIVE_HEADERS else value
                for key, value in request.headers.items()
            },
            "body": _redact_body(body),
            "query_params": dict(request.query_params)
        }

        try:
            # execute the request
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed with exception\n"
                f"Request: {json.dumps(request_info, indent=2)}\n"
                f"Error: {str(e)}\n"
                f"Traceback: {traceback.format_exc()}"
            )
            return JSONResponse(status_code=500, content=InternalError().to_dict())

        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        if response.status_code >= 400:
            response_body = b""
            async for chunk in response.body_iterator:
                response_body += chunk

            log = logger.error if response.status_code >= 500 else logger.warning
            log(
                f"Request failed with status {response.status_code}\n"
                f"Request: {json.dumps(request_info, indent=2)}\n"
                f"Response: {response_body.decode(errors='replace')}\n"
            )
            return Response(
                content=response_body,
                status_code=response.status_code,
                headers=dict(response.headers),
                media_type=response.media_type
            )

        return response

    register_exception_handlers(app)

    # register the API router
    app.include_router(api_router, prefix=settings.api_prefix)
    return app
