# pagecast/main.py
"""
Pagecast FastAPI Application

HTTP adapter around the SessionRegistry: a presenter publishes a page under a
session ID, participants respond per user, the presenter collects or resets
the responses. Handlers validate and translate; all state lives in the
registry owned by the application.
"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.concurrency import run_in_threadpool
from contextlib import asynccontextmanager
from typing import Optional
import argparse
import logging

from pagecast.core.config import Settings, get_settings, validate_settings
from pagecast.core.exceptions import (
    ConfigurationError,
    PagecastError,
    PayloadTooLargeError,
    RegistryLockError,
    SessionNotFoundError,
    ValidationError,
    config_error,
)
from pagecast.core.expiry import start_expiry_sweeper, stop_expiry_sweeper
from pagecast.core.logging_config import setup_logging
from pagecast.core.rate_limit_config import create_limiter, rate_limit_exceeded_handler
from pagecast.core.session_registry import SessionRegistry, create_session_registry

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-cache"}


def get_safe_error_message(error: Exception, context: str = "") -> str:
    """Return a message that is safe to show to clients; internal faults stay in the log"""
    if isinstance(error, (ValidationError, SessionNotFoundError)):
        return error.message

    logger.error(f"Error in {context}: {type(error).__name__}: {error}")
    return "Internal server error"


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_registry(request: Request) -> SessionRegistry:
    """FastAPI dependency returning the registry owned by the application"""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise config_error("SessionRegistry not initialized", "registry")
    return registry


async def read_body(request: Request, registry: SessionRegistry) -> str:
    """
    Read the request body as text, enforcing the payload limit first.

    A declared Content-Length over the limit is rejected without reading.
    Otherwise the body is counted while it streams in and the request is
    rejected as soon as the limit is passed.
    """
    validator = registry.validator
    declared = request.headers.get("content-length")
    if declared and declared.isdigit():
        validator.check_payload_size(int(declared)).raise_for_error("body")

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        validator.check_payload_size(received).raise_for_error("body")
        chunks.append(chunk)

    return validator.validate_body(b"".join(chunks))


# =============================================================================
# ROUTES
# =============================================================================

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def index():
    return "A session ID is necessary."


@router.get("/health")
def health(registry: SessionRegistry = Depends(get_registry)):
    """Liveness check with the live session count"""
    return {"status": "healthy", "num_sessions": registry.count_sessions()}


@router.get("/stats")
def stats(registry: SessionRegistry = Depends(get_registry)):
    return JSONResponse(
        content={"num_sessions": registry.count_sessions()},
        headers=NO_CACHE
    )


def build_session_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """
    Routes under /s/..., each limited by the given limiter.

    Built per application so that the limiter and its limit come from the
    settings the application was created with.
    """
    session_router = APIRouter(prefix="/s")

    @session_router.get("/{session_id}")
    @limiter.limit(rate_limit)
    def page_for_session(
        request: Request,
        session_id: str,
        registry: SessionRegistry = Depends(get_registry)
    ):
        """Return the current page content of a session"""
        content = registry.get_page(session_id)
        return PlainTextResponse(content=content, headers=NO_CACHE)

    @session_router.post("/{session_id}/set_page")
    @limiter.limit(rate_limit)
    async def set_page(
        request: Request,
        session_id: str,
        registry: SessionRegistry = Depends(get_registry)
    ):
        """Publish new page content; starts a new round and clears responses"""
        content = await read_body(request, registry)
        await run_in_threadpool(registry.set_page, session_id, content)
        return Response(status_code=200)

    @session_router.post("/{session_id}/reset_responses")
    @limiter.limit(rate_limit)
    def reset_responses(
        request: Request,
        session_id: str,
        registry: SessionRegistry = Depends(get_registry)
    ):
        registry.reset_responses(session_id)
        return Response(status_code=200)

    @session_router.post("/{session_id}/respond/{user_id}")
    @limiter.limit(rate_limit)
    async def respond(
        request: Request,
        session_id: str,
        user_id: str,
        registry: SessionRegistry = Depends(get_registry)
    ):
        """Record a participant's response; the session must already exist"""
        body = await read_body(request, registry)
        await run_in_threadpool(registry.respond, session_id, user_id, body)
        return Response(status_code=200)

    @session_router.get("/{session_id}/responses")
    @limiter.limit(rate_limit)
    def responses(
        request: Request,
        session_id: str,
        registry: SessionRegistry = Depends(get_registry)
    ):
        """Return all responses of the current round as {user_id: body}"""
        return JSONResponse(content=registry.get_responses(session_id), headers=NO_CACHE)

    return session_router


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def validation_error_handler(request: Request, exc: ValidationError):
    status_code = 413 if isinstance(exc, PayloadTooLargeError) else 400
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return PlainTextResponse(content=exc.message, status_code=status_code)


def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    logger.debug(f"{request.method} {request.url.path}: {exc.message}")
    return PlainTextResponse(content=exc.message, status_code=400)


def internal_error_handler(request: Request, exc: PagecastError):
    message = get_safe_error_message(exc, f"{request.method} {request.url.path}")
    return PlainTextResponse(content=message, status_code=500)


# =============================================================================
# APPLICATION
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expiry sweeper on startup, stop it on shutdown"""
    config: Settings = app.state.settings
    registry: SessionRegistry = app.state.registry

    logger.info("=" * 60)
    logger.info(f"{config.APP_NAME} API starting")
    if not validate_settings(config):
        logger.warning("Some settings are invalid - check PAGECAST_* environment variables")
    logger.info(f"  - Session lifetime: {config.session_ttl}")
    logger.info(f"  - Sweep interval: {config.SWEEP_INTERVAL_SECONDS}s")
    logger.info(f"  - Rate limiting: {config.RATE_LIMIT_DEFAULT if app.state.limiter.enabled else 'off'}")
    logger.info("=" * 60)

    sweeper = start_expiry_sweeper(registry, config.SWEEP_INTERVAL_SECONDS, config.session_ttl)

    yield

    await stop_expiry_sweeper(sweeper)
    metrics = registry.get_metrics()
    logger.info(
        f"{config.APP_NAME} API shutting down "
        f"({metrics['active_sessions']} live sessions dropped, "
        f"{metrics['total_created']} created, {metrics['expired_cleaned']} expired)"
    )


def create_app(
    config: Optional[Settings] = None,
    registry: Optional[SessionRegistry] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to use, defaults to the environment settings
        registry: Registry to serve, a new one is built from config if omitted
    """
    setup_logging()
    config = config or get_settings()

    app = FastAPI(
        title="Pagecast API",
        description="Broadcast a page, collect responses",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None
    )
    app.state.settings = config
    app.state.registry = registry if registry is not None else create_session_registry(config)
    app.state.limiter = create_limiter(config.RATE_LIMIT_ENABLED)

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(SessionNotFoundError, session_not_found_handler)
    app.add_exception_handler(RegistryLockError, internal_error_handler)
    app.add_exception_handler(ConfigurationError, internal_error_handler)
    app.add_exception_handler(PagecastError, internal_error_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests except health checks"""
        if request.url.path != "/health":
            logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response

    # Any origin may publish, respond and read
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.include_router(build_session_router(app.state.limiter, config.RATE_LIMIT_DEFAULT))
    return app


app = create_app()


def parse_args(argv=None) -> argparse.Namespace:
    config = get_settings()
    parser = argparse.ArgumentParser(description="Pagecast broadcast page server")
    parser.add_argument("--host", default=config.HOST, help="bind address")
    parser.add_argument("--port", type=int, default=config.PORT, help="bind port")
    return parser.parse_args(argv)


def run(argv=None) -> None:
    """Console entry point"""
    import uvicorn

    args = parse_args(argv)
    logger.info(f"Start server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    run()
