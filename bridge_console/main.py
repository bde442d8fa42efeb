import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from bridge_console.config.settings import settings
from bridge_console.core.exceptions import ConsoleError
from bridge_console.core.query_cache import QueryCache, CachePolicy
from bridge_console.modules.auth import routes as auth_routes
from bridge_console.modules.clients import routes as clients_routes
from bridge_console.modules.licenses import routes as licenses_routes
from bridge_console.modules.equipment import routes as equipment_routes
from bridge_console.modules.dashboard import routes as dashboard_routes
from bridge_console.modules.cache import routes as cache_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.state.query_cache = QueryCache(CachePolicy.from_settings(settings))
app.state.realtime_hub = None
app.state.cache_invalidator = None
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ConsoleError)
async def console_exception_handler(request: Request, exc: ConsoleError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(clients_routes.router, prefix="/api/v1")
app.include_router(licenses_routes.router, prefix="/api/v1")
app.include_router(equipment_routes.router, prefix="/api/v1")
app.include_router(dashboard_routes.router, prefix="/api/v1")
app.include_router(cache_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.realtime_enabled:
        from bridge_console.database.supabase_client import SupabaseClient
        from bridge_console.modules.realtime.service import RealtimeHub, mount_cache_invalidation
        client = await SupabaseClient.get_async_client()
        app.state.realtime_hub = RealtimeHub(client)
        app.state.cache_invalidator = await mount_cache_invalidation(
            app.state.realtime_hub, app.state.query_cache, settings.realtime_debounce_seconds
        )
        logger.info("Realtime cache invalidation mounted for %s", ", ".join(app.state.realtime_hub.tables))


@app.on_event("shutdown")
async def shutdown_event():
    if app.state.cache_invalidator is not None:
        app.state.cache_invalidator.cancel()
    if app.state.realtime_hub is not None:
        await app.state.realtime_hub.close()
    await app.state.query_cache.drain()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to bridge-console", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: extend here with Supabase checks if needed."""
    return {"status": "ready", "cached_queries": len(app.state.query_cache)}
