from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
import time
import traceback

from config import settings
from database import create_tables, make_database
from storage import DatabaseStorage, MemStorage
from auth import DatabaseSessionStore, MemorySessionStore
from rate_limit import FixedWindowRateLimiter, client_ip
from log_utils import log, loggable_body, request_line
from admin_api import router as admin_router
from api.auth import router as auth_router
from api.orders import router as orders_router
from api.products import router as products_router
import schemas

app = FastAPI(
    title="MAXWIL Bakery API",
    description="Bakery and fast-food ordering storefront: catalog, checkout, and admin order management",
    version="1.0.0"
)

app.state.rate_limiter = FixedWindowRateLimiter(
    window_seconds=settings.rate_limit_window_seconds,
    max_requests=settings.rate_limit_max_requests,
    max_keys=settings.rate_limit_max_keys,
)

app.include_router(auth_router)
app.include_router(products_router)
app.include_router(orders_router)
app.include_router(admin_router)


# ========== MIDDLEWARE ==========
@app.middleware("http")
async def rate_limit_api(request: Request, call_next):
    if request.url.path.startswith("/api"):
        key = client_ip(request, settings.trust_proxy)
        if not request.app.state.rate_limiter.hit(key):
            return JSONResponse(status_code=429, content={"detail": "Too many requests"})
    return await call_next(request)


@app.middleware("http")
async def security_headers_and_logging(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        log(request_line(request.method, request.url.path, response.status_code, duration_ms))
    return response


# CORS wraps everything so preflights never count against the rate limit
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ========== LIFECYCLE ==========
def build_backends(database):
    if settings.storage_backend == "database":
        storage = DatabaseStorage(database)
    elif settings.storage_backend == "memory":
        storage = MemStorage()
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND '{settings.storage_backend}'")

    if settings.session_store == "database":
        sessions = DatabaseSessionStore(database, settings.session_max_age)
    elif settings.session_store == "memory":
        sessions = MemorySessionStore(settings.session_max_age)
    else:
        raise ValueError(f"Unknown SESSION_STORE '{settings.session_store}'")
    return storage, sessions


@app.on_event("startup")
async def startup():
    database = None
    if "database" in (settings.storage_backend, settings.session_store):
        create_tables(settings.database_url)
        database = make_database(settings.database_url)
    app.state.database = database

    app.state.storage, app.state.sessions = build_backends(database)
    await app.state.storage.connect()
    # session-only database setups still need the connection
    if database is not None and not database.is_connected:
        await database.connect()
    if isinstance(app.state.sessions, DatabaseSessionStore):
        await app.state.sessions.sweep()

    await app.state.storage.initialize(
        settings.admin_username,
        settings.admin_password,
        settings.admin_security_code,
    )
    log(f"storage={settings.storage_backend} sessions={settings.session_store}", source="startup")


@app.on_event("shutdown")
async def shutdown():
    await app.state.storage.disconnect()
    if app.state.database is not None and app.state.database.is_connected:
        await app.state.database.disconnect()


# ========== ROOT ENDPOINTS ==========
@app.get("/api/config", response_model=schemas.ClientConfig)
async def read_client_config():
    # maps fall back to plain address entry when the key is missing
    return {"GOOGLE_MAPS_API_KEY": settings.google_maps_api_key}


@app.get("/")
async def read_root():
    return {
        "message": "Welcome to MAXWIL Bakery API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "config": "/api/config",
            "products": "/api/products",
            "orders": "/api/orders",
            "auth": ["/api/register", "/api/login", "/api/logout", "/api/user"],
            "admin": "/api/admin/",
        }
    }


@app.get("/health")
async def health_check():
    db_status = "not configured"
    if app.state.database is not None:
        try:
            await app.state.database.execute("SELECT 1")
            db_status = "connected"
        except Exception as e:
            log(f"health check failed: {e!r}", source="error")
            db_status = "disconnected"

    return {
        "status": "healthy",
        "database": db_status,
        "storage": settings.storage_backend,
        "timestamp": datetime.now().isoformat(),
    }


# ========== ERROR HANDLERS ==========
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        errors.append({"field": field or "body", "message": error["msg"]})

    log(f"{request.method} {request.url.path} rejected: {loggable_body(exc.body)}", source="validation")
    return JSONResponse(status_code=400, content={"detail": errors})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log(f"{request.method} {request.url.path} failed: {exc!r}", source="error")
    traceback.print_exception(type(exc), exc, exc.__traceback__)

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
