# coin_exchange/main.py
import logging
import time

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.responses import JSONResponse

from .database import Base, engine, SessionLocal
from .routers import users, stores, vehicles, assignments, transactions, stock, dashboard, system
from .routers.users import ensure_initial_user
from .settings import (
    CORS_ORIGINS,
    ALLOWED_HOSTS,
    ENABLE_HTTPS_REDIRECT,
    SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Coin Exchange API")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    _store: dict = {}

    def __init__(self, app, limit: int = 60, window_seconds: int = 60, paths: list[str] | None = None):
        super().__init__(app)
        self.limit = limit
        self.window = window_seconds
        self.paths = set(paths or [])

    def _evict(self, now: int) -> None:
        expired = [k for k, (_, start) in self._store.items() if now - start >= self.window]
        for k in expired:
            del self._store[k]

    async def dispatch(self, request, call_next):
        path = request.url.path
        method = request.method.upper()
        if self.paths and method == "POST" and any(path.startswith(p) for p in self.paths):
            ip = (request.client.host if request.client else "-")
            now = int(time.time())
            key = (ip, path)
            self._evict(now)
            count, start = self._store.get(key, (0, now))
            count += 1
            self._store[key] = (count, start)
            if count > self.limit:
                return JSONResponse({"error": "Too Many Requests"}, status_code=429)
        return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
if ENABLE_HTTPS_REDIRECT:
    app.add_middleware(HTTPSRedirectMiddleware)
if ALLOWED_HOSTS and ALLOWED_HOSTS != ["*"]:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=ALLOWED_HOSTS)

# Login and bootstrap are the only public POST endpoints
app.add_middleware(
    RateLimitMiddleware,
    limit=100,  # 100 req/min per IP per path
    window_seconds=60,
    paths=["/api/users/login", "/api/users/setup"],
)


@app.on_event("startup")
def on_startup():
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("Supabase credentials missing in environment variables; receipt upload disabled")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_initial_user(db)
    finally:
        db.close()


# Entry routing: pick a portal
@app.get("/", include_in_schema=False)
def home():
    return {
        "status": "Coin Exchange API is running",
        "portals": {"field": "/app", "admin": "/admin/login"},
    }


@app.get("/api", include_in_schema=False)
def api_status():
    return {"status": "Coin Exchange API is running"}


@app.get("/app", include_in_schema=False)
def field_app_entry():
    return RedirectResponse(url="/app/login", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@app.get("/admin", include_in_schema=False)
def admin_entry():
    return RedirectResponse(url="/admin/login", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


# Routers
app.include_router(users.router,        prefix="/api", tags=["users"])
app.include_router(stores.router,       prefix="/api", tags=["stores"])
app.include_router(vehicles.router,     prefix="/api", tags=["vehicles"])
app.include_router(assignments.router,  prefix="/api", tags=["assignments"])
app.include_router(transactions.router, prefix="/api", tags=["transactions"])
app.include_router(stock.router,        prefix="/api", tags=["stock"])
app.include_router(dashboard.router,    prefix="/api", tags=["dashboard"])
app.include_router(system.router,       prefix="/api", tags=["system"])


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException):
    # Clients read the message from "error"
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))
