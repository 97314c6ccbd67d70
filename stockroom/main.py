from sqlalchemy import text
from sqlalchemy.exc import DataError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from stockroom.core.observability import (
    http_exception_handler,
    integrity_error_handler,
    operational_error_handler,
    policy_denied_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from stockroom.core.config import settings
from stockroom.core.policies import PolicyDenied
from stockroom.db.session import engine
from stockroom.routers import auth, categories, dashboard, products, settings as settings_router, stock, warehouses
from stockroom.routers.documents import deliveries_router, receipts_router

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Backend API for warehouse inventory tracking.\n\n"
        "Swagger quick test flow:\n"
        "1. Call `POST /auth/register` or `POST /auth/login`.\n"
        "2. Click **Authorize** and use your email + password "
        "(OAuth token URL: `/auth/token`).\n"
        "3. Test protected endpoints (`/products`, `/receipts`, `/deliveries`, `/stock`, `/dashboard`)."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Registration, login and the caller's own profile."},
        {"name": "warehouses", "description": "Storage locations."},
        {"name": "categories", "description": "Product categories."},
        {"name": "products", "description": "Product catalog."},
        {"name": "receipts", "description": "Incoming stock documents and their lines."},
        {"name": "deliveries", "description": "Outgoing stock documents and their lines."},
        {"name": "stock", "description": "Stock ledger, balances, adjustments and transfers."},
        {"name": "settings", "description": "Role assignments."},
        {"name": "dashboard", "description": "Inventory KPIs."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(PolicyDenied, policy_denied_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(DataError, integrity_error_handler)
app.add_exception_handler(OperationalError, operational_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:5173"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local frontends run on arbitrary localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(warehouses.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(receipts_router)
app.include_router(deliveries_router)
app.include_router(stock.router)
app.include_router(settings_router.router)
app.include_router(dashboard.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError:
        return {"ok": False}
    return {"ok": True}
