"""
PharmaCare Backend: pharmacy management API.

ARCHITECTURE:
- FastAPI routers per resource, thin: validate, resolve user/role, call a service
- Services own the transaction: one commit per workflow, rollback on error
- SQLite (dev) / PostgreSQL: source of truth for all state
- Audit trail written on its own session, mirrored to the "audit" logger

SAFETY MODEL:
- Safety screening is advisory: warnings are stored and returned, never block
- Remote advisory (Groq) is optional, bounded by a timeout, one attempt
- Controlled substances always leave an audit entry, even on a failed create
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.api.routes import (
    audit_logs,
    auth,
    dashboard,
    inventory,
    patients,
    prescriptions,
    products,
    quotations,
    returns,
    sales,
    shifts,
    suppliers,
)
from app.core.config import settings
from app.core.exceptions import PharmacyError, pharmacy_error_handler, unhandled_error_handler
from app.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create tables and the bootstrap administrator.
    A failed startup is fatal; the app does not serve without its schema.
    """
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    if not settings.GROQ_API_KEY:
        logger.warning("GROQ_API_KEY not set - safety screening uses local rules only")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="PharmaCare API",
    description="Patients, prescriptions with safety screening, inventory, point of sale and audit.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,  # Cache preflight for 10 minutes
    expose_headers=["Content-Type"],
)


# SECURITY: Add security headers middleware
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"  # Prevent MIME sniffing
    response.headers["X-Frame-Options"] = "DENY"  # Prevent clickjacking
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"  # HSTS
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"  # Patient data must not be cached
    return response


app.add_exception_handler(PharmacyError, pharmacy_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(patients.router, prefix="/patients", tags=["patients"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(suppliers.router, tags=["suppliers"])
app.include_router(inventory.router, tags=["inventory"])
app.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(shifts.router, prefix="/shifts", tags=["shifts"])
app.include_router(returns.router, prefix="/returns", tags=["returns"])
app.include_router(quotations.router, prefix="/quotations", tags=["quotations"])
app.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit"])


@app.get("/health")
def health():
    return {"status": "ok", "remote_advisory": "enabled" if settings.GROQ_API_KEY else "disabled"}
