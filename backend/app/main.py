import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api import auth, carfax, cars, evaluations, payments
from app.core.config import settings
from app.core.database import check_database_health, create_tables
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.core.rate_limit import RateLimitMiddleware, build_rate_limiter
from app.core.redis_client import check_redis_health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the per-process rate limiter, then run its sweeper."""
    configure_logging()
    create_tables()

    limiter = build_rate_limiter()
    limiter.start_sweeper(settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS)
    app.state.rate_limiter = limiter
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started ({settings.ENVIRONMENT})")

    yield

    await limiter.stop_sweeper()
    app.state.rate_limiter = None
    logger.info("Rate limit sweeper stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Car buying assistant API: evaluations, market analysis, inspections and offers",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Rate limiting middleware
app.add_middleware(RateLimitMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-session-id", "X-RateLimit-Remaining"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({duration}ms)")
    return response


register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(evaluations.router, prefix="/api/evaluations", tags=["Evaluations"])
app.include_router(cars.router, prefix="/api/cars", tags=["Cars"])
app.include_router(carfax.router, prefix="/api/carfax", tags=["Carfax"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "evaluations": "/api/evaluations",
            "cars": "/api/cars",
            "carfax": "/api/carfax",
            "payments": "/api/payments",
            "health": "/health",
        },
    }


@app.get("/health")
def health_check():
    checks = {"database": check_database_health()}
    if settings.RATE_LIMIT_BACKEND == "redis":
        checks["redis"] = check_redis_health()

    healthy = all(check["status"] == "healthy" for check in checks.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        **checks,
    }
