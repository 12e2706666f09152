import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config import settings
from core.exceptions import PricingError
from database import connect_db, close_db

# Routers
from routers import couriers

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Rate limiter : limite par défaut appliquée à toutes les routes
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT])


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_db()
    logger.info(f"CourierHub Pricing API started ({settings.APP_ENV})")
    yield
    # Shutdown
    await close_db()
    logger.info("CourierHub Pricing API stopped")


app = FastAPI(
    title="CourierHub Pricing API",
    description="Prix transporteurs, marges marchands et comparaison multi-transporteurs",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


async def _pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} sur {request.url.path} : {exc.message}")
    content = {"detail": exc.message, "code": exc.code}
    excluded = getattr(exc, "excluded", None)
    if excluded:
        content["excluded"] = excluded
    return JSONResponse(status_code=exc.status_code, content=content)


app.add_exception_handler(PricingError, _pricing_error_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else ["https://courierhub.no"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(couriers.router, prefix="/api/couriers", tags=["Couriers"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV, "version": "1.0.0"}
