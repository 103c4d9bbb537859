import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weatherway.api.router import api_router
from weatherway.core.config import Settings, get_settings
from weatherway.core.exceptions import WeatherWayError
from weatherway.models.weather import ErrorResponse

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to fetch weather data"
INVALID_PARAMETERS = "Invalid parameters"

app = FastAPI(
    title="Weather-way API",
    description="Historical climate baselines, trends and extreme-weather odds from NASA POWER data",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Report configuration problems early without refusing to start"""
    if not (settings.NASA_BEARER_TOKEN or "").strip():
        logger.warning("⚠️ NASA_BEARER_TOKEN is not set - weather requests will fail with 503")
    logger.info(f"🚀 Weather-way API started (history window {settings.years_analyzed})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Weather-way API shutting down")


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root(settings: Settings = Depends(get_settings)):
    """Root endpoint"""
    return {
        "message": "Weather-way API is running",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "api_base": settings.API_V1_STR,
    }


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check with configuration status"""
    token_configured = bool((settings.NASA_BEARER_TOKEN or "").strip())
    return {
        "status": "healthy" if token_configured else "degraded",
        "version": "1.0.0",
        "services": {
            "nasa_power": "configured" if token_configured else "missing_credentials",
        },
        "history_window": settings.years_analyzed,
        "grid_steps": settings.GRID_STEPS,
        "endpoints": {
            "weather": f"{settings.API_V1_STR}/weather",
            "grid_preview": f"{settings.API_V1_STR}/weather/grid",
            "documentation": "/docs",
        },
    }


def _error_response(status_code: int, error: str, code: str, detail: str) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(WeatherWayError)
async def weatherway_exception_handler(request: Request, exc: WeatherWayError):
    logger.error(f"{exc.code}: {exc} for request: {request.url}")
    error = INVALID_PARAMETERS if exc.status_code == 400 else GENERIC_FAILURE
    return _error_response(exc.status_code, error, exc.code, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    logger.warning(f"Invalid request {request.url}: {messages}")
    return _error_response(400, INVALID_PARAMETERS, "invalid_selection", "; ".join(messages))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Global exception: {exc} for request: {request.url}")
    return _error_response(
        500, GENERIC_FAILURE, "internal_error", "Internal server error. Please check logs for details."
    )


# Add middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(f"📥 {request.method} {request.url}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"📤 {request.method} {request.url} - {response.status_code} - {process_time:.3f}s"
    )

    return response
