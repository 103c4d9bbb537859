from fastapi import APIRouter
from weatherway.api.endpoints import weather

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(weather.router, prefix="/weather", tags=["weather"])


# Health check endpoint
@api_router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "Weather-way API", "version": "1.0.0"}
