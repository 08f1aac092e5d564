"""
Health check endpoints

- GET /api/health               basic liveness
- GET /api/health/dependencies  Supabase / LLM / Intercom configuration status
"""
import time
from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from supportiq import __version__
from supportiq.config import get_settings
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

APP_START_TIME = time.time()


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str
    uptime_seconds: float


class DependencyStatus(BaseModel):
    name: str
    status: str
    error_message: Optional[str] = None


class DependencyHealth(BaseModel):
    overall_status: str
    dependencies: Dict[str, DependencyStatus]
    checked_at: datetime = Field(default_factory=datetime.utcnow)


def _configured(name: str, *values: str) -> DependencyStatus:
    if all(values):
        return DependencyStatus(name=name, status="healthy")
    return DependencyStatus(name=name, status="degraded", error_message="Not configured")


def check_dependencies() -> Dict[str, DependencyStatus]:
    llm_key = settings.google_api_key if settings.llm_provider == "gemini" else settings.openai_api_key
    return {
        "supabase": _configured("supabase", settings.supabase_url, settings.supabase_key),
        "llm": _configured("llm", llm_key),
        "intercom": _configured("intercom", settings.intercom_access_token),
    }


def determine_overall_status(dependencies: Dict[str, DependencyStatus]) -> str:
    """
    Supabase and the LLM are required; Intercom delivery is optional.
    """
    for critical in ("supabase", "llm"):
        if dependencies[critical].status != "healthy":
            return "unhealthy"
    if any(dep.status != "healthy" for dep in dependencies.values()):
        return "degraded"
    return "healthy"


# ============================================================================
# API Endpoints
# ============================================================================

@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def basic_health_check() -> HealthResponse:
    """Always 200; does not check external dependencies"""
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=round(time.time() - APP_START_TIME, 2)
    )


@router.get("/dependencies", response_model=DependencyHealth, status_code=status.HTTP_200_OK)
async def dependency_health_check() -> DependencyHealth:
    dependencies = check_dependencies()
    overall = determine_overall_status(dependencies)
    if overall != "healthy":
        unhealthy = [name for name, dep in dependencies.items() if dep.status != "healthy"]
        logger.warning(f"Dependencies not ready: {', '.join(unhealthy)}")
    return DependencyHealth(overall_status=overall, dependencies=dependencies)
