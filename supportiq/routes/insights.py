"""
Deflection insight API routes

GET /api/insights/deflection - cluster recent tickets and report
deflection opportunities
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from supportiq.errors import ClusteringInputError, InsufficientDataError, RepositoryError
from supportiq.models.schemas import DeflectionAnalysis
from supportiq.routes.dependencies import get_analysis_service
from supportiq.services.analysis import AnalysisParams, AnalysisService
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/insights", tags=["insights"])


class DeflectionAnalysisResponse(BaseModel):
    success: bool = True
    analysis: DeflectionAnalysis
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    parameters: AnalysisParams


@router.get("/deflection", response_model=DeflectionAnalysisResponse)
async def get_deflection_insights(
    days: int = Query(90, ge=30, le=180),
    min_tickets: int = Query(10, ge=5, le=100),
    agent_hourly_cost: float = Query(30.0, ge=15, le=200),
    account_id: str = Header(..., alias="X-Account-ID"),
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Deflection-opportunity analysis for the account

    Returns 400 when the window holds fewer than `min_tickets` tickets.
    """
    params = AnalysisParams(days=days, min_tickets=min_tickets, agent_hourly_cost=agent_hourly_cost)

    try:
        analysis = await service.run(account_id, params)
    except InsufficientDataError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Insufficient data for deflection analysis",
                "message": str(e),
                "current_count": e.current_count,
            }
        )
    except ClusteringInputError as e:
        logger.error(f"Clustering failed for account {account_id}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except RepositoryError as e:
        logger.error(f"Analysis storage failure for account {account_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch tickets")

    return DeflectionAnalysisResponse(analysis=analysis, parameters=params)
