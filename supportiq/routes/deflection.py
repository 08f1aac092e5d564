"""
Deflection API routes

- POST /api/deflection/process   run the pipeline for one ticket
- POST /api/deflection/feedback  record customer satisfaction
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel

from supportiq.errors import RepositoryError
from supportiq.models.schemas import DeflectionPolicy, ProcessingResult, Ticket
from supportiq.repositories import ResponseRepository
from supportiq.routes.dependencies import get_pipeline, get_response_repository
from supportiq.services.pipeline import DeflectionPipeline
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/deflection", tags=["deflection"])


class ProcessRequest(BaseModel):
    """Ticket to process, with an optional policy override"""
    ticket: Ticket
    policy: Optional[DeflectionPolicy] = None


class FeedbackRequest(BaseModel):
    ticket_id: str
    satisfied: bool
    feedback: Optional[str] = None


class FeedbackResponse(BaseModel):
    success: bool
    updated: int


@router.post("/process", response_model=ProcessingResult)
async def process_ticket(
    request: ProcessRequest,
    account_id: str = Header(..., alias="X-Account-ID"),
    pipeline: DeflectionPipeline = Depends(get_pipeline)
) -> ProcessingResult:
    """
    Run the deflection pipeline for one ticket

    Generation failures are reported in the body (success=false), not as
    HTTP errors. Storage failures return 502 so the caller can retry.
    """
    if request.ticket.account_id != account_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Ticket does not belong to this account"
        )

    try:
        return await pipeline.process(request.ticket, request.policy)
    except RepositoryError as e:
        logger.error(f"Pipeline storage failure for ticket {request.ticket.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/feedback", response_model=FeedbackResponse)
async def record_feedback(
    request: FeedbackRequest,
    account_id: str = Header(..., alias="X-Account-ID"),
    responses: ResponseRepository = Depends(get_response_repository)
) -> FeedbackResponse:
    """Store whether the customer was satisfied with the automated response"""
    try:
        updated = await responses.record_feedback(
            account_id, request.ticket_id, request.satisfied, request.feedback
        )
    except RepositoryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No AI response found for ticket {request.ticket_id}"
        )
    return FeedbackResponse(success=True, updated=updated)
