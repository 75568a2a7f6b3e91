"""Schemas for the re-index workflow API."""
from pydantic import BaseModel
from typing import Optional


class ReindexResponse(BaseModel):
    """Response after starting a re-index workflow."""
    workflow_id: str
    status: str  # "started"
    message: str


class ReindexResult(BaseModel):
    """Counts reported by a finished re-index."""
    run_id: str
    total: int
    skipped: int
    upserted: int
    deleted: int


class WorkflowStatusResponse(BaseModel):
    """Response for workflow status check."""
    workflow_id: str
    status: str  # PENDING, SUCCESS, ERROR, ...
    result: Optional[ReindexResult] = None
