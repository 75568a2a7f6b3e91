"""
Re-index endpoint for triggering the DBOS workflow via REST API.
"""
import uuid
from fastapi import APIRouter, Depends, HTTPException

from dbos import DBOS, SetWorkflowID
from portfolio_ask.api.dependencies import require_reindex_token
from portfolio_ask.schemas.ingest import ReindexResponse, ReindexResult, WorkflowStatusResponse
from portfolio_ask.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/reindex", tags=["Reindex"], dependencies=[Depends(require_reindex_token)])


@router.post("", response_model=ReindexResponse)
async def start_reindex() -> ReindexResponse:
    """
    Start a re-index workflow.
    Returns immediately with a workflow ID for status polling.
    """
    from portfolio_ask.ingestion.workflow import reindex_workflow

    run_id = str(uuid.uuid4())[:8]
    workflow_id = f"reindex-{run_id}"

    log.info("workflow_starting_via_api", workflow_id=workflow_id)

    # Start workflow asynchronously (returns handle, doesn't wait)
    with SetWorkflowID(workflow_id):
        await DBOS.start_workflow_async(reindex_workflow, run_id)

    return ReindexResponse(
        workflow_id=workflow_id,
        status="started",
        message="Re-index started",
    )


@router.get("/{workflow_id}/status", response_model=WorkflowStatusResponse)
async def get_workflow_status(workflow_id: str) -> WorkflowStatusResponse:
    """
    Get the status of a re-index workflow.
    """
    try:
        handle = await DBOS.retrieve_workflow_async(workflow_id)
        status = (await handle.get_status()).status
    except Exception as e:
        log.error("workflow_status_error", workflow_id=workflow_id, error=str(e))
        raise HTTPException(status_code=404, detail=f"Workflow not found: {workflow_id}") from e

    result = None
    if status == "SUCCESS":
        result = ReindexResult(**(await handle.get_result()))

    return WorkflowStatusResponse(workflow_id=workflow_id, status=status, result=result)
