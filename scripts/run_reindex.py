"""
CLI entry point for the DBOS re-index workflow.

Usage:
    uv run python scripts/run_reindex.py
"""
import asyncio
import uuid

# Load environment variables BEFORE importing workflow module
from dotenv import load_dotenv
load_dotenv()

from dbos import DBOS, SetWorkflowID
from portfolio_ask.config import get_settings
from portfolio_ask.db.db_manager import DatabaseManager
from portfolio_ask.ingestion.workflow import configure_reindex, reindex_workflow
from portfolio_ask.logging_config import configure_logging, get_logger

# Initialize logging
configure_logging(
    log_level=get_settings().log_level,
    json_format=get_settings().json_logs,
    log_file="reindex_workflow.log"
)
log = get_logger(__name__)


async def main():
    run_id = str(uuid.uuid4())[:8]
    db = DatabaseManager(get_settings().database_url)
    configure_reindex(db)

    log.info("workflow_starting", run_id=run_id)

    # Launch DBOS (initializes connection to system database)
    DBOS.launch()

    try:
        # Start the workflow with a unique ID for idempotency
        with SetWorkflowID(f"reindex-{run_id}"):
            result = await reindex_workflow(run_id)
    finally:
        await db.dispose()

    log.info("workflow_complete", **result)
    print(f"\nRe-index complete: {result}")


if __name__ == "__main__":
    asyncio.run(main())
