"""
MCP Server exposing the portfolio assistant as a tool for AI assistants.

Provides the same functionality as the REST /ask endpoint
with equivalent error handling, logging, and observability.
"""
import os

# Suppress Opik SDK console output (it prints to stdout which breaks MCP JSON protocol)
# Must be set BEFORE importing opik
os.environ["OPIK_CONSOLE_LOGGING_LEVEL"] = "CRITICAL"

# Configure logging FIRST, before any other imports that might log
from portfolio_ask.config import get_settings
from portfolio_ask.logging_config import configure_logging, get_logger

settings = get_settings()
configure_logging(
    log_level=settings.log_level,
    json_format=settings.json_logs,
    use_stderr=True,  # MCP uses stdout for JSON protocol
)

log = get_logger(__name__)

# Now import everything else (safe - logging goes to stderr)
from fastmcp import FastMCP
from pydantic import ValidationError
from portfolio_ask.bootstrap import build_components
from portfolio_ask.schemas.ask import AskRequest
from portfolio_ask.observability import configure_observability, track, set_evaluation_source
from portfolio_ask.exceptions import AllTiersFailedError, ContentError

# Initialize observability
configure_observability()

components = build_components(settings)

mcp = FastMCP("portfolio-ask")


@mcp.tool()
@track(name="mcp_ask_portfolio")
async def ask_portfolio(query: str, lang: str = "en") -> dict:
    """
    Ask a question about the portfolio owner's projects, thesis, experience
    or skills, and get a grounded answer with citations.

    Args:
        query: The question (1-1000 characters)
        lang: Answer language, "de" or "en" (default: "en")

    Returns:
        A dict with the answer, citations and suggested links.
    """
    set_evaluation_source("mcp")
    log.info("mcp_ask_tool_called", query_length=len(query), lang=lang)

    try:
        request = AskRequest(query=query, lang=lang)
        response = await components.service.answer(request.query, request.lang, components.tier_config())
        log.info("mcp_ask_tool_success", citations=len(response.citations))
        return response.model_dump()

    except ValidationError as e:
        log.error("mcp_invalid_request", error_count=e.error_count())
        return {
            "error": True,
            "error_type": "ValidationError",
            "message": "Query must be 1-1000 characters and lang must be 'de' or 'en'.",
        }

    except (AllTiersFailedError, ContentError) as e:
        log.error("mcp_provider_error", error=str(e))
        return {
            "error": True,
            "error_type": "provider_error",
            "message": "The assistant is temporarily unavailable. Please retry.",
        }

    except Exception as e:
        log.exception("mcp_unexpected_error", error=str(e))
        return {
            "error": True,
            "error_type": "UnexpectedError",
            "message": "An unexpected error occurred.",
        }


if __name__ == "__main__":
    mcp.run()
