from langchain_core.language_models import BaseChatModel
from portfolio_ask.config import Settings, LLMProvider
from portfolio_ask.exceptions import LLMError
from portfolio_ask.logging_config import get_logger

log = get_logger(__name__)


def get_llm(settings: Settings) -> BaseChatModel:
    """
    Factory that returns the configured LLM (Chat Model).
    Supports: OpenAI, Google Gemini.

    Sampling parameters (temperature, max tokens) are bound per call by the
    completion service.
    """
    llm_context = settings.llm
    timeout = settings.timeout.llm_seconds

    if not llm_context.api_key:
        raise LLMError("LLM__API_KEY is not configured")

    try:
        if llm_context.provider == LLMProvider.OPENAI:
            from langchain_openai import ChatOpenAI
            log.info("llm_initialized", provider=llm_context.provider.value, model=llm_context.model)
            return ChatOpenAI(
                model=llm_context.model,
                api_key=llm_context.api_key,
                request_timeout=timeout,
                max_retries=0,
            )

        elif llm_context.provider == LLMProvider.GEMINI:
            from langchain_google_genai import ChatGoogleGenerativeAI
            log.info("llm_initialized", provider=llm_context.provider.value, model=llm_context.model)
            return ChatGoogleGenerativeAI(
                model=llm_context.model,
                google_api_key=llm_context.api_key,
                timeout=timeout,
                max_retries=0,
            )

        else:
            raise LLMError(f"Unsupported LLM provider: {llm_context.provider}")

    except LLMError:
        raise
    except Exception as e:
        log.error("llm_init_failed", provider=llm_context.provider.value, error=str(e))
        raise LLMError(f"Failed to initialize LLM: {e}") from e
