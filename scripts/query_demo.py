"""
Ask the assistant from the command line, one-shot or streaming.

Usage:
    uv run python scripts/query_demo.py "Which projects relate to fraud?" [en|de] [--stream]
"""
import asyncio
import sys

from dotenv import load_dotenv
load_dotenv()

from portfolio_ask.bootstrap import build_components
from portfolio_ask.config import get_settings
from portfolio_ask.logging_config import configure_logging
from portfolio_ask.schemas.chunks import Language


async def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    stream = "--stream" in sys.argv
    query = args[0] if args else "Which projects relate to fraud/risk?"
    lang = Language(args[1]) if len(args) > 1 else Language.EN

    settings = get_settings()
    configure_logging(log_level="WARNING", json_format=False)
    components = build_components(settings)
    tiers = components.tier_config()

    print(f"Query: {query} ({lang.value}) tiers={tiers.model_dump()}")
    print("-" * 60)
    try:
        if stream:
            async for event in components.service.stream_answer(query, lang, tiers):
                if event.type == "delta":
                    print(event.text, end="", flush=True)
                else:
                    print(f"\n[{event.type}]")
            return

        response = await components.service.answer(query, lang, tiers)
        print(response.answer)
        print("\nCitations:")
        for i, citation in enumerate(response.citations, 1):
            print(f"  {i}. {citation.doc_id} / {citation.section_id}: {citation.snippet}")
        print("\nLinks:")
        for link in response.suggested_links:
            print(f"  - {link.label}: {link.href}")
    finally:
        await components.close()


if __name__ == "__main__":
    asyncio.run(main())
