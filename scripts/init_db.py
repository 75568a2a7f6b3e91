"""
Create the pgvector extension and the rag_chunks table.

Usage:
    uv run python scripts/init_db.py
"""
import asyncio

from dotenv import load_dotenv
load_dotenv()

from portfolio_ask.config import get_settings
from portfolio_ask.db.db_manager import DatabaseManager


async def main():
    print("Initializing Database...")
    db = DatabaseManager(get_settings().database_url)
    try:
        await db.init_db()
        print("✅ Tables created successfully!")
    except Exception as e:
        print(f"❌ Failed: {e}")
        raise SystemExit(1)
    finally:
        await db.dispose()

if __name__ == "__main__":
    asyncio.run(main())
