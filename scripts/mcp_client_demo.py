"""
Call the ask_portfolio MCP tool over stdio.

Usage:
    uv run python scripts/mcp_client_demo.py "What was your thesis about?" [en|de]
"""
import asyncio
import os
import sys
import time
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def main():
    query = sys.argv[1] if len(sys.argv) > 1 else "What was your thesis about?"
    lang = sys.argv[2] if len(sys.argv) > 2 else "en"

    # Same command as running the server by hand
    server_params = StdioServerParameters(
        command="uv",
        args=["run", "python", "scripts/run_mcp_server.py"],
        env=os.environ.copy(),
    )

    print("🔌 Connecting to MCP server...")

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print(f"✅ Connected! Found {len(tools.tools)} tools: {[t.name for t in tools.tools]}")

            print(f"\n❓ Sending query: '{query}' ({lang})")
            start_time = time.time()
            try:
                result = await session.call_tool(
                    "ask_portfolio",
                    arguments={"query": query, "lang": lang},
                )
            except Exception as e:
                print(f"\n❌ Tool call failed: {e}")
                return

            print(f"\n🚀 Response received in {time.time() - start_time:.2f} seconds!")
            for content in result.content:
                if content.type == "text":
                    print("\n--- Answer ---")
                    print(content.text)
                else:
                    print(f"\n[Non-text content: {content.type}]")


if __name__ == "__main__":
    asyncio.run(main())
