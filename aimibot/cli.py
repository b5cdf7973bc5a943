"""
aimibot CLI entry point.

Usage:
    aimibot                 # Connect to Discord with settings from .env
    aimibot --local         # Chat on stdin/stdout instead of Discord
    aimibot --mcp           # Discord bot plus MCP tools on stdio
    aimibot --help
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from aimibot import __version__
from aimibot.config import BotConfig
from aimibot.errors import ConfigError


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="aimibot",
        description="aimibot - Discord assistant with tool-calling LLM",
    )
    parser.add_argument(
        "--local",
        action="store_true",
        help="Use the stdin/stdout channel instead of Discord",
    )
    parser.add_argument(
        "--mcp",
        action="store_true",
        help="Also serve the Discord tools to MCP clients over stdio",
    )
    parser.add_argument(
        "--model",
        default="",
        help="Model name override (default: LLM_MODEL or anthropic/claude-3.5-sonnet)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Max tool-calling rounds per message (default: MAX_DEPTH or 5)",
    )
    parser.add_argument(
        "--log-level",
        default="",
        help="stderr log level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"aimibot {__version__}",
    )

    args = parser.parse_args()
    if args.local and args.mcp:
        parser.error("--mcp needs the Discord channel; it cannot be combined with --local")

    try:
        config = BotConfig.from_env(require_discord=not args.local)
    except ConfigError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)

    if args.model:
        config.model = args.model
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.log_level:
        config.log_level = args.log_level

    _setup_logging(config.log_level)

    try:
        asyncio.run(_run(config, local=args.local, mcp=args.mcp))
    except KeyboardInterrupt:
        print("\n[aimibot] Bye!")


def _setup_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        level=level.upper(),
    )
    logger.add(
        Path("~/.aimibot/aimibot.log").expanduser(),
        rotation="10 MB",
        retention="7 days",
        level="DEBUG",
    )


async def _run(config: BotConfig, local: bool = False, mcp: bool = False) -> None:
    from aimibot.agent import Agent, AgentConfig
    from aimibot.channels.base import PlatformAdapter
    from aimibot.executor import CapabilityExecutor
    from aimibot.gateway import Gateway, log_messages
    from aimibot.providers.openai import OpenAIProvider

    adapter: PlatformAdapter
    if local:
        from aimibot.channels.cli import CLIChannel
        adapter = CLIChannel(bot_name=config.bot_name)
    else:
        from aimibot.channels.discord import DiscordChannel
        adapter = DiscordChannel(token=config.discord_token)

    provider = OpenAIProvider(
        api_key=config.llm_api_key,
        base_url=config.llm_base_url,
        model=config.model,
    )
    logger.info(f"Provider: {config.llm_base_url} model={config.model}")

    executor = CapabilityExecutor(adapter)
    agent = Agent(
        provider=provider,
        executor=executor,
        config=AgentConfig(
            agent_id=config.bot_name.lower(),
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            max_depth=config.max_depth,
        ),
    )

    gw = Gateway(agent=agent, adapter=adapter, bot_name=config.bot_name)
    gw.use(log_messages())

    logger.info("aimibot starting...")
    if mcp:
        from aimibot import mcp_server
        await asyncio.gather(gw.run(), mcp_server.serve(executor))
    else:
        await gw.run()


if __name__ == "__main__":
    main()
