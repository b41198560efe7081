"""Application configuration."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings validated at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    discord_bot_token: str = Field(..., alias="DISCORD_BOT_TOKEN", min_length=1)
    # Prepended to outgoing messages as "[name] content".
    project_name: str | None = Field(default=None, alias="PROJECT_NAME")
    login_timeout_seconds: float = Field(default=15.0, alias="LOGIN_TIMEOUT_SECONDS")
    initial_connect_delay_seconds: float = Field(default=2.0, alias="INITIAL_CONNECT_DELAY_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug_log_path: Path | None = Field(default=None, alias="DEBUG_LOG_PATH")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discord-bridge",
        description="MCP server exposing Discord channel tools over stdio.",
    )
    parser.add_argument("--project-name", help="Prefix outgoing messages with [NAME].")
    parser.add_argument("--log-level", help="Logging level for stderr output.")
    parser.add_argument("--debug-log", type=Path, help="Also write DEBUG logs to this file.")
    return parser


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Load and validate settings.

    Command-line flags take precedence over the environment.
    """

    args = build_arg_parser().parse_args(argv)
    overrides: dict[str, object] = {}
    if args.project_name:
        overrides["project_name"] = args.project_name
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.debug_log:
        overrides["debug_log_path"] = args.debug_log
    return Settings(**overrides)
