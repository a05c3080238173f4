"""Configuration management for the Scribe recording agent."""

import sys
from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoordinatorMode(str, Enum):
    """Which recording coordinator backs the agent."""
    LOCAL = "local"  # Spawns Playwright codegen on this machine
    SIMULATED = "simulated"  # Synthesizes actions, no subprocess


def default_codegen_executable() -> str:
    """Platform-appropriate launcher for the codegen tool."""
    return "npx.cmd" if sys.platform == "win32" else "npx"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server Settings
    agent_host: str = Field("127.0.0.1", description="Host the agent binds to")
    agent_port: int = Field(4317, description="Port the agent listens on")
    allowed_origins: list[str] = Field(["*"], description="CORS origins allowed to call the agent")

    # Coordinator
    coordinator_mode: CoordinatorMode = Field(
        CoordinatorMode.LOCAL,
        description="Recording coordinator implementation"
    )

    # Codegen subprocess
    capture_output: bool = Field(
        True,
        description="Pipe codegen stdout/stderr for scraping instead of inheriting the terminal"
    )
    codegen_executable: str = Field(
        default_factory=default_codegen_executable,
        description="Executable used to launch Playwright"
    )
    codegen_base_args: list[str] = Field(
        ["playwright", "codegen"],
        description="Arguments placed before the generated --target/--browser flags"
    )
    codegen_cwd: Optional[str] = Field(None, description="Working directory for the codegen process")

    # Simulated coordinator
    simulated_action_delay_seconds: float = Field(
        1.0,
        description="Delay before the simulated navigate action is recorded"
    )

    # Client
    agent_url: str = Field("http://localhost:4317", description="Base URL the client uses to reach the agent")
    agent_timeout_seconds: float = Field(10.0, description="HTTP timeout for agent calls")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Render logs as JSON")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
