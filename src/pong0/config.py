"""
Configuration dataclasses for pong0.

Every runtime switch (verbose logging, manual challenge overrides, server
port and key) lives in these structures and is passed explicitly into the
components that need it; nothing reads ambient module state.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://ping0.cc"
DEFAULT_USER_AGENT = "Mozilla/5.0 Pong0/1.0.0 Python"


@dataclass
class SolverConfig:
    """Challenge solver settings."""

    max_iterations: int = 100_000
    animated: bool = False  # page animation state, always off for ping0.cc


@dataclass
class TransportConfig:
    """HTTP transport settings for talking to ping0.cc."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 10.0


@dataclass
class ServerConfig:
    """HTTP API server settings."""

    host: str = "0.0.0.0"
    port: int = 8080
    api_key: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    verbose: bool = False
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ManualChallenge:
    """Operator-supplied challenge values that bypass page extraction."""

    x1: str
    difficulty: Optional[str] = None


@dataclass
class SystemConfig:
    """Main configuration combining all sub-configurations."""

    solver: SolverConfig = field(default_factory=SolverConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def load_config_from_env(dotenv_path: Optional[Path] = None) -> SystemConfig:
    """
    Build a SystemConfig from PONG0_* environment variables.

    A .env file is loaded first (existing variables win), so deployments can
    keep their settings next to the binary.

    Args:
        dotenv_path: Optional explicit .env location

    Returns:
        SystemConfig with defaults for anything unset or unparsable
    """
    load_dotenv(dotenv_path=dotenv_path)

    api_key = os.getenv("PONG0_API_KEY", "").strip() or None
    output_format = (os.getenv("PONG0_LOG_FORMAT", "text") or "text").lower()
    if output_format not in ("json", "text", "both"):
        output_format = "text"

    return SystemConfig(
        solver=SolverConfig(
            max_iterations=_int_env("PONG0_MAX_ITERATIONS", 100_000),
        ),
        transport=TransportConfig(
            base_url=(os.getenv("PONG0_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL).rstrip("/"),
            user_agent=os.getenv("PONG0_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT,
            timeout=_float_env("PONG0_TIMEOUT", 10.0),
        ),
        server=ServerConfig(
            host=os.getenv("PONG0_HOST", "0.0.0.0") or "0.0.0.0",
            port=_int_env("PONG0_PORT", 8080),
            api_key=api_key,
        ),
        logging=LoggingConfig(
            verbose=os.getenv("PONG0_VERBOSE", "0") == "1",
            output_format=output_format,
        ),
    )
