"""
Replay Configuration

Operator parameters for a replay run. Values come from the environment
(optionally a .env file) and are overridden by command-line flags.
"""

import math
import os
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Iterator, Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from cruisereplay.errors import ConfigError
from cruisereplay.parsers.underway import PARSER_REGISTRY
from cruisereplay.timeutil import parse_iso_utc

ENV_PREFIX = "CRUISEREPLAY_"

# field name -> environment variable suffix
ENV_NAMES = {
    'evt_dir': 'EVT_DIR',
    'underway_file': 'UNDERWAY',
    'seaflow_log': 'SEAFLOWLOG',
    'out_dir': 'OUTDIR',
    'start': 'START',
    'warp': 'WARP',
    'udp_host': 'HOST',
    'udp_port': 'PORT',
    'throttle_sec': 'THROTTLE',
    'startup_grace_sec': 'GRACE',
    'underway_parser': 'PARSER',
}

REQUIRED = ('evt_dir', 'underway_file', 'seaflow_log', 'out_dir')


@dataclass
class ReplayConfig:
    """Configuration for one replay run."""

    # ========== Inputs ==========
    # Directory searched recursively for EVT and SFL files
    evt_dir: str = ""

    # Underway raw feed file (.gz allowed)
    underway_file: str = ""

    # SeaFlow instrument log file
    seaflow_log: str = ""

    # ========== Outputs ==========
    # Output root directory
    out_dir: str = ""

    # UDP destination for the underway feed
    udp_host: str = "255.255.255.255"
    udp_port: int = 5555

    # ========== Timing ==========
    # RFC 3339 cruise-time start; empty = earliest record over all feeds
    start: str = ""

    # Cruise seconds per replay second (>1 speeds up)
    warp: float = 1.0

    # Produce underway data of one record type at most every N seconds
    throttle_sec: float = 60.0

    # Delay between scheduling and the first possible emission
    startup_grace_sec: float = 5.0

    # Underway parser registry key
    underway_parser: str = "Kilo Moana"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ReplayConfig":
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional .env path; default searches upward from the cwd

        Raises:
            ConfigError: If a numeric variable does not parse
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        cfg = cls()
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + ENV_NAMES[f.name])
            if raw is None or raw == "":
                continue
            try:
                value = f.type(raw) if f.type in (int, float) else raw
            except ValueError as e:
                raise ConfigError(f"{ENV_PREFIX}{ENV_NAMES[f.name]}: {e}") from e
            setattr(cfg, f.name, value)
        return cfg

    def merge(self, **overrides) -> "ReplayConfig":
        """Apply non-None overrides (e.g. parsed CLI flags) in place."""
        for key, value in overrides.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        return self

    def cruise_start(self) -> Optional[datetime]:
        """
        Parsed cruise-time start, UTC. None when unset.

        Raises:
            ConfigError: If start is not RFC 3339
        """
        if not self.start:
            return None
        try:
            return parse_iso_utc(self.start)
        except ValueError as e:
            raise ConfigError(f"--start: {e}") from e

    def validate(self) -> "ReplayConfig":
        """
        Check the configuration.

        Raises:
            ConfigError: On the first invalid value
        """
        for name in REQUIRED:
            if not getattr(self, name):
                raise ConfigError(f"missing required option --{name_to_flag(name)}")
        if not math.isfinite(self.warp) or self.warp <= 0:
            raise ConfigError(f"--warp must be a positive number, got {self.warp}")
        if not 1 <= self.udp_port <= 65535:
            raise ConfigError(f"--port must be in 1..65535, got {self.udp_port}")
        if self.throttle_sec < 0:
            raise ConfigError(f"--throttle must be >= 0, got {self.throttle_sec}")
        if self.startup_grace_sec < 0:
            raise ConfigError(f"--grace must be >= 0, got {self.startup_grace_sec}")
        if self.underway_parser not in PARSER_REGISTRY:
            raise ConfigError(f"unknown underway parser {self.underway_parser!r}")
        self.cruise_start()
        return self

    def describe(self) -> Iterator[Tuple[str, object]]:
        """(flag, value) pairs for the options banner."""
        for f in fields(self):
            yield f"--{name_to_flag(f.name)}", getattr(self, f.name)


FLAG_NAMES = {
    'evt_dir': 'evt',
    'underway_file': 'underway',
    'seaflow_log': 'seaflowlog',
    'out_dir': 'outdir',
    'udp_host': 'host',
    'udp_port': 'port',
    'throttle_sec': 'throttle',
    'startup_grace_sec': 'grace',
    'underway_parser': 'parser',
}


def name_to_flag(name: str) -> str:
    return FLAG_NAMES.get(name, name)
