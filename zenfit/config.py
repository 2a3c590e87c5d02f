"""Configuration management for the workout tracker."""

import os
from pathlib import Path
from dataclasses import dataclass

from dotenv import load_dotenv


# load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class PathConfig:
    """File path configuration."""

    base_dir: Path
    data_dir: Path
    output_dir: Path

    @classmethod
    def default(cls) -> "PathConfig":
        """
        Create path configuration, honouring ZENFIT_DATA_DIR and
        ZENFIT_OUTPUT_DIR when set.
        """
        base = Path(__file__).parent.parent
        data_dir = os.getenv("ZENFIT_DATA_DIR")
        output_dir = os.getenv("ZENFIT_OUTPUT_DIR")
        return cls(
            base_dir=base,
            data_dir=Path(data_dir) if data_dir else base / "data",
            output_dir=Path(output_dir) if output_dir else base / "output",
        )


@dataclass(frozen=True)
class AppConfig:
    """Application-wide configuration."""

    paths: PathConfig
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "AppConfig":
        """
        Load full application configuration.
        """
        log_level = os.getenv("ZENFIT_LOG_LEVEL", "INFO").upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid ZENFIT_LOG_LEVEL: {log_level}")

        return cls(paths=PathConfig.default(), log_level=log_level)
