# history_sync/configs/config.py
import yaml
from pathlib import Path
from functools import lru_cache
from typing import Any, Dict


class Config:
    """
    Static configuration for the ingestion pipeline.
    """

    # This points to history_sync/configs/
    CONFIG_DIR = Path(__file__).parent.resolve()
    # This points to the project root
    PROJECT_ROOT = CONFIG_DIR.parent.parent

    INGESTION_CONFIG_PATH = CONFIG_DIR / "ingestion.yaml"

    @classmethod
    @lru_cache
    def load_ingestion_config(cls) -> dict:
        """Loads the YAML configuration for the ingestion pipeline."""
        if not cls.INGESTION_CONFIG_PATH.exists():
            raise FileNotFoundError(f"Missing config at {cls.INGESTION_CONFIG_PATH}")

        with open(cls.INGESTION_CONFIG_PATH, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def format_config(cls, format_name: str) -> Dict[str, Any]:
        """
        Return the settings block for a single source format.

        Unknown formats yield an empty dict so callers can fall back
        to their own defaults.
        """
        formats = cls.load_ingestion_config().get("formats", {})
        return dict(formats.get(format_name) or {})

    @classmethod
    def content_limit(cls, format_name: str, default: int = 300) -> int:
        """Maximum content_snippet length for a format."""
        return int(cls.format_config(format_name).get("content_limit", default))

    @classmethod
    def detection_sample_lines(cls) -> int:
        """Number of leading lines sampled by the text format heuristics."""
        detection = cls.load_ingestion_config().get("detection", {})
        return int(detection.get("sample_lines", 20))
