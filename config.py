"""
⚙️ CONFIG - Where things live and who we talk to
================================================
Defaults are fine for a local run. Every value can be overridden with an
environment variable, so a deployment never has to edit code.
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_DATA_DIR = Path(__file__).parent / "data"
DEFAULT_GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_GROQ_MODEL = "llama3-8b-8192"
DEFAULT_SCHEDULER_URL = "https://chrono-school-scheduler-plus.lovable.app/"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    groq_api_url: str = DEFAULT_GROQ_API_URL
    groq_model: str = DEFAULT_GROQ_MODEL
    groq_api_key: Optional[str] = None
    suggestion_timeout: float = 20.0
    scheduler_url: str = DEFAULT_SCHEDULER_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment, falling back to defaults."""
        timeout_raw = os.environ.get("SUGGESTION_TIMEOUT", "20")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            logging.getLogger(__name__).warning(
                "Ignoring invalid SUGGESTION_TIMEOUT=%r", timeout_raw
            )
            timeout = 20.0
        return cls(
            data_dir=Path(os.environ.get("SETUP_WIZARD_DATA_DIR", str(DEFAULT_DATA_DIR))),
            groq_api_url=os.environ.get("GROQ_API_URL", DEFAULT_GROQ_API_URL),
            groq_model=os.environ.get("GROQ_MODEL", DEFAULT_GROQ_MODEL),
            groq_api_key=os.environ.get("GROQ_API_KEY") or None,
            suggestion_timeout=timeout,
            scheduler_url=os.environ.get("SCHEDULER_URL", DEFAULT_SCHEDULER_URL),
            log_level=os.environ.get("SETUP_WIZARD_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Attach one stdout handler to the root logger. Safe to call on every rerun."""
    root_logger = logging.getLogger()
    if not any(getattr(h, "_setup_wizard", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._setup_wizard = True
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
