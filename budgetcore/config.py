"""
Engine configuration.

Values come from the environment (a local ``.env`` file is honoured through
python-dotenv). Defaults suit running from the repository root.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_SEED_PATH = "data/seed.json"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class EngineConfig:
    seed_path: str = DEFAULT_SEED_PATH
    log_level: str = DEFAULT_LOG_LEVEL


def load_config() -> EngineConfig:
    load_dotenv()
    return EngineConfig(
        seed_path=os.getenv("BUDGETCORE_SEED_PATH", DEFAULT_SEED_PATH),
        log_level=os.getenv("BUDGETCORE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
