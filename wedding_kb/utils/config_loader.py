from functools import lru_cache
from pathlib import Path
import os
import yaml

# will return the root directory of the project => wedding-kb

def _project_root() -> Path:
    # wedding_kb/utils/config_loader.py -> parents[2] is the repository root
    return Path(__file__).resolve().parents[2]

def load_config(config_path: str | None = None) -> dict:

    env_path = os.getenv("CONFIG_PATH", None)

    if config_path is None:
        config_path = env_path or str(_project_root() / "wedding_kb" / "config" / "config.yaml")

    path = Path(config_path)

    if not path.is_absolute():
        path = _project_root() / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    with open(path , "r" , encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


@lru_cache(maxsize=1)
def get_config() -> dict:
    """Process-wide cached config; use load_config() to read a specific file."""
    return load_config()
