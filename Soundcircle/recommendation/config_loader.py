"""
Tiny helper to load configuration files in YAML, JSON or TOML.

Usage:
    cfg = load_config('configs/default.yml')
    engine_config = load_engine_config('configs/experiment_cf_heavy.yml')
"""
from pathlib import Path
from typing import Dict, Union
import json
import tomli as tomllib  # type: ignore
import yaml

from Soundcircle.recommendation.config import EngineConfig

CONFIG_DIR = Path(__file__).resolve().parent / "configs"


def _suffix(path: Union[str, Path]) -> str:
    return Path(path).suffix.lower()


def load_config(path: Union[str, Path]) -> Dict:
    """Return the configuration dictionary stored in *path*."""
    path = Path(path).expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(path)

    ext = _suffix(path)
    if ext in {".yml", ".yaml"}:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    if ext == ".json":
        return json.loads(path.read_text(encoding="utf-8"))
    if ext in {".toml", ".tml"}:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    raise ValueError(f"Unsupported config format: {ext}")


def load_engine_config(path: Union[str, Path, None] = None) -> EngineConfig:
    """Build an ``EngineConfig`` from *path*, or from the bundled defaults when omitted.

    The file may hold the settings at top level or under an ``engine`` key.
    """
    cfg = load_config(path if path is not None else CONFIG_DIR / "default.yml")
    if "engine" in cfg:
        cfg = cfg["engine"]
    return EngineConfig.from_dict(cfg)
