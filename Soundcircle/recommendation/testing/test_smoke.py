import importlib
from pathlib import Path


def test_configs_load():
    base_path = Path(__file__).resolve().parents[1] / "configs"
    for cfg_name in ["default.yml", "experiment_cf_heavy.yml"]:
        cfg_path = base_path / cfg_name
        assert cfg_path.exists(), f"Config missing: {cfg_path}"


def test_main_imports():
    # Ensure entrypoint imports without executing main
    mod = importlib.import_module("Soundcircle.recommendation.MainSystem")
    assert hasattr(mod, "main")


def test_package_exports():
    mod = importlib.import_module("Soundcircle.recommendation")
    for name in ["RecommendationSystem", "InMemoryStore", "EngineConfig", "RecommendationDataManager"]:
        assert hasattr(mod, name), name
