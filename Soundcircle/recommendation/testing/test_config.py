import json
import tempfile
import unittest
from pathlib import Path

from Soundcircle.recommendation.config import DEFAULT_COMPATIBILITY_WEIGHTS, DEFAULT_HYBRID_WEIGHTS, EngineConfig
from Soundcircle.recommendation.config_loader import CONFIG_DIR, load_config, load_engine_config


class TestEngineConfig(unittest.TestCase):
    def test_defaults(self):
        config = EngineConfig()
        self.assertEqual(config.hybrid_weights, DEFAULT_HYBRID_WEIGHTS)
        self.assertEqual(config.compatibility_weights, DEFAULT_COMPATIBILITY_WEIGHTS)
        self.assertEqual(config.cold_start_threshold, 5)
        self.assertEqual(config.cache_ttl_seconds, 3600.0)
        self.assertIsNone(config.social_weight_cap)

    def test_partial_override_keeps_other_weights(self):
        config = EngineConfig(hybrid_weights={'cf': 0.35, 'era': 0.0})
        self.assertEqual(config.hybrid_weights['cf'], 0.35)
        self.assertEqual(config.hybrid_weights['genre'], 0.25)

    def test_unknown_or_negative_weight(self):
        with self.assertRaises(ValueError):
            EngineConfig(hybrid_weights={'tempo': 0.1})
        with self.assertRaises(ValueError):
            EngineConfig(compatibility_weights={'cf': -0.1})

    def test_round_trip_through_dict(self):
        config = EngineConfig(algorithm_version='b', social_weight_cap=2.0)
        self.assertEqual(EngineConfig.from_dict(config.to_dict()).to_dict(), config.to_dict())


class TestConfigLoader(unittest.TestCase):
    def test_bundled_default(self):
        config = load_engine_config()
        self.assertEqual(config.algorithm_version, 'hybrid-v1')
        self.assertEqual(config.hybrid_weights, DEFAULT_HYBRID_WEIGHTS)

    def test_experiment_variant(self):
        config = load_engine_config(CONFIG_DIR / 'experiment_cf_heavy.yml')
        self.assertEqual(config.algorithm_version, 'hybrid-cf-heavy')
        self.assertEqual(config.hybrid_weights['cf'], 0.45)
        self.assertEqual(config.social_weight_cap, 2.0)

    def test_json_and_toml(self):
        with tempfile.TemporaryDirectory() as tmp:
            json_path = Path(tmp) / 'cfg.json'
            json_path.write_text(json.dumps({'algorithm_version': 'json-test', 'trending_window_days': 3}))
            toml_path = Path(tmp) / 'cfg.toml'
            toml_path.write_text('[engine]\nalgorithm_version = "toml-test"\n\n[engine.hybrid_weights]\ncf = 0.5\n')

            from_json = load_engine_config(json_path)
            self.assertEqual(from_json.algorithm_version, 'json-test')
            self.assertEqual(from_json.trending_window_days, 3.0)

            from_toml = load_engine_config(toml_path)
            self.assertEqual(from_toml.algorithm_version, 'toml-test')
            self.assertEqual(from_toml.hybrid_weights['cf'], 0.5)

    def test_empty_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'empty.yml'
            path.write_text('')
            self.assertEqual(load_config(path), {})
            self.assertEqual(load_engine_config(path).algorithm_version, 'hybrid-v1')

    def test_bad_paths(self):
        with self.assertRaises(FileNotFoundError):
            load_config('/nonexistent/config.yml')
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.ini'
            path.write_text('[engine]')
            with self.assertRaises(ValueError):
                load_config(path)


if __name__ == '__main__':
    unittest.main()
