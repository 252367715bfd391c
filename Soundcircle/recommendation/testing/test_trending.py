import unittest
from datetime import timedelta

import numpy as np
import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.store import InMemoryStore
from Soundcircle.recommendation.trending import TrendingEngine

from sample_data import NOW, FixedClock, songs_frame


class TestTrendingEngine(unittest.TestCase):
    def setUp(self):
        self.clock = FixedClock()
        self.store = InMemoryStore(songs=songs_frame(), clock=self.clock)
        self.store.save_review('u1', 's1', 5.0, created_at=NOW - timedelta(days=8))
        self.store.save_review('u1', 's2', 3.0, created_at=NOW - timedelta(days=1))
        self.store.save_review('u1', 's3', 4.0, created_at=NOW)
        self.store.save_review('u2', 's3', 2.0, created_at=NOW - timedelta(days=2))
        self.engine = TrendingEngine(self.store, EngineConfig(), clock=self.clock)

    def test_ranking_and_engagement(self):
        trending = self.engine.trending(10)
        self.assertEqual(list(trending['song_id']), ['s3', 's2'])
        self.assertAlmostEqual(trending['engagement'].iloc[0], 4.0 + 2.0 * np.exp(-0.4))
        self.assertAlmostEqual(trending['engagement'].iloc[1], 3.0 * np.exp(-0.2))
        pd.testing.assert_series_equal(trending['score'], trending['engagement'], check_names=False)

    def test_review_outside_window_is_ignored_even_with_top_rating(self):
        reviews = pd.DataFrame({
            'song_id': ['old', 'new'],
            'rating': [5.0, 0.5],
            'created_at': [NOW - timedelta(days=8), NOW - timedelta(days=6)],
        })
        engagement = self.engine.engagement(reviews, NOW)
        self.assertEqual(list(engagement.index), ['new'])

    def test_limit(self):
        self.assertEqual(list(self.engine.trending(1)['song_id']), ['s3'])
        with self.assertRaises(ValueError):
            self.engine.trending(0)

    def test_ties_break_by_song_id(self):
        reviews = pd.DataFrame({
            'song_id': ['s7', 's5', 's6'],
            'rating': [4.0, 4.0, 4.0],
            'created_at': [NOW, NOW, NOW],
        })
        self.assertEqual(list(self.engine.engagement(reviews, NOW).index), ['s5', 's6', 's7'])

    def test_no_recent_reviews(self):
        self.clock.advance(days=30)
        trending = self.engine.trending(5)
        self.assertTrue(trending.empty)
        self.assertEqual(list(trending.columns), TrendingEngine.output_columns)

    def test_ignores_preferences(self):
        self.store.set_preferences('u9', ['fr'], [(1960, 1969)])
        self.assertIn('s3', set(self.engine.trending(5)['song_id']))


if __name__ == '__main__':
    unittest.main()
