import unittest

import pandas as pd

from Soundcircle.recommendation.hard_filter import apply_hard_filter, passes_hard_filter
from Soundcircle.recommendation.models import EraRange, PreferenceProfile

from sample_data import songs_frame


class TestHardFilter(unittest.TestCase):
    def setUp(self):
        self.profile = PreferenceProfile(frozenset(['en']), (EraRange(1990, 1999),), ())
        self.candidates = songs_frame()

    def test_language_mismatch_is_excluded(self):
        self.assertFalse(passes_hard_filter('es', 1995, {'en'}, [EraRange(1990, 1999)]))
        self.assertTrue(passes_hard_filter('en', 1995, {'en'}, [EraRange(1990, 1999)]))

    def test_profile_admits_english_nineties_only(self):
        admitted = apply_hard_filter(self.candidates, self.profile)
        self.assertEqual(list(admitted['song_id']), ['s1', 's2', 's5', 's6', 's7'])

    def test_idempotent(self):
        once = apply_hard_filter(self.candidates, self.profile)
        twice = apply_hard_filter(once, self.profile)
        pd.testing.assert_frame_equal(once, twice)

    def test_order_independent(self):
        shuffled = self.candidates.sample(frac=1.0, random_state=7).reset_index(drop=True)
        self.assertEqual(
            set(apply_hard_filter(shuffled, self.profile)['song_id']),
            set(apply_hard_filter(self.candidates, self.profile)['song_id'])
        )

    def test_empty_profile_admits_everything(self):
        admitted = apply_hard_filter(self.candidates, PreferenceProfile())
        self.assertEqual(len(admitted), len(self.candidates))

    def test_language_only(self):
        admitted = apply_hard_filter(self.candidates, self.profile, use_eras=False)
        self.assertIn('s4', set(admitted['song_id']))
        self.assertNotIn('s3', set(admitted['song_id']))

    def test_unknown_year_fails_era_condition(self):
        self.assertFalse(passes_hard_filter('en', None, {'en'}, [EraRange(1990, 1999)]))
        self.assertTrue(passes_hard_filter('en', None, {'en'}, []))


if __name__ == '__main__':
    unittest.main()
