import unittest

import pandas as pd

from Soundcircle.recommendation.collaborative_filtering import (
    CollaborativeFilteringScorer,
    normalize_rating,
    ratings_to_dict,
)


class TestCollaborativeFiltering(unittest.TestCase):
    def setUp(self):
        self.scorer = CollaborativeFilteringScorer()

    def test_normalize_rating(self):
        self.assertEqual(normalize_rating(5.0), 1.0)
        self.assertEqual(normalize_rating(0.5), 0.0)
        self.assertAlmostEqual(normalize_rating(2.75), 0.5)

    def test_no_reviews_is_neutral(self):
        self.assertEqual(self.scorer.score('me', pd.DataFrame(columns=['user_id', 'rating']), {}), 0.5)

    def test_own_review_is_ignored(self):
        reviews = pd.DataFrame({'user_id': ['me'], 'rating': [5.0]})
        self.assertEqual(self.scorer.score('me', reviews, {'me': 1.0}), 0.5)

    def test_neighbours_without_positive_similarity_are_neutral(self):
        reviews = pd.DataFrame({'user_id': ['u1', 'u2'], 'rating': [5.0, 1.0]})
        self.assertEqual(self.scorer.score('me', reviews, {'u1': 0.0}), 0.5)
        self.assertIsNone(self.scorer.predict_rating('me', reviews, {}))

    def test_similarity_weighted_prediction(self):
        reviews = pd.DataFrame({'user_id': ['u1', 'u2'], 'rating': [5.0, 1.0]})
        prediction = self.scorer.predict_rating('me', reviews, {'u1': 1.0, 'u2': 0.5})
        self.assertAlmostEqual(prediction, (5.0 + 0.5) / 1.5)
        self.assertAlmostEqual(self.scorer.score('me', reviews, {'u1': 1.0, 'u2': 0.5}), (prediction - 0.5) / 4.5)

    def test_similarities_from_rating_frames(self):
        mine = ratings_to_dict(pd.DataFrame({'song_id': ['s1'], 'rating': [5.0]}))
        theirs = {'u1': {'s1': 5.0}, 'u2': {'s9': 2.0}}
        similarities = self.scorer.similarities(mine, theirs)
        self.assertAlmostEqual(similarities['u1'], 1.0)
        self.assertEqual(similarities['u2'], 0.0)


if __name__ == '__main__':
    unittest.main()
