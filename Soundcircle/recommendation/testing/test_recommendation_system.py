import unittest

import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.exceptions import RecommendationUnavailableError, StoreUnavailableError
from Soundcircle.recommendation.models import COMPONENT_COLUMNS, COMPONENT_NAMES
from Soundcircle.recommendation.recommendation_system import RecommendationMode, RecommendationSystem, select_mode
from Soundcircle.recommendation.store import InMemoryStore

from sample_data import FixedClock, build_store, songs_frame


class FlakyStore(InMemoryStore):
    """In-memory store whose review lookups fail as if the backend were down."""

    def __init__(self, *args, fail_on=('get_reviews_by_user',), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_on = set(fail_on)

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise StoreUnavailableError(f"{name} timed out")

    def get_reviews_by_user(self, user_id):
        self._maybe_fail('get_reviews_by_user')
        return super().get_reviews_by_user(user_id)

    def get_reviews_by_song(self, song_id):
        self._maybe_fail('get_reviews_by_song')
        return super().get_reviews_by_song(song_id)

    def get_reviews_since(self, since):
        self._maybe_fail('get_reviews_since')
        return super().get_reviews_since(since)


def flaky_copy(store, fail_on):
    flaky = FlakyStore(
        songs=store.songs, reviews=store.reviews, sentiment=store.sentiment,
        follows=store.follows, preferences=store.preferences, clock=store.clock, fail_on=fail_on
    )
    return flaky


class TestModeSelection(unittest.TestCase):
    def test_threshold(self):
        self.assertIs(select_mode(0), RecommendationMode.COLD_START)
        self.assertIs(select_mode(4), RecommendationMode.COLD_START)
        self.assertIs(select_mode(5), RecommendationMode.HYBRID)
        self.assertIs(select_mode(50), RecommendationMode.HYBRID)

    def test_configurable_threshold(self):
        system = RecommendationSystem(InMemoryStore(), EngineConfig(cold_start_threshold=2))
        self.assertIs(system.select_mode(2), RecommendationMode.HYBRID)


class TestRecommendationSystem(unittest.TestCase):
    def setUp(self):
        self.clock = FixedClock()
        self.store = build_store(self.clock)
        self.system = RecommendationSystem(self.store, clock=self.clock)

    def test_four_reviews_get_cold_start(self):
        recs = self.system.recommend('newbie', n=10)
        self.assertEqual(set(recs['mode']), {'cold_start'})
        # popularity + 1.0 favorite artist + 0.5 preferred language; rated songs stay eligible
        self.assertEqual(list(recs['song_id']), ['s4', 's1', 's7', 's2', 's5', 's6'])
        self.assertEqual(list(recs['score']), [31.5, 11.5, 8.5, 5.5, 2.5, 1.5])

    def test_five_reviews_get_hybrid(self):
        recs = self.system.recommend('veteran', n=10)
        self.assertEqual(set(recs['mode']), {'hybrid'})
        self.assertEqual(list(recs['song_id']), ['s5', 's6', 's7'])
        for column in COMPONENT_COLUMNS:
            self.assertIn(column, recs.columns)
        self.assertEqual(set(recs['language']), {'en'})

    def test_hybrid_excludes_rated_and_filtered_songs(self):
        recs = self.system.recommend('veteran', n=10)
        rated = set(self.store.get_reviews_by_user('veteran')['song_id'])
        self.assertFalse(rated & set(recs['song_id']))
        self.assertTrue((recs['language'] == 'en').all())
        self.assertTrue(recs['release_year'].between(1990, 1999).all())

    def test_hybrid_components(self):
        recs = self.system.recommend('veteran', n=10).set_index('song_id')
        self.assertAlmostEqual(recs.loc['s5', 'cf_score'], 1.0)
        self.assertEqual(recs.loc['s6', 'cf_score'], 0.5)
        self.assertEqual(recs.loc['s6', 'community_score'], 0.5)
        self.assertAlmostEqual(recs.loc['s5', 'genre_score'], 1 / 3)
        self.assertEqual(recs.loc['s7', 'era_score'], 0.0)
        self.assertTrue((recs['language_score'] == 1.0).all())
        self.assertTrue((recs['artist_score'] == 0.0).all())

    def test_limit_truncates(self):
        self.assertEqual(len(self.system.recommend('newbie', n=2)), 2)
        with self.assertRaises(ValueError):
            self.system.recommend('newbie', n=0)

    def test_hybrid_scores_bounded_for_any_weights(self):
        weight_sets = [None, {name: 1.0 for name in COMPONENT_NAMES}, {name: 0.0 for name in COMPONENT_NAMES}]
        for name in COMPONENT_NAMES:
            weight_sets.append({other: (1.0 if other == name else 0.0) for other in COMPONENT_NAMES})
        for weights in weight_sets:
            system = RecommendationSystem(self.store, EngineConfig(hybrid_weights=weights), clock=self.clock)
            scores = system.recommend('veteran', n=10)['score']
            self.assertTrue(scores.between(0.0, 1.0).all(), weights)
            self.assertTrue(scores.is_monotonic_decreasing, weights)

    def test_empty_result_is_not_an_error(self):
        self.store.set_preferences('veteran', ['de'])
        recs = self.system.recommend('veteran')
        self.assertTrue(recs.empty)
        self.assertIn('score', recs.columns)

    def test_unknown_user_gets_cold_start(self):
        recs = self.system.recommend('nobody', n=3)
        self.assertEqual(set(recs['mode']), {'cold_start'})
        self.assertEqual(list(recs['song_id']), ['s3', 's4', 's1'])

    def test_store_failure_surfaces_as_unavailable(self):
        for fail_on in (['get_reviews_by_user'], ['get_reviews_by_song']):
            system = RecommendationSystem(flaky_copy(self.store, fail_on), clock=self.clock)
            with self.assertRaises(RecommendationUnavailableError) as ctx:
                system.recommend('veteran')
            self.assertEqual(str(ctx.exception), "recommendations unavailable, retry")
            self.assertIsInstance(ctx.exception.__cause__, StoreUnavailableError)

    def test_trending_store_failure(self):
        system = RecommendationSystem(flaky_copy(self.store, ['get_reviews_since']), clock=self.clock)
        with self.assertRaises(RecommendationUnavailableError):
            system.trending()

    def test_compatibility_store_failure(self):
        system = RecommendationSystem(flaky_copy(self.store, ['get_reviews_by_user']), clock=self.clock)
        with self.assertRaises(RecommendationUnavailableError):
            system.compatibility('veteran', 'neighbour')

    def test_metrics_recorded_for_hybrid_only(self):
        system = RecommendationSystem(self.store, EngineConfig(algorithm_version='exp-a'), clock=self.clock,
                                      record_metrics=True)
        system.recommend('newbie')
        self.assertTrue(self.store.recommendation_metrics.empty)

        recs = system.recommend('veteran')
        metrics = self.store.recommendation_metrics
        self.assertEqual(len(metrics), len(recs))
        self.assertEqual(set(metrics['algorithm_version']), {'exp-a'})
        self.assertEqual(set(metrics['score_components'].iloc[0]), set(COMPONENT_NAMES))

    def test_annotate_review_feeds_community_score(self):
        review_id = self.store.save_review('neighbour', 's6', 5.0, 'I love it, amazing and beautiful')
        annotation = self.system.annotate_review(review_id, 'I love it, amazing and beautiful')
        self.assertEqual(annotation.sentiment, 1.0)
        reviews = self.store.get_reviews_by_song('s6')
        self.assertEqual(reviews['sentiment_score'].iloc[0], 1.0)


class TestColdStartLargeCatalog(unittest.TestCase):
    def test_most_popular_song_survives_the_candidate_cap(self):
        rows = [(f's{i}', 'a9', ['pop'], 'en', 2000, 1.0) for i in range(1200)]
        rows[-1] = ('s1199', 'a9', ['pop'], 'en', 2000, 999.0)
        clock = FixedClock()
        store = InMemoryStore(songs=songs_frame(rows), clock=clock)
        system = RecommendationSystem(store, clock=clock)

        recs = system.recommend('new_user', n=5)
        self.assertEqual(recs['song_id'].iloc[0], 's1199')
        self.assertEqual(list(recs['song_id'].iloc[1:]), ['s0', 's1', 's2', 's3'])


class TestDeterminism(unittest.TestCase):
    def test_same_snapshot_same_answer(self):
        clock = FixedClock()
        first = RecommendationSystem(build_store(clock), clock=clock).recommend('veteran')
        second = RecommendationSystem(build_store(clock), EngineConfig(max_workers=1), clock=clock).recommend('veteran')
        pd.testing.assert_frame_equal(first, second)

    def test_rank_order_is_stable_across_worker_counts(self):
        clock = FixedClock()
        store = build_store(clock)
        results = [
            list(RecommendationSystem(store, EngineConfig(max_workers=w), clock=clock).recommend('veteran')['song_id'])
            for w in (1, 2, 8, 8)
        ]
        self.assertTrue(all(r == results[0] for r in results))


if __name__ == '__main__':
    unittest.main()
