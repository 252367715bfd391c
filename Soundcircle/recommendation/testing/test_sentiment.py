import unittest

from Soundcircle.recommendation.models import SentimentAnnotation
from Soundcircle.recommendation.sentiment import analyze_and_store_sentiment, analyze_sentiment
from Soundcircle.recommendation.store import InMemoryStore


class TestSentiment(unittest.TestCase):
    def test_empty_text(self):
        self.assertEqual(analyze_sentiment(None), SentimentAnnotation(0.0, 0.0, ()))
        self.assertEqual(analyze_sentiment("   "), SentimentAnnotation(0.0, 0.0, ()))

    def test_positive_review(self):
        annotation = analyze_sentiment("I love this amazing song, truly beautiful")
        self.assertEqual(annotation.sentiment, 1.0)
        self.assertEqual(annotation.toxicity, 0.0)

    def test_toxic_review(self):
        annotation = analyze_sentiment("This is stupid trash, I hate it")
        self.assertEqual(annotation.sentiment, -1.0)
        self.assertEqual(annotation.toxicity, 1.0)

    def test_mixed_review(self):
        annotation = analyze_sentiment("great chorus but a boring bridge overall")
        self.assertEqual(annotation.sentiment, 0.0)

    def test_short_text_penalty(self):
        self.assertAlmostEqual(analyze_sentiment("ok").toxicity, 0.3)

    def test_emotions_in_fixed_order(self):
        annotation = analyze_sentiment("so nostalgic and happy")
        self.assertEqual(annotation.emotions, ('joy', 'nostalgia'))

    def test_store_annotation_last_writer_wins(self):
        store = InMemoryStore()
        review_id = store.save_review('u1', 's1', 4.5, "great song")
        analyze_and_store_sentiment(store, review_id, "great song")
        analyze_and_store_sentiment(store, review_id, "boring song honestly")
        self.assertEqual(len(store.sentiment), 1)
        self.assertEqual(store.sentiment['sentiment_score'].iloc[0], -1.0)

    def test_store_rejects_out_of_range_annotation(self):
        with self.assertRaises(ValueError):
            InMemoryStore().upsert_sentiment('r1', SentimentAnnotation(1.5, 0.0, ()))
        with self.assertRaises(ValueError):
            InMemoryStore().upsert_sentiment('r1', SentimentAnnotation(0.0, 1.2, ()))


if __name__ == '__main__':
    unittest.main()
