"""Lexicon-based sentiment/toxicity annotation of review text.

Produces the annotation the community scorer consumes. Runs after a review is
saved; the scorer treats a missing annotation as neutral.
"""

import re
from typing import Optional

from Soundcircle.recommendation.models import SentimentAnnotation
from Soundcircle.recommendation.store import MusicStore

POSITIVE_WORDS = frozenset([
    'love', 'amazing', 'beautiful', 'perfect', 'great', 'excellent', 'wonderful',
    'fantastic', 'brilliant', 'awesome', 'incredible', 'outstanding', 'superb',
    'masterpiece', 'genius', 'epic', 'legendary', 'iconic', 'phenomenal',
    'best', 'favorite', 'adore', 'enjoy', 'like', 'happy', 'joyful', 'uplifting',
    'inspiring', 'moving', 'powerful', 'stunning', 'gorgeous', 'divine',
])

NEGATIVE_WORDS = frozenset([
    'hate', 'terrible', 'awful', 'horrible', 'worst', 'bad', 'poor', 'disappointing',
    'boring', 'dull', 'mediocre', 'trash', 'garbage', 'waste', 'sucks', 'lame',
    'annoying', 'irritating', 'overrated', 'unlistenable', 'painful', 'cringe',
])

TOXIC_WORDS = frozenset([
    'stupid', 'idiot', 'moron', 'dumb', 'trash', 'garbage', 'sucks', 'kill',
    'die', 'hate', 'disgusting', 'pathetic', 'loser', 'ugly', 'worthless',
])

EMOTION_KEYWORDS = {
    'joy': frozenset(['happy', 'joyful', 'cheerful', 'upbeat', 'fun', 'playful', 'energetic']),
    'sadness': frozenset(['sad', 'melancholy', 'depressing', 'somber', 'dark', 'emotional', 'tearjerker']),
    'anger': frozenset(['angry', 'aggressive', 'intense', 'powerful', 'furious', 'rage']),
    'nostalgia': frozenset(['nostalgic', 'memories', 'reminds', 'throwback', 'classic', 'timeless']),
    'calm': frozenset(['calm', 'peaceful', 'relaxing', 'soothing', 'chill', 'ambient', 'tranquil']),
    'energetic': frozenset(['energetic', 'hype', 'pumped', 'exciting', 'vibrant', 'dynamic']),
}

TOXICITY_SCALE = 5.0
SHORT_REVIEW_LENGTH = 10
SHORT_REVIEW_PENALTY = 0.3


def analyze_sentiment(text: Optional[str]) -> SentimentAnnotation:
    """Score review text.

    sentiment = (positive - negative) / (positive + negative), 0 without
    sentiment words. toxicity = 5 * toxic / words, plus a penalty for very
    short text, capped at 1. Emotions are listed in a fixed order.
    """
    if not text or not text.strip():
        return SentimentAnnotation(0.0, 0.0, ())

    words = text.lower().split()
    positive = negative = toxic = 0
    detected = set()
    for word in words:
        clean = re.sub(r'[^\w]', '', word)
        positive += clean in POSITIVE_WORDS
        negative += clean in NEGATIVE_WORDS
        toxic += clean in TOXIC_WORDS
        for emotion, keywords in EMOTION_KEYWORDS.items():
            if clean in keywords:
                detected.add(emotion)

    total = positive + negative
    sentiment = (positive - negative) / total if total else 0.0
    sentiment = max(-1.0, min(1.0, sentiment))

    toxicity = min(1.0, toxic / max(1, len(words)) * TOXICITY_SCALE)
    if len(text.strip()) < SHORT_REVIEW_LENGTH:
        toxicity = min(1.0, toxicity + SHORT_REVIEW_PENALTY)

    emotions = tuple(emotion for emotion in EMOTION_KEYWORDS if emotion in detected)
    return SentimentAnnotation(sentiment, toxicity, emotions)


def analyze_and_store_sentiment(store: MusicStore, review_id: str, text: Optional[str]) -> SentimentAnnotation:
    """Analyze *text* and upsert the annotation for *review_id* (last writer wins)."""
    annotation = analyze_sentiment(text)
    store.upsert_sentiment(review_id, annotation)
    return annotation
