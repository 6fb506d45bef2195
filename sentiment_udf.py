"""Handler for the warehouse-side ``analyze_sentiment`` function.

Registered by ``sql/02_sentiment_udf.sql``; the warehouse calls
``analyze_sentiment`` once per review text.
"""

from typing import Union

from textblob import TextBlob


POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"


def polarity(text: Union[str, None]) -> float:
    """TextBlob polarity in [-1, 1]; empty or missing text scores 0."""
    if not isinstance(text, str) or not text.strip():
        return 0.0
    return float(TextBlob(text).sentiment.polarity)


def label_for(score: float, threshold: float = 0.0) -> str:
    if score > threshold:
        return POSITIVE
    if score < -threshold:
        return NEGATIVE
    return NEUTRAL


def analyze_sentiment(text: Union[str, None]) -> str:
    return label_for(polarity(text))
