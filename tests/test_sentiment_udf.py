import pytest

from sentiment_udf import NEGATIVE, NEUTRAL, POSITIVE, analyze_sentiment, label_for, polarity


@pytest.mark.parametrize("score, expected", [
    (0.8, POSITIVE),
    (0.0001, POSITIVE),
    (0.0, NEUTRAL),
    (-0.0001, NEGATIVE),
    (-1.0, NEGATIVE),
])
def test_label_for(score, expected):
    assert label_for(score) == expected


def test_label_for_with_threshold():
    assert label_for(0.03, threshold=0.05) == NEUTRAL
    assert label_for(-0.03, threshold=0.05) == NEUTRAL
    assert label_for(0.06, threshold=0.05) == POSITIVE


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_text_is_neutral(text):
    assert polarity(text) == 0.0
    assert analyze_sentiment(text) == NEUTRAL


def test_analyze_sentiment_uses_textblob_polarity():
    assert analyze_sentiment("The tacos were great and the staff was excellent.") == POSITIVE
    assert analyze_sentiment("Terrible service, the worst meal I have had.") == NEGATIVE
    assert -1.0 <= polarity("It was okay I guess.") <= 1.0
