# tests/analysis/test_heuristics.py
import pytest

from headmap.utils.text_metrics import (
    analyze_content_structure,
    analyze_sentiment,
    count_syllables,
    find_similar_pairs,
    is_question_format,
    readability_score,
    stop_word_ratio,
    text_similarity,
)
from headmap.validation import validate_heuristics


# --- Text metrics ---

@pytest.mark.parametrize("word, expected", [("the", 1), ("cake", 1), ("bakery", 3), ("a", 1)])
def test_count_syllables(word, expected):
    assert count_syllables(word) == expected


def test_readability_bounds():
    assert readability_score("") == 0
    assert readability_score("Fresh bread daily") <= 100
    assert readability_score("Internationalization considerations") == 0


@pytest.mark.parametrize("text, expected", [
    ("What is sourdough", True),
    ("Pricing?", True),
    ("  how to bake  ", True),
    ("Pricing plans", False),
    ("Somewhat interesting", False),
    ("", False),
])
def test_is_question_format(text, expected):
    assert is_question_format(text) is expected


def test_text_similarity():
    assert text_similarity("Home", "home") == 1.0
    assert text_similarity("", "Home") == 0.0
    assert text_similarity("Pricing plans", "Pricing plan") == pytest.approx(12 / 13)
    assert text_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_find_similar_pairs_is_ordered_and_thresholded():
    pairs = find_similar_pairs(["Pricing plans", "Contact", "Pricing plan"])
    assert len(pairs) == 1
    i, j, similarity = pairs[0]
    assert (i, j) == (0, 2)
    assert similarity == pytest.approx(0.923, abs=1e-3)


def test_stop_word_ratio():
    assert stop_word_ratio("the cat") == 50
    assert stop_word_ratio("") == 0


def test_sentiment():
    assert analyze_sentiment("Best bread in town").label == "positive"
    assert analyze_sentiment("The worst bread").label == "negative"
    assert analyze_sentiment("Great bread, terrible service") == ("neutral", 0)


@pytest.mark.parametrize("headings, words, density, minutes", [
    (0, 50, "sparse", 1),
    (2, 400, "balanced", 2),
    (4, 2000, "dense", 10),
])
def test_content_structure(headings, words, density, minutes):
    structure = analyze_content_structure(headings, words)
    assert structure.content_density == density
    assert structure.reading_time_minutes == minutes


# --- Heuristic pass ---

def test_question_format_only_below_h1(heading):
    result = validate_heuristics([heading(1, "What is sourdough?"), heading(2, "How does fermentation work")])
    questions = [i for i in result.info if i.type == "question_format"]
    assert len(questions) == 1
    assert "fermentation" in questions[0].message


def test_h1_without_power_words(heading):
    assert "no_power_words_h1" in validate_heuristics([heading(1, "Sourdough bread recipes")]).codes()
    assert "no_power_words_h1" not in validate_heuristics([heading(1, "The best sourdough recipes")]).codes()


def test_negative_h1(heading):
    result = validate_heuristics([heading(1, "The worst bread mistakes")])
    assert "negative_sentiment_h1" in [i.type for i in result.warnings]


def test_numbered_heading_up_to_h3(heading):
    result = validate_heuristics([heading(2, "10 tips for bakers"), heading(4, "Step 2")])
    assert [i.type for i in result.info].count("numbered_heading") == 1


def test_stop_word_heavy_heading(heading):
    result = validate_heuristics([heading(2, "The art of the deal")])
    stop = [i for i in result.warnings if i.type == "too_many_stop_words"]
    assert stop and "60%" in stop[0].message


def test_low_readability(heading):
    result = validate_heuristics([heading(2, "Internationalization considerations")])
    assert "low_readability" in [i.type for i in result.info]


def test_similar_headings(heading):
    headings = [heading(2, "Pricing plans"), heading(2, "Pricing plan"), heading(2, "Contact")]
    result = validate_heuristics(headings)
    similar = [i for i in result.warnings if i.type == "similar_headings"]
    assert len(similar) == 1
    assert "92% similar" in similar[0].message


def test_similarity_check_is_skipped_above_cap(heading):
    headings = [heading(2, "Pricing plans"), heading(2, "Pricing plan"), heading(2, "Contact")]
    assert "similar_headings" not in validate_heuristics(headings, max_pairwise_headings=2).codes()
    assert "similar_headings" in validate_heuristics(headings, max_pairwise_headings=None).codes()


@pytest.mark.parametrize("limit", ["none", -1, 2.5, True])
def test_invalid_cap_falls_back_to_default(heading, limit):
    headings = [heading(2, "Pricing plans"), heading(2, "Pricing plan"), heading(2, "Contact")]
    assert "similar_headings" in validate_heuristics(headings, max_pairwise_headings=limit).codes()


def test_empty_heading_is_ignored(heading):
    assert validate_heuristics([heading(2, "")]).count == 0
