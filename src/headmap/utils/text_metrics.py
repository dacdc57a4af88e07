# src/headmap/utils/text_metrics.py
"""
Stateless text analytics for heading copy: readability, similarity,
sentiment and keyword heuristics. None of these functions know about
heading structure.
"""
import math
import re
from typing import List, NamedTuple, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from .lexicons import NEGATIVE_WORDS, POSITIVE_WORDS, POWER_WORDS, QUESTION_WORDS, STOP_WORDS

_SENTENCE_SPLIT = re.compile(r'[.!?]+')
_VOWEL_GROUPS = re.compile(r'[aeiouy]+')
_DOUBLE_VOWEL = re.compile(r'[aeiouy]{2,}')
_NON_ALPHA = re.compile(r'[^a-z]')
_DIGITS = re.compile(r'\d+')


class Sentiment(NamedTuple):
    label: str  # 'positive' | 'negative' | 'neutral'
    score: int


class ContentStructure(NamedTuple):
    average_words_per_section: float
    reading_time_minutes: int
    content_density: str  # 'sparse' | 'balanced' | 'dense'


def _words(text: str) -> List[str]:
    return [w for w in text.lower().split() if w]


def count_syllables(word: str) -> int:
    """
    Counts syllables with a vowel-group heuristic.

    Short words (three letters or fewer) count as one syllable; a trailing
    silent 'e' and runs of adjacent vowels each remove one.
    """
    word = _NON_ALPHA.sub('', word.lower())
    if len(word) <= 3:
        return 1

    groups = _VOWEL_GROUPS.findall(word)
    count = len(groups) if groups else 1

    if word.endswith('e'):
        count -= 1
    if _DOUBLE_VOWEL.search(word):
        count -= 1

    return max(1, count)


def readability_score(text: str) -> float:
    """
    Flesch Reading Ease, clamped to 0-100. Higher is easier to read.
    Returns 0 for text without words.
    """
    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    words = text.split()
    if not sentences or not words:
        return 0.0

    syllables = sum(count_syllables(w) for w in words)
    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = syllables / len(words)

    score = 206.835 - 1.015 * avg_words_per_sentence - 84.6 * avg_syllables_per_word
    return max(0.0, min(100.0, score))


def is_question_format(text: str) -> bool:
    """True when the text opens with a question word or ends in '?'."""
    stripped = text.strip().lower()
    if stripped.endswith('?'):
        return True
    words = stripped.split()
    return bool(words) and words[0] in QUESTION_WORDS


def detect_power_words(text: str) -> List[str]:
    """Returns the power words that appear inside any word of the text."""
    words = _words(text)
    return [pw for pw in POWER_WORDS if any(pw in w for w in words)]


def has_numbers(text: str) -> bool:
    return bool(_DIGITS.search(text))


def stop_word_ratio(text: str) -> float:
    """Percentage (0-100) of words that are stop words."""
    words = _words(text)
    if not words:
        return 0.0
    stop_count = sum(1 for w in words if w in STOP_WORDS)
    return stop_count / len(words) * 100


def analyze_sentiment(text: str) -> Sentiment:
    score = 0
    for word in _words(text):
        if any(pw in word for pw in POSITIVE_WORDS):
            score += 1
        if any(nw in word for nw in NEGATIVE_WORDS):
            score -= 1

    if score > 0:
        return Sentiment("positive", score)
    if score < 0:
        return Sentiment("negative", score)
    return Sentiment("neutral", 0)


def text_similarity(text1: str, text2: str) -> float:
    """Case-insensitive similarity in [0, 1] from normalized edit distance."""
    s1, s2 = text1.lower(), text2.lower()
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    return Levenshtein.normalized_similarity(s1, s2)


def find_similar_pairs(texts: Sequence[str], threshold: float = 0.7) -> List[Tuple[int, int, float]]:
    """
    Compares every pair of texts and returns (i, j, similarity) for pairs
    above the threshold, ordered by i then j.

    This is O(n^2) comparisons; callers should bound n.
    """
    pairs = []
    for i in range(len(texts)):
        for j in range(i + 1, len(texts)):
            similarity = text_similarity(texts[i], texts[j])
            if similarity > threshold:
                pairs.append((i, j, similarity))
    return pairs


def estimate_reading_time(word_count: int, words_per_minute: int = 200) -> int:
    return math.ceil(word_count / words_per_minute)


def analyze_content_structure(heading_count: int, total_word_count: int) -> ContentStructure:
    """Rough density classification of the content between headings."""
    sections = heading_count or 1
    avg_words = total_word_count / sections

    density = "balanced"
    if avg_words < 100:
        density = "sparse"
    if avg_words > 400:
        density = "dense"

    return ContentStructure(
        average_words_per_section=avg_words,
        reading_time_minutes=estimate_reading_time(total_word_count),
        content_density=density,
    )
