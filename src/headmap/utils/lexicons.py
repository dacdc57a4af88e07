# src/headmap/utils/lexicons.py
"""Word lists used by the structural and heuristic rule passes."""

# Common function words that add little keyword value to a heading.
STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "he", "in", "is", "it", "its", "of",
    "on", "that", "the", "to", "was", "will", "with", "this", "but", "they", "have"
})

# Engagement words that tend to improve click-through rates for main headings.
POWER_WORDS = (
    "free", "proven", "new", "instant", "essential", "complete", "ultimate", "comprehensive", "easy", "simple",
    "quick", "amazing", "incredible", "exclusive", "limited", "bonus", "guarantee", "discover", "secret",
    "powerful", "effective", "best", "top", "must-have", "revolutionary"
)

POSITIVE_WORDS = (
    "great", "amazing", "excellent", "best", "good", "wonderful", "fantastic", "love", "perfect", "beautiful"
)

NEGATIVE_WORDS = (
    "bad", "worst", "terrible", "awful", "poor", "horrible", "hate", "ugly", "disgusting", "fail"
)

QUESTION_WORDS = (
    "what", "why", "how", "when", "where", "who", "which", "can", "will", "should", "does", "is", "are"
)

# Headings that say nothing about the section they introduce.
GENERIC_PHRASES = frozenset({
    "welcome", "introduction", "about", "about us", "overview", "home", "contents", "more", "click here",
    "read more", "learn more"
})
