"""Query classification for AI provider routing.

Assigns a free-text query:
- a task category, by counting distinct domain keywords it contains
- a complexity bucket, by word count
- independent flags for real-time data, calculation and code execution needs

Classification never fails: unrecognised input degrades to
general / simple / no flags.
"""

import re

from cepho.core.schemas_routing import Complexity, TaskCategory, TaskProfile

# Ordered by tie-break priority: on equal match counts the earlier category wins
CATEGORY_KEYWORDS: dict[TaskCategory, tuple[str, ...]] = {
    TaskCategory.MEDICAL: (
        "health", "medical", "symptom", "diagnosis", "treatment", "doctor",
        "patient", "clinical", "therapy", "medication", "disease",
    ),
    TaskCategory.LEGAL: (
        "contract", "legal", "law", "clause", "agreement", "liability",
        "compliance", "regulation", "court", "lawsuit", "nda", "terms",
    ),
    TaskCategory.FINANCIAL: (
        "financial", "investment", "valuation", "dcf", "revenue", "profit",
        "cash flow", "budget", "forecast", "roi", "ebitda",
    ),
    TaskCategory.RESEARCH: (
        "research", "find", "search", "latest", "news", "current", "trend",
        "market", "competitor", "analysis",
    ),
    TaskCategory.TECHNICAL: (
        "code", "programming", "api", "database", "software", "bug", "debug",
        "function", "algorithm", "technical",
    ),
    TaskCategory.CREATIVE: (
        "write", "draft", "create", "design", "story", "content", "copy",
        "script", "narrative",
    ),
}

# Default thresholds; the API passes the configured values
MODERATE_WORD_THRESHOLD = 30
COMPLEX_WORD_THRESHOLD = 100

# Whole words only, with their common inflections listed out
REAL_TIME_PATTERN = re.compile(
    r"\b(latest|current|currently|today|now|recent|recently|news)\b", re.IGNORECASE
)
CALCULATION_PATTERN = re.compile(
    r"\b(calculat\w*|comput\w*|sum|sums|total\w*|percentage\w*|ratio\w*)\b", re.IGNORECASE
)
CODE_EXECUTION_PATTERN = re.compile(
    r"\b(run|runs|running|execute[sd]?|executing|execution|code|coding"
    r"|script|scripts|program|programs|programming)\b",
    re.IGNORECASE,
)


def detect_category(text: str) -> tuple[TaskCategory, list[str]]:
    """
    Pick the category whose keyword list has the most distinct substring hits.

    Returns:
        (category, matched_keywords) - GENERAL with no keywords when nothing matched
    """
    lowered = text.lower()
    best_category = TaskCategory.GENERAL
    best_matches: list[str] = []

    for category, keywords in CATEGORY_KEYWORDS.items():
        matches = [kw for kw in keywords if kw in lowered]
        # Strictly greater: ties keep the earlier category
        if len(matches) > len(best_matches):
            best_category = category
            best_matches = matches

    return best_category, best_matches


def detect_complexity(
    word_count: int,
    moderate_threshold: int = MODERATE_WORD_THRESHOLD,
    complex_threshold: int = COMPLEX_WORD_THRESHOLD,
) -> Complexity:
    """Bucket a word count into a complexity tier."""
    if word_count > complex_threshold:
        return Complexity.COMPLEX
    if word_count > moderate_threshold:
        return Complexity.MODERATE
    return Complexity.SIMPLE


def classify_query(
    text: str,
    moderate_threshold: int = MODERATE_WORD_THRESHOLD,
    complex_threshold: int = COMPLEX_WORD_THRESHOLD,
) -> TaskProfile:
    """
    Classify a query for provider routing.

    Args:
        text: Free-text user query
        moderate_threshold: Word count above which the query is moderate
        complex_threshold: Word count above which the query is complex

    Returns:
        TaskProfile for the query
    """
    text = text or ""
    category, matched = detect_category(text)
    word_count = len(text.split())

    return TaskProfile(
        category=category,
        complexity=detect_complexity(word_count, moderate_threshold, complex_threshold),
        requires_real_time=bool(REAL_TIME_PATTERN.search(text)),
        requires_calculation=bool(CALCULATION_PATTERN.search(text)),
        requires_code_execution=bool(CODE_EXECUTION_PATTERN.search(text)),
        word_count=word_count,
        matched_keywords=matched,
    )
