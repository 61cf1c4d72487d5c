"""
Utility functions for category analysis.

Contains category prompts, snapshot-based fallback bullets and the bullet
point extractor used to scrape list items out of free-form AI text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from agents.insight_client import classify_market_position
from models.schemas import Category, MarketSnapshot
from utils.helpers import format_count

logger = logging.getLogger(__name__)

# Constants
MAX_POINTS = 7
MAX_SENTENCE_POINTS = 5
MIN_POINTS = 3
MIN_POINT_LENGTH = 10
PROSE_LINE_LENGTH = 20

BULLET_LINE_PATTERN = re.compile(r"^\s*(?:[-•*]|\d+\.)")
LEADING_MARKERS_PATTERN = re.compile(r"^[\s\-•*\d.]+")
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")

# Opening sentences models tend to put in front of the actual list
INTRODUCTORY_PHRASES = [
    "analysis for",
    "key strengths analysis",
    "areas for improvement analysis",
    "strategic recommendations for",
    "risk analysis",
    "risk factors for",
    "market position",
    "here are",
    "here is",
    "based on the",
    "based on this",
    "the following",
]

# Lines echoing the fallback template rather than saying something specific.
# Each entry matches when all of its substrings occur in the line.
GENERIC_PHRASES = [
    ("strong monthly traffic",),
    ("bounce rate", "could be optimized"),
    ("conversion rate", "has room for growth"),
    ("good seo performance with a score",),
    ("competitive load time of",),
    ("market competition is intense",),
]

CATEGORY_FOCUS = {
    Category.STRENGTHS: (
        "key strengths",
        "List 5-7 specific competitive strengths this website can build on."
    ),
    Category.IMPROVEMENTS: (
        "areas for improvement",
        "List 5-7 specific weaknesses or metrics that should be improved."
    ),
    Category.RECOMMENDATIONS: (
        "strategic recommendations",
        "List 5-7 concrete, actionable recommendations to grow market share."
    ),
    Category.RISKS: (
        "risk factors",
        "List 5-7 specific risks or threats to this website's market position."
    ),
}


class ResponseClassifier:
    """Decides which extracted lines are boilerplate rather than content."""

    def is_introductory(self, line: str) -> bool:
        raise NotImplementedError

    def is_generic(self, line: str) -> bool:
        raise NotImplementedError


class PhraseListClassifier(ResponseClassifier):
    """
    Case-insensitive substring matching against fixed phrase lists.

    The default lists are tuned to typical Gemini phrasing and to the
    fallback analysis template.
    """

    def __init__(
        self,
        introductory_phrases: Optional[Iterable[str]] = None,
        generic_phrases: Optional[Iterable[Sequence[str]]] = None
    ):
        self.introductory_phrases = [
            p.lower() for p in (INTRODUCTORY_PHRASES if introductory_phrases is None else introductory_phrases)
        ]
        self.generic_phrases = [
            tuple(part.lower() for part in parts)
            for parts in (GENERIC_PHRASES if generic_phrases is None else generic_phrases)
        ]

    def is_introductory(self, line: str) -> bool:
        lowered = line.lower()
        return any(phrase in lowered for phrase in self.introductory_phrases)

    def is_generic(self, line: str) -> bool:
        lowered = line.lower()
        return any(all(part in lowered for part in parts) for parts in self.generic_phrases)


_default_classifier = PhraseListClassifier()


def get_response_classifier() -> ResponseClassifier:
    return _default_classifier


# ============================================================================
# Prompts
# ============================================================================

def format_snapshot_metrics(snapshot: MarketSnapshot) -> str:
    """Render the snapshot's headline numbers as a prompt block."""
    performance = snapshot.performance
    lines = [
        f"- Market Share: {snapshot.market_share:.2f}%",
        f"- Monthly Visitors: {format_count(snapshot.latest_monthly_visitors)}",
        f"- Load Time: {performance.load_time:.2f}s",
        f"- Bounce Rate: {performance.bounce_rate:.2f}%",
        f"- Conversion Rate: {performance.conversion_rate:.2f}%",
        f"- SEO Score: {performance.seo_score:.0f}/100",
    ]
    top = snapshot.top_competitor
    if top is not None:
        lines.append(f"- Top Competitor: {top.name} ({top.share:.2f}% share)")
    return "\n".join(lines)


def build_category_prompt(category: str, website: str, snapshot: MarketSnapshot) -> str:
    """Build the prompt for one analysis category."""
    category = Category(category)
    topic, instruction = CATEGORY_FOCUS[category]

    return f"""Analyze the {topic} of {website} based on the following market data:

{format_snapshot_metrics(snapshot)}

{instruction}
Format each item as a bullet point starting with "-". Keep each item to one sentence and reference the numbers above where relevant."""


# ============================================================================
# Fallback Content
# ============================================================================

def build_category_fallback(category: str, website: str, snapshot: MarketSnapshot) -> List[str]:
    """
    Deterministic bullet points for a category, built from the snapshot.

    Used when the provider call fails for this category.
    """
    category = Category(category)
    performance = snapshot.performance
    visitors = format_count(snapshot.latest_monthly_visitors)
    tier = classify_market_position(snapshot.market_share)
    top = snapshot.top_competitor

    if category == Category.STRENGTHS:
        return [
            f"{website} is positioned as {tier} with a {snapshot.market_share:.2f}% market share",
            f"Monthly traffic of {visitors} visitors gives a solid audience base",
            f"SEO score of {performance.seo_score:.0f}/100 supports organic discoverability",
            f"Pages load in {performance.load_time:.2f} seconds on average",
        ]

    if category == Category.IMPROVEMENTS:
        return [
            f"Reduce the {performance.bounce_rate:.1f}% bounce rate with clearer landing pages",
            f"Lift the {performance.conversion_rate:.2f}% conversion rate through checkout and funnel tuning",
            f"Bring the {performance.load_time:.2f} second load time down with asset optimization",
            f"Close the remaining SEO gap from {performance.seo_score:.0f}/100 with technical fixes",
        ]

    if category == Category.RECOMMENDATIONS:
        return [
            "Implement A/B testing to improve conversion rates",
            "Optimize user experience to reduce bounce rate",
            "Focus on content marketing to increase organic traffic",
            "Monitor competitor movements and adapt strategies accordingly",
        ]

    risks = [
        "Market competition is intense with multiple players",
        "Technology changes could impact performance metrics",
        "Economic factors may affect user behavior and spending",
    ]
    if top is not None:
        risks.append(f"{top.name} holds {top.share:.2f}% of the market and competes for the same audience")
    return risks


def build_placeholder(category: str) -> List[str]:
    """One-line placeholder used when no insights could be extracted."""
    return [f"No {Category(category).value} insights could be extracted from the analysis."]


def unparsed_message(category) -> str:
    name = category.value if isinstance(category, Category) else category
    return f"Analysis for {name} could not be parsed."


# ============================================================================
# Bullet Extraction
# ============================================================================

@dataclass(frozen=True)
class ExtractionResult:
    points: List[str]
    strategy: str  # structured | prefilter | sentences | empty | unparsed


def _candidate_lines(text: str) -> List[str]:
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]

    kept = [
        line for line in lines
        if BULLET_LINE_PATTERN.match(line) or len(line) > PROSE_LINE_LENGTH
    ]

    stripped = [LEADING_MARKERS_PATTERN.sub("", line).strip() for line in kept]
    return [line for line in stripped if len(line) >= MIN_POINT_LENGTH]


def _sentence_points(text: str) -> List[str]:
    sentences = [s.strip() for s in SENTENCE_SPLIT_PATTERN.split(text)]
    sentences = [s for s in sentences if len(s) > PROSE_LINE_LENGTH]
    return sentences[1:1 + MAX_SENTENCE_POINTS]


def extract_bullet_points_detailed(
    text,
    category,
    classifier: Optional[ResponseClassifier] = None
) -> ExtractionResult:
    """
    Extract bullet-style points from free-form AI text.

    Steps:
    1. Keep marker-prefixed lines (-, •, *, "1.") and prose lines over 20 chars
    2. Strip leading markers, drop anything under 10 chars
    3. Drop an introductory first line and any generic/templated line
    4. >=3 left: first 7. Else >=3 before filtering: lines 2-8 of that list.
       Else: sentences over 20 chars, skipping the first, up to 5.

    Any unexpected failure yields a single "could not be parsed" message.
    """
    classifier = classifier or get_response_classifier()

    try:
        candidates = _candidate_lines(text)

        filtered = list(candidates)
        if filtered and classifier.is_introductory(filtered[0]):
            filtered = filtered[1:]
        filtered = [line for line in filtered if not classifier.is_generic(line)]

        if len(filtered) >= MIN_POINTS:
            result = ExtractionResult(filtered[:MAX_POINTS], "structured")
        elif len(candidates) >= MIN_POINTS:
            result = ExtractionResult(candidates[1:1 + MAX_POINTS], "prefilter")
        else:
            sentences = _sentence_points(text)
            result = ExtractionResult(sentences, "sentences" if sentences else "empty")

    except Exception as e:
        logger.warning(f"Could not parse {category} analysis: {e!r}")
        return ExtractionResult([unparsed_message(category)], "unparsed")

    logger.info(f"Extracted {len(result.points)} {getattr(category, 'value', category)} points (strategy={result.strategy})")
    return result


def extract_bullet_points(
    text,
    category,
    classifier: Optional[ResponseClassifier] = None
) -> List[str]:
    """Extract bullet-style points from AI text. See extract_bullet_points_detailed."""
    return extract_bullet_points_detailed(text, category, classifier).points


def is_degraded_strategy(strategy: str) -> bool:
    return strategy in ("empty", "unparsed")


class ParseDegraded(Exception):
    """Raised when a response yielded no usable points."""

    def __init__(self, result: ExtractionResult):
        super().__init__(f"extraction strategy '{result.strategy}'")
        self.result = result


def extract_required_points(
    text,
    category,
    classifier: Optional[ResponseClassifier] = None
) -> ExtractionResult:
    """
    Like extract_bullet_points_detailed, but a degraded extraction raises.

    Raises:
        ParseDegraded: If nothing (or only the parse-failure message) was extracted
    """
    result = extract_bullet_points_detailed(text, category, classifier)
    if is_degraded_strategy(result.strategy):
        raise ParseDegraded(result)
    return result
