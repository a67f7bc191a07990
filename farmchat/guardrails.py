"""farmchat/guardrails.py

Topic guardrail for the marketplace assistant.

Classifies a user message as farming/marketplace related or not before any
model call. This is a deterministic keyword + pattern scorer; it makes no
network calls and holds no state, so it is safe to call from any request.

The same vocabulary is reused to sanity-check assistant output
(``validate_response``) and to judge whether a whole conversation is still on
topic (``is_conversation_farming_focused``).
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
import random
import re
from collections.abc import Iterable, Sequence
from typing import Final

from farmchat.messages import ChatMessage

logger = logging.getLogger("farmchat.guardrails")

FARMING_KEYWORDS: Final[tuple[str, ...]] = (
    # Vegetables & crops
    "vegetable", "vegetables", "crop", "crops", "tomato", "potato", "onion",
    "carrot", "cabbage", "cauliflower", "brinjal", "okra", "spinach", "lettuce",
    "cucumber", "pumpkin", "gourd", "beans", "peas", "corn", "maize", "wheat",
    "rice", "barley", "millet", "quinoa",
    # Farming terms
    "farm", "farming", "agriculture", "agricultural", "cultivation", "harvest",
    "harvesting", "planting", "sowing", "seeding", "irrigation", "fertilizer",
    "pesticide", "organic", "soil", "compost", "manure", "mulch", "greenhouse",
    "nursery", "garden", "gardening",
    # Practices
    "crop rotation", "companion planting", "intercropping", "hydroponics",
    "aquaponics", "permaculture", "sustainable", "natural farming",
    "bio farming", "drip irrigation", "sprinkler", "tractor", "plow", "tilling",
    "weeding", "pruning", "grafting",
    # Seasons & weather in a farming context
    "season", "seasonal", "monsoon", "kharif", "rabi", "zaid", "summer crop",
    "winter crop", "rainfall", "drought", "climate change", "farming weather",
    "crop temperature", "soil humidity",
    # Plant health & pests
    "pest", "disease", "fungus", "bacteria", "virus", "insect", "aphid",
    "caterpillar", "nematode", "blight", "rot", "wilt", "mold", "treatment",
    "spray", "neem",
    # Marketplace
    "buy", "sell", "order", "payment", "delivery", "price", "cost", "market",
    "seller", "farmer", "produce", "fresh", "local", "organic", "quality",
    "upi", "gpay", "phonepay", "paytm", "qr code", "track order", "shipping",
    # Indian context
    "india", "indian", "delhi", "mumbai", "bangalore", "hyderabad", "chennai",
    "punjab", "haryana", "uttar pradesh", "maharashtra", "karnataka",
    "tamil nadu", "rupee", "rupees", "₹", "kg", "kilogram", "quintal", "acre",
    "hectare",
)

REJECTED_TOPICS: Final[tuple[str, ...]] = (
    # Technology
    "programming", "coding", "software", "computer", "laptop", "mobile phone",
    "app development", "website", "database", "algorithm", "javascript",
    "python", "artificial intelligence", "machine learning", "blockchain",
    "cryptocurrency",
    # Entertainment
    "movie", "film", "music", "song", "game", "gaming", "sports", "cricket",
    "football", "bollywood", "hollywood", "celebrity", "actor", "actress",
    # General weather
    "weather today", "current weather", "weather forecast", "temperature today",
    "will it rain", "sunny today", "cloudy", "hot today", "cold today",
    # Politics & news
    "politics", "politician", "election", "government", "minister", "president",
    "prime minister", "party", "vote", "democracy", "news", "media",
    # Personal & general
    "relationship", "dating", "marriage", "family", "personal", "psychology",
    "philosophy", "religion", "spiritual", "meditation", "yoga", "fitness",
    "health", "medicine", "doctor", "hospital", "disease", "treatment",
    # Education
    "school", "college", "university", "degree", "exam", "study", "student",
    "teacher", "professor", "course", "subject", "mathematics", "physics",
    "chemistry", "biology", "history", "geography",
    # Travel & lifestyle
    "travel", "vacation", "hotel", "restaurant", "food", "recipe", "cooking",
    "fashion", "shopping", "beauty", "makeup", "lifestyle", "hobby",
)

_FARMING_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"how to (grow|plant|cultivate|harvest)",
        r"when to (plant|sow|harvest)",
        r"what (fertilizer|pesticide|treatment)",
        r"best (season|time|method) for",
        r"organic (farming|method|way)",
        r"crop (rotation|management|yield)",
        r"soil (preparation|health|quality)",
        r"irrigation (system|method|schedule)",
        r"pest (control|management|treatment)",
        r"vegetable (garden|farming|growing)",
    )
)

_PATTERN_BONUS: Final[int] = 3

REJECTION_MESSAGES: Final[tuple[str, ...]] = (
    "🌱 I'm specialized in helping with farming, vegetables, and agricultural "
    "questions. Could you ask me something related to farming, crops, or our "
    "marketplace?",
    "🥬 I'm here to assist with farming advice, vegetable growing, and "
    "marketplace queries. Please ask me about agriculture, crops, or "
    "buying/selling produce!",
    "🚜 My expertise is in farming and agriculture. I'd be happy to help with "
    "questions about vegetables, farming techniques, orders, or payments. What "
    "would you like to know about farming?",
    "🌾 I focus on agricultural topics like farming, vegetables, crop "
    "management, and our marketplace. Please ask me something related to "
    "farming or growing produce!",
    "🥕 I'm designed to help with farming questions, vegetable cultivation, and "
    "marketplace assistance. Could you ask me about agriculture, crops, or our "
    "services instead?",
)


@dataclasses.dataclass(frozen=True, slots=True)
class TopicClassification:
    """Result of scoring one message against the farming vocabulary.

    Attributes:
        is_farming_related: Whether the turn may proceed to the model.
        detected_topics: Rejected topics found in the message, in list order.
        confidence: ``(farming_score - rejection_score) * 10`` clamped to 0..100.
        farming_score: Weighted farming keyword hits plus the pattern bonus.
        rejection_score: Weighted rejected-topic hits.
        has_pattern_match: Whether a farming question pattern matched.
    """

    is_farming_related: bool
    detected_topics: tuple[str, ...]
    confidence: int
    farming_score: int
    rejection_score: int
    has_pattern_match: bool


def _hits(text: str, vocabulary: Iterable[str]) -> list[str]:
    lowered = text.lower()
    return [term for term in vocabulary if term in lowered]


def analyze_message_topic(message: str) -> TopicClassification:
    """Score a message and decide whether it is farming related.

    Longer keywords weigh more: farming keywords over five characters score 2
    (else 1); rejected topics over five characters score 3 (else 2). A
    farming question pattern adds a flat bonus once.

    Args:
        message: Raw user message text.

    Returns:
        The :class:`TopicClassification` for the message.
    """
    farming_hits = _hits(message, FARMING_KEYWORDS)
    rejected_hits = _hits(message, REJECTED_TOPICS)

    farming_score = sum(2 if len(k) > 5 else 1 for k in farming_hits)
    rejection_score = sum(3 if len(t) > 5 else 2 for t in rejected_hits)

    has_pattern_match = any(p.search(message) for p in _FARMING_PATTERNS)
    if has_pattern_match:
        farming_score += _PATTERN_BONUS

    confidence = max(0, min(100, (farming_score - rejection_score) * 10))
    is_farming = farming_score > rejection_score and (
        farming_score > 0 or has_pattern_match
    )

    result = TopicClassification(
        is_farming_related=is_farming,
        detected_topics=tuple(dict.fromkeys(rejected_hits)),
        confidence=confidence,
        farming_score=farming_score,
        rejection_score=rejection_score,
        has_pattern_match=has_pattern_match,
    )
    logger.debug("Topic analysis for %r: %s", message[:120], result)
    return result


def is_farming_related(message: object) -> bool:
    """Strict gate: any rejected topic fails, otherwise any farming keyword passes."""
    if not message or not isinstance(message, str):
        return False
    if _hits(message, REJECTED_TOPICS):
        return False
    return bool(_hits(message, FARMING_KEYWORDS))


def is_conversation_farming_focused(messages: Sequence[ChatMessage]) -> bool:
    """Check that at least half of the recent user messages are on topic.

    Only the last three messages are considered. An empty conversation is
    allowed so a fresh chat can start.
    """
    if not messages:
        return True
    recent = list(messages)[-3:]
    user_messages = [m for m in recent if m.role == "user"]
    on_topic = [m for m in user_messages if is_farming_related(m.content)]
    # ceil(n * 0.5) without importing math
    return len(on_topic) >= (len(user_messages) + 1) // 2


def generate_rejection_message(
    message: str,
    detected_topics: Sequence[str] = (),
    rng: random.Random | None = None,
) -> str:
    """Return a polite redirect for an off-topic message.

    Args:
        message: The rejected user message (logged, not echoed).
        detected_topics: Off-topic terms found by the classifier.
        rng: Random source for picking a reply; defaults to the module RNG.

    Returns:
        A canned farming-redirect reply, mentioning the detected topics when
        there are any.
    """
    chooser = rng or random
    reply = chooser.choice(REJECTION_MESSAGES)
    logger.info("Rejecting off-topic message %r (topics=%s)", message[:120], list(detected_topics))
    if detected_topics:
        topics = ", ".join(detected_topics[:3])
        reply = f"{reply}\n\n(Topics like {topics} are outside what I can help with.)"
    return reply


def validate_response(response: str | None) -> bool:
    """Check that an assistant reply stays on the farming/marketplace topic."""
    if not response:
        return False
    if _hits(response, REJECTED_TOPICS):
        return False
    lowered = response.lower()
    polite_rejection = (
        "farming" in lowered or "agriculture" in lowered or "specialized in" in lowered
    )
    return bool(_hits(response, FARMING_KEYWORDS)) or polite_rejection
