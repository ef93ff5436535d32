"""
Rule-based intent matching for the help chat.

Patterns are checked in order and the first match wins, so the more
specific intents sit above the broad ones.
"""

import re
from typing import Optional

SEARCH_VERBS = r"\b(find|search|need|want|looking for|hire)\b"

# Service category -> keywords that point at it
SERVICE_KEYWORDS = {
    "plumbing": r"(plumber|plumbing|leak|pipe|water|drain)",
    "electrical": r"(electrician|electrical|wiring|power|outlet|lights?)",
    "cleaning": r"(clean|cleaner|cleaning|maid|housekeeping)",
    "carpentry": r"(carpenter|carpentry|wood|furniture|cabinet)",
    "painting": r"(painter|painting|paint|wall)",
}

INTENT_PATTERNS = [
    ("greeting", re.compile(r"^\s*(hi|hello|hey|good morning|good afternoon|good evening)\b", re.I)),
    ("emergency", re.compile(r"\b(emergency|urgent|asap|immediately|broken|not working)\b", re.I)),
    ("booking_status", re.compile(r"\b(my bookings?|booking status|appointment status|when is my)\b", re.I)),
    ("booking", re.compile(r"\b(book|schedule|appointment|reserve|arrange)\b", re.I)),
    ("certification", re.compile(r"\b(certifications?|certified|certificate|badge|level|verified provider)\b", re.I)),
    ("pricing", re.compile(r"\b(price|cost|rate|fee|how much|pricing|expensive|cheap|budget|afford)\b", re.I)),
    ("how_it_works", re.compile(r"\b(how (does|do) (it|this|fixerhub) work|process|steps?|getting started|how to use)\b", re.I)),
    ("review", re.compile(r"\b(review|rating|feedback|testimonial)\b", re.I)),
    ("support", re.compile(r"\b(contact|support|customer service|phone|email|help me|problem|issue)\b", re.I)),
]


def match_service_category(message: str) -> Optional[str]:
    """Category for a 'find me a plumber' style message, if any"""
    if not re.search(SEARCH_VERBS, message, re.I):
        return None
    for category, keywords in SERVICE_KEYWORDS.items():
        if re.search(rf"\b{keywords}\b", message, re.I):
            return category
    return None


def detect_intent(message: str) -> tuple[str, Optional[str]]:
    """
    Classify a chat message.

    Returns:
        (intent, service category) where the category is only set for find_service
    """
    category = match_service_category(message)
    if category:
        return "find_service", category

    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(message):
            return intent, None
    return "fallback", None
