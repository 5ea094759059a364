"""Language detection and topic routing."""

from .intent import FACT_KEYWORDS, ROUTING_RULES, IntentRouter, RoutingRule
from .language import SCRIPT_RANGES, LanguageDetector, ScriptRange, detect_language

__all__ = [
    "FACT_KEYWORDS",
    "ROUTING_RULES",
    "SCRIPT_RANGES",
    "IntentRouter",
    "LanguageDetector",
    "RoutingRule",
    "ScriptRange",
    "detect_language",
]
