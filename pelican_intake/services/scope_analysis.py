"""Scope analysis engine.

Classifies free-text scope descriptions against the template library:
- Keyword scoring with a loose prefix match for plurals and variants
- Jurisdiction detection from hint phrases (first hit wins)
- Compliance flags from trigger keywords and knowledge base permit rules

Never raises for input anomalies. Empty text resolves to the default
template with no keywords and no flags.
"""

import math
import re
from typing import Dict, List, Optional, Tuple

import structlog

from pelican_intake.models.intake import (
    ComplianceFlagType,
    Jurisdiction,
    ScopeAnalysisResult,
    ScopeComplianceFlag,
    Severity,
    TaskTemplate,
    TemplateSuggestion,
)
from pelican_intake.models.plan import TemplateConfig
from pelican_intake.services.knowledge_base import match_permit_rules
from pelican_intake.services.template_library import get_template_library

logger = structlog.get_logger(__name__)


# =============================================================================
# Tables
# =============================================================================

STOPWORDS = frozenset([
    "the", "and", "or", "of", "a", "to", "for", "in", "on", "at", "with",
    "by", "an", "be", "is", "are", "this", "that", "it", "from", "as", "we",
])

MAX_KEYWORDS = 50
CONFIDENCE_THRESHOLD = 0.1
FALLBACK_CONFIDENCE = 0.4
OVERRIDE_CONFIDENCE = 0.7
STRONG_MATCH_CONFIDENCE = 0.6
MAX_SECONDARY = 3

_KEYWORD_SOURCE = "Scope keywords"

# token -> (type, severity, message)
COMPLIANCE_KEYWORDS: Dict[str, Tuple[ComplianceFlagType, Severity, str]] = {
    "historic": (
        ComplianceFlagType.HISTORIC,
        Severity.WARNING,
        "Historic keywords detected. SHPO/HDLC review may be required.",
    ),
    "shpo": (
        ComplianceFlagType.HISTORIC,
        Severity.INFO,
        "SHPO referenced. Ensure documentation package is prepared.",
    ),
    "boiler": (
        ComplianceFlagType.PERMIT,
        Severity.WARNING,
        "Boiler replacements require mechanical + fuel permits in Louisiana.",
    ),
    "gas": (
        ComplianceFlagType.SAFETY,
        Severity.INFO,
        "Gas work requires lockout/tagout and leak checks.",
    ),
    "asbestos": (
        ComplianceFlagType.ENVIRONMENTAL,
        Severity.CRITICAL,
        "Asbestos mention triggers AHERA survey requirements.",
    ),
    "roof": (
        ComplianceFlagType.SAFETY,
        Severity.INFO,
        "Roof access requires fall protection planning.",
    ),
}

# Checked in this order; statewide hints come first
JURISDICTION_HINTS: List[Tuple[Jurisdiction, List[str]]] = [
    (Jurisdiction.LOUISIANA, ["louisiana", "la"]),
    (Jurisdiction.NEW_ORLEANS, ["new orleans", "nola", "orleans parish", "french quarter", "marigny", "garden district"]),
    (Jurisdiction.BATON_ROUGE, ["baton rouge", "ebr", "east baton rouge", "mid city", "spanish town"]),
]

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


# =============================================================================
# Helpers
# =============================================================================


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase, replace punctuation with spaces, split, drop stopwords."""
    cleaned = _NON_ALNUM.sub(" ", (text or "").lower())
    return [token for token in cleaned.split() if token not in STOPWORDS]


def score_template(keywords: List[str], template_keywords: List[str]) -> float:
    """Score detected keywords against one template's keyword set.

    A verbatim keyword is worth 2. Otherwise a token starting with the
    keyword cut to max(3, len - 2) characters is worth 1. Short keywords
    therefore match loosely: "led" fires on "ledger".
    """
    if not keywords:
        return 0.0
    matches = 0
    for keyword in template_keywords:
        if keyword in keywords:
            matches += 2
            continue
        stem = keyword[:max(3, len(keyword) - 2)]
        if any(token.startswith(stem) for token in keywords):
            matches += 1
    return min(1.0, matches / max(len(template_keywords), 1))


def detect_jurisdiction(tokens: List[str]) -> Optional[Jurisdiction]:
    """Return the first jurisdiction with a hint contained in the joined tokens."""
    joined = " ".join(tokens)
    for jurisdiction, hints in JURISDICTION_HINTS:
        if any(hint in joined for hint in hints):
            return jurisdiction
    return None


def build_compliance_flags(tokens: List[str]) -> List[ScopeComplianceFlag]:
    """Flags for compliance trigger tokens, one per distinct token."""
    flags = []
    used = set()
    for token in tokens:
        entry = COMPLIANCE_KEYWORDS.get(token)
        if entry is None or token in used:
            continue
        flag_type, severity, message = entry
        flags.append(ScopeComplianceFlag(
            id=f"flag-{token}",
            type=flag_type,
            message=message,
            severity=severity,
            source=_KEYWORD_SOURCE,
        ))
        used.add(token)
    return flags


def _round2(value: float) -> float:
    # Half-up, so 0.125 reports as 0.13
    return math.floor(value * 100 + 0.5) / 100


# =============================================================================
# Analyzer
# =============================================================================


class ScopeAnalyzer:
    """Scores scope text against a template catalogue.

    Args:
        templates: Template catalogue; defaults to the shipped library.
    """

    def __init__(self, templates: Optional[List[TemplateConfig]] = None):
        self.templates = templates if templates is not None else get_template_library()

    def rank(self, keywords: List[str]) -> List[TemplateSuggestion]:
        """Score every template, highest first. Ties keep catalogue order."""
        scored = [
            TemplateSuggestion(template=config.id, confidence=score_template(keywords, config.keywords))
            for config in self.templates
        ]
        return sorted(scored, key=lambda entry: entry.confidence, reverse=True)

    def analyze(self, scope_text: Optional[str], selected_template: Optional[str] = None) -> ScopeAnalysisResult:
        """Analyze scope text.

        Args:
            scope_text: Free-text scope description (may be empty).
            selected_template: Template chosen by the user. When given it is
                always the primary template, reported with confidence of at
                least 0.7 and never below the computed top score.

        Returns:
            ScopeAnalysisResult
        """
        scope_text = scope_text or ""
        selected = TaskTemplate.coerce(selected_template) if selected_template else None

        tokens = tokenize(scope_text)
        keywords = tokens[:MAX_KEYWORDS]
        scored = self.rank(keywords)

        primary = next((entry for entry in scored if entry.confidence > CONFIDENCE_THRESHOLD), None)
        if primary is None:
            fallback = selected or (scored[0].template if scored else TaskTemplate.DEFAULT)
            primary = TemplateSuggestion(template=fallback, confidence=FALLBACK_CONFIDENCE)

        if selected is not None:
            primary = TemplateSuggestion(
                template=selected,
                confidence=max(primary.confidence, OVERRIDE_CONFIDENCE),
            )

        jurisdiction = detect_jurisdiction(tokens)

        compliance_flags = build_compliance_flags(tokens)
        for rule in match_permit_rules(keywords, jurisdiction):
            compliance_flags.append(ScopeComplianceFlag(
                id=f"permit-{rule.id}",
                type=ComplianceFlagType.PERMIT,
                severity=Severity.WARNING,
                message=f"{rule.type} permit likely required in {rule.jurisdiction.value}.",
                source=rule.description,
            ))

        secondary = [
            TemplateSuggestion(template=entry.template, confidence=_round2(entry.confidence))
            for entry in scored
            if entry.template != primary.template
        ][:MAX_SECONDARY]

        if primary.confidence > STRONG_MATCH_CONFIDENCE:
            rationale = "Strong keyword alignment with selected template."
        else:
            rationale = "Moderate match. Consider reviewing alternative templates."

        result = ScopeAnalysisResult(
            scope_text=scope_text,
            primary_template=primary.template,
            primary_confidence=_round2(primary.confidence),
            secondary_suggestions=secondary,
            compliance_flags=compliance_flags,
            detected_keywords=keywords,
            suggested_jurisdiction=jurisdiction,
            rationale=rationale,
        )

        logger.info(
            "scope_analysis_completed",
            template=result.primary_template.value,
            confidence=result.primary_confidence,
            flag_count=len(compliance_flags),
            jurisdiction=jurisdiction.value if jurisdiction else None,
            overridden=selected is not None,
        )
        return result


# Singleton instance
_analyzer: Optional[ScopeAnalyzer] = None


def get_scope_analyzer() -> ScopeAnalyzer:
    """Get the shared ScopeAnalyzer instance."""
    global _analyzer
    if _analyzer is None:
        _analyzer = ScopeAnalyzer()
    return _analyzer


def analyze(scope_text: Optional[str], selected_template: Optional[str] = None) -> ScopeAnalysisResult:
    """Analyze scope text with the shared analyzer."""
    return get_scope_analyzer().analyze(scope_text, selected_template)
