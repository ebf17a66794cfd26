"""Unit tests for the scope analysis engine."""

import pytest

from pelican_intake.models.intake import ComplianceFlagType, Jurisdiction, Severity, TaskTemplate
from pelican_intake.services.scope_analysis import (
    MAX_KEYWORDS,
    ScopeAnalyzer,
    analyze,
    build_compliance_flags,
    detect_jurisdiction,
    score_template,
    tokenize,
)


# =============================================================================
# Tokenizing and scoring
# =============================================================================


class TestTokenize:
    """Tests for scope tokenization."""

    def test_lowercases_and_strips_punctuation(self):
        """Punctuation becomes whitespace and tokens are lowercased."""
        assert tokenize("Replace BOILER, coordinate SHPO-approval!") == [
            "replace", "boiler", "coordinate", "shpo", "approval",
        ]

    def test_drops_stopwords(self):
        """Stopwords never become keywords."""
        assert tokenize("the roof of the building is at risk") == ["roof", "building", "risk"]

    def test_empty_and_none(self):
        """Empty or missing text yields no tokens."""
        assert tokenize("") == []
        assert tokenize(None) == []
        assert tokenize("!!! ...") == []


class TestScoreTemplate:
    """Tests for keyword scoring."""

    def test_exact_match_worth_two(self):
        """A verbatim keyword counts double."""
        assert score_template(["hvac"], ["hvac", "chiller", "controls"]) == pytest.approx(2 / 3)

    def test_prefix_match_worth_one(self):
        """A token starting with the trimmed keyword counts once."""
        # "chiller" trims to "chill"
        assert score_template(["chillers"], ["hvac", "chiller", "controls"]) == pytest.approx(1 / 3)

    def test_short_keyword_prefix_is_loose(self):
        """Three-letter keywords match any token sharing those letters."""
        assert score_template(["ledger"], ["lighting", "led", "gallery", "control"]) == pytest.approx(0.25)

    def test_capped_at_one(self):
        """Scores never exceed 1.0."""
        keywords = ["historic", "shpo", "museum", "restoration"]
        assert score_template(keywords, keywords) == 1.0

    def test_no_keywords_scores_zero(self):
        """Empty keyword list scores zero for every template."""
        assert score_template([], ["roof"]) == 0.0


# =============================================================================
# Jurisdiction and compliance flags
# =============================================================================


class TestDetectJurisdiction:
    """Tests for jurisdiction hints."""

    def test_new_orleans_phrase(self):
        """Multi-word hints are matched across tokens."""
        assert detect_jurisdiction(["gallery", "french", "quarter"]) == Jurisdiction.NEW_ORLEANS

    def test_baton_rouge(self):
        """Baton Rouge hints resolve to BatonRouge."""
        assert detect_jurisdiction(["tenant", "suite", "baton", "rouge"]) == Jurisdiction.BATON_ROUGE

    def test_statewide_hint_checked_first(self):
        """Louisiana is checked before the city hints."""
        assert detect_jurisdiction(["louisiana", "new", "orleans"]) == Jurisdiction.LOUISIANA

    def test_short_hint_matches_inside_words(self):
        """The "la" hint is a substring match, so "plaster" reads as Louisiana."""
        assert detect_jurisdiction(["plaster", "repair"]) == Jurisdiction.LOUISIANA

    def test_no_hint(self):
        """No hint means no jurisdiction."""
        assert detect_jurisdiction(["roof", "membrane"]) is None


class TestBuildComplianceFlags:
    """Tests for keyword compliance flags."""

    def test_one_flag_per_distinct_token(self):
        """Repeated trigger tokens produce one flag."""
        flags = build_compliance_flags(["asbestos", "roof", "asbestos"])
        assert [f.id for f in flags] == ["flag-asbestos", "flag-roof"]
        assert flags[0].type == ComplianceFlagType.ENVIRONMENTAL
        assert flags[0].severity == Severity.CRITICAL

    def test_same_type_from_different_tokens_kept(self):
        """Two tokens raising the same flag type give two flags."""
        flags = build_compliance_flags(["historic", "shpo"])
        assert [f.type for f in flags] == [ComplianceFlagType.HISTORIC, ComplianceFlagType.HISTORIC]
        assert flags[0].message != flags[1].message

    def test_source_is_scope_keywords(self):
        """Keyword flags name their source."""
        flags = build_compliance_flags(["gas"])
        assert flags[0].source == "Scope keywords"


# =============================================================================
# Analyzer
# =============================================================================


class TestScopeAnalyzer:
    """Tests for ScopeAnalyzer.analyze."""

    def test_results_stay_in_catalogue(self, sample_scopes):
        """Every result uses a catalogue template with bounded confidences."""
        for scope in sample_scopes:
            result = analyze(scope)
            assert result.primary_template in set(TaskTemplate)
            assert 0.0 <= result.primary_confidence <= 1.0
            assert len(result.secondary_suggestions) <= 3
            assert all(s.template != result.primary_template for s in result.secondary_suggestions)
            assert all(0.0 <= s.confidence <= 1.0 for s in result.secondary_suggestions)

    def test_selected_template_always_wins(self, sample_scopes):
        """A selected template is primary with confidence of at least 0.7."""
        analyzer = ScopeAnalyzer()
        for scope in sample_scopes:
            unconstrained = analyzer.analyze(scope)
            for template in (TaskTemplate.ROOFING, TaskTemplate.DEFAULT, TaskTemplate.HISTORIC_RESTORATION):
                result = analyzer.analyze(scope, template.value)
                assert result.primary_template == template
                assert result.primary_confidence >= 0.7
                assert result.primary_confidence >= unconstrained.primary_confidence
                assert all(s.template != template for s in result.secondary_suggestions)

    def test_historic_boiler_scenario(self, boiler_scope):
        """Historic boiler work raises Historic and boiler Permit flags."""
        result = analyze(boiler_scope)

        assert result.primary_template == TaskTemplate.HISTORIC_RESTORATION
        assert result.primary_confidence == 1.0
        assert result.primary_confidence > result.secondary_suggestions[0].confidence

        flag_types = {f.type for f in result.compliance_flags}
        assert ComplianceFlagType.HISTORIC in flag_types
        permit_flags = [f for f in result.compliance_flags if f.type == ComplianceFlagType.PERMIT]
        assert any("boiler" in f.id or "gas" in f.id for f in permit_flags)

    def test_permit_rule_flags(self, boiler_scope):
        """Knowledge base permit rules become Permit warnings."""
        result = analyze(boiler_scope)
        ids = [f.id for f in result.compliance_flags]

        # "replace" carries the "la" hint, so only statewide rules apply
        assert result.suggested_jurisdiction == Jurisdiction.LOUISIANA
        assert ids == [
            "flag-boiler",
            "flag-historic",
            "flag-shpo",
            "permit-la-mechanical",
            "permit-la-gas",
            "permit-la-historic-state",
        ]
        mechanical = result.compliance_flags[3]
        assert mechanical.severity == Severity.WARNING
        assert mechanical.message == "Mechanical permit likely required in Louisiana."

    def test_empty_scope(self):
        """Empty text resolves to the default template without flags."""
        result = analyze("")

        assert result.primary_template == TaskTemplate.DEFAULT
        assert result.primary_confidence == 0.4
        assert result.detected_keywords == []
        assert result.compliance_flags == []
        assert result.suggested_jurisdiction is None
        assert [s.template for s in result.secondary_suggestions] == [
            TaskTemplate.HISTORIC_RESTORATION,
            TaskTemplate.EVENT_SETUP,
            TaskTemplate.LIGHTING_UPGRADE,
        ]

    def test_none_scope(self):
        """Missing text behaves like empty text."""
        result = analyze(None)
        assert result.primary_template == TaskTemplate.DEFAULT
        assert result.scope_text == ""

    def test_strong_match_rationale(self, gallery_scope):
        """Confidence above 0.6 reads as strong alignment."""
        result = analyze(gallery_scope)

        assert result.primary_template == TaskTemplate.LIGHTING_UPGRADE
        assert result.primary_confidence == 1.0
        assert result.suggested_jurisdiction == Jurisdiction.NEW_ORLEANS
        assert result.rationale == "Strong keyword alignment with selected template."

    def test_moderate_match_rationale(self, rooftop_scope):
        """Ties keep catalogue order and read as a moderate match."""
        result = analyze(rooftop_scope)

        assert result.primary_template == TaskTemplate.ROOFING
        assert result.primary_confidence == 0.33
        assert result.secondary_suggestions[0].template == TaskTemplate.CONCRETE
        assert result.secondary_suggestions[0].confidence == 0.33
        assert result.rationale == "Moderate match. Consider reviewing alternative templates."

    def test_loose_prefix_match_is_pinned(self):
        """"ledger" matches the "led" lighting keyword."""
        result = analyze("Replace ledger board")

        assert result.primary_template == TaskTemplate.LIGHTING_UPGRADE
        assert result.primary_confidence == 0.25

    def test_confidence_rounded_to_two_places(self):
        """Confidences are reported to two decimals."""
        result = analyze("chiller")
        assert result.primary_template == TaskTemplate.HVAC_REPAIR
        assert result.primary_confidence == 0.67

    def test_keywords_truncated(self):
        """Detected keywords stop at fifty tokens."""
        scope = " ".join(f"filler{i}" for i in range(60))
        result = analyze(scope)
        assert len(result.detected_keywords) == MAX_KEYWORDS
        assert result.detected_keywords[-1] == "filler49"

    def test_compliance_tokens_not_truncated(self):
        """Keyword flags see every token; permit rules see the first fifty."""
        scope = " ".join(f"filler{i}" for i in range(55)) + " boiler"
        result = analyze(scope)

        ids = [f.id for f in result.compliance_flags]
        assert ids == ["flag-boiler"]

    def test_unknown_selected_template_falls_back(self):
        """Unknown selected ids resolve to the default template."""
        result = analyze("Install rooftop shade structure", "spaceElevator")
        assert result.primary_template == TaskTemplate.DEFAULT
        assert result.primary_confidence == 0.7

    def test_custom_catalogue(self):
        """The analyzer scores only the templates it is given."""
        from pelican_intake.services.template_library import find_template

        analyzer = ScopeAnalyzer(templates=[find_template("roofing"), find_template("plumbing")])
        result = analyzer.analyze("new plumbing fixture")

        assert result.primary_template == TaskTemplate.PLUMBING
        assert [s.template for s in result.secondary_suggestions] == [TaskTemplate.ROOFING]

    def test_with_template_clone(self, boiler_scope):
        """with_template returns a copy and leaves the original untouched."""
        original = analyze(boiler_scope)
        overridden = original.with_template(TaskTemplate.HVAC_REPAIR)

        assert overridden.primary_template == TaskTemplate.HVAC_REPAIR
        assert original.primary_template == TaskTemplate.HISTORIC_RESTORATION
        assert overridden.compliance_flags == original.compliance_flags

    def test_serializes_with_camel_case_aliases(self, gallery_scope):
        """Dumping by alias yields the interchange keys."""
        payload = analyze(gallery_scope).model_dump(mode="json", by_alias=True)

        assert payload["primaryTemplate"] == "lightingUpgrade"
        assert payload["suggestedJurisdiction"] == "NewOrleans"
        assert "secondarySuggestions" in payload
        assert "detectedKeywords" in payload
