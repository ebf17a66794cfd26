"""Unit tests for lead triage and walkthrough planning."""

import pytest

from pelican_intake.agents.intake_triage import compute_urgency_score, evaluate_intake
from pelican_intake.agents.walkthrough_planner import (
    build_walkthrough_tasks,
    detect_project_type,
    generate_prep_brief,
)
from pelican_intake.models.triage import LeadNextStep
from pelican_intake.services.scope_analysis import analyze
from pelican_intake.services.template_library import generate_suggestions


# =============================================================================
# Triage
# =============================================================================


class TestComputeUrgencyScore:
    """Tests for urgency scoring."""

    @pytest.mark.parametrize("summary, urgency, expected", [
        ("Repaint the lobby", "Critical", 0.95),
        ("Burst pipe in the basement", None, 0.9),
        ("Burst pipe in the basement", "High", 0.9),
        ("Repaint the lobby", "High", 0.75),
        ("Future idea for a rooftop bar", None, 0.35),
        ("Repaint the lobby", None, 0.55),
        ("", None, 0.55),
    ])
    def test_scores(self, summary, urgency, expected):
        """Urgency and keywords map to fixed scores."""
        assert compute_urgency_score(summary, urgency) == expected


class TestEvaluateIntake:
    """Tests for evaluate_intake."""

    def test_emergency_dispatch(self):
        """Emergency language dispatches a crew."""
        decision = evaluate_intake("Boiler down and water leak in mechanical room")

        assert decision.next_step == LeadNextStep.DISPATCH_CREW
        assert decision.requires_walkthrough is True
        assert decision.confidence == 0.9
        assert decision.project_type == "HVAC"

    def test_high_urgency_walkthrough(self):
        """High urgency schedules a walkthrough."""
        decision = evaluate_intake("Replace lobby flooring", "High")

        assert decision.next_step == LeadNextStep.SCHEDULE_WALKTHROUGH
        assert decision.rationale == "High urgency scope. Schedule a walkthrough to build scope of work."

    def test_moderate_estimate_only(self):
        """Ordinary requests get an estimate."""
        decision = evaluate_intake("Replace lobby flooring")

        assert decision.next_step == LeadNextStep.ESTIMATE_ONLY
        assert decision.requires_walkthrough is False
        assert decision.project_type == "Interiors"

    def test_exploratory_nurture(self):
        """Exploratory language enters the nurture sequence."""
        decision = evaluate_intake("Maybe a future roof garden concept")

        assert decision.next_step == LeadNextStep.NURTURE_SEQUENCE
        assert decision.requires_walkthrough is False
        assert decision.prep_brief.project_type == "Roofing"

    def test_serializes_by_alias(self):
        """Decisions dump with camelCase keys."""
        payload = evaluate_intake("Panel upgrade").model_dump(by_alias=True)
        assert payload["nextStep"] == LeadNextStep.ESTIMATE_ONLY
        assert payload["prepBrief"]["projectType"] == "Electrical"


# =============================================================================
# Walkthrough planning
# =============================================================================


class TestDetectProjectType:
    """Tests for trade family detection."""

    @pytest.mark.parametrize("summary, expected", [
        ("Roof membrane failing", "Roofing"),
        ("Chiller down", "HVAC"),
        ("New generator feed", "Electrical"),
        ("Millwork at reception", "Interiors"),
        ("Bathroom fixture swap", "Plumbing"),
        ("Fence repair", "General Construction"),
        ("", "General Construction"),
    ])
    def test_families(self, summary, expected):
        """Keyword families resolve in order."""
        assert detect_project_type(summary) == expected


class TestPrepBrief:
    """Tests for walkthrough prep briefs."""

    def test_roofing_brief(self):
        """Roofing briefs bring rigging and fall protection."""
        brief = generate_prep_brief("Roof membrane failing")

        assert "Roofing Foreman" in brief.recommended_trades
        assert brief.supplies[0].item == "Fall protection + safety cart"
        assert brief.summary.startswith('AI classified this as a Roofing engagement based on: "Roof membrane failing".')

    def test_general_brief(self):
        """Other briefs bring the standard kit."""
        brief = generate_prep_brief("Fence repair")

        assert brief.recommended_trades == ["Project Manager", "Lead Technician", "Safety Officer"]
        assert brief.supplies[1].quantity == "Per crew"
        assert len(brief.key_questions) == 3


class TestBuildWalkthroughTasks:
    """Tests for pre-walkthrough tasks."""

    def test_standard_tasks(self):
        """Question tasks, then photos and logistics."""
        plan = generate_suggestions("roofing")
        tasks = build_walkthrough_tasks(plan)

        assert len(tasks) == 5
        assert tasks[0].title == f"Walkthrough: {plan.questions[0]}"
        assert tasks[3].title == "Capture existing condition photos"
        assert tasks[4].title == "Confirm logistics & shutdown windows"
        assert all(task.category == "Planning" for task in tasks)

    def test_historic_review_added(self, boiler_scope):
        """A Historic flag adds a high-priority documentation review."""
        analysis = analyze(boiler_scope)
        tasks = build_walkthrough_tasks(generate_suggestions(analysis.primary_template), analysis)

        assert tasks[-1].title == "Historic documentation review"
        assert tasks[-1].priority == "High"

    def test_no_questions(self):
        """Plans without questions still get photo and logistics tasks."""
        plan = generate_suggestions("roofing").model_copy(update={"questions": []})
        assert len(build_walkthrough_tasks(plan)) == 2
