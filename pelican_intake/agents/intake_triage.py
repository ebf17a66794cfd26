"""Lead intake triage.

Scores a lead's issue summary and urgency, then recommends a next step:

    score >= 0.85  DispatchCrew
    score >= 0.60  ScheduleWalkthrough
    score >= 0.45  EstimateOnly
    otherwise      NurtureSequence
"""

from typing import Optional

import structlog

from pelican_intake.agents.walkthrough_planner import detect_project_type, generate_prep_brief
from pelican_intake.models.triage import IntakeDecision, LeadNextStep

logger = structlog.get_logger(__name__)

EMERGENCY_KEYWORDS = ["leak", "burst", "flood", "fire", "gas", "boiler", "chiller down", "power outage"]
NURTURE_KEYWORDS = ["idea", "concept", "maybe", "future", "budgetary", "planning"]

# (minimum score, next step, requires walkthrough, rationale)
DECISION_THRESHOLDS = [
    (
        0.85,
        LeadNextStep.DISPATCH_CREW,
        True,
        "Critical language detected. Recommend immediate dispatch or emergency walkthrough.",
    ),
    (
        0.6,
        LeadNextStep.SCHEDULE_WALKTHROUGH,
        True,
        "High urgency scope. Schedule a walkthrough to build scope of work.",
    ),
    (
        0.45,
        LeadNextStep.ESTIMATE_ONLY,
        False,
        "Moderate request. Prepare estimate/rough order of magnitude and follow up.",
    ),
]
NURTURE_RATIONALE = "Exploratory language detected. Enroll in nurture sequence until scope is ready."


def compute_urgency_score(summary: str, urgency: Optional[str] = None) -> float:
    """Score how quickly a lead needs attention.

    Urgency outranks keywords: Critical is 0.95 regardless of text, and
    emergency language beats a High urgency setting.
    """
    lower = (summary or "").lower()
    if urgency == "Critical":
        return 0.95
    if any(keyword in lower for keyword in EMERGENCY_KEYWORDS):
        return 0.9
    if urgency == "High":
        return 0.75
    if any(keyword in lower for keyword in NURTURE_KEYWORDS):
        return 0.35
    return 0.55


def evaluate_intake(issue_summary: str, urgency: Optional[str] = None) -> IntakeDecision:
    """Triage a lead.

    Args:
        issue_summary: Client's description of the issue.
        urgency: Lead priority (Low, Medium, High, Critical), if known.

    Returns:
        IntakeDecision with the prep brief for a walkthrough.
    """
    summary = issue_summary or ""
    score = compute_urgency_score(summary, urgency)
    project_type = detect_project_type(summary)
    prep_brief = generate_prep_brief(summary, project_type)

    next_step, requires_walkthrough, rationale = LeadNextStep.NURTURE_SEQUENCE, False, NURTURE_RATIONALE
    for minimum, step, walkthrough, reason in DECISION_THRESHOLDS:
        if score >= minimum:
            next_step, requires_walkthrough, rationale = step, walkthrough, reason
            break

    logger.info(
        "intake_triaged",
        next_step=next_step.value,
        confidence=score,
        project_type=project_type,
        urgency=urgency,
    )

    return IntakeDecision(
        next_step=next_step,
        confidence=score,
        rationale=rationale,
        requires_walkthrough=requires_walkthrough,
        project_type=project_type,
        prep_brief=prep_brief,
    )
