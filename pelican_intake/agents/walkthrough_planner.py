"""Walkthrough planning helpers.

Prep tasks created ahead of a site walkthrough, and the prep brief
attached to triaged leads.
"""

from typing import List, Optional

from pelican_intake.models.intake import ComplianceFlagType, ScopeAnalysisResult
from pelican_intake.models.plan import ProjectPlan, TemplateTask
from pelican_intake.models.triage import PrepSupply, WalkthroughPrepBrief

WALKTHROUGH_QUESTION_LIMIT = 3

# Checked in this order; first family with a contained keyword wins
PROJECT_TYPE_KEYWORDS = [
    ("Roofing", ["roof", "membrane", "shingle", "gutters"]),
    ("HVAC", ["boiler", "chiller", "hvac", "air handler", "duct"]),
    ("Electrical", ["lighting", "panel", "generator", "power"]),
    ("Interiors", ["paint", "floor", "millwork", "interior"]),
    ("Plumbing", ["plumbing", "pipe", "bathroom", "fixture"]),
]
GENERAL_PROJECT_TYPE = "General Construction"

PREP_KEY_QUESTIONS = [
    "What are the shutdown windows or tenant constraints?",
    "What existing conditions could impact the install path?",
    "Where can crews stage materials, dumpsters, or lifts?",
]


def _prep_task(title: str, description: str, priority: str = "Medium") -> TemplateTask:
    return TemplateTask(
        title=title,
        description=description,
        priority=priority,
        status="Requested",
        category="Planning",
    )


def build_walkthrough_tasks(plan: ProjectPlan, analysis: Optional[ScopeAnalysisResult] = None) -> List[TemplateTask]:
    """Pre-walkthrough tasks for a plan.

    One task per leading plan question, a photo task, a logistics task, and
    a high-priority historic review when the analysis raised a Historic flag.
    """
    tasks = [
        _prep_task(f"Walkthrough: {question}", "Discuss with client and document response during walkthrough.")
        for question in plan.questions[:WALKTHROUGH_QUESTION_LIMIT]
    ]
    tasks.append(_prep_task(
        "Capture existing condition photos",
        "Photograph all impacted spaces, utilities, and access routes.",
    ))
    tasks.append(_prep_task(
        "Confirm logistics & shutdown windows",
        "Validate after-hours access, safety constraints, and occupant coordination.",
    ))
    if analysis and any(flag.type == ComplianceFlagType.HISTORIC for flag in analysis.compliance_flags):
        tasks.append(_prep_task(
            "Historic documentation review",
            "Verify SHPO documentation, material submittals, and approvals needed.",
            priority="High",
        ))
    return tasks


def detect_project_type(summary: str) -> str:
    """Classify a lead summary into a trade family."""
    lower = (summary or "").lower()
    for project_type, keywords in PROJECT_TYPE_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return project_type
    return GENERAL_PROJECT_TYPE


def generate_prep_brief(summary: str, project_type: Optional[str] = None) -> WalkthroughPrepBrief:
    """Build the walkthrough prep brief for a lead."""
    project_type = project_type or detect_project_type(summary)
    roofing = project_type == "Roofing"

    if roofing:
        trades = ["Superintendent", "Roofing Foreman", "Rigging Crew", "Safety Officer"]
        supplies = [
            PrepSupply(item="Fall protection + safety cart"),
            PrepSupply(item="Infrared scanner / moisture meter"),
            PrepSupply(item="Core sample kit", quantity="1 set"),
        ]
    else:
        trades = ["Project Manager", "Lead Technician", "Safety Officer"]
        supplies = [
            PrepSupply(item="Laser tape + moisture meter"),
            PrepSupply(item="Inspection PPE", quantity="Per crew"),
        ]

    return WalkthroughPrepBrief(
        project_type=project_type,
        summary=(
            f'AI classified this as a {project_type} engagement based on: "{summary}". '
            "Use the walkthrough to validate scope, constraints, and long-lead obstacles."
        ),
        key_questions=list(PREP_KEY_QUESTIONS),
        recommended_trades=trades,
        supplies=supplies,
    )
