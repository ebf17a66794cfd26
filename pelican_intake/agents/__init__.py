"""Pelican intake agents.

This package contains the stateful and conversational parts of intake:
- Task planner (clarification conversation and WBS plans)
- Walkthrough planner (prep tasks and prep briefs)
- Intake triage (next-step recommendation for new leads)
- Intake session (orchestrates one intake end to end)
"""

from pelican_intake.agents.task_planner import TaskPlanner
from pelican_intake.agents.intake_session import IntakeSession

__all__ = ["TaskPlanner", "IntakeSession"]
