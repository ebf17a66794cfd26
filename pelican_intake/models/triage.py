"""Intake triage models.

Lead triage decision and the walkthrough prep brief attached to it.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class LeadNextStep(str, Enum):
    """Recommended next step for a new lead."""

    DISPATCH_CREW = "DispatchCrew"
    SCHEDULE_WALKTHROUGH = "ScheduleWalkthrough"
    ESTIMATE_ONLY = "EstimateOnly"
    NURTURE_SEQUENCE = "NurtureSequence"


class PrepSupply(BaseModel):
    """Item to bring to a walkthrough."""

    item: str
    quantity: Optional[str] = None
    notes: Optional[str] = None


class WalkthroughPrepBrief(BaseModel):
    """What a walkthrough crew should prepare for."""

    project_type: str = Field(alias="projectType")
    summary: str
    key_questions: List[str] = Field(default_factory=list, alias="keyQuestions")
    recommended_trades: List[str] = Field(default_factory=list, alias="recommendedTrades")
    supplies: List[PrepSupply] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class IntakeDecision(BaseModel):
    """Triage outcome for a lead."""

    next_step: LeadNextStep = Field(alias="nextStep")
    confidence: float = Field(..., ge=0.0, le=1.0)
    rationale: str
    requires_walkthrough: bool = Field(alias="requiresWalkthrough")
    project_type: str = Field(alias="projectType")
    prep_brief: WalkthroughPrepBrief = Field(alias="prepBrief")

    class Config:
        populate_by_name = True
