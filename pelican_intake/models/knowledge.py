"""Regional knowledge base Pydantic models.

Read-only reference records keyed by trigger keywords and jurisdiction.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from pelican_intake.models.intake import Jurisdiction, Severity, TaskTemplate


class FeeRange(BaseModel):
    """Permit fee range in dollars."""

    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    class Config:
        frozen = True

    def render(self) -> str:
        return f"${self.min:g}-{self.max:g}"


class AgencyContact(BaseModel):
    """Permitting office contact."""

    name: str
    phone: str
    url: Optional[str] = None

    class Config:
        frozen = True


class PermitRule(BaseModel):
    """Permit requirement triggered by scope keywords."""

    id: str
    type: str = Field(..., description="Mechanical, Electrical, Plumbing, Building, Gas, Historic or Environmental")
    triggers: List[str]
    description: str
    jurisdiction: Jurisdiction
    fee_range: Optional[FeeRange] = Field(default=None, alias="feeRange")
    inspection_required: bool = Field(alias="inspectionRequired")
    contact: Optional[AgencyContact] = None
    code_reference: Optional[str] = Field(default=None, alias="codeReference")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True


class GuideEntry(BaseModel):
    """Measurement or photo to capture, with the reason to capture it."""

    subject: str
    reason: str

    class Config:
        frozen = True


class MeasurementGuide(BaseModel):
    """Measurements, photos and tools for a set of job types."""

    job_types: List[TaskTemplate] = Field(alias="jobTypes")
    measurements: List[GuideEntry]
    photos: List[GuideEntry]
    tools: List[str]

    class Config:
        populate_by_name = True
        frozen = True


class SafetyGuide(BaseModel):
    """Safety note triggered by scope keywords."""

    id: str
    triggers: List[str]
    severity: Severity
    note: str

    class Config:
        frozen = True


class CodeReference(BaseModel):
    """Building code reference applicable to job types in a jurisdiction."""

    id: str
    name: str
    section: Optional[str] = None
    jurisdiction: Jurisdiction
    summary: str
    applicable_to: List[TaskTemplate] = Field(alias="applicableTo")

    class Config:
        populate_by_name = True
        frozen = True
