"""Intake Pydantic models.

Value objects exchanged between the scope analyzer, the consultation
checklist builder, the conversation engine and the research service.
Field names are snake_case; aliases carry the camelCase interchange keys
used by the surrounding application.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class TaskTemplate(str, Enum):
    """Closed catalogue of job-type identifiers."""

    DEFAULT = "default"
    HISTORIC_RESTORATION = "historicRestoration"
    EVENT_SETUP = "eventSetup"
    LIGHTING_UPGRADE = "lightingUpgrade"
    HVAC_REPAIR = "hvacRepair"
    TENANT_FINISH = "tenantFinish"
    ROOFING = "roofing"
    SITEWORK = "sitework"
    PLUMBING = "plumbing"
    CONCRETE = "concrete"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "TaskTemplate":
        """Resolve a raw template id, falling back to DEFAULT for unknown ids."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


class Jurisdiction(str, Enum):
    """Louisiana regulatory scopes. LOUISIANA is the statewide default."""

    LOUISIANA = "Louisiana"
    NEW_ORLEANS = "NewOrleans"
    BATON_ROUGE = "BatonRouge"


class ComplianceFlagType(str, Enum):
    """Kind of compliance signal raised by scope analysis."""

    HISTORIC = "Historic"
    PERMIT = "Permit"
    SAFETY = "Safety"
    ENVIRONMENTAL = "Environmental"


class Severity(str, Enum):
    """Severity for compliance flags and safety notes."""

    INFO = "Info"
    CAUTION = "Caution"
    WARNING = "Warning"
    CRITICAL = "Critical"
    DANGER = "Danger"


class ResearchCategory(str, Enum):
    """Category of a research snippet."""

    PERMIT = "Permit"
    CODE = "Code"
    MATERIAL = "Material"
    CONTACT = "Contact"


class ResearchSource(str, Enum):
    """Where a research snippet came from."""

    KNOWLEDGE_BASE = "KnowledgeBase"
    LLM = "LLM"


class MessageRole(str, Enum):
    """Author of a conversation message."""

    USER = "User"
    ASSISTANT = "Assistant"


class ChecklistSection(str, Enum):
    """Checkable sections of a consultation checklist."""

    QUESTIONS = "questions"
    MEASUREMENTS = "measurements"
    PHOTOS = "photos"
    TOOLS = "tools"


# =============================================================================
# SCOPE ANALYSIS MODELS
# =============================================================================


class ScopeComplianceFlag(BaseModel):
    """Compliance signal detected in scope text."""

    id: str = Field(..., description="Flag identifier, e.g. flag-boiler")
    type: ComplianceFlagType = Field(..., description="Flag type")
    message: str = Field(..., description="Human-readable explanation")
    severity: Severity = Field(..., description="Flag severity")
    source: str = Field(..., description="What raised the flag")

    class Config:
        frozen = True


class TemplateSuggestion(BaseModel):
    """A ranked template candidate."""

    template: TaskTemplate
    confidence: float = Field(..., ge=0.0, le=1.0)

    class Config:
        frozen = True


class ScopeAnalysisResult(BaseModel):
    """Outcome of analyzing one scope description.

    Immutable. Callers overriding the template use with_template() and must
    regenerate the consultation checklist from the returned copy.
    """

    scope_text: str = Field(alias="scopeText")
    primary_template: TaskTemplate = Field(alias="primaryTemplate")
    primary_confidence: float = Field(alias="primaryConfidence", ge=0.0, le=1.0)
    secondary_suggestions: List[TemplateSuggestion] = Field(
        default_factory=list,
        alias="secondarySuggestions",
        description="Up to three other templates, primary excluded"
    )
    compliance_flags: List[ScopeComplianceFlag] = Field(default_factory=list, alias="complianceFlags")
    detected_keywords: List[str] = Field(
        default_factory=list,
        alias="detectedKeywords",
        description="First 50 non-stopword tokens"
    )
    suggested_jurisdiction: Optional[Jurisdiction] = Field(default=None, alias="suggestedJurisdiction")
    rationale: str = Field(default="")

    class Config:
        populate_by_name = True
        frozen = True

    def with_template(self, template: TaskTemplate) -> "ScopeAnalysisResult":
        """Clone with a manually chosen primary template."""
        template = TaskTemplate.coerce(template)
        secondary = [s for s in self.secondary_suggestions if s.template != template]
        return self.model_copy(update={"primary_template": template, "secondary_suggestions": secondary})


# =============================================================================
# CONSULTATION CHECKLIST MODELS
# =============================================================================


class IntakeChecklistItem(BaseModel):
    """A checkable preparation item."""

    id: str
    text: str
    reason: Optional[str] = None
    required: bool = True
    checked: bool = False
    user_added: bool = Field(default=False, alias="userAdded")

    class Config:
        populate_by_name = True
        frozen = True


class IntakeSafetyNote(BaseModel):
    """Safety note attached to a checklist. Not checkable."""

    id: str
    text: str
    severity: Severity
    source: Optional[str] = None

    class Config:
        frozen = True


class IntakeResearchSnippet(BaseModel):
    """Permit, code, material or contact guidance for a job."""

    id: str
    category: ResearchCategory
    title: str
    content: str
    jurisdiction: Optional[Jurisdiction] = None
    source: ResearchSource
    confidence: float = Field(..., ge=0.0, le=1.0)

    class Config:
        frozen = True


class ConsultationChecklist(BaseModel):
    """Editable pre-walkthrough preparation list."""

    id: str
    project_id: Optional[str] = Field(default=None, alias="projectId")
    job_type: TaskTemplate = Field(alias="jobType")
    questions: List[IntakeChecklistItem] = Field(default_factory=list)
    measurements: List[IntakeChecklistItem] = Field(default_factory=list)
    photos: List[IntakeChecklistItem] = Field(default_factory=list)
    tools: List[IntakeChecklistItem] = Field(default_factory=list)
    safety_notes: List[IntakeSafetyNote] = Field(default_factory=list, alias="safetyNotes")
    research: List[IntakeResearchSnippet] = Field(default_factory=list)
    generated_at: str = Field(alias="generatedAt", description="ISO timestamp")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt", description="ISO timestamp")

    class Config:
        populate_by_name = True

    def section(self, name: ChecklistSection) -> List[IntakeChecklistItem]:
        """Get the items of a checkable section."""
        return getattr(self, ChecklistSection(name).value)

    @property
    def has_llm_research(self) -> bool:
        """Check whether any AI-sourced research has been attached."""
        return any(s.source == ResearchSource.LLM for s in self.research)


# =============================================================================
# CONVERSATION MODELS
# =============================================================================


class ConversationMessage(BaseModel):
    """One entry in the append-only conversation log."""

    id: str
    role: MessageRole
    content: str
    timestamp: str

    class Config:
        frozen = True


class IntakeConversationState(BaseModel):
    """Clarification dialogue state.

    Each transition returns a new instance. ready_for_plan must equal
    ``not pending_questions`` after every transition.
    """

    id: str
    scope_summary: str = Field(alias="scopeSummary")
    messages: List[ConversationMessage] = Field(default_factory=list)
    pending_questions: List[str] = Field(default_factory=list, alias="pendingQuestions")
    responses: Dict[str, str] = Field(default_factory=dict)
    recommended_template: TaskTemplate = Field(alias="recommendedTemplate")
    ready_for_plan: bool = Field(default=False, alias="readyForPlan")

    class Config:
        populate_by_name = True
        frozen = True
