"""Plan Pydantic models.

Template catalogue records, work breakdown structure (WBS) phases,
generated project plans, the editable plan projection, and the
work-order-shaped payloads handed to the task repository.
"""

from typing import List, Optional, Set

from pydantic import BaseModel, Field, field_validator

from pelican_intake.models.intake import TaskTemplate


# =============================================================================
# CONSTANTS
# =============================================================================

PRIORITIES = ("Low", "Medium", "High", "Critical")


# =============================================================================
# TASK LINE ITEMS
# =============================================================================


class TemplateMaterial(BaseModel):
    """Material line item. unit_cost is filled in at task creation."""

    name: str
    quantity: float = Field(default=1, ge=0)
    unit: str = Field(default="lot")
    unit_cost: Optional[float] = Field(default=None, alias="unitCost", ge=0)

    class Config:
        populate_by_name = True


class TemplateLabor(BaseModel):
    """Labor line item. rate is resolved from the rate table."""

    role: str
    hours: float = Field(..., ge=0)
    rate: Optional[float] = Field(default=None, ge=0)


class TemplateTask(BaseModel):
    """A suggested task, either a template default or a flattened WBS task."""

    title: str
    description: str
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    materials: Optional[List[TemplateMaterial]] = None
    labor: Optional[List[TemplateLabor]] = None
    phase: Optional[str] = None
    wbs_code: Optional[str] = Field(default=None, alias="wbsCode")
    duration_hours: Optional[float] = Field(default=None, alias="durationHours", ge=0)
    depends_on: Optional[List[str]] = Field(default=None, alias="dependsOn")

    class Config:
        populate_by_name = True


# =============================================================================
# TEMPLATE CATALOGUE
# =============================================================================


class TemplateConfig(BaseModel):
    """Static catalogue entry for a TaskTemplate."""

    id: TaskTemplate
    name: str
    category: str
    description: str
    keywords: List[str]
    walkthrough_questions: List[str] = Field(alias="walkthroughQuestions")
    material_summary: str = Field(alias="materialSummary")
    labor_summary: str = Field(alias="laborSummary")
    cost_heuristic: str = Field(alias="costHeuristic")
    recommended_tasks: List[TemplateTask] = Field(default_factory=list, alias="recommendedTasks")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("keywords", "walkthrough_questions")
    @classmethod
    def must_not_be_empty(cls, value: List[str]) -> List[str]:
        """Keyword and question lists are required by every downstream lookup."""
        if not value or not all(item.strip() for item in value):
            raise ValueError("must contain at least one non-blank entry")
        return value


class WbsTask(BaseModel):
    """Task inside a WBS phase."""

    code: str
    title: str
    description: str
    category: str
    duration_hours: float = Field(alias="durationHours", ge=0)
    depends_on: Optional[List[str]] = Field(default=None, alias="dependsOn")

    class Config:
        populate_by_name = True
        frozen = True


class WbsPhase(BaseModel):
    """Phase of a work breakdown structure."""

    phase: str
    summary: str
    tasks: List[WbsTask]

    class Config:
        frozen = True


# =============================================================================
# PLANS
# =============================================================================


class ProjectPlan(BaseModel):
    """Generated plan. Treated as immutable; regeneration creates a new one."""

    questions: List[str] = Field(default_factory=list)
    materials: str = ""
    labor: str = ""
    cost_heuristic: str = Field(default="", alias="costHeuristic")
    tasks: List[TemplateTask] = Field(default_factory=list)
    template_name: str = Field(alias="templateName")
    description: str = ""

    class Config:
        populate_by_name = True

    def task_titles(self) -> List[str]:
        """Get task titles in plan order."""
        return [task.title for task in self.tasks]


class PlanEdits(BaseModel):
    """User-editable projection of a ProjectPlan."""

    questions: List[str] = Field(default_factory=list)
    materials: str = ""
    labor: str = ""
    selected_task_titles: Set[str] = Field(default_factory=set, alias="selectedTaskTitles")

    class Config:
        populate_by_name = True

    @classmethod
    def from_plan(cls, plan: ProjectPlan) -> "PlanEdits":
        """Start editing with every task selected."""
        return cls(
            questions=list(plan.questions),
            materials=plan.materials,
            labor=plan.labor,
            selected_task_titles=set(plan.task_titles()),
        )


class PlanBuildResult(BaseModel):
    """Plan plus the un-flattened WBS it was built from."""

    plan: ProjectPlan
    phases: List[WbsPhase]


# =============================================================================
# TASK CREATION
# =============================================================================


class TaskCreationPayload(BaseModel):
    """Work-order-shaped task ready for persistence."""

    title: str
    description: str = ""
    status: str = "Requested"
    priority: Optional[str] = None
    category: str = "Planning"
    site_id: Optional[str] = Field(default=None, alias="siteId")
    materials: List[TemplateMaterial] = Field(default_factory=list)
    labor: List[TemplateLabor] = Field(default_factory=list)
    ai_questions: List[str] = Field(default_factory=list, alias="aiQuestions")
    ai_material_summary: Optional[str] = Field(default=None, alias="aiMaterialSummary")
    ai_labor_summary: Optional[str] = Field(default=None, alias="aiLaborSummary")

    class Config:
        populate_by_name = True


class WorkOrder(BaseModel):
    """Persisted task record returned by a task repository."""

    id: str
    project_id: str = Field(alias="projectId")
    site_id: str = Field(alias="siteId")
    request_number: str = Field(alias="requestNumber")
    title: str
    description: str = ""
    priority: str = "Medium"
    category: str = "Repair"
    status: str = "Requested"
    percent_complete: int = Field(default=0, alias="percentComplete")
    materials: List[TemplateMaterial] = Field(default_factory=list)
    labor: List[TemplateLabor] = Field(default_factory=list)
    ai_questions: List[str] = Field(default_factory=list, alias="aiQuestions")
    ai_material_summary: Optional[str] = Field(default=None, alias="aiMaterialSummary")
    ai_labor_summary: Optional[str] = Field(default=None, alias="aiLaborSummary")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    class Config:
        populate_by_name = True
