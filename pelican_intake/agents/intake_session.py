"""Intake session orchestrator.

Ties the pipeline together for one intake:

    start(summary)      analysis + conversation + checklist, then research
    answer(text)        clarification turns
    override_template   user picks a different template; checklist rebuilt
    build_plan()        WBS plan plus walkthrough prep tasks

Research runs after the deterministic checklist is ready. Every start or
override bumps a generation counter; research that completes for an older
generation is discarded.
"""

from typing import List, Optional

import structlog

from pelican_intake.agents.task_planner import TaskPlanner
from pelican_intake.agents.walkthrough_planner import build_walkthrough_tasks
from pelican_intake.config.errors import ErrorCode, IntakeError
from pelican_intake.config.settings import settings
from pelican_intake.models.intake import (
    ChecklistSection,
    ConsultationChecklist,
    IntakeConversationState,
    ScopeAnalysisResult,
    TaskTemplate,
)
from pelican_intake.models.plan import PlanBuildResult, TemplateTask
from pelican_intake.services.consultation_prep import ChecklistEditor, generate_checklist
from pelican_intake.services.research_service import ResearchService, get_research_service
from pelican_intake.utils.ids import Clock, utc_now

logger = structlog.get_logger(__name__)


class IntakeSession:
    """One client intake, from scope text to plan.

    Args:
        planner: Conversation engine.
        research: Research service (shared process-wide by default).
        clock: Clock for checklist and message timestamps.
        default_jurisdiction: Jurisdiction for research when none is detected.
    """

    def __init__(
        self,
        planner: Optional[TaskPlanner] = None,
        research: Optional[ResearchService] = None,
        clock: Clock = utc_now,
        default_jurisdiction: Optional[str] = None,
    ):
        self.clock = clock
        self.planner = planner or TaskPlanner(clock=clock)
        self.research = research or get_research_service()
        self.editor = ChecklistEditor(clock=clock)
        self.default_jurisdiction = default_jurisdiction or settings.default_jurisdiction

        self.generation = 0
        self.conversation: Optional[IntakeConversationState] = None
        self.analysis: Optional[ScopeAnalysisResult] = None
        self.checklist: Optional[ConsultationChecklist] = None
        self.plan_result: Optional[PlanBuildResult] = None
        self.walkthrough_tasks: List[TemplateTask] = []

    def _require(self, value, what: str):
        if value is None:
            raise IntakeError(
                code=ErrorCode.SESSION_INVALID_STATE,
                message=f"No {what} yet; call start() first",
                details={"generation": self.generation},
            )
        return value

    async def _attach_research(self, generation: int) -> None:
        analysis = self.analysis
        jurisdiction = self.default_jurisdiction
        if analysis.suggested_jurisdiction:
            jurisdiction = analysis.suggested_jurisdiction.value
        snippets = await self.research.get_research_snippets(
            analysis.scope_text,
            analysis.primary_template.value,
            jurisdiction,
        )
        if generation != self.generation:
            logger.info(
                "stale_research_discarded",
                research_generation=generation,
                current_generation=self.generation,
                snippet_count=len(snippets),
            )
            return
        self.checklist = self.editor.attach_research(self.checklist, snippets)

    async def start(self, scope_summary: str) -> ConsultationChecklist:
        """Begin a new intake, discarding any previous one.

        Returns:
            Checklist with research attached (or the checklist of a newer
            start if this one was superseded while research was in flight).
        """
        self.generation += 1
        generation = self.generation
        self.plan_result = None
        self.walkthrough_tasks = []

        self.conversation, self.analysis = self.planner.begin_conversation(scope_summary)
        jurisdiction = self.analysis.suggested_jurisdiction
        self.checklist = generate_checklist(
            self.analysis,
            jurisdiction.value if jurisdiction else None,
            clock=self.clock,
        )

        await self._attach_research(generation)
        return self.checklist

    def answer(self, text: str) -> IntakeConversationState:
        """Record the user's answer to the current question."""
        self.conversation = self.planner.record_answer(self._require(self.conversation, "conversation"), text)
        return self.conversation

    async def override_template(self, template: str) -> ConsultationChecklist:
        """Use a manually chosen template; rebuilds the checklist and research."""
        analysis = self._require(self.analysis, "analysis")
        self.generation += 1
        generation = self.generation

        chosen = TaskTemplate.coerce(template)
        self.analysis = analysis.with_template(chosen)
        if self.conversation is not None:
            self.conversation = self.conversation.model_copy(update={"recommended_template": chosen})
        jurisdiction = self.analysis.suggested_jurisdiction
        self.checklist = generate_checklist(
            self.analysis,
            jurisdiction.value if jurisdiction else None,
            clock=self.clock,
        )
        logger.info("template_overridden", template=chosen.value, previous=analysis.primary_template.value)

        await self._attach_research(generation)
        return self.checklist

    def build_plan(self) -> PlanBuildResult:
        """Build the WBS plan and the walkthrough prep tasks."""
        conversation = self._require(self.conversation, "conversation")
        self.plan_result = self.planner.build_plan(conversation)
        self.walkthrough_tasks = build_walkthrough_tasks(self.plan_result.plan, self.analysis)
        return self.plan_result

    # Checklist editing

    def toggle_item(self, section: ChecklistSection, item_id: str) -> ConsultationChecklist:
        self.checklist = self.editor.toggle(self._require(self.checklist, "checklist"), section, item_id)
        return self.checklist

    def add_item(self, section: ChecklistSection, text: str, reason: Optional[str] = None) -> ConsultationChecklist:
        self.checklist = self.editor.add(self._require(self.checklist, "checklist"), section, text, reason)
        return self.checklist

    def remove_item(self, section: ChecklistSection, item_id: str) -> ConsultationChecklist:
        self.checklist = self.editor.remove(self._require(self.checklist, "checklist"), section, item_id)
        return self.checklist
