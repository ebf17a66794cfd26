"""AI task planner: the intake clarification conversation.

States:
    no conversation -> collecting (questions pending) -> ready for plan

Every transition returns a new IntakeConversationState and keeps
``ready_for_plan == (not pending_questions)``. Plans are built from the
WBS of the recommended template, flattened into one ordered task list.
"""

from typing import List, Optional, Tuple

import structlog

from pelican_intake.models.intake import (
    ConversationMessage,
    IntakeConversationState,
    MessageRole,
    ScopeAnalysisResult,
    TaskTemplate,
)
from pelican_intake.models.plan import PlanBuildResult, ProjectPlan, TemplateTask, WbsPhase
from pelican_intake.services.scope_analysis import ScopeAnalyzer, get_scope_analyzer
from pelican_intake.services.template_library import find_template
from pelican_intake.services.wbs_library import get_wbs
from pelican_intake.utils.ids import Clock, new_id, now_iso, utc_now

logger = structlog.get_logger(__name__)

GENERIC_QUESTIONS = [
    "Any hard deadlines or shutdown windows?",
    "Do we have drawings/specs or should we survey from scratch?",
    "List any known constraints (budget caps, historic rules, sensitive occupants).",
]

TEMPLATE_QUESTION_LIMIT = 3
PREVIEW_QUESTION_COUNT = 3

READY_REPLY = "I have what I need. Ready when you are!"
COMPLETION_REPLY = "Perfect. I have what I need to build a full work plan."

DEFAULT_MATERIALS = "Materials will be confirmed after detailed takeoff."
DEFAULT_LABOR = "Use blended crew with PM oversight."
DEFAULT_COST_HEURISTIC = "Track actuals vs. budget each phase."


def build_questions(template: TaskTemplate) -> List[str]:
    """Up to three template questions followed by the generic questions."""
    config = find_template(template)
    if config is None:
        return list(GENERIC_QUESTIONS)
    return [*config.walkthrough_questions[:TEMPLATE_QUESTION_LIMIT], *GENERIC_QUESTIONS]


def flatten_wbs(phases: List[WbsPhase]) -> List[TemplateTask]:
    """Flatten phases into tasks titled "<code> <title>", described "[<phase>] <description>"."""
    return [
        TemplateTask(
            title=f"{task.code} {task.title}",
            description=f"[{phase.phase}] {task.description}",
            category=task.category,
            status="Requested",
            priority="Medium",
            phase=phase.phase,
            wbs_code=task.code,
            duration_hours=task.duration_hours,
            depends_on=list(task.depends_on) if task.depends_on else None,
        )
        for phase in phases
        for task in phase.tasks
    ]


class TaskPlanner:
    """Drives the clarification dialogue and builds WBS plans.

    Args:
        analyzer: Scope analyzer used when a conversation begins.
        clock: Clock for message timestamps.
    """

    def __init__(self, analyzer: Optional[ScopeAnalyzer] = None, clock: Clock = utc_now):
        self.analyzer = analyzer or get_scope_analyzer()
        self.clock = clock

    def _message(self, role: MessageRole, content: str) -> ConversationMessage:
        return ConversationMessage(id=new_id("msg"), role=role, content=content, timestamp=now_iso(self.clock))

    def begin_conversation(self, scope_summary: str) -> Tuple[IntakeConversationState, ScopeAnalysisResult]:
        """Analyze the summary and open a conversation.

        Returns:
            (conversation, analysis). The analysis is returned so the caller
            can build the consultation checklist alongside the dialogue.
        """
        cleaned = (scope_summary or "").strip()
        analysis = self.analyzer.analyze(cleaned)
        template = analysis.primary_template
        questions = build_questions(template)

        if questions:
            bullets = "\n• ".join(questions[:PREVIEW_QUESTION_COUNT])
            first_response = f"To dial this in, let me confirm a few points:\n• {bullets}"
        else:
            first_response = READY_REPLY

        state = IntakeConversationState(
            id=new_id("intake"),
            scope_summary=cleaned,
            messages=[
                self._message(MessageRole.USER, cleaned),
                self._message(MessageRole.ASSISTANT, f"Sounds like a {template.value} style project. {first_response}"),
            ],
            pending_questions=questions,
            responses={},
            recommended_template=template,
            ready_for_plan=not questions,
        )

        logger.info(
            "conversation_started",
            conversation_id=state.id,
            template=template.value,
            question_count=len(questions),
        )
        return state, analysis

    def record_answer(self, state: IntakeConversationState, answer: str) -> IntakeConversationState:
        """Record an answer to the front pending question.

        With no questions pending the answer is appended as free-form chat
        and the conversation stays ready; the queue never reopens.
        """
        answer = (answer or "").strip()
        messages = [*state.messages, self._message(MessageRole.USER, answer)]

        if not state.pending_questions:
            return state.model_copy(update={"messages": messages, "ready_for_plan": True})

        question, *rest = state.pending_questions
        responses = {**state.responses, question: answer}
        reply = f"Great. {rest[0]}" if rest else COMPLETION_REPLY
        messages.append(self._message(MessageRole.ASSISTANT, reply))

        logger.debug("conversation_answered", conversation_id=state.id, remaining=len(rest))
        return state.model_copy(update={
            "messages": messages,
            "pending_questions": rest,
            "responses": responses,
            "ready_for_plan": not rest,
        })

    def build_plan(self, state: IntakeConversationState) -> PlanBuildResult:
        """Build a WBS plan for the conversation's recommended template.

        Unknown templates use the default WBS and empty-safe plan text.
        """
        config = find_template(state.recommended_template)
        phases = get_wbs(state.recommended_template)
        tasks = flatten_wbs(phases)

        clarifications = "\n".join(f"{question} → {response}" for question, response in state.responses.items())
        if clarifications:
            description = f"{state.scope_summary}\n\nClarifications:\n{clarifications}"
        else:
            description = state.scope_summary

        plan = ProjectPlan(
            questions=list(config.walkthrough_questions) if config else [],
            materials=config.material_summary if config else DEFAULT_MATERIALS,
            labor=config.labor_summary if config else DEFAULT_LABOR,
            cost_heuristic=config.cost_heuristic if config else DEFAULT_COST_HEURISTIC,
            tasks=tasks,
            template_name=f"{config.name if config else 'Custom'} WBS",
            description=description,
        )

        logger.info(
            "plan_built",
            conversation_id=state.id,
            template=state.recommended_template.value,
            phase_count=len(phases),
            task_count=len(tasks),
        )
        return PlanBuildResult(plan=plan, phases=phases)

