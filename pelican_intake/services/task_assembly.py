"""Plan-to-task assembly.

Converts a generated plan (and the user's edits) into work-order-shaped
payloads with priced labor and material allowances, then persists them
through an injected TaskRepository.
"""

import math
from typing import List, Optional, Sequence

import structlog

from pelican_intake.config.errors import IntakeError, TaskAssemblyError
from pelican_intake.models.plan import (
    PlanEdits,
    ProjectPlan,
    TaskCreationPayload,
    TemplateLabor,
    TemplateMaterial,
    TemplateTask,
    WorkOrder,
)
from pelican_intake.services.rate_table import MANUAL_LABOR, PROJECT_MANAGEMENT, RateTable
from pelican_intake.services.task_repository import InMemoryTaskRepository, TaskRepository

logger = structlog.get_logger(__name__)

MATERIAL_ALLOWANCE_FLOOR = 750
MATERIAL_BUDGET_SHARE = 0.35

DEFAULT_LABOR_SPLIT = [
    (PROJECT_MANAGEMENT, 6),
    (MANUAL_LABOR, 12),
]


def build_labor_for_task(task: TemplateTask, rate_table: RateTable) -> List[TemplateLabor]:
    """Labor lines for a task, defaulting to PM 6h + Manual Labor 12h.

    Rate precedence: the entry's own rate, then the rate table, then defaults.
    """
    entries = task.labor or [TemplateLabor(role=role, hours=hours) for role, hours in DEFAULT_LABOR_SPLIT]
    return [
        entry.model_copy(update={
            "rate": entry.rate if entry.rate is not None else rate_table.rate_for_role(entry.role),
        })
        for entry in entries
    ]


def build_materials_for_task(task: TemplateTask, per_task_budget: float) -> List[TemplateMaterial]:
    """Task materials, or one lump-sum allowance of max(750, 35% of the task budget)."""
    if task.materials:
        return [material.model_copy() for material in task.materials]
    allowance = max(MATERIAL_ALLOWANCE_FLOOR, math.floor(per_task_budget * MATERIAL_BUDGET_SHARE + 0.5))
    return [TemplateMaterial(name=f"{task.title} materials", quantity=1, unit="lot", unit_cost=allowance)]


class TaskAssembler:
    """Builds and persists tasks for a project plan.

    Args:
        rate_table: Labor rates; defaults only when omitted.
        repository: Where tasks are created; in-memory when omitted.
    """

    def __init__(self, rate_table: Optional[RateTable] = None, repository: Optional[TaskRepository] = None):
        self.rate_table = rate_table or RateTable()
        self.repository = repository if repository is not None else InMemoryTaskRepository()

    def assemble(
        self,
        plan: ProjectPlan,
        edits: Optional[PlanEdits] = None,
        total_budget: float = 0,
        walkthrough_tasks: Sequence[TemplateTask] = (),
        site_id: Optional[str] = None,
    ) -> List[TaskCreationPayload]:
        """Build creation payloads for the selected plan tasks.

        Walkthrough prep tasks come first. The budget is split evenly over
        every created task.
        """
        if edits is not None:
            selected = [task for task in plan.tasks if task.title in edits.selected_task_titles]
            edited_questions = [q.strip() for q in edits.questions if q.strip()]
            questions = edited_questions or list(plan.questions)
            materials_summary = edits.materials
            labor_summary = edits.labor
        else:
            selected = list(plan.tasks)
            questions = list(plan.questions)
            materials_summary = plan.materials
            labor_summary = plan.labor

        combined = [*walkthrough_tasks, *selected]
        task_count = max(len(combined), 1)
        per_task_budget = total_budget / task_count

        return [
            TaskCreationPayload(
                title=task.title,
                description=task.description,
                status=task.status or "Requested",
                priority=task.priority,
                category=task.category or "Planning",
                site_id=site_id,
                materials=build_materials_for_task(task, per_task_budget),
                labor=build_labor_for_task(task, self.rate_table),
                ai_questions=list(questions),
                ai_material_summary=materials_summary,
                ai_labor_summary=labor_summary,
            )
            for task in combined
        ]

    async def create_tasks(
        self,
        project_id: str,
        plan: ProjectPlan,
        edits: Optional[PlanEdits] = None,
        total_budget: float = 0,
        walkthrough_tasks: Sequence[TemplateTask] = (),
        site_id: Optional[str] = None,
    ) -> List[WorkOrder]:
        """Assemble and persist tasks for a project.

        Raises:
            TaskAssemblyError: If the repository fails to create a task.
        """
        await self.rate_table.load()
        payloads = self.assemble(plan, edits, total_budget, walkthrough_tasks, site_id)

        created = []
        for payload in payloads:
            try:
                created.append(await self.repository.create_task(project_id, payload))
            except IntakeError:
                raise
            except Exception as e:
                raise TaskAssemblyError(
                    f"Failed to create task: {e}",
                    project_id=project_id,
                    task_title=payload.title,
                    details={"created_count": len(created)},
                ) from e

        logger.info("tasks_created", project_id=project_id, task_count=len(created), total_budget=total_budget)
        return created
