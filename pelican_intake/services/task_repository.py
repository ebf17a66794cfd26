"""Task persistence interface.

The project system that owns work orders implements TaskRepository;
InMemoryTaskRepository backs the CLI and tests.
"""

from typing import Dict, List, Optional, Protocol

import structlog

from pelican_intake.models.plan import TaskCreationPayload, WorkOrder
from pelican_intake.utils.ids import Clock, now_iso, utc_now

logger = structlog.get_logger(__name__)

DEFAULT_SITE_ID = "site-1"


class TaskRepository(Protocol):
    """Creates work orders for a project."""

    async def create_task(self, project_id: str, payload: TaskCreationPayload) -> WorkOrder:
        ...


def normalize_payload(payload: TaskCreationPayload) -> TaskCreationPayload:
    """Fill missing material unit costs and labor rates with 0."""
    return payload.model_copy(update={
        "materials": [
            m.model_copy(update={"unit_cost": m.unit_cost if m.unit_cost is not None else 0})
            for m in payload.materials
        ],
        "labor": [
            entry.model_copy(update={"rate": entry.rate if entry.rate is not None else 0})
            for entry in payload.labor
        ],
    })


class InMemoryTaskRepository:
    """Work orders kept in a per-project dict."""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self._tasks: Dict[str, List[WorkOrder]] = {}
        self._sequence = 0

    async def create_task(self, project_id: str, payload: TaskCreationPayload) -> WorkOrder:
        payload = normalize_payload(payload)
        self._sequence += 1
        timestamp = now_iso(self.clock)
        number = f"{self.clock().strftime('%Y%m%d%H%M%S')}-{self._sequence:04d}"

        order = WorkOrder(
            id=f"wo-{number}",
            project_id=project_id,
            site_id=payload.site_id or DEFAULT_SITE_ID,
            request_number=f"WO-{number}",
            title=payload.title or "Untitled Task",
            description=payload.description,
            priority=payload.priority or "Medium",
            category=payload.category or "Repair",
            status=payload.status or "Requested",
            materials=payload.materials,
            labor=payload.labor,
            ai_questions=payload.ai_questions,
            ai_material_summary=payload.ai_material_summary,
            ai_labor_summary=payload.ai_labor_summary,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._tasks.setdefault(project_id, []).append(order)
        logger.debug("work_order_created", project_id=project_id, work_order_id=order.id)
        return order

    def list_tasks(self, project_id: Optional[str] = None) -> List[WorkOrder]:
        """Get created work orders, optionally for one project."""
        if project_id is not None:
            return list(self._tasks.get(project_id, []))
        return [order for orders in self._tasks.values() for order in orders]
