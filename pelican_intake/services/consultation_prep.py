"""Consultation prep builder.

Turns a scope analysis into an editable pre-walkthrough checklist:
questions, measurements, photos, tools, safety notes and knowledge base
research. Everything here is deterministic and synchronous; AI-sourced
research is attached later through ChecklistEditor.attach_research.
"""

from typing import Iterable, List, Optional

import structlog

from pelican_intake.models.intake import (
    ChecklistSection,
    ConsultationChecklist,
    IntakeChecklistItem,
    IntakeResearchSnippet,
    IntakeSafetyNote,
    ResearchCategory,
    ResearchSource,
    ScopeAnalysisResult,
)
from pelican_intake.services.knowledge_base import (
    detect_safety_notes,
    find_code_references,
    find_measurement_guide,
    match_permit_rules,
)
from pelican_intake.services.template_library import get_template
from pelican_intake.utils.ids import Clock, new_id, now_iso, utc_now

logger = structlog.get_logger(__name__)

SCOPE_ECHO_LENGTH = 120
PERMIT_SNIPPET_CONFIDENCE = 0.9
CODE_SNIPPET_CONFIDENCE = 0.85


def _item(text: str, reason: Optional[str] = None, required: bool = True) -> IntakeChecklistItem:
    return IntakeChecklistItem(id=new_id("item"), text=text, reason=reason, required=required)


# =============================================================================
# Section builders
# =============================================================================


def build_questions(template: str, scope_text: str) -> List[IntakeChecklistItem]:
    """Walkthrough questions, plus a reminder echoing the scope when present."""
    config = get_template(template)
    items = [_item(question) for question in config.walkthrough_questions]
    if scope_text:
        suffix = "…" if len(scope_text) > SCOPE_ECHO_LENGTH else ""
        items.append(_item(
            f"Clarify scope notes: {scope_text[:SCOPE_ECHO_LENGTH]}{suffix}",
            "Ensure all client constraints are captured.",
        ))
    return items


def build_research(template: str, keywords: List[str], jurisdiction: Optional[str] = None) -> List[IntakeResearchSnippet]:
    """Knowledge base permit and code snippets."""
    snippets = []
    for rule in match_permit_rules(keywords, jurisdiction):
        fee_text = rule.fee_range.render() if rule.fee_range else "See jurisdiction fee schedule"
        snippets.append(IntakeResearchSnippet(
            id=f"permit-{rule.id}",
            category=ResearchCategory.PERMIT,
            title=f"{rule.type} permit ({rule.jurisdiction.value})",
            content=f"{rule.description} Fee estimate {fee_text}. {rule.notes or ''}".strip(),
            jurisdiction=rule.jurisdiction,
            source=ResearchSource.KNOWLEDGE_BASE,
            confidence=PERMIT_SNIPPET_CONFIDENCE,
        ))

    for ref in find_code_references(template, jurisdiction):
        section = f" (See {ref.section})" if ref.section else ""
        snippets.append(IntakeResearchSnippet(
            id=f"code-{ref.id}",
            category=ResearchCategory.CODE,
            title=ref.name,
            content=f"{ref.summary}{section}",
            jurisdiction=ref.jurisdiction,
            source=ResearchSource.KNOWLEDGE_BASE,
            confidence=CODE_SNIPPET_CONFIDENCE,
        ))
    return snippets


def generate_checklist(
    analysis: ScopeAnalysisResult,
    jurisdiction: Optional[str] = None,
    clock: Clock = utc_now,
    project_id: Optional[str] = None,
) -> ConsultationChecklist:
    """Build a consultation checklist from a scope analysis.

    Args:
        analysis: Scope analysis (its primary template drives every section).
        jurisdiction: Jurisdiction filter for permits and codes; None means all.
        clock: Clock for generatedAt.
        project_id: Optional owning project.

    Returns:
        ConsultationChecklist
    """
    template = analysis.primary_template
    guide = find_measurement_guide(template)

    if guide is None:
        measurements, photos, tools = [], [], []
    else:
        measurements = [_item(entry.subject, entry.reason) for entry in guide.measurements]
        photos = [_item(entry.subject, entry.reason) for entry in guide.photos]
        tools = [_item(tool, "Recommended to bring", required=False) for tool in guide.tools]

    safety_notes = [
        IntakeSafetyNote(id=f"safety-{note.id}", text=note.note, severity=note.severity, source="Safety guide")
        for note in detect_safety_notes(analysis.detected_keywords)
    ]

    checklist = ConsultationChecklist(
        id=new_id("checklist"),
        project_id=project_id,
        job_type=template,
        questions=build_questions(template, analysis.scope_text),
        measurements=measurements,
        photos=photos,
        tools=tools,
        safety_notes=safety_notes,
        research=build_research(template, analysis.detected_keywords, jurisdiction),
        generated_at=now_iso(clock),
    )

    logger.info(
        "checklist_generated",
        checklist_id=checklist.id,
        job_type=template.value,
        jurisdiction=jurisdiction,
        question_count=len(checklist.questions),
        safety_note_count=len(safety_notes),
        research_count=len(checklist.research),
    )
    return checklist


# =============================================================================
# Item list operations (pure)
# =============================================================================


def toggle_item(items: List[IntakeChecklistItem], item_id: str) -> List[IntakeChecklistItem]:
    """Flip ``checked`` on the matching item. Unknown ids leave the list as is."""
    return [item.model_copy(update={"checked": not item.checked}) if item.id == item_id else item for item in items]


def remove_item(items: List[IntakeChecklistItem], item_id: str) -> List[IntakeChecklistItem]:
    """Drop the matching item."""
    return [item for item in items if item.id != item_id]


def add_custom_item(
    items: List[IntakeChecklistItem], text: str, reason: Optional[str] = None
) -> List[IntakeChecklistItem]:
    """Append a user-added optional item. Blank text leaves the list as is."""
    text = (text or "").strip()
    if not text:
        return list(items)
    added = _item(text, reason, required=False).model_copy(update={"user_added": True})
    return [*items, added]


# =============================================================================
# Checklist editor
# =============================================================================


class ChecklistEditor:
    """Applies item operations to a checklist section and re-stamps updatedAt.

    Required items cannot be removed through the editor; only optional
    items (tools and user-added entries) may be deleted.
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def _replace(self, checklist: ConsultationChecklist, section: ChecklistSection, items) -> ConsultationChecklist:
        return checklist.model_copy(update={
            ChecklistSection(section).value: items,
            "updated_at": now_iso(self.clock),
        })

    def toggle(self, checklist: ConsultationChecklist, section: ChecklistSection, item_id: str) -> ConsultationChecklist:
        return self._replace(checklist, section, toggle_item(checklist.section(section), item_id))

    def add(
        self,
        checklist: ConsultationChecklist,
        section: ChecklistSection,
        text: str,
        reason: Optional[str] = None,
    ) -> ConsultationChecklist:
        if not (text or "").strip():
            return checklist
        return self._replace(checklist, section, add_custom_item(checklist.section(section), text, reason))

    def remove(self, checklist: ConsultationChecklist, section: ChecklistSection, item_id: str) -> ConsultationChecklist:
        items = checklist.section(section)
        target = next((item for item in items if item.id == item_id), None)
        if target is None:
            return checklist
        if target.required:
            logger.debug("checklist_remove_refused", checklist_id=checklist.id, item_id=item_id)
            return checklist
        return self._replace(checklist, section, remove_item(items, item_id))

    def attach_research(
        self, checklist: ConsultationChecklist, snippets: Iterable[IntakeResearchSnippet]
    ) -> ConsultationChecklist:
        """Append snippets after the existing research, skipping known ids."""
        known = {snippet.id for snippet in checklist.research}
        added = []
        for snippet in snippets:
            if snippet.id in known:
                continue
            known.add(snippet.id)
            added.append(snippet)
        if not added:
            return checklist
        return checklist.model_copy(update={
            "research": [*checklist.research, *added],
            "updated_at": now_iso(self.clock),
        })
