"""Load-time validation of the static intake catalogue.

The template library, WBS library and knowledge base are plain Python
data. This module turns them into typed Pydantic records once, at import,
and rejects entries that downstream lookups could not handle (blank
keyword lists, duplicate ids, WBS dependencies pointing forward).
"""

from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError
import structlog

from pelican_intake.config.errors import CatalogError, ErrorCode
from pelican_intake.models.intake import TaskTemplate
from pelican_intake.models.plan import TemplateConfig, WbsPhase

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _format_errors(error: PydanticValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors())


def validate_template_library(entries: Iterable[Dict[str, Any]]) -> List[TemplateConfig]:
    """Parse and validate template catalogue entries.

    Args:
        entries: Raw template dictionaries (camelCase keys).

    Returns:
        TemplateConfig records in catalogue order.

    Raises:
        CatalogError: If an entry is malformed, an id repeats, or the
            catalogue does not start with the default template.
    """
    configs: List[TemplateConfig] = []
    seen = set()
    for raw in entries:
        try:
            config = TemplateConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise CatalogError(
                f"Invalid template entry: {_format_errors(e)}",
                entry_id=str(raw.get("id")),
            ) from e
        if config.id in seen:
            raise CatalogError(
                f"Duplicate template id {config.id.value}",
                entry_id=config.id.value,
                code=ErrorCode.CATALOG_DUPLICATE_ID,
            )
        seen.add(config.id)
        configs.append(config)

    # Empty-input ranking relies on a stable sort leaving the default first
    if not configs or configs[0].id != TaskTemplate.DEFAULT:
        raise CatalogError("Template library must start with the default template", entry_id="default")

    missing = [t.value for t in TaskTemplate if t not in seen]
    if missing:
        raise CatalogError(f"Templates missing from library: {', '.join(missing)}")

    logger.debug("template_library_validated", template_count=len(configs))
    return configs


def validate_records(model: Type[ModelT], entries: Iterable[Dict[str, Any]], kind: str) -> List[ModelT]:
    """Parse knowledge base records of one kind, rejecting repeated ids.

    Records without an id field (measurement guides) skip the uniqueness check.
    """
    records: List[ModelT] = []
    seen = set()
    for raw in entries:
        entry_id = raw.get("id")
        try:
            record = model.model_validate(raw)
        except PydanticValidationError as e:
            raise CatalogError(f"Invalid {kind} entry: {_format_errors(e)}", entry_id=entry_id) from e
        if entry_id is not None:
            if entry_id in seen:
                raise CatalogError(
                    f"Duplicate {kind} id {entry_id}",
                    entry_id=entry_id,
                    code=ErrorCode.CATALOG_DUPLICATE_ID,
                )
            seen.add(entry_id)
        records.append(record)

    logger.debug("knowledge_records_validated", kind=kind, record_count=len(records))
    return records


def validate_wbs_library(library: Mapping[str, List[Dict[str, Any]]]) -> Dict[TaskTemplate, List[WbsPhase]]:
    """Parse WBS phase lists and check dependency ordering.

    Every dependsOn code must name a task that appears earlier in the
    flattened phase order, so a flattened plan can be scheduled top-down.

    Raises:
        CatalogError: On malformed phases, duplicate codes, or forward
            or unknown dependencies. A default WBS is required.
    """
    parsed: Dict[TaskTemplate, List[WbsPhase]] = {}
    for key, raw_phases in library.items():
        try:
            template = TaskTemplate(key)
            phases = [WbsPhase.model_validate(p) for p in raw_phases]
        except ValueError as e:
            raise CatalogError(f"Invalid WBS for {key}: {e}", entry_id=key) from e

        seen_codes: List[str] = []
        for phase in phases:
            for task in phase.tasks:
                if task.code in seen_codes:
                    raise CatalogError(
                        f"Duplicate WBS code {task.code} in {key}",
                        entry_id=key,
                        code=ErrorCode.CATALOG_DUPLICATE_ID,
                    )
                for dependency in task.depends_on or []:
                    if dependency not in seen_codes:
                        raise CatalogError(
                            f"WBS task {task.code} in {key} depends on {dependency}, which does not precede it",
                            entry_id=key,
                            code=ErrorCode.CATALOG_BAD_DEPENDENCY,
                        )
                seen_codes.append(task.code)
        parsed[template] = phases

    if TaskTemplate.DEFAULT not in parsed:
        raise CatalogError("WBS library must define a default entry", entry_id="default")

    logger.debug("wbs_library_validated", template_count=len(parsed))
    return parsed
