"""Command line front end for Pelican intake.

Usage:
  pelican-intake analyze "Replace boiler in historic building" --template hvacRepair
  pelican-intake checklist "Gallery LED retrofit in the French Quarter" --research
  pelican-intake plan "Install rooftop shade structure" --answer "Two weeks" --answer "No drawings"
  pelican-intake triage "Burst pipe flooding the lobby" --urgency High

Results are printed as JSON on stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from pelican_intake.agents.intake_session import IntakeSession
from pelican_intake.agents.intake_triage import evaluate_intake
from pelican_intake.agents.task_planner import TaskPlanner
from pelican_intake.agents.walkthrough_planner import build_walkthrough_tasks
from pelican_intake.config.errors import IntakeError
from pelican_intake.config.settings import settings
from pelican_intake.models.intake import TaskTemplate
from pelican_intake.models.plan import PRIORITIES
from pelican_intake.services.consultation_prep import generate_checklist
from pelican_intake.services.scope_analysis import analyze
from pelican_intake.services.task_assembly import TaskAssembler
from pelican_intake.utils.log_config import configure_logging


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_dump(value), indent=2, ensure_ascii=False))


# =============================================================================
# Commands
# =============================================================================


async def _start_session(session: IntakeSession, scope: str, template: Optional[str]):
    checklist = await session.start(scope)
    if template:
        checklist = await session.override_template(template)
    return checklist


def cmd_analyze(args: argparse.Namespace) -> Dict[str, Any]:
    return _dump(analyze(args.scope, args.template))


def cmd_checklist(args: argparse.Namespace) -> Dict[str, Any]:
    if args.research:
        session = IntakeSession()
        checklist = asyncio.run(_start_session(session, args.scope, args.template))
        return {"analysis": _dump(session.analysis), "checklist": _dump(checklist)}

    analysis = analyze(args.scope, args.template)
    jurisdiction = args.jurisdiction
    if jurisdiction is None and analysis.suggested_jurisdiction:
        jurisdiction = analysis.suggested_jurisdiction.value
    return {"analysis": _dump(analysis), "checklist": _dump(generate_checklist(analysis, jurisdiction))}


def cmd_plan(args: argparse.Namespace) -> Dict[str, Any]:
    planner = TaskPlanner()
    state, analysis = planner.begin_conversation(args.scope)
    for answer in args.answer or []:
        state = planner.record_answer(state, answer)

    result = planner.build_plan(state)
    walkthrough_tasks = build_walkthrough_tasks(result.plan, analysis)
    output: Dict[str, Any] = {
        "conversation": _dump(state),
        "plan": _dump(result.plan),
        "phases": _dump(result.phases),
        "walkthroughTasks": _dump(walkthrough_tasks),
    }
    if args.budget is not None:
        payloads = TaskAssembler().assemble(result.plan, total_budget=args.budget, walkthrough_tasks=walkthrough_tasks)
        output["tasks"] = _dump(payloads)
    return output


def cmd_triage(args: argparse.Namespace) -> Dict[str, Any]:
    return _dump(evaluate_intake(args.summary, args.urgency))


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pelican-intake", description="AI-assisted construction scope intake")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (default from LOG_LEVEL)")
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        default=settings.log_format,
        help="Log rendering (default from LOG_FORMAT)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    templates = [t.value for t in TaskTemplate]

    p_analyze = sub.add_parser("analyze", help="Classify scope text against the template library")
    p_analyze.add_argument("scope", help="Scope description")
    p_analyze.add_argument("--template", choices=templates, help="Manually selected template")
    p_analyze.set_defaults(func=cmd_analyze)

    p_checklist = sub.add_parser("checklist", help="Build a consultation checklist")
    p_checklist.add_argument("scope", help="Scope description")
    p_checklist.add_argument("--template", choices=templates, help="Manually selected template")
    p_checklist.add_argument("--jurisdiction", help="Jurisdiction filter (default: detected)")
    p_checklist.add_argument("--research", action="store_true", help="Attach LLM research (needs an API key)")
    p_checklist.set_defaults(func=cmd_checklist)

    p_plan = sub.add_parser("plan", help="Run the clarification conversation and build a WBS plan")
    p_plan.add_argument("scope", help="Scope description")
    p_plan.add_argument("--answer", action="append", help="Answer to the next pending question (repeatable)")
    p_plan.add_argument("--budget", type=float, help="Total budget; also prints assembled task payloads")
    p_plan.set_defaults(func=cmd_plan)

    p_triage = sub.add_parser("triage", help="Recommend a next step for a new lead")
    p_triage.add_argument("summary", help="Issue summary")
    p_triage.add_argument("--urgency", choices=list(PRIORITIES), help="Lead urgency")
    p_triage.set_defaults(func=cmd_triage)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        _print_json(args.func(args))
    except IntakeError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
