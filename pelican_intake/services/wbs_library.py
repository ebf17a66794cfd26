"""Work breakdown structure (WBS) library.

Phase and task decomposition per template, used by the conversation
engine to build full work plans. Codes are "<phase>.<task>"; every
dependsOn code names a task earlier in the flattened order.
"""

from typing import Any, Dict, List, Optional

from pelican_intake.models.intake import TaskTemplate
from pelican_intake.models.plan import WbsPhase
from pelican_intake.validators.catalog_validator import validate_wbs_library


def _task(code: str, title: str, description: str, category: str, hours: float, *depends_on: str) -> Dict[str, Any]:
    task: Dict[str, Any] = {
        "code": code,
        "title": title,
        "description": description,
        "category": category,
        "durationHours": hours,
    }
    if depends_on:
        task["dependsOn"] = list(depends_on)
    return task


def _phase(phase: str, summary: str, *tasks: Dict[str, Any]) -> Dict[str, Any]:
    return {"phase": phase, "summary": summary, "tasks": list(tasks)}


_WBS_DATA: Dict[str, List[Dict[str, Any]]] = {
    "default": [
        _phase(
            "01 Discovery", "Kickoff, documentation, and constraints.",
            _task("1.1", "Project kickoff + intent capture",
                  "Meet client, confirm goals, constraints, and schedule blackouts.", "Planning", 6),
            _task("1.2", "Site walkthrough & documentation",
                  "Capture measurements, photos, and existing condition notes.", "Planning", 10),
        ),
        _phase(
            "02 Planning", "Scope validation, pricing, procurement path.",
            _task("2.1", "Finalize scope + responsibilities matrix",
                  "Translate walkthrough notes into actionable scope map with stakeholders.", "Planning", 8,
                  "1.1", "1.2"),
            _task("2.2", "Procurement + schedule strategy",
                  "Identify long-lead items, create phasing/milestone dates.", "Planning", 6, "2.1"),
        ),
        _phase(
            "03 Execution", "Perform field work per scope.",
            _task("3.1", "Mobilize + site prep",
                  "Permitting, safety plan, temp protection, clear logistics zones.", "Construction", 12, "2.2"),
            _task("3.2", "Execute field scope",
                  "Perform work per drawings/spec, coordinate with stakeholders daily.", "Construction", 40, "3.1"),
        ),
        _phase(
            "04 QA/QC", "Punch + client alignment.",
            _task("4.1", "Quality control + punchlist",
                  "Self-perform punchlist, document outstanding items with photos.", "Closeout", 8, "3.2"),
        ),
        _phase(
            "05 Closeout", "Turnover + financial wrap.",
            _task("5.1", "Client sign-off + deliverables",
                  "Collect approvals, warranties, O&M, and final photos.", "Closeout", 6, "4.1"),
        ),
    ],
    "hvacRepair": [
        _phase(
            "01 Assessment", "Verify loads, equipment condition, and shutdown plan.",
            _task("1.1", "Mechanical assessment",
                  "Document existing equipment, utilities, and control integration.", "Mechanical", 12),
            _task("1.2", "Temporary conditioning plan",
                  "Model load during outage, coordinate with facilities.", "Planning", 6),
        ),
        _phase(
            "02 Engineering + Submittals", "Finalize tech submittals, permit package, and procurement.",
            _task("2.1", "Equipment selection + submittals",
                  "Finalize AHRI selections, coordinate controls package.", "Mechanical", 10, "1.1"),
            _task("2.2", "Permit + inspection coordination",
                  "Upload drawings to jurisdiction, schedule State Fire Marshal if gas.", "Planning", 4, "2.1"),
            _task("2.3", "Order long-lead equipment",
                  "Release chillers/RTUs and confirm ship dates.", "Mechanical", 3, "2.1"),
        ),
        _phase(
            "03 Installation", "Demo, rigging, install, and rough-in.",
            _task("3.1", "Demo + rigging",
                  "Isolate utilities, remove old units, rig new gear.", "Mechanical", 24, "2.2", "2.3"),
            _task("3.2", "Mechanical install + tie-ins",
                  "Set equipment, connect piping, controls, and electrical feeds.", "Mechanical", 32, "3.1"),
        ),
        _phase(
            "04 Commissioning", "Startup, balancing, and owner training.",
            _task("4.1", "Startup + TAB",
                  "Run manufacturer startup, test alarms, balance systems.", "Mechanical", 12, "3.2"),
            _task("4.2", "Owner training + turnover",
                  "Deliver O&M manuals, conduct hands-on training.", "Closeout", 6, "4.1"),
        ),
    ],
    "historicRestoration": [
        _phase(
            "01 Documentation", "Historic research, SHPO approvals, and mockups.",
            _task("1.1", "Historic survey",
                  "Photograph, trace profiles, and log existing fabric.", "Conservation", 16),
            _task("1.2", "SHPO coordination",
                  "Submit methods/materials for approval.", "Conservation", 8, "1.1"),
        ),
        _phase(
            "02 Stabilization", "Protect artifacts and set up environmental controls.",
            _task("2.1", "Protection + containment",
                  "Install barriers, humidity control, and monitoring.", "Conservation", 10, "1.2"),
        ),
        _phase(
            "03 Restoration", "Perform detailed repairs by craft type.",
            _task("3.1", "Conservation scope execution",
                  "Repair, replicate, and document per approvals.", "Construction", 40, "2.1"),
        ),
        _phase(
            "04 Review + Records", "Final approvals and archiving.",
            _task("4.1", "Final review with SHPO/architect",
                  "Host site walk, log any changes.", "Conservation", 6, "3.1"),
            _task("4.2", "Archive documentation",
                  "Package drawings, photos, approvals into digital binder.", "Closeout", 4, "4.1"),
        ),
    ],
    "lightingUpgrade": [
        _phase(
            "01 Concept + Mockups", "Define lighting intent and approvals.",
            _task("1.1", "Lighting concept workshop",
                  "Review artifacts, lux limits, and aiming diagrams.", "Electrical", 8),
            _task("1.2", "Mockup install + approval",
                  "Install sample fixtures, capture curator feedback.", "Electrical", 10, "1.1"),
        ),
        _phase(
            "02 Procurement + Controls", "Finalize fixture schedule, controls, and phasing.",
            _task("2.1", "Fixture submittals + ordering",
                  "Release long-lead lighting packages.", "Electrical", 6, "1.2"),
            _task("2.2", "Controls integration plan",
                  "Coordinate dimming zones, tie-ins, programming plan.", "Electrical", 6, "1.2"),
        ),
        _phase(
            "03 Installation", "Night work / phased install.",
            _task("3.1", "Demo + wiring adjustments",
                  "Remove legacy fixtures, rough new circuits.", "Electrical", 16, "2.1"),
            _task("3.2", "Install fixtures + aiming",
                  "Install fixtures, aim, label circuits.", "Electrical", 24, "3.1"),
        ),
        _phase(
            "04 Commissioning", "Program scenes and train staff.",
            _task("4.1", "Controls programming + QA",
                  "Program presets, verify code compliance.", "Electrical", 10, "3.2"),
            _task("4.2", "Owner training + turnover",
                  "Deliver aiming charts, O&M manuals.", "Closeout", 4, "4.1"),
        ),
    ],
    "tenantFinish": [
        _phase(
            "01 Design Assist", "Validate drawings, landlord approvals.",
            _task("1.1", "Design coordination workshop",
                  "Review drawings, identify gaps, confirm landlord rules.", "Planning", 10),
            _task("1.2", "Logistics + phasing plan",
                  "Noise restrictions, freight elevator schedule, temp walls.", "Planning", 8, "1.1"),
        ),
        _phase(
            "02 Permits + Procurement", "Submit permit set, order finish materials.",
            _task("2.1", "Permit submission package",
                  "Assemble drawings, energy forms, code summary.", "Planning", 6, "1.1"),
            _task("2.2", "Order long-lead finishes",
                  "Millwork, lighting, specialty items.", "Interiors", 5, "2.1"),
        ),
        _phase(
            "03 Build-Out", "Framing, MEP rough, drywall, finishes.",
            _task("3.1", "Demolition + layout",
                  "Demo existing, snap layout, rough openings.", "Construction", 18, "2.1"),
            _task("3.2", "MEP rough-in + inspections",
                  "Run new feeders, plumbing stacks, ductwork.", "Construction", 32, "3.1"),
            _task("3.3", "Drywall + finishes install",
                  "Hang drywall, install ceilings, flooring, millwork.", "Construction", 40, "3.2"),
        ),
        _phase(
            "04 Closeout", "Punch, commissioning, tenant move-in support.",
            _task("4.1", "Punch + inspections",
                  "Architect/owner punchlist, AHJ sign-offs.", "Closeout", 10, "3.3"),
            _task("4.2", "Turnover + manuals",
                  "As-builts, O&M, keys/badges.", "Closeout", 6, "4.1"),
        ),
    ],
    "roofing": [
        _phase(
            "01 Investigation", "Core samples, infrared scans, warranty status.",
            _task("1.1", "Roof survey + testing",
                  "Document slope, drains, membrane condition.", "Envelope", 12),
        ),
        _phase(
            "02 Design + Approvals", "Assembly selection, uplift calculations, NOA.",
            _task("2.1", "Assembly selection + details",
                  "Select membrane, insulation, attachment pattern.", "Envelope", 8, "1.1"),
            _task("2.2", "Permit + manufacturer warranty",
                  "Submit drawings, pre-install conference.", "Planning", 4, "2.1"),
        ),
        _phase(
            "03 Production", "Tear-off, substrate prep, new roofing.",
            _task("3.1", "Tear-off + substrate repair",
                  "Remove membrane, fix deck, address hidden issues.", "Construction", 32, "2.2"),
            _task("3.2", "Install new roofing system",
                  "Adhere insulation, membrane, flashing, sheet metal.", "Construction", 40, "3.1"),
        ),
        _phase(
            "04 Finalization", "Punch, inspection, warranty registration.",
            _task("4.1", "Final inspection + punch",
                  "Manufacturer and AHJ inspections.", "Closeout", 8, "3.2"),
        ),
    ],
    "sitework": [
        _phase(
            "01 Survey + Permits", "Topo, utilities, permit strategy.",
            _task("1.1", "Survey + locates",
                  "Topo survey, utility locates, soil borings as needed.", "Civil", 16),
            _task("1.2", "Permit coordination",
                  "Stormwater, erosion control, traffic control approvals.", "Planning", 8, "1.1"),
        ),
        _phase(
            "02 Earthwork", "Clearing, grading, base prep.",
            _task("2.1", "Clearing + demo",
                  "Remove vegetation/obstructions, export debris.", "Civil", 20, "1.2"),
            _task("2.2", "Rough grading + base prep",
                  "Cut/fill to subgrade, stabilize base.", "Civil", 24, "2.1"),
        ),
        _phase(
            "03 Utilities + Surfaces", "Undergrounds, paving, striping.",
            _task("3.1", "Utility install",
                  "Storm, water, power, lighting conduits.", "Civil", 28, "2.2"),
            _task("3.2", "Paving + finishes",
                  "Place asphalt/concrete, striping, signage.", "Civil", 32, "3.1"),
        ),
        _phase(
            "04 Punch + Turnover", "Final QA and documentation.",
            _task("4.1", "Punchlist + stabilization",
                  "Fine grade, seed, correct punch items.", "Closeout", 10, "3.2"),
        ),
    ],
    "plumbing": [
        _phase(
            "01 Investigation", "Understand existing conditions.",
            _task("1.1", "Fixture + piping survey",
                  "Document fixture counts, riser routing, code gaps.", "Plumbing", 10),
        ),
        _phase(
            "02 Design & Permitting", "Finalize design & approvals.",
            _task("2.1", "Code review + drawing updates",
                  "Coordinate code updates, backflow, cleanouts.", "Plumbing", 8, "1.1"),
            _task("2.2", "Permitting + inspection plan",
                  "Submit drawings, schedule inspections.", "Plumbing", 4, "2.1"),
        ),
        _phase(
            "03 Installation", "Field work execution.",
            _task("3.1", "Rough-in + tie-ins",
                  "Shut downs, demo, and install new piping.", "Plumbing", 24, "2.2"),
            _task("3.2", "Fixture set + trim",
                  "Set fixtures, sealants, accessories.", "Plumbing", 12, "3.1"),
        ),
        _phase(
            "04 Testing + Closeout", "Validation + turnover.",
            _task("4.1", "Testing + inspections",
                  "Pressure test, insulation, AHJ inspections.", "Plumbing", 8, "3.2"),
        ),
    ],
    "concrete": [
        _phase(
            "01 Engineering", "Structural calcs, mix design.",
            _task("1.1", "Engineering coordination",
                  "Review loads, rebar schedules, mix design.", "Structural", 10),
        ),
        _phase(
            "02 Formwork + Rebar", "Prep for pour.",
            _task("2.1", "Layout + formwork", "Set forms, embeds, sleeves.", "Structural", 16, "1.1"),
            _task("2.2", "Install reinforcing", "Place rebar per schedules.", "Structural", 14, "2.1"),
        ),
        _phase(
            "03 Placement", "Concrete placement & finishing.",
            _task("3.1", "Concrete pour + finish",
                  "Coordinate trucks, place, vibrate, finish, cure.", "Structural", 20, "2.2"),
        ),
        _phase(
            "04 Cure + Turnover", "Strip, cure, punch.",
            _task("4.1", "Strip forms + punchlist",
                  "Remove forms, patch, cure monitoring.", "Closeout", 10, "3.1"),
        ),
    ],
    "eventSetup": [
        _phase(
            "01 Concept + Logistics", "Understand event program and constraints.",
            _task("1.1", "Program + layout workshop",
                  "Confirm guest count, layout, ADA, weather plan.", "Events", 6),
            _task("1.2", "Logistics + vendor coordination",
                  "Plan deliveries, temp power, rentals.", "Events", 5, "1.1"),
        ),
        _phase(
            "02 Procurement", "Secure rentals and specialty vendors.",
            _task("2.1", "Rental + décor orders",
                  "Reserve tenting, FF&E, décor, AV.", "Events", 4, "1.2"),
            _task("2.2", "Staffing + run of show",
                  "Build staffing plan, sequence, call sheets.", "Events", 4, "1.2"),
        ),
        _phase(
            "03 Install", "On-site build + tech rehearsal.",
            _task("3.1", "Install FF&E + décor",
                  "Build staging, lighting, décor elements.", "Events", 18, "2.1"),
            _task("3.2", "AV + lighting rehearsal",
                  "Sound check, lighting focus, run-through.", "Events", 8, "3.1"),
        ),
        _phase(
            "04 Event Support + Strike", "Live event and teardown.",
            _task("4.1", "Show call + client support",
                  "Manage show, troubleshoot issues.", "Events", 10, "3.2"),
            _task("4.2", "Strike + restoration",
                  "Remove rentals, clean site, restore conditions.", "Events", 12, "4.1"),
        ),
    ],
}

WBS_LIBRARY: Dict[TaskTemplate, List[WbsPhase]] = validate_wbs_library(_WBS_DATA)


def get_wbs(template: Optional[str]) -> List[WbsPhase]:
    """Get WBS phases for a template, falling back to the default WBS."""
    try:
        key = TaskTemplate(template)
    except ValueError:
        key = TaskTemplate.DEFAULT
    return WBS_LIBRARY.get(key) or WBS_LIBRARY[TaskTemplate.DEFAULT]
