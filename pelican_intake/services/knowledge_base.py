"""Louisiana regional knowledge base.

Permit rules, measurement/photo/tool guides, safety triggers and code
references. Queries are keyword containment filters; jurisdiction filters
always include statewide (Louisiana) entries.
"""

from typing import Iterable, List, Optional

from pelican_intake.models.intake import Jurisdiction, TaskTemplate
from pelican_intake.models.knowledge import CodeReference, MeasurementGuide, PermitRule, SafetyGuide
from pelican_intake.validators.catalog_validator import validate_records


# =============================================================================
# Permit rules
# =============================================================================

PERMIT_RULES: List[PermitRule] = validate_records(PermitRule, [
    {
        "id": "la-mechanical",
        "type": "Mechanical",
        "triggers": ["hvac", "boiler", "chiller", "rtu", "air handler", "duct"],
        "description": "Mechanical permit required for HVAC equipment installation, replacement, or major modifications.",
        "jurisdiction": "Louisiana",
        "feeRange": {"min": 75, "max": 300},
        "inspectionRequired": True,
        "codeReference": "2021 IMC (LA Uniform Construction Code)",
        "notes": "Covers equipment swaps, ductwork alterations, and controls upgrades.",
    },
    {
        "id": "la-gas",
        "type": "Gas",
        "triggers": ["gas", "propane", "lp", "fuel", "boiler", "water heater"],
        "description": "LP/Gas permit with State Fire Marshal inspection for new or modified fuel-fired equipment.",
        "jurisdiction": "Louisiana",
        "feeRange": {"min": 50, "max": 150},
        "inspectionRequired": True,
        "contact": {"name": "State Fire Marshal", "phone": "(225) 925-4911", "url": "https://lasfm.org"},
        "codeReference": "NFPA 54 & NFPA 58",
    },
    {
        "id": "la-electrical-service",
        "type": "Electrical",
        "triggers": ["panel", "service", "lighting", "generator", "feeder"],
        "description": "Electrical permit required for service changes, panel replacements, or new branch circuits.",
        "jurisdiction": "Louisiana",
        "inspectionRequired": True,
        "codeReference": "2020 NEC (adopted by Louisiana)",
    },
    {
        "id": "la-plumbing",
        "type": "Plumbing",
        "triggers": ["water heater", "domestic water", "sanitary", "storm", "backflow"],
        "description": "Plumbing permit required for water heater changes, new piping, or backflow device work.",
        "jurisdiction": "Louisiana",
        "inspectionRequired": True,
        "codeReference": "2021 IPC (LA Uniform Construction Code)",
    },
    {
        "id": "la-historic-state",
        "type": "Historic",
        "triggers": ["historic", "shpo", "nrhp", "preservation"],
        "description": "State Historic Preservation Office review when working on registered historic assets.",
        "jurisdiction": "Louisiana",
        "inspectionRequired": False,
        "contact": {"name": "Louisiana SHPO", "phone": "(225) 342-8160"},
        "notes": "Scope documentation, photos, and material submittals required.",
    },
    {
        "id": "nola-safety-permits",
        "type": "Building",
        "triggers": ["new orleans", "nola", "construction", "renovation"],
        "description": "Safety & Permits approval for building, mechanical, electrical, and other work inside Orleans Parish.",
        "jurisdiction": "NewOrleans",
        "inspectionRequired": True,
        "contact": {
            "name": "NOLA Safety & Permits",
            "phone": "(504) 658-7100",
            "url": "https://nola.gov/safety-and-permits",
        },
    },
    {
        "id": "nola-hdlc",
        "type": "Historic",
        "triggers": ["french quarter", "hdlc", "vieux carre", "garden district", "historic"],
        "description": "HDLC or VCC review required for exterior or visible changes in protected districts.",
        "jurisdiction": "NewOrleans",
        "inspectionRequired": False,
        "contact": {"name": "HDLC", "phone": "(504) 658-7040", "url": "https://nola.gov/hdlc"},
        "notes": "Allow 2-4 weeks for review; shop drawings/photos required.",
    },
    {
        "id": "nola-vcc",
        "type": "Historic",
        "triggers": ["french quarter", "vcc", "royal street"],
        "description": "Vieux Carré Commission approval for all work in the French Quarter, inside and out.",
        "jurisdiction": "NewOrleans",
        "inspectionRequired": True,
        "contact": {"name": "VCC", "phone": "(504) 658-1420"},
    },
    {
        "id": "br-permits",
        "type": "Building",
        "triggers": ["baton rouge", "ebr", "renovation", "construction"],
        "description": "Permit & Inspection Division review for construction inside East Baton Rouge Parish.",
        "jurisdiction": "BatonRouge",
        "inspectionRequired": True,
        "contact": {"name": "Permit & Inspection", "phone": "(225) 389-3181"},
    },
    {
        "id": "br-historic",
        "type": "Historic",
        "triggers": ["old south", "spanishtown", "historic district", "baton rouge"],
        "description": (
            "Local historic district review when working in Old South Baton Rouge, Spanish Town, and other overlays."
        ),
        "jurisdiction": "BatonRouge",
        "inspectionRequired": False,
        "notes": "Coordinate with local preservation commission prior to demolition or major changes.",
    },
], "permit rule")


# =============================================================================
# Measurement guides
# =============================================================================

MEASUREMENT_GUIDES: List[MeasurementGuide] = validate_records(MeasurementGuide, [
    {
        "jobTypes": ["hvacRepair", "default"],
        "measurements": [
            {"subject": "Equipment room length/width/height", "reason": "Verify clearance for replacement units."},
            {"subject": "Existing duct dimensions & main trunk sizes", "reason": "Confirm airflow and fabrication needs."},
            {"subject": "Electrical panel amperage and space count", "reason": "Ensure capacity for new mechanical feeds."},
        ],
        "photos": [
            {"subject": "Equipment nameplate", "reason": "Capture model, serial, and BTU data."},
            {"subject": "Utility connections (gas, electric, water)", "reason": "Document tie-in points and condition."},
        ],
        "tools": ["Laser distance meter", "Clamp meter", "Flue gas analyzer", "Flexible camera"],
    },
    {
        "jobTypes": ["historicRestoration"],
        "measurements": [
            {"subject": "Area of historic surfaces", "reason": "Quantify restoration scope and materials."},
            {"subject": "Ambient humidity & temperature", "reason": "Check conservation environment."},
        ],
        "photos": [
            {"subject": "Detail shots of deteriorated elements", "reason": "Provide evidence for SHPO approvals."},
            {"subject": "Adjacent finishes", "reason": "Ensure visual match for repairs."},
        ],
        "tools": ["Moisture meter", "Color reference card", "Tripod with diffuse lighting"],
    },
    {
        "jobTypes": ["lightingUpgrade"],
        "measurements": [
            {"subject": "Existing foot-candles/lux levels", "reason": "Establish baseline vs. desired lighting performance."},
            {"subject": "Ceiling heights and mounting types", "reason": "Plan fixture selection and install method."},
        ],
        "photos": [
            {"subject": "Existing controls and dimming racks", "reason": "Identify integration requirements."},
            {"subject": "Representative spaces (wide + detail)", "reason": "Support aiming plans and approvals."},
        ],
        "tools": ["Light meter", "Boom lift plan", "Control interface tester"],
    },
], "measurement guide")


# =============================================================================
# Safety guides
# =============================================================================

SAFETY_GUIDES: List[SafetyGuide] = validate_records(SafetyGuide, [
    {
        "id": "asbestos-legacy",
        "triggers": ["1930", "1920", "boiler", "steam", "insulation", "pipe wrap"],
        "severity": "Warning",
        "note": "Likely asbestos insulation on legacy piping. Require AHERA survey before disturbance.",
    },
    {
        "id": "confined-space",
        "triggers": ["vault", "pit", "tank", "manhole"],
        "severity": "Caution",
        "note": "Possible confined space entry. Follow OSHA 1910.146 with permits and monitoring.",
    },
    {
        "id": "lead-paint",
        "triggers": ["historic", "pre-1978", "window", "door", "paint"],
        "severity": "Caution",
        "note": "Test for lead paint. Follow EPA RRP rules for disturbance or removal.",
    },
    {
        "id": "elevated-work",
        "triggers": ["roof", "high bay", "scaffold", "lift"],
        "severity": "Info",
        "note": "Plan fall protection and lift certifications for elevated work areas.",
    },
], "safety guide")


# =============================================================================
# Code references
# =============================================================================

CODE_REFERENCES: List[CodeReference] = validate_records(CodeReference, [
    {
        "id": "imc-2021",
        "name": "International Mechanical Code 2021",
        "section": "Ch. 9, Boilers & Water Heaters",
        "jurisdiction": "Louisiana",
        "summary": "Governs installation of boilers, hydronic systems, and mechanical equipment statewide.",
        "applicableTo": ["hvacRepair", "default"],
    },
    {
        "id": "ipc-2021",
        "name": "International Plumbing Code 2021",
        "section": "Ch. 6 Water Supply & Distribution",
        "jurisdiction": "Louisiana",
        "summary": "Regulates water piping, water heaters, and fixtures.",
        "applicableTo": ["plumbing", "hvacRepair"],
    },
    {
        "id": "nec-2020",
        "name": "National Electrical Code 2020",
        "section": "Article 424 Fixed Electric Heating",
        "jurisdiction": "Louisiana",
        "summary": "Electrical requirements for heating equipment, branch circuits, and disconnects.",
        "applicableTo": ["lightingUpgrade", "hvacRepair"],
    },
    {
        "id": "hdlc-guidelines",
        "name": "HDLC Design Guidelines",
        "jurisdiction": "NewOrleans",
        "summary": "Exterior/interior work in historic districts requires HDLC approval with submittals.",
        "applicableTo": ["historicRestoration", "tenantFinish"],
    },
    {
        "id": "br-historic-guidelines",
        "name": "Baton Rouge Historic Preservation Guidelines",
        "jurisdiction": "BatonRouge",
        "summary": "Review process for designated local districts (Spanish Town, Beauregard Town, etc.).",
        "applicableTo": ["historicRestoration"],
    },
], "code reference")


# =============================================================================
# Queries
# =============================================================================


def _in_jurisdiction(entry_jurisdiction: Jurisdiction, jurisdiction: Optional[str]) -> bool:
    return not jurisdiction or entry_jurisdiction == jurisdiction or entry_jurisdiction == Jurisdiction.LOUISIANA


def _triggered(triggers: Iterable[str], keywords: List[str]) -> bool:
    # Containment, so "boilers" fires "boiler" and "help" fires "lp"
    return any(trigger in keyword for trigger in triggers for keyword in keywords)


def match_permit_rules(keywords: List[str], jurisdiction: Optional[str] = None) -> List[PermitRule]:
    """Get permit rules triggered by keywords within a jurisdiction.

    Args:
        keywords: Detected scope tokens.
        jurisdiction: Jurisdiction name; None matches every rule.

    Returns:
        Matching rules in knowledge base order.
    """
    return [
        rule for rule in PERMIT_RULES
        if _in_jurisdiction(rule.jurisdiction, jurisdiction) and _triggered(rule.triggers, keywords)
    ]


def find_measurement_guide(template: Optional[str]) -> Optional[MeasurementGuide]:
    """Get the first measurement guide covering a template, if any."""
    for guide in MEASUREMENT_GUIDES:
        if template in guide.job_types:
            return guide
    return None


def detect_safety_notes(keywords: List[str]) -> List[SafetyGuide]:
    """Get safety guides triggered by keywords."""
    return [guide for guide in SAFETY_GUIDES if _triggered(guide.triggers, keywords)]


def find_code_references(template: Optional[str], jurisdiction: Optional[str] = None) -> List[CodeReference]:
    """Get code references applicable to a template within a jurisdiction."""
    return [
        ref for ref in CODE_REFERENCES
        if template in ref.applicable_to and _in_jurisdiction(ref.jurisdiction, jurisdiction)
    ]
