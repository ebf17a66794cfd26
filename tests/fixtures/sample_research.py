"""Sample research provider responses.

Model output is free text; these cover a clean JSON answer, one wrapped in
prose, and several malformed answers the service must tolerate.
"""

import json


RESEARCH_PAYLOAD = {
    "permits": [
        {
            "type": "Mechanical",
            "required": True,
            "description": "Boiler replacement needs a mechanical permit.",
            "feeEstimate": "$150-$300",
        },
        {
            "type": "Historic",
            "required": False,
            "description": "SHPO review for visible changes.",
        },
    ],
    "codeReferences": [
        {
            "code": "IMC 2021",
            "section": "Ch. 10",
            "relevance": "Boilers, water heaters and pressure vessels.",
        },
    ],
    "keyConsiderations": [
        "Confirm asbestos survey before demolition of pipe insulation.",
    ],
}

RESEARCH_RESPONSE = json.dumps(RESEARCH_PAYLOAD)

WRAPPED_RESEARCH_RESPONSE = (
    "Here is the compliance summary you asked for:\n\n"
    + RESEARCH_RESPONSE
    + "\n\nLet me know if you need anything else."
)

EMPTY_RESEARCH_RESPONSE = json.dumps({"permits": [], "codeReferences": [], "keyConsiderations": []})

MALFORMED_RESEARCH_RESPONSES = [
    "",
    "I am not able to answer that.",
    "{ permits: [ not json ] }",
    "} backwards {",
]
