"""
Prompt templates and response schemas for the guide generator.
Schemas are OpenRouter strict json_schema: every property required, no extras.
"""

GUIDE_SYSTEM_PROMPT = """You are a master ASE-certified automotive technician writing repair guides for DIY owners.

Rules:
1) Be specific to the exact year, make and model given. Never mix in procedures from other vehicles.
2) Safety first - list every hazard (jack stands, hot fluids, airbags, fuel, high voltage) before any step.
3) Steps are numbered from 1 with no gaps, one action per step, in the order the work is done.
4) Tools and parts are short shopping-friendly names ("Floor jack", "Front brake pad set"), no prices.
5) If the job is unsafe for a DIY owner, say so in the first safety warning.
6) Return ONLY the JSON object requested."""

DIAGNOSTIC_SYSTEM_PROMPT = """You are a friendly, experienced mechanic helping the owner of a {vehicle} diagnose a problem.

Rules:
- Ask one clarifying question at a time when the symptom is ambiguous.
- Name the most likely causes for THIS vehicle first, including known issues and recalls.
- Keep answers short and practical; use plain language.
- If a symptom suggests the car is unsafe to drive (brakes, steering, overheating, fuel smell), say so immediately."""


def build_guide_prompt(vehicle: str, task: str) -> str:
    return f"""Vehicle: {vehicle}
Repair task: {task}

Write the complete repair guide:
- title: short name of the job
- vehicle: "{vehicle}"
- safetyWarnings: every hazard for this job
- tools: every tool needed
- parts: every part or fluid to buy
- steps: ordered instructions, "step" numbered from 1
- sources: reputable references used (may be empty)"""


def build_preview_prompt(vehicle: str, task: str) -> str:
    return f"""Vehicle: {vehicle}
Repair task: {task}

Give a quick preview before the full guide:
- title: short name of the job
- difficulty: 1 (oil top-up) to 5 (engine or transmission teardown)
- estimatedTime: typical DIY time, e.g. "1-2 hours"
- summary: two sentences on what the job involves"""


def build_vehicle_info_prompt(vehicle: str, task: str) -> str:
    return f"""Vehicle: {vehicle}
Repair task: {task}

Describe what an owner should know about this job on this vehicle:
- overview: one paragraph
- difficulty: 1 to 5
- estimatedTime: typical DIY time
- commonIssues: known problems on this vehicle related to the task
- specifications: relevant specs (torque, capacities, part sizes) as label/value pairs"""


def _object(properties: dict) -> dict:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_STRING_LIST = {"type": "array", "items": {"type": "string"}}

REPAIR_GUIDE_SCHEMA = _object(
    {
        "title": {"type": "string"},
        "vehicle": {"type": "string"},
        "safetyWarnings": _STRING_LIST,
        "tools": _STRING_LIST,
        "parts": _STRING_LIST,
        "steps": {
            "type": "array",
            "items": _object(
                {
                    "step": {"type": "integer", "minimum": 1},
                    "instruction": {"type": "string"},
                }
            ),
        },
        "sources": {
            "type": "array",
            "items": _object({"uri": {"type": "string"}, "title": {"type": "string"}}),
        },
    }
)

QUICK_PREVIEW_SCHEMA = _object(
    {
        "title": {"type": "string"},
        "difficulty": {"type": "integer", "minimum": 1, "maximum": 5},
        "estimatedTime": {"type": "string"},
        "summary": {"type": "string"},
    }
)

VEHICLE_INFO_SCHEMA = _object(
    {
        "overview": {"type": "string"},
        "difficulty": {"type": "integer", "minimum": 1, "maximum": 5},
        "estimatedTime": {"type": "string"},
        "commonIssues": _STRING_LIST,
        "specifications": {
            "type": "array",
            "items": _object({"label": {"type": "string"}, "value": {"type": "string"}}),
        },
    }
)
