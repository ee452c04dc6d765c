from __future__ import annotations

from victry.types import ToolSchema

_IMPORTANCE = {"type": "string", "enum": ["must_have", "nice_to_have", "preferred"]}


def _items(**properties: dict) -> dict:
    return {"type": "array", "items": {"type": "object", "properties": properties}}


JOB_ANALYSIS_TOOL = ToolSchema(
    name="job_analysis",
    description="Tool for structured job description analysis",
    input_schema={
        "type": "object",
        "properties": {
            "hardSkills": _items(skill={"type": "string"}, importance=_IMPORTANCE),
            "softSkills": _items(skill={"type": "string"}, importance=_IMPORTANCE),
            "qualifications": {
                "type": "object",
                "properties": {
                    "experience": _items(description={"type": "string"}, importance=_IMPORTANCE),
                    "education": _items(type={"type": "string"}, field={"type": "string"}, importance=_IMPORTANCE),
                    "certifications": _items(name={"type": "string"}, importance=_IMPORTANCE),
                },
            },
            "keywords": _items(text={"type": "string"}, frequency={"type": "number"}, context={"type": "string"}),
            "companyCulture": _items(trait={"type": "string"}),
            "experienceLevel": {"type": "object", "properties": {"level": {"type": "string"}}},
            "industry": {"type": "string"},
            "remoteStatus": {"type": "string"},
        },
    },
)

RESUME_TAILORING_TOOL = ToolSchema(
    name="resume_tailoring",
    description="Tool for tailoring resumes to match job descriptions",
    input_schema={
        "type": "object",
        "properties": {
            "tailoredResume": {"type": "object", "description": "The complete tailored resume"},
            "tailoringNotes": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string"},
                    "keywordMatches": _items(
                        keyword={"type": "string"},
                        source={"type": "string", "enum": ["original", "added"]},
                        section={"type": "string"},
                        importance={"type": "string", "enum": ["high", "medium", "low"]},
                    ),
                    "majorChanges": _items(section={"type": "string"}, description={"type": "string"}),
                    "improvementSuggestions": _items(
                        suggestion={"type": "string"}, reasoning={"type": "string"}
                    ),
                },
            },
        },
        "required": ["tailoredResume", "tailoringNotes"],
    },
)
