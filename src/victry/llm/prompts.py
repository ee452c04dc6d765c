from __future__ import annotations

import json
from typing import Any

from victry.types import TailoringSettings

ANALYST_SYSTEM_PROMPT = (
    "You are an expert resume consultant and job market analyst with 15+ years of experience "
    "helping candidates get interviews at top companies."
)

TAILORING_SYSTEM_PROMPT = (
    "You are an expert resume tailoring consultant with extensive experience helping candidates "
    "secure interviews at competitive companies."
)

JOB_ANALYSIS_PROMPT = """
<instructions>
Analyze the following job description and extract key information in a structured JSON format.
Be thorough but concise. Identify patterns in language and requirements that reveal what the employer prioritizes.
</instructions>

<job_description>
{job_description}
</job_description>

Provide the breakdown in this JSON format:

```json
{{
  "hardSkills": [
    {{"skill": "skill name", "importance": "must_have|nice_to_have|preferred", "frequency": 1, "context": "where this appears"}}
  ],
  "softSkills": [
    {{"skill": "skill name", "importance": "must_have|nice_to_have|preferred", "frequency": 1, "context": "where this appears"}}
  ],
  "experienceLevel": {{
    "level": "entry|junior|mid|senior|executive",
    "yearsRequired": null,
    "confidence": 0.8,
    "reasoning": "brief explanation"
  }},
  "qualifications": {{
    "education": [{{"type": "degree type", "field": "field of study", "importance": "must_have|nice_to_have|preferred"}}],
    "certifications": [{{"name": "certification name", "importance": "must_have|nice_to_have|preferred"}}],
    "experience": [{{"description": "experience description", "importance": "must_have|nice_to_have|preferred"}}]
  }},
  "keywords": [{{"text": "keyword", "frequency": 1, "importance": "high|medium|low"}}],
  "companyCulture": [{{"trait": "cultural value or trait", "evidence": "supporting text"}}],
  "jobTitle": {{"parsed": "standardized job title", "alternatives": ["similar title"]}},
  "industry": "identified industry",
  "companySize": "startup|small|medium|large|enterprise",
  "remoteStatus": "remote|hybrid|onsite"
}}
```

Guidelines:
- Hard skills: technical abilities, tools, software, programming languages or methodologies.
- Soft skills: interpersonal capabilities and communication.
- Importance: "must_have" for clearly required elements, "nice_to_have" for explicitly mentioned preferences, "preferred" for implied preferences.
- Experience level reflects seniority from responsibilities, leadership expectations and years mentioned.
- Keywords capture terms that repeat or are highlighted in the description.
- Company culture lists values, work environment traits and management style indicators.

Ensure the JSON is valid and follows the structure exactly.
""".strip()

TAILORING_PROMPT = """
<instructions>
Tailor the provided resume to better match the job description, following the settings on tailoring intensity, voice preservation and keyword focus.
</instructions>

<resume>
{resume_json}
</resume>

<job_description>
{job_description}
</job_description>
{analysis_block}
<tailoring_settings>
- Tailoring intensity: {intensity_level} ({intensity}/100)
- Preserve original voice and style: {preserve_voice}
- Focus on keyword matching: {focus_keywords}
</tailoring_settings>

<tailoring_guidelines>
## Intensity Guidelines ({intensity_level}):
{intensity_guidelines}

## Voice Preservation Guidelines ({voice_state}):
{voice_guidelines}

## Keyword Focus Guidelines ({keyword_state}):
{keyword_guidelines}
</tailoring_guidelines>

<section_specific_guidelines>
## Professional Summary:
- Align the career narrative with the target position
- Highlight the most relevant skills and experiences for this role

## Work Experience:
- Prioritize achievements relevant to the target role
- Use strong action verbs and quantifiable results
- Make every bullet point demonstrate value and relevance

## Skills:
- Put skills mentioned in the job description first
- Match terminology used in the job listing

## Education and Certifications:
- Emphasize education that aligns with job requirements
</section_specific_guidelines>

<output_format>
Return the tailored resume with exactly the structure of the original resume object. Do not add or remove fields.

```json
{{
  "tailoredResume": {{}},
  "tailoringNotes": {{
    "summary": "Brief overview of changes made",
    "keywordMatches": [{{"keyword": "matched term", "source": "original|added", "section": "section name", "importance": "high|medium|low"}}],
    "majorChanges": [{{"section": "section name", "description": "significant change"}}],
    "improvementSuggestions": [{{"suggestion": "suggestion", "reasoning": "why this would help"}}]
  }}
}}
```
</output_format>

Remember to:
1. Never fabricate experience or qualifications
2. Keep changes appropriate to the tailoring intensity level
3. Keep all content truthful
4. Preserve the candidate's voice as specified in the settings
5. Return the complete tailored resume as valid JSON
""".strip()

ANALYSIS_BLOCK = """
<job_analysis>
{analysis_json}
</job_analysis>
"""

INTENSITY_GUIDELINES = {
    "low": """- Make subtle improvements to match the job description
- Focus on minor wording adjustments and order of information
- Primarily adjust the professional summary and skills sections
- Retain most of the original content and structure""",
    "medium": """- Make moderate changes to better align with the job description
- Rephrase bullet points to emphasize relevant experience
- Adjust terminology throughout to match the job description
- Reorganize content to prioritize the most relevant experiences""",
    "high": """- Make substantial changes to strongly align with the job description
- Significantly rework bullet points and section content
- Reframe experiences to directly address job requirements
- Incorporate keywords aggressively and reorganize for relevance""",
}

VOICE_GUIDELINES = {
    True: """- Maintain the candidate's writing style and tone
- Preserve sentence structure patterns when possible
- Keep distinctive phrases and personal expressions""",
    False: """- Prefer optimal wording for the job over voice consistency
- Use industry-standard terminology and phrasing
- Prioritize clarity and impact over personal style""",
}

KEYWORD_GUIDELINES = {
    True: """- Incorporate key terms from the job description throughout
- Use exact keyword matches when appropriate
- Replace generic terms with specific terms from the listing""",
    False: """- Aim for conceptual alignment rather than exact keyword matching
- Emphasize relevant experience regardless of terminology
- Keep natural language and readability over keyword density""",
}


def build_job_analysis_prompt(job_description: str) -> str:
    if not job_description or not job_description.strip():
        raise ValueError("Job description cannot be empty")
    return JOB_ANALYSIS_PROMPT.format(job_description=job_description.strip())


def build_tailoring_prompt(
    *,
    resume: dict[str, Any],
    job_description: str,
    analysis: dict[str, Any] | None,
    settings: TailoringSettings,
) -> str:
    if not job_description or not job_description.strip():
        raise ValueError("Job description content cannot be empty")

    analysis_block = ""
    if analysis:
        analysis_block = ANALYSIS_BLOCK.format(analysis_json=json.dumps(analysis, indent=2, default=str))

    level = settings.intensity_level
    return TAILORING_PROMPT.format(
        resume_json=json.dumps(resume, indent=2, default=str),
        job_description=job_description.strip(),
        analysis_block=analysis_block,
        intensity_level=level,
        intensity=settings.intensity,
        preserve_voice="Yes" if settings.preserve_voice else "No",
        focus_keywords="Yes" if settings.focus_keywords else "No",
        intensity_guidelines=INTENSITY_GUIDELINES[level],
        voice_state="Enabled" if settings.preserve_voice else "Disabled",
        voice_guidelines=VOICE_GUIDELINES[settings.preserve_voice],
        keyword_state="Enabled" if settings.focus_keywords else "Disabled",
        keyword_guidelines=KEYWORD_GUIDELINES[settings.focus_keywords],
    )
