from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from victry.core.assembly import assemble_resume
from victry.core.decompose import decompose_resume
from victry.core.fields import to_snake
from victry.core.job_descriptions import JobDescriptionService, assemble_analysis
from victry.core.resumes import ResumeService
from victry.llm.router import LLMRouter
from victry.types import ATSFeedbackItem, ATSScoreResult, KeywordMatch, TailoringNotes, TailoringSettings

logger = logging.getLogger(__name__)

KEYWORD_IMPORTANCE = ("high", "medium", "low")


def compute_ats_score(notes: TailoringNotes) -> ATSScoreResult:
    """Score = clamp(60 + 2 * keyword matches - 3 * improvement suggestions, 0, 100)."""
    matches = len(notes.keyword_matches)
    suggestions = notes.improvement_suggestions

    if matches > 10:
        severity = "low"
    elif matches > 5:
        severity = "medium"
    else:
        severity = "high"
    feedback = [
        ATSFeedbackItem(
            category="Keyword Optimization",
            message=f"Resume includes {matches} keywords matching the job description.",
            severity=severity,
        )
    ]
    for suggestion in suggestions:
        feedback.append(
            ATSFeedbackItem(
                category="Content Improvement",
                message=suggestion.suggestion or "Improve resume content",
                severity="high" if suggestion.reasoning else "medium",
            )
        )

    score = min(100, max(0, 60 + matches * 2 - len(suggestions) * 3))
    return ATSScoreResult(score=score, feedback=feedback)


def map_keyword_matches(notes: TailoringNotes) -> list[KeywordMatch]:
    matches = []
    for match in notes.keyword_matches:
        importance = (match.importance or "").lower()
        matches.append(
            KeywordMatch(
                keyword=match.keyword or "",
                found=match.source == "original",
                importance=importance if importance in KEYWORD_IMPORTANCE else "medium",
            )
        )
    return matches


class TailoringService:
    def __init__(self, session: Session, user_id: str, llm: LLMRouter):
        self.session = session
        self.user_id = user_id
        self.llm = llm
        self.resumes = ResumeService(session, user_id)
        self.jobs = JobDescriptionService(session, user_id)

    def tailor(
        self,
        resume_id: str,
        job_description_id: str,
        settings: TailoringSettings | None = None,
    ) -> dict[str, Any]:
        source = self.resumes.load(resume_id)
        job = self.jobs.load(job_description_id)
        settings = settings or TailoringSettings()
        source_tree = assemble_resume(source)
        analysis = assemble_analysis(job.analysis) if job.analysis is not None else None

        payload = self.llm.tailor_resume(
            resume=source_tree,
            job_description=job.content,
            analysis=analysis,
            settings=settings,
        )
        notes = payload.tailoring_notes
        ats_score = compute_ats_score(notes)
        keyword_matches = map_keyword_matches(notes)
        tailored = payload.tailored_resume

        metadata = to_snake(
            {
                "tailoringSettings": settings.dump(),
                "tailoringNotes": notes.dump(),
                "keywordMatches": [match.dump() for match in keyword_matches],
            }
        )
        values = {
            "title": f"{tailored.get('title') or source.title} - Tailored for {job.title}",
            "target_job_title": tailored.get("targetJobTitle", source.target_job_title),
            "template_id": tailored.get("templateId") or source.template_id,
            "is_base_resume": False,
            "original_resume_id": source.id,
            "job_description_id": job.id,
            "ats_score": ats_score.score,
            "version": 1,
            "metadata_json": metadata,
            "format_options": source.format_options,
        }
        resume = self.resumes.repository.create_resume(self.user_id, values)
        logger.info(
            "Saved tailored resume %s from %s for job description %s", resume.id, source.id, job.id
        )

        warnings = self.resumes.insert_sections(resume.id, decompose_resume(tailored, fresh_ids=True))
        if warnings:
            logger.warning("Tailored resume %s saved with %d skipped sections", resume.id, len(warnings))

        self.session.expire_all()
        return {
            "tailoredResume": self.resumes.get(resume.id),
            "atsScore": ats_score.dump(),
            "keywordMatches": [match.dump() for match in keyword_matches],
            "tailoringNotes": notes.dump(),
            "persistenceWarnings": warnings,
        }
