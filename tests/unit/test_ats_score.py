from victry.core.tailoring import compute_ats_score, map_keyword_matches
from victry.types import TailoringNotes


def _notes(matches: int, suggestions: int, *, reasoning: str | None = "Because") -> TailoringNotes:
    return TailoringNotes.model_validate(
        {
            "summary": "Tailored",
            "keywordMatches": [{"keyword": f"kw{i}", "source": "original"} for i in range(matches)],
            "improvementSuggestions": [
                {"suggestion": f"Suggestion {i}", "reasoning": reasoning} for i in range(suggestions)
            ],
        }
    )


def test_score_formula_with_ten_matches_and_two_suggestions() -> None:
    result = compute_ats_score(_notes(10, 2))

    assert result.score == 74
    assert result.feedback[0].category == "Keyword Optimization"
    assert result.feedback[0].message == "Resume includes 10 keywords matching the job description."
    assert result.feedback[0].severity == "medium"
    assert [item.category for item in result.feedback[1:]] == ["Content Improvement", "Content Improvement"]
    assert all(item.severity == "high" for item in result.feedback[1:])


def test_score_is_clamped() -> None:
    assert compute_ats_score(_notes(30, 0)).score == 100
    assert compute_ats_score(_notes(0, 25)).score == 0


def test_keyword_severity_bands() -> None:
    assert compute_ats_score(_notes(11, 0)).feedback[0].severity == "low"
    assert compute_ats_score(_notes(6, 0)).feedback[0].severity == "medium"
    assert compute_ats_score(_notes(5, 0)).feedback[0].severity == "high"


def test_suggestion_without_reasoning_is_medium() -> None:
    notes = TailoringNotes.model_validate({"improvementSuggestions": [{"suggestion": None, "reasoning": None}]})
    result = compute_ats_score(notes)

    assert result.score == 57
    assert result.feedback[1].message == "Improve resume content"
    assert result.feedback[1].severity == "medium"


def test_missing_note_lists_are_treated_as_empty() -> None:
    notes = TailoringNotes.model_validate({"keywordMatches": None, "improvementSuggestions": None})
    assert compute_ats_score(notes).score == 60


def test_keyword_matches_mark_original_terms_as_found() -> None:
    notes = TailoringNotes.model_validate(
        {
            "keywordMatches": [
                {"keyword": "Python", "source": "original", "importance": "High"},
                {"keyword": "Kafka", "source": "added", "importance": "critical"},
            ]
        }
    )
    matches = [match.dump() for match in map_keyword_matches(notes)]

    assert matches == [
        {"keyword": "Python", "found": True, "importance": "high"},
        {"keyword": "Kafka", "found": False, "importance": "medium"},
    ]
