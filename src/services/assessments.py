"""Assessments API and the response data contract.

A question is visible when it has no condition, or when the question it
depends on is itself visible and answered with the condition's value
(for a multi-choice answer: when the value is among the chosen options).
Only visible questions are validated and stored.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from src.core.schemas import (
    TEXT_TYPES,
    Assessment,
    AssessmentResponse,
    Condition,
    Question,
    Section,
    check_question_order,
)
from src.services.base import StoreApi
from src.services.timeline import AuditLog
from src.store.base import PageRange, Query, RemoteStore, Sort
from src.store.channel import Channel, over_channel

logger = logging.getLogger(__name__)


def visible_questions(assessment: Assessment, responses: Mapping[str, Any]) -> list[Question]:
    """Questions shown for the given answers, in document order."""
    visible: list[Question] = []
    shown_answers: dict[str, Any] = {}
    for question in assessment.questions():
        if question.conditional_on is not None and not _condition_met(
            question.conditional_on, shown_answers,
        ):
            continue
        visible.append(question)
        if question.id in responses:
            shown_answers[question.id] = responses[question.id]
    return visible


def validate_responses(assessment: Assessment, responses: Mapping[str, Any]) -> list[str]:
    """Return a list of problems with the answers (empty when valid)."""
    errors: list[str] = []
    for question in visible_questions(assessment, responses):
        answer = responses.get(question.id)
        if _is_blank(answer):
            if question.required:
                errors.append(f"'{question.id}' is required")
            continue
        problem = _check_answer(question, answer)
        if problem:
            errors.append(f"'{question.id}' {problem}")
    return errors


def _condition_met(condition: Condition, answers: Mapping[str, Any]) -> bool:
    if condition.question_id not in answers:
        return False
    answer = answers[condition.question_id]
    if isinstance(answer, list):
        return condition.value in answer
    return answer == condition.value


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, list):
        return not answer
    return False


def _check_answer(question: Question, answer: Any) -> str | None:
    """Return a description of what is wrong with the answer, or None."""
    if question.type in TEXT_TYPES:
        if not isinstance(answer, str):
            return "must be text"
        if question.max_length is not None and len(answer) > question.max_length:
            return f"must be at most {question.max_length} characters"
    elif question.type == "numeric":
        if isinstance(answer, bool) or not isinstance(answer, (int, float)):
            return "must be a number"
        if question.min_value is not None and answer < question.min_value:
            return f"must be at least {question.min_value:g}"
        if question.max_value is not None and answer > question.max_value:
            return f"must be at most {question.max_value:g}"
    elif question.type == "single_choice":
        if answer not in (question.options or ()):
            return "must be one of the options"
    elif question.type == "multi_choice":
        if not isinstance(answer, list) or any(a not in (question.options or ()) for a in answer):
            return "must be a list of the options"
    elif question.type == "file":
        if not isinstance(answer, str):
            return "must be a file name"
    return None


class AssessmentsApi(StoreApi):
    """One assessment per job, plus candidate responses."""

    def __init__(self, store: RemoteStore, channel: Channel | None = None) -> None:
        super().__init__(store, channel)
        self.audit = AuditLog(store)

    @over_channel(mutating=False)
    async def get_assessment(self, job_id: str) -> Assessment | None:
        return await self._for_job(job_id)

    async def save_assessment(
        self,
        job_id: str,
        sections: Sequence[Section | Mapping[str, Any]],
    ) -> Assessment:
        """Replace the job's assessment sections, creating the assessment if needed."""
        parsed = tuple(Section.model_validate(s) for s in sections)
        check_question_order(parsed)
        payload = [s.model_dump(mode="json", by_alias=True) for s in parsed]
        return await self._store_sections(job_id, payload)

    @over_channel(mutating=True)
    async def submit_response(
        self,
        assessment_id: str,
        candidate_id: str,
        responses: Mapping[str, Any],
    ) -> AssessmentResponse | None:
        """Validate and store a candidate's answers, then record completion.

        Returns None if the assessment does not exist. Raises ValueError
        listing every problem when the answers are invalid.
        """
        row = await self.store.get("assessments", assessment_id)
        if row is None:
            return None
        assessment = Assessment.model_validate(row)

        errors = validate_responses(assessment, responses)
        if errors:
            msg = "invalid assessment response: " + "; ".join(errors)
            raise ValueError(msg)
        shown = {q.id for q in visible_questions(assessment, responses)}
        answers = {qid: value for qid, value in responses.items() if qid in shown}

        stored = await self.store.insert("assessment_responses", {
            "assessment_id": assessment_id,
            "candidate_id": candidate_id,
            "responses": answers,
        })
        await self.audit.assessment_completed(candidate_id)
        logger.info("Candidate %s completed assessment %s", candidate_id, assessment_id)
        return AssessmentResponse.model_validate(stored)

    @over_channel(mutating=False)
    async def get_response(
        self,
        assessment_id: str,
        candidate_id: str,
    ) -> AssessmentResponse | None:
        """The candidate's most recent response to the assessment, if any."""
        result = await self.store.list("assessment_responses", Query(
            matches={"assessment_id": assessment_id, "candidate_id": candidate_id},
            sort=Sort(column="created_at", descending=True),
            page_range=PageRange(start=0, size=1),
        ))
        if not result.rows:
            return None
        return AssessmentResponse.model_validate(result.rows[0])

    @over_channel(mutating=True)
    async def _store_sections(self, job_id: str, payload: list[dict[str, Any]]) -> Assessment:
        existing = await self._for_job(job_id)
        if existing is not None:
            row = await self.store.update("assessments", existing.id, {"sections": payload})
        else:
            row = await self.store.insert("assessments", {"job_id": job_id, "sections": payload})
        assessment = Assessment.model_validate(row)
        logger.info(
            "Saved assessment for job %s: %d sections, %d questions",
            job_id, len(assessment.sections), len(assessment.questions()),
        )
        return assessment

    async def _for_job(self, job_id: str) -> Assessment | None:
        result = await self.store.list("assessments", Query(matches={"job_id": job_id}))
        if not result.rows:
            return None
        return Assessment.model_validate(result.rows[0])
