"""Core data models for the TalentFlow sync engine.

All records are frozen: a change produces a new object via ``model_copy``,
which is what lets the view keep cheap, exact rollback snapshots.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

JobStatus = Literal["active", "archived"]
CandidateStage = Literal["applied", "screen", "tech", "offer", "hired", "rejected"]
EventType = Literal["stage_change", "note_added", "assessment_completed"]
QuestionType = Literal[
    "short_text", "long_text", "numeric", "single_choice", "multi_choice", "file",
]

JOB_STATUSES: tuple[JobStatus, ...] = ("active", "archived")
STAGES: tuple[CandidateStage, ...] = ("applied", "screen", "tech", "offer", "hired", "rejected")

TEXT_TYPES = {"short_text", "long_text"}
CHOICE_TYPES = {"single_choice", "multi_choice"}


class Job(BaseModel):
    """A job posting. ``order`` is its dense rank in the manual job ordering."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    slug: str
    status: JobStatus = "active"
    tags: frozenset[str] = frozenset()
    order: int = 0
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Candidate(BaseModel):
    """A candidate applying to exactly one job."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    stage: CandidateStage = "applied"
    job_id: str | None = None
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class TimelineEvent(BaseModel):
    """One write-once entry of a candidate's audit timeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    candidate_id: str
    event_type: EventType
    from_stage: CandidateStage | None = None
    to_stage: CandidateStage | None = None
    note: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class Condition(BaseModel):
    """Shows a question only when an earlier question has the given answer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question_id: str = Field(alias="questionId")
    value: Any


class Question(BaseModel):
    """An assessment question. Constraint fields depend on ``type``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: QuestionType
    text: str
    required: bool = False
    max_length: int | None = Field(default=None, alias="maxLength", ge=1)
    min_value: float | None = Field(default=None, alias="minValue")
    max_value: float | None = Field(default=None, alias="maxValue")
    options: tuple[str, ...] | None = None
    conditional_on: Condition | None = Field(default=None, alias="conditionalOn")

    @model_validator(mode="after")
    def constraints_match_type(self) -> "Question":
        if self.max_length is not None and self.type not in TEXT_TYPES:
            msg = f"question '{self.id}': maxLength only applies to text questions"
            raise ValueError(msg)
        has_range = self.min_value is not None or self.max_value is not None
        if has_range and self.type != "numeric":
            msg = f"question '{self.id}': minValue/maxValue only apply to numeric questions"
            raise ValueError(msg)
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            msg = f"question '{self.id}': minValue is greater than maxValue"
            raise ValueError(msg)
        if self.type in CHOICE_TYPES:
            if not self.options:
                msg = f"question '{self.id}': choice questions need at least one option"
                raise ValueError(msg)
        elif self.options is not None:
            msg = f"question '{self.id}': options only apply to choice questions"
            raise ValueError(msg)
        return self


class Section(BaseModel):
    """An ordered group of questions."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    questions: tuple[Question, ...] = ()


class Assessment(BaseModel):
    """The assessment form attached to a job.

    Question ids are unique across all sections, and a ``conditionalOn``
    may only point at a question that comes earlier in document order.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    job_id: str
    sections: tuple[Section, ...] = ()
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def questions_well_formed(self) -> "Assessment":
        check_question_order(self.sections)
        return self

    def questions(self) -> list[Question]:
        """All questions in document order."""
        return [q for section in self.sections for q in section.questions]

    def question(self, question_id: str) -> Question | None:
        for q in self.questions():
            if q.id == question_id:
                return q
        return None


class AssessmentResponse(BaseModel):
    """A candidate's answers to an assessment, keyed by question id."""

    model_config = ConfigDict(frozen=True)

    id: str
    assessment_id: str
    candidate_id: str
    responses: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


def check_question_order(sections: tuple[Section, ...] | list[Section]) -> None:
    """Raise ValueError on duplicate question ids or forward/unknown conditions."""
    seen: set[str] = set()
    for section in sections:
        for q in section.questions:
            if q.id in seen:
                msg = f"duplicate question id '{q.id}'"
                raise ValueError(msg)
            if q.conditional_on is not None and q.conditional_on.question_id not in seen:
                msg = (
                    f"question '{q.id}' is conditional on '{q.conditional_on.question_id}', "
                    "which does not appear earlier in the assessment"
                )
                raise ValueError(msg)
            seen.add(q.id)
