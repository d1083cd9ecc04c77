"""Respondent side: load a published survey, collect answers, submit them."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from errors import ValidationError, StoreError, NotFoundOrUnavailable
from schemas import SurveyOut, ResponseOut
from store import SurveyStore

logger = logging.getLogger(__name__)


@dataclass
class DraftResponse:
    """Answers typed so far, keyed by question id. Lives from load() until submit()."""
    answers: dict[str, str] = field(default_factory=dict)


class SurveyRuntime:
    def __init__(self, store: SurveyStore):
        self.store = store
        self.survey: Optional[SurveyOut] = None
        self.questions: list = []
        self.draft: Optional[DraftResponse] = None

    def load(self, survey_id: str) -> SurveyOut:
        """Fetch a published survey and its ordered questions.

        Drafts, closed surveys and unknown ids all fail the same way.
        """
        survey = self.store.get_survey(survey_id, status="published")
        if survey is None:
            raise NotFoundOrUnavailable()
        self.survey = survey
        self.questions = self.store.list_questions(survey_id)
        self.draft = DraftResponse()
        return survey

    def _require_loaded(self) -> DraftResponse:
        if self.survey is None:
            raise NotFoundOrUnavailable()
        if self.draft is None:
            raise ValidationError("This response was already submitted")
        return self.draft

    def record_answer(self, question_id: str, value: str) -> None:
        """Store or overwrite one answer. A blank value clears it."""
        draft = self._require_loaded()
        if question_id not in {q.id for q in self.questions}:
            raise ValidationError("Unknown question")
        if value is None or not str(value).strip():
            draft.answers.pop(question_id, None)
        else:
            draft.answers[question_id] = str(value)

    def progress(self) -> float:
        if not self.questions or self.draft is None:
            return 0.0
        return len(self.draft.answers) / len(self.questions)

    def missing_required(self) -> list:
        answers = self.draft.answers if self.draft else {}
        return [q for q in self.questions if q.required and not answers.get(q.id)]

    def submit(self) -> ResponseOut:
        """Persist one response plus one answer per recorded value.

        If the answers cannot be stored, the response row is deleted again so
        it never shows up in result counts.
        """
        draft = self._require_loaded()
        missing = self.missing_required()
        if missing:
            logger.warning("submission for survey %s missing %d required answers", self.survey.id, len(missing))
            raise ValidationError("Please answer all required questions")

        response = self.store.insert_response(self.survey.id)
        if draft.answers:
            try:
                self.store.insert_answers(response.id, dict(draft.answers))
            except StoreError:
                logger.warning("answer insert failed; removing response %s", response.id)
                try:
                    self.store.delete_response(response.id)
                except StoreError:
                    logger.exception("could not remove orphaned response %s", response.id)
                raise
        logger.info("response %s submitted for survey %s with %d answers",
                    response.id, self.survey.id, len(draft.answers))
        self.draft = None
        return response
