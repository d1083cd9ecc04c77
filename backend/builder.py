"""Survey builder: an editable list of question drafts that is saved as a survey."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError, StoreError, NotFoundOrUnavailable
from llm_generator import check_questions
from schemas import SurveyOut, question_adapter, CHOICE_TYPES
from store import SurveyStore

logger = logging.getLogger(__name__)

Generator = Callable[[str], list]

_EDITABLE_FIELDS = ("type", "text", "options", "required")


@dataclass
class QuestionDraft:
    # type changes keep whatever options/text were already typed
    type: str = "multiple_choice"
    text: str = ""
    options: list[str] = field(default_factory=lambda: [""])
    required: bool = False
    order_index: int = 0

    def to_question(self):
        payload = {
            "type": self.type,
            "text": self.text.strip(),
            "required": bool(self.required),
            "order_index": self.order_index,
        }
        if self.type in CHOICE_TYPES:
            payload["options"] = self.options
        return question_adapter.validate_python(payload)


def _draft_from_dict(d: dict, index: int) -> QuestionDraft:
    return QuestionDraft(
        type=d.get("type") or "multiple_choice",
        text=d.get("text") or "",
        options=list(d.get("options") or []),
        required=bool(d.get("required", False)),
        order_index=index,
    )


def save_with_questions(store: SurveyStore, title: str, description: Optional[str], status: str, questions: list) -> SurveyOut:
    """Insert a survey row then its question rows.

    If the questions fail to insert, the survey row is deleted again so no
    question-less survey is left behind, and the StoreError is re-raised.
    """
    survey = store.insert_survey(title, description, status)
    try:
        store.insert_questions(survey.id, questions)
    except StoreError:
        logger.warning("question insert failed; removing survey %s", survey.id)
        try:
            store.delete_survey(survey.id)
        except StoreError:
            logger.exception("could not remove stranded survey %s", survey.id)
        raise
    return survey


class SurveyBuilder:
    """Holds one in-progress survey for an administrator."""

    def __init__(self, store: SurveyStore, generator: Optional[Generator] = None):
        self.store = store
        self.generator = generator
        self.title = ""
        self.description = ""
        self.questions: list[QuestionDraft] = []

    @classmethod
    def from_drafts(cls, store: SurveyStore, title: str, description: Optional[str], drafts: list[dict], generator: Optional[Generator] = None) -> "SurveyBuilder":
        b = cls(store, generator)
        b.title = title or ""
        b.description = description or ""
        b.questions = [_draft_from_dict(d, i) for i, d in enumerate(drafts)]
        return b

    # ------------------------
    # question list editing
    # ------------------------
    def add_question(self) -> QuestionDraft:
        q = QuestionDraft(order_index=len(self.questions))
        self.questions.append(q)
        return q

    def remove_question(self, index: int) -> None:
        del self.questions[index]
        self._reindex()

    def update_question(self, index: int, name: str, value) -> None:
        if name not in _EDITABLE_FIELDS:
            raise ValueError(f"unknown question field {name!r}")
        setattr(self.questions[index], name, value)

    def add_option(self, q_index: int) -> None:
        self.questions[q_index].options.append("")

    def update_option(self, q_index: int, o_index: int, value: str) -> None:
        self.questions[q_index].options[o_index] = value

    def remove_option(self, q_index: int, o_index: int) -> None:
        # may leave zero rows; save() rejects that for choice questions
        del self.questions[q_index].options[o_index]

    def _reindex(self) -> None:
        for i, q in enumerate(self.questions):
            q.order_index = i

    # ------------------------
    # AI generation
    # ------------------------
    def generate_with_ai(self, prompt: str) -> list[QuestionDraft]:
        """Replace the question list with generated questions.

        On any generator failure the current questions are left as they were.
        """
        if not (prompt or "").strip():
            raise ValidationError("Please enter a prompt")
        if self.generator is None:
            raise ValidationError("AI generation is not available")
        generated = check_questions(self.generator(prompt.strip()))
        self.questions = [_draft_from_dict(d, i) for i, d in enumerate(generated)]
        logger.info("generated %d questions", len(self.questions))
        return self.questions

    # ------------------------
    # persistence
    # ------------------------
    def validate(self) -> list:
        """Check presence rules and return the question variants to store."""
        if not self.title.strip():
            raise ValidationError("Please enter a survey title")
        if any(not q.text.strip() for q in self.questions):
            raise ValidationError("All questions must have text")
        self._reindex()
        out = []
        for i, q in enumerate(self.questions):
            try:
                out.append(q.to_question())
            except PydanticValidationError as e:
                raise ValidationError(f"Question {i + 1}: {e.errors()[0]['msg']}") from e
        return out

    def save(self, status: str = "draft") -> SurveyOut:
        if status not in ("draft", "published"):
            raise ValidationError(f"Cannot save a survey as {status!r}")
        try:
            questions = self.validate()
        except ValidationError as e:
            logger.warning("survey not saved: %s", e)
            raise
        survey = save_with_questions(
            self.store, self.title.strip(), self.description.strip() or None, status, questions,
        )
        logger.info("survey %s saved as %s with %d questions", survey.id, status, len(questions))
        return survey


def update_survey(store: SurveyStore, survey_id: str, title: Optional[str] = None,
                  description: Optional[str] = None, status: Optional[str] = None) -> SurveyOut:
    """Change title/description/status of an existing survey; updated_at is touched by the store."""
    fields = {}
    if title is not None:
        if not title.strip():
            raise ValidationError("Please enter a survey title")
        fields["title"] = title.strip()
    if description is not None:
        fields["description"] = description.strip() or None
    if status is not None:
        fields["status"] = status
    if not fields:
        raise ValidationError("Nothing to update")
    survey = store.update_survey(survey_id, **fields)
    if survey is None:
        raise NotFoundOrUnavailable()
    logger.info("survey %s updated: %s", survey_id, ", ".join(sorted(fields)))
    return survey
