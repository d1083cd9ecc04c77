"""Repository over the five survey tables.

Components never touch the ORM directly: they receive a ``SurveyStore`` and
call it, so tests can hand them an in-memory fake instead.
"""
from __future__ import annotations
import functools
import logging
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pydantic import ValidationError as PydanticValidationError

from errors import StoreError
from models import Survey, Question, Response, Answer, SurveyTemplate
from schemas import (
    SurveyOut, SurveySummary, ResponseOut, AnswerOut, TemplateOut,
    Question as QuestionModel, question_adapter,
)

logger = logging.getLogger(__name__)


class SurveyStore(Protocol):
    def insert_survey(self, title: str, description: Optional[str], status: str) -> SurveyOut: ...
    def insert_questions(self, survey_id: str, questions: Sequence[QuestionModel]) -> list[QuestionModel]: ...
    def update_survey(self, survey_id: str, **fields) -> Optional[SurveyOut]: ...
    def delete_survey(self, survey_id: str) -> bool: ...
    def get_survey(self, survey_id: str, status: Optional[str] = None) -> Optional[SurveyOut]: ...
    def list_surveys(self) -> list[SurveySummary]: ...
    def list_questions(self, survey_id: str) -> list[QuestionModel]: ...
    def insert_response(self, survey_id: str) -> ResponseOut: ...
    def insert_answers(self, response_id: str, values: dict[str, str]) -> list[AnswerOut]: ...
    def delete_response(self, response_id: str) -> bool: ...
    def list_responses(self, survey_id: str) -> list[ResponseOut]: ...
    def list_answers(self, response_ids: Iterable[str]) -> list[AnswerOut]: ...
    def list_templates(self) -> list[TemplateOut]: ...
    def get_template(self, template_id: str) -> Optional[TemplateOut]: ...
    def insert_template(self, name: str, description: Optional[str], questions: Sequence[QuestionModel]) -> TemplateOut: ...


def _store_errors(fn):
    """Roll back and re-raise SQLAlchemy failures and unreadable rows as StoreError."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except (SQLAlchemyError, PydanticValidationError) as e:
            self.db.rollback()
            logger.exception("store operation %s failed", fn.__name__)
            raise StoreError(f"{fn.__name__} failed") from e
    return wrapper


def _question_row_to_model(q: Question) -> QuestionModel:
    return question_adapter.validate_python({
        "id": q.id,
        "survey_id": q.survey_id,
        "type": q.type,
        "text": q.text,
        "options": q.options,
        "required": q.required,
        "order_index": q.order_index,
    })


class SqlSurveyStore:
    """SurveyStore backed by a SQLAlchemy session. Every write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------
    # surveys
    # ------------------------
    @_store_errors
    def insert_survey(self, title: str, description: Optional[str], status: str) -> SurveyOut:
        row = Survey(title=title, description=description, status=status)
        self.db.add(row)
        self.db.commit()
        return SurveyOut.model_validate(row)

    @_store_errors
    def update_survey(self, survey_id: str, **fields) -> Optional[SurveyOut]:
        row = self.db.get(Survey, survey_id)
        if not row:
            return None
        for k in ("title", "description", "status"):
            if k in fields:
                setattr(row, k, fields[k])
        self.db.commit()
        return SurveyOut.model_validate(row)

    @_store_errors
    def delete_survey(self, survey_id: str) -> bool:
        row = self.db.get(Survey, survey_id)
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    @_store_errors
    def get_survey(self, survey_id: str, status: Optional[str] = None) -> Optional[SurveyOut]:
        stmt = select(Survey).where(Survey.id == survey_id)
        if status is not None:
            stmt = stmt.where(Survey.status == status)
        row = self.db.execute(stmt).scalar_one_or_none()
        return SurveyOut.model_validate(row) if row else None

    @_store_errors
    def list_surveys(self) -> list[SurveySummary]:
        counts = (
            select(Response.survey_id, func.count(Response.id).label("n"))
            .group_by(Response.survey_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Survey, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.survey_id == Survey.id)
            .order_by(Survey.created_at.desc())
        ).all()
        out = []
        for s, n in rows:
            summary = SurveySummary.model_validate(s)
            summary.response_count = int(n)
            out.append(summary)
        return out

    # ------------------------
    # questions
    # ------------------------
    @_store_errors
    def insert_questions(self, survey_id: str, questions: Sequence[QuestionModel]) -> list[QuestionModel]:
        rows = [
            Question(
                survey_id=survey_id,
                type=q.type,
                text=q.text,
                options=list(getattr(q, "options", None) or []) or None,
                required=q.required,
                order_index=q.order_index,
            )
            for q in questions
        ]
        self.db.add_all(rows)
        self.db.commit()
        return [_question_row_to_model(r) for r in rows]

    @_store_errors
    def list_questions(self, survey_id: str) -> list[QuestionModel]:
        rows = self.db.execute(
            select(Question).where(Question.survey_id == survey_id).order_by(Question.order_index)
        ).scalars().all()
        return [_question_row_to_model(r) for r in rows]

    # ------------------------
    # responses / answers
    # ------------------------
    @_store_errors
    def insert_response(self, survey_id: str) -> ResponseOut:
        row = Response(survey_id=survey_id)
        self.db.add(row)
        self.db.commit()
        return ResponseOut.model_validate(row)

    @_store_errors
    def insert_answers(self, response_id: str, values: dict[str, str]) -> list[AnswerOut]:
        rows = [Answer(response_id=response_id, question_id=qid, answer_value=v) for qid, v in values.items()]
        self.db.add_all(rows)
        self.db.commit()
        return [AnswerOut.model_validate(r) for r in rows]

    @_store_errors
    def delete_response(self, response_id: str) -> bool:
        row = self.db.get(Response, response_id)
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    @_store_errors
    def list_responses(self, survey_id: str) -> list[ResponseOut]:
        rows = self.db.execute(
            select(Response).where(Response.survey_id == survey_id).order_by(Response.submitted_at)
        ).scalars().all()
        return [ResponseOut.model_validate(r) for r in rows]

    @_store_errors
    def list_answers(self, response_ids: Iterable[str]) -> list[AnswerOut]:
        ids = list(response_ids)
        if not ids:
            return []
        rows = self.db.execute(
            select(Answer).where(Answer.response_id.in_(ids)).order_by(Answer.created_at)
        ).scalars().all()
        return [AnswerOut.model_validate(r) for r in rows]

    # ------------------------
    # templates
    # ------------------------
    @_store_errors
    def list_templates(self) -> list[TemplateOut]:
        rows = self.db.execute(select(SurveyTemplate).order_by(SurveyTemplate.created_at)).scalars().all()
        return [TemplateOut.model_validate(r) for r in rows]

    @_store_errors
    def get_template(self, template_id: str) -> Optional[TemplateOut]:
        row = self.db.get(SurveyTemplate, template_id)
        return TemplateOut.model_validate(row) if row else None

    @_store_errors
    def insert_template(self, name: str, description: Optional[str], questions: Sequence[QuestionModel]) -> TemplateOut:
        data = {"questions": [q.model_dump(exclude={"id", "survey_id"}) for q in questions]}
        row = SurveyTemplate(name=name, description=description, template_data=data)
        self.db.add(row)
        self.db.commit()
        return TemplateOut.model_validate(row)
