import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON, CheckConstraint, Index
from sqlalchemy.orm import relationship

from db import Base

SURVEY_STATUSES = ("draft", "published", "closed", "archived")
QUESTION_TYPES = ("multiple_choice", "rating", "short_text", "long_text", "dropdown")

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _uuid() -> str:
    return str(uuid.uuid4())

def _in_clause(column: str, values: tuple) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"

class Survey(Base):
    __tablename__ = "surveys"
    __table_args__ = (CheckConstraint(_in_clause("status", SURVEY_STATUSES), name="ck_surveys_status"),)
    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    questions = relationship("Question", back_populates="survey", cascade="all, delete-orphan", passive_deletes=True)
    responses = relationship("Response", back_populates="survey", cascade="all, delete-orphan", passive_deletes=True)

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint(_in_clause("type", QUESTION_TYPES), name="ck_questions_type"),
        Index("idx_questions_order", "survey_id", "order_index"),
    )
    id = Column(String(36), primary_key=True, default=_uuid)
    survey_id = Column(String(36), ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String(20), nullable=False)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)
    required = Column(Boolean, nullable=False, default=False)
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    survey = relationship("Survey", back_populates="questions")
    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan", passive_deletes=True)

class Response(Base):
    __tablename__ = "responses"
    id = Column(String(36), primary_key=True, default=_uuid)
    survey_id = Column(String(36), ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    survey = relationship("Survey", back_populates="responses")
    answers = relationship("Answer", back_populates="response", cascade="all, delete-orphan", passive_deletes=True)

class Answer(Base):
    __tablename__ = "answers"
    id = Column(String(36), primary_key=True, default=_uuid)
    response_id = Column(String(36), ForeignKey("responses.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True, nullable=False)
    answer_value = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    response = relationship("Response", back_populates="answers")
    question = relationship("Question", back_populates="answers")

class SurveyTemplate(Base):
    __tablename__ = "survey_templates"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    template_data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
