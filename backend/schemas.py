# schemas.py
from datetime import datetime
from pydantic import BaseModel, Field, TypeAdapter, field_validator
from typing import Annotated, Dict, List, Optional, Literal, Tuple, Union

SurveyStatus = Literal["draft", "published", "closed", "archived"]

# ------------------------
# Question variants, tagged by `type`
# ------------------------
class _QuestionBase(BaseModel):
    id: Optional[str] = None
    survey_id: Optional[str] = None
    text: str
    required: bool = False
    order_index: int = 0
    class Config:
        from_attributes = True

class _ChoiceQuestionBase(_QuestionBase):
    options: List[str]

    @field_validator("options", mode="before")
    @classmethod
    def _drop_blank_rows(cls, v):
        # the builder UI keeps empty option rows around; they never get stored
        if v is None:
            return []
        return [o for o in v if isinstance(o, str) and o.strip()]

    @field_validator("options")
    @classmethod
    def _at_least_one(cls, v):
        if not v:
            raise ValueError("choice questions need at least one option")
        return v

class MultipleChoiceQuestion(_ChoiceQuestionBase):
    type: Literal["multiple_choice"] = "multiple_choice"

class DropdownQuestion(_ChoiceQuestionBase):
    type: Literal["dropdown"] = "dropdown"

class RatingQuestion(_QuestionBase):
    type: Literal["rating"] = "rating"

class ShortTextQuestion(_QuestionBase):
    type: Literal["short_text"] = "short_text"

class LongTextQuestion(_QuestionBase):
    type: Literal["long_text"] = "long_text"

Question = Annotated[
    Union[MultipleChoiceQuestion, DropdownQuestion, RatingQuestion, ShortTextQuestion, LongTextQuestion],
    Field(discriminator="type"),
]
question_adapter = TypeAdapter(Question)
question_list_adapter = TypeAdapter(List[Question])

CHOICE_TYPES = ("multiple_choice", "dropdown")

# ------------------------
# Stored rows
# ------------------------
class SurveyOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: SurveyStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class SurveySummary(SurveyOut):
    response_count: int = 0

class ResponseOut(BaseModel):
    id: str
    survey_id: str
    submitted_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class AnswerOut(BaseModel):
    id: Optional[str] = None
    response_id: str
    question_id: str
    answer_value: str
    class Config:
        from_attributes = True

class TemplateData(BaseModel):
    questions: List[Question] = []

class TemplateOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    template_data: TemplateData
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# ------------------------
# Request bodies
# ------------------------
class QuestionDraftIn(BaseModel):
    # loose on purpose: validated into a Question variant when the survey is saved
    type: str = "multiple_choice"
    text: str = ""
    options: Optional[List[str]] = None
    required: bool = False
    order_index: int = 0

class SurveyCreate(BaseModel):
    title: str = ""
    description: Optional[str] = None
    status: Literal["draft", "published"] = "draft"
    questions: List[QuestionDraftIn] = []

class SurveyUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[SurveyStatus] = None

class GenerateRequest(BaseModel):
    prompt: str

class ResponseSubmit(BaseModel):
    answers: Dict[str, Union[str, int, float]] = Field(default_factory=dict, description="question_id -> answer value")

    @field_validator("answers")
    @classmethod
    def _values_as_text(cls, v):
        # ratings arrive as numbers from some clients; answers are stored as text
        return {k: str(val) for k, val in v.items()}

# ------------------------
# Analytics
# ------------------------
class ChoiceAnalytics(BaseModel):
    kind: Literal["choice"] = "choice"
    counts: List[Tuple[str, int]] = []

class RatingAnalytics(BaseModel):
    kind: Literal["rating"] = "rating"
    average: str = "0.0"
    total: int = 0

class TextAnalytics(BaseModel):
    kind: Literal["text"] = "text"
    answers: List[str] = []

Analytics = Union[ChoiceAnalytics, RatingAnalytics, TextAnalytics]

class QuestionResult(BaseModel):
    question: Question
    analytics: Annotated[Analytics, Field(discriminator="kind")]

class SurveyResults(BaseModel):
    survey: SurveyOut
    response_count: int
    questions: List[QuestionResult]

class SurveyDetail(BaseModel):
    survey: SurveyOut
    questions: List[Question]

class ShareLinks(BaseModel):
    survey_url: str
    results_url: str

class DashboardStats(BaseModel):
    total: int
    published: int
    responses: int
