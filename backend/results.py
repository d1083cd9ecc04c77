"""Results: per-question analytics, CSV exports and shareable links."""
from __future__ import annotations
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

import pandas as pd

from errors import NotFoundOrUnavailable
from schemas import (
    AnswerOut, ResponseOut, SurveyOut, ShareLinks, SurveyResults, QuestionResult,
    ChoiceAnalytics, RatingAnalytics, TextAnalytics, CHOICE_TYPES,
)
from store import SurveyStore

logger = logging.getLogger(__name__)


def analytics_for(question, answers: list[AnswerOut]):
    """Summarize the answers belonging to `question`.

    - choice/dropdown: (value, count) pairs in first-seen order; options nobody
      picked are left out.
    - rating: mean of the numeric values to one decimal ("0.0" when empty) and
      how many ratings there were. Values that are not numbers are ignored.
    - text: the raw answers in the order the store returned them.
    """
    values = [a.answer_value for a in answers if a.question_id == question.id]

    if question.type in CHOICE_TYPES:
        counts: dict[str, int] = {}
        for v in values:
            counts[v] = counts.get(v, 0) + 1
        return ChoiceAnalytics(counts=list(counts.items()))

    if question.type == "rating":
        ratings = []
        for v in values:
            try:
                r = Decimal(str(v).strip())
            except InvalidOperation:
                continue
            if r.is_finite():
                ratings.append(r)
        average = _one_decimal(sum(ratings) / len(ratings)) if ratings else "0.0"
        return RatingAnalytics(average=average, total=len(ratings))

    return TextAnalytics(answers=values)


def _one_decimal(value: Decimal) -> str:
    # ties round up, so 4.25 shows as 4.3
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def share_links(origin: str, survey_id: str) -> ShareLinks:
    origin = origin.rstrip("/")
    return ShareLinks(
        survey_url=f"{origin}/survey/{survey_id}",
        results_url=f"{origin}/survey/{survey_id}/results",
    )


class ResultsAggregator:
    def __init__(self, store: SurveyStore):
        self.store = store
        self.survey: Optional[SurveyOut] = None
        self.questions: list = []
        self.responses: list[ResponseOut] = []
        self.answers: list[AnswerOut] = []

    @property
    def response_count(self) -> int:
        return len(self.responses)

    def load(self, survey_id: str) -> SurveyOut:
        # survey, questions and responses must all load; any failure aborts
        survey = self.store.get_survey(survey_id)
        if survey is None:
            raise NotFoundOrUnavailable()
        questions = self.store.list_questions(survey_id)
        responses = self.store.list_responses(survey_id)
        answers = []
        if responses:
            answers = self.store.list_answers([r.id for r in responses])
        self.survey, self.questions, self.responses, self.answers = survey, questions, responses, answers
        return survey

    def analytics(self, question):
        return analytics_for(question, self.answers)

    def results(self) -> SurveyResults:
        return SurveyResults(
            survey=self.survey,
            response_count=self.response_count,
            questions=[QuestionResult(question=q, analytics=self.analytics(q)) for q in self.questions],
        )

    def export_filename(self) -> str:
        return f"survey-results-{self.survey.id}.csv"

    def export_csv(self) -> str:
        """Summary export: header lines, then each question and its analytics.

        Only free-text answers are quoted (inner quotes doubled); nothing else
        is escaped.
        """
        rows = [
            f"Survey,{self.survey.title}",
            f"Total Responses,{self.response_count}",
            "",
        ]
        for q in self.questions:
            rows.append(q.text)
            a = self.analytics(q)
            if isinstance(a, ChoiceAnalytics):
                rows.extend(f"{label},{count}" for label, count in a.counts)
            elif isinstance(a, RatingAnalytics):
                rows.append(f"Average Rating,{a.average}")
            else:
                rows.extend(_quote(v) for v in a.answers)
            rows.append("")
        logger.info("exported summary for survey %s (%d responses)", self.survey.id, self.response_count)
        return "\n".join(rows)

    def export_responses_csv(self) -> str:
        """Raw export: one row per response, one column per question."""
        columns = [f"Q{i + 1}. {q.text}" for i, q in enumerate(self.questions)]
        col_by_qid = dict(zip([q.id for q in self.questions], columns))
        by_response: dict[str, dict] = {
            r.id: {"response_id": r.id, "submitted_at": r.submitted_at} for r in self.responses
        }
        for a in self.answers:
            row = by_response.get(a.response_id)
            col = col_by_qid.get(a.question_id)
            if row is not None and col is not None:
                row[col] = a.answer_value
        df = pd.DataFrame(list(by_response.values()), columns=["response_id", "submitted_at", *columns])
        return df.to_csv(index=False)
