import pytest

from errors import ValidationError, NotFoundOrUnavailable, StoreError
from runtime import SurveyRuntime
from schemas import MultipleChoiceQuestion, RatingQuestion, ShortTextQuestion


def _survey(store, status="published"):
    s = store.insert_survey("Pulse", None, status)
    store.insert_questions(s.id, [
        RatingQuestion(text="Rate", required=True, order_index=1),
        MultipleChoiceQuestion(text="Pick", options=["A", "B"], required=True, order_index=0),
        ShortTextQuestion(text="Say", required=False, order_index=2),
    ])
    return s


def test_load_orders_questions(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    assert [q.text for q in rt.questions] == ["Pick", "Rate", "Say"]

def test_draft_survey_looks_like_missing_survey(store):
    s = _survey(store, status="draft")
    with pytest.raises(NotFoundOrUnavailable) as draft_err:
        SurveyRuntime(store).load(s.id)
    with pytest.raises(NotFoundOrUnavailable) as missing_err:
        SurveyRuntime(store).load("does-not-exist")
    assert str(draft_err.value) == str(missing_err.value)

def test_progress_with_no_questions_is_zero(store):
    s = store.insert_survey("Empty", None, "published")
    rt = SurveyRuntime(store)
    rt.load(s.id)
    assert rt.progress() == 0

def test_progress_counts_answers(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    pick, rate, say = rt.questions
    rt.record_answer(pick.id, "A")
    rt.record_answer(pick.id, "B")
    assert rt.progress() == pytest.approx(1 / 3)
    rt.record_answer(rate.id, "4")
    rt.record_answer(say.id, "")
    assert rt.progress() == pytest.approx(2 / 3)

def test_record_unknown_question(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    with pytest.raises(ValidationError):
        rt.record_answer("q-999", "x")

def test_submit_missing_required_persists_nothing(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    rt.record_answer(rt.questions[0].id, "A")
    store.calls.clear()
    with pytest.raises(ValidationError):
        rt.submit()
    assert store.calls == []
    assert store.responses == []

def test_submit_creates_one_response_and_answers_for_given_values(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    pick, rate, say = rt.questions
    rt.record_answer(pick.id, "B")
    rt.record_answer(rate.id, "5")
    response = rt.submit()

    assert len(store.responses) == 1
    assert response.survey_id == s.id
    # optional text question left blank -> no answer row
    assert sorted((a.question_id, a.answer_value) for a in store.answers) == sorted([(pick.id, "B"), (rate.id, "5")])
    assert all(a.response_id == response.id for a in store.answers)

def test_submit_twice_is_rejected(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    pick, rate, _ = rt.questions
    rt.record_answer(pick.id, "A")
    rt.record_answer(rate.id, "3")
    rt.submit()
    with pytest.raises(ValidationError):
        rt.submit()
    assert len(store.responses) == 1

def test_answer_insert_failure_removes_response(store):
    s = _survey(store)
    rt = SurveyRuntime(store)
    rt.load(s.id)
    pick, rate, _ = rt.questions
    rt.record_answer(pick.id, "A")
    rt.record_answer(rate.id, "3")
    store.fail.add("insert_answers")
    with pytest.raises(StoreError):
        rt.submit()
    assert store.responses == []
    assert store.list_surveys()[0].response_count == 0
    # the draft survives so the respondent can retry
    store.fail.clear()
    rt.submit()
    assert len(store.responses) == 1

def test_submit_without_load(store):
    with pytest.raises(NotFoundOrUnavailable):
        SurveyRuntime(store).submit()
