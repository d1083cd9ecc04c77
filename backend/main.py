import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import config
from builder import SurveyBuilder, update_survey
from db import Base, engine, get_db, SessionLocal
from errors import ValidationError, NotFoundOrUnavailable, StoreError, GenerationError
from llm_generator import generate_questions
from results import ResultsAggregator, share_links
from runtime import SurveyRuntime
from schemas import *
from seed_templates import seed_default_templates
from store import SqlSurveyStore
from template_gallery import TemplateGallery

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def init_database():
    """Create tables and seed the default templates on startup."""
    Base.metadata.create_all(bind=engine)
    if not config.SEED_TEMPLATES:
        return
    db = SessionLocal()
    try:
        seed_default_templates(SqlSurveyStore(db))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    yield


app = FastAPI(title="Survey API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------
# Error mapping
# ------------------------
@app.exception_handler(ValidationError)
def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(NotFoundOrUnavailable)
def _not_found(request: Request, exc: NotFoundOrUnavailable):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(StoreError)
def _store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=500, content={"detail": "Something went wrong, please try again"})

@app.exception_handler(GenerationError)
def _generation_error(request: Request, exc: GenerationError):
    return JSONResponse(status_code=502, content={"detail": str(exc) or "Failed to generate questions"})

# ------------------------
# Dependencies
# ------------------------
def get_store(db: Session = Depends(get_db)) -> SqlSurveyStore:
    return SqlSurveyStore(db)

def get_generator():
    return generate_questions


@app.get("/health")
def health():
    """Basic readiness probe.

    Returns:
        dict: {"ok": True}
    """
    return {"ok": True}

# ------------------------
# Admin: dashboard
# ------------------------
@app.get("/admin/surveys", response_model=List[SurveySummary])
def list_surveys(store: SqlSurveyStore = Depends(get_store)):
    """List all surveys, newest first, each with its response count."""
    return store.list_surveys()

@app.get("/admin/stats", response_model=DashboardStats)
def dashboard_stats(store: SqlSurveyStore = Depends(get_store)):
    """Totals shown on the dashboard header.

    Returns:
        DashboardStats: {total, published, responses}
    """
    surveys = store.list_surveys()
    return DashboardStats(
        total=len(surveys),
        published=sum(1 for s in surveys if s.status == "published"),
        responses=sum(s.response_count for s in surveys),
    )

# ------------------------
# Admin: build surveys
# ------------------------
@app.post("/admin/surveys", response_model=SurveyOut)
def create_survey(payload: SurveyCreate, store: SqlSurveyStore = Depends(get_store)):
    """Save a survey and its questions as draft or published.

    Args:
        payload (SurveyCreate): title (required), description, status, questions[].

    Raises:
        400 when the title, a question's text, or a choice question's options are missing.
    """
    builder = SurveyBuilder.from_drafts(
        store, payload.title, payload.description, [q.model_dump() for q in payload.questions],
    )
    return builder.save(payload.status)

@app.post("/admin/surveys/generate", response_model=List[QuestionDraftIn])
def generate_survey_questions(body: GenerateRequest, store: SqlSurveyStore = Depends(get_store),
                              generator=Depends(get_generator)):
    """Generate a question list from a free-text prompt. Nothing is stored."""
    builder = SurveyBuilder(store, generator)
    drafts = builder.generate_with_ai(body.prompt)
    return [QuestionDraftIn(**vars(d)) for d in drafts]

@app.get("/admin/surveys/{survey_id}", response_model=SurveyDetail)
def survey_detail(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Survey row and ordered questions, whatever the status."""
    survey = store.get_survey(survey_id)
    if survey is None:
        raise NotFoundOrUnavailable()
    return SurveyDetail(survey=survey, questions=store.list_questions(survey_id))

@app.patch("/admin/surveys/{survey_id}", response_model=SurveyOut)
def patch_survey(survey_id: str, body: SurveyUpdate, store: SqlSurveyStore = Depends(get_store)):
    """Update title, description or status."""
    return update_survey(store, survey_id, title=body.title, description=body.description, status=body.status)

@app.delete("/admin/surveys/{survey_id}")
def delete_survey(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Hard-delete a survey; questions, responses and answers go with it."""
    if not store.delete_survey(survey_id):
        raise NotFoundOrUnavailable()
    return {"ok": True}

# ------------------------
# Admin: results
# ------------------------
def _load_results(survey_id: str, store: SqlSurveyStore) -> ResultsAggregator:
    agg = ResultsAggregator(store)
    agg.load(survey_id)
    return agg

@app.get("/admin/surveys/{survey_id}/results", response_model=SurveyResults)
def survey_results(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Per-question analytics for a survey."""
    return _load_results(survey_id, store).results()

@app.get("/admin/surveys/{survey_id}/export.csv")
def export_csv(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Summary CSV as `survey-results-<id>.csv`."""
    agg = _load_results(survey_id, store)
    return Response(content=agg.export_csv().encode("utf-8"), media_type="text/csv",
                    headers={"Content-Disposition": f"attachment; filename={agg.export_filename()}"})

@app.get("/admin/surveys/{survey_id}/responses.csv")
def export_responses_csv(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Raw CSV, one row per response."""
    agg = _load_results(survey_id, store)
    return Response(content=agg.export_responses_csv().encode("utf-8"), media_type="text/csv",
                    headers={"Content-Disposition": f"attachment; filename=survey-responses-{survey_id}.csv"})

@app.get("/admin/surveys/{survey_id}/links", response_model=ShareLinks)
def survey_links(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Respondent and results URLs for sharing."""
    if store.get_survey(survey_id) is None:
        raise NotFoundOrUnavailable()
    return share_links(config.APP_ORIGIN, survey_id)

# ------------------------
# Admin: templates
# ------------------------
@app.get("/admin/templates", response_model=List[TemplateOut])
def list_templates(store: SqlSurveyStore = Depends(get_store)):
    return TemplateGallery(store).list()

@app.post("/admin/templates/{template_id}/use", response_model=SurveyOut)
def use_template(template_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Create a draft survey from a template."""
    gallery = TemplateGallery(store)
    return gallery.instantiate(gallery.get(template_id))

# ------------------------
# Public: take a survey
# ------------------------
@app.get("/public/surveys/{survey_id}", response_model=SurveyDetail)
def load_public_survey(survey_id: str, store: SqlSurveyStore = Depends(get_store)):
    """Published survey with its ordered questions. Anything else is a 404."""
    runtime = SurveyRuntime(store)
    survey = runtime.load(survey_id)
    return SurveyDetail(survey=survey, questions=runtime.questions)

@app.post("/public/surveys/{survey_id}/responses", response_model=ResponseOut)
def submit_response(survey_id: str, body: ResponseSubmit, store: SqlSurveyStore = Depends(get_store)):
    """Submit one anonymous response.

    Raises:
        404 if the survey is not published; 400 if a required question is unanswered.
    """
    runtime = SurveyRuntime(store)
    runtime.load(survey_id)
    for question_id, value in body.answers.items():
        runtime.record_answer(question_id, value)
    return runtime.submit()
