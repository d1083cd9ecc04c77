"""Predefined question sets that can be copied into a new draft survey."""
from __future__ import annotations
import logging

from builder import save_with_questions
from errors import NotFoundOrUnavailable
from schemas import SurveyOut, TemplateOut
from store import SurveyStore

logger = logging.getLogger(__name__)


class TemplateGallery:
    def __init__(self, store: SurveyStore):
        self.store = store

    def list(self) -> list[TemplateOut]:
        return self.store.list_templates()

    def get(self, template_id: str) -> TemplateOut:
        t = self.store.get_template(template_id)
        if t is None:
            raise NotFoundOrUnavailable("Template not found")
        return t

    def instantiate(self, template: TemplateOut) -> SurveyOut:
        """Create a draft survey holding a copy of the template's questions.

        Type, text, options, required and order_index are copied as-is; the
        template itself is never written to.
        """
        questions = [q.model_copy() for q in template.template_data.questions]
        survey = save_with_questions(self.store, template.name, template.description, "draft", questions)
        logger.info("survey %s created from template %r", survey.id, template.name)
        return survey
