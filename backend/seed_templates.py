import logging

from schemas import question_list_adapter
from store import SurveyStore

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES = [
    {
        "name": "Employee Satisfaction",
        "description": "Measure overall employee satisfaction and engagement",
        "questions": [
            {"type": "rating", "text": "How satisfied are you with your current role?", "required": True, "order_index": 0},
            {"type": "rating", "text": "How would you rate work-life balance?", "required": True, "order_index": 1},
            {"type": "multiple_choice", "text": "What do you value most about working here?",
             "options": ["Career Growth", "Team Culture", "Compensation", "Work-Life Balance", "Management"],
             "required": True, "order_index": 2},
            {"type": "long_text", "text": "What improvements would you suggest?", "required": False, "order_index": 3},
        ],
    },
    {
        "name": "Workplace Culture",
        "description": "Assess company culture and team dynamics",
        "questions": [
            {"type": "rating", "text": "How well does our company live up to its values?", "required": True, "order_index": 0},
            {"type": "multiple_choice", "text": "How would you describe our workplace culture?",
             "options": ["Collaborative", "Innovative", "Fast-paced", "Supportive", "Competitive"],
             "required": True, "order_index": 1},
            {"type": "rating", "text": "How comfortable do you feel sharing your opinions?", "required": True, "order_index": 2},
            {"type": "long_text", "text": "What makes you proud to work here?", "required": False, "order_index": 3},
        ],
    },
    {
        "name": "Team Collaboration",
        "description": "Evaluate team communication and collaboration",
        "questions": [
            {"type": "rating", "text": "How effective is communication within your team?", "required": True, "order_index": 0},
            {"type": "rating", "text": "How well does your team collaborate on projects?", "required": True, "order_index": 1},
            {"type": "multiple_choice", "text": "What tools help your team collaborate best?",
             "options": ["Video Calls", "Chat Tools", "Project Management Software", "In-person Meetings", "Email"],
             "required": True, "order_index": 2},
            {"type": "short_text", "text": "What would improve team collaboration?", "required": False, "order_index": 3},
        ],
    },
]


def seed_default_templates(store: SurveyStore) -> int:
    """Insert the default templates when none exist yet. Returns how many were added."""
    if store.list_templates():
        return 0
    for t in DEFAULT_TEMPLATES:
        store.insert_template(t["name"], t["description"], question_list_adapter.validate_python(t["questions"]))
    logger.info("seeded %d survey templates", len(DEFAULT_TEMPLATES))
    return len(DEFAULT_TEMPLATES)
