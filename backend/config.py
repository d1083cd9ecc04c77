import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./survey.db")
ORIGINS = os.getenv("ORIGINS", "http://localhost:5173").split(",")
# shareable links point at the respondent-facing frontend, not this API
APP_ORIGIN = os.getenv("APP_ORIGIN", ORIGINS[0]).rstrip("/")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_TEMPLATES = os.getenv("SEED_TEMPLATES", "true").lower() in ("1", "true", "yes")
