import json
from types import SimpleNamespace

import pytest

import llm_generator
from errors import GenerationError


def _fake_client(content):
    def create(**kwargs):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_generate_returns_question_list(monkeypatch):
    payload = {"questions": [
        {"type": "rating", "text": "How is your workload?", "required": True, "order_index": 0},
        {"type": "multiple_choice", "text": "Preferred schedule?", "options": ["Remote", "Hybrid"], "required": False, "order_index": 1},
    ]}
    monkeypatch.setattr(llm_generator, "_get_client", lambda: _fake_client(json.dumps(payload)))
    assert llm_generator.generate_questions("remote work") == payload["questions"]

def test_generate_without_key(monkeypatch):
    monkeypatch.setattr(llm_generator, "_get_client", lambda: None)
    with pytest.raises(GenerationError, match="not configured"):
        llm_generator.generate_questions("anything")

def test_generate_invalid_json(monkeypatch):
    monkeypatch.setattr(llm_generator, "_get_client", lambda: _fake_client("not json"))
    with pytest.raises(GenerationError):
        llm_generator.generate_questions("anything")

@pytest.mark.parametrize("data", [
    {},
    {"questions": []},
    {"questions": ["text only"]},
    {"questions": [{"type": "essay", "text": "?"}]},
    {"questions": [{"type": "rating", "text": 5}]},
    {"questions": [{"type": "rating"}]},
    {"questions": [{"type": "rating", "text": "Rate", "required": "false"}]},
    {"questions": [{"type": "dropdown", "text": "Pick", "options": "A,B"}]},
    {"questions": [{"type": "dropdown", "text": "Pick", "options": ["A", 2]}]},
])
def test_parse_rejects_bad_payloads(data):
    with pytest.raises(GenerationError):
        llm_generator.parse_generated(data)

def test_parse_accepts_missing_optional_fields():
    qs = [{"type": "short_text", "text": "Anything else?"}]
    assert llm_generator.parse_generated({"questions": qs}) == qs
