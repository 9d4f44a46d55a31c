import pytest

from app import create_app
from config import TestConfig
from errors import AIServiceError
from schemas import ATSAnalysis, AnswerEvaluation, Optimization, ReportData
from storage import MemoryStore


class FakeLLM:
    """Scripted stand-in for LLMClient; records every call it receives."""

    def __init__(self):
        self.calls = []
        self.failing = set()
        self.analysis = {
            "score": 78,
            "keywords": ["python", "flask"],
            "suggestions": ["Quantify impact"],
            "strengths": ["Clear summary"],
            "weaknesses": ["No metrics"],
        }
        self.optimizations = [
            {"section": "summary", "original": "old", "optimized": "Sharper summary", "improvement": "Stronger verbs"},
        ]
        self.questions = [
            "Explain the difference between a process and a thread.",
            "How would you design a URL shortener?",
            "Tell me about a bug you are proud of fixing.",
        ]
        self.answer_scores = [70]
        self.report = {
            "confidence_score": 80,
            "grammar_score": 85,
            "relevance_score": 75,
            "overall_score": 79,
            "feedback": {"strengths": ["Structured"], "improvements": ["More depth"], "summary": "Solid start."},
        }

    def _call(self, name, *args):
        self.calls.append((name, args))
        if name in self.failing:
            raise AIServiceError(f"AI {name} failed. Please try again.")

    def analyze_resume(self, content, job_description=None):
        self._call("analyze_resume", content, job_description)
        return ATSAnalysis.model_validate(self.analysis)

    def optimize_resume(self, content, target_role=None):
        self._call("optimize_resume", content, target_role)
        return [Optimization.model_validate(o) for o in self.optimizations]

    def generate_questions(self, job_role, question_type, resume_content=None):
        self._call("generate_questions", job_role, question_type, resume_content)
        return list(self.questions)

    def evaluate_answer(self, question, answer, job_role):
        self._call("evaluate_answer", question, answer, job_role)
        score = self.answer_scores.pop(0) if len(self.answer_scores) > 1 else self.answer_scores[0]
        return AnswerEvaluation(score=score, strengths=["Concise"], improvements=["Add an example"], feedback="Good.")

    def generate_report(self, job_role, answered):
        self._call("generate_report", job_role, answered)
        return ReportData.model_validate(self.report)


def resume_content(**overrides):
    content = {
        "basics": {
            "name": "Alice Doe",
            "email": "alice@example.com",
            "phone": "+1 555 0100",
            "summary": "Backend engineer.",
        },
        "experience": [],
        "skills": [],
    }
    content.update(overrides)
    return content


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def app(store, llm):
    return create_app(TestConfig, store=store, llm=llm)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    def _register(username="alice", password="pw1"):
        resp = client.post("/api/auth/register", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return {"Authorization": f"Bearer {body['token']}"}, body
    return _register


@pytest.fixture
def auth_headers(register):
    headers, _ = register()
    return headers
