from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from flask import current_app
from openai import OpenAI

from errors import AIServiceError
from schemas import SECTION_RE, ATSAnalysis, AnswerEvaluation, Optimization, ReportData

log = logging.getLogger(__name__)

ANALYZE_FAILED = "AI analysis failed. Please try again."
OPTIMIZE_FAILED = "AI optimization failed. Please try again."
QUESTIONS_FAILED = "AI question generation failed. Please try again."
EVALUATE_FAILED = "AI evaluation failed. Please try again."
REPORT_FAILED = "AI report generation failed. Please try again."


def _strip_fences(content: str) -> str:
    # Some models wrap JSON in markdown fences like ```json ... ```; strip them.
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[1:])
    if cleaned.endswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[:-1])
    return cleaned.strip()


def _resume_block(content: Dict[str, Any]) -> str:
    basics = content.get("basics") or {}
    lines = [
        f"Name: {basics.get('name', '')}",
        f"Email: {basics.get('email', '')}",
        f"Summary: {basics.get('summary', '')}",
        "",
        "Experience:",
    ]
    for exp in content.get("experience") or []:
        lines.append(
            f"- {exp.get('position', '')} at {exp.get('company', '')} "
            f"({exp.get('start_date', '')} - {exp.get('end_date') or 'Present'}): {exp.get('description', '')}"
        )
    lines.append("")
    lines.append("Skills: " + ", ".join(content.get("skills") or []))
    education = content.get("education") or []
    if education:
        lines.append("")
        lines.append("Education:")
        for edu in education:
            lines.append(f"- {edu.get('degree', '')} from {edu.get('institution', '')} ({edu.get('year', '')})")
    return "\n".join(lines)


class LLMClient:
    """Request/response wrapper around an OpenAI-compatible chat API.

    Every call asks for a JSON object, parses it, and coerces the fields
    through the matching schema. Transport errors, empty replies and
    unparseable JSON raise :class:`AIServiceError`; nothing is retried.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini",
                 base_url: Optional[str] = None, timeout: float = 60.0,
                 question_count: int = 5, client: Any = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.question_count = question_count
        self._client = client

    @classmethod
    def from_config(cls, config) -> "LLMClient":
        return cls(
            api_key=config.get("LLM_API_KEY"),
            model=config.get("LLM_MODEL", "gpt-4o-mini"),
            base_url=config.get("LLM_BASE_URL"),
            timeout=config.get("LLM_TIMEOUT", 60.0),
            question_count=config.get("INTERVIEW_QUESTION_COUNT", 5),
        )

    def get_client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("OPENAI_API_KEY or OPENROUTER_API_KEY must be set")
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _complete_json(self, system_prompt: str, user_prompt: str, failure: str) -> Any:
        log.info("calling LLM model=%s prompt length=%d", self.model, len(user_prompt))
        try:
            completion = self.get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
            )
            content = completion.choices[0].message.content
        except Exception as e:
            log.error("LLM call failed: %s", e)
            raise AIServiceError(failure) from e

        if not content:
            log.error("LLM returned an empty response")
            raise AIServiceError(failure)

        try:
            return json.loads(_strip_fences(content))
        except ValueError as e:
            log.error("LLM response is not valid JSON: %s; snippet=%r", e, content[:200])
            raise AIServiceError(failure) from e

    def _complete_object(self, system_prompt: str, user_prompt: str, failure: str) -> Dict[str, Any]:
        data = self._complete_json(system_prompt, user_prompt, failure)
        if not isinstance(data, dict):
            log.error("LLM response is not a JSON object: %s", type(data).__name__)
            raise AIServiceError(failure)
        return data

    # ------------------------------
    # Resume
    # ------------------------------
    def analyze_resume(self, content: Dict[str, Any], job_description: Optional[str] = None) -> ATSAnalysis:
        system_prompt = (
            "You are an expert ATS (Applicant Tracking System) analyzer and career coach. "
            "Provide detailed, actionable feedback to help candidates optimize their resumes. "
            "Respond with a single JSON object only."
        )
        target = f" for this job: {job_description}" if job_description else ""
        user_prompt = (
            f"Analyze this resume for ATS compatibility{target}.\n\n"
            f"Resume:\n{_resume_block(content)}\n\n"
            "Provide a comprehensive ATS analysis with:\n"
            "1. Overall ATS compatibility score (0-100)\n"
            "2. Key keywords found and missing\n"
            "3. Specific suggestions for improvement\n"
            "4. Resume strengths\n"
            "5. Resume weaknesses\n\n"
            "Respond in JSON with this structure: "
            "{\"score\": number, \"keywords\": string[], \"suggestions\": string[], "
            "\"strengths\": string[], \"weaknesses\": string[]}"
        )
        data = self._complete_object(system_prompt, user_prompt, ANALYZE_FAILED)
        return ATSAnalysis.model_validate(data)

    def optimize_resume(self, content: Dict[str, Any], target_role: Optional[str] = None) -> List[Optimization]:
        system_prompt = (
            "You are an expert resume writer who specializes in ATS-optimized, impact-driven resume content. "
            "Respond with a single JSON object only."
        )
        basics = content.get("basics") or {}
        experience = "\n\n".join(
            f"experience-{i}: {exp.get('position', '')} at {exp.get('company', '')}: {exp.get('description', '')}"
            for i, exp in enumerate(content.get("experience") or [])
        )
        goal = f"for a {target_role} role" if target_role else "for better ATS compatibility and impact"
        user_prompt = (
            f"Optimize this resume {goal}.\n\n"
            f"Summary: {basics.get('summary', '')}\n\n"
            f"Experience:\n{experience}\n\n"
            "Provide specific optimizations for the summary and each experience description. Make them "
            "action-oriented with strong verbs, quantified where possible, ATS-friendly and concise.\n\n"
            "Respond in JSON: {\"optimizations\": [{\"section\": \"summary\" or \"experience-0\", "
            "\"experience-1\", ..., \"original\": string, \"optimized\": string, \"improvement\": string}]}"
        )
        data = self._complete_json(system_prompt, user_prompt, OPTIMIZE_FAILED)
        items = data.get("optimizations") if isinstance(data, dict) else data
        if not isinstance(items, list):
            return []
        out = []
        for item in items:
            if not isinstance(item, dict):
                continue
            opt = Optimization.model_validate(item)
            if SECTION_RE.match(opt.section):
                out.append(opt)
        return out

    # ------------------------------
    # Interview
    # ------------------------------
    def generate_questions(self, job_role: str, question_type: str,
                           resume_content: Optional[Dict[str, Any]] = None) -> List[str]:
        system_prompt = (
            "You are an experienced technical recruiter and interviewer who creates insightful interview questions. "
            "Respond with a single JSON object only."
        )
        background = ""
        if resume_content:
            roles = "\n".join(
                f"- {exp.get('position', '')} at {exp.get('company', '')}"
                for exp in resume_content.get("experience") or []
            )
            skills = ", ".join(resume_content.get("skills") or [])
            background = f" based on this candidate's background:\n\nExperience:\n{roles}\n\nSkills: {skills}"
        user_prompt = (
            f"Generate {self.question_count} {question_type} interview questions for a {job_role} position{background}.\n\n"
            "Question types:\n"
            "- technical: role-specific technical questions and problem-solving scenarios\n"
            "- hr: behavioral questions about past experiences (\"Tell me about a time when...\")\n"
            "- mixed: a balance of technical and behavioral questions\n\n"
            "Generate challenging but fair questions that assess key competencies for the role.\n\n"
            "Respond in JSON: {\"questions\": [\"question 1\", \"question 2\", ...]}"
        )
        data = self._complete_object(system_prompt, user_prompt, QUESTIONS_FAILED)
        questions = data.get("questions")
        if not isinstance(questions, list):
            return []
        return [q.strip() for q in questions if isinstance(q, str) and q.strip()]

    def evaluate_answer(self, question: str, answer: str, job_role: str) -> AnswerEvaluation:
        system_prompt = (
            "You are an expert interview coach who provides constructive, actionable feedback "
            "to help candidates improve their interview performance. Respond with a single JSON object only."
        )
        user_prompt = (
            f"Evaluate this interview answer for a {job_role} position:\n\n"
            f"Question: {question}\n\n"
            f"Answer: {answer}\n\n"
            "Provide:\n"
            "1. Score (0-100) based on relevance, clarity, depth, and structure\n"
            "2. Key strengths demonstrated in the answer\n"
            "3. Areas for improvement\n"
            "4. Constructive feedback summary\n\n"
            "Respond in JSON: {\"score\": number, \"strengths\": string[], "
            "\"improvements\": string[], \"feedback\": string}"
        )
        data = self._complete_object(system_prompt, user_prompt, EVALUATE_FAILED)
        return AnswerEvaluation.model_validate(data)

    def generate_report(self, job_role: str, answered: List[Dict[str, Any]]) -> ReportData:
        system_prompt = (
            "You are an expert interview coach and evaluator who provides comprehensive, actionable feedback. "
            "Respond with a single JSON object only."
        )
        transcript = "\n".join(
            f"Q{i}: {qa['question']}\nA{i}: {qa['answer']}\nScore: {qa['score']}/100\n"
            for i, qa in enumerate(answered, start=1)
        )
        user_prompt = (
            f"Generate a comprehensive interview performance report for a {job_role} interview.\n\n"
            f"Questions and answers:\n{transcript}\n"
            "Provide an overall assessment with:\n"
            "1. Confidence score (0-100): clarity, decisiveness and communication style\n"
            "2. Grammar score (0-100): language quality, articulation and professionalism\n"
            "3. Relevance score (0-100): how well answers addressed the questions\n"
            "4. Overall score (0-100): weighted average of all factors\n"
            "5. Key strengths demonstrated\n"
            "6. Areas for improvement\n"
            "7. Detailed summary with actionable recommendations\n\n"
            "Respond in JSON: {\"confidence_score\": number, \"grammar_score\": number, "
            "\"relevance_score\": number, \"overall_score\": number, "
            "\"feedback\": {\"strengths\": string[], \"improvements\": string[], \"summary\": string}}"
        )
        data = self._complete_object(system_prompt, user_prompt, REPORT_FAILED)
        return ReportData.model_validate(data)


def get_llm() -> LLMClient:
    return current_app.extensions["career_llm"]
