# interviewer.py
"""Mock interview session lifecycle.

setup -> in_progress -> completed. Each step is persisted on its own; an AI
failure between steps leaves the session valid and the caller simply
re-invokes the step that failed.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

from errors import AccessDenied, AIServiceError, InvalidTransition, NotFound, ValidationFailed
from llm_client import QUESTIONS_FAILED, LLMClient
from schemas import AnswerEvaluation, SessionCreate, SessionStatus, SessionUpdate
from storage import Store

log = logging.getLogger(__name__)

_RANK = {
    SessionStatus.SETUP.value: 0,
    SessionStatus.IN_PROGRESS.value: 1,
    SessionStatus.COMPLETED.value: 2,
}


def owned_session(store: Store, session_id: str, user_id: str) -> Dict[str, Any]:
    session = store.get_session(session_id)
    if not session:
        raise NotFound("Interview session not found")
    if session["user_id"] != user_id:
        log.warning("user %s denied access to session %s", user_id, session_id)
        raise AccessDenied()
    return session


def create_session(store: Store, user_id: str, data: SessionCreate) -> Dict[str, Any]:
    session = store.create_session(user_id, data.job_role, data.question_type.value)
    log.info("interview session %s created (%s, %s)", session["id"], data.job_role, data.question_type.value)
    return session


def list_sessions(store: Store, user_id: str) -> List[Dict[str, Any]]:
    return store.list_sessions_by_user(user_id)


def _check_forward(session: Dict[str, Any], target: str) -> None:
    if _RANK[target] < _RANK[session["status"]]:
        raise InvalidTransition(f"Cannot move session from {session['status']} back to {target}")


def start_session(store: Store, session: Dict[str, Any]) -> Dict[str, Any]:
    # questions are not required; a session started without them just has nothing to answer
    if session["status"] == SessionStatus.IN_PROGRESS.value:
        return session
    _check_forward(session, SessionStatus.IN_PROGRESS.value)
    updated = store.start_session(session["id"])
    log.info("interview session %s started", session["id"])
    return updated


def complete_session(store: Store, session: Dict[str, Any]) -> Dict[str, Any]:
    if session["status"] == SessionStatus.COMPLETED.value:
        return session
    updated = store.complete_session(session["id"])
    log.info("interview session %s completed", session["id"])
    return updated


def update_session(store: Store, session: Dict[str, Any], data: SessionUpdate) -> Dict[str, Any]:
    updates = data.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    status = updates.pop("status", None)
    if status is not None:
        _check_forward(session, status)
    if updates:
        session = store.update_session(session["id"], updates)
    if status == SessionStatus.IN_PROGRESS.value:
        session = start_session(store, session)
    elif status == SessionStatus.COMPLETED.value:
        session = complete_session(store, session)
    return session


def generate_questions(store: Store, llm: LLMClient, session: Dict[str, Any],
                       resume_content: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    texts = llm.generate_questions(session["job_role"], session["question_type"], resume_content)
    if not texts:
        raise AIServiceError(QUESTIONS_FAILED)

    # orders stay gapless across repeated generation: continue after the last one
    start = len(store.list_questions_by_session(session["id"]))
    created = [
        store.create_question(session["id"], text, start + i)
        for i, text in enumerate(texts)
    ]
    log.info("generated %d questions for session %s", len(created), session["id"])
    return created


def list_questions(store: Store, session: Dict[str, Any]) -> List[Dict[str, Any]]:
    return store.list_questions_by_session(session["id"])


def owned_question(store: Store, question_id: str, user_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    question = store.get_question(question_id)
    if not question:
        raise NotFound("Question not found")
    session = store.get_session(question["session_id"])
    if not session or session["user_id"] != user_id:
        log.warning("user %s denied access to question %s", user_id, question_id)
        raise AccessDenied()
    return question, session


def submit_answer(store: Store, llm: LLMClient, question: Dict[str, Any], session: Dict[str, Any],
                  answer: str, job_role: Optional[str] = None) -> Dict[str, Any]:
    evaluation: AnswerEvaluation = llm.evaluate_answer(
        question["question_text"], answer, job_role or session["job_role"]
    )
    # last write wins; re-answering overwrites in place
    updated = store.update_question(question["id"], {"answer": answer, "score": evaluation.score})
    log.info("question %s answered, score=%d", question["id"], evaluation.score)
    return {"question": updated, "evaluation": evaluation.model_dump()}


def answered_questions(questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {"question": q["question_text"], "answer": q["answer"], "score": q["score"]}
        for q in questions
        if q.get("answer") and q.get("score") is not None
    ]


def generate_report(store: Store, llm: LLMClient, session: Dict[str, Any]) -> Dict[str, Any]:
    answered = answered_questions(store.list_questions_by_session(session["id"]))
    if not answered:
        raise ValidationFailed("No answered questions found")

    report = llm.generate_report(session["job_role"], answered)
    # a second report for the same session trips the store's uniqueness rule
    saved = store.create_report(session["id"], report.model_dump())
    log.info("report %s stored for session %s (%d answers)", saved["id"], session["id"], len(answered))
    return saved


def get_report(store: Store, session: Dict[str, Any]) -> Dict[str, Any]:
    report = store.get_report_by_session(session["id"])
    if not report:
        raise NotFound("Report not found")
    return report
