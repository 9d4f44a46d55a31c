# interview_api.py
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

import interviewer
from auth import current_user_id
from helpers import to_json
from llm_client import get_llm
from reviewer import owned_resume
from schemas import AnswerRequest, GenerateQuestionsRequest, SessionCreate, SessionUpdate
from storage import get_store

interviews_bp = Blueprint("interviews", __name__)


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _session(session_id: str):
    return interviewer.owned_session(get_store(), session_id, current_user_id())


@interviews_bp.post("")
@jwt_required()
def create_session():
    data = SessionCreate.model_validate(_body())
    session = interviewer.create_session(get_store(), current_user_id(), data)
    return jsonify(to_json(session)), 201


@interviews_bp.get("")
@jwt_required()
def list_sessions():
    sessions = interviewer.list_sessions(get_store(), current_user_id())
    return jsonify([to_json(s) for s in sessions])


@interviews_bp.get("/<session_id>")
@jwt_required()
def get_session(session_id: str):
    return jsonify(to_json(_session(session_id)))


@interviews_bp.patch("/<session_id>")
@jwt_required()
def update_session(session_id: str):
    session = _session(session_id)
    data = SessionUpdate.model_validate(_body())
    return jsonify(to_json(interviewer.update_session(get_store(), session, data)))


# ------------------------------
# Lifecycle
# ------------------------------
@interviews_bp.post("/<session_id>/generate-questions")
@jwt_required()
def generate_questions(session_id: str):
    store = get_store()
    session = _session(session_id)
    data = GenerateQuestionsRequest.model_validate(_body())

    resume_content = data.resume_content.model_dump() if data.resume_content else None
    if resume_content is None and data.resume_id:
        resume_content = owned_resume(store, data.resume_id, current_user_id())["content"]

    questions = interviewer.generate_questions(store, get_llm(), session, resume_content)
    return jsonify({"questions": [to_json(q) for q in questions]})


@interviews_bp.get("/<session_id>/questions")
@jwt_required()
def list_questions(session_id: str):
    questions = interviewer.list_questions(get_store(), _session(session_id))
    return jsonify([to_json(q) for q in questions])


@interviews_bp.post("/<session_id>/start")
@jwt_required()
def start_session(session_id: str):
    return jsonify(to_json(interviewer.start_session(get_store(), _session(session_id))))


@interviews_bp.post("/<session_id>/complete")
@jwt_required()
def complete_session(session_id: str):
    return jsonify(to_json(interviewer.complete_session(get_store(), _session(session_id))))


@interviews_bp.post("/questions/<question_id>/answer")
@jwt_required()
def answer_question(question_id: str):
    store = get_store()
    question, session = interviewer.owned_question(store, question_id, current_user_id())
    data = AnswerRequest.model_validate(_body())
    result = interviewer.submit_answer(store, get_llm(), question, session, data.answer, data.job_role)
    return jsonify({"question": to_json(result["question"]), "evaluation": result["evaluation"]})


# ------------------------------
# Report
# ------------------------------
@interviews_bp.post("/<session_id>/report")
@jwt_required()
def generate_report(session_id: str):
    report = interviewer.generate_report(get_store(), get_llm(), _session(session_id))
    return jsonify(to_json(report)), 201


@interviews_bp.get("/<session_id>/report")
@jwt_required()
def get_report(session_id: str):
    return jsonify(to_json(interviewer.get_report(get_store(), _session(session_id))))
