# resume_api.py
from __future__ import annotations

from flask import Blueprint, Response, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.utils import secure_filename

import reviewer
from auth import current_user_id
from helpers import to_json
from latex import render_latex
from llm_client import get_llm
from schemas import AnalyzeRequest, ApplyOptimizationRequest, OptimizeRequest, ResumeCreate, ResumeUpdate
from storage import get_store

resumes_bp = Blueprint("resumes", __name__)


def _body() -> dict:
    return request.get_json(silent=True) or {}


@resumes_bp.post("")
@jwt_required()
def create_resume():
    data = ResumeCreate.model_validate(_body())
    resume = reviewer.create_resume(get_store(), current_user_id(), data)
    return jsonify(to_json(resume)), 201


@resumes_bp.get("")
@jwt_required()
def list_resumes():
    resumes = reviewer.list_resumes(get_store(), current_user_id())
    return jsonify([to_json(r) for r in resumes])


@resumes_bp.get("/<resume_id>")
@jwt_required()
def get_resume(resume_id: str):
    resume = reviewer.owned_resume(get_store(), resume_id, current_user_id())
    return jsonify(to_json(resume))


@resumes_bp.patch("/<resume_id>")
@jwt_required()
def update_resume(resume_id: str):
    data = ResumeUpdate.model_validate(_body())
    resume = reviewer.update_resume(get_store(), resume_id, current_user_id(), data)
    return jsonify(to_json(resume))


@resumes_bp.delete("/<resume_id>")
@jwt_required()
def delete_resume(resume_id: str):
    reviewer.delete_resume(get_store(), resume_id, current_user_id())
    return jsonify({"success": True, "deleted": resume_id})


# ------------------------------
# AI aids
# ------------------------------
@resumes_bp.post("/<resume_id>/analyze")
@jwt_required()
def analyze_resume(resume_id: str):
    store = get_store()
    resume = reviewer.owned_resume(store, resume_id, current_user_id())
    data = AnalyzeRequest.model_validate(_body())
    analysis = reviewer.analyze_resume(store, get_llm(), resume, data.job_description)
    return jsonify(analysis.model_dump())


@resumes_bp.post("/<resume_id>/optimize")
@jwt_required()
def optimize_resume(resume_id: str):
    resume = reviewer.owned_resume(get_store(), resume_id, current_user_id())
    data = OptimizeRequest.model_validate(_body())
    optimizations = reviewer.optimize_resume(get_llm(), resume, data.target_role)
    return jsonify({"optimizations": [o.model_dump() for o in optimizations]})


@resumes_bp.post("/<resume_id>/apply-optimization")
@jwt_required()
def apply_optimization(resume_id: str):
    store = get_store()
    resume = reviewer.owned_resume(store, resume_id, current_user_id())
    data = ApplyOptimizationRequest.model_validate(_body())
    updated = reviewer.apply_optimization(store, resume, data.section, data.optimized_text)
    return jsonify(to_json(updated))


@resumes_bp.get("/<resume_id>/latex")
@jwt_required()
def export_latex(resume_id: str):
    resume = reviewer.owned_resume(get_store(), resume_id, current_user_id())
    latex = render_latex(resume["content"], resume.get("template") or "modern")
    filename = secure_filename(resume.get("title") or "") or "resume"
    return Response(
        latex,
        mimetype="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}.tex"'},
    )
