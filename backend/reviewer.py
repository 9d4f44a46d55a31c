# reviewer.py
"""Resume service: owner-checked CRUD plus the AI analyze/optimize steps."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from errors import AccessDenied, NotFound, ValidationFailed
from llm_client import LLMClient
from schemas import SECTION_RE, ATSAnalysis, Optimization, ResumeCreate, ResumeUpdate
from storage import Store

log = logging.getLogger(__name__)


def owned_resume(store: Store, resume_id: str, user_id: str) -> Dict[str, Any]:
    resume = store.get_resume(resume_id)
    if not resume:
        raise NotFound("Resume not found")
    if resume["user_id"] != user_id:
        log.warning("user %s denied access to resume %s", user_id, resume_id)
        raise AccessDenied()
    return resume


def _saved(resume: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # deleted between the owner check and the write
    if resume is None:
        raise NotFound("Resume not found")
    return resume


def create_resume(store: Store, user_id: str, data: ResumeCreate) -> Dict[str, Any]:
    resume = store.create_resume(
        user_id=user_id,
        title=data.title,
        content=data.content.model_dump(),
        template=data.template,
    )
    log.info("resume %s created for user %s", resume["id"], user_id)
    return resume


def list_resumes(store: Store, user_id: str) -> List[Dict[str, Any]]:
    return store.list_resumes_by_user(user_id)


def update_resume(store: Store, resume_id: str, user_id: str, data: ResumeUpdate) -> Dict[str, Any]:
    owned_resume(store, resume_id, user_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return _saved(store.update_resume(resume_id, updates))


def delete_resume(store: Store, resume_id: str, user_id: str) -> None:
    owned_resume(store, resume_id, user_id)
    store.delete_resume(resume_id)
    log.info("resume %s deleted", resume_id)


def analyze_resume(store: Store, llm: LLMClient, resume: Dict[str, Any],
                   job_description: Optional[str] = None) -> ATSAnalysis:
    analysis = llm.analyze_resume(resume["content"], job_description)
    store.update_resume(resume["id"], {"ats_score": analysis.score})
    log.info("resume %s analyzed, ats_score=%d", resume["id"], analysis.score)
    return analysis


def optimize_resume(llm: LLMClient, resume: Dict[str, Any], target_role: Optional[str] = None) -> List[Optimization]:
    return llm.optimize_resume(resume["content"], target_role)


def apply_optimization(store: Store, resume: Dict[str, Any], section: str, optimized_text: str) -> Dict[str, Any]:
    content = resume["content"]
    match = SECTION_RE.match(section)
    if not match:
        raise ValidationFailed("Unknown section", [{"field": "section", "message": "unknown section key"}])

    if match.group(2) is None:
        content.setdefault("basics", {})["summary"] = optimized_text
    else:
        index = int(match.group(2))
        experience = content.get("experience") or []
        if index >= len(experience):
            raise ValidationFailed(
                "Unknown section",
                [{"field": "section", "message": f"no experience entry at index {index}"}],
            )
        experience[index]["description"] = optimized_text

    return _saved(store.update_resume(resume["id"], {"content": content}))
