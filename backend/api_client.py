# api_client.py
"""Thin REST client for the Career Studio API.

Mirrors what the browser client does: keeps the bearer token in local
storage (here a small JSON file) and attaches it to every request.
"""
from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger(__name__)

DEFAULT_TOKEN_PATH = Path.home() / ".career_studio" / "auth.json"
TIMEOUT = 90  # AI-backed endpoints can be slow


class ApiError(Exception):
    def __init__(self, status: int, message: str, payload: Any = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload


class CareerStudioClient:
    def __init__(self, base_url: str = "http://localhost:8000", token_path: Optional[os.PathLike] = None,
                 session: Optional[requests.Session] = None, timeout: float = TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token_path = Path(token_path) if token_path else DEFAULT_TOKEN_PATH
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------
    # Token storage
    # ------------------------------
    @property
    def token(self) -> Optional[str]:
        try:
            with open(self.token_path, "r", encoding="utf-8") as fh:
                return json.load(fh).get("token")
        except (OSError, ValueError):
            return None

    def _save_token(self, payload: Dict[str, Any]) -> None:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_path, "w", encoding="utf-8") as fh:
            json.dump({"token": payload["token"], "id": payload.get("id"), "username": payload.get("username")}, fh)

    def logout(self) -> None:
        try:
            self.token_path.unlink()
        except FileNotFoundError:
            pass

    # ------------------------------
    # Transport
    # ------------------------------
    def _request(self, method: str, path: str, json_body: Any = None, raw: bool = False) -> Any:
        headers = {}
        token = self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        resp = self.session.request(
            method, f"{self.base_url}{path}", json=json_body, headers=headers, timeout=self.timeout
        )
        if resp.status_code >= 400:
            try:
                payload = resp.json()
            except ValueError:
                payload = None
            message = (payload or {}).get("error") if isinstance(payload, dict) else None
            log.info("%s %s -> %s", method, path, resp.status_code)
            raise ApiError(resp.status_code, message or resp.text or "request failed", payload)
        if raw:
            return resp.text
        return resp.json()

    # ------------------------------
    # Auth
    # ------------------------------
    def register(self, username: str, password: str) -> Dict[str, Any]:
        payload = self._request("POST", "/api/auth/register", {"username": username, "password": password})
        self._save_token(payload)
        return payload

    def login(self, username: str, password: str) -> Dict[str, Any]:
        payload = self._request("POST", "/api/auth/login", {"username": username, "password": password})
        self._save_token(payload)
        return payload

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/me")

    # ------------------------------
    # Resumes
    # ------------------------------
    def list_resumes(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/resumes")

    def create_resume(self, title: str, content: Dict[str, Any], template: str = "modern") -> Dict[str, Any]:
        return self._request("POST", "/api/resumes", {"title": title, "content": content, "template": template})

    def get_resume(self, resume_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/resumes/{resume_id}")

    def update_resume(self, resume_id: str, **updates) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/resumes/{resume_id}", updates)

    def delete_resume(self, resume_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/resumes/{resume_id}")

    def analyze_resume(self, resume_id: str, job_description: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/api/resumes/{resume_id}/analyze", {"job_description": job_description})

    def optimize_resume(self, resume_id: str, target_role: Optional[str] = None) -> List[Dict[str, Any]]:
        body = self._request("POST", f"/api/resumes/{resume_id}/optimize", {"target_role": target_role})
        return body["optimizations"]

    def apply_optimization(self, resume_id: str, section: str, optimized_text: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/api/resumes/{resume_id}/apply-optimization",
            {"section": section, "optimized_text": optimized_text},
        )

    def download_latex(self, resume_id: str) -> str:
        return self._request("GET", f"/api/resumes/{resume_id}/latex", raw=True)

    # ------------------------------
    # Interviews
    # ------------------------------
    def create_interview(self, job_role: str, question_type: str) -> Dict[str, Any]:
        return self._request("POST", "/api/interviews", {"job_role": job_role, "question_type": question_type})

    def list_interviews(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/interviews")

    def get_interview(self, session_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/interviews/{session_id}")

    def update_interview(self, session_id: str, **updates) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/interviews/{session_id}", updates)

    def generate_questions(self, session_id: str, resume_id: Optional[str] = None) -> List[Dict[str, Any]]:
        body = {"resume_id": resume_id} if resume_id else {}
        return self._request("POST", f"/api/interviews/{session_id}/generate-questions", body)["questions"]

    def list_questions(self, session_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/interviews/{session_id}/questions")

    def start_interview(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/interviews/{session_id}/start")

    def complete_interview(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/interviews/{session_id}/complete")

    def answer_question(self, question_id: str, answer: str, job_role: Optional[str] = None) -> Dict[str, Any]:
        body = {"answer": answer}
        if job_role:
            body["job_role"] = job_role
        return self._request("POST", f"/api/interviews/questions/{question_id}/answer", body)

    def generate_report(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/interviews/{session_id}/report")

    def get_report(self, session_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/interviews/{session_id}/report")

    def get_or_generate_report(self, session_id: str) -> Dict[str, Any]:
        try:
            return self.get_report(session_id)
        except ApiError as e:
            if e.status != 404:
                raise
        return self.generate_report(session_id)
