# storage.py
from __future__ import annotations
import copy
import itertools
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from flask import current_app

from errors import DuplicateRecordError
from helpers import _now, new_id
from schemas import SessionStatus

Record = Dict[str, Any]


class Store(ABC):
    """Persistence capability set shared by every backend.

    Records are plain dicts keyed by ``id``. ``update_*`` methods return the
    updated record, or ``None`` when the id is unknown.
    """

    # -------- Users --------
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[Record]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[Record]: ...

    @abstractmethod
    def create_user(self, username: str, password_hash: str) -> Record: ...

    # -------- Resumes --------
    @abstractmethod
    def create_resume(self, user_id: str, title: str, content: Dict[str, Any], template: str = "modern") -> Record: ...

    @abstractmethod
    def get_resume(self, resume_id: str) -> Optional[Record]: ...

    @abstractmethod
    def list_resumes_by_user(self, user_id: str) -> List[Record]: ...

    @abstractmethod
    def update_resume(self, resume_id: str, updates: Dict[str, Any]) -> Optional[Record]: ...

    @abstractmethod
    def delete_resume(self, resume_id: str) -> bool: ...

    # -------- Interview sessions --------
    @abstractmethod
    def create_session(self, user_id: str, job_role: str, question_type: str) -> Record: ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Record]: ...

    @abstractmethod
    def list_sessions_by_user(self, user_id: str) -> List[Record]: ...

    @abstractmethod
    def update_session(self, session_id: str, updates: Dict[str, Any]) -> Optional[Record]: ...

    def start_session(self, session_id: str) -> Optional[Record]:
        return self.update_session(session_id, {"status": SessionStatus.IN_PROGRESS.value, "started_at": _now()})

    def complete_session(self, session_id: str) -> Optional[Record]:
        return self.update_session(session_id, {"status": SessionStatus.COMPLETED.value, "completed_at": _now()})

    # -------- Interview questions --------
    @abstractmethod
    def create_question(self, session_id: str, question_text: str, order: int) -> Record: ...

    @abstractmethod
    def get_question(self, question_id: str) -> Optional[Record]: ...

    @abstractmethod
    def list_questions_by_session(self, session_id: str) -> List[Record]: ...

    @abstractmethod
    def update_question(self, question_id: str, updates: Dict[str, Any]) -> Optional[Record]: ...

    # -------- Interview reports --------
    @abstractmethod
    def create_report(self, session_id: str, report: Dict[str, Any]) -> Record: ...

    @abstractmethod
    def get_report(self, report_id: str) -> Optional[Record]: ...

    @abstractmethod
    def get_report_by_session(self, session_id: str) -> Optional[Record]: ...


# ------------------------------
# Record builders shared by the backends
# ------------------------------
def _user_doc(username: str, password_hash: str) -> Record:
    return {"id": new_id(), "username": username, "password_hash": password_hash}


def _resume_doc(user_id: str, title: str, content: Dict[str, Any], template: str) -> Record:
    now = _now()
    return {
        "id": new_id(),
        "user_id": user_id,
        "title": title,
        "content": content,
        "ats_score": 0,
        "template": template or "modern",
        "created_at": now,
        "updated_at": now,
    }


def _session_doc(user_id: str, job_role: str, question_type: str) -> Record:
    return {
        "id": new_id(),
        "user_id": user_id,
        "job_role": job_role,
        "question_type": question_type,
        "status": SessionStatus.SETUP.value,
        "created_at": _now(),
        "started_at": None,
        "completed_at": None,
    }


def _question_doc(session_id: str, question_text: str, order: int) -> Record:
    return {
        "id": new_id(),
        "session_id": session_id,
        "question_text": question_text,
        "answer": None,
        "score": None,
        "order": order,
        "created_at": _now(),
    }


def _report_doc(session_id: str, report: Dict[str, Any]) -> Record:
    return {
        "id": new_id(),
        "session_id": session_id,
        "confidence_score": report["confidence_score"],
        "grammar_score": report["grammar_score"],
        "relevance_score": report["relevance_score"],
        "overall_score": report["overall_score"],
        "feedback": report["feedback"],
        "created_at": _now(),
    }


class MemoryStore(Store):
    """Single-process store backed by dicts. Not shared across processes and
    lost on restart; used for tests and local development."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Record]] = {
            "users": {},
            "resumes": {},
            "sessions": {},
            "questions": {},
            "reports": {},
        }
        # write sequence breaks ties between equal timestamps
        self._seq = itertools.count()
        self._written: Dict[str, int] = {}

    def _put(self, table: str, doc: Record) -> Record:
        self.tables[table][doc["id"]] = copy.deepcopy(doc)
        self._written[doc["id"]] = next(self._seq)
        return copy.deepcopy(doc)

    def _get(self, table: str, record_id: str) -> Optional[Record]:
        doc = self.tables[table].get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    def _update(self, table: str, record_id: str, updates: Dict[str, Any]) -> Optional[Record]:
        doc = self.tables[table].get(record_id)
        if doc is None:
            return None
        doc.update(copy.deepcopy(updates))
        self._written[record_id] = next(self._seq)
        return copy.deepcopy(doc)

    def _where(self, table: str, **match) -> List[Record]:
        return [
            copy.deepcopy(d) for d in self.tables[table].values()
            if all(d.get(k) == v for k, v in match.items())
        ]

    # -------- Users --------
    def get_user(self, user_id):
        return self._get("users", user_id)

    def get_user_by_username(self, username):
        found = self._where("users", username=username)
        return found[0] if found else None

    def create_user(self, username, password_hash):
        if self.get_user_by_username(username):
            raise DuplicateRecordError("username")
        return self._put("users", _user_doc(username, password_hash))

    # -------- Resumes --------
    def create_resume(self, user_id, title, content, template="modern"):
        return self._put("resumes", _resume_doc(user_id, title, content, template))

    def get_resume(self, resume_id):
        return self._get("resumes", resume_id)

    def list_resumes_by_user(self, user_id):
        out = self._where("resumes", user_id=user_id)
        out.sort(key=lambda d: (d["updated_at"], self._written[d["id"]]), reverse=True)
        return out

    def update_resume(self, resume_id, updates):
        return self._update("resumes", resume_id, {**updates, "updated_at": _now()})

    def delete_resume(self, resume_id):
        self._written.pop(resume_id, None)
        return self.tables["resumes"].pop(resume_id, None) is not None

    # -------- Interview sessions --------
    def create_session(self, user_id, job_role, question_type):
        return self._put("sessions", _session_doc(user_id, job_role, question_type))

    def get_session(self, session_id):
        return self._get("sessions", session_id)

    def list_sessions_by_user(self, user_id):
        out = self._where("sessions", user_id=user_id)
        out.sort(key=lambda d: (d["created_at"], self._written[d["id"]]), reverse=True)
        return out

    def update_session(self, session_id, updates):
        return self._update("sessions", session_id, updates)

    # -------- Interview questions --------
    def create_question(self, session_id, question_text, order):
        if self._where("questions", session_id=session_id, order=order):
            raise DuplicateRecordError("question order")
        return self._put("questions", _question_doc(session_id, question_text, order))

    def get_question(self, question_id):
        return self._get("questions", question_id)

    def list_questions_by_session(self, session_id):
        return sorted(self._where("questions", session_id=session_id), key=lambda d: d["order"])

    def update_question(self, question_id, updates):
        return self._update("questions", question_id, updates)

    # -------- Interview reports --------
    def create_report(self, session_id, report):
        if self.get_report_by_session(session_id):
            raise DuplicateRecordError("report session_id")
        return self._put("reports", _report_doc(session_id, report))

    def get_report(self, report_id):
        return self._get("reports", report_id)

    def get_report_by_session(self, session_id):
        found = self._where("reports", session_id=session_id)
        return found[0] if found else None


def build_store(config) -> Store:
    backend = (config.get("STORE_BACKEND") or "memory").lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "mongo":
        from mongo_store import MongoStore
        return MongoStore.from_uri(config["MONGO_URI"], config["MONGO_DB"])
    raise RuntimeError(f"Unknown STORE_BACKEND: {backend}")


def get_store() -> Store:
    return current_app.extensions["career_store"]
