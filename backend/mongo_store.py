# mongo_store.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from errors import DuplicateRecordError
from storage import Store, _question_doc, _report_doc, _resume_doc, _session_doc, _user_doc
from helpers import _now

log = logging.getLogger(__name__)


def _to_mongo(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    # stringify id for JSON
    doc["id"] = str(doc["_id"])
    del doc["_id"]
    return doc


class MongoStore(Store):
    """Deployment store. Ids are the same uuid strings the memory store uses,
    kept in ``_id``."""

    def __init__(self, db):
        self.db = db
        self._indexed = False

    @classmethod
    def from_uri(cls, uri: str, db_name: str) -> "MongoStore":
        client = MongoClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        return cls(client[db_name])

    def _get_db(self):
        # Ensure indexes once, on first use rather than at app start
        if not self._indexed:
            self.db.users.create_index([("username", ASCENDING)], unique=True, name="uniq_username")
            self.db.resumes.create_index([("user_id", ASCENDING), ("updated_at", DESCENDING)], name="resumes_user")
            self.db.interview_sessions.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)], name="sessions_user")
            self.db.interview_questions.create_index(
                [("session_id", ASCENDING), ("order", ASCENDING)], unique=True, name="uniq_question_order"
            )
            self.db.interview_reports.create_index([("session_id", ASCENDING)], unique=True, name="uniq_report_session")
            self._indexed = True
            log.info("mongo indexes ensured on %s", self.db.name)
        return self.db

    def _insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        db = self._get_db()
        try:
            db[collection].insert_one(_to_mongo(doc))
        except DuplicateKeyError as e:
            raise DuplicateRecordError(collection) from e
        return doc

    def _find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return _from_mongo(self._get_db()[collection].find_one(query))

    def _find(self, collection: str, query: Dict[str, Any], sort) -> List[Dict[str, Any]]:
        cur = self._get_db()[collection].find(query).sort(sort)
        return [_from_mongo(d) for d in cur]

    def _set(self, collection: str, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = self._get_db()[collection].find_one_and_update(
            {"_id": record_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return _from_mongo(doc)

    # -------- Users --------
    def get_user(self, user_id):
        return self._find_one("users", {"_id": user_id})

    def get_user_by_username(self, username):
        return self._find_one("users", {"username": username})

    def create_user(self, username, password_hash):
        return self._insert("users", _user_doc(username, password_hash))

    # -------- Resumes --------
    def create_resume(self, user_id, title, content, template="modern"):
        return self._insert("resumes", _resume_doc(user_id, title, content, template))

    def get_resume(self, resume_id):
        return self._find_one("resumes", {"_id": resume_id})

    def list_resumes_by_user(self, user_id):
        return self._find("resumes", {"user_id": user_id}, [("updated_at", DESCENDING), ("_id", ASCENDING)])

    def update_resume(self, resume_id, updates):
        return self._set("resumes", resume_id, {**updates, "updated_at": _now()})

    def delete_resume(self, resume_id):
        res = self._get_db().resumes.delete_one({"_id": resume_id})
        return res.deleted_count > 0

    # -------- Interview sessions --------
    def create_session(self, user_id, job_role, question_type):
        return self._insert("interview_sessions", _session_doc(user_id, job_role, question_type))

    def get_session(self, session_id):
        return self._find_one("interview_sessions", {"_id": session_id})

    def list_sessions_by_user(self, user_id):
        return self._find("interview_sessions", {"user_id": user_id}, [("created_at", DESCENDING), ("_id", ASCENDING)])

    def update_session(self, session_id, updates):
        return self._set("interview_sessions", session_id, updates)

    # -------- Interview questions --------
    def create_question(self, session_id, question_text, order):
        return self._insert("interview_questions", _question_doc(session_id, question_text, order))

    def get_question(self, question_id):
        return self._find_one("interview_questions", {"_id": question_id})

    def list_questions_by_session(self, session_id):
        return self._find("interview_questions", {"session_id": session_id}, [("order", ASCENDING)])

    def update_question(self, question_id, updates):
        return self._set("interview_questions", question_id, updates)

    # -------- Interview reports --------
    def create_report(self, session_id, report):
        return self._insert("interview_reports", _report_doc(session_id, report))

    def get_report(self, report_id):
        return self._find_one("interview_reports", {"_id": report_id})

    def get_report_by_session(self, session_id):
        return self._find_one("interview_reports", {"session_id": session_id})
