"""
Visit tracking: raw events, per-session summaries and project view counts.

Visitor and session ids are opaque client-generated strings; they are
recorded as given and never treated as an authenticated identity.
"""

import time
from datetime import datetime
from typing import Callable, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import EVENT, PROJECT, SESSION, to_object_id, utcnow
from logger import get_logger
from schemas import AnalyticsEvent

logger = get_logger(__name__)

ANONYMOUS_VISITOR = "anonymous"


def fallback_session_id() -> str:
    return f"session-{int(time.time() * 1000)}"


def client_ip(forwarded_for: Optional[str], real_ip: Optional[str], peer: Optional[str]) -> Optional[str]:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return real_ip or peer or None


class EventRecorder:
    def __init__(self, db: Database, clock: Callable[[], datetime] = utcnow):
        self._events = db[EVENT]
        self._sessions = db[SESSION]
        self._projects = db[PROJECT]
        self._clock = clock

    def record_visit(
        self,
        page: str,
        visitor_id: Optional[str],
        session_id: Optional[str],
        project_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Record one page view. Failures are logged, never raised."""
        visitor_id = visitor_id or ANONYMOUS_VISITOR
        session_id = session_id or fallback_session_id()
        try:
            now = self._clock()
            event = AnalyticsEvent(
                visitor_id=visitor_id,
                session_id=session_id,
                page=page,
                project_id=project_id,
                ip_address=ip_address,
                user_agent=user_agent,
                timestamp=now,
            )
            self._events.insert_one(event.model_dump())
            self._touch_session(session_id, visitor_id, page, now)
            if project_id:
                self._increment_project_views(project_id)
        except Exception:
            logger.exception(f"Failed to record visit to '{page}' (session {session_id})")

    def _touch_session(self, session_id: str, visitor_id: str, page: str, now: datetime):
        update = {
            "$inc": {"page_views": 1},
            "$set": {"last_page": page, "end_time": now},
            "$setOnInsert": {"visitor_id": visitor_id, "start_time": now},
        }
        try:
            self._sessions.update_one({"_id": session_id}, update, upsert=True)
        except DuplicateKeyError:
            # lost the insert race for a new session; the document exists now
            self._sessions.update_one({"_id": session_id}, update)

    def _increment_project_views(self, project_id: str):
        oid = to_object_id(project_id)
        result = None
        if oid is not None:
            result = self._projects.update_one({"_id": oid}, {"$inc": {"view_count": 1}})
        if result is None or result.matched_count == 0:
            logger.warning(f"View tracked for unknown project {project_id}")
