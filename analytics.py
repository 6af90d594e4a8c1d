"""
Analytics summary computed from raw events on every call.

All counts are exact; nothing is cached or materialized between calls.
"""

from datetime import datetime, timedelta
from typing import Optional

from pymongo import DESCENDING
from pymongo.database import Database

import settings
from database import EVENT, PROJECT, SESSION, storage_errors, utcnow
from schemas import (
    AnalyticsSummary,
    DailyVisits,
    PageViews,
    ProjectViews,
    Session,
    VisitorSummary,
)


class AnalyticsAggregator:
    def __init__(
        self,
        db: Database,
        window_days: int = settings.ANALYTICS_WINDOW_DAYS,
        top_projects: int = settings.ANALYTICS_TOP_PROJECTS,
        recent_limit: int = settings.ANALYTICS_RECENT_LIMIT,
    ):
        self.db = db
        self.window_days = window_days
        self.top_projects = top_projects
        self.recent_limit = recent_limit

    def get_summary(self, now: Optional[datetime] = None) -> AnalyticsSummary:
        now = now or utcnow()
        with storage_errors("analytics_summary"):
            return AnalyticsSummary(
                total_visits=self.db[EVENT].count_documents({}),
                unique_visitors=len(self.db[EVENT].distinct("visitor_id")),
                daily_visits=self.daily_visits(now),
                page_views=self.page_views(),
                project_views=self.project_views(),
                recent_sessions=self.recent_sessions(),
                recent_visitors=self.recent_visitors(),
            )

    def daily_visits(self, now: datetime):
        """Events per calendar day (UTC) within the trailing window, oldest day first."""
        since = now - timedelta(days=self.window_days)
        pipeline = [
            {"$match": {"timestamp": {"$gte": since}}},
            {"$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$timestamp"}},
                "visits": {"$sum": 1},
            }},
            {"$sort": {"_id": 1}},
        ]
        return [DailyVisits(date=row["_id"], visits=row["visits"]) for row in self.db[EVENT].aggregate(pipeline)]

    def page_views(self):
        pipeline = [
            {"$group": {"_id": "$page", "views": {"$sum": 1}}},
            {"$sort": {"views": -1, "_id": 1}},
        ]
        return [PageViews(page=row["_id"], views=row["views"]) for row in self.db[EVENT].aggregate(pipeline)]

    def project_views(self):
        cursor = (
            self.db[PROJECT]
            .find({}, {"title": 1, "view_count": 1})
            .sort([("view_count", DESCENDING), ("order", 1)])
            .limit(self.top_projects)
        )
        return [
            ProjectViews(id=str(doc["_id"]), title=doc["title"], view_count=doc.get("view_count", 0))
            for doc in cursor
        ]

    def recent_sessions(self):
        cursor = self.db[SESSION].find().sort("start_time", DESCENDING).limit(self.recent_limit)
        return [
            Session(
                session_id=doc["_id"],
                visitor_id=doc["visitor_id"],
                page_views=doc.get("page_views", 0),
                last_page=doc.get("last_page"),
                start_time=doc["start_time"],
                end_time=doc.get("end_time"),
            )
            for doc in cursor
        ]

    def recent_visitors(self):
        pipeline = [
            {
                "$group": {
                    "_id": "$visitor_id",
                    "total_visits": {"$sum": 1},
                    "first_visit": {"$min": "$timestamp"},
                    "last_visit": {"$max": "$timestamp"},
                }
            },
            {"$sort": {"last_visit": -1, "_id": 1}},
            {"$limit": self.recent_limit},
        ]
        return [
            VisitorSummary(
                visitor_id=row["_id"],
                total_visits=row["total_visits"],
                first_visit=row["first_visit"],
                last_visit=row["last_visit"],
            )
            for row in self.db[EVENT].aggregate(pipeline)
        ]
