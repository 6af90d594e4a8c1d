"""
Portfolio facade: the read models served to the public page and the admin
dashboard, and dispatch of admin writes to the content repository.
"""

from typing import Optional

from pymongo.database import Database

from analytics import AnalyticsAggregator
from content import ContentRepository
from logger import get_logger
from schemas import (
    AboutUpdate,
    AnalyticsSummary,
    Portfolio,
    PortfolioUpdate,
    ProfileUpdate,
    ProjectsUpdate,
    StatsUpdate,
)
from tracking import EventRecorder

logger = get_logger(__name__)


class PortfolioService:
    def __init__(
        self,
        db: Database,
        repository: Optional[ContentRepository] = None,
        recorder: Optional[EventRecorder] = None,
        aggregator: Optional[AnalyticsAggregator] = None,
    ):
        self.repository = repository or ContentRepository(db)
        self.recorder = recorder or EventRecorder(db)
        self.aggregator = aggregator or AnalyticsAggregator(db)
        self._handlers = {
            ProfileUpdate: lambda update: self.repository.save_profile(update.data),
            StatsUpdate: lambda update: self.repository.save_stats(update.data),
            AboutUpdate: lambda update: self.repository.save_about(update.data),
            ProjectsUpdate: lambda update: self.repository.save_projects(update.data),
        }

    def get_public_portfolio(self) -> Portfolio:
        return self.repository.get_portfolio(include_unpublished=False)

    def get_admin_portfolio(self) -> Portfolio:
        return self.repository.get_portfolio(include_unpublished=True)

    def apply_update(self, update: PortfolioUpdate):
        logger.info(f"Applying '{update.type}' update")
        self._handlers[type(update)](update)

    def delete_project(self, project_id: str):
        self.repository.delete_project(project_id)

    def track(self, page: str, visitor_id: Optional[str], session_id: Optional[str], **metadata):
        self.recorder.record_visit(page, visitor_id, session_id, **metadata)

    def analytics_summary(self) -> AnalyticsSummary:
        return self.aggregator.get_summary()
