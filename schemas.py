"""
Database Schemas for the Portfolio API

Each Pydantic model = one MongoDB collection (lowercased class name).
Fields are snake_case in Python and in storage, camelCase on the wire.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Auth
class Admin(CamelModel):
    email: str
    password_hash: str


class AdminIdentity(CamelModel):
    id: str
    email: str


# Content
class Profile(CamelModel):
    id: Optional[str] = None
    greeting: str = ""
    name: str
    title: str
    bio: str = ""
    skills: List[str] = []
    profile_image: Optional[str] = None  # blob storage url
    resume_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None


class Stat(CamelModel):
    id: Optional[str] = None
    number: str  # display string, e.g. "10+"
    label: str
    icon: str = ""
    background: str = ""
    order: int = 0


class AboutSection(CamelModel):
    id: Optional[str] = None
    description: str
    tools: List[str] = []
    expertise: List[str] = []
    conclusion: str = ""


class Project(CamelModel):
    id: Optional[str] = None  # may be a client temporary id before first save
    title: str
    domain: str = ""
    badge: str = ""
    description: str = ""
    details: str = ""  # paragraphs separated by blank lines
    card_gradient: str = ""
    card_label: str = ""
    youtube_id: Optional[str] = None
    github_url: Optional[str] = None
    images: List[str] = []  # blob storage urls
    published: bool = True
    view_count: int = 0
    order: int = 0

    @property
    def paragraphs(self) -> List[str]:
        return [p.strip() for p in self.details.split("\n\n") if p.strip()]


class Portfolio(CamelModel):
    profile: Profile
    stats: List[Stat]
    about: AboutSection
    projects: List[Project]


# Analytics
class AnalyticsEvent(CamelModel):
    visitor_id: str
    session_id: str
    page: str
    project_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime


class Session(CamelModel):
    session_id: str
    visitor_id: str
    page_views: int = 0
    last_page: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None


class DailyVisits(CamelModel):
    date: str  # YYYY-MM-DD
    visits: int


class PageViews(CamelModel):
    page: str
    views: int


class ProjectViews(CamelModel):
    id: str
    title: str
    view_count: int


class VisitorSummary(CamelModel):
    visitor_id: str
    total_visits: int
    first_visit: datetime
    last_visit: datetime


class AnalyticsSummary(CamelModel):
    total_visits: int
    unique_visitors: int
    daily_visits: List[DailyVisits]
    page_views: List[PageViews]
    project_views: List[ProjectViews]
    recent_sessions: List[Session]
    recent_visitors: List[VisitorSummary]


# Admin writes: {type, data} tagged by "type"
class ProfileUpdate(BaseModel):
    type: Literal["profile"]
    data: Profile


class StatsUpdate(BaseModel):
    type: Literal["stats"]
    data: List[Stat]


class AboutUpdate(BaseModel):
    type: Literal["about"]
    data: AboutSection


class ProjectsUpdate(BaseModel):
    type: Literal["projects"]
    data: List[Project]


PortfolioUpdate = Annotated[
    Union[ProfileUpdate, StatsUpdate, AboutUpdate, ProjectsUpdate],
    Field(discriminator="type"),
]
