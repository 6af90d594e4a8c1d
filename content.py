"""
Content repository: profile, stats, about section and projects.

Profile, stats and about are singleton documents (``_id = "default"``);
stats keep their whole list embedded so a save replaces it in one atomic
write. Every part is seeded exactly once on first read from the seed table
below.
"""

from typing import Any, Dict, List

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import (
    ABOUT,
    PROFILE,
    PROJECT,
    SEED,
    SINGLETON_ID,
    STAT,
    create_document,
    get_documents,
    normalize,
    storage_errors,
    to_object_id,
    utcnow,
)
from exceptions import NotFound
from logger import get_logger
from schemas import AboutSection, Portfolio, Profile, Project, Stat

logger = get_logger(__name__)

# ==========
# Seed table
# ==========
DEFAULT_PROFILE: Dict[str, Any] = {
    "greeting": "Hello, I am",
    "name": "Naveen",
    "title": "Data Scientist",
    "bio": (
        "Hello! I'm Naveen, a Data Scientist skilled in Machine Learning, Python, and SQL. "
        "I love turning complex data into clear insights that help solve real-world problems."
    ),
    "skills": ["MACHINE LEARNING", "PYTHON", "SQL", "NUMPY", "PANDAS"],
    "profile_image": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=400&h=400&fit=crop&crop=face",
    "resume_url": "#",
    "linkedin_url": "#",
    "github_url": "#",
}

DEFAULT_STATS: List[Dict[str, Any]] = [
    {"number": "1", "label": "Python Project", "icon": "🐍", "background": "#3776ab", "order": 1},
    {"number": "2", "label": "ML Projects", "icon": "🤖", "background": "#ff6b6b", "order": 2},
    {"number": "1", "label": "SQL Project", "icon": "🗃️", "background": "#336791", "order": 3},
]

DEFAULT_ABOUT: Dict[str, Any] = {
    "description": (
        "Hello! I'm Naveen, a Data Scientist skilled in Machine Learning, Python, and SQL. "
        "I love turning complex data into clear insights that help solve real-world problems."
    ),
    "tools": [
        "🔹 I use Python to handle data and create models that learn from it.",
        "🔹 I'm good with SQL for organizing and retrieving data.",
        "🔹 I also work with tools like Jupyter Notebooks, Pandas, and Matplotlib.",
    ],
    "expertise": [
        "🔹 Building models that predict future trends and improve business decisions.",
        "🔹 Making data tasks faster and more accurate with automation.",
        "🔹 Designing easy-to-understand data visualizations for better decision-making.",
    ],
    "conclusion": (
        "I believe in the power of learning from data and constantly improving. "
        "I enjoy sharing what I learn and connecting with others!"
    ),
}

DEFAULT_PROJECTS: List[Dict[str, Any]] = [
    {
        "title": "AtliQ Hotels Data Analysis Project",
        "domain": "Hospitality",
        "badge": "Python Project",
        "description": (
            "AtliQ Grands faced declining market share due to a lack of data analytics capabilities. "
            "Tasked with analyzing historical data, I used Pandas in Jupyter Notebook for exploratory "
            "analysis, identifying crucial inefficiencies. The insights gained led to a 10% rise in "
            "occupancy rates and a 15% increase in satisfaction scores on key platforms."
        ),
        "details": (
            "Situation: AtliQ Grands faced declining market share and revenue in a competitive sector "
            "without internal data analytics capabilities.\n\n"
            "Task: I was tasked to analyze historical data and derive insights to improve market "
            "position and revenue.\n\n"
            "Action: Using Pandas in Jupyter Notebook, I conducted exploratory data analysis to "
            "identify key performance trends and inefficiencies.\n\n"
            "Result: The insights led to a 10% increase in occupancy rates and a 15% improvement in "
            "satisfaction scores on major booking platforms."
        ),
        "card_gradient": "linear-gradient(45deg, #FFD700, #FFA500)",
        "card_label": "HOTEL BOOKINGS",
        "youtube_id": "xkx7hbKh6Ec",
        "github_url": "#",
        "images": [
            "https://images.unsplash.com/photo-1551288049-bebda4e38f71?w=400&h=300&fit=crop",
            "https://images.unsplash.com/photo-1460925895917-afdab827c52f?w=400&h=300&fit=crop",
        ],
        "order": 1,
    },
    {
        "title": "Price Range Prediction",
        "domain": "Food & Beverages",
        "badge": "ML Project",
        "description": (
            "Develop a predictive model that will assist in finding a price range that avoids the "
            "risks of overpricing or underpricing the product based on various features."
        ),
        "details": (
            "Situation: Need to develop an accurate pricing strategy for food & beverage products.\n\n"
            "Task: Create a machine learning model to predict optimal price ranges.\n\n"
            "Action: Implemented various ML algorithms and performed feature engineering.\n\n"
            "Result: Achieved high accuracy in price prediction, helping optimize pricing strategies."
        ),
        "card_gradient": "linear-gradient(45deg, #4169E1, #1E90FF)",
        "card_label": "PRICE PREDICTION",
        "github_url": "#",
        "images": ["https://images.unsplash.com/photo-1518186285589-2f7649de83e0?w=400&h=300&fit=crop"],
        "order": 2,
    },
    {
        "title": "Healthcare Premium Prediction",
        "domain": "Healthcare",
        "badge": "ML Project",
        "description": (
            "Developed a high accuracy predictive model to estimate healthcare insurance premiums "
            "based on factors such as age, smoking habits, BMI, and other relevant variables."
        ),
        "details": (
            "Situation: Healthcare insurance companies need accurate premium estimation.\n\n"
            "Task: Build a regression model to predict insurance premiums.\n\n"
            "Action: Used advanced regression techniques and feature selection.\n\n"
            "Result: Created a highly accurate model for premium prediction."
        ),
        "card_gradient": "linear-gradient(45deg, #87CEEB, #4682B4)",
        "card_label": "HEALTHCARE PREDICTION",
        "github_url": "#",
        "images": ["https://images.unsplash.com/photo-1576091160399-112ba8d25d1f?w=400&h=300&fit=crop"],
        "order": 3,
    },
]

# Fixed ids make concurrent or interrupted seeding converge on one copy
DEFAULT_PROJECT_IDS: List[ObjectId] = [ObjectId(f"{i:024x}") for i in range(1, len(DEFAULT_PROJECTS) + 1)]


def _stat_items(stats: List[Stat]) -> List[Dict[str, Any]]:
    # fresh ids on every save
    return [{**stat.model_dump(exclude={"id"}), "id": str(ObjectId())} for stat in stats]


def _editable_fields(project: Project) -> Dict[str, Any]:
    return project.model_dump(exclude={"id", "view_count"})


class ContentRepository:
    def __init__(self, db: Database):
        self.db = db

    # ----- reads -----

    def get_portfolio(self, include_unpublished: bool = False) -> Portfolio:
        with storage_errors("get_portfolio"):
            profile = self._get_singleton(PROFILE, DEFAULT_PROFILE)
            stats = self._get_singleton(
                STAT, {"items": _stat_items([Stat(**s) for s in DEFAULT_STATS])}
            )
            about = self._get_singleton(ABOUT, DEFAULT_ABOUT)
            self._seed_projects()
            projects = self.list_projects(include_unpublished)

        items = sorted(stats.get("items", []), key=lambda s: s.get("order", 0))
        return Portfolio(
            profile=Profile.model_validate(profile),
            stats=[Stat.model_validate(item) for item in items],
            about=AboutSection.model_validate(about),
            projects=projects,
        )

    def list_projects(self, include_unpublished: bool = False) -> List[Project]:
        filter_dict = {} if include_unpublished else {"published": True}
        with storage_errors("list_projects"):
            docs = get_documents(self.db, PROJECT, filter_dict, sort=[("order", ASCENDING)])
        return [Project.model_validate(doc) for doc in docs]

    def _get_singleton(self, collection_name: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
        collection = self.db[collection_name]
        doc = collection.find_one({"_id": SINGLETON_ID})
        if doc is None:
            # $setOnInsert keeps a concurrent first read from overwriting a fresh seed
            try:
                result = collection.update_one(
                    {"_id": SINGLETON_ID},
                    {"$setOnInsert": {**defaults, "created_at": utcnow()}},
                    upsert=True,
                )
                if result.upserted_id is not None:
                    logger.info(f"Seeded default {collection_name}")
            except DuplicateKeyError:
                pass
            doc = collection.find_one({"_id": SINGLETON_ID})
        return normalize(doc)

    def _seed_projects(self):
        """
        Insert the default projects once.

        Defaults carry fixed ids and are upserted with $setOnInsert, so
        concurrent first readers each finish the same seed before reading
        and a seed interrupted midway is completed by the next read. The
        sentinel is written last; after that, removed defaults stay removed.
        """
        if self.db[SEED].find_one({"_id": PROJECT}) is not None:
            return

        user_project = self.db[PROJECT].find_one({"_id": {"$nin": DEFAULT_PROJECT_IDS}}, {"_id": 1})
        if user_project is None:
            now = utcnow()
            for oid, default in zip(DEFAULT_PROJECT_IDS, DEFAULT_PROJECTS):
                fields = _editable_fields(Project(**default))
                try:
                    self.db[PROJECT].update_one(
                        {"_id": oid},
                        {"$setOnInsert": {**fields, "view_count": 0, "created_at": now, "updated_at": now}},
                        upsert=True,
                    )
                except DuplicateKeyError:
                    pass
            logger.info(f"Seeded {len(DEFAULT_PROJECTS)} default projects")

        try:
            self.db[SEED].update_one({"_id": PROJECT}, {"$setOnInsert": {"seeded_at": utcnow()}}, upsert=True)
        except DuplicateKeyError:
            pass

    # ----- writes -----

    def save_profile(self, profile: Profile):
        with storage_errors("save_profile"):
            self.db[PROFILE].replace_one(
                {"_id": SINGLETON_ID},
                {**profile.model_dump(exclude={"id"}), "updated_at": utcnow()},
                upsert=True,
            )
        logger.info("Profile saved")

    def save_about(self, about: AboutSection):
        with storage_errors("save_about"):
            self.db[ABOUT].replace_one(
                {"_id": SINGLETON_ID},
                {**about.model_dump(exclude={"id"}), "updated_at": utcnow()},
                upsert=True,
            )
        logger.info("About section saved")

    def save_stats(self, stats: List[Stat]):
        """Replace the whole stat list in one single-document write."""
        with storage_errors("save_stats"):
            self.db[STAT].replace_one(
                {"_id": SINGLETON_ID},
                {"items": _stat_items(stats), "updated_at": utcnow()},
                upsert=True,
            )
        logger.info(f"Stats replaced ({len(stats)} items)")

    def save_projects(self, projects: List[Project]) -> List[str]:
        """
        Update projects that carry a server id, insert the rest.

        Ids that are not ObjectIds are client temporaries and are dropped.
        Projects missing from the list are left alone. Unknown server ids
        raise NotFound before anything is written; a storage error midway
        can still leave earlier entries of the list saved.
        """
        object_ids = [to_object_id(project.id) for project in projects]
        wanted = [oid for oid in object_ids if oid is not None]

        saved = []
        with storage_errors("save_projects"):
            if wanted:
                found = {doc["_id"] for doc in self.db[PROJECT].find({"_id": {"$in": wanted}}, {"_id": 1})}
                missing = [str(oid) for oid in wanted if oid not in found]
                if missing:
                    raise NotFound("Project not found", details={"ids": missing})

            for project, oid in zip(projects, object_ids):
                fields = _editable_fields(project)
                if oid is None:
                    fields["view_count"] = 0
                    saved.append(create_document(self.db, PROJECT, fields))
                else:
                    fields["updated_at"] = utcnow()
                    self.db[PROJECT].update_one({"_id": oid}, {"$set": fields})
                    saved.append(str(oid))

        logger.info(f"Saved {len(saved)} projects")
        return saved

    def delete_project(self, project_id: str):
        oid = to_object_id(project_id)
        if oid is None:
            raise NotFound("Project not found", details={"id": project_id})
        with storage_errors("delete_project"):
            result = self.db[PROJECT].delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFound("Project not found", details={"id": project_id})
        logger.info(f"Deleted project {project_id}")
