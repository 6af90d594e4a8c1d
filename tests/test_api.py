import mongomock
import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

import settings
from database import EVENT, PROJECT, SESSION, STAT


@pytest.mark.api
def test_root_and_database_status(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/test").json()["database"] == "connected"


@pytest.mark.api
def test_public_portfolio_shape(client):
    r = client.get("/api/portfolio")
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"profile", "stats", "about", "projects"}
    assert body["profile"]["name"] == "Naveen"
    assert "profileImage" in body["profile"]
    assert {"cardGradient", "viewCount", "youtubeId"} <= set(body["projects"][0])
    assert [p["order"] for p in body["projects"]] == [1, 2, 3]


@pytest.mark.api
def test_login_sets_cookie(client):
    r = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["accessToken"]
    assert settings.AUTH_COOKIE_NAME in r.cookies


@pytest.mark.api
def test_login_rejections(client):
    r = client.post("/api/auth/login", json={"email": settings.ADMIN_EMAIL, "password": "wrong"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Invalid credentials"}
    assert client.post("/api/auth/login", json={"email": settings.ADMIN_EMAIL}).status_code == 400


@pytest.mark.api
def test_bearer_token_is_accepted(client):
    token = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    ).json()["accessToken"]
    client.cookies.clear()
    r = client.get("/api/analytics", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


@pytest.mark.api
@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/admin/portfolio"),
        ("put", "/api/portfolio"),
        ("delete", f"/api/projects/{ObjectId()}"),
        ("get", "/api/analytics"),
        ("post", "/api/upload"),
    ],
)
def test_admin_routes_require_identity(client, method, path):
    r = getattr(client, method)(path)
    assert r.status_code == 401
    assert r.json()["success"] is False


@pytest.mark.api
def test_unauthorized_write_touches_nothing(client, db):
    r = client.put("/api/portfolio", json={"type": "stats", "data": []})
    assert r.status_code == 401
    assert db["stat"].count_documents({}) == 0


@pytest.mark.api
def test_logout_clears_session(admin_client):
    assert admin_client.get("/api/admin/portfolio").status_code == 200
    admin_client.post("/api/auth/logout")
    admin_client.cookies.clear()
    assert admin_client.get("/api/admin/portfolio").status_code == 401


@pytest.mark.api
def test_update_profile_end_to_end(admin_client):
    profile = admin_client.get("/api/portfolio").json()["profile"]
    profile["name"] = "Alex"
    r = admin_client.put("/api/portfolio", json={"type": "profile", "data": profile})
    assert r.json() == {"success": True}
    assert admin_client.get("/api/portfolio").json()["profile"]["name"] == "Alex"


@pytest.mark.api
def test_update_stats_and_about(admin_client):
    stats = [
        {"id": "new-1", "number": "3", "label": "Papers", "icon": "📄", "background": "#111", "order": 1},
        {"number": "9", "label": "Dashboards", "icon": "📊", "background": "#222", "order": 2},
    ]
    assert admin_client.put("/api/portfolio", json={"type": "stats", "data": stats}).status_code == 200
    about = {"description": "Hi", "tools": ["Python"], "expertise": ["Stats"], "conclusion": "Bye"}
    assert admin_client.put("/api/portfolio", json={"type": "about", "data": about}).status_code == 200

    body = admin_client.get("/api/portfolio").json()
    assert [(s["label"], s["order"]) for s in body["stats"]] == [("Papers", 1), ("Dashboards", 2)]
    assert body["about"]["tools"] == ["Python"]


@pytest.mark.api
def test_projects_update_and_visibility(admin_client, db):
    draft = {
        "id": "new-1718000000000",
        "title": "Draft Study",
        "domain": "Retail",
        "badge": "SQL Project",
        "description": "WIP",
        "details": "Situation: a\n\nResult: b",
        "cardGradient": "linear-gradient(45deg, #000, #fff)",
        "cardLabel": "DRAFT",
        "images": [],
        "published": False,
        "order": 4,
    }
    assert admin_client.put("/api/portfolio", json={"type": "projects", "data": [draft]}).status_code == 200

    stored = db[PROJECT].find_one({"title": "Draft Study"})
    assert isinstance(stored["_id"], ObjectId)
    assert stored["card_label"] == "DRAFT"

    public = [p["title"] for p in admin_client.get("/api/portfolio").json()["projects"]]
    admin = [p["title"] for p in admin_client.get("/api/admin/portfolio").json()["projects"]]
    assert "Draft Study" not in public
    assert "Draft Study" in admin

    draft.update(id=str(stored["_id"]), published=True)
    admin_client.put("/api/portfolio", json={"type": "projects", "data": [draft]})
    assert db[PROJECT].count_documents({"title": "Draft Study"}) == 1
    assert "Draft Study" in [p["title"] for p in admin_client.get("/api/portfolio").json()["projects"]]


@pytest.mark.api
def test_update_unknown_project_is_not_found(admin_client):
    r = admin_client.put(
        "/api/portfolio",
        json={"type": "projects", "data": [{"id": str(ObjectId()), "title": "Ghost"}]},
    )
    assert r.status_code == 404
    assert r.json()["success"] is False


@pytest.mark.api
@pytest.mark.parametrize(
    "payload",
    [
        {"type": "unknown", "data": {}},
        {"type": "profile", "data": {"greeting": "Hi"}},
        {"type": "stats", "data": {"number": "1"}},
        {"data": []},
    ],
)
def test_malformed_updates_are_rejected(admin_client, payload):
    r = admin_client.put("/api/portfolio", json=payload)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid request"}


@pytest.mark.api
def test_delete_project(admin_client, db):
    project = admin_client.get("/api/admin/portfolio").json()["projects"][0]
    assert admin_client.delete(f"/api/projects/{project['id']}").json() == {"success": True}
    assert db[PROJECT].count_documents({"_id": ObjectId(project["id"])}) == 0
    assert admin_client.delete(f"/api/projects/{project['id']}").status_code == 404


@pytest.mark.api
def test_track_and_summary(admin_client, db):
    project = admin_client.get("/api/portfolio").json()["projects"][0]
    headers = {"User-Agent": "pytest-agent", "X-Forwarded-For": "198.51.100.7, 10.0.0.1"}
    for body in (
        {"page": "portfolio", "visitorId": "v1", "sessionId": "s1"},
        {"page": "project", "projectId": project["id"], "visitorId": "v1", "sessionId": "s1"},
    ):
        r = admin_client.post("/api/analytics/track", json=body, headers=headers)
        assert r.json() == {"success": True}

    assert db[SESSION].find_one({"_id": "s1"})["page_views"] == 2
    event = db[EVENT].find_one({"page": "project"})
    assert event["ip_address"] == "198.51.100.7"
    assert event["user_agent"] == "pytest-agent"

    summary = admin_client.get("/api/analytics").json()
    assert summary["totalVisits"] >= 2
    assert summary["uniqueVisitors"] == 1
    assert summary["projectViews"][0] == {"id": project["id"], "title": project["title"], "viewCount": 1}
    assert summary["recentSessions"][0]["pageViews"] == 2
    assert summary["recentVisitors"][0]["visitorId"] == "v1"


@pytest.mark.api
@pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"visitorId": "v1"}'])
def test_track_always_succeeds(client, db, body):
    r = client.post("/api/analytics/track", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert db[EVENT].count_documents({}) == 0


@pytest.mark.api
def test_upload_image(admin_client):
    r = admin_client.post("/api/upload", files={"file": ("me.png", b"\x89PNG fake", "image/png")})
    assert r.status_code == 200
    url = r.json()["url"]
    assert url.startswith(settings.UPLOAD_URL_PREFIX + "/")
    assert url.endswith(".png")
    assert admin_client.get(url).content == b"\x89PNG fake"


@pytest.mark.api
def test_upload_rejects_non_images(admin_client):
    r = admin_client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert r.json()["error"] == "Unsupported file type"


@pytest.mark.api
def test_upload_rejects_oversized_files(admin_client, app):
    app.state.blobs.max_bytes = 4
    r = admin_client.post("/api/upload", files={"file": ("big.png", b"\x89PNG012345", "image/png")})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "File too large"}


@pytest.mark.api
@pytest.mark.parametrize("bad", [{"projectId": 42}, {"visitorId": 7}, {"sessionId": ["s"]}])
def test_track_keeps_event_with_malformed_optional_field(client, db, bad):
    body = {"page": "project", "projectId": None, "visitorId": "v1", "sessionId": "s1", **bad}
    r = client.post("/api/analytics/track", json=body)
    assert r.json() == {"success": True}
    assert db[EVENT].count_documents({"page": "project"}) == 1


@pytest.mark.api
def test_track_numeric_project_id_is_ignored(client, db):
    body = {"page": "project", "projectId": 42, "visitorId": "v1", "sessionId": "s1"}
    assert client.post("/api/analytics/track", json=body).json() == {"success": True}
    event = db[EVENT].find_one({"page": "project"})
    assert event["project_id"] is None
    assert event["visitor_id"] == "v1"
    assert db[SESSION].find_one({"_id": "s1"})["page_views"] == 1


@pytest.mark.api
def test_storage_failure_is_a_coarse_server_error(admin_client, monkeypatch):
    replace_one = mongomock.Collection.replace_one

    def broken(self, *args, **kwargs):
        if self.name == STAT:
            raise PyMongoError("disk full")
        return replace_one(self, *args, **kwargs)

    before = admin_client.get("/api/portfolio").json()["stats"]
    monkeypatch.setattr(mongomock.Collection, "replace_one", broken)

    stats = [{"number": "1", "label": "Only", "icon": "1", "background": "#000", "order": 1}]
    r = admin_client.put("/api/portfolio", json={"type": "stats", "data": stats})

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Server error"}
    assert admin_client.get("/api/portfolio").json()["stats"] == before
