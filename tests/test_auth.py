from datetime import timedelta

import pytest
from bson import ObjectId

from auth import (
    authenticate,
    create_access_token,
    ensure_admin,
    hash_password,
    issue_token,
    verify_admin,
    verify_password,
)
from database import ADMIN
from schemas import AdminIdentity


@pytest.fixture
def admin(db):
    ensure_admin(db, "Owner@Example.com", "s3cret")
    return authenticate(db, "owner@example.com", "s3cret")


@pytest.mark.auth
def test_password_hash_roundtrip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


@pytest.mark.auth
def test_ensure_admin_is_idempotent(db):
    ensure_admin(db, "owner@example.com", "s3cret")
    ensure_admin(db, "owner@example.com", "changed")
    assert db[ADMIN].count_documents({}) == 1
    # the first password stays
    assert authenticate(db, "owner@example.com", "s3cret") is not None
    assert authenticate(db, "owner@example.com", "changed") is None


@pytest.mark.auth
def test_authenticate(admin, db):
    assert isinstance(admin, AdminIdentity)
    assert admin.email == "owner@example.com"
    assert authenticate(db, "owner@example.com", "nope") is None
    assert authenticate(db, "someone@example.com", "s3cret") is None


@pytest.mark.auth
def test_token_resolves_to_admin(admin, db):
    assert verify_admin(db, issue_token(admin)) == admin


@pytest.mark.auth
@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_invalid_tokens(db, admin, token):
    assert verify_admin(db, token) is None


@pytest.mark.auth
def test_expired_token(db, admin):
    token = create_access_token({"sub": admin.id, "role": "admin"}, expires_delta=timedelta(seconds=-1))
    assert verify_admin(db, token) is None


@pytest.mark.auth
def test_token_for_removed_admin(db, admin):
    token = issue_token(admin)
    db[ADMIN].delete_many({})
    assert verify_admin(db, token) is None


@pytest.mark.auth
def test_token_without_admin_role(db, admin):
    assert verify_admin(db, create_access_token({"sub": admin.id})) is None
    assert verify_admin(db, create_access_token({"sub": str(ObjectId()), "role": "admin"})) is None
