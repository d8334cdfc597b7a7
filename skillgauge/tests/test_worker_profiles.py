"""
Tests for the worker profile store.

Covers the pure profile merge, registration validation and conflicts, the
overlay document, degraded operation without an overlay table and picking
up new worker columns after a migration.
"""

import copy
import dataclasses

import pytest
from sqlalchemy import func, select, text, update

from skillgauge.common.auth.user import Role
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import (
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from skillgauge.database.models import User, Worker
from skillgauge.domain.identity.repository import IdentityRepository
from skillgauge.domain.workers import (
    DEFAULT_WORKER_SCHEMA,
    WorkerProfileRepository,
    discover_worker_columns,
    merge_profile,
)
from skillgauge.domain.workers.profile import full_name_of, strip_secrets

CREDENTIALS = {"email": "Somchai@Example.com", "password": "secret123"}


def sample_profile(national_id="1-1017-00203-45-1", phone="081-234-5678", **employment):
    return {
        "personal": {"fullName": "Somchai Jaidee", "phone": phone, "gender": "male"},
        "identity": {"nationalId": national_id},
        "address": {"currentAddress": "99 Sukhumvit Rd"},
        "employment": {"position": "Mason", **employment},
        "skills": ["bricklaying", "plastering"],
    }


@pytest.fixture
def repository(session):
    return WorkerProfileRepository(session)


class TestProfileDocuments:

    def test_relational_values_win(self):
        relational = {"personal.phone": "+66812345678", "employment.position": None}
        overlay = {
            "personal": {"phone": "0812345678", "nickname": "Chai"},
            "employment": {"position": "Mason"},
        }
        snapshot = copy.deepcopy(overlay)

        merged = merge_profile(relational, overlay)

        assert merged == {
            "personal": {"phone": "+66812345678", "nickname": "Chai"},
            "employment": {"position": "Mason"},
        }
        assert overlay == snapshot
        merged["personal"]["nickname"] = "Changed"
        assert overlay["personal"]["nickname"] == "Chai"

    def test_merge_without_overlay(self):
        assert merge_profile({"identity.nationalId": "1101700203451"}, None) == {
            "identity": {"nationalId": "1101700203451"}
        }

    def test_secrets_are_stripped(self):
        profile = {"credentials": {"password": "x", "confirmPassword": "x"}, "personal": {}}
        assert strip_secrets(profile) == {"personal": {}}
        assert "credentials" in profile

    def test_full_name_falls_back_to_thai_names(self):
        profile = {"personal": {"firstNameTh": "สมชาย", "lastNameTh": "ใจดี"}}
        assert full_name_of(profile) == "สมชาย ใจดี"


class TestWorkerRegistration:

    def test_register_and_read_back(self, repository, session):
        worker = repository.register(sample_profile(), CREDENTIALS)
        profile = worker["profile"]

        assert profile["identity"]["nationalId"] == "1101700203451"
        assert profile["personal"]["phone"] == "+66812345678"
        assert profile["personal"]["fullName"] == "Somchai Jaidee"
        assert profile["address"]["currentAddress"] == "99 Sukhumvit Rd"
        assert profile["employment"]["position"] == "Mason"
        assert profile["skills"] == ["bricklaying", "plastering"]
        assert profile["credentials"] == {"email": "somchai@example.com"}
        assert worker["status"] == "active"
        assert worker["created_at"].endswith("Z")
        assert repository.get(worker["id"])["updated_at"] == worker["updated_at"]

        identities = IdentityRepository(session)
        assert identities.get_roles(worker["user_id"]) == frozenset({Role.WORKER})
        assert identities.authenticate("0812345678", "secret123").id == worker["user_id"]

    def test_overlay_never_holds_passwords(self, repository):
        profile = sample_profile()
        profile["credentials"] = {"password": "secret123", "confirmPassword": "secret123"}

        worker = repository.register(profile, CREDENTIALS)

        assert "credentials" not in repository.load_overlay(worker["id"])

    def test_twelve_digit_national_id(self, repository, session):
        with pytest.raises(ValidationError) as exc_info:
            repository.register(sample_profile(national_id="110170020345"), CREDENTIALS)
        assert exc_info.value.key == "invalid_national_id_length"
        assert session.scalar(select(func.count()).select_from(Worker)) == 0

    def test_duplicate_national_id(self, repository):
        repository.register(sample_profile(), CREDENTIALS)

        with pytest.raises(ConflictError) as exc_info:
            repository.register(
                sample_profile(phone="0899999999"),
                {"email": "other@example.com", "password": "secret123"}
            )
        assert exc_info.value.key == "duplicate_national_id"
        assert exc_info.value.status_code == 409

    def test_duplicate_email_ignores_case(self, repository):
        repository.register(sample_profile(), CREDENTIALS)

        with pytest.raises(ConflictError) as exc_info:
            repository.register(
                sample_profile(national_id="3100600123457", phone="0899999999"),
                {"email": "SOMCHAI@example.com", "password": "secret123"}
            )
        assert exc_info.value.key == "duplicate_email"

    def test_duplicate_phone(self, repository):
        repository.register(sample_profile(), CREDENTIALS)

        with pytest.raises(ConflictError) as exc_info:
            repository.register(
                sample_profile(national_id="3100600123457"),
                {"password": "secret123"}
            )
        assert exc_info.value.key == "duplicate_phone"

    @pytest.mark.parametrize("changes,credentials,key", [
        ({"identity": {"nationalId": "11017002034ab"}}, CREDENTIALS, "invalid_national_id"),
        ({"personal": {"fullName": "A", "phone": "12345"}}, CREDENTIALS, "invalid_phone"),
        ({}, {"email": "not-an-email", "password": "secret123"}, "invalid_email"),
        ({"personal": {"phone": "0812345678"}}, CREDENTIALS, "missing_full_name"),
        ({}, {"email": "a@example.com"}, "missing_password"),
        ({}, {"password": "short"}, "password_too_short"),
    ])
    def test_invalid_fields(self, repository, changes, credentials, key):
        profile = {**sample_profile(), **changes}
        with pytest.raises(ValidationError) as exc_info:
            repository.register(profile, credentials)
        assert exc_info.value.key == key


class TestWorkerMaintenance:

    @pytest.fixture
    def worker(self, repository):
        return repository.register(sample_profile(), CREDENTIALS)

    def test_update_keeps_own_unique_values(self, repository, session, worker):
        profile = sample_profile(position="Foreman")
        profile["employment"]["position"] = "Site foreman"

        updated = repository.update(
            worker["id"], profile, {"email": "somchai@example.com", "password": "newsecret1"}
        )

        assert updated["profile"]["employment"]["position"] == "Site foreman"
        assert IdentityRepository(session).authenticate("0812345678", "newsecret1")

    def test_update_conflicts_with_other_worker(self, repository, worker):
        other = repository.register(
            sample_profile(national_id="3100600123457", phone="0899999999"),
            {"password": "secret123"}
        )

        with pytest.raises(ConflictError) as exc_info:
            repository.update(other["id"], sample_profile(phone="0899999999"))
        assert exc_info.value.key == "duplicate_national_id"

    def test_update_missing_worker(self, repository):
        with pytest.raises(NotFoundError):
            repository.update("missing", sample_profile())

    def test_delete_removes_account(self, repository, session, worker):
        repository.delete(worker["id"])

        assert repository.get(worker["id"]) is None
        assert repository.load_overlay(worker["id"]) == {}
        assert session.get(User, worker["user_id"]) is None
        with pytest.raises(NotFoundError):
            repository.delete(worker["id"])

    def test_list_searches_name_and_national_id(self, repository, worker):
        repository.register(
            {
                "personal": {"fullName": "Anan Srisuk", "phone": "0899999999"},
                "identity": {"nationalId": "3100600123457"},
            },
            {"password": "secret123"}
        )

        assert [w["full_name"] for w in repository.list()["items"]] == ["Anan Srisuk", "Somchai Jaidee"]
        assert repository.list(search="somchai")["total"] == 1
        assert repository.list(search="31006")["items"][0]["full_name"] == "Anan Srisuk"
        assert repository.list(search="%")["total"] == 0
        assert repository.list(search="_")["total"] == 0


class TestSchemaEvolution:

    def test_core_schema_has_no_optional_columns(self, repository):
        assert repository.columns.worker_optional == frozenset()
        assert repository.columns.overlay_available is True

    def test_missing_required_column(self, session):
        schema = dataclasses.replace(
            DEFAULT_WORKER_SCHEMA,
            worker_required=DEFAULT_WORKER_SCHEMA.worker_required + ("badge_number",)
        )
        with pytest.raises(InternalError):
            discover_worker_columns(session.connection(), schema)

    def test_reinitialize_picks_up_new_column(self, repository, session):
        worker = repository.register(sample_profile(), CREDENTIALS)
        assert "position" not in repository.columns.worker_columns

        session.execute(text("ALTER TABLE workers ADD COLUMN position VARCHAR(100)"))
        session.commit()
        assert "position" not in repository.columns.worker_columns

        columns = repository.reinitialize()
        assert "position" in columns.worker_optional

        repository.update(worker["id"], sample_profile(position="Carpenter"))

        stored = session.execute(
            text("SELECT position FROM workers WHERE id = :id"), {"id": worker["id"]}
        ).scalar()
        assert stored == "Carpenter"
        assert repository.get(worker["id"])["profile"]["employment"]["position"] == "Carpenter"

    def test_relational_only_when_overlay_table_is_gone(self, session):
        columns = discover_worker_columns(session.connection())
        session.execute(text("DROP TABLE worker_profile_overlays"))
        session.commit()
        repository = WorkerProfileRepository(session, columns)

        worker = repository.register(sample_profile(), CREDENTIALS)

        assert repository.save_overlay(worker["id"], sample_profile()) is False
        assert session.get(Worker, worker["id"]) is not None
        assert worker["profile"]["identity"]["nationalId"] == "1101700203451"
        assert "address" not in worker["profile"]

    def test_reinitialize_recreates_overlay_table(self, session):
        session.execute(text("DROP TABLE worker_profile_overlays"))
        session.commit()
        repository = WorkerProfileRepository(session)
        assert repository.columns.overlay_available is False

        assert repository.reinitialize().overlay_available is True
        worker = repository.register(sample_profile(), CREDENTIALS)
        assert worker["profile"]["address"]["currentAddress"] == "99 Sukhumvit Rd"

    def test_overlay_failure_keeps_outer_transaction(self, session):
        columns = discover_worker_columns(session.connection())
        repository = WorkerProfileRepository(session, columns)
        worker = repository.register(sample_profile(), CREDENTIALS)
        session.execute(text("DROP TABLE worker_profile_overlays"))
        session.commit()

        with atomic(session):
            session.execute(
                update(Worker).where(Worker.id == worker["id"]).values(status="inactive")
            )
            assert repository.save_overlay(worker["id"], sample_profile()) is False
            assert session.in_transaction()

        session.expire_all()
        assert session.get(Worker, worker["id"]).status == "inactive"
        assert repository.get(worker["id"])["created_at"].endswith("Z")
