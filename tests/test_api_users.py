"""Tests for users API routes and their error envelopes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi.testclient import TestClient

from saas_backend.api import AppState, USERS_PREFIX, create_api_application
from saas_backend.api.middleware import TRACE_HEADER
from saas_backend.domain import HealthStatus, UserRecord
from saas_backend.errors import AppError


class _HealthyDatabaseService:
    def db_connection_label(self) -> str:
        return "sqlite://test"

    def db_check_health(self) -> HealthStatus:
        return HealthStatus(status="healthy", database="connected")


class _InMemoryUserRepository:
    """Dictionary-backed user repository mirroring SQL repository errors."""

    def __init__(self):
        self._users: dict[int, UserRecord] = {}
        self._next_id = 1

    def db_user_list(self, limit: int, offset: int) -> list[UserRecord]:
        ordered_users = [self._users[user_id] for user_id in sorted(self._users)]
        return ordered_users[offset : offset + limit]

    def db_user_get(self, user_id: int) -> UserRecord:
        if user_id not in self._users:
            raise AppError.not_found(f"User {user_id} not found")
        return self._users[user_id]

    def db_user_create(self, email: str, name: str) -> UserRecord:
        """Store a user, rejecting duplicate emails.

        Args:
            email: Unique email.
            name: Display name.

        Returns:
            UserRecord: Stored user.

        Raises:
            AppError: Raised with kind `CONFLICT` for duplicate emails.
        """

        if any(user.email == email for user in self._users.values()):
            raise AppError.conflict(f"email {email} is already registered")
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        user_record = UserRecord(
            user_id=self._next_id,
            email=email,
            name=name,
            created_at_utc=now,
            updated_at_utc=now,
        )
        self._users[user_record.user_id] = user_record
        self._next_id += 1
        return user_record

    def db_user_update(self, user_id: int, email: str | None, name: str | None) -> UserRecord:
        current_user = self.db_user_get(user_id)
        updated_user = UserRecord(
            user_id=user_id,
            email=email or current_user.email,
            name=name or current_user.name,
            created_at_utc=current_user.created_at_utc,
            updated_at_utc=current_user.updated_at_utc,
        )
        self._users[user_id] = updated_user
        return updated_user

    def db_user_delete(self, user_id: int) -> None:
        self.db_user_get(user_id)
        del self._users[user_id]


class _BrokenUserRepository(_InMemoryUserRepository):
    """Repository double raising an unexpected, untyped failure."""

    def db_user_list(self, limit: int, offset: int) -> list[UserRecord]:
        raise RuntimeError("socket closed with secret=abc")


def _build_client(user_repository=None) -> TestClient:
    """Create a test client for users routes.

    Args:
        user_repository: Optional repository double.

    Returns:
        TestClient: Client bound to a fresh application.
    """

    state = AppState(
        db_health_service=_HealthyDatabaseService(),
        user_repository=user_repository or _InMemoryUserRepository(),
    )
    return TestClient(create_api_application(state))


def test_api_users_create_then_read_round_trip() -> None:
    """Create a user and read it back by id and through the list route.

    Returns:
        None: Assertions validate CRUD happy path.

    Raises:
        AssertionError: Raised when payloads do not match.
    """

    client = _build_client()

    create_response = client.post(USERS_PREFIX, json={"email": "Ada@Example.com", "name": " Ada "})
    user_id = create_response.json()["id"]
    get_response = client.get(f"{USERS_PREFIX}/{user_id}")
    list_response = client.get(USERS_PREFIX, params={"limit": 10})

    assert create_response.status_code == 201
    assert create_response.json()["email"] == "ada@example.com"
    assert create_response.json()["name"] == "Ada"
    assert get_response.status_code == 200
    assert get_response.json()["id"] == user_id
    assert [user["id"] for user in list_response.json()] == [user_id]


def test_api_users_update_and_delete() -> None:
    client = _build_client()
    user_id = client.post(USERS_PREFIX, json={"email": "lin@example.com", "name": "Lin"}).json()["id"]

    update_response = client.put(f"{USERS_PREFIX}/{user_id}", json={"name": "Lin Y."})
    delete_response = client.delete(f"{USERS_PREFIX}/{user_id}")
    missing_response = client.get(f"{USERS_PREFIX}/{user_id}")

    assert update_response.status_code == 200
    assert update_response.json()["name"] == "Lin Y."
    assert update_response.json()["email"] == "lin@example.com"
    assert delete_response.status_code == 204
    assert missing_response.status_code == 404


def test_api_users_missing_user_returns_not_found_envelope() -> None:
    response = _build_client().get(f"{USERS_PREFIX}/404")

    assert response.status_code == 404
    assert response.json() == {"error": "NOT_FOUND", "message": "Not found: User 404 not found"}


def test_api_users_duplicate_email_returns_conflict() -> None:
    client = _build_client()
    client.post(USERS_PREFIX, json={"email": "sam@example.com", "name": "Sam"})

    response = client.post(USERS_PREFIX, json={"email": "sam@example.com", "name": "Sam Again"})

    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"
    assert "details" not in response.json()


def test_api_users_schema_mismatch_returns_validation_error_with_details() -> None:
    """Return 422 `VALIDATION_ERROR` with field errors for a semantically invalid body.

    Returns:
        None: Assertions validate validation envelope.

    Raises:
        AssertionError: Raised when the envelope or details are wrong.
    """

    response = _build_client().post(USERS_PREFIX, json={"email": "not-an-email", "name": ""})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert isinstance(body["details"], list)
    assert {tuple(detail["loc"])[-1] for detail in body["details"]} == {"email", "name"}


def test_api_users_malformed_json_returns_serialization_error() -> None:
    """Return 400 `SERIALIZATION_ERROR` when the body is not JSON at all.

    Returns:
        None: Assertions validate serialization envelope.

    Raises:
        AssertionError: Raised when malformed input maps to another kind.
    """

    response = _build_client().post(
        USERS_PREFIX,
        content=b'{"email": "broken@example.com",',
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "SERIALIZATION_ERROR"


def test_api_users_non_integer_id_returns_validation_error() -> None:
    response = _build_client().get(f"{USERS_PREFIX}/abc")

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_api_users_empty_update_returns_bad_request() -> None:
    client = _build_client()
    user_id = client.post(USERS_PREFIX, json={"email": "kim@example.com", "name": "Kim"}).json()["id"]

    response = client.put(f"{USERS_PREFIX}/{user_id}", json={})

    assert response.status_code == 400
    assert response.json() == {
        "error": "BAD_REQUEST",
        "message": "Bad request: at least one of email or name must be provided",
    }


def test_api_users_unexpected_failure_returns_internal_error_without_cause() -> None:
    """Convert an untyped repository failure into a generic internal error.

    The failure must not escape the application, and the response keeps the
    request trace id.

    Returns:
        None: Assertions validate internal envelope.

    Raises:
        AssertionError: Raised when the cause leaks into the body or the failure escapes.
    """

    client = _build_client(_BrokenUserRepository())

    response = client.get(USERS_PREFIX, headers={TRACE_HEADER: "broken-list"})

    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_ERROR", "message": "Internal server error: unexpected failure"}
    assert "secret" not in response.text
    assert response.headers[TRACE_HEADER] == "broken-list"
