"""Users resource router composition."""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from saas_backend.api.schemas import UserCreate, UserRead, UserUpdate
from saas_backend.db import UserRepositoryPort
from saas_backend.errors import AppError, ErrorResponse

_ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def api_create_users_router(user_repository: UserRepositoryPort) -> APIRouter:
    """Create users router with list, create, read, update and delete routes.

    Paths are relative; the application mounts this router under `/api/users`.

    Args:
        user_repository: DB-layer user repository.

    Returns:
        APIRouter: Router exposing users CRUD endpoints.

    Raises:
        ValueError: Raised when user_repository is invalid.
    """

    if user_repository is None:
        raise ValueError("user_repository must not be None")

    router = APIRouter(tags=["users"], responses=_ERROR_RESPONSES)

    @router.get("")
    def api_user_list(
        limit: int = Query(default=50, ge=1, le=200),
        offset: int = Query(default=0, ge=0),
    ) -> list[UserRead]:
        """Return one page of users ordered by id."""

        user_records = user_repository.db_user_list(limit=limit, offset=offset)
        return [UserRead.from_record(user_record) for user_record in user_records]

    @router.post("", status_code=status.HTTP_201_CREATED)
    def api_user_create(payload: UserCreate) -> UserRead:
        user_record = user_repository.db_user_create(email=payload.email, name=payload.name)
        return UserRead.from_record(user_record)

    @router.get("/{user_id}")
    def api_user_get(user_id: int) -> UserRead:
        return UserRead.from_record(user_repository.db_user_get(user_id))

    @router.put("/{user_id}")
    def api_user_update(user_id: int, payload: UserUpdate) -> UserRead:
        """Update provided fields of one user.

        Raises:
            AppError: Raised with kind `BAD_REQUEST` when the payload changes nothing.
        """

        if payload.email is None and payload.name is None:
            raise AppError.bad_request("at least one of email or name must be provided")
        user_record = user_repository.db_user_update(user_id, email=payload.email, name=payload.name)
        return UserRead.from_record(user_record)

    @router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def api_user_delete(user_id: int) -> Response:
        user_repository.db_user_delete(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
