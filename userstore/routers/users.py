from __future__ import annotations

import logging
from dataclasses import replace

from fastapi import APIRouter, HTTPException, Request, Response, status

from userstore.domain.errors import NotFoundError, UserStoreError
from userstore.domain.user import User
from userstore.schemas import UserCreated, UserIn, UserOut
from userstore.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


def _get_user_service(request: Request) -> UserService:
    svc = getattr(getattr(request.app, "state", None), "user_service", None)
    if not svc:
        raise RuntimeError("UserService not configured")
    return svc


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status.HTTP_404_NOT_FOUND, f"User {exc.user_id} not found")


def _storage_failure(exc: UserStoreError) -> HTTPException:
    logger.exception("User storage failure: %s", exc)
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "User storage unavailable")


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, request: Request):
    svc = _get_user_service(request)
    try:
        user = svc.get_user_by_id(user_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    except UserStoreError as exc:
        raise _storage_failure(exc)
    return UserOut(created_at=user.created_at, display_name=user.display_name, email=user.email)


@router.post("", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserIn, request: Request):
    svc = _get_user_service(request)
    try:
        new_id = svc.create_user(User(display_name=payload.display_name, email=payload.email))
    except UserStoreError as exc:
        raise _storage_failure(exc)
    return UserCreated(id=new_id)


@router.put("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_user(user_id: int, payload: UserIn, request: Request):
    svc = _get_user_service(request)
    try:
        # created_at is kept from the stored record
        current = svc.get_user_by_id(user_id)
        svc.update_user(replace(current, display_name=payload.display_name, email=payload.email))
    except NotFoundError as exc:
        raise _not_found(exc)
    except UserStoreError as exc:
        raise _storage_failure(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, request: Request):
    svc = _get_user_service(request)
    try:
        svc.delete_user(user_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    except UserStoreError as exc:
        raise _storage_failure(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
