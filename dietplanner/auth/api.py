# -*- coding: utf-8 -*-
"""Auth — API endpoints.

A successful login or an authenticated ``/me`` call is the qualifying
activity that advances ``last_active_at``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from ..config import settings
from ..users.dependencies import get_user_store
from ..users.models import UserPublic, UserRole
from ..users.storage import EmailAlreadyRegistered, UserStore
from .models import AuthResponse, LoginRequest, RegisterRequest
from .security import TOKEN_COOKIE_NAME, create_access_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _user_public(row: dict) -> UserPublic:
    return UserPublic(
        id=row["id"],
        email=row["email"],
        role=row["role"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        created_at=row["created_at"],
        last_active_at=row.get("last_active_at"),
    )


def _auth_response(row: dict, token: str) -> AuthResponse:
    return AuthResponse(user=_user_public(row), token=token, firstName=row.get("first_name"))


def _set_auth_cookie(resp: Response, token: str) -> None:
    max_age = int(settings.token_ttl_days) * 24 * 60 * 60
    resp.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=bool(settings.cookie_secure),
        samesite="lax",
        max_age=max_age,
        path="/",
    )


def _authenticate(store: UserStore, request: LoginRequest, role: UserRole) -> dict:
    user = store.get_user_by_email(request.email)
    if not user or user["role"] != role.value or not verify_password(request.password, user["password_hash"]):
        logger.info("Rejected %s login for %s", role.value, request.email.lower().strip())
        raise HTTPException(status_code=401, detail="Invalid credentials")
    store.touch_last_active(user["id"])
    return store.get_user_by_id(user["id"]) or user


@router.post("/register", response_model=AuthResponse, summary="Register a new user or dietitian")
def register(request: RegisterRequest, response: Response, store: UserStore = Depends(get_user_store)):
    try:
        user = store.create_user(
            email=request.email,
            password_hash=hash_password(request.password),
            role=request.role.value,
            first_name=request.first_name,
            last_name=request.last_name,
        )
    except EmailAlreadyRegistered as exc:
        raise HTTPException(status_code=400, detail="Email already registered") from exc

    token = create_access_token(user_id=user["id"], email=user["email"], role=user["role"])
    _set_auth_cookie(response, token)
    return _auth_response(user, token)


@router.post("/login", response_model=AuthResponse, summary="User login")
def login(request: LoginRequest, response: Response, store: UserStore = Depends(get_user_store)):
    user = _authenticate(store, request, UserRole.USER)
    token = create_access_token(user_id=user["id"], email=user["email"], role=user["role"])
    _set_auth_cookie(response, token)
    return _auth_response(user, token)


@router.post("/dietitian/login", response_model=AuthResponse, summary="Dietitian login")
def dietitian_login(request: LoginRequest, response: Response, store: UserStore = Depends(get_user_store)):
    user = _authenticate(store, request, UserRole.DIETITIAN)
    token = create_access_token(user_id=user["id"], email=user["email"], role=user["role"])
    _set_auth_cookie(response, token)
    return _auth_response(user, token)


@router.post("/logout", summary="Logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=UserPublic, summary="Get current user")
def me(user: dict = Depends(get_current_user), store: UserStore = Depends(get_user_store)):
    store.touch_last_active(user["id"])
    return _user_public(store.get_user_by_id(user["id"]) or user)
