"""
Auth business logic.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from ecommerce_api.users import repository as users_repository
from ecommerce_api.users import service as users_service

from . import schemas, security


def _issue_token(user_row: dict) -> schemas.TokenResponse:
    email = str(user_row["email"])
    role = str(user_row["role"])
    return schemas.TokenResponse(
        email=email,
        role=role,
        access_token=security.build_access_token(email=email, role=role),
    )


async def register(payload: schemas.RegisterRequest) -> schemas.AuthResponse:
    user = await users_service.create_user(
        email=payload.email,
        password=payload.password,
        role=security.ROLE_USER,
    )
    return schemas.AuthResponse(
        user=schemas.UserResponse(**user),
        token=_issue_token(user),
    )


async def login(payload: schemas.LoginRequest) -> schemas.TokenResponse:
    user_row = await users_repository.get_user_by_email(payload.email)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    is_valid = security.verify_password(payload.password, str(user_row.get("password_hash") or ""))
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    return _issue_token(user_row)


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    subject = users_repository.normalize_email(str(payload.get("sub") or ""))
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        )

    user_row = await users_repository.get_user_by_email(subject)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    # Role comes from the database, not the token.
    return users_service.to_user_response(user_row)
