# lendtrust/api/v1/endpoints/auth.py
from datetime import timedelta

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from lendtrust.api.v1.views import http_error
from lendtrust.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from lendtrust.core.rate_limiter import limiter
from lendtrust.core.security import (
    create_access_token, get_current_active_user, get_password_hash, get_services, verify_password,
)
from lendtrust.core.trust import get_trust_badge
from lendtrust.models.token import Token
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Authentication"])


# --- POST /auth/token ---
@router.post("/token", response_model=Token)
@limiter.limit("10/minute")
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    services: Services = Depends(get_services),
):
    user = await services.users.get_user(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Failed login attempt for '{form_data.username}'.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "invalid-credentials", "message": "Incorrect username or password"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.disabled:
        raise http_error(status.HTTP_400_BAD_REQUEST, "inactive-user", "Inactive user")

    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


# --- POST /auth/register ---
@router.post("/register", response_model=User.PublicProfile, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register_user(
    request: Request,
    user_in: User.Create = Body(...),
    services: Services = Depends(get_services),
):
    user, reason = await services.users.create_user(
        user_in.username,
        display_name=user_in.display_name,
        email=user_in.email,
        phone=user_in.phone,
        hashed_password=get_password_hash(user_in.password),
    )
    if not user:
        error = "username-taken" if reason == "Username already exists" else "invalid-username"
        raise http_error(status.HTTP_400_BAD_REQUEST, error, reason)
    return services.users.to_public_profile(user)


# --- GET /auth/me ---
@router.get("/me", response_model=User.Me)
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return User.Me(**current_user.model_dump(), badge=get_trust_badge(current_user.trust_score))
