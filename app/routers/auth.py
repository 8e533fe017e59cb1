"""PIN login for the family account.

Endpoints:
- GET /api/auth/status - Has the account been set up?
- POST /api/auth/setup - First-run PIN
- POST /api/auth/login - PIN -> bearer token
- POST /api/auth/change-pin
- GET /api/auth/me
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user
from ..models import User
from ..schemas import (
    AuthStatusOut, SetupRequest, LoginRequest, ChangePinRequest,
    TokenOut, UserOut, SuccessOut,
)
from ..services import auth as auth_service

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("recipebox.auth")


@router.get("/auth/status", response_model=AuthStatusOut)
def auth_status(db: Session = Depends(get_db)):
    return AuthStatusOut(exists=auth_service.get_family_user(db) is not None)


@router.post("/auth/setup", response_model=TokenOut, status_code=201)
def setup_account(payload: SetupRequest, db: Session = Depends(get_db)):
    if auth_service.get_family_user(db):
        raise HTTPException(status_code=409, detail="Account already set up")
    if payload.confirm_pin is not None and payload.pin != payload.confirm_pin:
        raise HTTPException(status_code=400, detail="PINs do not match.")

    try:
        user = auth_service.create_family_user(db, payload.pin)
    except auth_service.PinValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TokenOut(access_token=auth_service.create_access_token(user.id))


@router.post("/auth/login", response_model=TokenOut)
@limiter.limit("10/minute")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = auth_service.authenticate(db, payload.pin)
    except auth_service.AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    logger.info(f"User {user.id} logged in")
    return TokenOut(access_token=auth_service.create_access_token(user.id))


@router.post("/auth/change-pin", response_model=SuccessOut)
def change_pin(
    payload: ChangePinRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        auth_service.change_pin(db, user, payload.current_pin, payload.new_pin)
    except (auth_service.AuthenticationError, auth_service.PinValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessOut()


@router.get("/auth/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
