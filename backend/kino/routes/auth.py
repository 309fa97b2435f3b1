# kino/routes/auth.py
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from kino.core.config import settings
from kino.core.database import get_db
from kino.core.password_policy import ensure_strong_password
from kino.core.rate_limit import maybe_limit
from kino.core.security import create_access_token
from kino.dependencies.auth import get_current_user
from kino.models.user import User
from kino.schemas.auth import (
    LoginIn,
    LoginOut,
    MessageOut,
    RegisterIn,
    RegisterOut,
    ResendVerifyIn,
    VerifyEmailIn,
    VerifyOut,
)
from kino.schemas.profile import AvatarOut, ProfileOut, ProfileUpdateIn
from kino.services.authentication import authenticate
from kino.services.auth_errors import AuthFlowError
from kino.services.avatars import delete_stored_avatar, store_avatar
from kino.services.profiles import get_or_create_profile, update_profile
from kino.services.registration import confirm_email, register_account, resend_verification

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _to_http(exc: AuthFlowError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"error": exc.code, "message": exc.message},
    )


# -----------------------------
# Registration / verification
# -----------------------------
@router.post("/register", response_model=RegisterOut)
@maybe_limit("5/minute")
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db)):  # noqa: ARG001
    username = payload.username.strip()
    if not username:
        raise HTTPException(status_code=400, detail="Username is required")

    ensure_strong_password(payload.password)

    try:
        user = register_account(
            db,
            username=username,
            email=payload.email,
            password=payload.password,
            display_name=payload.display_name,
        )
    except AuthFlowError as e:
        raise _to_http(e)

    return {"user_id": user.id}


@router.post("/verify-email", response_model=VerifyOut)
@maybe_limit("10/minute")
def verify_email(request: Request, payload: VerifyEmailIn, db: Session = Depends(get_db)):  # noqa: ARG001
    try:
        user = confirm_email(db, user_id=payload.user_id.strip(), code=payload.token)
    except AuthFlowError as e:
        raise _to_http(e)

    # The client signs the user straight in after verifying.
    return {
        "message": "Email verified successfully.",
        "token": create_access_token(user),
        "username": user.username,
    }


@router.post("/resend-verification", response_model=MessageOut)
@maybe_limit("3/minute")
def resend(request: Request, payload: ResendVerifyIn, db: Session = Depends(get_db)):  # noqa: ARG001
    try:
        resend_verification(db, email=payload.email)
    except AuthFlowError as e:
        raise _to_http(e)

    return {"message": "A new verification code has been sent."}


@router.post("/login", response_model=LoginOut)
@maybe_limit("10/minute")
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):  # noqa: ARG001
    try:
        result = authenticate(db, username=payload.username.strip(), password=payload.password)
    except AuthFlowError as e:
        raise _to_http(e)

    return {
        "username": result.user.username,
        "email": result.user.email,
        "token": result.token,
    }


# -----------------------------
# Own profile
# -----------------------------
@router.get("/profile", response_model=ProfileOut)
def get_profile(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_or_create_profile(db, user)


@router.put("/profile", response_model=ProfileOut)
def put_profile(
    payload: ProfileUpdateIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = get_or_create_profile(db, user)
    data = payload.model_dump(exclude_unset=True)

    if data.get("display_name") is not None and not data["display_name"].strip():
        raise HTTPException(status_code=400, detail="Display name cannot be empty")

    return update_profile(db, profile, data)


@router.post("/upload-avatar", response_model=AvatarOut)
def upload_avatar(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # One byte over the cap is enough to reject oversized uploads without reading them whole.
    data = file.file.read(settings.MAX_AVATAR_BYTES + 1)
    avatar_url = store_avatar(user.id, file.content_type, data)

    profile = get_or_create_profile(db, user)
    previous = profile.avatar_url
    update_profile(db, profile, {"avatar_url": avatar_url})
    delete_stored_avatar(previous, user.id)

    return {"avatar_url": avatar_url}
