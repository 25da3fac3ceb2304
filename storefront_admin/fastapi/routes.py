"""Routes of the storefront admin API."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from ..domain import AdminUser, IdentityUser, RawAuth, StoreOverview
from ..exceptions import (AlreadyAdmin, AuthenticationFailed,
                          IdentityProviderError, InvalidResetToken,
                          StoreFailure, UserNotFound)
from ..overview import store_overview
from ..roster import AdminRoster
from ..services.identity import IdentityProvider
from ..services.rowstore import RowStore
from .auth import (admin_user, current_user, get_identity, get_roster,
                   get_store, rawauths)

log = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: str


class NewPasswordRequest(BaseModel):
    token: str
    password: str


class LoginResponse(BaseModel):
    user: IdentityUser
    token: str
    """Session JWT, also set as the session cookie"""

    is_admin: bool
    redirect: str
    """Where the dashboard should land: ``/admin`` for admins, ``/`` otherwise"""


class MeResponse(BaseModel):
    user: IdentityUser
    is_admin: bool


def _blank(email: str) -> bool:
    return not (email or "").strip()


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, request: Request, response: Response,
          identity: IdentityProvider = Depends(get_identity),
          roster: AdminRoster = Depends(get_roster)) -> LoginResponse:
    try:
        signed_in = identity.sign_in(body.email, body.password)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail=str(exc)) from exc
    except IdentityProviderError as exc:
        log.error("sign in failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Sign in is unavailable") from exc

    extra = request.app.extra
    response.set_cookie(extra['AUTH_SESSION_COOKIE_NAME'], signed_in.token,
                        max_age=extra['SESSION_DURATION'] * 60,
                        httponly=True, secure=extra['SECURE'], samesite="lax")
    is_admin = roster.is_admin(signed_in.user.user_id)
    return LoginResponse(user=signed_in.user, token=signed_in.token, is_admin=is_admin,
                         redirect="/admin" if is_admin else "/")


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request,
           raws: List[RawAuth] = Depends(rawauths),
           identity: IdentityProvider = Depends(get_identity)) -> Response:
    for raw in raws:
        try:
            identity.sign_out(raw.rawjwt)
        except IdentityProviderError as exc:
            log.error("sign out failed: %s", exc)
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                                detail="Sign out is unavailable") from exc
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(request.app.extra['AUTH_SESSION_COOKIE_NAME'])
    return response


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
def password_reset(body: EmailRequest, request: Request,
                   identity: IdentityProvider = Depends(get_identity)) -> dict:
    if _blank(body.email):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail="Enter an email to reset the password")
    try:
        identity.request_password_reset(
            body.email, request.app.extra['PASSWORD_RESET_REDIRECT_URL'])
    except IdentityProviderError as exc:
        log.error("password reset failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not send the password reset link") from exc
    return {"detail": "Password reset requested"}


@router.post("/password-reset/confirm", status_code=status.HTTP_204_NO_CONTENT)
def confirm_password_reset(body: NewPasswordRequest, request: Request,
                           identity: IdentityProvider = Depends(get_identity)) -> Response:
    if not body.password:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail="Enter a new password")
    try:
        identity.reset_password(body.token, body.password)
    except InvalidResetToken as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=str(exc)) from exc
    except IdentityProviderError as exc:
        log.error("password reset failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not reset the password") from exc
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(request.app.extra['AUTH_SESSION_COOKIE_NAME'])
    return response


@router.get("/me", response_model=MeResponse)
def me(user: IdentityUser = Depends(current_user),
       roster: AdminRoster = Depends(get_roster)) -> MeResponse:
    return MeResponse(user=user, is_admin=roster.is_admin(user.user_id))


@router.get("/admin/users", response_model=List[AdminUser])
def list_admins(_: IdentityUser = Depends(admin_user),
                roster: AdminRoster = Depends(get_roster)) -> List[AdminUser]:
    try:
        return roster.list_admins()
    except StoreFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=str(exc)) from exc


@router.post("/admin/users", status_code=status.HTTP_201_CREATED)
def add_admin(body: EmailRequest,
              user: IdentityUser = Depends(admin_user),
              roster: AdminRoster = Depends(get_roster)) -> dict:
    if _blank(body.email):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail="Enter the user's email")
    try:
        roster.add_admin(body.email)
    except UserNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=str(exc)) from exc
    except AlreadyAdmin as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=str(exc)) from exc
    except StoreFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=str(exc)) from exc
    log.info("user %s granted admin to %s", user.user_id, body.email.strip()[:10])
    return {"detail": f"{body.email.strip()} added as an admin"}


@router.delete("/admin/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_admin(user_id: str,
                 user: IdentityUser = Depends(admin_user),
                 roster: AdminRoster = Depends(get_roster)) -> Response:
    try:
        roster.remove_admin(user_id)
    except StoreFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=str(exc)) from exc
    log.info("user %s revoked admin from %s", user.user_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/admin/overview", response_model=StoreOverview)
def overview(_: IdentityUser = Depends(admin_user),
             store: RowStore = Depends(get_store)) -> StoreOverview:
    try:
        return store_overview(store)
    except StoreFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=str(exc)) from exc
