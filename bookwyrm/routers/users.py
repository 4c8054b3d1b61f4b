import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from bookwyrm import auth, models, schemas
from bookwyrm.auth import Identity
from bookwyrm.config import Settings, get_settings
from bookwyrm.database import get_db
from bookwyrm.errors import InvalidCredentials, ValidationError
from bookwyrm.forms import parse_model, read_payload, require_id
from bookwyrm.rate_limiter import limiter, login_rate_limit
from bookwyrm.services import users as users_service
from bookwyrm.sessions import SessionStore, get_session_store

router = APIRouter()
logger = logging.getLogger(__name__)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login")
def login_page(identity: Identity | None = Depends(auth.optional_user)):
    if identity:
        return _redirect("/")
    return {"error": None}


# Login / Register
@router.post("/login")
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    payload = await read_payload(request)
    action_type = payload.get("actionType") or "login"

    if action_type == "login":
        credentials = parse_model(schemas.UserLogin, payload)
        try:
            identity = auth.authenticate_user(db, credentials.email, credentials.password)
        except InvalidCredentials:
            logger.info("Failed login for %s", credentials.email)
            raise
    elif action_type == "register":
        new_user = users_service.register_user(db, parse_model(schemas.UserRegister, payload))
        identity = Identity.from_user(new_user)
    else:
        raise ValidationError("Invalid action")

    response = _redirect("/")
    store.set_cookie(response, store.create(identity))
    logger.info("User %s logged in", identity.id)
    return response


@router.get("/logout", response_model=schemas.AccountPage)
def logout_page(identity: Identity = Depends(auth.require_user)):
    return {"user": identity}


@router.post("/logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    store.destroy(request.cookies.get(store.cookie_name))
    response = _redirect("/login")
    store.clear_cookie(response)
    return response


# Admin grid
@router.get("/users-grid", response_model=schemas.UserList)
def users_grid(
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
):
    users = db.query(models.User).order_by(models.User.name.asc()).all()
    return {"users": users}


@router.post("/users-grid", response_model=schemas.ActionResult)
async def users_grid_action(
    request: Request,
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
    app_settings: Settings = Depends(get_settings),
):
    payload = await read_payload(request)
    action_type = payload.get("actionType")

    if action_type == "create":
        user = parse_model(schemas.UserForm, payload)
        users_service.create_user(db, user, default_password=app_settings.DEFAULT_USER_PASSWORD)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True})

    if action_type == "update":
        user_id = require_id(payload)
        users_service.update_user(db, user_id, parse_model(schemas.UserUpdate, payload))
        return {"success": True}

    if action_type == "delete":
        users_service.delete_user(db, require_id(payload))
        return {"success": True}

    raise ValidationError("Invalid action type")
