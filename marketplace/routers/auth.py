from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from marketplace.dependencies.session import get_controller
from marketplace.exceptions import ApiError, DuplicateUser, InvalidCredentials, InvalidRegistration
from marketplace.schemas.session import Credentials, Registration, Screen
from marketplace.services.controller import SessionController
from structlog import get_logger

logger = get_logger()
router = APIRouter(prefix="/api/v1/sessions/{session_id}/auth", tags=["auth"])

@router.post("/login", response_model=Screen)
async def login(
    session_id: str,
    form_data: OAuth2PasswordRequestForm = Depends(),
    controller: SessionController = Depends(get_controller),
):
    if controller.state.user is not None:
        raise HTTPException(status_code=409, detail="Session already authenticated")
    try:
        screen = await controller.login(Credentials(username=form_data.username, password=form_data.password))
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ApiError as e:
        logger.error("Login upstream failure", session_id=session_id, error=str(e))
        raise HTTPException(status_code=502, detail=f"Auth service error: {e}")
    logger.info("Session authenticated", session_id=session_id, screen=screen.kind)
    return screen

@router.post("/register", response_model=Screen)
async def register(
    session_id: str,
    registration: Registration,
    controller: SessionController = Depends(get_controller),
):
    if controller.state.user is not None:
        raise HTTPException(status_code=409, detail="Session already authenticated")
    try:
        screen = await controller.register(registration)
    except DuplicateUser as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidRegistration as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ApiError as e:
        logger.error("Register upstream failure", session_id=session_id, error=str(e))
        raise HTTPException(status_code=502, detail=f"Auth service error: {e}")
    logger.info("Registered account", session_id=session_id, username=registration.username)
    return screen
