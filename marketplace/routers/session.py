from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Annotated
from marketplace.dependencies.session import SessionRegistry, get_controller, get_registry
from marketplace.schemas.session import ClientAction, Screen, SessionCreated
from marketplace.services.controller import SessionController
from structlog import get_logger

logger = get_logger()
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])

@router.post("", response_model=SessionCreated, status_code=201)
async def create_session(sessions: SessionRegistry = Depends(get_registry)):
    session_id, controller = sessions.create()
    return {"session_id": session_id, "screen": controller.screen()}

@router.get("/{session_id}/screen", response_model=Screen)
async def get_screen(controller: SessionController = Depends(get_controller)):
    return controller.screen()

@router.post("/{session_id}/actions", response_model=Screen)
async def dispatch_action(
    session_id: str,
    action: Annotated[ClientAction, Body(discriminator="type")],
    controller: SessionController = Depends(get_controller),
):
    """Apply one UI action and return the resulting screen.

    Mutation failures come back as a 200 screen carrying an ``alert``; load
    failures as an ``error`` screen that offers ``retry``.
    """
    screen = await controller.dispatch(action)
    logger.info("Dispatched action", session_id=session_id, action=action.type, screen=screen.kind)
    return screen

@router.delete("/{session_id}", status_code=204)
async def drop_session(session_id: str, sessions: SessionRegistry = Depends(get_registry)):
    if not sessions.drop(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
