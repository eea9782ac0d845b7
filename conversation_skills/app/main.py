import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, status
from fastapi.responses import Response

from ..config import settings
from ..schemas.decisions import TurnInput
from ..services.dispatcher import Dispatcher
from ..services.exceptions import NotFoundError
from .dependencies import (
    get_dispatcher,
    get_session_store,
    get_skill_engine,
    get_skill_registry,
)
from .schemas import SessionRead, SkillList, TurnRequest, TurnResponse

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Skills are registered once here; a DuplicateSkillError aborts startup.
    dispatcher = get_dispatcher(get_skill_registry(), get_session_store(), get_skill_engine())
    logger.info(f"Loaded skills: {dispatcher.list_skills()}")
    yield
    dispatcher.shutdown()


app = FastAPI(title="Conversation Skills Engine", lifespan=lifespan)

# --- Endpoints ---

@app.post("/users/{user_id}/turns", response_model=TurnResponse)
def handle_turn(
    user_id: str,
    request: TurnRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """
    Processes one utterance. handled=false tells the caller to fall back
    to one-shot command handling.
    """
    turn = TurnInput(
        utterance=request.text,
        intent=request.intent,
        entities=request.entities,
        language=request.language,
    )
    try:
        output = dispatcher.process(user_id, turn)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if output is None:
        return TurnResponse(handled=False)

    # Explicitly Map: TurnOutput (Engine) -> TurnResponse (API)
    return TurnResponse(
        handled=True,
        reply=output.reply,
        skill=output.skill,
        state=output.state,
        context=output.context,
        complete=output.complete,
        result=output.result,
    )


@app.get("/users/{user_id}/session", response_model=SessionRead)
def get_session(
    user_id: str,
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Retrieves the user's active session."""
    session = dispatcher.active_session(user_id)
    if not session:
        raise HTTPException(status_code=404, detail="No active session")

    return SessionRead(
        user_id=session.user_id,
        skill=session.skill_name,
        state=session.state,
        context=session.context,
        created_at=session.created_at,
        last_activity=session.last_activity,
    )


@app.delete("/users/{user_id}/session", status_code=status.HTTP_204_NO_CONTENT)
def cancel_session(
    user_id: str,
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """
    Cancels the user's active skill. Returns 204 No Content on success.
    """
    if not dispatcher.cancel(user_id):
        raise HTTPException(status_code=404, detail="No active session")

    # For 204, we must explicitly return a Response object with no content
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/skills", response_model=SkillList)
def list_skills(dispatcher: Dispatcher = Depends(get_dispatcher)):
    return SkillList(skills=dispatcher.list_skills())
