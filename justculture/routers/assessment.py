from fastapi import APIRouter, Request, Depends, HTTPException, Form
from fastapi.responses import PlainTextResponse
from typing import Optional
from justculture.core.errors import (
    DecisionToolError,
    GraphIntegrityError,
    InvalidTransitionError,
    NoHistoryError,
    ValidationError,
)
from justculture.core.log import global_log

router = APIRouter()

SESSION_KEY = "assessment_session_id"

def get_session_id(request: Request) -> str:
    service = request.app.state.assessment_service
    session_id = service.ensure_session(request.session.get(SESSION_KEY))
    request.session[SESSION_KEY] = session_id
    return session_id

def to_http_error(e: DecisionToolError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(422, str(e))
    if isinstance(e, (NoHistoryError, InvalidTransitionError)):
        return HTTPException(409, str(e))
    if isinstance(e, GraphIntegrityError):
        global_log(f"Decision graph error: {e}", level="ERROR", component="API")
        return HTTPException(500, f"Decision graph error: {e}")
    return HTTPException(400, str(e))

def parse_answer(answer: str) -> bool:
    value = answer.strip().lower()
    if value in ("yes", "y", "true", "1"):
        return True
    if value in ("no", "n", "false", "0"):
        return False
    raise HTTPException(422, "Answer must be 'yes' or 'no'")

def _state(request: Request, session_id: str):
    service = request.app.state.assessment_service
    service.persist(session_id)
    return {"success": True, "state": service.get_engine(session_id).view()}

@router.get("/state")
async def get_state(request: Request, session_id=Depends(get_session_id)):
    engine = request.app.state.assessment_service.get_engine(session_id)
    return {"state": engine.view()}

@router.get("/graph")
async def get_graph(request: Request):
    graph = request.app.state.assessment_service.graph
    return graph.model_dump()

@router.post("/start")
async def start(request: Request, session_id=Depends(get_session_id)):
    engine = request.app.state.assessment_service.get_engine(session_id)
    try:
        engine.start()
    except DecisionToolError as e:
        raise to_http_error(e)
    return _state(request, session_id)

@router.post("/answer")
async def answer(request: Request, answer: str = Form(...), explanation: str = Form(""), session_id=Depends(get_session_id)):
    is_yes = parse_answer(answer)
    engine = request.app.state.assessment_service.get_engine(session_id)
    try:
        engine.answer(is_yes, explanation)
    except DecisionToolError as e:
        raise to_http_error(e)
    return _state(request, session_id)

@router.post("/back")
async def back(request: Request, session_id=Depends(get_session_id)):
    engine = request.app.state.assessment_service.get_engine(session_id)
    try:
        engine.back()
    except DecisionToolError as e:
        raise to_http_error(e)
    return _state(request, session_id)

@router.post("/reset")
async def reset(request: Request, session_id=Depends(get_session_id)):
    engine = request.app.state.assessment_service.get_engine(session_id)
    engine.reset()
    return _state(request, session_id)

@router.post("/metadata")
async def update_metadata(
    request: Request,
    case_ref: Optional[str] = Form(None),
    assessor: Optional[str] = Form(None),
    involved_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    session_id=Depends(get_session_id),
):
    engine = request.app.state.assessment_service.get_engine(session_id)
    engine.update_metadata(case_ref=case_ref, assessor=assessor, involved_name=involved_name, notes=notes)
    return _state(request, session_id)

@router.post("/remember")
async def remember(request: Request, enabled: bool = Form(...), session_id=Depends(get_session_id)):
    service = request.app.state.assessment_service
    service.set_remember(session_id, enabled)
    return {"success": True, "state": service.get_engine(session_id).view()}

@router.get("/summary", response_class=PlainTextResponse)
async def summary(request: Request, download: bool = False, session_id=Depends(get_session_id)):
    engine = request.app.state.assessment_service.get_engine(session_id)
    export_service = request.app.state.export_service
    try:
        text = export_service.summary_text(engine)
    except DecisionToolError as e:
        raise to_http_error(e)
    headers = {}
    if download:
        filename = export_service.download_filename(engine)
        headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return PlainTextResponse(text, headers=headers)
