from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from typing import Dict, Optional
from justculture.core.errors import DecisionToolError, GraphIntegrityError
from justculture.core.log import global_log
from justculture.routers.assessment import get_session_id, parse_answer

router = APIRouter()

def posted_metadata(
    case_ref: Optional[str] = Form(None),
    assessor: Optional[str] = Form(None),
    involved_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
) -> Dict[str, Optional[str]]:
    # every button on the page submits the case-detail fields with it
    return {"case_ref": case_ref, "assessor": assessor, "involved_name": involved_name, "notes": notes}

def _home(request: Request, flash: Optional[str] = None):
    if flash:
        request.session["flash"] = flash
    return RedirectResponse(str(request.url_for("index")), status_code=303)

def _engine(request: Request, session_id: str):
    return request.app.state.assessment_service.get_engine(session_id)

def _apply(request: Request, session_id: str, metadata: Dict[str, Optional[str]], operation=None):
    """Saves posted case details, runs an engine operation and redirects home.

    Recoverable errors are flashed; the case details are kept either way.
    """
    engine = _engine(request, session_id)
    engine.update_metadata(**metadata)
    flash = None
    if operation is not None:
        try:
            operation(engine)
        except GraphIntegrityError as e:
            global_log(f"Decision graph error: {e}", level="ERROR", component="Pages")
            return request.app.state.render("error.html", status_code=500, request=request, message=str(e))
        except DecisionToolError as e:
            flash = str(e)
    request.app.state.assessment_service.persist(session_id)
    return _home(request, flash)

@router.get("/", response_class=HTMLResponse)
async def index(request: Request, session_id=Depends(get_session_id)):
    state = _engine(request, session_id).view()
    return request.app.state.render(
        "index.html",
        request=request,
        state=state,
        flash=request.session.pop("flash", None),
    )

@router.post("/assessment/start")
async def start(request: Request, metadata=Depends(posted_metadata), session_id=Depends(get_session_id)):
    return _apply(request, session_id, metadata, lambda engine: engine.start())

@router.post("/assessment/answer")
async def answer(
    request: Request,
    answer: str = Form(...),
    explanation: str = Form(""),
    metadata=Depends(posted_metadata),
    session_id=Depends(get_session_id),
):
    is_yes = parse_answer(answer)
    return _apply(request, session_id, metadata, lambda engine: engine.answer(is_yes, explanation))

@router.post("/assessment/back")
async def back(request: Request, metadata=Depends(posted_metadata), session_id=Depends(get_session_id)):
    return _apply(request, session_id, metadata, lambda engine: engine.back())

@router.post("/assessment/reset")
async def reset(request: Request, metadata=Depends(posted_metadata), session_id=Depends(get_session_id)):
    return _apply(request, session_id, metadata, lambda engine: engine.reset())

@router.post("/assessment/metadata")
async def save_metadata(request: Request, metadata=Depends(posted_metadata), session_id=Depends(get_session_id)):
    return _apply(request, session_id, metadata)

@router.post("/assessment/remember")
async def remember(request: Request, metadata=Depends(posted_metadata), session_id=Depends(get_session_id)):
    service = request.app.state.assessment_service
    engine = _engine(request, session_id)
    engine.update_metadata(**metadata)
    service.set_remember(session_id, not engine.remember_enabled)
    return _home(request)

@router.get("/print", response_class=HTMLResponse)
async def print_summary(request: Request, session_id=Depends(get_session_id)):
    try:
        context = request.app.state.export_service.print_context(_engine(request, session_id))
    except DecisionToolError as e:
        return request.app.state.render("error.html", status_code=409, request=request, message=str(e))
    return request.app.state.render(
        "print.html",
        request=request,
        **context,
    )
