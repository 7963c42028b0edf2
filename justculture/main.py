import os
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import HTMLResponse
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from jinja2 import Environment, FileSystemLoader, select_autoescape
from justculture.core import config
from justculture.core.log import global_log
from justculture.core.trees import get_tree
from justculture.services.snapshot_store import SnapshotStore
from justculture.services.assessment_service import AssessmentService
from justculture.services.export_service import ExportService
from justculture.routers import assessment, pages

app = FastAPI(title="Just Culture Decision Tool")

# Session Middleware
# We enable https_only if the origin starts with https
https_only = config.ORIGIN.startswith("https")
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET,
    session_cookie="justculture_session",
    same_site="lax",
    https_only=https_only
)

# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if https_only:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        # Pages are plain server-rendered forms; nothing loads from elsewhere
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "style-src 'self'; "
            "img-src 'self' data:; "
            "form-action 'self';"
        )
        return response

app.add_middleware(SecurityHeadersMiddleware)

# Templates
templates_dir = os.path.join(os.path.dirname(__file__), "templates")
jinja_env = Environment(loader=FileSystemLoader(templates_dir), autoescape=select_autoescape(["html"]))

def render(name, status_code=200, **ctx):
    template = jinja_env.get_template(name)
    return HTMLResponse(template.render(**ctx), status_code=status_code)

# Services
graph = get_tree(config.DECISION_TREE)
snapshot_store = SnapshotStore(config.SNAPSHOT_DIR)
assessment_service = AssessmentService(
    graph,
    snapshot_store,
    require_explanation=config.REQUIRE_EXPLANATION,
    keep_metadata_on_reset=config.KEEP_METADATA_ON_RESET,
    max_sessions=config.MAX_SESSIONS,
)
export_service = ExportService()
global_log(f"Using decision tree '{graph.name}' ({len(graph.questions())} questions)", level="INFO")

# App State
app.state.assessment_service = assessment_service
app.state.export_service = export_service
app.state.render = render

# Static Files
static_dir = os.path.join(os.path.dirname(__file__), "static")
app.mount("/static", StaticFiles(directory=static_dir), name="static")

# Include Routers
app.include_router(pages.router)
app.include_router(assessment.router, prefix="/api/assessment")

def run():
    import uvicorn
    import argparse

    parser = argparse.ArgumentParser(description="Run the Just Culture Decision Tool")
    parser.add_argument("--port", type=int, default=8000, help="Port to run the service on")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    args = parser.parse_args()

    uvicorn.run(app, host=args.host, port=args.port)

if __name__ == "__main__":
    run()
