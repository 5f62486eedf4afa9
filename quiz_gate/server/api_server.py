"""FastAPI server that exposes the quiz and results flows."""

from __future__ import annotations

from html import escape

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from quiz_gate.constants.about import APP_NAME, APP_VERSION
from quiz_gate.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_gate.constants.session_constants import DEFAULT_TOTAL_QUESTIONS
from quiz_gate.core.errors import StorageFailure
from quiz_gate.core.models import RedemptionResult, ScoreRecord
from quiz_gate.core.session_gate import QuizSessionGate

_SESSION_PARAM = "sessionId"
_SCORE_PARAM = "score"
_TOTAL_PARAM = "totalQuestions"

_PAGE_TEMPLATE = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{title}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      :root {{ font-family: 'Inter', system-ui, sans-serif; background: #f8f9fa; color: #212529; }}
      body {{ margin: 0; padding: 1.5rem; display: flex; flex-direction: column; align-items: center; gap: 1rem; }}
      .card {{ background: #fff; border-radius: 0.75rem; padding: 1.5rem; min-width: 18rem; box-shadow: 0 1px 4px rgba(0, 0, 0, 0.1); }}
      .actions {{ display: flex; gap: 1rem; justify-content: space-around; }}
      .primary-button {{ border-radius: 0.6rem; padding: 0.85rem 1.5rem; background: #5e5cf1; color: #fff; text-decoration: none; font-weight: bold; }}
      .score-item {{ padding: 0.75rem 0; border-bottom: 1px solid #e9ecef; }}
      .date {{ color: #6c757d; font-size: 0.9rem; }}
    </style>
  </head>
  <body>
    <section class=\"card\">
{body}
    </section>
  </body>
</html>
"""

_HOME_BODY = """      <h1>{app_name}</h1>
      <div class=\"actions\">
        <a class=\"primary-button\" href=\"/history\">View Score History</a>
      </div>"""

_RESULTS_BODY = """      <h1>Results</h1>
      <p>Your Score: {score} / {total}</p>
      <div class=\"actions\">
        <a class=\"primary-button\" href=\"/\">Play Again</a>
        <a class=\"primary-button\" href=\"/\">Home</a>
      </div>"""

_INVALID_ACCESS_BODY = """      <h1>Invalid access</h1>
      <p>These results are not available.</p>
      <div class=\"actions\">
        <a class=\"primary-button\" href=\"/\">Home</a>
      </div>"""

_HISTORY_BODY = """      <h1>Score History</h1>
{items}
      <div class=\"actions\">
        <a class=\"primary-button\" href=\"/\">Go Back</a>
      </div>
      <script>
        document.querySelectorAll('time').forEach(el => {{
          const date = new Date(el.getAttribute('datetime'));
          el.textContent = date.toLocaleDateString() + ' ' + date.toLocaleTimeString();
        }});
      </script>"""

_HISTORY_ITEM = """      <div class=\"score-item\">
        <div>Score: {score} / {total}</div>
        <time class=\"date\" datetime=\"{timestamp}\">{timestamp}</time>
      </div>"""

_HISTORY_EMPTY = "      <p>No scores yet. Play a quiz!</p>"


class OpenSessionPayload(BaseModel):
    """Payload schema for starting a quiz attempt."""

    total_questions: int = Field(default=DEFAULT_TOTAL_QUESTIONS, gt=0)


class CompleteSessionPayload(BaseModel):
    """Payload schema for reporting the final score of an attempt."""

    final_score: int


def _render_page(title: str, body: str) -> str:
    return _PAGE_TEMPLATE.format(title=escape(title), body=body)


def _render_history(records: list[ScoreRecord]) -> str:
    if not records:
        items = _HISTORY_EMPTY
    else:
        items = "\n".join(
            _HISTORY_ITEM.format(
                score=record.score,
                total=record.total_questions,
                timestamp=escape(record.timestamp),
            )
            for record in records
        )
    return _render_page("Score History", _HISTORY_BODY.format(items=items))


def _redeem_from_query(request: Request, gate: QuizSessionGate) -> RedemptionResult:
    params = request.query_params
    return gate.redeem_results(
        params.getlist(_SESSION_PARAM),
        params.getlist(_SCORE_PARAM),
        params.getlist(_TOTAL_PARAM),
    )


def _get_session_gate_dependency(gate: QuizSessionGate):
    def dependency() -> QuizSessionGate:
        return gate

    return dependency


def create_api_app(gate: QuizSessionGate) -> FastAPI:
    """Create a FastAPI application wired to the provided session gate."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    gate_dep = _get_session_gate_dependency(gate)

    @app.get("/", response_class=HTMLResponse)
    def serve_home_page() -> str:
        return _render_page(APP_NAME, _HOME_BODY.format(app_name=escape(APP_NAME)))

    @app.post("/sessions", status_code=201)
    def open_session(
        payload: OpenSessionPayload | None = None,
        manager: QuizSessionGate = Depends(gate_dep),
    ) -> dict[str, object]:
        total_questions = payload.total_questions if payload else DEFAULT_TOTAL_QUESTIONS
        try:
            session_id = manager.open_session(total_questions)
        except StorageFailure as exc:
            raise HTTPException(status_code=503, detail="Session storage is unavailable.") from exc
        return {"session_id": session_id, "total_questions": total_questions}

    @app.post("/sessions/{session_id}/complete")
    def complete_session(
        session_id: str,
        payload: CompleteSessionPayload,
        manager: QuizSessionGate = Depends(gate_dep),
    ) -> dict[str, object]:
        return {"completed": manager.complete_session(session_id, payload.final_score)}

    @app.get("/results", response_class=HTMLResponse)
    def show_results(request: Request, manager: QuizSessionGate = Depends(gate_dep)) -> HTMLResponse:
        result = _redeem_from_query(request, manager)
        if not result.accepted:
            return HTMLResponse(_render_page("Invalid access", _INVALID_ACCESS_BODY), status_code=403)
        body = _RESULTS_BODY.format(score=result.score, total=result.total)
        return HTMLResponse(_render_page("Results", body))

    @app.get("/api/results")
    def redeem_results(request: Request, manager: QuizSessionGate = Depends(gate_dep)) -> JSONResponse:
        result = _redeem_from_query(request, manager)
        return JSONResponse(result.to_payload(), status_code=200 if result.accepted else 403)

    @app.get("/scores")
    def list_scores(manager: QuizSessionGate = Depends(gate_dep)) -> list[dict[str, object]]:
        return [record.to_record() for record in manager.get_score_history()]

    @app.get("/history", response_class=HTMLResponse)
    def show_history(manager: QuizSessionGate = Depends(gate_dep)) -> str:
        return _render_history(manager.get_score_history())

    return app


def run_api_server(
    gate: QuizSessionGate,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(gate)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
