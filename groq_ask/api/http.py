from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from groq_ask.config.model import ServerConfig
from groq_ask.core.errors import InputError
from groq_ask.dispatch import CancelToken, Dispatcher
from groq_ask.observability import get_logger

from .contracts import ErrorOut, OutcomeOut, QuestionsIn, QuestionsOut


_log = get_logger("groq_ask.api")


def _validation_message(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = str(err.get("msg", "invalid value"))
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request body"


def create_app(
    dispatcher: Dispatcher,
    *,
    server_cfg: ServerConfig | None = None,
    model_name: str = "",
) -> FastAPI:
    """Build the HTTP app around an already configured dispatcher."""

    cfg = server_cfg or ServerConfig()
    app = FastAPI(title="groq-ask")

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        _log.info("request_rejected", path=request.url.path, error=message)
        return JSONResponse(status_code=400, content=ErrorOut(error=message).model_dump())

    @app.exception_handler(InputError)
    async def _input_error(request: Request, exc: InputError) -> JSONResponse:
        _log.info("request_rejected", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=400, content=ErrorOut(error=str(exc)).model_dump())

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"ok": True, "model": model_name, "max_batch_size": cfg.max_batch_size}

    @app.post(
        "/api/questions",
        response_model=QuestionsOut,
        response_model_exclude_none=True,
        responses={400: {"model": ErrorOut}},
    )
    async def submit_questions(body: QuestionsIn) -> QuestionsOut:
        if len(body.questions) > cfg.max_batch_size:
            raise InputError(
                f"batch of {len(body.questions)} questions exceeds the limit of {cfg.max_batch_size}"
            )

        outcomes = await dispatcher.dispatch(body.questions, cancel=CancelToken())
        return QuestionsOut(responses=[OutcomeOut.from_outcome(o) for o in outcomes])

    return app


def run_server(app: FastAPI, cfg: ServerConfig) -> None:
    import uvicorn

    _log.info("server_starting", host=cfg.host, port=cfg.port)
    # log_config=None keeps the JSON handler installed by configure_logging().
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_config=None)
