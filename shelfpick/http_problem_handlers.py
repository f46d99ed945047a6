# shelfpick/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shelfpick.api.problem import make_problem

logger = logging.getLogger("shelfpick")


def new_trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _validation_details(errors: List[Any]) -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for i, e in enumerate(errors):
        if isinstance(e, dict):
            loc = ".".join(str(x) for x in e.get("loc") or ()) or f"validation[{i}]"
            details.append(
                {
                    "type": "validation",
                    "path": loc,
                    "reason": str(e.get("msg") or e.get("type") or "invalid"),
                }
            )
        else:
            details.append({"type": "validation", "path": f"validation[{i}]", "reason": str(e)})
    return details


def _problem_from_http_exc(req: Request, exc: HTTPException) -> Dict[str, Any]:
    """
    HTTPException.detail -> Problem shape.

    - Problem dict (from raise_problem): completed with http_status / trace_id / context
    - list: validation details
    - anything else: message of a generic http_error
    """
    status_code = int(exc.status_code)
    trace_id = new_trace_id()
    ctx: Dict[str, Any] = {"path": getattr(req.url, "path", ""), "method": req.method}

    d = exc.detail

    if isinstance(d, dict) and "error_code" in d and "message" in d:
        out = dict(d)
        out.setdefault("http_status", status_code)
        out.setdefault("trace_id", trace_id)
        merged = dict(ctx)
        if isinstance(out.get("context"), dict):
            merged.update(out["context"])
        out["context"] = merged
        return out

    if isinstance(d, list):
        return make_problem(
            status_code=status_code,
            error_code="REQUEST_VALIDATION_ERROR",
            message="Invalid request",
            context=ctx,
            details=_validation_details(d),
            trace_id=trace_id,
        )

    msg = str(d) if d is not None else "Request rejected"
    return make_problem(
        status_code=status_code,
        error_code="HTTP_ERROR",
        message=msg,
        context=ctx,
        details=[{"type": "state", "reason": msg}],
        trace_id=trace_id,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = new_trace_id()
        logger.exception("UNHANDLED_EXC[%s]: %s", trace_id, exc)
        content = make_problem(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="Internal error, please retry later",
            context={"path": getattr(req.url, "path", ""), "method": req.method},
            trace_id=trace_id,
        )
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        content = make_problem(
            status_code=422,
            error_code="REQUEST_VALIDATION_ERROR",
            message="Invalid request",
            context={"path": getattr(req.url, "path", ""), "method": req.method},
            details=_validation_details(list(exc.errors())),
            trace_id=new_trace_id(),
        )
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(HTTPException)
    async def _http_exc(req: Request, exc: HTTPException):
        content = _problem_from_http_exc(req, exc)
        return JSONResponse(status_code=int(exc.status_code), content=content, headers=exc.headers)
