"""Translate engine errors into HTTP responses."""
import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gradekeeper.engine.errors import (
    EngineError,
    FileTypeNotAllowed,
    InvalidDate,
    InvalidMaxScore,
    InvalidTransition,
    LockedByGrading,
    MaxScoreLocked,
    MissingContent,
    NotPermitted,
    RubricLocked,
    ScoreOutOfBounds,
    UnknownCriterion,
)

logger = logging.getLogger(__name__)

# most specific first
_STATUS_BY_ERROR: list[tuple[type[EngineError], int, str]] = [
    (RubricLocked, status.HTTP_409_CONFLICT, "Rubric cannot change once submissions are graded"),
    (MaxScoreLocked, status.HTTP_409_CONFLICT, "Maximum score cannot change once submissions are graded"),
    (LockedByGrading, status.HTTP_409_CONFLICT, "Change not allowed once submissions are graded"),
    (NotPermitted, status.HTTP_403_FORBIDDEN, "Action not permitted"),
    (InvalidTransition, status.HTTP_409_CONFLICT, "Invalid status transition"),
    (UnknownCriterion, status.HTTP_400_BAD_REQUEST, "Score given for an unknown rubric criterion"),
    (ScoreOutOfBounds, status.HTTP_400_BAD_REQUEST, "Score out of bounds"),
    (InvalidMaxScore, status.HTTP_400_BAD_REQUEST, "Maximum score must be positive"),
    (InvalidDate, status.HTTP_400_BAD_REQUEST, "Invalid date"),
    (MissingContent, status.HTTP_400_BAD_REQUEST, "Submission is missing required content"),
    (FileTypeNotAllowed, status.HTTP_400_BAD_REQUEST, "File type not allowed"),
]


def status_for(exc: EngineError) -> tuple[int, str]:
    for error_type, status_code, detail in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code, detail
    return status.HTTP_400_BAD_REQUEST, "Request rejected"


def _json_safe(value):
    """Replace NaN and infinity, which the JSON renderer refuses, with strings."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    status_code, detail = status_for(exc)
    request.state.error_code = exc.code
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=status_code, content=_json_safe({"detail": detail, **exc.to_dict()}))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # same body as FastAPI's own handler; the offending input may be NaN
    request.state.error_code = "validation_error"
    return JSONResponse(
        status_code=422,
        content={"detail": _json_safe(jsonable_encoder(exc.errors()))},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EngineError, engine_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
