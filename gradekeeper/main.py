import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gradekeeper import __version__
from gradekeeper.core.config import LOG_LEVEL
from gradekeeper.core.errors import register_error_handlers
from gradekeeper.core.logging_middleware import LoggingMiddleware
from gradekeeper.db.init_db import init_db
from gradekeeper.routers.assignments import router as assignments_router
from gradekeeper.routers.submissions import router as submissions_router

logging.basicConfig(level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="gradekeeper", version=__version__, lifespan=lifespan)

# Middleware
app.add_middleware(LoggingMiddleware)

register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
