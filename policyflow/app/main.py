"""Insurance policy approval service.

Exposes the approval engine over HTTP:
- creators draft policies (a fraud check runs on creation)
- underwriters review first, managers give final sign-off
- every decision lands in the policy's approval log

Caller identity is resolved upstream and arrives as X-User-* headers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from policyflow.api.routes import register_routes
from policyflow.config import settings
from policyflow.db.connection import init_db
from policyflow.observability.tracing import configure_logging

tags_metadata = [
    {
        "name": "Policies",
        "description": "Policy lifecycle: create, review, approve or reject, edit and delete"
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    init_db()
    yield


app = FastAPI(
    title='Insurance Policy Approval API',
    version='1.0.0',
    description='Creator -> underwriter -> manager approval workflow for insurance policies',
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Register all API routes
register_routes(app)


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Insurance Policy Approval System API"}
