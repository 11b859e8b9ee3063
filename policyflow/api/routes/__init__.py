from fastapi import FastAPI

from policyflow.api.errors import register_exception_handlers
from .policies import router as policies_router


def register_routes(app: FastAPI):
    app.include_router(policies_router, prefix="/v1")
    register_exception_handlers(app)
