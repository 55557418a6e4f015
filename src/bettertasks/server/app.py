"""FastAPI application hosting the assistant endpoint."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bettertasks import __version__
from bettertasks.server.assistant import (
    METHOD_NOT_ALLOWED,
    AssistantService,
    bearer_token,
)
from bettertasks.services.config_service import get_config_service

logger = logging.getLogger(__name__)


def get_assistant_service() -> AssistantService:
    return AssistantService(get_config_service())


def create_app() -> FastAPI:
    app = FastAPI(title="BetterTasks Assistant API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root():
        return {"message": "BetterTasks assistant running"}

    @app.post("/api/ai")
    async def ask_assistant(
        request: Request,
        service: AssistantService = Depends(get_assistant_service),
    ) -> JSONResponse:
        token = bearer_token(request.headers.get("authorization"))
        result = await service.respond(token, await request.body())
        if result.status_code != 200:
            logger.info("POST /api/ai -> %s", result.status_code)
        return JSONResponse(result.body, status_code=result.status_code)

    @app.get("/api/ai")
    def assistant_get() -> JSONResponse:
        return JSONResponse({"error": METHOD_NOT_ALLOWED}, status_code=405)

    return app
