"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging and
registers the routes of the configured relay mode.  The ``uvicorn`` ASGI
server can point to ``chat_relay.main:app`` to serve the application,
or run ``chat-relay`` / ``python -m chat_relay.main``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.app_config import AppConfig, get_app_config
from .config.llm_config import LlmConfig, get_llm_config
from .controllers.assistant_controller import router as assistant_router
from .controllers.completion_controller import router as completion_router
from .controllers.health_controller import router as health_router
from .services.assistant_service import AssistantService, get_assistant_service
from .services.completion_service import CompletionService, get_completion_service
from .utils.error_handler import (
    ChatError,
    chat_error_handler,
    not_found_handler,
    request_validation_handler,
)
from .utils.logger import setup_logging


def create_app(
    app_config: Optional[AppConfig] = None,
    llm_config: Optional[LlmConfig] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Explicit configuration objects take precedence over the environment
    and are also handed to the route dependencies.
    """
    explicit_llm_config = llm_config is not None
    app_config = app_config or get_app_config()
    llm_config = llm_config or get_llm_config()

    setup_logging(app_config)
    owned_services: list[CompletionService | AssistantService] = []

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("Server running on port {}", app_config.app_port)
        logger.info("Environment: {}", app_config.app_env)
        if app_config.relay_mode == "assistant":
            logger.info("Using assistant: {}", llm_config.assistant_id or "<not configured>")
        else:
            logger.info("Using model: {}", llm_config.model)
        if not llm_config.api_key:
            logger.warning("OPENAI_API_KEY is not set; upstream calls will fail")
        yield
        for service in owned_services:
            service.close()
        for getter in (get_completion_service, get_assistant_service):
            if getter.cache_info().currsize:
                getter().close()
                getter.cache_clear()
        logger.info("Upstream clients closed")

    app = FastAPI(title="Chat Relay", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)

    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_llm_config] = lambda: llm_config

    app.include_router(health_router)
    if app_config.relay_mode == "assistant":
        app.include_router(assistant_router)
        if explicit_llm_config:
            assistant_service = AssistantService(llm_config=llm_config)
            owned_services.append(assistant_service)
            app.dependency_overrides[get_assistant_service] = lambda: assistant_service
    else:
        app.include_router(completion_router)
        if explicit_llm_config:
            completion_service = CompletionService(llm_config=llm_config)
            owned_services.append(completion_service)
            app.dependency_overrides[get_completion_service] = lambda: completion_service

    logger.debug("Application created in {} mode", app_config.relay_mode)
    return app


# Create an application instance for ASGI servers
app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    config = get_app_config()
    uvicorn.run(app, host=config.app_host, port=config.app_port, log_config=None)


if __name__ == "__main__":
    run()
