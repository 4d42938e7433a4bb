"""Root health check."""

from typing import Any

from fastapi import APIRouter, Depends
from loguru import logger

from ..config.app_config import AppConfig, get_app_config
from ..config.llm_config import LlmConfig, get_llm_config
from ..utils.helpers import utc_timestamp

router = APIRouter(tags=["Health"])


@router.get("/")
async def health(
    app_config: AppConfig = Depends(get_app_config),
    llm_config: LlmConfig = Depends(get_llm_config),
) -> dict[str, Any]:
    """Report that the relay is up and which upstream settings are present."""
    logger.debug("Health check invoked")
    payload: dict[str, Any] = {
        "status": "ok",
        "message": "Chat Backend API is running",
        "timestamp": utc_timestamp(),
        "mode": app_config.relay_mode,
        "api_key_configured": llm_config.api_key is not None,
    }
    if app_config.relay_mode == "assistant":
        payload["assistant_configured"] = llm_config.assistant_configured
    else:
        payload["model"] = llm_config.model
    return payload
