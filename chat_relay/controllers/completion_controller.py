"""Chat route for the stateless completion mode."""

from fastapi import APIRouter, Depends
from loguru import logger

from ..models.chat_request import CompletionChatRequest
from ..models.chat_response import CompletionChatResponse
from ..services.completion_service import CompletionService, get_completion_service
from ..utils.error_handler import ChatError

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post("/chat", response_model=CompletionChatResponse)
def chat_endpoint(
    request: CompletionChatRequest,
    service: CompletionService = Depends(get_completion_service),
) -> CompletionChatResponse:
    """Forward the message and its history, return the generated reply.

    Declared synchronously so the blocking upstream call runs in the
    threadpool instead of the event loop.
    """
    history = request.conversation_history or []
    try:
        logger.info("Received chat request ({} history entries)", len(history))
        result = service.complete(request.message, history)
        logger.info("Answer generated successfully")
        return CompletionChatResponse(response=result.text, model=result.model, usage=result.usage)
    except ChatError:
        raise
    except Exception as exc:
        logger.exception("Unhandled exception during chat processing")
        raise ChatError(str(exc) or "Unexpected failure") from exc
