"""Routes for the thread-based assistant mode."""

from fastapi import APIRouter, Depends
from loguru import logger

from ..models.chat_request import AssistantChatRequest
from ..models.chat_response import AssistantChatResponse, NewThreadResponse
from ..services.assistant_service import AssistantService, get_assistant_service
from ..utils.error_handler import ChatError

router = APIRouter(prefix="/api", tags=["Assistant"])


@router.post("/chat", response_model=AssistantChatResponse)
def chat_endpoint(
    request: AssistantChatRequest,
    service: AssistantService = Depends(get_assistant_service),
) -> AssistantChatResponse:
    """Send the message to the assistant and wait for its reply.

    The request blocks while the run is polled, for up to
    ``RUN_POLL_ATTEMPTS`` status checks.  The returned ``threadId`` must be
    sent back to continue the same conversation.
    """
    try:
        # Configuration is checked before any upstream call is made.
        service.require_assistant_id()
        logger.info("Received assistant chat request (thread={})", request.thread_id or "new")
        result = service.complete(request.message, request.thread_id)
        logger.info("Assistant answered on thread {} (run {})", result.thread_id, result.run_id)
        return AssistantChatResponse(
            response=result.text,
            thread_id=result.thread_id,
            run_id=result.run_id,
        )
    except ChatError:
        raise
    except Exception as exc:
        logger.exception("Unhandled exception during assistant chat")
        raise ChatError(str(exc) or "Unexpected failure") from exc


@router.post("/thread/new", response_model=NewThreadResponse)
def new_thread_endpoint(
    service: AssistantService = Depends(get_assistant_service),
) -> NewThreadResponse:
    """Create a fresh thread so the client can reset its conversation."""
    try:
        return NewThreadResponse(thread_id=service.new_thread())
    except ChatError:
        raise
    except Exception as exc:
        logger.exception("Failed to create thread")
        raise ChatError(str(exc) or "Unexpected failure") from exc
