from typing import Annotated

from fastapi import APIRouter, Depends

from tourbot.core import schemas
from tourbot.core.assistant import TourAssistant, get_assistant

router = APIRouter(prefix="/chat", tags=["Chat"])

assistant_dep = Annotated[TourAssistant, Depends(get_assistant)]


@router.post("", response_model=schemas.ChatResponse, response_model_exclude_none=True)
async def chat(payload: schemas.ChatRequest, assistant: assistant_dep):
    """
    Answer one message.

    Failures come back as a reply with type "error", never as a 5xx.
    """
    return await assistant.handle_message(
        payload.message,
        member=payload.member,
        context=payload.context,
        debug=payload.debug,
    )


@router.post("/classify", response_model=schemas.Intent)
async def classify(payload: schemas.ChatRequest, assistant: assistant_dep):
    """Intent only, no retrieval."""
    return assistant.classifier.classify(payload.message)
