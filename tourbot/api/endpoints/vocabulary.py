from typing import Annotated

from fastapi import APIRouter, Depends

from tourbot.core import schemas
from tourbot.core.assistant import TourAssistant, get_assistant

router = APIRouter(prefix="/vocabulary", tags=["Vocabulary"])

assistant_dep = Annotated[TourAssistant, Depends(get_assistant)]


@router.get("", response_model=schemas.VocabularyStatus)
async def vocabulary_status(assistant: assistant_dep):
    """How many terms and cities are loaded, and when."""
    return assistant.vocabulary.status()


@router.post("/refresh", response_model=schemas.VocabularyStatus)
async def refresh_vocabulary(assistant: assistant_dep):
    """Reload terms from the answer store and cities from the flight table."""
    await assistant.vocabulary.refresh()
    return assistant.vocabulary.status()
