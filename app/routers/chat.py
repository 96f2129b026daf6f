from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.deps import get_current_account, get_orchestrator
from app.models.account import Account
from app.workflows.chat_agent import ChatOrchestrator

router = APIRouter()


class ChatTurn(BaseModel):
    role: str = "assistant"
    content: str = ""


class ChatRequest(BaseModel):
    message: str = ""
    history: list[ChatTurn] = Field(default_factory=list)


@router.post("")
async def chat(
    body: ChatRequest,
    account: Account = Depends(get_current_account),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """One grounded answer for one token. History is supplied by the client every time."""
    result = await orchestrator.run(
        str(account.id),
        body.message,
        [turn.model_dump() for turn in body.history],
    )
    return result.model_dump()
