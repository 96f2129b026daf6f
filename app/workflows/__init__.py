# LangGraph workflows
from app.workflows.chat_agent import ChatOrchestrator, ChatResult

__all__ = ["ChatOrchestrator", "ChatResult"]
