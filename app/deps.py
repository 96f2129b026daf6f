"""Shared FastAPI dependencies."""

from fastapi import Request

from app.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError, UpstreamError
from app.core.logging import bind_account_id
from app.core.security import load_access_token, parse_bearer
from app.models.account import Account
from app.services.ledger import to_object_id
from app.workflows.chat_agent import ChatOrchestrator


async def get_current_account(request: Request) -> Account:
    """Dependency: resolve the bearer token to an active Account."""
    token = parse_bearer(request.headers.get("Authorization"))
    if not token:
        raise UnauthorizedError("Authentication required")
    payload = load_access_token(token)
    if not payload or not payload.get("account_id"):
        raise UnauthorizedError("Invalid or expired token")
    try:
        account = await Account.get(to_object_id(payload["account_id"]))
    except NotFoundError as e:
        raise UnauthorizedError("Invalid or expired token") from e
    if not account or account.status != "active":
        raise UnauthorizedError("User not found")
    bind_account_id(str(account.id))
    return account


async def require_admin(request: Request) -> Account:
    """Dependency: require current account to be an administrator."""
    account = await get_current_account(request)
    if not account.is_admin:
        raise ForbiddenError("Admin access required")
    return account


def get_orchestrator(request: Request) -> ChatOrchestrator:
    orchestrator = getattr(request.app.state, "chat_orchestrator", None)
    if orchestrator is None:
        raise UpstreamError("File Search Store not initialized")
    return orchestrator
