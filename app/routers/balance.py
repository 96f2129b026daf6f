from fastapi import APIRouter, Depends, Query

from app.core.pagination import Page, paginate
from app.deps import get_current_account
from app.models.account import Account
from app.services import ledger

router = APIRouter()


@router.get("")
async def balance(account: Account = Depends(get_current_account)):
    """Return current token balance."""
    return {"balance": await ledger.get_balance(account.id)}


@router.get("/history")
async def balance_history(
    account: Account = Depends(get_current_account),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Own transactions, newest first."""
    limit, offset = paginate(limit, offset)
    entries = await ledger.history(account.id, limit=limit, offset=offset)
    return Page[dict](items=[e.public_dict() for e in entries], limit=limit, offset=offset)
