"""Access gate: rejects callers with no tokens before any upstream work."""

from beanie import PydanticObjectId

from app.core.config import get_settings
from app.core.exceptions import BalanceExhaustedError
from app.core.logging import get_logger
from app.services import ledger

log = get_logger(__name__)


async def authorize(account_id: PydanticObjectId | str) -> int:
    """Return the observed balance, or raise BalanceExhaustedError when it is zero."""
    balance = await ledger.get_balance(account_id)
    if balance <= 0:
        log.info("balance_exhausted", account_id=str(account_id))
        raise BalanceExhaustedError(get_settings().support_email)
    return balance
