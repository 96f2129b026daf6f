"""Registration, login and administrative account actions."""

import re

from beanie import PydanticObjectId

from app.core.audit import log_event
from app.core.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from app.core.logging import get_logger
from app.core.security import verify_password
from app.models.account import Account
from app.services import ledger
from app.services.notifications import notify_new_account

log = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


async def register(email: str, phone: str, password: str, name: str, lastname: str) -> Account:
    """Validate input, create the account with its initial balance, alert operators."""
    email = (email or "").strip().lower()
    phone = (phone or "").strip()
    name = (name or "").strip()
    lastname = (lastname or "").strip()
    if not email or not phone or not password or not name or not lastname:
        raise BadRequestError("All fields are required")
    if not EMAIL_RE.match(email):
        raise BadRequestError("Invalid email format")
    account = await ledger.create_account(email, phone, password, name, lastname)
    await log_event(str(account.id), "account_created", "account", str(account.id), {"email": account.email})
    await notify_new_account(account)
    return account


async def authenticate(email: str, password: str) -> Account:
    if not email or not password:
        raise BadRequestError("Email and password are required")
    account = await Account.find_one(Account.email == email.strip().lower())
    if not account or account.status != "active" or not verify_password(password, account.password_hash):
        raise UnauthorizedError("Invalid email or password")
    log.info("account_login", account_id=str(account.id))
    return account


async def credit_tokens(account_id: PydanticObjectId | str, amount: int, admin: Account) -> int:
    """Admin top-up; bypasses the access gate."""
    new_balance = await ledger.adjust(account_id, amount, "credit", actor_id=str(admin.id))
    await log_event(str(admin.id), "tokens_credited", "account", str(account_id), {"amount": amount, "balance_after": new_balance})
    return new_balance


async def delete_account(account_id: str, admin: Account) -> int:
    oid = ledger.to_object_id(account_id)
    if oid == admin.id:
        raise BadRequestError("Cannot delete your own account")
    account = await Account.get(oid)
    if not account or account.status != "active":
        raise NotFoundError("User not found")
    deleted = await ledger.delete_account(account.id)
    await log_event(str(admin.id), "account_deleted", "account", str(oid), {"email": account.email, "transactions_deleted": deleted})
    return deleted
