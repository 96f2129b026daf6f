"""Token balance ledger: the single writer of Account.balance and the transaction log.

Every mutation follows the same shape: read (balance, version), compute the new
balance, then apply it with a conditional update on the unchanged version. A
concurrent writer makes the update miss, and the read is retried. The winning
version number becomes the `seq` of the appended transaction, so history order
matches the order in which mutations were applied.
"""

import asyncio
import random
from typing import Literal

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, OperationFailure

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ConflictError, LedgerConflictError, NotFoundError, summarize_exception
from app.core.logging import get_logger
from app.core.security import hash_password
from app.models.account import Account
from app.models.token_transaction import DESCRIPTIONS, TokenTransaction

log = get_logger(__name__)

AdjustKind = Literal["credit", "debit"]
ADJUST_KINDS = ("credit", "debit")


def to_object_id(value: PydanticObjectId | str) -> PydanticObjectId:
    if isinstance(value, PydanticObjectId):
        return value
    try:
        return PydanticObjectId(str(value))
    except (InvalidId, TypeError, ValueError) as e:
        raise NotFoundError("User not found") from e


def next_balance(current: int, amount: int, kind: AdjustKind) -> int:
    """Debits clamp at zero; credits add."""
    if kind == "debit":
        return max(0, current - amount)
    return current + amount


async def _load_active(account_id: PydanticObjectId) -> Account:
    account = await Account.get(account_id)
    if not account or account.status != "active":
        raise NotFoundError("User not found")
    return account


async def get_balance(account_id: PydanticObjectId | str) -> int:
    """Return current balance; NotFoundError if the account does not exist."""
    account = await _load_active(to_object_id(account_id))
    return account.balance


async def _report_missing_transaction(
    oid: PydanticObjectId,
    kind: AdjustKind,
    amount: int,
    balance_after: int,
    seq: int,
    actor_id: str | None,
    exc: Exception,
) -> None:
    """Balance committed but its transaction was not written; record enough to rebuild it."""
    details = {
        "kind": kind,
        "amount": amount,
        "balance_after": balance_after,
        "seq": seq,
        "error": summarize_exception(exc),
    }
    log.error("ledger_inconsistency", account_id=str(oid), actor_id=actor_id, **details)
    try:
        await log_event(actor_id, "ledger_inconsistency", "account", str(oid), details)
    except Exception as audit_exc:
        log.error("ledger_inconsistency_unrecorded", account_id=str(oid), error=summarize_exception(audit_exc))


async def adjust(
    account_id: PydanticObjectId | str,
    amount: int,
    kind: AdjustKind,
    actor_id: str | None = None,
) -> int:
    """Apply a credit or debit and append its transaction. Returns the new balance."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise BadRequestError("Amount must be a positive integer")
    if kind not in ADJUST_KINDS:
        raise BadRequestError(f"Invalid adjustment kind: {kind}")
    oid = to_object_id(account_id)
    collection = Account.get_motor_collection()
    max_attempts = get_settings().ledger_max_retries

    for attempt in range(1, max_attempts + 1):
        account = await _load_active(oid)
        balance_after = next_balance(account.balance, amount, kind)
        result = await collection.update_one(
            {"_id": oid, "version": account.version, "status": "active"},
            {"$set": {"balance": balance_after}, "$inc": {"version": 1}},
        )
        if result.matched_count == 1:
            seq = account.version + 1
            try:
                await TokenTransaction(
                    account_id=oid,
                    kind=kind,
                    amount=amount,
                    balance_after=balance_after,
                    actor_id=actor_id,
                    seq=seq,
                    description=DESCRIPTIONS[kind],
                ).insert()
            except Exception as e:
                await _report_missing_transaction(oid, kind, amount, balance_after, seq, actor_id, e)
                raise
            log.info(
                "ledger_adjusted",
                account_id=str(oid),
                kind=kind,
                amount=amount,
                balance_after=balance_after,
                seq=seq,
                attempts=attempt,
            )
            return balance_after
        log.debug("ledger_conflict", account_id=str(oid), attempt=attempt)
        await asyncio.sleep(random.uniform(0, 0.002 * attempt))

    log.error("ledger_conflict_exhausted", account_id=str(oid), attempts=max_attempts)
    raise LedgerConflictError()


async def history(
    account_id: PydanticObjectId | str,
    limit: int | None = None,
    offset: int = 0,
) -> list[TokenTransaction]:
    """Transactions for an account, most recent first."""
    oid = to_object_id(account_id)
    query = TokenTransaction.find(TokenTransaction.account_id == oid)
    try:
        ordered = query.sort(-TokenTransaction.seq, -TokenTransaction.created_at).skip(offset)
        if limit:
            ordered = ordered.limit(limit)
        return await ordered.to_list()
    except OperationFailure as e:
        # Store refused the sort (missing index); order is a convenience here.
        log.warning("ledger_history_unordered", account_id=str(oid), error=str(e))
        unordered = TokenTransaction.find(TokenTransaction.account_id == oid).skip(offset)
        if limit:
            unordered = unordered.limit(limit)
        return await unordered.to_list()


async def create_account(
    email: str,
    phone: str,
    password: str,
    name: str,
    lastname: str,
    is_admin: bool = False,
) -> Account:
    """Register an account with the initial balance and its `initial` transaction."""
    if await Account.find_one(Account.email == email):
        raise ConflictError("Email already registered")
    if await Account.find_one(Account.phone == phone):
        raise ConflictError("Phone number already registered")

    initial = get_settings().initial_balance
    account = Account(
        email=email,
        phone=phone,
        password_hash=hash_password(password),
        name=name,
        lastname=lastname,
        is_admin=is_admin,
        balance=initial,
        version=1,
    )
    try:
        await account.insert()
    except DuplicateKeyError as e:
        # Lost a registration race on the unique email/phone index.
        raise ConflictError("Email or phone number already registered") from e
    await TokenTransaction(
        account_id=account.id,
        kind="initial",
        amount=initial,
        balance_after=initial,
        seq=1,
        description=DESCRIPTIONS["initial"],
    ).insert()
    log.info("account_created", account_id=str(account.id), balance=initial)
    return account


async def list_accounts() -> list[Account]:
    return await Account.find(Account.status == "active").sort(-Account.created_at).to_list()


async def _purge(account_id: PydanticObjectId) -> int:
    result = await TokenTransaction.find(TokenTransaction.account_id == account_id).delete()
    await Account.get_motor_collection().delete_one({"_id": account_id, "status": "deleting"})
    return result.deleted_count if result else 0


async def delete_account(account_id: PydanticObjectId | str) -> int:
    """
    Remove an account and its whole transaction history. Returns deleted transaction count.

    The account is first marked `deleting`, which makes it invisible to the gate and
    the ledger, then its transactions and the account are removed. If the process dies
    in between, purge_pending_deletions() finishes the job at the next startup.
    """
    oid = to_object_id(account_id)
    result = await Account.get_motor_collection().update_one(
        {"_id": oid, "status": "active"},
        {"$set": {"status": "deleting"}},
    )
    if result.matched_count != 1:
        raise NotFoundError("User not found")
    deleted = await _purge(oid)
    log.info("account_deleted", account_id=str(oid), transactions_deleted=deleted)
    return deleted


async def purge_pending_deletions() -> int:
    """Complete deletions interrupted mid-way. Returns the number of accounts purged."""
    pending = await Account.find(Account.status == "deleting").to_list()
    for account in pending:
        await _purge(account.id)
        log.warning("account_deletion_resumed", account_id=str(account.id))
    return len(pending)
