from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import Field

TransactionKind = Literal["initial", "credit", "debit"]

DESCRIPTIONS = {
    "initial": "Initial balance",
    "credit": "Added by admin",
    "debit": "Chat message",
}


class TokenTransaction(Document):
    """Append-only record of one balance mutation."""

    account_id: PydanticObjectId
    kind: TransactionKind
    amount: int  # always positive; direction is given by kind
    balance_after: int
    actor_id: str | None = None  # admin id for admin credits
    seq: int  # account version produced by this mutation
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "token_transactions"
        indexes = [
            [("account_id", 1), ("seq", -1)],
            [("account_id", 1), ("created_at", -1)],
        ]

    def public_dict(self) -> dict:
        return {
            "id": str(self.id),
            "userId": str(self.account_id),
            "type": self.kind,
            "amount": self.amount,
            "balanceAfter": self.balance_after,
            "adminId": self.actor_id,
            "description": self.description,
            "timestamp": self.created_at.isoformat(),
        }
