from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field

AccountStatus = Literal["active", "deleting"]


class Account(Document):
    """Chat customer or administrator. `balance` is written only by the ledger."""

    email: Indexed(str, unique=True)
    phone: Indexed(str, unique=True)
    password_hash: str
    name: str = ""
    lastname: str = ""
    is_admin: bool = False
    balance: int = 0
    version: int = 0  # bumped on every balance mutation; equals seq of the latest transaction
    status: AccountStatus = "active"
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "accounts"
        indexes = [[("status", 1)]]

    def public_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "phone": self.phone,
            "name": self.name,
            "lastname": self.lastname,
            "tokenBalance": self.balance,
            "isAdmin": self.is_admin,
            "created_at": self.created_at.isoformat(),
        }
