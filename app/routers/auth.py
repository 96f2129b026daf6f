from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.core.security import create_access_token
from app.deps import get_current_account
from app.models.account import Account
from app.services import accounts as account_service

router = APIRouter()


class RegisterRequest(BaseModel):
    email: str = ""
    phone: str = ""
    password: str = ""
    name: str = ""
    lastname: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def auth_register(body: RegisterRequest):
    """Create an account with the starting token balance and return a bearer token."""
    account = await account_service.register(body.email, body.phone, body.password, body.name, body.lastname)
    return {
        "success": True,
        "token": create_access_token(str(account.id)),
        "user": account.public_dict(),
    }


@router.post("/login")
async def auth_login(body: LoginRequest):
    account = await account_service.authenticate(body.email, body.password)
    return {
        "success": True,
        "token": create_access_token(str(account.id)),
        "user": account.public_dict(),
    }


@router.get("/me")
async def auth_me(account: Account = Depends(get_current_account)):
    """Return current account. Requires bearer token."""
    return {"user": account.public_dict()}
