from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, UpstreamError
from app.core.pagination import paginate
from app.deps import require_admin
from app.models.account import Account
from app.services import accounts as account_service
from app.services import ledger
from app.services.ingestion import index_document

router = APIRouter()


class AddTokensRequest(BaseModel):
    userId: str = ""
    amount: int = 0


@router.get("/users")
async def admin_users(admin: Account = Depends(require_admin)):
    """Admin: list accounts without credentials."""
    accounts = await ledger.list_accounts()
    return {"users": [a.public_dict() for a in accounts]}


@router.post("/add-tokens")
async def admin_add_tokens(body: AddTokensRequest, admin: Account = Depends(require_admin)):
    """Admin: credit an account by a positive amount."""
    if not body.userId or body.amount <= 0:
        raise BadRequestError("User ID and positive amount are required")
    new_balance = await account_service.credit_tokens(body.userId, body.amount, admin)
    return {"success": True, "message": "Tokens added successfully", "newBalance": new_balance}


@router.get("/transactions/{user_id}")
async def admin_transactions(
    user_id: str,
    admin: Account = Depends(require_admin),
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Admin: transaction history of one account, newest first."""
    limit, offset = paginate(limit, offset)
    entries = await ledger.history(user_id, limit=limit, offset=offset)
    return {"transactions": [e.public_dict() for e in entries]}


@router.delete("/users/{user_id}")
async def admin_delete_user(user_id: str, admin: Account = Depends(require_admin)):
    """Admin: delete an account together with its transaction history."""
    await account_service.delete_account(user_id, admin)
    return {"success": True, "message": "User deleted successfully"}


@router.post("/documents")
async def admin_upload_documents(
    request: Request,
    admin: Account = Depends(require_admin),
    files: list[UploadFile] = File(...),
):
    """Admin: upload and index documents into the File Search store."""
    if not files:
        raise BadRequestError("No files uploaded")
    if len(files) > get_settings().max_upload_files:
        raise BadRequestError(f"At most {get_settings().max_upload_files} files per upload")
    client = getattr(request.app.state, "genai_client", None)
    search_scope = getattr(request.app.state, "search_scope", None)
    if client is None or not search_scope:
        raise UpstreamError("File Search Store not initialized")
    indexed = []
    for upload in files:
        content = await upload.read()
        name = upload.filename or "document"
        indexed.append(await index_document(client, search_scope, content, name, upload.content_type))
    return {
        "success": True,
        "files": indexed,
        "totalFiles": len(indexed),
        "message": "Files uploaded and indexed successfully",
    }
