import hashlib
from typing import Any

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from app.core.config import get_settings


def get_token_serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt="yoldash-bearer",
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_access_token(account_id: str) -> str:
    """Signed bearer token carrying the account id; expiry is checked on load."""
    return get_token_serializer().dumps({"account_id": account_id})


def load_access_token(token: str) -> dict[str, Any] | None:
    serializer = get_token_serializer()
    try:
        payload = serializer.loads(token, max_age=get_settings().token_max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None
    return payload if isinstance(payload, dict) else None


def parse_bearer(header_value: str | None) -> str | None:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if not header_value:
        return None
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
