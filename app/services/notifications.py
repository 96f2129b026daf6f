"""New-account alerts to the operators' Telegram chat. Best effort only."""

import html
from datetime import datetime, timezone

import httpx

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models.account import Account

log = get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"


async def send_telegram(text: str, client: httpx.AsyncClient | None = None) -> bool:
    """Send an HTML message; returns False (and logs) on any failure."""
    settings = get_settings()
    if not settings.telegram_bot_token or not settings.telegram_chat_id:
        log.debug("telegram_not_configured")
        return False
    url = f"{TELEGRAM_API}/bot{settings.telegram_bot_token}/sendMessage"
    payload = {"chat_id": settings.telegram_chat_id, "text": text, "parse_mode": "HTML"}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=10.0) as own:
                resp = await own.post(url, json=payload)
        else:
            resp = await client.post(url, json=payload)
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        log.warning("telegram_send_failed", error=str(e))
        return False
    if not data.get("ok"):
        log.warning("telegram_send_rejected", description=data.get("description"))
        return False
    return True


def new_account_message(account: Account) -> str:
    return "\n".join([
        "🆕 <b>Yeni İstifadəçi Qeydiyyatı</b>",
        "",
        f"👤 <b>Ad Soyad:</b> {html.escape(account.name)} {html.escape(account.lastname)}",
        f"📧 <b>Email:</b> {html.escape(account.email)}",
        f"📱 <b>Telefon:</b> {html.escape(account.phone)}",
        f"💰 <b>İlkin Balans:</b> {account.balance} token",
        f"🕐 <b>Tarix:</b> {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}",
    ])


async def notify_new_account(account: Account) -> None:
    await send_telegram(new_account_message(account))
