"""
Push delivery for notifications.

The service is built once per application and handed to routes through
``get_push_service``. In ``log`` mode (the default) it only records what it
would send; ``expo`` mode posts to the Expo push API; ``off`` does nothing.
Callers treat every send as best-effort.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from fastapi import Request

from edutrack.database import SessionLocal
from edutrack.models.user import User

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
CHUNK_SIZE = 100

_EXPO_TOKEN_RE = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[[^\]]+\]$")


def is_expo_push_token(token: str) -> bool:
    return bool(token) and bool(_EXPO_TOKEN_RE.match(token))


def chunked(items: List[Any], size: int = CHUNK_SIZE) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class PushNotificationService:
    def __init__(
        self,
        mode: str = "log",
        token_lookup: Optional[Callable[[str], List[str]]] = None,
        http: Optional[httpx.Client] = None,
    ):
        if mode not in ("log", "expo", "off"):
            raise ValueError(f"Unknown push mode: {mode}")
        self.mode = mode
        # email -> device push tokens; device registration lives on the client
        self.token_lookup = token_lookup or (lambda email: [])
        self.http = http

    def build_messages(self, tokens: Iterable[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        messages = []
        for token in tokens:
            if not is_expo_push_token(token):
                logger.warning("Skipping invalid push token %r", token)
                continue
            messages.append({
                "to": token,
                "sound": "default",
                "title": title,
                "body": body,
                "data": data or {},
                "priority": "high",
                "channelId": "default",
            })
        return messages

    def send_push_notifications(self, tokens: Iterable[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Sends to device tokens and returns the push tickets."""
        messages = self.build_messages(tokens, title, body, data)
        if self.mode != "expo" or not messages:
            return []
        client = self.http or httpx.Client(timeout=10.0)
        tickets: List[Dict[str, Any]] = []
        try:
            for chunk in chunked(messages):
                try:
                    resp = client.post(EXPO_PUSH_URL, json=chunk)
                    resp.raise_for_status()
                    tickets.extend(resp.json().get("data", []))
                except httpx.HTTPError:
                    logger.exception("Push chunk of %d messages failed", len(chunk))
        finally:
            if client is not self.http:
                client.close()
        return tickets

    def send_to_recipients(self, emails: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self.mode == "off":
            return {"sent": 0, "recipients": len(emails), "mode": self.mode}
        if self.mode == "log":
            logger.info("Push (log only) to %s: %s - %s %s", ", ".join(emails), title, body, data or {})
            return {"sent": 0, "recipients": len(emails), "mode": self.mode}

        tokens = [t for email in emails for t in self.token_lookup(email)]
        tickets = self.send_push_notifications(tokens, title, body, data)
        return {"sent": len(tickets), "recipients": len(emails), "mode": self.mode}


def db_token_lookup(email: str) -> List[str]:
    """Push tokens registered by the accounts using this email."""
    db = SessionLocal()
    try:
        rows = db.query(User.push_token).filter(User.email == email, User.push_token.isnot(None)).all()
        return [row.push_token for row in rows]
    finally:
        db.close()


def notify_best_effort(push: PushNotificationService, emails: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> None:
    try:
        push.send_to_recipients(emails, title, body, data)
    except Exception:
        logger.exception("Push notification to %s failed", ", ".join(emails))


def get_push_service(request: Request) -> PushNotificationService:
    return request.app.state.push
