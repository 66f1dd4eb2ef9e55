"""
HTTP client for the EduTrack API.

One ``EduTrackClient`` is built by whoever needs it and passed along; it holds
the session token of the signed-in user. Any 401 answer drops the token, the
same way the mobile app forgets its stored session.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class EduTrackClient:
    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.Client] = None, token: Optional[str] = None, timeout: float = 10.0):
        if http is None:
            if not base_url:
                raise ValueError("base_url or http client is required")
            http = httpx.Client(base_url=base_url, timeout=timeout)
        self.http = http
        self.token = token
        self.user: Optional[Dict[str, Any]] = None

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "EduTrackClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def logout(self) -> None:
        self.token = None
        self.user = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        params = kwargs.get("params")
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        resp = self.http.request(method, path, headers=headers, **kwargs)
        if resp.status_code == 401:
            self.logout()
        if resp.is_error:
            try:
                message = resp.json().get("detail") or resp.reason_phrase
            except ValueError:
                message = resp.text or resp.reason_phrase
            raise ApiError(resp.status_code, str(message))
        return resp.json()

    def _remember(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.token = data["token"]
        self.user = data["user"]
        return data

    # auth

    def register(self, email: str, password: str, name: str, role: str, phone: Optional[str] = None) -> Dict[str, Any]:
        payload = {"email": email, "password": password, "name": name, "role": role}
        if phone is not None:
            payload["phone"] = phone
        return self._remember(self._request("POST", "/auth/register", json=payload))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._remember(self._request("POST", "/auth/login", json={"email": email, "password": password}))

    def me(self) -> Dict[str, Any]:
        self.user = self._request("GET", "/auth/me")["user"]
        return self.user

    def register_push_token(self, push_token: Optional[str]) -> Dict[str, Any]:
        """Stores this device's Expo token for the signed-in user; None clears it."""
        return self._request("PUT", "/auth/push-token", json={"pushToken": push_token})

    # students

    def list_students(self, page: Optional[int] = None, limit: Optional[int] = None, search: Optional[str] = None, class_name: Optional[str] = None) -> Dict[str, Any]:
        params = {"page": page, "limit": limit, "search": search, "class": class_name}
        return self._request("GET", "/students", params=params)

    def get_student(self, student_pk: str) -> Dict[str, Any]:
        return self._request("GET", f"/students/{student_pk}")

    def student_summary(self, student_pk: str) -> Dict[str, Any]:
        return self._request("GET", f"/students/{student_pk}/summary")

    def create_student(self, name: str, student_id: str, class_name: str, parent_email: str, **extra: Any) -> Dict[str, Any]:
        payload = {"name": name, "studentId": student_id, "class": class_name, "parentEmail": parent_email, **extra}
        return self._request("POST", "/students", json=payload)["student"]

    def update_student(self, student_pk: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/students/{student_pk}", json=changes)["student"]

    def delete_student(self, student_pk: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/students/{student_pk}")

    def add_grade(self, student_pk: str, subject: str, score: float, type: str = "homework") -> Dict[str, Any]:
        payload = {"subject": subject, "score": score, "type": type}
        return self._request("POST", f"/students/{student_pk}/grades", json=payload)["student"]

    # notifications

    def list_notifications(self, page: Optional[int] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._request("GET", "/notifications", params={"page": page, "limit": limit})

    def sent_notifications(self, page: Optional[int] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._request("GET", "/notifications/sent", params={"page": page, "limit": limit})

    def unread_count(self) -> int:
        return self._request("GET", "/notifications/unread-count")["count"]

    def mark_read(self, notification_id: str) -> Dict[str, Any]:
        """The server answers `{message, notification}`; returns the updated notification."""
        return self._request("PUT", f"/notifications/{notification_id}/read")["notification"]

    def send_notification(self, title: str, message: str, recipient_email: str, type: str = "general", student_id: Optional[str] = None) -> Dict[str, Any]:
        payload = {"title": title, "message": message, "recipientEmail": recipient_email, "type": type}
        if student_id is not None:
            payload["studentId"] = student_id
        return self._request("POST", "/notifications", json=payload)["notification"]

    def broadcast(self, title: str, message: str, recipient_emails: Iterable[str], type: str = "general") -> List[Dict[str, Any]]:
        """One notification per distinct recipient, in the given order."""
        sent = []
        seen = set()
        for email in recipient_emails:
            key = email.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            sent.append(self.send_notification(title, message, email, type=type))
        return sent
