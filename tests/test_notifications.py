import json

import httpx
import pytest

from edutrack import config
from edutrack.main import app
from edutrack.utils.push import PushNotificationService, db_token_lookup
from tests.conftest import create_student, register


def _send(client, headers, recipient="p@x.com", **extra):
    payload = {"title": "Hello", "message": "Meeting on Friday", "recipientEmail": recipient, **extra}
    resp = client.post("/notifications", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["notification"]


def test_grade_to_parent_inbox_scenario(client, teacher, parent):
    student = create_student(client, teacher["headers"])
    resp = client.post(
        f"/students/{student['id']}/grades",
        json={"subject": "Math", "score": 8.5, "type": "test"},
        headers=teacher["headers"],
    )
    assert len(resp.json()["student"]["grades"]) == 1

    inbox = client.get("/notifications", headers=parent["headers"]).json()
    assert inbox["total"] == 1
    note = inbox["notifications"][0]
    assert note["recipientEmail"] == "p@x.com"
    assert note["type"] == "grade_update"
    assert note["isRead"] is False
    assert note["studentId"] == "X1"
    assert note["senderId"] == teacher["user"]["id"]
    assert note["senderName"] == "Teacher One"

    marked = client.put(f"/notifications/{note['id']}/read", headers=parent["headers"])
    assert marked.status_code == 200
    assert marked.json()["notification"]["isRead"] is True

    again = client.get("/notifications", headers=parent["headers"]).json()
    assert again["notifications"][0]["isRead"] is True


def test_inbox_only_holds_own_notifications(client, teacher, parent):
    _send(client, teacher["headers"], recipient="p@x.com")
    _send(client, teacher["headers"], recipient="someone@x.com")
    inbox = client.get("/notifications", headers=parent["headers"]).json()
    assert [n["recipientEmail"] for n in inbox["notifications"]] == ["p@x.com"]
    assert client.get("/notifications", headers=teacher["headers"]).json()["total"] == 0


def test_recipient_matching_ignores_case(client, teacher, parent):
    _send(client, teacher["headers"], recipient="P@X.COM")
    assert client.get("/notifications", headers=parent["headers"]).json()["total"] == 1


def test_mark_read_is_idempotent(client, teacher, parent):
    note = _send(client, teacher["headers"])
    first = client.put(f"/notifications/{note['id']}/read", headers=parent["headers"])
    second = client.put(f"/notifications/{note['id']}/read", headers=parent["headers"])
    assert first.status_code == second.status_code == 200
    assert second.json()["notification"]["isRead"] is True


def test_only_recipient_marks_read(client, teacher, parent):
    note = _send(client, teacher["headers"])
    resp = client.put(f"/notifications/{note['id']}/read", headers=teacher["headers"])
    assert resp.status_code == 403
    inbox = client.get("/notifications", headers=parent["headers"]).json()
    assert inbox["notifications"][0]["isRead"] is False


def test_mark_read_missing_notification(client, parent):
    assert client.put("/notifications/nope/read", headers=parent["headers"]).status_code == 404


def test_sent_view_is_scoped_to_sender(client, teacher, other_teacher):
    _send(client, teacher["headers"], recipient="a@x.com")
    _send(client, teacher["headers"], recipient="b@x.com")
    _send(client, other_teacher["headers"], recipient="c@x.com")

    sent = client.get("/notifications/sent", headers=teacher["headers"]).json()
    assert sent["total"] == 2
    assert {n["recipientEmail"] for n in sent["notifications"]} == {"a@x.com", "b@x.com"}
    assert all(n["senderId"] == teacher["user"]["id"] for n in sent["notifications"])


def test_compose_forces_sender_and_allows_any_actor(client, parent):
    note = _send(client, parent["headers"], recipient="nobody-registered@x.com", type="attendance")
    assert note["senderId"] == parent["user"]["id"]
    assert note["type"] == "attendance"


def test_compose_rejects_client_sender_and_bad_fields(client, teacher):
    bad = [
        {"title": "T", "message": "M", "recipientEmail": "p@x.com", "senderId": "forged"},
        {"title": "T", "message": "M", "recipientEmail": "not-an-email"},
        {"title": "T", "message": "M", "recipientEmail": "p@x.com", "type": "spam"},
        {"title": "", "message": "M", "recipientEmail": "p@x.com"},
    ]
    for payload in bad:
        assert client.post("/notifications", json=payload, headers=teacher["headers"]).status_code == 400, payload


def test_strict_scoping_limits_compose_to_teachers(client, teacher, parent, monkeypatch):
    monkeypatch.setattr(config, "STRICT_SCOPING", True)
    payload = {"title": "T", "message": "M", "recipientEmail": "p@x.com"}
    assert client.post("/notifications", json=payload, headers=parent["headers"]).status_code == 403
    assert client.post("/notifications", json=payload, headers=teacher["headers"]).status_code == 201


def test_inbox_pagination(client, teacher, parent):
    for _ in range(5):
        _send(client, teacher["headers"])
    body = client.get("/notifications", params={"page": 2, "limit": 2}, headers=parent["headers"]).json()
    assert len(body["notifications"]) == 2
    assert body["currentPage"] == 2
    assert body["totalPages"] == 3
    assert body["total"] == 5
    beyond = client.get("/notifications", params={"page": 4, "limit": 2}, headers=parent["headers"]).json()
    assert beyond["notifications"] == []


def test_default_page_size_is_twenty(client, teacher, parent):
    for _ in range(21):
        _send(client, teacher["headers"])
    body = client.get("/notifications", headers=parent["headers"]).json()
    assert len(body["notifications"]) == 20
    assert body["totalPages"] == 2


def test_unread_count(client, teacher, parent):
    first = _send(client, teacher["headers"])
    _send(client, teacher["headers"])
    assert client.get("/notifications/unread-count", headers=parent["headers"]).json() == {"count": 2}
    client.put(f"/notifications/{first['id']}/read", headers=parent["headers"])
    assert client.get("/notifications/unread-count", headers=parent["headers"]).json() == {"count": 1}


def test_push_failure_does_not_fail_compose(client, teacher, monkeypatch):
    class BrokenPush:
        def send_to_recipients(self, *args, **kwargs):
            raise RuntimeError("push gateway down")

    monkeypatch.setattr(app.state, "push", BrokenPush())
    note = _send(client, teacher["headers"])
    assert note["title"] == "Hello"


def test_push_receives_composed_notification(client, teacher, monkeypatch):
    calls = []

    class RecordingPush:
        def send_to_recipients(self, emails, title, body, data=None):
            calls.append((emails, title, body, data))

    monkeypatch.setattr(app.state, "push", RecordingPush())
    note = _send(client, teacher["headers"], recipient="Q@x.com")
    assert calls == [(["q@x.com"], "Hello", "Meeting on Friday", {"notificationId": note["id"], "type": "general", "senderId": teacher["user"]["id"]})]


def test_notifications_require_token(client):
    assert client.get("/notifications").status_code == 401
    assert client.get("/notifications/sent").status_code == 401
    assert client.post("/notifications", json={}).status_code in (400, 401)


@pytest.mark.parametrize("blank", [{"title": " "}, {"message": "   "}])
def test_compose_rejects_blank_text(client, teacher, parent, blank):
    payload = {"title": "Hello", "message": "Meeting on Friday", "recipientEmail": "p@x.com", **blank}
    assert client.post("/notifications", json=payload, headers=teacher["headers"]).status_code == 400
    assert client.get("/notifications", headers=parent["headers"]).json()["total"] == 0


def test_expo_push_reaches_registered_device(client, teacher, parent, monkeypatch):
    posted = []

    def expo(request: httpx.Request) -> httpx.Response:
        posted.append(json.loads(request.content))
        return httpx.Response(200, json={"data": [{"status": "ok", "id": "ticket-1"}]})

    http = httpx.Client(transport=httpx.MockTransport(expo))
    monkeypatch.setattr(app.state, "push", PushNotificationService(mode="expo", token_lookup=db_token_lookup, http=http))

    resp = client.put("/auth/push-token", json={"pushToken": "ExponentPushToken[parent-phone]"}, headers=parent["headers"])
    assert resp.status_code == 200

    note = _send(client, teacher["headers"], recipient="p@x.com")
    _send(client, teacher["headers"], recipient="nobody@x.com")

    assert len(posted) == 1
    [message] = posted[0]
    assert message["to"] == "ExponentPushToken[parent-phone]"
    assert message["title"] == "Hello"
    assert message["data"]["notificationId"] == note["id"]


def test_expo_push_on_grade(client, teacher, parent, monkeypatch):
    posted = []

    def expo(request: httpx.Request) -> httpx.Response:
        posted.append(json.loads(request.content))
        return httpx.Response(200, json={"data": [{"status": "ok"}]})

    http = httpx.Client(transport=httpx.MockTransport(expo))
    monkeypatch.setattr(app.state, "push", PushNotificationService(mode="expo", token_lookup=db_token_lookup, http=http))
    client.put("/auth/push-token", json={"pushToken": "ExpoPushToken[abc]"}, headers=parent["headers"])

    student = create_student(client, teacher["headers"])
    client.post(f"/students/{student['id']}/grades", json={"subject": "Math", "score": 7}, headers=teacher["headers"])
    assert [m["to"] for m in posted[0]] == ["ExpoPushToken[abc]"]
    assert posted[0][0]["data"]["type"] == "grade_update"
