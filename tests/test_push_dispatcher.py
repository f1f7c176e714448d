import httpx
from fastapi import BackgroundTasks

from tripsketch.core.config import settings
from tripsketch.notify import PushNotificationDispatcher as push


def _patch_client(monkeypatch, handler):
    real_client = httpx.Client

    def fake_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(push.httpx, "Client", fake_client)


def test_build_push_messages():
    messages = push.build_push_messages(
        ["tok-1", "tok-2"],
        "New trip",
        "alice shared a new trip",
        image_url="https://img.example.com/a.jpg",
        link="tripsketch://trip/t1",
        ref_id="t1",
        actor_name="alice",
    )

    assert [m["to"] for m in messages] == ["tok-1", "tok-2"]
    assert messages[0]["data"] == {"refId": "t1", "actorName": "alice", "link": "tripsketch://trip/t1"}
    assert messages[0]["richContent"] == {"image": "https://img.example.com/a.jpg"}


def test_build_push_messages_without_image():
    messages = push.build_push_messages(["tok"], "t", "b")
    assert "richContent" not in messages[0]
    assert messages[0]["data"] == {}


def test_dispatcher_schedules_only_users_with_tokens(users, user_repo):
    tasks = BackgroundTasks()
    dispatcher = push.PushNotificationDispatcher(user_repo, tasks)

    dispatcher.send(
        recipients=["alice@trip.com", "bob@trip.com", "carol@trip.com"],
        title="New trip",
        body="hello",
        ref_id="t1",
    )

    assert len(tasks.tasks) == 1
    messages = tasks.tasks[0].args[0]
    assert sorted(m["to"] for m in messages) == ["ExponentPushToken[bob]", "ExponentPushToken[carol]"]


def test_dispatcher_skips_when_no_tokens(users, user_repo):
    tasks = BackgroundTasks()
    dispatcher = push.PushNotificationDispatcher(user_repo, tasks)

    dispatcher.send(recipients=["alice@trip.com"], title="t", body="b")

    assert tasks.tasks == []


def test_deliver_posts_to_push_api(monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": []})

    _patch_client(monkeypatch, handler)

    assert push.deliver_push_messages([{"to": "tok", "title": "t", "body": "b"}]) is True
    assert str(seen[0].url) == settings.PUSH_API_URL


def test_deliver_reports_rejection(monkeypatch):
    _patch_client(monkeypatch, lambda request: httpx.Response(500, text="boom"))
    assert push.deliver_push_messages([{"to": "tok"}]) is False


def test_deliver_swallows_transport_errors(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    _patch_client(monkeypatch, handler)
    assert push.deliver_push_messages([{"to": "tok"}]) is False
