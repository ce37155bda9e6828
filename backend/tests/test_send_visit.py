from types import SimpleNamespace

from backend.examples import send_visit


class FakeResponse:
    def __init__(self, body) -> None:
        self._body = body

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return self._body


def test_payloads_use_api_field_names():
    assert send_visit.visit_payload("alice") == {"slug": "alice"}
    assert send_visit.visit_payload("alice", "https://github.com/", "mobile") == {
        "slug": "alice",
        "referrer": "https://github.com/",
        "deviceType": "mobile",
    }
    assert send_visit.interaction_payload("alice", "proj1") == {
        "slug": "alice",
        "type": "project",
        "itemId": "proj1",
    }
    assert send_visit.duration_payload("alice", 15) == {"slug": "alice", "seconds": 15}


def test_send_events_posts_each_tracker(monkeypatch):
    calls = []

    def fake_post(url, headers, json, timeout):
        calls.append((url, json))
        return FakeResponse({"success": True})

    monkeypatch.setattr(send_visit.requests, "post", fake_post)
    args = send_visit.parse_args(["--slug", "alice", "--project-id", "proj1", "--api-url", "http://api"])

    result = send_visit.send_events(args)

    assert [url for url, _ in calls] == [
        "http://api/analytics/visit",
        "http://api/analytics/interaction",
        "http://api/analytics/duration",
    ]
    assert calls[2][1] == {"slug": "alice", "seconds": 30}
    assert set(result) == {"visit", "interaction", "duration"}


def test_send_events_skips_interaction_without_project(monkeypatch):
    urls = []
    monkeypatch.setattr(
        send_visit.requests,
        "post",
        lambda url, **kwargs: urls.append(url) or FakeResponse({"success": True}),
    )
    args = SimpleNamespace(api_url="http://api", slug="alice", referrer=None, project_id=None, seconds=5)

    send_visit.send_events(args)

    assert urls == ["http://api/analytics/visit", "http://api/analytics/duration"]
