"""Tests for ntfy delivery and the in-memory notification history."""
import httpx
import pytest

from flight_tracker.services.notification import NotificationMessage, NtfyNotifier


def _message(**overrides):
    fields = dict(
        title="Price Drop Alert! 📉",
        body="LAX → JFK: Price dropped 11.7% to $265.00",
        category="FLIGHT_ALERT",
        correlation_id="entry-1",
        priority="high",
        tags=["airplane", "chart_with_downwards_trend"],
    )
    fields.update(overrides)
    return NotificationMessage(**fields)


def _notifier(handler, enabled=True) -> NtfyNotifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NtfyNotifier(
        ntfy_url="http://ntfy.test/",
        ntfy_topic="alerts",
        enabled=enabled,
        http_client=client,
    )


class TestNtfyNotifier:
    @pytest.mark.asyncio
    async def test_send_posts_to_topic(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "abc"})

        notifier = _notifier(handler)
        assert await notifier.send(_message()) is True

        request = requests[0]
        assert str(request.url) == "http://ntfy.test/alerts"
        assert request.content.decode("utf-8") == "LAX → JFK: Price dropped 11.7% to $265.00"
        assert request.headers["Priority"] == "4"
        assert request.headers["X-Correlation-ID"] == "entry-1"
        assert request.headers["Tags"] == "airplane,chart_with_downwards_trend"
        assert request.headers.get_list("Title") != []

    @pytest.mark.asyncio
    async def test_unknown_priority_falls_back_to_default(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        await _notifier(handler).send(_message(priority="whatever", tags=[]))

        assert requests[0].headers["Priority"] == "3"
        assert "Tags" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_server_error_returns_false(self):
        notifier = _notifier(lambda request: httpx.Response(500, text="boom"))
        assert await notifier.send(_message()) is False

    @pytest.mark.asyncio
    async def test_connect_error_returns_false(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await _notifier(handler).send(_message()) is False

    @pytest.mark.asyncio
    async def test_disabled_sends_nothing(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        notifier = _notifier(handler, enabled=False)

        assert await notifier.send(_message()) is False
        assert requests == []
        assert len(notifier.history) == 1

    @pytest.mark.asyncio
    async def test_history_newest_first(self):
        notifier = _notifier(lambda request: httpx.Response(200))
        await notifier.send(_message(title="first"))
        await notifier.send(_message(title="second"))

        history = notifier.get_notifications()

        assert [n["title"] for n in history] == ["second", "first"]
        assert history[0]["sent_to_ntfy"] is True
        assert history[0]["correlation_id"] == "entry-1"

        notifier.clear_notifications()
        assert notifier.get_notifications() == []

    def test_subscription_url(self):
        notifier = _notifier(lambda request: httpx.Response(200))
        assert notifier.get_notification_url() == "http://ntfy.test/alerts"

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        notifier = NtfyNotifier(ntfy_url="http://ntfy.test", ntfy_topic="alerts", http_client=client)

        await notifier.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_closes_own_client(self):
        notifier = NtfyNotifier(ntfy_url="http://ntfy.test", ntfy_topic="alerts")
        client = await notifier._get_client()

        await notifier.close()

        assert client.is_closed is True
