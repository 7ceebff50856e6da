"""Tests for the fetch bridge client against a mocked gateway."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import aiohttp
import pytest
from aioresponses import aioresponses as aioresponses_cls
from yarl import URL

from hyperbench.exceptions import TransportError
from hyperbench.hyper.events import EVENT_STREAM, ServerSentEvent, encode_event
from hyperbench.hyper.fetch import (
    HyperFetch,
    extension_url,
    extensions_url,
    gateway_path,
    parse_key_record,
)
from hyperbench.testing.factories import ServerSentEventFactory

GATEWAY_URL = "http://gateway.test"
KEY = "hyper://" + "ab" * 32
STREAM_URL = f"{GATEWAY_URL}/hyper/{'ab' * 32}/$/extensions/"


@dataclass(frozen=True)
class StubGateway:
    """Gateway handle that only carries a URL."""

    url: str = GATEWAY_URL


@pytest.fixture
async def client(
    aioresponses: aioresponses_cls,
) -> AsyncGenerator[HyperFetch, None]:
    """Create a client whose session talks to the mocked gateway."""
    async with aiohttp.ClientSession(base_url=GATEWAY_URL) as session:
        yield HyperFetch(gateway=StubGateway(), session=session)


class TestUrls:
    """Tests for hyper URL helpers."""

    def test_gateway_path_maps_host_and_path(self) -> None:
        """hyper://host/path becomes /hyper/host/path."""
        assert gateway_path("hyper://example/.well-known/hyper") == (
            "/hyper/example/.well-known/hyper"
        )

    def test_gateway_path_keeps_extension_markers(self) -> None:
        """The $ path segment survives the mapping."""
        assert gateway_path(extensions_url(KEY)) == f"/hyper/{'ab' * 32}/$/extensions/"

    def test_gateway_path_rejects_other_schemes(self) -> None:
        """Only hyper:// URLs can be bridged."""
        with pytest.raises(ValueError, match="Not a hyper:// URL"):
            gateway_path("http://example/")

    def test_extension_url(self) -> None:
        """Extension URLs hang off the key, ignoring a trailing slash."""
        assert extension_url(KEY + "/", "example") == f"{KEY}/$/extensions/example"

    def test_parse_key_record_takes_first_line(self) -> None:
        """The canonical address is the first line of the record."""
        assert parse_key_record(f"{KEY}\nAllow: *\n") == KEY

    def test_parse_key_record_rejects_garbage(self) -> None:
        """A record that does not start with an address is an error."""
        with pytest.raises(TransportError, match="Malformed"):
            parse_key_record("<html>not found</html>")


class TestHyperFetch:
    """Tests for HyperFetch requests."""

    async def test_lookup_key(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """Resolves a name through the well-known record on the gateway."""
        url = f"{GATEWAY_URL}/hyper/example/.well-known/hyper"
        aioresponses.get(url, status=200, body=f"{KEY}\nAllow: *\n")

        key = await client.lookup_key("example")

        assert key == KEY
        assert ("GET", URL(url)) in aioresponses.requests

    async def test_lookup_key_failure(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """A non-success lookup raises TransportError with the body."""
        aioresponses.get(
            f"{GATEWAY_URL}/hyper/example/.well-known/hyper",
            status=404,
            body="No such drive",
        )

        with pytest.raises(TransportError, match="404 No such drive"):
            await client.lookup_key("example")

    async def test_fetch_posts_body(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """POSTs are forwarded with their body and return the response."""
        url = f"{GATEWAY_URL}/hyper/{'ab' * 32}/$/extensions/example"
        aioresponses.post(url, status=500, body="Extension failed")

        response = await client.fetch(
            extension_url(KEY, "example"), method="POST", data=b"Hello World!"
        )

        assert response.status == 500
        assert not response.ok
        assert response.body == "Extension failed"
        call = aioresponses.requests[("POST", URL(url))][0]
        assert call.kwargs["data"] == b"Hello World!"

    async def test_events_rejects_non_success(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """A failed subscription raises TransportError."""
        aioresponses.get(
            f"{GATEWAY_URL}/hyper/{'ab' * 32}/$/extensions/",
            status=503,
            body="unavailable",
        )

        with pytest.raises(TransportError, match="Failed to subscribe.*503"):
            async with client.events(extensions_url(KEY)):
                pass  # pragma: no cover


class TestEvents:
    """Tests for reading the extension event stream."""

    @staticmethod
    async def _read(client: HyperFetch, count: int) -> list[ServerSentEvent]:
        received = []
        async with client.events(extensions_url(KEY)) as events:
            async for event in events:
                received.append(event)
                if len(received) == count:
                    break
        return received

    async def test_parses_named_event(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """Parses event name, id and data, dispatching on the blank line."""
        aioresponses.get(
            STREAM_URL,
            body=b"event: example\nid: peer-1\ndata: Hello World!\n\n",
            content_type=EVENT_STREAM,
        )

        events = await self._read(client, 1)

        assert events == [
            ServerSentEvent(event="example", data="Hello World!", id="peer-1")
        ]

    async def test_defaults_to_message_event(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """Events without a name are 'message' events."""
        aioresponses.get(STREAM_URL, body=b"data: hi\n\n", content_type=EVENT_STREAM)

        events = await self._read(client, 1)

        assert events == [ServerSentEvent(event="message", data="hi")]

    async def test_joins_multiline_data_and_skips_comments(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """Data lines are joined with newlines and comment lines are skipped."""
        aioresponses.get(
            STREAM_URL,
            body=b": keep-alive\ndata: one\ndata: two\n\n",
            content_type=EVENT_STREAM,
        )

        events = await self._read(client, 1)

        assert events[0].data == "one\ntwo"

    async def test_encoded_event_reads_back(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """An event written by the encoder is read back unchanged."""
        event = ServerSentEventFactory.build(event="example", data="line one\nline two")
        aioresponses.get(
            STREAM_URL, body=encode_event(event), content_type=EVENT_STREAM
        )

        assert await self._read(client, 1) == [event]

    async def test_stream_end_raises(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """The stream is not reconnected once the gateway ends it."""
        aioresponses.get(STREAM_URL, body=b"data: hi\n\n", content_type=EVENT_STREAM)

        with pytest.raises(TransportError, match="closed"):
            await self._read(client, 2)

    async def test_undecodable_line_raises(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """Bytes that are not UTF-8 fail the stream with TransportError."""
        aioresponses.get(
            STREAM_URL, body=b"data: \xff\n\n", content_type=EVENT_STREAM
        )

        with pytest.raises(TransportError, match="Malformed"):
            await self._read(client, 1)

    async def test_rejects_other_content_types(
        self, client: HyperFetch, aioresponses: aioresponses_cls
    ) -> None:
        """A response that is not an event stream is refused."""
        aioresponses.get(STREAM_URL, body="<html></html>", content_type="text/html")

        with pytest.raises(TransportError, match="Failed to subscribe"):
            async with client.events(extensions_url(KEY)):
                pass  # pragma: no cover
