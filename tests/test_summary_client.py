import json

import httpx
import pytest

from movierag.clients.summary_client import (
    SummaryRequester,
    SummaryState,
    extract_summary_text,
)
from movierag.errors import SummaryUnavailableError

PRIMARY = "https://primary.example.com"
FALLBACK = "http://127.0.0.1:8000"


def make_requester(handler, primary=PRIMARY):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SummaryRequester(http, fallbacks=[FALLBACK], primary=primary)


class Recorder:
    """MockTransport handler answering per host."""

    def __init__(self, **by_host):
        self.by_host = by_host
        self.calls = []

    def __call__(self, request):
        self.calls.append(str(request.url))
        answer = self.by_host[request.url.host.replace(".", "_")]
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.mark.asyncio
async def test_primary_success_skips_fallback():
    handler = Recorder(primary_example_com=httpx.Response(200, json="# Inception"))
    requester = make_requester(handler)

    result = await requester.request("Inception")

    assert result.text == "# Inception"
    assert result.endpoint == PRIMARY
    assert handler.calls == [f"{PRIMARY}/summarize"]
    assert requester.state == SummaryState.DONE


@pytest.mark.asyncio
async def test_request_body_and_headers():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers["accept"]
        seen["method"] = request.method
        return httpx.Response(200, json="ok")

    await make_requester(handler).request("Inception")
    assert seen == {"body": {"moviename": "Inception"},
                    "accept": "application/json", "method": "POST"}


@pytest.mark.asyncio
async def test_primary_failure_falls_back():
    handler = Recorder(
        primary_example_com=httpx.Response(500, text="down"),
        **{"127_0_0_1": httpx.Response(200, json={"summary": "X"})},
    )
    requester = make_requester(handler)

    result = await requester.request("Inception")

    assert result.text == "X"
    assert result.endpoint == FALLBACK
    assert result.attempts == [PRIMARY, FALLBACK]
    assert requester.state == SummaryState.DONE


@pytest.mark.asyncio
async def test_primary_network_error_falls_back():
    handler = Recorder(
        primary_example_com=httpx.ConnectError("refused"),
        **{"127_0_0_1": httpx.Response(200, json="fallback text")},
    )
    result = await make_requester(handler).request("Inception")
    assert result.text == "fallback text"


@pytest.mark.asyncio
async def test_non_json_body_counts_as_failure():
    handler = Recorder(
        primary_example_com=httpx.Response(200, text="<html>gateway</html>"),
        **{"127_0_0_1": httpx.Response(200, json="from fallback")},
    )
    result = await make_requester(handler).request("Inception")
    assert result.endpoint == FALLBACK


@pytest.mark.asyncio
async def test_missing_primary_goes_straight_to_fallback():
    handler = Recorder(**{"127_0_0_1": httpx.Response(200, json="only fallback")})
    requester = make_requester(handler, primary=None)

    result = await requester.request("Inception")

    assert handler.calls == [f"{FALLBACK}/summarize"]
    assert result.text == "only fallback"


@pytest.mark.asyncio
async def test_both_failing_raises_once_without_retry():
    handler = Recorder(
        primary_example_com=httpx.Response(503),
        **{"127_0_0_1": httpx.ConnectError("refused")},
    )
    requester = make_requester(handler)

    with pytest.raises(SummaryUnavailableError) as info:
        await requester.request("Inception")

    assert str(info.value) == "Backend not working: API is offline."
    assert info.value.attempts == [PRIMARY, FALLBACK]
    assert len(handler.calls) == 2
    assert requester.state == SummaryState.FAILED


def test_extract_summary_text_shapes():
    assert extract_summary_text("## Plot") == "## Plot"
    assert extract_summary_text({"summary": "X"}) == "X"
    assert extract_summary_text({"other": 1}) == json.dumps({"other": 1}, indent=2)
