"""
Tests for the LLM agent against a mocked chat completions endpoint.
"""

import json

import httpx
import pytest

from agents.llm import LLMAgent, extract_json_object
from monopoly.actions import AUCTION, BUY, DecisionKind, buy_options
from monopoly.decisions import DecisionGateway, DecisionRequest
from monopoly.exceptions import LLMError
from monopoly.settings import LLMSettings
from monopoly.snapshot import serialize_snapshot


def completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class FakeEndpoint:
    """Replays canned responses and records request payloads."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(reply, httpx.Response):
            return reply
        return completion(reply)

    def payload(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def settings():
    return LLMSettings(_env_file=None, provider="openrouter", api_key="test-key", max_attempts=2)


@pytest.fixture
def request_for(basic_game):
    def _factory(kind=DecisionKind.BUY_OR_AUCTION, options=("buy", "auction")):
        return DecisionRequest(
            kind=kind,
            player_id=0,
            options=list(options),
            snapshot=serialize_snapshot(basic_game),
            context={"property": "Boardwalk", "price": 400},
            description="Buy Boardwalk for $400 or send it to auction",
        )

    return _factory


def make_agent(endpoint, settings, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    return LLMAgent(0, "Alice", settings=settings, client=client, **kwargs)


def test_extract_json_object():
    assert extract_json_object('Sure: {"action": "buy"} done') == '{"action": "buy"}'
    assert extract_json_object('x {"a": "}{", "b": {"c": 1}} y') == '{"a": "}{", "b": {"c": 1}}'
    assert extract_json_object('{"a": "quote \\" {"}') == '{"a": "quote \\" {"}'
    assert extract_json_object('{ broken {"action": "roll"}') == '{"action": "roll"}'
    assert extract_json_object("no json here") is None


def test_settings_default_base_urls():
    assert LLMSettings(_env_file=None).base_url == "https://openrouter.ai/api/v1"
    assert LLMSettings(_env_file=None, provider="ollama").base_url == "http://localhost:11434/v1"
    assert LLMSettings(_env_file=None, provider="custom").base_url is None
    assert LLMSettings(_env_file=None, provider="vllm", base_url="http://gpu:9000/v1").base_url == "http://gpu:9000/v1"


def test_custom_provider_without_url_rejected():
    with pytest.raises(LLMError):
        LLMAgent(0, "Alice", settings=LLMSettings(_env_file=None, provider="custom"))


@pytest.mark.asyncio
async def test_decide_parses_embedded_json(settings, request_for):
    endpoint = FakeEndpoint('I think {"action": "buy", "reasoning": "Dark blue", "confidence": 0.8} is best.')
    agent = make_agent(endpoint, settings)

    response = await agent.decide(request_for())

    assert response.action == "buy"
    assert response.reasoning == "Dark blue"
    assert response.confidence == 0.8

    request = endpoint.requests[0]
    assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    payload = endpoint.payload()
    assert payload["model"] == "openai/gpt-4o-mini"
    assert [m["role"] for m in payload["messages"]] == ["system", "user"]
    prompt = payload["messages"][1]["content"]
    assert "AVAILABLE OPTIONS: buy, auction" in prompt
    assert "Your money: $1500" in prompt
    await agent.aclose()


@pytest.mark.asyncio
async def test_retry_after_unparsable_reply(settings, request_for):
    endpoint = FakeEndpoint("I would buy it", '{"action": "auction"}')
    agent = make_agent(endpoint, settings)

    response = await agent.decide(request_for())

    assert response.action == "auction"
    assert len(endpoint.requests) == 2
    retry = endpoint.payload(1)["messages"]
    assert [m["role"] for m in retry] == ["system", "user", "assistant", "user"]
    assert retry[2]["content"] == "I would buy it"
    assert "INVALID" in retry[3]["content"]


@pytest.mark.asyncio
async def test_all_attempts_failing_raises(settings, request_for):
    agent = make_agent(FakeEndpoint("nope"), settings)

    with pytest.raises(LLMError):
        await agent.decide(request_for())


@pytest.mark.asyncio
async def test_http_error_raises_llm_error(settings, request_for):
    agent = make_agent(FakeEndpoint(httpx.Response(500, json={"error": "boom"})), settings)

    with pytest.raises(LLMError, match="500"):
        await agent.decide(request_for())


@pytest.mark.asyncio
async def test_missing_choices_raises_llm_error(settings, request_for):
    agent = make_agent(FakeEndpoint(httpx.Response(200, json={"id": "x"})), settings)

    with pytest.raises(LLMError):
        await agent.decide(request_for())


@pytest.mark.asyncio
async def test_invalid_confidence_is_retried(settings, request_for):
    endpoint = FakeEndpoint('{"action": "buy", "confidence": 3}', '{"action": "buy", "confidence": 0.6}')
    agent = make_agent(endpoint, settings)

    response = await agent.decide(request_for())

    assert response.confidence == 0.6
    assert len(endpoint.requests) == 2


@pytest.mark.asyncio
async def test_decision_callback_receives_record(settings, request_for):
    records = []
    endpoint = FakeEndpoint('{"action": "buy", "reasoning": "ok", "confidence": 0.5}')
    agent = make_agent(endpoint, settings, decision_callback=records.append)

    await agent.decide(request_for())

    assert len(records) == 1
    record = records[0]
    assert record["player_id"] == 0
    assert record["kind"] == "buy_or_auction"
    assert record["action"] == "buy"
    assert record["available_actions"] == ["buy", "auction"]
    assert record["model_version"] == "openai/gpt-4o-mini"
    assert record["error"] is None


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_decision(settings, request_for):
    def explode(record):
        raise RuntimeError("storage down")

    agent = make_agent(FakeEndpoint('{"action": "buy"}'), settings, decision_callback=explode)

    response = await agent.decide(request_for())

    assert response.action == "buy"


@pytest.mark.asyncio
async def test_gateway_falls_back_when_llm_fails(make_game, settings):
    agent = make_agent(FakeEndpoint("still no json"), settings)
    game = make_game([agent, None])

    decision = await DecisionGateway(game).decide(0, DecisionKind.BUY_OR_AUCTION, buy_options())

    assert decision.action == AUCTION
    assert decision.degraded


@pytest.mark.asyncio
async def test_gateway_corrects_llm_choice_outside_options(make_game, settings):
    agent = make_agent(FakeEndpoint('{"action": "bid_100", "reasoning": "cheap"}'), settings)
    game = make_game([agent, None])

    decision = await DecisionGateway(game).decide(0, DecisionKind.BUY_OR_AUCTION, buy_options())

    assert decision.action == BUY
    assert decision.reasoning == "cheap (action corrected to valid option)"
