"""LLM-powered agent for Monopoly using an OpenAI-compatible chat completions API."""

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from monopoly.decisions import DecisionRequest, DecisionResponse
from monopoly.exceptions import LLMError
from monopoly.settings import LLMSettings, get_llm_settings

from agents.base import Agent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert Monopoly player AI. You must analyze the game state and make optimal strategic decisions.

MONOPOLY RULES SUMMARY:
- Goal: Be the last player with money/assets
- Properties: Buy to collect rent from opponents
- Monopolies: Own all properties of one color to double rent and build houses
- Houses/Hotels: Build on monopolies to increase rent significantly
- Jail: Pay $50 or use card to exit; or try rolling doubles (3 turns max)
- Bankruptcy: Occurs when you can't pay debts

STRATEGY TIPS:
- Orange and red properties have best ROI
- Railroads provide steady income
- Don't overspend early - keep cash reserves
- Consider opponents' positions and cash

You must respond with a valid JSON object containing your decision."""


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` block in ``text``, or None.

    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


class LLMAgent(Agent):
    """
    LLM-powered agent that queries a remote model for every decision.

    The agent:
    1. Summarises the request snapshot into a compact text prompt
    2. Sends a system and a user message to ``{base_url}/chat/completions``
    3. Extracts the first JSON object from the reply
    4. Validates it into a DecisionResponse, retrying with error feedback

    Configuration comes from LLMSettings (``LLM_*`` environment variables)
    unless overridden by constructor arguments.

    Attributes:
        player_id: The player's id in the game.
        name: The player's display name.
        model_name: The LLM model name.
        base_url: Base URL for the OpenAI-compatible API.
        decision_callback: Optional callback receiving a record of each decision.
    """

    def __init__(
        self,
        player_id: int,
        name: str,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[LLMSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        decision_callback: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        """
        Initialize the LLM agent.

        Args:
            player_id: The player's id in the game.
            name: The player's display name.
            model_name: The LLM model to use (default from LLM settings).
            base_url: Base URL for OpenAI-compatible API (default from LLM settings).
            api_key: API key (default from LLM settings).
            settings: Explicit settings instead of the cached environment settings.
            client: Injected HTTP client; created lazily when omitted.
            decision_callback: Optional callback(decision_data) for recording decisions.
        """
        super().__init__(player_id, name)
        self.settings = settings or get_llm_settings()
        self.model_name = model_name or self.settings.model
        self.base_url = base_url or self.settings.base_url
        if not self.base_url:
            raise LLMError(f"No base URL configured for LLM provider {self.settings.provider.value}")
        if api_key is None and self.settings.api_key is not None:
            api_key = self.settings.api_key.get_secret_value()
        self.api_key = api_key
        self.decision_callback = decision_callback
        self._client = client
        self._owns_client = client is None
        self._decision_count = 0

    async def decide(self, request: DecisionRequest) -> DecisionResponse:
        """
        Ask the model for a decision.

        Raises:
            LLMError: If every attempt fails to produce a valid reply.
        """
        start_time = time.time()
        self._decision_count += 1

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": self._build_prompt(request)},
        ]

        raw_response = ""
        last_error: Optional[LLMError] = None
        response: Optional[DecisionResponse] = None
        attempts = self.settings.max_attempts

        for attempt in range(attempts):
            try:
                if attempt > 0:
                    logger.info("LLM Player %s: retry attempt %d/%d", self.player_id, attempt + 1, attempts)
                    messages = messages[:2] + self._retry_messages(raw_response, str(last_error))
                raw_response = await self._query_llm(messages)
                response = self._parse_response(raw_response)
                break
            except LLMError as e:
                last_error = e
                logger.warning("LLM error for player %s (attempt %d): %s", self.player_id, attempt + 1, e)

        processing_time_ms = int((time.time() - start_time) * 1000)
        self._record(request, messages, raw_response, response, last_error, processing_time_ms)

        if response is None:
            raise last_error or LLMError("LLM produced no decision")

        logger.info(
            "LLM Player %s chose %s (confidence=%s, time=%dms)",
            self.player_id, response.action, response.confidence, processing_time_ms,
        )
        return response

    def _build_prompt(self, request: DecisionRequest) -> str:
        """Build the user message describing state, decision and options."""
        snapshot = request.snapshot
        me = self.me(request)

        holdings = []
        for prop in me.get("properties", []):
            extra = "+Hotel" if prop.get("hotel") else ""
            flag = " [mortgaged]" if prop.get("mortgaged") else ""
            holdings.append(f"{prop['name']} ({prop.get('houses', 0)}H{extra}){flag}")

        opponents = "; ".join(
            f"{p['name']}: ${p['cash']}, {len(p['properties'])} properties"
            for p in snapshot.get("players", [])
            if p["player_id"] != self.player_id and not p["is_bankrupt"]
        )

        roll = snapshot.get("last_roll")
        roll_text = f"{roll['die1']} + {roll['die2']} = {roll['total']}" if roll else "Not rolled yet"

        return "\n".join(
            [
                "CURRENT GAME STATE:",
                f"- Turn: {snapshot.get('turn_number')}",
                f"- Your name: {me.get('name', self.name)}",
                f"- Your money: ${me.get('cash', 0)}",
                f"- Your position: {me.get('space')} (space {me.get('position')})",
                f"- Your properties: {', '.join(holdings) or 'None'}",
                f"- Jail cards: {me.get('jail_cards', 0)}",
                f"- In jail: {me.get('in_jail', False)}",
                f"- Last dice roll: {roll_text}",
                f"- Opponents: {opponents or 'None'}",
                f"- Free Parking pot: ${snapshot.get('free_parking_pot', 0)}",
                "",
                f"DECISION REQUIRED ({request.kind.value}): {request.description}",
                f"CONTEXT: {json.dumps(request.context)}",
                f"AVAILABLE OPTIONS: {', '.join(request.options)}",
                "",
                "Analyze the situation and respond with a JSON object:",
                '{"action": "your_chosen_action", "reasoning": "brief explanation", "confidence": 0.0 to 1.0}',
                "",
                "Choose the action that maximizes your chance of winning the game.",
            ]
        )

    def _retry_messages(self, bad_response: str, error: str) -> List[Dict[str, str]]:
        """Conversation turns that show the model its invalid reply."""
        return [
            {"role": "assistant", "content": bad_response[:500] if bad_response else "(empty response)"},
            {
                "role": "user",
                "content": (
                    f"Your previous response was INVALID: {error}\n"
                    "Respond with ONLY a JSON object with keys action, reasoning and confidence. "
                    "The action must be one of the available options."
                ),
            },
        ]

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout_seconds)
        return self._client

    async def _query_llm(self, messages: List[Dict[str, str]]) -> str:
        """Query the LLM using the OpenAI-compatible chat completions API."""
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        payload = {
            "model": self.model_name,
            "messages": messages,
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
        }
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = await self._get_client().post(url, json=payload, headers=headers or None)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e
        except ValueError as e:
            raise LLMError(f"LLM API returned invalid JSON: {e}") from e

        # OpenAI-compatible API returns choices[0].message.content
        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices:
            raise LLMError("Invalid LLM response format")
        content = (choices[0].get("message") or {}).get("content") or ""
        content = content.strip()
        if not content:
            raise LLMError("No response from LLM")
        return content

    def _parse_response(self, raw_response: str) -> DecisionResponse:
        """Extract and validate the decision JSON from a model reply."""
        json_str = extract_json_object(raw_response)
        if json_str is None:
            raise LLMError(f"Could not parse LLM response as JSON: {raw_response[:100]}")
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise LLMError(f"JSON parse error: {e}") from e
        try:
            return DecisionResponse.model_validate(data)
        except ValidationError as e:
            raise LLMError(f"Invalid decision object: {e.errors()[0]['msg']}") from e

    def _record(
        self,
        request: DecisionRequest,
        messages: List[Dict[str, str]],
        raw_response: str,
        response: Optional[DecisionResponse],
        error: Optional[LLMError],
        processing_time_ms: int,
    ) -> None:
        if not self.decision_callback:
            return
        decision_data = {
            "player_id": self.player_id,
            "turn_number": request.snapshot.get("turn_number"),
            "sequence_number": self._decision_count,
            "kind": request.kind.value,
            "available_actions": list(request.options),
            "prompt": messages[1]["content"],
            "raw_response": raw_response,
            "action": response.action if response else None,
            "reasoning": response.reasoning if response else None,
            "confidence": response.confidence if response else None,
            "error": str(error) if response is None and error else None,
            "processing_time_ms": processing_time_ms,
            "model_version": self.model_name,
        }
        try:
            self.decision_callback(decision_data)
        except Exception as cb_err:
            logger.error("Decision callback error: %s", cb_err)

    async def aclose(self) -> None:
        """Close the HTTP client if this agent created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LLMAgent":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
