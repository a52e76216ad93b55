"""
llm.py — Chat-completion client
================================
One request / one response wrapper around a hosted chat model with tool
("function") calling.  The agents never talk to the SDK directly; they go
through ``ChatClient.chat`` so tests can substitute a scripted fake.

The client speaks the OpenAI chat-completions protocol.  By default it
targets Anthropic's OpenAI-compatible endpoint with ``ANTHROPIC_API_KEY``;
``GROOT_BASE_URL`` selects any other compatible endpoint.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from groot.config import DEFAULT_BASE_URL, DEFAULT_MODEL, Settings
from groot.errors import ChatError

logger = logging.getLogger(__name__)


@dataclass
class ToolUse:
    """A tool invocation requested by the model."""
    name:  str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatReply:
    text:      str
    tool_uses: list[ToolUse] = field(default_factory=list)


def to_function_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert ``{name, description, input_schema}`` dicts into function-tool definitions."""
    return [
        {
            "type": "function",
            "function": {
                "name":        t["name"],
                "description": t["description"],
                "parameters":  t["input_schema"],
            },
        }
        for t in tools
    ]


class ChatClient:
    """Thin synchronous chat client.  No retries, no streaming."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        max_tokens: int = 4096,
    ) -> None:
        self.model      = model
        self.max_tokens = max_tokens
        self._client    = OpenAI(api_key=api_key, base_url=base_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatClient":
        return cls(
            api_key=settings.require_api_key(),
            model=settings.model,
            base_url=settings.base_url,
        )

    def chat(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        messages: list[dict[str, str]],
    ) -> ChatReply:
        """Send *system_prompt* + *messages* with *tools*; return text and tool uses."""
        kwargs: dict[str, Any] = {
            "model":      self.model,
            "max_tokens": self.max_tokens,
            "messages":   [{"role": "system", "content": system_prompt}, *messages],
        }
        if tools:
            kwargs["tools"] = to_function_tools(tools)

        logger.debug("chat: model=%s messages=%d tools=%d", self.model, len(messages), len(tools))
        try:
            response = self._client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ChatError(f"Chat request failed: {exc}") from exc

        message = response.choices[0].message
        return ChatReply(
            text=message.content or "",
            tool_uses=[_parse_tool_call(tc) for tc in (message.tool_calls or [])],
        )


def _parse_tool_call(tool_call: Any) -> ToolUse:
    raw: Optional[str] = tool_call.function.arguments
    try:
        arguments = json.loads(raw) if raw else {}
    except json.JSONDecodeError as exc:
        raise ChatError(
            f"Tool '{tool_call.function.name}' returned malformed arguments: {exc}"
        ) from exc
    if not isinstance(arguments, dict):
        raise ChatError(f"Tool '{tool_call.function.name}' arguments must be a JSON object")
    return ToolUse(name=tool_call.function.name, input=arguments)
