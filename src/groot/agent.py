"""
agent.py — Persona-driven agent facade
=======================================
Seedling, Canopy and Bark share one calling convention: a system prompt,
a table of schema-constrained tools, and a chat loop.  They differ only in
prompt text and tool handlers, so there is a single ``Agent`` type
parameterised by a ``Persona`` descriptor (see personas.py) instead of a
class per agent.

Each tool invocation returned by the model is executed locally by the
matching ``ToolSpec.handler``; the (name, input, output) triple comes back
on ``AgentResponse.tool_calls``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from groot.errors import UnknownToolError
from groot.llm import ChatReply
from groot.models import AgentName, Curriculum, Phase, utcnow

logger = logging.getLogger(__name__)


class ChatBackend(Protocol):
    def chat(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        messages: list[dict[str, str]],
    ) -> ChatReply: ...


@dataclass(frozen=True)
class ToolSpec:
    name:         str
    description:  str
    input_schema: dict[str, Any]
    handler:      Callable[[dict[str, Any]], Any]

    def definition(self) -> dict[str, Any]:
        return {
            "name":         self.name,
            "description":  self.description,
            "input_schema": self.input_schema,
        }


@dataclass(frozen=True)
class Persona:
    """Everything that distinguishes one agent from another."""
    name:          AgentName
    display_name:  str
    system_prompt: str
    tools:         tuple[ToolSpec, ...] = ()

    def tool(self, name: str) -> Optional[ToolSpec]:
        return next((t for t in self.tools if t.name == name), None)


@dataclass
class ToolCall:
    tool_name: str
    input:     dict[str, Any]
    output:    Any = None


@dataclass
class AgentResponse:
    content:    str
    tool_calls: list[ToolCall] = field(default_factory=list)

    def find_tool(self, name: str) -> Optional[ToolCall]:
        return next((tc for tc in self.tool_calls if tc.tool_name == name), None)


@dataclass
class AgentMessage:
    role:       str                  # "user" | "assistant"
    content:    str
    timestamp:  datetime = field(default_factory=utcnow)
    agent_name: Optional[AgentName] = None


@dataclass
class AgentContext:
    curriculum:           Optional[Curriculum] = None
    current_phase:        Optional[Phase] = None
    conversation_history: list[AgentMessage] = field(default_factory=list)


class Agent:
    """A chat loop bound to one persona and one chat backend."""

    def __init__(self, persona: Persona, client: ChatBackend) -> None:
        self.persona = persona
        self.client  = client
        self.context = AgentContext()

    @property
    def name(self) -> AgentName:
        return self.persona.name

    @property
    def display_name(self) -> str:
        return self.persona.display_name

    # ── Context ──────────────────────────────────────────────────────────────

    def set_context(
        self,
        curriculum: Optional[Curriculum] = None,
        current_phase: Optional[Phase] = None,
    ) -> None:
        if curriculum is not None:
            self.context.curriculum = curriculum
        if current_phase is not None:
            self.context.current_phase = current_phase

    def build_system_prompt(self) -> str:
        prompt = self.persona.system_prompt

        curriculum = self.context.curriculum
        if curriculum is not None:
            prompt += "\n\n## Current Curriculum Context\n"
            prompt += f"Title: {curriculum.title}\n"
            prompt += f"Topic: {curriculum.topic}\n"
            prompt += f"Growth Stage: {curriculum.growth_stage.value}\n"

        phase = self.context.current_phase
        if phase is not None:
            prompt += "\n## Current Phase\n"
            prompt += f"Phase {phase.number}: {phase.title}\n"
            prompt += f"Status: {phase.status.value}\n"

        return prompt

    # ── Tools ────────────────────────────────────────────────────────────────

    def execute_tool(self, tool_name: str, tool_input: dict[str, Any]) -> Any:
        tool = self.persona.tool(tool_name)
        if tool is None:
            raise UnknownToolError(tool_name)
        return tool.handler(tool_input)

    # ── Chat ─────────────────────────────────────────────────────────────────

    def chat(self, user_message: str) -> AgentResponse:
        """Send *user_message* (with full history) and execute any tool calls."""
        history = self.context.conversation_history
        turn = AgentMessage(role="user", content=user_message)

        reply = self.client.chat(
            self.build_system_prompt(),
            [t.definition() for t in self.persona.tools],
            [{"role": m.role, "content": m.content} for m in history + [turn]],
        )
        # history only grows once the client has answered
        history.append(turn)

        tool_calls = []
        for use in reply.tool_uses:
            logger.debug("%s invoked tool %s", self.name.value, use.name)
            tool_calls.append(ToolCall(
                tool_name=use.name,
                input=use.input,
                output=self.execute_tool(use.name, use.input),
            ))

        history.append(AgentMessage(
            role="assistant",
            content=reply.text,
            agent_name=self.name,
        ))
        return AgentResponse(content=reply.text, tool_calls=tool_calls)

    def clear_history(self) -> None:
        self.context.conversation_history = []

    @property
    def history(self) -> list[AgentMessage]:
        return self.context.conversation_history
