"""
agent_trace.py — Lightweight audit log for orchestration runs
==============================================================
Every stage of ``Orchestrator.orchestrate`` emits an AgentStep record.  The
orchestrator collects them into a RunTrace that travels back on
``OrchestrationResult.trace``; ``groot grow --trace FILE`` dumps it as JSON.

Data model
----------
  DebugEvent     One raw observation (prompt, response, tool call, …) pushed
                 to ``OrchestratorCallbacks.on_debug`` when debug is on.
  AgentStep      One stage's contribution: timing, status, decisions.
  RunTrace       Full trace for a single run; ordered list of AgentSteps.

Key fields
----------
  DebugEvent.type        "prompt" | "response" | "tool_call" | "tool_result" | "handoff"
  AgentStep.stage        "generate" | "technical-review" | "pedagogical-review" | "merge"
  AgentStep.status       "success" | "failed"
  AgentStep.duration_ms  Wall-clock milliseconds for that stage
  RunTrace.total_ms      End-to-end wall time
"""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from groot.models import utcnow


@dataclass
class DebugEvent:
    type:    str                     # prompt | response | tool_call | tool_result | handoff
    agent:   str
    content: str
    data:    Optional[Any] = None


@dataclass
class AgentStep:
    """One stage's contribution inside an orchestration run."""
    stage:       str
    agent:       str
    start_ms:    float               # relative to run start
    duration_ms: float = 0.0
    status:      str = "success"     # "success" | "failed"
    summary:     str = ""
    decisions:   list[str] = field(default_factory=list)


@dataclass
class RunTrace:
    """Full trace for a single orchestration run."""
    topic:     str
    run_id:    str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(default_factory=lambda: utcnow().isoformat())
    total_ms:  float = 0.0
    steps:     list[AgentStep] = field(default_factory=list)
    _t0:       float = field(default_factory=time.perf_counter, repr=False)

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._t0) * 1000, 1)

    def begin(self, stage: str, agent: str) -> AgentStep:
        step = AgentStep(stage=stage, agent=agent, start_ms=self.elapsed_ms())
        self.steps.append(step)
        return step

    def finish(self, step: AgentStep, status: str = "success", summary: str = "") -> None:
        step.duration_ms = round(self.elapsed_ms() - step.start_ms, 1)
        step.status      = status
        if summary:
            step.summary = summary
        self.total_ms = self.elapsed_ms()

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id":    self.run_id,
            "topic":     self.topic,
            "timestamp": self.timestamp,
            "total_ms":  self.total_ms,
            "steps":     [asdict(s) for s in self.steps],
        }
