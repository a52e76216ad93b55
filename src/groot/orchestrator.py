"""
orchestrator.py — Multi-agent curriculum pipeline
===================================================
Fixed four-stage sequential pipeline:

  generate            Seedling builds a curriculum from a topic
                      (or an existing curriculum.json is loaded instead)
  technical-review    Canopy reviews feasibility / accuracy / sequencing
  pedagogical-review  Bark reviews learning flow / pace / engagement
  merge               feedback is partitioned, conflicts detected, result built

Stages run one after another, never in parallel.  Any exception inside a
stage aborts the run and is re-raised as ``OrchestrationError`` naming the
stage; callers get either a complete ``OrchestrationResult`` or that error.

Conflict detection is a keyword heuristic: within one target (curriculum or
a specific phase) Canopy pushing complexity up while Bark pushes it down (or
vice versa) marks the whole group as conflicting.  The keyword lists are
part of the on-disk/behavioural contract and must not be changed.

The merge stage records change descriptions only; it never rewrites the
curriculum structure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from groot.agent import Agent, AgentResponse
from groot.agent_trace import DebugEvent, RunTrace
from groot.config import Settings, get_settings
from groot.curriculum_store import load_curriculum_json
from groot.errors import GenerationError, OrchestrationError
from groot.llm import ChatClient
from groot.models import (
    AgentFeedback,
    AgentName,
    Curriculum,
    FeedbackType,
    Severity,
)
from groot.personas import (
    GENERATE_TOOL,
    PEDAGOGY_REVIEW_TOOL,
    TECHNICAL_REVIEW_TOOL,
    ReviewOutcome,
    build_generation_prompt,
    create_agent,
    review_curriculum,
)

logger = logging.getLogger(__name__)

STAGE_GENERATE     = "generate"
STAGE_TECHNICAL    = "technical-review"
STAGE_PEDAGOGICAL  = "pedagogical-review"
STAGE_MERGE        = "merge"

COMPLEXITY_UP   = ("add", "increase", "more", "advanced", "complex")
COMPLEXITY_DOWN = ("simplify", "reduce", "less", "basic", "remove")


# ─── Result / callback types ─────────────────────────────────────────────────

@dataclass
class OrchestratorCallbacks:
    on_phase_start:    Optional[Callable[[str], None]] = None
    on_phase_complete: Optional[Callable[[str, bool], None]] = None
    on_feedback:       Optional[Callable[[AgentFeedback], None]] = None
    on_log:            Optional[Callable[[str], None]] = None
    on_debug:          Optional[Callable[[DebugEvent], None]] = None


@dataclass
class SharedContext:
    """Run-scoped scratchpad shared by the stages of one orchestration."""
    original_topic:      str
    review_round:        int = 0
    agent_contributions: dict[AgentName, list[str]] = field(
        default_factory=lambda: {name: [] for name in AgentName}
    )
    consensus_reached:   bool = False


@dataclass
class OrchestrationResult:
    success:           bool
    final_curriculum:  Curriculum
    all_feedback:      list[AgentFeedback] = field(default_factory=list)
    applied_changes:   list[str] = field(default_factory=list)
    unresolved_issues: list[AgentFeedback] = field(default_factory=list)
    technical_score:   float = 7
    pedagogy_score:    float = 7
    trace:             Optional[RunTrace] = None


# ─── Conflict detection ──────────────────────────────────────────────────────

def _mentions_any(items: list[AgentFeedback], keywords: tuple[str, ...]) -> bool:
    return any(kw in f.message.lower() for f in items for kw in keywords)


def has_opposing_suggestions(
    canopy_items: list[AgentFeedback],
    bark_items: list[AgentFeedback],
) -> bool:
    """True when one reviewer pushes complexity up and the other pushes it down."""
    canopy_up   = _mentions_any(canopy_items, COMPLEXITY_UP)
    canopy_down = _mentions_any(canopy_items, COMPLEXITY_DOWN)
    bark_up     = _mentions_any(bark_items, COMPLEXITY_UP)
    bark_down   = _mentions_any(bark_items, COMPLEXITY_DOWN)
    return (canopy_up and bark_down) or (canopy_down and bark_up)


def target_key(feedback: AgentFeedback) -> str:
    return f"{feedback.target.kind}-{feedback.target.phase_number or 'all'}"


def detect_conflicts(
    feedback: list[AgentFeedback],
) -> tuple[list[AgentFeedback], list[AgentFeedback]]:
    """
    Split *feedback* into (conflicting, non_conflicting).

    Conflicting groups are emitted group by group, Canopy items first then
    Bark items.  Non-conflicting items keep their original order.
    """
    groups: dict[str, list[AgentFeedback]] = {}
    for item in feedback:
        groups.setdefault(target_key(item), []).append(item)

    conflicts: list[AgentFeedback] = []
    conflicting_keys: set[str] = set()
    for key, items in groups.items():
        canopy = [f for f in items if f.agent_name == AgentName.CANOPY]
        bark   = [f for f in items if f.agent_name == AgentName.BARK]
        if has_opposing_suggestions(canopy, bark):
            conflicting_keys.add(key)
            others = [f for f in items if f.agent_name not in (AgentName.CANOPY, AgentName.BARK)]
            conflicts.extend(canopy + bark + others)

    non_conflicting = [f for f in feedback if target_key(f) not in conflicting_keys]
    return conflicts, non_conflicting


def describe_change(feedback: AgentFeedback) -> str:
    return (
        f"[{feedback.agent_name.value}] {feedback.category.value}: "
        f"{feedback.suggested_change or feedback.message}"
    )


# ─── Orchestrator ────────────────────────────────────────────────────────────

def run_succeeded(feedback: list[AgentFeedback], unresolved: list[AgentFeedback]) -> bool:
    """A run fails on any unresolved item or any blocker, whatever its severity."""
    if unresolved:
        return False
    return not any(f.feedback_type == FeedbackType.BLOCKER for f in feedback)


class Orchestrator:
    """Runs generate → technical review → pedagogical review → merge."""

    def __init__(
        self,
        seedling: Agent,
        canopy: Agent,
        bark: Agent,
        callbacks: Optional[OrchestratorCallbacks] = None,
        verbose: bool = False,
        debug: bool = False,
    ) -> None:
        self.seedling  = seedling
        self.canopy    = canopy
        self.bark      = bark
        self.callbacks = callbacks or OrchestratorCallbacks()
        self.verbose   = verbose
        self.debug     = debug
        self.context: Optional[SharedContext] = None

    # ── Callback plumbing ────────────────────────────────────────────────────

    def _log(self, message: str, detail: bool = False) -> None:
        logger.info(message)
        if detail and not self.verbose:
            return
        if self.callbacks.on_log:
            self.callbacks.on_log(message)

    def _debug(self, type_: str, agent: str, content: str, data: Any = None) -> None:
        if self.debug and self.callbacks.on_debug:
            self.callbacks.on_debug(DebugEvent(type=type_, agent=agent, content=content, data=data))

    def _debug_tool_calls(self, agent: Agent, response: AgentResponse) -> None:
        for call in response.tool_calls:
            self._debug("tool_call", agent.name.value, call.tool_name, call.input)
            self._debug("tool_result", agent.name.value, call.tool_name, call.output)

    def _emit_feedback(self, items: list[AgentFeedback]) -> None:
        for item in items:
            if self.callbacks.on_feedback:
                self.callbacks.on_feedback(item)
            self._log(f"  {describe_change(item)} ({item.severity.value})", detail=True)

    def _run_stage(self, stage: str, agent: str, trace: RunTrace, fn: Callable[[], Any]) -> Any:
        if self.callbacks.on_phase_start:
            self.callbacks.on_phase_start(stage)
        step = trace.begin(stage, agent)
        try:
            result = fn()
        except Exception as exc:
            trace.finish(step, status="failed", summary=str(exc))
            if self.callbacks.on_phase_complete:
                self.callbacks.on_phase_complete(stage, False)
            raise OrchestrationError(stage, str(exc)) from exc
        trace.finish(step)
        if self.callbacks.on_phase_complete:
            self.callbacks.on_phase_complete(stage, True)
        return result

    # ── Stages ───────────────────────────────────────────────────────────────

    def generate_curriculum(self, topic: str) -> Curriculum:
        agent  = self.seedling
        prompt = build_generation_prompt(topic)
        self._debug("prompt", agent.name.value, prompt)

        response = agent.chat(prompt)
        self._debug("response", agent.name.value, response.content)
        self._debug_tool_calls(agent, response)

        call = response.find_tool(GENERATE_TOOL)
        if call is None or not isinstance(call.output, dict) or "curriculum" not in call.output:
            raise GenerationError(f"{agent.display_name} did not call {GENERATE_TOOL}")

        curriculum: Curriculum = call.output["curriculum"]
        self.context.agent_contributions[AgentName.SEEDLING].append(
            f"Generated '{curriculum.title}' with {len(curriculum.phases)} phases"
        )
        self._log(f"Generated curriculum: {curriculum.title} ({len(curriculum.phases)} phases)")
        return curriculum

    def load_curriculum(self, path: str) -> Curriculum:
        curriculum = load_curriculum_json(Path(path))
        self._log(f"Loaded curriculum: {curriculum.title} ({len(curriculum.phases)} phases)")
        return curriculum

    def _review(self, agent: Agent, curriculum: Curriculum, tool_name: str, score_key: str) -> ReviewOutcome:
        outcome = review_curriculum(agent, curriculum, tool_name, score_key)
        self._debug("prompt", agent.name.value, outcome.prompt)
        self._debug("response", agent.name.value, outcome.summary)
        for item in outcome.feedback:
            self._debug("tool_result", agent.name.value, tool_name, item.model_dump(by_alias=True))

        self.context.agent_contributions[agent.name].append(
            f"{tool_name}: score {outcome.score}, {len(outcome.feedback)} feedback items"
        )
        self._emit_feedback(outcome.feedback)
        return outcome

    def technical_review(self, curriculum: Curriculum) -> ReviewOutcome:
        self._debug("handoff", AgentName.SEEDLING.value, f"Curriculum handed to {self.canopy.display_name}")
        outcome = self._review(self.canopy, curriculum, TECHNICAL_REVIEW_TOOL, "feasibilityScore")
        self._log(f"Technical review: feasibility {outcome.score}/10, {len(outcome.feedback)} items")
        return outcome

    def pedagogical_review(self, curriculum: Curriculum) -> ReviewOutcome:
        self._debug("handoff", AgentName.CANOPY.value, f"Curriculum handed to {self.bark.display_name}")
        self.context.review_round += 1
        outcome = self._review(self.bark, curriculum, PEDAGOGY_REVIEW_TOOL, "learningFlowScore")
        self._log(f"Pedagogical review: learning flow {outcome.score}/10, {len(outcome.feedback)} items")
        return outcome

    def merge_feedback(
        self,
        curriculum: Curriculum,
        feedback: list[AgentFeedback],
    ) -> tuple[Curriculum, list[str], list[AgentFeedback]]:
        """Return (curriculum copy, applied change descriptions, unresolved items)."""
        conflicts, non_conflicting = detect_conflicts(feedback)

        applied = [
            describe_change(f) for f in non_conflicting
            if f.feedback_type != FeedbackType.APPROVAL
        ]

        unresolved = list(conflicts)
        for item in feedback:
            if item.severity == Severity.CRITICAL and not any(item is u for u in unresolved):
                unresolved.append(item)

        self.context.consensus_reached = not conflicts
        if conflicts:
            self._log(f"Detected {len(conflicts)} conflicting feedback items")
        self._log(f"Applied {len(applied)} changes, {len(unresolved)} unresolved")

        # structural rewrite from feedback is not performed
        return curriculum.model_copy(), applied, unresolved

    # ── Pipeline ─────────────────────────────────────────────────────────────

    def orchestrate(self, topic_or_file: str, from_file: bool = False) -> OrchestrationResult:
        self.context = SharedContext(original_topic=topic_or_file)
        trace = RunTrace(topic=topic_or_file)

        if from_file:
            curriculum = self._run_stage(
                STAGE_GENERATE, "file", trace, lambda: self.load_curriculum(topic_or_file),
            )
        else:
            curriculum = self._run_stage(
                STAGE_GENERATE, AgentName.SEEDLING.value, trace,
                lambda: self.generate_curriculum(topic_or_file),
            )

        technical = self._run_stage(
            STAGE_TECHNICAL, AgentName.CANOPY.value, trace,
            lambda: self.technical_review(curriculum),
        )
        pedagogy = self._run_stage(
            STAGE_PEDAGOGICAL, AgentName.BARK.value, trace,
            lambda: self.pedagogical_review(curriculum),
        )

        all_feedback = technical.feedback + pedagogy.feedback
        final, applied, unresolved = self._run_stage(
            STAGE_MERGE, "orchestrator", trace,
            lambda: self.merge_feedback(curriculum, all_feedback),
        )

        for step, outcome in zip(trace.steps[1:3], (technical, pedagogy)):
            step.decisions = [describe_change(f) for f in outcome.feedback]
        trace.steps[-1].decisions = list(applied)

        return OrchestrationResult(
            success=run_succeeded(all_feedback, unresolved),
            final_curriculum=final,
            all_feedback=all_feedback,
            applied_changes=applied,
            unresolved_issues=unresolved,
            technical_score=technical.score,
            pedagogy_score=pedagogy.score,
            trace=trace,
        )


def create_orchestrator(
    settings: Optional[Settings] = None,
    callbacks: Optional[OrchestratorCallbacks] = None,
    client: Optional[Any] = None,
    verbose: bool = False,
    debug: Optional[bool] = None,
) -> Orchestrator:
    """Build the three persona agents from configuration and wire an Orchestrator."""
    settings = settings or get_settings()
    client   = client or ChatClient.from_settings(settings)
    return Orchestrator(
        seedling=create_agent(AgentName.SEEDLING, client),
        canopy=create_agent(AgentName.CANOPY, client),
        bark=create_agent(AgentName.BARK, client),
        callbacks=callbacks,
        verbose=verbose,
        debug=settings.debug_mode if debug is None else debug,
    )
