"""
Data models for GROOT.

Persisted records (curricula, sessions, handoffs, feedback) are Pydantic
models serialised with camelCase aliases so the JSON on disk matches the
format used by every other GROOT front-end.  Ephemeral runtime records
live next to the code that produces them as dataclasses.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─── Enumerations ────────────────────────────────────────────────────────────

class GrowthStage(str, Enum):
    """How far along the learner is, as a tree metaphor."""
    SEED      = "seed"       # just starting
    SPROUT    = "sprout"     # first concepts
    SAPLING   = "sapling"    # building foundations
    TREE      = "tree"       # core competency
    FLOWERING = "flowering"  # creative application
    SEEDING   = "seeding"    # ready to teach
    FOREST    = "forest"     # mastery


GROWTH_STAGE_ICONS: dict[GrowthStage, str] = {
    GrowthStage.SEED:      "🌰",
    GrowthStage.SPROUT:    "🌱",
    GrowthStage.SAPLING:   "🪴",
    GrowthStage.TREE:      "🌳",
    GrowthStage.FLOWERING: "🌸",
    GrowthStage.SEEDING:   "🌾",
    GrowthStage.FOREST:    "🌲🌳🌴",
}

GROWTH_STAGE_ORDER: list[GrowthStage] = list(GrowthStage)


class PhaseStatus(str, Enum):
    LOCKED      = "locked"
    AVAILABLE   = "available"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"


PHASE_STATUS_ORDER: list[PhaseStatus] = list(PhaseStatus)


class Difficulty(str, Enum):
    BEGINNER     = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED     = "advanced"


class AgentName(str, Enum):
    SEEDLING = "seedling"   # curriculum architect (generator)
    BARK     = "bark"       # tutor / pedagogical reviewer
    CANOPY   = "canopy"     # AI architect / technical reviewer


class FeedbackType(str, Enum):
    APPROVAL   = "approval"
    CONCERN    = "concern"
    SUGGESTION = "suggestion"
    BLOCKER    = "blocker"


class FeedbackCategory(str, Enum):
    TECHNICAL   = "technical"
    PEDAGOGICAL = "pedagogical"
    SEQUENCING  = "sequencing"


class Severity(str, Enum):
    LOW      = "low"
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"


class SessionStatus(str, Enum):
    ACTIVE    = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"   # reserved; nothing transitions here yet


# ─── Base ────────────────────────────────────────────────────────────────────

class GrootModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown keys dropped."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# ─── Curriculum ──────────────────────────────────────────────────────────────

class KeyConcept(GrootModel):
    term:       str
    definition: str
    examples:   list[str] = Field(default_factory=list)


class LearningObjective(GrootModel):
    id:          str
    description: str
    completed:   bool = False


class Deliverable(GrootModel):
    id:                  str
    title:               str
    description:         str = ""
    acceptance_criteria: list[str] = Field(default_factory=list)
    completed:           bool = False
    beads_task_id:       Optional[str] = None


class Phase(GrootModel):
    id:              str
    number:          int
    title:           str
    description:     str = ""
    growth_stage:    GrowthStage = GrowthStage.SEED
    estimated_hours: float = 0
    objectives:      list[LearningObjective] = Field(default_factory=list)
    deliverables:    list[Deliverable] = Field(default_factory=list)
    key_concepts:    list[KeyConcept] = Field(default_factory=list)
    status:          PhaseStatus = PhaseStatus.LOCKED
    beads_epic_id:   Optional[str] = None


class CurriculumMetadata(GrootModel):
    estimated_hours: float = 0
    difficulty:      Difficulty = Difficulty.BEGINNER
    prerequisites:   list[str] = Field(default_factory=list)
    tags:            list[str] = Field(default_factory=list)
    target_audience: str = ""


class Curriculum(GrootModel):
    """Root learning plan: an ordered sequence of phases."""
    id:                  str
    title:               str
    description:         str = ""
    topic:               str = ""
    created_at:          datetime = Field(default_factory=utcnow)
    updated_at:          datetime = Field(default_factory=utcnow)
    phases:              list[Phase] = Field(default_factory=list)
    current_phase_index: int = 0
    growth_stage:        GrowthStage = GrowthStage.SEED
    metadata:            CurriculumMetadata = Field(default_factory=CurriculumMetadata)

    def phase_by_number(self, number: int) -> Optional[Phase]:
        return next((p for p in self.phases if p.number == number), None)


def advance_phase_status(phase: Phase, status: PhaseStatus) -> bool:
    """
    Move *phase* forward to *status*.  Returns True if the status changed.
    Requests that would move the phase backwards are ignored.
    """
    current = PHASE_STATUS_ORDER.index(phase.status)
    target  = PHASE_STATUS_ORDER.index(status)
    if target <= current:
        return False
    phase.status = status
    return True


# ─── Agent feedback ──────────────────────────────────────────────────────────

class FeedbackTarget(GrootModel):
    model_config = ConfigDict(frozen=True)

    kind:         str = Field(default="curriculum", alias="type")  # "curriculum" | "phase"
    phase_number: Optional[int] = None

    @classmethod
    def for_phase(cls, phase_number: Optional[int]) -> "FeedbackTarget":
        if phase_number:
            return cls(kind="phase", phase_number=phase_number)
        return cls(kind="curriculum")


class AgentFeedback(GrootModel):
    """One structured review finding. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    agent_name:       AgentName
    feedback_type:    FeedbackType
    category:         FeedbackCategory
    target:           FeedbackTarget = Field(default_factory=FeedbackTarget)
    message:          str
    severity:         Severity = Severity.MEDIUM
    suggested_change: Optional[str] = None


# ─── Sessions ────────────────────────────────────────────────────────────────

class SessionProgress(GrootModel):
    objectives_completed:   list[str] = Field(default_factory=list)
    deliverables_completed: list[str] = Field(default_factory=list)
    time_spent_minutes:     int = 0


class SessionHandoff(GrootModel):
    """End-of-session summary used to resume work later. Never mutated."""
    model_config = ConfigDict(frozen=True)

    summary:                 str
    completed_work:          list[str] = Field(default_factory=list)
    remaining_work:          list[str] = Field(default_factory=list)
    next_steps:              list[str] = Field(default_factory=list)
    prompt_for_next_session: str = ""


class Session(GrootModel):
    """One learning work period bound to exactly one phase."""
    id:               str
    curriculum_id:    str
    curriculum_path:  str = ""
    curriculum_title: str
    phase_number:     int
    phase_title:      str
    phase_id:         str
    started_at:       datetime = Field(default_factory=utcnow)
    ended_at:         Optional[datetime] = None
    status:           SessionStatus = SessionStatus.ACTIVE
    notes:            list[str] = Field(default_factory=list)
    questions_asked:  list[str] = Field(default_factory=list)
    progress:         SessionProgress = Field(default_factory=SessionProgress)
    handoff:          Optional[SessionHandoff] = None


# ─── Issue tracker ───────────────────────────────────────────────────────────

class BeadsIssue(GrootModel):
    id:           str
    title:        str = ""
    description:  Optional[str] = None
    status:       str = "open"       # open | in_progress | closed
    priority:     int = 2            # 0-4, 0 = highest
    type:         str = Field(default="task", alias="issue_type")
    labels:       list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    created_at:   Optional[str] = None
    updated_at:   Optional[str] = None
