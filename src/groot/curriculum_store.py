"""
curriculum_store.py — Curriculum persistence
=============================================
JSON is the only format that can be read back.  Markdown output is a
one-way, human-readable rendering (``groot grow --markdown FILE``).

Progress updates are applied to the file on disk: objectives/deliverables
are marked complete, the phase status only ever moves forward, and when a
phase completes the next one is unlocked and becomes current.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from groot.errors import (
    CurriculumParseError,
    NotFoundError,
    PhaseNotFoundError,
    UnsupportedFormatError,
)
from groot.models import (
    GROWTH_STAGE_ICONS,
    Curriculum,
    PhaseStatus,
    advance_phase_status,
    utcnow,
)
from groot.paths import get_curriculum_path, has_curriculum

logger = logging.getLogger(__name__)

PHASE_STATUS_ICONS = {
    PhaseStatus.LOCKED:      "🔒",
    PhaseStatus.AVAILABLE:   "🌱",
    PhaseStatus.IN_PROGRESS: "🌿",
    PhaseStatus.COMPLETED:   "✅",
}


# ─── JSON ────────────────────────────────────────────────────────────────────

def load_curriculum_json(path: Path) -> Curriculum:
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"Curriculum file not found: {path}")
    if path.suffix.lower() != ".json":
        raise UnsupportedFormatError(
            f"Cannot load {path.name}: only JSON curricula can be read "
            "(markdown output is one-way)"
        )
    try:
        return Curriculum.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise CurriculumParseError(f"{path} is not a valid curriculum: {exc}") from exc


def save_curriculum(curriculum: Curriculum, path: Optional[Path] = None) -> Path:
    """Write *curriculum* as JSON (default: .groot/curriculum.json) and return the path."""
    path = Path(path) if path is not None else get_curriculum_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    curriculum.updated_at = utcnow()
    path.write_text(curriculum.to_json(), encoding="utf-8")
    logger.debug("Saved curriculum %s to %s", curriculum.id, path)
    return path


def get_current_curriculum(base: Optional[Path] = None) -> Optional[Curriculum]:
    """The project's curriculum, or None if ``groot plant``/``grow`` has not run."""
    if not has_curriculum(base):
        return None
    return load_curriculum_json(get_curriculum_path(base))


def update_curriculum_progress(
    path: Path,
    phase_number: int,
    objective_ids: Iterable[str],
    deliverable_ids: Iterable[str],
) -> Curriculum:
    curriculum = load_curriculum_json(path)
    phase = curriculum.phase_by_number(phase_number)
    if phase is None:
        raise PhaseNotFoundError(phase_number)

    objective_ids   = set(objective_ids)
    deliverable_ids = set(deliverable_ids)
    for objective in phase.objectives:
        if objective.id in objective_ids:
            objective.completed = True
    for deliverable in phase.deliverables:
        if deliverable.id in deliverable_ids:
            deliverable.completed = True

    done = [o.completed for o in phase.objectives] + [d.completed for d in phase.deliverables]
    if any(done):
        advance_phase_status(phase, PhaseStatus.IN_PROGRESS)

    if done and all(done) and advance_phase_status(phase, PhaseStatus.COMPLETED):
        logger.info("Phase %d completed", phase.number)
        curriculum.growth_stage = phase.growth_stage
        index = curriculum.phases.index(phase)
        if index + 1 < len(curriculum.phases):
            advance_phase_status(curriculum.phases[index + 1], PhaseStatus.AVAILABLE)
            curriculum.current_phase_index = index + 1

    save_curriculum(curriculum, path)
    return curriculum


# ─── Markdown ────────────────────────────────────────────────────────────────

def render_curriculum_markdown(curriculum: Curriculum) -> str:
    meta = curriculum.metadata
    lines = [
        f"# {GROWTH_STAGE_ICONS[curriculum.growth_stage]} {curriculum.title}",
        "",
        curriculum.description,
        "",
        f"- **Topic:** {curriculum.topic}",
        f"- **Difficulty:** {meta.difficulty.value}",
        f"- **Estimated hours:** {meta.estimated_hours:g}",
    ]
    if meta.target_audience:
        lines.append(f"- **Target audience:** {meta.target_audience}")
    if meta.prerequisites:
        lines.append(f"- **Prerequisites:** {', '.join(meta.prerequisites)}")
    if meta.tags:
        lines.append(f"- **Tags:** {', '.join(meta.tags)}")

    for phase in curriculum.phases:
        lines += [
            "",
            f"## {PHASE_STATUS_ICONS[phase.status]} Phase {phase.number}: {phase.title}",
            "",
            f"*{GROWTH_STAGE_ICONS[phase.growth_stage]} {phase.growth_stage.value} · "
            f"{phase.estimated_hours:g}h*",
            "",
            phase.description,
        ]
        if phase.objectives:
            lines += ["", "### Objectives", ""]
            lines += [f"- [{'x' if o.completed else ' '}] {o.description}" for o in phase.objectives]
        if phase.deliverables:
            lines += ["", "### Deliverables", ""]
            for d in phase.deliverables:
                lines.append(f"- [{'x' if d.completed else ' '}] **{d.title}**: {d.description}")
                lines += [f"  - {c}" for c in d.acceptance_criteria]
        if phase.key_concepts:
            lines += ["", "### Key Concepts", ""]
            lines += [f"- **{kc.term}**: {kc.definition}" for kc in phase.key_concepts]

    return "\n".join(lines) + "\n"


def write_curriculum_markdown(curriculum: Curriculum, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_curriculum_markdown(curriculum), encoding="utf-8")
    return path
