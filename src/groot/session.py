"""
session.py — Learning session lifecycle
========================================
A session is one learning work period bound to exactly one phase.

  groot wake   → SessionManager.start_session   (status: active)
  groot ask    → add_question_asked
  groot rest   → mark_* / add_session_note → generate_handoff → end_session
                 (status: completed, JSON written to .groot/sessions/)

Nothing is written to the sessions directory on start.  The CLI keeps the
open session alive across separate invocations through the active-session
marker file (``.groot/active-session.json``), which ``SessionManager.resume``
reads back into the in-process ``ActiveSession`` handle.  Concurrent CLI
invocations race on that file; there is no locking.

``generate_handoff`` is a pure function and must stay deterministic.
"""

from __future__ import annotations

import json
import logging
import math
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from groot.errors import PhaseNotFoundError
from groot.models import (
    Curriculum,
    Phase,
    Session,
    SessionHandoff,
    SessionStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


# ─── Helpers ─────────────────────────────────────────────────────────────────

def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def session_filename(session: Session) -> str:
    """``YYYY-MM-DD-<curriculum slug>-phase-N.json`` (same day + phase overwrites)."""
    date = session.started_at.date().isoformat()
    slug = slugify(session.curriculum_title)[:30]
    return f"{date}-{slug}-phase-{session.phase_number}.json"


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between *start* and *end*, rounded half up."""
    seconds = (end - start).total_seconds()
    return max(0, math.floor((seconds + 30) / 60))


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


# ─── Active session handle ───────────────────────────────────────────────────

class ActiveSession:
    """Single-slot holder for the session currently open in this process."""

    def __init__(self) -> None:
        self._session: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._session

    def set(self, session: Optional[Session]) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    def is_active(self) -> bool:
        return self._session is not None and self._session.status == SessionStatus.ACTIVE


# ─── Manager ─────────────────────────────────────────────────────────────────

class SessionManager:
    """Start, persist, list and end sessions stored under *sessions_dir*."""

    def __init__(
        self,
        sessions_dir: Path,
        handle: Optional[ActiveSession] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.sessions_dir = Path(sessions_dir)
        self.handle       = handle if handle is not None else ActiveSession()
        self.clock        = clock or utcnow

    def start_session(
        self,
        curriculum: Curriculum,
        phase_number: int,
        curriculum_path: str = "",
    ) -> Session:
        phase = curriculum.phase_by_number(phase_number)
        if phase is None:
            raise PhaseNotFoundError(phase_number)

        session = Session(
            id=str(uuid.uuid4()),
            curriculum_id=curriculum.id,
            curriculum_path=str(curriculum_path),
            curriculum_title=curriculum.title,
            phase_number=phase_number,
            phase_title=phase.title,
            phase_id=phase.id,
            started_at=self.clock(),
        )
        self.handle.set(session)
        logger.info("Started session %s on phase %d", session.id, phase_number)
        return session

    def save_session(self, session: Session) -> Path:
        if session.ended_at is not None:
            session.progress.time_spent_minutes = elapsed_minutes(session.started_at, session.ended_at)

        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        path = self.sessions_dir / session_filename(session)
        path.write_text(session.to_json(), encoding="utf-8")
        logger.debug("Saved session %s to %s", session.id, path)
        return path

    def load_session(self, path: Path) -> Session:
        return Session.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def list_sessions(self, curriculum_id: Optional[str] = None) -> list[Session]:
        """Every readable session, newest first; unreadable files are skipped."""
        if not self.sessions_dir.is_dir():
            return []

        sessions: list[Session] = []
        for path in sorted(self.sessions_dir.glob("*.json")):
            try:
                session = self.load_session(path)
            except (OSError, UnicodeDecodeError, ValidationError) as exc:
                logger.warning("Skipping unreadable session file %s: %s", path.name, exc)
                continue
            if curriculum_id is None or session.curriculum_id == curriculum_id:
                sessions.append(session)

        sessions.sort(key=lambda s: s.started_at.timestamp(), reverse=True)
        return sessions

    def find_active_session(self) -> Optional[Session]:
        return next(
            (s for s in self.list_sessions() if s.status == SessionStatus.ACTIVE),
            None,
        )

    def end_session(self, session: Session, handoff: SessionHandoff) -> Path:
        session.ended_at = self.clock()
        session.status   = SessionStatus.COMPLETED
        session.handoff  = handoff
        session.progress.time_spent_minutes = elapsed_minutes(session.started_at, session.ended_at)

        path = self.save_session(session)
        self.handle.clear()
        logger.info("Ended session %s after %d minutes", session.id, session.progress.time_spent_minutes)
        return path

    def resume(self, marker_path: Path) -> Optional[Session]:
        """Reload the session recorded in the active marker into the handle."""
        session = read_active_marker(marker_path)
        if session is None or session.status != SessionStatus.ACTIVE:
            return None
        self.handle.set(session)
        return session


# ─── In-memory mutations ─────────────────────────────────────────────────────
# Callers persist afterwards (marker file or end_session).

def mark_objective_complete(session: Session, objective_id: str) -> None:
    if objective_id not in session.progress.objectives_completed:
        session.progress.objectives_completed.append(objective_id)


def mark_deliverable_complete(session: Session, deliverable_id: str) -> None:
    if deliverable_id not in session.progress.deliverables_completed:
        session.progress.deliverables_completed.append(deliverable_id)


def add_session_note(session: Session, note: str) -> None:
    if note not in session.notes:
        session.notes.append(note)


def add_question_asked(session: Session, question: str) -> None:
    session.questions_asked.append(question)


# ─── Handoff ─────────────────────────────────────────────────────────────────

def generate_handoff(
    session: Session,
    phase: Phase,
    additional_notes: Optional[str] = None,
) -> SessionHandoff:
    done_objectives   = set(session.progress.objectives_completed)
    done_deliverables = set(session.progress.deliverables_completed)

    completed_objectives   = [o for o in phase.objectives if o.id in done_objectives]
    remaining_objectives   = [o for o in phase.objectives if o.id not in done_objectives]
    completed_deliverables = [d for d in phase.deliverables if d.id in done_deliverables]
    remaining_deliverables = [d for d in phase.deliverables if d.id not in done_deliverables]

    completed_work = (
        [o.description for o in completed_objectives]
        + [f"Completed: {d.title}" for d in completed_deliverables]
    )
    remaining_work = (
        [o.description for o in remaining_objectives]
        + [d.title for d in remaining_deliverables]
    )

    next_deliverable = remaining_deliverables[0] if remaining_deliverables else None
    next_objective   = remaining_objectives[0] if remaining_objectives else None

    next_steps: list[str] = []
    if next_deliverable:
        next_steps.append(f"Start with: {next_deliverable.title}")
    if next_objective:
        next_steps.append(f"Focus on: {next_objective.description}")
    if session.notes:
        next_steps.append("Review notes from last session")

    summary = (
        f"Session on Phase {session.phase_number}: {session.phase_title}. "
        f"Completed {len(completed_objectives)}/{len(phase.objectives)} objectives, "
        f"{len(completed_deliverables)}/{len(phase.deliverables)} deliverables. "
    )
    if additional_notes:
        summary += additional_notes

    prompt = f"Resume Phase {session.phase_number} - {session.phase_title}"
    if next_deliverable:
        prompt += f". Focus on: {next_deliverable.title}"
    elif next_objective:
        prompt += f". Complete: {next_objective.description}"

    return SessionHandoff(
        summary=summary,
        completed_work=completed_work,
        remaining_work=remaining_work,
        next_steps=next_steps,
        prompt_for_next_session=prompt,
    )


# ─── Display ─────────────────────────────────────────────────────────────────

@dataclass
class SessionSummary:
    duration:               str
    objectives_completed:   int
    deliverables_completed: int
    notes:                  int
    questions:              int


def session_summary(session: Session, now: Optional[datetime] = None) -> SessionSummary:
    """Counts for display; active sessions report their live duration."""
    minutes = session.progress.time_spent_minutes
    if session.status == SessionStatus.ACTIVE and session.ended_at is None:
        minutes = elapsed_minutes(session.started_at, now or utcnow())

    return SessionSummary(
        duration=format_duration(minutes),
        objectives_completed=len(session.progress.objectives_completed),
        deliverables_completed=len(session.progress.deliverables_completed),
        notes=len(session.notes),
        questions=len(session.questions_asked),
    )


# ─── Active marker ───────────────────────────────────────────────────────────

def write_active_marker(session: Session, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(session.to_json(), encoding="utf-8")
    return path


def read_active_marker(path: Path) -> Optional[Session]:
    path = Path(path)
    if not path.is_file():
        return None
    try:
        return Session.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable active-session marker %s: %s", path, exc)
        return None


def clear_active_marker(path: Path) -> None:
    Path(path).unlink(missing_ok=True)
