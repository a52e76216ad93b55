"""
beads.py — BEADS issue tracker integration
===========================================
BEADS is a git-backed issue tracker driven through its ``bd`` binary.
GROOT uses it as optional long-term memory: a curriculum becomes an epic,
each phase an epic blocked on the previous one, and each deliverable a task.

Every call goes through ``subprocess.run`` with an argument list (never a
shell string).  Failures raise ``BeadsError``; the read-only listings and
the session-sync helper treat the tracker as best effort and return empty
results / skip instead.

  bd --version | bd info | bd init --quiet
  bd create TITLE [-d DESC] [-t TYPE] [-p N] [-l a,b] --json
  bd ready --json | bd list --json [--status S]
  bd close ID | bd update ID --status S
  bd dep add CHILD PARENT --type T
  bd comment ID TEXT
  bd sync
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from groot.errors import BeadsError
from groot.models import BeadsIssue, Curriculum

logger = logging.getLogger(__name__)

BD = "bd"

ISSUE_TYPES      = ("epic", "task", "bug", "feature", "chore")
ISSUE_STATUSES   = ("open", "in_progress", "closed")
DEPENDENCY_TYPES = ("blocks", "related", "parent-child", "discovered-from")


# ─── Process plumbing ────────────────────────────────────────────────────────

def _run(*args: str, capture: bool = True) -> str:
    cmd = [BD, *args]
    logger.debug("running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=capture, text=True, check=True)
    except FileNotFoundError as exc:
        raise BeadsError(f"'{BD}' is not installed or not on PATH") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise BeadsError(f"'{' '.join(cmd)}' failed: {detail}") from exc
    return result.stdout or ""


def _run_json(*args: str) -> Any:
    output = _run(*args)
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise BeadsError(f"'{BD} {' '.join(args)}' returned invalid JSON") from exc


def _parse_issues(payload: Any) -> list[BeadsIssue]:
    issues: list[BeadsIssue] = []
    for raw in payload or []:
        if not isinstance(raw, dict):
            continue
        deps = [
            d if isinstance(d, str) else str(d.get("depends_on_id") or d.get("id") or "")
            for d in raw.get("dependencies") or []
        ]
        try:
            issues.append(BeadsIssue.model_validate({**raw, "dependencies": deps}))
        except ValidationError as exc:
            logger.debug("Skipping malformed BEADS issue %r: %s", raw.get("id"), exc)
    return issues


# ─── Availability ────────────────────────────────────────────────────────────

def is_beads_available() -> bool:
    try:
        _run("--version")
    except BeadsError:
        return False
    return True


def is_beads_initialized() -> bool:
    try:
        _run("info")
    except BeadsError:
        return False
    return True


def init_beads() -> None:
    _run("init", "--quiet", capture=False)


# ─── Issues ──────────────────────────────────────────────────────────────────

def create_issue(
    title: str,
    description: Optional[str] = None,
    issue_type: Optional[str] = None,
    priority: Optional[int] = None,
    labels: Optional[list[str]] = None,
) -> str:
    """Create an issue and return its id."""
    args = ["create", title]
    if description:
        args += ["-d", description]
    if issue_type:
        args += ["-t", issue_type]
    if priority is not None:
        args += ["-p", str(priority)]
    if labels:
        args += ["-l", ",".join(labels)]
    args.append("--json")

    created = _run_json(*args)
    if not isinstance(created, dict) or "id" not in created:
        raise BeadsError(f"'{BD} create' did not return an issue id for '{title}'")
    return str(created["id"])


def get_ready_work() -> list[BeadsIssue]:
    """Issues with no open blockers; empty if the tracker is unavailable."""
    try:
        return _parse_issues(_run_json("ready", "--json"))
    except BeadsError as exc:
        logger.debug("bd ready failed: %s", exc)
        return []


def list_issues(status: Optional[str] = None) -> list[BeadsIssue]:
    args = ["list", "--json"]
    if status:
        args += ["--status", status]
    try:
        return _parse_issues(_run_json(*args))
    except BeadsError as exc:
        logger.debug("bd list failed: %s", exc)
        return []


def update_issue_status(issue_id: str, status: str) -> None:
    if status == "closed":
        _run("close", issue_id)
    else:
        _run("update", issue_id, "--status", status)


def add_dependency(child_id: str, parent_id: str, dep_type: str = "blocks") -> None:
    _run("dep", "add", child_id, parent_id, "--type", dep_type)


def add_comment(issue_id: str, text: str) -> None:
    _run("comment", issue_id, text)


def sync_beads() -> None:
    _run("sync")


@dataclass
class BeadsContext:
    project_path:   str
    current_issues: list[BeadsIssue] = field(default_factory=list)
    ready_work:     list[BeadsIssue] = field(default_factory=list)


def get_beads_context() -> Optional[BeadsContext]:
    if not is_beads_available() or not is_beads_initialized():
        return None
    return BeadsContext(
        project_path=str(Path.cwd()),
        current_issues=list_issues("open"),
        ready_work=get_ready_work(),
    )


# ─── Curriculum mapping ──────────────────────────────────────────────────────

@dataclass
class BeadsMapping:
    curriculum_epic_id:   str
    phase_epic_ids:       dict[str, str] = field(default_factory=dict)   # phase.id → issue id
    deliverable_task_ids: dict[str, str] = field(default_factory=dict)   # deliverable.id → issue id


def create_beads_from_curriculum(curriculum: Curriculum) -> BeadsMapping:
    """
    Mirror *curriculum* into BEADS.

    Curriculum epic (p0) ← phase epics (p1, each blocked by the previous phase)
    ← deliverable tasks (p2, each blocked by the previous deliverable).
    """
    mapping = BeadsMapping(curriculum_epic_id=create_issue(
        f"Curriculum: {curriculum.title}",
        description=curriculum.description,
        issue_type="epic",
        priority=0,
        labels=["curriculum", curriculum.topic],
    ))

    previous_phase_epic: Optional[str] = None
    for phase in curriculum.phases:
        phase_epic = create_issue(
            f"Phase {phase.number}: {phase.title}",
            description=phase.description,
            issue_type="epic",
            priority=1,
            labels=["phase", f"phase-{phase.number}", phase.growth_stage.value],
        )
        mapping.phase_epic_ids[phase.id] = phase_epic
        add_dependency(phase_epic, mapping.curriculum_epic_id, "parent-child")
        if previous_phase_epic:
            add_dependency(phase_epic, previous_phase_epic, "blocks")
        previous_phase_epic = phase_epic

        previous_task: Optional[str] = None
        for deliverable in phase.deliverables:
            criteria = "\n".join(f"- [ ] {c}" for c in deliverable.acceptance_criteria)
            task = create_issue(
                deliverable.title,
                description=f"{deliverable.description}\n\n**Acceptance Criteria:**\n{criteria}",
                issue_type="task",
                priority=2,
                labels=["deliverable", f"phase-{phase.number}"],
            )
            mapping.deliverable_task_ids[deliverable.id] = task
            add_dependency(task, phase_epic, "parent-child")
            if previous_task:
                add_dependency(task, previous_task, "blocks")
            previous_task = task

    logger.info(
        "Created BEADS epic %s with %d phases and %d tasks",
        mapping.curriculum_epic_id, len(mapping.phase_epic_ids), len(mapping.deliverable_task_ids),
    )
    return mapping


def link_curriculum_to_beads(curriculum: Curriculum, mapping: BeadsMapping) -> Curriculum:
    """Return a copy of *curriculum* carrying the BEADS issue ids."""
    linked = curriculum.model_copy(deep=True)
    for phase in linked.phases:
        phase.beads_epic_id = mapping.phase_epic_ids.get(phase.id)
        for deliverable in phase.deliverables:
            deliverable.beads_task_id = mapping.deliverable_task_ids.get(deliverable.id)
    return linked


# ─── Session sync ────────────────────────────────────────────────────────────

def update_beads_session_progress(
    deliverable_task_ids: list[str],
    phase_epic_id: Optional[str],
    summary: str,
) -> None:
    """Close finished deliverable tasks and comment the summary; tracker errors are skipped."""
    for task_id in deliverable_task_ids:
        try:
            update_issue_status(task_id, "closed")
        except BeadsError as exc:
            logger.debug("Could not close BEADS task %s: %s", task_id, exc)

    if phase_epic_id:
        try:
            add_comment(phase_epic_id, f"Session: {summary}")
        except BeadsError as exc:
            logger.debug("Could not comment on BEADS epic %s: %s", phase_epic_id, exc)
