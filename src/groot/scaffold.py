"""
scaffold.py — Phase project scaffolding (``groot seed``)
=========================================================
Writes a starter project for one curriculum phase into
``<output_dir>/phase-N-<title>/``: the template's files plus a README.md and
an OBJECTIVES.md checklist shared by every template.

Existing files are left alone unless ``force`` is set; ``dry_run`` reports
what would be written without touching the filesystem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from groot.models import GROWTH_STAGE_ICONS, Curriculum, Phase
from groot.templates import (
    DEFAULT_TEMPLATE,
    ScaffoldContext,
    ScaffoldFile,
    generate_file_name,
    get_available_templates,
    get_template_definition,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ScaffoldOptions",
    "ScaffoldResult",
    "scaffold_phase",
    "phase_folder_name",
    "generate_file_name",
    "to_camel_case",
    "to_kebab_case",
    "to_pascal_case",
    "to_snake_case",
]


@dataclass
class ScaffoldOptions:
    phase_number:  Optional[int] = None      # None → curriculum's current phase
    template_type: str = DEFAULT_TEMPLATE
    output_dir:    Path = Path(".")
    dry_run:       bool = False
    force:         bool = False


@dataclass
class ScaffoldResult:
    success:       bool
    output_dir:    Optional[Path] = None
    files_created: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    errors:        list[str] = field(default_factory=list)


def phase_folder_name(phase: Phase) -> str:
    return f"phase-{phase.number}-{to_kebab_case(phase.title)}"


# ─── Shared files ────────────────────────────────────────────────────────────

def _readme(curriculum: Curriculum, phase: Phase) -> str:
    lines = [
        f"# Phase {phase.number}: {phase.title}",
        "",
        f"> {GROWTH_STAGE_ICONS[phase.growth_stage]} {phase.growth_stage.value} · "
        f"part of *{curriculum.title}* · ~{phase.estimated_hours:g}h",
        "",
        phase.description,
        "",
        "## Deliverables",
        "",
    ]
    for d in phase.deliverables:
        lines.append(f"### {d.title}")
        lines.append("")
        lines.append(d.description)
        lines.append("")
    if phase.key_concepts:
        lines += ["## Key Concepts", ""]
        lines += [f"- **{kc.term}**: {kc.definition}" for kc in phase.key_concepts]
        lines.append("")
    lines += [
        "## Workflow",
        "",
        "1. `groot wake` to start a session",
        "2. Build the deliverables, `groot ask` when stuck",
        "3. `groot rest` to record progress and get a handoff",
        "",
    ]
    return "\n".join(lines)


def _objectives(phase: Phase) -> str:
    lines = [f"# Phase {phase.number} Objectives", "", "## Learning Objectives", ""]
    lines += [f"- [{'x' if o.completed else ' '}] {o.description}" for o in phase.objectives]
    lines += ["", "## Deliverables", ""]
    for d in phase.deliverables:
        lines.append(f"- [{'x' if d.completed else ' '}] **{d.title}**")
        lines += [f"  - [ ] {c}" for c in d.acceptance_criteria]
    lines.append("")
    return "\n".join(lines)


# ─── Scaffolding ─────────────────────────────────────────────────────────────

def _write(target: Path, entry: ScaffoldFile, options: ScaffoldOptions, result: ScaffoldResult) -> None:
    if entry.type == "directory":
        if not options.dry_run:
            target.mkdir(parents=True, exist_ok=True)
        return

    if target.exists() and not options.force:
        result.files_skipped.append(entry.path)
        return

    if not options.dry_run:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(entry.content, encoding="utf-8")
        except OSError as exc:
            result.errors.append(f"{entry.path}: {exc}")
            return
    result.files_created.append(entry.path)


def scaffold_phase(curriculum: Curriculum, options: ScaffoldOptions) -> ScaffoldResult:
    """Generate the starter project for one phase; problems are reported on the result."""
    if options.phase_number is not None:
        phase = curriculum.phase_by_number(options.phase_number)
        if phase is None:
            return ScaffoldResult(success=False, errors=[f"Phase {options.phase_number} not found in curriculum"])
    elif curriculum.phases:
        phase = curriculum.phases[min(curriculum.current_phase_index, len(curriculum.phases) - 1)]
    else:
        return ScaffoldResult(success=False, errors=["Curriculum has no phases"])

    template = get_template_definition(options.template_type)
    if template is None:
        return ScaffoldResult(success=False, errors=[
            f"Invalid template: {options.template_type} "
            f"(available: {', '.join(get_available_templates())})"
        ])

    root   = Path(options.output_dir) / phase_folder_name(phase)
    result = ScaffoldResult(success=True, output_dir=root)

    entries = template.generate_files(ScaffoldContext(curriculum=curriculum, phase=phase))
    entries += [
        ScaffoldFile("README.md", content=_readme(curriculum, phase)),
        ScaffoldFile("OBJECTIVES.md", content=_objectives(phase)),
    ]

    if not options.dry_run:
        root.mkdir(parents=True, exist_ok=True)
    for entry in entries:
        _write(root / entry.path, entry, options, result)

    result.success = not result.errors
    logger.info(
        "Scaffolded phase %d with %s: %d created, %d skipped%s",
        phase.number, template.name, len(result.files_created), len(result.files_skipped),
        " (dry run)" if options.dry_run else "",
    )
    return result
