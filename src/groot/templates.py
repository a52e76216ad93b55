"""
templates.py — Project scaffolding templates
=============================================
Each template turns one curriculum phase into a list of ``ScaffoldFile``
entries (paths relative to the phase folder).  ``scaffold.py`` adds the
shared README.md / OBJECTIVES.md and does the writing.

  typescript   src/*.ts classes + tsconfig.json + package.json (ESM)
  javascript   src/*.js classes + jsconfig.json + package.json (ESM)
  python       src/*.py classes + requirements.txt + main.py
  minimal      docs/ + one folder with NOTES.md per deliverable
"""

from __future__ import annotations

import json
import re
import textwrap
from dataclasses import dataclass
from string import Template
from typing import Callable, Optional

from groot.models import Curriculum, Deliverable, Phase


# ─── Naming helpers ──────────────────────────────────────────────────────────

def _words(text: str) -> list[str]:
    return [w for w in re.split(r"[^A-Za-z0-9]+", text) if w]


def to_kebab_case(text: str) -> str:
    return "-".join(w.lower() for w in _words(text))


def to_snake_case(text: str) -> str:
    return "_".join(w.lower() for w in _words(text))


def to_pascal_case(text: str) -> str:
    return "".join(w[0].upper() + w[1:] for w in _words(text))


def to_camel_case(text: str) -> str:
    pascal = to_pascal_case(text)
    return pascal[:1].lower() + pascal[1:]


def generate_file_name(title: str, extension: str) -> str:
    return f"{to_kebab_case(title)}{extension}"


def generate_todo_comments(criteria: list[str], prefix: str) -> str:
    if not criteria:
        return f"{prefix} TODO: Implement this deliverable"
    lines = [f"{prefix} Acceptance Criteria:"]
    lines += [f"{prefix} TODO: {c}" for c in criteria]
    return "\n".join(lines)


# ─── Types ───────────────────────────────────────────────────────────────────

@dataclass
class ScaffoldFile:
    path:    str
    type:    str = "file"    # "file" | "directory"
    content: str = ""


@dataclass
class ScaffoldContext:
    curriculum: Curriculum
    phase:      Phase


@dataclass(frozen=True)
class TemplateDefinition:
    name:           str
    display_name:   str
    description:    str
    file_extension: str
    generate_files: Callable[[ScaffoldContext], list[ScaffoldFile]]


def _package_json(ctx: ScaffoldContext, main: str, scripts: dict[str, str]) -> str:
    name = re.sub(r"[^a-z0-9]+", "-", ctx.curriculum.title.lower())
    return json.dumps({
        "name":        f"{name}-phase-{ctx.phase.number}",
        "version":     "0.1.0",
        "description": ctx.phase.description,
        "type":        "module",
        "main":        main,
        "scripts":     scripts,
        "keywords":    ctx.curriculum.metadata.tags,
        "license":     "MIT",
    }, indent=2)


# ─── TypeScript / JavaScript ─────────────────────────────────────────────────

_JS_CLASS = Template(textwrap.dedent("""\
    /**
     * $title
     *
     * $description
     */

    $todos

    /**
     * $cls
     *
     * Implement this class to complete the deliverable.
     */
    export class $cls {
      constructor() {
        // TODO: Initialize your implementation
      }

      /**
       * Main entry point
       */
      execute()$ret {
        // TODO: Implement the main functionality
        throw new Error('Not implemented');
      }
    }

    /**
     * Factory function for creating $cls instances
     */
    export function create$cls()$ctor {
      return new $cls();
    }
"""))


def _js_class_file(deliverable: Deliverable, typed: bool) -> str:
    cls = to_pascal_case(deliverable.title)
    return _JS_CLASS.substitute(
        title=deliverable.title,
        description=deliverable.description,
        todos=generate_todo_comments(deliverable.acceptance_criteria, "//"),
        cls=cls,
        ret=": void" if typed else "",
        ctor=f": {cls}" if typed else "",
    )


def _js_index(deliverables: list[Deliverable]) -> str:
    exports = "\n".join(f"export * from './{generate_file_name(d.title, '')}.js';" for d in deliverables)
    return f"/**\n * Phase Deliverables\n *\n * This file exports all deliverable implementations.\n */\n\n{exports}\n"


def _typescript_files(ctx: ScaffoldContext) -> list[ScaffoldFile]:
    tsconfig = {
        "compilerOptions": {
            "target": "ES2022",
            "module": "NodeNext",
            "moduleResolution": "NodeNext",
            "strict": True,
            "esModuleInterop": True,
            "skipLibCheck": True,
            "forceConsistentCasingInFileNames": True,
            "outDir": "./dist",
            "rootDir": "./src",
            "declaration": True,
        },
        "include": ["src/**/*"],
        "exclude": ["node_modules", "dist"],
    }
    files = [
        ScaffoldFile("src", "directory"),
        ScaffoldFile("tsconfig.json", content=json.dumps(tsconfig, indent=2)),
        ScaffoldFile("package.json", content=_package_json(
            ctx, "./dist/index.js",
            {"build": "tsc", "start": "node dist/index.js", "dev": "tsc --watch"},
        )),
    ]
    files += [
        ScaffoldFile(f"src/{generate_file_name(d.title, '.ts')}", content=_js_class_file(d, typed=True))
        for d in ctx.phase.deliverables
    ]
    files.append(ScaffoldFile("src/index.ts", content=_js_index(ctx.phase.deliverables)))
    return files


def _javascript_files(ctx: ScaffoldContext) -> list[ScaffoldFile]:
    jsconfig = {
        "compilerOptions": {"target": "ES2022", "module": "ES2022", "checkJs": True},
        "include": ["src/**/*"],
    }
    files = [
        ScaffoldFile("src", "directory"),
        ScaffoldFile("package.json", content=_package_json(
            ctx, "./src/index.js", {"start": "node src/index.js"},
        )),
        ScaffoldFile("jsconfig.json", content=json.dumps(jsconfig, indent=2)),
    ]
    files += [
        ScaffoldFile(f"src/{generate_file_name(d.title, '.js')}", content=_js_class_file(d, typed=False))
        for d in ctx.phase.deliverables
    ]
    files.append(ScaffoldFile("src/index.js", content=_js_index(ctx.phase.deliverables)))
    return files


# ─── Python ──────────────────────────────────────────────────────────────────

_PY_MODULE = Template(textwrap.dedent('''\
    """
    $title

    $description
    """

    $todos


    class $cls:
        """Implement this class to complete the deliverable."""

        def __init__(self):
            # TODO: Initialize your implementation
            pass

        def execute(self) -> None:
            """Main entry point."""
            # TODO: Implement the main functionality
            raise NotImplementedError("Not implemented")


    def create_$snake() -> $cls:
        """Factory function for creating $cls instances."""
        return $cls()
'''))


def _python_module(deliverable: Deliverable) -> str:
    return _PY_MODULE.substitute(
        title=deliverable.title,
        description=deliverable.description,
        todos=generate_todo_comments(deliverable.acceptance_criteria, "#"),
        cls=to_pascal_case(deliverable.title),
        snake=to_snake_case(deliverable.title),
    )


def _python_files(ctx: ScaffoldContext) -> list[ScaffoldFile]:
    deliverables = ctx.phase.deliverables
    imports = "\n".join(
        f"from .{to_snake_case(d.title)} import {to_pascal_case(d.title)}" for d in deliverables
    )
    exports = ", ".join(f'"{to_pascal_case(d.title)}"' for d in deliverables)
    main_imports = "\n".join(f"from src import {to_pascal_case(d.title)}" for d in deliverables)

    files = [
        ScaffoldFile("src", "directory"),
        ScaffoldFile("requirements.txt", content=(
            "# Project dependencies\n# Add your dependencies here, e.g.:\n# requests>=2.28.0\n"
        )),
        ScaffoldFile("src/__init__.py", content=(
            f'"""Phase deliverables package."""\n\n{imports}\n\n__all__ = [{exports}]\n'
        )),
    ]
    files += [
        ScaffoldFile(f"src/{to_snake_case(d.title)}.py", content=_python_module(d))
        for d in deliverables
    ]
    files.append(ScaffoldFile("main.py", content=(
        f'"""Main entry point for the project."""\n\n{main_imports}\n\n\n'
        "def main():\n"
        '    print("Phase implementation started...")\n'
        "    # TODO: Add your main logic here\n"
        '    print("Done!")\n\n\n'
        'if __name__ == "__main__":\n'
        "    main()\n"
    )))
    return files


# ─── Minimal ─────────────────────────────────────────────────────────────────

def _deliverable_notes(deliverable: Deliverable) -> str:
    criteria = "\n".join(f"- [ ] {c}" for c in deliverable.acceptance_criteria)
    return (
        f"# {deliverable.title}\n\n{deliverable.description}\n\n"
        f"## Acceptance Criteria\n\n{criteria}\n\n"
        "## Research Notes\n\n_Add your research and findings here..._\n\n"
        "## Key Insights\n\n_Document important learnings..._\n\n"
        "## Resources\n\n_List helpful resources, articles, or documentation..._\n\n-\n"
    )


def _minimal_files(ctx: ScaffoldContext) -> list[ScaffoldFile]:
    files = [ScaffoldFile("docs", "directory")]
    for deliverable in ctx.phase.deliverables:
        folder = generate_file_name(deliverable.title, "")
        files.append(ScaffoldFile(folder, "directory"))
        files.append(ScaffoldFile(f"{folder}/NOTES.md", content=_deliverable_notes(deliverable)))
    return files


# ─── Registry ────────────────────────────────────────────────────────────────

TEMPLATES: dict[str, TemplateDefinition] = {
    t.name: t for t in (
        TemplateDefinition("typescript", "TypeScript", "TypeScript project with tsconfig and ESM modules", ".ts", _typescript_files),
        TemplateDefinition("javascript", "JavaScript", "JavaScript project with ESM modules", ".js", _javascript_files),
        TemplateDefinition("python", "Python", "Python project with classes and docstrings", ".py", _python_files),
        TemplateDefinition("minimal", "Minimal", "README and OBJECTIVES only - no code stubs", "", _minimal_files),
    )
}

DEFAULT_TEMPLATE = "typescript"


def get_template_definition(name: str) -> Optional[TemplateDefinition]:
    return TEMPLATES.get(name)


def get_available_templates() -> list[str]:
    return list(TEMPLATES)
