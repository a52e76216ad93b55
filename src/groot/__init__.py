"""
groot — Guided Resource for Organized Objective Training
=========================================================
A terminal learning companion: three chat-model personas design and review
project-based curricula, and the CLI tracks learning sessions against them.

Module map
----------
  models.py            Pydantic records (curriculum, session, feedback) and enums.
  config.py            Settings loaded from .env / environment variables.
  errors.py            GrootError hierarchy; the CLI is the only catch-all.
  paths.py             .groot/ storage layout helpers.
  llm.py               Chat-completion client with tool calling.
  agent.py             Persona-driven Agent facade and tool execution.
  personas.py          Seedling, Canopy and Bark: prompts, tools, handlers.
  orchestrator.py      generate → technical review → pedagogical review → merge.
  agent_trace.py       DebugEvent / AgentStep / RunTrace audit records.
  curriculum_store.py  Curriculum JSON persistence, progress, markdown output.
  session.py           Session lifecycle, handoff generation, active marker.
  journal.py           Markdown learning journal.
  beads.py             BEADS (`bd`) issue tracker integration.
  templates.py         Scaffold templates (typescript/javascript/python/minimal).
  scaffold.py          Phase project scaffolding.
  cli.py               argparse + rich command-line interface (`groot`).
"""

__version__ = "0.1.0"
