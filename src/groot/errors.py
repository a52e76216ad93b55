"""
errors.py — Exception hierarchy for GROOT
==========================================
Core components (orchestrator, session manager, persistence) raise these;
the CLI is the single place that catches them, prints a diagnostic and
exits with status 1.

  GrootError
  ├── ConfigurationError     missing API key / invalid options
  ├── NotFoundError          missing curriculum file, session, journal entry
  │   └── PhaseNotFoundError phase number absent from a curriculum
  ├── UnsupportedFormatError markdown passed where JSON is required
  ├── CurriculumParseError   JSON that does not describe a curriculum
  ├── GenerationError        model did not invoke the required tool
  ├── ChatError              chat API failure / malformed tool arguments
  ├── UnknownToolError       model invoked a tool the persona does not define
  ├── OrchestrationError     any failure inside an orchestration stage
  └── BeadsError             `bd` binary failed or returned garbage
"""

from __future__ import annotations


class GrootError(Exception):
    """Base class for every error raised by the groot package."""


class ConfigurationError(GrootError):
    pass


class NotFoundError(GrootError):
    pass


class PhaseNotFoundError(NotFoundError):
    def __init__(self, phase_number: int) -> None:
        super().__init__(f"Phase {phase_number} not found in curriculum")
        self.phase_number = phase_number


class UnsupportedFormatError(GrootError):
    pass


class CurriculumParseError(GrootError):
    pass


class GenerationError(GrootError):
    pass


class ChatError(GrootError):
    pass


class UnknownToolError(GrootError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class OrchestrationError(GrootError):
    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"Orchestration failed during {stage}: {message}")
        self.stage = stage


class BeadsError(GrootError):
    pass
