"""
personas.py — Seedling, Canopy and Bark
========================================
Persona descriptors (system prompt + tool table) for the three GROOT agents.

  SEEDLING  🌿 Curriculum Architect  generate_curriculum_structure
  CANOPY    🌲 AI Architect          review_technical
  BARK      🪵 Tutor                 check_understanding, suggest_exercise,
                                      log_topic_discussed, review_pedagogy

Tool handlers turn the model's schema-constrained input into typed results:
a ``Curriculum`` for Seedling, ``AgentFeedback`` lists plus a 1–10 score for
the two reviewers.
"""

from __future__ import annotations

import logging
import textwrap
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from groot.agent import Agent, ChatBackend, Persona, ToolSpec
from groot.models import (
    GROWTH_STAGE_ORDER,
    AgentFeedback,
    AgentName,
    Curriculum,
    CurriculumMetadata,
    Deliverable,
    Difficulty,
    FeedbackCategory,
    FeedbackTarget,
    FeedbackType,
    GrowthStage,
    KeyConcept,
    LearningObjective,
    Phase,
    PhaseStatus,
    Severity,
)

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_SCORE = 7

GENERATE_TOOL = "generate_curriculum_structure"
TECHNICAL_REVIEW_TOOL = "review_technical"
PEDAGOGY_REVIEW_TOOL = "review_pedagogy"


# ─── Coercion helpers ────────────────────────────────────────────────────────

def _new_id() -> str:
    return str(uuid.uuid4())


def _enum(enum_cls, value: Any, default):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


def _phase_number(value: Any) -> Optional[int]:
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


def _concern_feedback(
    agent: AgentName,
    concern: dict[str, Any],
    default_category: FeedbackCategory,
) -> AgentFeedback:
    severity = _enum(Severity, concern.get("severity", "medium"), Severity.MEDIUM)
    return AgentFeedback(
        agent_name=agent,
        feedback_type=FeedbackType.BLOCKER if severity == Severity.CRITICAL else FeedbackType.CONCERN,
        category=_enum(FeedbackCategory, concern.get("category", default_category.value), default_category),
        target=FeedbackTarget.for_phase(_phase_number(concern.get("phaseNumber"))),
        message=str(concern.get("issue", "")),
        severity=severity,
        suggested_change=concern.get("suggestedFix") or None,
    )


# ─────────────────────────────────────────────────────────────────────────────
# SEEDLING – Curriculum Architect
# ─────────────────────────────────────────────────────────────────────────────

_SEEDLING_PROMPT = textwrap.dedent("""
    You are Seedling, the Curriculum Architect agent in the GROOT learning system.

    ## Your Role
    You design learning curricula: you take a topic seed and grow it into a
    structured, project-based learning path.

    ## Design Principles
    - Every phase builds on the previous one; nothing is used before it is taught.
    - Every phase ends with something the learner builds (a deliverable).
    - Objectives are concrete and observable ("Implement…", "Explain…").
    - Time estimates are honest for a motivated self-learner.
    - Growth stages progress seed → sprout → sapling → tree → flowering → seeding → forest.

    ## Output
    Always answer by calling the generate_curriculum_structure tool exactly once.
""").strip()


def build_curriculum(data: dict[str, Any]) -> Curriculum:
    """Turn generate_curriculum_structure input into a fresh Curriculum."""
    phases: list[Phase] = []
    for index, raw_phase in enumerate(data.get("phases") or []):
        default_stage = GROWTH_STAGE_ORDER[min(index, len(GROWTH_STAGE_ORDER) - 1)]
        phases.append(Phase(
            id=_new_id(),
            number=index + 1,
            title=raw_phase.get("title", f"Phase {index + 1}"),
            description=raw_phase.get("description", ""),
            growth_stage=_enum(GrowthStage, raw_phase.get("growthStage", default_stage.value), default_stage),
            estimated_hours=float(raw_phase.get("estimatedHours") or 0),
            objectives=[
                LearningObjective(id=_new_id(), description=str(obj))
                for obj in raw_phase.get("objectives") or []
            ],
            deliverables=[
                Deliverable(
                    id=_new_id(),
                    title=d.get("title", "Deliverable"),
                    description=d.get("description", ""),
                    acceptance_criteria=list(d.get("acceptanceCriteria") or []),
                )
                for d in raw_phase.get("deliverables") or []
            ],
            key_concepts=[
                KeyConcept(
                    term=kc.get("term", ""),
                    definition=kc.get("definition", ""),
                    examples=list(kc.get("examples") or []),
                )
                for kc in raw_phase.get("keyConcepts") or []
            ],
            # only the first phase is open; the rest unlock as phases complete
            status=PhaseStatus.AVAILABLE if index == 0 else PhaseStatus.LOCKED,
        ))

    return Curriculum(
        id=_new_id(),
        title=data.get("title", data.get("topic", "Untitled curriculum")),
        description=data.get("description", ""),
        topic=data.get("topic", ""),
        phases=phases,
        current_phase_index=0,
        growth_stage=GrowthStage.SEED,
        metadata=CurriculumMetadata(
            estimated_hours=sum(p.estimated_hours for p in phases),
            difficulty=_enum(Difficulty, data.get("difficulty", "beginner"), Difficulty.BEGINNER),
            prerequisites=list(data.get("prerequisites") or []),
            tags=list(data.get("tags") or []),
            target_audience=data.get("targetAudience", ""),
        ),
    )


def _generate_curriculum_structure(tool_input: dict[str, Any]) -> dict[str, Any]:
    curriculum = build_curriculum(tool_input)
    return {
        "curriculum": curriculum,
        "message": f"Generated curriculum '{curriculum.title}' with {len(curriculum.phases)} phases",
    }


_CURRICULUM_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title":          {"type": "string"},
        "description":    {"type": "string"},
        "topic":          {"type": "string"},
        "difficulty":     {"type": "string", "enum": [d.value for d in Difficulty]},
        "targetAudience": {"type": "string"},
        "prerequisites":  {"type": "array", "items": {"type": "string"}},
        "tags":           {"type": "array", "items": {"type": "string"}},
        "phases": {
            "type": "array",
            "minItems": 4,
            "maxItems": 6,
            "items": {
                "type": "object",
                "properties": {
                    "title":          {"type": "string"},
                    "description":    {"type": "string"},
                    "growthStage":    {"type": "string", "enum": [g.value for g in GrowthStage]},
                    "estimatedHours": {"type": "number"},
                    "objectives":     {"type": "array", "items": {"type": "string"}},
                    "deliverables": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "title":              {"type": "string"},
                                "description":        {"type": "string"},
                                "acceptanceCriteria": {"type": "array", "items": {"type": "string"}},
                            },
                            "required": ["title", "description"],
                        },
                    },
                    "keyConcepts": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "term":       {"type": "string"},
                                "definition": {"type": "string"},
                                "examples":   {"type": "array", "items": {"type": "string"}},
                            },
                            "required": ["term", "definition"],
                        },
                    },
                },
                "required": ["title", "description", "estimatedHours", "objectives", "deliverables"],
            },
        },
    },
    "required": ["title", "description", "topic", "difficulty", "phases"],
}

SEEDLING = Persona(
    name=AgentName.SEEDLING,
    display_name="🌿 Seedling (Curriculum Architect)",
    system_prompt=_SEEDLING_PROMPT,
    tools=(
        ToolSpec(
            name=GENERATE_TOOL,
            description="Output a complete, structured learning curriculum",
            input_schema=_CURRICULUM_SCHEMA,
            handler=_generate_curriculum_structure,
        ),
    ),
)


# ─────────────────────────────────────────────────────────────────────────────
# CANOPY – AI Architect (technical review)
# ─────────────────────────────────────────────────────────────────────────────

_CANOPY_PROMPT = textwrap.dedent("""
    You are Canopy, the AI Architect agent in the GROOT learning system.

    ## Your Role
    You provide the high-level technical view: you review curricula and designs
    for technical accuracy, feasibility within the stated hours, correct ordering
    of technical prerequisites, and use of current, industry-standard tooling.

    ## Review Style
    - Be specific: name the phase and the exact problem.
    - Prefer concrete fixes over general advice.
    - Reserve "critical" for problems that make a phase impossible to complete.

    Always report your findings by calling the review_technical tool.
""").strip()


def _review_technical(review: dict[str, Any]) -> dict[str, Any]:
    feedback = [
        _concern_feedback(AgentName.CANOPY, concern, FeedbackCategory.TECHNICAL)
        for concern in review.get("concerns") or []
    ]
    for suggestion in review.get("suggestions") or []:
        feedback.append(AgentFeedback(
            agent_name=AgentName.CANOPY,
            feedback_type=FeedbackType.SUGGESTION,
            category=FeedbackCategory.TECHNICAL,
            target=FeedbackTarget.for_phase(_phase_number(suggestion.get("phaseNumber"))),
            message=str(suggestion.get("suggestion", "")),
            severity=Severity.LOW,
            suggested_change=suggestion.get("suggestion") or None,
        ))
    return {
        **review,
        "feedback": feedback,
        "message": f"Technical review complete: {review.get('feasibilityScore')}/10 feasibility",
    }


CANOPY = Persona(
    name=AgentName.CANOPY,
    display_name="🌲 Canopy (AI Architect)",
    system_prompt=_CANOPY_PROMPT,
    tools=(
        ToolSpec(
            name=TECHNICAL_REVIEW_TOOL,
            description="Assess the technical feasibility and accuracy of a curriculum",
            input_schema={
                "type": "object",
                "properties": {
                    "feasibilityScore": {
                        "type": "number", "minimum": 1, "maximum": 10,
                        "description": "How achievable the curriculum is in the stated hours (1-10)",
                    },
                    "strengths": {"type": "array", "items": {"type": "string"}},
                    "concerns": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "issue":        {"type": "string"},
                                "phaseNumber":  {"type": "number"},
                                "category":     {"type": "string", "enum": ["technical", "sequencing"]},
                                "severity":     {"type": "string", "enum": [s.value for s in Severity]},
                                "suggestedFix": {"type": "string"},
                            },
                        },
                    },
                    "suggestions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "suggestion":  {"type": "string"},
                                "phaseNumber": {"type": "number"},
                            },
                        },
                    },
                    "overallAssessment": {"type": "string"},
                },
                "required": ["feasibilityScore", "overallAssessment"],
            },
            handler=_review_technical,
        ),
    ),
)


# ─────────────────────────────────────────────────────────────────────────────
# BARK – Tutor (pedagogical review + Q&A)
# ─────────────────────────────────────────────────────────────────────────────

_BARK_PROMPT = textwrap.dedent("""
    You are Bark, the Tutor agent in the GROOT learning system. Your name comes
    from tree bark, the protective layer that nurtures growth.

    ## Your Personality
    - Patient and encouraging, like a wise mentor
    - You celebrate progress, no matter how small
    - You use growth metaphors naturally ("that idea is really taking root")
    - You are honest about gaps in understanding and frame them as room to grow

    ## Your Role
    1. Answer questions clearly, adapting complexity to the learner's level
    2. Provide examples and analogies to make abstract concepts concrete
    3. Catch and gently correct misconceptions
    4. Connect new concepts to things already learned
    5. Encourage hands-on experimentation

    ## BEADS Integration
    When the learner asks about something outside the current phase, acknowledge
    the curiosity, suggest filing it as a BEADS issue, and guide back to the
    current objectives.

    ## Response Format
    - Keep responses focused and digestible
    - Use markdown for code examples
    - Include "🌱 Growth Tip:" callouts for important insights
    - End complex explanations with a simple summary
""").strip()


def _check_understanding(tool_input: dict[str, Any]) -> dict[str, Any]:
    concept    = tool_input.get("concept", "")
    difficulty = tool_input.get("difficulty", "medium")
    return {
        "concept": concept,
        "difficulty": difficulty,
        "message": f"Check question ({difficulty}) requested for '{concept}'",
    }


def _suggest_exercise(tool_input: dict[str, Any]) -> dict[str, Any]:
    concept      = tool_input.get("concept", "")
    time_minutes = tool_input.get("timeMinutes", 15)
    return {
        "concept": concept,
        "timeMinutes": time_minutes,
        "message": f"{time_minutes}-minute exercise suggested for '{concept}'",
    }


def _log_topic_discussed(tool_input: dict[str, Any]) -> dict[str, Any]:
    topic         = tool_input.get("topic", "")
    understanding = tool_input.get("understanding", "developing")
    logger.info("Bark logged topic: %s (%s)", topic, understanding)
    return {
        "logged": True,
        "topic": topic,
        "understanding": understanding,
        "notes": tool_input.get("notes"),
    }


def _review_pedagogy(review: dict[str, Any]) -> dict[str, Any]:
    feedback = [
        _concern_feedback(AgentName.BARK, concern, FeedbackCategory.PEDAGOGICAL)
        for concern in review.get("concerns") or []
    ]

    progression = review.get("progressionAssessment", "appropriate")
    if progression != "appropriate":
        too_fast = progression == "too_fast"
        feedback.append(AgentFeedback(
            agent_name=AgentName.BARK,
            feedback_type=FeedbackType.CONCERN,
            category=FeedbackCategory.PEDAGOGICAL,
            target=FeedbackTarget(kind="curriculum"),
            message=(
                "Learning progression is too fast - learners may feel overwhelmed"
                if too_fast else
                "Learning progression is too slow - learners may lose interest"
            ),
            severity=Severity.MEDIUM,
            suggested_change=(
                "Add more scaffolding or break complex topics into smaller steps"
                if too_fast else
                "Combine some phases or add more challenging deliverables"
            ),
        ))

    return {
        **review,
        "feedback": feedback,
        "message": f"Pedagogical review complete: {review.get('learningFlowScore')}/10 learning flow",
    }


BARK = Persona(
    name=AgentName.BARK,
    display_name="🪵 Bark (Tutor)",
    system_prompt=_BARK_PROMPT,
    tools=(
        ToolSpec(
            name="check_understanding",
            description="Generate a quick question to check if the learner understood a concept",
            input_schema={
                "type": "object",
                "properties": {
                    "concept":    {"type": "string"},
                    "difficulty": {"type": "string", "enum": ["easy", "medium", "hard"]},
                },
                "required": ["concept"],
            },
            handler=_check_understanding,
        ),
        ToolSpec(
            name="suggest_exercise",
            description="Suggest a hands-on exercise to practice a concept",
            input_schema={
                "type": "object",
                "properties": {
                    "concept":     {"type": "string"},
                    "timeMinutes": {"type": "number"},
                },
                "required": ["concept"],
            },
            handler=_suggest_exercise,
        ),
        ToolSpec(
            name="log_topic_discussed",
            description="Log a topic that was discussed for tracking in BEADS",
            input_schema={
                "type": "object",
                "properties": {
                    "topic":         {"type": "string"},
                    "understanding": {"type": "string", "enum": ["struggling", "developing", "solid", "mastered"]},
                    "notes":         {"type": "string"},
                },
                "required": ["topic"],
            },
            handler=_log_topic_discussed,
        ),
        ToolSpec(
            name=PEDAGOGY_REVIEW_TOOL,
            description=(
                "Assess the pedagogical soundness of a curriculum - "
                "learning flow, progression, and engagement"
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "learningFlowScore": {"type": "number", "minimum": 1, "maximum": 10},
                    "progressionAssessment": {
                        "type": "string", "enum": ["too_fast", "appropriate", "too_slow"],
                    },
                    "engagementLevel": {"type": "string", "enum": ["low", "medium", "high"]},
                    "strengths": {"type": "array", "items": {"type": "string"}},
                    "concerns": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "issue":        {"type": "string"},
                                "phaseNumber":  {"type": "number"},
                                "severity":     {"type": "string", "enum": [s.value for s in Severity]},
                                "suggestedFix": {"type": "string"},
                            },
                        },
                    },
                    "handsOnBalance":    {"type": "string"},
                    "motivationFactors": {"type": "array", "items": {"type": "string"}},
                    "overallAssessment": {"type": "string"},
                },
                "required": [
                    "learningFlowScore", "progressionAssessment",
                    "engagementLevel", "overallAssessment",
                ],
            },
            handler=_review_pedagogy,
        ),
    ),
)


PERSONAS: dict[AgentName, Persona] = {
    AgentName.SEEDLING: SEEDLING,
    AgentName.CANOPY:   CANOPY,
    AgentName.BARK:     BARK,
}


def create_agent(name: AgentName, client: ChatBackend) -> Agent:
    return Agent(PERSONAS[name], client)


# ─── Prompts ─────────────────────────────────────────────────────────────────

def build_generation_prompt(topic: str) -> str:
    return textwrap.dedent(f"""
        Generate a comprehensive, project-based learning curriculum for: "{topic}"

        Please create a curriculum with:
        - 4-6 progressive phases
        - Clear learning objectives for each phase
        - Hands-on deliverables (things to build)
        - Key concepts and definitions
        - Realistic time estimates

        Use the {GENERATE_TOOL} tool to output the curriculum in the proper format.
    """).strip()


def describe_curriculum(curriculum: Curriculum) -> str:
    """Markdown rendering of a curriculum for reviewer prompts."""
    meta = curriculum.metadata
    lines = [
        f"## Curriculum: {curriculum.title}",
        f"**Topic:** {curriculum.topic}",
        f"**Difficulty:** {meta.difficulty.value}",
        f"**Target Audience:** {meta.target_audience}",
        f"**Total Hours:** {meta.estimated_hours:g}",
        "",
        "## Phases:",
    ]
    for phase in curriculum.phases:
        lines += [
            "",
            f"### Phase {phase.number}: {phase.title}",
            f"**Growth Stage:** {phase.growth_stage.value}",
            f"**Estimated Hours:** {phase.estimated_hours:g}",
            "",
            "**Objectives:**",
            *[f"- {o.description}" for o in phase.objectives],
            "",
            "**Deliverables:**",
            *[
                f"- {d.title}: {d.description}\n  Acceptance Criteria: {'; '.join(d.acceptance_criteria)}"
                for d in phase.deliverables
            ],
            "",
            "**Key Concepts:**",
            *[f"- {kc.term}: {kc.definition}" for kc in phase.key_concepts],
        ]
    return "\n".join(lines)


_REVIEW_ASKS = {
    TECHNICAL_REVIEW_TOOL: (
        "from a technical perspective",
        [
            "Feasibility - can each phase be completed in its estimated hours?",
            "Accuracy - are the concepts and tools current and correct?",
            "Sequencing - are technical prerequisites taught before they are needed?",
            "Deliverables - are the acceptance criteria concrete and testable?",
            "Any technical concerns that should be addressed",
        ],
    ),
    PEDAGOGY_REVIEW_TOOL: (
        "from a pedagogical perspective",
        [
            "Learning flow - do concepts build on each other naturally?",
            "Progression pace - is it appropriate for the target audience?",
            "Engagement - will learners stay motivated?",
            "Hands-on balance - enough practical exercises?",
            "Any pedagogical concerns that should be addressed",
        ],
    ),
}


def build_review_prompt(curriculum: Curriculum, tool_name: str) -> str:
    perspective, asks = _REVIEW_ASKS[tool_name]
    numbered = "\n".join(f"{i}. {ask}" for i, ask in enumerate(asks, start=1))
    return (
        f"Please review this curriculum {perspective}:\n\n"
        f"{describe_curriculum(curriculum)}\n\n"
        f"Please use the {tool_name} tool to assess:\n{numbered}"
    )


# ─── Review helper ───────────────────────────────────────────────────────────

@dataclass
class ReviewOutcome:
    feedback: list[AgentFeedback] = field(default_factory=list)
    score:    float = DEFAULT_REVIEW_SCORE
    summary:  str = ""
    prompt:   str = ""


def review_curriculum(agent: Agent, curriculum: Curriculum, tool_name: str, score_key: str) -> ReviewOutcome:
    """
    Ask a reviewer persona to assess *curriculum* and collect its feedback.
    The score falls back to DEFAULT_REVIEW_SCORE when the model omits it.
    """
    agent.set_context(curriculum=curriculum)
    prompt   = build_review_prompt(curriculum, tool_name)
    response = agent.chat(prompt)

    outcome = ReviewOutcome(summary=response.content, prompt=prompt)
    for call in response.tool_calls:
        output = call.output
        if not isinstance(output, dict):
            continue
        outcome.feedback.extend(output.get("feedback") or [])
        if output.get(score_key):
            outcome.score = output[score_key]
    return outcome
