"""
Tests for the Agent facade, the persona tool handlers and the chat client
adapter.  No real model is contacted.
"""
from types import SimpleNamespace

import pytest

from factories import FakeChatClient, generation_input, make_curriculum, tool_reply

from groot.errors import ChatError, UnknownToolError
from groot.llm import ChatReply, _parse_tool_call, to_function_tools
from groot.models import (
    AgentName,
    FeedbackCategory,
    FeedbackType,
    GrowthStage,
    PhaseStatus,
    Severity,
)
from groot.personas import (
    DEFAULT_REVIEW_SCORE,
    GENERATE_TOOL,
    PERSONAS,
    TECHNICAL_REVIEW_TOOL,
    build_curriculum,
    build_review_prompt,
    create_agent,
    review_curriculum,
)


# ─── Agent ────────────────────────────────────────────────────────────────────

class TestAgent:
    def test_chat_executes_tool_and_records_history(self):
        client = FakeChatClient(tool_reply(GENERATE_TOOL, generation_input(), text="Here you go"))
        agent = create_agent(AgentName.SEEDLING, client)

        response = agent.chat("Teach me REST")

        call = response.find_tool(GENERATE_TOOL)
        assert call is not None
        assert call.output["curriculum"].title == "Building REST APIs"
        assert [m.role for m in agent.history] == ["user", "assistant"]
        assert agent.history[1].agent_name == AgentName.SEEDLING
        assert response.content == "Here you go"

    def test_history_is_sent_on_each_turn(self):
        client = FakeChatClient(ChatReply(text="one"), ChatReply(text="two"))
        agent = create_agent(AgentName.BARK, client)
        agent.chat("first")
        agent.chat("second")
        assert [m["content"] for m in client.calls[1]["messages"]] == ["first", "one", "second"]

    def test_failed_chat_leaves_history_untouched(self):
        client = FakeChatClient(ChatReply(text="one"), ChatError("boom"), ChatReply(text="three"))
        agent = create_agent(AgentName.BARK, client)
        agent.chat("first")
        with pytest.raises(ChatError):
            agent.chat("second")
        assert [m.content for m in agent.history] == ["first", "one"]

        agent.chat("retry")
        assert [m["content"] for m in client.calls[2]["messages"]] == ["first", "one", "retry"]

    def test_clear_history(self):
        agent = create_agent(AgentName.BARK, FakeChatClient(ChatReply(text="hi")))
        agent.chat("hello")
        agent.clear_history()
        assert agent.history == []

    def test_unknown_tool_raises(self):
        client = FakeChatClient(tool_reply("launch_rockets", {}))
        agent = create_agent(AgentName.CANOPY, client)
        with pytest.raises(UnknownToolError) as exc_info:
            agent.chat("review")
        assert exc_info.value.tool_name == "launch_rockets"

    def test_system_prompt_includes_context(self):
        curriculum = make_curriculum()
        agent = create_agent(AgentName.BARK, FakeChatClient())
        agent.set_context(curriculum=curriculum, current_phase=curriculum.phases[0])
        prompt = agent.build_system_prompt()
        assert "## Current Curriculum Context" in prompt
        assert "Title: Building REST APIs" in prompt
        assert "Phase 1: Phase title 1" in prompt
        assert "Status: available" in prompt

    def test_set_context_keeps_existing_values(self):
        curriculum = make_curriculum()
        agent = create_agent(AgentName.BARK, FakeChatClient())
        agent.set_context(curriculum=curriculum)
        agent.set_context(current_phase=curriculum.phases[1])
        assert agent.context.curriculum is curriculum

    def test_display_names(self):
        assert "Seedling" in PERSONAS[AgentName.SEEDLING].display_name
        assert "Canopy" in PERSONAS[AgentName.CANOPY].display_name
        assert "Bark" in PERSONAS[AgentName.BARK].display_name


# ─── Persona handlers ─────────────────────────────────────────────────────────

class TestBuildCurriculum:
    def test_only_first_phase_available(self):
        c = build_curriculum(generation_input(phases=5))
        assert [p.status for p in c.phases] == [PhaseStatus.AVAILABLE] + [PhaseStatus.LOCKED] * 4
        assert [p.number for p in c.phases] == [1, 2, 3, 4, 5]

    def test_hours_summed_and_ids_unique(self):
        c = build_curriculum(generation_input(phases=4))
        assert c.metadata.estimated_hours == 20
        ids = [p.id for p in c.phases] + [o.id for p in c.phases for o in p.objectives]
        assert len(ids) == len(set(ids))

    def test_unknown_enum_values_fall_back(self):
        data = generation_input(phases=1)
        data["difficulty"] = "impossible"
        data["phases"][0]["growthStage"] = "mushroom"
        c = build_curriculum(data)
        assert c.metadata.difficulty.value == "beginner"
        assert c.phases[0].growth_stage == GrowthStage.SEED


class TestReviewHandlers:
    def test_critical_concern_becomes_blocker(self):
        agent = create_agent(AgentName.CANOPY, FakeChatClient())
        out = agent.execute_tool(TECHNICAL_REVIEW_TOOL, {
            "feasibilityScore": 4,
            "overallAssessment": "Too ambitious",
            "concerns": [{"issue": "No DB intro", "phaseNumber": 3, "severity": "critical",
                          "category": "sequencing", "suggestedFix": "Add a DB phase"}],
        })
        (fb,) = out["feedback"]
        assert fb.feedback_type == FeedbackType.BLOCKER
        assert fb.category == FeedbackCategory.SEQUENCING
        assert fb.target.phase_number == 3
        assert fb.suggested_change == "Add a DB phase"

    def test_progression_too_slow_adds_curriculum_concern(self):
        agent = create_agent(AgentName.BARK, FakeChatClient())
        out = agent.execute_tool("review_pedagogy", {
            "learningFlowScore": 6, "progressionAssessment": "too_slow",
            "engagementLevel": "low", "overallAssessment": "Slow",
        })
        (fb,) = out["feedback"]
        assert fb.target.kind == "curriculum"
        assert fb.severity == Severity.MEDIUM
        assert fb.suggested_change == "Combine some phases or add more challenging deliverables"

    def test_bark_tutor_tools(self):
        agent = create_agent(AgentName.BARK, FakeChatClient())
        assert agent.execute_tool("log_topic_discussed", {"topic": "HTTP verbs"})["logged"]
        assert agent.execute_tool("suggest_exercise", {"concept": "GET"})["timeMinutes"] == 15


class TestReviewCurriculum:
    def test_collects_feedback_and_score(self):
        client = FakeChatClient(tool_reply(TECHNICAL_REVIEW_TOOL, {
            "feasibilityScore": 9, "overallAssessment": "ok",
            "concerns": [{"issue": "Old lib", "severity": "low"}],
        }, text="summary"))
        agent = create_agent(AgentName.CANOPY, client)
        outcome = review_curriculum(agent, make_curriculum(), TECHNICAL_REVIEW_TOOL, "feasibilityScore")
        assert outcome.score == 9
        assert outcome.summary == "summary"
        assert len(outcome.feedback) == 1

    def test_score_defaults_when_missing(self):
        agent = create_agent(AgentName.CANOPY, FakeChatClient(ChatReply(text="meh")))
        outcome = review_curriculum(agent, make_curriculum(), TECHNICAL_REVIEW_TOOL, "feasibilityScore")
        assert outcome.score == DEFAULT_REVIEW_SCORE == 7
        assert outcome.feedback == []

    def test_review_prompt_lists_every_phase(self):
        prompt = build_review_prompt(make_curriculum(phases=3), TECHNICAL_REVIEW_TOOL)
        for n in (1, 2, 3):
            assert f"### Phase {n}: Phase title {n}" in prompt
        assert "use the review_technical tool" in prompt


# ─── Chat client adapter ──────────────────────────────────────────────────────

def _tool_call(name, arguments):
    return SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))


class TestChatAdapter:
    def test_function_tool_conversion(self):
        (tool,) = to_function_tools([{"name": "x", "description": "d", "input_schema": {"type": "object"}}])
        assert tool == {
            "type": "function",
            "function": {"name": "x", "description": "d", "parameters": {"type": "object"}},
        }

    def test_parse_tool_call(self):
        use = _parse_tool_call(_tool_call("review_technical", '{"feasibilityScore": 8}'))
        assert use.name == "review_technical"
        assert use.input == {"feasibilityScore": 8}

    def test_empty_arguments_become_empty_dict(self):
        assert _parse_tool_call(_tool_call("t", "")).input == {}

    def test_malformed_arguments_raise_chat_error(self):
        with pytest.raises(ChatError, match="malformed"):
            _parse_tool_call(_tool_call("t", "{oops"))

    def test_non_object_arguments_raise_chat_error(self):
        with pytest.raises(ChatError):
            _parse_tool_call(_tool_call("t", "[1, 2]"))
