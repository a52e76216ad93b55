"""
Tests for the four-stage orchestration pipeline and the feedback merge rules.
All chat traffic is scripted through FakeChatClient.
"""
import json

import pytest

from factories import (
    FakeChatClient,
    generation_input,
    make_curriculum,
    make_feedback,
    tool_reply,
)

from groot.errors import (
    ChatError,
    GenerationError,
    NotFoundError,
    OrchestrationError,
    UnsupportedFormatError,
)
from groot.llm import ChatReply
from groot.models import AgentName, FeedbackType, Severity
from groot.orchestrator import (
    COMPLEXITY_DOWN,
    COMPLEXITY_UP,
    OrchestratorCallbacks,
    SharedContext,
    create_orchestrator,
    describe_change,
    detect_conflicts,
    has_opposing_suggestions,
    run_succeeded,
    target_key,
)
from groot.personas import GENERATE_TOOL, PEDAGOGY_REVIEW_TOOL, TECHNICAL_REVIEW_TOOL


def technical(score=8, concerns=None, suggestions=None):
    payload = {"feasibilityScore": score, "overallAssessment": "Solid", "concerns": concerns or []}
    if suggestions:
        payload["suggestions"] = suggestions
    return tool_reply(TECHNICAL_REVIEW_TOOL, payload, text="Technical review done")


def pedagogy(score=9, concerns=None, progression="appropriate"):
    return tool_reply(PEDAGOGY_REVIEW_TOOL, {
        "learningFlowScore":     score,
        "progressionAssessment": progression,
        "engagementLevel":       "high",
        "overallAssessment":     "Flows well",
        "concerns":              concerns or [],
    }, text="Pedagogy review done")


def run(*replies, topic="Building REST APIs", from_file=False, callbacks=None, debug=False):
    client = FakeChatClient(*replies)
    orch = create_orchestrator(client=client, callbacks=callbacks, debug=debug)
    return orch.orchestrate(topic, from_file=from_file), client


# ─── Keyword heuristic ────────────────────────────────────────────────────────

class TestKeywordLists:
    def test_complexity_up_keywords_are_pinned(self):
        assert COMPLEXITY_UP == ("add", "increase", "more", "advanced", "complex")

    def test_complexity_down_keywords_are_pinned(self):
        assert COMPLEXITY_DOWN == ("simplify", "reduce", "less", "basic", "remove")


class TestOpposingSuggestions:
    def test_canopy_up_bark_down_is_opposing(self):
        canopy = [make_feedback(AgentName.CANOPY, "Add authentication to this phase")]
        bark   = [make_feedback(AgentName.BARK, "Simplify the exercises")]
        assert has_opposing_suggestions(canopy, bark)

    def test_canopy_down_bark_up_is_opposing(self):
        canopy = [make_feedback(AgentName.CANOPY, "Remove the caching section")]
        bark   = [make_feedback(AgentName.BARK, "Learners need more practice")]
        assert has_opposing_suggestions(canopy, bark)

    def test_same_direction_is_not_opposing(self):
        canopy = [make_feedback(AgentName.CANOPY, "Add rate limiting")]
        bark   = [make_feedback(AgentName.BARK, "Increase the number of exercises")]
        assert not has_opposing_suggestions(canopy, bark)

    def test_match_is_case_insensitive(self):
        canopy = [make_feedback(AgentName.CANOPY, "ADVANCED topics are missing")]
        bark   = [make_feedback(AgentName.BARK, "Too much, REDUCE scope")]
        assert has_opposing_suggestions(canopy, bark)

    def test_one_side_empty_is_not_opposing(self):
        assert not has_opposing_suggestions([make_feedback(AgentName.CANOPY, "Add tests")], [])


class TestDetectConflicts:
    def test_group_key_format(self):
        assert target_key(make_feedback(phase_number=2)) == "phase-2"
        assert target_key(make_feedback()) == "curriculum-all"

    def test_conflict_only_within_same_target(self):
        feedback = [
            make_feedback(AgentName.CANOPY, "Add websockets", phase_number=2),
            make_feedback(AgentName.BARK, "Simplify this phase", phase_number=3),
        ]
        conflicts, rest = detect_conflicts(feedback)
        assert conflicts == []
        assert rest == feedback

    def test_conflicting_group_canopy_first_then_bark(self):
        bark_item   = make_feedback(AgentName.BARK, "Simplify phase 2", phase_number=2)
        canopy_item = make_feedback(AgentName.CANOPY, "Add more advanced auth", phase_number=2)
        other       = make_feedback(AgentName.CANOPY, "Fine overall")
        conflicts, rest = detect_conflicts([bark_item, other, canopy_item])
        assert conflicts == [canopy_item, bark_item]
        assert rest == [other]

    def test_whole_group_marked_conflicting(self):
        items = [
            make_feedback(AgentName.CANOPY, "Add GraphQL", phase_number=1),
            make_feedback(AgentName.CANOPY, "Typo in title", phase_number=1),
            make_feedback(AgentName.BARK, "Reduce the workload", phase_number=1),
        ]
        conflicts, rest = detect_conflicts(items)
        assert len(conflicts) == 3
        assert rest == []


class TestDescribeChange:
    def test_prefers_suggested_change(self):
        fb = make_feedback(message="Too long", suggested_change="Split phase 3")
        assert describe_change(fb) == "[canopy] technical: Split phase 3"

    def test_falls_back_to_message(self):
        fb = make_feedback(AgentName.BARK, "Needs a recap")
        assert describe_change(fb) == "[bark] pedagogical: Needs a recap"


class TestRunSucceeded:
    def test_clean_run(self):
        assert run_succeeded([make_feedback()], [])

    def test_non_critical_blocker_fails_run(self):
        blocker = make_feedback(feedback_type=FeedbackType.BLOCKER, severity=Severity.HIGH)
        assert run_succeeded([blocker], []) is False

    def test_unresolved_fails_run(self):
        item = make_feedback()
        assert run_succeeded([item], [item]) is False


class TestMergeFeedback:
    def test_approvals_are_not_applied_changes(self):
        orch = create_orchestrator(client=FakeChatClient())
        orch.context = SharedContext(original_topic="REST")
        approval = make_feedback(message="Great pacing", feedback_type=FeedbackType.APPROVAL)
        suggestion = make_feedback(AgentName.BARK, "Add a recap", phase_number=2)

        _, applied, unresolved = orch.merge_feedback(make_curriculum(), [approval, suggestion])

        assert applied == ["[bark] pedagogical: Add a recap"]
        assert unresolved == []
        assert orch.context.consensus_reached


# ─── Full pipeline ────────────────────────────────────────────────────────────

class TestOrchestrate:
    def test_happy_path_succeeds(self):
        result, client = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(8),
            pedagogy(9),
        )
        assert result.success
        assert result.final_curriculum.title == "Building REST APIs"
        assert len(result.final_curriculum.phases) == 4
        assert result.technical_score == 8
        assert result.pedagogy_score == 9
        assert result.unresolved_issues == []
        assert len(client.calls) == 3

    def test_each_stage_uses_its_own_persona_tools(self):
        _, client = run(tool_reply(GENERATE_TOOL, generation_input()), technical(), pedagogy())
        assert client.calls[0]["tools"] == [GENERATE_TOOL]
        assert client.calls[1]["tools"] == [TECHNICAL_REVIEW_TOOL]
        assert PEDAGOGY_REVIEW_TOOL in client.calls[2]["tools"]

    def test_reviewers_see_the_generated_curriculum(self):
        _, client = run(tool_reply(GENERATE_TOOL, generation_input("Rust CLIs")), technical(), pedagogy())
        review_prompt = client.calls[1]["messages"][-1]["content"]
        assert "## Curriculum: Rust CLIs" in review_prompt
        assert "Title: Rust CLIs" in client.calls[1]["system_prompt"]

    def test_missing_scores_default_to_seven(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            ChatReply(text="no tool"),
            ChatReply(text="no tool either"),
        )
        assert result.technical_score == 7
        assert result.pedagogy_score == 7
        assert result.success

    def test_conflict_makes_run_unsuccessful(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(concerns=[{
                "issue": "Add more advanced authentication", "phaseNumber": 2, "severity": "medium",
            }]),
            pedagogy(concerns=[{
                "issue": "Simplify phase 2, it is overloaded", "phaseNumber": 2, "severity": "medium",
            }]),
        )
        assert not result.success
        assert [f.agent_name for f in result.unresolved_issues] == [AgentName.CANOPY, AgentName.BARK]
        assert result.applied_changes == []

    def test_critical_feedback_is_always_unresolved(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(concerns=[{
                "issue": "Phase 3 needs a database that is never introduced",
                "phaseNumber": 3, "severity": "critical", "suggestedFix": "Introduce SQLite in phase 2",
            }]),
            pedagogy(),
        )
        assert not result.success
        assert len(result.unresolved_issues) == 1
        issue = result.unresolved_issues[0]
        assert issue.severity == Severity.CRITICAL
        assert issue.feedback_type == FeedbackType.BLOCKER
        # non-conflicting, so it is also described as an applied change
        assert result.applied_changes == ["[canopy] technical: Introduce SQLite in phase 2"]

    def test_critical_item_inside_conflict_listed_once(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(concerns=[{"issue": "Add more depth", "phaseNumber": 1, "severity": "critical"}]),
            pedagogy(concerns=[{"issue": "Reduce the scope", "phaseNumber": 1, "severity": "low"}]),
        )
        assert len(result.unresolved_issues) == 2

    def test_suggestions_become_applied_changes(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(suggestions=[{"suggestion": "Mention OpenAPI", "phaseNumber": 1}]),
            pedagogy(progression="too_fast"),
        )
        assert result.success
        assert "[canopy] technical: Mention OpenAPI" in result.applied_changes
        assert (
            "[bark] pedagogical: Add more scaffolding or break complex topics into smaller steps"
            in result.applied_changes
        )

    def test_merge_does_not_rewrite_curriculum(self):
        result, _ = run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(concerns=[{"issue": "Remove phase 4", "phaseNumber": 4, "severity": "high"}]),
            pedagogy(),
        )
        assert len(result.final_curriculum.phases) == 4

    def test_no_generation_tool_call_fails_in_generate_stage(self):
        with pytest.raises(OrchestrationError) as exc_info:
            run(ChatReply(text="I'd rather chat"))
        assert exc_info.value.stage == "generate"
        assert isinstance(exc_info.value.__cause__, GenerationError)

    def test_chat_failure_names_the_stage(self):
        with pytest.raises(OrchestrationError) as exc_info:
            run(tool_reply(GENERATE_TOOL, generation_input()), ChatError("boom"))
        assert exc_info.value.stage == "technical-review"
        assert "Orchestration failed during technical-review" in str(exc_info.value)

    def test_trace_records_every_stage(self):
        result, _ = run(tool_reply(GENERATE_TOOL, generation_input()), technical(), pedagogy())
        stages = [s.stage for s in result.trace.steps]
        assert stages == ["generate", "technical-review", "pedagogical-review", "merge"]
        assert all(s.status == "success" for s in result.trace.steps)
        json.dumps(result.trace.to_dict())

    def test_callbacks_fire_in_stage_order(self):
        started, completed, feedback = [], [], []
        callbacks = OrchestratorCallbacks(
            on_phase_start=started.append,
            on_phase_complete=lambda stage, ok: completed.append((stage, ok)),
            on_feedback=feedback.append,
        )
        run(
            tool_reply(GENERATE_TOOL, generation_input()),
            technical(concerns=[{"issue": "Outdated library", "phaseNumber": 1, "severity": "high"}]),
            pedagogy(),
            callbacks=callbacks,
        )
        assert started == ["generate", "technical-review", "pedagogical-review", "merge"]
        assert all(ok for _, ok in completed)
        assert [f.message for f in feedback] == ["Outdated library"]

    def test_debug_events_only_when_debug_enabled(self):
        events = []
        callbacks = OrchestratorCallbacks(on_debug=events.append)
        run(tool_reply(GENERATE_TOOL, generation_input()), technical(), pedagogy(), callbacks=callbacks)
        assert events == []

        run(tool_reply(GENERATE_TOOL, generation_input()), technical(), pedagogy(),
            callbacks=callbacks, debug=True)
        types = {e.type for e in events}
        assert {"prompt", "response", "tool_call", "handoff"} <= types


class TestFromFile:
    def test_loads_json_and_skips_generation(self, saved_curriculum):
        result, client = run(technical(), pedagogy(), topic=str(saved_curriculum), from_file=True)
        assert result.final_curriculum.id == make_curriculum().id
        assert len(client.calls) == 2
        assert result.trace.steps[0].agent == "file"

    def test_markdown_file_is_rejected(self, tmp_path):
        md = tmp_path / "curriculum.md"
        md.write_text("# Not JSON\n")
        with pytest.raises(OrchestrationError) as exc_info:
            run(topic=str(md), from_file=True)
        assert exc_info.value.stage == "generate"
        assert isinstance(exc_info.value.__cause__, UnsupportedFormatError)

    def test_missing_file_is_not_found(self, tmp_path):
        with pytest.raises(OrchestrationError) as exc_info:
            run(topic=str(tmp_path / "nope.json"), from_file=True)
        assert isinstance(exc_info.value.__cause__, NotFoundError)
