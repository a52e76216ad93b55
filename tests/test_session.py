"""
Tests for the session lifecycle: start, progress marks, handoff, persistence.
"""
from datetime import timedelta

import pytest

from factories import T0, make_curriculum, make_session

from groot.errors import PhaseNotFoundError
from groot.models import SessionStatus
from groot.session import (
    ActiveSession,
    SessionManager,
    add_question_asked,
    add_session_note,
    clear_active_marker,
    elapsed_minutes,
    format_duration,
    generate_handoff,
    mark_deliverable_complete,
    mark_objective_complete,
    read_active_marker,
    session_filename,
    session_summary,
    write_active_marker,
)


class FakeClock:
    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ─── Helpers ──────────────────────────────────────────────────────────────────

class TestFormatDuration:
    @pytest.mark.parametrize("minutes,expected", [
        (0, "0m"), (45, "45m"), (59, "59m"), (60, "1h"), (90, "1h 30m"), (125, "2h 5m"), (180, "3h"),
    ])
    def test_format(self, minutes, expected):
        assert format_duration(minutes) == expected


class TestElapsedMinutes:
    def test_rounds_half_up(self):
        assert elapsed_minutes(T0, T0 + timedelta(seconds=29)) == 0
        assert elapsed_minutes(T0, T0 + timedelta(seconds=30)) == 1
        assert elapsed_minutes(T0, T0 + timedelta(minutes=44, seconds=40)) == 45

    def test_never_negative(self):
        assert elapsed_minutes(T0, T0 - timedelta(minutes=5)) == 0


def test_session_filename_uses_date_slug_and_phase():
    session = make_session(make_curriculum(title="Building REST APIs!"), phase_number=2)
    assert session_filename(session) == "2025-03-14-building-rest-apis-phase-2.json"


def test_session_filename_slug_truncated():
    session = make_session(make_curriculum(title="A" * 80))
    assert session_filename(session) == f"2025-03-14-{'a' * 30}-phase-1.json"


# ─── Manager ──────────────────────────────────────────────────────────────────

class TestStartSession:
    def test_start_sets_active_handle(self, curriculum, project):
        handle = ActiveSession()
        mgr = SessionManager(project / "sessions", handle, clock=FakeClock())
        session = mgr.start_session(curriculum, 2, "/tmp/curriculum.json")
        assert handle.current is session
        assert handle.is_active()
        assert session.status == SessionStatus.ACTIVE
        assert session.phase_title == "Phase title 2"
        assert session.phase_id == "phase-2"
        assert session.started_at == T0
        assert session.curriculum_path == "/tmp/curriculum.json"

    def test_start_does_not_write_files(self, curriculum, manager):
        manager.start_session(curriculum, 1)
        assert not manager.sessions_dir.exists() or list(manager.sessions_dir.iterdir()) == []

    def test_unknown_phase_raises(self, curriculum, manager):
        with pytest.raises(PhaseNotFoundError):
            manager.start_session(curriculum, 99)

    def test_failed_start_keeps_current_session(self, curriculum, manager):
        current = manager.start_session(curriculum, 1)
        with pytest.raises(PhaseNotFoundError):
            manager.start_session(curriculum, 99)
        assert manager.handle.current is current


class TestEndSession:
    def test_end_persists_and_clears_handle(self, curriculum, project):
        clock = FakeClock()
        mgr = SessionManager(project / "sessions", clock=clock)
        session = mgr.start_session(curriculum, 1)
        clock.advance(minutes=95)
        phase = curriculum.phase_by_number(1)

        path = mgr.end_session(session, generate_handoff(session, phase))

        assert path.exists()
        assert mgr.handle.current is None
        loaded = mgr.load_session(path)
        assert loaded.status == SessionStatus.COMPLETED
        assert loaded.progress.time_spent_minutes == 95
        assert loaded.handoff.prompt_for_next_session.startswith("Resume Phase 1")

    def test_round_trip_preserves_fields(self, curriculum, manager):
        session = manager.start_session(curriculum, 1)
        mark_objective_complete(session, "p1-obj-1")
        add_session_note(session, "Read the RFC")
        add_question_asked(session, "What is REST?")
        path = manager.save_session(session)

        loaded = manager.load_session(path)
        assert loaded == session

    def test_on_disk_json_uses_camel_case(self, curriculum, manager):
        session = manager.start_session(curriculum, 1)
        text = manager.save_session(session).read_text()
        assert '"curriculumTitle"' in text
        assert '"objectivesCompleted"' in text


class TestListing:
    def test_list_sorted_newest_first(self, curriculum, manager):
        older = make_session(curriculum, 1, started_at=T0, session_id="old")
        newer = make_session(curriculum, 2, started_at=T0 + timedelta(days=1), session_id="new")
        manager.save_session(older)
        manager.save_session(newer)
        assert [s.id for s in manager.list_sessions()] == ["new", "old"]

    def test_list_filters_by_curriculum(self, manager):
        manager.save_session(make_session(make_curriculum(title="One"), session_id="a"))
        other = make_curriculum(title="Two").model_copy(update={"id": "other"})
        manager.save_session(make_session(other, session_id="b"))
        assert [s.id for s in manager.list_sessions("other")] == ["b"]

    def test_unreadable_files_are_skipped(self, curriculum, manager):
        manager.save_session(make_session(curriculum))
        (manager.sessions_dir / "garbage.json").write_text("{not json")
        assert len(manager.list_sessions()) == 1

    def test_non_utf8_files_are_skipped(self, curriculum, manager):
        manager.save_session(make_session(curriculum))
        (manager.sessions_dir / "broken.json").write_bytes(b"\xff\xfe\x00garbage")
        assert len(manager.list_sessions()) == 1
        assert manager.find_active_session() is not None

    def test_missing_dir_lists_nothing(self, tmp_path):
        assert SessionManager(tmp_path / "nowhere").list_sessions() == []

    def test_find_active_session(self, curriculum, manager):
        done = make_session(curriculum, session_id="done")
        done.status = SessionStatus.COMPLETED
        manager.save_session(done)
        assert manager.find_active_session() is None

        manager.save_session(make_session(curriculum, 2, session_id="open"))
        assert manager.find_active_session().id == "open"


# ─── Mutations ────────────────────────────────────────────────────────────────

class TestMutations:
    def test_marks_are_idempotent(self, session):
        mark_objective_complete(session, "p1-obj-1")
        mark_objective_complete(session, "p1-obj-1")
        mark_deliverable_complete(session, "p1-del-2")
        mark_deliverable_complete(session, "p1-del-2")
        assert session.progress.objectives_completed == ["p1-obj-1"]
        assert session.progress.deliverables_completed == ["p1-del-2"]

    def test_notes_deduplicated(self, session):
        add_session_note(session, "a")
        add_session_note(session, "b")
        add_session_note(session, "a")
        assert session.notes == ["a", "b"]

    def test_questions_append(self, session):
        add_question_asked(session, "why?")
        add_question_asked(session, "why?")
        assert session.questions_asked == ["why?", "why?"]


# ─── Handoff ──────────────────────────────────────────────────────────────────

class TestGenerateHandoff:
    def test_nothing_done(self, curriculum, session):
        phase = curriculum.phase_by_number(1)
        handoff = generate_handoff(session, phase)
        assert handoff.completed_work == []
        assert handoff.remaining_work == [
            "Objective 1 of phase 1", "Objective 2 of phase 1",
            "Deliverable 1 of phase 1", "Deliverable 2 of phase 1",
        ]
        assert handoff.next_steps == [
            "Start with: Deliverable 1 of phase 1",
            "Focus on: Objective 1 of phase 1",
        ]
        assert handoff.summary == (
            "Session on Phase 1: Phase title 1. Completed 0/2 objectives, 0/2 deliverables. "
        )
        assert handoff.prompt_for_next_session == (
            "Resume Phase 1 - Phase title 1. Focus on: Deliverable 1 of phase 1"
        )

    def test_partial_progress_and_notes(self, curriculum, session):
        phase = curriculum.phase_by_number(1)
        mark_objective_complete(session, "p1-obj-1")
        mark_deliverable_complete(session, "p1-del-1")
        add_session_note(session, "check status codes")

        handoff = generate_handoff(session, phase, "Good pace")
        assert handoff.completed_work == ["Objective 1 of phase 1", "Completed: Deliverable 1 of phase 1"]
        assert handoff.remaining_work == ["Objective 2 of phase 1", "Deliverable 2 of phase 1"]
        assert handoff.next_steps[-1] == "Review notes from last session"
        assert handoff.summary.endswith("Completed 1/2 objectives, 1/2 deliverables. Good pace")

    def test_only_objectives_left(self, curriculum, session):
        phase = curriculum.phase_by_number(1)
        for d in phase.deliverables:
            mark_deliverable_complete(session, d.id)
        handoff = generate_handoff(session, phase)
        assert handoff.next_steps == ["Focus on: Objective 1 of phase 1"]
        assert handoff.prompt_for_next_session == (
            "Resume Phase 1 - Phase title 1. Complete: Objective 1 of phase 1"
        )

    def test_everything_done(self, curriculum, session):
        phase = curriculum.phase_by_number(1)
        for o in phase.objectives:
            mark_objective_complete(session, o.id)
        for d in phase.deliverables:
            mark_deliverable_complete(session, d.id)
        handoff = generate_handoff(session, phase)
        assert handoff.remaining_work == []
        assert handoff.next_steps == []
        assert handoff.prompt_for_next_session == "Resume Phase 1 - Phase title 1"

    def test_ids_not_in_phase_are_ignored(self, curriculum, session):
        mark_objective_complete(session, "some-other-phase-objective")
        handoff = generate_handoff(session, curriculum.phase_by_number(1))
        assert "Completed 0/2 objectives" in handoff.summary

    def test_is_deterministic(self, curriculum, session):
        phase = curriculum.phase_by_number(1)
        mark_objective_complete(session, "p1-obj-2")
        assert generate_handoff(session, phase, "x") == generate_handoff(session, phase, "x")


# ─── Summary & marker ─────────────────────────────────────────────────────────

def test_session_summary_uses_live_duration_for_active(session):
    add_question_asked(session, "q")
    summary = session_summary(session, now=T0 + timedelta(minutes=75))
    assert summary.duration == "1h 15m"
    assert summary.questions == 1


class TestActiveMarker:
    def test_write_read_clear(self, session, tmp_path):
        marker = tmp_path / ".groot" / "active-session.json"
        write_active_marker(session, marker)
        assert read_active_marker(marker) == session
        clear_active_marker(marker)
        assert read_active_marker(marker) is None
        clear_active_marker(marker)

    def test_corrupt_marker_ignored(self, tmp_path):
        marker = tmp_path / "active-session.json"
        marker.write_text("nope")
        assert read_active_marker(marker) is None

    def test_binary_marker_ignored(self, tmp_path):
        marker = tmp_path / "active-session.json"
        marker.write_bytes(b"\xff\xfe\x00garbage")
        assert read_active_marker(marker) is None

    def test_resume_loads_into_handle(self, session, manager, tmp_path):
        marker = tmp_path / "marker.json"
        write_active_marker(session, marker)
        resumed = manager.resume(marker)
        assert resumed == session
        assert manager.handle.current == session

    def test_resume_ignores_completed_session(self, session, manager, tmp_path):
        session.status = SessionStatus.COMPLETED
        marker = write_active_marker(session, tmp_path / "marker.json")
        assert manager.resume(marker) is None
