"""
Shared pytest fixtures for the GROOT test suite.
No fixture talks to a real model or to the `bd` binary: chat traffic goes
through FakeChatClient and BEADS calls are monkeypatched per test.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

os.environ.setdefault("ANTHROPIC_API_KEY", "<placeholder>")


import pytest

from factories import make_curriculum, make_session

from groot.curriculum_store import save_curriculum
from groot.paths import get_curriculum_path, get_sessions_dir, init_groot_dir
from groot.session import ActiveSession, SessionManager


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def curriculum():
    return make_curriculum()


@pytest.fixture
def session(curriculum):
    return make_session(curriculum)


@pytest.fixture
def project(tmp_path):
    """A temp project directory with .groot/ initialised."""
    init_groot_dir(tmp_path)
    return tmp_path


@pytest.fixture
def saved_curriculum(project, curriculum):
    path = save_curriculum(curriculum, get_curriculum_path(project))
    return path


@pytest.fixture
def manager(project):
    return SessionManager(get_sessions_dir(project), ActiveSession())
