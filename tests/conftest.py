"""
Shared pytest fixtures for bracket manager tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips the exhaustive bracket sweep)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Keep the app from writing a generated key into the repository data dir
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

from core.models import Tournament, create_participants, STATUS_ACTIVE
from storage import TournamentStore


@pytest.fixture
def identity_shuffle(monkeypatch):
    """Make bracket draws deterministic: participants keep their input order."""
    monkeypatch.setattr('core.bracket.shuffle_participants',
                        lambda participants, rng=None: list(participants))


@pytest.fixture
def make_tournament(identity_shuffle):
    """Factory for an active, unsaved tournament drawn in input order."""
    from core.bracket import build_bracket

    def _make(names, size=8, name='Test Cup'):
        participants = create_participants(names)
        return Tournament(
            name=name,
            size=size,
            participants=participants,
            matches=build_bracket(participants, size),
            status=STATUS_ACTIVE,
        )
    return _make


@pytest.fixture
def eight_names():
    return ['Ana', 'Bruno', 'Carla', 'Diego', 'Elisa', 'Fabio', 'Gabi', 'Heitor']


@pytest.fixture
def store(tmp_path):
    """An open tournament store backed by a temporary directory."""
    with TournamentStore(str(tmp_path)) as store:
        yield store


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app at a temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    return str(tmp_path)


@pytest.fixture
def client(temp_data_dir):
    """Create a test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
