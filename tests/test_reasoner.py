import threading
from unittest.mock import MagicMock

import pytest
from rdflib import Namespace

from ontoquery.errors import InconsistentOntologyError
from ontoquery.ontology_manager import OntologyManager
from ontoquery.reasoner import ReasonerProvider
from ontoquery.revision import RevisionCounter

EX = Namespace("http://example.org/test#")

# --- Fixtures ---


@pytest.fixture
def engine():
    """Stub entailment engine: every create_view call returns a fresh mock view."""
    mock_engine = MagicMock()
    mock_engine.create_view.side_effect = lambda store: MagicMock(name=f"view{mock_engine.create_view.call_count}")
    return mock_engine


@pytest.fixture
def revision():
    return RevisionCounter()


@pytest.fixture
def provider(engine, revision):
    return ReasonerProvider(engine, revision)


@pytest.fixture
def store():
    return OntologyManager(base_namespace=str(EX))

# --- Construction ---


def test_requires_engine_and_revision(revision):
    with pytest.raises(ValueError):
        ReasonerProvider(None, revision)
    with pytest.raises(ValueError):
        ReasonerProvider(MagicMock(), None)


def test_get_requires_store(provider):
    with pytest.raises(ValueError):
        provider.get(None)

# --- Cache coherence ---


def test_first_get_builds_and_precomputes(provider, engine, store):
    view = provider.get(store)
    engine.create_view.assert_called_once_with(store)
    view.precompute.assert_called_once()
    assert provider.revision == 0
    assert provider.build_count == 1


def test_consecutive_gets_return_same_instance(provider, engine, store):
    first = provider.get(store)
    second = provider.get(store)
    assert first is second
    assert engine.create_view.call_count == 1


def test_bump_triggers_exactly_one_rebuild(provider, engine, revision, store):
    old = provider.get(store)
    revision.bump()
    new = provider.get(store)
    again = provider.get(store)

    assert new is not old
    assert new is again
    old.dispose.assert_called_once()
    new.dispose.assert_not_called()
    assert provider.revision == 1
    assert engine.create_view.call_count == 2


def test_one_construction_per_observed_revision(provider, engine, revision, store):
    observed = set()
    # queries interleaved with mutations, sometimes several bumps in a row
    for step in range(30):
        if step % 3 == 0:
            revision.bump()
        if step % 7 == 0:
            revision.bump()
        provider.get(store)
        observed.add(revision.current())
        provider.get(store)
    assert engine.create_view.call_count == len(observed)


def test_never_reuses_view_with_older_stamp(provider, revision, store):
    for _ in range(5):
        provider.get(store)
        assert provider.revision == revision.current()
        revision.bump()
        assert provider.revision != revision.current()

# --- Failures ---


def test_engine_errors_propagate_and_leave_cache_empty(provider, engine, revision, store):
    healthy = provider.get(store)
    revision.bump()

    broken = MagicMock()
    broken.precompute.side_effect = InconsistentOntologyError(["Disease and Healthy are disjoint"])
    engine.create_view.side_effect = lambda s: broken

    with pytest.raises(InconsistentOntologyError):
        provider.get(store)
    healthy.dispose.assert_called_once()
    broken.dispose.assert_called_once()
    assert provider.revision is None

    # next call retries the construction instead of serving a stale view
    with pytest.raises(InconsistentOntologyError):
        provider.get(store)
    assert provider.build_count == 3


def test_create_view_errors_propagate(provider, engine, store):
    engine.create_view.side_effect = RuntimeError("engine exploded")
    with pytest.raises(RuntimeError, match="engine exploded"):
        provider.get(store)
    assert provider.revision is None

# --- Disposal ---


def test_dispose_is_idempotent(provider, store):
    view = provider.get(store)
    provider.dispose()
    provider.dispose()
    view.dispose.assert_called_once()
    assert provider.revision is None


def test_get_after_dispose_rebuilds(provider, engine, store):
    provider.get(store)
    provider.dispose()
    provider.get(store)
    assert engine.create_view.call_count == 2

# --- Concurrency ---


def test_concurrent_gets_build_once(engine, revision, store):
    provider = ReasonerProvider(engine, revision)
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(provider.get(store))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert engine.create_view.call_count == 1
    assert all(r is results[0] for r in results)
