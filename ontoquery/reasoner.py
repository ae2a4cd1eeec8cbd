import logging
import threading
import time
from typing import Optional

from ontoquery.ontology_manager import OntologyManager
from ontoquery.revision import RevisionCounter

log = logging.getLogger(__name__)


class ReasonerProvider:
    """
    Lazily builds and caches the inferred view of an ontology.

    The cached view is stamped with the revision read when it was built.
    Whenever the revision has advanced since then, the next call to get()
    disposes the old view and builds, precomputes and stamps a new one.
    get() and dispose() share a single lock, so a view is never rebuilt
    twice concurrently nor disposed while another thread is replacing it.
    """
    def __init__(self, engine, revision: RevisionCounter):
        """
        :param engine: Entailment engine exposing create_view(ontology_manager),
                       e.g. an InferenceRunner.
        :param revision: The revision counter of the ontology context.
        """
        if engine is None:
            raise ValueError("engine must not be None")
        if revision is None:
            raise ValueError("revision must not be None")
        self.engine = engine
        self._revision = revision
        self._lock = threading.Lock()
        self._view = None
        self._view_revision: Optional[int] = None
        self._build_count = 0

    @property
    def revision(self) -> Optional[int]:
        """Revision stamped on the cached view, or None if nothing is cached."""
        with self._lock:
            return self._view_revision

    @property
    def build_count(self) -> int:
        """Number of views constructed so far."""
        with self._lock:
            return self._build_count

    def get(self, ontology_manager: OntologyManager):
        """
        Return the inferred view for the ontology, rebuilding it if the
        ontology changed since the cached view was built.

        Errors raised by the engine (e.g. InconsistentOntologyError) propagate
        unchanged and leave the cache empty.
        """
        if ontology_manager is None:
            raise ValueError("ontology_manager must not be None")

        with self._lock:
            current = self._revision.current()
            if self._view is not None and self._view_revision == current:
                return self._view

            if self._view is not None:
                log.debug(f"Reasoner view stamped {self._view_revision} is stale (revision {current}). Disposing.")
                self._clear()

            started = time.perf_counter()
            view = self.engine.create_view(ontology_manager)
            self._build_count += 1
            try:
                view.precompute()
            except Exception:
                view.dispose()
                raise
            self._view = view
            self._view_revision = current
            log.info(f"Reasoner view rebuilt at revision {current} in {time.perf_counter() - started:.3f}s.")
            return self._view

    def dispose(self) -> None:
        """Release the cached view, if any."""
        with self._lock:
            if self._view is not None:
                self._clear()
                log.debug("Reasoner view disposed.")

    def _clear(self) -> None:
        self._view.dispose()
        self._view = None
        self._view_revision = None
