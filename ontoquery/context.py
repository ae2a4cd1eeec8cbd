import logging
from typing import Optional

from ontoquery.errors import NoReasonerConfiguredError
from ontoquery.ontology_manager import OntologyManager
from ontoquery.reasoner import ReasonerProvider
from ontoquery.revision import RevisionCounter

log = logging.getLogger(__name__)


class OntologyContext:
    """
    Shared state handed to every query and authoring component:
    the root ontology, its revision counter and, optionally, a reasoner.
    """
    def __init__(self, ontology_manager: OntologyManager, engine=None):
        """
        :param ontology_manager: The root ontology (its imports form the imports closure).
        :param engine: Optional entailment engine (see InferenceRunner). Without one,
                       inferred queries raise NoReasonerConfiguredError.
        """
        if ontology_manager is None:
            raise ValueError("ontology_manager must not be None")
        self.ontology_manager = ontology_manager
        self.revision = RevisionCounter()
        self.reasoner_provider: Optional[ReasonerProvider] = (
            ReasonerProvider(engine, self.revision) if engine is not None else None
        )

    def has_reasoner(self) -> bool:
        return self.reasoner_provider is not None

    def get_reasoner(self):
        """
        Return an up-to-date inferred view of the root ontology.

        :raises NoReasonerConfiguredError: if the context was built without an engine.
        """
        if self.reasoner_provider is None:
            raise NoReasonerConfiguredError()
        return self.reasoner_provider.get(self.ontology_manager)

    def mark_dirty(self) -> int:
        """Record that the ontology changed. Must follow every mutation, including new imports."""
        return self.revision.bump()

    def import_into_root(self, other: OntologyManager) -> bool:
        """
        Add an ontology to the root's imports closure.

        :return: False if it was already part of the closure (revision unchanged).
        """
        if not self.ontology_manager.add_import(other):
            return False
        self.mark_dirty()
        return True

    def load_import(self, path: str, fmt: str = None) -> OntologyManager:
        """Load an ontology document and import it into the root."""
        root = self.ontology_manager
        imported = OntologyManager(path, fmt=fmt or root.format, base_namespace=str(root.base_ns))
        self.import_into_root(imported)
        return imported

    def load_into_root(self, path: str, fmt: str = None) -> None:
        """Parse a document straight into the root ontology graph."""
        self.ontology_manager.load_graph(path, fmt)
        self.mark_dirty()

    def dispose(self) -> None:
        if self.reasoner_provider is not None:
            self.reasoner_provider.dispose()
