import enum
import logging
from typing import Optional, Set

from rdflib import URIRef

from ontoquery.axioms import EntityKind, Scope, as_iri
from ontoquery.context import OntologyContext
from ontoquery.individual_query import IndividualQuery

log = logging.getLogger(__name__)


class QueryMode(enum.Enum):
    """
    ASSERTED answers from stored axioms only and never needs a reasoner.
    INFERRED_DIRECT and INFERRED_ALL ask the reasoner view, for the most
    specific answers or for every entailed answer respectively.
    """
    ASSERTED = "asserted"
    INFERRED_DIRECT = "inferred_direct"
    INFERRED_ALL = "inferred_all"


class QueryDispatcher:
    """
    Single entry point for membership and hierarchy queries. Each call is
    routed independently by its mode: asserted queries go to IndividualQuery,
    inferred ones to the context's cached reasoner view (rebuilt first if
    the ontology changed).

    The reasoner always sees the whole imports closure. For Scope.LOCAL the
    inferred answers are restricted to entities of the local signature.
    """
    def __init__(self, context: OntologyContext, query: IndividualQuery = None):
        if context is None:
            raise ValueError("context must not be None")
        self.context = context
        self.query = query or IndividualQuery(context)

    @property
    def ontology_manager(self):
        return self.context.ontology_manager

    @staticmethod
    def _route(mode: QueryMode) -> Optional[bool]:
        """
        Classify a mode. None means asserted, otherwise the `direct` flag
        to pass to the reasoner view.
        """
        if mode is QueryMode.ASSERTED:
            return None
        if mode is QueryMode.INFERRED_DIRECT:
            return True
        if mode is QueryMode.INFERRED_ALL:
            return False
        raise ValueError(f"Unknown query mode: {mode!r}")

    def _restrict(self, entities: Set[URIRef], kind: EntityKind, scope: Scope) -> Set[URIRef]:
        if scope is Scope.IMPORTS_CLOSURE:
            return set(entities)
        return {e for e in entities if self.ontology_manager.has_entity(e, kind, scope)}

    # --- Membership ---

    def is_instance_of(self, individual, cls, scope: Scope, mode: QueryMode) -> bool:
        """
        :return: False (not an error) if either entity is absent from the scope.
        :raises NoReasonerConfiguredError: for inferred modes without an engine.
        """
        direct = self._route(mode)
        individual, cls = as_iri(individual), as_iri(cls)
        if direct is None:
            return self.query.is_instance_of_asserted(individual, cls, True, scope)

        view = self.context.get_reasoner()
        if not self.ontology_manager.has_individual(individual, scope):
            return False
        if not self.ontology_manager.has_class(cls, scope):
            return False
        result = cls in view.types(individual, direct)
        log.debug(f"is_instance_of({individual}, {cls}, {scope.value}, {mode.value}) -> {result}")
        return result

    def instances_of_class(self, cls, scope: Scope, mode: QueryMode) -> Set[URIRef]:
        direct = self._route(mode)
        cls = as_iri(cls)
        if direct is None:
            return self.query.instances_of_class(cls, scope, True)

        view = self.context.get_reasoner()
        if not self.ontology_manager.has_class(cls, scope):
            return set()
        return self._restrict(view.instances(cls, direct), EntityKind.INDIVIDUAL, scope)

    def asserted_types(self, individual, include_superclasses: bool, scope: Scope) -> Set[URIRef]:
        return self.query.asserted_types(as_iri(individual), include_superclasses, scope)

    # --- Types and hierarchy ---

    def types(self, individual, scope: Scope, mode: QueryMode) -> Set[URIRef]:
        direct = self._route(mode)
        individual = as_iri(individual)
        if direct is None:
            return self.query.direct_types(individual, scope)

        view = self.context.get_reasoner()
        if not self.ontology_manager.has_individual(individual, scope):
            return set()
        return self._restrict(view.types(individual, direct), EntityKind.CLASS, scope)

    def super_classes(self, cls, scope: Scope, mode: QueryMode) -> Set[URIRef]:
        direct = self._route(mode)
        cls = as_iri(cls)
        if direct is None:
            return self.query.super_classes_asserted(cls, True, scope)

        view = self.context.get_reasoner()
        if not self.ontology_manager.has_class(cls, scope):
            return set()
        return self._restrict(view.super_classes(cls, direct), EntityKind.CLASS, scope)

    def sub_classes(self, cls, scope: Scope, mode: QueryMode) -> Set[URIRef]:
        direct = self._route(mode)
        cls = as_iri(cls)
        if direct is None:
            return self.query.sub_classes_asserted(cls, True, scope)

        view = self.context.get_reasoner()
        if not self.ontology_manager.has_class(cls, scope):
            return set()
        return self._restrict(view.sub_classes(cls, direct), EntityKind.CLASS, scope)
