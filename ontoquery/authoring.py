"""
Idempotent create/assert/retract operations on individuals.

Every write goes through _add_local/_remove_local, which touch the root
graph and then mark the context dirty, so a successful mutation is always
followed by a revision bump. All existence checks run before the first
write: a call that raises leaves the ontology and the revision unchanged.
"""

import logging
from typing import List

from rdflib import URIRef

from ontoquery.axioms import (
    Axiom,
    ClassAssertion,
    DataPropertyAssertion,
    Declaration,
    EntityKind,
    ObjectPropertyAssertion,
    Scope,
    SubClassOf,
    as_iri,
    as_literal,
)
from ontoquery.context import OntologyContext
from ontoquery.validation.constraint_checker import ConstraintChecker

log = logging.getLogger(__name__)


class IndividualAuthoring:
    def __init__(self, context: OntologyContext):
        if context is None:
            raise ValueError("context must not be None")
        self.context = context
        self.ontology_manager = context.ontology_manager
        self.checker = ConstraintChecker(self.ontology_manager, Scope.IMPORTS_CLOSURE)

    # --- Local writes ---

    def _add_local(self, axiom: Axiom) -> None:
        self.ontology_manager.add(axiom)
        self.context.mark_dirty()

    def _remove_local(self, axiom: Axiom) -> None:
        self.ontology_manager.remove(axiom)
        self.context.mark_dirty()

    def _add_if_absent(self, axiom: Axiom) -> bool:
        if self.ontology_manager.contains(axiom, Scope.IMPORTS_CLOSURE):
            log.debug(f"Axiom already present, skipping: {axiom}")
            return False
        self._add_local(axiom)
        return True

    def _retract(self, axiom: Axiom) -> bool:
        if not self.ontology_manager.contains(axiom, Scope.LOCAL):
            if self.ontology_manager.contains(axiom, Scope.IMPORTS_CLOSURE):
                log.warning(f"Cannot retract {axiom}: it is only asserted in an imported ontology.")
            return False
        self._remove_local(axiom)
        return True

    # --- Creation ---

    def create_individual(self, cls, individual) -> bool:
        """
        Declare a new individual and assert its type.

        :param cls: Class of the new individual. Must already exist.
        :param individual: IRI of the individual.
        :return: False if the individual already exists (nothing is written),
                 True if at least one axiom was written. The revision is bumped
                 once per written axiom, so True means it advanced by one or more.
        :raises MissingEntityError: if the class is not in the signature.
        """
        individual = as_iri(individual)
        if self.ontology_manager.has_individual(individual, Scope.IMPORTS_CLOSURE):
            log.info(f"Individual {individual} already exists. Not creating it again.")
            return False
        cls = self.checker.require_class(cls)

        written = False
        for axiom in (Declaration(individual, EntityKind.INDIVIDUAL), ClassAssertion(cls, individual)):
            written = self._add_if_absent(axiom) or written
        if written:
            log.info(f"Created individual {individual} of type {cls}.")
        return written

    def create_subclass(self, cls, superclass) -> bool:
        """
        Declare cls (if needed) and make it a subclass of an existing class.

        :return: False if the SubClassOf axiom already exists.
        """
        cls = as_iri(cls)
        superclass = self.checker.require_class(superclass, role="superclass")
        axiom = SubClassOf(cls, superclass)
        if self.ontology_manager.contains(axiom, Scope.IMPORTS_CLOSURE):
            return False
        if not self.ontology_manager.has_class(cls, Scope.IMPORTS_CLOSURE):
            self._add_local(Declaration(cls, EntityKind.CLASS))
        self._add_local(axiom)
        log.info(f"Created subclass {cls} of {superclass}.")
        return True

    # --- Assertions ---

    def assert_type(self, individual, cls) -> bool:
        individual = self.checker.require_individual(individual)
        cls = self.checker.require_class(cls)
        return self._add_if_absent(ClassAssertion(cls, individual))

    def assert_object_property(self, subject, prop, obj) -> bool:
        subject = self.checker.require_individual(subject, role="subject individual")
        prop = self.checker.require_object_property(prop)
        obj = self.checker.require_individual(obj, role="object individual")
        return self._add_if_absent(ObjectPropertyAssertion(prop, subject, obj))

    def assert_data_property(self, subject, prop, value) -> bool:
        """
        :param value: An rdflib Literal, or a Python value (str, int, float, bool, date...)
                      which is converted with its default XSD datatype.
        """
        subject = self.checker.require_individual(subject, role="subject individual")
        prop = self.checker.require_data_property(prop)
        return self._add_if_absent(DataPropertyAssertion(prop, subject, as_literal(value)))

    # --- Retractions ---
    # Only local axioms are ever removed; imported ontologies are read-only.

    def retract_type(self, individual, cls) -> bool:
        return self._retract(ClassAssertion(as_iri(cls), as_iri(individual)))

    def retract_object_property(self, subject, prop, obj) -> bool:
        return self._retract(ObjectPropertyAssertion(as_iri(prop), as_iri(subject), as_iri(obj)))

    def retract_data_property(self, subject, prop, value) -> bool:
        return self._retract(DataPropertyAssertion(as_iri(prop), as_iri(subject), as_literal(value)))

    def remove_individuals_of_class(self, cls) -> int:
        """
        Remove every local direct instance of a class together with all local
        axioms mentioning it (declaration, types, property assertions as
        subject or object, and annotations such as rdfs:label), so no triple
        about the individual is left behind in the root graph.

        :return: Number of individuals removed.
        """
        cls = as_iri(cls)
        victims: List[URIRef] = [
            ax.individual
            for ax in self.ontology_manager.class_assertions_for_class(cls, Scope.LOCAL)
            if isinstance(ax.individual, URIRef)
        ]
        for individual in victims:
            for axiom in self.ontology_manager.local_axioms_mentioning(individual):
                self._remove_local(axiom)
        if victims:
            log.info(f"Removed {len(victims)} individual(s) of class {cls}.")
        return len(victims)
