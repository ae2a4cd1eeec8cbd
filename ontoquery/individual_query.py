"""
Asserted (non-reasoned) queries over individuals and the class hierarchy.

Reads only: nothing here mutates the ontology or touches the revision.
Every method takes a Scope (LOCAL or IMPORTS_CLOSURE) and returns only
named entities; anonymous class expressions and anonymous individuals are
skipped. Entities missing from the scope give empty results, never errors.
"""

import logging
from collections import deque
from typing import Deque, Dict, Optional, Set

from rdflib import Literal, URIRef
from rdflib.namespace import RDFS

from ontoquery.axioms import EntityKind, Scope, as_iri, as_literal
from ontoquery.context import OntologyContext
from ontoquery.ontology_manager import OntologyManager

log = logging.getLogger(__name__)


class IndividualQuery:
    """
    Asserted semantics: answers come strictly from stored axioms.
    Superclass closures are computed by breadth-first traversal over
    asserted SubClassOf axioms, so they work without any reasoner.
    """
    def __init__(self, context: OntologyContext):
        if context is None:
            raise ValueError("context must not be None")
        self.context = context

    @property
    def ontology_manager(self) -> OntologyManager:
        return self.context.ontology_manager

    # --- Signature ---

    def individuals_in_signature(self, scope: Scope) -> Set[URIRef]:
        return self.ontology_manager.individuals_in_signature(scope)

    def classes_in_signature(self, scope: Scope) -> Set[URIRef]:
        return self.ontology_manager.classes_in_signature(scope)

    def object_properties_in_signature(self, scope: Scope) -> Set[URIRef]:
        return self.ontology_manager.object_properties_in_signature(scope)

    def data_properties_in_signature(self, scope: Scope) -> Set[URIRef]:
        return self.ontology_manager.data_properties_in_signature(scope)

    # --- Types ---

    def direct_types(self, individual, scope: Scope) -> Set[URIRef]:
        """Named classes C with an explicit ClassAssertion(C, individual) in scope."""
        return {
            ax.cls
            for ax in self.ontology_manager.class_assertions_for_individual(individual, scope)
            if isinstance(ax.cls, URIRef)
        }

    def types_with_superclasses(self, individual, scope: Scope) -> Set[URIRef]:
        """
        Direct types plus every named superclass reachable through asserted
        SubClassOf axioms in scope. The result set doubles as the visited set,
        so cyclic hierarchies terminate and each class is expanded once.
        """
        closure = self.direct_types(individual, scope)
        queue: Deque[URIRef] = deque(closure)
        while queue:
            current = queue.popleft()
            self._enqueue_named_superclasses(current, scope, closure, queue)
        return closure

    def _enqueue_named_superclasses(self, cls: URIRef, scope: Scope, closure: Set[URIRef], queue: Deque[URIRef]) -> None:
        for ax in self.ontology_manager.sub_class_axioms_for_subclass(cls, scope):
            # restrictions, intersections and other anonymous superclasses are not followed
            if not isinstance(ax.sup, URIRef):
                continue
            if ax.sup not in closure:
                closure.add(ax.sup)
                queue.append(ax.sup)

    def asserted_types(self, individual, include_superclasses: bool, scope: Scope) -> Set[URIRef]:
        if include_superclasses:
            return self.types_with_superclasses(individual, scope)
        return self.direct_types(individual, scope)

    def is_instance_of_asserted(self, individual, cls, direct_only: bool, scope: Scope) -> bool:
        """
        True iff the individual has an asserted type equal to cls or, unless
        direct_only, an asserted type with cls among its asserted superclasses.
        False (not an error) if either entity is absent from the scope.
        """
        individual, cls = as_iri(individual), as_iri(cls)
        if not self.ontology_manager.has_individual(individual, scope):
            return False
        if not self.ontology_manager.has_class(cls, scope):
            return False
        return cls in self.asserted_types(individual, not direct_only, scope)

    # --- Class hierarchy ---

    def super_classes_asserted(self, cls, direct_only: bool, scope: Scope) -> Set[URIRef]:
        """
        :param direct_only: if True only classes named in SubClassOf(cls, X),
                            otherwise the transitive closure.
        """
        cls = as_iri(cls)
        if direct_only:
            return {ax.sup for ax in self.ontology_manager.sub_class_axioms_for_subclass(cls, scope)
                    if isinstance(ax.sup, URIRef)}

        result: Set[URIRef] = set()
        queue: Deque[URIRef] = deque([cls])
        while queue:
            self._enqueue_named_superclasses(queue.popleft(), scope, result, queue)
        return result

    def sub_classes_asserted(self, cls, direct_only: bool, scope: Scope) -> Set[URIRef]:
        cls = as_iri(cls)
        if direct_only:
            return {ax.sub for ax in self.ontology_manager.sub_class_axioms_for_superclass(cls, scope)
                    if isinstance(ax.sub, URIRef)}

        result: Set[URIRef] = set()
        queue: Deque[URIRef] = deque([cls])
        while queue:
            current = queue.popleft()
            for ax in self.ontology_manager.sub_class_axioms_for_superclass(current, scope):
                if isinstance(ax.sub, URIRef) and ax.sub not in result:
                    result.add(ax.sub)
                    queue.append(ax.sub)
        return result

    # --- Instances ---

    def instances_of_class(self, cls, scope: Scope, direct_only: bool) -> Set[URIRef]:
        """
        Named individuals with an explicit ClassAssertion(cls, x) in scope and,
        unless direct_only, every individual in scope whose asserted superclass
        closure contains cls. The latter scans all individuals in the scope.
        """
        cls = as_iri(cls)
        if not self.ontology_manager.has_class(cls, scope):
            return set()

        direct = {
            ax.individual
            for ax in self.ontology_manager.class_assertions_for_class(cls, scope)
            if isinstance(ax.individual, URIRef)
        }
        if direct_only:
            return direct

        result = set(direct)
        individuals = self.individuals_in_signature(scope)
        log.debug(f"Scanning {len(individuals)} individuals ({scope.value}) for instances of {cls}.")
        for individual in individuals:
            if individual not in result and cls in self.types_with_superclasses(individual, scope):
                result.add(individual)
        return result

    # --- Property values ---

    def object_property_values(self, subject, prop, scope: Scope) -> Set[URIRef]:
        subject, prop = as_iri(subject), as_iri(prop)
        om = self.ontology_manager
        if not om.has_individual(subject, scope) or not om.has_object_property(prop, scope):
            return set()
        return {
            ax.obj
            for ax in om.object_property_assertions_for(subject, scope)
            if ax.prop == prop and isinstance(ax.obj, URIRef)
        }

    def has_object_property_value(self, subject, prop, obj, scope: Scope) -> bool:
        return as_iri(obj) in self.object_property_values(subject, prop, scope)

    def data_property_values(self, subject, prop, scope: Scope) -> Set[Literal]:
        subject, prop = as_iri(subject), as_iri(prop)
        om = self.ontology_manager
        if not om.has_individual(subject, scope) or not om.has_data_property(prop, scope):
            return set()
        return {ax.value for ax in om.data_property_assertions_for(subject, scope) if ax.prop == prop}

    def has_data_property_value(self, subject, prop, value, scope: Scope) -> bool:
        return as_literal(value) in self.data_property_values(subject, prop, scope)

    def all_object_property_values(self, subject, scope: Scope) -> Dict[URIRef, Set[URIRef]]:
        """Asserted object property values of the subject, grouped by property."""
        om = self.ontology_manager
        result: Dict[URIRef, Set[URIRef]] = {}
        if not om.has_individual(subject, scope):
            return result
        for ax in om.object_property_assertions_for(subject, scope):
            if isinstance(ax.obj, URIRef):
                result.setdefault(ax.prop, set()).add(ax.obj)
        return result

    def all_data_property_values(self, subject, scope: Scope) -> Dict[URIRef, Set[Literal]]:
        om = self.ontology_manager
        result: Dict[URIRef, Set[Literal]] = {}
        if not om.has_individual(subject, scope):
            return result
        for ax in om.data_property_assertions_for(subject, scope):
            result.setdefault(ax.prop, set()).add(ax.value)
        return result

    def all_annotation_values(self, subject, scope: Scope) -> Dict[URIRef, Set]:
        om = self.ontology_manager
        if not om.has_individual(subject, scope):
            return {}
        return {p: set(values) for p, values in om.annotation_values_for(subject, scope).items()}

    # --- Labels ---

    def label_for(self, iri, lang: str) -> Optional[str]:
        """rdfs:label of an entity in the given language, searched over the imports closure."""
        return self._annotation_literal(iri, RDFS.label, lang)

    def comment_for(self, iri, lang: str) -> Optional[str]:
        return self._annotation_literal(iri, RDFS.comment, lang)

    def _annotation_literal(self, iri, prop: URIRef, lang: str) -> Optional[str]:
        iri = as_iri(iri)
        om = self.ontology_manager
        scope = Scope.IMPORTS_CLOSURE
        if not any(om.has_entity(iri, kind, scope) for kind in EntityKind):
            return None
        for g in om.graphs(scope):
            for value in g.objects(iri, prop):
                if isinstance(value, Literal) and value.language == lang:
                    return str(value)
        return None
