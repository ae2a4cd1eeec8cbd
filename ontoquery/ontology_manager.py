import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

from rdflib import BNode, Graph, Literal, Namespace, URIRef
from rdflib.namespace import OWL, RDF, RDFS, XSD

from ontoquery.axioms import (
    AnnotationAssertion,
    Axiom,
    ClassAssertion,
    DataPropertyAssertion,
    Declaration,
    EntityKind,
    ObjectPropertyAssertion,
    Scope,
    SubClassOf,
    as_iri,
)

log = logging.getLogger(__name__)

BUILTIN_NAMESPACES = tuple(str(ns) for ns in (RDF, RDFS, OWL, XSD))

# owl:Thing and owl:Nothing are the only built-in IRIs that behave like user classes
BUILTIN_CLASSES = frozenset([OWL.Thing, OWL.Nothing])

CLASS_DECLARATION_TYPES = (OWL.Class, RDFS.Class)

OBJECT_PROPERTY_TYPES = (
    OWL.ObjectProperty,
    OWL.TransitiveProperty,
    OWL.SymmetricProperty,
    OWL.AsymmetricProperty,
    OWL.ReflexiveProperty,
    OWL.IrreflexiveProperty,
    OWL.InverseFunctionalProperty,
)

BUILTIN_ANNOTATION_PROPERTIES = frozenset([RDFS.label, RDFS.comment])


def is_builtin(node) -> bool:
    """True for IRIs of the RDF, RDFS, OWL and XSD vocabularies."""
    return isinstance(node, URIRef) and str(node).startswith(BUILTIN_NAMESPACES)


def is_named_class(node) -> bool:
    return isinstance(node, URIRef) and (not is_builtin(node) or node in BUILTIN_CLASSES)


class OntologyManager:
    """
    In-memory axiom store backed by an RDFLib graph.

    Holds the root ("local") ontology graph plus references to the
    ontologies it imports. Every read takes a Scope: LOCAL looks at this
    manager's graph only, IMPORTS_CLOSURE also looks at every transitively
    imported manager. Writes always go to the local graph.

    The manager does not track revisions; callers that mutate it are
    expected to go through an OntologyContext so that cached inferences
    are invalidated.
    """
    def __init__(self, ontology_path: str = None, fmt: str = "turtle",
                 base_namespace: str = "http://example.org/ontology#"):
        """
        Initialize and, if a path is given, load the ontology graph.

        :param ontology_path: Path to the ontology document (.ttl, .owl, .rdf).
        :param fmt: RDFLib parser format of the document.
        :param base_namespace: Namespace bound to the empty prefix.
        """
        self.ontology_path = ontology_path
        self.format = fmt
        self.graph = Graph()
        self.base_ns = Namespace(base_namespace)
        self.graph.bind("", self.base_ns)
        self.graph.bind("rdf", RDF)
        self.graph.bind("rdfs", RDFS)
        self.graph.bind("owl", OWL)
        self.graph.bind("xsd", XSD)
        self.imports: List["OntologyManager"] = []

        if ontology_path:
            self.load_graph()

    @classmethod
    def from_graph(cls, graph: Graph, base_namespace: str = "http://example.org/ontology#") -> "OntologyManager":
        """Wrap an already populated graph (its triples are copied)."""
        manager = cls(base_namespace=base_namespace)
        manager.graph += graph
        return manager

    # --- Document I/O (delegated to RDFLib) ---

    def load_graph(self, path: str = None, fmt: str = None) -> None:
        """
        Parse an ontology document into the local graph.

        :param path: Document to parse. Defaults to the manager's ontology_path.
        :param fmt: RDFLib format. Defaults to the manager's format.
        """
        path = path or self.ontology_path
        fmt = fmt or self.format
        try:
            self.graph.parse(path, format=fmt)
        except FileNotFoundError as e:
            log.error(f"Error loading file: {e}. Please check paths.")
            raise
        except Exception as e:
            log.error(f"Error parsing graph from {path}: {e}")
            raise
        log.info(f"Successfully loaded ontology from {path}")
        log.info(f"Graph contains {len(self.graph)} triples.")

    def save_graph(self, output_path: str = None, fmt: str = None) -> None:
        """
        Persist the local ontology graph to a file.

        :param output_path: File path to save to. If None, overwrites original.
        """
        if output_path is None:
            output_path = self.ontology_path
        if output_path is None:
            raise ValueError("No output path given and the ontology was not loaded from a file")
        self.graph.serialize(destination=output_path, format=fmt or self.format)
        log.info(f"Graph successfully saved to {output_path}")

    @property
    def ontology_iri(self) -> Optional[URIRef]:
        for s in self.graph.subjects(RDF.type, OWL.Ontology):
            if isinstance(s, URIRef):
                return s
        return None

    # --- Imports ---

    def add_import(self, other: "OntologyManager") -> bool:
        """
        Make another ontology part of this ontology's imports closure.
        Records an owl:imports triple when both ontologies have an IRI.

        :return: False if the ontology was already in the imports closure.
        """
        if any(m is other for m in self.imports_closure()):
            return False
        self.imports.append(other)
        root_iri, other_iri = self.ontology_iri, other.ontology_iri
        if root_iri is not None and other_iri is not None:
            self.graph.add((root_iri, OWL.imports, other_iri))
        log.info(f"Added import {other_iri or other.ontology_path or '<anonymous>'} to imports closure.")
        return True

    def imports_closure(self) -> List["OntologyManager"]:
        """This manager followed by every transitively imported manager, each once."""
        closure: List[OntologyManager] = []
        seen: Set[int] = set()
        stack = [self]
        while stack:
            current = stack.pop(0)
            if id(current) in seen:
                continue
            seen.add(id(current))
            closure.append(current)
            stack.extend(current.imports)
        return closure

    def graphs(self, scope: Scope) -> List[Graph]:
        if scope is Scope.LOCAL:
            return [self.graph]
        return [m.graph for m in self.imports_closure()]

    def clone_graph(self, scope: Scope = Scope.IMPORTS_CLOSURE) -> Graph:
        """Return a fresh graph holding every triple visible in the scope."""
        merged = Graph()
        for prefix, ns in self.graph.namespaces():
            merged.bind(prefix, ns)
        for g in self.graphs(scope):
            merged += g
        return merged

    def _objects(self, subject, predicate, scope: Scope) -> Iterator:
        for g in self.graphs(scope):
            yield from g.objects(subject, predicate)

    def _subjects(self, predicate, obj, scope: Scope) -> Iterator:
        for g in self.graphs(scope):
            yield from g.subjects(predicate, obj)

    def _has_triple(self, triple, scope: Scope) -> bool:
        return any(triple in g for g in self.graphs(scope))

    # --- Signature ---

    def has_entity(self, iri, kind: EntityKind, scope: Scope) -> bool:
        checks = {
            EntityKind.CLASS: self.has_class,
            EntityKind.INDIVIDUAL: self.has_individual,
            EntityKind.OBJECT_PROPERTY: self.has_object_property,
            EntityKind.DATA_PROPERTY: self.has_data_property,
            EntityKind.ANNOTATION_PROPERTY: self.has_annotation_property,
        }
        return checks[kind](iri, scope)

    def has_class(self, iri, scope: Scope) -> bool:
        iri = as_iri(iri)
        if not is_named_class(iri):
            return False
        for g in self.graphs(scope):
            if any((iri, RDF.type, t) in g for t in CLASS_DECLARATION_TYPES):
                return True
            if (iri, RDFS.subClassOf, None) in g or (None, RDFS.subClassOf, iri) in g:
                return True
            if (None, RDF.type, iri) in g:
                return True
        return False

    def has_object_property(self, iri, scope: Scope) -> bool:
        iri = as_iri(iri)
        return any(self._has_triple((iri, RDF.type, t), scope) for t in OBJECT_PROPERTY_TYPES)

    def has_data_property(self, iri, scope: Scope) -> bool:
        return self._has_triple((as_iri(iri), RDF.type, OWL.DatatypeProperty), scope)

    def has_annotation_property(self, iri, scope: Scope) -> bool:
        iri = as_iri(iri)
        if iri in BUILTIN_ANNOTATION_PROPERTIES:
            return True
        return self._has_triple((iri, RDF.type, OWL.AnnotationProperty), scope)

    def has_individual(self, iri, scope: Scope) -> bool:
        iri = as_iri(iri)
        if is_builtin(iri):
            return False
        if self._has_triple((iri, RDF.type, OWL.NamedIndividual), scope):
            return True
        if any(is_named_class(t) for t in self._objects(iri, RDF.type, scope)):
            return True
        object_props, data_props = self._property_kinds()
        for g in self.graphs(scope):
            for p in g.predicates(iri, None):
                if p in object_props or p in data_props:
                    return True
            for p in g.predicates(None, iri):
                if p in object_props:
                    return True
        return False

    def classes_in_signature(self, scope: Scope) -> Set[URIRef]:
        result: Set[URIRef] = set()
        for g in self.graphs(scope):
            for t in CLASS_DECLARATION_TYPES:
                result.update(g.subjects(RDF.type, t))
            for sub, sup in g.subject_objects(RDFS.subClassOf):
                result.add(sub)
                result.add(sup)
            result.update(g.objects(None, RDF.type))
        return {c for c in result if is_named_class(c)}

    def object_properties_in_signature(self, scope: Scope) -> Set[URIRef]:
        result: Set[URIRef] = set()
        for g in self.graphs(scope):
            for t in OBJECT_PROPERTY_TYPES:
                result.update(p for p in g.subjects(RDF.type, t) if isinstance(p, URIRef))
        return result

    def data_properties_in_signature(self, scope: Scope) -> Set[URIRef]:
        return {p for p in self._subjects(RDF.type, OWL.DatatypeProperty, scope) if isinstance(p, URIRef)}

    def individuals_in_signature(self, scope: Scope) -> Set[URIRef]:
        object_props, data_props = self._property_kinds()
        result: Set[URIRef] = set()
        for g in self.graphs(scope):
            result.update(g.subjects(RDF.type, OWL.NamedIndividual))
            for s, t in g.subject_objects(RDF.type):
                if is_named_class(t):
                    result.add(s)
            for p in object_props:
                for s, o in g.subject_objects(p):
                    result.add(s)
                    result.add(o)
            for p in data_props:
                result.update(g.subjects(p, None))
        return {i for i in result if isinstance(i, URIRef) and not is_builtin(i)}

    def _property_kinds(self):
        # Whether a predicate is an object or data property is decided over the
        # whole imports closure, even when assertions are read from LOCAL only.
        return (self.object_properties_in_signature(Scope.IMPORTS_CLOSURE),
                self.data_properties_in_signature(Scope.IMPORTS_CLOSURE))

    # --- Axioms ---

    def contains(self, axiom: Axiom, scope: Scope) -> bool:
        return self._has_triple(axiom.to_triple(), scope)

    def add(self, axiom: Axiom) -> None:
        """Add an axiom to the local graph."""
        self.graph.add(axiom.to_triple())
        log.debug(f"Added axiom: {axiom}")

    def remove(self, axiom: Axiom) -> None:
        """Remove an axiom from the local graph. Imported graphs are never touched."""
        self.graph.remove(axiom.to_triple())
        log.debug(f"Removed axiom: {axiom}")

    # --- Structural enumeration ---
    # Anonymous (blank node) expressions are returned as-is; callers decide whether to skip them.

    def sub_class_axioms_for_subclass(self, cls, scope: Scope) -> List[SubClassOf]:
        cls = as_iri(cls)
        return _unique(SubClassOf(cls, sup) for sup in self._objects(cls, RDFS.subClassOf, scope))

    def sub_class_axioms_for_superclass(self, cls, scope: Scope) -> List[SubClassOf]:
        cls = as_iri(cls)
        return _unique(SubClassOf(sub, cls) for sub in self._subjects(RDFS.subClassOf, cls, scope))

    def class_assertions_for_individual(self, individual, scope: Scope) -> List[ClassAssertion]:
        individual = as_iri(individual)
        return _unique(
            ClassAssertion(t, individual)
            for t in self._objects(individual, RDF.type, scope)
            if isinstance(t, BNode) or is_named_class(t)
        )

    def class_assertions_for_class(self, cls, scope: Scope) -> List[ClassAssertion]:
        cls = as_iri(cls)
        return _unique(ClassAssertion(cls, s) for s in self._subjects(RDF.type, cls, scope))

    def object_property_assertions_for(self, subject, scope: Scope) -> List[ObjectPropertyAssertion]:
        subject = as_iri(subject)
        object_props, _ = self._property_kinds()
        return _unique(
            ObjectPropertyAssertion(p, subject, o)
            for g in self.graphs(scope)
            for p, o in g.predicate_objects(subject)
            if p in object_props
        )

    def data_property_assertions_for(self, subject, scope: Scope) -> List[DataPropertyAssertion]:
        subject = as_iri(subject)
        _, data_props = self._property_kinds()
        return _unique(
            DataPropertyAssertion(p, subject, o)
            for g in self.graphs(scope)
            for p, o in g.predicate_objects(subject)
            if p in data_props and isinstance(o, Literal)
        )

    def annotation_values_for(self, subject, scope: Scope) -> Dict[URIRef, List]:
        """Annotation property -> values, for annotation properties in the scope's signature."""
        subject = as_iri(subject)
        result: Dict[URIRef, List] = {}
        for g in self.graphs(scope):
            for p, o in g.predicate_objects(subject):
                if self.has_annotation_property(p, scope):
                    values = result.setdefault(p, [])
                    if o not in values:
                        values.append(o)
        return result

    def local_axioms_mentioning(self, individual) -> List[Axiom]:
        """
        Every local axiom in which the individual is the subject or object of an
        assertion, annotation assertions included.
        """
        individual = as_iri(individual)
        axioms: List[Axiom] = []
        if (individual, RDF.type, OWL.NamedIndividual) in self.graph:
            axioms.append(Declaration(individual, EntityKind.INDIVIDUAL))
        axioms.extend(self.class_assertions_for_individual(individual, Scope.LOCAL))
        axioms.extend(self.object_property_assertions_for(individual, Scope.LOCAL))
        axioms.extend(self.data_property_assertions_for(individual, Scope.LOCAL))
        # annotation properties may be declared in an imported ontology
        for p, o in self.graph.predicate_objects(individual):
            if self.has_annotation_property(p, Scope.IMPORTS_CLOSURE):
                axioms.append(AnnotationAssertion(p, individual, o))
        object_props, _ = self._property_kinds()
        for s, p in self.graph.subject_predicates(individual):
            if p in object_props:
                axioms.append(ObjectPropertyAssertion(p, s, individual))
        return _unique(axioms)

    def __len__(self) -> int:
        return len(self.graph)


def _unique(items: Iterable) -> list:
    return list(dict.fromkeys(items))
