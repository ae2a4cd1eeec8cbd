import enum
from dataclasses import dataclass
from typing import Tuple, Union

from rdflib import Literal, URIRef
from rdflib.namespace import OWL, RDF, RDFS

Triple = Tuple[URIRef, URIRef, Union[URIRef, Literal]]


class Scope(enum.Enum):
    """
    Which graphs a read or containment check looks at.
    LOCAL is the root ontology only, IMPORTS_CLOSURE adds every
    transitively imported ontology.
    """
    LOCAL = "local"
    IMPORTS_CLOSURE = "imports_closure"


class EntityKind(enum.Enum):
    CLASS = "class"
    INDIVIDUAL = "individual"
    OBJECT_PROPERTY = "object_property"
    DATA_PROPERTY = "data_property"
    ANNOTATION_PROPERTY = "annotation_property"


# rdf:type object used when an entity of each kind is declared
DECLARATION_TYPES = {
    EntityKind.CLASS: OWL.Class,
    EntityKind.INDIVIDUAL: OWL.NamedIndividual,
    EntityKind.OBJECT_PROPERTY: OWL.ObjectProperty,
    EntityKind.DATA_PROPERTY: OWL.DatatypeProperty,
    EntityKind.ANNOTATION_PROPERTY: OWL.AnnotationProperty,
}


@dataclass(frozen=True)
class Declaration:
    entity: URIRef
    kind: EntityKind

    def to_triple(self) -> Triple:
        return (self.entity, RDF.type, DECLARATION_TYPES[self.kind])


@dataclass(frozen=True)
class ClassAssertion:
    cls: URIRef
    individual: URIRef

    def to_triple(self) -> Triple:
        return (self.individual, RDF.type, self.cls)


@dataclass(frozen=True)
class ObjectPropertyAssertion:
    prop: URIRef
    subject: URIRef
    obj: URIRef

    def to_triple(self) -> Triple:
        return (self.subject, self.prop, self.obj)


@dataclass(frozen=True)
class DataPropertyAssertion:
    prop: URIRef
    subject: URIRef
    value: Literal

    def to_triple(self) -> Triple:
        return (self.subject, self.prop, self.value)


@dataclass(frozen=True)
class SubClassOf:
    sub: URIRef
    sup: URIRef

    def to_triple(self) -> Triple:
        return (self.sub, RDFS.subClassOf, self.sup)


@dataclass(frozen=True)
class AnnotationAssertion:
    prop: URIRef
    subject: URIRef
    value: Union[URIRef, Literal]

    def to_triple(self) -> Triple:
        return (self.subject, self.prop, self.value)


Axiom = Union[Declaration, ClassAssertion, ObjectPropertyAssertion, DataPropertyAssertion, SubClassOf,
              AnnotationAssertion]


def as_iri(ref) -> URIRef:
    """Accepts a URIRef or a plain string IRI."""
    if isinstance(ref, URIRef):
        return ref
    return URIRef(str(ref))


def as_literal(value) -> Literal:
    """Accepts an rdflib Literal or any Python value rdflib can type."""
    if isinstance(value, Literal):
        return value
    return Literal(value)
