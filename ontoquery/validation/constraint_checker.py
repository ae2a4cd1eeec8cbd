import logging

from ontoquery.axioms import EntityKind, Scope, as_iri
from ontoquery.errors import MissingEntityError
from ontoquery.ontology_manager import OntologyManager

log = logging.getLogger(__name__)


class ConstraintChecker:
    """
    Enforces signature preconditions on authoring calls: every entity an
    axiom refers to must already exist in the required scope.
    """
    def __init__(self, ontology_manager: OntologyManager, scope: Scope = Scope.IMPORTS_CLOSURE):
        self.ontology_manager = ontology_manager
        self.scope = scope

    def require(self, iri, kind: EntityKind, role: str = None):
        """
        Return the IRI if the entity is in the signature, otherwise raise.

        :param role: How the entity is referred to in the error (e.g. "subject individual").
        :raises MissingEntityError:
        """
        iri = as_iri(iri)
        if not self.ontology_manager.has_entity(iri, kind, self.scope):
            log.error(f"Constraint Violation: {role or kind.value} {iri} not in signature ({self.scope.value}).")
            raise MissingEntityError(iri, kind, self.scope, role)
        return iri

    def require_class(self, iri, role: str = "class"):
        return self.require(iri, EntityKind.CLASS, role)

    def require_individual(self, iri, role: str = "individual"):
        return self.require(iri, EntityKind.INDIVIDUAL, role)

    def require_object_property(self, iri, role: str = "object property"):
        return self.require(iri, EntityKind.OBJECT_PROPERTY, role)

    def require_data_property(self, iri, role: str = "data property"):
        return self.require(iri, EntityKind.DATA_PROPERTY, role)
