from typing import List, Optional

from ontoquery.axioms import EntityKind, Scope


class OntologyError(Exception):
    """Base class for errors raised by the ontology layer."""


class MissingEntityError(OntologyError, ValueError):
    """
    A mutating call referenced an entity that is not in the signature
    of the required scope. This is a caller bug, never an idempotent no-op.
    """
    def __init__(self, iri, kind: EntityKind, scope: Scope, role: Optional[str] = None):
        self.iri = iri
        self.kind = kind
        self.scope = scope
        self.role = role
        what = role or kind.value.replace("_", " ")
        super().__init__(f"{what.capitalize()} not in signature ({scope.value}): {iri}")


class NoReasonerConfiguredError(OntologyError, RuntimeError):
    def __init__(self, message: str = "No reasoner configured"):
        super().__init__(message)


class InconsistentOntologyError(OntologyError):
    """Raised while materializing an inferred view over an inconsistent knowledge base."""
    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        detail = "; ".join(self.messages[:3])
        if len(self.messages) > 3:
            detail += f" (+{len(self.messages) - 3} more)"
        super().__init__(f"Inconsistent ontology: {detail}")
