import logging
from collections import deque
from typing import Dict, Iterable, List, Set

import owlrl
from rdflib import Graph, Namespace, URIRef
from rdflib.namespace import OWL, RDF, RDFS

from ontoquery.axioms import Scope, as_iri
from ontoquery.errors import InconsistentOntologyError
from ontoquery.ontology_manager import OntologyManager, is_named_class

log = logging.getLogger(__name__)

# owlrl reports violations as (msg, rdf:type, err:ErrorMessage) / (msg, err:error, "text") triples
ERRNS = Namespace("http://www.daml.org/2002/03/agents/agent-ont#")

SEMANTICS = {
    "owlrl": owlrl.OWLRL_Semantics,
    "rdfs": owlrl.RDFS_Semantics,
    "rdfs_owlrl": owlrl.RDFS_OWLRL_Semantics,
}


class InferenceRunner:
    """
    Entailment engine. Builds inferred views of an ontology by materializing
    its imports closure with OWL-RL (or RDFS) semantics.
    """
    def __init__(self, semantics: str = "owlrl", axiomatic_triples: bool = False):
        """
        :param semantics: One of "owlrl", "rdfs", "rdfs_owlrl".
        :param axiomatic_triples: Whether owlrl should add the axiomatic triples of the semantics.
        """
        if semantics not in SEMANTICS:
            raise ValueError(f"Unknown reasoner semantics '{semantics}'. Expected one of {sorted(SEMANTICS)}")
        self.semantics = semantics
        self.axiomatic_triples = axiomatic_triples

    def create_view(self, ontology_manager: OntologyManager) -> "InferredView":
        """
        Snapshot the imports closure of the ontology into an unmaterialized view.
        Later changes to the ontology are not seen by the view.
        """
        return InferredView(
            ontology_manager.clone_graph(Scope.IMPORTS_CLOSURE),
            individuals=ontology_manager.individuals_in_signature(Scope.IMPORTS_CLOSURE),
            closure_class=SEMANTICS[self.semantics],
            axiomatic_triples=self.axiomatic_triples,
        )


class InferredView:
    """
    A materialized snapshot answering entailment queries.

    The `direct` flag follows the usual reasoner conventions:
    types(ind, direct=True) gives the most specific types only,
    instances(cls, direct=True) only individuals whose most specific types include cls,
    super_classes/sub_classes(cls, direct=True) only the nearest classes in the hierarchy.
    """
    def __init__(self, graph: Graph, individuals: Iterable[URIRef], closure_class, axiomatic_triples: bool = False):
        self.graph = graph
        self._individuals: Set[URIRef] = set(individuals)
        self._closure_class = closure_class
        self._axiomatic_triples = axiomatic_triples
        self._precomputed = False
        self._disposed = False
        self._types: Dict[URIRef, Set[URIRef]] = {}
        self._supers: Dict[URIRef, Set[URIRef]] = {}

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def precompute(self) -> None:
        """
        Expand the graph with inferred triples and index types and the class hierarchy.
        Raises InconsistentOntologyError if the expansion found contradictions.
        """
        self._check_usable()
        if self._precomputed:
            return
        initial_count = len(self.graph)
        owlrl.DeductiveClosure(self._closure_class, axiomatic_triples=self._axiomatic_triples).expand(self.graph)

        errors = self._error_messages()
        if errors:
            log.error(f"Inconsistency detected during reasoning: {errors}")
            raise InconsistentOntologyError(errors)

        self._index_hierarchy()
        self._index_types()
        self._precomputed = True
        log.info(f"InferenceRunner materialized {len(self.graph) - initial_count} new triples.")

    def _error_messages(self) -> List[str]:
        messages = [str(m) for node in self.graph.subjects(RDF.type, ERRNS["ErrorMessage"])
                    for m in self.graph.objects(node, ERRNS["error"])]
        for s in self.graph.subjects(RDF.type, OWL.Nothing):
            messages.append(f"{s} is an instance of owl:Nothing")
        return sorted(set(messages))

    def _index_hierarchy(self) -> None:
        classes: Set[URIRef] = set()
        for sub, sup in self.graph.subject_objects(RDFS.subClassOf):
            classes.add(sub)
            classes.add(sup)
        for t in (OWL.Class, RDFS.Class):
            classes.update(self.graph.subjects(RDF.type, t))
        classes.update(self.graph.objects(None, RDF.type))
        classes = {c for c in classes if is_named_class(c)}

        for cls in classes:
            # reflexive-transitive closure over named superclasses
            reached = {cls}
            queue = deque([cls])
            while queue:
                current = queue.popleft()
                for sup in self.graph.objects(current, RDFS.subClassOf):
                    if is_named_class(sup) and sup not in reached:
                        reached.add(sup)
                        queue.append(sup)
            self._supers[cls] = reached

    def _index_types(self) -> None:
        for ind in self._individuals:
            asserted = {t for t in self.graph.objects(ind, RDF.type) if is_named_class(t)}
            closed: Set[URIRef] = set()
            for t in asserted:
                closed |= self._supers.get(t, {t})
            self._types[ind] = closed

    def _check_usable(self) -> None:
        if self._disposed:
            raise RuntimeError("Inferred view has been disposed")

    def _check_ready(self) -> None:
        self._check_usable()
        if not self._precomputed:
            self.precompute()

    # --- Hierarchy helpers ---

    def _is_strict_sub(self, a: URIRef, b: URIRef) -> bool:
        """a is subsumed by b and they are not equivalent."""
        return a != b and b in self._supers.get(a, ()) and a not in self._supers.get(b, ())

    def _equivalents(self, cls: URIRef) -> Set[URIRef]:
        return {c for c in self._supers.get(cls, {cls}) if cls in self._supers.get(c, ())}

    def _most_specific(self, classes: Set[URIRef]) -> Set[URIRef]:
        result = {c for c in classes if not any(self._is_strict_sub(o, c) for o in classes)}
        if len(result) > 1:
            result.discard(OWL.Thing)
        return result

    def _most_general(self, classes: Set[URIRef]) -> Set[URIRef]:
        return {c for c in classes if not any(self._is_strict_sub(c, o) for o in classes)}

    # --- Entailment queries ---

    def types(self, individual, direct: bool) -> Set[URIRef]:
        self._check_ready()
        inferred = set(self._types.get(as_iri(individual), ()))
        return self._most_specific(inferred) if direct else inferred

    def instances(self, cls, direct: bool) -> Set[URIRef]:
        self._check_ready()
        cls = as_iri(cls)
        return {ind for ind in self._types if cls in self.types(ind, direct)}

    def super_classes(self, cls, direct: bool) -> Set[URIRef]:
        self._check_ready()
        cls = as_iri(cls)
        strict = self._supers.get(cls, set()) - self._equivalents(cls)
        return self._most_specific(strict) if direct else strict

    def sub_classes(self, cls, direct: bool) -> Set[URIRef]:
        self._check_ready()
        cls = as_iri(cls)
        strict = {c for c, sups in self._supers.items() if cls in sups} - self._equivalents(cls)
        strict.discard(OWL.Nothing)
        return self._most_general(strict) if direct else strict

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._types.clear()
        self._supers.clear()
        self.graph = Graph()
        log.debug("Inferred view disposed.")
