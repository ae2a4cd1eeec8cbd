from unittest.mock import MagicMock

import pytest
from rdflib import Graph, Namespace

from ontoquery.authoring import IndividualAuthoring
from ontoquery.axioms import Scope
from ontoquery.context import OntologyContext
from ontoquery.errors import NoReasonerConfiguredError
from ontoquery.inference_runner import InferenceRunner
from ontoquery.ontology_manager import OntologyManager
from ontoquery.query_dispatcher import QueryDispatcher, QueryMode

EX = Namespace("http://example.org/test#")
LOCAL, CLOSURE = Scope.LOCAL, Scope.IMPORTS_CLOSURE
ASSERTED, DIRECT, ALL = QueryMode.ASSERTED, QueryMode.INFERRED_DIRECT, QueryMode.INFERRED_ALL

# --- Test Data ---

SCHEMA_TTL = """
@prefix : <http://example.org/test#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .

:ModelElement a owl:Class .
:Disease a owl:Class ; rdfs:subClassOf :ModelElement .
:GeneticDisease a owl:Class ; rdfs:subClassOf :Disease .
:SimulationModel a owl:Class ; rdfs:subClassOf :ModelElement .
:includedByModel a owl:ObjectProperty ; rdfs:domain :ModelElement .
:BiotinidaseDeficiency_General a owl:NamedIndividual , :GeneticDisease .
"""

DATA_TTL = """
@prefix : <http://example.org/test#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .

:T1DM a owl:NamedIndividual , :Disease .
:T1DM_Model a owl:NamedIndividual , :SimulationModel .
:Orphan a owl:NamedIndividual ;
    :includedByModel :T1DM_Model .
"""

# --- Fixtures ---


def manager_from(ttl: str) -> OntologyManager:
    return OntologyManager.from_graph(Graph().parse(data=ttl, format="turtle"),
                                      base_namespace=str(EX))


@pytest.fixture
def context():
    ctx = OntologyContext(manager_from(DATA_TTL), InferenceRunner())
    ctx.import_into_root(manager_from(SCHEMA_TTL))
    yield ctx
    ctx.dispose()


@pytest.fixture
def dispatcher(context):
    return QueryDispatcher(context)

# --- Routing ---


def test_unknown_mode_rejected(dispatcher):
    with pytest.raises(ValueError):
        dispatcher.is_instance_of(EX.T1DM, EX.Disease, CLOSURE, "asserted")


def test_inferred_modes_need_a_reasoner():
    dispatcher = QueryDispatcher(OntologyContext(manager_from(SCHEMA_TTL)))
    # asserted mode works without one
    assert dispatcher.is_instance_of(EX.BiotinidaseDeficiency_General, EX.GeneticDisease, LOCAL, ASSERTED)
    with pytest.raises(NoReasonerConfiguredError):
        dispatcher.is_instance_of(EX.BiotinidaseDeficiency_General, EX.Disease, LOCAL, ALL)
    with pytest.raises(NoReasonerConfiguredError):
        dispatcher.instances_of_class(EX.Disease, LOCAL, DIRECT)


def test_asserted_mode_never_builds_a_view():
    engine = MagicMock()
    context = OntologyContext(manager_from(SCHEMA_TTL), engine)
    dispatcher = QueryDispatcher(context)
    dispatcher.is_instance_of(EX.BiotinidaseDeficiency_General, EX.Disease, CLOSURE, ASSERTED)
    dispatcher.instances_of_class(EX.Disease, CLOSURE, ASSERTED)
    dispatcher.types(EX.BiotinidaseDeficiency_General, CLOSURE, ASSERTED)
    engine.create_view.assert_not_called()


def test_inferred_mode_passes_direct_flag():
    view = MagicMock()
    view.types.return_value = {EX.Disease}
    engine = MagicMock()
    engine.create_view.return_value = view
    dispatcher = QueryDispatcher(OntologyContext(manager_from(SCHEMA_TTL), engine))

    ind = EX.BiotinidaseDeficiency_General
    assert dispatcher.is_instance_of(ind, EX.Disease, LOCAL, DIRECT)
    view.types.assert_called_with(ind, True)
    assert dispatcher.is_instance_of(ind, EX.Disease, LOCAL, ALL)
    view.types.assert_called_with(ind, False)
    engine.create_view.assert_called_once()

# --- Semantics ---


def test_asserted_mode_uses_stated_types_only(dispatcher):
    assert dispatcher.is_instance_of(EX.T1DM, EX.Disease, CLOSURE, ASSERTED)
    assert not dispatcher.is_instance_of(EX.T1DM, EX.ModelElement, CLOSURE, ASSERTED)
    assert dispatcher.is_instance_of(EX.T1DM, EX.ModelElement, CLOSURE, ALL)
    assert dispatcher.asserted_types(EX.T1DM, True, CLOSURE) == {EX.Disease, EX.ModelElement}


def test_instances_of_class_by_mode(dispatcher):
    assert dispatcher.instances_of_class(EX.Disease, CLOSURE, ASSERTED) == {EX.T1DM}
    assert dispatcher.instances_of_class(EX.Disease, CLOSURE, DIRECT) == {EX.T1DM}
    assert dispatcher.instances_of_class(EX.Disease, CLOSURE, ALL) == {
        EX.T1DM, EX.BiotinidaseDeficiency_General
    }
    # Orphan is a ModelElement only through the property domain
    assert dispatcher.instances_of_class(EX.ModelElement, CLOSURE, DIRECT) == {EX.Orphan}


def test_local_scope_filters_inferred_answers(dispatcher):
    assert EX.BiotinidaseDeficiency_General not in dispatcher.instances_of_class(EX.Disease, LOCAL, ALL)
    assert dispatcher.types(EX.BiotinidaseDeficiency_General, LOCAL, ALL) == set()
    # ModelElement is only mentioned by the imported schema
    assert not dispatcher.is_instance_of(EX.T1DM, EX.ModelElement, LOCAL, ALL)
    assert dispatcher.types(EX.T1DM, LOCAL, DIRECT) == {EX.Disease}


def test_hierarchy_by_mode(dispatcher):
    assert dispatcher.super_classes(EX.GeneticDisease, CLOSURE, ASSERTED) == {EX.Disease}
    assert dispatcher.super_classes(EX.GeneticDisease, CLOSURE, DIRECT) == {EX.Disease}
    assert {EX.Disease, EX.ModelElement} <= dispatcher.super_classes(EX.GeneticDisease, CLOSURE, ALL)
    assert dispatcher.sub_classes(EX.ModelElement, CLOSURE, ASSERTED) == {EX.Disease, EX.SimulationModel}
    assert EX.GeneticDisease in dispatcher.sub_classes(EX.ModelElement, CLOSURE, ALL)
    assert dispatcher.super_classes(EX.Missing, CLOSURE, ALL) == set()


def test_mode_ordering(context, dispatcher):
    om = context.ontology_manager
    for scope in (LOCAL, CLOSURE):
        for individual in om.individuals_in_signature(CLOSURE):
            for cls in om.classes_in_signature(CLOSURE):
                if dispatcher.is_instance_of(individual, cls, scope, ASSERTED):
                    assert dispatcher.is_instance_of(individual, cls, scope, ALL), (individual, cls, scope)

# --- Cache coherence through authoring ---


def test_mutation_invalidates_inferred_view(context, dispatcher):
    authoring = IndividualAuthoring(context)
    assert not dispatcher.is_instance_of(EX.T1DM, EX.GeneticDisease, CLOSURE, ALL)
    builds = context.reasoner_provider.build_count

    assert authoring.assert_type(EX.T1DM, EX.GeneticDisease)
    assert dispatcher.is_instance_of(EX.T1DM, EX.GeneticDisease, CLOSURE, ALL)
    assert dispatcher.types(EX.T1DM, CLOSURE, DIRECT) == {EX.GeneticDisease}
    assert context.reasoner_provider.build_count == builds + 1
    assert context.reasoner_provider.revision == context.revision.current()

    # a no-op assertion leaves the view in place
    assert authoring.assert_type(EX.T1DM, EX.GeneticDisease) is False
    dispatcher.types(EX.T1DM, CLOSURE, ALL)
    assert context.reasoner_provider.build_count == builds + 1


def test_import_invalidates_inferred_view(context, dispatcher):
    dispatcher.instances_of_class(EX.ModelElement, CLOSURE, ALL)
    extra = manager_from("""
        @prefix : <http://example.org/test#> .
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        :ModelElement rdfs:subClassOf :Artifact .
    """)
    assert context.import_into_root(extra)
    assert EX.T1DM in dispatcher.instances_of_class(EX.Artifact, CLOSURE, ALL)

# --- End-to-end scenario ---


def test_disease_model_element_scenario():
    root = manager_from("""
        @prefix : <http://example.org/test#> .
        @prefix owl: <http://www.w3.org/2002/07/owl#> .
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        :ModelElement a owl:Class .
        :Disease a owl:Class ; rdfs:subClassOf :ModelElement .
    """)
    context = OntologyContext(root, InferenceRunner())
    dispatcher = QueryDispatcher(context)
    assert IndividualAuthoring(context).create_individual(EX.Disease, EX.T1DM)

    assert dispatcher.asserted_types(EX.T1DM, True, LOCAL) == {EX.Disease, EX.ModelElement}
    assert dispatcher.asserted_types(EX.T1DM, False, LOCAL) == {EX.Disease}
    assert dispatcher.is_instance_of(EX.T1DM, EX.ModelElement, LOCAL, ASSERTED) is False
    assert dispatcher.is_instance_of(EX.T1DM, EX.ModelElement, LOCAL, ALL) is True
    context.dispose()
