import logging
import shlex
from typing import Any, Callable, Dict, List

from rdflib import URIRef

from ontoquery.authoring import IndividualAuthoring
from ontoquery.axioms import Scope
from ontoquery.context import OntologyContext
from ontoquery.errors import OntologyError
from ontoquery.individual_query import IndividualQuery
from ontoquery.inference_runner import InferenceRunner
from ontoquery.ontology_manager import OntologyManager
from ontoquery.query_dispatcher import QueryDispatcher, QueryMode
from ontoquery.utils import expand_name, load_config, setup_logging, sorted_iris

log = logging.getLogger(__name__)

MODE_ALIASES = {
    "asserted": QueryMode.ASSERTED,
    "direct": QueryMode.INFERRED_DIRECT,
    "inferred_direct": QueryMode.INFERRED_DIRECT,
    "all": QueryMode.INFERRED_ALL,
    "inferred": QueryMode.INFERRED_ALL,
    "inferred_all": QueryMode.INFERRED_ALL,
}

SCOPE_ALIASES = {
    "local": Scope.LOCAL,
    "imports": Scope.IMPORTS_CLOSURE,
    "imports_closure": Scope.IMPORTS_CLOSURE,
    "all": Scope.IMPORTS_CLOSURE,
}


def parse_mode(token: str) -> QueryMode:
    try:
        return MODE_ALIASES[token.lower().replace("-", "_")]
    except KeyError:
        raise ValueError(f"Unknown query mode '{token}'. Expected one of {sorted(MODE_ALIASES)}")


def parse_scope(token: str) -> Scope:
    try:
        return SCOPE_ALIASES[token.lower().replace("-", "_")]
    except KeyError:
        raise ValueError(f"Unknown scope '{token}'. Expected one of {sorted(SCOPE_ALIASES)}")


class Controller:
    """
    Central orchestrator: loads the knowledge base described by the
    configuration and wires the context, the asserted query engine, the
    authoring operations and the query dispatcher around it.
    """
    def __init__(self, config_path: str = "config/settings.yaml"):
        """
        Initialize all subsystems.
        """
        self.config = load_config(config_path)
        setup_logging(self.config['logging']['level'])

        ontology_cfg = self.config['ontology']
        reasoner_cfg = self.config.get('reasoner') or {}
        fmt = ontology_cfg.get('format', 'turtle')
        self.base_namespace = ontology_cfg.get('base_namespace', "http://example.org/ontology#")

        log.info("Initializing Controller and subsystems...")

        # The instance document is the root ontology; the schema is imported into it.
        self.ontology_manager = OntologyManager(
            ontology_path=ontology_cfg['instances_path'],
            fmt=fmt,
            base_namespace=self.base_namespace
        )

        engine = None
        if reasoner_cfg.get('enabled', False):
            engine = InferenceRunner(
                semantics=reasoner_cfg.get('semantics', 'owlrl'),
                axiomatic_triples=reasoner_cfg.get('axiomatic_triples', False)
            )
        else:
            log.warning("Reasoner disabled: only asserted queries are available.")

        self.context = OntologyContext(self.ontology_manager, engine)
        if ontology_cfg.get('base_path'):
            self.context.load_import(ontology_cfg['base_path'], fmt)

        self.query = IndividualQuery(self.context)
        self.authoring = IndividualAuthoring(self.context)
        self.dispatcher = QueryDispatcher(self.context, self.query)

        self._commands: Dict[str, Callable[[List[str]], Any]] = {
            "types": self._cmd_types,
            "is": self._cmd_is,
            "instances": self._cmd_instances,
            "supers": self._cmd_supers,
            "subs": self._cmd_subs,
            "create": self._cmd_create,
            "assert-type": self._cmd_assert_type,
            "retract-type": self._cmd_retract_type,
            "revision": self._cmd_revision,
            "save": self._cmd_save,
        }

        log.info("Controller initialized successfully.")

    def iri(self, name: str) -> URIRef:
        return expand_name(name, self.base_namespace)

    # --- Command handling ---

    def handle_command(self, line: str) -> Dict[str, Any]:
        """
        Execute one textual command and return a JSON-serializable result.
        Precondition violations, bad arguments, reasoner failures and any
        other exception (e.g. an I/O error on save) are reported as
        {"status": "error", ...} instead of being raised.
        """
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            return {"status": "error", "message": f"Could not parse command: {e}"}
        if not tokens:
            return {"status": "error", "message": "Empty command"}

        name, args = tokens[0].lower(), tokens[1:]
        handler = self._commands.get(name)
        if handler is None:
            return {"status": "error", "message": f"Unknown command '{name}'. Available: {', '.join(self._commands)}"}

        log.info(f"Handling command: '{line.strip()}'")
        try:
            result = handler(args)
        except OntologyError as e:
            log.error(f"Command '{name}' failed: {e}", exc_info=True)
            return {"status": "error", "command": name, "message": str(e)}
        except ValueError as e:
            log.warning(f"Command '{name}' rejected: {e}")
            return {"status": "error", "command": name, "message": str(e)}
        except Exception as e:
            log.critical(f"Unhandled exception in command '{name}': {e}", exc_info=True)
            return {"status": "error", "command": name, "message": str(e)}
        return {"status": "success", "command": name, "result": result, "revision": self.context.revision.current()}

    @staticmethod
    def _arity(args: List[str], required: int, optional: int, usage: str) -> None:
        if not required <= len(args) <= required + optional:
            raise ValueError(f"Usage: {usage}")

    def _mode_and_scope(self, extra: List[str]):
        mode = parse_mode(extra[0]) if len(extra) > 0 else QueryMode.ASSERTED
        scope = parse_scope(extra[1]) if len(extra) > 1 else Scope.IMPORTS_CLOSURE
        return mode, scope

    def _cmd_types(self, args: List[str]):
        self._arity(args, 1, 2, "types <individual> [mode] [scope]")
        mode, scope = self._mode_and_scope(args[1:])
        return sorted_iris(self.dispatcher.types(self.iri(args[0]), scope, mode))

    def _cmd_is(self, args: List[str]):
        self._arity(args, 2, 2, "is <individual> <class> [mode] [scope]")
        mode, scope = self._mode_and_scope(args[2:])
        return self.dispatcher.is_instance_of(self.iri(args[0]), self.iri(args[1]), scope, mode)

    def _cmd_instances(self, args: List[str]):
        self._arity(args, 1, 2, "instances <class> [mode] [scope]")
        mode, scope = self._mode_and_scope(args[1:])
        return sorted_iris(self.dispatcher.instances_of_class(self.iri(args[0]), scope, mode))

    def _cmd_supers(self, args: List[str]):
        self._arity(args, 1, 2, "supers <class> [mode] [scope]")
        mode, scope = self._mode_and_scope(args[1:])
        return sorted_iris(self.dispatcher.super_classes(self.iri(args[0]), scope, mode))

    def _cmd_subs(self, args: List[str]):
        self._arity(args, 1, 2, "subs <class> [mode] [scope]")
        mode, scope = self._mode_and_scope(args[1:])
        return sorted_iris(self.dispatcher.sub_classes(self.iri(args[0]), scope, mode))

    def _cmd_create(self, args: List[str]):
        self._arity(args, 2, 0, "create <class> <individual>")
        return self.authoring.create_individual(self.iri(args[0]), self.iri(args[1]))

    def _cmd_assert_type(self, args: List[str]):
        self._arity(args, 2, 0, "assert-type <individual> <class>")
        return self.authoring.assert_type(self.iri(args[0]), self.iri(args[1]))

    def _cmd_retract_type(self, args: List[str]):
        self._arity(args, 2, 0, "retract-type <individual> <class>")
        return self.authoring.retract_type(self.iri(args[0]), self.iri(args[1]))

    def _cmd_revision(self, args: List[str]):
        self._arity(args, 0, 0, "revision")
        provider = self.context.reasoner_provider
        return {
            "current": self.context.revision.current(),
            "reasoner_view": provider.revision if provider else None,
            "reasoner_builds": provider.build_count if provider else 0,
        }

    def _cmd_save(self, args: List[str]):
        self._arity(args, 0, 1, "save [path]")
        path = args[0] if args else None
        self.ontology_manager.save_graph(path)
        return path or self.ontology_manager.ontology_path

    def shutdown(self) -> None:
        self.context.dispose()
        log.info("Controller shut down.")
