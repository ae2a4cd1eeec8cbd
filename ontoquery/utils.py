import yaml
import logging
import sys
from typing import Any, Dict, Iterable, List

from rdflib import URIRef

REQUIRED_SECTIONS = ("logging", "ontology")


def load_config(config_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """
    Loads the YAML configuration file. Exits the process if the file is
    missing, unparsable or lacks one of the required sections.
    """
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"Error: Configuration file not found at {config_path}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML configuration: {e}", file=sys.stderr)
        sys.exit(1)

    missing = [s for s in REQUIRED_SECTIONS if s not in config]
    if missing:
        print(f"Error: Configuration {config_path} is missing section(s): {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)
    config.setdefault("reasoner", {"enabled": False})
    return config


def setup_logging(level: str = "INFO") -> None:
    """
    Sets up basic console logging.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def expand_name(name: str, base_namespace: str) -> URIRef:
    """
    Turn a short name ("Disease", ":Disease") into an IRI in the base
    namespace. Absolute IRIs (with a scheme, or in <...>) pass through.
    """
    name = name.strip()
    if name.startswith("<") and name.endswith(">"):
        return URIRef(name[1:-1])
    if "://" in name or name.startswith("urn:"):
        return URIRef(name)
    return URIRef(base_namespace + name.lstrip(":"))


def sorted_iris(items: Iterable) -> List[str]:
    """Stable, JSON-friendly rendering of a set of IRIs or literals."""
    return sorted(str(i) for i in items)
