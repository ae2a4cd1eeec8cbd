import sys
import json
from ontoquery.controller import Controller

HELP = """Commands:
  types <individual> [mode] [scope]
  is <individual> <class> [mode] [scope]
  instances <class> [mode] [scope]
  supers <class> [mode] [scope]
  subs <class> [mode] [scope]
  create <class> <individual>
  assert-type <individual> <class>
  retract-type <individual> <class>
  revision
  save [path]
  exit
Modes: asserted (default), direct, all. Scopes: imports (default), local."""


def run_cli_app(controller: Controller):
    """
    Runs the interactive Command Line Interface.
    """
    print("\n--- Ontology Query Console ---")
    print("Type 'help' for the list of commands, or 'exit' to quit.")

    while True:
        try:
            line = input("\n> ")
            command = line.lower().strip()
            if command == 'exit':
                print("Exiting...")
                break

            if not command:
                continue

            if command == 'help':
                print(HELP)
                continue

            result = controller.handle_command(line)
            print(json.dumps(result, indent=2, default=str))

        except EOFError:
            print("\nExiting...")
            break
        except KeyboardInterrupt:
            print("\nExiting...")
            break

    controller.shutdown()


if __name__ == "__main__":
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config/settings.yaml"
    print("Starting CLI app...")
    run_cli_app(Controller(config_path))
