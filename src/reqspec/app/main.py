from __future__ import annotations

import logging
import sys
from argparse import Namespace

from reqspec import __version__
from reqspec.app.cli import create_arg_parser, parse_cli
from reqspec.app.log_config import configure_logging
from reqspec.engine.parse_cache import cached_marker, cached_requirement, cached_specifiers, cached_version
from reqspec.helper.sys_check_utils import check_python_version
from reqspec.model.errors import ReqspecError
from reqspec.model.marker.marker_environment_model import EnvironmentProfiles, MarkerEnvironment

EXIT_OK = 0
EXIT_FALSE = 1
EXIT_ERROR = 2

LOGGER = logging.getLogger("reqspec.app")


def _run_version(args: Namespace) -> int:
    for version in sorted(cached_version(text) for text in args.versions):
        print(version)
    return EXIT_OK


def _run_contains(args: Namespace) -> int:
    specifiers = cached_specifiers(args.specifiers)
    all_contained = True
    for text in args.versions:
        contained = specifiers.contains(text, prereleases=args.prereleases)
        all_contained = all_contained and contained
        print(f"{text}: {'yes' if contained else 'no'}")
    return EXIT_OK if all_contained else EXIT_FALSE


def _run_filter(args: Namespace) -> int:
    specifiers = cached_specifiers(args.specifiers)
    for candidate in specifiers.filter(args.versions, prereleases=args.prereleases):
        print(candidate)
    return EXIT_OK


def _run_requirement(args: Namespace) -> int:
    requirement = cached_requirement(args.requirement)
    print(requirement.serialize(fmt=args.format))
    return EXIT_OK


def _selected_environments(args: Namespace) -> list[tuple[str, MarkerEnvironment]]:
    """
    Collects the environments a marker is evaluated against, as (label, environment) pairs.

    Raises:
        ValueError: If profile names are given without a profiles file.
        KeyError: If a requested profile is not in the file.
    """
    selected: list[tuple[str, MarkerEnvironment]] = []
    if args.profiles is not None:
        profiles = EnvironmentProfiles.from_file(args.profiles)
        names = args.profile or profiles.names()
        selected.extend((name, profiles.get(name)) for name in names)
    elif args.profile:
        raise ValueError("--profile requires --profiles")
    if args.current or args.profiles is None:
        selected.append(("current", MarkerEnvironment.current()))
    return selected


def _run_marker(args: Namespace) -> int:
    marker = cached_marker(args.marker)
    if args.python:
        versions = [cached_version(text) for text in args.python]
        result = marker.evaluate_extras_and_python_versions(args.extra, versions)
        print(f"python {', '.join(args.python)}: {str(result).lower()}")
        return EXIT_OK if result else EXIT_FALSE

    all_true = True
    for label, environment in _selected_environments(args):
        LOGGER.debug("Evaluating %r against environment %s", str(marker), label)
        result = marker.evaluate(environment, args.extra)
        all_true = all_true and result
        print(f"{label}: {str(result).lower()}")
    return EXIT_OK if all_true else EXIT_FALSE


def _run_environment(args: Namespace) -> int:
    print(MarkerEnvironment.current().serialize(fmt=args.format))
    return EXIT_OK


_COMMANDS = {
    "version": _run_version,
    "contains": _run_contains,
    "filter": _run_filter,
    "requirement": _run_requirement,
    "marker": _run_marker,
    "environment": _run_environment,
}


def run(argv: list[str] | None = None) -> int:
    """
    Parses the command line, configures logging, and dispatches to the selected subcommand.

    Args:
        argv (list[str] | None): Command-line arguments, or `None` to use `sys.argv`.

    Returns:
        int: The exit status. 0 when the command succeeded (and every check it performed held),
            1 when a `contains` or `marker` check came out false.

    Raises:
        ReqspecError: If an input fails to parse.
        OSError: If a profiles file cannot be read.
        ValueError: If a profiles file or an option value is malformed.
        KeyError: If an unknown profile is requested.
    """
    check_python_version()
    args = parse_cli(argv)
    if args.version:
        print(f"reqspec {__version__}")
        return EXIT_OK
    if args.command is None:
        create_arg_parser().print_help(sys.stderr)
        return EXIT_ERROR
    configure_logging(args.log_dest or ["stderr"], args.log_level)
    return _COMMANDS[args.command](args)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point of the command line tool.

    Failures are reported on stderr as `reqspec: error: ...` and mapped to exit status 2. Parse
    errors print the caret underline that points at the offending characters.

    Args:
        argv (list[str] | None): Command-line arguments, or `None` to use `sys.argv`.

    Returns:
        int: The exit status.
    """
    try:
        return run(argv)
    except KeyboardInterrupt:
        return EXIT_FALSE
    except ReqspecError as e:
        print(f"reqspec: error: {e.render()}", file=sys.stderr)
        return EXIT_ERROR
    except KeyError as e:
        print(f"reqspec: error: {e.args[0] if e.args else e}", file=sys.stderr)
        return EXIT_ERROR
    except (OSError, ValueError, TypeError, RuntimeError) as e:
        print(f"reqspec: error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
