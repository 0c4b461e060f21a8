from __future__ import annotations

from argparse import ArgumentParser, Namespace, RawTextHelpFormatter
from pathlib import Path


def _add_format_option(parser: ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--format",
        choices=("json", "toml"),
        default="json",
        help="output format (defaults to json)")


def _add_prerelease_options(parser: ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--pre",
        dest="prereleases",
        action="store_const",
        const=True,
        help="always accept pre-release versions")
    group.add_argument(
        "--no-pre",
        dest="prereleases",
        action="store_const",
        const=False,
        help="never accept pre-release versions")
    parser.set_defaults(prereleases=None)


def create_arg_parser() -> ArgumentParser:
    """
    Creates and configures an argument parser for the reqspec command-line interface.

    Each operation of the library is available as a subcommand. The global logging options
    apply to all of them; marker diagnostics are emitted at WARNING level.

    Returns:
        ArgumentParser: An ArgumentParser object configured with all subcommands and options.
    """
    parser = ArgumentParser(
        prog="reqspec",
        description="parse and evaluate versions, version specifiers, requirements and markers",
        formatter_class=RawTextHelpFormatter)

    parser.add_argument(
        "--log-dest",
        type=str,
        action="append",
        metavar="DEST",
        help="where to send log output (repeatable):\n"
             " - stdout\n"
             " - stderr (default)\n"
             " - file:<path>")

    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        metavar="LEVEL",
        help="minimum log level (defaults to WARNING)")

    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="show version and exit")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    version = commands.add_parser(
        "version",
        help="normalize versions and print them in ascending order")
    version.add_argument(
        "versions",
        nargs="+",
        metavar="VERSION",
        help="version strings, such as 1.0.post1 or 2!3.0rc1")

    contains = commands.add_parser(
        "contains",
        help="check whether versions satisfy a specifier set\n"
             "(exit status 1 when any of them does not)")
    contains.add_argument(
        "specifiers",
        metavar="SPECIFIERS",
        help="comma separated specifiers, such as '>=1.0,!=1.3.*'")
    contains.add_argument(
        "versions",
        nargs="+",
        metavar="VERSION",
        help="candidate versions")
    _add_prerelease_options(contains)

    filter_ = commands.add_parser(
        "filter",
        help="print the versions that satisfy a specifier set")
    filter_.add_argument(
        "specifiers",
        metavar="SPECIFIERS",
        help="comma separated specifiers")
    filter_.add_argument(
        "versions",
        nargs="+",
        metavar="VERSION",
        help="candidate versions")
    _add_prerelease_options(filter_)

    requirement = commands.add_parser(
        "requirement",
        help="parse a dependency specifier and print its parts")
    requirement.add_argument(
        "requirement",
        metavar="REQUIREMENT",
        help="a requirement, such as 'requests[security]>=2.8.1; python_version > \"3.8\"'")
    _add_format_option(requirement)

    marker = commands.add_parser(
        "marker",
        help="evaluate an environment marker\n"
             "(exit status 1 when it is false in any selected environment)")
    marker.add_argument(
        "marker",
        metavar="MARKER",
        help="a marker, such as 'python_version >= \"3.8\" and os_name == \"posix\"'")
    marker.add_argument(
        "--profiles",
        type=Path,
        metavar="FILE",
        help="JSON or TOML file with an [environments] table of named environments")
    marker.add_argument(
        "-p",
        "--profile",
        nargs="+",
        type=str,
        default=[],
        action="extend",
        metavar="NAME",
        help="profile(s) to evaluate against (defaults to all profiles in the file)")
    marker.add_argument(
        "-e",
        "--extra",
        nargs="+",
        type=str,
        default=[],
        action="extend",
        metavar="EXTRA",
        help="active extras")
    marker.add_argument(
        "--current",
        action="store_true",
        help="also evaluate against the running interpreter\n"
             "(the default when no profiles file is given)")
    marker.add_argument(
        "--python",
        nargs="+",
        type=str,
        default=[],
        action="extend",
        metavar="VERSION",
        help="instead of a full evaluation, check only the extras and whether\n"
             "python_version comparisons can hold for any of these versions")

    environment = commands.add_parser(
        "environment",
        help="print the marker environment of the running interpreter")
    _add_format_option(environment)

    return parser


def parse_cli(argv: list[str] | None = None) -> Namespace:
    """
    Parses command-line arguments using the reqspec argument parser.

    Args:
        argv (list[str] | None): A list of command-line arguments to parse, or `None`
            to use `sys.argv` by default.

    Returns:
        Namespace: An object containing the parsed command-line arguments as attributes.
    """
    parser = create_arg_parser()
    return parser.parse_args(argv)
