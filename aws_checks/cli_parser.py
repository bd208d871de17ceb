import argparse
from typing import List, NamedTuple, Optional

from .check_runner import CheckRunner


class CliArgs(NamedTuple):
    command: str
    config: Optional[str]
    region: Optional[str]
    profile: Optional[str]
    role_arn: Optional[str]
    log_level: Optional[str]
    namespace: argparse.Namespace


class CliParser:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="aws-checks",
            description="Single-call AWS checks that report through their exit code.",
        )
        parser.add_argument(
            "--config",
            "-c",
            type=str,
            help="YAML settings file (default: $AWS_CHECKS_CONFIG).",
        )
        parser.add_argument("--region", "-r", type=str, help="AWS region.")
        parser.add_argument("--profile", "-p", type=str, help="AWS named profile.")
        parser.add_argument(
            "--role-arn", type=str, help="IAM role to assume before the check."
        )
        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "--verbose", "-v", action="store_true", help="Enable debug logging."
        )
        verbosity.add_argument(
            "--quiet", "-q", action="store_true", help="Only log errors."
        )

        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
        subparsers.required = True
        for name in CheckRunner.check_names():
            check_class = CheckRunner.get_check(name)
            subparser = subparsers.add_parser(
                name, help=check_class.help, description=check_class.help
            )
            check_class.add_arguments(subparser)
        return parser

    @staticmethod
    def parse_arguments(argv: Optional[List[str]] = None) -> CliArgs:
        args = CliParser.build_parser().parse_args(argv)
        log_level = None
        if args.verbose:
            log_level = "DEBUG"
        elif args.quiet:
            log_level = "ERROR"
        return CliArgs(
            command=args.command,
            config=args.config,
            region=args.region,
            profile=args.profile,
            role_arn=args.role_arn,
            log_level=log_level,
            namespace=args,
        )
