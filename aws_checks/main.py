import sys
from typing import Any, List, Optional

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .check_runner import CheckRunner
from .checks.base_check import CheckResult, CheckStatus
from .cli_parser import CliArgs, CliParser
from .config import Settings, load_settings
from .constants import LOG_FORMAT
from .core import AWSChecksError
from .logger import LoggerSetup
from .session import SessionManager


def print_data(data: Any) -> None:
    """Write a check's payload to stdout, one item per line."""
    if data is None:
        return
    if isinstance(data, (list, tuple)):
        for item in data:
            print(item)
    else:
        print(data)


def run(args: CliArgs, settings: Settings) -> CheckResult:
    session = SessionManager.get_session(
        region=settings.region,
        profile=settings.profile,
        role_arn=settings.role_arn,
        role_session_name=settings.role_session_name,
    )
    return CheckRunner.run_check(args.command, session, args.namespace, settings)


def main(argv: Optional[List[str]] = None) -> int:
    # Parse CLI arguments using CliParser
    args: CliArgs = CliParser.parse_arguments(argv)

    try:
        settings = load_settings(args.config).merge(
            {
                "region": args.region,
                "profile": args.profile,
                "role_arn": args.role_arn,
                "log_level": args.log_level,
            }
        )
    except AWSChecksError as e:
        LoggerSetup(LOG_FORMAT).get_logger("aws_checks").error(str(e))
        return CheckStatus.UNHEALTHY.exit_code

    # Initialize logger (configured once)
    logger = LoggerSetup(LOG_FORMAT, settings.log_level).get_logger("aws_checks")
    logger.debug(f"Running {args.command} in {settings.region}")

    try:
        result = run(args, settings)
    except (AWSChecksError, ClientError, BotoCoreError, Boto3Error) as e:
        logger.error(f"{args.command} failed: {e}")
        return CheckStatus.UNHEALTHY.exit_code

    print_data(result.data)
    if result.status is CheckStatus.OK:
        logger.info(result.message)
    elif result.status is CheckStatus.IN_PROGRESS:
        logger.warning(result.message)
    else:
        logger.error(result.message)
    return result.status.exit_code


if __name__ == "__main__":
    sys.exit(main())
