import argparse
import logging

from botocore.exceptions import ClientError

from .base_check import BaseCheck, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class GetParameterCheck(BaseCheck):
    name = "get-parameter"
    help = "Fetch a (decrypted) SSM parameter value."

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("ssm")

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("parameter_name", help="Parameter name or path.")
        parser.add_argument(
            "--no-decrypt",
            action="store_true",
            help="Return SecureString values still encrypted.",
        )

    def run(self, args: argparse.Namespace) -> CheckResult:
        try:
            response = self.client.get_parameter(
                Name=args.parameter_name, WithDecryption=not args.no_decrypt
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ParameterNotFound":
                return CheckResult(
                    CheckStatus.UNHEALTHY,
                    f"Parameter {args.parameter_name} not found",
                )
            raise

        value = response.get("Parameter", {}).get("Value")
        if not value:
            return CheckResult(
                CheckStatus.UNHEALTHY, f"Parameter {args.parameter_name} is empty"
            )
        # the value itself never goes to the log
        logger.debug(f"Fetched parameter {args.parameter_name}")
        return CheckResult(CheckStatus.OK, f"Parameter {args.parameter_name}", value)
