import argparse
import json
import logging
from pathlib import Path

from .base_check import BaseCheck, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class InvokeFunctionCheck(BaseCheck):
    name = "invoke-function"
    help = "Invoke a Lambda function and check it did not error."

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("lambda")

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("function_name", help="Function name or ARN.")
        parser.add_argument("--payload", default="{}", help="JSON event payload.")
        parser.add_argument(
            "--async",
            dest="asynchronous",
            action="store_true",
            help="Invoke asynchronously (InvocationType=Event).",
        )
        parser.add_argument("--outfile", help="Write the response payload here.")

    def run(self, args: argparse.Namespace) -> CheckResult:
        try:
            json.loads(args.payload)
        except ValueError as e:
            return CheckResult(CheckStatus.UNHEALTHY, f"Invalid JSON payload: {e}")

        invocation_type = "Event" if args.asynchronous else "RequestResponse"
        logger.info(f"Invoking {args.function_name} ({invocation_type})")
        response = self.client.invoke(
            FunctionName=args.function_name,
            InvocationType=invocation_type,
            Payload=args.payload.encode("utf-8"),
        )

        status_code = response.get("StatusCode", 0)
        payload = response["Payload"].read().decode("utf-8") if "Payload" in response else ""
        if args.outfile:
            Path(args.outfile).write_text(payload)
            payload = ""

        if response.get("FunctionError"):
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Function {args.function_name} failed ({response['FunctionError']})",
                data=payload or None,
            )
        if not 200 <= status_code < 300:
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Function {args.function_name} returned status {status_code}",
                data=payload or None,
            )
        return CheckResult(
            CheckStatus.OK,
            f"Function {args.function_name} returned status {status_code}",
            data=payload or None,
        )
