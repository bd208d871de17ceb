import argparse
import logging

from botocore.exceptions import ClientError

from .base_check import BaseCheck, CheckResult, CheckStatus
from ..constants import STACK_OK_STATES

logger = logging.getLogger(__name__)


def classify_stack_status(stack_status: str) -> CheckStatus:
    """
    Classify a CloudFormation stack status.

    Completed creates, updates and imports are OK, anything still running
    is in progress, and failures, rollbacks and deletions are unhealthy.
    """
    if stack_status in STACK_OK_STATES:
        return CheckStatus.OK
    if stack_status.endswith("_IN_PROGRESS"):
        return CheckStatus.IN_PROGRESS
    return CheckStatus.UNHEALTHY


class StackStatusCheck(BaseCheck):
    name = "stack-status"
    help = "Check the status of a CloudFormation stack."

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("cloudformation")

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("stack_name", help="Stack name or ID.")

    def run(self, args: argparse.Namespace) -> CheckResult:
        try:
            response = self.client.describe_stacks(StackName=args.stack_name)
        except ClientError as e:
            if "does not exist" in str(e):
                return CheckResult(
                    CheckStatus.UNHEALTHY, f"Stack {args.stack_name} does not exist"
                )
            raise

        stacks = response.get("Stacks", [])
        if not stacks:
            return CheckResult(
                CheckStatus.UNHEALTHY, f"Stack {args.stack_name} does not exist"
            )

        stack = stacks[0]
        stack_status = stack.get("StackStatus", "")
        message = f"Stack {args.stack_name} is {stack_status}"
        if stack.get("StackStatusReason"):
            message += f": {stack['StackStatusReason']}"
        return CheckResult(classify_stack_status(stack_status), message, stack_status)
