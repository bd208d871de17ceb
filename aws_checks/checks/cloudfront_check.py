import argparse
import logging
import time

from botocore.exceptions import WaiterError

from .base_check import BaseCheck, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class InvalidateCdnCheck(BaseCheck):
    name = "invalidate-cdn"
    help = "Create a CloudFront invalidation."

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("cloudfront")

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("distribution_id", help="CloudFront distribution ID.")
        parser.add_argument(
            "paths", nargs="*", default=["/*"], help="Paths to invalidate (default: /*)."
        )
        parser.add_argument(
            "--wait",
            action="store_true",
            help="Block until the invalidation has completed.",
        )

    def run(self, args: argparse.Namespace) -> CheckResult:
        paths = args.paths or ["/*"]
        response = self.client.create_invalidation(
            DistributionId=args.distribution_id,
            InvalidationBatch={
                "Paths": {"Quantity": len(paths), "Items": paths},
                "CallerReference": f"aws-checks-{time.time_ns()}",
            },
        )
        invalidation = response["Invalidation"]
        invalidation_id = invalidation["Id"]
        logger.info(
            f"Invalidation {invalidation_id} for {args.distribution_id} is {invalidation.get('Status')}"
        )

        if not args.wait:
            return CheckResult(
                CheckStatus.OK,
                f"Created invalidation {invalidation_id} ({invalidation.get('Status')})",
                data=invalidation_id,
            )

        waiter = self.client.get_waiter("invalidation_completed")
        try:
            waiter.wait(
                DistributionId=args.distribution_id,
                Id=invalidation_id,
                WaiterConfig={
                    "Delay": self.settings.waiter_delay,
                    "MaxAttempts": self.settings.waiter_max_attempts,
                },
            )
        except WaiterError as e:
            if "Max attempts exceeded" in str(e):
                return CheckResult(
                    CheckStatus.IN_PROGRESS,
                    f"Invalidation {invalidation_id} not completed: {e}",
                    data=invalidation_id,
                )
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Invalidation {invalidation_id} failed: {e}",
                data=invalidation_id,
            )
        return CheckResult(
            CheckStatus.OK, f"Invalidation {invalidation_id} completed", invalidation_id
        )
