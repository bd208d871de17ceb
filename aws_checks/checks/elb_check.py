import argparse
import logging
from typing import Dict, List

from .base_check import BaseCheck, CheckResult, CheckStatus
from ..constants import TARGET_HEALTHY, TARGET_TRANSITIONAL_STATES

logger = logging.getLogger(__name__)


def classify_target_health(states: List[str]) -> CheckStatus:
    """All healthy is OK; any hard failure wins over targets still settling."""
    if not states:
        return CheckStatus.UNHEALTHY
    if all(state == TARGET_HEALTHY for state in states):
        return CheckStatus.OK
    if all(
        state == TARGET_HEALTHY or state in TARGET_TRANSITIONAL_STATES
        for state in states
    ):
        return CheckStatus.IN_PROGRESS
    return CheckStatus.UNHEALTHY


class TargetHealthCheck(BaseCheck):
    """Plugin for checking the targets of an ELBv2 target group."""

    name = "target-health"
    help = "Check the health of every target in a load balancer target group."

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("elbv2")

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("target_group_arn", help="Target group ARN.")

    @staticmethod
    def format_target(description: Dict) -> str:
        target = description.get("Target", {})
        health = description.get("TargetHealth", {})
        line = f"{target.get('Id')}:{target.get('Port', '')}\t{health.get('State')}"
        if health.get("Reason"):
            line += f"\t{health['Reason']}"
        return line

    def run(self, args: argparse.Namespace) -> CheckResult:
        response = self.client.describe_target_health(
            TargetGroupArn=args.target_group_arn
        )
        descriptions = response.get("TargetHealthDescriptions", [])
        states = [d.get("TargetHealth", {}).get("State") for d in descriptions]
        status = classify_target_health(states)

        if not descriptions:
            message = "No targets registered"
        else:
            healthy = states.count(TARGET_HEALTHY)
            message = f"{healthy}/{len(states)} target(s) healthy"
        return CheckResult(
            status, message, data=[self.format_target(d) for d in descriptions]
        )
