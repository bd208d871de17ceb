import argparse
import logging
from typing import Dict, List, Optional

from botocore.exceptions import WaiterError

from .base_check import BaseCheck, CheckResult, CheckStatus, classify
from ..constants import EC2_TRANSITIONAL_STATES, EC2_WAITERS, OPEN_CIDRS
from ..resource_filter import RecordFilter, cutoff_from_days
from ..utils import format_timestamp, get_tag_value

logger = logging.getLogger(__name__)


class EC2Check(BaseCheck):
    """Shared EC2 client and instance lookup."""

    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("ec2")

    def describe_instance(self, instance_id: str) -> Optional[Dict]:
        response = self.client.describe_instances(InstanceIds=[instance_id])
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return instance
        return None


class InstanceStateCheck(EC2Check):
    name = "instance-state"
    help = "Check that an EC2 instance is in the expected state."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("instance_id", help="EC2 instance ID.")
        parser.add_argument(
            "--expected",
            default="running",
            help="Expected instance state (default: running).",
        )

    def run(self, args: argparse.Namespace) -> CheckResult:
        instance = self.describe_instance(args.instance_id)
        if not instance:
            return CheckResult(
                CheckStatus.UNHEALTHY, f"Instance {args.instance_id} not found"
            )

        state = instance.get("State", {}).get("Name")
        status = classify(state, {args.expected}, EC2_TRANSITIONAL_STATES)
        return CheckResult(
            status,
            f"Instance {args.instance_id} is {state} (expected {args.expected})",
            data=state,
        )


class StopTaggedCheck(EC2Check):
    name = "stop-tagged"
    help = "Stop every running EC2 instance carrying a tag."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--tag-key", required=True, help="Tag key to match.")
        parser.add_argument("--tag-value", required=True, help="Tag value to match.")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the matching instances without stopping them.",
        )

    def find_running(self, tag_key: str, tag_value: str) -> List[Dict]:
        paginator = self.client.get_paginator("describe_instances")
        instances = []
        for page in paginator.paginate(
            Filters=[
                {"Name": f"tag:{tag_key}", "Values": [tag_value]},
                {"Name": "instance-state-name", "Values": ["running"]},
            ]
        ):
            for reservation in page.get("Reservations", []):
                instances.extend(reservation.get("Instances", []))
        return instances

    def run(self, args: argparse.Namespace) -> CheckResult:
        instances = self.find_running(args.tag_key, args.tag_value)
        instance_ids = [instance["InstanceId"] for instance in instances]
        if not instance_ids:
            return CheckResult(
                CheckStatus.OK,
                f"No running instances tagged {args.tag_key}={args.tag_value}",
                data=[],
            )

        lines = [
            f"{instance['InstanceId']}\t{get_tag_value(instance.get('Tags'), 'Name', 'Unnamed')}"
            for instance in instances
        ]
        if args.dry_run:
            return CheckResult(
                CheckStatus.OK,
                f"Dry run: would stop {len(instance_ids)} instance(s)",
                data=lines,
            )

        logger.info(f"Stopping instances: {instance_ids}")
        response = self.client.stop_instances(InstanceIds=instance_ids)
        stopping = [
            f"{item['InstanceId']}\t{item['PreviousState']['Name']} -> {item['CurrentState']['Name']}"
            for item in response.get("StoppingInstances", [])
        ]
        return CheckResult(
            CheckStatus.OK, f"Stopping {len(stopping)} instance(s)", data=stopping
        )


class PublicIpCheck(EC2Check):
    name = "public-ip"
    help = "Print the public IPv4 address of an EC2 instance."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("instance_id", help="EC2 instance ID.")

    def run(self, args: argparse.Namespace) -> CheckResult:
        instance = self.describe_instance(args.instance_id)
        if not instance:
            return CheckResult(
                CheckStatus.UNHEALTHY, f"Instance {args.instance_id} not found"
            )

        public_ip = instance.get("PublicIpAddress")
        if not public_ip or public_ip.lower() == "none":
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Instance {args.instance_id} has no public IP address",
            )
        return CheckResult(CheckStatus.OK, f"Public IP of {args.instance_id}", public_ip)


class WaitStateCheck(EC2Check):
    name = "wait-state"
    help = "Block until an EC2 instance reaches a state."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("instance_id", help="EC2 instance ID.")
        parser.add_argument(
            "--state",
            choices=sorted(EC2_WAITERS),
            default="running",
            help="State to wait for (default: running).",
        )
        parser.add_argument("--delay", type=int, help="Seconds between polls.")
        parser.add_argument("--max-attempts", type=int, help="Maximum number of polls.")

    def run(self, args: argparse.Namespace) -> CheckResult:
        waiter = self.client.get_waiter(EC2_WAITERS[args.state])
        config = {
            "Delay": (
                args.delay if args.delay is not None else self.settings.waiter_delay
            ),
            "MaxAttempts": (
                args.max_attempts
                if args.max_attempts is not None
                else self.settings.waiter_max_attempts
            ),
        }
        logger.info(f"Waiting for {args.instance_id} to be {args.state} ({config})")
        try:
            waiter.wait(InstanceIds=[args.instance_id], WaiterConfig=config)
        except WaiterError as e:
            if "Max attempts exceeded" in str(e):
                return CheckResult(
                    CheckStatus.IN_PROGRESS,
                    f"Instance {args.instance_id} not {args.state} after {config['MaxAttempts']} attempts",
                )
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Instance {args.instance_id} cannot reach {args.state}: {e}",
            )
        return CheckResult(CheckStatus.OK, f"Instance {args.instance_id} is {args.state}")


class SecurityGroupsCheck(EC2Check):
    name = "security-groups"
    help = "Describe security groups and their ingress rules."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("group_ids", nargs="*", help="Security group IDs.")
        parser.add_argument("--group-name", help="Filter by group name.")
        parser.add_argument("--vpc-id", help="Filter by VPC ID.")
        parser.add_argument(
            "--fail-on-open",
            action="store_true",
            help="Fail when any ingress rule is open to the whole internet.",
        )

    @staticmethod
    def format_rule(rule: Dict) -> List[str]:
        protocol = rule.get("IpProtocol", "-1")
        if protocol == "-1":
            ports = "all"
        else:
            ports = f"{rule.get('FromPort')}-{rule.get('ToPort')}"
        sources = (
            [r["CidrIp"] for r in rule.get("IpRanges", [])]
            + [r["CidrIpv6"] for r in rule.get("Ipv6Ranges", [])]
            + [r["GroupId"] for r in rule.get("UserIdGroupPairs", [])]
            + [r["PrefixListId"] for r in rule.get("PrefixListIds", [])]
        )
        return [f"{protocol}\t{ports}\t{source}" for source in sources]

    @staticmethod
    def is_open(rule: Dict) -> bool:
        cidrs = {r.get("CidrIp") for r in rule.get("IpRanges", [])}
        cidrs |= {r.get("CidrIpv6") for r in rule.get("Ipv6Ranges", [])}
        return bool(cidrs & OPEN_CIDRS)

    def run(self, args: argparse.Namespace) -> CheckResult:
        params: Dict = {}
        if args.group_ids:
            params["GroupIds"] = args.group_ids
        filters = []
        if args.group_name:
            filters.append({"Name": "group-name", "Values": [args.group_name]})
        if args.vpc_id:
            filters.append({"Name": "vpc-id", "Values": [args.vpc_id]})
        if filters:
            params["Filters"] = filters

        paginator = self.client.get_paginator("describe_security_groups")
        groups = []
        for page in paginator.paginate(**params):
            groups.extend(page.get("SecurityGroups", []))
        if not groups:
            return CheckResult(CheckStatus.UNHEALTHY, "No security groups found")

        lines = []
        open_groups = []
        for group in groups:
            lines.append(f"{group['GroupId']}\t{group.get('GroupName', '')}")
            for rule in group.get("IpPermissions", []):
                lines.extend(f"  {line}" for line in self.format_rule(rule))
                if self.is_open(rule) and group["GroupId"] not in open_groups:
                    open_groups.append(group["GroupId"])

        if args.fail_on_open and open_groups:
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Ingress open to the internet in: {', '.join(open_groups)}",
                data=lines,
            )
        return CheckResult(
            CheckStatus.OK, f"Found {len(groups)} security group(s)", data=lines
        )


class OldSnapshotsCheck(EC2Check):
    name = "old-snapshots"
    help = "List EBS snapshots older than a number of days."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--days", type=int, help="Age threshold in days.")
        parser.add_argument(
            "--owner", default="self", help="Snapshot owner (default: self)."
        )

    def list_snapshots(self, owner: str) -> List[Dict]:
        paginator = self.client.get_paginator("describe_snapshots")
        snapshots = []
        for page in paginator.paginate(OwnerIds=[owner]):
            snapshots.extend(page.get("Snapshots", []))
        return snapshots

    def run(self, args: argparse.Namespace) -> CheckResult:
        days = args.days if args.days is not None else self.settings.snapshot_age_days
        cutoff = cutoff_from_days(days)
        record_filter = RecordFilter()
        old = list(
            record_filter.older_than(
                self.list_snapshots(args.owner), cutoff, "StartTime"
            )
        )
        lines = [
            f"{s['SnapshotId']}\t{format_timestamp(s['StartTime'])}\t{s.get('VolumeSize', '')}GiB"
            for s in old
        ]
        message = f"{len(old)} snapshot(s) older than {days} day(s)"
        if record_filter.errors:
            message += f", {len(record_filter.errors)} skipped"
        return CheckResult(CheckStatus.OK, message, data=lines)
