"""Defaults shared across the aws_checks package."""

from typing import Final, FrozenSet

# File paths
CONFIG_ENV_VAR: Final[str] = "AWS_CHECKS_CONFIG"

# Logging
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

### AWS constants ###
DEFAULT_REGION: Final[str] = "ap-southeast-1"
DEFAULT_SESSION: Final[str] = "AWSChecks"

# Filters
DEFAULT_SNAPSHOT_AGE_DAYS: Final[int] = 30
DEFAULT_LARGE_OBJECT_THRESHOLD_MB: Final[int] = 100
BYTES_PER_MB: Final[int] = 1024 * 1024

# Waiters
DEFAULT_WAITER_DELAY: Final[int] = 15
DEFAULT_WAITER_MAX_ATTEMPTS: Final[int] = 40

# CloudWatch Logs
DEFAULT_LOGS_SINCE_MINUTES: Final[int] = 10
DEFAULT_LOGS_POLL_INTERVAL: Final[int] = 5

### State sets ###
# EC2 instance states that are on their way somewhere else
EC2_TRANSITIONAL_STATES: Final[FrozenSet[str]] = frozenset(
    {"pending", "stopping", "shutting-down"}
)
EC2_WAITERS: Final[dict] = {
    "running": "instance_running",
    "stopped": "instance_stopped",
    "terminated": "instance_terminated",
}

# CloudFormation
STACK_OK_STATES: Final[FrozenSet[str]] = frozenset(
    {"CREATE_COMPLETE", "UPDATE_COMPLETE", "IMPORT_COMPLETE"}
)

# ELBv2 target health
TARGET_HEALTHY: Final[str] = "healthy"
TARGET_TRANSITIONAL_STATES: Final[FrozenSet[str]] = frozenset({"initial", "draining"})

# Security groups
OPEN_CIDRS: Final[FrozenSet[str]] = frozenset({"0.0.0.0/0", "::/0"})
