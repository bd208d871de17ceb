"""
aws-checks

Single-call AWS checks for shell scripts and cron jobs:
- EC2 instance state, public IP, waiters, tagged stops, security groups
- S3 uploads, syncs and large-object listings
- CloudFormation, CloudWatch Logs, CloudFront, ELBv2, Lambda and SSM
- Age/size filters over resource listings
"""

__version__ = "0.1.0"

from .checks import BaseCheck, CheckResult, CheckStatus
from .config import Settings, load_settings
from .resource_filter import RecordFilter, FilterError, larger_than, older_than, sort_desc

__all__ = [
    # Checks
    "BaseCheck",
    "CheckResult",
    "CheckStatus",
    # Configuration
    "Settings",
    "load_settings",
    # Filters
    "RecordFilter",
    "FilterError",
    "larger_than",
    "older_than",
    "sort_desc",
]
