import argparse
import importlib
import inspect
import logging
from typing import Dict, List, Optional, Type

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .checks.base_check import BaseCheck, CheckResult, CheckStatus
from .config import Settings
from .core import CheckError

logger = logging.getLogger(__name__)


supported_modules = [
    "ec2_checks",
    "s3_checks",
    "cloudformation_check",
    "logs_check",
    "cloudfront_check",
    "elb_check",
    "lambda_check",
    "ssm_check",
]


class CheckRunner:
    _registry: Dict[str, Type[BaseCheck]] = {}

    @classmethod
    def load_checks(cls) -> Dict[str, Type[BaseCheck]]:
        """Import every check module once and index its checks by name."""
        if cls._registry:
            return cls._registry

        for module_name in supported_modules:
            module = importlib.import_module(f".checks.{module_name}", __package__)
            for _, check_class in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(check_class, BaseCheck)
                    and not inspect.isabstract(check_class)
                    and check_class.name
                ):
                    cls._registry[check_class.name] = check_class

        logger.debug(f"Loaded {len(cls._registry)} checks")
        return cls._registry

    @classmethod
    def check_names(cls) -> List[str]:
        return sorted(cls.load_checks())

    @classmethod
    def get_check(cls, name: str) -> Type[BaseCheck]:
        checks = cls.load_checks()
        if name not in checks:
            raise CheckError(f"Unsupported check: {name}")
        return checks[name]

    @classmethod
    def run_check(
        cls,
        name: str,
        session: boto3.Session,
        args: argparse.Namespace,
        settings: Optional[Settings] = None,
    ) -> CheckResult:
        """
        Run one check, turning AWS API failures into an unhealthy result.
        """
        check = cls.get_check(name)(session, settings)
        logger.debug(f"Running check {name}")
        try:
            return check.run(args)
        except (ClientError, BotoCoreError, Boto3Error) as e:
            logger.error(f"AWS call failed during {name}: {e}")
            return CheckResult(CheckStatus.UNHEALTHY, f"{name} failed: {e}")
