import argparse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Optional

import boto3

from ..config import Settings


class CheckStatus(Enum):
    OK = 0
    UNHEALTHY = 1
    IN_PROGRESS = 3

    @property
    def exit_code(self) -> int:
        return self.value


@dataclass
class CheckResult:
    status: CheckStatus
    message: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.status is CheckStatus.OK


def classify(
    value: Optional[str],
    ok: Collection[str],
    in_progress: Collection[str] = (),
) -> CheckStatus:
    """Map a single field value onto one of the three outcome categories."""
    if value and value in ok:
        return CheckStatus.OK
    if value and value in in_progress:
        return CheckStatus.IN_PROGRESS
    return CheckStatus.UNHEALTHY


class BaseCheck(ABC):
    """One AWS call, one extracted field, one classified outcome."""

    name: str = ""
    help: str = ""

    def __init__(self, session: boto3.Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or Settings()

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Register the check's own command line flags."""
        pass

    @abstractmethod
    def run(self, args: argparse.Namespace) -> CheckResult:
        """
        Perform the check and return its classified result.
        """
        pass
