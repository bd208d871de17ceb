from .base_check import BaseCheck, CheckResult, CheckStatus, classify

__all__ = [
    "BaseCheck",
    "CheckResult",
    "CheckStatus",
    "classify",
]
