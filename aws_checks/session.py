import boto3
import logging
from typing import Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .constants import DEFAULT_REGION, DEFAULT_SESSION
from .core import SessionError

logger = logging.getLogger(__name__)


def assume_role(
    role_arn: str,
    region: str = DEFAULT_REGION,
    role_session_name: str = DEFAULT_SESSION,
    profile: Optional[str] = None,
) -> boto3.Session:
    """Assumes a specified role and returns a boto3 Session."""
    try:
        sts_client = boto3.Session(profile_name=profile).client("sts")
        credentials = sts_client.assume_role(
            RoleArn=role_arn, RoleSessionName=role_session_name
        )["Credentials"]

        return boto3.Session(
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
            region_name=region,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to assume role {role_arn}: {e}")
        raise SessionError(f"Failed to assume role {role_arn}: {e}") from e


class SessionManager:
    _sessions: Dict[str, boto3.Session] = {}

    @classmethod
    def get_session(
        cls,
        region: str = DEFAULT_REGION,
        profile: Optional[str] = None,
        role_arn: Optional[str] = None,
        role_session_name: str = DEFAULT_SESSION,
    ) -> boto3.Session:
        """Get or create a boto3 Session, assuming ``role_arn`` when given."""
        session_key = f"{profile or 'default'}:{role_arn or '-'}:{region}"

        if session_key not in cls._sessions:
            if role_arn:
                logger.debug(f"Assuming role {role_arn} in {region}")
                cls._sessions[session_key] = assume_role(
                    role_arn, region, role_session_name, profile
                )
            else:
                try:
                    cls._sessions[session_key] = boto3.Session(
                        profile_name=profile, region_name=region
                    )
                except BotoCoreError as e:
                    raise SessionError(
                        f"Failed to create session for profile {profile}: {e}"
                    ) from e

        return cls._sessions[session_key]

    @classmethod
    def clear_sessions(cls) -> None:
        """Remove every session from the cache."""
        cls._sessions.clear()
        logger.debug("Session cache cleared")
