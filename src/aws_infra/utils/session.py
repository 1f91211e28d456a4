#!/usr/bin/env python3
"""
utils/session.py

Session management utilities for AWS interactions.

Provides functions and classes to handle AWS session creation and role assumption.
"""

import boto3
import os
from typing import Optional
from botocore.exceptions import BotoCoreError, ClientError
from aws_infra.core.constants import DEFAULT_AWS_REGION, DEFAULT_ROLE_SESSION_NAME
from aws_infra.utils.exceptions import APIError
from aws_infra.utils.logger import setup_logger
from aws_infra.utils.retry import is_error_retryable

logger = setup_logger(__name__, "session.log")


def assume_role(
    role_arn: str,
    region: str = DEFAULT_AWS_REGION,
    role_session_name: str = DEFAULT_ROLE_SESSION_NAME,
    duration_seconds: int = 3600,
    session: Optional[boto3.Session] = None,
) -> boto3.Session:
    """Assumes a role and returns a boto3 Session holding its temporary credentials."""
    if not role_arn.startswith("arn:") or ":role/" not in role_arn:
        raise ValueError(f"Invalid IAM role ARN: {role_arn}")

    base = session or boto3.Session(region_name=region)
    logger.info(f"Assuming role {role_arn} (session name {role_session_name})")

    try:
        sts_client = base.client("sts", region_name=region)
        response = sts_client.assume_role(
            RoleArn=role_arn,
            RoleSessionName=role_session_name,
            DurationSeconds=duration_seconds,
        )
    except (ClientError, BotoCoreError) as e:
        raise APIError(
            f"Failed to assume role {role_arn}: {e}", retryable=is_error_retryable(e)
        ) from e

    credentials = response["Credentials"]
    logger.info(f"Assumed role {role_arn}, credentials expire at {credentials.get('Expiration')}")

    return boto3.Session(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=region,
    )


class SessionManager:
    """Manages AWS sessions for profiles, role assumption and credential handling."""

    @classmethod
    def get_session(
        cls,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        role_arn: Optional[str] = None,
        role_session_name: str = DEFAULT_ROLE_SESSION_NAME,
    ) -> boto3.Session:
        """Create a boto3 Session from the default chain or a named profile,
        optionally assuming ``role_arn`` on top of it."""
        region = region or DEFAULT_AWS_REGION
        try:
            session = boto3.Session(profile_name=profile, region_name=region)
        except BotoCoreError as e:
            raise APIError(f"Failed to create session for profile {profile}: {e}") from e
        if profile and profile not in session.available_profiles:
            raise APIError(f"The config profile ({profile}) could not be found")
        logger.debug(f"Created session (profile={profile or 'default'}, region={region})")

        if role_arn:
            return assume_role(role_arn, region, role_session_name, session=session)
        return session

    @classmethod
    def get_session_from_env(cls, region: str = DEFAULT_AWS_REGION) -> boto3.Session:
        """Create a boto3 Session from environment variables.

        Expected environment variables:
        - AWS_ACCESS_KEY_ID
        - AWS_SECRET_ACCESS_KEY
        - AWS_SESSION_TOKEN (optional)
        """
        access_key = os.getenv("AWS_ACCESS_KEY_ID")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        session_token = os.getenv("AWS_SESSION_TOKEN")

        if not access_key or not secret_key:
            raise ValueError(
                "Missing required environment variables. "
                "Please set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
            )

        return boto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            region_name=region,
        )
