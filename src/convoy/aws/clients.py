"""boto3 client construction from engine settings."""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from convoy.core.config import Settings


class AwsClientFactory:
    """Creates boto3 clients for the configured region and credentials.

    A fresh client is returned on every call; conventions take the factory
    rather than a client so tests can swap it for a fake.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._config = Config(
            region_name=self.settings.aws_region,
            retries={"max_attempts": 5, "mode": "standard"},
            user_agent_extra="convoy",
        )

    @property
    def region(self) -> str:
        return self.settings.aws_region

    def _client(self, service: str, endpoint_url: Optional[str]) -> Any:
        kwargs = {"config": self._config}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if self.settings.aws_access_key_id and self.settings.aws_secret_access_key:
            kwargs["aws_access_key_id"] = self.settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = self.settings.aws_secret_access_key
            if self.settings.aws_session_token:
                kwargs["aws_session_token"] = self.settings.aws_session_token
        return boto3.client(service, **kwargs)

    def cloudformation(self) -> Any:
        return self._client("cloudformation", self.settings.cloudformation_endpoint_url)

    def s3(self) -> Any:
        return self._client("s3", self.settings.s3_endpoint_url)
