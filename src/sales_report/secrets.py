"""
Secret Store Access

Resolves the pipeline's connection strings from the secret store reachable
at the configured ``KeyVaultUrl`` endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import (
    SQL_CONNECTION_SECRET,
    STORAGE_CONNECTION_SECRET,
    ReportConfig,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Connection string key -> boto3.client keyword
STORAGE_KEYS = {
    "endpointurl": "endpoint_url",
    "accesskeyid": "aws_access_key_id",
    "secretaccesskey": "aws_secret_access_key",
    "region": "region_name",
}


@dataclass(frozen=True)
class PipelineSecrets:
    sql_connection_string: str
    storage_connection_string: str

    def __repr__(self) -> str:
        return "PipelineSecrets(<redacted>)"


class SecretResolver:
    """Reads named secrets from the secret store endpoint"""

    def __init__(self, key_vault_url: str, aws_region: str, client=None):
        if not key_vault_url:
            raise ConfigurationError("KeyVaultUrl is not configured or is empty")
        self.key_vault_url = key_vault_url
        self.client = client or boto3.client(
            "secretsmanager", endpoint_url=key_vault_url, region_name=aws_region
        )

    @classmethod
    def from_config(cls, config: ReportConfig) -> "SecretResolver":
        return cls(config.key_vault_url, config.aws_region)

    def get_secret(self, name: str) -> str:
        try:
            response = self.client.get_secret_value(SecretId=name)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise ConfigurationError(
                f"Secret '{name}' could not be read ({code})"
            ) from e
        except BotoCoreError as e:
            raise ConfigurationError(
                f"Secret store at {self.key_vault_url} is unreachable: {e}"
            ) from e

        value = response.get("SecretString")
        if not value:
            raise ConfigurationError(f"Secret '{name}' is empty")
        return value

    def resolve_pipeline_secrets(self) -> PipelineSecrets:
        secrets = PipelineSecrets(
            sql_connection_string=self.get_secret(SQL_CONNECTION_SECRET),
            storage_connection_string=self.get_secret(STORAGE_CONNECTION_SECRET),
        )
        logger.info("Secrets resolved from secret store")
        return secrets


def parse_storage_connection_string(
    connection_string: str, default_region: Optional[str] = None
) -> Dict[str, Any]:
    """
    Turn ``EndpointUrl=...;AccessKeyId=...;SecretAccessKey=...;Region=...``
    into keyword arguments for ``boto3.client("s3", ...)``.

    Every key is optional; missing credentials fall back to the default
    boto3 credential chain.
    """
    kwargs: Dict[str, Any] = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        if "=" not in segment:
            raise ConfigurationError(
                "Malformed storage connection string segment (expected Key=Value)"
            )
        key, value = segment.split("=", 1)
        target = STORAGE_KEYS.get(key.strip().lower())
        if target is None:
            raise ConfigurationError(
                f"Unknown storage connection string key: {key.strip()}"
            )
        if value.strip():
            kwargs[target] = value.strip()

    if "region_name" not in kwargs and default_region:
        kwargs["region_name"] = default_region
    return kwargs
