#!/usr/bin/env python3
from contextlib import closing
import logging

from dotenv import load_dotenv

from ..config import ReportConfig, configure_logging
from ..etl.extract_funcs import get_sql_conn
from ..publish.artifact_publisher import ArtifactPublisher
from ..secrets import SecretResolver

logger = logging.getLogger(__name__)


def main():
    # Load environment variables from .env
    load_dotenv()
    configure_logging()
    config = ReportConfig.from_env()

    # Secret store check; raises ConfigurationError when KeyVaultUrl is unset
    resolver = SecretResolver.from_config(config)
    secrets = resolver.resolve_pipeline_secrets()
    logger.info(f"Successfully read both secrets from {config.key_vault_url}.")

    # Database connectivity check
    try:
        with closing(get_sql_conn(secrets.sql_connection_string)):
            pass
        logger.info("Successfully connected to the sales database.")
    except Exception as e:
        logger.error(f"Failed to connect to the sales database: {e}")
        raise

    # Object storage check
    try:
        publisher = ArtifactPublisher.from_connection_string(
            secrets.storage_connection_string,
            bucket_name=config.container_name,
            base_name=config.report_base_name,
            default_region=config.aws_region,
        )
        publisher.ensure_container()
        logger.info(f"Successfully accessed container '{config.container_name}'.")
    except Exception as e:
        logger.error(f"Failed to access container '{config.container_name}': {e}")
        raise

    logger.info("Preflight check passed: secrets, database and storage are reachable.")


if __name__ == "__main__":
    main()
