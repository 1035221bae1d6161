"""
Report Artifact Publisher
Names rendered report artifacts with a shared run timestamp and uploads them
to the report container in object storage.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DEFAULT_BASE_NAME, DEFAULT_CONTAINER, DEFAULT_REGION
from ..errors import PublishError
from ..models import RenderedArtifact
from ..secrets import parse_storage_connection_string

logger = logging.getLogger(__name__)

EPOCH_FORMAT = "%Y%m%d%H%M%S"
MISSING_BUCKET_CODES = ("404", "NoSuchBucket", "NotFound")


def naming_epoch(now: Optional[datetime] = None) -> str:
    """Second-resolution timestamp shared by every artifact of one run"""
    now = now or datetime.now(timezone.utc)
    return now.strftime(EPOCH_FORMAT)


class ArtifactPublisher:
    """
    Uploads report artifacts to one container with overwrite semantics.
    The container is created on first use if it does not exist.
    """

    def __init__(
        self,
        bucket_name: str = DEFAULT_CONTAINER,
        s3_client=None,
        aws_region: str = DEFAULT_REGION,
        base_name: str = DEFAULT_BASE_NAME,
    ):
        """Initialize report artifact publisher"""
        self.bucket_name = bucket_name
        self.aws_region = aws_region
        self.base_name = base_name
        self.s3_client = s3_client or boto3.client("s3", region_name=aws_region)

        logger.info(f"Artifact publisher initialized for container: {bucket_name}")

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        bucket_name: str = DEFAULT_CONTAINER,
        base_name: str = DEFAULT_BASE_NAME,
        default_region: str = DEFAULT_REGION,
    ) -> "ArtifactPublisher":
        client_kwargs = parse_storage_connection_string(connection_string, default_region)
        s3_client = boto3.client("s3", **client_kwargs)
        return cls(
            bucket_name=bucket_name,
            s3_client=s3_client,
            aws_region=client_kwargs.get("region_name", default_region),
            base_name=base_name,
        )

    def _bucket_exists(self) -> bool:
        """Check if the report container already exists"""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in MISSING_BUCKET_CODES:
                return False
            raise

    def ensure_container(self) -> None:
        """Create the report container if absent (idempotent)"""
        try:
            if self._bucket_exists():
                logger.info(f"Container {self.bucket_name} verified")
                return

            create_args = {"Bucket": self.bucket_name}
            if self.aws_region and self.aws_region != "us-east-1":
                create_args["CreateBucketConfiguration"] = {
                    "LocationConstraint": self.aws_region
                }
            try:
                self.s3_client.create_bucket(**create_args)
            except ClientError as e:
                # Another run may have created it in the meantime
                if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
                    raise
            logger.info(f"Container {self.bucket_name} created")
        except (BotoCoreError, ClientError) as e:
            raise PublishError(
                f"Could not verify or create container {self.bucket_name}: {e}"
            ) from e

    def artifact_name(self, artifact: RenderedArtifact, epoch: str) -> str:
        return artifact.suggested_name(self.base_name, epoch)

    def publish(self, artifacts: Sequence[RenderedArtifact], epoch: str) -> Tuple[str, ...]:
        """
        Upload each artifact as ``<base>_<epoch>.<ext>``, in order.

        Args:
            artifacts: Rendered payloads, uploaded in the given order
            epoch: Run timestamp from naming_epoch()

        Returns:
            Tuple of uploaded object names, same order as artifacts

        Raises:
            PublishError: on any storage failure; ``uploaded`` lists the
                names already written. Nothing is rolled back.
        """
        self.ensure_container()

        uploaded = []
        for artifact in artifacts:
            name = self.artifact_name(artifact, epoch)
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=name,
                    Body=artifact.getvalue(),
                    ContentType=artifact.kind.content_type,
                )
            except (BotoCoreError, ClientError) as e:
                if uploaded:
                    message = (
                        f"Upload of {name} failed after {', '.join(uploaded)} "
                        f"was uploaded: {e}"
                    )
                else:
                    message = f"Upload of {name} failed: {e}"
                raise PublishError(message, uploaded=uploaded) from e

            uploaded.append(name)
            logger.info(f"Uploaded {name} to {self.bucket_name}")

        return tuple(uploaded)
