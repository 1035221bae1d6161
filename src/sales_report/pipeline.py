"""
Monthly Sales Report Pipeline

Runs one report end to end:

    start -> configured -> query_executed -> materialized
          -> spreadsheet_rendered -> document_rendered -> published -> done

Any failing step ends the run in ``failed``. There are no retries; the
error is logged with the step that failed and returned on the result.
"""

import logging
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import ReportConfig
from .errors import ReportPipelineError
from .etl.extract_funcs import execute_monthly_sales_query, get_sql_conn
from .etl.transform_funcs import build_tabular_report
from .models import RenderedArtifact, TabularReport
from .publish.artifact_publisher import ArtifactPublisher, naming_epoch
from .render.document import DocumentRenderer
from .render.spreadsheet import SpreadsheetRenderer
from .secrets import PipelineSecrets, SecretResolver

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    START = "start"
    CONFIGURED = "configured"
    QUERY_EXECUTED = "query_executed"
    MATERIALIZED = "materialized"
    SPREADSHEET_RENDERED = "spreadsheet_rendered"
    DOCUMENT_RENDERED = "document_rendered"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


STAGE_ORDER = [
    PipelineStage.START,
    PipelineStage.CONFIGURED,
    PipelineStage.QUERY_EXECUTED,
    PipelineStage.MATERIALIZED,
    PipelineStage.SPREADSHEET_RENDERED,
    PipelineStage.DOCUMENT_RENDERED,
    PipelineStage.PUBLISHED,
    PipelineStage.DONE,
]


@dataclass
class PipelineResult:
    """Terminal value of a run: artifact names on success, the error otherwise"""

    status: str
    stage: PipelineStage
    artifact_names: Tuple[str, ...] = ()
    failed_stage: Optional[PipelineStage] = None
    error: Optional[BaseException] = None
    row_count: int = 0
    uploaded: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def error_kind(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "kind", "unexpected")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "stage": self.stage.value,
            "artifact_names": list(self.artifact_names),
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error_kind": self.error_kind,
            "error": str(self.error) if self.error else None,
            "row_count": self.row_count,
            "uploaded": self.uploaded,
        }


class MonthlySalesReportPipeline:
    """
    Straight-line orchestrator for the monthly sales report.

    Collaborators are injectable so each step can be replaced in tests; the
    defaults talk to the secret store, PostgreSQL and S3.
    """

    def __init__(
        self,
        config: ReportConfig,
        secret_resolver: Optional[SecretResolver] = None,
        connect: Callable[[str], Any] = get_sql_conn,
        publisher_factory: Optional[Callable[[str], ArtifactPublisher]] = None,
        spreadsheet_renderer: Optional[SpreadsheetRenderer] = None,
        document_renderer: Optional[DocumentRenderer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.secret_resolver = secret_resolver
        self.connect = connect
        self.publisher_factory = publisher_factory or self._default_publisher
        self.spreadsheet_renderer = spreadsheet_renderer or SpreadsheetRenderer()
        self.document_renderer = document_renderer or DocumentRenderer(
            invariant=config.pdf_invariant
        )
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.stage = PipelineStage.START

    def _default_publisher(self, connection_string: str) -> ArtifactPublisher:
        return ArtifactPublisher.from_connection_string(
            connection_string,
            bucket_name=self.config.container_name,
            base_name=self.config.report_base_name,
            default_region=self.config.aws_region,
        )

    def _advance(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.info(f"Report pipeline stage: {stage.value}")

    def _next_stage(self) -> PipelineStage:
        return STAGE_ORDER[STAGE_ORDER.index(self.stage) + 1]

    def _resolve_secrets(self) -> PipelineSecrets:
        resolver = self.secret_resolver or SecretResolver.from_config(self.config)
        secrets = resolver.resolve_pipeline_secrets()
        self._advance(PipelineStage.CONFIGURED)
        return secrets

    def _materialize(self, dsn: str) -> TabularReport:
        # The connection is released before rendering starts
        with closing(self.connect(dsn)) as conn:
            rows = execute_monthly_sales_query(conn)
            self._advance(PipelineStage.QUERY_EXECUTED)
            report = build_tabular_report(rows)
        logger.info(f"Report dataset: {len(report)} groups, grand total {report.grand_total()}")
        self._advance(PipelineStage.MATERIALIZED)
        return report

    def _fail(self, error: BaseException, row_count: int, uploaded: List[str]) -> PipelineResult:
        failed_stage = self._next_stage()
        kind = getattr(error, "kind", "unexpected")
        logger.error(
            f"Report pipeline failed during {failed_stage.value} "
            f"(last completed: {self.stage.value}) [{kind}]: {error}"
        )
        self.stage = PipelineStage.FAILED
        return PipelineResult(
            status="failed",
            stage=PipelineStage.FAILED,
            failed_stage=failed_stage,
            error=error,
            row_count=row_count,
            uploaded=uploaded,
        )

    def run(self) -> PipelineResult:
        """Execute every step once, in order; never raises."""
        logger.info("Starting monthly sales report generation")
        self.stage = PipelineStage.START
        artifacts: List[RenderedArtifact] = []
        row_count = 0

        try:
            secrets = self._resolve_secrets()
            report = self._materialize(secrets.sql_connection_string)
            row_count = len(report)

            artifacts.append(self.spreadsheet_renderer.render(report))
            self._advance(PipelineStage.SPREADSHEET_RENDERED)

            artifacts.append(self.document_renderer.render(report))
            self._advance(PipelineStage.DOCUMENT_RENDERED)

            epoch = naming_epoch(self.clock())
            publisher = self.publisher_factory(secrets.storage_connection_string)
            names = publisher.publish(artifacts, epoch)
            self._advance(PipelineStage.PUBLISHED)
        except ReportPipelineError as e:
            return self._fail(e, row_count, list(getattr(e, "uploaded", [])))
        except Exception as e:
            logger.exception("Unexpected error while generating the sales report")
            return self._fail(e, row_count, [])
        finally:
            for artifact in artifacts:
                artifact.close()

        self._advance(PipelineStage.DONE)
        return PipelineResult(
            status="success",
            stage=PipelineStage.DONE,
            artifact_names=names,
            row_count=row_count,
            uploaded=list(names),
        )


def run_report_pipeline(config: Optional[ReportConfig] = None) -> PipelineResult:
    """Run the pipeline with configuration read from the environment."""
    config = config or ReportConfig.from_env()
    return MonthlySalesReportPipeline(config).run()
