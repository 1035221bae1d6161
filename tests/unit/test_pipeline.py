"""
End-to-end tests for the report pipeline with in-memory collaborators.
"""

import io
from decimal import Decimal
from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from openpyxl import load_workbook

from sales_report.config import ReportConfig
from sales_report.errors import ConfigurationError, QueryExecutionError, RenderError
from sales_report.pipeline import (
    MonthlySalesReportPipeline,
    PipelineStage,
    run_report_pipeline,
)
from sales_report.publish.artifact_publisher import ArtifactPublisher
from sales_report.render.document import DocumentRenderer
from sales_report.secrets import SecretResolver
from tests.conftest import FIXED_NOW, SAMPLE_DB_ROWS
from tests.helpers import FakeConnection, FakeCursor, FakeS3Client

XLSX_NAME = "ReporteVentasMensuales_20240305140709.xlsx"
PDF_NAME = "ReporteVentasMensuales_20240305140709.pdf"


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def connections():
    return []


@pytest.fixture
def make_pipeline(report_config, fake_secrets_client, s3, connections):
    def factory(rows=SAMPLE_DB_ROWS, cursor=None, **overrides):
        def connect(dsn):
            conn = FakeConnection(cursor or FakeCursor(rows))
            connections.append((dsn, conn))
            return conn

        kwargs = dict(
            secret_resolver=SecretResolver(
                report_config.key_vault_url, "us-east-1", client=fake_secrets_client
            ),
            connect=connect,
            publisher_factory=lambda cs: ArtifactPublisher(s3_client=s3),
            document_renderer=DocumentRenderer(invariant=True, page_compression=False),
            clock=lambda: FIXED_NOW,
        )
        kwargs.update(overrides)
        return MonthlySalesReportPipeline(report_config, **kwargs)

    return factory


class TestSuccessfulRun:
    def test_end_to_end(self, make_pipeline, s3, connections):
        result = make_pipeline().run()

        assert result.ok
        assert result.stage is PipelineStage.DONE
        assert result.artifact_names == (XLSX_NAME, PDF_NAME)
        assert result.row_count == 2
        assert s3.keys("reportes") == sorted([XLSX_NAME, PDF_NAME])
        # Connection opened with the resolved DSN and released
        assert connections[0][0] == "dbname=sales host=db user=report"
        assert connections[0][1].closed

    def test_spreadsheet_and_document_hold_same_rows(self, make_pipeline, s3):
        make_pipeline().run()

        ws = load_workbook(io.BytesIO(s3.objects[("reportes", XLSX_NAME)])).active
        sheet_rows = [list(r) for r in ws.iter_rows(values_only=True)]
        assert len(sheet_rows) == 3
        assert ws.cell(row=2, column=3).value == pytest.approx(1000.00)

        pdf = s3.objects[("reportes", PDF_NAME)]
        for year, month, total in SAMPLE_DB_ROWS:
            assert str(total).encode() in pdf
        assert [r[:2] for r in sheet_rows[1:]] == [[y, m] for y, m, _ in SAMPLE_DB_ROWS]

    def test_query_runs_once_for_both_renderers(self, make_pipeline, connections):
        make_pipeline().run()

        assert len(connections) == 1
        conn = connections[0][1]
        assert conn.cursor_calls == 1

    def test_renderers_receive_the_same_report(self, make_pipeline):
        seen = []

        class Recording:
            def __init__(self, inner):
                self.inner = inner

            def render(self, report):
                seen.append(report)
                return self.inner.render(report)

        pipeline = make_pipeline()
        pipeline.spreadsheet_renderer = Recording(pipeline.spreadsheet_renderer)
        pipeline.document_renderer = Recording(pipeline.document_renderer)

        assert pipeline.run().ok
        assert len(seen) == 2
        assert seen[0] is seen[1]

    def test_empty_result_still_publishes(self, make_pipeline, s3):
        result = make_pipeline(rows=[]).run()

        assert result.ok
        assert result.row_count == 0
        ws = load_workbook(io.BytesIO(s3.objects[("reportes", XLSX_NAME)])).active
        assert [list(r) for r in ws.iter_rows(values_only=True)] == [["Año", "Mes", "Total Ventas"]]

    def test_artifact_streams_are_closed(self, make_pipeline):
        captured = []

        class Publisher:
            def publish(self, artifacts, epoch):
                captured.extend(artifacts)
                return ("a.xlsx", "a.pdf")

        make_pipeline(publisher_factory=lambda cs: Publisher()).run()

        assert len(captured) == 2
        assert all(a.stream.closed for a in captured)


class TestFailures:
    def test_missing_endpoint_fails_before_any_side_effect(self):
        connect = MagicMock()
        publisher_factory = MagicMock()
        pipeline = MonthlySalesReportPipeline(
            ReportConfig(key_vault_url=None),
            connect=connect,
            publisher_factory=publisher_factory,
        )

        result = pipeline.run()

        assert not result.ok
        assert isinstance(result.error, ConfigurationError)
        assert result.error_kind == "configuration"
        assert result.failed_stage is PipelineStage.CONFIGURED
        connect.assert_not_called()
        publisher_factory.assert_not_called()

    def test_query_failure(self, make_pipeline, s3, connections):
        cursor = FakeCursor([], execute_error=psycopg2.ProgrammingError("bad query"))
        result = make_pipeline(cursor=cursor).run()

        assert not result.ok
        assert result.error_kind == "query"
        assert result.failed_stage is PipelineStage.QUERY_EXECUTED
        assert connections[0][1].closed
        assert s3.objects == {}

    def test_connection_failure(self, make_pipeline, s3):
        def refuse(dsn):
            raise QueryExecutionError("could not connect")

        result = make_pipeline(connect=refuse).run()

        assert result.error_kind == "query"
        assert s3.objects == {}

    def test_render_failure(self, make_pipeline, s3):
        renderer = MagicMock()
        renderer.render.side_effect = RenderError("font missing")

        result = make_pipeline(document_renderer=renderer).run()

        assert result.error_kind == "render"
        assert result.failed_stage is PipelineStage.DOCUMENT_RENDERED
        assert s3.objects == {}

    def test_partial_publish_is_failure(self, make_pipeline):
        s3 = FakeS3Client(fail_keys={PDF_NAME})
        result = make_pipeline(publisher_factory=lambda cs: ArtifactPublisher(s3_client=s3)).run()

        assert not result.ok
        assert result.error_kind == "publish"
        assert result.failed_stage is PipelineStage.PUBLISHED
        assert result.uploaded == [XLSX_NAME]
        assert s3.keys("reportes") == [XLSX_NAME]

    def test_unexpected_error_is_contained(self, make_pipeline):
        renderer = MagicMock()
        renderer.render.side_effect = ZeroDivisionError("boom")

        result = make_pipeline(spreadsheet_renderer=renderer).run()

        assert not result.ok
        assert result.error_kind == "unexpected"
        assert result.failed_stage is PipelineStage.SPREADSHEET_RENDERED

    def test_result_to_dict(self, make_pipeline):
        cursor = FakeCursor([], execute_error=psycopg2.ProgrammingError("bad query"))
        data = make_pipeline(cursor=cursor).run().to_dict()

        assert data["status"] == "failed"
        assert data["failed_stage"] == "query_executed"
        assert data["error_kind"] == "query"
        assert data["artifact_names"] == []


@patch("sales_report.pipeline.MonthlySalesReportPipeline")
def test_run_report_pipeline_reads_env(mock_pipeline, monkeypatch):
    monkeypatch.setenv("KeyVaultUrl", "https://secrets.example.test")

    run_report_pipeline()

    config = mock_pipeline.call_args[0][0]
    assert config.key_vault_url == "https://secrets.example.test"
    mock_pipeline.return_value.run.assert_called_once_with()


def test_totals_are_decimal_through_pipeline(make_pipeline):
    seen = []

    class Recording:
        def render(self, report):
            seen.extend(r.total_amount for r in report.iter_rows())
            return DocumentRenderer(invariant=True).render(report)

    make_pipeline(document_renderer=Recording()).run()
    assert seen == [Decimal("1000.00"), Decimal("1500.50")]
