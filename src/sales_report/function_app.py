"""
HTTP trigger for the monthly sales report.

GET or POST ``/api/GenerarReporteVentas`` with the function key runs the
pipeline once. The response only says success (200, names both files) or
failure (500, empty body); error detail goes to the log.
"""

import hmac
import logging
from typing import Callable, Optional

from dotenv import load_dotenv
from flask import Flask, Response, request

from .config import ReportConfig, configure_logging
from .pipeline import MonthlySalesReportPipeline, PipelineResult

logger = logging.getLogger(__name__)

FUNCTION_ROUTE = "/api/GenerarReporteVentas"


def _authorized(expected_key: Optional[str]) -> bool:
    if not expected_key:
        logger.error("FUNCTION_KEY is not configured; rejecting request")
        return False
    supplied = request.headers.get("x-functions-key") or request.args.get("code") or ""
    return hmac.compare_digest(supplied.encode(), expected_key.encode())


def create_app(
    config: Optional[ReportConfig] = None,
    pipeline_factory: Optional[Callable[[ReportConfig], MonthlySalesReportPipeline]] = None,
) -> Flask:
    """Build the Flask app; configuration is read from the environment when omitted."""
    if config is None:
        load_dotenv()
        configure_logging()
        config = ReportConfig.from_env()
    pipeline_factory = pipeline_factory or MonthlySalesReportPipeline

    app = Flask(__name__)

    @app.route(FUNCTION_ROUTE, methods=["GET", "POST"])
    def generate_sales_report():
        if not _authorized(config.function_key):
            return Response(status=401)

        logger.info("Monthly sales report requested")
        result: PipelineResult = pipeline_factory(config).run()
        if not result.ok:
            return Response(status=500)

        body = "Archivos subidos exitosamente: " + ", ".join(result.artifact_names)
        return Response(body, status=200, mimetype="text/plain")

    return app
