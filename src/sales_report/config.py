# src/sales_report/config.py
"""
Report Pipeline Configuration

Environment-driven settings for the monthly sales report, plus the
logging bootstrap shared by every entry point.
"""

import logging
import logging.config
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

PACKAGE_DIR = Path(__file__).resolve().parent
LOGGING_FILE = PACKAGE_DIR / "logging.yaml"

# Secret names resolved from the secret store
SQL_CONNECTION_SECRET = "SQLConnectionString"
STORAGE_CONNECTION_SECRET = "BlobStorageConnectionString"

# Report content
REPORT_TITLE = "Reporte de Ventas Mensuales"
REPORT_DESCRIPTION = "Este reporte muestra el total de ventas agrupadas por mes."
REPORT_COLUMNS = ("Year", "Month", "TotalSales")
DISPLAY_HEADERS = {
    "Year": "Año",
    "Month": "Mes",
    "TotalSales": "Total Ventas",
}

DEFAULT_CONTAINER = "reportes"
DEFAULT_BASE_NAME = "ReporteVentasMensuales"
DEFAULT_REGION = "us-east-1"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ReportConfig:
    """Runtime settings for one pipeline invocation"""

    key_vault_url: Optional[str] = None
    aws_region: str = DEFAULT_REGION
    container_name: str = DEFAULT_CONTAINER
    report_base_name: str = DEFAULT_BASE_NAME
    function_key: Optional[str] = None
    pdf_invariant: bool = False

    @classmethod
    def from_env(cls) -> "ReportConfig":
        """Create configuration from environment variables"""
        return cls(
            key_vault_url=os.getenv("KeyVaultUrl") or None,
            aws_region=os.getenv("AWS_REGION", DEFAULT_REGION),
            container_name=os.getenv("REPORT_CONTAINER", DEFAULT_CONTAINER),
            report_base_name=os.getenv("REPORT_BASE_NAME", DEFAULT_BASE_NAME),
            function_key=os.getenv("FUNCTION_KEY") or None,
            pdf_invariant=_env_flag("PDF_INVARIANT"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Loggable view; the function key is masked"""
        return {
            "key_vault_url": self.key_vault_url,
            "aws_region": self.aws_region,
            "container_name": self.container_name,
            "report_base_name": self.report_base_name,
            "function_key": "***" if self.function_key else None,
            "pdf_invariant": self.pdf_invariant,
        }


def load_logging_config() -> Dict[str, Any]:
    """Load logging configuration."""
    with open(LOGGING_FILE, "r") as f:
        return yaml.safe_load(f)


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the packaged logging config; LOG_LEVEL overrides the root level."""
    config = load_logging_config()
    level = level or os.getenv("LOG_LEVEL")
    if level:
        config.setdefault("root", {})["level"] = level.upper()
    logging.config.dictConfig(config)
