"""
Report pipeline error taxonomy.

Components raise these; the orchestrator catches them at its boundary and
keeps the kind on the result for logging and tests.
"""

from typing import Optional, Sequence


class ReportPipelineError(Exception):
    """Base class for every failure the pipeline knows how to classify"""

    kind = "pipeline"


class ConfigurationError(ReportPipelineError):
    """Missing or invalid endpoint, secret, or connection string"""

    kind = "configuration"


class QueryExecutionError(ReportPipelineError):
    """Data source unreachable or aggregation query rejected"""

    kind = "query"


class RenderError(ReportPipelineError):
    """Spreadsheet or document construction failed"""

    kind = "render"


class PublishError(ReportPipelineError):
    """Storage unreachable, container create or upload rejected"""

    kind = "publish"

    def __init__(self, message: str, uploaded: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.uploaded = list(uploaded or [])

    @property
    def is_partial(self) -> bool:
        return bool(self.uploaded)
