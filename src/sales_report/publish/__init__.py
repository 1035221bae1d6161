"""
Publish Module

Naming and upload of rendered report artifacts.
"""

from .artifact_publisher import ArtifactPublisher, naming_epoch

__all__ = ["ArtifactPublisher", "naming_epoch"]
