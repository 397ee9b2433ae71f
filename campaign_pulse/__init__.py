"""Delivery analytics for advertising campaigns."""

from .analytics import AnalyticalEngine
from .ingestion import DataIngestionPipeline
from .services import DashboardService
from .settings import EngineSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "AnalyticalEngine",
    "DashboardService",
    "DataIngestionPipeline",
    "EngineSettings",
    "load_settings",
]
