from __future__ import annotations

from .elasticsearch import (
    ElasticsearchBulkFormatter,
    ElasticsearchSink,
    ElasticsearchSinkConfig,
)
from .splunk import SplunkHecFormatter, SplunkSink, SplunkSinkConfig

__all__ = [
    "ElasticsearchBulkFormatter",
    "ElasticsearchSink",
    "ElasticsearchSinkConfig",
    "SplunkHecFormatter",
    "SplunkSink",
    "SplunkSinkConfig",
]
