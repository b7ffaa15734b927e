"""Elasticsearch storage client and its session decorators."""

from .decorators import ClientCustomizer, compose, logging_decorator, raw_content_decorator
from .elasticsearch import CheckResult, ElasticsearchStorage, StorageBuilder

__all__ = [
    "CheckResult",
    "ClientCustomizer",
    "ElasticsearchStorage",
    "StorageBuilder",
    "compose",
    "logging_decorator",
    "raw_content_decorator",
]
