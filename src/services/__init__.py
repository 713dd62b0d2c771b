"""Service layer for external integrations."""

from src.services.clickhouse_client import ClickHouseClient
from src.services.ollama_client import OllamaClient
from src.services.protocols import QueryExecutor, TextGenerator

__all__ = [
    "ClickHouseClient",
    "OllamaClient",
    "QueryExecutor",
    "TextGenerator",
]
