"""Backend client: the bulk-indexing capability the sender talks to."""

import logging
from typing import Mapping, Protocol

from elasticsearch import Elasticsearch

logger = logging.getLogger(__name__)


class BulkClient(Protocol):
    """Anything that can execute a bulk request.

    ``operations`` alternates JSON-encoded action and body lines. The return
    value is the decoded bulk response.
    """

    def bulk(self, operations: list[str]) -> Mapping: ...


class ElasticsearchBulkClient:
    """BulkClient backed by the official Elasticsearch client."""

    def __init__(self, host: str, request_timeout: float = 10.0):
        self._host = host
        self._es = Elasticsearch(host, request_timeout=request_timeout)
        logger.info("Elasticsearch client configured for %s", host)

    def bulk(self, operations: list[str]) -> Mapping:
        response = self._es.bulk(operations=operations)
        return getattr(response, "body", response)

    def close(self):
        """Release the client's connection pool."""
        self._es.close()
        logger.debug("Elasticsearch client for %s closed", self._host)
