"""
QuerySmith - OpenSearch Client
Low-level OpenSearch operations
"""

from typing import Any, Dict, Optional

from opensearchpy import OpenSearch
from opensearchpy.exceptions import NotFoundError, TransportError

from ..core.config import settings
from ..core.dataset import SearchBackend
from ..core.errors import OpenSearchError, QueryFailedError, RecordNotFoundError
from ..core.logging import get_logger

logger = get_logger(__name__)


def _error_body(e: TransportError) -> Any:
    """Engine error body, or its message when the transport failed before a response."""
    if isinstance(e.info, (dict, list, str)):
        return e.info
    return str(e.error) if e.error else str(e.info)


class OpenSearchClient(SearchBackend):
    """OpenSearch client wrapper."""

    _instance: Optional["OpenSearchClient"] = None

    def __init__(self):
        """Initialize OpenSearch client."""
        # Parse host URL
        host = settings.OPENSEARCH_HOST
        if host.startswith("http://"):
            host = host[7:]
            use_ssl = False
        elif host.startswith("https://"):
            host = host[8:]
            use_ssl = True
        else:
            use_ssl = False

        # Handle port in host
        if ":" in host:
            host_part, port_part = host.rsplit(":", 1)
            port = int(port_part)
            host = host_part
        else:
            port = 9200

        # Build auth if provided
        http_auth = None
        if settings.OPENSEARCH_USERNAME and settings.OPENSEARCH_PASSWORD:
            http_auth = (settings.OPENSEARCH_USERNAME, settings.OPENSEARCH_PASSWORD)

        self._client = OpenSearch(
            hosts=[{"host": host, "port": port}],
            http_auth=http_auth,
            use_ssl=use_ssl,
            verify_certs=settings.OPENSEARCH_VERIFY_SSL,
            ssl_show_warn=False,
        )

    @classmethod
    def get_instance(cls) -> "OpenSearchClient":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def search(self, index_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute a search query.

        Args:
            index_name: Index to search
            body: Search body

        Returns:
            Raw OpenSearch response

        Raises:
            QueryFailedError: With the engine's status and body if the search fails
        """
        try:
            return self._client.search(index=index_name, body=body)
        except TransportError as e:
            logger.error(f"Search failed on {index_name}: {e.status_code} {e.error}")
            raise QueryFailedError(status=e.status_code, body=_error_body(e))

    def get_mapping(self, index_name: str) -> Dict[str, Any]:
        """
        Get index mapping.

        Raises:
            OpenSearchError: If operation fails
        """
        try:
            return self._client.indices.get_mapping(index=index_name)
        except TransportError as e:
            logger.error(f"Get mapping failed for {index_name}: {str(e)}")
            raise OpenSearchError(f"Failed to get mapping: {str(e)}")

    def get_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        """
        Get one document by id.

        Raises:
            RecordNotFoundError: If no such document exists
            OpenSearchError: If operation fails
        """
        try:
            return self._client.get(index=index_name, id=doc_id)
        except NotFoundError:
            raise RecordNotFoundError(index_name, doc_id)
        except TransportError as e:
            logger.error(f"Get {doc_id} failed on {index_name}: {str(e)}")
            raise OpenSearchError(f"Failed to get document: {str(e)}")

    def index_document(
        self, index_name: str, doc: Dict[str, Any], doc_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create or replace a document. Without doc_id the engine assigns one.

        Raises:
            OpenSearchError: If operation fails
        """
        try:
            return self._client.index(index=index_name, body=doc, id=doc_id, refresh=True)
        except TransportError as e:
            logger.error(f"Index failed on {index_name}: {str(e)}")
            raise OpenSearchError(f"Failed to index document: {str(e)}")

    def update_document(
        self, index_name: str, doc_id: str, doc: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Partially update a document.

        Raises:
            RecordNotFoundError: If no such document exists
            OpenSearchError: If operation fails
        """
        try:
            return self._client.update(
                index=index_name, id=doc_id, body={"doc": doc}, refresh=True
            )
        except NotFoundError:
            raise RecordNotFoundError(index_name, doc_id)
        except TransportError as e:
            logger.error(f"Update {doc_id} failed on {index_name}: {str(e)}")
            raise OpenSearchError(f"Failed to update document: {str(e)}")

    def delete_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        """
        Delete a document.

        Raises:
            RecordNotFoundError: If no such document exists
            OpenSearchError: If operation fails
        """
        try:
            return self._client.delete(index=index_name, id=doc_id, refresh=True)
        except NotFoundError:
            raise RecordNotFoundError(index_name, doc_id)
        except TransportError as e:
            logger.error(f"Delete {doc_id} failed on {index_name}: {str(e)}")
            raise OpenSearchError(f"Failed to delete document: {str(e)}")


def get_opensearch_client() -> OpenSearchClient:
    """Get OpenSearch client singleton."""
    return OpenSearchClient.get_instance()
