"""REST client for the Nestbox admin API.

Every failed call surfaces as one of the tagged errors in
``nestbox.exceptions``: ``AuthExpiredError`` for 401 responses,
``RemoteNotFoundError`` for 404 responses and ``RemoteError`` for
everything else, including transport failures.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from nestbox.exceptions import AuthExpiredError, RemoteError, RemoteNotFoundError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail") or body.get("error")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


class AdminApiClient:
    """HTTP client for the Nestbox admin API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            base_url: The API server URL.
            token: Session token sent in the Authorization header.
            timeout: Request timeout in seconds.
            transport: Optional transport, used by tests.
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": token} if token else {}
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> AdminApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def set_token(self, token: str) -> None:
        """Send ``token`` on all subsequent requests."""
        self.client.headers["Authorization"] = token

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body.

        Returns:
            Decoded JSON, or None for empty bodies.

        Raises:
            AuthExpiredError: On 401.
            RemoteNotFoundError: On 404.
            RemoteError: On any other failure.
        """
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("Request failed", method=method, url=url, error=str(e))
            raise RemoteError(f"Request to {url} failed: {e}") from e

        logger.debug("API response", method=method, url=url, status=response.status_code)

        if response.status_code == 401:
            raise AuthExpiredError()
        if response.status_code == 404:
            raise RemoteNotFoundError(_error_message(response))
        if response.is_error:
            raise RemoteError(_error_message(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # ========================================================================
    # Auth Endpoints
    # ========================================================================

    async def oauth_login(
        self,
        provider_id: str,
        email: str,
        type: str = "GOOGLE",
        profile_picture_url: str = "",
    ) -> dict:
        """Exchange an OAuth provider token for a session token.

        Args:
            provider_id: Token issued by the OAuth provider
            email: Account email
            type: OAuth provider type
            profile_picture_url: Optional avatar URL

        Returns:
            Login response containing ``token``.
        """
        data = {
            "providerId": provider_id,
            "type": type,
            "email": email,
            "profilePictureUrl": profile_picture_url,
        }
        return await self._request("POST", "/auth/oauth/login", json=data)

    async def get_current_user(self) -> dict:
        """Get the user the session token belongs to."""
        return await self._request("GET", "/user/me")

    # ========================================================================
    # Project Endpoints
    # ========================================================================

    async def list_projects(self) -> list[dict]:
        """List all projects visible to the user.

        Returns:
            Project records with at least ``id`` and ``name``.
        """
        body = await self._request("GET", "/projects")
        data = (body or {}).get("data") or {}
        return list(data.get("projects") or [])

    # ========================================================================
    # Image Endpoints
    # ========================================================================

    async def list_images(self) -> list[dict]:
        """List machine images available for compute instances."""
        body = await self._request("GET", "/miscellaneous/data")
        return list(body or [])

    # ========================================================================
    # Instance Endpoints
    # ========================================================================

    async def list_instances(self, project_id: str, page: int = 0, limit: int = 10) -> list[dict]:
        """List compute instances in a project.

        Args:
            project_id: Project ID
            page: Page number, starting at 0
            limit: Page size
        """
        body = await self._request(
            "GET",
            f"/projects/{project_id}/instances",
            params={"page": page, "limit": limit},
        )
        return list((body or {}).get("machineInstances") or [])

    async def create_instance(self, project_id: str, payload: dict[str, Any]) -> dict:
        """Create a compute instance.

        Args:
            project_id: Project ID
            payload: Instance parameters (machine, name, provisioning params)
        """
        return await self._request("POST", f"/projects/{project_id}/instances", json=payload)

    async def delete_instances(self, project_id: str, ids: list[str]) -> None:
        """Delete compute instances by ID."""
        await self._request("DELETE", f"/projects/{project_id}/instances", json={"ids": ids})

    # ========================================================================
    # Collection Endpoints
    # ========================================================================

    def _collections_path(self, project_id: str, instance_id: str) -> str:
        return f"/projects/{project_id}/instances/{instance_id}/documents/collections"

    async def list_collections(self, project_id: str, instance_id: str) -> list[Any]:
        """List document collections on an instance."""
        body = await self._request("GET", self._collections_path(project_id, instance_id))
        collections = (body or {}).get("collections") if isinstance(body, dict) else None
        return collections if isinstance(collections, list) else []

    async def get_collection(self, project_id: str, instance_id: str, collection_id: str) -> dict:
        """Get document collection details."""
        return await self._request(
            "GET", f"{self._collections_path(project_id, instance_id)}/{collection_id}"
        )

    async def update_collection(
        self,
        project_id: str,
        instance_id: str,
        collection_id: str,
        name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict:
        """Update a document collection's name or metadata."""
        data: dict[str, Any] = {}
        if name:
            data["name"] = name
        if metadata:
            data["metadata"] = metadata
        return await self._request(
            "PUT",
            f"{self._collections_path(project_id, instance_id)}/{collection_id}",
            json=data,
        )

    async def delete_collection(self, project_id: str, instance_id: str, collection_id: str) -> None:
        """Delete a document collection."""
        await self._request(
            "DELETE", f"{self._collections_path(project_id, instance_id)}/{collection_id}"
        )

    # ========================================================================
    # Document Endpoints
    # ========================================================================

    def _docs_path(self, project_id: str, instance_id: str, collection_id: str) -> str:
        return f"{self._collections_path(project_id, instance_id)}/{collection_id}/docs"

    async def add_document(
        self,
        project_id: str,
        instance_id: str,
        collection_id: str,
        doc_id: str,
        document: Any,
        metadata: dict[str, Any] | None = None,
    ) -> dict:
        """Add a document to a collection."""
        data = {"id": doc_id, "document": document, "metadata": metadata or {}}
        return await self._request(
            "POST", self._docs_path(project_id, instance_id, collection_id), json=data
        )

    async def get_document(
        self, project_id: str, instance_id: str, collection_id: str, doc_id: str
    ) -> dict:
        """Get a document by ID."""
        return await self._request(
            "GET", f"{self._docs_path(project_id, instance_id, collection_id)}/{doc_id}"
        )

    async def update_document(
        self,
        project_id: str,
        instance_id: str,
        collection_id: str,
        doc_id: str,
        document: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict:
        """Replace a document's content and metadata."""
        data = {"document": document, "metadata": metadata or {}}
        return await self._request(
            "PUT",
            f"{self._docs_path(project_id, instance_id, collection_id)}/{doc_id}",
            json=data,
        )

    async def delete_document(
        self, project_id: str, instance_id: str, collection_id: str, doc_id: str
    ) -> None:
        """Delete a document by ID."""
        await self._request(
            "DELETE", f"{self._docs_path(project_id, instance_id, collection_id)}/{doc_id}"
        )

    async def search_documents(
        self,
        project_id: str,
        instance_id: str,
        collection_id: str,
        query: str,
        filter: dict[str, Any] | None = None,
    ) -> Any:
        """Run a similarity search over a collection."""
        data = {
            "query": query,
            "params": {},
            "filter": filter or {},
            "include": ["embedding"],
        }
        return await self._request(
            "POST",
            f"{self._docs_path(project_id, instance_id, collection_id)}/search",
            json=data,
        )

    async def add_documents_from_file(
        self,
        project_id: str,
        instance_id: str,
        collection_id: str,
        url: str,
        file_type: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Have the server fetch and chunk a file into documents.

        Args:
            url: File location the server can read
            file_type: File type such as pdf, txt or doc
            options: Chunking options
        """
        data = {"type": file_type, "url": url, "options": options or {}}
        return await self._request(
            "POST",
            f"{self._docs_path(project_id, instance_id, collection_id)}/file",
            json=data,
        )
