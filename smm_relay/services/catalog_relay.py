"""
Service catalog relay.

Forwards catalog requests to the SMM panel with the server-held credentials
injected into every outbound body.
"""

from typing import Any, Mapping, Optional, Tuple

import structlog

from smm_relay.config import UpstreamCredentials
from smm_relay.errors import UpstreamNotConfiguredError
from smm_relay.services.upstream import UpstreamClient

logger = structlog.get_logger(__name__)

UPSTREAM_NAME = "medanpedia"
CATALOG_ERROR_MESSAGE = "Failed to call Medanpedia API"


def build_catalog_payload(
    credentials: UpstreamCredentials,
    client_body: Optional[Mapping[str, Any]] = None,
) -> dict:
    """
    Build the outbound catalog body.

    The caller payload is copied first and the credential fields are written
    over it, so a caller-supplied api_id or api_key never reaches the panel.

    Args:
        credentials: Server-held panel credentials
        client_body: Caller payload (optional)

    Returns:
        New dict safe to send upstream
    """
    payload = dict(client_body or {})
    payload.update(credentials.as_payload())
    return payload


class CatalogRelay:
    """Relay for the SMM panel services endpoint."""

    def __init__(
        self,
        client: UpstreamClient,
        endpoint: str,
        credentials: Optional[UpstreamCredentials],
    ):
        self._client = client
        self._endpoint = endpoint
        self._credentials = credentials

    def _require_credentials(self) -> UpstreamCredentials:
        if self._credentials is None:
            logger.error("catalog_credentials_missing", endpoint=self._endpoint)
            self._client.record(UPSTREAM_NAME, "not_configured")
            raise UpstreamNotConfiguredError(
                CATALOG_ERROR_MESSAGE,
                "Medanpedia credentials are not configured",
                upstream=UPSTREAM_NAME,
            )
        return self._credentials

    async def fetch_catalog(self) -> Tuple[int, Any]:
        """Fetch the service catalog using only the server credentials."""
        payload = build_catalog_payload(self._require_credentials())
        return await self._client.post_json(
            UPSTREAM_NAME, self._endpoint, payload, CATALOG_ERROR_MESSAGE
        )

    async def submit_catalog_action(self, client_body: Mapping[str, Any]) -> Tuple[int, Any]:
        """
        Forward a caller payload with the credentials injected.

        Args:
            client_body: Arbitrary JSON object from the caller

        Returns:
            Tuple of (upstream status, upstream body)
        """
        payload = build_catalog_payload(self._require_credentials(), client_body)
        logger.info(
            "catalog_action_forwarded",
            fields=sorted(k for k in payload if k not in ("api_id", "api_key")),
        )
        return await self._client.post_json(
            UPSTREAM_NAME, self._endpoint, payload, CATALOG_ERROR_MESSAGE
        )
