"""
Client for the off-chain market metadata store.

The store keeps a title, description and tags per market id; the chain only
knows outcome names.  Writes are fire-and-forget: after a successful
``createMarket`` the session calls :meth:`MetadataClient.push_best_effort`,
which logs a failure and carries on.  Nothing retries a failed write.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from dotenv import load_dotenv

from winzzers.core.errors import MetadataSyncFailure

load_dotenv()

logger = logging.getLogger(__name__)

METADATA_URL = os.getenv("WINZZERS_METADATA_URL", "http://localhost:3000")


@dataclass
class MarketMetadata:
    market_id: int
    title: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    created_at: Optional[int] = None  # epoch millis

    def to_payload(self) -> dict:
        return {
            "marketId": self.market_id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "createdAt": self.created_at if self.created_at is not None else int(time.time() * 1000),
        }


class MetadataClient:
    """POSTs metadata records to ``<base_url>/api/markets``."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
    ):
        self.base_url = (base_url or METADATA_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def push(self, metadata: MarketMetadata) -> None:
        """Store one record.  Raises :class:`MetadataSyncFailure` on any error."""
        url = f"{self.base_url}/api/markets"
        try:
            response = self.session.post(url, json=metadata.to_payload(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise MetadataSyncFailure(
                f"metadata for market {metadata.market_id} not stored: {e}"
            ) from e
        logger.info("Metadata stored for market %d", metadata.market_id)

    def push_best_effort(self, metadata: MarketMetadata) -> bool:
        """Like :meth:`push` but swallows the failure.  Returns success."""
        try:
            self.push(metadata)
            return True
        except MetadataSyncFailure as e:
            logger.warning("Metadata sync skipped: %s", e)
            return False
