"""
Calculation cache: content-addressed store of integrated calculation results.

The key is a hash of the full parameter set, so identical requests share one
entry and concurrent writers of the same key write the same value. Entries
are never deleted: an entry written under an older CALCULATION_CACHE_VERSION,
or older than CALCULATION_CACHE_TTL_HOURS when a TTL is set, reads as a miss
and is overwritten by the next upsert.
"""

import base64
import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

CACHE_KEY_LENGTH = 32


def calculation_hash(params: dict) -> str:
    """Deterministic 32-char alphanumeric key for a parameter dict.

    Canonical JSON (sorted keys) → SHA-256 → base64 → alphanumerics only.

    The digest is encoded, not the JSON itself. A 32-char prefix of encoded
    JSON only covers the first ~24 bytes of the payload, so any two requests
    sharing that prefix (same window covering id, say) would share a key.
    """
    payload = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    encoded = base64.b64encode(digest).decode("ascii")
    return re.sub(r"[^A-Za-z0-9]", "", encoded)[:CACHE_KEY_LENGTH]


class CalculationCache(ABC):
    """get/upsert by hash. Implementations may raise; callers log and carry on."""

    def __init__(self, version: int = 1, ttl_hours: Optional[int] = None):
        self.version = version
        self.ttl_hours = ttl_hours

    def is_fresh(self, version: int, stored_at: Optional[datetime]) -> bool:
        if version != self.version:
            return False
        if self.ttl_hours is None or stored_at is None:
            return True
        return stored_at >= datetime.utcnow() - timedelta(hours=self.ttl_hours)

    @abstractmethod
    def get(self, key: str) -> Optional[dict]:
        """Stored result for key, or None on a miss or stale entry."""

    @abstractmethod
    def upsert(self, key: str, params: dict, result: dict) -> None:
        """Insert or overwrite the entry for key."""


class SqlCalculationCache(CalculationCache):
    """Cache backed by the fabric_calculation_cache table."""

    def __init__(self, db: Session, version: int = 1, ttl_hours: Optional[int] = None):
        super().__init__(version, ttl_hours)
        self.db = db

    def get(self, key: str) -> Optional[dict]:
        row = self.db.get(models.FabricCalculationCache, key)
        if row is None:
            return None
        if not self.is_fresh(row.cache_version, row.updated_at):
            logger.info("Stale calculation cache entry %s (version %s)", key, row.cache_version)
            return None
        return row.result_json

    def upsert(self, key: str, params: dict, result: dict) -> None:
        try:
            row = self.db.get(models.FabricCalculationCache, key)
            if row is None:
                row = models.FabricCalculationCache(calculation_hash=key)
                self.db.add(row)
            row.params_json = params
            row.result_json = result
            row.cache_version = self.version
            row.updated_at = datetime.utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class InMemoryCalculationCache(CalculationCache):
    """Process-local cache for tests and scripts."""

    def __init__(self, version: int = 1, ttl_hours: Optional[int] = None):
        super().__init__(version, ttl_hours)
        self.entries = {}

    def get(self, key: str) -> Optional[dict]:
        entry = self.entries.get(key)
        if entry is None or not self.is_fresh(entry["version"], entry["stored_at"]):
            return None
        return entry["result"]

    def upsert(self, key: str, params: dict, result: dict) -> None:
        self.entries[key] = {
            "params": params,
            "result": result,
            "version": self.version,
            "stored_at": datetime.utcnow(),
        }
