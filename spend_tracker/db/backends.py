"""Document store backends (Redis for deployments, in-memory for dev and tests)."""

import json
import os
import threading
from typing import Any, Dict, List, Optional, Tuple

import redis

from spend_tracker.constants import StorageBackend
from spend_tracker.utils.config_loader import get_section
from spend_tracker.utils.errors import ConfigurationError, StorageError
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)

# (collection, document id, document)
Write = Tuple[str, str, Dict[str, Any]]


class MemoryBackend:
    """Process-local document store; contents are lost when the process exits"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = self._collections.get(collection, {}).get(doc_id)
        return json.loads(json.dumps(document)) if document is not None else None

    def get_many(self, collection: str, doc_ids: List[str]) -> List[Optional[Dict[str, Any]]]:
        return [self.get(collection, doc_id) for doc_id in doc_ids]

    def list(self, collection: str) -> List[Dict[str, Any]]:
        return [json.loads(json.dumps(doc)) for doc in self._collections.get(collection, {}).values()]

    def write_batch(self, writes: List[Write]) -> None:
        """Apply every write or none (documents are copied before the swap)"""
        staged = [(collection, doc_id, json.loads(json.dumps(document))) for collection, doc_id, document in writes]
        with self._lock:
            for collection, doc_id, document in staged:
                self._collections.setdefault(collection, {})[doc_id] = document

    def health_check(self) -> bool:
        return True


class RedisBackend:
    """
    Redis document store: one hash per collection, documents stored as JSON.

    Batches are committed in a MULTI/EXEC pipeline so a sync either lands whole or not at all.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "spend"):
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, collection: str) -> str:
        return f"{self.key_prefix}:{collection}"

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        value = self.client.hget(self._key(collection), doc_id)
        return json.loads(value) if value else None

    def get_many(self, collection: str, doc_ids: List[str]) -> List[Optional[Dict[str, Any]]]:
        if not doc_ids:
            return []
        values = self.client.hmget(self._key(collection), doc_ids)
        return [json.loads(value) if value else None for value in values]

    def list(self, collection: str) -> List[Dict[str, Any]]:
        return [json.loads(value) for value in self.client.hvals(self._key(collection))]

    def write_batch(self, writes: List[Write]) -> None:
        """
        Commit all writes in one MULTI/EXEC.

        No WATCH is taken, so a caller's read-then-write check (e.g. the
        external-ID check in TransactionStore.bulk_insert) is not isolated from
        a concurrent writer. Syncs are expected to run one at a time.
        """
        if not writes:
            return
        pipeline = self.client.pipeline(transaction=True)
        for collection, doc_id, document in writes:
            pipeline.hset(self._key(collection), doc_id, json.dumps(document, default=str))
        pipeline.execute()

    def health_check(self) -> bool:
        """
        Check if Redis is reachable

        Returns:
            True if Redis answers PING, False otherwise
        """
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


def create_backend(config: Optional[Dict[str, Any]] = None):
    """
    Build the configured document store backend.

    STORAGE_BACKEND / REDIS_HOST / REDIS_DB override the `storage` config section.

    Raises:
        ConfigurationError: If the backend name is unknown
        StorageError: If Redis is selected but unreachable
    """
    storage = get_section(config, 'storage')
    backend = os.getenv("STORAGE_BACKEND", storage['backend'])

    if backend == StorageBackend.MEMORY.value:
        logger.info("Using in-memory document store")
        return MemoryBackend()

    if backend != StorageBackend.REDIS.value:
        raise ConfigurationError(f"Unknown storage backend: {backend!r}")

    redis_host, _, redis_port = os.getenv("REDIS_HOST", storage['redis_host']).partition(':')
    try:
        client = redis.Redis(
            host=redis_host,
            port=int(redis_port or 6379),
            db=int(os.getenv("REDIS_DB", storage['redis_db'])),
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5
        )
        client.ping()
    except (redis.RedisError, ValueError) as e:
        raise StorageError(f"Failed to connect to Redis at {redis_host}:{redis_port}: {e}") from e

    logger.info("Connected to Redis", host=redis_host, port=redis_port)
    return RedisBackend(client, key_prefix=storage['key_prefix'])
