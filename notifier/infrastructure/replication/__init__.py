"""Replication from the remote CouchDB-compatible source into local mirrors."""

from notifier.infrastructure.replication.couch_feed import CouchReplicationFeed
from notifier.infrastructure.replication.local_mirror import LocalMirror

__all__ = ["CouchReplicationFeed", "LocalMirror"]
