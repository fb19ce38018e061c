import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata
from ringmap.core.models.snapshot import TopologySnapshot
from ringmap.core.ports.serializer import Serializer
from ringmap.core.space.token import Token
from ringmap.core.tokenmap import TokenMap


@dataclass(frozen=True, slots=True)
class PublishedMap:
    version: int
    snapshot: TopologySnapshot
    token_map: TokenMap


class TopologyManager:
    """
    The TopologyManager owns the driver's current view of the ring.

    The view is a single reference to an immutable PublishedMap: the
    TokenMap, the snapshot it was built from and a version counter.
    Every topology or schema change builds a complete new map off to the
    side and then publishes it with one attribute assignment. Readers
    capture the reference once per query, so they observe either the old
    map or the new one, never a mixture, and never wait.

    A build that fails leaves the previously published map in place.
    """

    def __init__(self, serializer: Serializer) -> None:
        self._serializer = serializer
        self._current: PublishedMap | None = None
        self._logger = logging.getLogger("core.service.topology")

    @property
    def token_map(self) -> TokenMap | None:
        current = self._current
        return current.token_map if current is not None else None

    @property
    def version(self) -> int:
        current = self._current
        return current.version if current is not None else 0

    def refresh(
        self,
        partitioner: str,
        tokens_by_host: Mapping[Host, Iterable[str]],
        keyspaces: Iterable[KeyspaceMetadata],
    ) -> TokenMap:
        """
        Rebuild the token map from a full topology snapshot and publish it.
        """
        snapshot = TopologySnapshot(
            partitioner=partitioner,
            tokens_by_host={host: list(tokens) for host, tokens in tokens_by_host.items()},
            keyspaces=list(keyspaces),
        )
        return self._publish(snapshot)

    def update_keyspaces(self, keyspaces: Iterable[KeyspaceMetadata]) -> TokenMap:
        """
        Publish a map with new keyspace definitions over the current ring.

        The ring itself is reused: only the keyspace index is rebuilt.
        """
        current = self._current
        if current is None:
            raise RuntimeError("No token map published yet, refresh the topology first")

        keyspaces = list(keyspaces)
        token_map = current.token_map.with_keyspaces(keyspaces)
        snapshot = TopologySnapshot(
            partitioner=current.snapshot.partitioner,
            tokens_by_host=current.snapshot.tokens_by_host,
            keyspaces=keyspaces,
        )
        self._current = PublishedMap(current.version + 1, snapshot, token_map)
        self._logger.info(
            f"Keyspaces updated (version {current.version + 1}): "
            f"{len(token_map.keyspaces)} keyspaces indexed"
        )
        return token_map

    def get_replicas(self, keyspace: str | None, token: Token) -> list[Host]:
        """
        Return the replicas of a token according to the current map.

        An empty list is returned while no map has been published yet.
        """
        token_map = self.token_map
        if token_map is None:
            return []
        return token_map.get_replicas(keyspace, token)

    def get_replicas_for_key(self, keyspace: str | None, key: bytes) -> list[Host]:
        token_map = self.token_map
        if token_map is None:
            return []
        return token_map.get_replicas_for_key(keyspace, key)

    def dump(self) -> bytes:
        """
        Serialize the snapshot the current map was built from.
        """
        current = self._current
        if current is None:
            raise RuntimeError("No token map published yet, nothing to dump")
        return self._serializer.serialize(current.snapshot.to_dict())

    def restore(self, data: bytes) -> TokenMap:
        """
        Rebuild and publish a map from a serialized snapshot.

        Typically used at startup, to route with the last known topology
        until the cluster has been contacted.
        """
        snapshot = TopologySnapshot.from_dict(self._serializer.deserialize(data))
        return self._publish(snapshot)

    def _publish(self, snapshot: TopologySnapshot) -> TokenMap:
        token_map = TokenMap.build(
            snapshot.partitioner,
            snapshot.tokens_by_host,
            snapshot.keyspaces,
        )

        version = self.version + 1
        self._current = PublishedMap(version, snapshot, token_map)
        self._logger.info(
            f"Token map published (version {version}): "
            f"{len(token_map.ring)} tokens over {len(token_map.hosts)} hosts, "
            f"{len(token_map.keyspaces)} keyspaces"
        )
        return token_map
