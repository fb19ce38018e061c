import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata
from ringmap.core.replication.strategy import ReplicationStrategy
from ringmap.core.space.ring import Ring
from ringmap.core.space.token import Token, TokenFactory

logger = logging.getLogger("core.tokenmap")


@dataclass(frozen=True, slots=True)
class KeyspacePlacement:
    """A keyspace together with the strategy resolved for it at build time."""
    keyspace: KeyspaceMetadata
    strategy: ReplicationStrategy


class TokenMap:
    """
    TokenMap answers "which hosts hold this token for this keyspace".

    It is built once from a topology snapshot (the hosts and the token
    strings each of them announces) and the keyspaces' replication
    settings, and never changes afterwards. A topology or schema change
    produces a new TokenMap; anybody still holding the previous one keeps
    a coherent, if stale, view. Queries are read-only and may run from
    any number of threads.
    """

    def __init__(
        self,
        factory: TokenFactory,
        ring: Ring,
        placements: Mapping[str, KeyspacePlacement],
    ) -> None:
        self._factory = factory
        self._ring = ring
        self._placements = MappingProxyType(dict(placements))

    @classmethod
    def build(
        cls,
        partitioner: str,
        tokens_by_host: Mapping[Host, Iterable[str]],
        keyspaces: Iterable[KeyspaceMetadata],
    ) -> "TokenMap":
        """
        Build a token map from a topology snapshot.

        Raises UnknownPartitionerError if the partitioner is not supported,
        MalformedTokenError if a host announces a token the partitioner
        cannot read and InvalidReplicationError if a keyspace carries
        unusable replication options. Nothing is built when any of them
        is raised.
        """
        factory = TokenFactory.for_partitioner(partitioner)
        ring = Ring.build(factory, tokens_by_host)
        placements = cls._index_keyspaces(keyspaces)

        logger.debug(
            f"Built token map: {len(ring)} tokens, {ring.distinct_host_count} hosts, "
            f"{len(placements)} keyspaces ({factory.name})"
        )
        return cls(factory, ring, placements)

    @staticmethod
    def _index_keyspaces(
        keyspaces: Iterable[KeyspaceMetadata],
    ) -> dict[str, KeyspacePlacement]:
        placements: dict[str, KeyspacePlacement] = {}
        for keyspace in keyspaces:
            strategy = ReplicationStrategy.for_name(keyspace.strategy)
            if strategy is None:
                logger.warning(
                    f"Unknown replication strategy {keyspace.strategy!r} for "
                    f"keyspace {keyspace.name}, only primary replicas will be used"
                )
                continue

            strategy.validate(keyspace.name, keyspace.options)
            placements[keyspace.name] = KeyspacePlacement(keyspace, strategy)

        return placements

    def with_keyspaces(self, keyspaces: Iterable[KeyspaceMetadata]) -> "TokenMap":
        """
        Return a new TokenMap over the same ring with a new set of keyspaces.

        Used when the schema changes while the topology does not: the ring
        is shared, since it is immutable.
        """
        return TokenMap(self._factory, self._ring, self._index_keyspaces(keyspaces))

    @property
    def factory(self) -> TokenFactory:
        return self._factory

    @property
    def ring(self) -> Ring:
        return self._ring

    @property
    def hosts(self) -> tuple[Host, ...]:
        return self._ring.hosts

    @property
    def keyspaces(self) -> tuple[KeyspaceMetadata, ...]:
        return tuple(p.keyspace for p in self._placements.values())

    def placement(self, keyspace: str) -> KeyspacePlacement | None:
        return self._placements.get(keyspace)

    def get_replicas(self, keyspace: str | None, token: Token) -> list[Host]:
        """
        Return the hosts replicating the given token, primary first.

        - An empty ring yields an empty list, so that callers can fall
          back to routing without token awareness.
        - A keyspace that is None or unknown yields the primary owner only.
        - Otherwise the keyspace strategy picks the replicas, walking the
          ring from the primary owner.
        """
        ring = self._ring
        if not len(ring):
            return []

        primary = ring.primary_index(token)
        placement = self._placements.get(keyspace) if keyspace is not None else None
        if placement is None:
            return [ring[primary].host]

        return placement.strategy.replicas(
            placement.keyspace.name,
            placement.keyspace.options,
            ring,
            primary,
        )

    def get_replicas_for_key(self, keyspace: str | None, key: bytes) -> list[Host]:
        """Hash a serialized partition key and return its replicas."""
        return self.get_replicas(keyspace, self._factory.hash(key))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenMap):
            return NotImplemented
        return (
            self._factory == other._factory
            and self._ring == other._ring
            and dict(self._placements) == dict(other._placements)
        )

    def __repr__(self) -> str:
        return (
            f"TokenMap(partitioner={self._factory.name}, ring={self._ring!r}, "
            f"keyspaces={list(self._placements)})"
        )
