from collections.abc import Mapping
from typing import Any, ClassVar

from ringmap.core.exception import InvalidReplicationError
from ringmap.core.models.host import Host
from ringmap.core.space.ring import Ring

_LOCATOR_PACKAGE = "org.apache.cassandra.locator."


def parse_factor(keyspace: str, option: str, value: Any) -> int:
    """
    Read one replication factor option.

    Factors come either as integers or as the strings stored in the schema
    tables. The transient replication form "<replicas>/<transient>" counts
    its total number of replicas, which is what routing cares about.
    """
    if isinstance(value, bool):
        raise InvalidReplicationError(keyspace, f"{option}={value!r} is not a number")
    if isinstance(value, int):
        factor = value
    else:
        total, _, _transient = str(value).strip().partition("/")
        try:
            factor = int(total)
        except ValueError:
            raise InvalidReplicationError(
                keyspace, f"{option}={value!r} is not a number"
            ) from None

    if factor < 0:
        raise InvalidReplicationError(keyspace, f"{option}={value!r} is negative")
    return factor


class ReplicationStrategy:
    """
    A replication strategy decides which distinct hosts hold a replica of
    each token of a keyspace.

    Strategies are stateless and selected by identifier when the token
    map is built. By default a strategy only contributes its desired
    replica count: replicas() caps it by the number of hosts and walks
    the ring from the primary owner. Strategies whose placement depends
    on the cluster layout override replicas().
    """

    name: ClassVar[str]

    def validate(self, keyspace: str, options: Mapping[str, Any]) -> None:
        """Raise InvalidReplicationError if the options cannot be used."""
        self.replica_count(keyspace, options, host_count=0)

    def replica_count(
        self,
        keyspace: str,
        options: Mapping[str, Any],
        host_count: int,
    ) -> int:
        raise NotImplementedError

    def replicas(
        self,
        keyspace: str,
        options: Mapping[str, Any],
        ring: Ring,
        start: int,
    ) -> list[Host]:
        """
        Return the replicas of the token owned by ring[start], primary first.
        """
        host_count = ring.distinct_host_count
        count = self.replica_count(keyspace, options, host_count)
        return ring.walk(start, min(count, host_count))

    @staticmethod
    def for_name(name: str) -> "ReplicationStrategy | None":
        """
        Return the strategy registered under a short or fully qualified
        class name, or None when the strategy is not known.
        """
        short = name.strip()
        if short.startswith(_LOCATOR_PACKAGE):
            short = short[len(_LOCATOR_PACKAGE):]
        return _STRATEGIES.get(short)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SimpleStrategy(ReplicationStrategy):
    name = "SimpleStrategy"

    def replica_count(self, keyspace, options, host_count):
        if "replication_factor" not in options:
            raise InvalidReplicationError(keyspace, "missing 'replication_factor'")
        return parse_factor(keyspace, "replication_factor", options["replication_factor"])


class NetworkTopologyStrategy(ReplicationStrategy):
    """
    Options name a factor per datacenter.

    Placement walks the ring once from the primary owner and fills every
    datacenter independently:
        - Only hosts of a datacenter named in the options are replicas.
          A host without a datacenter never is.
        - A datacenter takes at most its factor, capped by the number of
          hosts it has on the ring.
        - Within a datacenter, a host on a rack that already holds a
          replica is put aside while some racks of that datacenter are
          still unused. Once every rack holds a replica, the hosts put
          aside are added in the order they were met.

    replica_count() is the sum of the factors, an upper bound on the
    number of replicas.
    """
    name = "NetworkTopologyStrategy"

    _RESERVED = frozenset({"class", "replication_factor"})

    def factors(self, keyspace: str, options: Mapping[str, Any]) -> dict[str, int]:
        return {
            dc: parse_factor(keyspace, dc, value)
            for dc, value in options.items()
            if dc not in self._RESERVED
        }

    def replica_count(self, keyspace, options, host_count):
        return sum(self.factors(keyspace, options).values())

    def replicas(self, keyspace, options, ring, start):
        hosts_by_dc = ring.hosts_by_datacenter()
        wanted: dict[str, int] = {}
        racks: dict[str, set[str | None]] = {}
        for dc, factor in self.factors(keyspace, options).items():
            dc_hosts = hosts_by_dc.get(dc, ())
            if factor and dc_hosts:
                wanted[dc] = min(factor, len(dc_hosts))
                racks[dc] = {host.rack for host in dc_hosts}

        result: list[Host] = []
        placed: dict[str, list[Host]] = {dc: [] for dc in wanted}
        used_racks: dict[str, set[str | None]] = {dc: set() for dc in wanted}
        skipped: dict[str, list[Host]] = {dc: [] for dc in wanted}

        for vnode in ring.iter_from(start):
            if all(len(placed[dc]) == wanted[dc] for dc in wanted):
                break

            host = vnode.host
            dc = host.datacenter
            if dc not in wanted or len(placed[dc]) == wanted[dc]:
                continue
            if host in placed[dc] or host in skipped[dc]:
                continue

            if host.rack in used_racks[dc] and len(used_racks[dc]) < len(racks[dc]):
                skipped[dc].append(host)
                continue

            placed[dc].append(host)
            result.append(host)
            used_racks[dc].add(host.rack)

            if len(used_racks[dc]) == len(racks[dc]):
                while skipped[dc] and len(placed[dc]) < wanted[dc]:
                    late = skipped[dc].pop(0)
                    placed[dc].append(late)
                    result.append(late)

        return result


class LocalStrategy(ReplicationStrategy):
    # system keyspaces, stored on every node for itself only
    name = "LocalStrategy"

    def replica_count(self, keyspace, options, host_count):
        return 1


class EverywhereStrategy(ReplicationStrategy):
    name = "EverywhereStrategy"

    def replica_count(self, keyspace, options, host_count):
        return host_count


_STRATEGIES: dict[str, ReplicationStrategy] = {
    strategy.name: strategy
    for strategy in (
        SimpleStrategy(),
        NetworkTopologyStrategy(),
        LocalStrategy(),
        EverywhereStrategy(),
    )
}
