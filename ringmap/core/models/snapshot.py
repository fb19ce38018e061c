from dataclasses import dataclass, field
from typing import Any

from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata


@dataclass
class TopologySnapshot:
    """
    Everything a TokenMap is built from, in a portable form.

    A snapshot is what the driver's topology manager receives from the
    cluster: the partitioner in use, the token strings each host announces
    and the replication settings of each keyspace. It can be turned into
    plain dicts and lists (to_dict) for serialization, and back.
    """
    partitioner: str
    """
    Partitioner class name, short or fully qualified.
    """

    tokens_by_host: dict[Host, list[str]] = field(default_factory=dict)
    """
    Token strings announced by each host, in the partitioner's textual form.
    """

    keyspaces: list[KeyspaceMetadata] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """
        Converts the snapshot into a serializer-friendly dictionary.
        Hosts are listed with their own token strings.
        """
        return {
            "partitioner": self.partitioner,
            "hosts": [
                {**host.to_dict(), "tokens": list(tokens)}
                for host, tokens in self.tokens_by_host.items()
            ],
            "keyspaces": [keyspace.to_dict() for keyspace in self.keyspaces],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TopologySnapshot":
        if "partitioner" not in data:
            raise KeyError("Missing 'partitioner' key")

        tokens_by_host: dict[Host, list[str]] = {}
        for entry in data.get("hosts", []):
            tokens_by_host[Host.from_dict(entry)] = [str(t) for t in entry.get("tokens", [])]

        return cls(
            partitioner=data["partitioner"],
            tokens_by_host=tokens_by_host,
            keyspaces=[KeyspaceMetadata.from_dict(k) for k in data.get("keyspaces", [])],
        )
