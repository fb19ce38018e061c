from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class KeyspaceMetadata:
    """
    The part of a keyspace's schema needed to place its data.

    Only the replication settings are modelled: the strategy identifier
    and its options, exactly as the cluster reports them in
    system_schema.keyspaces.replication.
    """
    name: str
    """
    Keyspace name, unique within the cluster.
    """

    strategy: str
    """
    Replication strategy identifier, either a short name such as
    "SimpleStrategy" or the fully qualified class name
    "org.apache.cassandra.locator.SimpleStrategy".
    """

    options: Mapping[str, Any] = field(default_factory=dict)
    """
    Strategy options, e.g. {"replication_factor": 3} for SimpleStrategy
    or {"dc1": 3, "dc2": 2} for NetworkTopologyStrategy. Values may be
    integers or their string form, as returned by the schema tables.
    """

    durable_writes: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def __hash__(self) -> int:
        return hash((self.name, self.strategy, tuple(sorted(self.options.items()))))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "strategy": self.strategy,
            "options": dict(self.options),
            "durable_writes": self.durable_writes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeyspaceMetadata":
        for key in ("name", "strategy"):
            if key not in data:
                raise KeyError(f"Missing '{key}' key")
        return cls(
            name=data["name"],
            strategy=data["strategy"],
            options=data.get("options", {}),
            durable_writes=data.get("durable_writes", True),
        )
