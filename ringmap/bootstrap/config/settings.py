from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from ringmap.bootstrap.config.loader import get_configfile
from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata
from ringmap.core.models.snapshot import TopologySnapshot


class HostSettings(BaseModel):
    address: Annotated[
        str,
        Field(
            description=(
                "Network address identifying the node, 'ip' or 'ip:port'.\n"
                "Two entries with the same address describe the same node."
            )
        )
    ]

    datacenter: Annotated[
        str | None,
        Field(
            description="Datacenter the node belongs to.",
            default=None
        )
    ]

    rack: Annotated[
        str | None,
        Field(
            description="Rack the node belongs to.",
            default=None
        )
    ]

    tokens: Annotated[
        list[str],
        Field(
            description=(
                "Tokens owned by the node, in the partitioner's textual form.\n"
                "Several tokens mean the node uses virtual nodes."
            ),
            min_length=1
        )
    ]

    @field_validator("tokens", mode="before")
    @classmethod
    def stringify_tokens(cls, v: Any) -> Any:
        # YAML reads bare numbers as ints
        if isinstance(v, list):
            return [str(t) for t in v]
        return v

    def to_host(self) -> Host:
        return Host(address=self.address, datacenter=self.datacenter, rack=self.rack)


class KeyspaceSettings(BaseModel):
    name: Annotated[
        str,
        Field(description="Keyspace name.")
    ]

    strategy: Annotated[
        str,
        Field(
            description=(
                "Replication strategy, short or fully qualified class name\n"
                "(SimpleStrategy, NetworkTopologyStrategy, LocalStrategy, EverywhereStrategy)."
            ),
            default="SimpleStrategy"
        )
    ]

    options: Annotated[
        dict[str, int | str],
        Field(
            description=(
                "Strategy options, e.g. {replication_factor: 3} or {dc1: 3, dc2: 2}."
            ),
            default_factory=dict
        )
    ]

    def to_metadata(self) -> KeyspaceMetadata:
        return KeyspaceMetadata(name=self.name, strategy=self.strategy, options=self.options)


class RingmapConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RINGMAP_",
        extra="allow"
    )

    partitioner: Annotated[
        str,
        Field(
            description=(
                "Partitioner used by the cluster, short or fully qualified name:\n"
                "Murmur3Partitioner, RandomPartitioner or ByteOrderedPartitioner."
            ),
            default="Murmur3Partitioner"
        )
    ]

    hosts: Annotated[
        list[HostSettings],
        Field(
            description="Nodes of the cluster and the tokens they own.",
            default_factory=list
        )
    ]

    keyspaces: Annotated[
        list[KeyspaceSettings],
        Field(
            description="Keyspaces and their replication settings.",
            default_factory=list
        )
    ]

    @model_validator(mode="after")
    def check_unique_addresses(self) -> "RingmapConfig":
        seen: set[str] = set()
        for host in self.hosts:
            if host.address in seen:
                raise ValueError(f"Host {host.address} is declared more than once")
            seen.add(host.address)
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (YamlConfigSettingsSource(settings_cls, yaml_file=get_configfile()),)

    def to_snapshot(self) -> TopologySnapshot:
        return TopologySnapshot(
            partitioner=self.partitioner,
            tokens_by_host={h.to_host(): list(h.tokens) for h in self.hosts},
            keyspaces=[k.to_metadata() for k in self.keyspaces],
        )
