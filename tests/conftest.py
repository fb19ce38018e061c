import os

import pytest
import yaml
from typing import Generator
from tests.fake.fake_serializer import FakeSerializer
from tests.helpers import FakeRingmapConfig

from ringmap.bootstrap.config.settings import RingmapConfig
from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata
from ringmap.core.tokenmap import TokenMap


@pytest.fixture
def serializer():
    return FakeSerializer()


@pytest.fixture
def hosts() -> list[Host]:
    return [Host(f"192.168.0.{i}") for i in range(3)]


@pytest.fixture
def tokens_by_host(hosts) -> dict[Host, set[str]]:
    h0, h1, h2 = hosts
    return {h0: {"0"}, h1: {"10"}, h2: {"20"}}


@pytest.fixture
def keyspaces() -> list[KeyspaceMetadata]:
    return [
        KeyspaceMetadata("ks1", "SimpleStrategy", {"replication_factor": 2}),
        KeyspaceMetadata("ks2", "SimpleStrategy", {"replication_factor": 10}),
    ]


@pytest.fixture
def token_map(tokens_by_host, keyspaces) -> TokenMap:
    return TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)


@pytest.fixture(scope="session")
def config_data() -> dict:
    return {
        "partitioner": "org.apache.cassandra.dht.Murmur3Partitioner",
        "hosts": [
            {"address": "192.168.0.0", "datacenter": "dc1", "rack": "r1", "tokens": [0]},
            {"address": "192.168.0.1", "datacenter": "dc1", "rack": "r2", "tokens": ["10"]},
            {"address": "192.168.0.2", "datacenter": "dc1", "rack": "r3", "tokens": [20, 30]},
        ],
        "keyspaces": [
            {"name": "ks1", "strategy": "SimpleStrategy", "options": {"replication_factor": 2}},
            {
                "name": "ks_nts",
                "strategy": "org.apache.cassandra.locator.NetworkTopologyStrategy",
                "options": {"dc1": "3/1"},
            },
        ],
    }


@pytest.fixture(scope="session")
def config_file(tmp_path_factory, config_data):
    base = tmp_path_factory.mktemp("config")
    file = base / "ringmap.yaml"
    file.write_text(yaml.dump(config_data))
    return file


@pytest.fixture(scope="session")
def ringmap_config(config_file) -> Generator[RingmapConfig, None, None]:
    backup = os.environ.copy()

    try:
        os.environ["TEST_RINGMAP_CONFIG"] = str(config_file)
        yield FakeRingmapConfig()
    finally:
        os.environ.clear()
        os.environ.update(backup)
