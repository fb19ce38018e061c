import logging

import pytest

from ringmap.core.exception import (
    InvalidReplicationError,
    MalformedTokenError,
    UnknownPartitionerError,
)
from ringmap.core.models.host import Host
from ringmap.core.models.keyspace import KeyspaceMetadata
from ringmap.core.space.token import Murmur3Token
from ringmap.core.tokenmap import TokenMap


def last_digits(replicas: list[Host]) -> str:
    return ",".join(h.address[-1] for h in replicas)


@pytest.mark.ut
def test_simple_strategy_with_keyspace(token_map):
    # the primary replica and the next
    assert last_digits(token_map.get_replicas("ks1", Murmur3Token(0))) == "0,1"

    # the next replica wraps to the first
    assert last_digits(token_map.get_replicas("ks1", Murmur3Token(20))) == "2,0"

    # the closest replica and the next
    assert last_digits(token_map.get_replicas("ks1", Murmur3Token(19))) == "2,0"

    # a factor larger than the ring returns every host once
    assert last_digits(token_map.get_replicas("ks2", Murmur3Token(5))) == "1,2,0"


@pytest.mark.ut
def test_unknown_keyspace_returns_primary_only(token_map):
    assert last_digits(token_map.get_replicas(None, Murmur3Token(0))) == "0"
    assert last_digits(token_map.get_replicas(None, Murmur3Token(10))) == "1"
    assert last_digits(token_map.get_replicas("ks_does_not_exist", Murmur3Token(20))) == "2"
    assert last_digits(token_map.get_replicas(None, Murmur3Token(19))) == "2"


@pytest.mark.ut
@pytest.mark.parametrize("token", [Murmur3Token.MIN, -1, 0, 1, 9, 10, 11, 20, 21, Murmur3Token.MAX])
def test_replica_count_invariant(token_map, token):
    t = Murmur3Token(token)
    assert len(token_map.get_replicas("ks1", t)) == 2
    assert len(token_map.get_replicas("ks2", t)) == 3
    assert len(token_map.get_replicas("missing", t)) == 1


@pytest.mark.ut
def test_replicas_start_with_primary_and_follow_ring_order():
    hosts = [Host(f"10.0.0.{i}") for i in range(1, 5)]
    tokens_by_host = {
        hosts[0]: ["-100", "300"],
        hosts[1]: ["0", "310"],
        hosts[2]: ["100"],
        hosts[3]: ["200", "320"],
    }
    keyspaces = [KeyspaceMetadata("ks", "SimpleStrategy", {"replication_factor": 3})]
    token_map = TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)

    # ring: -100:h0 0:h1 100:h2 200:h3 300:h0 310:h1 320:h3
    assert token_map.get_replicas("ks", Murmur3Token(250)) == [hosts[0], hosts[1], hosts[3]]
    assert token_map.get_replicas("ks", Murmur3Token(305)) == [hosts[1], hosts[3], hosts[0]]
    assert token_map.get_replicas("ks", Murmur3Token(1000)) == [hosts[0], hosts[1], hosts[2]]

    for value in range(-200, 400, 7):
        token = Murmur3Token(value)
        replicas = token_map.get_replicas("ks", token)
        assert replicas[0] == token_map.ring.primary_owner(token).host
        assert len(set(replicas)) == len(replicas) == 3


@pytest.mark.ut
def test_empty_ring_returns_no_replicas(keyspaces):
    token_map = TokenMap.build("Murmur3Partitioner", {}, keyspaces)

    assert token_map.get_replicas("ks1", Murmur3Token(0)) == []
    assert token_map.get_replicas(None, Murmur3Token(0)) == []


@pytest.mark.ut
def test_zero_replication_factor_returns_no_replicas(tokens_by_host):
    keyspaces = [KeyspaceMetadata("ks0", "SimpleStrategy", {"replication_factor": 0})]
    token_map = TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)

    assert token_map.get_replicas("ks0", Murmur3Token(0)) == []


@pytest.mark.ut
def test_build_is_idempotent(tokens_by_host, keyspaces):
    first = TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)
    second = TokenMap.build(
        "org.apache.cassandra.dht.Murmur3Partitioner",
        dict(reversed(list(tokens_by_host.items()))),
        keyspaces,
    )

    assert first == second
    assert first.ring == second.ring
    for value in range(-5, 30):
        token = Murmur3Token(value)
        for keyspace in (None, "ks1", "ks2"):
            assert first.get_replicas(keyspace, token) == second.get_replicas(keyspace, token)


@pytest.mark.ut
def test_build_with_unknown_partitioner(tokens_by_host, keyspaces):
    with pytest.raises(UnknownPartitionerError):
        TokenMap.build("org.example.FancyPartitioner", tokens_by_host, keyspaces)


@pytest.mark.ut
def test_build_with_malformed_token(keyspaces):
    with pytest.raises(MalformedTokenError) as exc_info:
        TokenMap.build("Murmur3Partitioner", {Host("10.0.0.1"): ["ten"]}, keyspaces)
    assert exc_info.value.host == Host("10.0.0.1")


@pytest.mark.ut
def test_build_with_invalid_replication(tokens_by_host):
    keyspaces = [KeyspaceMetadata("bad", "SimpleStrategy", {"replication_factor": "many"})]
    with pytest.raises(InvalidReplicationError):
        TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)


@pytest.mark.ut
def test_unknown_strategy_behaves_like_unknown_keyspace(tokens_by_host, caplog):
    keyspaces = [KeyspaceMetadata("custom", "com.example.CustomStrategy", {"replication_factor": 3})]

    with caplog.at_level(logging.WARNING, logger="core.tokenmap"):
        token_map = TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)

    assert token_map.placement("custom") is None
    assert last_digits(token_map.get_replicas("custom", Murmur3Token(5))) == "1"
    assert "CustomStrategy" in caplog.text


def nts_map(layout: list[tuple[Host, int]], options: dict) -> TokenMap:
    keyspaces = [KeyspaceMetadata("nts", "NetworkTopologyStrategy", options)]
    tokens_by_host = {host: [str(token)] for host, token in layout}
    return TokenMap.build("Murmur3Partitioner", tokens_by_host, keyspaces)


@pytest.mark.ut
def test_network_topology_strategy_places_in_every_datacenter():
    a, b = Host("10.0.0.1", datacenter="dc1"), Host("10.0.0.2", datacenter="dc1")
    c = Host("10.0.0.3", datacenter="dc2")
    token_map = nts_map([(a, 0), (b, 10), (c, 20)], {"dc1": 1, "dc2": 1})

    # b is skipped, dc1 already holds its single replica
    assert token_map.get_replicas("nts", Murmur3Token(0)) == [a, c]
    # the primary owner is not a replica when its datacenter is not listed
    assert nts_map([(a, 0), (b, 10), (c, 20)], {"dc1": 1}).get_replicas(
        "nts", Murmur3Token(15)
    ) == [a]


@pytest.mark.ut
def test_network_topology_strategy_caps_by_datacenter_size():
    a, b = Host("10.0.0.1", datacenter="dc1"), Host("10.0.0.2", datacenter="dc1")
    token_map = nts_map([(a, 0), (b, 10)], {"dc1": 1, "dc2": 3})

    assert token_map.get_replicas("nts", Murmur3Token(0)) == [a]
    assert nts_map([(a, 0), (b, 10)], {"dc1": 5}).get_replicas("nts", Murmur3Token(5)) == [b, a]


@pytest.mark.ut
def test_network_topology_strategy_spreads_over_racks():
    a = Host("10.0.0.1", datacenter="dc1", rack="r1")
    b = Host("10.0.0.2", datacenter="dc1", rack="r1")
    c = Host("10.0.0.3", datacenter="dc1", rack="r2")
    layout = [(a, 0), (b, 10), (c, 20)]

    # b shares a rack with a and waits until r2 is used
    assert nts_map(layout, {"dc1": 2}).get_replicas("nts", Murmur3Token(0)) == [a, c]
    assert nts_map(layout, {"dc1": 3}).get_replicas("nts", Murmur3Token(0)) == [a, c, b]


@pytest.mark.ut
def test_network_topology_strategy_ignores_hosts_without_datacenter():
    a, b = Host("10.0.0.1"), Host("10.0.0.2", datacenter="dc1")
    token_map = nts_map([(a, 0), (b, 10)], {"dc1": 3})

    assert token_map.get_replicas("nts", Murmur3Token(0)) == [b]


@pytest.mark.ut
def test_get_replicas_for_key_hashes_with_the_partitioner(token_map):
    key = bytes(range(1, 17))  # token -5563837382979743776, owned by the first host
    assert last_digits(token_map.get_replicas_for_key("ks1", key)) == "0,1"


@pytest.mark.ut
def test_with_keyspaces_shares_the_ring(token_map):
    updated = token_map.with_keyspaces(
        [KeyspaceMetadata("ks3", "SimpleStrategy", {"replication_factor": 3})]
    )

    assert updated.ring is token_map.ring
    assert [k.name for k in updated.keyspaces] == ["ks3"]
    assert last_digits(updated.get_replicas("ks3", Murmur3Token(0))) == "0,1,2"
    # the original map is untouched
    assert last_digits(token_map.get_replicas("ks3", Murmur3Token(0))) == "0"
    assert [k.name for k in token_map.keyspaces] == ["ks1", "ks2"]


@pytest.mark.ut
def test_accessors(token_map):
    assert token_map.factory.name == "Murmur3Partitioner"
    assert [h.address for h in token_map.hosts] == ["192.168.0.0", "192.168.0.1", "192.168.0.2"]
    assert token_map.placement("ks1").keyspace.name == "ks1"
    assert "Murmur3Partitioner" in repr(token_map)


@pytest.mark.ut
def test_placement_resolves_strategy_by_keyspace(token_map, keyspaces):
    placement = token_map.placement("ks1")

    assert placement.keyspace == keyspaces[0]
    assert placement.strategy.name == "SimpleStrategy"
    assert token_map.placement("ks_does_not_exist") is None
