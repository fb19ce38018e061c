import json
from functools import lru_cache

from pydantic import ValidationError

from ringmap.bootstrap.config.settings import RingmapConfig
from ringmap.core.exception import RingmapError
from ringmap.core.service.topology import TopologyManager
from ringmap.infra.msgpack_serializer import MsgPackSerializer


@lru_cache
def get_topology() -> TopologyManager:
    config = get_config()
    snapshot = config.to_snapshot()

    topology = TopologyManager(serializer=MsgPackSerializer())
    try:
        topology.refresh(
            snapshot.partitioner,
            snapshot.tokens_by_host,
            snapshot.keyspaces,
        )
    except RingmapError as ex:
        raise SystemExit(f"[topology] {ex}")
    return topology


@lru_cache
def get_config() -> RingmapConfig:
    try:
        return RingmapConfig()  # type: ignore[call-arg]
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct topology file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            loc = ".".join(str(part) for part in err["loc"]) or "<root>"
            msg.append(f"  {loc}: {err['msg']}")
        raise SystemExit("\n".join(msg))
