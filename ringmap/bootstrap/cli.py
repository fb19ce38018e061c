import argparse
from typing import Any

from ringmap.bootstrap.config.loader import get_cli_args
from ringmap.bootstrap.deps import get_topology
from ringmap.core.helpers.utils import setup_logging
from ringmap.core.tokenmap import TokenMap
from ringmap.infra.format_renderer import get_renderer


def describe(token_map: TokenMap, args: argparse.Namespace) -> dict[str, Any]:
    """
    Turn the command line request into a renderable dictionary.
    """
    if args.ring:
        return {
            "partitioner": token_map.factory.name,
            "ring": [
                {"token": str(vnode.token), "host": vnode.host.address}
                for vnode in token_map.ring
            ],
        }

    if args.key is not None:
        try:
            key = bytes.fromhex(args.key)
        except ValueError:
            raise SystemExit(f"[ringmap] Partition key is not valid hex: {args.key!r}")
        token = token_map.factory.hash(key)
    else:
        try:
            token = token_map.factory.parse(args.token)
        except ValueError:
            raise SystemExit(
                f"[ringmap] Malformed token {args.token!r} for {token_map.factory.name}"
            )

    replicas = token_map.get_replicas(args.keyspace, token)
    return {
        "keyspace": args.keyspace,
        "token": str(token),
        "replicas": [host.to_dict() for host in replicas],
    }


def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)

    topology = get_topology()
    data = describe(topology.token_map, cli)
    print(get_renderer(cli.format).render(data))


if __name__ == "__main__":
    main()
