import argparse
import os
from functools import lru_cache
from pathlib import Path


@lru_cache
def get_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ringmap",
        description=(
            "Resolve the replicas of a token.\n\n"
            "ringmap loads a cluster topology (partitioner, hosts and their "
            "tokens, keyspace replication settings) and prints the hosts "
            "owning a token or a partition key, primary replica first."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a ringmap topology file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "Choose among: DEBUG, INFO, WARNING, ERROR, CRITICAL.\n\n"
            "DEBUG    → details of the token map build.\n"
            "INFO     → topology summary.\n"
            "WARNING  → only anomalies such as duplicate tokens (default).\n"
            "ERROR    → only errors.\n"
            "CRITICAL → only critical failures.\n\n"
            "Example:\n"
            "  --log-level DEBUG"
        ),
    )

    parser.add_argument(
        "-k", "--keyspace",
        type=str,
        default=None,
        help=(
            "Keyspace whose replication settings apply.\n"
            "Without it, or for an unknown keyspace, only the primary replica is printed."
        )
    )

    parser.add_argument(
        "-f", "--format",
        type=str,
        default="text",
        choices=["text", "json", "yaml"],
        help="Output format (default: text)."
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "-t", "--token",
        type=str,
        help="Token in the partitioner's textual form, e.g. -5563837382979743776"
    )
    target.add_argument(
        "--key",
        type=str,
        help="Serialized partition key, hex encoded, e.g. 0102ff"
    )
    target.add_argument(
        "--ring",
        action="store_true",
        help="Print the whole ring instead of resolving a single token"
    )

    return parser.parse_args()


@lru_cache
def get_configfile() -> Path:
    args = get_cli_args()

    # Priority: CLI > ENV > default file in current working directory
    raw = args.config or os.getenv("RINGMAP_CONFIG")

    if raw is None:
        file = Path.cwd() / "ringmap.yaml"
    else:
        file = Path(raw)

    if not file.is_file():
        raise SystemExit(
            f"[config] Topology file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the RINGMAP_CONFIG environment variable\n"
            "  - Or place a 'ringmap.yaml' file in the current working directory."
        )

    return file
