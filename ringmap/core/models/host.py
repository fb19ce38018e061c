import ipaddress
from dataclasses import dataclass, field
from typing import Any


def split_address(address: str) -> tuple[str, int | None]:
    """
    Split "host", "host:port", "[v6]:port" or a bare IPv6 address into
    its host and optional port.
    """
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
        return host, int(port) if port else None

    if address.count(":") == 1:
        host, port = address.split(":")
        return host, int(port)

    return address, None


@dataclass(frozen=True, eq=False)
class Host:
    """
    A physical node of the cluster, as seen by the driver.

    A host is identified by its address alone: two Host objects with the
    same address are the same node, whatever metadata they carry. The
    tokens a host owns are not stored here; they travel alongside it in
    the topology snapshot (tokens_by_host) because ownership changes far
    more often than identity.
    """
    address: str
    """
    Network address of the node, "ip" or "ip:port".
    """

    datacenter: str | None = field(default=None, compare=False)
    """
    Datacenter the node reports, when known.
    """

    rack: str | None = field(default=None, compare=False)
    """
    Rack the node reports, when known.
    """

    @property
    def ip(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        host, _ = split_address(self.address)
        return ipaddress.ip_address(host)

    @property
    def sort_key(self) -> tuple:
        """
        Total order over hosts, numeric on IP addresses when possible.

        Used wherever a deterministic choice between hosts is required,
        such as resolving two hosts announcing the same token.
        """
        try:
            host, port = split_address(self.address)
            ip = ipaddress.ip_address(host)
        except ValueError:
            return 1, 0, 0, 0, self.address
        return 0, ip.version, int(ip), port or 0, self.address

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "datacenter": self.datacenter,
            "rack": self.rack,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Host":
        if "address" not in data:
            raise KeyError("Missing 'address' key")
        return cls(
            address=data["address"],
            datacenter=data.get("datacenter"),
            rack=data.get("rack"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Host):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)

    def __lt__(self, other: "Host") -> bool:
        if not isinstance(other, Host):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return self.address
