import bisect
import logging
from collections.abc import Iterable, Mapping
from typing import Generator, Iterator

from ringmap.core.exception import EmptyRingError, MalformedTokenError
from ringmap.core.models.host import Host
from ringmap.core.space.token import Token, TokenFactory
from ringmap.core.space.vnode import VNode

logger = logging.getLogger("core.space.ring")


class Ring:
    """
    Represents the token ring of a cluster: every (host, token) ownership
    assignment, sorted by token.

    Key properties:
        - The ring is immutable. A topology change produces a new Ring,
          never an in-place edit, so a reference to a ring always sees a
          coherent snapshot.
        - VNodes are strictly ascending by token. Positions are unique:
          build() resolves tokens announced by more than one host.
        - Ownership is inclusive on the upper bound: a vnode owns every
          token in (previous vnode token, vnode token]. Tokens above the
          last vnode wrap around to the first one.
        - Lookups bisect on the token, O(log n). Walks visit each position
          at most once, O(n).
    """

    def __init__(self, vnodes: Iterable[VNode] | None = None) -> None:
        self._vnodes = tuple(sorted(vnodes or (), key=lambda v: v.token))
        self._hosts = tuple(dict.fromkeys(v.host for v in self._vnodes))
        grouped: dict[str | None, list[Host]] = {}
        for host in self._hosts:
            grouped.setdefault(host.datacenter, []).append(host)
        self._hosts_by_dc = {dc: tuple(hosts) for dc, hosts in grouped.items()}

    @classmethod
    def build(
        cls,
        factory: TokenFactory,
        tokens_by_host: Mapping[Host, Iterable[str]],
    ) -> "Ring":
        """
        Parse every token string announced by every host and sort the
        resulting positions into a ring.

        A token claimed by several distinct hosts is kept by the host with
        the lowest address (see Host.sort_key); the other claims are
        dropped and reported. Hosts are visited in that same order, so the
        outcome does not depend on the iteration order of tokens_by_host.

        Raises MalformedTokenError if a token string cannot be parsed.
        """
        owners: dict[Token, Host] = {}

        for host in sorted(tokens_by_host, key=lambda h: h.sort_key):
            for raw in tokens_by_host[host]:
                try:
                    token = factory.parse(raw)
                except ValueError:
                    raise MalformedTokenError(raw, factory.name, host) from None

                owner = owners.setdefault(token, host)
                if owner != host:
                    logger.warning(
                        f"Token {token} announced by both {owner} and {host}, "
                        f"keeping {owner}"
                    )

        vnodes = [VNode(host, token) for token, host in owners.items()]
        return cls(vnodes)

    @property
    def hosts(self) -> tuple[Host, ...]:
        """Distinct hosts, in order of their first position on the ring."""
        return self._hosts

    @property
    def distinct_host_count(self) -> int:
        return len(self._hosts)

    def primary_index(self, token: Token) -> int:
        """
        Return the index of the vnode owning the given token.

        `bisect_left` finds the first vnode whose token is greater than or
        equal to the searched one, so an exact match belongs to that vnode.
        If the token is greater than every vnode token, the search wraps
        around to index 0.

        Complexity: O(log n)
        """
        if not self._vnodes:
            raise EmptyRingError("The ring has no owner for any token")

        idx = bisect.bisect_left(self._vnodes, token, key=lambda v: v.token)
        if idx == len(self._vnodes):
            idx = 0  # wrap-around
        return idx

    def primary_owner(self, token: Token) -> VNode:
        return self._vnodes[self.primary_index(token)]

    def iter_from(self, index: int) -> Generator[VNode, None, None]:
        """
        Yield vnodes in ring order starting from the given index.

        The iteration wraps around at the end of the vnode list and visits
        every position exactly once.
        """
        size = len(self._vnodes)
        for i in range(size):
            yield self._vnodes[(index + i) % size]

    def walk(self, start: int, max_hosts: int) -> list[Host]:
        """
        Collect up to max_hosts distinct hosts walking the ring from start.

        Positions belonging to a host already collected are skipped, so a
        host owning several vnodes is only counted once. The walk stops
        after a full turn, which caps the result at the number of distinct
        hosts on the ring.
        """
        result: list[Host] = []
        if max_hosts <= 0:
            return result

        seen: set[Host] = set()
        for vnode in self.iter_from(start):
            if vnode.host not in seen:
                result.append(vnode.host)
                seen.add(vnode.host)
            if len(result) == max_hosts:
                break

        return result

    def hosts_by_datacenter(self) -> dict[str | None, tuple[Host, ...]]:
        """Distinct hosts grouped by datacenter, in ring order."""
        return dict(self._hosts_by_dc)

    def tokens_by_host(self) -> dict[Host, list[Token]]:
        owned: dict[Host, list[Token]] = {host: [] for host in self._hosts}
        for vnode in self._vnodes:
            owned[vnode.host].append(vnode.token)
        return owned

    def __getitem__(self, i: int) -> VNode:
        return self._vnodes[i]

    def __len__(self) -> int:
        return len(self._vnodes)

    def __iter__(self) -> Iterator[VNode]:
        return iter(self._vnodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ring):
            return NotImplemented
        return self._vnodes == other._vnodes

    def __hash__(self) -> int:
        return hash(self._vnodes)

    def __repr__(self) -> str:
        return f"Ring(vnodes={len(self._vnodes)}, hosts={len(self._hosts)})"
