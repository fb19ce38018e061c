from typing import Self

from ringmap.core.models.host import Host
from ringmap.core.space.token import Token


class VNode(tuple):
    """
    VNode represents one position on the ring.

    The token defines the position and the host is the physical node
    owning it. A host using virtual nodes appears on the ring once per
    token it owns.
    """

    __slots__ = ()

    def __new__(cls, host: Host, token: Token) -> Self:
        return super().__new__(cls, (host, token))

    @property
    def host(self) -> Host:
        """The physical node owning this position."""
        return self[0]

    @property
    def token(self) -> Token:
        """The ring position."""
        return self[1]

    def __repr__(self) -> str:
        return f"VNode(host={self.host}, token={self.token})"
