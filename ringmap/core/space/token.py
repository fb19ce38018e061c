import hashlib
import re
from dataclasses import dataclass
from typing import Any, ClassVar

from ringmap.core.exception import TokenMismatchError, UnknownPartitionerError
from ringmap.core.space.murmur3 import murmur3_token

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _parse_decimal(value: str) -> int:
    # int() also takes underscores, whitespace and non-ASCII digits
    if not _DECIMAL.fullmatch(value):
        raise ValueError(f"Not a decimal token: {value!r}")
    return int(value)


class Token:
    """
    Token is a position on the ring, as computed by one partitioner.

    Tokens of the same variant are totally ordered by their value.
    Tokens produced by different partitioners live on different rings:
    comparing them (including equality) raises TokenMismatchError instead
    of silently returning an arbitrary answer.
    """

    __slots__ = ()

    value: Any

    def _same_variant(self, other: object) -> bool:
        if not isinstance(other, Token):
            return False
        if type(other) is not type(self):
            raise TokenMismatchError(
                f"Cannot compare {type(self).__name__} with {type(other).__name__}"
            )
        return True

    def __eq__(self, other: object) -> bool:
        if not self._same_variant(other):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not self._same_variant(other):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not self._same_variant(other):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not self._same_variant(other):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not self._same_variant(other):
            return NotImplemented
        return self.value >= other.value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.value))

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Murmur3Token(Token):
    """A signed 64-bit token, as produced by Murmur3Partitioner."""

    value: int

    MIN: ClassVar[int] = -(1 << 63)
    MAX: ClassVar[int] = (1 << 63) - 1

    def __post_init__(self) -> None:
        if not (self.MIN <= self.value <= self.MAX):
            raise ValueError("Murmur3Token must be a signed 64-bit integer")

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class RandomToken(Token):
    """
    A token of RandomPartitioner: the absolute value of the MD5 digest
    read as a signed 128-bit integer, so it lies within [0, 2^127].
    The value -1 is the partitioner's minimum token.
    """

    value: int

    MIN: ClassVar[int] = -1
    MAX: ClassVar[int] = 1 << 127

    def __post_init__(self) -> None:
        if not (self.MIN <= self.value <= self.MAX):
            raise ValueError("RandomToken must lie within [-1, 2^127]")

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class ByteOrderedToken(Token):
    """A token of ByteOrderedPartitioner: the raw key, ordered bytewise."""

    value: bytes

    def __str__(self) -> str:
        return self.value.hex()


class TokenFactory:
    """
    Per-partitioner token capability.

    A factory knows how to turn partition key bytes into a token, how to
    read the textual form of a token announced by a node, and what the
    smallest token of its ring is. Factories are stateless; one shared
    instance per partitioner is kept in the registry below.
    """

    name: ClassVar[str]
    token_type: ClassVar[type[Token]]

    def hash(self, key: bytes) -> Token:
        raise NotImplementedError

    def parse(self, value: str) -> Token:
        raise NotImplementedError

    def min_token(self) -> Token:
        raise NotImplementedError

    @staticmethod
    def for_partitioner(partitioner: str) -> "TokenFactory":
        """
        Return the factory registered for a partitioner name.

        Only the last dotted component is significant, so both
        "Murmur3Partitioner" and "org.apache.cassandra.dht.Murmur3Partitioner"
        resolve to the same factory.
        """
        short = partitioner.strip().rsplit(".", 1)[-1]
        try:
            return _FACTORIES[short]
        except KeyError:
            raise UnknownPartitionerError(partitioner) from None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TokenFactory) and self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Murmur3TokenFactory(TokenFactory):
    name = "Murmur3Partitioner"
    token_type = Murmur3Token

    def hash(self, key: bytes) -> Murmur3Token:
        return Murmur3Token(murmur3_token(key))

    def parse(self, value: str) -> Murmur3Token:
        return Murmur3Token(_parse_decimal(value))

    def min_token(self) -> Murmur3Token:
        return Murmur3Token(Murmur3Token.MIN)


class RandomTokenFactory(TokenFactory):
    name = "RandomPartitioner"
    token_type = RandomToken

    def hash(self, key: bytes) -> RandomToken:
        digest = hashlib.md5(key).digest()
        return RandomToken(abs(int.from_bytes(digest, "big", signed=True)))

    def parse(self, value: str) -> RandomToken:
        return RandomToken(_parse_decimal(value))

    def min_token(self) -> RandomToken:
        return RandomToken(RandomToken.MIN)


class ByteOrderedTokenFactory(TokenFactory):
    name = "ByteOrderedPartitioner"
    token_type = ByteOrderedToken

    def hash(self, key: bytes) -> ByteOrderedToken:
        return ByteOrderedToken(bytes(key))

    def parse(self, value: str) -> ByteOrderedToken:
        value = value.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        return ByteOrderedToken(bytes.fromhex(value))

    def min_token(self) -> ByteOrderedToken:
        return ByteOrderedToken(b"")


_FACTORIES: dict[str, TokenFactory] = {
    factory.name: factory
    for factory in (
        Murmur3TokenFactory(),
        RandomTokenFactory(),
        ByteOrderedTokenFactory(),
    )
}
