class RingmapError(Exception):
    pass


class UnknownPartitionerError(RingmapError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unrecognized partitioner: {name!r}")
        self.name = name


class MalformedTokenError(RingmapError, ValueError):
    """
    A token string could not be parsed by the resolved partitioner.

    Carries the offending host (when known) and the raw token string so
    that topology problems can be traced back to the node announcing them.
    """
    def __init__(self, token: str, partitioner: str, host: object = None) -> None:
        where = f" owned by {host}" if host is not None else ""
        super().__init__(
            f"Malformed token {token!r}{where} for partitioner {partitioner}"
        )
        self.token = token
        self.partitioner = partitioner
        self.host = host


class InvalidReplicationError(RingmapError, ValueError):
    def __init__(self, keyspace: str, reason: str) -> None:
        super().__init__(f"Invalid replication for keyspace {keyspace!r}: {reason}")
        self.keyspace = keyspace


class TokenMismatchError(RingmapError, TypeError):
    pass


class EmptyRingError(RingmapError, LookupError):
    pass
