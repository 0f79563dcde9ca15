from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """
    Network destination where the Listener binds and the Initiator dials.

    An Endpoint is fixed at configuration time and never mutated. Port 0
    is accepted and lets the OS pick a free port on bind.
    """
    host: str
    port: int

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("Endpoint host must not be empty")
        if not isinstance(self.port, int) or isinstance(self.port, bool):
            raise TypeError(f"Endpoint port must be an int, got {type(self.port).__name__}")
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Endpoint port out of range: {self.port}")

    @classmethod
    def parse(cls, address: str) -> "Endpoint":
        """Parse 'host:port' or '[ipv6]:port'."""
        address = address.strip()

        if address.startswith("["):
            host, sep, rest = address[1:].partition("]")
            if not sep or not rest.startswith(":"):
                raise ValueError(f"Invalid address: {address!r}")
            port_str = rest[1:]
        else:
            host, sep, port_str = address.rpartition(":")
            if not sep:
                raise ValueError(f"Invalid address, expected host:port: {address!r}")

        try:
            port = int(port_str)
        except ValueError:
            raise ValueError(f"Invalid port in address: {address!r}") from None

        return cls(host=host, port=port)

    def as_tuple(self) -> tuple[str, int]:
        return self.host, self.port

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
