from enum import IntEnum


class ProtocolClass(IntEnum):
    """Transport an avatar location is resolved for.

    Selects the SRV service name, the fallback host and the URL scheme.
    """

    plain = 1
    secure = 2

    @property
    def scheme(self) -> str:
        return "https" if self == ProtocolClass.secure else "http"

    @property
    def default_port(self) -> int:
        return 443 if self == ProtocolClass.secure else 80
