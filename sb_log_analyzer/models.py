"""Record and identity models shared across the pipeline stages."""

from dataclasses import dataclass, replace
from enum import Enum

UNKNOWN = "unknown"


@dataclass(frozen=True)
class LogRecord:
    source_path: str
    raw_line: str
    timestamp_key: str | None = None

    @property
    def tagged_line(self) -> str:
        """The grep -H style form: ``<source_path>:<raw_line>``."""
        return f"{self.source_path}:{self.raw_line}"

    def with_timestamp(self, key: str) -> "LogRecord":
        return replace(self, timestamp_key=key)


@dataclass(frozen=True)
class PathTag:
    namespace: str
    pod: str


@dataclass(frozen=True)
class PodIdentity:
    namespace: str
    pod: str
    owner: str = UNKNOWN
    node: str = UNKNOWN

    @property
    def label(self) -> str:
        return f"{self.namespace}/{self.owner} {self.node}"


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    identity: PodIdentity | None = None

    @property
    def conclusive(self) -> bool:
        return self.status is not LookupStatus.UNAVAILABLE

    @classmethod
    def found(cls, identity: PodIdentity) -> "LookupResult":
        return cls(LookupStatus.FOUND, identity)

    @classmethod
    def not_found(cls) -> "LookupResult":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def unavailable(cls) -> "LookupResult":
        return cls(LookupStatus.UNAVAILABLE)
