"""Error types raised across the ingestion pipeline."""

from __future__ import annotations


class PodstatsError(Exception):
    """Base class for podstats errors."""


class ConnectorError(PodstatsError):
    """A connector could not be constructed (bad credentials or kubeconfig)."""


class ResumeTokenExpired(PodstatsError):
    """The watched source no longer accepts the stored resume token (HTTP 410)."""


class MalformedMarkerError(PodstatsError):
    """A resume marker did not carry a usable token."""


class NormalizationError(PodstatsError):
    """A raw object could not be converted into readings."""


class KindMismatchError(PodstatsError):
    """A reading was merged under a key already held with a different kind."""

    def __init__(self, key: str, stored: str, incoming: str) -> None:
        super().__init__(f"{key}: stored kind {stored}, incoming kind {incoming}")
        self.key = key
        self.stored = stored
        self.incoming = incoming
