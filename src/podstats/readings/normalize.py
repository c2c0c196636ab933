"""Turn raw pod objects into keyed readings."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from kubernetes.utils import parse_quantity

from podstats.connectors.models import UsageSnapshot, WorkloadSpecSnapshot
from podstats.exceptions import NormalizationError
from podstats.readings.models import Reading, ReadingKind

logger = logging.getLogger(__name__)

POD_NAME_LABEL = "pod-name"
CONTAINER_NAME_LABEL = "container-name"

# (metric name, resource section, resource name)
SPEC_METRICS: tuple[tuple[str, str, str], ...] = (
    ("ps_memory_request_bytes", "requests", "memory"),
    ("ps_memory_limit_bytes", "limits", "memory"),
    ("ps_cpu_request_cores", "requests", "cpu"),
    ("ps_cpu_limit_cores", "limits", "cpu"),
    ("ps_storage_request_bytes", "requests", "ephemeral-storage"),
    ("ps_storage_limit_bytes", "limits", "ephemeral-storage"),
)

# (metric name, resource name)
USAGE_METRICS: tuple[tuple[str, str], ...] = (
    ("ps_memory_usage_bytes", "memory"),
    ("ps_cpu_usage_cores", "cpu"),
    ("ps_storage_usage_bytes", "ephemeral-storage"),
)


@dataclass(frozen=True)
class LabelSanitizer:
    """Maps arbitrary label names onto ``[A-Za-z0-9_]+`` without a leading underscore."""

    invalid: re.Pattern[str] = field(default_factory=lambda: re.compile(r"[^A-Za-z0-9_]"))
    leading: re.Pattern[str] = field(default_factory=lambda: re.compile(r"^_+"))

    def sanitize(self, name: str) -> str:
        return self.leading.sub("", self.invalid.sub("_", name))

    def render(self, labels: Mapping[str, str]) -> str:
        """Render ``{name="value", ...}`` in insertion order.

        Values are written verbatim; a value containing a double quote yields
        a line that cannot be parsed back unambiguously.
        """
        pairs = []
        for name, value in labels.items():
            clean = self.sanitize(name)
            if not clean:
                logger.debug("Dropping label %r: nothing left after sanitizing", name)
                continue
            pairs.append(f'{clean}="{value}"')
        return "{" + ", ".join(pairs) + "}"


def decimal_to_float(mantissa: int, scale: int) -> float:
    """Convert an unscaled mantissa and base-10 scale to float: ``mantissa / 10**scale``."""
    return mantissa / math.pow(10, scale)


def quantity_to_float(quantity: str | None) -> float:
    """Convert a Kubernetes quantity string ("128Mi", "250m", "1e3") to float.

    A missing quantity reads as zero.
    """
    if not quantity:
        return 0.0
    try:
        dec = parse_quantity(quantity)
    except (ValueError, InvalidOperation) as e:
        raise NormalizationError(f"invalid quantity {quantity!r}") from e
    if not isinstance(dec, Decimal):
        dec = Decimal(dec)
    sign, digits, exponent = dec.as_tuple()
    if not isinstance(exponent, int):
        raise NormalizationError(f"non-finite quantity {quantity!r}")
    mantissa = int("".join(str(d) for d in digits) or "0")
    if sign:
        mantissa = -mantissa
    try:
        return decimal_to_float(mantissa, -exponent)
    except ArithmeticError as e:
        raise NormalizationError(f"quantity {quantity!r} is out of float range") from e


def epoch_millis(moment: datetime | None) -> str:
    """Seconds-resolution epoch time in milliseconds, as a string."""
    if moment is None:
        return ""
    return str(int(moment.timestamp()) * 1000)


class Normalizer:
    """Converts raw objects into readings.

    Emits one reading per (resource dimension, container). Stateless apart
    from its label sanitizer, so a single instance may be shared.
    """

    def __init__(self, sanitizer: LabelSanitizer | None = None) -> None:
        self.sanitizer = sanitizer or LabelSanitizer()

    def normalize(self, obj: WorkloadSpecSnapshot | UsageSnapshot) -> list[Reading]:
        if obj.tag == "workload_spec":
            return self._from_spec(obj)
        if obj.tag == "usage":
            return self._from_usage(obj)
        raise NormalizationError(f"unknown raw object tag: {obj.tag!r}")

    def _labels(self, pod_labels: Mapping[str, str], pod_name: str, container_name: str) -> str:
        labels = dict(pod_labels)
        labels[POD_NAME_LABEL] = pod_name
        labels[CONTAINER_NAME_LABEL] = container_name
        return self.sanitizer.render(labels)

    def _from_spec(self, obj: WorkloadSpecSnapshot) -> list[Reading]:
        time = epoch_millis(obj.created_at)
        readings: list[Reading] = []
        for container in obj.containers:
            label_set = self._labels(obj.labels, obj.name, container.name)
            sections = {"requests": container.requests, "limits": container.limits}
            for metric, section, resource in SPEC_METRICS:
                readings.append(
                    Reading(
                        key=metric + label_set,
                        value=quantity_to_float(sections[section].get(resource)),
                        time=time,
                        kind=ReadingKind.INSTANT,
                    )
                )
        return readings

    def _from_usage(self, obj: UsageSnapshot) -> list[Reading]:
        time = epoch_millis(obj.timestamp)
        readings: list[Reading] = []
        for container in obj.containers:
            label_set = self._labels(obj.labels, obj.name, container.name)
            for metric, resource in USAGE_METRICS:
                readings.append(
                    Reading(
                        key=metric + label_set,
                        value=quantity_to_float(container.usage.get(resource)),
                        time=time,
                        kind=ReadingKind.INSTANT,
                    )
                )
        return readings
