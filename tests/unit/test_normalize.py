"""Tests for label rendering, quantity conversion and the normalizer."""

import math
import re

import pytest

from podstats.connectors.models import ContainerSpec
from podstats.exceptions import NormalizationError
from podstats.readings.models import ReadingKind
from podstats.readings.normalize import (
    LabelSanitizer,
    Normalizer,
    decimal_to_float,
    epoch_millis,
    quantity_to_float,
)
from tests.fakes import CREATED, CREATED_MS, make_spec, make_usage

LABEL_PAIR = re.compile(r'([A-Za-z0-9_]+)="([^"]*)"')


class TestLabelSanitizer:
    """Tests for label name sanitization and rendering."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("app", "app"),
            ("pod-name", "pod_name"),
            ("app.kubernetes.io/name", "app_kubernetes_io_name"),
            ("__private", "private"),
            ("-leading-dash", "leading_dash"),
            ("ünïcode", "n_code"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        """Invalid characters become underscores and leading underscores are stripped."""
        assert LabelSanitizer().sanitize(raw) == expected

    @pytest.mark.parametrize("raw", ["app", "pod-name", "_x-y.z", "a/b/c", "___", "9lives"])
    def test_sanitize_is_idempotent(self, raw: str) -> None:
        """Sanitizing a sanitized name changes nothing."""
        sanitizer = LabelSanitizer()
        once = sanitizer.sanitize(raw)
        assert sanitizer.sanitize(once) == once

    @pytest.mark.parametrize(
        "labels",
        [
            {},
            {"app": "web"},
            {"app.kubernetes.io/name": "web", "tier": "frontend", "_hidden": "yes"},
            {"pod-template-hash": "5d8f7", "container-name": "app", "x": ""},
        ],
    )
    def test_render_is_well_formed(self, labels: dict[str, str]) -> None:
        """Rendered label sets are braced, sanitized, and contain every pair once."""
        sanitizer = LabelSanitizer()
        rendered = sanitizer.render(labels)

        assert rendered.startswith("{")
        assert rendered.endswith("}")
        pairs = LABEL_PAIR.findall(rendered)
        assert len(pairs) == len(labels)
        for name, value in pairs:
            assert not name.startswith("_")
        expected = sorted((sanitizer.sanitize(k), v) for k, v in labels.items())
        assert sorted(pairs) == expected

    def test_render_keeps_insertion_order(self) -> None:
        rendered = LabelSanitizer().render({"b": "2", "a": "1"})
        assert rendered == '{b="2", a="1"}'

    def test_render_drops_names_with_nothing_left(self) -> None:
        """A name made only of underscores sanitizes to nothing and is dropped."""
        assert LabelSanitizer().render({"___": "x", "app": "web"}) == '{app="web"}'

    def test_render_writes_values_verbatim(self) -> None:
        assert LabelSanitizer().render({"note": 'say "hi"'}) == '{note="say "hi""}'


class TestQuantityConversion:
    """Tests for decimal and quantity conversion to float."""

    def test_unscaled_mantissa(self) -> None:
        assert math.isclose(decimal_to_float(134217728, 0), 134217728.0, rel_tol=1e-9)

    def test_scaled_mantissa(self) -> None:
        assert math.isclose(decimal_to_float(1342177280, 1), 134217728.0, rel_tol=1e-9)

    def test_negative_scale(self) -> None:
        assert decimal_to_float(5, -3) == 5000.0

    @pytest.mark.parametrize(
        ("quantity", "expected"),
        [
            ("128Mi", 134217728.0),
            ("1Gi", 1073741824.0),
            ("250m", 0.25),
            ("2", 2.0),
            ("1k", 1000.0),
            ("12345678n", 0.012345678),
            ("1e3", 1000.0),
        ],
    )
    def test_quantity_strings(self, quantity: str, expected: float) -> None:
        assert math.isclose(quantity_to_float(quantity), expected, rel_tol=1e-9)

    @pytest.mark.parametrize("quantity", [None, ""])
    def test_missing_quantity_is_zero(self, quantity: str | None) -> None:
        assert quantity_to_float(quantity) == 0.0

    def test_invalid_quantity_raises(self) -> None:
        with pytest.raises(NormalizationError):
            quantity_to_float("lots")

    @pytest.mark.parametrize("quantity", ["1e400", "1e-400"])
    def test_out_of_range_quantity_raises_normalization_error(self, quantity: str) -> None:
        """Exponents beyond float range are reported, not raised as arithmetic errors."""
        with pytest.raises(NormalizationError):
            quantity_to_float(quantity)


class TestEpochMillis:
    def test_seconds_resolution_in_millis(self) -> None:
        assert epoch_millis(CREATED) == CREATED_MS
        assert CREATED_MS.endswith("000")

    def test_missing_time(self) -> None:
        assert epoch_millis(None) == ""


class TestNormalizer:
    """Tests for Normalizer.normalize."""

    def test_spec_emits_six_readings_per_container(self) -> None:
        spec = make_spec(
            containers=[
                ContainerSpec(name="app", requests={"memory": "128Mi"}),
                ContainerSpec(name="sidecar", limits={"cpu": "1"}),
            ]
        )

        readings = Normalizer().normalize(spec)

        assert len(readings) == 12
        assert all(r.kind == ReadingKind.INSTANT for r in readings)
        assert all(r.time == CREATED_MS for r in readings)

    def test_spec_keys_and_values(self) -> None:
        readings = {r.key: r.value for r in Normalizer().normalize(make_spec())}
        labels = '{app="web", pod_name="web-1", container_name="app"}'

        assert readings["ps_memory_request_bytes" + labels] == 134217728.0
        assert readings["ps_memory_limit_bytes" + labels] == 268435456.0
        assert math.isclose(readings["ps_cpu_request_cores" + labels], 0.25)
        assert math.isclose(readings["ps_cpu_limit_cores" + labels], 0.5)
        assert readings["ps_storage_request_bytes" + labels] == 1073741824.0
        assert readings["ps_storage_limit_bytes" + labels] == 2147483648.0

    def test_spec_missing_resources_read_zero(self) -> None:
        spec = make_spec(containers=[ContainerSpec(name="bare")])

        readings = Normalizer().normalize(spec)

        assert len(readings) == 6
        assert all(r.value == 0.0 for r in readings)

    def test_usage_emits_three_readings_per_container(self) -> None:
        readings = Normalizer().normalize(make_usage(memory="64Mi", cpu="100m"))
        labels = '{app="web", pod_name="web-1", container_name="app"}'
        by_key = {r.key: r.value for r in readings}

        assert len(readings) == 3
        assert by_key["ps_memory_usage_bytes" + labels] == 67108864.0
        assert math.isclose(by_key["ps_cpu_usage_cores" + labels], 0.1)
        assert by_key["ps_storage_usage_bytes" + labels] == 0.0

    def test_pod_name_overrides_colliding_pod_label(self) -> None:
        spec = make_spec(labels={"pod-name": "spoofed"})

        readings = Normalizer().normalize(spec)

        assert all('pod_name="web-1"' in r.key for r in readings)
        assert all("spoofed" not in r.key for r in readings)

    def test_invalid_quantity_raises(self) -> None:
        spec = make_spec(containers=[ContainerSpec(name="app", requests={"memory": "much"})])
        with pytest.raises(NormalizationError):
            Normalizer().normalize(spec)

    def test_pod_without_containers_emits_nothing(self) -> None:
        assert Normalizer().normalize(make_spec(containers=[])) == []
