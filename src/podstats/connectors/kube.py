"""List and watch pod specs and pod metrics through the Kubernetes API."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import timezone
from typing import Any

import yaml
from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException

from podstats.connectors.models import (
    ContainerSpec,
    ContainerUsage,
    ListOptions,
    ResumeMarker,
    UsageSnapshot,
    WatchOptions,
    WorkloadSpecSnapshot,
)
from podstats.connectors.ports import StreamEvent
from podstats.exceptions import ConnectorError, ResumeTokenExpired

logger = logging.getLogger(__name__)

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"
METRICS_PLURAL = "pods"

HTTP_STATUS_GONE = 410

# Default server-side timeout of one watch request
DEFAULT_WATCH_TIMEOUT_SECONDS = 300


def load_api_client(kubeconfig: str | None = None, context: str | None = None) -> client.ApiClient:
    """Load in-cluster or kubeconfig-based configuration and build an API client."""
    try:
        config.load_incluster_config()
        return client.ApiClient(client.Configuration.get_default_copy())
    except config.ConfigException:
        pass
    kwargs: dict[str, Any] = {}
    if kubeconfig:
        kwargs["config_file"] = str(kubeconfig)
    if context:
        kwargs["context"] = context
    try:
        config.load_kube_config(**kwargs)
    except (config.ConfigException, OSError, yaml.YAMLError) as e:
        raise ConnectorError(f"cannot load kubeconfig: {e}") from e
    return client.ApiClient(client.Configuration.get_default_copy())


def _container_spec(container: Any) -> ContainerSpec:
    """Extract declared requests and limits from a V1Container."""
    resources = getattr(container, "resources", None)
    requests = getattr(resources, "requests", None) or {}
    limits = getattr(resources, "limits", None) or {}
    return ContainerSpec(
        name=container.name,
        requests={k: str(v) for k, v in requests.items() if v is not None},
        limits={k: str(v) for k, v in limits.items() if v is not None},
    )


def build_workload_spec(pod: Any) -> WorkloadSpecSnapshot:
    """Build WorkloadSpecSnapshot from V1Pod."""
    created = pod.metadata.creation_timestamp
    if created is not None and created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return WorkloadSpecSnapshot(
        name=pod.metadata.name,
        namespace=pod.metadata.namespace or "default",
        labels=dict(pod.metadata.labels or {}),
        created_at=created,
        containers=[_container_spec(c) for c in getattr(pod.spec, "containers", []) or []],
    )


def build_usage(item: dict[str, Any]) -> UsageSnapshot:
    """Build UsageSnapshot from a metrics.k8s.io PodMetrics object (as returned by CustomObjectsApi)."""
    metadata = item.get("metadata") or {}
    containers = [
        ContainerUsage(
            name=c.get("name", ""),
            usage={k: str(v) for k, v in (c.get("usage") or {}).items()},
        )
        for c in item.get("containers") or []
    ]
    return UsageSnapshot(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace") or "default",
        labels=dict(metadata.get("labels") or {}),
        timestamp=item.get("timestamp"),
        window=item.get("window"),
        containers=containers,
    )


def _list_kwargs(options: ListOptions) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if options.label_selector:
        kwargs["label_selector"] = options.label_selector
    if options.limit:
        kwargs["limit"] = options.limit
    return kwargs


class PodLister:
    """Lists pods of a namespace and reports their declared resources."""

    def __init__(self, api_client: client.ApiClient, namespace: str = "default") -> None:
        self.namespace = namespace
        self._core = client.CoreV1Api(api_client)

    def list(self, options: ListOptions) -> list[WorkloadSpecSnapshot]:
        pod_list = self._core.list_namespaced_pod(
            namespace=self.namespace,
            allow_watch_bookmarks=options.allow_bookmarks,
            **_list_kwargs(options),
        )
        return [build_workload_spec(pod) for pod in pod_list.items]


class PodMetricsLister:
    """Lists metrics-server samples for the pods of a namespace."""

    def __init__(self, api_client: client.ApiClient, namespace: str = "default") -> None:
        self.namespace = namespace
        self._custom = client.CustomObjectsApi(api_client)

    def list(self, options: ListOptions) -> list[UsageSnapshot]:
        result = self._custom.list_namespaced_custom_object(
            group=METRICS_GROUP,
            version=METRICS_VERSION,
            namespace=self.namespace,
            plural=METRICS_PLURAL,
            **_list_kwargs(options),
        )
        return [build_usage(item) for item in result.get("items") or []]


class PodWatcher:
    """Streams pod spec changes for a namespace, including bookmark events."""

    def __init__(
        self,
        api_client: client.ApiClient,
        namespace: str = "default",
        timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
    ) -> None:
        self.namespace = namespace
        self.timeout_seconds = timeout_seconds
        self._core = client.CoreV1Api(api_client)

    def watch(self, options: WatchOptions) -> Iterator[StreamEvent]:
        kwargs: dict[str, Any] = {
            "namespace": self.namespace,
            "allow_watch_bookmarks": options.allow_bookmarks,
            "timeout_seconds": self.timeout_seconds,
        }
        if options.resume_token:
            kwargs["resource_version"] = options.resume_token
        if options.label_selector:
            kwargs["label_selector"] = options.label_selector

        w = watch.Watch()
        try:
            for event in w.stream(self._core.list_namespaced_pod, **kwargs):
                kind = event.get("type")
                if kind == "BOOKMARK":
                    yield ResumeMarker(payload=event.get("raw_object") or {})
                elif kind in ("ADDED", "MODIFIED"):
                    yield build_workload_spec(event["object"])
                else:
                    logger.debug("Skipping %s event", kind)
        except ApiException as e:
            if e.status == HTTP_STATUS_GONE:
                raise ResumeTokenExpired(e.reason or "resource version expired") from e
            raise
        finally:
            w.stop()
