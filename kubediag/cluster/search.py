"""
Cluster Search Module

Turns loosely typed script arguments into search parameters and runs
resource searches against a live Kubernetes cluster through the dynamic
client of the ``kubernetes`` package.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union
import logging

from kubernetes import config as k8s_config
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.resource import ResourceList

from kubediag.errors import ArgumentError, ClientInitError, KubeDiagError, SearchError

logger = logging.getLogger(__name__)

CORE_GROUP = 'core'

NAME_KEYS = ('names', 'nodes')
LABEL_KEY = 'labels'


@dataclass(frozen=True)
class SearchParameters:
    """Filter criteria for a cluster search. Empty filters match everything."""
    names: FrozenSet[str] = field(default_factory=frozenset)
    labels: FrozenSet[str] = field(default_factory=frozenset)
    extra: Dict[str, Any] = field(default_factory=dict, hash=False)

    def names_selector(self) -> str:
        """Space separated names, sorted so repeated searches are identical."""
        return ' '.join(sorted(self.names))

    def labels_selector(self) -> str:
        """Comma separated label selector understood by the API server."""
        return ','.join(sorted(self.labels))


def _string_set(key: str, value: Any) -> FrozenSet[str]:
    if isinstance(value, str):
        return frozenset([value]) if value else frozenset()
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ArgumentError(
            f"'{key}' must be a string or a list of strings, got {type(value).__name__}",
            'normalize_search_args'
        )
    for item in value:
        if not isinstance(item, str):
            raise ArgumentError(
                f"'{key}' must only contain strings, got {type(item).__name__}",
                'normalize_search_args'
            )
    return frozenset(value)


def normalize_search_args(arguments: Mapping[str, Any]) -> SearchParameters:
    """
    Build SearchParameters from script arguments.

    ``nodes`` is an alias for ``names``. When both are given ``nodes`` takes
    precedence and the ``names`` value is discarded with a warning. Keys
    other than names, nodes and labels are passed through in ``extra``.

    Raises:
        ArgumentError: A recognized key holds something other than a string
            or a collection of strings.
    """
    names_value = arguments.get('names')
    nodes_value = arguments.get('nodes')

    if nodes_value is not None:
        if names_value is not None:
            logger.warning(
                f"Both 'nodes' and 'names' were given; using nodes={nodes_value!r} "
                f"and ignoring names={names_value!r}"
            )
        names_value = nodes_value

    names: FrozenSet[str] = frozenset()
    if names_value is not None:
        names = _string_set('nodes' if nodes_value is not None else 'names', names_value)

    labels: FrozenSet[str] = frozenset()
    labels_value = arguments.get(LABEL_KEY)
    if labels_value is not None:
        labels = _string_set(LABEL_KEY, labels_value)

    extra = {
        key: value for key, value in arguments.items()
        if key not in NAME_KEYS and key != LABEL_KEY
    }
    return SearchParameters(names=names, labels=labels, extra=extra)


@dataclass
class SearchResult:
    """Raw items returned for one searched resource and namespace."""
    resource_name: str
    kind: str
    group_version: str
    namespace: str = ''
    items: List[Dict[str, Any]] = field(default_factory=list)


def _split(value: Union[str, Iterable[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part for part in value.replace(',', ' ').split() if part]
    return [part for part in value if part]


def _item_name(item: Mapping[str, Any]) -> Optional[str]:
    metadata = item.get('metadata') if isinstance(item, Mapping) else None
    if isinstance(metadata, Mapping):
        return metadata.get('name')
    return None


def _runs_container(item: Mapping[str, Any], containers: List[str]) -> bool:
    spec = item.get('spec') if isinstance(item, Mapping) else None
    if not isinstance(spec, Mapping):
        return False
    for container in spec.get('containers') or []:
        if isinstance(container, Mapping) and container.get('name') in containers:
            return True
    return False


def _concrete(resources: List[Any]) -> List[Any]:
    # discovery also indexes the "<Kind>List" wrappers under the same name
    return [resource for resource in resources if not isinstance(resource, ResourceList)]


class KubeSearchClient:
    """Searches cluster resources through a Kubernetes dynamic client."""

    def __init__(self, dynamic_client: DynamicClient):
        self._dynamic = dynamic_client

    @classmethod
    def from_kubeconfig(cls, kubeconfig_path: str,
                        context: Optional[str] = None) -> 'KubeSearchClient':
        """
        Create a client bound to the cluster described by a kubeconfig file.

        Building the dynamic client runs API discovery, so an unreachable
        cluster fails here rather than on the first search.

        Raises:
            ClientInitError: The kubeconfig is unusable or discovery failed.
        """
        try:
            api_client = k8s_config.new_client_from_config(
                config_file=kubeconfig_path, context=context
            )
        except Exception as e:
            raise ClientInitError(
                f"could not load kubeconfig {kubeconfig_path}: {e}", 'KubeSearchClient'
            ) from e

        try:
            dynamic_client = DynamicClient(api_client)
        except Exception as e:
            api_client.close()
            raise ClientInitError(f"could not reach cluster: {e}", 'KubeSearchClient') from e

        logger.debug(f"Search client initialized from {kubeconfig_path}")
        return cls(dynamic_client)

    def close(self) -> None:
        self._dynamic.client.close()

    def __enter__(self) -> 'KubeSearchClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _resolve_resource(self, group: str, kind: str, version: str):
        group = '' if group == CORE_GROUP else group
        if group:
            filters = {'group': group, 'api_version': version or None}
        else:
            filters = {'prefix': 'api', 'api_version': version or 'v1'}

        resources = self._dynamic.resources
        matches = (_concrete(resources.search(name=kind, **filters))
                   or _concrete(resources.search(kind=kind, **filters)))
        if not matches:
            raise SearchError(f"no resource '{kind}' in group '{group or CORE_GROUP}'", 'search')
        if len(matches) > 1:
            preferred = [match for match in matches if getattr(match, 'preferred', False)]
            matches = preferred or matches
        return matches[0]

    def search(self, group: str, kind: str, namespaces: Union[str, Iterable[str]] = '',
               version: str = '', names: Union[str, Iterable[str]] = '',
               labels: str = '', containers: Union[str, Iterable[str]] = '') -> List[SearchResult]:
        """
        Search the cluster for resources of one kind.

        Args:
            group: API group, ``core`` or empty for the core group
            kind: Resource name (``nodes``) or kind (``Node``)
            namespaces: Namespaces to search; empty means all
            version: API version; empty means the preferred version
            names: Object names to keep; empty keeps every object
            labels: Label selector passed to the API server
            containers: For pods, keep only pods running one of these containers

        Returns:
            One SearchResult per searched namespace, items in server order

        Raises:
            SearchError: The resource cannot be found or the API call failed.
        """
        name_filter = set(_split(names))
        container_filter = _split(containers)

        try:
            resource = self._resolve_resource(group, kind, version)
            target_namespaces = _split(namespaces) if resource.namespaced else []

            results = []
            for namespace in target_namespaces or [None]:
                response = resource.get(namespace=namespace, label_selector=labels or None)
                items = response.to_dict().get('items') or []

                if name_filter:
                    items = [item for item in items if _item_name(item) in name_filter]
                if container_filter and resource.kind == 'Pod':
                    items = [item for item in items if _runs_container(item, container_filter)]

                results.append(SearchResult(
                    resource_name=resource.name,
                    kind=resource.kind,
                    group_version=resource.group_version,
                    namespace=namespace or '',
                    items=items,
                ))
        except KubeDiagError:
            raise
        except Exception as e:
            raise SearchError(f"{kind} search failed: {e}", 'search') from e

        logger.debug(f"Search for {kind} returned {sum(len(r.items) for r in results)} items")
        return results
