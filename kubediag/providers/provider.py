"""
Provider Module

Providers turn script arguments into an immutable ProviderConfig describing
a set of remote hosts and how to connect to them. Connection defaults the
script does not pass explicitly are inherited from the execution context.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import logging
import os

from kubediag.cluster import KubeSearchClient, decode_nodes, get_node_internal_ip, normalize_search_args
from kubediag.cluster.search import CORE_GROUP
from kubediag.config import KubeConfig, SSHConfig
from kubediag.context import ExecutionContext
from kubediag.errors import (
    ArgumentError,
    ClientInitError,
    ConfigurationError,
    DecodeError,
    MissingDefaultError,
    SearchError
)

logger = logging.getLogger(__name__)

KUBE_NODES_PROVIDER = 'kube_nodes_provider'
HOST_LIST_PROVIDER = 'host_list_provider'
SSH_TRANSPORT = 'ssh'

ClientFactory = Callable[..., KubeSearchClient]


@dataclass(frozen=True)
class ProviderConfig:
    """Resolved provider: where the hosts are and how to reach them."""
    kind: str
    transport: str
    hosts: Tuple[str, ...]
    ssh_config: SSHConfig

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'transport': self.transport,
            'hosts': list(self.hosts),
            'ssh_config': self.ssh_config.to_dict(),
        }


class Provider(ABC):
    """Abstract base class for host providers."""

    kind = ''

    def __init__(self, context: ExecutionContext):
        self.context = context

    @abstractmethod
    def resolve(self, arguments: Mapping[str, Any]) -> ProviderConfig:
        """Resolve script arguments into a ProviderConfig."""
        pass

    def _resolve_ssh_config(self, arguments: Mapping[str, Any]) -> SSHConfig:
        """Use the explicit ssh_config argument, else the context default."""
        value = arguments.get('ssh_config')
        if value is None:
            default = self.context.get(ExecutionContext.SSH_CONFIG)
            if default is None:
                raise MissingDefaultError("default ssh_config not found", self.kind)
            if not isinstance(default, SSHConfig):
                raise ConfigurationError(
                    f"context ssh_config has unexpected type {type(default).__name__}", self.kind
                )
            return default

        if isinstance(value, SSHConfig):
            return value
        if isinstance(value, Mapping):
            return SSHConfig.from_dict(value)
        raise ArgumentError(f"'ssh_config' has unexpected type {type(value).__name__}", self.kind)


class KubeNodesProvider(Provider):
    """Provider whose hosts are the internal IPs of Kubernetes cluster nodes."""

    kind = KUBE_NODES_PROVIDER

    def __init__(self, context: ExecutionContext,
                 client_factory: Optional[ClientFactory] = None):
        super().__init__(context)
        self._client_factory = client_factory or KubeSearchClient.from_kubeconfig

    def _resolve_kube_config(self, arguments: Mapping[str, Any]) -> KubeConfig:
        value = arguments.get('kube_config')
        if value is None:
            value = self.context.get(ExecutionContext.KUBE_CONFIG)
        if value is None:
            raise ConfigurationError("no kube_config given and no default in context", self.kind)

        if isinstance(value, str):
            kube_cfg = KubeConfig(path=os.path.expanduser(value.strip('"\'')))
        elif isinstance(value, KubeConfig):
            kube_cfg = value
        elif isinstance(value, Mapping):
            kube_cfg = KubeConfig.from_dict(value)
        else:
            raise ArgumentError(f"'kube_config' has unexpected type {type(value).__name__}", self.kind)

        if not kube_cfg.path or not os.path.exists(kube_cfg.path):
            raise ConfigurationError(f"kubeconfig not found: {kube_cfg.path}", self.kind)
        return kube_cfg

    def resolve(self, arguments: Mapping[str, Any]) -> ProviderConfig:
        """
        Discover cluster nodes and compose the provider configuration.

        Args:
            arguments: Script arguments; recognized keys are ``names``/``nodes``,
                ``labels``, ``kube_config`` and ``ssh_config``

        Returns:
            ProviderConfig with one host per discovered node, in discovery
            order. Nodes without an InternalIP contribute an empty string.

        Raises:
            ConfigurationError, ClientInitError, ArgumentError, SearchError,
            DecodeError, MissingDefaultError
        """
        kube_cfg = self._resolve_kube_config(arguments)

        try:
            client = self._client_factory(kube_cfg.path, context=kube_cfg.cluster_context)
        except ClientInitError as e:
            raise ClientInitError(f"could not initialize search client: {e}", self.kind) from e

        try:
            params = normalize_search_args(arguments)
            try:
                results = client.search(
                    CORE_GROUP,    # group
                    'nodes',       # kind
                    '',            # namespaces
                    '',            # version
                    params.names_selector(),
                    params.labels_selector(),
                    '',            # containers
                )
            except SearchError as e:
                raise SearchError(f"could not fetch nodes: {e}", self.kind) from e

            try:
                nodes = decode_nodes(results)
            except DecodeError as e:
                raise DecodeError(f"could not decode nodes: {e}", self.kind) from e
        finally:
            client.close()

        hosts = tuple(get_node_internal_ip(node) for node in nodes)
        missing = sum(1 for host in hosts if not host)
        if missing:
            logger.warning(f"{self.kind}: {missing} node(s) have no InternalIP address")

        ssh_cfg = self._resolve_ssh_config(arguments)
        logger.info(f"{self.kind}: discovered {len(hosts)} node(s)")

        return ProviderConfig(
            kind=self.kind,
            transport=SSH_TRANSPORT,
            hosts=hosts,
            ssh_config=ssh_cfg,
        )


class HostListProvider(Provider):
    """Provider wrapping an explicit list of hosts."""

    kind = HOST_LIST_PROVIDER

    def resolve(self, arguments: Mapping[str, Any]) -> ProviderConfig:
        value = arguments.get('hosts')
        if isinstance(value, str):
            hosts = (value,)
        elif isinstance(value, (list, tuple)) and all(isinstance(host, str) for host in value):
            hosts = tuple(value)
        else:
            raise ArgumentError("'hosts' must be a string or a list of strings", self.kind)
        if not hosts:
            raise ArgumentError("'hosts' must name at least one host", self.kind)

        return ProviderConfig(
            kind=self.kind,
            transport=SSH_TRANSPORT,
            hosts=hosts,
            ssh_config=self._resolve_ssh_config(arguments),
        )


class ProviderFactory:
    """Factory class for creating providers by kind."""

    @staticmethod
    def create(provider_type: str, context: ExecutionContext, **options) -> Provider:
        """Create a provider bound to an execution context."""
        if provider_type == KUBE_NODES_PROVIDER:
            return KubeNodesProvider(context, client_factory=options.get('client_factory'))
        elif provider_type == HOST_LIST_PROVIDER:
            return HostListProvider(context)
        else:
            raise ArgumentError(f"Unknown provider type: {provider_type}", 'ProviderFactory')


def kube_nodes_provider(context: ExecutionContext, **kwargs) -> ProviderConfig:
    """
    Script builtin collecting compute resources from a Kubernetes cluster.

    Script form: kube_nodes_provider([kube_config=kube_config(), ssh_config=ssh_config(),
    names=["foo", "bar"], labels=["role=worker"]])
    """
    return KubeNodesProvider(context).resolve(kwargs)


def host_list_provider(context: ExecutionContext, **kwargs) -> ProviderConfig:
    """Script builtin wrapping an explicit host list."""
    return HostListProvider(context).resolve(kwargs)
