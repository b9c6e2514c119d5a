"""
Providers module initialization.
"""

from .provider import (
    ProviderConfig,
    Provider,
    KubeNodesProvider,
    HostListProvider,
    ProviderFactory,
    kube_nodes_provider,
    host_list_provider
)

__all__ = [
    'ProviderConfig',
    'Provider',
    'KubeNodesProvider',
    'HostListProvider',
    'ProviderFactory',
    'kube_nodes_provider',
    'host_list_provider'
]
