"""
KubeDiag provider layer.

Configuration composition for diagnostic scripts: providers discover target
machines and return immutable configuration objects describing how to
reach them.
"""

from .errors import (
    KubeDiagError,
    ArgumentError,
    DecodeError,
    ConfigurationError,
    ClientInitError,
    SearchError,
    MissingDefaultError
)

from .context import ExecutionContext

from .config import (
    SSHConfig,
    KubeConfig,
    GlobalConfig,
    load_settings,
    initialize_context
)

from .cluster import (
    SearchParameters,
    SearchResult,
    KubeSearchClient,
    ClusterNode,
    NodeAddress,
    normalize_search_args,
    decode_nodes
)

from .providers import (
    ProviderConfig,
    KubeNodesProvider,
    HostListProvider,
    ProviderFactory,
    kube_nodes_provider,
    host_list_provider
)

from .builtins import BUILTINS, call_builtin

__version__ = '0.1.0'

__all__ = [
    'KubeDiagError',
    'ArgumentError',
    'DecodeError',
    'ConfigurationError',
    'ClientInitError',
    'SearchError',
    'MissingDefaultError',
    'ExecutionContext',
    'SSHConfig',
    'KubeConfig',
    'GlobalConfig',
    'load_settings',
    'initialize_context',
    'SearchParameters',
    'SearchResult',
    'KubeSearchClient',
    'ClusterNode',
    'NodeAddress',
    'normalize_search_args',
    'decode_nodes',
    'ProviderConfig',
    'KubeNodesProvider',
    'HostListProvider',
    'ProviderFactory',
    'kube_nodes_provider',
    'host_list_provider',
    'BUILTINS',
    'call_builtin'
]
