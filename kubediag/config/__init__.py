"""
Config module initialization.
"""

from .types import (
    SSHConfig,
    KubeConfig,
    GlobalConfig,
    ssh_config,
    kube_config,
    global_config,
    add_default_global_config,
    default_kubeconfig_path
)
from .settings import load_settings, initialize_context

__all__ = [
    'SSHConfig',
    'KubeConfig',
    'GlobalConfig',
    'ssh_config',
    'kube_config',
    'global_config',
    'add_default_global_config',
    'default_kubeconfig_path',
    'load_settings',
    'initialize_context'
]
