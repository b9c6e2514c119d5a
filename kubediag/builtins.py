"""
Script Builtins

Name table the script evaluator uses to expose configuration and provider
builtins. Every builtin takes the execution context first, followed by the
script's keyword arguments.
"""

from typing import Any, Callable, Dict

from kubediag.config import global_config, kube_config, ssh_config
from kubediag.context import ExecutionContext
from kubediag.errors import ArgumentError
from kubediag.providers import host_list_provider, kube_nodes_provider

BUILTINS: Dict[str, Callable[..., Any]] = {
    'global_config': global_config,
    'kube_config': kube_config,
    'ssh_config': ssh_config,
    'kube_nodes_provider': kube_nodes_provider,
    'host_list_provider': host_list_provider,
}


def call_builtin(name: str, context: ExecutionContext, **kwargs) -> Any:
    """Invoke the builtin registered under name."""
    builtin = BUILTINS.get(name)
    if builtin is None:
        raise ArgumentError(f"unknown builtin: {name}", 'call_builtin')
    return builtin(context, **kwargs)
