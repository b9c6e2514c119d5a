"""
Configuration Types

Typed, immutable configuration objects a diagnostic script builds with the
``ssh_config``, ``kube_config`` and ``global_config`` builtins. Each builtin
also stores its result in the execution context so later provider
evaluations inherit it as their default.
"""

from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Mapping, Optional
import logging
import os

from kubediag.context import ExecutionContext
from kubediag.errors import ArgumentError

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22
DEFAULT_MAX_RETRIES = 5
DEFAULT_CONNECT_TIMEOUT = 30
DEFAULT_WORKDIR = '/tmp/kubediag'
DEFAULT_OUTPUT_PATH = 'kubediag.tar.gz'


def default_private_key_path() -> str:
    return os.path.join(os.path.expanduser('~'), '.ssh', 'id_rsa')


def default_kubeconfig_path() -> str:
    """Return the first entry of $KUBECONFIG, or ~/.kube/config."""
    env_value = os.environ.get('KUBECONFIG', '')
    for entry in env_value.split(os.pathsep):
        if entry.strip():
            return os.path.expanduser(entry.strip())
    return os.path.join(os.path.expanduser('~'), '.kube', 'config')


def _to_int(operation: str, key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ArgumentError(f"'{key}' must be an integer, got bool", operation)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ArgumentError(f"'{key}' must be an integer, got {value!r}", operation) from e


def _to_optional_str(operation: str, key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ArgumentError(f"'{key}' must be a string, got {type(value).__name__}", operation)
    return value


def _check_keys(operation: str, cls: type, values: Mapping[str, Any]) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ArgumentError(f"unexpected argument(s): {', '.join(unknown)}", operation)


@dataclass(frozen=True)
class SSHConfig:
    """Connection defaults applied to every discovered host."""
    username: str
    port: int = DEFAULT_SSH_PORT
    private_key_path: str = ''
    max_retries: int = DEFAULT_MAX_RETRIES
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    job_id: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'SSHConfig':
        """
        Build an SSHConfig from loosely typed script arguments.

        Args:
            values: Keyword arguments; ``username`` is required.

        Raises:
            ArgumentError: Unknown keys, a missing username or badly typed values.
        """
        operation = 'ssh_config'
        _check_keys(operation, cls, values)

        username = values.get('username')
        if not isinstance(username, str) or not username:
            raise ArgumentError("'username' is required", operation)

        return cls(
            username=username,
            port=_to_int(operation, 'port', values.get('port', DEFAULT_SSH_PORT)),
            private_key_path=_to_optional_str(
                operation, 'private_key_path', values.get('private_key_path')
            ) or default_private_key_path(),
            max_retries=_to_int(operation, 'max_retries', values.get('max_retries', DEFAULT_MAX_RETRIES)),
            connect_timeout=_to_int(
                operation, 'connect_timeout', values.get('connect_timeout', DEFAULT_CONNECT_TIMEOUT)
            ),
            job_id=_to_optional_str(operation, 'job_id', values.get('job_id')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class KubeConfig:
    """Location of the kubeconfig used to reach a cluster."""
    path: str
    cluster_context: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'KubeConfig':
        operation = 'kube_config'
        _check_keys(operation, cls, values)
        path = _to_optional_str(operation, 'path', values.get('path')) or default_kubeconfig_path()
        return cls(
            path=os.path.expanduser(path.strip('"\'')),
            cluster_context=_to_optional_str(operation, 'cluster_context', values.get('cluster_context')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GlobalConfig:
    """Process-wide defaults shared by every script statement."""
    workdir: str
    output_path: str
    uid: str
    gid: str
    default_shell: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'GlobalConfig':
        operation = 'global_config'
        _check_keys(operation, cls, values)
        return cls(
            workdir=_to_optional_str(operation, 'workdir', values.get('workdir')) or default_workdir(),
            output_path=_to_optional_str(operation, 'output_path', values.get('output_path'))
            or DEFAULT_OUTPUT_PATH,
            uid=str(values['uid']) if values.get('uid') is not None else current_uid(),
            gid=str(values['gid']) if values.get('gid') is not None else current_gid(),
            default_shell=_to_optional_str(operation, 'default_shell', values.get('default_shell')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_workdir() -> str:
    return os.environ.get('KUBEDIAG_WORKDIR', DEFAULT_WORKDIR)


def current_uid() -> str:
    # os.getuid is POSIX only
    getuid = getattr(os, 'getuid', None)
    return str(getuid()) if getuid else ''


def current_gid() -> str:
    getgid = getattr(os, 'getgid', None)
    return str(getgid()) if getgid else ''


# =============================================================================
# Script builtins
# =============================================================================

def ssh_config(context: ExecutionContext, **kwargs) -> SSHConfig:
    """Build an SSHConfig and make it the default for later providers."""
    config = SSHConfig.from_dict(kwargs)
    context.set(ExecutionContext.SSH_CONFIG, config)
    logger.debug(f"ssh_config default set for user '{config.username}'")
    return config


def kube_config(context: ExecutionContext, **kwargs) -> KubeConfig:
    """Build a KubeConfig and make it the default for later providers."""
    config = KubeConfig.from_dict(kwargs)
    context.set(ExecutionContext.KUBE_CONFIG, config)
    logger.debug(f"kube_config default set to {config.path}")
    return config


def global_config(context: ExecutionContext, **kwargs) -> GlobalConfig:
    """Build a GlobalConfig and make it the default for later statements."""
    config = GlobalConfig.from_dict(kwargs)
    context.set(ExecutionContext.GLOBAL_CONFIG, config)
    return config


def add_default_global_config(context: ExecutionContext) -> GlobalConfig:
    """Store a GlobalConfig built from the current user, group and workdir."""
    return global_config(
        context,
        uid=current_uid(),
        gid=current_gid(),
        workdir=default_workdir(),
        output_path=DEFAULT_OUTPUT_PATH,
    )
