"""
Settings Module

Loads runtime settings from a YAML file and uses them to initialize the
execution context before any script statement runs.

Example settings file::

    ssh_config:
      username: ops
      port: 2222
    kube_config:
      path: ~/.kube/prod
      cluster_context: prod-admin
    global_config:
      workdir: /var/tmp/kubediag
"""

from typing import Any, Dict, Optional
import copy
import logging
import os

import yaml

from kubediag.context import ExecutionContext
from kubediag.errors import ConfigurationError, KubeDiagError
from .types import add_default_global_config, global_config, kube_config, ssh_config

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = 'config/settings.yaml'

DEFAULT_SETTINGS: Dict[str, Any] = {
    'ssh_config': None,
    'kube_config': None,
    'global_config': None,
}


def load_settings(config_path: str = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    """
    Load settings from a YAML file, merged over the defaults.

    A missing file is not an error: the defaults are returned and a warning
    is logged. A file that is not valid YAML, or whose top level is not a
    mapping, raises ConfigurationError.
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if not os.path.exists(config_path):
        logger.warning(f"Settings file not found: {config_path}, using defaults")
        return settings

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {config_path}", 'load_settings') from e

    if data is None:
        return settings
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping", 'load_settings')

    for key, value in data.items():
        if key not in settings:
            logger.warning(f"Ignoring unknown settings section: {key}")
            continue
        settings[key] = value
    return settings


def _section(settings: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    value = settings.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigurationError(f"settings section '{name}' must be a mapping", 'initialize_context')
    return value


def initialize_context(settings: Optional[Dict[str, Any]] = None) -> ExecutionContext:
    """
    Create an ExecutionContext seeded with the defaults found in settings.

    ``global_config`` always receives a value: when the settings do not
    provide one it is derived from the current user, group and workdir.
    The ssh and kube defaults are only stored when configured.
    """
    settings = settings or {}
    context = ExecutionContext()

    try:
        global_section = _section(settings, 'global_config')
        if global_section is not None:
            global_config(context, **global_section)
        else:
            add_default_global_config(context)

        kube_section = _section(settings, 'kube_config')
        if kube_section is not None:
            kube_config(context, **kube_section)

        ssh_section = _section(settings, 'ssh_config')
        if ssh_section is not None:
            ssh_config(context, **ssh_section)
    except ConfigurationError:
        raise
    except KubeDiagError as e:
        raise ConfigurationError(f"invalid settings: {e}", 'initialize_context') from e

    logger.info(f"Execution context initialized with defaults: {', '.join(context.keys())}")
    return context
