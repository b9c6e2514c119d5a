"""
Provider Resolution CLI

Resolves a host provider outside of a script and prints the resulting
configuration. Useful to check which nodes a diagnostic script would reach.

Usage:
    python provider_cli.py --names node-a node-b --ssh-user ops
    python provider_cli.py --labels node-role.kubernetes.io/worker= --format yaml
    python provider_cli.py --hosts 10.0.0.5 10.0.0.6 --ssh-user ops
"""

import os
import sys
import json
import argparse
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import yaml

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kubediag.config import KubeConfig, SSHConfig, initialize_context, load_settings
from kubediag.config.settings import DEFAULT_SETTINGS_PATH
from kubediag.context import ExecutionContext
from kubediag.errors import ArgumentError, KubeDiagError
from kubediag.providers import ProviderConfig, ProviderFactory


# =============================================================================
# Logging Setup
# =============================================================================

def setup_logging(verbose: bool = False) -> logging.Logger:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def build_arguments(args: argparse.Namespace, context: ExecutionContext) -> Dict[str, Any]:
    """
    Translate command line options into provider arguments.

    ``--context`` alone, and ``--ssh-port``/``--ssh-key`` without
    ``--ssh-user``, are merged over the defaults held in the execution
    context instead of replacing them.

    Raises:
        ArgumentError: SSH options were given but there is neither a user
            nor an ssh_config default to merge them into.
    """
    arguments: Dict[str, Any] = {}

    if args.hosts:
        arguments['hosts'] = list(args.hosts)
    if args.names:
        arguments['names'] = list(args.names)
    if args.labels:
        arguments['labels'] = list(args.labels)

    if args.kubeconfig:
        kube_cfg: Dict[str, Any] = {'path': args.kubeconfig}
        if args.context:
            kube_cfg['cluster_context'] = args.context
        arguments['kube_config'] = kube_cfg
    elif args.context:
        default_kube = context.get(ExecutionContext.KUBE_CONFIG)
        if isinstance(default_kube, KubeConfig):
            arguments['kube_config'] = replace(default_kube, cluster_context=args.context)
        else:
            arguments['kube_config'] = {'cluster_context': args.context}

    ssh_overrides: Dict[str, Any] = {}
    if args.ssh_port is not None:
        ssh_overrides['port'] = args.ssh_port
    if args.ssh_key:
        ssh_overrides['private_key_path'] = args.ssh_key

    if args.ssh_user:
        arguments['ssh_config'] = dict(ssh_overrides, username=args.ssh_user)
    elif ssh_overrides:
        default_ssh = context.get(ExecutionContext.SSH_CONFIG)
        if not isinstance(default_ssh, SSHConfig):
            raise ArgumentError(
                "--ssh-port and --ssh-key need --ssh-user or an ssh_config in settings",
                'provider_cli'
            )
        arguments['ssh_config'] = replace(default_ssh, **ssh_overrides)

    return arguments


def format_config(config: ProviderConfig, output_format: str = 'json') -> str:
    """Render a ProviderConfig as JSON or YAML."""
    data = config.to_dict()
    if output_format == 'yaml':
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2, ensure_ascii=False)


# =============================================================================
# Main Entry Point
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Resolve a host provider and print its configuration',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Nodes named node-a and node-b, default kubeconfig from settings
  %(prog)s --names node-a node-b --ssh-user ops

  # Worker nodes of a specific kube context, as YAML
  %(prog)s --kubeconfig ~/.kube/prod --context prod-admin \\
           --labels node-role.kubernetes.io/worker= --format yaml

  # Explicit host list
  %(prog)s --hosts 10.0.0.5 10.0.0.6 --ssh-user ops
        """
    )

    parser.add_argument('--settings', '-s',
                        default=DEFAULT_SETTINGS_PATH,
                        help=f'Path to settings file (default: {DEFAULT_SETTINGS_PATH})')
    parser.add_argument('--kubeconfig',
                        help='Path to kubeconfig file (overrides settings)')
    parser.add_argument('--context',
                        help='Kubeconfig context to use (keeps the settings kubeconfig path)')
    parser.add_argument('--names', '-n', nargs='+',
                        help='Node names to select')
    parser.add_argument('--labels', '-l', nargs='+',
                        help='Label selector terms, e.g. role=worker')
    parser.add_argument('--hosts', nargs='+',
                        help='Explicit hosts; uses host_list_provider instead of the cluster')
    parser.add_argument('--ssh-user',
                        help='SSH username (overrides settings)')
    parser.add_argument('--ssh-port', type=int,
                        help='SSH port, merged over the settings ssh_config (default: 22)')
    parser.add_argument('--ssh-key',
                        help='Path to SSH private key, merged over the settings ssh_config')
    parser.add_argument('--format', '-f',
                        choices=['json', 'yaml'],
                        default='json',
                        help='Output format (default: json)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    args = parser.parse_args(argv)

    logger = setup_logging(args.verbose)
    provider_type = 'host_list_provider' if args.hosts else 'kube_nodes_provider'
    logger.info(f"Resolving {provider_type}")

    try:
        settings = load_settings(args.settings)
        context = initialize_context(settings)
        provider = ProviderFactory.create(provider_type, context)
        config = provider.resolve(build_arguments(args, context))
    except KubeDiagError as e:
        logger.error(f"Provider resolution failed: {e}")
        return 1

    logger.info(f"Resolved {len(config.hosts)} host(s)")
    print(format_config(config, args.format))
    return 0


if __name__ == '__main__':
    sys.exit(main())
