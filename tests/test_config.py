"""
Unit tests for configuration types, builtins, settings and the execution context.
"""
import os
import threading

import pytest

from kubediag.builtins import BUILTINS, call_builtin
from kubediag.config import (
    GlobalConfig,
    KubeConfig,
    SSHConfig,
    add_default_global_config,
    default_kubeconfig_path,
    global_config,
    initialize_context,
    kube_config,
    load_settings,
    ssh_config,
)
from kubediag.context import ExecutionContext
from kubediag.errors import ArgumentError, ConfigurationError

TEST_DIR = os.path.dirname(os.path.abspath(__file__))
TEST_SETTINGS_YAML = os.path.join(TEST_DIR, 'test_settings.yaml')


class TestExecutionContext:
    """Tests for ExecutionContext."""

    def test_get_absent_returns_default(self):
        ctx = ExecutionContext()
        assert ctx.get('ssh_config') is None
        assert ctx.get('ssh_config', 'fallback') == 'fallback'
        assert 'ssh_config' not in ctx

    def test_set_and_get(self):
        ctx = ExecutionContext()
        ctx.set('ssh_config', 'value')
        assert ctx.get('ssh_config') == 'value'
        assert ctx.has('ssh_config')
        assert ctx.keys() == ['ssh_config']

    def test_initial_defaults_are_copied(self):
        defaults = {'a': 1}
        ctx = ExecutionContext(defaults)
        defaults['b'] = 2
        assert ctx.keys() == ['a']

    def test_concurrent_readers(self):
        ctx = ExecutionContext({'key': 'value'})
        seen = []

        def read():
            for _ in range(100):
                seen.append(ctx.get('key'))

        threads = [threading.Thread(target=read) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert seen == ['value'] * 400


class TestSSHConfig:
    """Tests for the ssh_config builtin."""

    def test_defaults(self):
        cfg = SSHConfig.from_dict({'username': 'ops'})
        assert cfg.port == 22
        assert cfg.max_retries == 5
        assert cfg.connect_timeout == 30
        assert cfg.private_key_path.endswith(os.path.join('.ssh', 'id_rsa'))
        assert cfg.job_id is None

    def test_port_string_is_converted(self):
        assert SSHConfig.from_dict({'username': 'ops', 'port': '2222'}).port == 2222

    @pytest.mark.parametrize('values', [
        {},
        {'username': ''},
        {'username': 7},
        {'username': 'ops', 'port': 'ssh'},
        {'username': 'ops', 'port': True},
        {'username': 'ops', 'private_key_path': 5},
        {'username': 'ops', 'password': 'secret'},
    ])
    def test_invalid_values_raise(self, values):
        with pytest.raises(ArgumentError):
            SSHConfig.from_dict(values)

    def test_builtin_sets_context_default(self):
        ctx = ExecutionContext()
        cfg = ssh_config(ctx, username='ops', port=2022)
        assert ctx.get(ExecutionContext.SSH_CONFIG) is cfg
        assert cfg.port == 2022

    def test_later_builtin_replaces_default(self):
        ctx = ExecutionContext()
        ssh_config(ctx, username='first')
        second = ssh_config(ctx, username='second')
        assert ctx.get(ExecutionContext.SSH_CONFIG) is second


class TestKubeConfig:
    """Tests for the kube_config builtin."""

    def test_default_path_from_env(self, monkeypatch, tmp_path):
        first = tmp_path / 'first'
        monkeypatch.setenv('KUBECONFIG', os.pathsep.join([str(first), str(tmp_path / 'second')]))
        assert default_kubeconfig_path() == str(first)
        assert KubeConfig.from_dict({}).path == str(first)

    def test_default_path_without_env(self, monkeypatch):
        monkeypatch.delenv('KUBECONFIG', raising=False)
        assert default_kubeconfig_path().endswith(os.path.join('.kube', 'config'))

    def test_quotes_are_trimmed(self):
        assert KubeConfig.from_dict({'path': '"/etc/kube/config"'}).path == '/etc/kube/config'

    def test_builtin_sets_context_default(self):
        ctx = ExecutionContext()
        cfg = kube_config(ctx, path='/etc/kube/config', cluster_context='prod')
        assert ctx.get(ExecutionContext.KUBE_CONFIG) == KubeConfig('/etc/kube/config', 'prod')
        assert cfg.cluster_context == 'prod'

    def test_unknown_argument_raises(self):
        with pytest.raises(ArgumentError):
            kube_config(ExecutionContext(), file='/etc/kube/config')


class TestGlobalConfig:
    """Tests for the global_config builtin."""

    def test_add_default_global_config(self, monkeypatch):
        monkeypatch.setenv('KUBEDIAG_WORKDIR', '/var/tmp/diag')
        ctx = ExecutionContext()
        cfg = add_default_global_config(ctx)
        assert ctx.get(ExecutionContext.GLOBAL_CONFIG) is cfg
        assert cfg.workdir == '/var/tmp/diag'
        assert cfg.output_path == 'kubediag.tar.gz'
        if hasattr(os, 'getuid'):
            assert cfg.uid == str(os.getuid())
            assert cfg.gid == str(os.getgid())

    def test_explicit_values(self):
        cfg = global_config(ExecutionContext(), workdir='/w', uid=0, gid=0, default_shell='/bin/bash')
        assert cfg == GlobalConfig(workdir='/w', output_path='kubediag.tar.gz',
                                   uid='0', gid='0', default_shell='/bin/bash')


class TestSettings:
    """Tests for settings loading and context initialization."""

    def test_missing_file_returns_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / 'missing.yaml'))
        assert settings == {'ssh_config': None, 'kube_config': None, 'global_config': None}

    def test_load_test_settings(self):
        settings = load_settings(TEST_SETTINGS_YAML)
        assert settings['ssh_config']['username'] == 'ops'
        assert settings['kube_config'] is None

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text('ssh_config: [unclosed\n')
        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text('- a\n- b\n')
        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_initialize_context_from_settings(self):
        ctx = initialize_context(load_settings(TEST_SETTINGS_YAML))
        ssh = ctx.get(ExecutionContext.SSH_CONFIG)
        assert ssh == SSHConfig(username='ops', port=2222, private_key_path='/keys/ops_rsa', max_retries=3)
        assert ctx.get(ExecutionContext.GLOBAL_CONFIG).workdir == '/var/tmp/kubediag'
        assert ctx.get(ExecutionContext.KUBE_CONFIG) is None

    def test_initialize_context_always_has_global_config(self):
        ctx = initialize_context({})
        assert isinstance(ctx.get(ExecutionContext.GLOBAL_CONFIG), GlobalConfig)
        assert ctx.keys() == ['global_config']

    def test_invalid_section_raises(self):
        with pytest.raises(ConfigurationError):
            initialize_context({'ssh_config': 'ops'})
        with pytest.raises(ConfigurationError):
            initialize_context({'ssh_config': {'port': 22}})


class TestBuiltins:
    """Tests for the builtin name table."""

    def test_all_builtins_registered(self):
        assert set(BUILTINS) == {
            'global_config', 'kube_config', 'ssh_config',
            'kube_nodes_provider', 'host_list_provider',
        }

    def test_call_builtin(self):
        ctx = ExecutionContext()
        call_builtin('ssh_config', ctx, username='ops')
        config = call_builtin('host_list_provider', ctx, hosts=['10.0.0.1'])
        assert config.ssh_config.username == 'ops'

    def test_unknown_builtin_raises(self):
        with pytest.raises(ArgumentError):
            call_builtin('exec', ExecutionContext())
