"""
Unit tests for node record decoding.
"""
import os

import pytest
import yaml

from kubediag.cluster.nodes import (
    ClusterNode,
    NodeAddress,
    decode_node,
    decode_nodes,
    get_node_internal_ip,
)
from kubediag.cluster.search import SearchResult
from kubediag.errors import DecodeError

TEST_DIR = os.path.dirname(os.path.abspath(__file__))
TEST_NODES_YAML = os.path.join(TEST_DIR, 'test_nodes.yaml')


def load_raw_nodes():
    with open(TEST_NODES_YAML, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)['nodes']


def make_result(items):
    return SearchResult(resource_name='nodes', kind='Node', group_version='v1', items=items)


class TestDecodeNode:
    """Tests for decode_node."""

    def test_decodes_fixture_node(self):
        node = decode_node(load_raw_nodes()[0])
        assert isinstance(node, ClusterNode)
        assert node.name == 'node-a'
        assert node.labels['kubernetes.io/hostname'] == 'node-a'
        assert node.addresses == (
            NodeAddress(type='Hostname', address='node-a'),
            NodeAddress(type='InternalIP', address='10.0.0.5'),
            NodeAddress(type='ExternalIP', address='203.0.113.5'),
        )

    def test_node_without_status_has_no_addresses(self):
        node = decode_node({'metadata': {'name': 'bare'}})
        assert node.addresses == ()
        assert node.internal_address == ''

    def test_addresses_of_type(self):
        node = decode_node(load_raw_nodes()[0])
        assert node.addresses_of_type('ExternalIP') == ['203.0.113.5']
        assert node.addresses_of_type('InternalDNS') == []

    def test_nodes_are_hashable(self):
        raw = load_raw_nodes()[0]
        first, second = decode_node(raw), decode_node(raw)
        assert hash(first) == hash(second)
        assert len({first, second, decode_node(load_raw_nodes()[1])}) == 2

    @pytest.mark.parametrize('item', [
        None,
        'node-a',
        {},
        {'metadata': {}},
        {'metadata': {'name': ''}},
        {'metadata': 'node-a'},
        {'metadata': {'name': 'x', 'labels': ['a']}},
        {'metadata': {'name': 'x'}, 'status': {'addresses': '10.0.0.1'}},
        {'metadata': {'name': 'x'}, 'status': {'addresses': [{'type': 'InternalIP'}]}},
        {'metadata': {'name': 'x'}, 'status': {'addresses': ['10.0.0.1']}},
    ])
    def test_malformed_items_raise(self, item):
        with pytest.raises(DecodeError):
            decode_node(item)


class TestInternalAddress:
    """Tests for InternalIP extraction."""

    def test_first_internal_ip_wins(self):
        node = decode_node(load_raw_nodes()[1])
        assert get_node_internal_ip(node) == '10.0.0.6'

    def test_internal_ip_found_after_other_types(self):
        node = decode_node(load_raw_nodes()[0])
        assert node.internal_address == '10.0.0.5'

    def test_missing_internal_ip_is_empty_string(self):
        node = decode_node(load_raw_nodes()[2])
        assert get_node_internal_ip(node) == ''


class TestDecodeNodes:
    """Tests for decode_nodes across search results."""

    def test_yields_one_record_per_item_in_order(self):
        raw = load_raw_nodes()
        nodes = decode_nodes([make_result(raw[:2]), make_result(raw[2:])])
        assert len(nodes) == len(raw)
        assert [n.name for n in nodes] == ['node-a', 'node-b', 'node-c']

    def test_empty_results(self):
        assert decode_nodes([]) == []
        assert decode_nodes([make_result([])]) == []

    def test_single_bad_item_aborts_batch(self):
        raw = load_raw_nodes()
        with pytest.raises(DecodeError):
            decode_nodes([make_result(raw + [{'metadata': {}}])])
