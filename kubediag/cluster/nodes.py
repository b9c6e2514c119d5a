"""
Cluster Node Records

Converts the untyped node objects returned by a cluster search into typed
records and extracts the address used to reach each node.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from kubediag.errors import DecodeError
from .search import SearchResult

INTERNAL_IP = 'InternalIP'
EXTERNAL_IP = 'ExternalIP'
HOSTNAME = 'Hostname'


@dataclass(frozen=True)
class NodeAddress:
    """A single node address tagged with its type."""
    type: str
    address: str


@dataclass(frozen=True)
class ClusterNode:
    """Represents a compute node of a Kubernetes cluster."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict, hash=False)
    addresses: Tuple[NodeAddress, ...] = ()

    @property
    def internal_address(self) -> str:
        return get_node_internal_ip(self)

    def addresses_of_type(self, address_type: str) -> List[str]:
        """Get every address of the given type, in node order."""
        return [addr.address for addr in self.addresses if addr.type == address_type]


def _mapping(value: Any, path: str, required: bool = False) -> Mapping[str, Any]:
    if value is None and not required:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"'{path}' must be an object, got {type(value).__name__}", 'decode_node')
    return value


def _decode_address(value: Any, index: int) -> NodeAddress:
    path = f"status.addresses[{index}]"
    entry = _mapping(value, path, required=True)
    addr_type = entry.get('type')
    address = entry.get('address')
    if not isinstance(addr_type, str) or not isinstance(address, str):
        raise DecodeError(f"'{path}' needs string 'type' and 'address' fields", 'decode_node')
    return NodeAddress(type=addr_type, address=address)


def decode_node(item: Any) -> ClusterNode:
    """
    Convert one raw cluster object into a ClusterNode.

    Raises:
        DecodeError: The object lacks ``metadata.name`` or has a malformed
            label map or address list.
    """
    obj = _mapping(item, 'item', required=True)
    metadata = _mapping(obj.get('metadata'), 'metadata', required=True)

    name = metadata.get('name')
    if not isinstance(name, str) or not name:
        raise DecodeError("'metadata.name' is missing", 'decode_node')

    labels = _mapping(metadata.get('labels'), 'metadata.labels')
    status = _mapping(obj.get('status'), 'status')

    raw_addresses = status.get('addresses')
    if raw_addresses is None:
        raw_addresses = []
    if not isinstance(raw_addresses, list):
        raise DecodeError(f"node '{name}': 'status.addresses' must be a list", 'decode_node')

    return ClusterNode(
        name=name,
        labels={str(key): str(value) for key, value in labels.items()},
        addresses=tuple(_decode_address(value, index) for index, value in enumerate(raw_addresses)),
    )


def decode_nodes(results: Iterable[SearchResult]) -> List[ClusterNode]:
    """Decode every item of every search result, keeping discovery order."""
    nodes = []
    for result in results:
        for item in result.items:
            nodes.append(decode_node(item))
    return nodes


def get_node_internal_ip(node: ClusterNode) -> str:
    """Return the first InternalIP address of a node, or '' when it has none."""
    for addr in node.addresses:
        if addr.type == INTERNAL_IP:
            return addr.address
    return ''
