"""Node topology loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from chain_cli.errors import TopologyError


@dataclass(frozen=True)
class TopologyInfo:
    node_id: int
    topology_file: str


@dataclass(frozen=True)
class NodeAddress:
    node_id: int
    host: str
    port: int
    scheme: str = "http"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


def _parse_node(entry: Any) -> NodeAddress:
    if not isinstance(entry, dict):
        raise TopologyError("topology node entries must be mappings")
    node_id = entry.get("node_id")
    host = entry.get("addr")
    port = entry.get("port")
    scheme = entry.get("scheme", "http")
    if not isinstance(node_id, int) or isinstance(node_id, bool):
        raise TopologyError("topology node_id must be an integer")
    if not isinstance(host, str) or not host:
        raise TopologyError(f"topology node {node_id}: addr must be a non-empty string")
    if not isinstance(port, int) or not 0 < port < 65536:
        raise TopologyError(f"topology node {node_id}: port must be in 1..65535")
    if scheme not in {"http", "https"}:
        raise TopologyError(f"topology node {node_id}: scheme must be http or https")
    return NodeAddress(node_id=node_id, host=host, port=port, scheme=scheme)


def load_topology(path: str | Path) -> list[NodeAddress]:
    """Read a topology file; JSON is accepted as a subset of YAML."""
    topology_path = Path(path)
    try:
        payload = yaml.safe_load(topology_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise TopologyError(f"topology file not found: {topology_path}") from exc
    except OSError as exc:
        raise TopologyError(
            f"cannot read topology file {topology_path}: {exc.strerror or exc}"
        ) from exc
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise TopologyError(f"invalid topology file {topology_path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("nodes")
    if not isinstance(payload, list):
        raise TopologyError("topology must be a list of nodes or a mapping with a 'nodes' list")
    return [_parse_node(entry) for entry in payload]


def resolve_node(topology: TopologyInfo) -> NodeAddress:
    for node in load_topology(topology.topology_file):
        if node.node_id == topology.node_id:
            return node
    raise TopologyError(f"node {topology.node_id} not found in {topology.topology_file}")
