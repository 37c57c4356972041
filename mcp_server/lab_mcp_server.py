"""
MCP server exposing the virtual lab as tools.

Each tool takes a ``session_id``; every session gets its own lab, created on
first use and kept in memory until ``end_session`` (or process exit).

Run (example):
  pip install -e .
  python mcp_server/lab_mcp_server.py

Then connect an MCP client to:
  http://localhost:8000/mcp
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from vlab.catalog import BUILD_PRESETS, CANVAS_PRESETS, CATALOG, LINUX_DISTROS, WINDOWS_EDITIONS
from vlab.core import OSConfig, OSKind
from vlab.errors import InvalidNetworkConfigError, LabError
from vlab.lab import VirtualLab
from vlab.provisioning import AUTO
from vlab.schemas import AggregateModel, HardwareModel, MetricsModel, NetworkModel, NodeModel
from vlab.sessions import LabSessions
from vlab.settings import LabSettings

mcp = FastMCP(
    "Virtual Lab MCP Server",
    instructions=(
        "Tools for building a virtual computer lab: place PCs, monitors and routers, "
        "cable them, then install hardware, an OS and network settings in that order."
    ),
    stateless_http=True,
    json_response=True,
)

SESSIONS = LabSessions(LabSettings.from_env())


def _run(session_id: str, fn: Callable[[VirtualLab], Dict[str, Any]]) -> Dict[str, Any]:
    with SESSIONS.lab(session_id) as lab:
        try:
            out = fn(lab)
        except InvalidNetworkConfigError as e:
            return {"ok": False, "error": str(e), "field": e.field, "reason": e.reason}
        except (LabError, ValueError) as e:
            return {"ok": False, "error": str(e)}
        out.setdefault("ok", True)
        return out


@mcp.tool()
def list_catalog() -> Dict[str, Any]:
    """List selectable parts, OS editions, build presets and canvas presets."""
    return {
        "ok": True,
        "parts": {cat: [item.label for item in items] for cat, items in CATALOG.items()},
        "windows": [e.name for e in WINDOWS_EDITIONS],
        "linux": [e.name for e in LINUX_DISTROS],
        "buildPresets": sorted(BUILD_PRESETS),
        "canvasPresets": sorted(CANVAS_PRESETS),
    }


@mcp.tool()
def add_node(session_id: str, kind: str, x: Optional[float] = None, y: Optional[float] = None) -> Dict[str, Any]:
    """Place a computer, display or router; returns its id."""
    pos = (x, y) if x is not None and y is not None else None
    return _run(session_id, lambda lab: {"id": lab.add_node(kind, pos)})


@mcp.tool()
def move_node(session_id: str, node_id: str, x: float, y: float) -> Dict[str, Any]:
    """Move a node on the canvas."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        lab.move_node(node_id, (x, y))
        return {}

    return _run(session_id, op)


@mcp.tool()
def connect(session_id: str, from_id: str, to_id: str) -> Dict[str, Any]:
    """Cable two nodes; the cable kind is inferred from the endpoints."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        cable_id = lab.connect(from_id, to_id)
        return {"id": cable_id, "kind": lab.topology.cables[cable_id].kind.value}

    return _run(session_id, op)


@mcp.tool()
def disconnect_all(session_id: str, node_id: str) -> Dict[str, Any]:
    """Remove every cable touching a node."""
    return _run(session_id, lambda lab: {"removed": lab.disconnect_all(node_id)})


@mcp.tool()
def delete_node(session_id: str, node_id: str) -> Dict[str, Any]:
    """Delete a node together with its cables."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        lab.delete_node(node_id)
        return {}

    return _run(session_id, op)


@mcp.tool()
def apply_hardware(
    session_id: str,
    node_id: str,
    hardware: Optional[HardwareModel] = None,
    preset: Optional[str] = None,
) -> Dict[str, Any]:
    """Install hardware on a computer, either explicit parts or a build preset."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        if hardware is not None:
            node = lab.apply_hardware(node_id, hardware.to_spec())
        elif preset:
            node = lab.apply_build_preset(node_id, preset)
        else:
            raise ValueError("Provide either 'hardware' or 'preset'")
        return {"metrics": MetricsModel.from_metrics(node.computer.metrics).model_dump()}

    return _run(session_id, op)


@mcp.tool()
def apply_os(session_id: str, display_id: str, os_kind: str, edition: str) -> Dict[str, Any]:
    """Install an OS through a display onto the computer it resolves to."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        node = lab.apply_os(display_id, OSConfig(os_kind=OSKind.parse(os_kind), edition=edition))
        return {"computer": node.linked_computer}

    return _run(session_id, op)


@mcp.tool()
def apply_network(session_id: str, router_id: str, network: Optional[NetworkModel] = None) -> Dict[str, Any]:
    """Configure a router's LAN; omit ``network`` for automatic addressing."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        router = lab.apply_network(router_id, network.to_config() if network is not None else AUTO)
        return {"network": NetworkModel.from_config(router.network).model_dump()}

    return _run(session_id, op)


@mcp.tool()
def get_metrics(session_id: str, computer_id: str) -> Dict[str, Any]:
    """Performance metrics of one computer (null before hardware is installed)."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        m = lab.get_metrics(computer_id)
        return {"metrics": MetricsModel.from_metrics(m).model_dump() if m else None}

    return _run(session_id, op)


@mcp.tool()
def get_aggregate(session_id: str) -> Dict[str, Any]:
    """Fleet summary over every computer with hardware."""
    return _run(session_id, lambda lab: {"aggregate": AggregateModel.from_aggregate(lab.get_aggregate()).model_dump()})


@mcp.tool()
def get_log(session_id: str, tail: Optional[int] = None) -> Dict[str, Any]:
    """Activity log lines, oldest first."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        lines: List[str] = list(lab.get_log() if tail is None else lab.log.tail(tail))
        return {"lines": lines}

    return _run(session_id, op)


@mcp.tool()
def list_nodes(session_id: str) -> Dict[str, Any]:
    """Every node with its state."""
    return _run(session_id, lambda lab: {"nodes": [NodeModel.from_node(n).model_dump() for n in lab.nodes()]})


@mcp.tool()
def load_preset(session_id: str, name: str) -> Dict[str, Any]:
    """Replace the canvas with a named preset layout."""
    return _run(session_id, lambda lab: {"ids": lab.load_preset(name)})


@mcp.tool()
def snapshot(session_id: str) -> Dict[str, Any]:
    """Full lab state for rendering."""
    return _run(session_id, lambda lab: {"snapshot": lab.snapshot().model_dump()})


@mcp.tool()
def reset_lab(session_id: str) -> Dict[str, Any]:
    """Clear the canvas."""

    def op(lab: VirtualLab) -> Dict[str, Any]:
        lab.reset()
        return {}

    return _run(session_id, op)


@mcp.tool()
def end_session(session_id: str) -> Dict[str, Any]:
    """Forget a session's lab."""
    return {"ok": SESSIONS.drop(session_id)}


if __name__ == "__main__":
    # Streamable HTTP transport is recommended in the MCP SDK docs.
    mcp.run(transport="streamable-http")
