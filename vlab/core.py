from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .catalog import HardwareSpec
from .errors import (
    DuplicateCableError,
    DuplicateIdError,
    InvalidNodeIdError,
    SelfLoopError,
    UnknownKindError,
    UnknownNodeError,
)
from .netcfg import NetworkConfig
from .scoring import PerformanceMetrics


def _norm_id(node_id: str) -> str:
    return (node_id or "").strip()


class NodeKind(str, Enum):
    COMPUTER = "computer"
    DISPLAY = "display"
    ROUTER = "router"

    @staticmethod
    def parse(value: Union["NodeKind", str]) -> "NodeKind":
        if isinstance(value, NodeKind):
            return value
        text = (value or "").strip().lower()
        for kind, aliases in _KIND_ALIASES.items():
            if text in aliases:
                return kind
        raise UnknownKindError(value)


_KIND_ALIASES = {
    NodeKind.COMPUTER: ("computer", "pc", "tower"),
    NodeKind.DISPLAY: ("display", "monitor", "mon"),
    NodeKind.ROUTER: ("router", "rtr"),
}

ID_PREFIX = {
    NodeKind.COMPUTER: "PC",
    NodeKind.DISPLAY: "MON",
    NodeKind.ROUTER: "RTR",
}


class CableKind(str, Enum):
    POWER = "power"
    ETHERNET = "ethernet"


class NodeState(str, Enum):
    UNCONFIGURED = "unconfigured"
    HARDWARE_SET = "hardware_set"  # computer
    OS_SET = "os_set"  # display
    NETWORK_SET = "network_set"  # router


class OSKind(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"

    @staticmethod
    def parse(value: Union["OSKind", str]) -> "OSKind":
        if isinstance(value, OSKind):
            return value
        return OSKind((value or "").strip().lower())


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class OSConfig:
    os_kind: OSKind
    edition: str

    def describe(self) -> str:
        if self.os_kind == OSKind.LINUX:
            return f"Linux ({self.edition})"
        return self.edition or "Windows"


@dataclass
class ComputerConfig:
    hardware: Optional[HardwareSpec] = None
    os: Optional[OSConfig] = None
    network: Optional[NetworkConfig] = None
    metrics: Optional[PerformanceMetrics] = None

    @property
    def progress(self) -> int:
        return (33 if self.hardware else 0) + (33 if self.os else 0) + (34 if self.network else 0)


@dataclass
class Node:
    id: str
    kind: NodeKind
    position: Position = field(default_factory=Position)
    label: str = ""
    state: NodeState = NodeState.UNCONFIGURED

    # Computer-only: the configuration bundle this node owns.
    computer: Optional[ComputerConfig] = None
    # Display-only: the computer whose OS this display reflects.
    linked_computer: Optional[str] = None
    # Router-only: the LAN it was configured with.
    network: Optional[NetworkConfig] = None

    @property
    def configured(self) -> bool:
        return self.state != NodeState.UNCONFIGURED

    def has_hardware(self) -> bool:
        return self.computer is not None and self.computer.hardware is not None

    def has_os(self) -> bool:
        return self.computer is not None and self.computer.os is not None


@dataclass(frozen=True)
class Cable:
    id: str
    from_node_id: str
    to_node_id: str
    kind: CableKind

    def touches(self, node_id: str) -> bool:
        return node_id in (self.from_node_id, self.to_node_id)

    def other_end(self, node_id: str) -> Optional[str]:
        if self.from_node_id == node_id:
            return self.to_node_id
        if self.to_node_id == node_id:
            return self.from_node_id
        return None


def infer_cable_kind(a: NodeKind, b: NodeKind) -> CableKind:
    if {a, b} == {NodeKind.DISPLAY, NodeKind.ROUTER}:
        return CableKind.ETHERNET
    return CableKind.POWER


class LabTopology:
    """Nodes and cables of one lab canvas.

    Structural rules only: unique ids, existing endpoints, no self loops.
    Cycles and parallel cables are fine; this is a teaching canvas, not a
    real network.
    """

    def __init__(self, allow_duplicate_cables: bool = True):
        self.allow_duplicate_cables = allow_duplicate_cables
        self.nodes: Dict[str, Node] = {}
        self.cables: Dict[str, Cable] = {}
        self._next_cable = 1
        self._counters: Dict[NodeKind, int] = {k: 0 for k in NodeKind}

    # ───────────────────────────── Nodes ─────────────────────────────

    def reset(self):
        self.__init__(allow_duplicate_cables=self.allow_duplicate_cables)

    def get(self, node_id: str) -> Node:
        node = self.nodes.get(_norm_id(node_id))
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    def __contains__(self, node_id: str) -> bool:
        return _norm_id(node_id) in self.nodes

    def node_ids(self) -> List[str]:
        return list(self.nodes.keys())

    def _mint_id(self, kind: NodeKind) -> str:
        while True:
            self._counters[kind] += 1
            candidate = f"{ID_PREFIX[kind]}-{self._counters[kind]}"
            if candidate not in self.nodes:
                return candidate

    def add_node(
        self,
        kind: Union[NodeKind, str],
        position: Optional[Position] = None,
        node_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Node:
        kind = NodeKind.parse(kind)
        if node_id is not None:
            node_id = _norm_id(node_id)
            if not node_id:
                raise InvalidNodeIdError(node_id)
            if node_id in self.nodes:
                raise DuplicateIdError(node_id)
        else:
            node_id = self._mint_id(kind)

        if position is None:
            n = len(self.nodes)
            position = Position(150 + n * 50, 200 + n * 30)

        node = Node(id=node_id, kind=kind, position=position, label=label or node_id)
        if kind == NodeKind.COMPUTER:
            node.computer = ComputerConfig()
        self.nodes[node_id] = node
        return node

    def move_node(self, node_id: str, position: Position) -> Node:
        node = self.get(node_id)
        node.position = Position(position.x, position.y)
        return node

    def delete_node(self, node_id: str) -> Tuple[Node, List[Cable]]:
        node = self.get(node_id)
        removed = self.disconnect_all(node.id)
        # The ComputerConfig lives on the node, so it goes with it.
        self.nodes.pop(node.id, None)
        return node, removed

    def nodes_of_kind(self, kind: Union[NodeKind, str]) -> List[Node]:
        kind = NodeKind.parse(kind)
        return [n for n in self.nodes.values() if n.kind == kind]

    # ───────────────────────────── Cables ─────────────────────────────

    def connect(self, from_id: str, to_id: str) -> Cable:
        a = self.get(from_id)
        b = self.get(to_id)
        if a.id == b.id:
            raise SelfLoopError(a.id)
        if not self.allow_duplicate_cables and self.cables_between(a.id, b.id):
            raise DuplicateCableError(a.id, b.id)

        cable_id = f"C{self._next_cable}"
        self._next_cable += 1
        cable = Cable(id=cable_id, from_node_id=a.id, to_node_id=b.id, kind=infer_cable_kind(a.kind, b.kind))
        self.cables[cable_id] = cable
        return cable

    def remove_cable(self, cable_id: str) -> Optional[Cable]:
        return self.cables.pop(cable_id, None)

    def disconnect_all(self, node_id: str) -> List[Cable]:
        node = self.get(node_id)
        doomed = [c for c in self.cables.values() if c.touches(node.id)]
        for c in doomed:
            self.remove_cable(c.id)
        return doomed

    def cables_of(self, node_id: str) -> List[Cable]:
        node_id = _norm_id(node_id)
        return [c for c in self.cables.values() if c.touches(node_id)]

    def cables_between(self, a: str, b: str) -> List[Cable]:
        return [c for c in self.cables.values() if {c.from_node_id, c.to_node_id} == {a, b}]

    def neighbors_of(self, node_id: str) -> List[Node]:
        node = self.get(node_id)
        seen = set()
        out: List[Node] = []
        for c in self.cables.values():
            other = c.other_end(node.id)
            if other is None or other in seen:
                continue
            seen.add(other)
            out.append(self.nodes[other])
        return out
