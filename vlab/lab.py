from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .activity_log import ActivityLog
from .aggregate import AggregateSpecs, aggregate_specs
from .catalog import BUILD_PRESETS, CANVAS_PRESETS, HardwareSpec
from .core import Cable, ComputerConfig, LabTopology, Node, NodeKind, NodeState, OSConfig, Position
from .errors import InvalidNetworkConfigError, LabError, NodeKindError, PrerequisiteNotMetError, UnknownPresetError
from .netcfg import NetworkConfig
from .provisioning import Provisioner
from .schemas import AggregateModel, CableModel, ComputerModel, LabSnapshot, NodeModel
from .scoring import PerformanceMetrics
from .settings import LabSettings


PositionLike = Union[Position, Tuple[float, float], Sequence[float]]


def _as_position(pos: Optional[PositionLike]) -> Optional[Position]:
    if pos is None or isinstance(pos, Position):
        return pos
    x, y = pos
    return Position(float(x), float(y))


class VirtualLab:
    """One lab session: canvas, provisioning, scoring and activity log.

    Every intent runs to completion before returning; callers re-read state
    (or take a ``snapshot()``) afterwards. Rejected intents raise a LabError
    subclass and leave a warning line in the log.
    """

    def __init__(self, settings: Optional[LabSettings] = None):
        self.settings = settings or LabSettings()
        self.log = ActivityLog(max_events=self.settings.max_log_events)
        self.topology = LabTopology(allow_duplicate_cables=self.settings.allow_duplicate_cables)
        self.provisioner = Provisioner(self.topology, self.log, self.settings)
        self.log.info("session_start", "Virtual lab started. Add a PC, a monitor and a router to begin.")

    @contextmanager
    def _rejections(self, kind: str) -> Iterator[None]:
        # Gate and network failures are logged by the provisioner itself.
        try:
            yield
        except (PrerequisiteNotMetError, InvalidNetworkConfigError):
            raise
        except LabError as e:
            self.log.warning(kind, str(e), error=type(e).__name__)
            raise

    # ───────────────────────────── Canvas ─────────────────────────────

    def add_node(
        self,
        kind: Union[NodeKind, str],
        position: Optional[PositionLike] = None,
        node_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> str:
        with self._rejections("add_rejected"):
            node = self.topology.add_node(kind, _as_position(position), node_id=node_id, label=label)
        self.log.info("node_added", f"Module {node.label} added to the canvas.", node=node.id, node_kind=node.kind.value)
        return node.id

    def move_node(self, node_id: str, position: PositionLike) -> None:
        with self._rejections("move_rejected"):
            self.topology.move_node(node_id, _as_position(position))

    def connect(self, from_id: str, to_id: str) -> str:
        with self._rejections("connect_rejected"):
            cable = self.topology.connect(from_id, to_id)
        a = self.topology.nodes[cable.from_node_id]
        b = self.topology.nodes[cable.to_node_id]
        self.log.info(
            "cable_added",
            f"{a.label} connected to {b.label} ({cable.kind.value} cable).",
            cable=cable.id,
            cable_kind=cable.kind.value,
        )
        return cable.id

    def _log_cable_removed(self, cable: Cable):
        ends = []
        for nid in (cable.from_node_id, cable.to_node_id):
            node = self.topology.nodes.get(nid)
            ends.append(node.label if node else nid)
        self.log.info("cable_removed", f"{cable.kind.value.capitalize()} cable {ends[0]} - {ends[1]} removed.", cable=cable.id)

    def disconnect_all(self, node_id: str) -> int:
        with self._rejections("disconnect_rejected"):
            removed = self.topology.disconnect_all(node_id)
        for cable in removed:
            self._log_cable_removed(cable)
        return len(removed)

    def delete_node(self, node_id: str) -> None:
        with self._rejections("delete_rejected"):
            node, removed = self.topology.delete_node(node_id)
        for cable in removed:
            self._log_cable_removed(cable)
        unlinked = self.provisioner.forget_computer(node.id) if node.kind == NodeKind.COMPUTER else []
        message = f"Module {node.label} removed from the canvas."
        if unlinked:
            # displays that mirrored this computer
            message += f" Unlinked: {', '.join(d.label for d in unlinked)}."
        self.log.info("node_removed", message, node=node.id, unlinked=[d.id for d in unlinked])

    def reset(self) -> None:
        self.topology.reset()
        self.log.info("reset", "Lab reset. The canvas is empty.")

    def load_preset(self, name: str) -> List[str]:
        preset = CANVAS_PRESETS.get((name or "").strip().lower())
        if preset is None:
            with self._rejections("preset_rejected"):
                raise UnknownPresetError(name, sorted(CANVAS_PRESETS))

        self.topology.reset()
        ids: List[str] = []
        for m in preset.modules:
            node = self.topology.add_node(m.kind, Position(m.x, m.y), node_id=m.node_id)
            ids.append(node.id)
        for a, b in preset.cables:
            self.topology.connect(ids[a], ids[b])
        self.log.info("preset", f'Preset "{preset.title}" loaded.', preset=preset.name)
        return ids

    # ───────────────────────────── Provisioning ─────────────────────────────

    def apply_hardware(self, node_id: str, spec: HardwareSpec) -> Node:
        with self._rejections("hardware_rejected"):
            return self.provisioner.apply_hardware(node_id, spec)

    def apply_build_preset(self, node_id: str, name: str) -> Node:
        spec = BUILD_PRESETS.get((name or "").strip().lower())
        if spec is None:
            with self._rejections("hardware_rejected"):
                raise UnknownPresetError(name, sorted(BUILD_PRESETS))
        return self.apply_hardware(node_id, spec)

    def apply_os(self, display_id: str, os_config: OSConfig) -> Node:
        with self._rejections("os_rejected"):
            return self.provisioner.apply_os(display_id, os_config)

    def apply_network(self, router_id: str, config: Union[NetworkConfig, str]) -> Node:
        with self._rejections("network_rejected"):
            return self.provisioner.apply_network(router_id, config)

    # ───────────────────────────── Queries ─────────────────────────────

    def get_node(self, node_id: str) -> Node:
        return self.topology.get(node_id)

    def nodes(self) -> List[Node]:
        return list(self.topology.nodes.values())

    def cables(self) -> List[Cable]:
        return list(self.topology.cables.values())

    def computer_config(self, computer_id: str) -> ComputerConfig:
        node = self.topology.get(computer_id)
        if node.kind != NodeKind.COMPUTER:
            raise NodeKindError(node.id, NodeKind.COMPUTER.value, node.kind.value)
        return node.computer

    def get_metrics(self, computer_id: str) -> Optional[PerformanceMetrics]:
        node = self.topology.get(computer_id)
        if node.computer is None:
            return None
        return node.computer.metrics

    def get_aggregate(self, legacy: Optional[HardwareSpec] = None) -> AggregateSpecs:
        specs = [c.computer.hardware for c in self.topology.nodes_of_kind(NodeKind.COMPUTER) if c.has_hardware()]
        if not specs and legacy is not None:
            specs = [legacy]
        return aggregate_specs(specs)

    def get_log(self) -> Tuple[str, ...]:
        return self.log.lines()

    def progress(self) -> int:
        computers = self.topology.nodes_of_kind(NodeKind.COMPUTER)
        routers = self.topology.nodes_of_kind(NodeKind.ROUTER)
        pct = 0
        if any(c.has_hardware() for c in computers):
            pct += 33
        if any(c.has_os() for c in computers):
            pct += 33
        if any(r.state == NodeState.NETWORK_SET for r in routers):
            pct += 34
        return pct

    def snapshot(self, log_tail: Optional[int] = None) -> LabSnapshot:
        tail = self.settings.log_tail if log_tail is None else log_tail
        return LabSnapshot(
            nodes=[NodeModel.from_node(n) for n in self.topology.nodes.values()],
            cables=[CableModel.from_cable(c) for c in self.topology.cables.values()],
            computers=[
                ComputerModel.from_config(n.id, n.computer)
                for n in self.topology.nodes_of_kind(NodeKind.COMPUTER)
                if n.computer is not None
            ],
            aggregate=AggregateModel.from_aggregate(self.get_aggregate()),
            progress=self.progress(),
            log=list(self.log.tail(tail)),
        )
