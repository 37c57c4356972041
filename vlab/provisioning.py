"""Per-node configuration lifecycle and the gates between nodes.

Each node kind has its own two-state lifecycle:

    computer  UNCONFIGURED -> HARDWARE_SET
    display   UNCONFIGURED -> OS_SET        (needs its computer's hardware)
    router    UNCONFIGURED -> NETWORK_SET   (needs any computer with an OS)

Transitions can be repeated at any time; the new record replaces the old one
and the owning computer is re-scored.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple, Union

from .activity_log import ActivityLog
from .catalog import HardwareSpec
from .core import ComputerConfig, LabTopology, Node, NodeKind, NodeState, OSConfig, OSKind
from .errors import InvalidNetworkConfigError, NodeKindError, PrerequisiteNotMetError
from .netcfg import NetworkConfig, synthesize_config, validate_network_config
from .scoring import performance_tier, power_budget, score
from .settings import LabSettings


AUTO = "auto"

__all__ = [
    "AUTO",
    "ComputerConfig",
    "OSConfig",
    "OSKind",
    "Provisioner",
    "resolve_computer_for",
    "resolve_computers_for_router",
    "wired_computer",
]


# ───────────────────────────── Resolution ─────────────────────────────

def wired_computer(display_id: str, topology: LabTopology) -> Optional[str]:
    """First computer cabled directly to the display, in cable order."""
    display = topology.get(display_id)
    for cable in topology.cables_of(display.id):
        other = topology.nodes.get(cable.other_end(display.id))
        if other is not None and other.kind == NodeKind.COMPUTER:
            return other.id
    return None


def resolve_computer_for(display_id: str, topology: LabTopology) -> Optional[str]:
    """Pick the computer a display installs its OS onto.

    Fallback order:
      1. the first computer wired to the display (cable order)
      2. the first computer with hardware set (node order)
      3. the first computer (node order)
      4. None
    """
    linked = wired_computer(display_id, topology)
    if linked is not None:
        return linked

    computers = topology.nodes_of_kind(NodeKind.COMPUTER)
    for c in computers:
        if c.has_hardware():
            return c.id
    if computers:
        return computers[0].id
    return None


def resolve_computers_for_router(router_id: str, topology: LabTopology) -> List[str]:
    """Computers with an OS that a router hands network settings to.

    Direct computer cables and the computer behind each wired display count,
    in cable order. With no such computer, every computer with an OS does.
    """
    router = topology.get(router_id)
    served: List[str] = []
    for cable in topology.cables_of(router.id):
        other = topology.nodes.get(cable.other_end(router.id))
        if other is None:
            continue
        cid: Optional[str] = None
        if other.kind == NodeKind.COMPUTER:
            cid = other.id
        elif other.kind == NodeKind.DISPLAY:
            cid = wired_computer(other.id, topology)
        if cid is not None and cid not in served and topology.nodes[cid].has_os():
            served.append(cid)

    if served:
        return served
    return [c.id for c in topology.nodes_of_kind(NodeKind.COMPUTER) if c.has_os()]


# ───────────────────────────── State machine ─────────────────────────────

class Provisioner:
    def __init__(self, topology: LabTopology, log: ActivityLog, settings: Optional[LabSettings] = None):
        self.topology = topology
        self.log = log
        self.settings = settings or LabSettings()

    def _require(self, node_id: str, kind: NodeKind) -> Node:
        node = self.topology.get(node_id)
        if node.kind != kind:
            raise NodeKindError(node.id, kind.value, node.kind.value)
        return node

    def _refuse(self, node: Node, phase: str, reason: str):
        self.log.warning("gate_refused", reason, node=node.id, phase=phase)
        raise PrerequisiteNotMetError(node.id, reason)

    def _log_rejection(self, router: Node, error: InvalidNetworkConfigError):
        self.log.warning(
            "network_rejected",
            f"Network configuration for {router.label} rejected ({error.field}): {error.detail}",
            node=router.id,
            field=error.field,
            reason=error.reason,
        )

    def any_hardware(self) -> bool:
        return any(c.has_hardware() for c in self.topology.nodes_of_kind(NodeKind.COMPUTER))

    def any_os(self) -> bool:
        return any(c.has_os() for c in self.topology.nodes_of_kind(NodeKind.COMPUTER))

    def rescore(self, computer: Node):
        cfg = computer.computer
        if cfg is None:
            return
        cfg.metrics = score(cfg.hardware, cfg.network) if cfg.hardware is not None else None

    # ── computer ──

    def apply_hardware(self, node_id: str, spec: HardwareSpec) -> Node:
        node = self._require(node_id, NodeKind.COMPUTER)
        if node.computer is None:
            node.computer = ComputerConfig()

        replacing = node.computer.hardware is not None
        node.computer.hardware = spec
        node.state = NodeState.HARDWARE_SET
        self.rescore(node)

        metrics = node.computer.metrics
        tier = performance_tier(metrics.overall)
        verb = "replaced" if replacing else "installed"
        self.log.info("hardware", f"{node.label} hardware {verb}.", node=node.id)
        self.log.info("hardware", f"CPU: {spec.cpu}", node=node.id)
        self.log.info("hardware", f"RAM: {spec.ram}", node=node.id)
        self.log.info("hardware", f"Storage: {spec.storage}", node=node.id)
        self.log.info("hardware", f"GPU: {spec.gpu}", node=node.id)
        if spec.psu:
            self.log.info("hardware", f"PSU: {spec.psu}", node=node.id)
        self.log.info(
            "score",
            f"Performance score: {metrics.overall}/100 ({tier.tier})",
            node=node.id,
            overall=metrics.overall,
        )

        budget = power_budget(spec)
        if spec.psu and not budget.sufficient:
            self.log.warning(
                "power",
                f"{node.label}: PSU supplies {budget.capacity_watts}W for a {budget.draw_watts}W load; "
                f"at least {budget.required_watts}W is recommended.",
                node=node.id,
            )
        return node

    # ── display ──

    def apply_os(self, display_id: str, os_config: OSConfig) -> Node:
        display = self._require(display_id, NodeKind.DISPLAY)
        target_id = resolve_computer_for(display.id, self.topology)
        if target_id is None:
            self._refuse(display, "os", f"Cannot install an OS from {display.label}: there is no computer on the canvas.")

        computer = self.topology.nodes[target_id]
        if not computer.has_hardware():
            self._refuse(
                display,
                "os",
                f"Cannot install an OS from {display.label}: {computer.label} has no hardware installed yet.",
            )

        computer.computer.os = os_config
        display.linked_computer = computer.id
        display.state = NodeState.OS_SET
        self.rescore(computer)
        self.log.info(
            "os",
            f"{os_config.describe()} installed on {computer.label} via {display.label}.",
            node=display.id,
            computer=computer.id,
        )
        return display

    # ── router ──

    def _default_template(self) -> NetworkConfig:
        s = self.settings
        return NetworkConfig(ip="", subnet_mask=s.default_mask, gateway=s.default_gateway, dns=s.default_dns)

    def _plan_network(
        self, router: Node, served: List[str], config: Union[NetworkConfig, str]
    ) -> Tuple[NetworkConfig, List[Tuple[Node, NetworkConfig]]]:
        computers = self.topology.nodes_of_kind(NodeKind.COMPUTER)
        taken = {
            c.computer.network.ip
            for c in computers
            if c.id not in served and c.computer is not None and c.computer.network is not None
        }

        plan: List[Tuple[Node, NetworkConfig]] = []
        if isinstance(config, str):
            template = router.network or self._default_template()
            for cid in served:
                cfg = synthesize_config(template, taken, self.settings.auto_host_offset)
                taken.add(cfg.ip)
                plan.append((self.topology.nodes[cid], cfg))
            return replace(template, ip=plan[0][1].ip), plan

        validate_network_config(config)
        taken.add(config.ip)
        plan.append((self.topology.nodes[served[0]], config))
        for cid in served[1:]:
            cfg = synthesize_config(config, taken, self.settings.auto_host_offset)
            taken.add(cfg.ip)
            plan.append((self.topology.nodes[cid], cfg))
        return config, plan

    def apply_network(self, router_id: str, config: Union[NetworkConfig, str]) -> Node:
        router = self._require(router_id, NodeKind.ROUTER)
        if isinstance(config, str) and config.strip().lower() != AUTO:
            error = InvalidNetworkConfigError(
                "mode",
                InvalidNetworkConfigError.MALFORMED,
                f"Unknown network mode '{config}': pass a NetworkConfig or '{AUTO}'.",
            )
            self._log_rejection(router, error)
            raise error

        if not self.any_os():
            self._refuse(router, "network", f"Cannot configure {router.label}: install an operating system on a computer first.")

        served = resolve_computers_for_router(router.id, self.topology)
        try:
            lan, plan = self._plan_network(router, served, config)
        except InvalidNetworkConfigError as e:
            self._log_rejection(router, e)
            raise

        mode = "automatic" if isinstance(config, str) else "manual"
        for computer, cfg in plan:
            computer.computer.network = cfg
            self.rescore(computer)
        router.network = lan
        router.state = NodeState.NETWORK_SET

        self.log.info("network", f"{router.label} network configured ({mode}).", node=router.id, mode=mode)
        for computer, cfg in plan:
            m = computer.computer.metrics
            self.log.info(
                "network",
                f"{computer.label}: IP {cfg.ip}, mask {cfg.subnet_mask}, gateway {cfg.gateway}, DNS {cfg.dns}",
                node=computer.id,
                router=router.id,
            )
            if m is not None:
                self.log.info(
                    "score",
                    f"{computer.label} final performance: {m.overall}/100 ({performance_tier(m.overall).tier}), "
                    f"VM boot {m.vm_boot_time}ms, browser load {m.browser_load_time}ms",
                    node=computer.id,
                    overall=m.overall,
                )
        return router

    # ── teardown ──

    def forget_computer(self, computer_id: str) -> List[Node]:
        """Unlink displays that reflected a computer that is going away."""
        released: List[Node] = []
        for display in self.topology.nodes_of_kind(NodeKind.DISPLAY):
            if display.linked_computer == computer_id:
                display.linked_computer = None
                display.state = NodeState.UNCONFIGURED
                released.append(display)
        return released
