from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List
import shlex

from .catalog import HardwareSpec, find_item, find_os_edition
from .core import NodeKind, OSConfig, OSKind, Position
from .errors import LabError
from .lab import VirtualLab
from .netcfg import NetworkConfig
from .provisioning import AUTO
from .scoring import performance_tier, recommendations


class CLIError(Exception):
    pass


CLOSE = "__CLOSE__"

_HARDWARE_KEYS = ("cpu", "ram", "storage", "gpu", "psu")


@dataclass
class CLIResult:
    output: str = ""
    prompt: str = ""


@dataclass
class CLIContext:
    lab: VirtualLab
    name: str = "vlab"

    def prompt(self) -> str:
        return f"{self.name}> "


def _coord(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise CLIError(f"% Invalid coordinate '{text}'.")


class LabCLIEngine:
    """Line-oriented shell over a VirtualLab.

    Every command maps onto one lab call; rejected intents come back as a
    ``% message`` line and leave the lab untouched.
    """

    def __init__(self, lab: VirtualLab):
        self.lab = lab

    def new_context(self, name: str = "vlab") -> CLIContext:
        return CLIContext(lab=self.lab, name=name)

    def execute(self, ctx: CLIContext, line: str) -> CLIResult:
        raw = (line or "").rstrip("\n")
        stripped = raw.strip()
        if stripped == "":
            return CLIResult(output="", prompt=ctx.prompt())

        # Help
        if stripped == "?" or stripped.endswith(" ?"):
            return CLIResult(output=self._help(), prompt=ctx.prompt())

        try:
            argv = shlex.split(stripped)
        except ValueError:
            argv = stripped.split()

        cmd = (argv[0] if argv else "").lower()
        if cmd in ("exit", "quit"):
            return CLIResult(output=CLOSE, prompt=ctx.prompt())

        try:
            out = self._dispatch(ctx, cmd, argv)
        except CLIError as e:
            out = str(e)
        except LabError as e:
            out = f"% {e}"
        except ValueError as e:
            out = f"% {e}."
        return CLIResult(output=out, prompt=ctx.prompt())

    def _dispatch(self, ctx: CLIContext, cmd: str, argv: List[str]) -> str:
        lab = ctx.lab

        if cmd == "help":
            return self._help()

        if cmd == "add":
            if len(argv) not in (2, 4, 5):
                raise CLIError("% Usage: add <pc|monitor|router> [x y] [id]")
            pos = Position(_coord(argv[2]), _coord(argv[3])) if len(argv) >= 4 else None
            node_id = argv[4] if len(argv) == 5 else None
            return lab.add_node(argv[1], pos, node_id=node_id)

        if cmd == "move":
            if len(argv) != 4:
                raise CLIError("% Usage: move <id> <x> <y>")
            lab.move_node(argv[1], Position(_coord(argv[2]), _coord(argv[3])))
            return ""

        if cmd == "connect":
            if len(argv) != 3:
                raise CLIError("% Usage: connect <id> <id>")
            cable_id = lab.connect(argv[1], argv[2])
            return f"{cable_id} ({lab.topology.cables[cable_id].kind.value})"

        if cmd == "disconnect":
            if len(argv) != 2:
                raise CLIError("% Usage: disconnect <id>")
            n = lab.disconnect_all(argv[1])
            return f"{n} cable(s) removed."

        if cmd == "delete":
            if len(argv) != 2:
                raise CLIError("% Usage: delete <id>")
            lab.delete_node(argv[1])
            return ""

        if cmd == "hardware":
            return self._cmd_hardware(ctx, argv)

        if cmd == "os":
            if len(argv) < 4:
                raise CLIError("% Usage: os <monitor-id> <windows|linux> <edition>")
            kind = OSKind.parse(argv[2])
            wanted = " ".join(argv[3:])
            edition = find_os_edition(kind.value, wanted)
            lab.apply_os(argv[1], OSConfig(os_kind=kind, edition=edition.name if edition else wanted))
            return ""

        if cmd == "network":
            if len(argv) == 3 and argv[2].lower() == AUTO:
                lab.apply_network(argv[1], AUTO)
                return ""
            if len(argv) != 6:
                raise CLIError("% Usage: network <router-id> auto | <ip> <mask> <gateway> <dns>")
            cfg = NetworkConfig(ip=argv[2], subnet_mask=argv[3], gateway=argv[4], dns=argv[5])
            lab.apply_network(argv[1], cfg)
            return ""

        if cmd == "show":
            return self._cmd_show(ctx, argv)

        if cmd == "preset":
            if len(argv) != 2:
                raise CLIError("% Usage: preset <simple-network|multi-pc-lab|server-room>")
            ids = lab.load_preset(argv[1])
            return " ".join(ids)

        if cmd == "reset":
            lab.reset()
            return ""

        raise CLIError("% Unknown command.")

    def _cmd_hardware(self, ctx: CLIContext, argv: List[str]) -> str:
        if len(argv) < 3:
            raise CLIError("% Usage: hardware <pc-id> <budget|mid-range|high-end> | cpu=.. ram=.. storage=.. gpu=.. [psu=..]")

        if len(argv) == 3 and "=" not in argv[2]:
            node = ctx.lab.apply_build_preset(argv[1], argv[2])
        else:
            parts: Dict[str, str] = {}
            for tok in argv[2:]:
                key, sep, value = tok.partition("=")
                key = key.lower()
                if not sep or key not in _HARDWARE_KEYS:
                    raise CLIError(f"% Invalid hardware field '{tok}'.")
                # Catalog part names expand to their full label.
                item = find_item(key, value)
                parts[key] = item.label if item else value
            missing = [k for k in _HARDWARE_KEYS[:4] if k not in parts]
            if missing:
                raise CLIError(f"% Missing hardware field(s): {', '.join(missing)}.")
            node = ctx.lab.apply_hardware(argv[1], HardwareSpec(**parts))

        m = node.computer.metrics
        return f"Performance score: {m.overall}/100 ({performance_tier(m.overall).tier})"

    def _cmd_show(self, ctx: CLIContext, argv: List[str]) -> str:
        lab = ctx.lab
        what = argv[1].lower() if len(argv) >= 2 else ""

        if what == "nodes":
            lines = []
            for n in lab.nodes():
                line = f"{n.id:<12} {n.kind.value:<9} {n.state.value:<13} ({n.position.x:g}, {n.position.y:g})"
                if n.linked_computer:
                    line += f" -> {n.linked_computer}"
                lines.append(line)
            return "\n".join(lines) or "No modules on the canvas."

        if what == "cables":
            lines = [f"{c.id:<5} {c.from_node_id} - {c.to_node_id} ({c.kind.value})" for c in lab.cables()]
            return "\n".join(lines) or "No cables."

        if what in ("metrics", "tier"):
            if len(argv) != 3:
                raise CLIError(f"% Usage: show {what} <pc-id>")
            node = lab.get_node(argv[2])
            if node.kind != NodeKind.COMPUTER:
                raise CLIError(f"% {node.id} is not a computer.")
            m = lab.get_metrics(node.id)
            if m is None:
                return f"{node.id}: no hardware installed."
            tier = performance_tier(m.overall)
            if what == "tier":
                return f"{tier.tier}: {tier.description}"
            lines = [f"{node.id} performance:"]
            lines.append(f"  Overall: {m.overall}/100 ({tier.tier})")
            lines.append(f"  CPU: {m.cpu_score}  RAM: {m.ram_score}  Storage: {m.storage_score}  GPU: {m.gpu_score}  Network: {m.network_score}")
            lines.append(f"  VM boot: {m.vm_boot_time}ms")
            lines.append(f"  Browser load: {m.browser_load_time}ms")
            lines.append(f"  App response: {m.app_response_time}ms")
            for rec in recommendations(m):
                lines.append(f"  * {rec}")
            return "\n".join(lines)

        if what == "aggregate":
            agg = lab.get_aggregate()
            if agg.is_empty:
                return "No configured computers."
            return "\n".join(
                [
                    f"Computers: {agg.pc_count}",
                    f"Cores/Threads: {agg.total_cores}/{agg.total_threads}",
                    f"RAM: {agg.total_ram_gb} GB ({agg.best_ram_type})",
                    f"Storage: {agg.storage_display} ({agg.best_storage_type})",
                    f"GPU cores: {agg.total_gpu_cores}, VRAM: {agg.total_vram_gb} GB",
                    f"Power draw: {agg.total_power_draw_watts}W",
                ]
            )

        if what == "log":
            n = lab.settings.log_tail
            if len(argv) == 3:
                try:
                    n = int(argv[2])
                except ValueError:
                    raise CLIError("% Usage: show log [n]")
            return "\n".join(lab.log.tail(n))

        if what == "progress":
            return f"Progress: {lab.progress()}%"

        raise CLIError("% Usage: show nodes|cables|metrics <id>|aggregate|log [n]|progress|tier <id>")

    def _help(self) -> str:
        return "\n".join(
            [
                "add <pc|monitor|router> [x y] [id]",
                "move <id> <x> <y>",
                "connect <id> <id>",
                "disconnect <id>",
                "delete <id>",
                "hardware <pc-id> <budget|mid-range|high-end>",
                "hardware <pc-id> cpu=<part> ram=<part> storage=<part> gpu=<part> [psu=<part>]",
                "os <monitor-id> <windows|linux> <edition>",
                "network <router-id> auto",
                "network <router-id> <ip> <mask> <gateway> <dns>",
                "show nodes|cables|metrics <id>|aggregate|log [n]|progress|tier <id>",
                "preset <simple-network|multi-pc-lab|server-room>",
                "reset",
                "exit",
            ]
        )
