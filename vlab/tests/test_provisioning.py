import unittest

from vlab.activity_log import WARNING, ActivityLog
from vlab.catalog import BUILD_PRESETS, HardwareSpec
from vlab.core import LabTopology, NodeState
from vlab.errors import InvalidNetworkConfigError, NodeKindError, PrerequisiteNotMetError
from vlab.netcfg import NetworkConfig
from vlab.provisioning import (
    AUTO,
    OSConfig,
    OSKind,
    Provisioner,
    resolve_computer_for,
    resolve_computers_for_router,
)


UBUNTU = OSConfig(OSKind.LINUX, "Ubuntu")
WIN_PRO = OSConfig(OSKind.WINDOWS, "Windows 11 Pro")
LAN = NetworkConfig(ip="192.168.1.50", subnet_mask="255.255.255.0", gateway="192.168.1.1", dns="8.8.8.8")


def build(*kinds):
    t = LabTopology()
    for k in kinds:
        t.add_node(k)
    log = ActivityLog()
    return t, log, Provisioner(t, log)


class TestResolution(unittest.TestCase):
    def test_wired_computer_first(self):
        t, _, p = build("pc", "pc", "monitor")
        p.apply_hardware("PC-1", BUILD_PRESETS["budget"])
        t.connect("MON-1", "PC-2")
        self.assertEqual(resolve_computer_for("MON-1", t), "PC-2")

    def test_fallback_to_hardware_then_first(self):
        t, _, p = build("pc", "pc", "monitor")
        self.assertEqual(resolve_computer_for("MON-1", t), "PC-1")
        p.apply_hardware("PC-2", BUILD_PRESETS["budget"])
        self.assertEqual(resolve_computer_for("MON-1", t), "PC-2")

    def test_no_computer(self):
        t, _, _ = build("monitor")
        self.assertIsNone(resolve_computer_for("MON-1", t))

    def test_router_serves_wired_computers(self):
        t, _, p = build("pc", "monitor", "pc", "monitor", "router")
        t.connect("PC-1", "MON-1")
        t.connect("PC-2", "MON-2")
        t.connect("MON-2", "RTR-1")
        t.connect("MON-1", "RTR-1")
        for pc, mon in (("PC-1", "MON-1"), ("PC-2", "MON-2")):
            p.apply_hardware(pc, BUILD_PRESETS["budget"])
            p.apply_os(mon, UBUNTU)
        self.assertEqual(resolve_computers_for_router("RTR-1", t), ["PC-2", "PC-1"])

    def test_router_fallback_to_all_with_os(self):
        t, _, p = build("pc", "pc", "monitor", "router")
        p.apply_hardware("PC-2", BUILD_PRESETS["budget"])
        p.apply_os("MON-1", UBUNTU)
        self.assertEqual(resolve_computers_for_router("RTR-1", t), ["PC-2"])


class TestHardware(unittest.TestCase):
    def test_apply_and_overwrite(self):
        t, log, p = build("pc")
        p.apply_hardware("PC-1", BUILD_PRESETS["budget"])
        first = t.nodes["PC-1"].computer.metrics
        node = p.apply_hardware("PC-1", BUILD_PRESETS["high-end"])
        self.assertEqual(node.state, NodeState.HARDWARE_SET)
        self.assertTrue(node.configured)
        self.assertEqual(node.computer.hardware, BUILD_PRESETS["high-end"])
        self.assertEqual(node.computer.metrics.overall, 86)
        self.assertNotEqual(first, node.computer.metrics)
        self.assertIn("PC-1 hardware replaced.", log.lines())

    def test_wrong_kind(self):
        _, _, p = build("monitor")
        with self.assertRaises(NodeKindError):
            p.apply_hardware("MON-1", BUILD_PRESETS["budget"])

    def test_power_warning(self):
        _, log, p = build("pc")
        spec = HardwareSpec(
            cpu="Intel Core i9-13900K - 253W",
            ram="32GB DDR5 - 20W",
            storage="2TB NVMe SSD - 10W",
            gpu="NVIDIA RTX 4090 - 450W",
            psu="450W 80+ Bronze",
        )
        node = p.apply_hardware("PC-1", spec)
        self.assertEqual(node.state, NodeState.HARDWARE_SET)
        self.assertEqual(len(log.warnings()), 1)
        self.assertIn("PSU supplies 450W", log.warnings()[0])

    def test_no_power_warning_without_psu(self):
        _, log, p = build("pc")
        p.apply_hardware("PC-1", HardwareSpec(cpu="X - 300W", ram="", storage="", gpu=""))
        self.assertEqual(log.warnings(), ())


class TestOS(unittest.TestCase):
    def test_refused_without_computer(self):
        t, log, p = build("monitor")
        with self.assertRaises(PrerequisiteNotMetError):
            p.apply_os("MON-1", UBUNTU)
        self.assertEqual(t.nodes["MON-1"].state, NodeState.UNCONFIGURED)
        self.assertEqual(len(log.warnings()), 1)

    def test_refused_without_hardware(self):
        t, _, _ = build("pc", "monitor")
        p = Provisioner(t, ActivityLog())
        t.connect("PC-1", "MON-1")
        with self.assertRaises(PrerequisiteNotMetError) as cm:
            p.apply_os("MON-1", UBUNTU)
        self.assertEqual(cm.exception.node_id, "MON-1")
        self.assertIn("PC-1 has no hardware", cm.exception.reason)
        self.assertIsNone(t.nodes["PC-1"].computer.os)

    def test_installs_on_linked_computer(self):
        t, _, p = build("pc", "monitor")
        t.connect("PC-1", "MON-1")
        p.apply_hardware("PC-1", BUILD_PRESETS["high-end"])
        display = p.apply_os("MON-1", WIN_PRO)
        self.assertEqual(display.state, NodeState.OS_SET)
        self.assertEqual(display.linked_computer, "PC-1")
        self.assertEqual(t.nodes["PC-1"].computer.os, WIN_PRO)
        # still hardware_set: the computer's own phase is unchanged
        self.assertEqual(t.nodes["PC-1"].state, NodeState.HARDWARE_SET)

    def test_reinstall_replaces(self):
        t, _, p = build("pc", "monitor")
        p.apply_hardware("PC-1", BUILD_PRESETS["budget"])
        p.apply_os("MON-1", WIN_PRO)
        p.apply_os("MON-1", UBUNTU)
        self.assertEqual(t.nodes["PC-1"].computer.os, UBUNTU)

    def test_forget_computer(self):
        t, _, p = build("pc", "monitor")
        p.apply_hardware("PC-1", BUILD_PRESETS["budget"])
        p.apply_os("MON-1", UBUNTU)
        released = p.forget_computer("PC-1")
        self.assertEqual([d.id for d in released], ["MON-1"])
        self.assertIsNone(t.nodes["MON-1"].linked_computer)
        self.assertEqual(t.nodes["MON-1"].state, NodeState.UNCONFIGURED)


class TestNetwork(unittest.TestCase):
    def _ready(self, pcs=1):
        kinds = []
        for _ in range(pcs):
            kinds += ["pc", "monitor"]
        t, log, p = build(*(kinds + ["router"]))
        for i in range(1, pcs + 1):
            t.connect(f"PC-{i}", f"MON-{i}")
            t.connect(f"MON-{i}", "RTR-1")
            p.apply_hardware(f"PC-{i}", BUILD_PRESETS["high-end"])
            p.apply_os(f"MON-{i}", UBUNTU)
        return t, log, p

    def test_refused_before_os(self):
        t, log, p = build("pc", "router")
        p.apply_hardware("PC-1", BUILD_PRESETS["budget"])
        with self.assertRaises(PrerequisiteNotMetError):
            p.apply_network("RTR-1", LAN)
        self.assertEqual(t.nodes["RTR-1"].state, NodeState.UNCONFIGURED)
        self.assertIn("install an operating system", log.warnings()[0])

    def test_manual_config(self):
        t, _, p = self._ready()
        router = p.apply_network("RTR-1", LAN)
        self.assertEqual(router.state, NodeState.NETWORK_SET)
        self.assertEqual(router.network, LAN)
        pc = t.nodes["PC-1"].computer
        self.assertEqual(pc.network, LAN)
        self.assertEqual(pc.metrics.overall, 91)
        self.assertEqual(pc.progress, 100)

    def test_invalid_config_leaves_router(self):
        t, log, p = self._ready()
        bad = NetworkConfig(ip="10.0.0.5", subnet_mask="255.255.255.0", gateway="192.168.1.1", dns="8.8.8.8")
        with self.assertRaises(InvalidNetworkConfigError) as cm:
            p.apply_network("RTR-1", bad)
        self.assertEqual(cm.exception.reason, InvalidNetworkConfigError.SUBNET_MISMATCH)
        self.assertEqual(t.nodes["RTR-1"].state, NodeState.UNCONFIGURED)
        self.assertIsNone(t.nodes["PC-1"].computer.network)
        self.assertEqual(t.nodes["PC-1"].computer.metrics.overall, 86)
        self.assertIn("IP not in gateway's subnet", log.warnings()[-1])

    def test_multiple_computers_get_distinct_addresses(self):
        t, _, p = self._ready(pcs=2)
        p.apply_network("RTR-1", LAN)
        a = t.nodes["PC-1"].computer.network
        b = t.nodes["PC-2"].computer.network
        self.assertEqual(a.ip, "192.168.1.50")
        self.assertEqual(b.ip, "192.168.1.10")
        self.assertEqual((b.subnet_mask, b.gateway, b.dns), (LAN.subnet_mask, LAN.gateway, LAN.dns))

    def test_auto_mode(self):
        t, _, p = self._ready(pcs=2)
        router = p.apply_network("RTR-1", AUTO)
        self.assertEqual(t.nodes["PC-1"].computer.network.ip, "192.168.1.10")
        self.assertEqual(t.nodes["PC-2"].computer.network.ip, "192.168.1.11")
        self.assertEqual(router.network.gateway, "192.168.1.1")
        self.assertEqual(router.network.ip, "192.168.1.10")

    def test_auto_mode_reuses_router_lan(self):
        t, _, p = self._ready()
        p.apply_network("RTR-1", NetworkConfig(ip="10.0.0.7", subnet_mask="255.255.255.0", gateway="10.0.0.1", dns="1.1.1.1"))
        p.apply_network("RTR-1", "AUTO")
        net = t.nodes["PC-1"].computer.network
        self.assertEqual((net.ip, net.gateway, net.dns), ("10.0.0.10", "10.0.0.1", "1.1.1.1"))

    def test_bad_mode_string(self):
        t, log, p = self._ready()
        with self.assertRaises(InvalidNetworkConfigError) as cm:
            p.apply_network("RTR-1", "dhcp")
        self.assertEqual(cm.exception.field, "mode")
        self.assertEqual(cm.exception.reason, InvalidNetworkConfigError.MALFORMED)
        self.assertEqual([e.kind for e in log.events if e.level == WARNING], ["network_rejected"])
        self.assertIn("dhcp", log.warnings()[0])
        self.assertEqual(t.nodes["RTR-1"].state, NodeState.UNCONFIGURED)


if __name__ == "__main__":
    unittest.main()
