import unittest

from vlab.catalog import BUILD_PRESETS, HardwareSpec
from vlab.netcfg import NetworkConfig
from vlab.scoring import (
    RAM_DEFAULT,
    RAM_RULES,
    STORAGE_RULES,
    has_all,
    match_rules,
    network_score,
    performance_tier,
    power_budget,
    recommendations,
    required_psu_watts,
    round_half_up,
    score,
)


HIGH_END = HardwareSpec(
    cpu="Intel Core i9-13900K - 24 Cores @ 3.0GHz - 253W",
    ram="32GB DDR4 - 3600MHz - 20W",
    storage="1TB NVMe SSD - 7000MB/s - 10W",
    gpu="NVIDIA RTX 4070 - 12GB GDDR6X - 200W",
    psu="750W 80+ Gold",
)

LAN = NetworkConfig(ip="192.168.1.50", subnet_mask="255.255.255.0", gateway="192.168.1.1", dns="8.8.8.8")


class TestScoring(unittest.TestCase):
    def test_high_end_hardware_only(self):
        m = score(HIGH_END)
        self.assertEqual((m.cpu_score, m.ram_score, m.storage_score, m.gpu_score), (95, 85, 90, 90))
        self.assertEqual(m.network_score, 50)
        self.assertEqual(m.overall, 86)
        self.assertEqual(m.vm_boot_time, 1130)
        self.assertEqual(m.browser_load_time, 300)
        self.assertEqual(m.app_response_time, 226)

    def test_high_end_with_network(self):
        m = score(HIGH_END, LAN)
        self.assertEqual(m.network_score, 100)
        self.assertEqual(m.overall, 91)
        self.assertEqual(m.vm_boot_time, 905)
        self.assertEqual(m.browser_load_time, 300)
        self.assertEqual(m.app_response_time, 181)

    def test_unrecognized_parts_use_defaults(self):
        m = score(HardwareSpec(cpu="Pentium", ram="4GB", storage="floppy", gpu="Voodoo"))
        self.assertEqual((m.cpu_score, m.ram_score, m.storage_score, m.gpu_score), (50, 40, 40, 30))
        self.assertEqual(m.overall, 42)

    def test_empty_strings_do_not_raise(self):
        m = score(HardwareSpec(cpu="", ram="", storage="", gpu=""))
        self.assertGreaterEqual(m.overall, 0)
        self.assertLessEqual(m.overall, 100)

    def test_scores_bounded_for_catalog_presets(self):
        for name, spec in BUILD_PRESETS.items():
            for net in (None, LAN):
                m = score(spec, net)
                for v in (m.overall, m.cpu_score, m.ram_score, m.storage_score, m.gpu_score, m.network_score):
                    self.assertTrue(0 <= v <= 100, (name, v))
                self.assertGreaterEqual(m.vm_boot_time, 500)
                self.assertGreaterEqual(m.browser_load_time, 300)
                self.assertGreaterEqual(m.app_response_time, 100)

    def test_preset_scores(self):
        self.assertEqual(score(BUILD_PRESETS["budget"]).overall, 56)
        self.assertEqual(score(BUILD_PRESETS["mid-range"]).overall, 73)
        self.assertEqual(score(BUILD_PRESETS["high-end"]).overall, 86)

    def test_deterministic(self):
        self.assertEqual(score(HIGH_END, LAN), score(HIGH_END, LAN))

    def test_rule_order_first_match_wins(self):
        text = "512GB NVMe SSD over SATA bridge"
        self.assertEqual(match_rules(text, STORAGE_RULES, 40), 75)
        self.assertEqual(match_rules(text, tuple(reversed(STORAGE_RULES)), 40), 50)

    def test_ram_rule_order(self):
        self.assertEqual(match_rules("32GB DDR5 - 6000MHz", RAM_RULES, RAM_DEFAULT), 95)
        kit = "32GB DDR5 (4 x 8GB)"
        self.assertEqual(match_rules(kit, RAM_RULES, RAM_DEFAULT), 95)
        self.assertEqual(match_rules(kit, tuple(reversed(RAM_RULES)), RAM_DEFAULT), 50)
        # a DDR4-first table would under-score a kit listing both generations
        combo = "32GB DDR5 (DDR4 slots)"
        ddr4_first = (RAM_RULES[1], RAM_RULES[0]) + RAM_RULES[2:]
        self.assertEqual(match_rules(combo, RAM_RULES, RAM_DEFAULT), 95)
        self.assertEqual(match_rules(combo, ddr4_first, RAM_DEFAULT), 85)

    def test_match_rules_default(self):
        rules = ((has_all("a", "b"), 10),)
        self.assertEqual(match_rules("ab", rules, 1), 10)
        self.assertEqual(match_rules("a", rules, 1), 1)
        self.assertEqual(match_rules(None, rules, 1), 1)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(86.5), 87)
        self.assertEqual(round_half_up(86.49), 86)
        self.assertEqual(round_half_up(0.5), 1)


class TestNetworkScore(unittest.TestCase):
    def test_no_network(self):
        self.assertEqual(network_score(None), 50)

    def test_partial_dns(self):
        cfg = NetworkConfig(ip="192.168.1.50", subnet_mask="255.255.0.0", gateway="192.168.1.1", dns="8.8.4.4")
        self.assertEqual(network_score(cfg), 50 + 15 + 10 + 10)

    def test_invalid_addresses(self):
        cfg = NetworkConfig(ip="bad", subnet_mask="255.255.255.0", gateway="", dns="9.9.9.9")
        self.assertEqual(network_score(cfg), 55)

    def test_cloudflare_dns(self):
        cfg = NetworkConfig(ip="10.0.0.2", subnet_mask="255.255.255.0", gateway="10.0.0.1", dns="1.1.1.1")
        self.assertEqual(network_score(cfg), 100)


class TestTierAndRecommendations(unittest.TestCase):
    def test_tier_thresholds(self):
        self.assertEqual(performance_tier(90).tier, "Excellent")
        self.assertEqual(performance_tier(89).tier, "Good")
        self.assertEqual(performance_tier(75).tier, "Good")
        self.assertEqual(performance_tier(60).tier, "Average")
        self.assertEqual(performance_tier(40).tier, "Below Average")
        self.assertEqual(performance_tier(39).tier, "Poor")

    def test_recommendations(self):
        self.assertEqual(len(recommendations(score(HIGH_END, LAN))), 1)
        self.assertIn("already optimal", recommendations(score(HIGH_END, LAN))[0])
        recs = recommendations(score(BUILD_PRESETS["budget"]))
        self.assertTrue(any("RAM" in r for r in recs))
        self.assertTrue(any("GPU" in r for r in recs))


class TestPowerBudget(unittest.TestCase):
    def test_high_end_fits(self):
        b = power_budget(HIGH_END)
        self.assertEqual(b.draw_watts, 483)
        self.assertEqual(b.capacity_watts, 750)
        self.assertEqual(b.required_watts, 580)
        self.assertTrue(b.sufficient)

    def test_exact_boundary(self):
        self.assertEqual(required_psu_watts(100), 120)
        spec = HardwareSpec(cpu="X - 100W", ram="", storage="", gpu="", psu="120W")
        self.assertTrue(power_budget(spec).sufficient)
        spec = HardwareSpec(cpu="X - 101W", ram="", storage="", gpu="", psu="121W")
        self.assertFalse(power_budget(spec).sufficient)

    def test_missing_psu(self):
        self.assertFalse(power_budget(HardwareSpec(cpu="X - 65W", ram="", storage="", gpu="")).sufficient)
        self.assertTrue(power_budget(HardwareSpec(cpu="", ram="", storage="", gpu="")).sufficient)


if __name__ == "__main__":
    unittest.main()
