import unittest

from vlab.activity_log import WARNING, ActivityLog
from vlab.aggregate import AggregateSpecs, aggregate_specs, format_storage
from vlab.catalog import BUILD_PRESETS, HardwareSpec


class TestAggregate(unittest.TestCase):
    def test_empty(self):
        agg = aggregate_specs([])
        self.assertTrue(agg.is_empty)
        self.assertEqual(agg, AggregateSpecs.empty())

    def test_best_types(self):
        specs = [
            HardwareSpec(cpu="", ram="16GB DDR4", storage="2TB SATA SSD", gpu=""),
            HardwareSpec(cpu="", ram="16GB DDR5", storage="1TB HDD", gpu=""),
        ]
        agg = aggregate_specs(specs)
        self.assertEqual(agg.best_ram_type, "DDR5")
        self.assertEqual(agg.best_storage_type, "SATA SSD")
        self.assertEqual(agg.total_storage_gb, 3072)
        self.assertEqual(agg.storage_display, "3.0 TB")

    def test_idempotent(self):
        specs = list(BUILD_PRESETS.values())
        self.assertEqual(aggregate_specs(specs), aggregate_specs(tuple(specs)))
        self.assertEqual(aggregate_specs(specs).pc_count, 3)

    def test_power_draw(self):
        agg = aggregate_specs([BUILD_PRESETS["high-end"], BUILD_PRESETS["budget"]])
        self.assertEqual(agg.total_power_draw_watts, 483 + 75)

    def test_format_storage(self):
        self.assertEqual(format_storage(1024), "1024 GB")
        self.assertEqual(format_storage(1536), "1.5 TB")


class TestActivityLog(unittest.TestCase):
    def test_order_and_levels(self):
        log = ActivityLog()
        log.info("a", "first")
        log.warning("b", "second", node="PC-1")
        log.info("c", "third")
        self.assertEqual(log.lines(), ("first", "second", "third"))
        self.assertEqual(log.warnings(), ("second",))
        self.assertEqual(log.events[1].level, WARNING)
        self.assertEqual(log.events[1].data, {"node": "PC-1"})
        self.assertEqual(log.tail(2), ("second", "third"))
        self.assertEqual(log.tail(0), ())

    def test_cap(self):
        log = ActivityLog(max_events=2)
        for i in range(5):
            log.info("n", str(i))
        self.assertEqual(log.lines(), ("3", "4"))

    def test_zero_cap_keeps_nothing(self):
        for cap in (0, -3):
            log = ActivityLog(max_events=cap)
            log.info("n", "dropped")
            log.warning("n", "also dropped")
            self.assertEqual(log.lines(), ())
            self.assertEqual(len(log), 0)

    def test_to_dict(self):
        log = ActivityLog()
        log.info("x", "hello")
        d = log.to_dict()
        self.assertEqual(d["schema"], "vlab-activity-log/v1")
        self.assertEqual(d["eventCount"], 1)
        self.assertEqual(d["events"][0]["message"], "hello")


if __name__ == "__main__":
    unittest.main()
