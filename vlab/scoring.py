"""Deterministic performance scoring.

Scores are illustrative: each component string is matched against an ordered
rule table (first match wins) and the sub-scores are blended with fixed
weights. Latencies are affine in the overall score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple
import math

from .catalog import (
    HardwareSpec,
    parse_cpu_specs,
    parse_gpu_specs,
    parse_ram_specs,
    parse_storage_specs,
    parse_watts,
)
from .netcfg import NetworkConfig, is_valid_ipv4


Predicate = Callable[[str], bool]
RuleTable = Sequence[Tuple[Predicate, int]]


def has_all(*needles: str) -> Predicate:
    return lambda text: all(n in text for n in needles)


def has_any(*needles: str) -> Predicate:
    return lambda text: any(n in text for n in needles)


# Order matters: rules overlap ("32GB DDR5" also contains "32GB").
CPU_RULES: RuleTable = (
    (has_any("i9-13900K", "Ryzen 9"), 95),
    (has_any("i7-12700K", "Ryzen 7"), 85),
    (has_any("i5-12400", "Ryzen 5"), 70),
)
CPU_DEFAULT = 50

RAM_RULES: RuleTable = (
    (has_all("32GB", "DDR5"), 95),
    (has_all("32GB", "DDR4"), 85),
    (has_all("16GB", "DDR5"), 80),
    (has_all("16GB", "DDR4"), 70),
    (has_all("8GB"), 50),
)
RAM_DEFAULT = 40

STORAGE_RULES: RuleTable = (
    (has_all("2TB", "NVMe"), 95),
    (has_all("1TB", "NVMe", "7000MB/s"), 90),
    (has_all("512GB", "NVMe"), 75),
    (has_all("256GB", "NVMe"), 65),
    (has_all("SATA"), 50),
)
STORAGE_DEFAULT = 40

GPU_RULES: RuleTable = (
    (has_any("RTX 4090", "RTX 4080"), 98),
    (has_any("RTX 4070"), 90),
    (has_any("RTX 3080", "RTX 3070"), 85),
    (has_any("RTX 3060", "GTX 1660", "RX 6700 XT"), 70),
    (has_any("Integrated"), 40),
)
GPU_DEFAULT = 30

PUBLIC_DNS = ("8.8.8.8", "1.1.1.1")
CANONICAL_MASK = "255.255.255.0"
NETWORK_BASE = 50
NETWORK_DEFAULT = 50

WEIGHTS = {"cpu": 0.30, "ram": 0.25, "storage": 0.15, "gpu": 0.20, "network": 0.10}

# PSU must cover the load plus 20% headroom.
PSU_HEADROOM_PCT = 20


@dataclass(frozen=True)
class HardwareDetails:
    cpu_cores: int
    cpu_threads: int
    cpu_frequency: str
    ram_gb: int
    ram_type: str
    storage_gb: int
    storage_type: str
    gpu_cores: int
    gpu_vram: int


@dataclass(frozen=True)
class PerformanceMetrics:
    overall: int
    cpu_score: int
    ram_score: int
    storage_score: int
    gpu_score: int
    network_score: int
    vm_boot_time: int  # ms
    browser_load_time: int  # ms
    app_response_time: int  # ms
    hardware_details: Optional[HardwareDetails] = None


@dataclass(frozen=True)
class PerformanceTier:
    tier: str
    description: str


@dataclass(frozen=True)
class PowerBudget:
    draw_watts: int
    capacity_watts: int
    required_watts: int
    headroom_pct: float
    sufficient: bool


def match_rules(text: str, rules: RuleTable, default: int) -> int:
    text = text or ""
    for predicate, value in rules:
        if predicate(text):
            return value
    return default


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def network_score(cfg: Optional[NetworkConfig]) -> int:
    if cfg is None:
        return NETWORK_DEFAULT
    score = NETWORK_BASE
    dns = cfg.dns or ""
    if dns in PUBLIC_DNS:
        score += 25
    elif "8.8" in dns:
        score += 15
    if is_valid_ipv4(cfg.ip):
        score += 10
    if is_valid_ipv4(cfg.gateway):
        score += 10
    if cfg.subnet_mask == CANONICAL_MASK:
        score += 5
    return min(score, 100)


def hardware_details(hardware: HardwareSpec) -> HardwareDetails:
    cpu = parse_cpu_specs(hardware.cpu)
    ram = parse_ram_specs(hardware.ram)
    storage = parse_storage_specs(hardware.storage)
    gpu = parse_gpu_specs(hardware.gpu)
    return HardwareDetails(
        cpu_cores=cpu.cores,
        cpu_threads=cpu.threads,
        cpu_frequency=cpu.frequency,
        ram_gb=ram.gb,
        ram_type=ram.type,
        storage_gb=storage.gb,
        storage_type=storage.type,
        gpu_cores=gpu.cores,
        gpu_vram=gpu.vram,
    )


def score(hardware: HardwareSpec, network: Optional[NetworkConfig] = None) -> PerformanceMetrics:
    cpu = match_rules(hardware.cpu, CPU_RULES, CPU_DEFAULT)
    ram = match_rules(hardware.ram, RAM_RULES, RAM_DEFAULT)
    storage = match_rules(hardware.storage, STORAGE_RULES, STORAGE_DEFAULT)
    gpu = match_rules(hardware.gpu, GPU_RULES, GPU_DEFAULT)
    net = network_score(network)

    overall = round_half_up(
        cpu * WEIGHTS["cpu"]
        + ram * WEIGHTS["ram"]
        + storage * WEIGHTS["storage"]
        + gpu * WEIGHTS["gpu"]
        + net * WEIGHTS["network"]
    )

    return PerformanceMetrics(
        overall=overall,
        cpu_score=cpu,
        ram_score=ram,
        storage_score=storage,
        gpu_score=gpu,
        network_score=net,
        vm_boot_time=max(500, 5000 - overall * 45),
        browser_load_time=max(300, 3000 - overall * 27 - net * 10),
        app_response_time=max(100, 1000 - overall * 9),
        hardware_details=hardware_details(hardware),
    )


def performance_tier(overall: int) -> PerformanceTier:
    if overall >= 90:
        return PerformanceTier("Excellent", "Outstanding performance. Every application runs very responsively.")
    if overall >= 75:
        return PerformanceTier("Good", "Good performance. Suited to multitasking and heavy applications.")
    if overall >= 60:
        return PerformanceTier("Average", "Standard performance. Enough for everyday use.")
    if overall >= 40:
        return PerformanceTier("Below Average", "Below-average performance. Some applications may be slow.")
    return PerformanceTier("Poor", "Low performance. Upgrading components is recommended.")


def recommendations(metrics: PerformanceMetrics) -> List[str]:
    out: List[str] = []
    if metrics.cpu_score < 70:
        out.append("Upgrade the CPU for better multitasking performance.")
    if metrics.ram_score < 70:
        out.append("Add more RAM to run more applications at once.")
    if metrics.storage_score < 60:
        out.append("Use an NVMe SSD for faster boot and loading times.")
    if metrics.gpu_score < 50:
        out.append("Consider a dedicated GPU for better graphics.")
    if metrics.network_score < 70:
        out.append("Use a faster DNS server (8.8.8.8 or 1.1.1.1).")
    if not out:
        out.append("The system is already optimal. No upgrades recommended.")
    return out


def required_psu_watts(draw_watts: int) -> int:
    # integer ceil of draw * (1 + headroom)
    return -(-draw_watts * (100 + PSU_HEADROOM_PCT) // 100)


def power_budget(hardware: HardwareSpec) -> PowerBudget:
    draw = sum(parse_watts(part) for part in (hardware.cpu, hardware.ram, hardware.storage, hardware.gpu))
    capacity = parse_watts(hardware.psu)
    required = required_psu_watts(draw)
    if draw > 0:
        headroom = round((capacity - draw) / draw * 100.0, 1)
    else:
        headroom = 100.0 if capacity > 0 else 0.0
    return PowerBudget(
        draw_watts=draw,
        capacity_watts=capacity,
        required_watts=required,
        headroom_pct=headroom,
        sufficient=capacity >= required,
    )
