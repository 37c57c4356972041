from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Tuple

from .catalog import HardwareSpec, parse_cpu_specs, parse_gpu_specs, parse_ram_specs, parse_storage_specs
from .scoring import power_budget


RAM_RANK = {"DDR4": 1, "DDR5": 2}
STORAGE_RANK = {"HDD": 1, "SATA SSD": 2, "NVMe SSD": 3}


def format_storage(gb: int) -> str:
    if gb > 1024:
        return f"{gb / 1024:.1f} TB"
    return f"{gb} GB"


@dataclass(frozen=True)
class AggregateSpecs:
    pc_count: int = 0
    total_cores: int = 0
    total_threads: int = 0
    total_ram_gb: int = 0
    best_ram_type: str = ""
    total_storage_gb: int = 0
    storage_display: str = "0 GB"
    best_storage_type: str = ""
    total_gpu_cores: int = 0
    total_vram_gb: int = 0
    total_power_draw_watts: int = 0

    @staticmethod
    def empty() -> "AggregateSpecs":
        return AggregateSpecs()

    @property
    def is_empty(self) -> bool:
        return self.pc_count == 0


@lru_cache(maxsize=64)
def _aggregate(specs: Tuple[HardwareSpec, ...]) -> AggregateSpecs:
    if not specs:
        return AggregateSpecs.empty()

    cores = threads = ram_gb = storage_gb = gpu_cores = vram = watts = 0
    best_ram = ""
    best_storage = ""
    for hw in specs:
        cpu = parse_cpu_specs(hw.cpu)
        ram = parse_ram_specs(hw.ram)
        storage = parse_storage_specs(hw.storage)
        gpu = parse_gpu_specs(hw.gpu)

        cores += cpu.cores
        threads += cpu.threads
        ram_gb += ram.gb
        storage_gb += storage.gb
        gpu_cores += gpu.cores
        vram += gpu.vram
        watts += power_budget(hw).draw_watts

        if RAM_RANK.get(ram.type, 0) > RAM_RANK.get(best_ram, 0):
            best_ram = ram.type
        if STORAGE_RANK.get(storage.type, 0) > STORAGE_RANK.get(best_storage, 0):
            best_storage = storage.type

    return AggregateSpecs(
        pc_count=len(specs),
        total_cores=cores,
        total_threads=threads,
        total_ram_gb=ram_gb,
        best_ram_type=best_ram,
        total_storage_gb=storage_gb,
        storage_display=format_storage(storage_gb),
        best_storage_type=best_storage,
        total_gpu_cores=gpu_cores,
        total_vram_gb=vram,
        total_power_draw_watts=watts,
    )


def aggregate_specs(specs: Iterable[HardwareSpec]) -> AggregateSpecs:
    """Fleet summary over the hardware of every configured computer.

    Memoized on the (ordered) tuple of specs; an empty input yields
    ``AggregateSpecs.empty()``.
    """
    return _aggregate(tuple(specs))
