"""Static component catalog and attribute parsers.

Every selectable part is described by a single human-readable string such as
``"Intel Core i9-13900K - 24 Cores @ 3.0GHz - 253W"``. The scoring engine and
the aggregation layer never see structured part records, only these strings,
so the parsers below are the one place that knows how to pull numbers out of
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import re


@dataclass(frozen=True)
class HardwareSpec:
    cpu: str
    ram: str
    storage: str
    gpu: str
    psu: str = ""


@dataclass(frozen=True)
class CatalogItem:
    category: str  # cpu|ram|storage|gpu|psu
    name: str
    specs: str
    price: str  # $|$$|$$$
    watts: int = 0

    @property
    def label(self) -> str:
        parts = [self.name]
        if self.specs:
            parts.append(self.specs)
        if self.category != "psu" and self.watts:
            parts.append(f"{self.watts}W")
        return " - ".join(parts)


@dataclass(frozen=True)
class OSEdition:
    os_kind: str  # windows|linux
    key: str
    name: str
    description: str


# ───────────────────────────── Components ─────────────────────────────

CPU_OPTIONS: Tuple[CatalogItem, ...] = (
    CatalogItem("cpu", "Intel Core i5-12400", "6 Cores @ 2.5GHz", "$", 65),
    CatalogItem("cpu", "Intel Core i7-12700K", "12 Cores @ 3.6GHz", "$$", 190),
    CatalogItem("cpu", "AMD Ryzen 7 5800X", "8 Cores @ 3.8GHz", "$$", 105),
    CatalogItem("cpu", "Intel Core i9-13900K", "24 Cores @ 3.0GHz", "$$$", 253),
)

RAM_OPTIONS: Tuple[CatalogItem, ...] = (
    CatalogItem("ram", "8GB DDR4", "2666MHz", "$", 5),
    CatalogItem("ram", "16GB DDR4", "3200MHz", "$$", 10),
    CatalogItem("ram", "32GB DDR4", "3600MHz", "$$$", 20),
    CatalogItem("ram", "16GB DDR5", "4800MHz", "$$$", 10),
)

STORAGE_OPTIONS: Tuple[CatalogItem, ...] = (
    CatalogItem("storage", "256GB NVMe SSD", "3000MB/s", "$", 5),
    CatalogItem("storage", "512GB NVMe SSD", "3500MB/s", "$$", 7),
    CatalogItem("storage", "1TB NVMe SSD", "7000MB/s", "$$$", 10),
    CatalogItem("storage", "2TB SATA SSD", "550MB/s", "$$", 6),
)

GPU_OPTIONS: Tuple[CatalogItem, ...] = (
    CatalogItem("gpu", "Integrated Graphics", "Shared Memory", "$", 0),
    CatalogItem("gpu", "NVIDIA GTX 1660 Super", "6GB GDDR6", "$$", 125),
    CatalogItem("gpu", "NVIDIA RTX 3060", "12GB GDDR6", "$$", 170),
    CatalogItem("gpu", "AMD RX 6700 XT", "12GB GDDR6", "$$", 230),
    CatalogItem("gpu", "NVIDIA RTX 4070", "12GB GDDR6X", "$$$", 200),
)

PSU_OPTIONS: Tuple[CatalogItem, ...] = (
    CatalogItem("psu", "450W 80+ Bronze", "", "$", 450),
    CatalogItem("psu", "650W 80+ Bronze", "", "$$", 650),
    CatalogItem("psu", "750W 80+ Gold", "", "$$", 750),
    CatalogItem("psu", "1000W 80+ Platinum", "", "$$$", 1000),
)

CATALOG: Dict[str, Tuple[CatalogItem, ...]] = {
    "cpu": CPU_OPTIONS,
    "ram": RAM_OPTIONS,
    "storage": STORAGE_OPTIONS,
    "gpu": GPU_OPTIONS,
    "psu": PSU_OPTIONS,
}


def find_item(category: str, name: str) -> Optional[CatalogItem]:
    """Case-insensitive lookup by part name (not the full label)."""
    needle = (name or "").strip().lower()
    for item in CATALOG.get(category, ()):
        if item.name.lower() == needle:
            return item
    return None


# ───────────────────────────── Operating systems ─────────────────────────────

WINDOWS_EDITIONS: Tuple[OSEdition, ...] = (
    OSEdition("windows", "home", "Windows 11 Home", "For personal and family use"),
    OSEdition("windows", "pro", "Windows 11 Pro", "Business features and advanced security"),
    OSEdition("windows", "ltsc", "Windows 11 LTSC", "Long-term support for enterprise"),
    OSEdition("windows", "server", "Windows Server 2022", "Enterprise server operating system"),
)

LINUX_DISTROS: Tuple[OSEdition, ...] = (
    OSEdition("linux", "ubuntu", "Ubuntu", "Beginner friendly"),
    OSEdition("linux", "debian", "Debian", "Stable and dependable"),
    OSEdition("linux", "fedora", "Fedora", "Latest features"),
    OSEdition("linux", "arch", "Arch Linux", "Minimal and customizable"),
    OSEdition("linux", "kali", "Kali Linux", "Security and penetration testing"),
    OSEdition("linux", "centos", "CentOS", "Enterprise-grade stability"),
)


def os_editions(os_kind: str) -> Tuple[OSEdition, ...]:
    kind = (os_kind or "").strip().lower()
    if kind == "windows":
        return WINDOWS_EDITIONS
    if kind == "linux":
        return LINUX_DISTROS
    return ()


def find_os_edition(os_kind: str, key_or_name: str) -> Optional[OSEdition]:
    needle = (key_or_name or "").strip().lower()
    for ed in os_editions(os_kind):
        if needle in (ed.key, ed.name.lower()):
            return ed
    return None


# ───────────────────────────── Presets ─────────────────────────────

def _spec(*items: CatalogItem) -> HardwareSpec:
    cpu, ram, storage, gpu, psu = items
    return HardwareSpec(cpu=cpu.label, ram=ram.label, storage=storage.label, gpu=gpu.label, psu=psu.label)


BUILD_PRESETS: Dict[str, HardwareSpec] = {
    "budget": _spec(CPU_OPTIONS[0], RAM_OPTIONS[0], STORAGE_OPTIONS[0], GPU_OPTIONS[0], PSU_OPTIONS[0]),
    "mid-range": _spec(CPU_OPTIONS[1], RAM_OPTIONS[1], STORAGE_OPTIONS[1], GPU_OPTIONS[1], PSU_OPTIONS[1]),
    "high-end": _spec(CPU_OPTIONS[3], RAM_OPTIONS[2], STORAGE_OPTIONS[2], GPU_OPTIONS[4], PSU_OPTIONS[2]),
}


@dataclass(frozen=True)
class PresetModule:
    kind: str  # computer|display|router
    node_id: str
    x: float
    y: float


@dataclass(frozen=True)
class CanvasPreset:
    name: str
    title: str
    modules: Tuple[PresetModule, ...]
    cables: Tuple[Tuple[int, int], ...]  # indices into modules


CANVAS_PRESETS: Dict[str, CanvasPreset] = {
    "simple-network": CanvasPreset(
        name="simple-network",
        title="Simple Network",
        modules=(
            PresetModule("computer", "PC-1", 200, 300),
            PresetModule("display", "MON-1", 400, 300),
            PresetModule("router", "RTR-1", 600, 300),
        ),
        cables=((0, 1), (1, 2)),
    ),
    "multi-pc-lab": CanvasPreset(
        name="multi-pc-lab",
        title="Multi-PC Lab",
        modules=(
            PresetModule("computer", "PC-1", 150, 200),
            PresetModule("display", "MON-1", 300, 200),
            PresetModule("computer", "PC-2", 150, 400),
            PresetModule("display", "MON-2", 300, 400),
            PresetModule("router", "RTR-1", 500, 300),
        ),
        cables=((0, 1), (2, 3), (1, 4), (3, 4)),
    ),
    "server-room": CanvasPreset(
        name="server-room",
        title="Server Room",
        modules=(
            PresetModule("computer", "SERVER-1", 150, 150),
            PresetModule("display", "MON-1", 300, 150),
            PresetModule("computer", "SERVER-2", 150, 300),
            PresetModule("display", "MON-2", 300, 300),
            PresetModule("computer", "WORKSTATION", 150, 450),
            PresetModule("display", "MON-3", 300, 450),
            PresetModule("router", "RTR-1", 550, 300),
        ),
        cables=((0, 1), (2, 3), (4, 5), (1, 6), (3, 6), (5, 6)),
    ),
}


# ───────────────────────────── Attribute parsing ─────────────────────────────

@dataclass(frozen=True)
class CPUSpecs:
    cores: int
    threads: int
    frequency: str


@dataclass(frozen=True)
class RAMSpecs:
    gb: int
    type: str


@dataclass(frozen=True)
class StorageSpecs:
    gb: int
    type: str


@dataclass(frozen=True)
class GPUSpecs:
    cores: int
    vram: int


# First match wins; "Ryzen 7 5800X" must not be shadowed by a broader rule.
_CPU_MODELS: List[Tuple[str, CPUSpecs]] = [
    ("i9-13900K", CPUSpecs(24, 32, "5.8 GHz")),
    ("Ryzen 9", CPUSpecs(16, 32, "5.7 GHz")),
    ("i7-12700K", CPUSpecs(12, 20, "5.0 GHz")),
    ("Ryzen 7 5800X", CPUSpecs(8, 16, "4.7 GHz")),
    ("i5-12400", CPUSpecs(6, 12, "4.4 GHz")),
    ("Ryzen 5", CPUSpecs(6, 12, "4.6 GHz")),
]
_CPU_DEFAULT = CPUSpecs(4, 8, "3.5 GHz")

_GPU_MODELS: List[Tuple[str, GPUSpecs]] = [
    ("RTX 4090", GPUSpecs(16384, 24)),
    ("RTX 4080", GPUSpecs(9728, 16)),
    ("RTX 4070", GPUSpecs(5888, 12)),
    ("RTX 3080", GPUSpecs(8704, 10)),
    ("RTX 3070", GPUSpecs(5888, 8)),
    ("RTX 3060", GPUSpecs(3584, 12)),
    ("RX 6700 XT", GPUSpecs(2560, 12)),
    ("GTX 1660", GPUSpecs(1408, 6)),
]
_GPU_DEFAULT = GPUSpecs(1024, 4)

_CPU_BRACKET = re.compile(r"\[(\d+)\s*Cores\s*/\s*(\d+)\s*Threads\s*@\s*([\d.]+GHz)\]", re.I)
_GPU_BRACKET = re.compile(r"\[(\d+)\s*Cores,\s*(\d+)GB", re.I)
_WATTS = re.compile(r"(\d+)\s*W\b")


def parse_cpu_specs(cpu: str) -> CPUSpecs:
    cpu = cpu or ""
    m = _CPU_BRACKET.search(cpu)
    if m:
        return CPUSpecs(int(m.group(1)), int(m.group(2)), m.group(3))
    for needle, specs in _CPU_MODELS:
        if needle in cpu:
            return specs
    return _CPU_DEFAULT


def parse_ram_specs(ram: str) -> RAMSpecs:
    ram = ram or ""
    m = re.search(r"(\d+)GB", ram)
    gb = int(m.group(1)) if m else 8
    return RAMSpecs(gb=gb, type="DDR5" if "DDR5" in ram else "DDR4")


def parse_storage_specs(storage: str) -> StorageSpecs:
    storage = storage or ""
    m = re.search(r"(\d+)(TB|GB)", storage)
    gb = 512
    if m:
        gb = int(m.group(1)) * 1024 if m.group(2) == "TB" else int(m.group(1))
    if "NVMe" in storage:
        kind = "NVMe SSD"
    elif "SATA" in storage:
        kind = "SATA SSD"
    else:
        kind = "HDD"
    return StorageSpecs(gb=gb, type=kind)


def parse_gpu_specs(gpu: str) -> GPUSpecs:
    gpu = gpu or ""
    m = _GPU_BRACKET.search(gpu)
    if m:
        return GPUSpecs(int(m.group(1)), int(m.group(2)))
    for needle, specs in _GPU_MODELS:
        if needle in gpu:
            return specs
    return _GPU_DEFAULT


def parse_watts(text: str) -> int:
    """Return the first ``NNNW`` figure embedded in ``text``, or 0."""
    m = _WATTS.search(text or "")
    return int(m.group(1)) if m else 0
