"""Pydantic views of lab state.

Every model forbids extra keys so the JSON handed to a renderer (or an MCP
client) has a closed, documented shape.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .aggregate import AggregateSpecs
from .catalog import HardwareSpec
from .core import Cable, ComputerConfig, Node, OSConfig, OSKind
from .netcfg import NetworkConfig
from .scoring import HardwareDetails, PerformanceMetrics, performance_tier


class PositionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    x: float = Field(..., description="Canvas X coordinate")
    y: float = Field(..., description="Canvas Y coordinate")


class NodeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Unique node id (PC-# / MON-# / RTR-#)")
    kind: Literal["computer", "display", "router"]
    label: str
    position: PositionModel
    state: Literal["unconfigured", "hardware_set", "os_set", "network_set"]
    configured: bool
    linked_computer: Optional[str] = Field(None, description="Computer a display reflects")

    @staticmethod
    def from_node(node: Node) -> "NodeModel":
        return NodeModel(
            id=node.id,
            kind=node.kind.value,
            label=node.label,
            position=PositionModel(x=node.position.x, y=node.position.y),
            state=node.state.value,
            configured=node.configured,
            linked_computer=node.linked_computer,
        )


class CableModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    from_node_id: str
    to_node_id: str
    kind: Literal["power", "ethernet"]

    @staticmethod
    def from_cable(cable: Cable) -> "CableModel":
        return CableModel(
            id=cable.id,
            from_node_id=cable.from_node_id,
            to_node_id=cable.to_node_id,
            kind=cable.kind.value,
        )


class HardwareModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cpu: str = Field(..., description="e.g. 'Intel Core i9-13900K - 24 Cores @ 3.0GHz - 253W'")
    ram: str = Field(..., description="e.g. '32GB DDR4 - 3600MHz - 20W'")
    storage: str = Field(..., description="e.g. '1TB NVMe SSD - 7000MB/s - 10W'")
    gpu: str = Field(..., description="e.g. 'NVIDIA RTX 4070 - 12GB GDDR6X - 200W'")
    psu: str = Field("", description="e.g. '750W 80+ Gold'")

    def to_spec(self) -> HardwareSpec:
        return HardwareSpec(cpu=self.cpu, ram=self.ram, storage=self.storage, gpu=self.gpu, psu=self.psu)

    @staticmethod
    def from_spec(spec: HardwareSpec) -> "HardwareModel":
        return HardwareModel(cpu=spec.cpu, ram=spec.ram, storage=spec.storage, gpu=spec.gpu, psu=spec.psu)


class OSModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    os_kind: Literal["windows", "linux"]
    edition: str = Field(..., description="Windows edition or Linux distribution")

    def to_config(self) -> OSConfig:
        return OSConfig(os_kind=OSKind(self.os_kind), edition=self.edition)

    @staticmethod
    def from_config(cfg: OSConfig) -> "OSModel":
        return OSModel(os_kind=cfg.os_kind.value, edition=cfg.edition)


class NetworkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ip: str
    subnet_mask: str
    gateway: str
    dns: str

    def to_config(self) -> NetworkConfig:
        return NetworkConfig(ip=self.ip, subnet_mask=self.subnet_mask, gateway=self.gateway, dns=self.dns)

    @staticmethod
    def from_config(cfg: NetworkConfig) -> "NetworkModel":
        return NetworkModel(ip=cfg.ip, subnet_mask=cfg.subnet_mask, gateway=cfg.gateway, dns=cfg.dns)


class HardwareDetailsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cpu_cores: int
    cpu_threads: int
    cpu_frequency: str
    ram_gb: int
    ram_type: str
    storage_gb: int
    storage_type: str
    gpu_cores: int
    gpu_vram: int

    @staticmethod
    def from_details(d: HardwareDetails) -> "HardwareDetailsModel":
        return HardwareDetailsModel(**{name: getattr(d, name) for name in HardwareDetailsModel.model_fields})


class MetricsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overall: int = Field(..., ge=0, le=100)
    cpu_score: int = Field(..., ge=0, le=100)
    ram_score: int = Field(..., ge=0, le=100)
    storage_score: int = Field(..., ge=0, le=100)
    gpu_score: int = Field(..., ge=0, le=100)
    network_score: int = Field(..., ge=0, le=100)
    vm_boot_time: int = Field(..., description="Milliseconds")
    browser_load_time: int = Field(..., description="Milliseconds")
    app_response_time: int = Field(..., description="Milliseconds")
    tier: str
    hardware_details: Optional[HardwareDetailsModel] = None

    @staticmethod
    def from_metrics(m: PerformanceMetrics) -> "MetricsModel":
        return MetricsModel(
            overall=m.overall,
            cpu_score=m.cpu_score,
            ram_score=m.ram_score,
            storage_score=m.storage_score,
            gpu_score=m.gpu_score,
            network_score=m.network_score,
            vm_boot_time=m.vm_boot_time,
            browser_load_time=m.browser_load_time,
            app_response_time=m.app_response_time,
            tier=performance_tier(m.overall).tier,
            hardware_details=HardwareDetailsModel.from_details(m.hardware_details) if m.hardware_details else None,
        )


class ComputerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    hardware: Optional[HardwareModel] = None
    os: Optional[OSModel] = None
    network: Optional[NetworkModel] = None
    metrics: Optional[MetricsModel] = None
    progress: int = Field(0, ge=0, le=100)

    @staticmethod
    def from_config(node_id: str, cfg: ComputerConfig) -> "ComputerModel":
        return ComputerModel(
            id=node_id,
            hardware=HardwareModel.from_spec(cfg.hardware) if cfg.hardware else None,
            os=OSModel.from_config(cfg.os) if cfg.os else None,
            network=NetworkModel.from_config(cfg.network) if cfg.network else None,
            metrics=MetricsModel.from_metrics(cfg.metrics) if cfg.metrics else None,
            progress=cfg.progress,
        )


class AggregateModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pc_count: int
    total_cores: int
    total_threads: int
    total_ram_gb: int
    best_ram_type: str
    total_storage_gb: int
    storage_display: str
    best_storage_type: str
    total_gpu_cores: int
    total_vram_gb: int
    total_power_draw_watts: int

    @staticmethod
    def from_aggregate(agg: AggregateSpecs) -> "AggregateModel":
        return AggregateModel(**{name: getattr(agg, name) for name in AggregateModel.model_fields})


class LabSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schemaVersion: int = Field(1, description="Snapshot schema version")
    nodes: List[NodeModel] = Field(default_factory=list)
    cables: List[CableModel] = Field(default_factory=list)
    computers: List[ComputerModel] = Field(default_factory=list)
    aggregate: AggregateModel
    progress: int = Field(0, ge=0, le=100)
    log: List[str] = Field(default_factory=list, description="Most recent activity lines")
