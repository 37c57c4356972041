"""Virtual lab core: canvas topology, provisioning state machine and scoring.

Presentation layers (canvas, wizards, fake terminals) sit outside this
package and drive it through VirtualLab.
"""

from .catalog import HardwareSpec
from .core import LabTopology, NodeKind, OSConfig, OSKind
from .errors import LabError
from .lab import VirtualLab
from .netcfg import NetworkConfig
from .settings import LabSettings
from .cli import LabCLIEngine

__all__ = [
    "HardwareSpec",
    "LabTopology",
    "NodeKind",
    "OSConfig",
    "OSKind",
    "LabError",
    "VirtualLab",
    "NetworkConfig",
    "LabSettings",
    "LabCLIEngine",
]
