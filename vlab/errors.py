from __future__ import annotations

from typing import Optional


class LabError(Exception):
    """Base class for every recoverable lab error."""


class UnknownNodeError(LabError):
    def __init__(self, node_id: str):
        super().__init__(f"Unknown node '{node_id}'.")
        self.node_id = node_id


class DuplicateIdError(LabError):
    def __init__(self, node_id: str):
        super().__init__(f"Node id '{node_id}' is already in use.")
        self.node_id = node_id


class SelfLoopError(LabError):
    def __init__(self, node_id: str):
        super().__init__(f"Cannot connect {node_id} to itself.")
        self.node_id = node_id


class DuplicateCableError(LabError):
    def __init__(self, a: str, b: str):
        super().__init__(f"{a} and {b} are already connected.")
        self.pair = (a, b)


class UnknownKindError(LabError, ValueError):
    def __init__(self, value):
        super().__init__(f"Unknown node kind '{value}'.")
        self.value = value


class InvalidNodeIdError(LabError, ValueError):
    def __init__(self, node_id: str):
        super().__init__("Node id must not be empty.")
        self.node_id = node_id


class NodeKindError(LabError):
    def __init__(self, node_id: str, expected: str, actual: str):
        super().__init__(f"{node_id} is a {actual}, expected a {expected}.")
        self.node_id = node_id
        self.expected = expected
        self.actual = actual


class UnknownPresetError(LabError):
    def __init__(self, name: str, choices):
        super().__init__(f"Unknown preset '{name}'. Choose one of: {', '.join(choices)}.")
        self.name = name


class PrerequisiteNotMetError(LabError):
    """A gate refused a phase transition."""

    def __init__(self, node_id: str, reason: str):
        super().__init__(reason)
        self.node_id = node_id
        self.reason = reason


class InvalidNetworkConfigError(LabError):
    MALFORMED = "malformed"
    SUBNET_MISMATCH = "subnet_mismatch"
    POOL_EXHAUSTED = "pool_exhausted"

    def __init__(self, field: Optional[str], reason: str, detail: str):
        super().__init__(detail)
        self.field = field
        self.reason = reason
        self.detail = detail
