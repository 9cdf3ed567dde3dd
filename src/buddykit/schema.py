#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Launcher Schema Definitions

Pydantic BaseModel schemas for the values that flow through one launcher run:
the probed GPU capability, the selected build configuration, the forwarded
invocation and the built executable.

All of them are frozen: each is produced once per run and never mutated.
"""

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class CapabilitySignal(BaseModel):
    """Result of a GPU compute capability probe."""
    raw_compute_capability: Optional[str] = Field(
        None, description="First numeric line reported by the GPU query (e.g., '8.6'), or None if no GPU was detected"
    )

    class Config:
        frozen = True

    @property
    def present(self) -> bool:
        """Whether the probe produced a capability string."""
        return bool(self.raw_compute_capability)


class BuildConfiguration(BaseModel):
    """
    Build-time decisions handed to the build tool.

    architecture_id is only ever set when acceleration is enabled. The reverse
    does not hold: acceleration may be enabled without an architecture pin, in
    which case the build tool falls back to its own default targeting.
    """
    acceleration_enabled: bool = Field(False, description="Whether GPU-accelerated code paths are compiled in")
    architecture_id: Optional[str] = Field(None, description="Compact compute capability (e.g., '75' for 7.5)")
    feature_flags: Tuple[str, ...] = Field(default_factory=tuple, description="Extra build tool arguments, in order")

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _architecture_requires_acceleration(self) -> "BuildConfiguration":
        if self.architecture_id is not None and not self.acceleration_enabled:
            raise ValueError("architecture_id cannot be set when acceleration is disabled")
        return self


class InvocationRequest(BaseModel):
    """Command-line arguments captured at startup, forwarded verbatim."""
    argv: Tuple[str, ...] = Field(default_factory=tuple, description="Arguments to forward, in original order")

    class Config:
        frozen = True


class ExecutableArtifact(BaseModel):
    """The built executable as observed by a single existence check."""
    path: Path = Field(..., description="Fixed location of the built executable")
    exists: bool = Field(..., description="Whether the path existed when checked")

    class Config:
        frozen = True

    @classmethod
    def check(cls, path: Path) -> "ExecutableArtifact":
        path = Path(path)
        return cls(path=path, exists=path.is_file())
