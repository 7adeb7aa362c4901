"""Thin async wrappers around the Cargo toolchain.

``ProcessRunner`` spawns commands; ``ManifestResolver`` and
``TargetDirResolver`` interpret the JSON output of ``cargo read-manifest``
and ``cargo metadata``.
"""
from __future__ import annotations

from wasmbridge.toolchain.manifest import CDYLIB, ManifestResolver, ProjectDescriptor
from wasmbridge.toolchain.metadata import TargetDirResolver
from wasmbridge.toolchain.process import ProcessResult, ProcessRunner, decode_json_object

__all__ = [
    "CDYLIB",
    "ManifestResolver",
    "ProjectDescriptor",
    "TargetDirResolver",
    "ProcessResult",
    "ProcessRunner",
    "decode_json_object",
]
