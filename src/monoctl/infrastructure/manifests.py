"""Manifest reading — ``package.json`` files in project directories.

Pure data access: the manifest is loaded and validated here, and the
graph builder cross-references package names between projects.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from monoctl.domain.projects import PackageManifest

MANIFEST_FILENAME = "package.json"


class WorkspaceError(Exception):
    """The workspace configuration or a manifest cannot be used."""

    code = "WORKSPACE_ERROR"


class ManifestError(WorkspaceError):
    """A ``package.json`` is missing, unreadable, or incomplete."""

    code = "MANIFEST_ERROR"

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(message)


def read_manifest(directory: Path) -> PackageManifest:
    """Load ``package.json`` from *directory*.

    Raises:
        ManifestError: the file cannot be read, is not a JSON object, or
            fails validation.
    """
    path = directory / MANIFEST_FILENAME
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Could not reach {MANIFEST_FILENAME} at '{path}'", path) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON in '{path}': {exc}", path) from exc
    if not isinstance(data, dict):
        raise ManifestError(f"Expected a JSON object in '{path}'", path)

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest '{path}': {exc}", path) from exc
