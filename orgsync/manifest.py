"""
Manifest loading for orgsync.

The manifest lives at the root of the synchronized working directory and
says which organization is synced and where its desired-state document is:

    version: 2
    githubOrganization: <github-org-name>
    resourcesDefinition:
      path: <path-to-resources.yaml>
      tags:  # optional, will filter by project tags
        - tag1
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .exit_codes import ManifestNotFoundError, ManifestError

MANIFEST_VERSION = 2


@dataclass(frozen=True)
class Manifest:
    """Parsed manifest together with the directory it was found in."""
    rootdir: Path
    github_organization: str
    definition_path: str
    tags: Optional[Tuple[str, ...]] = None
    version: int = MANIFEST_VERSION

    @property
    def resolved_definition_path(self) -> Path:
        return (self.rootdir / self.definition_path).resolve()


def find_manifest(cwd: Path, filename: str) -> Path:
    """Search upward from cwd for the manifest file."""
    start = Path(cwd).resolve()
    for directory in (start, *start.parents):
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    raise ManifestNotFoundError(filename, str(start))


def load_manifest(path: Path) -> Manifest:
    """Parse and validate a manifest file."""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Unexpected contents in {path}")

    if data.get('version') != MANIFEST_VERSION:
        raise ManifestError(
            f"Unexpected version in {path}: expected {MANIFEST_VERSION}, got {data.get('version')!r}"
        )

    org = data.get('githubOrganization')
    if not isinstance(org, str) or not org:
        raise ManifestError(f"Missing githubOrganization in {path}")

    definition = data.get('resourcesDefinition')
    if not isinstance(definition, dict) or not isinstance(definition.get('path'), str):
        raise ManifestError(f"Missing resourcesDefinition.path in {path}")

    tags = definition.get('tags')
    if tags is not None:
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ManifestError(f"resourcesDefinition.tags in {path} must be a list of strings")
        tags = tuple(tags)

    return Manifest(
        rootdir=path.resolve().parent,
        github_organization=org,
        definition_path=definition['path'],
        tags=tags,
    )
