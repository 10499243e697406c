"""
Desired-state document loading for orgsync.

The document declares projects, and for each project the repositories it
owns per organization:

    projects:
      - name: my-project
        tags: [team-a]
        github:
          - organization: my-org
            repos:
              - name: my-repo
                archived: false
                previousNames:
                  - name: old-repo
                    project: old-project
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .exit_codes import DefinitionError


def get_repo_id(org: str, repo_name: str) -> str:
    return f"{org}/{repo_name}"


@dataclass(frozen=True)
class DefinitionRepoRecord:
    """One repository declaration with its owning project."""
    id: str
    org: str
    project: Dict[str, Any]
    repo: Dict[str, Any]

    @property
    def project_name(self) -> str:
        return self.project['name']

    @property
    def project_tags(self) -> List[str]:
        return self.project.get('tags') or []


def validate_definition(definition: Dict[str, Any]) -> None:
    """Reject duplicated project names and duplicated repositories."""
    projects = definition.get('projects')
    if not isinstance(projects, list):
        raise DefinitionError("Definition must contain a list of projects")

    seen_projects = set()
    for project in projects:
        if not isinstance(project, dict) or not project.get('name'):
            raise DefinitionError(f"Project without name: {project!r}")
        if project['name'] in seen_projects:
            raise DefinitionError(f"Duplicate project: {project['name']}")
        seen_projects.add(project['name'])

    seen_repos = set()
    for record in get_repos(definition):
        if record.id in seen_repos:
            raise DefinitionError(f"Duplicate repo: {record.id}")
        seen_repos.add(record.id)


def get_repos(definition: Dict[str, Any]) -> List[DefinitionRepoRecord]:
    """Flatten projects into repository records."""
    records = []
    for project in definition.get('projects') or []:
        for org in project.get('github') or []:
            for repo in org.get('repos') or []:
                records.append(DefinitionRepoRecord(
                    id=get_repo_id(org['organization'], repo['name']),
                    org=org['organization'],
                    project=project,
                    repo=repo,
                ))
    return records


class DefinitionFile:
    """Desired-state document on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_definition(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise DefinitionError(f"The file {self.path} does not exist")

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                definition = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DefinitionError(f"Invalid YAML in {self.path}: {e}") from e

        if not isinstance(definition, dict):
            raise DefinitionError(f"Unexpected contents in {self.path}")

        try:
            validate_definition(definition)
        except (KeyError, TypeError, AttributeError) as e:
            raise DefinitionError(f"Malformed definition {self.path}: {e}") from e
        return definition
