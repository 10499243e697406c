"""
Tests for manifest discovery and the desired-state document loader.
"""

import pytest

from orgsync.definition import DefinitionFile, get_repos, validate_definition
from orgsync.exit_codes import DefinitionError, ManifestError, ManifestNotFoundError
from orgsync.manifest import find_manifest, load_manifest

MANIFEST = """\
version: 2
githubOrganization: acme
resourcesDefinition:
  path: ../defs/resources.yaml
  tags:
    - core
"""


class TestFindManifest:

    def test_found_in_parent_directory(self, tmp_path):
        (tmp_path / ".orgsync.yaml").write_text(MANIFEST)
        nested = tmp_path / "group" / "repo" / "src"
        nested.mkdir(parents=True)

        assert find_manifest(nested, ".orgsync.yaml") == tmp_path.resolve() / ".orgsync.yaml"

    def test_missing(self, tmp_path):
        with pytest.raises(ManifestNotFoundError) as exc_info:
            find_manifest(tmp_path, ".orgsync-does-not-exist.yaml")
        assert exc_info.value.exit_code == 64


class TestLoadManifest:

    def test_load(self, tmp_path):
        path = tmp_path / ".orgsync.yaml"
        path.write_text(MANIFEST)

        manifest = load_manifest(path)

        assert manifest.rootdir == tmp_path.resolve()
        assert manifest.github_organization == "acme"
        assert manifest.tags == ("core",)
        assert manifest.resolved_definition_path == (tmp_path.parent / "defs" / "resources.yaml").resolve()

    def test_tags_are_optional(self, tmp_path):
        path = tmp_path / ".orgsync.yaml"
        path.write_text("version: 2\ngithubOrganization: acme\nresourcesDefinition:\n  path: r.yaml\n")
        assert load_manifest(path).tags is None

    @pytest.mark.parametrize("content", [
        "version: 1\ngithubOrganization: acme\nresourcesDefinition:\n  path: r.yaml\n",
        "version: 2\nresourcesDefinition:\n  path: r.yaml\n",
        "version: 2\ngithubOrganization: acme\n",
        "version: 2\ngithubOrganization: acme\nresourcesDefinition:\n  path: r.yaml\n  tags: core\n",
        "- just\n- a list\n",
        "version: [2\n",
    ])
    def test_invalid(self, tmp_path, content):
        path = tmp_path / ".orgsync.yaml"
        path.write_text(content)
        with pytest.raises(ManifestError):
            load_manifest(path)


DEFINITION = """\
projects:
  - name: platform
    tags: [core]
    github:
      - organization: acme
        repos:
          - name: api
          - name: web
            previousNames:
              - name: frontend
                project: old-platform
"""


class TestDefinitionFile:

    def test_load(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text(DEFINITION)

        definition = DefinitionFile(path).get_definition()

        records = get_repos(definition)
        assert [r.id for r in records] == ["acme/api", "acme/web"]
        assert records[0].project_name == "platform"
        assert records[0].project_tags == ["core"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(DefinitionError, match="does not exist"):
            DefinitionFile(tmp_path / "nope.yaml").get_definition()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text("projects: [\n")
        with pytest.raises(DefinitionError):
            DefinitionFile(path).get_definition()

    def test_malformed_repo_entry(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text("projects:\n  - name: p\n    github:\n      - repos:\n          - name: r\n")
        with pytest.raises(DefinitionError, match="Malformed"):
            DefinitionFile(path).get_definition()


class TestValidateDefinition:

    def test_duplicate_project(self):
        definition = {'projects': [{'name': 'p'}, {'name': 'p'}]}
        with pytest.raises(DefinitionError, match="Duplicate project"):
            validate_definition(definition)

    def test_duplicate_repo_across_projects(self):
        repos = [{'organization': 'acme', 'repos': [{'name': 'r'}]}]
        definition = {'projects': [
            {'name': 'p1', 'github': repos},
            {'name': 'p2', 'github': repos},
        ]}
        with pytest.raises(DefinitionError, match="Duplicate repo: acme/r"):
            validate_definition(definition)

    def test_projects_required(self):
        with pytest.raises(DefinitionError):
            validate_definition({})
