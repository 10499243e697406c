#!/usr/bin/env python3

import asyncio
import json
from pathlib import Path

import click

from orgsync.cli_utils import standard_command, add_common_options
from orgsync.config import load_config, get_github_token
from orgsync.definition import DefinitionFile
from orgsync.infra.github_client import GitHubClient
from orgsync.manifest import find_manifest, load_manifest
from orgsync.prompts import ClickLineReader
from orgsync.services.expected_state import ExpectedStateResolver
from orgsync.services.sync_service import SyncOptions, SyncService


SYNC_HELP = """Sync repositories for working directory.

Synchronize all checked out GitHub repositories within the working directory
grouped by the project in the resource definition file. The command can also
be run in any subdirectory, and it will discover the correct root.

A special file ".orgsync.yaml" must exist which describes how
the directory should be synced. Template for the file:

\b
  version: 2
  githubOrganization: <github-org-name>
  resourcesDefinition:
    path: <path-to-resources.yaml>
    tags:  # optional, will filter by project tags
      - tag1

Only repositories for one GitHub organization is supported.

If repositories are filtered by tags, already existing cloned repos
will override the tag filter even when not matching the tags.

Dirty repositories and those not having the main branch active are only
fetched, and their working tree is left unchanged. Repositories found
under a previous name are reported, and moved with --ask-move.

The file ".orgsync.log" is used as a low-level log of every git command
that has been run.
"""


@click.group()
@click.version_option(package_name="orgsync")
def cli():
    """orgsync - Keep a grouped working directory of an organization's
    repositories in sync with its desired-state definition.
    """
    pass


def _load_manifest(config):
    filename = config["general"]["manifest_file"]
    return load_manifest(find_manifest(Path.cwd(), filename))


def _build_resolver(config, manifest, reporter, skip_remote):
    remote_lister = None
    if not skip_remote:
        github = GitHubClient(token=get_github_token(config), host=config["github"]["host"])
        remote_lister = github.list_org_repos
    return ExpectedStateResolver(manifest.rootdir, remote_lister, reporter)


@cli.command("sync", help=SYNC_HELP)
@click.option("-c", "--ask-clone", is_flag=True, help="Ask to clone new missing repos")
@click.option("-m", "--ask-move", is_flag=True, help="Ask to move repos found under a previous name")
@click.option("--skip-remote", is_flag=True, help="Do not check repositories against GitHub")
@add_common_options('verbose')
@standard_command
def sync_handler(ask_clone, ask_move, skip_remote, verbose, reporter):
    config = load_config()
    manifest = _load_manifest(config)

    service = SyncService(
        manifest=manifest,
        resolver=_build_resolver(config, manifest, reporter, skip_remote),
        reporter=reporter,
        line_reader=ClickLineReader(),
        options=SyncOptions.from_config(config, ask_clone=ask_clone, ask_move=ask_move),
    )
    asyncio.run(service.run())


@cli.command("expected")
@click.option("--skip-remote", is_flag=True, help="Do not check repositories against GitHub")
@add_common_options('verbose')
@standard_command
def expected_handler(skip_remote, verbose, reporter):
    """List the repositories expected in this working directory as JSONL."""
    config = load_config()
    manifest = _load_manifest(config)

    resolver = _build_resolver(config, manifest, reporter, skip_remote)
    definition = DefinitionFile(manifest.resolved_definition_path).get_definition()
    for repo in resolver.resolve(definition, manifest.github_organization, manifest.tags):
        reporter.log(json.dumps(repo.to_dict(), ensure_ascii=False))


def main():
    cli()

if __name__ == "__main__":
    main()
