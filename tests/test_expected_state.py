"""
Tests for resolving expected repositories from the desired-state document.
"""

from orgsync.domain.repository import Alias, RemoteRepo
from orgsync.services.expected_state import ExpectedStateResolver, build_aliases


DEFINITION = {
    'projects': [
        {
            'name': 'platform',
            'tags': ['core'],
            'github': [
                {
                    'organization': 'acme',
                    'repos': [
                        {'name': 'api'},
                        {'name': 'legacy', 'archived': True},
                        {
                            'name': 'web',
                            'previousNames': [
                                {'name': 'frontend', 'project': 'old-platform'},
                            ],
                        },
                    ],
                },
                {
                    'organization': 'other-org',
                    'repos': [{'name': 'fork'}],
                },
            ],
        },
        {
            'name': 'tools',
            'tags': ['infra'],
            'github': [
                {
                    'organization': 'acme',
                    'repos': [{'name': 'ci'}],
                },
            ],
        },
    ],
}


class ListReporter:
    def __init__(self):
        self.warnings = []

    def warn(self, message):
        self.warnings.append(message)


class TestBuildAliases:

    def test_previous_names_in_order(self):
        repo = {
            'name': 'c',
            'previousNames': [
                {'name': 'a', 'project': 'p1'},
                {'name': 'b', 'project': 'p2'},
            ],
        }
        assert build_aliases(repo) == (Alias('p1', 'a'), Alias('p2', 'b'))

    def test_no_previous_names(self):
        assert build_aliases({'name': 'c'}) == ()


class TestExpectedStateResolver:

    def test_filters_to_organization(self, tmp_path):
        expected = ExpectedStateResolver(tmp_path).resolve(DEFINITION, 'acme')
        assert [repo.id for repo in expected] == [
            'platform/api', 'platform/legacy', 'platform/web', 'tools/ci',
        ]
        assert all(repo.org == 'acme' for repo in expected)

    def test_archived_and_aliases_are_carried(self, tmp_path):
        expected = {r.name: r for r in ExpectedStateResolver(tmp_path).resolve(DEFINITION, 'acme')}
        assert expected['legacy'].archived is True
        assert expected['api'].archived is False
        assert expected['web'].alias_relpaths == ('old-platform/frontend',)

    def test_tag_filter(self, tmp_path):
        expected = ExpectedStateResolver(tmp_path).resolve(DEFINITION, 'acme', tags=('infra',))
        assert [repo.id for repo in expected] == ['tools/ci']

    def test_tag_filter_keeps_existing_checkouts(self, tmp_path):
        (tmp_path / 'platform' / 'api').mkdir(parents=True)

        expected = ExpectedStateResolver(tmp_path).resolve(DEFINITION, 'acme', tags=('infra',))

        assert [repo.id for repo in expected] == ['platform/api', 'tools/ci']

    def test_tag_filter_keeps_checkouts_under_alias(self, tmp_path):
        (tmp_path / 'old-platform' / 'frontend').mkdir(parents=True)

        expected = ExpectedStateResolver(tmp_path).resolve(DEFINITION, 'acme', tags=('infra',))

        assert [repo.id for repo in expected] == ['platform/web', 'tools/ci']

    def test_repo_missing_remotely_is_skipped_with_warning(self, tmp_path):
        reporter = ListReporter()

        def lister(org):
            return [RemoteRepo('api'), RemoteRepo('legacy', archived=True), RemoteRepo('ci')]

        expected = ExpectedStateResolver(tmp_path, lister, reporter).resolve(DEFINITION, 'acme')

        assert [repo.name for repo in expected] == ['api', 'legacy', 'ci']
        assert reporter.warnings == ['Repo not found in GitHub - ignoring: web']

    def test_remote_listing_is_cached_per_org(self, tmp_path):
        calls = []

        def lister(org):
            calls.append(org)
            return [RemoteRepo('api')]

        resolver = ExpectedStateResolver(tmp_path, lister, ListReporter())
        resolver.resolve(DEFINITION, 'acme')
        resolver.resolve(DEFINITION, 'acme')

        assert calls == ['acme']
