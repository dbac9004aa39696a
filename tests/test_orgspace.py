import pytest

from cloudctl.exceptions import (
    NoOrganizationsError,
    NoSpacesError,
    SelectionRequiredError,
    UnknownOrganizationError,
    UnknownSpaceError,
)
from cloudctl.models import SessionRecord
from cloudctl.orgspace import OrgSpaceResolver
from cloudctl.testing import FakeCloud, FakeV2Client, ScriptedPrompter

TARGET = "https://api.example.com"


@pytest.fixture
def client(cloud: FakeCloud) -> FakeV2Client:
    return FakeV2Client(cloud, TARGET, token=cloud.issue_token())


@pytest.fixture
def resolver(client, prompter) -> OrgSpaceResolver:
    return OrgSpaceResolver(client, prompter)


@pytest.fixture
def two_org_cloud(cloud: FakeCloud) -> FakeCloud:
    """acme (dev) and beta (prod, staging)."""
    beta = cloud.add_organization("org-2", "beta")
    cloud.add_space("space-2", "prod", beta)
    cloud.add_space("space-3", "staging", beta)
    return cloud


class TestValidity:
    def test_member_org_is_valid(self, resolver, cloud):
        assert resolver.is_org_valid("org-1", cloud.user)

    def test_non_member_org_is_invalid(self, resolver, cloud):
        cloud.add_organization("org-9", "other", member=False)
        assert not resolver.is_org_valid("org-9", cloud.user)

    def test_missing_org_is_invalid(self, resolver, cloud):
        assert not resolver.is_org_valid("gone", cloud.user)

    def test_no_user_is_invalid(self, resolver):
        assert not resolver.is_org_valid("org-1", None)
        assert not resolver.is_space_valid("space-1", None)

    def test_developer_space_is_valid(self, resolver, cloud):
        assert resolver.is_space_valid("space-1", cloud.user)

    def test_non_developer_space_is_invalid(self, resolver, cloud):
        cloud.add_space("space-9", "ops", cloud.organizations[0], developer=False)
        assert not resolver.is_space_valid("space-9", cloud.user)
        assert not resolver.is_space_valid(None, cloud.user)


class TestSelectOrgAndSpace:
    def test_single_org_and_space_are_auto_selected(self, resolver, prompter):
        record = resolver.select_org_and_space(SessionRecord())

        assert record.organization_id == "org-1"
        assert record.space_id == "space-1"
        assert prompter.asked == []

    def test_valid_selection_is_kept(self, two_org_cloud, client):
        prompter = ScriptedPrompter()
        resolver = OrgSpaceResolver(client, prompter)
        record = SessionRecord(organization_id="org-2", space_id="space-3")

        resolver.select_org_and_space(record)

        assert record.organization_id == "org-2"
        assert record.space_id == "space-3"
        assert prompter.asked == []

    def test_lost_organization_replaces_still_valid_space(self, cloud, client):
        # still a developer of dev, but no longer a member of acme
        cloud.organizations[0].users.clear()
        beta = cloud.add_organization("org-2", "beta")
        cloud.add_space("space-2", "prod", beta)
        prompter = ScriptedPrompter()
        resolver = OrgSpaceResolver(client, prompter)
        record = SessionRecord(organization_id="org-1", space_id="space-1")
        assert resolver.is_space_valid("space-1", cloud.user)

        resolver.select_org_and_space(record)

        assert record.organization_id == "org-2"
        assert record.space_id == "space-2"
        assert prompter.asked == []

    def test_no_organizations(self, client):
        client.cloud.organizations.clear()
        resolver = OrgSpaceResolver(client, ScriptedPrompter())
        with pytest.raises(NoOrganizationsError):
            resolver.select_org_and_space(SessionRecord())

    def test_only_member_organizations_count(self, client):
        client.cloud.organizations.clear()
        client.cloud.add_organization("org-9", "other", member=False)
        resolver = OrgSpaceResolver(client, ScriptedPrompter())
        with pytest.raises(NoOrganizationsError):
            resolver.select_org_and_space(SessionRecord())

    def test_no_spaces(self, client):
        client.cloud.add_organization("org-2", "empty")
        resolver = OrgSpaceResolver(client, ScriptedPrompter())
        with pytest.raises(NoSpacesError, match="empty"):
            resolver.select_org_and_space(SessionRecord(), organization="empty")

    def test_prompts_among_several(self, two_org_cloud, client):
        prompter = ScriptedPrompter(["beta", "staging"])
        resolver = OrgSpaceResolver(client, prompter)

        record = resolver.select_org_and_space(SessionRecord())

        assert record.organization_id == "org-2"
        assert record.space_id == "space-3"
        assert prompter.asked == [
            ("Organization", ["acme", "beta"]),
            ("Space", ["prod", "staging"]),
        ]

    def test_non_interactive_ambiguity_is_an_error(self, two_org_cloud, client):
        resolver = OrgSpaceResolver(client, ScriptedPrompter(), interactive=False)
        with pytest.raises(SelectionRequiredError, match="--org"):
            resolver.select_org_and_space(SessionRecord())

    def test_named_org_and_space(self, two_org_cloud, client):
        prompter = ScriptedPrompter()
        resolver = OrgSpaceResolver(client, prompter, interactive=False)

        record = resolver.select_org_and_space(
            SessionRecord(), organization="beta", space="prod"
        )

        assert record.organization_id == "org-2"
        assert record.space_id == "space-2"
        assert prompter.asked == []

    def test_unknown_names(self, two_org_cloud, client):
        resolver = OrgSpaceResolver(client, ScriptedPrompter())
        with pytest.raises(UnknownOrganizationError):
            resolver.select_org_and_space(SessionRecord(), organization="nope")
        with pytest.raises(UnknownSpaceError):
            resolver.select_org_and_space(
                SessionRecord(), organization="beta", space="nope"
            )

    def test_org_change_reselects_space(self, two_org_cloud, client):
        # space-1 stays valid for the user, but belongs to the old organization
        prompter = ScriptedPrompter(["prod"])
        resolver = OrgSpaceResolver(client, prompter)
        record = SessionRecord(organization_id="org-1", space_id="space-1")

        resolver.select_org_and_space(record, organization="beta")

        assert record.organization_id == "org-2"
        assert record.space_id == "space-2"

    def test_invalid_cached_org_is_reselected(self, client):
        record = SessionRecord(organization_id="gone", space_id="space-1")
        resolver = OrgSpaceResolver(client, ScriptedPrompter())

        resolver.select_org_and_space(record)

        assert record.organization_id == "org-1"
        assert record.space_id == "space-1"

    def test_deleted_cached_space_is_reselected(self, client):
        record = SessionRecord(organization_id="org-1", space_id="gone")
        resolver = OrgSpaceResolver(client, ScriptedPrompter())

        resolver.select_org_and_space(record)

        assert record.space_id == "space-1"

    def test_named_space_within_cached_org(self, two_org_cloud, client):
        record = SessionRecord(organization_id="org-2", space_id="space-2")
        resolver = OrgSpaceResolver(client, ScriptedPrompter())

        resolver.select_org_and_space(record, space="staging")

        assert record.organization_id == "org-2"
        assert record.space_id == "space-3"
