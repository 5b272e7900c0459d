# tests/repositories/test_sqlalchemy_repositories.py
import pytest

from identity_core.database import models
from identity_core.database.models import AccessLevel, AccountState
from identity_core.repositories.sqlalchemy.sqlalchemy_account_repository import SqlalchemyAccountRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_email_repository import SqlalchemyEmailRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_member_repository import SqlalchemyMemberRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_namespace_repository import SqlalchemyNamespaceRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_project_repository import SqlalchemyProjectRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_transaction import SqlalchemyTransaction
from identity_core.services.exceptions import CollisionError
from identity_core.services.filters import AccountFilter

# ===================================================================
#  Fixtures: 메모리 SQLite DB 위의 실제 리포지토리
# ===================================================================
@pytest.fixture
def accounts(db_session):
    return SqlalchemyAccountRepository(db_session)

@pytest.fixture
def namespaces(db_session):
    return SqlalchemyNamespaceRepository(db_session)

@pytest.fixture
def projects(db_session):
    return SqlalchemyProjectRepository(db_session)

@pytest.fixture
def members(db_session):
    return SqlalchemyMemberRepository(db_session)

@pytest.fixture
def emails(db_session):
    return SqlalchemyEmailRepository(db_session)


def _account(repo, username, **kwargs):
    values = dict(name=username.title(), username=username, email=f"{username}@example.com")
    values.update(kwargs)
    return repo.add(models.Account(**values))


class TestAccountRepository:
    def test_lookups_ignore_case(self, accounts):
        alice = _account(accounts, "Alice")

        assert accounts.find_by_username("alice") is alice
        assert accounts.find_by_email("ALICE@example.com") is alice
        assert accounts.find_by_login("aLiCe") is alice
        assert accounts.find_by_login("alice@EXAMPLE.com") is alice
        assert accounts.find_by_login("nobody") is None

    def test_taken_checks_with_exclusion(self, accounts):
        alice = _account(accounts, "alice")

        assert accounts.username_taken("ALICE") is True
        assert accounts.username_taken("alice", excluding_account_id=alice.id) is False
        assert accounts.email_taken("alice@example.com", excluding_account_id=alice.id) is False

    def test_find_by_username_or_id(self, accounts):
        alice = _account(accounts, "alice")

        assert accounts.find_by_username_or_id("alice") is alice
        assert accounts.find_by_username_or_id(str(alice.id)) is alice
        assert accounts.find_by_username_or_id(alice.id) is alice

    def test_find_by_secondary_email(self, accounts, emails):
        alice = _account(accounts, "alice")
        emails.add(models.Email(account_id=alice.id, email="Alice@Work.example.com"))

        assert accounts.find_by_secondary_email("alice@work.example.com") is alice

    def test_search_matches_name_email_and_username(self, accounts):
        _account(accounts, "alice", name="Alice Anders")
        _account(accounts, "bob", email="bob@corp.example.com")
        _account(accounts, "carol")

        assert [a.username for a in accounts.search("ANDERS")] == ["alice"]
        assert [a.username for a in accounts.search("corp")] == ["bob"]
        assert [a.username for a in accounts.search("CAROL")] == ["carol"]
        assert len(accounts.search("example.com")) == 3

    def test_search_treats_wildcards_literally(self, accounts):
        _account(accounts, "a_b")
        _account(accounts, "axb")

        assert [a.username for a in accounts.search("a_b")] == ["a_b"]
        assert accounts.search("%") == []

    def test_named_filters(self, accounts, namespaces, members):
        alice = _account(accounts, "alice", admin=True)
        bob = _account(accounts, "bob", state=AccountState.BLOCKED)
        carol = _account(accounts, "carol")
        group = namespaces.add(models.Group(name="Team", path="team"))
        members.add(models.GroupMember(account_id=carol.id, group_id=group.id, access_level=AccessLevel.GUEST))

        assert accounts.list_by_filter(AccountFilter.ADMINS) == [alice]
        assert accounts.list_by_filter(AccountFilter.BLOCKED) == [bob]
        assert accounts.list_by_filter(AccountFilter.ACTIVE) == [alice, carol]
        assert accounts.list_by_filter(AccountFilter.WITHOUT_PROJECTS) == [alice, bob]


class TestNamespaceAndProjectRepositories:
    def test_path_space_is_shared_and_case_insensitive(self, accounts, namespaces):
        alice = _account(accounts, "alice")
        personal = namespaces.add(models.PersonalNamespace(name="alice", path="alice", owner_id=alice.id))
        group = namespaces.add(models.Group(name="Team", path="Team"))

        assert namespaces.find_by_path("ALICE") is personal
        assert namespaces.path_taken("team") is True
        assert namespaces.path_taken("team", excluding_namespace_id=group.id) is False
        assert namespaces.find_personal_by_owner(alice.id) is personal
        assert namespaces.find_group_by_id(personal.id) is None
        assert namespaces.find_group_by_id(group.id) is group

    def test_group_ids_owning_ignores_personal_namespaces(self, accounts, namespaces, projects):
        alice = _account(accounts, "alice")
        personal = namespaces.add(models.PersonalNamespace(name="alice", path="alice", owner_id=alice.id))
        group = namespaces.add(models.Group(name="Team", path="team"))
        p1 = projects.add(models.Project(name="site", path="site", namespace_id=personal.id))
        p2 = projects.add(models.Project(name="api", path="api", namespace_id=group.id))

        assert projects.group_ids_owning([p1.id, p2.id]) == {group.id}
        assert projects.ids_in_namespaces([personal.id, group.id]) == {p1.id, p2.id}
        assert projects.ids_in_namespaces([]) == set()
        assert projects.count_by_namespace(personal.id) == 1


class TestMemberRepository:
    def test_access_level_filters(self, accounts, namespaces, members):
        alice = _account(accounts, "alice")
        bob = _account(accounts, "bob")
        g1 = namespaces.add(models.Group(name="One", path="one"))
        g2 = namespaces.add(models.Group(name="Two", path="two"))
        members.add(models.GroupMember(account_id=alice.id, group_id=g1.id, access_level=AccessLevel.OWNER))
        members.add(models.GroupMember(account_id=alice.id, group_id=g2.id, access_level=AccessLevel.REPORTER))
        members.add(models.GroupMember(account_id=bob.id, group_id=g1.id, access_level=AccessLevel.MASTER))

        assert members.group_ids_for_account(alice.id) == {g1.id, g2.id}
        assert members.group_ids_for_account(alice.id, access_levels=[AccessLevel.OWNER]) == {g1.id}
        assert members.account_ids_for_group(g1.id) == {alice.id, bob.id}
        assert members.account_ids_for_group(g1.id, access_levels=[AccessLevel.OWNER]) == {alice.id}
        assert members.find_group_member(bob.id, g1.id).level == AccessLevel.MASTER

    def test_delete_by_account(self, accounts, namespaces, projects, members):
        alice = _account(accounts, "alice")
        group = namespaces.add(models.Group(name="One", path="one"))
        project = projects.add(models.Project(name="api", path="api", namespace_id=group.id))
        members.add(models.GroupMember(account_id=alice.id, group_id=group.id, access_level=AccessLevel.GUEST))
        members.add(models.ProjectMember(account_id=alice.id, project_id=project.id, access_level=AccessLevel.GUEST))

        assert members.delete_by_account(alice.id) == 2
        assert members.list_by_account(alice.id) == []


class TestSqlalchemyTransaction:
    def test_commit_on_success(self, db_session, session_factory, accounts):
        with SqlalchemyTransaction(db_session).begin():
            _account(accounts, "alice")

        other = session_factory()
        try:
            assert other.query(models.Account).count() == 1
        finally:
            other.close()

    def test_unique_index_violation_becomes_collision_error(self, db_session, accounts):
        """애플리케이션 검사를 건너뛴 동시 쓰기도 유일 인덱스에서 CollisionError로 거부되어야 합니다."""
        with SqlalchemyTransaction(db_session).begin():
            _account(accounts, "alice")

        with pytest.raises(CollisionError) as exc_info:
            with SqlalchemyTransaction(db_session).begin():
                _account(accounts, "ALICE", email="other@example.com")

        assert exc_info.value.errors == {"username": ["has already been taken"]}
        assert db_session.query(models.Account).count() == 1

    def test_other_errors_roll_back_and_propagate(self, db_session, accounts):
        with pytest.raises(RuntimeError):
            with SqlalchemyTransaction(db_session).begin():
                _account(accounts, "alice")
                raise RuntimeError("boom")

        assert db_session.query(models.Account).count() == 0
