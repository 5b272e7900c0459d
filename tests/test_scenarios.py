# tests/test_scenarios.py
"""메모리 SQLite DB 위에서 실제 서비스 조합으로 실행하는 통합 시나리오."""
import pytest

from identity_core.database import models
from identity_core.database.db_init import initialize_db
from identity_core.database.models import AccessLevel, AccountState
from identity_core.services.authorization import ResolutionCache
from identity_core.services.exceptions import QuotaExceededError, ValidationError


def _create(services, username, **kwargs):
    return services['accounts'].create_account(
        name=username.title(), username=username, email=f"{username}@example.com", password="secret", **kwargs
    )


def test_personal_project_quota(services, db_session):
    """한도 10인 계정은 10개까지 만들 수 있고, 하나를 지우면 다시 만들 수 있어야 합니다."""
    # === Arrange ===
    accounts, memberships, quota = services['accounts'], services['memberships'], services['quota']
    alice = _create(services, "alice", projects_limit=10)

    # === Act ===
    created = [memberships.create_project(alice.id, f"project-{i}") for i in range(10)]

    # === Assert ===
    assert quota.can_create_project(alice) is False
    assert quota.projects_limit_percent(alice) == 100
    with pytest.raises(QuotaExceededError):
        memberships.create_project(alice.id, "project-10")

    memberships.delete_project(created[0].id)
    assert quota.can_create_project(alice) is True
    assert memberships.create_project(alice.id, "project-10").namespace_id == accounts.get_account(alice.id).namespace_id


def test_group_and_direct_memberships_resolve_together(services):
    # === Arrange ===
    memberships, resolver = services['memberships'], services['authorization']
    carol = _create(services, "carol")
    dave = _create(services, "dave")
    bob = _create(services, "bob")

    g = memberships.create_group(carol.id, "G", "g")
    p1 = memberships.create_project(carol.id, "p1", namespace_id=g.id)
    h = memberships.create_group(dave.id, "H", "h")
    p2 = memberships.create_project(dave.id, "p2", namespace_id=h.id)
    cache = ResolutionCache()

    # === Act: Reporter로 G에 참여 ===
    memberships.add_group_member(g.id, bob.id, AccessLevel.REPORTER, cache=cache)

    # === Assert ===
    assert resolver.resolve_authorized_projects(bob.id, cache) == {p1.id}
    assert resolver.resolve_authorized_groups(bob.id, cache) == {g.id}
    assert g.id not in resolver.resolve_manageable_namespaces(bob.id, cache)

    # === Act: H의 프로젝트 P2에 직접 멤버십 부여 ===
    memberships.add_project_member(p2.id, bob.id, AccessLevel.DEVELOPER, cache=cache)

    # === Assert: H의 멤버가 아니어도 H가 보임 ===
    assert resolver.resolve_authorized_projects(bob.id, cache) == {p1.id, p2.id}
    assert resolver.resolve_authorized_groups(bob.id, cache) == {g.id, h.id}

    # 직접 멤버십이 겹쳐도, 회수 후 그룹 경로로 여전히 접근 가능
    memberships.add_project_member(p1.id, bob.id, AccessLevel.DEVELOPER, cache=cache)
    memberships.remove_project_member(p1.id, bob.id, cache=cache)
    assert p1.id in resolver.resolve_authorized_projects(bob.id, cache)

    assert [m["username"] for m in memberships.list_group_members(g.id)] == ["carol", "bob"]


def test_rename_to_taken_username_changes_nothing(services):
    accounts = services['accounts']
    _create(services, "bob")
    carol = _create(services, "carol")

    with pytest.raises(ValidationError) as exc_info:
        accounts.rename_account(carol.id, "bob")

    assert "has already been taken" in exc_info.value.errors["username"]
    assert "already exists" in exc_info.value.errors["username"]
    carol = accounts.get_account(carol.id)
    assert carol.username == "carol"
    assert carol.namespace_path == "carol"


def test_personal_namespace_follows_rename(services):
    accounts, registry = services['accounts'], services['registry']
    carol = _create(services, "carol")

    accounts.rename_account(carol.id, "caroline")

    carol = accounts.get_account(carol.id)
    assert carol.namespace_path == "caroline"
    assert carol.namespace.name == "caroline"
    assert registry.check_username("carol") == []
    assert "already exists" in registry.check_username("Caroline")


def test_username_and_group_path_share_one_space(services):
    memberships, registry = services['memberships'], services['registry']
    alice = _create(services, "alice")
    memberships.create_group(alice.id, "Team", "team")

    with pytest.raises(ValidationError) as exc_info:
        _create(services, "team")
    assert exc_info.value.errors["username"] == ["already exists"]

    with pytest.raises(ValidationError):
        memberships.create_group(alice.id, "Alice's", "alice")
    assert registry.sanitize_username("team@example.com") == "team1"


def test_secondary_email_cannot_become_someone_elses_primary(services):
    accounts = services['accounts']
    carol = _create(services, "carol")
    accounts.add_secondary_email(carol.id, "carol@work.example.com")

    with pytest.raises(ValidationError) as exc_info:
        accounts.create_account(name="Eve", username="eve", email="Carol@Work.example.com")

    assert exc_info.value.errors == {"email": ["has already been taken"]}
    assert accounts.find_for_commit_author("carol@work.example.com", None).id == carol.id
    assert accounts.all_emails(accounts.get_account(carol.id)) == ["carol@example.com", "carol@work.example.com"]


def test_block_and_activate_are_idempotent(services):
    accounts = services['accounts']
    carol = _create(services, "carol")

    accounts.block(carol.id)
    accounts.block(carol.id)
    assert accounts.get_account(carol.id).state == AccountState.BLOCKED
    assert [a.username for a in accounts.filter_accounts("blocked")] == ["carol"]

    accounts.activate(carol.id)
    assert accounts.get_account(carol.id).is_active


def test_delete_account_removes_dependents(services, db_session):
    accounts, memberships = services['accounts'], services['memberships']
    carol = _create(services, "carol")
    bob = _create(services, "bob")
    project = memberships.create_project(carol.id, "site")
    memberships.add_project_member(project.id, bob.id, AccessLevel.GUEST)
    accounts.add_secondary_email(carol.id, "carol@work.example.com")
    cache = ResolutionCache()
    services['authorization'].resolve_authorized_projects(bob.id, cache)

    accounts.delete_account(carol.id, cache=cache)

    assert ("authorized_projects", bob.id) not in cache
    assert services['authorization'].resolve_authorized_projects(bob.id) == set()
    assert db_session.query(models.Namespace).filter_by(path="carol").count() == 0
    assert db_session.query(models.Email).count() == 0
    assert db_session.query(models.Member).count() == 0
    assert accounts.find_by_login("carol") is None
    # 삭제된 이름은 다시 사용할 수 있음
    assert _create(services, "carol").namespace_path == "carol"


def test_initialize_db_seeds_administrator_once(session_factory, settings):
    admin_id = initialize_db(session_factory=session_factory, settings=settings)

    assert admin_id is not None
    assert initialize_db(session_factory=session_factory, settings=settings) is None

    session = session_factory()
    try:
        admin = session.get(models.Account, admin_id)
        assert admin.username == "root"
        assert admin.is_admin is True
        assert admin.namespace_path == "root"
    finally:
        session.close()


def test_notification_email_stays_owned_after_primary_change(services):
    accounts = services['accounts']
    alice = _create(services, "alice")

    with pytest.raises(ValidationError):
        accounts.update_account(alice.id, email="alice@new.example.com", notification_email="alice@example.com")

    alice = accounts.get_account(alice.id)
    assert alice.email == "alice@example.com"
    assert alice.notification_email in accounts.all_emails(alice)
