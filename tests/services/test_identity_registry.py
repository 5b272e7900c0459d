# tests/services/test_identity_registry.py
import pytest
from unittest.mock import MagicMock

from identity_core.services.identity_registry import IdentityRegistry, USERNAME_REGEX_MESSAGE
from identity_core.services.exceptions import GenerationExhaustedError, ValidationError
from identity_core.repositories.interfaces import IAccountRepository, IEmailRepository, INamespaceRepository
from identity_core.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_account_repo() -> MagicMock:
    repo = MagicMock(spec=IAccountRepository)
    repo.username_taken.return_value = False
    repo.email_taken.return_value = False
    repo.find_by_login.return_value = None
    return repo

@pytest.fixture
def mock_namespace_repo() -> MagicMock:
    repo = MagicMock(spec=INamespaceRepository)
    repo.find_by_path.return_value = None
    repo.path_taken.return_value = False
    return repo

@pytest.fixture
def mock_email_repo() -> MagicMock:
    repo = MagicMock(spec=IEmailRepository)
    repo.find_by_email.return_value = None
    return repo

@pytest.fixture
def registry(mock_account_repo, mock_namespace_repo, mock_email_repo, settings) -> IdentityRegistry:
    return IdentityRegistry(mock_account_repo, mock_namespace_repo, mock_email_repo, settings)

# ===================================================================
#  사용자 이름 검사
# ===================================================================
class TestCheckUsername:
    def test_free_username_has_no_errors(self, registry: IdentityRegistry):
        assert registry.check_username("alice") == []

    def test_blank_username(self, registry: IdentityRegistry):
        assert registry.check_username("  ") == ["can't be blank"]
        assert registry.check_username(None) == ["can't be blank"]

    @pytest.mark.parametrize("candidate", ["-alice", "alice.git", "al ice", "al!ce"])
    def test_malformed_username(self, registry: IdentityRegistry, candidate):
        assert USERNAME_REGEX_MESSAGE in registry.check_username(candidate)

    def test_reserved_path_is_rejected_case_insensitively(self, registry: IdentityRegistry):
        assert "is reserved" in registry.check_username("Admin")

    def test_username_taken_by_other_account(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        """다른 계정이 쓰는 이름이면 충돌로 판단하고, 제외할 계정 ID를 리포지토리에 전달해야 합니다."""
        # === Arrange ===
        mock_account_repo.username_taken.return_value = True

        # === Act ===
        errors = registry.check_username("Bob", excluding_account_id=3)

        # === Assert ===
        assert errors == ["has already been taken"]
        mock_account_repo.username_taken.assert_called_once_with("Bob", 3)

    def test_username_collides_with_group_path(self, registry: IdentityRegistry, mock_namespace_repo: MagicMock):
        """같은 경로의 그룹이 있으면, 그 이름을 쓰는 계정이 없어도 충돌입니다."""
        mock_namespace_repo.find_by_path.return_value = models.Group(id=7, path="ops", name="Ops", type="group")

        assert registry.check_username("ops", excluding_account_id=1) == ["already exists"]

    def test_own_personal_namespace_is_not_a_collision(self, registry: IdentityRegistry, mock_namespace_repo: MagicMock):
        """같은 값으로의 이름 변경은 자기 개인 네임스페이스와 충돌하지 않습니다."""
        mock_namespace_repo.find_by_path.return_value = models.PersonalNamespace(
            id=4, path="carol", name="carol", owner_id=12, type="personal"
        )

        assert registry.check_username("carol", excluding_account_id=12) == []
        assert registry.check_username("carol", excluding_account_id=13) == ["already exists"]

    def test_all_problems_are_collected(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        mock_account_repo.username_taken.return_value = True

        errors = registry.check_username("help")

        assert errors == ["is reserved", "has already been taken"]

    def test_reserve_username_raises_validation_error(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        mock_account_repo.username_taken.return_value = True

        with pytest.raises(ValidationError) as exc_info:
            registry.reserve_username("bob")
        assert exc_info.value.errors == {"username": ["has already been taken"]}

# ===================================================================
#  이메일 검사
# ===================================================================
class TestCheckEmail:
    def test_valid_free_email(self, registry: IdentityRegistry):
        assert registry.check_email("alice@example.com") == []

    def test_malformed_email(self, registry: IdentityRegistry):
        assert registry.check_email("not-an-email") == ["is invalid"]

    def test_email_taken_by_primary_email(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        mock_account_repo.email_taken.return_value = True

        assert registry.check_email("bob@example.com", excluding_account_id=2) == ["has already been taken"]
        mock_account_repo.email_taken.assert_called_once_with("bob@example.com", 2)

    def test_email_taken_by_secondary_email(self, registry: IdentityRegistry, mock_email_repo: MagicMock):
        mock_email_repo.find_by_email.return_value = models.Email(id=1, account_id=9, email="bob@work.example.com")

        assert registry.check_email("bob@work.example.com") == ["has already been taken"]

    def test_reserve_email_raises(self, registry: IdentityRegistry):
        with pytest.raises(ValidationError) as exc_info:
            registry.reserve_email("")
        assert exc_info.value.errors == {"email": ["can't be blank"]}

    def test_secondary_email_cannot_reuse_any_primary(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        mock_account_repo.email_taken.return_value = True

        assert registry.check_secondary_email("alice@example.com") == ["has already been taken"]
        mock_account_repo.email_taken.assert_called_once_with("alice@example.com")

# ===================================================================
#  그룹 경로 검사
# ===================================================================
class TestCheckGroupPath:
    def test_group_path_taken(self, registry: IdentityRegistry, mock_namespace_repo: MagicMock):
        mock_namespace_repo.path_taken.return_value = True

        assert registry.check_group_path("alice") == ["has already been taken"]

    def test_group_path_reserved_and_malformed(self, registry: IdentityRegistry):
        assert registry.check_group_path("projects") == ["is reserved"]
        assert registry.check_group_path("-team") == [USERNAME_REGEX_MESSAGE]

# ===================================================================
#  사용자 이름 자동 생성
# ===================================================================
class TestSanitizeUsername:
    @pytest.mark.parametrize("candidate, expected", [
        ("john.smith@example.com", "john.smith"),
        ("-repo.git", "repo"),
        ("jöhn dœ+tag", "jhndtag"),
        ("under_score-dash", "under_score-dash"),
    ])
    def test_normalization(self, registry: IdentityRegistry, candidate, expected):
        assert registry.sanitize_username(candidate) == expected

    def test_appends_increasing_suffix_until_free(
        self, registry: IdentityRegistry, mock_account_repo: MagicMock, mock_namespace_repo: MagicMock
    ):
        """john, john1 은 이미 사용 중이고 john2 가 첫 번째 빈 이름인 경우."""
        # === Arrange ===
        mock_account_repo.find_by_login.side_effect = lambda name: models.Account(id=1) if name == "john" else None
        mock_namespace_repo.find_by_path.side_effect = lambda path: models.Group(id=2) if path == "john1" else None

        # === Act ===
        username = registry.sanitize_username("john@example.com")

        # === Assert ===
        assert username == "john2"

    def test_gives_up_after_generation_limit(self, registry: IdentityRegistry, mock_account_repo: MagicMock):
        """모든 후보가 사용 중이면 한도(설정값 5)를 넘는 순간 실패해야 합니다."""
        mock_account_repo.find_by_login.return_value = models.Account(id=1)

        with pytest.raises(GenerationExhaustedError):
            registry.sanitize_username("john")
        # 원래 이름 1회 + 접미사 1..5 시도
        assert mock_account_repo.find_by_login.call_count == 6

    def test_empty_result_is_not_fabricated(self, registry: IdentityRegistry):
        with pytest.raises(GenerationExhaustedError):
            registry.sanitize_username("@@@")
