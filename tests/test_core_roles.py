"""
Tests for app/core/roles.py - closed role set, predicates and the role gate.
"""
import pytest
from fastapi import HTTPException

from core.roles import (
    ROLE_LABELS, Role, is_admin, is_employee, is_manager, is_project_manager,
    is_team_lead, parse_role, require_roles,
)
from domain.models import ApiUser, Scope, TenantContext


def _user(role: Role) -> ApiUser:
    return ApiUser(id="u-1", email="u@example.test", role=role)


class TestParseRole:

    def test_missing_role_is_least_privileged(self):
        assert parse_role(None) is Role.EMPLOYEE
        assert parse_role("  ") is Role.EMPLOYEE

    def test_known_roles_are_case_insensitive(self):
        assert parse_role("Manager") is Role.MANAGER
        assert parse_role(" team_lead ") is Role.TEAM_LEAD

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValueError):
            parse_role("superuser")

    def test_every_role_has_a_label(self):
        assert set(ROLE_LABELS) == set(Role)


class TestPredicates:

    @pytest.mark.parametrize("predicate, role", [
        (is_admin, Role.ADMIN),
        (is_manager, Role.MANAGER),
        (is_team_lead, Role.TEAM_LEAD),
        (is_employee, Role.EMPLOYEE),
        (is_project_manager, Role.PROJECT_MANAGER),
    ])
    def test_predicate_matches_only_its_role(self, predicate, role):
        for candidate in Role:
            assert predicate(_user(candidate)) is (candidate is role)

    def test_absent_user_has_no_role(self):
        assert is_admin(None) is False
        assert is_employee(None) is False

    def test_admin_is_not_implicitly_a_manager(self):
        assert is_manager(_user(Role.ADMIN)) is False

    @pytest.mark.parametrize("role, admin, manager", [
        (Role.ADMIN, True, False),
        (Role.MANAGER, False, True),
        (Role.TEAM_LEAD, False, False),
    ])
    def test_scope_flags_follow_predicates(self, role, admin, manager):
        scope = Scope(user=_user(role), tenant=TenantContext(tenant_id="t-1"))

        assert scope.is_admin is admin
        assert scope.is_manager is manager


class TestRequireRoles:

    def test_admitted_role_passes_through(self):
        user = _user(Role.MANAGER)
        assert require_roles(user, [Role.ADMIN, Role.MANAGER]) is user

    def test_other_role_is_forbidden(self):
        with pytest.raises(HTTPException) as exc:
            require_roles(_user(Role.EMPLOYEE), [Role.ADMIN])
        assert exc.value.status_code == 403
        assert exc.value.detail["code"] == "forbidden"
