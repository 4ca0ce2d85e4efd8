import pytest

from shiftly_access.exceptions import DuplicateError, NoRoleAssigned, NotFoundError
from shiftly_access.infrastructure.repositories import get_repositories
from shiftly_access.services.authorization_service import AuthorizationService
from shiftly_access.services.invalidation import PermissionInvalidator
from shiftly_access.services.team_service import TeamService
from shiftly_access.services.user_service import UserService
from shiftly_access.utils.pagination import PaginationParams
from tests.fixtures.db_helpers import permission_ids, role_id


def _service(repos, cache):
    return UserService(
        repos["users"], repos["roles"], repos["permissions"], PermissionInvalidator(cache)
    )


@pytest.mark.asyncio
async def test_create_user_defaults_to_default_role(seeded, cache):
    async with seeded() as session:
        service = _service(get_repositories(session, session_factory=seeded), cache)
        user = await service.create_user("ada@example.com", "Ada")

        assert user.role_id == await role_id(seeded, "Employee")
        fetched = await service.get_user(user.id)
        assert fetched.role_name == "Employee"
        assert fetched.direct_permissions == []


@pytest.mark.asyncio
async def test_create_user_without_default_role_raises(session_factory, cache):
    async with session_factory() as session:
        service = _service(get_repositories(session, session_factory=session_factory), cache)
        with pytest.raises(NoRoleAssigned):
            await service.create_user("ada@example.com", "Ada")


@pytest.mark.asyncio
async def test_duplicate_and_deleted_emails_are_rejected(seeded, cache):
    async with seeded() as session:
        service = _service(get_repositories(session, session_factory=seeded), cache)
        user = await service.create_user("ada@example.com", "Ada")

        with pytest.raises(DuplicateError, match="exists already"):
            await service.create_user("ada@example.com", "Ada Again")

        await service.delete_user(user.id)
        with pytest.raises(DuplicateError, match="deactivated"):
            await service.create_user("ada@example.com", "Ada Again")


@pytest.mark.asyncio
async def test_bulk_create_skips_live_duplicates(seeded, cache):
    async with seeded() as session:
        service = _service(get_repositories(session, session_factory=seeded), cache)
        await service.create_user("ada@example.com", "Ada")

        created = await service.create_bulk_users(
            [
                {"email": "ada@example.com", "name": "Ada"},
                {"email": "bob@example.com", "name": "Bob"},
                {"email": "cy@example.com", "name": "Cy"},
                {"email": "bob@example.com", "name": "Bob Twice"},
            ]
        )

        assert sorted(u.email for u in created) == ["bob@example.com", "cy@example.com"]


@pytest.mark.asyncio
async def test_bulk_create_rejects_batch_with_deleted_email(seeded, cache):
    async with seeded() as session:
        service = _service(get_repositories(session, session_factory=seeded), cache)
        old = await service.create_user("old@example.com", "Old")
        await service.delete_user(old.id)

        with pytest.raises(DuplicateError, match="old@example.com"):
            await service.create_bulk_users(
                [{"email": "new@example.com", "name": "New"}, {"email": "old@example.com", "name": "Old"}]
            )
        assert await service.users_repo.get_by_email("new@example.com") is None


@pytest.mark.asyncio
async def test_role_change_invalidates_only_that_user(seeded, cache):
    employee = await role_id(seeded, "Employee")
    admin = await role_id(seeded, "Admin")
    async with seeded() as session:
        repos = get_repositories(session, session_factory=seeded)
        service = _service(repos, cache)
        authz = AuthorizationService(repos["permissions"], cache)
        ada = await service.create_user("ada@example.com", "Ada")
        bob = await service.create_user("bob@example.com", "Bob")

        assert not await authz.check_all(ada.id, employee, ["settings:update"])
        await authz.check_all(bob.id, employee, ["own-schedule:view"])

        updated = await service.update_user(ada.id, role_id=admin)

        assert updated.role_id == admin
        assert await cache.get(ada.id, employee) is None
        assert await cache.get(bob.id, employee) is not None
        assert await authz.check_all(ada.id, admin, ["settings:update"])


@pytest.mark.asyncio
async def test_direct_permissions_update_invalidates_user(seeded, cache):
    employee = await role_id(seeded, "Employee")
    ids = await permission_ids(seeded, "reports:export")
    async with seeded() as session:
        repos = get_repositories(session, session_factory=seeded)
        service = _service(repos, cache)
        authz = AuthorizationService(repos["permissions"], cache)
        ada = await service.create_user("ada@example.com", "Ada")

        assert not await authz.check_all(ada.id, employee, ["reports:export"])

        updated = await service.update_user(
            ada.id, direct_permission_ids=[ids["reports:export"]], assigned_by=None
        )

        assert [p.name for p in updated.direct_permissions] == ["reports:export"]
        assert await authz.check_all(ada.id, employee, ["reports:export"])

        with pytest.raises(NotFoundError):
            await service.update_user(ada.id, direct_permission_ids=["bogus"])
        with pytest.raises(NotFoundError):
            await service.update_user(ada.id, role_id="bogus")


@pytest.mark.asyncio
async def test_delete_user_evicts_cache_and_hides_user(seeded, cache):
    employee = await role_id(seeded, "Employee")
    async with seeded() as session:
        repos = get_repositories(session, session_factory=seeded)
        service = _service(repos, cache)
        ada = await service.create_user("ada@example.com", "Ada")
        await cache.put(ada.id, employee, {"own-schedule:view"})

        await service.delete_user(ada.id)

        assert await cache.get(ada.id, employee) is None
        with pytest.raises(NotFoundError):
            await service.get_user(ada.id)
        assert await repos["permissions"].get_direct_permissions(ada.id) == set()


@pytest.mark.asyncio
async def test_list_users_search_filter_sort_and_count(seeded, cache):
    admin = await role_id(seeded, "Admin")
    async with seeded() as session:
        repos = get_repositories(session, session_factory=seeded)
        service = _service(repos, cache)
        ada = await service.create_user("ada@example.com", "Ada Lovelace", role_id=admin)
        bob = await service.create_user("bob@example.com", "Bob Builder")
        cy = await service.create_user("cy@example.com", "Cy Young")
        await repos["users"].update(bob.id, email_verified=True)

        page = await service.list_users(PaginationParams(page=1, page_size=2, sort_by="name"))
        assert page.total == 3
        assert page.total_pages == 2
        assert [u.name for u in page.data] == ["Ada Lovelace", "Bob Builder"]

        page = await service.list_users(PaginationParams(sort_by="email", sort_order="desc"))
        assert [u.email for u in page.data] == ["cy@example.com", "bob@example.com", "ada@example.com"]

        page = await service.list_users(PaginationParams(search="BUILD"))
        assert [u.id for u in page.data] == [bob.id]

        page = await service.list_users(PaginationParams(role_id=admin))
        assert [u.id for u in page.data] == [ada.id]
        assert page.data[0].role_name == "Admin"

        teams = TeamService(repos["teams"], repos["users"])
        team = await teams.create_team("Night Shift", member_ids=[cy.id])
        page = await service.list_users(PaginationParams(team_id=team.id))
        assert [u.id for u in page.data] == [cy.id]
        assert page.total == 1

        assert await service.count_users() == {"total": 3, "verified": 1}
        await service.delete_user(cy.id)
        assert await service.count_users() == {"total": 2, "verified": 1}
