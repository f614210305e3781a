import pytest
from fastapi import HTTPException

from kezekshi_dashboard.deps.auth import AuthContext, resolve_scope
from kezekshi_dashboard.services.access import AccessPolicy, Role, resolve_filters, school_options

ADMIN = {"roles": ["AD"]}
DEPARTMENT = {"roles": ["DE"], "region_id": 1}
SCHOOL = {"roles": ["SC"], "school_id": 11}
PARENT = {"roles": ["US"]}


@pytest.mark.parametrize("profile,page,allowed", [
    (ADMIN, "planning", True),
    (ADMIN, "my-children", True),
    (DEPARTMENT, "planning", True),
    (DEPARTMENT, "my-children", False),
    (SCHOOL, "stats", True),
    (SCHOOL, "planning", False),
    (PARENT, "my-children", True),
    (PARENT, "home", False),
    ({}, "login", True),
    ({}, "profile", False),
    ({"roles": "AD"}, "home", False),
])
def test_can_access_page(profile, page, allowed):
    assert AccessPolicy(profile).can_access_page(page) is allowed


def test_department_role_wins_over_user_role():
    policy = AccessPolicy({"roles": ["US", "DE"], "region_id": 1})
    assert policy.can_access_page("planning")
    assert not policy.can_access_page("my-children")


def test_region_and_school_scope():
    de = AccessPolicy(DEPARTMENT)
    assert de.can_access_region("1")
    assert not de.can_access_region(2)
    assert de.can_access_school(10, school_region_id=1)
    assert not de.can_access_school(20, school_region_id=2)
    assert not de.can_access_school(10)

    sc = AccessPolicy(SCHOOL)
    assert sc.can_access_school("11")
    assert not sc.can_access_school(10)
    assert not sc.can_access_region(1)

    assert AccessPolicy(ADMIN).can_access_region(None)
    assert not AccessPolicy(PARENT).can_access_school(10)


def test_filter_schools_by_scope():
    schools = [{"id": 10, "region_id": 1}, {"id": 11, "region_id": 1}, {"id": 20, "region_id": 2}]
    assert len(AccessPolicy(ADMIN).filter_schools_by_scope(schools)) == 3
    assert [s["id"] for s in AccessPolicy(DEPARTMENT).filter_schools_by_scope(schools)] == [10, 11]
    assert [s["id"] for s in AccessPolicy(SCHOOL).filter_schools_by_scope(schools)] == [11]
    assert AccessPolicy(PARENT).filter_schools_by_scope(schools) == []


def test_landing_page_and_roles():
    assert AccessPolicy(PARENT).landing_page() == "/my-children"
    assert AccessPolicy(DEPARTMENT).landing_page() == "/"
    assert AccessPolicy(ADMIN).has_role(Role.ADMIN)
    assert AccessPolicy(ADMIN).has_role("AD")
    assert AccessPolicy(None).user_region_id is None


@pytest.mark.asyncio
async def test_resolve_filters_for_admin_lists_every_region(fake_client):
    scope = await resolve_filters(AccessPolicy(ADMIN), fake_client)
    assert [o.value for o in scope.regions] == ["all", "1", "2"]
    assert scope.selected_region == "all"
    assert scope.schools == []


@pytest.mark.asyncio
async def test_resolve_filters_pins_department_to_its_region(fake_client):
    scope = await resolve_filters(AccessPolicy(DEPARTMENT), fake_client, default_region="")
    assert [(o.value, o.label) for o in scope.regions] == [("1", "Астана")]
    assert scope.selected_region == "1"


@pytest.mark.asyncio
async def test_resolve_filters_finds_school_region(fake_client):
    scope = await resolve_filters(AccessPolicy(SCHOOL), fake_client)
    assert [o.value for o in scope.regions] == ["1"]
    assert scope.selected_school == "11"
    assert [o.label for o in scope.schools] == ["Гимназия 11"]


@pytest.mark.asyncio
async def test_resolve_filters_unknown_school_selects_nothing(fake_client):
    scope = await resolve_filters(AccessPolicy({"roles": ["SC"], "school_id": 999}), fake_client)
    assert scope.regions == []
    assert scope.selected_region == ""


@pytest.mark.asyncio
async def test_school_options(fake_client):
    options, selected = await school_options(AccessPolicy(ADMIN), fake_client, "1")
    assert [o.value for o in options] == ["all", "10", "11"]
    assert selected == ""

    options, selected = await school_options(AccessPolicy(SCHOOL), fake_client, "1")
    assert [o.value for o in options] == ["11"]
    assert selected == "11"

    assert await school_options(AccessPolicy(ADMIN), fake_client, "") == ([], "")


@pytest.mark.asyncio
@pytest.mark.parametrize("profile,region,school,expected", [
    (ADMIN, "all", "", ("all", "")),
    (ADMIN, None, 20, ("", "20")),
    (DEPARTMENT, None, None, ("1", "")),
    (DEPARTMENT, "all", "10", ("1", "10")),
    (SCHOOL, "", "", ("1", "11")),
    (SCHOOL, "1", "all", ("1", "11")),
])
async def test_resolve_scope_pins_blank_filters(fake_client, profile, region, school, expected):
    ctx = AuthContext("token", profile)
    assert await resolve_scope(ctx, fake_client, region=region, school=school) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("profile,region,school", [
    (DEPARTMENT, "2", ""),
    (DEPARTMENT, "", "20"),
    (DEPARTMENT, "1", "999"),
    (SCHOOL, "2", ""),
    (SCHOOL, "", "10"),
    (PARENT, "", ""),
    ({"roles": ["DE"]}, "1", ""),
])
async def test_resolve_scope_rejects_foreign_filters(fake_client, profile, region, school):
    with pytest.raises(HTTPException) as exc:
        await resolve_scope(AuthContext("token", profile), fake_client, region=region, school=school)
    assert exc.value.status_code == 403
