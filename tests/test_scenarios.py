from dataclasses import dataclass

import pytest

from dbkit import Q, Updater, and_, new_db, new_executor, or_
from tests.models import User, UserFields as F

pytestmark = pytest.mark.anyio


@dataclass
class UserFilter:
    email: str | None = None
    min_age: int | None = None
    statuses: list[str] | None = None
    name_prefix: str | None = None


def filter_query(f: UserFilter):
    return Q(
        F.email.eq(f.email),
        F.age.gt_eq(f.min_age),
        F.status.in_(f.statuses),
        F.name.starts_with(f.name_prefix),
    )


@pytest.fixture
async def people(session):
    users = new_executor(new_db(), User)
    rows = [
        User(email="teen@x.com", name="Tim", age=15, status="active", deleted=False),
        User(email="adult@x.com", name="Ada", age=40, status="inactive", deleted=True),
        User(email="kid@x.com", name="Kim", age=10, status="active", deleted=False),
        User(email="gone@x.com", name="Gus", age=12, status="active", deleted=True),
        User(email="a@b.com", name="Abe", age=33, status="active", deleted=False),
    ]
    await users.batch_create(session, rows)
    return users


async def test_or_of_ands_selects_adults_or_live_active_users(people, session):
    query = or_(and_(F.age.gt(18)), and_(F.deleted.eq(False), F.status.eq("active")))
    found = await people.find(session, query)
    assert sorted(u.email for u in found) == ["a@b.com", "adult@x.com", "kid@x.com", "teen@x.com"]


async def test_partially_filled_filter(people, session):
    everyone = await people.count(session, filter_query(UserFilter()))
    assert everyone == 5
    assert await people.count(session, filter_query(UserFilter(min_age=12, statuses=["active"]))) == 3
    assert await people.count(session, filter_query(UserFilter(statuses=[], name_prefix="A"))) == 2


async def test_update_by_query_touches_only_matching_rows_and_columns(people, session):
    before = {u.email: u for u in await people.find(session)}

    updated = await people.update_by_query(session, Q(F.email.eq("a@b.com")), Updater().add(F.status, "inactive"))
    assert updated == 1

    after = {u.email: u for u in await people.find(session)}
    for email, old in before.items():
        new = after[email]
        expected_status = "inactive" if email == "a@b.com" else old.status
        assert new.status == expected_status
        assert (new.id, new.name, new.age, new.deleted) == (old.id, old.name, old.age, old.deleted)


async def test_batch_create_with_default_size(recorder):
    users = new_executor(new_db(), User)
    await users.batch_create(recorder, [User(email=f"{i}@x.com") for i in range(1001)], 0)
    assert recorder.batches == [1000, 1]
    assert await users.count(recorder) == 1001
