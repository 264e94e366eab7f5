"""
Tests for assignment balancer
"""

import pytest
from taskhub.models.user import User
from taskhub.services.assignment_balancer import AssignmentBalancer


def test_selects_least_loaded(users):
    """Loads {2, 0, 1} -> the user with 0 open tasks"""
    loads = {"u1": 2, "u2": 0, "u3": 1}
    balancer = AssignmentBalancer()

    selected = balancer.select_assignee(users, lambda u: loads[u.id])

    assert selected.id == "u2"


def test_tie_goes_to_first_user(users):
    loads = {"u1": 1, "u2": 1, "u3": 1}
    balancer = AssignmentBalancer()

    selected = balancer.select_assignee(users, lambda u: loads[u.id])

    assert selected.id == "u1"


def test_selection_is_deterministic(users):
    loads = {"u1": 3, "u2": 1, "u3": 1}
    balancer = AssignmentBalancer()

    picks = {balancer.select_assignee(users, lambda u: loads[u.id]).id for _ in range(10)}

    assert picks == {"u2"}


def test_zero_load_user_always_wins():
    users = [User(id=f"u{i}", username=f"user{i}") for i in range(5)]
    balancer = AssignmentBalancer()

    for idle in range(5):
        loads = {u.id: (0 if i == idle else i + 1) for i, u in enumerate(users)}
        assert balancer.select_assignee(users, lambda u: loads[u.id]).id == f"u{idle}"


def test_empty_candidates_returns_none():
    balancer = AssignmentBalancer()

    assert balancer.select_assignee([], lambda u: 0) is None


@pytest.mark.asyncio
async def test_async_load_query(users):
    loads = {"u1": 4, "u2": 2, "u3": 0}
    balancer = AssignmentBalancer()

    async def load_of(user):
        return loads[user.id]

    selected = await balancer.select_assignee_async(users, load_of)

    assert selected.id == "u3"


@pytest.mark.asyncio
async def test_async_empty_candidates():
    balancer = AssignmentBalancer()

    async def load_of(user):
        return 0

    assert await balancer.select_assignee_async([], load_of) is None


@pytest.mark.asyncio
async def test_sync_and_async_agree(users):
    loads = {"u1": 2, "u2": 1, "u3": 1}
    balancer = AssignmentBalancer()

    async def load_of(user):
        return loads[user.id]

    sync_pick = balancer.select_assignee(users, lambda u: loads[u.id])
    async_pick = await balancer.select_assignee_async(users, load_of)

    assert sync_pick.id == async_pick.id == "u2"
