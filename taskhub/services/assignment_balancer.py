"""
Smart assignment: pick the least-loaded user
"""

from typing import Awaitable, Callable, Iterable, Optional, Sequence, Tuple
from taskhub.models.user import User
from taskhub.utils.logger import logger


class AssignmentBalancer:
    """
    Selects the user with the strictly smallest open-task load.

    Ties go to the first user in the input order, so callers must pass
    users in a stable order (the user directory sorts by id).
    """

    def __init__(self):
        self.logger = logger

    def select_assignee(
        self,
        users: Sequence[User],
        load_of: Callable[[User], int],
    ) -> Optional[User]:
        """
        Select assignee from precomputed or cheap loads

        Args:
            users: Candidate users in stable order
            load_of: Returns the open-task count of a user

        Returns:
            Least-loaded user, or None if there are no candidates
        """
        return self._pick(((user, load_of(user)) for user in users), len(users))

    async def select_assignee_async(
        self,
        users: Sequence[User],
        load_of: Callable[[User], Awaitable[int]],
    ) -> Optional[User]:
        """Same as select_assignee, with a load query that hits the store"""
        loads = [(user, await load_of(user)) for user in users]
        return self._pick(loads, len(users))

    def _pick(self, loads: Iterable[Tuple[User, int]], candidates: int) -> Optional[User]:
        selected: Optional[User] = None
        min_load: Optional[int] = None

        for user, load in loads:
            if min_load is None or load < min_load:
                min_load = load
                selected = user

        if selected is None:
            self.logger.info("[Balancer] No candidates, task stays unassigned")
        else:
            self.logger.debug(
                f"[Balancer] Selected '{selected.username}' ({selected.id}) "
                f"with load {min_load} out of {candidates} candidates"
            )
        return selected
