"""
Optimistic concurrency check for task mutations
"""

from enum import Enum


class VersionCheck(str, Enum):
    """Outcome of a version check"""
    ACCEPT = "accept"
    CONFLICT = "conflict"


class VersionGuard:
    """Decides whether a client-submitted version may mutate the stored record"""

    @staticmethod
    def check(stored_version: int, client_version: int) -> VersionCheck:
        """
        Compare versions

        Args:
            stored_version: Version currently in the store
            client_version: Version the client last saw

        Returns:
            ACCEPT iff both versions are equal, CONFLICT otherwise
        """
        if client_version == stored_version:
            return VersionCheck.ACCEPT
        return VersionCheck.CONFLICT

    @staticmethod
    def next_version(stored_version: int) -> int:
        return stored_version + 1
