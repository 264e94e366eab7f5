"""
Audit message formatting utilities
"""

from typing import Optional
from taskhub.config.constants import UNASSIGNED_LABEL


def format_task_created(title: str, actor: str) -> str:
    """
    Format audit text for task creation

    Args:
        title: Task title
        actor: Username of the acting user

    Returns:
        Audit action text
    """
    return f"Created task: {title} by {actor}"


def format_task_updated(title: str, actor: str) -> str:
    """Format audit text for task update"""
    return f"Updated task: {title} by {actor}"


def format_task_deleted(title: str, actor: str) -> str:
    """Format audit text for task deletion"""
    return f"Deleted task: {title} by {actor}"


def format_task_assigned(title: str, assignee: Optional[str], actor: str) -> str:
    """
    Format audit text for smart assignment

    Args:
        title: Task title
        assignee: Username of the new assignee, None if nobody was picked
        actor: Username of the acting user

    Returns:
        Audit action text
    """
    return f"Smart assigned task: {title} to {assignee or UNASSIGNED_LABEL} by {actor}"
