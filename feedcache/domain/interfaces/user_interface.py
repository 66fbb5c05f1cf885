"""Interface for interacting with the user (output only).

Defines the contract for displaying feed results, cache diagnostics,
information and errors, allowing different UI implementations.
"""

import abc
from typing import Any, Dict

from feedcache.domain.models.feed import Post


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output (e.g. raw JSON) to the user.

        Args:
            output: The text to display.
            **kwargs: Additional arguments for formatting (e.g. title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_posts(self, posts: list, origin: str, **kwargs: Any) -> None:
        """Displays feed posts and where they were loaded from.

        Args:
            posts: The Post objects to list.
            origin: 'memory', 'disk' or 'remote'.
        """
        pass

    @abc.abstractmethod
    def display_stats(self, report: Dict[str, Any], **kwargs: Any) -> None:
        """Displays cache diagnostics.

        Args:
            report: Ordered mapping of label -> value.
        """
        pass


def describe_post(post: Post) -> str:
    """One-line summary of a post for plain-text UIs."""
    price = f" ({post.premium_details.display_price})" if post.premium_details else ""
    tags = " ".join(f"#{tag}" for tag in post.hashtags)
    return f"{post.caption}{price} {tags}".strip()
