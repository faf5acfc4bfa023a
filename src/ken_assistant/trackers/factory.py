"""Factory for creating tracker clients."""

import logging

from ken_assistant.config import AssistantSettings
from ken_assistant.trackers.base import TrackerClient
from ken_assistant.trackers.github import GitHubTrackerClient
from ken_assistant.trackers.gitlab import GitLabClient

logger = logging.getLogger(__name__)


class TrackerFactory:
    """Factory for creating tracker client instances."""

    @staticmethod
    def create(settings: AssistantSettings) -> TrackerClient:
        """Create a tracker client based on configuration.

        Args:
            settings: Assistant settings naming the tracker kind and credentials.

        Returns:
            Configured tracker client.

        Raises:
            ValueError: If the tracker kind is not supported.
        """
        logger.info(
            "Creating tracker client",
            extra={"tracker": settings.tracker, "url": settings.tracker_base_url},
        )

        if settings.tracker == "gitlab":
            return GitLabClient(
                token=settings.tracker_token,
                base_url=settings.tracker_base_url,
                timeout=settings.request_timeout_seconds,
            )
        elif settings.tracker == "github":
            return GitHubTrackerClient(
                token=settings.tracker_token,
                base_url=settings.tracker_base_url,
                timeout=settings.request_timeout_seconds,
            )
        else:
            raise ValueError(f"Unsupported tracker: {settings.tracker}")
