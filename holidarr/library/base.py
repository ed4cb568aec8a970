"""Media library collaborator interface."""

from abc import ABC, abstractmethod
from typing import List

from holidarr.models.media import Episode, Movie


class MediaLibrary(ABC):
    """Abstract base class for media library sources.

    A library enumerates the items of a library section. Every item must
    carry a stable external_id, which is used as the persistence key for
    AI classifications.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique name of this library source."""
        pass

    @abstractmethod
    async def list_episodes(self, library_ref: str) -> List[Episode]:
        """List every episode in a TV library section.

        Args:
            library_ref: Source-specific section identifier.

        Returns:
            A list of Episode objects.
        """
        pass

    @abstractmethod
    async def list_movies(self, library_ref: str) -> List[Movie]:
        """List every movie in a movie library section.

        Args:
            library_ref: Source-specific section identifier.

        Returns:
            A list of Movie objects.
        """
        pass
