"""In-memory library for fixtures and offline runs."""

from typing import Dict, List, Optional

from holidarr.library.base import MediaLibrary
from holidarr.models.media import Episode, Movie


class StaticLibrary(MediaLibrary):
    """A library whose sections are supplied up front.

    Unknown section refs list as empty rather than raising.
    """

    def __init__(
        self,
        episodes: Optional[Dict[str, List[Episode]]] = None,
        movies: Optional[Dict[str, List[Movie]]] = None,
    ):
        self._episodes = {ref: list(items) for ref, items in (episodes or {}).items()}
        self._movies = {ref: list(items) for ref, items in (movies or {}).items()}

    @property
    def name(self) -> str:
        return "StaticLibrary"

    async def list_episodes(self, library_ref: str) -> List[Episode]:
        return list(self._episodes.get(library_ref, []))

    async def list_movies(self, library_ref: str) -> List[Movie]:
        return list(self._movies.get(library_ref, []))
