"""Auflösung von Benutzer- und Song-IDs in Anzeigenamen."""

from typing import Any, Iterable, Optional

from config.defaults import default_display
from config.schema import DisplayConfig
from models.base import to_int
from models.reference import SongRef, UserRef


class ReferenceResolver:
    """Schreibgeschützter Schnappschuss von Benutzerverzeichnis und Song-Katalog.

    Die Auflösung wirft nie: unbekannte oder unbrauchbare IDs liefern den
    konfigurierten Platzhalter.
    """

    def __init__(
        self,
        users: Iterable[UserRef] = (),
        songs: Iterable[SongRef] = (),
        display: Optional[DisplayConfig] = None,
    ):
        self.display = display or default_display()
        self._users: dict[int, UserRef] = {u.id: u for u in users}
        self._songs: dict[int, SongRef] = {s.id: s for s in songs}

    def get_user(self, user_id: Any) -> Optional[UserRef]:
        i = to_int(user_id)
        return self._users.get(i) if i is not None else None

    def get_song(self, song_id: Any) -> Optional[SongRef]:
        i = to_int(song_id)
        return self._songs.get(i) if i is not None else None

    def knows_user(self, user_id: Any) -> bool:
        return self.get_user(user_id) is not None

    def resolve_user_name(self, user_id: Any) -> str:
        user = self.get_user(user_id)
        if user is None or not user.full_name:
            return self.display.unknown_user_label
        return user.full_name

    def resolve_song_title(self, song_id: Any) -> str:
        song = self.get_song(song_id)
        if song is None or not song.title:
            return self.display.unknown_song_label
        return song.title

    @property
    def users(self) -> list[UserRef]:
        return list(self._users.values())

    @property
    def songs(self) -> list[SongRef]:
        return list(self._songs.values())
