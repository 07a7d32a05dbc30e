"""
Playlist state as published by Sofie Core, plus the poller's error taxonomy.

A PlaylistState is read fresh from Core on every poll and never kept
between iterations.
"""

# Hold states as published on the playlist document
HOLD_NONE = 0
HOLD_PENDING = 1    # During STK
HOLD_ACTIVE = 2     # During full, STK is played
HOLD_COMPLETE = 3   # During full, full is played

HOLD_STATE_NAMES = {
    HOLD_NONE: "none",
    HOLD_PENDING: "pending",
    HOLD_ACTIVE: "active",
    HOLD_COMPLETE: "complete",
}


class PollerError(Exception):
    """Base class for everything that stops the poll loop."""


class MissingPlaylistError(PollerError):
    """The listing endpoint returned no playlists."""


class MissingNextPartError(PollerError):
    """The active playlist has no queued next part."""


class TransportError(PollerError):
    """HTTP-layer failure: connection, non-2xx status or a malformed body."""


class PlaylistState:
    """One rundown playlist document, as seen by a single poll."""

    def __init__(self, id: str, current_part_instance_id: str | None = None,
                 next_part_instance_id: str | None = None, raw: dict | None = None):
        self.id = id
        self.current_part_instance_id = current_part_instance_id
        self.next_part_instance_id = next_part_instance_id
        self.raw = raw if raw is not None else self.to_dict()

        raw = self.raw
        self.name = raw.get("name")
        self.activation_id = raw.get("activationId")
        self.rehearsal = bool(raw.get("rehearsal", False))
        self.hold_state = raw.get("holdState", HOLD_NONE)

    @classmethod
    def from_json(cls, doc) -> "PlaylistState":
        if not isinstance(doc, dict):
            raise TransportError(f"Playlist record is not an object: {doc!r}")
        playlist_id = doc.get("_id")
        if not playlist_id:
            raise TransportError(f"Playlist record has no _id: {doc!r}")
        return cls(
            id=playlist_id,
            current_part_instance_id=doc.get("currentPartInstanceId"),
            next_part_instance_id=doc.get("nextPartInstanceId"),
            raw=doc,
        )

    @property
    def is_active(self) -> bool:
        return bool(self.activation_id)

    @property
    def has_next_part(self) -> bool:
        return bool(self.next_part_instance_id)

    @property
    def hold_state_name(self) -> str:
        if isinstance(self.hold_state, int) and self.hold_state in HOLD_STATE_NAMES:
            return HOLD_STATE_NAMES[self.hold_state]
        return str(self.hold_state)

    @property
    def label(self) -> str:
        """Playlist name for logs, with the id when the name is missing."""
        label = str(self.name or self.id)
        if self.rehearsal:
            label += " (rehearsal)"
        return label

    def to_dict(self) -> dict:
        doc = {"_id": self.id}
        if self.current_part_instance_id is not None:
            doc["currentPartInstanceId"] = self.current_part_instance_id
        if self.next_part_instance_id is not None:
            doc["nextPartInstanceId"] = self.next_part_instance_id
        return doc

    def __repr__(self):
        return (f"PlaylistState(id={self.id!r}, "
                f"current={self.current_part_instance_id!r}, "
                f"next={self.next_part_instance_id!r})")


def parse_playlists(body) -> list[PlaylistState]:
    """Turn the decoded listing body into PlaylistState records."""
    if not isinstance(body, list):
        raise TransportError(f"Expected a JSON array of playlists, got {type(body).__name__}")
    return [PlaylistState.from_json(doc) for doc in body]


class IterationResult:
    """Outcome of one poll: either the playlist that was taken, or the error."""

    def __init__(self, playlist: PlaylistState | None = None, error: PollerError | None = None):
        self.playlist = playlist
        self.error = error

    @classmethod
    def success(cls, playlist: PlaylistState) -> "IterationResult":
        return cls(playlist=playlist)

    @classmethod
    def failure(cls, error: PollerError) -> "IterationResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self):
        if self.error is not None:
            raise self.error

    def __repr__(self):
        if self.ok:
            return f"IterationResult(ok, {self.playlist!r})"
        return f"IterationResult({type(self.error).__name__}: {self.error})"


def select_active_playlist(playlists: list[PlaylistState]) -> IterationResult:
    """Pick the first playlist and check it has a next part to take."""
    if not playlists:
        return IterationResult.failure(MissingPlaylistError("No playlist!"))
    playlist = playlists[0]
    if not playlist.has_next_part:
        return IterationResult.failure(
            MissingNextPartError(f"Playlist {playlist.id} has no next part instance id"))
    return IterationResult.success(playlist)
