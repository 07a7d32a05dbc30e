import unittest

from sofie.playlist import (
    HOLD_PENDING,
    IterationResult,
    MissingNextPartError,
    MissingPlaylistError,
    PlaylistState,
    PollerError,
    TransportError,
    parse_playlists,
    select_active_playlist,
)


class TestPlaylistState(unittest.TestCase):

    def test_from_json(self):
        doc = {
            "_id": "p1",
            "name": "Evening News",
            "activationId": "act1",
            "rehearsal": True,
            "holdState": HOLD_PENDING,
            "previousPartInstanceId": "prev",
            "currentPartInstanceId": "c1",
            "nextPartInstanceId": "n1",
            "nextSegmentId": "seg2",
        }
        pl = PlaylistState.from_json(doc)

        self.assertEqual(pl.id, "p1")
        self.assertEqual(pl.current_part_instance_id, "c1")
        self.assertEqual(pl.next_part_instance_id, "n1")
        self.assertEqual(pl.name, "Evening News")
        self.assertTrue(pl.is_active)
        self.assertTrue(pl.rehearsal)
        self.assertEqual(pl.hold_state_name, "pending")
        self.assertIs(pl.raw, doc)

    def test_optional_fields_absent(self):
        pl = PlaylistState.from_json({"_id": "p1"})
        self.assertIsNone(pl.current_part_instance_id)
        self.assertFalse(pl.has_next_part)
        self.assertFalse(pl.is_active)
        self.assertEqual(pl.hold_state_name, "none")

    def test_null_or_empty_next_part(self):
        self.assertFalse(PlaylistState.from_json({"_id": "p1", "nextPartInstanceId": None}).has_next_part)
        self.assertFalse(PlaylistState.from_json({"_id": "p1", "nextPartInstanceId": ""}).has_next_part)

    def test_unknown_hold_state(self):
        pl = PlaylistState.from_json({"_id": "p1", "holdState": 9})
        self.assertEqual(pl.hold_state_name, "9")

    def test_unhashable_hold_state(self):
        pl = PlaylistState.from_json({"_id": "p1", "holdState": [1]})
        self.assertEqual(pl.hold_state_name, "[1]")

    def test_label(self):
        self.assertEqual(PlaylistState.from_json({"_id": "p1"}).label, "p1")
        pl = PlaylistState.from_json({"_id": "p1", "name": "Evening News", "rehearsal": True})
        self.assertEqual(pl.label, "Evening News (rehearsal)")

    def test_built_without_raw(self):
        pl = PlaylistState("p1", "c1")
        self.assertEqual(pl.raw, {"_id": "p1", "currentPartInstanceId": "c1"})

    def test_malformed_records(self):
        with self.assertRaises(TransportError):
            PlaylistState.from_json("p1")
        with self.assertRaises(TransportError):
            PlaylistState.from_json({"currentPartInstanceId": "c1"})


class TestParsePlaylists(unittest.TestCase):

    def test_parses_in_order(self):
        playlists = parse_playlists([{"_id": "a"}, {"_id": "b"}])
        self.assertEqual([p.id for p in playlists], ["a", "b"])

    def test_non_array_body(self):
        for body in ({"_id": "a"}, None, "[]"):
            with self.assertRaises(TransportError):
                parse_playlists(body)


class TestSelectActivePlaylist(unittest.TestCase):

    def test_empty(self):
        result = select_active_playlist([])
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, MissingPlaylistError)

    def test_missing_next_part(self):
        result = select_active_playlist(parse_playlists([{"_id": "p1", "currentPartInstanceId": "c1"}]))
        self.assertIsInstance(result.error, MissingNextPartError)
        self.assertIn("p1", str(result.error))

    def test_first_wins(self):
        result = select_active_playlist(parse_playlists([
            {"_id": "p1", "currentPartInstanceId": "c1", "nextPartInstanceId": "n1"},
            {"_id": "p2", "currentPartInstanceId": "c2", "nextPartInstanceId": "n2"},
        ]))
        self.assertTrue(result.ok)
        self.assertEqual(result.playlist.id, "p1")
        result.raise_for_error()


class TestErrors(unittest.TestCase):

    def test_taxonomy(self):
        for cls in (MissingPlaylistError, MissingNextPartError, TransportError):
            self.assertTrue(issubclass(cls, PollerError))

    def test_result_repr(self):
        self.assertIn("MissingPlaylistError", repr(IterationResult.failure(MissingPlaylistError("x"))))
        self.assertIn("ok", repr(IterationResult.success(PlaylistState("p1"))))


if __name__ == "__main__":
    unittest.main()
