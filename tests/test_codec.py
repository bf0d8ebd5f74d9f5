"""
Unit tests for the line protocol codec.
"""

import pytest

from episodes.errors import ProtocolError
from episodes.protocol import (
    ClearAllEpisodes,
    ClearAllMarks,
    ClearEpisode,
    ClearMark,
    Done,
    Init,
    Mark,
    Measure,
    decode,
    encode,
)


class TestDecode:
    """Decoding protocol lines into operations."""

    def test_decode_mark_with_time(self):
        """A mark line decodes to name and integer time."""
        op = decode("EPISODES:mark:m1:1000")
        assert op == Mark(name="m1", time=1000)
        assert op.action.value == "mark"

    def test_encode_reproduces_mark_line(self):
        assert encode(Mark("m1", 1000)) == "EPISODES:mark:m1:1000"

    def test_empty_optional_fields_decode_to_none(self):
        """Empty fields mean 'not supplied', never the string 'null'."""
        assert decode("EPISODES:mark:m1:") == Mark("m1", None)
        assert decode("EPISODES:mark:m1") == Mark("m1", None)
        assert decode("EPISODES:measure:load::") == Measure("load", None, None)
        assert decode("EPISODES:measure:load::1500") == Measure("load", None, "1500")

    def test_measure_references_stay_text(self):
        assert decode("EPISODES:measure:m2..m3:m2:m3") == Measure("m2..m3", "m2", "m3")

    def test_actions_without_fields(self):
        assert decode("EPISODES:clearAllMarks") == ClearAllMarks()
        assert decode("EPISODES:clearAllEpisodes") == ClearAllEpisodes()
        assert decode("EPISODES:init") == Init()
        assert decode("EPISODES:done") == Done()

    def test_clear_single_entries(self):
        assert decode("EPISODES:clearMark:m1") == ClearMark("m1")
        assert decode("EPISODES:clearEpisode:load") == ClearEpisode("load")

    def test_trailing_newline_ignored(self):
        assert decode("EPISODES:mark:m1:1000\n") == Mark("m1", 1000)
        assert decode("EPISODES:done\r\n") == Done()

    def test_foreign_prefix_is_noise(self):
        """Lines from other senders are ignored, not errors."""
        assert decode("OTHER:mark:m1:1000") is None
        assert decode("EPISODESX:mark:m1:1000") is None
        assert decode("") is None
        assert decode("hello world") is None

    def test_custom_prefix(self):
        assert decode("APP:mark:m1:5", prefix="APP") == Mark("m1", 5)
        assert decode("EPISODES:mark:m1:5", prefix="APP") is None
        assert encode(Mark("m1", 5), prefix="APP") == "APP:mark:m1:5"

    def test_unknown_action_raises(self):
        with pytest.raises(ProtocolError):
            decode("EPISODES:explode:x")

    def test_missing_action_raises(self):
        with pytest.raises(ProtocolError):
            decode("EPISODES")

    def test_missing_required_name_raises(self):
        with pytest.raises(ProtocolError):
            decode("EPISODES:mark::1000")
        with pytest.raises(ProtocolError):
            decode("EPISODES:clearEpisode")

    def test_malformed_mark_time_raises(self):
        with pytest.raises(ProtocolError):
            decode("EPISODES:mark:m1:soon")

    @pytest.mark.parametrize("text", ["1_000", " 1000", "1000 ", "+1000", "1e3", "10.5", "\u0661"])
    def test_mark_time_must_be_plain_integer(self, text):
        """Only text that encode() could have produced is accepted."""
        with pytest.raises(ProtocolError):
            decode(f"EPISODES:mark:m1:{text}")

    def test_mark_time_out_of_range_raises(self):
        with pytest.raises(ProtocolError):
            decode(f"EPISODES:mark:m1:{2**53}")
        assert decode(f"EPISODES:mark:m1:{2**53 - 1}") == Mark("m1", 2**53 - 1)


class TestEncode:
    """Encoding operations into protocol lines."""

    def test_absent_optionals_encode_as_empty_fields(self):
        assert encode(Mark("m1")) == "EPISODES:mark:m1:"
        assert encode(Measure("load")) == "EPISODES:measure:load::"
        assert encode(Measure("load", "1000")) == "EPISODES:measure:load:1000:"

    def test_field_free_actions_have_no_trailing_separator(self):
        assert encode(ClearAllMarks()) == "EPISODES:clearAllMarks"
        assert encode(ClearAllEpisodes()) == "EPISODES:clearAllEpisodes"
        assert encode(Init()) == "EPISODES:init"
        assert encode(Done()) == "EPISODES:done"

    def test_names_with_separator_rejected(self):
        with pytest.raises(ProtocolError):
            encode(Mark("a:b", 1))
        with pytest.raises(ProtocolError):
            encode(Measure("ok", "a:b"))

    def test_missing_name_rejected(self):
        with pytest.raises(ProtocolError):
            encode(ClearMark(""))

    def test_round_trip_every_action(self):
        """decode(encode(op)) == op for each kind of operation."""
        ops = [
            Mark("m1", 1000),
            Mark("m1"),
            Mark("neg", -5),
            Measure("e"),
            Measure("e", "m1"),
            Measure("e", None, "m2"),
            Measure("e", "1000", "1200"),
            ClearMark("m1"),
            ClearEpisode("e"),
            ClearAllMarks(),
            ClearAllEpisodes(),
            Init(),
            Done(),
        ]
        for op in ops:
            assert decode(encode(op)) == op
