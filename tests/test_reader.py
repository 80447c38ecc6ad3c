"""
Tests for the pull-based reader.

Documents are built by hand from raw bytes so the reader is checked against
the wire format rather than against the writer.
"""

import gzip
import io

import pytest

from nbtstream import (
    CorruptData,
    ExpectedCompound,
    InvalidLength,
    InvalidState,
    InvalidTag,
    NBTError,
    Reader,
    TagKind,
    Token,
    UnexpectedEof,
    tokenize,
)

# {"x": Short -1, "y": List<Byte> [3, 5]} under an unnamed root
SCENARIO = bytes.fromhex(
    "0a0000"            # COMPOUND ""
    "020001" "78" "ffff"  # SHORT "x" = -1
    "090001" "79" "01" "00000002" "03" "05"  # LIST "y" of BYTE, 2 items
    "00"                # END
)

SCENARIO_TOKENS = [
    Token(TagKind.COMPOUND, "", None),
    Token(TagKind.SHORT, "x", -1),
    Token(TagKind.LIST, "y", TagKind.BYTE),
    Token(TagKind.BYTE, 0, 3),
    Token(TagKind.BYTE, 1, 5),
    Token(TagKind.END, "", None),
    Token(TagKind.END, "", None),
]


def raw_reader(data: bytes) -> Reader:
    return Reader(io.BytesIO(data), compressed=False)


class TestScenario:
    """The reference document from the format description."""

    def test_token_sequence(self):
        assert list(raw_reader(SCENARIO)) == SCENARIO_TOKENS

    def test_token_sequence_from_gzip(self):
        assert list(tokenize(gzip.compress(SCENARIO))) == SCENARIO_TOKENS

    def test_list_token_carries_element_kind(self):
        tokens = list(raw_reader(SCENARIO))
        assert tokens[2].value is TagKind.BYTE

    def test_tokenize_from_path(self, tmp_path):
        path = tmp_path / "scenario.dat"
        path.write_bytes(gzip.compress(SCENARIO))
        assert list(tokenize(path)) == SCENARIO_TOKENS
        assert list(tokenize(str(path))) == SCENARIO_TOKENS

    def test_for_each_token(self):
        seen = []
        raw_reader(SCENARIO).for_each_token(seen.append)
        assert seen == SCENARIO_TOKENS


class TestExhaustion:
    """Behavior after the root compound closes."""

    def test_next_token_returns_none_when_done(self):
        reader = raw_reader(SCENARIO)
        for _ in SCENARIO_TOKENS:
            assert reader.next_token() is not None
        assert reader.finished
        assert reader.next_token() is None
        assert reader.next_token() is None

    def test_iteration_is_not_restartable(self):
        reader = raw_reader(SCENARIO)
        assert len(list(reader)) == len(SCENARIO_TOKENS)
        assert list(reader) == []

    def test_next_token_after_close(self):
        reader = raw_reader(SCENARIO)
        reader.next_token()
        reader.close()
        with pytest.raises(InvalidState):
            reader.next_token()

    def test_trailing_bytes_are_not_read(self):
        stream = io.BytesIO(SCENARIO + b"garbage")
        tokens = list(Reader(stream, compressed=False))
        assert tokens == SCENARIO_TOKENS
        assert stream.read() == b"garbage"


class TestLists:
    """List bodies are driven by their element count."""

    def test_synthetic_end_consumes_no_bytes(self):
        stream = io.BytesIO(SCENARIO)
        reader = Reader(stream, compressed=False)
        for _ in range(5):
            reader.next_token()
        before = stream.tell()
        assert reader.next_token() == Token(TagKind.END, "", None)
        assert stream.tell() == before
        assert reader.next_token() == Token(TagKind.END, "", None)
        assert stream.tell() == before + 1

    def test_empty_list(self):
        data = bytes.fromhex("0a0000" "090001" "65" "00" "00000000" "00")
        assert list(raw_reader(data)) == [
            Token(TagKind.COMPOUND, "", None),
            Token(TagKind.LIST, "e", TagKind.END),
            Token(TagKind.END, "", None),
            Token(TagKind.END, "", None),
        ]

    def test_nested_lists(self):
        data = bytes.fromhex(
            "0a0000"
            "090001" "6d" "09" "00000002"
            "03" "00000002" "00000001" "00000002"
            "03" "00000001" "00000003"
            "00"
        )
        assert list(raw_reader(data)) == [
            Token(TagKind.COMPOUND, "", None),
            Token(TagKind.LIST, "m", TagKind.LIST),
            Token(TagKind.LIST, 0, TagKind.INT),
            Token(TagKind.INT, 0, 1),
            Token(TagKind.INT, 1, 2),
            Token(TagKind.END, "", None),
            Token(TagKind.LIST, 1, TagKind.INT),
            Token(TagKind.INT, 0, 3),
            Token(TagKind.END, "", None),
            Token(TagKind.END, "", None),
            Token(TagKind.END, "", None),
        ]

    def test_list_of_compounds(self):
        data = bytes.fromhex(
            "0a0000"
            "090001" "63" "0a" "00000001"
            "080001" "6b" "0002" "6869"
            "00"
            "00"
        )
        assert list(raw_reader(data)) == [
            Token(TagKind.COMPOUND, "", None),
            Token(TagKind.LIST, "c", TagKind.COMPOUND),
            Token(TagKind.COMPOUND, 0, None),
            Token(TagKind.STRING, "k", "hi"),
            Token(TagKind.END, "", None),
            Token(TagKind.END, "", None),
            Token(TagKind.END, "", None),
        ]

    def test_end_list_with_items_rejected(self):
        data = bytes.fromhex("0a0000" "090001" "65" "00" "00000003" "00")
        with pytest.raises(InvalidLength):
            list(raw_reader(data))

    def test_negative_list_length_rejected(self):
        data = bytes.fromhex("0a0000" "090001" "65" "01" "ffffffff" "00")
        with pytest.raises(InvalidLength):
            list(raw_reader(data))


class TestScalars:
    """Every scalar kind inside a compound."""

    def test_all_scalar_kinds(self):
        data = bytes.fromhex(
            "0a0004" "726f6f74"                    # COMPOUND "root"
            "010001" "62" "fe"                     # BYTE b = -2
            "040001" "6c" "8000000000000000"       # LONG l = min
            "050001" "66" "3fc00000"               # FLOAT f = 1.5
            "060001" "64" "c002000000000000"       # DOUBLE d = -2.25
            "070001" "61" "00000002" "00ff"        # BYTE_ARRAY a
            "030001" "69" "7fffffff"               # INT i = max
            "00"
        )
        assert list(raw_reader(data)) == [
            Token(TagKind.COMPOUND, "root", None),
            Token(TagKind.BYTE, "b", -2),
            Token(TagKind.LONG, "l", -(2**63)),
            Token(TagKind.FLOAT, "f", 1.5),
            Token(TagKind.DOUBLE, "d", -2.25),
            Token(TagKind.BYTE_ARRAY, "a", b"\x00\xff"),
            Token(TagKind.INT, "i", 2**31 - 1),
            Token(TagKind.END, "", None),
        ]

    def test_modified_utf8_string(self):
        """Java's c0 80 encoding of NUL is kept as escaped bytes."""
        data = bytes.fromhex("0a0000" "080001" "73" "0004" "61c08062" "00")
        tokens = list(raw_reader(data))
        assert tokens[1] == Token(TagKind.STRING, "s", "a\udcc0\udc80b")


class TestValidation:
    """Malformed documents."""

    @pytest.mark.parametrize("byte", [11, 255])
    def test_invalid_root_tag(self, byte):
        with pytest.raises(InvalidTag):
            raw_reader(bytes([byte]) + b"\x00\x00").next_token()

    def test_root_must_be_compound(self):
        with pytest.raises(ExpectedCompound):
            raw_reader(bytes.fromhex("010000" "05")).next_token()

    def test_invalid_tag_inside_compound(self):
        data = bytes.fromhex("0a0000" "0a0001" "61" "0b")
        with pytest.raises(InvalidTag) as excinfo:
            list(raw_reader(data))
        assert excinfo.value.context == "root/a"
        assert "root/a" in str(excinfo.value)

    def test_empty_input(self):
        with pytest.raises(UnexpectedEof):
            raw_reader(b"").next_token()


class TestTruncation:
    """Cutting the stream short must never yield a partial document."""

    def test_every_truncation_point(self):
        for cut in range(len(SCENARIO)):
            with pytest.raises(UnexpectedEof):
                list(raw_reader(SCENARIO[:cut]))

    def test_truncated_gzip(self):
        data = gzip.compress(SCENARIO)
        with pytest.raises(UnexpectedEof):
            list(tokenize(data[: len(data) // 2]))

    def test_every_gzip_truncation_point(self):
        """A gzip document cut anywhere before its trailer fails with UnexpectedEof."""
        data = gzip.compress(SCENARIO)
        for cut in range(1, len(data)):
            try:
                tokens = list(tokenize(data[:cut]))
            except UnexpectedEof:
                continue
            # Only the 8-byte trailer may be missing
            assert cut >= len(data) - 9
            assert tokens == SCENARIO_TOKENS

    def test_lone_gzip_magic_byte(self):
        with pytest.raises(UnexpectedEof):
            list(tokenize(b"\x1f"))
        with pytest.raises(UnexpectedEof):
            list(tokenize(b"\x1f", compressed=True))

    def test_forced_gzip_truncation_stays_in_hierarchy(self):
        data = gzip.compress(SCENARIO)
        for cut in range(1, len(data) - 9):
            with pytest.raises(UnexpectedEof):
                list(tokenize(data[:cut], compressed=True))

    def test_forced_gzip_on_raw_data(self):
        with pytest.raises(CorruptData):
            list(tokenize(SCENARIO, compressed=True))

    def test_corrupt_deflate_data(self):
        data = bytearray(gzip.compress(SCENARIO))
        data[10] = 0xFF  # reserved deflate block type
        with pytest.raises(NBTError):
            list(tokenize(bytes(data)))

    def test_error_context_points_at_open_list(self):
        with pytest.raises(UnexpectedEof) as excinfo:
            list(raw_reader(SCENARIO[:-3]))
        assert excinfo.value.context == "root/y"


class TestReaderState:
    """Position tracking and resource handling."""

    def test_path_follows_nesting(self):
        reader = raw_reader(SCENARIO)
        assert reader.path is None
        reader.next_token()
        assert reader.path == "root"
        reader.next_token()
        reader.next_token()
        assert reader.path == "root/y"
        for _ in range(3):
            reader.next_token()
        assert reader.path == "root"
        reader.next_token()
        assert reader.path is None

    def test_compression_detection(self):
        assert list(Reader(SCENARIO)) == SCENARIO_TOKENS
        assert list(Reader(gzip.compress(SCENARIO))) == SCENARIO_TOKENS

    def test_caller_stream_left_open(self):
        stream = io.BytesIO(gzip.compress(SCENARIO))
        with Reader(stream) as reader:
            list(reader)
        assert not stream.closed
