"""
Test the canonical object encoding.
"""

import pytest

from content_store import InvalidObjectError
from content_store.integrity.canonical import (
    commit_payload,
    decode_object,
    encode_object,
    object_header,
    parse_commit_payload,
    parse_tree_payload,
    tree_payload,
)


class TestHeader:

    def test_encode_object(self):
        assert encode_object("blob", b"abc") == b"blob 3\x00abc"
        assert encode_object("tree", b"") == b"tree 0\x00"

    def test_length_is_in_bytes(self):
        payload = "ü".encode('utf-8')
        assert encode_object("commit", payload) == b"commit 2\x00" + payload

    def test_unknown_type(self):
        with pytest.raises(InvalidObjectError):
            encode_object("tag", b"")

    def test_object_header(self):
        assert object_header("blob", 11) == b"blob 11\x00"
        with pytest.raises(InvalidObjectError):
            object_header("tag", 0)

    def test_decode_object(self):
        assert decode_object(b"blob 3\x00abc") == ("blob", b"abc")
        assert decode_object(b"tree 0\x00") == ("tree", b"")

    def test_payload_may_contain_nul(self):
        assert decode_object(b"blob 3\x00a\x00c") == ("blob", b"a\x00c")

    @pytest.mark.parametrize("data", [
        b"",
        b"blob 3abc",
        b"blob\x00abc",
        b"tag 3\x00abc",
        b"blob x\x00abc",
        b"blob -1\x00",
        b"blob 4\x00abc",
        b"blob 2\x00abc",
        b"\xff\xfe 1\x00a",
    ])
    def test_decode_malformed(self, data):
        with pytest.raises(InvalidObjectError):
            decode_object(data)


class TestTreePayload:

    def test_digest_embedded_as_hex_text(self):
        digest = "ab" * 32
        payload = tree_payload([("100644", "f", digest)])

        assert payload == b"100644 f\x00" + digest.encode('ascii')
        assert len(payload) == len("100644 f\0") + 64

    def test_parse_round_trip(self):
        entries = [("040000", "dir", "1" * 64), ("100755", "run me", "2" * 64)]
        assert parse_tree_payload(tree_payload(entries)) == entries

    def test_parse_empty(self):
        assert parse_tree_payload(b"") == []

    def test_parse_truncated_digest(self):
        with pytest.raises(InvalidObjectError):
            parse_tree_payload(b"100644 f\x00" + b"1" * 63)

    @pytest.mark.parametrize("names", [(b"b", b"a"), (b"a", b"a"), (b"\xc3\xbc", b"z")])
    def test_parse_requires_strictly_increasing_names(self, names):
        payload = b"".join(b"100644 " + n + b"\x00" + b"1" * 64 for n in names)

        with pytest.raises(InvalidObjectError):
            parse_tree_payload(payload)


class TestCommitPayload:

    def test_format(self):
        payload = commit_payload("t" * 64, None, "msg", "Name", "e@x", "2024-01-01T00:00:00Z")

        assert payload == (
            b"tree " + b"t" * 64 + b"\n"
            b"parent \n"
            b"author Name <e@x>\n"
            b"date 2024-01-01T00:00:00Z\n"
            b"\n"
            b"msg"
        )

    def test_parse(self):
        payload = commit_payload("1" * 64, "2" * 64, "", "N", "e@x", "ts")

        assert parse_commit_payload(payload) == {
            'tree_digest': "1" * 64,
            'parent_digest': "2" * 64,
            'message': "",
            'author_name': "N",
            'author_email': "e@x",
            'timestamp': "ts",
        }

    @pytest.mark.parametrize("payload", [
        b"tree x\nparent \nauthor a <b>\ndate d",
        b"tree x\nparent \nauthor a b\ndate d\n\nmsg",
        b"tree x\nauthor a <b>\ndate d\n\nmsg",
        b"parent \ntree x\nauthor a <b>\ndate d\n\nmsg",
        b"\xff\n\n",
    ])
    def test_parse_malformed(self, payload):
        with pytest.raises(InvalidObjectError):
            parse_commit_payload(payload)
