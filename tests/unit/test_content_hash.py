from finworker.normalization.content_hash import compute_content_hash

VERSION = {"schema_version": "v1", "parser_version": "p1", "prompt_version": "c1", "model": "m"}


class TestComputeContentHash:
    def test_key_order_does_not_matter(self) -> None:
        a = compute_content_hash({"a": 1, "b": {"c": 2, "d": 3}}, VERSION)
        b = compute_content_hash({"b": {"d": 3, "c": 2}, "a": 1}, dict(reversed(VERSION.items())))
        assert a == b

    def test_version_change_changes_hash(self) -> None:
        payload = {"a": 1}
        assert compute_content_hash(payload, VERSION) != compute_content_hash(
            payload, {**VERSION, "prompt_version": "c2"}
        )

    def test_payload_change_changes_hash(self) -> None:
        assert compute_content_hash({"a": 1}, VERSION) != compute_content_hash({"a": 2}, VERSION)

    def test_hex_digest(self) -> None:
        digest = compute_content_hash({}, VERSION)
        assert len(digest) == 64
        int(digest, 16)
