from finworker.normalization.fields import dig, first_present, first_text


class TestDig:
    def test_nested(self) -> None:
        assert dig({"a": {"b": 1}}, "a.b") == 1

    def test_missing_hop(self) -> None:
        assert dig({"a": 1}, "a.b") is None
        assert dig(None, "a") is None


class TestFirstPresent:
    def test_first_non_none_wins(self) -> None:
        source = {"x": None, "y": 0, "z": 5}
        assert first_present(source, "x", "y", "z") == 0

    def test_first_text_skips_blank(self) -> None:
        assert first_text({"a": "  ", "b": " B "}, "a") is None
        assert first_text({"b": " B "}, "a", "b") == "B"
