# tests/common/test_localization.py
"""
Tests for localised message templates.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from src.common.localization import get_lang_dict_path, get_text, load_lang_dict


@pytest.fixture
def lang_dict(temp_lang_dict_file: Path):
    load_lang_dict.cache_clear()
    with patch("src.common.localization.get_lang_dict_path", return_value=temp_lang_dict_file):
        yield
    load_lang_dict.cache_clear()


class TestLangDictFile:

    def test_path(self) -> None:
        path = get_lang_dict_path()

        assert path.name == "lang_dict.json"
        assert path.parent.name == "config"

    def test_shipped_dictionary_has_english(self) -> None:
        load_lang_dict.cache_clear()
        lang_dict = load_lang_dict()

        for key in ("BOOKING_REQUEST_TITLE", "TRIP_ENDED_BODY", "TOP_UP_ADDED_BODY", "RIDE_FINISHED_BODY"):
            assert "en" in lang_dict[key], key


class TestGetText:

    def test_formats_arguments(self, lang_dict) -> None:
        assert get_text("GREETING", "en", name="Aung") == "Hello, Aung!"

    def test_requested_language(self, lang_dict) -> None:
        assert get_text("GREETING", "my", name="Aung") == "မင်္ဂလာပါ Aung"

    def test_falls_back_to_english(self, lang_dict) -> None:
        assert get_text("TRIP_ENDED_BODY", "my", amount=12900, currency="ks") == (
            "Your trip is complete. You earned 12900 ks"
        )

    def test_falls_back_to_any_translation(self, lang_dict) -> None:
        assert get_text("ONLY_MY", "en") == "မြန်မာ"

    def test_unknown_key(self, lang_dict) -> None:
        assert get_text("NO_SUCH_KEY") == "[NO_SUCH_KEY]"
        assert get_text("NO_SUCH_KEY", default="fallback") == "fallback"

    def test_missing_placeholder_keeps_template(self, lang_dict) -> None:
        assert get_text("GREETING", "en", other="x") == "Hello, {name}!"

    def test_missing_file(self, tmp_path: Path) -> None:
        load_lang_dict.cache_clear()
        with patch("src.common.localization.get_lang_dict_path", return_value=tmp_path / "absent.json"):
            assert get_text("GREETING") == "[GREETING]"
        load_lang_dict.cache_clear()
