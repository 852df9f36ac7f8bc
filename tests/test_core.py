"""
Tests for katasumi.core.engine — key normalization, application detection,
alias stripping, relevance scoring, Levenshtein similarity, the Shortcut
model, and the SQLite ShortcutCatalog.
"""

import pytest
from katasumi.core.config import APP_ALIASES
from katasumi.core.engine import (
    Platform,
    SearchFilters,
    Shortcut,
    ShortcutCatalog,
    Source,
    SourceType,
    aliases_for,
    detect_app_in_query,
    fuzzy_similarity,
    keys_equivalent,
    levenshtein_distance,
    make_shortcut_id,
    normalize_keys,
    score_shortcut,
    strip_app_aliases,
)
from katasumi.exceptions import CatalogFormatError


# =============================================================================
# Key normalization
# =============================================================================

class TestNormalizeKeys:
    """Canonical key strings: lowercase, '+'-joined, modifiers first."""

    @pytest.mark.parametrize("raw,expected", [
        ("Ctrl+Shift+P", "ctrl+shift+p"),
        ("Shift+Ctrl+P", "ctrl+shift+p"),
        ("Ctrl-Shift-p", "ctrl+shift+p"),
        ("Control+Shift+P", "ctrl+shift+p"),
        ("Command+Shift+P", "shift+cmd+p"),
        ("⌘⇧P", "shift+cmd+p"),
        ("⇧⌘P", "shift+cmd+p"),
        ("⌘K", "cmd+k"),
        ("Cmd+K", "cmd+k"),
        ("command-k", "cmd+k"),
        ("Option+Command+Esc", "alt+cmd+esc"),
        ("meta+x", "cmd+x"),
        ("Super+L", "cmd+l"),
        ("Win+L", "cmd+l"),
        ("⌃⌥⌫", "ctrl+alt+backspace"),
        ("Ctrl__Alt  Del", "ctrl+alt+del"),
        ("Ctrl+B %", "ctrl+b+%"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_keys(raw) == expected

    def test_modifier_order_is_independent_of_input_order(self):
        variants = ["Shift+Ctrl+P", "Ctrl+Shift+P", "p+shift+ctrl", "shift ctrl p"]
        assert {normalize_keys(v) for v in variants} == {"ctrl+shift+p"}

    def test_all_modifiers_fixed_order(self):
        assert normalize_keys("cmd+shift+alt+ctrl+k") == "ctrl+alt+shift+cmd+k"

    @pytest.mark.parametrize("raw", ["Esc", "⎋", "escape"])
    def test_single_key_without_modifiers(self, raw):
        assert normalize_keys(raw) == raw.replace("⎋", "esc").lower()

    def test_non_modifiers_keep_relative_order(self):
        assert normalize_keys("g g") == "g+g"
        assert normalize_keys("Ctrl+K Ctrl+S") == "ctrl+ctrl+k+s"
        assert normalize_keys("j k") == "j+k"

    def test_glyph_words(self):
        assert normalize_keys("⏎") == "enter"
        assert normalize_keys("␣") == "space"
        assert normalize_keys("⇥") == "tab"

    def test_alias_only_replaced_as_whole_word(self):
        assert normalize_keys("windows+e") == "windows+e"
        assert normalize_keys("optional") == "optional"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_yields_empty_string(self, raw):
        assert normalize_keys(raw) == ""

    @pytest.mark.parametrize("raw", [
        "⌘⇧P", "Ctrl-Shift-p", "Command+Option+Esc", "ctrl_win", "Ctrl+B %",
        "  Alt + F4 ", "g g", "+++", "Win+L",
    ])
    def test_idempotent(self, raw):
        once = normalize_keys(raw)
        assert normalize_keys(once) == once

    def test_keys_equivalent(self):
        assert keys_equivalent("⌘C", "Command+C")
        assert not keys_equivalent("Cmd+C", "Ctrl+C")


# =============================================================================
# Application detection
# =============================================================================

class TestDetectAppInQuery:
    """Alias-table pass first (declaration order), then raw app names."""

    def test_abbreviation_of_alias(self):
        assert detect_app_in_query("vsc", ["vscode"]) == "vscode"
        assert detect_app_in_query("vsc go to definition", ["vscode"]) == "vscode"

    def test_one_char_gap_is_not_an_abbreviation(self):
        assert detect_app_in_query("window", ["windows"]) is None

    def test_exact_alias_word(self):
        assert detect_app_in_query("win lock", ["windows"]) == "windows"
        assert detect_app_in_query("osx spotlight", ["macos"]) == "macos"

    def test_multi_word_alias_prefix(self):
        assert detect_app_in_query("visual studio code copy", ["vscode"]) == "vscode"
        assert detect_app_in_query("vs code", ["vscode"]) == "vscode"

    def test_app_must_be_in_candidates(self):
        assert detect_app_in_query("vscode copy", ["tmux"]) is None
        assert detect_app_in_query("vscode copy", []) is None

    def test_candidate_names_are_case_insensitive(self):
        assert detect_app_in_query("tmux split", ["TMUX"]) == "tmux"

    def test_declaration_order_breaks_ties(self):
        # "code" aliases vscode, "terminal" aliases bash; vscode is declared first
        assert detect_app_in_query("terminal code", ["bash", "vscode"]) == "vscode"
        assert detect_app_in_query("terminal code", ["vscode", "bash"]) == "vscode"

    def test_fallback_to_raw_app_name(self):
        assert detect_app_in_query("photoshop crop", ["photoshop"]) == "photoshop"
        assert detect_app_in_query("photoshop", ["photoshop"]) == "photoshop"

    def test_fallback_abbreviation_needs_minimum_ratio(self):
        assert detect_app_in_query("photo crop", ["photoshop"]) == "photoshop"
        assert detect_app_in_query("ph crop", ["photoshop"]) is None

    def test_fallback_ratio_is_configurable(self):
        assert detect_app_in_query("ph crop", ["photoshop"], min_ratio=0.2) == "photoshop"

    def test_gap_is_configurable(self):
        assert detect_app_in_query("window", ["windows"], min_gap=1) == "windows"

    def test_single_letter_is_not_an_abbreviation(self):
        assert detect_app_in_query("t split", ["tmux"]) is None
        assert detect_app_in_query("tm split", ["tmux"]) == "tmux"

    def test_no_app_words(self):
        assert detect_app_in_query("copy", ["vscode", "tmux", "windows", "macos"]) is None

    def test_empty_query(self):
        assert detect_app_in_query("", ["vscode"]) is None

    def test_deterministic(self):
        apps = ["tmux", "vscode", "macos", "windows"]
        results = {detect_app_in_query("mac code tm", apps) for _ in range(20)}
        assert results == {"vscode"}


# =============================================================================
# Alias stripping
# =============================================================================

class TestStripAppAliases:
    """Whole-word alias removal without building patterns from alias text."""

    def test_strips_abbreviation_alias(self):
        assert strip_app_aliases("vsc copy line", aliases_for("vscode")) == "copy line"

    def test_strips_multi_word_alias(self):
        assert strip_app_aliases("copy in visual studio code", aliases_for("vscode")) == "copy in"

    def test_only_alias_leaves_empty_query(self):
        assert strip_app_aliases("vscode", aliases_for("vscode")) == ""

    def test_every_occurrence_case_insensitive(self):
        assert strip_app_aliases("Code  Review  CODE", ("code",)) == "review"

    def test_word_boundary(self):
        assert strip_app_aliases("decode base64", ("code",)) == "decode base64"

    def test_special_characters_are_literal(self):
        assert strip_app_aliases("c++ (code) c++", ("c++",)) == "(code)"

    def test_unknown_app_uses_its_own_name(self):
        assert aliases_for("photoshop") == ("photoshop",)
        assert aliases_for("vim") == APP_ALIASES["vim"]


# =============================================================================
# Levenshtein
# =============================================================================

class TestLevenshtein:

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("", "abc", 3),
        ("abc", "", 3),
        ("abc", "abc", 0),
        ("ab", "ba", 2),  # no transposition discount
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected

    def test_distance_is_symmetric(self):
        assert levenshtein_distance("paste", "pastry") == levenshtein_distance("pastry", "paste")

    def test_similarity(self):
        assert fuzzy_similarity("", "") == 1.0
        assert fuzzy_similarity("abc", "") == 0.0
        assert fuzzy_similarity("paste", "pastr") == pytest.approx(0.8)


# =============================================================================
# Relevance scoring
# =============================================================================

class TestScoreShortcut:
    """Tiered scoring; the best tier reached wins."""

    def test_exact_action(self):
        assert score_shortcut("copy", [], "copy") == 1.0

    def test_exact_action_is_case_insensitive(self):
        assert score_shortcut("Copy", [], "copy") == 1.0

    def test_action_prefix(self):
        assert score_shortcut("copy", [], "cop") == 0.8

    def test_exact_tag(self):
        assert score_shortcut("duplicate selection", ["copy"], "copy") == 0.7

    def test_prefix_beats_exact_tag(self):
        assert score_shortcut("copy all", ["copy"], "copy") == 0.8

    def test_action_substring(self):
        assert score_shortcut("show command palette", [], "command") == 0.6

    def test_all_words_in_action(self):
        assert score_shortcut("split pane horizontally", [], "pane split") == 0.5

    def test_single_word_does_not_use_word_tier(self):
        assert score_shortcut("split pane", [], "xsplit") == 0.0

    def test_tag_substring(self):
        assert score_shortcut("open file", ["clipboard-history"], "clipboard") == 0.45

    def test_fuzzy_tier(self):
        # similarity 0.8 -> 0.3 + 0.3 * 0.2
        assert score_shortcut("paste", [], "pastr") == pytest.approx(0.36)

    def test_fuzzy_tier_range(self):
        score = score_shortcut("undo", [], "undp")
        assert 0.3 < score <= 0.4

    def test_similarity_at_threshold_scores_nothing(self):
        assert fuzzy_similarity("ab", "ax") == 0.5
        assert score_shortcut("ab", [], "ax") == 0.0

    def test_query_word_in_tag(self):
        assert score_shortcut("lock computer", ["security", "lock"], "screen security") == 0.25

    def test_no_match(self):
        assert score_shortcut("copy", ["clipboard"], "zzz") == 0.0

    def test_scores_are_bounded(self):
        cases = [
            ("copy", ["clipboard"], "copy"),
            ("copy line down", ["line"], "line"),
            ("go to definition", [], "definition go"),
        ]
        for action, tags, query in cases:
            assert 0.0 <= score_shortcut(action, tags, query) <= 1.0


# =============================================================================
# Shortcut model
# =============================================================================

class TestShortcut:

    def test_from_dict_minimal(self):
        s = Shortcut.from_dict({"app": "vim", "action": "Save", "keys": {"linux": ":w"}})
        assert s.app == "vim"
        assert s.binding("linux") == ":w"
        assert s.binding(Platform.MAC) is None
        assert s.tags == ()

    def test_default_app(self):
        s = Shortcut.from_dict({"action": "Save"}, default_app="vim")
        assert s.app == "vim"

    def test_missing_app_or_action(self):
        with pytest.raises(CatalogFormatError, match="app"):
            Shortcut.from_dict({"action": "Save"})
        with pytest.raises(CatalogFormatError, match="action"):
            Shortcut.from_dict({"app": "vim"})

    def test_unknown_platform(self):
        with pytest.raises(CatalogFormatError, match="Unknown platform"):
            Shortcut.from_dict({"app": "vim", "action": "Save", "keys": {"amiga": "A+S"}})

    def test_keys_must_be_mapping(self):
        with pytest.raises(CatalogFormatError):
            Shortcut.from_dict({"app": "vim", "action": "Save", "keys": ["ctrl+s"]})

    def test_empty_binding_is_unbound(self):
        s = Shortcut.from_dict({"app": "vim", "action": "Save", "keys": {"mac": "", "linux": ":w"}})
        assert not s.has_binding("mac")
        assert "mac" not in s.keys

    def test_derived_id_is_stable(self):
        a = Shortcut.from_dict({"app": "vim", "action": "Save", "context": "Normal"})
        b = Shortcut.from_dict({"app": "Vim", "action": "save", "context": "normal"})
        assert a.id == b.id == make_shortcut_id("vim", "Save", "Normal")

    def test_tags_from_comma_string(self):
        s = Shortcut.from_dict({"app": "vim", "action": "Save", "tags": "write, file,"})
        assert s.tags == ("write", "file")

    def test_source_round_trip(self):
        record = {
            "app": "vim", "action": "Save",
            "source": {"type": "official", "url": "https://vimhelp.org", "confidence": 0.9},
        }
        s = Shortcut.from_dict(record)
        assert s.source == Source(SourceType.OFFICIAL, "https://vimhelp.org", "", 0.9)
        assert Shortcut.from_dict(s.to_dict()) == s

    def test_bad_source_confidence(self):
        with pytest.raises(CatalogFormatError):
            Shortcut.from_dict({"app": "vim", "action": "Save",
                                "source": {"type": "official", "confidence": 3}})

    @pytest.mark.parametrize("extra,match", [
        ({"source": {"type": "official", "confidence": "high"}}, "must be a number"),
        ({"source": {"confidence": None}}, "must be a number"),
        ({"source": "official"}, "'source' must be an object"),
        ({"source": ["official"]}, "'source' must be an object"),
        ({"tags": 5}, "'tags'"),
        ({"tags": {"copy": True}}, "'tags'"),
    ])
    def test_malformed_fields_raise_format_error(self, extra, match):
        with pytest.raises(CatalogFormatError, match=match):
            Shortcut.from_dict({"app": "vim", "action": "Save", **extra})

    def test_non_string_context_and_category(self):
        s = Shortcut.from_dict({"app": "vim", "action": "Save", "context": 3, "category": 7})
        assert (s.context, s.category) == ("3", "7")
        assert s.id == make_shortcut_id("vim", "Save", "3")

    def test_hashable_by_id(self, sample_shortcuts):
        assert len(set(sample_shortcuts)) == len(sample_shortcuts)
        copy = Shortcut.from_dict(sample_shortcuts[0].to_dict())
        assert copy == sample_shortcuts[0]
        assert hash(copy) == hash(sample_shortcuts[0])

    def test_keys_are_read_only(self):
        s = Shortcut(id="vim-save", app="vim", action="Save", keys={"linux": ":w"})
        with pytest.raises(TypeError):
            s.keys["mac"] = "Cmd+S"
        assert s.binding("linux") == ":w"

    def test_keys_copied_from_caller(self):
        raw = {"linux": ":w"}
        s = Shortcut(id="vim-save", app="vim", action="Save", keys=raw)
        raw["mac"] = "Cmd+S"
        assert not s.has_binding("mac")

    def test_platform_coerce(self):
        assert Platform.coerce("MAC") is Platform.MAC
        with pytest.raises(ValueError, match="Unknown platform"):
            Platform.coerce("beos")

    def test_search_filters_coerce_platform(self):
        assert SearchFilters(platform="Linux").platform is Platform.LINUX


# =============================================================================
# ShortcutCatalog (SQLite storage)
# =============================================================================

class TestShortcutCatalog:
    """SQLite catalog operations."""

    @pytest.fixture
    def catalog(self, tmp_path, sample_shortcuts):
        cat = ShortcutCatalog(tmp_path / "catalog.db")
        cat.add_shortcuts(sample_shortcuts, source_file=tmp_path / "sample.json")
        yield cat
        cat.close()

    def test_search_returns_insertion_order(self, catalog, sample_shortcuts):
        results = catalog.search_shortcuts(limit=100)
        assert [s.id for s in results] == [s.id for s in sample_shortcuts]

    def test_round_trip_preserves_fields(self, catalog, sample_shortcuts):
        assert catalog.search_shortcuts(limit=100) == sample_shortcuts

    def test_filter_by_app_case_insensitive(self, catalog):
        results = catalog.search_shortcuts(app="TMUX", limit=100)
        assert [s.id for s in results] == ["tmux-split-h", "tmux-new-window"]

    def test_filter_by_category(self, catalog):
        results = catalog.search_shortcuts(category="Editing", limit=100)
        assert [s.id for s in results] == [
            "vscode-copy-line", "vscode-copy", "windows-copy", "macos-copy",
        ]

    def test_limit(self, catalog):
        assert len(catalog.search_shortcuts(limit=3)) == 3
        assert catalog.search_shortcuts(limit=0) == []

    def test_get_shortcut(self, catalog):
        s = catalog.get_shortcut("vscode-palette")
        assert s is not None
        assert s.binding("mac") == "⌘⇧P"
        assert catalog.get_shortcut("missing") is None

    def test_replace_by_id(self, catalog):
        updated = Shortcut(id="vscode-copy", app="vscode", action="Copy Selection",
                           keys={"mac": "Cmd+C"})
        catalog.add_shortcut(updated)
        assert catalog.get_shortcut("vscode-copy").action == "Copy Selection"
        assert catalog.get_stats()["shortcuts"] == 10

    def test_list_apps(self, catalog):
        apps = {info.name: info for info in catalog.list_apps()}
        assert set(apps) == {"vscode", "tmux", "windows", "macos"}
        assert apps["vscode"].shortcut_count == 4
        assert apps["vscode"].platforms == ["mac", "windows", "linux"]
        assert apps["tmux"].platforms == ["mac", "linux"]
        assert apps["windows"].categories == ["Editing", "System"]

    def test_stats(self, catalog):
        assert catalog.get_stats() == {"imported_files": 0, "shortcuts": 10, "apps": 4}

    def test_file_bookkeeping(self, catalog, tmp_path):
        source = tmp_path / "sample.json"
        source.write_text("[]", encoding="utf-8")
        assert not catalog.is_file_imported(source)
        catalog.mark_file_imported(source, 10)
        assert catalog.is_file_imported(source)

        source.write_text("[ ]", encoding="utf-8")
        assert not catalog.is_file_imported(source)

    def test_clear_file_entries(self, catalog, tmp_path):
        catalog.clear_file_entries(tmp_path / "sample.json")
        assert catalog.get_stats()["shortcuts"] == 0

    def test_close_is_idempotent(self, tmp_path):
        cat = ShortcutCatalog(tmp_path / "x.db")
        cat.close()
        cat.close()

    @pytest.mark.asyncio
    async def test_fetch_candidates(self, catalog):
        results = await catalog.fetch_candidates(app="vscode", category="Editing", limit=100)
        assert [s.id for s in results] == ["vscode-copy-line", "vscode-copy"]
