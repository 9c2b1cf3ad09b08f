"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from alchemist.__main__ import cli
from alchemist.morphology.engine import MorphologyEngine


@pytest.fixture
def invoke(tmp_path):
    """Run the CLI with its home directory under tmp_path."""
    runner = CliRunner()
    env = {
        "ALCHEMIST_HOME": str(tmp_path),
        "ALCHEMIST_DB_PATH": None,
        "ALCHEMIST_PROFILE_DIR": None,
    }

    def run(*args):
        return runner.invoke(cli, list(args), env=env)

    return run


class TestInit:
    """alchemist init."""

    def test_init(self, invoke, tmp_path):
        result = invoke("init")
        assert result.exit_code == 0
        assert (tmp_path / "profiles" / "demo.yaml").exists()
        assert (tmp_path / "alchemist.db").exists()

    def test_init_twice(self, invoke):
        invoke("init")
        result = invoke("init")
        assert result.exit_code == 0
        assert "already installed" in result.output


class TestTranslate:
    """alchemist translate."""

    def test_translate(self, invoke):
        result = invoke("translate", "I see#v (a dog#n)")
        assert result.exit_code == 0
        assert "demo (annotated)" in result.output
        assert "New words" in result.output

    def test_json_output(self, invoke):
        result = invoke("translate", "I see#v (a dog#n)", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["mode"] == "annotated"
        assert data["text"].startswith("I ")
        assert data["tree"]["phrase_type"] == "clause"

    def test_lexicon_persists_between_runs(self, invoke):
        first = json.loads(invoke("translate", "see#v (a dog#n)", "--json").stdout)
        second = json.loads(invoke("translate", "see#v (a dog#n)", "--json").stdout)
        assert first["text"] == second["text"]
        assert second["generated"] == []

    def test_basic_mode(self, invoke):
        result = invoke("translate", "I will find the answers", "--mode", "basic", "--json")
        assert json.loads(result.stdout)["mode"] == "basic"

    def test_parse_error(self, invoke):
        result = invoke("translate", "dog#n.XYZ")
        assert result.exit_code == 1
        assert "Parse error" in result.output
        assert "^^^^" in result.output

    def test_fallback_flag(self, invoke):
        result = invoke("translate", "dog#n.XYZ", "--fallback")
        assert result.exit_code == 0
        assert "basic" in result.output
        assert "parse_fallback" in result.output

    def test_structure_error(self, invoke):
        result = invoke("translate", "see#v (the#det)")
        assert result.exit_code == 1
        assert "Structure error" in result.output

    def test_unknown_conlang(self, invoke):
        result = invoke("translate", "dog#n", "--conlang", "nope")
        assert result.exit_code == 1
        assert "Unknown conlang" in result.output

    def test_internal_key_error_is_not_unknown_conlang(self, invoke, monkeypatch):
        def broken(self, leaf):
            raise KeyError("slot")

        monkeypatch.setattr(MorphologyEngine, "inflect_leaf", broken)
        result = invoke("translate", "dog#n")
        assert isinstance(result.exception, KeyError)
        assert "Unknown conlang" not in result.output

    def test_path_like_conlang(self, invoke):
        result = invoke("translate", "dog#n", "--conlang", "../demo")
        assert result.exit_code == 1
        assert "Unknown conlang" in result.output


class TestGenerate:
    """alchemist generate."""

    def test_generate(self, invoke):
        result = invoke("generate", "--pos", "v", "--count", "3")
        assert result.exit_code == 0
        assert "Sample verb words" in result.output

    def test_bad_pos(self, invoke):
        result = invoke("generate", "--pos", "zz")
        assert result.exit_code == 2


class TestCheck:
    """alchemist check."""

    def test_demo_valid(self, invoke):
        result = invoke("check")
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_broken_profile(self, invoke, tmp_path):
        profiles = tmp_path / "profiles"
        profiles.mkdir()
        (profiles / "bad.yaml").write_text(
            "id: bad\n"
            "phonology:\n"
            "  classes: {C: [p], V: [a]}\n"
            "  syllable_shapes: [CX]\n"
        )
        result = invoke("check", "--conlang", "bad")
        assert result.exit_code == 1
        assert "problem" in result.output

    def test_invalid_profile_file(self, invoke, tmp_path):
        profiles = tmp_path / "profiles"
        profiles.mkdir()
        (profiles / "bad.yaml").write_text("id: bad\nphonology: {}\nsyntax: {word_order: XYZ}\n")
        result = invoke("check", "--conlang", "bad")
        assert result.exit_code == 1
        assert "word_order" in result.output

    def test_malformed_yaml(self, invoke, tmp_path):
        profiles = tmp_path / "profiles"
        profiles.mkdir()
        (profiles / "torn.yaml").write_text("id: torn\nphonology: {classes: [\n")
        result = invoke("check", "--conlang", "torn")
        assert result.exit_code == 1
        assert "YAML" in result.output


class TestLexiconCommands:
    """alchemist lexicon ..."""

    def test_list_empty(self, invoke):
        result = invoke("lexicon", "list")
        assert result.exit_code == 0
        assert "is empty" in result.output

    def test_list_after_translate(self, invoke):
        invoke("translate", "I see#v (a dog#n)")
        result = invoke("lexicon", "list")
        assert result.exit_code == 0
        assert "3 entries" in result.output

    def test_override_and_search(self, invoke):
        result = invoke("lexicon", "override", "dog", "n", "wuf")
        assert result.exit_code == 0

        result = invoke("lexicon", "search", "wuf", "--form")
        assert result.exit_code == 0
        assert "dog" in result.output

        data = json.loads(invoke("translate", "dog#n.PL", "--json").stdout)
        assert data["text"] == "wufi"

    def test_irregular_override_needs_entry(self, invoke):
        result = invoke("lexicon", "override", "go", "v", "wena", "--attr", "PST")
        assert result.exit_code == 1
        assert "not in the lexicon" in result.output

    def test_irregular_override(self, invoke):
        invoke("lexicon", "override", "go", "v", "ko")
        result = invoke("lexicon", "override", "go", "v", "wena", "--attr", "pst")
        assert result.exit_code == 0

        data = json.loads(invoke("translate", "go#v.PST", "--json").stdout)
        assert data["text"] == "wena"

    def test_remove(self, invoke):
        invoke("lexicon", "override", "dog", "n", "wuf")
        assert "Removed" in invoke("lexicon", "remove", "dog", "n").output
        assert "No entry" in invoke("lexicon", "remove", "dog", "n").output

    def test_homonyms(self, invoke):
        assert "No homonyms" in invoke("lexicon", "homonyms").output
        invoke("lexicon", "override", "dog", "n", "wuf")
        invoke("lexicon", "override", "hound", "n", "wuf")
        result = invoke("lexicon", "homonyms")
        assert "wuf" in result.output
        assert "hound" in result.output
