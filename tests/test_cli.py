"""Tests for the mdcite CLI."""

import orjson
import pytest
from click.testing import CliRunner

from mdcite.cli import main

ANSWER = (
    "See [Docs](https://a.test/docs) and <https://a.test/faq>, "
    "not `[code](x)`.\n"
    "\n"
    "[r]: https://a.test/r\n"
)

HITS = [
    {"webUrl": "https://a.test/docs", "extracts": [{"text": "Docs intro"}]},
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def answer_file(tmp_path):
    path = tmp_path / "answer.md"
    path.write_text(ANSWER, encoding="utf-8")
    return path


@pytest.fixture
def hits_file(tmp_path):
    path = tmp_path / "hits.json"
    path.write_bytes(orjson.dumps(HITS))
    return path


class TestRewriteMode:
    def test_stdout(self, runner, answer_file):
        result = runner.invoke(main, [str(answer_file)])
        assert result.exit_code == 0
        assert result.output == (
            "See [1] and [2], not `[code](x)`.\n\n[r]: https://a.test/r\n\n"
        )

    def test_refs(self, runner, answer_file):
        result = runner.invoke(main, [str(answer_file), "--refs"])
        assert result.exit_code == 0
        assert "## References" in result.output
        assert "[1] Docs: https://a.test/docs" in result.output

    def test_stdin(self, runner):
        result = runner.invoke(main, ["-"], input="Go <https://a.test>")
        assert result.exit_code == 0
        assert result.output == "Go [1]\n"

    def test_output_directory(self, runner, answer_file, tmp_path):
        out_dir = tmp_path / "out"
        result = runner.invoke(main, [str(answer_file), "-o", f"{out_dir}/"])
        assert result.exit_code == 0
        saved = out_dir / "answer.md"
        assert saved.read_text(encoding="utf-8").startswith("See [1] and [2]")

    def test_output_custom_filename(self, runner, answer_file, tmp_path):
        out_dir = tmp_path / "out"
        result = runner.invoke(
            main, [str(answer_file), "-o", f"{out_dir}/", "-f", "cited"],
        )
        assert result.exit_code == 0
        assert (out_dir / "cited.md").exists()


class TestJsonModes:
    def test_links(self, runner, answer_file):
        result = runner.invoke(main, [str(answer_file), "-m", "links"])
        assert result.exit_code == 0
        assert orjson.loads(result.output) == [
            {"title": "Docs", "url": "https://a.test/docs"},
            {"title": "code", "url": "x"},
            {"title": "", "url": "https://a.test/faq"},
        ]

    def test_citations_with_hits(self, runner, answer_file, hits_file):
        result = runner.invoke(
            main, [str(answer_file), "-m", "citations", "--hits", str(hits_file)],
        )
        assert result.exit_code == 0
        payload = orjson.loads(result.output)
        assert payload["text"].startswith("See [1] and [2]")
        assert payload["citations"][0] == {
            "index": 1,
            "title": "Docs",
            "url": "https://a.test/docs",
            "content": "Docs intro",
            "filepath": "https://a.test/docs",
        }

    def test_citations_to_file(self, runner, answer_file, tmp_path):
        out = tmp_path / "cited.json"
        result = runner.invoke(main, [str(answer_file), "-m", "citations", "-o", str(out)])
        assert result.exit_code == 0
        assert orjson.loads(out.read_bytes())["text"].startswith("See [1]")

    def test_mode_from_environment(self, runner, answer_file):
        result = runner.invoke(main, [str(answer_file)], env={"MDCITE_MODE": "links"})
        assert result.exit_code == 0
        assert orjson.loads(result.output)[0]["title"] == "Docs"


class TestErrors:
    def test_missing_source(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "nope.md")])
        assert result.exit_code != 0
        assert "Source must be" in result.output

    def test_invalid_hits(self, runner, answer_file, tmp_path):
        bad = tmp_path / "hits.json"
        bad.write_text("{not json", encoding="utf-8")
        result = runner.invoke(main, [str(answer_file), "--hits", str(bad)])
        assert result.exit_code != 0
        assert "Invalid hits JSON" in result.output

    def test_bad_mode(self, runner, answer_file):
        result = runner.invoke(main, [str(answer_file), "-m", "html"])
        assert result.exit_code == 2
