import json

import pytest
from click.testing import CliRunner

from clause_weaver.cli import cli

DOCUMENT = {
    "sec": [{"b": [
        {"i": [{"tlp": "Dear {name},"}]},
        {"i": [{"tlp": "{confidentiality}"}]},
        {"i": [{"tlp": "Signed on {date}"}]},
    ]}]
}

CLAUSE = {
    "id": "nda",
    "name": "Confidentiality",
    "initial": "The Receiving Party",
    "content": json.dumps({"sec": [{"b": [{"i": [{"tlp": "The Receiving Party shall keep secrets."}]}]}]}),
}


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point the CLI at a private config directory and work inside tmp_path."""
    config_dir = tmp_path / ".clause_weaver"
    monkeypatch.setattr("clause_weaver.cli.CONFIG_DIR", config_dir)
    monkeypatch.setattr("clause_weaver.cli.ENV_FILE", config_dir / ".env")
    monkeypatch.setattr("clause_weaver.cli.CLAUSES_DIR", config_dir / "clauses")
    monkeypatch.delenv("CLAUSE_WEAVER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CLAUSE_WEAVER_LOG_FORMAT", raising=False)
    monkeypatch.chdir(tmp_path)
    return config_dir


def write_json(path, data):
    path.write_text(json.dumps(data))
    return path


def paragraphs(path):
    return [block["i"][0]["tlp"] for block in json.loads(path.read_text())["sec"][0]["b"]]


def add_catalog_clause(home, data=CLAUSE):
    clauses_dir = home / "clauses"
    clauses_dir.mkdir(parents=True, exist_ok=True)
    write_json(clauses_dir / f"{data['id']}.json", data)


class TestLogging:

    def test_unknown_log_level(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["--log-level", "chatty", "clause", "list"])
        assert result.exit_code != 0
        assert "Unknown log level" in result.output

    def test_unknown_log_format_from_env(self, home, monkeypatch):
        monkeypatch.setenv("CLAUSE_WEAVER_LOG_FORMAT", "xml")
        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "list"])
        assert result.exit_code != 0
        assert "Unknown log format" in result.output


class TestConfigSet:

    def test_set_creates_env_file(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "set", "CLAUSE_WEAVER_LOG_LEVEL", "DEBUG"])
        assert result.exit_code == 0
        assert "Saved" in result.output
        assert "CLAUSE_WEAVER_LOG_LEVEL=DEBUG" in (home / ".env").read_text()

    def test_set_preserves_other_keys(self, home):
        home.mkdir()
        (home / ".env").write_text("# settings\nA=1\nB=2\n")

        runner = CliRunner()
        runner.invoke(cli, ["config", "set", "B", "3"])
        content = (home / ".env").read_text()
        assert "A=1" in content
        assert "B=3" in content
        assert "B=2" not in content


class TestConfigShow:

    def test_show_no_config(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "No config" in result.output

    def test_show_masks_values(self, home):
        home.mkdir()
        (home / ".env").write_text("TOKEN=very-secret\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "TOKEN" in result.output
        assert "very-secret" not in result.output
        assert "very****" in result.output


class TestClauseCommands:

    def test_list_empty(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "list"])
        assert result.exit_code == 0
        assert "No clauses" in result.output

    def test_add_and_list(self, home, tmp_path):
        src = write_json(tmp_path / "nda.json", CLAUSE)

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "add", "nda.json"])
        assert result.exit_code == 0
        assert "added" in result.output
        assert (home / "clauses" / "nda.json").exists()

        result = runner.invoke(cli, ["clause", "list"])
        assert "nda" in result.output
        assert "Confidentiality" in result.output
        assert src.exists()

    def test_add_overwrites_existing(self, home, tmp_path):
        add_catalog_clause(home)
        write_json(tmp_path / "nda.json", dict(CLAUSE, name="NDA"))

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "add", "nda.json"])
        assert result.exit_code == 0
        assert "Overwriting" in result.output

    def test_add_invalid_clause(self, home, tmp_path):
        write_json(tmp_path / "bad.json", {"id": "bad", "name": "Bad"})

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "add", "bad.json"])
        assert result.exit_code == 1
        assert not (home / "clauses" / "bad.json").exists()

    def test_add_clause_with_invalid_content(self, home, tmp_path):
        write_json(tmp_path / "bad.json", dict(CLAUSE, content="not a document"))

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "add", "bad.json"])
        assert result.exit_code == 1
        assert "not a valid document" in result.output

    def test_add_rejects_path_like_id(self, home, tmp_path):
        write_json(tmp_path / "evil.json", dict(CLAUSE, id="../escaped"))

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "add", "evil.json"])
        assert result.exit_code == 1
        assert not (home / "escaped.json").exists()

    def test_remove_rejects_path_like_id(self, home):
        home.mkdir()
        (home / "escaped.json").write_text("{}")

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "remove", "../escaped"])
        assert result.exit_code != 0
        assert "Invalid clause id" in result.output
        assert (home / "escaped.json").exists()

    def test_list_search(self, home):
        add_catalog_clause(home)
        add_catalog_clause(home, dict(CLAUSE, id="law", name="Governing Law"))

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "list", "--search", "law"])
        assert result.exit_code == 0
        assert "Governing Law" in result.output
        assert "Confidentiality" not in result.output

    def test_show_existing(self, home):
        add_catalog_clause(home)

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "show", "nda"])
        assert result.exit_code == 0
        assert "The Receiving Party" in result.output

    def test_show_nonexistent(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "show", "nope"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_remove_existing(self, home):
        add_catalog_clause(home)

        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "remove", "nda"])
        assert result.exit_code == 0
        assert "removed" in result.output
        assert not (home / "clauses" / "nda.json").exists()

    def test_remove_nonexistent(self, home):
        runner = CliRunner()
        result = runner.invoke(cli, ["clause", "remove", "nope"])
        assert result.exit_code != 0
        assert "not found" in result.output


class TestValidate:

    def test_valid_document(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", "doc.json"])
        assert result.exit_code == 0
        assert "valid document" in result.output
        assert "Blocks: 3" in result.output
        assert "Placeholders: 3" in result.output

    def test_invalid_document(self, home, tmp_path):
        write_json(tmp_path / "doc.json", {"sec": [{"b": "oops"}]})

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", "doc.json"])
        assert result.exit_code == 1
        assert "must be a list" in result.output

    def test_preview(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", "doc.json", "--preview"])
        assert result.exit_code == 0
        assert "Signed on {date}" in result.output


class TestPlaceholders:

    def test_lists_names(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["placeholders", "doc.json"])
        assert result.exit_code == 0
        for name in ("name", "confidentiality", "date"):
            assert name in result.output

    def test_invalid_document(self, home, tmp_path):
        (tmp_path / "doc.json").write_text("{not json")

        runner = CliRunner()
        result = runner.invoke(cli, ["placeholders", "doc.json"])
        assert result.exit_code == 1
        assert "not a valid document" in result.output
        assert "No placeholders" not in result.output

    def test_no_placeholders(self, home, tmp_path):
        write_json(tmp_path / "doc.json", {"sec": [{"b": [{"i": [{"tlp": "plain"}]}]}]})

        runner = CliRunner()
        result = runner.invoke(cli, ["placeholders", "doc.json"])
        assert result.exit_code == 0
        assert "No placeholders" in result.output


class TestFill:

    def test_fill_to_output_file(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--value", "name=Ann", "--output", "out.json"])
        assert result.exit_code == 0
        assert "Saved to" in result.output
        assert paragraphs(tmp_path / "out.json") == ["Dear Ann,", "{confidentiality}", "Signed on {date}"]

    def test_fill_from_values_file(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)
        write_json(tmp_path / "values.json", {"name": "Ann", "date": "1 May"})

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--values-file", "values.json", "--value", "date=2 May",
                                     "--output", "out.json"])
        assert result.exit_code == 0
        assert paragraphs(tmp_path / "out.json") == ["Dear Ann,", "{confidentiality}", "Signed on 2 May"]

    def test_fill_to_stdout(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--value", "date=today"])
        assert result.exit_code == 0
        assert "Signed on today" in result.output

    def test_malformed_value(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--value", "name"])
        assert result.exit_code != 0
        assert "NAME=VALUE" in result.output

    def test_requires_values(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json"])
        assert result.exit_code != 0
        assert "at least one" in result.output

    def test_invalid_document(self, home, tmp_path):
        (tmp_path / "doc.json").write_text("{not json")

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--value", "a=b", "--output", "out.json"])
        assert result.exit_code == 1
        assert "not a valid document" in result.output
        assert not (tmp_path / "out.json").exists()

    def test_nothing_filled_warns(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["fill", "doc.json", "--value", "other=x", "--output", "out.json"])
        assert result.exit_code == 0
        assert "No placeholders were filled" in result.output


class TestInsertAndRemove:

    def test_insert_after_placeholder(self, home, tmp_path):
        add_catalog_clause(home)
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["insert", "doc.json", "nda", "--output", "out.json"])
        assert result.exit_code == 0
        assert paragraphs(tmp_path / "out.json") == [
            "Dear {name},",
            "{confidentiality}",
            "The Receiving Party shall keep secrets.",
            "Signed on {date}",
        ]

    def test_insert_then_remove(self, home, tmp_path):
        add_catalog_clause(home)
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        runner.invoke(cli, ["insert", "doc.json", "nda", "--output", "with.json"])
        result = runner.invoke(cli, ["remove", "with.json", "nda", "--output", "without.json"])
        assert result.exit_code == 0
        assert json.loads((tmp_path / "without.json").read_text()) == DOCUMENT

    def test_insert_unknown_clause(self, home, tmp_path):
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["insert", "doc.json", "nope"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_insert_into_invalid_document(self, home, tmp_path):
        add_catalog_clause(home)
        (tmp_path / "doc.json").write_text("not json")

        runner = CliRunner()
        result = runner.invoke(cli, ["insert", "doc.json", "nda"])
        assert result.exit_code != 0
        assert "could not be inserted" in result.output

    def test_remove_clause_not_in_document(self, home, tmp_path):
        add_catalog_clause(home)
        write_json(tmp_path / "doc.json", DOCUMENT)

        runner = CliRunner()
        result = runner.invoke(cli, ["remove", "doc.json", "nda"])
        assert result.exit_code != 0
        assert "was not found" in result.output
