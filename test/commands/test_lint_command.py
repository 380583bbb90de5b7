import io

import pytest

from sqlstyle.commands.lint import discover, main


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return str(path)


def test_compliant_file(workdir, capsys):
    path = write(workdir / "query.sql", "SELECT first_name\n  FROM staff;\n")

    assert main([path]) == 0
    assert capsys.readouterr().out == ""


def test_file_with_violations(workdir, capsys):
    path = write(workdir / "query.sql", "select first_name\n  from staff;\n")

    assert main([path]) == 1
    assert capsys.readouterr().out.splitlines() == [
        f"{path}:1:0: error [keyword_casing] Keyword 'select' should be uppercase: 'SELECT'",
        f"{path}:2:2: error [keyword_casing] Keyword 'from' should be uppercase: 'FROM'",
    ]


def test_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("select 1"))

    assert main([]) == 1
    assert capsys.readouterr().out == (
        "-:1:0: error [keyword_casing] Keyword 'select' should be uppercase: 'SELECT'\n"
    )


def test_fix_file(workdir, capsys):
    path = write(workdir / "query.sql", "select a,b\nfrom staff;\n")

    assert main(["--fix", path]) == 0
    assert (workdir / "query.sql").read_text() == "SELECT a, b\n  FROM staff;\n"
    assert capsys.readouterr().out == ""


def test_fix_reports_remaining_violations(workdir, capsys):
    path = write(workdir / "query.sql", "select myName from staff")

    assert main(["--fix", path]) == 1
    assert (workdir / "query.sql").read_text() == "SELECT myName FROM staff"
    assert "[identifier_naming]" in capsys.readouterr().out


def test_fix_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("select a from staff"))

    assert main(["--fix", "-"]) == 0
    assert capsys.readouterr().out == "SELECT a FROM staff"


def test_discover_directories_and_globs(workdir):
    first = write(workdir / "queries" / "a.sql", "SELECT 1")
    second = write(workdir / "queries" / "reports" / "b.sql", "SELECT 2")
    write(workdir / "queries" / "notes.txt", "not sql")
    third = write(workdir / "other" / "c.sql", "SELECT 3")

    assert discover([str(workdir / "queries")]) == [first, second]
    assert discover([str(workdir / "other" / "*.sql"), third]) == [third]
    assert discover(["-"]) == ["-"]


def test_discover_missing_path(workdir):
    with pytest.raises(FileNotFoundError):
        discover([str(workdir / "missing.sql")])


def test_missing_path(workdir, capsys):
    assert main([str(workdir / "missing.sql")]) == 2
    assert "No such file or directory" in capsys.readouterr().err


def test_directory(workdir, capsys):
    write(workdir / "queries" / "good.sql", "SELECT 1;\n")
    bad = write(workdir / "queries" / "nested" / "bad.sql", "select 1;\n")

    assert main(["queries"]) == 1
    output = capsys.readouterr().out.splitlines()
    assert len(output) == 1
    assert output[0].startswith("queries/nested/bad.sql:1:0:")
    assert bad.endswith("queries/nested/bad.sql")


def test_fatal_document_does_not_stop_others(workdir, capsys):
    broken = write(workdir / "broken.sql", "SELECT 'abc FROM staff;")
    bad = write(workdir / "bad.sql", "select 1")

    assert main([broken, bad]) == 2
    captured = capsys.readouterr()
    assert captured.err.strip() == (
        f"{broken}: fatal: Unterminated string literal at line 1, column 7"
    )
    assert captured.out.startswith(f"{bad}:1:0: error [keyword_casing]")


def test_table_format(workdir, capsys):
    path = write(workdir / "query.sql", "select 1")

    assert main(["--format", "table", path]) == 1
    header, separator, row = capsys.readouterr().out.splitlines()
    assert header.split(" | ")[:3] == ["path" + " " * (len(path) - 4), "line", "column"]
    assert set(separator.replace(" | ", "")) == {"-"}
    assert "keyword_casing" in row
    assert row.endswith("yes")


def test_list_rules(capsys):
    assert main(["--list-rules"]) == 0
    output = capsys.readouterr().out
    assert "keyword_casing" in output
    assert "union_temp_table_avoidance" in output
    assert "[fixable]" in output


def test_rules_option(workdir, capsys):
    path = write(workdir / "query.sql", "select myName from staff")

    assert main(["--rules", "identifier_naming", path]) == 1
    assert "[keyword_casing]" not in capsys.readouterr().out


def test_unknown_rule(workdir, capsys):
    path = write(workdir / "query.sql", "SELECT 1")

    assert main(["--rules", "keyword_casing,no_such_rule", path]) == 2
    assert "unknown rules no_such_rule" in capsys.readouterr().err


def test_options_overrides(workdir, capsys):
    path = write(workdir / "query.sql", "SELECT first_name\nFROM staff")

    assert main(["--no-river", path]) == 0
    assert main(["--keyword-case", "lower", "--no-river", path]) == 1
    assert main(["--max-identifier-length", "5", "--no-river", path]) == 1
    output = capsys.readouterr().out
    assert "should be lowercase" in output
    assert "'first_name' is 10 bytes long, more than 5" in output


def test_invalid_identifier_length(workdir, capsys):
    path = write(workdir / "query.sql", "SELECT 1")

    assert main(["--max-identifier-length", "0", path]) == 2
    assert "positive integer" in capsys.readouterr().err


def test_config_file_is_found(workdir, capsys):
    write(workdir / ".sqlstyle.toml", '[sqlstyle]\nkeyword_case = "lower"\n')
    path = write(workdir / "queries" / "query.sql", "SELECT 1")

    assert main([path]) == 1
    assert "should be lowercase" in capsys.readouterr().out


def test_explicit_config_file(workdir, capsys):
    config = write(workdir / "custom.toml", "[sqlstyle]\nenabled_rules = []\n")
    path = write(workdir / "query.sql", "select myName from staff")

    assert main(["--config", config, path]) == 0


def test_invalid_config_file(workdir, capsys):
    config = write(workdir / "custom.toml", "[sqlstyle]\nmax_length = 3\n")
    path = write(workdir / "query.sql", "SELECT 1")

    assert main(["--config", config, path]) == 2
    assert "unknown settings max_length" in capsys.readouterr().err


def test_parallel_jobs(workdir, capsys):
    paths = [write(workdir / f"query{idx}.sql", "select 1") for idx in range(3)]
    paths.append(write(workdir / "broken.sql", "SELECT (1"))

    assert main(["--jobs", "2", *paths]) == 2
    captured = capsys.readouterr()
    assert len(captured.out.splitlines()) == 3
    assert "Unbalanced parenthesis" in captured.err


@pytest.mark.parametrize("jobs", ["-1", "two"])
def test_invalid_jobs(workdir, capsys, jobs):
    path = write(workdir / "query.sql", "SELECT 1")

    with pytest.raises(SystemExit) as err:
        main(["--jobs", jobs, path])

    assert err.value.code == 2
    assert "--jobs" in capsys.readouterr().err
