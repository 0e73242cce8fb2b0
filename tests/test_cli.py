import json
from pathlib import Path

import pytest

from genscript.cli import main as genscript_main


def _read_json(p: Path):
    return json.loads(p.read_text(encoding="utf-8"))


@pytest.fixture
def globals_file(tmp_path):
    return tmp_path / "globals.json"


def _script(tmp_path: Path, text: str, name: str = "project.gen") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_run_writes_receipt(tmp_path, globals_file):
    script = _script(tmp_path, 'SET who = {name}\nLOG hello {who}\nWRITE "hi {who}" to out/hi.txt\n')
    config = tmp_path / "cfg.json"
    config.write_text(json.dumps({"name": "Ada"}), encoding="utf-8")
    out = tmp_path / "receipt.json"
    rc = genscript_main([
        str(script),
        "--config", str(config),
        "--output", str(tmp_path / "build"),
        "--globals-file", str(globals_file),
        "--receipt-out", str(out),
        "--quiet",
    ])
    assert rc == 0
    assert (tmp_path / "build" / "out" / "hi.txt").read_text(encoding="utf-8") == "hi Ada"
    j = _read_json(out)
    assert j["status"] == "ok"
    assert j["engine"] == "genscript"
    assert j["logs"] == ["hello Ada"]
    assert j["script"]["hash"].startswith("sha256:")
    assert j["env"]["who"] == "Ada"
    assert [s["kind"] for s in j["steps"]] == ["SET", "LOG", "WRITE"]


def test_execution_error_exits_1(tmp_path, globals_file, capsys):
    script = _script(tmp_path, "LOG before\nWRITE missing to x.txt\nLOG after\n")
    out = tmp_path / "receipt.json"
    rc = genscript_main([
        str(script), "--output", str(tmp_path), "--globals-file", str(globals_file),
        "--receipt-out", str(out),
    ])
    assert rc == 1
    err = capsys.readouterr().err
    assert "Error executing WRITE at line 2:" in err
    j = _read_json(out)
    assert j["status"] == "error"
    assert j["logs"] == ["before"]
    assert j["steps"][-1]["status"] == "error"


def test_parse_error_exits_1(tmp_path, capsys):
    script = _script(tmp_path, 'IF a is "b"\nLOG x\n')
    rc = genscript_main([str(script), "--output", str(tmp_path)])
    assert rc == 1
    assert "line 1" in capsys.readouterr().err


def test_missing_script_exits_1(tmp_path):
    assert genscript_main([str(tmp_path / "nope.gen")]) == 1


def test_verify_refuses_to_run_on_errors(tmp_path, globals_file, capsys):
    script = _script(tmp_path, 'WRITE "x" to ran.txt\nLOOP bad\nEND\n')
    rc = genscript_main([
        str(script), "--verify", "--output", str(tmp_path), "--globals-file", str(globals_file),
    ])
    assert rc == 1
    assert not (tmp_path / "ran.txt").exists()
    assert "line 2 (LOOP)" in capsys.readouterr().err


def test_verify_warnings_do_not_block(tmp_path, globals_file):
    script = _script(tmp_path, "LOG {maybe}\n")
    out = tmp_path / "receipt.json"
    rc = genscript_main([
        str(script), "--verify", "--quiet", "--output", str(tmp_path),
        "--globals-file", str(globals_file), "--receipt-out", str(out),
    ])
    assert rc == 0
    j = _read_json(out)
    assert j["verify"]["errors"] == []
    assert len(j["verify"]["warnings"]) == 1


def test_emit_ast_and_list_tasks(tmp_path, capsys):
    script = _script(tmp_path, "TASK build\nLOG b\n\nTASK test\nLOG t\n")
    ast_out = tmp_path / "ast.json"
    rc = genscript_main([str(script), "--emit-ast", str(ast_out), "--list-tasks"])
    assert rc == 0
    assert capsys.readouterr().out.split() == ["build", "test"]

    rc = genscript_main([str(script), "--emit-ast", str(ast_out), "--task", "nope", "--no-globals",
                         "--output", str(tmp_path), "--quiet"])
    assert rc == 1
    doc = _read_json(ast_out)
    assert [n["payload"] for n in doc["nodes"]] == ["build", "test"]


def test_task_flag_selects_task(tmp_path, globals_file):
    script = _script(tmp_path, "TASK build\nWRITE \"b\" to b.txt\n\nTASK test\nWRITE \"t\" to t.txt\n")
    rc = genscript_main([
        str(script), "--task", "test", "--quiet", "--output", str(tmp_path), "--globals-file", str(globals_file),
    ])
    assert rc == 0
    assert (tmp_path / "t.txt").exists()
    assert not (tmp_path / "b.txt").exists()


def test_global_persists_across_runs(tmp_path, globals_file):
    first = _script(tmp_path, "GLOBAL author = Ada\n", "first.gen")
    second = _script(tmp_path, 'WRITE "{author}" to author.txt\n', "second.gen")
    common = ["--quiet", "--output", str(tmp_path), "--globals-file", str(globals_file)]
    assert genscript_main([str(first)] + common) == 0
    assert _read_json(globals_file) == {"author": "Ada"}
    assert genscript_main([str(second)] + common) == 0
    assert (tmp_path / "author.txt").read_text(encoding="utf-8") == "Ada"


def test_parse_folder_and_init(tmp_path, monkeypatch):
    src = tmp_path / "tpl"
    (src / "app").mkdir(parents=True)
    (src / "app" / "main.py").write_text("# {name}", encoding="utf-8")
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)

    assert genscript_main(["--parse-folder", str(src)]) == 0
    assert _read_json(work / "template.json") == {"templates": {"app/main.py": "# {name}"}}

    assert genscript_main(["--init"]) == 0
    assert (work / "template.gen").exists()
    assert genscript_main(["--init"]) == 0


def test_no_script_is_usage_error():
    with pytest.raises(SystemExit) as ei:
        genscript_main([])
    assert ei.value.code == 2
