import json
import os

import pytest

from genscript.errors import ExecutionError
from genscript.handlers import ai as ai_handler
from genscript.handlers import assign
from genscript.http_client import FetchError


# --- SET / GLOBAL ------------------------------------------------------------

def test_set_interpolates_plain_values(run_script):
    run = run_script("SET name = Ada\nSET greeting = Hello {name} = friend")
    assert run.context.get("greeting") == "Hello Ada = friend"
    assert "[SET] greeting = Hello Ada = friend" in run.out


def test_set_without_equals_fails(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("SET name Ada")
    assert ei.value.kind == "SET"
    assert "=" in ei.value.reason


def test_set_prompts(run_script, prompter):
    prompter.answers = ["demo", "2", "1,3"]
    run = run_script("\n".join([
        "SET project = input: Project name?",
        "SET kind = select:Kind for {project}:[lib, cli]",
        "SET extras = multiselect:Extras:[docs, ci, lint]",
    ]))
    assert run.context.get("project") == "demo"
    assert run.context.get("kind") == "cli"
    assert run.context.get("extras") == ["docs", "lint"]
    assert "? Kind for demo" in prompter.shown


def test_select_retries_until_valid(run_script, prompter):
    prompter.answers = ["9", "nope", "b"]
    run = run_script("SET pick = select:Pick:[a, b]")
    assert run.context.get("pick") == "b"


def test_malformed_select_fails(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("SET pick = select:Pick:a, b")
    assert "select:<prompt>" in ei.value.reason


def test_set_load_files_and_folders(run_script, tmp_path):
    (tmp_path / "notes.txt").write_text("hello file", encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "b.py").write_text("", encoding="utf-8")
    (tmp_path / "pkg" / "a.py").write_text("", encoding="utf-8")
    (tmp_path / "pkg" / "sub").mkdir()
    run = run_script("\n".join([
        "SET notes = @load notes.txt",
        "SET code = files in pkg",
        "SET dirs = folders in pkg",
    ]))
    assert run.context.get("notes") == "hello file"
    assert run.context.get("code") == ["a.py", "b.py"]
    assert run.context.get("dirs") == ["sub"]


def test_set_load_missing_file_fails(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("SET notes = load nowhere.txt")
    assert "cannot load" in ei.value.reason


def test_set_http_uses_fetcher(run_script, monkeypatch):
    seen = []

    def fake_fetch(url):
        seen.append(url)
        return "body text"

    monkeypatch.setattr(assign, "fetch_text", fake_fetch)
    run = run_script("SET host = example.org\nSET page = http https://{host}/x")
    assert seen == ["https://example.org/x"]
    assert run.context.get("page") == "body text"


def test_set_http_failure_is_error(run_script, monkeypatch):
    def failing(url):
        raise FetchError(f"GET {url} returned HTTP 500", status=500)

    monkeypatch.setattr(assign, "fetch_text", failing)
    with pytest.raises(ExecutionError) as ei:
        run_script("SET page = @http https://example.org")
    assert "HTTP 500" in ei.value.reason


def test_global_persists_and_syncs(run_script, store):
    store.set("OTHER", "from-before")
    run = run_script("GLOBAL author = Ada")
    assert store.get("author") == "Ada"
    assert run.context.get("author") == "Ada"
    assert run.context.get("OTHER") == "from-before"
    assert "(saved to <memory>)" in run.out


# --- AI ----------------------------------------------------------------------

def test_ai_posts_to_ollama(run_script, store, monkeypatch):
    calls = []

    def fake_post(url, payload, timeout=None):
        calls.append((url, payload))
        return {"response": "generated text"}

    monkeypatch.setattr(ai_handler, "post_json", fake_post)
    store.set("AI_MODEL", "tiny")
    store.set("AI_SYSTEM_PROMPT", "You help {who}")
    run = run_script("SET who = devs\nAI Describe {who}\nSET summary = @ai Summarise")
    url, payload = calls[0]
    assert url == "http://127.0.0.1:11434/api/generate"
    assert payload["model"] == "tiny"
    assert payload["prompt"] == "Describe devs"
    assert payload["system"] == "You help devs"
    assert payload["stream"] is False
    assert payload["options"]["temperature"] == 0.7
    assert run.context.get("summary") == "generated text"
    assert "[AI]: generated text" in run.out
    ai_step = next(s for s in run.executor.receipt["steps"] if s["kind"] == "AI")
    assert ai_step["message"] == "generated text"


def test_ai_connection_failure_hint(run_script, monkeypatch):
    def refused(url, payload, timeout=None):
        raise FetchError("POST failed: connection refused")

    monkeypatch.setattr(ai_handler, "post_json", refused)
    with pytest.raises(ExecutionError) as ei:
        run_script("AI hello")
    assert "ensure Ollama is running" in ei.value.reason


def test_ai_empty_prompt(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("AI")
    assert "empty" in ei.value.reason


# --- SHELL -------------------------------------------------------------------

def test_shell_runs_in_tracked_directory(run_script, tmp_path):
    (tmp_path / "sub").mkdir()
    run = run_script("> cd sub\n> echo made > marker.txt\nWRITE \"x\" to here.txt")
    assert (tmp_path / "sub" / "marker.txt").exists()
    assert (tmp_path / "sub" / "here.txt").exists()
    assert run.executor.cwd == str(tmp_path / "sub")
    assert run.executor.output_dir == str(tmp_path)


def test_shell_nonzero_exit_is_error(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("> echo oops 1>&2; exit 3")
    assert ei.value.kind == "SHELL"
    assert "status 3" in ei.value.reason
    assert "oops" in ei.value.reason


def test_shell_interpolates(run_script, tmp_path):
    run_script("SET name = out\n> touch {name}.txt")
    assert (tmp_path / "out.txt").exists()


# --- WRITE / SAVE / FILL -------------------------------------------------------

def test_write_literal_and_variable(run_script, tmp_path):
    run_script("\n".join([
        "SET name = Ada",
        'WRITE "Hi {name}" to greet/{name}.txt',
        "SET cfg = {\"a\": 1}",
        "SAVE name to name.txt",
    ]), initial={"data": {"k": [1, 2]}})
    assert (tmp_path / "greet" / "Ada.txt").read_text(encoding="utf-8") == "Hi Ada"
    assert (tmp_path / "name.txt").read_text(encoding="utf-8") == "Ada"


def test_write_object_variable_as_json(run_script, tmp_path):
    run_script("WRITE data to data.json", initial={"data": {"k": [1, 2]}})
    assert json.loads((tmp_path / "data.json").read_text(encoding="utf-8")) == {"k": [1, 2]}


def test_write_bad_syntax(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("WRITE something somewhere")
    assert "Use:" in ei.value.reason


def test_fill_writes_interpolated_content(run_script, tmp_path):
    text = 'SET name = demo\nFILL {name}/README.md\n"\n# {name}\n\n  keep {unknown}\n"'
    run_script(text)
    body = (tmp_path / "demo" / "README.md").read_text(encoding="utf-8")
    assert body == "# demo\n\n  keep {unknown}"


def test_fill_refuses_directory(run_script, tmp_path):
    (tmp_path / "taken").mkdir()
    with pytest.raises(ExecutionError) as ei:
        run_script('FILL taken\n"\nx\n"')
    assert "directory" in ei.value.reason


def test_fill_requires_content(run_script):
    with pytest.raises(ExecutionError):
        run_script('FILL empty.txt\n"\n"')


# --- COMPILE -----------------------------------------------------------------

def test_compile_templates(run_script, tmp_path):
    doc = {
        "project": {"name": "demo"},
        "templates": {
            "{project.name}/README.md": "# {project.name} by {author}",
            "{project.name}/cfg.json": "{\"v\": \"{version}\"}",
            "skipped.bin": {"not": "a string"},
        },
    }
    (tmp_path / "template.json").write_text(json.dumps(doc), encoding="utf-8")
    run_script("SET author = Ada\nCOMPILE template.json", initial={"version": "1.0"})
    assert (tmp_path / "demo" / "README.md").read_text(encoding="utf-8") == "# demo by Ada"
    assert (tmp_path / "demo" / "cfg.json").read_text(encoding="utf-8") == '{"v": "1.0"}'
    assert not (tmp_path / "skipped.bin").exists()


def test_compile_requires_templates_object(run_script, tmp_path):
    (tmp_path / "bad.json").write_text('{"templates": []}', encoding="utf-8")
    with pytest.raises(ExecutionError) as ei:
        run_script("COMPILE bad.json")
    assert "templates" in ei.value.reason


# --- IMPORT ------------------------------------------------------------------

def test_import_runs_in_same_context(run_script, tmp_path):
    (tmp_path / "lib.gen").write_text(
        "---\ndescription: shared bits\n---\nSET from_lib = yes {name}\n", encoding="utf-8"
    )
    run = run_script("SET name = Ada\nIMPORT lib.gen\nLOG {from_lib}")
    assert run.executor.receipt["logs"] == ["yes Ada"]
    assert "[IMPORT] Script metadata: shared bits" in run.out


def test_import_depth_is_capped(run_script, tmp_path):
    (tmp_path / "loop.gen").write_text("IMPORT loop.gen\n", encoding="utf-8")
    with pytest.raises(ExecutionError) as ei:
        run_script("IMPORT loop.gen", max_import_depth=4)
    assert "import depth limit (4)" in ei.value.reason
    assert ei.value.kind == "IMPORT"


def test_import_missing_file(run_script):
    with pytest.raises(ExecutionError) as ei:
        run_script("IMPORT nope.gen")
    assert "failed to import" in ei.value.reason


def test_import_parse_error_surfaces(run_script, tmp_path):
    (tmp_path / "broken.gen").write_text('IF a is "b"\nLOG x\n', encoding="utf-8")
    with pytest.raises(ExecutionError) as ei:
        run_script("IMPORT broken.gen")
    assert "never closed" in ei.value.reason


# --- TASK --------------------------------------------------------------------

def test_task_handler_runs_children(run_script, tmp_path):
    run = run_script("TASK only\nSET a = 1\nWRITE \"{a}\" to a.txt\n", task="only")
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "1"
    assert os.path.basename(run.executor.output_dir) == tmp_path.name
