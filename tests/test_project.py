import json
import subprocess
from pathlib import Path
from unittest import mock

from drillrunner.project import Crate, RustAnalyzerProject


def test_crate_defaults():
    crate = Crate(root_module="exercises/intro/intro1.rs")
    assert crate.to_dict() == {
        "root_module": "exercises/intro/intro1.rs",
        "edition": "2021",
        "deps": [],
        "cfg": ["test"],
    }


def test_add_path_only_rust_files():
    project = RustAnalyzerProject()
    project.add_path("exercises/intro/intro1.rs")
    project.add_path("exercises/intro/README.md")
    project.add_path("exercises/intro")
    assert [c.root_module for c in project.crates] == [str(Path("exercises/intro/intro1.rs"))]


def test_exercises_to_json_finds_nested(tmp_path):
    (tmp_path / "intro").mkdir()
    (tmp_path / "intro" / "intro1.rs").write_text("fn main() {}")
    (tmp_path / "intro" / "README.md").write_text("readme")
    (tmp_path / "if").mkdir()
    (tmp_path / "if" / "if1.rs").write_text("fn main() {}")
    project = RustAnalyzerProject()
    project.exercises_to_json(tmp_path)
    roots = sorted(Path(c.root_module).relative_to(tmp_path).as_posix() for c in project.crates)
    assert roots == ["if/if1.rs", "intro/intro1.rs"]


def test_exercises_to_json_empty(tmp_path):
    project = RustAnalyzerProject()
    project.exercises_to_json(tmp_path / "missing")
    assert project.crates == []


def test_write_to_disk_round_trip(tmp_path):
    project = RustAnalyzerProject(sysroot_src="/sysroot")
    project.add_path("a.rs")
    target = tmp_path / "rust-project.json"
    project.write_to_disk(target)
    text = target.read_text()
    assert json.loads(text) == project.to_dict()
    assert " " not in text


def test_sysroot_from_environment(monkeypatch):
    monkeypatch.setenv("RUST_SRC_PATH", "/custom/src")
    project = RustAnalyzerProject()
    with mock.patch("drillrunner.project.subprocess.run") as run:
        project.get_sysroot_src()
    assert project.sysroot_src == "/custom/src"
    assert run.call_count == 0


def test_sysroot_from_rustc(monkeypatch, capsys):
    monkeypatch.delenv("RUST_SRC_PATH", raising=False)
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"/opt/toolchain\n", stderr=b"")
    project = RustAnalyzerProject()
    with mock.patch("drillrunner.project.subprocess.run", return_value=completed) as run:
        project.get_sysroot_src()
    assert run.call_args.args[0] == ["rustc", "--print", "sysroot"]
    assert Path(project.sysroot_src) == Path("/opt/toolchain/lib/rustlib/src/rust/library")
    assert "Determined toolchain: /opt/toolchain\n" in capsys.readouterr().out