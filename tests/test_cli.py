"""Tests for the rosmsgc command line."""

import pytest

from rosmsgc import cli
from rosmsgc.build import Toolchain

from conftest import POINT_MSG


@pytest.fixture
def point_file(tmp_path):
    path = tmp_path / "Point.msg"
    path.write_text(POINT_MSG)
    return path


@pytest.fixture(autouse=True)
def no_search_path(monkeypatch):
    monkeypatch.delenv("AMENT_PREFIX_PATH", raising=False)


class TestMsgCommand:

    def test_generates_unit(self, point_file, tmp_path):
        out = tmp_path / "out"
        assert cli.main(["msg", str(point_file), "geometry_msgs", str(out)]) == 0
        assert (out / "Point_msg.cs").exists()

    def test_target_option(self, point_file, tmp_path):
        out = tmp_path / "out"
        assert cli.main(["gen", str(point_file), "geometry_msgs", str(out), "-t", "python"]) == 0
        assert (out / "Point_msg.py").exists()

    def test_config_override(self, point_file, tmp_path):
        out = tmp_path / "out"
        argv = ["msg", str(point_file), "geometry_msgs", str(out), "--set", "generator.target=python"]
        assert cli.main(argv) == 0
        assert (out / "Point_msg.py").exists()

    def test_parse_failure_exits_1(self, tmp_path, capsys):
        bad = tmp_path / "Bad.msg"
        bad.write_text("int32 a\nnot valid at all\n")
        assert cli.main(["msg", str(bad), "demo", str(tmp_path / "out")]) == 1
        err = capsys.readouterr().err
        assert "Exception parsing" in err
        assert "Bad.msg:2" in err

    def test_unresolved_type_exits_1(self, tmp_path):
        msg = tmp_path / "Holder.msg"
        msg.write_text("Missing m\n")
        assert cli.main(["msg", str(msg), "demo", str(tmp_path / "out")]) == 1

    def test_missing_file_exits_1(self, tmp_path):
        assert cli.main(["msg", str(tmp_path / "Nope.msg"), "demo", str(tmp_path)]) == 1

    def test_service_file_exits_0(self, tmp_path):
        srv = tmp_path / "Add.srv"
        srv.write_text("int64 a\n---\nint64 sum\n")
        assert cli.main(["msg", str(srv), "demo", str(tmp_path / "out")]) == 0
        assert not (tmp_path / "out").exists()

    def test_missing_config_exits_1(self, point_file, tmp_path):
        argv = ["msg", str(point_file), "demo", str(tmp_path), "--config", str(tmp_path / "no.yaml")]
        assert cli.main(argv) == 1


class TestCompileCommand:

    def test_compile_errors_exit_0(self, tmp_path, monkeypatch, capsys):
        src = tmp_path / "generated"
        src.mkdir()
        (src / "Point_msg.cs").write_text("broken\n")
        monkeypatch.setattr(
            Toolchain, "compile",
            lambda self, sources, refs, out: (1, "Point_msg.cs(1,1): error CS0116: broken\n"),
        )
        assert cli.main(["compile", str(src), str(tmp_path / "geometry_msgs.dll")]) == 0
        assert "CS0116" in capsys.readouterr().err

    def test_missing_directory_exits_0(self, tmp_path, capsys):
        assert cli.main(["compile", str(tmp_path / "missing"), str(tmp_path / "x.dll")]) == 0
        assert "Directory does not exist" in capsys.readouterr().err

    def test_missing_compiler_exits_0(self, tmp_path, capsys):
        src = tmp_path / "generated"
        src.mkdir()
        (src / "Point_msg.cs").write_text("// point\n")
        argv = [
            "compile", str(src), str(tmp_path / "x.dll"),
            "--set", "build.compiler=rosmsgc-no-such-compiler",
        ]
        assert cli.main(argv) == 0
        assert "Compiler not found" in capsys.readouterr().err


class TestValidateCommand:

    def test_valid(self, point_file, capsys):
        assert cli.main(["validate", str(point_file), "geometry_msgs"]) == 0
        assert "Message is valid!" in capsys.readouterr().err

    def test_invalid(self, tmp_path):
        bad = tmp_path / "Bad.msg"
        bad.write_text("uint8 X=300\n")
        assert cli.main(["validate", str(bad), "demo"]) == 1


def test_no_command(capsys):
    assert cli.main([]) == 0
    assert "rosmsgc" in capsys.readouterr().out


def test_verbose_sets_debug_level(point_file, tmp_path):
    from rosmsgc.log import LogLevel, NodeLogger

    cli.main(["validate", str(point_file), "geometry_msgs", "-v"])
    assert NodeLogger.get_level() is LogLevel.DEBUG
