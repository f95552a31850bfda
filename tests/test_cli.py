"""Tests for the command line interface."""

import json

from cli import main, parse_args


class TestParseArgs:
    """Tests for argument parsing."""

    def test_positional(self):
        """Test the required arguments and defaults."""
        parsed = parse_args(["env", "abort", "deps"])

        assert parsed.module == "env"
        assert parsed.name == "abort"
        assert parsed.deps_path == "deps"
        assert parsed.format == "text"
        assert parsed.max_depth == 0
        assert parsed.ext is None
        assert not parsed.keep_going

    def test_options(self):
        """Test optional flags."""
        parsed = parse_args([
            "env", "abort", "deps",
            "-f", "json", "--ext", "rlib", ".a", "--max-depth", "2",
            "--keep-going", "--show-members", "-v",
        ])

        assert parsed.format == "json"
        assert parsed.ext == ["rlib", ".a"]
        assert parsed.max_depth == 2
        assert parsed.keep_going
        assert parsed.show_members
        assert parsed.verbose


class TestMain:
    """Tests for the main entry point."""

    def test_not_found_message(self, tmp_path, binaries, capsys):
        """Test the message when no archive imports the query."""
        binaries.write_archive(tmp_path / "libfoo.rlib", [
            ("foo.o", binaries.module_with_imports(("env", "abort"))),
        ])

        assert main(["wasi", "fd_write", str(tmp_path)]) == 0

        out = capsys.readouterr().out
        assert out == 'No imports of "wasi" "fd_write" found.\n'

    def test_found_message(self, tmp_path, binaries, capsys):
        """Test the list of importing archives."""
        binaries.write_archive(tmp_path / "libfoo.rlib", [
            ("lib.rmeta", b"metadata"),
            ("foo.o", binaries.module_with_imports(("env", "abort"))),
        ])

        assert main(["env", "abort", str(tmp_path), "--show-members"]) == 0

        out = capsys.readouterr().out
        assert out.splitlines() == [
            '"env" "abort" is imported by:',
            f"  {tmp_path / 'libfoo.rlib'} (foo.o)",
        ]

    def test_json_output_file(self, tmp_path, binaries, capsys):
        """Test writing JSON to a file."""
        deps = tmp_path / "deps"
        deps.mkdir()
        binaries.write_archive(deps / "libfoo.rlib", [
            ("foo.o", binaries.module_with_imports(("env", "abort"))),
        ])
        output = tmp_path / "report.json"

        assert main(["env", "abort", str(deps), "-f", "json", "-o", str(output)]) == 0

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["found"] is True
        assert data["archives"][0]["member"] == "foo.o"
        assert "Output written to" in capsys.readouterr().err

    def test_not_a_directory(self, tmp_path, capsys):
        """Test a deps path that does not exist."""
        assert main(["env", "abort", str(tmp_path / "missing")]) == 1

        assert "is not a directory" in capsys.readouterr().err

    def test_corrupted_archive_is_fatal(self, tmp_path, capsys):
        """Test that a corrupted archive aborts with no result list."""
        (tmp_path / "libfoo.rlib").write_bytes(b"!<arch>\nbroken")

        assert main(["env", "abort", str(tmp_path)]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "malformed archive" in captured.err
        assert "libfoo.rlib" in captured.err

    def test_bad_long_name_is_fatal(self, tmp_path, binaries, capsys):
        """Test that an unparseable member name is reported, not raised."""
        table = b"first_long_object_name.o/\n"
        data = (
            b"!<arch>\n"
            + binaries.member_header("//", len(table)) + table
            + binaries.member_header("/0\x1c", 2) + b"aa"
        )
        (tmp_path / "libfoo.rlib").write_bytes(data)

        assert main(["env", "abort", str(tmp_path)]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "invalid member name" in captured.err

    def test_keep_going(self, tmp_path, binaries, capsys):
        """Test skipping a corrupted archive."""
        (tmp_path / "liba.rlib").write_bytes(b"!<arch>\nbroken")
        binaries.write_archive(tmp_path / "libb.rlib", [
            ("b.o", binaries.module_with_imports(("env", "abort"))),
        ])

        assert main(["env", "abort", str(tmp_path), "--keep-going"]) == 0

        captured = capsys.readouterr()
        assert str(tmp_path / "libb.rlib") in captured.out
        assert "skipped 1 unreadable archive" in captured.err

    def test_verbose_diagnostics(self, tmp_path, binaries, capsys):
        """Test that member verdicts are printed to stderr."""
        binaries.write_archive(tmp_path / "libfoo.rlib", [
            ("lib.rmeta", b"metadata"),
            ("foo.o", binaries.module_with_imports(("env", "memcpy"))),
        ])

        assert main(["env", "abort", str(tmp_path), "-v"]) == 0

        err = capsys.readouterr().err
        assert "lib.rmeta: not_a_module (magic header not detected" in err
        assert "foo.o: not_found" in err
