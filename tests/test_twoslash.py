"""Tests for twoslash markup processing and the type checker bridge."""

from __future__ import annotations

import pytest

from twoslash_cli.errors import TwoslashError, TypeCheckerError
from twoslash_cli.twoslash import Query, parse_diagnostics, run_twoslash


class TestMarkup:
    def test_plain_code_unchanged(self):
        result = run_twoslash("const a = 1\nconst b = a\n", "ts")
        assert result.code == "const a = 1\nconst b = a"
        assert result.filename == "index.ts"

    def test_errors_flag(self):
        result = run_twoslash("// @errors: 2322 2304\nconst a: string = 1\n", "ts")
        assert result.expected_errors == [2322, 2304]
        assert result.code == "const a: string = 1"

    def test_compiler_options_coerced(self):
        code = "// @strict: false\n// @target: es2020\n// @noImplicitAny\n// @maxNodeModuleJsDepth: 2\nlet a\n"
        result = run_twoslash(code, "ts", {"strict": True, "jsx": "react"})
        assert result.compiler_options == {
            "strict": False,
            "jsx": "react",
            "target": "es2020",
            "noImplicitAny": True,
            "maxNodeModuleJsDepth": 2,
        }
        assert result.code == "let a"

    def test_no_errors_and_filename(self):
        result = run_twoslash("// @noErrors\n// @filename: app.tsx\nlet a\n", "tsx")
        assert result.no_errors is True
        assert result.filename == "app.tsx"

    def test_default_filename_follows_language(self):
        assert run_twoslash("let a\n", "javascript").filename == "index.js"
        assert run_twoslash("let a\n", "jsx").filename == "index.jsx"

    def test_cut_hides_prelude(self):
        code = "const hidden = 1\n// ---cut---\nconst shown = hidden\n"
        assert run_twoslash(code, "ts").code == "const shown = hidden"

    def test_query_lines_removed_and_recorded(self):
        code = "const a = 1\n// ---cut---\nconst shout = a\n//    ^?\n"
        result = run_twoslash(code, "ts")
        assert result.code == "const shout = a"
        assert result.queries == [Query(line=0, character=6)]

    def test_other_comments_kept(self):
        code = "// @ts-ignore\n// just a note\nlet a\n"
        assert run_twoslash(code, "ts").code == code.rstrip("\n")

    def test_unknown_bare_annotations_are_comments(self):
        code = "// @deprecated\n// @internal\nlet a\n"
        result = run_twoslash(code, "ts")
        assert result.code == code.rstrip("\n")
        assert result.compiler_options == {}

    def test_display_flags_not_forwarded(self):
        result = run_twoslash("// @showEmit\n// @keepNotations\nlet a\n", "ts")
        assert result.code == "let a"
        assert result.compiler_options == {}

    def test_no_error_validation_behaves_like_no_errors(self):
        result = run_twoslash("// @noErrorValidation\nlet a\n", "ts")
        assert result.no_errors is True
        assert result.compiler_options == {}

    def test_nested_filename(self):
        result = run_twoslash("// @filename: src/a.ts\nlet a\n", "ts")
        assert result.filename == "src/a.ts"

    @pytest.mark.parametrize("filename", ["../escape.ts", "/etc/a.ts", "src/../../a.ts"])
    def test_filename_must_stay_inside_sample(self, filename):
        with pytest.raises(TwoslashError, match="relative path"):
            run_twoslash(f"// @filename: {filename}\nlet a\n", "ts")


class TestParseDiagnostics:
    def test_positions_are_zero_based(self):
        out = "/tmp/x/index.ts(3,7): error TS2322: Type 'number' is not assignable to type 'string'.\n"
        [diag] = parse_diagnostics(out, "index.ts")
        assert (diag.code, diag.line, diag.character) == (2322, 2, 6)
        assert diag.message.startswith("Type 'number'")

    def test_other_files_ignored(self):
        out = "node_modules/lib.d.ts(1,1): error TS1000: nope\n"
        assert parse_diagnostics(out, "index.ts") == []

    def test_nested_filename_matched_by_relative_path(self):
        out = (
            "/tmp/x/src/a.ts(1,5): error TS7005: Variable 'a' implicitly has an 'any' type.\n"
            "/tmp/x/other/a.ts(1,1): error TS1000: nope\n"
        )
        [diag] = parse_diagnostics(out, "src/a.ts")
        assert (diag.code, diag.line, diag.character) == (7005, 0, 4)

    def test_global_errors_raise(self):
        with pytest.raises(TwoslashError, match="TS5023"):
            parse_diagnostics("error TS5023: Unknown compiler option 'bogus'.\n", "index.ts")


class TestTypeChecking:
    def test_command_line(self, fake_tsc):
        run_twoslash("// @strict: true\n// @target: es2020\nlet a\n", "ts", type_checker=["tsc"])
        [cmd] = fake_tsc.calls
        assert cmd[0] == "tsc"
        assert "--noEmit" in cmd
        assert cmd[cmd.index("--pretty") + 1] == "false"
        assert "--strict" in cmd
        assert cmd[cmd.index("--target") + 1] == "es2020"
        assert cmd[-1].endswith("index.ts")

    def test_js_samples_are_checked_as_js(self, fake_tsc):
        run_twoslash("let a\n", "js", type_checker=["tsc"])
        [cmd] = fake_tsc.calls
        assert "--allowJs" in cmd
        assert "--checkJs" in cmd

    def test_expected_error_is_kept(self, fake_tsc):
        fake_tsc.lines = ["(2,7): error TS2322: Type 'number' is not assignable to type 'string'."]
        code = "const hidden = 1\n// @errors: 2322\n// ---cut---\nconst a: string = 1\n"
        result = run_twoslash(code, "ts", type_checker=["tsc"])
        [diag] = result.errors
        assert diag.code == 2322
        # Line 2 of the checked file is the first displayed line.
        assert diag.line == 0

    def test_unexpected_error_raises(self, fake_tsc):
        fake_tsc.lines = ["(1,7): error TS2322: Type 'number' is not assignable to type 'string'."]
        with pytest.raises(TwoslashError) as excinfo:
            run_twoslash("const a: string = 1\n", "ts", type_checker=["tsc"])
        assert "2322" in str(excinfo.value)
        assert "not included in an errors tag" in str(excinfo.value)

    def test_missing_expected_error_raises(self, fake_tsc):
        with pytest.raises(TwoslashError, match="2304"):
            run_twoslash("// @errors: 2304\nconst a = 1\n", "ts", type_checker=["tsc"])

    def test_no_errors_ignores_diagnostics(self, fake_tsc):
        fake_tsc.lines = ["(1,1): error TS2304: Cannot find name 'nope'."]
        result = run_twoslash("// @noErrors\nnope\n", "ts", type_checker=["tsc"])
        assert len(result.errors) == 1

    def test_nested_filename_is_checked(self, fake_tsc):
        fake_tsc.lines = ["(1,5): error TS7005: Variable 'a' implicitly has an 'any' type."]
        code = "// @filename: src/a.ts\n// @errors: 7005\nlet a\n"
        result = run_twoslash(code, "ts", type_checker=["tsc"])
        [cmd] = fake_tsc.calls
        assert cmd[-1].replace("\\", "/").endswith("src/a.ts")
        [diag] = result.errors
        assert diag.code == 7005

    def test_comment_annotations_not_passed_to_checker(self, fake_tsc):
        run_twoslash("// @deprecated\n// @strict\nlet a\n", "ts", type_checker=["tsc"])
        [cmd] = fake_tsc.calls
        assert "--deprecated" not in cmd
        assert "--strict" in cmd

    def test_errors_without_checker_are_not_validated(self):
        result = run_twoslash("// @errors: 2304\nconst a = 1\n", "ts")
        assert result.errors == []

    def test_missing_checker_binary(self, monkeypatch):
        def boom(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr("twoslash_cli.twoslash.subprocess.run", boom)
        with pytest.raises(TypeCheckerError, match="tsc-missing"):
            run_twoslash("let a\n", "ts", type_checker=["tsc-missing"])
