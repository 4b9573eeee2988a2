"""
Command-line pipeline tests

Runs the driver stages over a temporary directory tree: good modules are
written, failing modules are reported and skipped, plain modules are copied.
"""

import pytest
from pathlib import Path
import tempfile

from stylemacro.__main__ import (
    env_check,
    sources_collect,
    modules_transform,
    results_report,
    settings_fromState,
)
from stylemacro.models import ProgramState, pipeline


GOOD = "import { css } from './macro'\nconst a = css`color: red;`\n"
BAD = "const styled = require('./macro')\nconst B = styled('div')`x`\n"
PLAIN = "export const answer = 42\n"
NESTED = "import styled from '../macro'\nexport const Title = styled.h1`font-size: 2em;`\n"


def tree_write(root: Path, files: dict) -> None:
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


class TestStages:
    """Test the stages one by one"""

    def test_env_check_creates_output(self):
        """The output directory is created"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir) / "in"
            inputdir.mkdir()
            state = ProgramState(inputdir=inputdir, outputdir=Path(tmpdir) / "out", outputSubdir="js", verbosity=0)
            state = env_check(state)
            assert state.envOK is True
            assert state.jsOutputdir.is_dir()
            assert state.jsOutputdir == Path(tmpdir) / "out" / "js"

    def test_env_check_missing_input(self):
        """A missing input directory exits with status 1"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = ProgramState(inputdir=Path(tmpdir) / "nope", outputdir=Path(tmpdir), verbosity=0)
            with pytest.raises(SystemExit) as excinfo:
                env_check(state)
            assert excinfo.value.code == 1

    def test_sources_collect_sorted(self):
        """Modules are selected by pattern, relative and sorted"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root, {"b.js": PLAIN, "a.js": PLAIN, "sub/c.js": PLAIN, "notes.txt": "x"})
            state = sources_collect(ProgramState(inputdir=root, outputdir=root, verbosity=0))
            assert state.sourceFiles == [Path("a.js"), Path("b.js"), Path("sub/c.js")]

    def test_stages_do_not_mutate_input(self):
        """Each stage returns a new state"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root, {"a.js": PLAIN})
            initial = ProgramState(inputdir=root, outputdir=root, verbosity=0)
            collected = sources_collect(initial)
            assert initial.sourceFiles == []
            assert collected is not initial


class TestPipeline:
    """Test a full run over a module tree"""

    def run(self, root: Path, **options) -> ProgramState:
        state = ProgramState(inputdir=root / "in", outputdir=root / "out", verbosity=0, **options)
        return pipeline(state, env_check, sources_collect, modules_transform)

    def test_modules_written(self):
        """Good modules are transformed, plain modules copied, failures skipped"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root / "in", {"good.js": GOOD, "bad.js": BAD, "plain.js": PLAIN, "components/title.js": NESTED})
            state = self.run(root)

            assert state.failures == ["bad.js"]
            assert not (root / "out" / "bad.js").exists()

            assert (root / "out" / "plain.js").read_text(encoding="utf-8") == PLAIN
            assert state.transformResults["plain.js"]["changed"] is False

            good = (root / "out" / "good.js").read_text(encoding="utf-8")
            assert good == (
                "import { css as _css } from 'emotion';\n"
                "const a = _css([`color: red;`], { label: \"a\" })\n"
            )
            assert state.transformResults["good.js"]["expanded"] == 1
            assert state.transformResults["good.js"]["runtime_imports"] == {"css": "_css"}

            nested = (root / "out" / "components" / "title.js").read_text(encoding="utf-8")
            assert nested.startswith("import { styled as _styled } from 'emotion';\n")
            assert '_styled("h1", [`font-size: 2em;`], { label: "Title" })' in nested

    def test_failure_reported(self, capsys):
        """A failed module is named on stderr with its location"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root / "in", {"bad.js": BAD})
            state = self.run(root)
            stderr = capsys.readouterr().err
            assert "must be imported with module syntax" in stderr
            assert "bad.js: Line 2, column 11" in stderr

            with pytest.raises(SystemExit) as excinfo:
                results_report(state)
            assert excinfo.value.code == 1

    def test_clean_run_reports(self):
        """Without failures the report stage returns the state"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root / "in", {"good.js": GOOD})
            state = self.run(root)
            assert results_report(state).failures == []

    def test_runtime_module_override(self):
        """--runtimeModule changes the runtime import source"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root / "in", {"good.js": GOOD})
            self.run(root, runtimeModule="react-emotion")
            good = (root / "out" / "good.js").read_text(encoding="utf-8")
            assert good.startswith("import { css as _css } from 'react-emotion';")

    def test_source_locations_flag(self):
        """--emitSourceLocations adds file:line:column metadata"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root / "in", {"good.js": GOOD})
            self.run(root, emitSourceLocations=True)
            good = (root / "out" / "good.js").read_text(encoding="utf-8")
            assert 'source: "good.js:2:11"' in good


class TestSettingsOverrides:
    """Test CLI overrides of the settings singleton"""

    def test_no_overrides(self):
        """Without options the settings keep their defaults"""
        settings = settings_fromState(ProgramState())
        assert settings.runtime_module == "emotion"
        assert settings.emit_source_locations is False

    def test_overrides_applied(self):
        """Options become settings fields"""
        settings = settings_fromState(ProgramState(runtimeModule="x", emitSourceLocations=True))
        assert settings.runtime_module == "x"
        assert settings.emit_source_locations is True
