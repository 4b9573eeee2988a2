#!/usr/bin/env python3
"""
stylemacro - Compile-time expansion of CSS-in-JS style macros

Rewrites every module under an input directory so that uses of the style
macros (styled, css, keyframes, fontFace, injectGlobal, hydrate, flush)
imported from a macro module become calls on the CSS-in-JS runtime.

The driver is a ChRIS plugin: chris_plugin supplies the inputdir/outputdir
convention and argument handling, the stages below do the work.

Philosophy:
    - One module at a time: no state is shared between modules
    - Source fidelity: only macro uses and macro imports are touched
    - Fail loudly: import-style violations abort a module with a located error

Usage:
    stylemacro inputdir/ outputdir/ [--pattern '**/*.js']

    Each matching module is written to outputdir/ at the same relative
    path. Modules without macro imports are copied unchanged.

Examples:
    # Transform all .js modules
    stylemacro src/ build/

    # Different runtime package, with file:line:column metadata
    stylemacro src/ build/ --runtimeModule react-emotion --emitSourceLocations

    # Verbose output
    stylemacro src/ build/ -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings, AppSettings
from .lib import Compiler, Parser, MacroError, MacroRegistryError, __version__, LOG, state_connectToLogger
from .lib.log import LOG_error
from .lib.registry import registry_fromSettings
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="stylemacro - Compile-time expansion of CSS-in-JS style macros",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern", default="**/*.js", type=str, help="Glob (relative to inputdir) selecting modules to transform"
)

parser.add_argument(
    "--runtimeModule",
    default=None,
    type=str,
    help="Module the runtime import is taken from. Defaults to STYLEMACRO_RUNTIME_MODULE or 'emotion'",
)

parser.add_argument(
    "--emitSourceLocations",
    default=False,
    action="store_true",
    help="Emit file:line:column development metadata for every expanded invocation",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the transformed modules",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def settings_fromState(state: ProgramState) -> AppSettings:
    """
    Settings for this run: the environment-derived singleton with CLI
    overrides applied.
    """
    overrides = {}
    if state.runtimeModule:
        overrides["runtime_module"] = state.runtimeModule
    if state.emitSourceLocations:
        overrides["emit_source_locations"] = True
    return appsettings.model_copy(update=overrides)


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and prepare the output directory.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - jsOutputdir: Created output directory path
            - envOK: True if environment is valid

    Exits:
        1 if the input directory does not exist
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    LOG(f"Input directory: {state.inputdir}", level=2)

    state.jsOutputdir = state.outputdir / state.outputSubdir
    state.jsOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.jsOutputdir}", level=2)

    state.envOK = True
    return state


def sources_collect(inputstate: ProgramState) -> ProgramState:
    """
    Select the modules to transform.

    Args:
        inputstate: Program state with inputdir and pattern

    Returns:
        ProgramState with added field:
            - sourceFiles: Matching files relative to inputdir, sorted
    """

    state = inputstate.copy()

    state.sourceFiles = sorted(
        path.relative_to(state.inputdir)
        for path in state.inputdir.glob(state.pattern)
        if path.is_file()
    )
    LOG(f"Found {len(state.sourceFiles)} module(s) matching '{state.pattern}'", level=1)
    return state


def modules_transform(inputstate: ProgramState) -> ProgramState:
    """
    Transform every selected module and write it under the output directory.

    A fatal macro error stops only the module it occurs in: the error is
    reported with its location, nothing is written for that module, and the
    remaining modules are still transformed.

    Args:
        inputstate: Program state with sourceFiles

    Returns:
        ProgramState with added fields:
            - transformResults: Per-module summary (changed, expanded, runtime imports)
            - failures: Relative paths of modules that failed

    Exits:
        1 if the macro manifest cannot be loaded
    """

    state = inputstate.copy()
    state.transformResults = {}
    state.failures = []

    settings = settings_fromState(state)
    try:
        registry = registry_fromSettings(settings)
    except MacroRegistryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Loaded {registry}", level=2)

    for relative in state.sourceFiles:
        source_path = state.inputdir / relative
        key = str(relative)
        LOG(f"Transforming {key}...", level=2)

        try:
            source = source_path.read_text(encoding="utf-8")
            module = Parser(source, filename=key).parse()
            result = Compiler(module, registry=registry, settings=settings).compile()
        except MacroError as e:
            LOG_error(f"{key}: {e.msg.splitlines()[0]}")
            print(f"Macro error: {e}", file=sys.stderr)
            state.failures.append(key)
            continue
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {source_path}: {e}", file=sys.stderr)
            state.failures.append(key)
            continue

        output_path = state.jsOutputdir / relative
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.code, encoding="utf-8")

        state.transformResults[key] = {
            "changed": result.changed,
            "expanded": sum(1 for output in result.outputs if not output.is_passthrough),
            "runtime_imports": result.runtime_imports,
            "output_file": str(output_path),
        }
        LOG(f"Wrote {output_path}", level=3)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display a summary of the run.

    Args:
        inputstate: Program state with transformResults and failures

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if any module failed
    """
    state: ProgramState = inputstate.copy()

    changed = [key for key, summary in state.transformResults.items() if summary["changed"]]
    expanded = sum(summary["expanded"] for summary in state.transformResults.values())

    LOG(f"Transformed {len(state.transformResults)} module(s), {len(changed)} changed", level=1)
    LOG(f"  Invocations expanded: {expanded}", level=1)
    LOG(f"  Output: {state.jsOutputdir}", level=1)
    for key in changed:
        LOG(f"    {key}: {state.transformResults[key]['expanded']} expanded", level=2)

    if state.failures:
        print(f"Error: {len(state.failures)} module(s) failed:", file=sys.stderr)
        for key in state.failures:
            print(f"  {key}", file=sys.stderr)
        sys.exit(1)
    return state


@chris_plugin(
    parser=parser,
    title="stylemacro - CSS-in-JS style macro expansion",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - expand style macros in every selected module.

    Orchestrates the pipeline:
        1. env_check: Validate paths and environment
        2. sources_collect: Select modules by glob pattern
        3. modules_transform: Run the macro pass and write each module
        4. results_report: Display results, exit 1 on failures

    Args:
        options: CLI arguments from argparse
            - pattern: str - Glob selecting modules
            - runtimeModule: Optional[str] - Runtime import source override
            - emitSourceLocations: bool - Emit file:line:column metadata
            - outputSubdir: str - Output subdirectory name
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing source modules
        outputdir: Directory where transformed modules will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, sources_collect, modules_transform, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
