"""
Driver state and stage composition

ProgramState is the record handed from one driver stage to the next;
pipeline() threads a state through a sequence of stages.
"""

import dataclasses
from functools import reduce
from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")

Stage = Callable[["ProgramState"], "ProgramState"]


@dataclass
class ProgramState:
    """
    Everything the driver knows about a run.

    Stages never mutate the state they receive: each one copies it, fills
    in the fields it owns and hands the copy on.

    Fields by owner:
        - command line: inputdir, outputdir, verbosity, pattern,
          outputSubdir, runtimeModule, emitSourceLocations
        - env_check: jsOutputdir, envOK
        - sources_collect: sourceFiles
        - modules_transform: transformResults, failures
        - results_report: nothing (reads only)

    Attributes:
        inputdir: Root of the modules to transform
        outputdir: Root the transformed tree is written under
        verbosity: LOG() threshold, 0 silences the driver
        pattern: Glob, relative to inputdir, selecting modules
        outputSubdir: Directory below outputdir receiving the modules
        runtimeModule: Runtime import source, None keeps the settings value
        emitSourceLocations: Add file:line:column metadata to each call
        envOK: Set once env_check accepted the paths
        jsOutputdir: outputdir / outputSubdir
        sourceFiles: Selected modules relative to inputdir
        transformResults: Summary per written module, keyed by relative path
        failures: Relative paths of modules that raised a macro error
    """

    # Command line
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    pattern: str = field(default="**/*.js")
    outputSubdir: str = field(default=".")
    runtimeModule: Optional[str] = field(default=None)
    emitSourceLocations: bool = field(default=False)

    # Filled in by the stages
    envOK: bool = field(default=False)
    jsOutputdir: Path = field(default=Path("/"))
    sourceFiles: List[Path] = field(default_factory=list)
    transformResults: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)

    @classmethod
    def state_createFromNamespace(
        cls: Type[PS], options: Namespace, inputdir: Path, outputdir: Path
    ) -> PS:
        """
        Initial state from parsed arguments.

        Options without a matching field (chris_plugin adds a few of its
        own) are dropped.

        Args:
            options: argparse result
            inputdir: Root of the modules to transform
            outputdir: Root of the output tree

        Returns:
            New state holding the command line values
        """
        known = {f.name for f in dataclasses.fields(cls)}
        values = {name: value for name, value in vars(options).items() if name in known}
        values.update(inputdir=inputdir, outputdir=outputdir)
        return cls(**values)

    def copy(self: PS) -> PS:
        """Shallow copy, the starting point of every stage"""
        return dataclasses.replace(self)


def pipeline(initial_state: ProgramState, *stages: Stage) -> ProgramState:
    """
    Run stages left to right, feeding each the previous stage's state.

    Example:
        pipeline(state, env_check, sources_collect, modules_transform, results_report)
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
