"""
Descriptor Assembler - Stages a recipe directory and writes the customized PKGBUILD
=================================================================================
Stages, in order:
1. stage     - copy the original recipe and the patch to a fresh output directory
2. evaluate  - evaluate the original PKGBUILD
3. override  - apply the Override Set in memory
4. rewrite   - append the patch-apply statement to prepare()
5. emit      - write fields, prepare(), build() and package()
6. verify    - re-evaluate the written file (optional)
7. report    - name the generated file on the status stream

Every run starts by deleting the output directory, so reruns are idempotent.
Two runs must not share an output directory at the same time.
"""

import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from pkgbuild_custom import config as config_module
from pkgbuild_custom.common.errors import MissingInputError, PkgbuildCustomError, StageError
from pkgbuild_custom.common.logging_utils import DebugLogger
from pkgbuild_custom.descriptor import create_evaluator
from pkgbuild_custom.descriptor.environment import Environment
from pkgbuild_custom.descriptor.function_rewriter import (
    append_statements,
    assemble,
    extract_body,
    patch_apply_statement,
)
from pkgbuild_custom.descriptor.variable_serializer import serialize_many
from pkgbuild_custom.orchestrator.descriptor_verifier import DescriptorVerifier
from pkgbuild_custom.orchestrator.overrides import Override, apply_overrides, load_overrides

logger = logging.getLogger(__name__)


@dataclass
class AssemblyResult:
    output_dir: Path
    descriptor_path: Path
    fields: List[str] = field(default_factory=list)
    prepare_body: Tuple[str, ...] = ()


class DescriptorAssembler:
    """Runs the customization of one recipe directory end to end"""

    def __init__(self, source_dir, output_dir, patch_path, evaluator=None,
                 overrides: Optional[Sequence[Override]] = None,
                 output_fields: Optional[Sequence[str]] = None,
                 descriptor_name: str = config_module.DESCRIPTOR_NAME,
                 prepare_function: str = config_module.PREPARE_FUNCTION,
                 verbatim_functions: Optional[Sequence[str]] = None,
                 verify_output: bool = True,
                 debug_mode: bool = False):
        self.source_dir = Path(source_dir)
        self.output_dir = Path(output_dir)
        self.patch_path = Path(patch_path)
        self.evaluator = evaluator or create_evaluator()
        self.overrides = load_overrides(config_module.OVERRIDES if overrides is None else overrides)
        self.output_fields = list(config_module.OUTPUT_FIELDS if output_fields is None else output_fields)
        self.descriptor_name = descriptor_name
        self.prepare_function = prepare_function
        self.verbatim_functions = list(
            config_module.VERBATIM_FUNCTIONS if verbatim_functions is None else verbatim_functions
        )
        self.verify_output = verify_output
        self.debug_logger = DebugLogger(debug_mode, logger)

    @classmethod
    def from_config(cls, config: Dict, evaluator=None):
        """Build an assembler from a ConfigLoader dictionary"""
        base_dir = Path(config.get('base_dir') or Path.cwd())
        return cls(
            source_dir=base_dir / config['original_folder'],
            output_dir=base_dir / config['output_folder'],
            patch_path=base_dir / config['patch_file'],
            evaluator=evaluator,
            overrides=config['overrides'],
            output_fields=config['output_fields'],
            descriptor_name=config['descriptor_name'],
            prepare_function=config['prepare_function'],
            verbatim_functions=config['verbatim_functions'],
            verify_output=config['verify_output'],
            debug_mode=config['debug_mode'],
        )

    @property
    def source_descriptor(self) -> Path:
        return self.source_dir / self.descriptor_name

    @property
    def output_descriptor(self) -> Path:
        return self.output_dir / self.descriptor_name

    @contextmanager
    def _stage(self, name: str):
        self.debug_logger.log(f"STAGE_BEGIN stage={name}")
        try:
            yield
        except PkgbuildCustomError as e:
            e.stage = name
            raise
        except OSError as e:
            raise StageError(f"{e.strerror or e} ({e.filename or 'unknown path'})", stage=name) from e
        self.debug_logger.log(f"STAGE_DONE stage={name}")

    def run(self) -> AssemblyResult:
        with self._stage("stage"):
            self.stage()

        with self._stage("evaluate"):
            env = self.evaluate()

        with self._stage("override"):
            env = apply_overrides(env, self.overrides, self.patch_path.name)

        with self._stage("rewrite"):
            prepare_body = self.rewrite_prepare(env)

        with self._stage("emit"):
            functions = self.collect_functions(env, prepare_body)
            self.emit(self.render(env, functions))

        if self.verify_output:
            with self._stage("verify"):
                DescriptorVerifier(self.evaluator).verify(
                    self.output_descriptor, env, self.output_fields, functions
                )

        self.report()
        return AssemblyResult(
            output_dir=self.output_dir,
            descriptor_path=self.output_descriptor,
            fields=[name for name in self.output_fields if env.is_defined(name)],
            prepare_body=prepare_body,
        )

    def check_inputs(self):
        """Fail before anything is deleted when an input is missing"""
        if not self.source_dir.is_dir():
            raise MissingInputError(f"source directory not found: {self.source_dir}")
        if not self.source_descriptor.is_file():
            raise MissingInputError(f"{self.descriptor_name} not found in {self.source_dir}")
        if not self.patch_path.is_file():
            raise MissingInputError(f"patch file not found: {self.patch_path}")

    def stage(self):
        self.check_inputs()

        if self.output_dir.exists():
            self.debug_logger.log(f"Removing previous output {self.output_dir}")
            shutil.rmtree(self.output_dir)

        shutil.copytree(self.source_dir, self.output_dir, symlinks=True)
        shutil.copy2(self.patch_path, self.output_dir / self.patch_path.name)
        # Regenerated from scratch in emit()
        self.output_descriptor.unlink()
        self.debug_logger.log(f"Staged {self.source_dir} -> {self.output_dir}")

    def evaluate(self) -> Environment:
        env = self.evaluator.evaluate(self.source_descriptor)
        self.debug_logger.log(
            f"Evaluated {self.source_descriptor}: {len(env.variables)} variables, "
            f"{len(env.functions)} functions"
        )
        return env

    def rewrite_prepare(self, env: Environment) -> Tuple[str, ...]:
        """Original prepare() body followed by the patch-apply statement"""
        body = extract_body(env, self.prepare_function)
        return append_statements(body, [patch_apply_statement(self.patch_path.name)])

    def collect_functions(self, env: Environment, prepare_body: Sequence[str]) -> Dict[str, Tuple[str, ...]]:
        """Bodies to write, in output order; fails before writing if one is missing"""
        functions = {self.prepare_function: tuple(prepare_body)}
        for name in self.verbatim_functions:
            functions[name] = extract_body(env, name)
        return functions

    def render(self, env: Environment, functions: Dict[str, Sequence[str]]) -> str:
        lines = serialize_many(env, self.output_fields)
        lines.extend(assemble(name, body) for name, body in functions.items())
        return "\n".join(lines) + "\n"

    def emit(self, document: str):
        with open(self.output_descriptor, 'w', encoding='utf-8') as f:
            f.write(document)
        self.debug_logger.log(f"Wrote {len(document)} bytes to {self.output_descriptor}")

    def report(self):
        logger.info(f"Generated {self.descriptor_name} at {self.output_descriptor}")
