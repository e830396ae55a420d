"""
Bash Evaluator Module - Sources a PKGBUILD with bash and reads back its declarations
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from pkgbuild_custom.common.errors import EvaluationError
from pkgbuild_custom.common.shell_executor import ShellExecutor
from pkgbuild_custom.descriptor.environment import Environment, FunctionDefinition

logger = logging.getLogger(__name__)

# Sources $1 and prints every variable it introduced and every function as
# NUL separated records:
#   S <name> <value>
#   L <name> <count> <item>...
#   F <name> <declare -f output>
# A declaration starting with "declare -a" is a list, everything else a scalar.
DUMP_SCRIPT = r"""
__pkgxf_baseline=$'\n'"$(compgen -A variable)"$'\n'
source "$1" >&2 || exit 3
while IFS= read -r __pkgxf_name; do
    case $__pkgxf_name in
        __pkgxf_*|_|BASH*|FUNCNAME|PIPESTATUS|LINENO|RANDOM|SRANDOM|SECONDS|EPOCHSECONDS|EPOCHREALTIME) continue ;;
    esac
    [[ $__pkgxf_baseline == *$'\n'"$__pkgxf_name"$'\n'* ]] && continue
    __pkgxf_decl=$(declare -p "$__pkgxf_name" 2>/dev/null) || continue
    if [[ $__pkgxf_decl == "declare -a"* ]]; then
        declare -n __pkgxf_ref=$__pkgxf_name
        printf 'L\0%s\0%s\0' "$__pkgxf_name" "${#__pkgxf_ref[@]}"
        if (( ${#__pkgxf_ref[@]} )); then
            printf '%s\0' "${__pkgxf_ref[@]}"
        fi
        unset -n __pkgxf_ref
    else
        printf 'S\0%s\0%s\0' "$__pkgxf_name" "${!__pkgxf_name}"
    fi
done < <(compgen -A variable)
while IFS= read -r __pkgxf_name; do
    printf 'F\0%s\0%s\0' "$__pkgxf_name" "$(declare -f "$__pkgxf_name")"
done < <(compgen -A function)
exit 0
"""


class BashEvaluator:
    """Evaluates a PKGBUILD by sourcing it in a clean, non-interactive bash"""

    def __init__(self, shell_executor: Optional[ShellExecutor] = None, bash: str = "bash",
                 timeout: int = 60):
        self.shell_executor = shell_executor or ShellExecutor()
        self.bash = bash
        self.timeout = timeout

    @staticmethod
    def is_available(bash: str = "bash") -> bool:
        return shutil.which(bash) is not None

    def evaluate(self, path: Path) -> Environment:
        path = Path(path).resolve()
        if not path.is_file():
            raise EvaluationError(f"descriptor not found: {path}")

        cmd = [self.bash, '--noprofile', '--norc', '-c', DUMP_SCRIPT, 'pkgbuild-custom', str(path)]
        try:
            result = self.shell_executor.run_command(
                cmd,
                cwd=path.parent,
                check=False,
                timeout=self.timeout,
                env=ShellExecutor.minimal_env()
            )
        except FileNotFoundError:
            raise EvaluationError(f"'{self.bash}' executable not found")
        except subprocess.TimeoutExpired:
            raise EvaluationError(f"sourcing {path} did not finish within {self.timeout} seconds")
        except UnicodeDecodeError as e:
            raise EvaluationError(f"{path} produced values that are not valid UTF-8: {e}")

        if result.returncode != 0:
            detail = (result.stderr or '').strip() or f"exit status {result.returncode}"
            raise EvaluationError(f"bash failed to source {path}: {detail}")

        env = self.parse_dump(result.stdout)
        logger.debug(
            f"BASH_EVALUATED path={path} variables={len(env.variables)} functions={len(env.functions)}"
        )
        return env

    def evaluate_text(self, text: str) -> Environment:
        with tempfile.TemporaryDirectory(prefix='pkgbuild-custom-') as tmp:
            path = Path(tmp) / 'PKGBUILD'
            path.write_text(text, encoding='utf-8')
            return self.evaluate(path)

    @staticmethod
    def parse_dump(output: str) -> Environment:
        """Convert the record stream of DUMP_SCRIPT into an Environment"""
        env = Environment()
        fields: Iterator[str] = iter(output.split('\0'))
        try:
            for kind in fields:
                if kind == '':
                    continue
                name = next(fields)
                if kind == 'S':
                    env.set_scalar(name, next(fields))
                elif kind == 'L':
                    count = int(next(fields))
                    env.set_list(name, [next(fields) for _ in range(count)])
                elif kind == 'F':
                    env.define_function(BashEvaluator._function_from_declaration(name, next(fields)))
                else:
                    raise EvaluationError(f"unexpected record '{kind}' in bash output")
        except (StopIteration, ValueError):
            raise EvaluationError("truncated or malformed bash output")
        return env

    @staticmethod
    def _function_from_declaration(name: str, declaration: str) -> FunctionDefinition:
        # declare -f prints "name () ", "{ ", the body, then "}"
        lines = declaration.split('\n')
        if len(lines) < 3 or lines[-1] != '}' or lines[1].strip() != '{':
            raise EvaluationError(f"unexpected declaration of function '{name}': {declaration!r}")
        return FunctionDefinition(name, tuple(lines[2:-1]))
