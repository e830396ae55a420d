"""
Descriptor Verifier - Re-evaluates a generated PKGBUILD and compares it with what was written
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

from pkgbuild_custom.common.errors import EvaluationError, VerificationError
from pkgbuild_custom.descriptor.environment import Environment

logger = logging.getLogger(__name__)


def normalize_statement(line: str) -> str:
    """
    Statement text without layout.

    bash's `declare -f` re-indents bodies and terminates every statement but
    the last with ';', so both are ignored when comparing.
    """
    return line.strip().rstrip(';').rstrip()


def normalize_body(body: Sequence[str]) -> Tuple[str, ...]:
    return tuple(normalize_statement(line) for line in body if line.strip())


class DescriptorVerifier:
    """Checks that an emitted PKGBUILD evaluates back to the in-memory environment"""

    def __init__(self, evaluator):
        self.evaluator = evaluator

    def verify(self, path: Path, expected: Environment, fields: Iterable[str],
               functions: Dict[str, Sequence[str]]) -> bool:
        """
        Args:
            path: Generated PKGBUILD
            expected: Environment the file was serialized from
            fields: Field names that were considered for output
            functions: Function name -> body lines that were written

        Raises:
            VerificationError: on the first evaluation failure or any mismatch
        """
        try:
            actual = self.evaluator.evaluate(path)
        except EvaluationError as e:
            raise VerificationError(f"generated {path} does not evaluate: {e}")

        mismatches: List[str] = []
        for name in fields:
            if expected.get(name) != actual.get(name):
                logger.error(f"[FAIL] field {name}: wrote {expected.get(name)!r}, read back {actual.get(name)!r}")
                mismatches.append(name)
            else:
                logger.debug(f"[PASS] field {name}")

        for name, body in functions.items():
            definition = actual.functions.get(name)
            if definition is None:
                logger.error(f"[FAIL] function {name}: missing after re-evaluation")
                mismatches.append(f"{name}()")
            elif normalize_body(definition.body) != normalize_body(body):
                logger.error(f"[FAIL] function {name}: body differs after re-evaluation")
                mismatches.append(f"{name}()")
            else:
                logger.debug(f"[PASS] function {name}")

        if mismatches:
            raise VerificationError(f"{path} does not reproduce: {', '.join(mismatches)}")
        return True
