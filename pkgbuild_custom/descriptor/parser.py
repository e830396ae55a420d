"""
Descriptor Parser Module - Evaluates PKGBUILD declarations without running a shell

Supported statements: comments, scalar and list assignments (= and +=),
several assignments per line, and function definitions. Values follow shell
quoting rules ('...', "...", $'...', backslashes), a leading ~ and the parameter expansions
PKGBUILDs use ($name, ${name[@]}, ${name^}, ${name%pattern}, ...).
Anything else is rejected with the offending line.
"""

import fnmatch
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Tuple

from pkgbuild_custom.common.errors import EvaluationError
from pkgbuild_custom.descriptor.environment import Environment, FunctionDefinition

logger = logging.getLogger(__name__)

NAME = r'[A-Za-z_][A-Za-z0-9_]*'
FUNCTION_NAME = r'[A-Za-z_][A-Za-z0-9_.:-]*'

NAME_RE = re.compile(NAME)
ASSIGNMENT_RE = re.compile(rf'({NAME})(\+?=)')
FUNCTION_RE = re.compile(
    rf'(?:function[ \t]+({FUNCTION_NAME})(?:[ \t]*\([ \t]*\))?|({FUNCTION_NAME})[ \t]*\([ \t]*\))\s*\{{'
)
HEREDOC_RE = re.compile(r'<<(-?)[ \t]*(?:\'([^\'\n]*)\'|"([^"\n]*)"|\\?([^\s;&|<>()]+))')
BRACED_RE = re.compile(rf'(#?)({NAME}|[0-9]+|[@*#?$!-])(?:\[([^\]]*)\])?(.*)\Z', re.S)
TILDE_RE = re.compile(r'~[A-Za-z0-9_.-]*')
ANSI_NUMERIC_RE = re.compile(r'x([0-9A-Fa-f]{1,2})|u([0-9A-Fa-f]{1,4})|U([0-9A-Fa-f]{1,8})|([0-7]{1,3})')

WORD_STOPS = ' \t\n;&|<>()'
SEPARATORS = ' \t\n;&|(){'
COMMAND_SEPARATORS = '\n;&|()'
RESERVED_WORDS = frozenset(('!', 'do', 'elif', 'else', 'if', 'then', 'time', 'until', 'while'))
IFS_RE = re.compile(r'[ \t\n]+')

ANSI_ESCAPES = {
    'a': '\a', 'b': '\b', 'e': '\x1b', 'E': '\x1b', 'f': '\f', 'n': '\n',
    'r': '\r', 't': '\t', 'v': '\v', '\\': '\\', "'": "'", '"': '"', '?': '?',
}

# Values of special parameters in a freshly sourced file
SPECIAL_PARAMETERS = {'#': '0', '?': '0'}


class _Fields:
    """Words produced by one shell word after expansion and word splitting"""

    def __init__(self):
        self.words: List[str] = []
        self.current: Optional[str] = None

    def text(self, value: str):
        """Quoted or literal text; always part of a word, even when empty"""
        self.current = (self.current or '') + value

    def split_text(self, value: str):
        """Unquoted expansion result, split on blanks"""
        if not value:
            return
        parts = [part for part in IFS_RE.split(value) if part]
        if IFS_RE.match(value[0]):
            self.end_word()
        for i, part in enumerate(parts):
            if i:
                self.end_word()
            self.text(part)
        if IFS_RE.match(value[-1]):
            self.end_word()

    def split_values(self, values: List[str]):
        """Quoted list expansion: one word per element, glued to surrounding text at the ends"""
        for i, value in enumerate(values):
            if i:
                self.end_word()
            self.text(value)

    def end_word(self):
        if self.current is not None:
            self.words.append(self.current)
            self.current = None

    def result(self) -> List[str]:
        self.end_word()
        return self.words

    def scalar(self) -> str:
        return self.current or ''


def _remove_affix(value: str, pattern: str, longest: bool, suffix: bool) -> str:
    if suffix:
        starts = range(len(value) + 1) if longest else range(len(value), -1, -1)
        for start in starts:
            if fnmatch.fnmatchcase(value[start:], pattern):
                return value[:start]
        return value
    ends = range(len(value), -1, -1) if longest else range(len(value) + 1)
    for end in ends:
        if fnmatch.fnmatchcase(value[:end], pattern):
            return value[end:]
    return value


def _replace_pattern(value: str, pattern: str, replacement: str, mode: str) -> str:
    if not pattern:
        return value
    if mode == '#':
        for end in range(len(value), -1, -1):
            if fnmatch.fnmatchcase(value[:end], pattern):
                return replacement + value[end:]
        return value
    if mode == '%':
        for start in range(len(value) + 1):
            if fnmatch.fnmatchcase(value[start:], pattern):
                return value[:start] + replacement
        return value

    out = []
    start = 0
    while start <= len(value):
        match_end = None
        for end in range(len(value), start, -1):
            if fnmatch.fnmatchcase(value[start:end], pattern):
                match_end = end
                break
        if match_end is None:
            if start < len(value):
                out.append(value[start])
            start += 1
            continue
        out.append(replacement)
        if mode != '/':
            out.append(value[match_end:])
            return ''.join(out)
        start = match_end
    return ''.join(out)


def _change_case(value: str, op: str) -> str:
    if op == '^^':
        return value.upper()
    if op == ',,':
        return value.lower()
    if not value:
        return value
    if op == '^':
        return value[0].upper() + value[1:]
    return value[0].lower() + value[1:]


class _Scanner:
    """Single pass over descriptor text, applying statements to an Environment"""

    def __init__(self, text: str, env: Environment, line_offset: int = 0):
        self.text = text
        self.n = len(text)
        self.pos = 0
        self.env = env
        self.line_offset = line_offset

    # -- diagnostics -------------------------------------------------------

    def line_number(self, pos: Optional[int] = None) -> int:
        pos = self.pos if pos is None else pos
        return self.text.count('\n', 0, pos) + 1 + self.line_offset

    def error(self, message: str, pos: Optional[int] = None) -> EvaluationError:
        return EvaluationError(message, line=self.line_number(pos))

    def _line_text(self, pos: int) -> str:
        start = self.text.rfind('\n', 0, pos) + 1
        end = self.text.find('\n', pos)
        return self.text[start:self.n if end < 0 else end].strip()

    # -- statements --------------------------------------------------------

    def parse(self):
        while True:
            self._skip_blank()
            if self.pos >= self.n:
                return

            match = FUNCTION_RE.match(self.text, self.pos)
            if match and (match.end() == self.n or self.text[match.end()] in ' \t\n'):
                self._parse_function(match)
                continue

            match = ASSIGNMENT_RE.match(self.text, self.pos)
            if match:
                self._parse_assignment(match)
                continue

            raise self.error(
                f"unsupported statement '{self._line_text(self.pos)}' "
                "(use the bash evaluator for full shell syntax)"
            )

    def _skip_blank(self):
        while self.pos < self.n:
            c = self.text[self.pos]
            if c in ' \t\r\n;':
                self.pos += 1
            elif c == '#':
                self._skip_comment()
            elif self.text.startswith('\\\n', self.pos):
                self.pos += 2
            else:
                return

    def _skip_comment(self):
        end = self.text.find('\n', self.pos)
        self.pos = self.n if end < 0 else end

    def _parse_assignment(self, match):
        name, op = match.group(1), match.group(2)
        self.pos = match.end()

        if self.pos < self.n and self.text[self.pos] == '(':
            items = self._read_list()
            if op == '+=':
                self.env.append(name, items)
            else:
                self.env.set_list(name, items)
            return

        value = self.read_word(split=False).scalar()
        if op == '+=':
            self.env.append_scalar(name, value)
        else:
            self.env.set_scalar(name, value)

    def _read_list(self) -> List[str]:
        start = self.pos
        self.pos += 1
        items: List[str] = []
        while True:
            while self.pos < self.n:
                c = self.text[self.pos]
                if c in ' \t\r\n':
                    self.pos += 1
                elif c == '#':
                    self._skip_comment()
                elif self.text.startswith('\\\n', self.pos):
                    self.pos += 2
                else:
                    break
            if self.pos >= self.n:
                raise self.error("unterminated list, missing ')'", start)
            c = self.text[self.pos]
            if c == ')':
                self.pos += 1
                return items
            if c in ';&|<>(':
                raise self.error(f"unexpected '{c}' in list")
            items.extend(self.read_word(split=True).result())

    def _parse_function(self, match):
        name = match.group(1) or match.group(2)
        body_start = match.end()
        body_end = self._find_closing_brace(body_start, match.start())
        self.pos = body_end + 1

        lines = self.text[body_start:body_end].split('\n')
        if not lines[0].strip():
            lines = lines[1:]
        else:
            lines[0] = lines[0].lstrip()
        if lines and not lines[-1].strip():
            lines = lines[:-1]
        elif lines:
            lines[-1] = lines[-1].rstrip()

        self.env.define_function(FunctionDefinition(name, tuple(lines)))

    def _find_closing_brace(self, start: int, header: int) -> int:
        """Index of the '}' closing a function body.

        Braces only open or close a group where a command begins: after a
        command separator, an opening brace or a reserved word such as
        'then', with nothing but blanks in between. Elsewhere ('echo }')
        they are ordinary word characters.
        """
        depth = 1
        i = start
        prev = ' '
        command_start = True
        first_word = None
        heredocs: List[Tuple[str, bool]] = []
        text = self.text
        while i < self.n:
            c = text[i]
            if c == '\\':
                if not text.startswith('\\\n', i):
                    command_start = False
                    prev = 'x'
                i += 2
                continue
            if c == "'":
                end = self._skip_single_quoted(i)
            elif c == '"':
                end = self._skip_double_quoted(i)
            elif c == '$' and text.startswith("$'", i):
                _, end = self._read_ansi_c(i + 2)
            elif c == '$' and text.startswith('$(', i):
                end = self._skip_parens(i + 1)
            elif c == '`':
                end = self._skip_backquoted(i)
            else:
                end = None
            if end is not None:
                i = end
                command_start = False
                prev = 'x'
                continue
            if c == '#' and prev in SEPARATORS and not (i >= 2 and text.startswith('${', i - 2)):
                end = text.find('\n', i)
                i = self.n if end < 0 else end
                continue
            if c == '<' and text.startswith('<<', i) and not text.startswith('<<<', i):
                heredoc = HEREDOC_RE.match(text, i)
                if heredoc:
                    delimiter = heredoc.group(2) or heredoc.group(3) or heredoc.group(4)
                    heredocs.append((delimiter, heredoc.group(1) == '-'))
                    i = heredoc.end()
                    command_start = False
                    prev = 'x'
                    continue
            if c == '\n' and heredocs:
                i = self._skip_heredocs(i + 1, heredocs)
                heredocs = []
                command_start = True
                prev = '\n'
                continue

            followed_by = text[i + 1] if i + 1 < self.n else ' '
            if c in ' \t\r':
                if first_word is not None and text[first_word:i] in RESERVED_WORDS:
                    command_start = True
                first_word = None
            elif c in COMMAND_SEPARATORS:
                command_start = True
                first_word = None
            elif c == '{' and command_start and followed_by in ' \t\n':
                depth += 1
            elif c == '}' and command_start and followed_by in ' \t\r\n;)&|':
                depth -= 1
                if depth == 0:
                    return i
                command_start = False
            elif command_start:
                command_start = False
                first_word = i
            prev = c
            i += 1
        raise self.error("unterminated function body, missing '}'", header)

    def _skip_single_quoted(self, i: int) -> int:
        end = self.text.find("'", i + 1)
        if end < 0:
            raise self.error("unterminated single quote", i)
        return end + 1

    def _skip_double_quoted(self, i: int) -> int:
        start = i
        i += 1
        while i < self.n:
            c = self.text[i]
            if c == '\\':
                i += 2
                continue
            if c == '"':
                return i + 1
            if c == '$' and self.text.startswith('$(', i):
                i = self._skip_parens(i + 1)
                continue
            i += 1
        raise self.error("unterminated double quote", start)

    def _skip_backquoted(self, i: int) -> int:
        start = i
        i += 1
        while i < self.n:
            if self.text[i] == '\\':
                i += 2
                continue
            if self.text[i] == '`':
                return i + 1
            i += 1
        raise self.error("unterminated backquote", start)

    def _skip_parens(self, i: int) -> int:
        start = i
        depth = 0
        while i < self.n:
            c = self.text[i]
            if c == '\\':
                i += 2
                continue
            if c == "'":
                i = self._skip_single_quoted(i)
                continue
            if c == '"':
                i = self._skip_double_quoted(i)
                continue
            if c == '(':
                depth += 1
            elif c == ')':
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1
        raise self.error("unterminated command substitution", start)

    def _skip_heredocs(self, i: int, heredocs: List[Tuple[str, bool]]) -> int:
        for delimiter, strip_tabs in heredocs:
            while True:
                if i >= self.n:
                    raise self.error(f"unterminated here-document '{delimiter}'")
                end = self.text.find('\n', i)
                line_end = self.n if end < 0 else end
                line = self.text[i:line_end]
                i = line_end + 1
                if (line.lstrip('\t') if strip_tabs else line) == delimiter:
                    break
        return min(i, self.n)

    # -- words -------------------------------------------------------------

    def read_word(self, split: bool, stops: str = WORD_STOPS) -> _Fields:
        fields = _Fields()
        text = self.text
        if text.startswith('~', self.pos):
            self._read_tilde(fields, stops)
        while self.pos < self.n:
            c = text[self.pos]
            if c in stops:
                break
            if c == '\\':
                following = text[self.pos + 1:self.pos + 2]
                self.pos += 2
                if following != '\n':
                    fields.text(following)
            elif c == "'":
                end = self._skip_single_quoted(self.pos)
                fields.text(text[self.pos + 1:end - 1])
                self.pos = end
            elif c == '$' and text.startswith("$'", self.pos):
                value, self.pos = self._read_ansi_c(self.pos + 2)
                fields.text(value)
            elif c == '$' and text.startswith('$"', self.pos):
                self.pos += 1
            elif c == '"':
                self._read_double_quoted(fields, split)
            elif c == '$':
                self._read_expansion(fields, quoted=False, split=split)
            elif c == '`':
                raise self.error("command substitution is not supported")
            else:
                fields.text(c)
                self.pos += 1
        return fields

    def _read_tilde(self, fields: _Fields, stops: str):
        """Leading ~ or ~user, expanded the way bash does for the invoking user"""
        match = TILDE_RE.match(self.text, self.pos)
        end = match.end()
        if end < self.n and self.text[end] != '/' and self.text[end] not in stops:
            return
        prefix = match.group(0)
        expanded = os.path.expanduser(prefix)
        if expanded != prefix:
            fields.text(expanded)
            self.pos = end

    def read_fragment(self) -> str:
        """Expand a complete word such as the default of ${name:-word}"""
        return self.read_word(split=False, stops='').scalar()

    def _read_double_quoted(self, fields: _Fields, split: bool):
        start = self.pos
        self.pos += 1
        expanded_list = False
        text = self.text
        while self.pos < self.n:
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                # "" is an empty word, "${empty[@]}" is no word at all
                if not expanded_list:
                    fields.text('')
                return
            if c == '\\' and text[self.pos + 1:self.pos + 2] in ('$', '`', '"', '\\', '\n'):
                if text[self.pos + 1] != '\n':
                    fields.text(text[self.pos + 1])
                self.pos += 2
            elif c == '$':
                expanded_list |= self._read_expansion(fields, quoted=True, split=split)
            elif c == '`':
                raise self.error("command substitution is not supported")
            else:
                fields.text(c)
                self.pos += 1
        raise self.error("unterminated double quote", start)

    def _read_ansi_c(self, i: int) -> Tuple[str, int]:
        start = i
        out = []
        text = self.text
        while i < self.n:
            c = text[i]
            if c == "'":
                return ''.join(out), i + 1
            if c == '\\' and i + 1 < self.n:
                following = text[i + 1]
                if following in ANSI_ESCAPES:
                    out.append(ANSI_ESCAPES[following])
                    i += 2
                    continue
                numeric = ANSI_NUMERIC_RE.match(text, i + 1)
                if numeric:
                    octal = numeric.group(4)
                    digits = octal or next(g for g in numeric.groups() if g)
                    out.append(chr(int(digits, 8 if octal else 16)))
                    i = numeric.end()
                    continue
                out.append(c + following)
                i += 2
                continue
            out.append(c)
            i += 1
        raise self.error("unterminated $'...' string", start - 2)

    # -- expansions --------------------------------------------------------

    def _read_expansion(self, fields: _Fields, quoted: bool, split: bool) -> bool:
        """Expand the parameter at self.pos; True when it produced a quoted list"""
        text = self.text
        following = text[self.pos + 1:self.pos + 2]

        if following == '{':
            end = self._find_brace_end(self.pos + 2)
            content = text[self.pos + 2:end]
            self.pos = end + 1
            return self._expand_braced(content, fields, quoted, split)
        if following == '(':
            raise self.error("command substitution and arithmetic are not supported")

        match = NAME_RE.match(text, self.pos + 1)
        if match:
            self.pos = match.end()
            return self._emit(fields, [self.env.scalar_value(match.group(0))], False, False, quoted, split)
        if following and (following.isdigit() or following in '@*#?$!-'):
            self.pos += 2
            return self._emit(fields, [SPECIAL_PARAMETERS.get(following, '')], False, False, quoted, split)

        fields.text('$')
        self.pos += 1
        return False

    def _find_brace_end(self, i: int) -> int:
        start = i
        depth = 1
        while i < self.n:
            c = self.text[i]
            if c == '\\':
                i += 2
                continue
            if c == "'":
                i = self._skip_single_quoted(i)
                continue
            if c == '"':
                i = self._skip_double_quoted(i)
                continue
            if c == '{':
                depth += 1
            elif c == '}':
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        raise self.error("unterminated parameter expansion, missing '}'", start)

    def _expand_word(self, word: str) -> str:
        return _Scanner(word, self.env, self.line_number() - 1).read_fragment()

    def _lookup(self, name: str, subscript: Optional[str]):
        """Returns (values, is_list, star, defined)"""
        if name.isdigit() or name in SPECIAL_PARAMETERS or not NAME_RE.fullmatch(name):
            return [SPECIAL_PARAMETERS.get(name, '')], False, False, name in SPECIAL_PARAMETERS

        defined = self.env.is_defined(name)
        if subscript is None:
            return [self.env.scalar_value(name)], False, False, defined
        if subscript in ('@', '*'):
            return list(self.env.list_value(name)), True, subscript == '*', defined
        try:
            index = int(subscript)
        except ValueError:
            raise self.error(f"unsupported subscript '{name}[{subscript}]'")
        items = self.env.list_value(name)
        if -len(items) <= index < len(items):
            return [items[index]], False, False, True
        return [''], False, False, False

    def _expand_braced(self, content: str, fields: _Fields, quoted: bool, split: bool) -> bool:
        match = BRACED_RE.match(content)
        if not match:
            raise self.error(f"unsupported parameter expansion '${{{content}}}'")
        length, name, subscript, op = match.groups()
        values, is_list, star, defined = self._lookup(name, subscript)

        if length:
            if op:
                raise self.error(f"unsupported parameter expansion '${{{content}}}'")
            count = len(values) if is_list else len(values[0])
            return self._emit(fields, [str(count)], False, False, quoted, split)

        if op in ('^', '^^', ',', ',,'):
            values = [_change_case(value, op) for value in values]
        elif op[:2] in (':-', ':=', ':+', ':?') or op[:1] in ('-', '=', '+', '?'):
            colon = op.startswith(':')
            kind = op[1] if colon else op[0]
            word = op[2:] if colon else op[1:]
            empty = not defined or (colon and ''.join(values) == '')
            if kind in '-=':
                if empty:
                    values, is_list = [self._expand_word(word)], False
                    if kind == '=':
                        self.env.set_scalar(name, values[0])
            elif kind == '+':
                values, is_list = ([''] if empty else [self._expand_word(word)]), False
            elif empty:
                raise self.error(f"{name}: {self._expand_word(word) or 'parameter null or not set'}")
        elif op[:1] in ('#', '%'):
            longest = op[:2] in ('##', '%%')
            pattern = self._expand_word(op[2:] if longest else op[1:])
            values = [_remove_affix(value, pattern, longest, op[0] == '%') for value in values]
        elif op[:1] == '/':
            mode = op[1] if op[1:2] in ('/', '#', '%') else ''
            pattern, _, replacement = op[1 + len(mode):].partition('/')
            pattern = self._expand_word(pattern)
            replacement = self._expand_word(replacement)
            values = [_replace_pattern(value, pattern, replacement, mode or 'first') for value in values]
        elif op[:1] == ':':
            values = self._substring(values, is_list, op[1:], content)
        elif op:
            raise self.error(f"unsupported parameter expansion '${{{content}}}'")

        return self._emit(fields, values, is_list, star, quoted, split)

    def _substring(self, values: List[str], is_list: bool, operand: str, content: str) -> List[str]:
        offset_text, _, length_text = operand.partition(':')
        try:
            offset = int(offset_text.strip())
            length = int(length_text.strip()) if length_text.strip() else None
        except ValueError:
            raise self.error(f"unsupported parameter expansion '${{{content}}}'")

        def cut(sequence):
            begin = max(len(sequence) + offset, 0) if offset < 0 else offset
            if length is None:
                return sequence[begin:]
            if length < 0:
                return sequence[begin:len(sequence) + length]
            return sequence[begin:begin + length]

        if is_list:
            return list(cut(values))
        return [cut(values[0])]

    def _emit(self, fields: _Fields, values: List[str], is_list: bool, star: bool,
              quoted: bool, split: bool) -> bool:
        if is_list and split and not star and quoted:
            fields.split_values(values)
            return True
        if is_list and split and not quoted:
            for i, value in enumerate(values):
                if i:
                    fields.end_word()
                fields.split_text(value)
            return False
        value = ' '.join(values) if is_list else values[0]
        if quoted or not split:
            fields.text(value)
        else:
            fields.split_text(value)
        return False


class DescriptorParser:
    """Evaluates the declarative subset of PKGBUILD syntax into an Environment"""

    def evaluate(self, path: Path) -> Environment:
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise EvaluationError(f"cannot read {path}: {e}")
        except UnicodeDecodeError as e:
            raise EvaluationError(f"{path} is not valid UTF-8: {e}")

        env = self.evaluate_text(text)
        logger.debug(
            f"PARSER_EVALUATED path={path} variables={len(env.variables)} functions={len(env.functions)}"
        )
        return env

    def evaluate_text(self, text: str, env: Optional[Environment] = None) -> Environment:
        env = env if env is not None else Environment()
        _Scanner(text, env).parse()
        return env
