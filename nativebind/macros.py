# MIT License
# Copyright 2019-2023 BeamNG GmbH
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of
# this software and associated documentation files (the "Software"), to deal in
# the Software without restriction, including without limitation the rights to
# use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
# of the Software, and to permit persons to whom the Software is furnished to do
# so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Macro constants

Object-like macros matching a MacroSearch are evaluated as C constant
expressions and exposed as read-only properties on the generated wrappers.
Results are typed the way C# types the equivalent literal.
"""

import math
import re
import struct
from dataclasses import dataclass

from .csharp import char_literal, string_literal
from .errors import MacroEvaluationError


@dataclass(frozen=True)
class MacroConstant:
    name: str
    type_name: str
    value: object
    literal: str


@dataclass(frozen=True)
class Value:
    type_name: str
    value: object

    def literal(self) -> str:
        match self.type_name:
            case "int":
                return str(self.value)
            case "uint":
                return f"{self.value}U"
            case "long":
                return f"{self.value}L"
            case "ulong":
                return f"{self.value}UL"
            case "float" | "double":
                return _real_literal(self.type_name, self.value)
            case "char":
                return char_literal(chr(self.value))
            case "string":
                return string_literal(self.value)
            case "bool":
                return "true" if self.value else "false"
        raise TypeError(f"no literal form for {self.type_name}")


def _real_literal(type_name, value):
    if math.isnan(value):
        return f"{type_name}.NaN"
    if math.isinf(value):
        return f"{type_name}.{'PositiveInfinity' if value > 0 else 'NegativeInfinity'}"
    text = repr(value)
    return text + "f" if type_name == "float" else text


class _EvalError(Exception):
    pass


## integer model

_INTEGER_WIDTH = {"int": (32, True), "uint": (32, False), "long": (64, True), "ulong": (64, False)}
_REAL = ("float", "double")


def _truncate(value, bits, signed):
    value &= (1 << bits) - 1
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value


def _fits(value, type_name):
    bits, signed = _INTEGER_WIDTH[type_name]
    if signed:
        return -(1 << (bits - 1)) <= value < 1 << (bits - 1)
    return 0 <= value < 1 << bits


def _to_float32(value):
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _make(type_name, value) -> Value:
    if type_name in _INTEGER_WIDTH:
        bits, signed = _INTEGER_WIDTH[type_name]
        return Value(type_name, _truncate(int(value), bits, signed))
    if type_name == "float":
        return Value("float", _to_float32(float(value)))
    if type_name == "double":
        return Value("double", float(value))
    if type_name == "bool":
        return Value("bool", bool(value))
    return Value(type_name, value)


# C type spelling -> (C# type, bits, signed)
_CAST_TYPES = {}
for _names, _target in (
    (("char", "signed char", "int8_t"), ("int", 8, True)),
    (("unsigned char", "uint8_t"), ("int", 8, False)),
    (("short", "short int", "signed short", "int16_t"), ("int", 16, True)),
    (("unsigned short", "unsigned short int", "uint16_t"), ("int", 16, False)),
    (("int", "signed", "signed int", "int32_t"), ("int", 32, True)),
    (("unsigned", "unsigned int", "uint32_t"), ("uint", 32, False)),
    (("long", "long int", "long long", "long long int", "int64_t", "intptr_t", "ssize_t", "ptrdiff_t"),
     ("long", 64, True)),
    (("unsigned long", "unsigned long int", "unsigned long long", "unsigned long long int",
      "uint64_t", "uintptr_t", "size_t"), ("ulong", 64, False)),
    (("float",), ("float", None, None)),
    (("double", "long double"), ("double", None, None)),
    (("bool", "_Bool"), ("bool", None, None)),
):
    for _name in _names:
        _CAST_TYPES[_name] = _target
del _names, _target, _name


## literals

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<float>(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?[fFlL]?|\d+[eE][+-]?\d+[fFlL]?)
    | (?P<int>(?:0[xX][0-9a-fA-F]+|0[bB][01]+|\d+)[uUlL]*)
    | (?P<char>L?'(?:[^'\\\n]|\\.)+')
    | (?P<string>L?"(?:[^"\\\n]|\\.)*")
    | (?P<ident>[A-Za-z_]\w*)
    | (?P<op><<|>>|<=|>=|==|!=|&&|\|\||[-+*/%&|^~!<>?:()])
    """,
    re.VERBOSE,
)

_INTEGER_RE = re.compile(r"(0[xX][0-9a-fA-F]+|0[bB][01]+|0[0-7]*|[1-9][0-9]*)([uUlL]*)")

# suffix -> candidate types in order, the first one holding the value wins
_INTEGER_SUFFIXES = {
    "": ("int", "uint", "long", "ulong"),
    "u": ("uint", "ulong"),
    "l": ("long", "ulong"),
    "ll": ("long", "ulong"),
    "ul": ("ulong",),
    "lu": ("ulong",),
    "ull": ("ulong",),
    "llu": ("ulong",),
}

_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]+|[0-7]{1,3}|.)")
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v",
    "\\": "\\", "'": "'", '"': '"', "?": "?",
}


def tokenize(expression):
    tokens = []
    pos = 0
    while pos < len(expression):
        m = _TOKEN_RE.match(expression, pos)
        if m is None:
            raise _EvalError(f"unexpected character {expression[pos]!r}")
        pos = m.end()
        if m.lastgroup != "ws":
            tokens.append((m.lastgroup, m.group()))
    return tokens


def _integer_literal(text) -> Value:
    m = _INTEGER_RE.fullmatch(text)
    if m is None:
        raise _EvalError(f"malformed integer literal {text}")
    digits, suffix = m.group(1), m.group(2).lower()
    if suffix not in _INTEGER_SUFFIXES:
        raise _EvalError(f"malformed integer suffix {text}")

    prefix = digits[:2].lower()
    if prefix == "0x":
        value = int(digits, 16)
    elif prefix == "0b":
        value = int(digits, 2)
    elif len(digits) > 1 and digits[0] == "0":
        value = int(digits, 8)
    else:
        value = int(digits)

    for type_name in _INTEGER_SUFFIXES[suffix]:
        if _fits(value, type_name):
            return Value(type_name, value)
    raise _EvalError(f"integer literal {text} is too large")


def _float_literal(text) -> Value:
    if text[-1] in "fF":
        return _make("float", float(text[:-1]))
    return _make("double", float(text.rstrip("lL")))


def _unescape(body):
    def replace(m):
        seq = m.group(1)
        if seq[0] == "x":
            return chr(int(seq[1:], 16))
        if seq[0] in "01234567":
            return chr(int(seq, 8))
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE_RE.sub(replace, body)


## operations


def _integral_type(v):
    if v.type_name == "char":
        return "int"
    if v.type_name in _INTEGER_WIDTH:
        return v.type_name
    raise _EvalError(f"{v.type_name} operand where an integer is required")


# binary numeric promotion of C#
def _numeric_type(a, b):
    for v in (a, b):
        if v.type_name in ("string", "bool"):
            raise _EvalError(f"{v.type_name} operand in arithmetic")
    types = (a.type_name, b.type_name)
    if "double" in types:
        return "double"
    if "float" in types:
        return "float"
    types = (_integral_type(a), _integral_type(b))
    if "ulong" in types:
        return "ulong"
    if "long" in types:
        return "long"
    if "uint" in types:
        return "uint" if types[0] == types[1] else "long"
    return "int"


def _truthy(v):
    if v.type_name == "string":
        raise _EvalError("string used as a condition")
    return bool(v.value)


def _int_div(x, y):
    if y == 0:
        raise _EvalError("division by zero")
    q = abs(x) // abs(y)
    return -q if (x < 0) != (y < 0) else q


def _real_div(x, y):
    try:
        return x / y
    except ZeroDivisionError:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)


def _unary(op, v) -> Value:
    if op == "!":
        return Value("bool", not _truthy(v))
    if v.type_name in _REAL:
        if op == "~":
            raise _EvalError(f"~ applied to {v.type_name}")
        return _make(v.type_name, -v.value if op == "-" else v.value)

    type_name = _integral_type(v)
    match op:
        case "+":
            return Value(type_name, v.value)
        case "-":
            if type_name == "ulong":
                raise _EvalError("cannot negate an ulong")
            if type_name == "uint":
                type_name = "long"
            return _make(type_name, -v.value)
        case "~":
            return _make(type_name, ~v.value)
    raise _EvalError(f"unknown unary operator {op}")


def _binary(op, a, b) -> Value:
    if op in ("==", "!="):
        if a.type_name in ("string", "bool") or b.type_name in ("string", "bool"):
            if a.type_name != b.type_name:
                raise _EvalError(f"cannot compare {a.type_name} with {b.type_name}")
        else:
            _numeric_type(a, b)
        equal = a.value == b.value
        return Value("bool", equal if op == "==" else not equal)

    if op in ("<<", ">>"):
        type_name = _integral_type(a)
        bits = _INTEGER_WIDTH[type_name][0]
        count = _integral(b) & (bits - 1)
        if op == "<<":
            return _make(type_name, a.value << count)
        return _make(type_name, a.value >> count)

    type_name = _numeric_type(a, b)
    x, y = a.value, b.value
    real = type_name in _REAL
    match op:
        case "<":
            return Value("bool", x < y)
        case ">":
            return Value("bool", x > y)
        case "<=":
            return Value("bool", x <= y)
        case ">=":
            return Value("bool", x >= y)
        case "+":
            result = x + y
        case "-":
            result = x - y
        case "*":
            result = x * y
        case "/":
            result = _real_div(x, y) if real else _int_div(x, y)
        case "%":
            if real:
                result = math.fmod(x, y) if y else math.nan
            else:
                result = x - y * _int_div(x, y)
        case "&" | "|" | "^" if real:
            raise _EvalError(f"{op} applied to {type_name}")
        case "&":
            result = x & y
        case "|":
            result = x | y
        case "^":
            result = x ^ y
        case _:
            raise _EvalError(f"unknown binary operator {op}")
    return _make(type_name, result)


def _integral(v):
    _integral_type(v)
    return v.value


def _cast(target, v) -> Value:
    type_name, bits, signed = target
    if type_name == "bool":
        return Value("bool", _truthy(v))
    if v.type_name == "string":
        raise _EvalError(f"cannot cast a string to {type_name}")
    if type_name in _REAL:
        return _make(type_name, float(v.value))
    value = v.value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _EvalError(f"cannot cast {value} to {type_name}")
        value = math.trunc(value)
    return Value(type_name, _truncate(int(value), bits, signed))


_BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6, "!=": 6,
    "<": 7, ">": 7, "<=": 7, ">=": 7,
    "<<": 8, ">>": 8,
    "+": 9, "-": 9,
    "*": 10, "/": 10, "%": 10,
}


## parser


class _Parser:
    """
    Precedence climbing parser. Every rule returns a thunk so that the
    untaken side of `?:`, `&&` and `||` is never evaluated.
    """

    def __init__(self, tokens, lookup):
        self.tokens = tokens
        self.pos = 0
        self.lookup = lookup

    def parse(self):
        if not self.tokens:
            raise _EvalError("empty expression")
        node = self._conditional()
        if self.pos != len(self.tokens):
            raise _EvalError(f"unexpected {self._peek()[1]!r}")
        return node

    def _peek(self, offset=0):
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else (None, None)

    def _next(self):
        token = self._peek()
        if token[0] is None:
            raise _EvalError("unexpected end of expression")
        self.pos += 1
        return token

    def _expect(self, text):
        kind, value = self._next()
        if kind != "op" or value != text:
            raise _EvalError(f"expected {text!r}, got {value!r}")

    def _conditional(self):
        condition = self._binary(1)
        if self._peek() != ("op", "?"):
            return condition
        self._next()
        then = self._conditional()
        self._expect(":")
        otherwise = self._conditional()
        return lambda: then() if _truthy(condition()) else otherwise()

    def _binary(self, min_precedence):
        left = self._unary()
        while True:
            kind, op = self._peek()
            precedence = _BINARY_PRECEDENCE.get(op) if kind == "op" else None
            if precedence is None or precedence < min_precedence:
                return left
            self._next()
            left = _binary_node(op, left, self._binary(precedence + 1))

    def _unary(self):
        kind, text = self._peek()
        if kind == "op" and text in ("+", "-", "~", "!"):
            self._next()
            operand = self._unary()
            return lambda: _unary(text, operand())
        if kind == "op" and text == "(":
            target = self._cast_type()
            if target is not None:
                operand = self._unary()
                return lambda: _cast(target, operand())
        return self._primary()

    # consumes `(type)` when the parenthesis holds a known C type
    def _cast_type(self):
        words = []
        i = 1
        kind, text = self._peek(i)
        while kind == "ident":
            words.append(text)
            i += 1
            kind, text = self._peek(i)
        if text != ")":
            return None
        name = " ".join(w for w in words if w != "const")
        if name not in _CAST_TYPES:
            return None
        self.pos += i + 1
        return _CAST_TYPES[name]

    def _primary(self):
        kind, text = self._next()
        match kind:
            case "int":
                value = _integer_literal(text)
            case "float":
                value = _float_literal(text)
            case "char":
                ch = _unescape(text[text.index("'") + 1:-1])
                if len(ch) != 1:
                    raise _EvalError(f"multi-character constant {text}")
                value = Value("char", ord(ch))
            case "string":
                parts = [_unescape(text[text.index('"') + 1:-1])]
                while self._peek()[0] == "string":
                    _, more = self._next()
                    parts.append(_unescape(more[more.index('"') + 1:-1]))
                value = Value("string", "".join(parts))
            case "ident" if text in ("true", "false"):
                value = Value("bool", text == "true")
            case "ident":
                return lambda: self.lookup(text)
            case "op" if text == "(":
                node = self._conditional()
                self._expect(")")
                return node
            case _:
                raise _EvalError(f"unexpected {text!r}")
        return lambda: value


def _binary_node(op, left, right):
    if op == "&&":
        return lambda: Value("bool", _truthy(left()) and _truthy(right()))
    if op == "||":
        return lambda: Value("bool", _truthy(left()) or _truthy(right()))
    return lambda: _binary(op, left(), right())


## evaluation


class MacroEvaluator:
    """
    Evaluates object-like macros. Identifiers in an expression name other
    macros, which are evaluated on first use and cached.
    """

    def __init__(self, macros=()):
        self.macros = {}
        for macro in macros:
            # the first definition wins, like a header included twice
            self.macros.setdefault(macro.name, macro)
        self.values: dict[str, Value] = {}
        self._pending: list[str] = []

    def evaluate(self, name) -> Value:
        if name in self.values:
            return self.values[name]
        macro = self.macros.get(name)
        if macro is None:
            raise MacroEvaluationError(name, "", "no such macro")
        if name in self._pending:
            cycle = self._pending[self._pending.index(name):] + [name]
            raise MacroEvaluationError(name, macro.expression, "circular definition " + " -> ".join(cycle))

        self._pending.append(name)
        try:
            value = self.evaluate_expression(macro.expression, name)
        finally:
            self._pending.pop()
        self.values[name] = value
        return value

    def evaluate_expression(self, expression, name="<expression>") -> Value:
        try:
            return _Parser(tokenize(expression), self._lookup).parse()()
        except _EvalError as e:
            raise MacroEvaluationError(name, expression, str(e)) from e

    def _lookup(self, identifier):
        if identifier in self.values or identifier in self.macros:
            return self.evaluate(identifier)
        raise _EvalError(f"unknown identifier {identifier}")


def extract_macro_constants(context, searches):
    """Evaluates every macro matching one of the searches into context.constants"""
    evaluator = MacroEvaluator(context.graph.macros)
    extracted = {c.name for c in context.constants}
    for search in searches:
        for macro in context.graph.macros:
            if macro.name in extracted or not search.matches(macro.name):
                continue
            value = evaluator.evaluate(macro.name)
            constant = MacroConstant(macro.name, value.type_name, value.value, value.literal())
            context.constants.append(constant)
            extracted.add(macro.name)
            context.logger.debug("macro %s = %s (%s)", macro.name, constant.literal, constant.type_name)
    return list(context.constants)
