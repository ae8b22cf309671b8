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

"""Errors raised while generating bindings.

Every error derives from GenerationError; any of them aborts the run.
"""


class GenerationError(Exception):
    pass


class ConfigurationError(GenerationError):
    pass


class HeaderParseError(GenerationError):
    def __init__(self, kind, diagnostics=()):
        self.kind = kind
        self.diagnostics = list(diagnostics)
        message = f"header parsing failed: {kind}"
        errors = [d for d in self.diagnostics if d.is_error]
        if errors:
            message += " (" + "; ".join(str(d) for d in errors[:3]) + ")"
        super().__init__(message)


class OutputDirectoryNotEmptyError(GenerationError):
    def __init__(self, output_dir, files):
        self.output_dir = output_dir
        self.files = list(files)
        super().__init__(
            f"output directory {output_dir} already contains {len(self.files)} file(s) "
            "and clearing is disabled"
        )


class OutputError(GenerationError):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot write to {path}: {reason}")


class ArtifactCollisionError(GenerationError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"artifact {name!r} was already written in this run")


class DuplicateDeclarationError(GenerationError):
    def __init__(self, name, first, second):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"declaration {name!r} is declared twice "
            f"({_where(first)} and {_where(second)})"
        )


class EnumMemberCollisionError(GenerationError):
    def __init__(self, enum_name, member, first_value, second_value):
        self.enum_name = enum_name
        self.member = member
        super().__init__(
            f"merged enum {enum_name!r} defines {member} twice "
            f"with different values ({first_value} and {second_value})"
        )


class UnknownTypeError(GenerationError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"not supported type name {name}")


class UnknownOverrideTargetError(GenerationError):
    def __init__(self, member, target):
        self.member = member
        self.target = target
        super().__init__(f"no declaration {target!r} to override {member!r} with")


class MissingPrimitiveMappingError(GenerationError):
    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"no target type mapped for builtin type {kind}")


class UnhandledTypeError(GenerationError):
    def __init__(self, type_):
        self.type = type_
        super().__init__(f"type not handled: {type_!r}")


class MacroEvaluationError(GenerationError):
    def __init__(self, name, expression, reason):
        self.name = name
        self.expression = expression
        self.reason = reason
        super().__init__(f"cannot evaluate macro {name} = {expression!r}: {reason}")


def _where(declaration):
    if declaration.header:
        return f"{declaration.header}:{declaration.line}"
    return "<unknown location>"
