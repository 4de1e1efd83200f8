"""
bifrost2postman/schema_generation/source_parser.py

Lightweight C# declaration parser.

Turns one .cs file into a CompilationUnitSyntax holding:
- using directives and using aliases
- every class / interface / struct / record / enum declaration, including nested ones
- per type: base list, generic parameters, properties, fields, methods and attributes

Method bodies, initializers and other expressions are skipped with
balanced-bracket scanning; only the declaration surface used for type
resolution and endpoint discovery is kept. The parser is deterministic and
never evaluates code.
"""

from pathlib import Path

from bifrost2postman.schema_generation.models import (
    AttributeArgument,
    AttributeSyntax,
    CompilationUnitSyntax,
    DeclarationKind,
    MemberKind,
    MemberSyntax,
    MethodSyntax,
    ParameterSyntax,
    SyntaxToken,
    TokenKind,
    TypeDeclarationSyntax,
    TypeRef,
)
from bifrost2postman.utils.exceptions import SourceParseError
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)

# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

_TWO_CHAR_PUNCTUATION = ("=>", "::")

_SIMPLE_ESCAPES = {
    "\\": "\\", '"': '"', "'": "'", "0": "\0", "a": "\a", "b": "\b",
    "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
}


def _unescape(body: str) -> str:
    """Decode the escape sequences of a regular (non-verbatim) C# string body."""
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            out.append(ch)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt in ("u", "x", "U"):
            width = 8 if nxt == "U" else 4
            j = i + 2
            while j < len(body) and j < i + 2 + width and body[j] in "0123456789abcdefABCDEF":
                j += 1
            digits = body[i + 2:j]
            out.append(chr(int(digits, 16)) if digits else nxt)
            i = j
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


class _Lexer:
    """Single pass tokenizer that drops comments, whitespace and preprocessor lines."""

    def __init__(self, source: str) -> None:
        self._src = source
        self._pos = 0
        self._line = 1
        self._tokens: list[SyntaxToken] = []

    def tokenize(self) -> list[SyntaxToken]:
        src = self._src
        at_line_start = True
        while self._pos < len(src):
            ch = src[self._pos]

            if ch == "\n":
                self._line += 1
                self._pos += 1
                at_line_start = True
                continue
            if ch.isspace():
                self._pos += 1
                continue
            if ch == "#" and at_line_start:
                end = src.find("\n", self._pos)
                self._pos = len(src) if end == -1 else end
                continue
            at_line_start = False

            if src.startswith("//", self._pos):
                end = src.find("\n", self._pos)
                self._pos = len(src) if end == -1 else end
                continue
            if src.startswith("/*", self._pos):
                end = src.find("*/", self._pos + 2)
                if end == -1:
                    raise SourceParseError("unterminated block comment", self._line)
                self._line += src.count("\n", self._pos, end)
                self._pos = end + 2
                continue

            if ch in "$@" or ch == '"':
                if self._lex_string_or_verbatim_identifier():
                    continue
            if ch == "'":
                self._lex_char()
                continue
            if ch.isdigit() or (ch == "." and self._peek_char(1).isdigit()):
                self._lex_number()
                continue
            if ch.isalpha() or ch == "_":
                self._lex_identifier(self._pos)
                continue

            two = src[self._pos:self._pos + 2]
            if two in _TWO_CHAR_PUNCTUATION:
                self._emit(TokenKind.PUNCTUATION, two)
                self._pos += 2
                continue
            self._emit(TokenKind.PUNCTUATION, ch)
            self._pos += 1

        return self._tokens

    # -- helpers -----------------------------------------------------------

    def _peek_char(self, offset: int) -> str:
        idx = self._pos + offset
        return self._src[idx] if idx < len(self._src) else ""

    def _emit(self, kind: TokenKind, text: str, value: str | None = None, line: int | None = None) -> None:
        self._tokens.append(SyntaxToken(kind=kind, text=text, line=line or self._line, value=value))

    def _lex_identifier(self, start: int) -> None:
        src = self._src
        end = start
        while end < len(src) and (src[end].isalnum() or src[end] == "_"):
            end += 1
        self._emit(TokenKind.IDENTIFIER, src[start:end])
        self._pos = end

    def _lex_number(self) -> None:
        src = self._src
        start = self._pos
        end = start
        while end < len(src):
            c = src[end]
            if c.isalnum() or c == "_":
                end += 1
            elif c == "." and end + 1 < len(src) and src[end + 1].isdigit():
                end += 1
            else:
                break
        self._emit(TokenKind.NUMBER, src[start:end])
        self._pos = end

    def _lex_char(self) -> None:
        src = self._src
        start = self._pos
        j = start + 1
        while j < len(src) and src[j] != "'":
            if src[j] == "\n":
                raise SourceParseError("unterminated character literal", self._line)
            j += 2 if src[j] == "\\" else 1
        if j >= len(src):
            raise SourceParseError("unterminated character literal", self._line)
        text = src[start:j + 1]
        self._emit(TokenKind.CHAR, text, value=_unescape(text[1:-1]))
        self._pos = j + 1

    def _lex_string_or_verbatim_identifier(self) -> bool:
        """
        Lex any string literal form at the current position.
        Handles "..", @"..", $"..", $@"..", @$"..", and raw \"\"\"..\"\"\" literals.
        Returns False when the position does not start a string (caller keeps lexing).
        """
        src = self._src
        start = self._pos
        j = start
        prefix = ""
        while j < len(src) and src[j] in "$@" and len(prefix) < 4:
            prefix += src[j]
            j += 1
        if j >= len(src) or src[j] != '"':
            if prefix == "@" and j < len(src) and (src[j].isalpha() or src[j] == "_"):
                # verbatim identifier such as @class
                self._pos = j
                self._lex_identifier(j)
                return True
            return False

        interpolated = "$" in prefix
        verbatim = "@" in prefix
        start_line = self._line

        quote_run = 0
        while j + quote_run < len(src) and src[j + quote_run] == '"':
            quote_run += 1

        if quote_run >= 3:
            end = self._scan_raw_string(j, quote_run)
            body = src[j + quote_run:end - quote_run]
            value = None if interpolated else body.strip("\n")
        elif verbatim:
            end = self._scan_verbatim_string(j, interpolated)
            body = src[j + 1:end - 1]
            value = None if interpolated else body.replace('""', '"')
        else:
            end = self._scan_regular_string(j, interpolated)
            body = src[j + 1:end - 1]
            value = None if interpolated else _unescape(body)

        self._emit(TokenKind.STRING, src[start:end], value=value, line=start_line)
        self._pos = end
        return True

    def _scan_raw_string(self, quote_pos: int, quote_run: int) -> int:
        src = self._src
        closing = '"' * quote_run
        end = src.find(closing, quote_pos + quote_run)
        if end == -1:
            raise SourceParseError("unterminated raw string literal", self._line)
        self._line += src.count("\n", quote_pos, end)
        return end + quote_run

    def _scan_regular_string(self, quote_pos: int, interpolated: bool) -> int:
        src = self._src
        j = quote_pos + 1
        while j < len(src):
            c = src[j]
            if c == "\\":
                j += 2
            elif c == '"':
                return j + 1
            elif c == "\n":
                break
            elif interpolated and c == "{":
                if src.startswith("{{", j):
                    j += 2
                else:
                    j = self._skip_interpolation_hole(j)
            else:
                j += 1
        raise SourceParseError("unterminated string literal", self._line)

    def _scan_verbatim_string(self, quote_pos: int, interpolated: bool) -> int:
        src = self._src
        j = quote_pos + 1
        while j < len(src):
            c = src[j]
            if c == '"':
                if src.startswith('""', j):
                    j += 2
                    continue
                return j + 1
            if c == "\n":
                self._line += 1
                j += 1
            elif interpolated and c == "{":
                if src.startswith("{{", j):
                    j += 2
                else:
                    j = self._skip_interpolation_hole(j)
            else:
                j += 1
        raise SourceParseError("unterminated verbatim string literal", self._line)

    def _skip_interpolation_hole(self, brace_pos: int) -> int:
        """Skip an interpolation hole `{...}`, including nested strings. Returns index after '}'."""
        src = self._src
        depth = 0
        j = brace_pos
        while j < len(src):
            c = src[j]
            if c == "{":
                depth += 1
                j += 1
            elif c == "}":
                depth -= 1
                j += 1
                if depth == 0:
                    return j
            elif c == '"' or (c in "$@" and j + 1 < len(src) and src[j + 1] in '"$@'):
                saved_pos, saved_tokens = self._pos, len(self._tokens)
                self._pos = j
                if self._lex_string_or_verbatim_identifier():
                    j = self._pos
                    del self._tokens[saved_tokens:]
                else:
                    j += 1
                self._pos = saved_pos
            elif c == "'":
                k = j + 1
                while k < len(src) and src[k] != "'":
                    k += 2 if src[k] == "\\" else 1
                j = k + 1
            else:
                if c == "\n":
                    self._line += 1
                j += 1
        raise SourceParseError("unterminated interpolation in string literal", self._line)


def tokenize(source: str) -> list[SyntaxToken]:
    """Tokenize C# source, dropping trivia."""
    return _Lexer(source).tokenize()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_TYPE_KEYWORDS = {"class", "interface", "struct", "enum", "record"}

_MODIFIERS = {
    "public", "private", "protected", "internal", "static", "abstract", "sealed",
    "partial", "readonly", "unsafe", "new", "virtual", "override", "extern", "async",
    "const", "volatile", "required", "file", "ref", "fixed", "scoped",
}

_PARAMETER_MODIFIERS = {"this", "ref", "out", "in", "params", "scoped", "readonly"}

_NON_PUBLIC_ACCESS = {"private", "protected", "internal"}

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


class _Parser:
    """Recursive descent over the token list, declarations only."""

    def __init__(self, tokens: list[SyntaxToken], file_path: str) -> None:
        self._tokens = tokens
        self._pos = 0
        self._file_path = file_path
        self._usings: list[str] = []
        self._aliases: dict[str, TypeRef] = {}
        self._types: list[TypeDeclarationSyntax | None] = []

    # -- token helpers -----------------------------------------------------

    def _peek(self, offset: int = 0) -> SyntaxToken | None:
        idx = self._pos + offset
        return self._tokens[idx] if idx < len(self._tokens) else None

    def _at(self, text: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok is not None and tok.text == text and tok.kind in (TokenKind.PUNCTUATION, TokenKind.IDENTIFIER)

    def _at_identifier(self, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok is not None and tok.kind == TokenKind.IDENTIFIER

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _current_line(self) -> int | None:
        tok = self._peek()
        if tok is not None:
            return tok.line
        return self._tokens[-1].line if self._tokens else None

    def _advance(self) -> SyntaxToken:
        tok = self._peek()
        if tok is None:
            raise SourceParseError("unexpected end of file", self._current_line())
        self._pos += 1
        return tok

    def _expect(self, text: str) -> SyntaxToken:
        tok = self._peek()
        if tok is None or tok.text != text:
            found = "end of file" if tok is None else repr(tok.text)
            raise SourceParseError(f"expected {text!r}, found {found}", self._current_line())
        self._pos += 1
        return tok

    def _expect_identifier(self) -> SyntaxToken:
        tok = self._peek()
        if tok is None or tok.kind != TokenKind.IDENTIFIER:
            found = "end of file" if tok is None else repr(tok.text)
            raise SourceParseError(f"expected identifier, found {found}", self._current_line())
        self._pos += 1
        return tok

    # -- skipping ----------------------------------------------------------

    def _skip_balanced(self) -> None:
        """Skip a bracketed group starting at the current opening bracket."""
        opener = self._advance()
        stack = [_OPENERS[opener.text]]
        while stack:
            tok = self._peek()
            if tok is None:
                raise SourceParseError(f"unbalanced {opener.text!r} opened on line {opener.line}", opener.line)
            self._pos += 1
            if tok.kind != TokenKind.PUNCTUATION:
                continue
            if tok.text in _OPENERS:
                stack.append(_OPENERS[tok.text])
            elif tok.text in _CLOSERS:
                if tok.text != stack[-1]:
                    raise SourceParseError(f"mismatched {tok.text!r}", tok.line)
                stack.pop()

    def _collect_until(self, stops: set[str]) -> list[SyntaxToken]:
        """Collect tokens up to (not including) a stop token at bracket depth 0."""
        collected: list[SyntaxToken] = []
        while True:
            tok = self._peek()
            if tok is None:
                raise SourceParseError(f"expected one of {sorted(stops)}", self._current_line())
            if tok.kind == TokenKind.PUNCTUATION and tok.text in stops:
                return collected
            if tok.kind == TokenKind.PUNCTUATION and tok.text in _OPENERS:
                start = self._pos
                self._skip_balanced()
                collected.extend(self._tokens[start:self._pos])
                continue
            if tok.kind == TokenKind.PUNCTUATION and tok.text in _CLOSERS:
                raise SourceParseError(f"unexpected {tok.text!r}", tok.line)
            collected.append(tok)
            self._pos += 1

    def _skip_to_semicolon(self) -> None:
        self._collect_until({";"})
        self._advance()

    def _skip_member(self) -> None:
        """
        Skip a member we do not model (constructor, operator, event, indexer,
        delegate, top-level statement). Ends after a ';' or a top-level block.
        """
        while True:
            tok = self._peek()
            if tok is None:
                raise SourceParseError("unexpected end of file", self._current_line())
            if tok.kind == TokenKind.PUNCTUATION:
                if tok.text == "=>":
                    self._advance()
                    self._skip_to_semicolon()
                    return
                if tok.text == ";":
                    self._advance()
                    return
                if tok.text == "{":
                    self._skip_balanced()
                    return
                if tok.text in _OPENERS:
                    self._skip_balanced()
                    continue
                if tok.text in _CLOSERS:
                    raise SourceParseError(f"unexpected {tok.text!r}", tok.line)
            self._pos += 1

    # -- names and types ---------------------------------------------------

    def _parse_dotted_name(self) -> str:
        parts = [self._expect_identifier().text]
        while self._at(".") or self._at("::"):
            self._advance()
            parts.append(self._expect_identifier().text)
        if parts[0] == "global" and len(parts) > 1:
            parts = parts[1:]
        return ".".join(parts)

    def _parse_type(self) -> TypeRef:
        if self._at("("):
            type_ref = self._parse_tuple_type()
        else:
            type_ref = self._parse_named_type()
        return self._parse_type_suffixes(type_ref)

    def _parse_named_type(self) -> TypeRef:
        name = self._expect_identifier().text
        if self._at("::"):
            # global::X or alias::X; only the qualified part matters for resolution
            self._advance()
            name = self._expect_identifier().text
        type_arguments: list[TypeRef] = []
        while True:
            if self._at("<"):
                type_arguments = type_arguments + self._parse_type_argument_list()
            if self._at(".") and self._at_identifier(1):
                self._advance()
                name = f"{name}.{self._advance().text}"
                continue
            break
        return TypeRef(name=name, type_arguments=type_arguments)

    def _parse_type_argument_list(self) -> list[TypeRef]:
        self._expect("<")
        args = [self._parse_type()]
        while self._at(","):
            self._advance()
            args.append(self._parse_type())
        self._expect(">")
        return args

    def _parse_tuple_type(self) -> TypeRef:
        self._expect("(")
        elements: list[TypeRef] = []
        while True:
            elements.append(self._parse_type())
            if self._at_identifier():
                self._advance()  # element name
            if self._at(","):
                self._advance()
                continue
            break
        self._expect(")")
        return TypeRef(name="System.ValueTuple", type_arguments=elements)

    def _parse_type_suffixes(self, type_ref: TypeRef) -> TypeRef:
        while True:
            if self._at("?"):
                self._advance()
                type_ref = type_ref.model_copy(update={"nullable": True})
            elif self._at("*"):
                self._advance()
            elif self._at("[") and (self._at("]", 1) or self._at(",", 1)):
                self._advance()
                rank = 1
                while self._at(","):
                    self._advance()
                    rank += 1
                self._expect("]")
                type_ref = TypeRef(element=type_ref, rank=rank)
            else:
                return type_ref

    def _parse_type_parameter_list(self) -> list[str]:
        self._expect("<")
        names: list[str] = []
        while True:
            self._parse_attribute_lists()
            if self._at("in") or self._at("out"):
                self._advance()
            names.append(self._expect_identifier().text)
            if self._at(","):
                self._advance()
                continue
            break
        self._expect(">")
        return names

    def _parse_member_name(self) -> tuple[str, bool]:
        """
        Parse a member name. Explicit interface implementations (IFoo.Bar,
        IFoo<T>.Bar) return the final identifier and True.
        """
        name = self._expect_identifier().text
        explicit = False
        while True:
            if self._at("."):
                self._advance()
                name = self._expect_identifier().text
                explicit = True
            elif self._at("<") and self._generic_qualifier_follows():
                self._skip_angle_brackets()
            else:
                return name, explicit

    def _generic_qualifier_follows(self) -> bool:
        """True if the '<...>' at the current position is followed by '.'."""
        depth = 0
        offset = 0
        while True:
            tok = self._peek(offset)
            if tok is None:
                return False
            if tok.text == "<":
                depth += 1
            elif tok.text == ">":
                depth -= 1
                if depth == 0:
                    nxt = self._peek(offset + 1)
                    return nxt is not None and nxt.text == "."
            elif tok.text in ("(", ")", "{", "}", ";", "="):
                return False
            offset += 1

    def _skip_angle_brackets(self) -> None:
        depth = 0
        while True:
            tok = self._advance()
            if tok.text == "<":
                depth += 1
            elif tok.text == ">":
                depth -= 1
                if depth == 0:
                    return

    # -- attributes, modifiers, parameters ---------------------------------

    def _parse_attribute_lists(self) -> list[AttributeSyntax]:
        attributes: list[AttributeSyntax] = []
        while self._at("["):
            self._advance()
            # attribute target such as [return: X] or [property: X]
            if self._at_identifier() and self._at(":", 1):
                self._advance()
                self._advance()
            while not self._at("]"):
                line = self._current_line() or -1
                name = self._parse_dotted_name()
                if self._at("<"):
                    self._skip_angle_brackets()
                arguments: list[AttributeArgument] = []
                if self._at("("):
                    arguments = self._parse_attribute_arguments()
                attributes.append(AttributeSyntax(name=name, arguments=arguments, line=line))
                if self._at(","):
                    self._advance()
                    continue
                break
            self._expect("]")
        return attributes

    def _parse_attribute_arguments(self) -> list[AttributeArgument]:
        self._expect("(")
        arguments: list[AttributeArgument] = []
        while not self._at(")"):
            name = None
            if self._at_identifier() and (self._at("=", 1) or self._at(":", 1)):
                name = self._advance().text
                self._advance()
            tokens = self._collect_until({",", ")"})
            arguments.append(AttributeArgument(name=name, tokens=tokens))
            if self._at(","):
                self._advance()
        self._expect(")")
        return arguments

    def _parse_modifiers(self) -> list[str]:
        modifiers: list[str] = []
        while self._at_identifier() and self._peek().text in _MODIFIERS:
            # `ref` / `readonly` / `file` can also start a type or name; only treat
            # them as modifiers when another word follows
            if not self._at_identifier(1) and not self._at("(", 1):
                break
            modifiers.append(self._advance().text)
        return modifiers

    def _parse_parameter_list(self) -> list[ParameterSyntax]:
        self._expect("(")
        parameters: list[ParameterSyntax] = []
        while not self._at(")"):
            self._parse_attribute_lists()
            modifiers: list[str] = []
            while self._at_identifier() and self._peek().text in _PARAMETER_MODIFIERS:
                modifiers.append(self._advance().text)
            if self._at("__arglist"):
                self._advance()
            else:
                type_ref = self._parse_type()
                name = self._expect_identifier().text
                parameters.append(ParameterSyntax(name=name, type=type_ref, modifiers=modifiers))
                if self._at("="):
                    self._advance()
                    self._collect_until({",", ")"})
            if self._at(","):
                self._advance()
                continue
            break
        self._expect(")")
        return parameters

    # -- declarations ------------------------------------------------------

    def parse(self) -> CompilationUnitSyntax:
        self._parse_namespace_body(namespace="", closed=False)
        return CompilationUnitSyntax(
            file_path=self._file_path,
            usings=self._usings,
            using_aliases=self._aliases,
            types=[t for t in self._types if t is not None],
        )

    def _at_type_declaration(self) -> bool:
        tok = self._peek()
        if tok is None or tok.kind != TokenKind.IDENTIFIER or tok.text not in _TYPE_KEYWORDS:
            return False
        if tok.text == "record":
            return self._at_identifier(1)
        return True

    def _parse_namespace_body(self, namespace: str, closed: bool) -> None:
        while True:
            if self._at_end():
                if closed:
                    raise SourceParseError(f"namespace {namespace!r} is not closed", self._current_line())
                return
            if self._at("}"):
                if not closed:
                    raise SourceParseError("unexpected '}'", self._current_line())
                self._advance()
                if self._at(";"):
                    self._advance()
                return
            if self._at(";"):
                self._advance()
                continue
            if self._at("global") and self._at("using", 1):
                self._advance()
            if self._at("using") and not self._at("(", 1):
                self._parse_using_directive()
                continue
            if self._at("extern") and self._at("alias", 1):
                self._skip_to_semicolon()
                continue
            if self._at("namespace"):
                self._advance()
                name = self._parse_dotted_name()
                full_name = f"{namespace}.{name}" if namespace else name
                if self._at(";"):
                    # file-scoped namespace: the rest of the file belongs to it
                    self._advance()
                    self._parse_namespace_body(full_name, closed=closed)
                    return
                self._expect("{")
                self._parse_namespace_body(full_name, closed=True)
                continue

            attributes = self._parse_attribute_lists()
            modifiers = self._parse_modifiers()
            if self._at_type_declaration():
                self._parse_type_declaration(attributes, modifiers, namespace, containing=[])
            elif self._at("delegate"):
                self._skip_to_semicolon()
            elif modifiers or not attributes:
                # top-level statements and anything else we do not model
                self._skip_member()

    def _parse_using_directive(self) -> None:
        self._expect("using")
        if self._at("static"):
            self._skip_to_semicolon()
            return
        if self._at_identifier() and self._at("=", 1):
            alias = self._advance().text
            self._advance()
            self._aliases[alias] = self._parse_type()
            self._expect(";")
            return
        self._usings.append(self._parse_dotted_name())
        self._expect(";")

    def _parse_type_declaration(
        self,
        attributes: list[AttributeSyntax],
        modifiers: list[str],
        namespace: str,
        containing: list[str],
    ) -> None:
        keyword = self._advance()
        kind = {
            "class": DeclarationKind.CLASS,
            "interface": DeclarationKind.INTERFACE,
            "struct": DeclarationKind.STRUCT,
            "enum": DeclarationKind.ENUM,
            "record": DeclarationKind.RECORD,
        }[keyword.text]
        if kind == DeclarationKind.RECORD:
            if self._at("struct"):
                self._advance()
                kind = DeclarationKind.RECORD_STRUCT
            elif self._at("class"):
                self._advance()

        name = self._expect_identifier().text
        # reserve the slot so outer types precede their nested types
        slot = len(self._types)
        self._types.append(None)

        type_parameters = self._parse_type_parameter_list() if self._at("<") else []
        primary_parameters = self._parse_parameter_list() if self._at("(") else []

        base_types: list[TypeRef] = []
        if self._at(":"):
            self._advance()
            while True:
                base_types.append(self._parse_type())
                if self._at("("):
                    self._skip_balanced()  # record base constructor arguments
                if self._at(","):
                    self._advance()
                    continue
                break
        if self._at("where"):
            self._collect_until({"{", ";"})

        members: list[MemberSyntax] = []
        methods: list[MethodSyntax] = []
        if kind == DeclarationKind.ENUM:
            if self._at("{"):
                self._skip_balanced()
            else:
                self._expect(";")
        elif self._at("{"):
            self._advance()
            members, methods = self._parse_type_body(namespace, [*containing, name])
        elif self._at(";"):
            self._advance()
        else:
            raise SourceParseError(f"expected body for type {name!r}", self._current_line())
        if self._at(";"):
            self._advance()

        record_parameters = primary_parameters if kind in (
            DeclarationKind.RECORD, DeclarationKind.RECORD_STRUCT
        ) else []

        self._types[slot] = TypeDeclarationSyntax(
            kind=kind,
            name=name,
            namespace=namespace,
            containing_types=list(containing),
            type_parameters=type_parameters,
            base_types=base_types,
            modifiers=modifiers,
            attributes=attributes,
            record_parameters=record_parameters,
            members=members,
            methods=methods,
            line=keyword.line,
        )

    def _parse_type_body(
        self,
        namespace: str,
        containing: list[str],
    ) -> tuple[list[MemberSyntax], list[MethodSyntax]]:
        members: list[MemberSyntax] = []
        methods: list[MethodSyntax] = []
        type_name = containing[-1]

        while True:
            if self._at_end():
                raise SourceParseError(f"type {type_name!r} is not closed", self._current_line())
            if self._at("}"):
                self._advance()
                return members, methods
            if self._at(";"):
                self._advance()
                continue

            attributes = self._parse_attribute_lists()
            modifiers = self._parse_modifiers()

            if self._at_type_declaration():
                self._parse_type_declaration(attributes, modifiers, namespace, containing)
                continue
            if self._at("}"):
                continue
            tok = self._peek()
            if tok is None:
                continue
            if tok.text in ("delegate", "event", "~", "implicit", "explicit"):
                self._skip_member()
                continue
            if tok.text == type_name and self._at("(", 1):
                self._skip_member()  # constructor
                continue

            line = tok.line
            member_type = self._parse_type()
            if self._at("operator") or self._at("this"):
                self._skip_member()
                continue

            name, explicit = self._parse_member_name()
            method_type_parameters = self._parse_type_parameter_list() if self._at("<") else []

            if self._at("("):
                parameters = self._parse_parameter_list()
                self._skip_member()
                methods.append(MethodSyntax(
                    name=name,
                    attributes=attributes,
                    modifiers=modifiers,
                    type_parameters=method_type_parameters,
                    parameters=parameters,
                    return_type=member_type,
                    line=line,
                ))
            elif self._at("{"):
                readable = self._parse_accessor_list()
                if self._at("="):
                    self._skip_to_semicolon()
                members.append(MemberSyntax(
                    kind=MemberKind.PROPERTY,
                    name=name,
                    type=member_type,
                    modifiers=modifiers,
                    is_readable=readable,
                    is_explicit_implementation=explicit,
                    line=line,
                ))
            elif self._at("=>"):
                self._advance()
                self._skip_to_semicolon()
                members.append(MemberSyntax(
                    kind=MemberKind.PROPERTY,
                    name=name,
                    type=member_type,
                    modifiers=modifiers,
                    is_explicit_implementation=explicit,
                    line=line,
                ))
            else:
                members.extend(self._parse_field_declarators(name, member_type, modifiers, line))

    def _parse_field_declarators(
        self,
        first_name: str,
        field_type: TypeRef,
        modifiers: list[str],
        line: int,
    ) -> list[MemberSyntax]:
        fields: list[MemberSyntax] = []
        name = first_name
        while True:
            if self._at("["):
                self._skip_balanced()  # fixed size buffer
            initializer: list[SyntaxToken] = []
            if self._at("="):
                self._advance()
                initializer = self._collect_until({",", ";"})
            fields.append(MemberSyntax(
                kind=MemberKind.FIELD,
                name=name,
                type=field_type,
                modifiers=modifiers,
                initializer=initializer if "const" in modifiers else [],
                line=line,
            ))
            if self._at(","):
                self._advance()
                name = self._expect_identifier().text
                continue
            self._expect(";")
            return fields

    def _parse_accessor_list(self) -> bool:
        """Parse `{ get; set; }` and return whether a non-restricted getter exists."""
        self._expect("{")
        readable = False
        while not self._at("}"):
            self._parse_attribute_lists()
            accessor_modifiers = self._parse_modifiers()
            accessor = self._expect_identifier().text
            if accessor == "get" and not (set(accessor_modifiers) & _NON_PUBLIC_ACCESS):
                readable = True
            if self._at(";"):
                self._advance()
            elif self._at("{"):
                self._skip_balanced()
            elif self._at("=>"):
                self._advance()
                self._skip_to_semicolon()
            else:
                raise SourceParseError(f"malformed accessor {accessor!r}", self._current_line())
        self._expect("}")
        return readable


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_source(source: str, file_path: str = "<memory>") -> CompilationUnitSyntax:
    """
    Parse C# source text into a CompilationUnitSyntax.

    Raises:
        SourceParseError: If the text is not well-formed enough to find declarations.
    """
    tokens = tokenize(source)
    unit = _Parser(tokens, file_path).parse()
    logger.debug("Parsed %s: %d types", file_path, len(unit.types))
    return unit


def parse_file(path: Path) -> CompilationUnitSyntax:
    """Read and parse a single .cs file (UTF-8, BOM tolerated)."""
    source = path.read_text(encoding="utf-8-sig", errors="replace")
    return parse_source(source, file_path=str(path))
