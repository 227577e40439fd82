"""Diagnostics raised while compiling D-Bus object declarations"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Span:
    """Location of a piece of DSL source (1-based line and column)"""
    start: int
    end: int
    line: int
    column: int

    def to(self, other: "Span") -> "Span":
        """Span running from the start of this one to the end of `other`"""
        return Span(self.start, max(self.end, other.end), self.line, self.column)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Diagnostic:
    """A single message anchored at a span"""
    message: str
    span: Optional[Span] = None
    info: Optional[str] = None


class DBusIDLError(Exception):
    """Base class for every error reported by the compiler.

    An error carries one or more diagnostics. The first is the error itself,
    any further ones point at related locations (for instance the earlier
    definition of a duplicated destination).
    """

    def __init__(self, message: str, span: Optional[Span] = None, info: Optional[str] = None):
        super().__init__(message)
        self.diagnostics = [Diagnostic(message, span, info)]

    @property
    def message(self) -> str:
        return self.diagnostics[0].message

    @property
    def span(self) -> Optional[Span]:
        return self.diagnostics[0].span

    def combine(self, other: "DBusIDLError") -> "DBusIDLError":
        """Append the diagnostics of `other` to this error"""
        self.diagnostics.extend(other.diagnostics)
        return self

    def __str__(self) -> str:
        parts = []
        for diag in self.diagnostics:
            text = f"{diag.span}: {diag.message}" if diag.span else diag.message
            if diag.info:
                text += f" ({diag.info})"
            parts.append(text)
        return "; ".join(parts)

    def render(self, source: str, filename: str = "<dbus>") -> str:
        """Render all diagnostics with a source excerpt and caret markers"""
        source_lines = source.splitlines()
        out = []
        for index, diag in enumerate(self.diagnostics):
            level = "error" if index == 0 else "note"
            if diag.span is None:
                out.append(f"{filename}: {level}: {diag.message}")
            else:
                out.append(f"{filename}:{diag.span}: {level}: {diag.message}")
                if 0 < diag.span.line <= len(source_lines):
                    text = source_lines[diag.span.line - 1]
                    width = max(1, min(diag.span.end - diag.span.start, len(text) - diag.span.column + 1))
                    out.append(f"    {text}")
                    out.append("    " + " " * (diag.span.column - 1) + "^" * width)
            if diag.info:
                out.append(f"    = info: {diag.info}")
        return "\n".join(out)


class DBusIDLSyntaxError(DBusIDLError):
    """Malformed DSL input"""


class DBusIDLValidationError(DBusIDLError):
    """Well-formed input that breaks a declaration rule"""


class UnsupportedFeatureError(DBusIDLError, NotImplementedError):
    """A construct the compiler deliberately refuses to emit"""


class WireDecodeError(ValueError):
    """A reply value could not be decoded into its declared host type"""
