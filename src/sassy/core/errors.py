"""
Error types for Sassy theme parsing, merging, resolution and emission.
"""

from dataclasses import dataclass, field
from typing import Optional


class SassyError(Exception):
    """Base exception for all Sassy errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(SassyError):
    """
    Raised when a theme source cannot be parsed.

    Examples:
    - Malformed expression text
    - A layer section with the wrong shape
    - Unknown base type
    - Import cycles between source files
    """

    pass


class UnresolvedReferenceError(SassyError):
    """
    Raised when a reference names a variable or palette entry that does not exist.
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        *,
        name: str = "",
        use_site: str = "",
    ):
        self.name = name
        self.use_site = use_site
        super().__init__(message, context)


class CyclicReferenceError(SassyError):
    """
    Raised when references form a cycle.

    ``cycle`` holds the full chain, starting and ending on the same name.
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        *,
        cycle: tuple[str, ...] = (),
    ):
        self.cycle = cycle
        super().__init__(message, context)


class ColorTypeError(SassyError, TypeError):
    """
    Raised when a color function receives an argument of the wrong shape.

    Examples:
    - A number where a color is expected
    - A color where a number is expected
    - Wrong argument count
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        *,
        expected: str = "",
        actual: str = "",
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(message, context)


class DuplicateKeyError(SassyError):
    """
    Raised when two different nestings collapse to the same flat key,
    or a document defines the same variable or palette name twice.
    """

    pass


class MergeConflictError(SassyError):
    """
    Raised when a key is a group in one document and a leaf value in another.
    """

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        document: Origin of the document where the error occurred
        key: Offending key or variable name
        chain: Reference chain that led to the error
        import_chain: Documents that imported ``document``, outermost first
    """

    document: str | None = None
    key: str | None = None
    chain: tuple[str, ...] = ()
    import_chain: tuple[str, ...] = field(default_factory=tuple)

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "base.yaml (imported via main.yaml) at colors.editor.background"
        """
        parts: list[str] = []
        if self.document:
            parts.append(self.document)
        if self.import_chain:
            parts.append(f"(imported via {' -> '.join(self.import_chain)})")
        if self.key:
            parts.append(f"at {self.key}")
        text = " ".join(parts) if parts else "<theme>"
        if self.chain:
            text += f"\n  reference chain: {' -> '.join(self.chain)}"
        return text


def attach_import_chain(error: SassyError, import_chain: tuple[str, ...]) -> SassyError:
    """Record which documents imported the one an error came from."""
    if not import_chain:
        return error
    if error.context is None:
        error.context = ErrorContext()
    if not error.context.import_chain:
        error.context.import_chain = import_chain
        error.args = (error._format_message(),)
    return error


def make_parse_error(
    message: str,
    document: str | None = None,
    key: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        document: Optional origin of the offending document
        key: Optional offending key

    Returns:
        ParseError with context if a location was provided
    """
    if document or key:
        return ParseError(message, ErrorContext(document=document, key=key))
    return ParseError(message)


def make_unresolved_error(
    name: str,
    use_site: str,
    document: str | None = None,
    chain: tuple[str, ...] = (),
) -> UnresolvedReferenceError:
    """Helper to create an UnresolvedReferenceError naming the missing identifier."""
    context = ErrorContext(document=document, key=use_site, chain=chain)
    return UnresolvedReferenceError(
        f"Unresolved reference '${name}' used by {use_site}",
        context,
        name=name,
        use_site=use_site,
    )


def make_cycle_error(
    cycle: tuple[str, ...],
    document: str | None = None,
) -> CyclicReferenceError:
    """Helper to create a CyclicReferenceError naming the full cycle."""
    context = ErrorContext(document=document, key=cycle[0] if cycle else None)
    return CyclicReferenceError(
        f"Cyclic reference: {' -> '.join(cycle)}",
        context,
        cycle=cycle,
    )
