"""Error message templates.

Centralized error message templates for testable, consistent error messages.
Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode, SourceSpan

__all__ = ["ErrorTemplate"]


class ErrorTemplate:
    """Centralized error message templates.

    All error messages are created here. NO f-strings in exception constructors!
    This keeps raise sites short while providing:
        - Testable error messages
        - Consistent formatting
        - Documentation of all error cases
    """

    # =========================================================================
    # CONTRACT VIOLATIONS (1000-1999)
    # =========================================================================

    @staticmethod
    def seek_out_of_range(offset: int, length: int) -> Diagnostic:
        """Scan offset outside the input buffer.

        Args:
            offset: The rejected offset
            length: Length of the input buffer

        Returns:
            Diagnostic for SEEK_OUT_OF_RANGE
        """
        msg = f"Offset {offset} out of range [0, {length}]"
        return Diagnostic(
            code=DiagnosticCode.SEEK_OUT_OF_RANGE,
            message=msg,
            hint="Combinators must only rewind to offsets they previously observed",
        )

    @staticmethod
    def invalid_argument(name: str, reason: str) -> Diagnostic:
        """Combinator constructed with an unusable argument.

        Args:
            name: Argument name
            reason: What is wrong with it

        Returns:
            Diagnostic for INVALID_ARGUMENT
        """
        msg = f"Invalid argument '{name}': {reason}"
        return Diagnostic(code=DiagnosticCode.INVALID_ARGUMENT, message=msg)

    # =========================================================================
    # RESOURCE LIMITS (2000-2999)
    # =========================================================================

    @staticmethod
    def source_too_large(size: int, limit: int) -> Diagnostic:
        """Input exceeds the configured size limit.

        Args:
            size: Length of the rejected input
            limit: Configured maximum

        Returns:
            Diagnostic for SOURCE_TOO_LARGE
        """
        msg = f"Source length {size} exceeds maximum of {limit} characters"
        return Diagnostic(
            code=DiagnosticCode.SOURCE_TOO_LARGE,
            message=msg,
            hint="Pass max_source_size=0 to disable the limit",
        )

    @staticmethod
    def expression_depth_exceeded(max_depth: int) -> Diagnostic:
        """Recursive rule nesting exceeded the depth bound.

        Args:
            max_depth: The configured maximum depth

        Returns:
            Diagnostic for MAX_DEPTH_EXCEEDED
        """
        msg = f"Maximum rule nesting depth ({max_depth}) exceeded"
        return Diagnostic(
            code=DiagnosticCode.MAX_DEPTH_EXCEEDED,
            message=msg,
            hint="Check the grammar for left recursion or raise max_depth",
        )

    # =========================================================================
    # SYNTAX ERRORS (3000-3999)
    # =========================================================================

    @staticmethod
    def syntax_error(
        source_label: str,
        span: SourceSpan,
        expected: tuple[str, ...] = (),
    ) -> Diagnostic:
        """Parse failure located in the source.

        The message format is part of the user-visible contract:
        ``in <label>:<line> at <col>`` followed, when labels are known, by
        ``, expect token [ a | b ]``.

        Args:
            source_label: Name of the parsed source (file name or similar)
            span: Location of the failure
            expected: Labels of the tokens expected at the failure point

        Returns:
            Diagnostic for EXPECTED_TOKEN when labels are known,
            UNEXPECTED_INPUT otherwise
        """
        msg = f"in {source_label}:{span.line} at {span.column}"
        if expected:
            msg += f", expect token [ {' | '.join(expected)} ]"
            code = DiagnosticCode.EXPECTED_TOKEN
        else:
            code = DiagnosticCode.UNEXPECTED_INPUT
        return Diagnostic(
            code=code,
            message=msg,
            span=span,
            hint="Check the input near the reported position",
            expected=expected,
        )
