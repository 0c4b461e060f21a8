from __future__ import annotations


class ReqspecError(ValueError):
    """
    Base class for every parse failure raised by reqspec.

    Each error keeps the offending input text together with a human-readable reason, and
    optionally the character span of the problem inside that text. Rendering the error with
    `str()` prints the reason, the input, and a caret underline below the span, which makes
    failures inside long requirement strings easy to locate.

    Attributes:
        text (str): The complete input that failed to parse.
        reason (str): Why the input was rejected.
        start (int | None): Offset of the first offending character, if known.
        length (int): Number of characters to underline. Defaults to 1.
    """

    def __init__(self, text: str, reason: str, start: int | None = None, length: int = 1) -> None:
        self.text = text
        self.reason = reason
        self.start = start
        self.length = max(length, 1)
        super().__init__(self.render())

    def render(self) -> str:
        """
        Builds the multi-line message with the caret underline.

        Returns:
            str: The reason alone when no span is known, otherwise the reason, the input and an
                underline of `^` characters positioned below the offending span.
        """
        if self.start is None:
            return f"{self.reason}: {self.text!r}"
        width = min(self.length, max(len(self.text) - self.start, 1))
        return f"{self.reason}\n{self.text}\n{' ' * self.start}{'^' * width}"

    def __reduce__(self):
        return self.__class__, (self.text, self.reason, self.start, self.length)


class InvalidVersion(ReqspecError):
    """Raised when a version string does not follow the version scheme."""


class InvalidSpecifier(ReqspecError):
    """
    Raised when a version specifier, or a comma separated list of them, cannot be parsed.

    Covers unknown operators, wildcard misuse (a `.*` suffix on an ordering operator or combined
    with pre, post, dev or local segments), local versions on ordering operators, and `~=` with a
    single release component.
    """


class InvalidMarker(ReqspecError):
    """
    Raised when an environment marker expression cannot be parsed.

    Covers unknown marker variables, unbalanced parentheses, unterminated string literals and
    missing or unknown comparison operators.
    """


class InvalidRequirement(ReqspecError):
    """
    Raised when a dependency specifier string cannot be parsed.

    Covers invalid project or extra names, malformed specifier lists, a version specifier combined
    with a direct URL, and malformed marker clauses (the marker error is chained as the cause).
    """
