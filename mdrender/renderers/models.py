"""Models and errors for the renderer subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field


class RenderError(Exception):
    """Wraps a backend failure with the language and operation involved."""

    def __init__(self, language: str, operation: str, cause: Exception | str) -> None:
        self.language = language
        self.operation = operation
        super().__init__(f"{language} {operation} failed: {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause


class UnsupportedLanguageError(ValueError):
    """Raised when no backend is registered for a language."""

    def __init__(self, language: str, supported: list[str]) -> None:
        self.language = language
        super().__init__(
            f"Unsupported render language: {language!r}. "
            f"Supported: {', '.join(supported)}"
        )


@dataclass(frozen=True)
class RendererBackend:
    """An external program that turns diagram source into an image.

    Source is piped on stdin and the image is read from stdout. The
    argument list is the format flag for the output extension (when the
    backend has one) followed by ``extra_args``.
    """

    language: str
    executable: str
    extensions: tuple[str, ...] = ("svg",)
    format_flags: dict[str, str] = field(default_factory=dict)
    extra_args: tuple[str, ...] = ()

    def args(self, ext: str) -> list[str]:
        args: list[str] = []
        flag = self.format_flags.get(ext) or self.format_flags.get(self.extensions[0])
        if flag:
            args.append(flag)
        args.extend(self.extra_args)
        return args
