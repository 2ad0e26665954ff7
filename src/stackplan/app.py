"""Read-only view of an application source tree."""

from __future__ import annotations

from pathlib import Path

from stackplan.errors import SourceTreeError


class App:
    __slots__ = ("source",)

    def __init__(self, source: str | Path) -> None:
        root = Path(source)
        if not root.is_dir():
            raise SourceTreeError(
                "Application source directory does not exist.",
                hint="Pass the path of the project root to build.",
                context={"operation": "open_app", "path": str(root)},
            )
        self.source = root.resolve()

    def includes_file(self, name: str) -> bool:
        return (self.source / name).is_file()

    def includes_directory(self, name: str) -> bool:
        return (self.source / name).is_dir()

    def read_file(self, name: str, *, errors: str = "strict") -> str:
        path = self.source / name
        try:
            return path.read_text(encoding="utf-8", errors=errors)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceTreeError(
                f"Unable to read `{name}` from the application source.",
                context={"operation": "read_file", "path": str(path)},
            ) from exc

    def find_files(self, pattern: str) -> list[Path]:
        """Return paths relative to the source root matching *pattern*, sorted."""
        return sorted(
            path.relative_to(self.source)
            for path in self.source.glob(pattern)
            if path.is_file()
        )
