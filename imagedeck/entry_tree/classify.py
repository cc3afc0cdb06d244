"""Extension-based classification of entry names."""

from __future__ import annotations

from collections.abc import Iterable

from .types import FileKind

DEFAULT_IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "jpe", "jfif", "pjpeg", "pjp", "png", "gif", "tif", "tiff", "bmp", "dib", "webp"}
)
DEFAULT_VIDEO_EXTENSIONS = frozenset({"mp4", "avi", "mov", "mkv", "wmv", "flv", "webm"})
DEFAULT_ARCHIVE_EXTENSIONS = frozenset({"zip", "tar", "gz", "bz2", "xz", "7z"})


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions and strip leading dots; blank values are skipped."""
    normalized: set[str] = set()
    for raw in extensions:
        ext = str(raw).strip().lstrip(".").lower()
        if ext:
            normalized.add(ext)
    return frozenset(normalized)


class EntryClassifier:
    """Classify names as image, video, archive, or unknown.

    Matching is a case-insensitive suffix test. When sets overlap the first
    match in Image, Video, Archive order wins.
    """

    def __init__(
        self,
        image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
        video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS,
        archive_extensions: Iterable[str] = DEFAULT_ARCHIVE_EXTENSIONS,
    ) -> None:
        self._ordered: tuple[tuple[FileKind, frozenset[str]], ...] = (
            (FileKind.IMAGE, normalize_extensions(image_extensions)),
            (FileKind.VIDEO, normalize_extensions(video_extensions)),
            (FileKind.ARCHIVE, normalize_extensions(archive_extensions)),
        )

    def extensions_for(self, kind: FileKind) -> frozenset[str]:
        for candidate, extensions in self._ordered:
            if candidate is kind:
                return extensions
        return frozenset()

    def classify(self, name: str) -> FileKind:
        lowered = name.lower()
        for kind, extensions in self._ordered:
            for ext in extensions:
                if lowered.endswith("." + ext):
                    return kind
        return FileKind.UNKNOWN

    def is_archive(self, name: str) -> bool:
        return self.classify(name) is FileKind.ARCHIVE


__all__ = [
    "DEFAULT_IMAGE_EXTENSIONS",
    "DEFAULT_VIDEO_EXTENSIONS",
    "DEFAULT_ARCHIVE_EXTENSIONS",
    "EntryClassifier",
    "normalize_extensions",
]
