from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator
import logging

logger = logging.getLogger(__name__)

DEFAULT_INPUT_DIR = Path("build") / "classes"
DEFAULT_SUFFIXES = (".css", ".js", ".svg", ".txt", ".md", ".html", ".xml", ".json")
DEFAULT_MIN_SIZE = 2
DEFAULT_GZIP_LEVEL = 9
DEFAULT_BROTLI_QUALITY = 11


class Algorithm(Enum):
    GZIP = ".gz"
    BROTLI = ".br"

    @property
    def suffix(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> Algorithm:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown algorithm: {name!r}") from None


DEFAULT_ALGORITHMS = (Algorithm.GZIP, Algorithm.BROTLI)


@dataclass(frozen=True)
class PrecompressOptions:
    input_dir: Path
    output_dir: Path
    include_suffixes: tuple[str, ...] = DEFAULT_SUFFIXES
    algorithms: tuple[Algorithm, ...] = DEFAULT_ALGORITHMS
    min_size: int = DEFAULT_MIN_SIZE
    gzip_level: int = DEFAULT_GZIP_LEVEL
    brotli_quality: int = DEFAULT_BROTLI_QUALITY

    def __post_init__(self) -> None:
        if self.min_size < 0:
            raise ValueError("min_size must not be negative")
        if not 1 <= self.gzip_level <= 9:
            raise ValueError("gzip_level must be between 1 and 9")
        if not 0 <= self.brotli_quality <= 11:
            raise ValueError("brotli_quality must be between 0 and 11")

    @classmethod
    def from_strings(
        cls,
        input_dir: str | Path,
        output_dir: str | Path | None = None,
        include_suffixes: str = ",".join(DEFAULT_SUFFIXES),
        algorithms: str = "GZIP,BROTLI",
        min_size: int = DEFAULT_MIN_SIZE,
        **kwargs: int,
    ) -> PrecompressOptions:
        """Build options from comma separated suffix and algorithm lists.

        The output directory defaults to the input directory, in which case
        artifacts are written next to their sources.
        """
        input_path = Path(input_dir)
        return cls(
            input_dir=input_path,
            output_dir=Path(output_dir) if output_dir else input_path,
            include_suffixes=split_list(include_suffixes),
            algorithms=tuple(Algorithm.parse(name) for name in split_list(algorithms)),
            min_size=min_size,
            **kwargs,
        )


@dataclass(frozen=True)
class CompressResult:
    source: Path
    output: Path
    algorithm: Algorithm
    original_size: int
    compressed_size: int
    kept: bool
    message: str

    @property
    def percent(self) -> int:
        if self.original_size <= 0:
            return 100
        return self.compressed_size * 100 // self.original_size


def split_list(value: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(item.strip() for item in value.split(",") if item.strip()))


def is_included(path: Path, options: PrecompressOptions) -> bool:
    if not path.is_file():
        return False
    try:
        size = path.stat().st_size
    except OSError:
        return False
    if size <= 0 or size < options.min_size:
        return False
    return any(path.name.endswith(suffix) for suffix in options.include_suffixes)


def iter_files(root: Path, skip: Path | None = None) -> Iterator[Path]:
    """Yield every regular file below ``root``, depth first.

    Each directory is listed completely before any of its entries are
    yielded, so files created in it while the caller consumes the iterator
    are not visited. The directory ``skip`` (compared after resolving) is not
    entered. Directories that cannot be listed are logged and skipped.
    Symlinked directories are not followed.
    """
    try:
        children = sorted(root.iterdir())
    except OSError as exc:
        logger.error("cannot list directory %s: %s", root, exc)
        return
    for child in children:
        if child.is_dir() and not child.is_symlink():
            if skip is not None and child.resolve() == skip:
                logger.debug("skip output directory %s", child)
                continue
            yield from iter_files(child, skip)
        elif child.is_file():
            yield child


def iter_included_files(options: PrecompressOptions) -> Iterable[Path]:
    # An output root nested in the input root holds artifacts, not sources.
    output_root = options.output_dir.resolve()
    skip = output_root if output_root != options.input_dir.resolve() else None
    for path in iter_files(options.input_dir, skip):
        if is_included(path, options):
            yield path
        else:
            logger.debug("skip %s", path)
