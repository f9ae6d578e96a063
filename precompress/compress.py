from __future__ import annotations

from functools import partial
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterable
import gzip
import importlib
import logging
import shutil

from .models import Algorithm, CompressResult, PrecompressOptions, iter_included_files

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
Encoder = Callable[[Path, Path, PrecompressOptions], None]
_ENGINE_REGISTRY: dict[Algorithm, Encoder] = {}


class PrecompressError(Exception):
    pass


class CodecUnavailableError(PrecompressError):
    def __init__(self, algorithm: Algorithm, reason: str) -> None:
        super().__init__(f"{algorithm.name} support is not available: {reason}")
        self.algorithm = algorithm


def precompress(options: PrecompressOptions) -> list[CompressResult]:
    ensure_available(options.algorithms)
    results = []
    for source in iter_included_files(options):
        results.extend(compress_file(source, options))
    return results


def ensure_available(algorithms: Iterable[Algorithm]) -> None:
    for algorithm in algorithms:
        if algorithm is Algorithm.BROTLI:
            load_brotli()


def load_brotli() -> ModuleType:
    try:
        return importlib.import_module("brotli")
    except ImportError as exc:
        raise CodecUnavailableError(Algorithm.BROTLI, str(exc)) from exc


def compress_file(source: Path, options: PrecompressOptions) -> list[CompressResult]:
    return [compress_with(source, algorithm, options) for algorithm in options.algorithms]


def compress_with(source: Path, algorithm: Algorithm, options: PrecompressOptions) -> CompressResult:
    registry = get_engine_registry()
    output = build_output_path(source, algorithm, options)
    try:
        original_size = source.stat().st_size
        output.parent.mkdir(parents=True, exist_ok=True)
        registry[algorithm](source, output, options)
        compressed_size = output.stat().st_size
    except OSError as exc:
        logger.error("%s compression of %s failed: %s", algorithm.name, source, exc)
        return CompressResult(source, output, algorithm, 0, 0, False, str(exc))
    result = CompressResult(source, output, algorithm, original_size, compressed_size, True, "")
    if result.percent >= 100:
        output.unlink(missing_ok=True)
        logger.debug("discard %s (%s%%)", output, result.percent)
        return CompressResult(
            source, output, algorithm, original_size, compressed_size, False, "no size reduction"
        )
    logger.info(
        "%s(%sb) -> %s(%sb)[%s%%]",
        source.name,
        original_size,
        output.name,
        compressed_size,
        result.percent,
    )
    return result


def build_output_path(source: Path, algorithm: Algorithm, options: PrecompressOptions) -> Path:
    relative = source.relative_to(options.input_dir)
    candidate = options.output_dir / relative
    return candidate.with_name(candidate.name + algorithm.suffix)


def compress_gzip(source: Path, output: Path, options: PrecompressOptions) -> None:
    # Empty file name and zero mtime keep the header identical between runs.
    with source.open("rb") as src, output.open("wb") as raw, gzip.GzipFile(
        filename="", mode="wb", compresslevel=options.gzip_level, fileobj=raw, mtime=0
    ) as dst:
        shutil.copyfileobj(src, dst, CHUNK_SIZE)


def compress_brotli(source: Path, output: Path, options: PrecompressOptions) -> None:
    brotli = load_brotli()
    compressor = brotli.Compressor(quality=options.brotli_quality)
    with source.open("rb") as src, output.open("wb") as dst:
        for chunk in iter(partial(src.read, CHUNK_SIZE), b""):
            dst.write(compressor.process(chunk))
        dst.write(compressor.finish())


def get_engine_registry() -> dict[Algorithm, Encoder]:
    global _ENGINE_REGISTRY
    if not _ENGINE_REGISTRY:
        _ENGINE_REGISTRY = {
            Algorithm.GZIP: compress_gzip,
            Algorithm.BROTLI: compress_brotli,
        }
    return _ENGINE_REGISTRY


def set_engine_registry(registry: dict[Algorithm, Encoder]) -> None:
    global _ENGINE_REGISTRY
    _ENGINE_REGISTRY = dict(registry)
