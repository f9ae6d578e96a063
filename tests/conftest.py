from pathlib import Path

import pytest

from precompress.compress import get_engine_registry, set_engine_registry
from precompress.models import PrecompressOptions


@pytest.fixture(autouse=True)
def restore_engine_registry():
    original = dict(get_engine_registry())
    yield
    set_engine_registry(original)


@pytest.fixture
def make_options(tmp_path: Path):
    def factory(**kwargs) -> PrecompressOptions:
        kwargs.setdefault("input_dir", tmp_path)
        kwargs.setdefault("output_dir", kwargs["input_dir"])
        return PrecompressOptions(**kwargs)

    return factory


@pytest.fixture
def fixed_size_encoder():
    def factory(size: int):
        def encode(source: Path, output: Path, options: PrecompressOptions) -> None:
            output.write_bytes(b"x" * size)

        return encode

    return factory
