from pathlib import Path
import logging

import pytest

from precompress.models import (
    DEFAULT_SUFFIXES,
    Algorithm,
    CompressResult,
    PrecompressOptions,
    is_included,
    iter_files,
    iter_included_files,
)


def test_empty_file_is_excluded(tmp_path: Path, make_options):
    empty = tmp_path / "empty.js"
    empty.write_bytes(b"")
    assert not is_included(empty, make_options(min_size=0))


def test_file_below_min_size_is_excluded(tmp_path: Path, make_options):
    tiny = tmp_path / "tiny.txt"
    tiny.write_bytes(b"a")
    assert not is_included(tiny, make_options(min_size=2))
    assert is_included(tiny, make_options(min_size=1))


def test_unlisted_suffix_is_excluded(tmp_path: Path, make_options):
    archive = tmp_path / "already.tar"
    archive.write_bytes(b"a" * 4096)
    assert not is_included(archive, make_options())


def test_suffix_match_is_case_sensitive(tmp_path: Path, make_options):
    upper = tmp_path / "APP.JS"
    upper.write_bytes(b"a" * 100)
    assert not is_included(upper, make_options())
    assert is_included(upper, make_options(include_suffixes=(".JS",)))


def test_directory_is_excluded(tmp_path: Path, make_options):
    directory = tmp_path / "assets.js"
    directory.mkdir()
    assert not is_included(directory, make_options())


def test_suffix_is_matched_against_whole_name(tmp_path: Path, make_options):
    bundle = tmp_path / "bundle.min.js"
    bundle.write_bytes(b"a" * 100)
    assert is_included(bundle, make_options(include_suffixes=(".min.js",)))
    assert not is_included(bundle, make_options(include_suffixes=(".css",)))


def test_from_strings_defaults_output_to_input(tmp_path: Path):
    options = PrecompressOptions.from_strings(tmp_path)
    assert options.output_dir == tmp_path
    assert options.include_suffixes == DEFAULT_SUFFIXES
    assert options.algorithms == (Algorithm.GZIP, Algorithm.BROTLI)
    assert options.min_size == 2


def test_from_strings_keeps_algorithm_order(tmp_path: Path):
    options = PrecompressOptions.from_strings(
        tmp_path, tmp_path / "out", include_suffixes=" .css , .js,", algorithms="brotli,Gzip"
    )
    assert options.output_dir == tmp_path / "out"
    assert options.include_suffixes == (".css", ".js")
    assert options.algorithms == (Algorithm.BROTLI, Algorithm.GZIP)


def test_unknown_algorithm_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError, match="zstd"):
        PrecompressOptions.from_strings(tmp_path, algorithms="GZIP,zstd")


@pytest.mark.parametrize(
    "kwargs",
    [{"min_size": -1}, {"gzip_level": 0}, {"gzip_level": 10}, {"brotli_quality": 12}],
)
def test_invalid_option_values_are_rejected(tmp_path: Path, kwargs):
    with pytest.raises(ValueError):
        PrecompressOptions(input_dir=tmp_path, output_dir=tmp_path, **kwargs)


def test_algorithm_suffixes():
    assert Algorithm.GZIP.suffix == ".gz"
    assert Algorithm.BROTLI.suffix == ".br"


def test_percent_is_floored(tmp_path: Path):
    result = CompressResult(tmp_path, tmp_path, Algorithm.GZIP, 3, 2, True, "")
    assert result.percent == 66
    result = CompressResult(tmp_path, tmp_path, Algorithm.GZIP, 10000, 10050, False, "")
    assert result.percent == 100


def test_iter_files_walks_nested_directories(tmp_path: Path):
    (tmp_path / "css").mkdir()
    (tmp_path / "js" / "vendor").mkdir(parents=True)
    (tmp_path / "index.html").write_text("<html></html>")
    (tmp_path / "css" / "site.css").write_text("body {}")
    (tmp_path / "js" / "vendor" / "lib.js").write_text("var a;")
    files = list(iter_files(tmp_path))
    assert sorted(path.relative_to(tmp_path).as_posix() for path in files) == [
        "css/site.css",
        "index.html",
        "js/vendor/lib.js",
    ]


def test_iter_files_logs_unlistable_directory(tmp_path: Path, monkeypatch, caplog):
    (tmp_path / "locked").mkdir()
    (tmp_path / "locked" / "secret.js").write_text("var a;")
    (tmp_path / "open").mkdir()
    (tmp_path / "open" / "app.js").write_text("var b;")
    original_iterdir = Path.iterdir

    def iterdir(self):
        if self.name == "locked":
            raise PermissionError("permission denied")
        return original_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)
    with caplog.at_level(logging.ERROR, logger="precompress"):
        files = list(iter_files(tmp_path))
    assert files == [tmp_path / "open" / "app.js"]
    assert "cannot list directory" in caplog.text
    assert "locked" in caplog.text


def test_iter_included_files_applies_filter(tmp_path: Path, make_options):
    (tmp_path / "app.js").write_text("console.log('hello');")
    (tmp_path / "tiny.txt").write_text("a")
    (tmp_path / "already.tar").write_bytes(b"a" * 100)
    assert list(iter_included_files(make_options())) == [tmp_path / "app.js"]


def test_iter_files_does_not_enter_skipped_directory(tmp_path: Path):
    (tmp_path / "app.js").write_text("var a;")
    (tmp_path / "public").mkdir()
    (tmp_path / "public" / "app.js.gz").write_bytes(b"gz")
    files = list(iter_files(tmp_path, skip=(tmp_path / "public").resolve()))
    assert files == [tmp_path / "app.js"]


def test_iter_included_files_skips_nested_output_root(tmp_path: Path, make_options):
    (tmp_path / "app.js").write_text("console.log('hello');")
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "old.js").write_text("console.log('old');")
    nested = make_options(output_dir=tmp_path / "dist")
    assert list(iter_included_files(nested)) == [tmp_path / "app.js"]
    in_place = make_options()
    assert list(iter_included_files(in_place)) == [tmp_path / "app.js", tmp_path / "dist" / "old.js"]
