from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def test_only_the_package_is_installed():
    text = PYPROJECT.read_text(encoding="utf-8")
    assert "py-modules" not in text
    assert 'include = ["precompress*"]' in text
    assert 'precompress = "precompress.cli:main"' in text
    assert 'precompress-gui = "precompress.app:main"' in text
