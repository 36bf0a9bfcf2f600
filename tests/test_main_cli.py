from __future__ import annotations

import os
from pathlib import Path

import pytest

pytest.importorskip("pyvips")
pil_image = pytest.importorskip("PIL.Image")

from cutout_viewer.main import run  # noqa: E402


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "src.png"
    pil_image.new("RGB", (100, 50), (10, 200, 30)).save(path)
    return path


def test_cutout_command(source: Path, tmp_path: Path, capsys) -> None:
    out = tmp_path / "out.png"

    rc = run(["prog", "cutout", str(source), str(out), "--start", "0.5", "--end", "0.2"])

    assert rc == 0
    assert pil_image.open(out).size == (70, 50)
    assert "100x50 -> 70x50" in capsys.readouterr().out


def test_cutout_entire_image_fails(source: Path, tmp_path: Path) -> None:
    out = tmp_path / "out.png"

    rc = run(["prog", "cutout", str(source), str(out), "--start", "0", "--end", "1"])

    assert rc == 1
    assert not out.exists()


def test_horizontal_cutout_command(source: Path, tmp_path: Path) -> None:
    out = tmp_path / "out.jpg"

    assert run(["prog", "cutout", str(source), str(out), "--axis", "horizontal", "--start", "0", "--end", "0.5"]) == 0
    assert pil_image.open(out).size == (100, 25)
    assert pil_image.open(out).format == "JPEG"


def test_resize_and_convert_commands(source: Path, tmp_path: Path) -> None:
    small = tmp_path / "small.png"
    webp = tmp_path / "small.webp"

    assert run(["prog", "resize", str(source), str(small), "--max-width", "40", "--max-height", "40"]) == 0
    assert pil_image.open(small).size == (40, 20)

    assert run(["prog", "convert", str(small), str(webp)]) == 0
    assert webp.read_bytes()[8:12] == b"WEBP"


def test_list_command(source: Path, tmp_path: Path, capsys) -> None:
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    assert run(["prog", "list", str(tmp_path)]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith(str(source.resolve()))


def test_info_command(source: Path, capsys) -> None:
    assert run(["prog", "info", str(source)]) == 0
    assert "100x50 png" in capsys.readouterr().out


def test_invalid_range_is_usage_error(source: Path, tmp_path: Path) -> None:
    assert run(["prog", "cutout", str(source), str(tmp_path / "o.png"), "--start", "-1", "--end", "0.5"]) == 2


def test_log_level_flag_sets_env(source: Path, monkeypatch) -> None:
    monkeypatch.setenv("CUTOUT_VIEWER_LOG_LEVEL", "info")

    assert run(["prog", "--log-level", "debug", "info", str(source)]) == 0

    assert os.environ["CUTOUT_VIEWER_LOG_LEVEL"] == "debug"
