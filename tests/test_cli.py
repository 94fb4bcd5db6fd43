import pytest

from pixgrid.cli import main
from pixgrid.grid import PixelGrid
from pixgrid.pixel import Pixel


def test_encode_rgb(tmp_path):
    raw = tmp_path / "in.rgb"
    raw.write_bytes(bytes([0, 0, 0, 255, 255, 255]))
    out = tmp_path / "out.png"
    main(["encode", str(raw), "-W", "2", "-H", "1", "-o", str(out)])
    assert PixelGrid.load(out) == PixelGrid(2, 1, [Pixel(0, 0, 0), Pixel(255, 255, 255)])


def test_encode_rgba_with_options(tmp_path):
    raw = tmp_path / "in.rgba"
    raw.write_bytes(bytes([1, 2, 3, 4, 5, 6, 7, 8]))
    out = tmp_path / "out.png"
    main(["encode", str(raw), "-W", "1", "-H", "2", "--rgba", "-m", "truecolor_alpha", "-f", "paeth", "-o", str(out)])
    grid = PixelGrid.load(out)
    assert grid[0, 1] == Pixel(5, 6, 7, 8)


def test_decode(tmp_path):
    png = tmp_path / "in.png"
    PixelGrid(2, 1, [Pixel(1, 2, 3, 4), Pixel(5, 6, 7, 8)]).save(png)
    out = tmp_path / "out.raw"
    main(["decode", str(png), "-o", str(out)])
    assert out.read_bytes() == bytes([1, 2, 3, 4, 5, 6, 7, 8])
    main(["decode", str(png), "--rgb", "-o", str(out)])
    assert out.read_bytes() == bytes([1, 2, 3, 5, 6, 7])


def test_info(tmp_path, capsys, gradient):
    png = tmp_path / "in.png"
    gradient.save(png)
    main(["info", str(png)])
    out = capsys.readouterr().out
    assert "size: 5x3" in out
    assert "color mode: indexed" in out
    assert "colours: 15" in out


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["info", str(tmp_path / "nope.png")])
    assert excinfo.value.code == 1
    assert "File not found" in capsys.readouterr().err


def test_length_mismatch_reported(tmp_path, capsys):
    raw = tmp_path / "in.rgb"
    raw.write_bytes(bytes(9))
    with pytest.raises(SystemExit) as excinfo:
        main(["encode", str(raw), "-W", "2", "-H", "2", "-o", str(tmp_path / "out.png")])
    assert excinfo.value.code == 1
    assert "expected 4" in capsys.readouterr().err


def test_unwritable_output_reported(tmp_path, capsys):
    raw = tmp_path / "in.rgb"
    raw.write_bytes(bytes(3))
    with pytest.raises(SystemExit) as excinfo:
        main(["encode", str(raw), "-W", "1", "-H", "1", "-o", str(tmp_path / "missing" / "out.png")])
    assert excinfo.value.code == 1
    assert "encode failed" in capsys.readouterr().err
