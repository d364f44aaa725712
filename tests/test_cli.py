# %%
import json

import pytest

from simple_mbtiles.cli import main

from conftest import png_header, write_mbtiles

# %%
@pytest.fixture
def tileset_dir(tmp_path):
    write_mbtiles(
        tmp_path / "raster.mbtiles",
        tiles=[(2, 1, 1, png_header(256, 256))],
        metadata={"name": "raster", "bounds": "-10,-10,10,10"},
    )
    return tmp_path

def test_inspect_directory(tileset_dir, capsys):
    main([str(tileset_dir)])
    summaries = json.loads(capsys.readouterr().out)
    assert len(summaries) == 1
    assert summaries[0]["format"] == "png"
    assert summaries[0]["tile_size"] == 256
    assert summaries[0]["content_type"] == "image/png"
    assert "metadata" not in summaries[0]

def test_inspect_with_metadata(tileset_dir, capsys):
    main([str(tileset_dir), "--metadata"])
    metadata = json.loads(capsys.readouterr().out)[0]["metadata"]
    assert metadata == {"name": "raster", "bounds": [-10.0, -10.0, 10.0, 10.0], "minzoom": 2, "maxzoom": 2}

def test_broken_tileset_exit_code(tileset_dir, capsys):
    (tileset_dir / "broken.mbtiles").write_bytes(b"not sqlite" * 100)
    with pytest.raises(SystemExit) as exc_info:
        main([str(tileset_dir)])
    assert exc_info.value.code == 1
    summaries = json.loads(capsys.readouterr().out)
    assert [s["format"] for s in summaries] == ["png"]

def test_missing_root_argument():
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2

def test_sqlite_error_skips_tileset(tileset_dir, capsys, monkeypatch):
    from simple_mbtiles import core
    monkeypatch.setattr(core, "METADATA_QUERY", "SELECT name, value FROM no_such_table")
    with pytest.raises(SystemExit) as exc_info:
        main([str(tileset_dir), "--metadata"])
    assert exc_info.value.code == 1
    assert json.loads(capsys.readouterr().out) == []
