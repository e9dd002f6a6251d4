import gzip

import brotli
import pytest

from bundlebench.runner.measure import measure_sizes, remove_output, run_compressors


@pytest.fixture
def assets(tmp_path):
    d = tmp_path / "dist" / "assets"
    d.mkdir(parents=True)
    (d / "vendor-abc123.js").write_bytes(b"function a(){return 1}\n" * 200)
    (d / "my-app-0a1b2c3d.js").write_bytes(b"define('my-app/app',[],function(){});\n" * 50)
    (d / "my-app-0a1b2c3d.css").write_bytes(b"body{margin:0}")
    return d


def test_measure_sizes_matches_pattern(assets):
    sizes = measure_sizes(assets)
    assert sorted(p.rsplit("/", 1)[-1] for p in sizes) == ["my-app-0a1b2c3d.js", "vendor-abc123.js"]
    assert sizes[str(assets / "vendor-abc123.js")] == len(b"function a(){return 1}\n") * 200


def test_measure_sizes_tolerates_no_matches(tmp_path):
    assert measure_sizes(tmp_path) == {}
    assert measure_sizes(tmp_path / "missing") == {}


def test_compressors_write_siblings(assets):
    original = (assets / "vendor-abc123.js").read_bytes()
    written = run_compressors(assets)
    names = sorted(p.name for p in written)
    assert names == [
        "my-app-0a1b2c3d.js.br", "my-app-0a1b2c3d.js.gz",
        "vendor-abc123.js.br", "vendor-abc123.js.gz",
    ]
    assert gzip.decompress((assets / "vendor-abc123.js.gz").read_bytes()) == original
    assert brotli.decompress((assets / "vendor-abc123.js.br").read_bytes()) == original
    # originals untouched
    assert (assets / "vendor-abc123.js").read_bytes() == original

    sizes = measure_sizes(assets)
    assert len(sizes) == 6
    assert sizes[str(assets / "vendor-abc123.js.gz")] < sizes[str(assets / "vendor-abc123.js")]


def test_compressors_skip_compressed_files(assets):
    run_compressors(assets)
    second = run_compressors(assets)
    assert not any(p.name.endswith((".gz.gz", ".br.gz", ".gz.br", ".br.br")) for p in second)
    assert len(second) == 4


def test_unknown_compression_extension(assets):
    with pytest.raises(ValueError, match="zst"):
        run_compressors(assets, extensions=("zst",))


def test_remove_output(assets):
    dist = assets.parent
    remove_output(dist)
    assert not dist.exists()
    # missing directory is fine
    remove_output(dist)
