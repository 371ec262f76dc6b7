import io
import zipfile

from PIL import Image

from image_toolkit.resizer import batch_resize, build_zip, write_results
from image_toolkit.worker import resize_worker


def test_worker_reports_sizes_and_png_bytes(write_image):
    path = write_image("photo.jpg", size=(200, 100))

    result = resize_worker({"index": 3, "path": str(path), "percent": 50})

    assert result["success"]
    assert result["index"] == 3
    assert result["original_size"] == (200, 100)
    assert result["new_size"] == (100, 50)
    with Image.open(io.BytesIO(result["data"])) as img:
        assert img.format == "PNG"
        assert img.size == (100, 50)


def test_worker_catches_decode_errors(tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"definitely not a png")

    result = resize_worker({"index": 0, "path": str(bad), "percent": 50})

    assert not result["success"]
    assert result["name"] == "broken.png"
    assert result["error"]


def test_batch_resize_orders_names_and_reports_failures(tmp_path, write_image):
    first = write_image("a.png", size=(100, 40))
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"nope")
    second = write_image("a.jpg", size=(60, 60), folder=tmp_path / "other")
    calls = []

    results, failures = batch_resize([first, bad, second], 200,
                                     progress=lambda done, total, name: calls.append((done, total)))

    assert [r.file_name for r in results] == ["a.png", "a-01.png"]
    assert [(r.new_width, r.new_height) for r in results] == [(200, 80), (120, 120)]
    assert [f.name for f in failures] == ["bad.png"]
    assert calls == [(1, 3), (2, 3), (3, 3)]
    assert "(100x40) → (200x80)" in results[0].describe()


def test_build_zip_contains_every_result(write_image):
    paths = [write_image("one.png"), write_image("two.bmp")]
    results, _ = batch_resize(paths, 50)

    archive = zipfile.ZipFile(io.BytesIO(build_zip(results)))

    assert archive.namelist() == ["one.png", "two.png"]
    with Image.open(io.BytesIO(archive.read("two.png"))) as img:
        assert img.size == (50, 25)


def test_write_results_never_overwrites(tmp_path, write_image):
    results, _ = batch_resize([write_image("pic.png")], 100)
    out = tmp_path / "out"

    first = write_results(results, out)
    second = write_results(results, out)

    assert first[0].name == "pic.png"
    assert second[0].name == "pic-01.png"
