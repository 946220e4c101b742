import numpy as np
import pytest
from PIL import Image as PILImage

from parallel_filters.cli import build_parser, main
from parallel_filters.image import load_image


@pytest.fixture
def input_png(tmp_path):
    rng = np.random.default_rng(5)
    path = tmp_path / "input.png"
    PILImage.fromarray(rng.integers(0, 256, size=(12, 10, 3), dtype=np.uint8)).save(path)
    return path


@pytest.mark.parametrize("strategy", ["static", "dynamic"])
def test_filters_and_saves(tmp_path, input_png, capsys, strategy):
    output = tmp_path / "out.png"
    code = main([str(input_png), "edge", "-o", str(output), "-w", "3", "-s", strategy])
    assert code == 0
    result = load_image(output)
    assert (result.width, result.height, result.channels) == (10, 12, 3)
    captured = capsys.readouterr().out
    assert "Loaded image: 10x12 with 3 channels" in captured
    assert f"Applying edge filter using {strategy} partitioning with 3 workers..." in captured
    assert f"Output saved to {output}" in captured


def test_identity_round_trips_file(tmp_path, input_png):
    output = tmp_path / "out.png"
    assert main([str(input_png), "identity", "-o", str(output), "-w", "2"]) == 0
    assert load_image(output) == load_image(input_png)


def test_grayscale_keeps_one_channel(tmp_path):
    path = tmp_path / "gray.png"
    PILImage.new("L", (4, 3), 90).save(path)
    output = tmp_path / "out.png"
    assert main([str(path), "blur", "-o", str(output), "-w", "2"]) == 0
    result = load_image(output)
    assert result.channels == 1
    assert (result.pixels == 90).all()


def test_unknown_filter(tmp_path, input_png, capsys):
    output = tmp_path / "out.png"
    assert main([str(input_png), "nonexistent", "-o", str(output)]) == 1
    assert "Unknown filter type: nonexistent" in capsys.readouterr().out
    assert not output.exists()


def test_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing.png"), "edge"]) == 1
    assert "Error loading image" in capsys.readouterr().out


def test_rejects_non_positive_workers(input_png):
    with pytest.raises(SystemExit):
        build_parser().parse_args([str(input_png), "edge", "-w", "0"])


def test_rejects_unknown_strategy(input_png):
    with pytest.raises(SystemExit):
        build_parser().parse_args([str(input_png), "edge", "-s", "guided"])


def test_unknown_output_extension(tmp_path, input_png, capsys):
    output = tmp_path / "out.nope"
    assert main([str(input_png), "blur", "-o", str(output), "-w", "2"]) == 1
    assert f"Error saving image {output}" in capsys.readouterr().out
    assert not output.exists()


def test_unwritable_output_path(tmp_path, input_png, capsys):
    output = tmp_path / "missing-dir" / "out.png"
    assert main([str(input_png), "blur", "-o", str(output), "-w", "2"]) == 1
    assert "Error saving image" in capsys.readouterr().out
