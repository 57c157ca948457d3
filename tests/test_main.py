import logging
import os

import pytest
from PIL import Image

import main


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_cli_writes_previews(tmp_path, restore_root_logger):
    iso = tmp_path / "iso.png"
    top = tmp_path / "map.png"
    rc = main.main(["--width", "12", "--height", "10", "--color-seed", "4",
                    "--out", str(iso), "--map", str(top)])
    assert rc == 0
    assert iso.exists()
    with Image.open(top) as img:
        assert img.size == (48, 40)


def test_cli_debug_overlay_paints_map(tmp_path, restore_root_logger):
    top = tmp_path / "map.png"
    rc = main.main(["--width", "20", "--height", "20", "--color-seed", "3",
                    "--debug-overlay", "--map", str(top)])
    assert rc == 0
    with Image.open(top) as img:
        # scale 4: tile (x, y) covers pixels (4x..4x+3, 4y..4y+3)
        assert img.getpixel((1, 1)) == (255, 0, 0, 255)
        assert img.getpixel((13, 1)) == (255, 255, 0, 255)
        assert img.getpixel((41, 13)) == (0, 0, 255, 255)


def test_cli_rejects_bad_size(restore_root_logger):
    assert main.main(["--width", "0"]) == 2


def test_setup_logger_file_handler(tmp_path, restore_root_logger):
    root = main.setup_logger(verbose=True, log_dir=str(tmp_path / "logs"))
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
    files = os.listdir(tmp_path / "logs")
    assert len(files) == 1 and files[0].startswith("worldgen_")


def test_parser_defaults():
    args = main.build_parser().parse_args([])
    assert (args.width, args.height, args.seed) == (128, 128, 0)
    assert args.color_seed is None
    assert not args.debug_overlay
