"""
Integration tests for CLI end-to-end workflows.

Runs the media-art command through main() against temporary cache and
music directories. Download requests and removable media detection are
switched off so nothing outside the temporary directory is touched.
"""

import pytest

from media_art_cache.cli.main import create_parser, main
from media_art_cache.core import config_manager

BEATLES_PEPPER = "album-2a9ea35253dbec60e76166ec8420fbda-cfba4326a32b44b8760b3a2fc827a634.jpeg"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user settings and the global config manager out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr(config_manager, "_config_manager", None)


@pytest.fixture
def base_args(tmp_path):
    return ["--cache-dir", str(tmp_path / "cache"), "--no-download", "--no-removable"]


class TestParser:
    """Argument parsing."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_process_defaults(self):
        args = create_parser().parse_args(["process", "a.mp3"])

        assert args.type == "album"
        assert args.force is False
        assert args.log_level == "WARNING"


class TestCLIWorkflows:
    """End-to-end command runs."""

    def test_strip(self, capsys):
        assert main(["strip", "Cool  Album [Remastered]"]) == 0
        assert capsys.readouterr().out.strip() == "cool album"

    def test_path(self, base_args, tmp_path, capsys):
        exit_code = main(base_args + ["path", "--artist", "Beatles", "--title", "Sgt. Pepper"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == str(tmp_path / "cache" / "media-art" / BEATLES_PEPPER)

    def test_path_requires_a_name(self, base_args, capsys):
        assert main(base_args + ["path"]) == 2
        assert "--artist or --title" in capsys.readouterr().err

    def test_process_with_image_then_remove(self, base_args, tmp_path, media_file, jpeg_bytes, capsys):
        """Test storing supplied art and removing it again."""
        image = tmp_path / "cover.jpg"
        image.write_bytes(jpeg_bytes())
        target = tmp_path / "cache" / "media-art" / BEATLES_PEPPER

        exit_code = main(base_args + [
            "process", str(media_file),
            "--artist", "Beatles", "--title", "Sgt. Pepper",
            "--image", str(image),
        ])

        assert exit_code == 0
        assert target.exists()
        assert "Media Art" in capsys.readouterr().out

        exit_code = main(base_args + ["remove", "--artist", "Beatles", "--album", "Sgt. Pepper"])

        assert exit_code == 0
        assert not target.exists()
        assert "Removed" in capsys.readouterr().out

    def test_process_uses_folder_art(self, base_args, tmp_path, media_dir, media_file, jpeg_bytes):
        (media_dir / "cover.jpg").write_bytes(jpeg_bytes())

        exit_code = main(base_args + [
            "process", str(media_file), "--artist", "Beatles", "--title", "Sgt. Pepper",
        ])

        assert exit_code == 0
        assert (tmp_path / "cache" / "media-art" / BEATLES_PEPPER).exists()

    def test_process_missing_file(self, base_args, tmp_path, capsys):
        exit_code = main(base_args + [
            "process", str(tmp_path / "missing.mp3"), "--artist", "Beatles", "--title", "Sgt. Pepper",
        ])

        assert exit_code == 1
        assert "File not found" in capsys.readouterr().err

    def test_process_without_title(self, base_args, media_file, capsys):
        """Untagged media with no --title cannot be keyed."""
        exit_code = main(base_args + ["process", str(media_file), "--artist", "Beatles"])

        assert exit_code == 1
        assert "Missing field" in capsys.readouterr().err

    def test_process_and_remove_video(self, base_args, tmp_path, media_file, jpeg_bytes):
        image = tmp_path / "poster.jpg"
        image.write_bytes(jpeg_bytes())
        cache_dir = tmp_path / "cache" / "media-art"

        assert main(base_args + [
            "process", str(media_file), "--type", "video",
            "--artist", "Ridley Scott", "--title", "Alien", "--image", str(image),
        ]) == 0
        assert [p.name[:6] for p in cache_dir.iterdir()] == ["video-"]

        assert main(base_args + ["remove", "--artist", "Ridley Scott", "--album", "Alien"]) == 0
        assert len(list(cache_dir.iterdir())) == 1

        assert main(base_args + ["remove", "--artist", "Ridley Scott", "--album", "Alien", "--type", "video"]) == 0
        assert list(cache_dir.iterdir()) == []

    def test_remove_nothing(self, base_args, capsys):
        assert main(base_args + ["remove", "--artist", "Nobody"]) == 0
        assert "Nothing to remove" in capsys.readouterr().out

    def test_extract_missing_file(self, tmp_path, capsys):
        assert main(["extract", str(tmp_path / "missing.mp3")]) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_configuration(self, base_args, capsys):
        assert main(base_args + ["--max-width", "-1", "strip", "x"]) == 0
        assert main(base_args + ["--max-width", "-1", "path", "--title", "x"]) == 1
        assert "max_width" in capsys.readouterr().err
