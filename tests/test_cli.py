import logging
from unittest.mock import patch

import pytest

from file_browser.cli import build_config, create_parser, main


class TestBuildConfig:

    def test_defaults(self, tmp_path):
        args = create_parser().parse_args(["serve", str(tmp_path)])
        config = build_config(args)

        assert config.base_path == str(tmp_path.resolve())
        assert config.port == 7005
        assert config.download_port == 7006
        assert config.base_url == "http://127.0.0.1:7005"
        assert config.download_url == "http://127.0.0.1:7006"
        assert config.shutdown_grace == 5.0

    def test_overrides(self, tmp_path):
        args = create_parser().parse_args([
            "serve", str(tmp_path), "-p", "8000", "-d", "8001",
            "--domain", "http://files.example.com/", "--grace", "1.5",
        ])
        config = build_config(args)

        assert config.base_url == "http://files.example.com:8000"
        assert config.download_url == "http://files.example.com:8001"
        assert config.shutdown_grace == 1.5


class TestMain:

    def test_no_command_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_list(self, sample_tree, capsys):
        main(["list", str(sample_tree)])
        out = capsys.readouterr().out

        assert "dir2/" in out
        assert "[1.50KB]" in out
        assert ".hidden" not in out
        assert out.index("dir10/") < out.index("big.bin")
        assert "8 entries" in out

    def test_list_subdirectory(self, sample_tree, capsys):
        main(["list", str(sample_tree), "/dir2"])
        out = capsys.readouterr().out
        assert "/dir2/" in out
        assert "inner.txt" in out

    def test_list_stacked_hops_normalized_once(self, sample_tree, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["list", str(sample_tree), "/nope/../../../"])
        assert exc_info.value.code == 1

    def test_verbose_logging_setup(self, tmp_path):
        with patch("file_browser.cli.logging.basicConfig") as basic_config:
            main(["-v", "list", str(tmp_path)])
        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == logging.DEBUG
        assert "%(name)s" in kwargs["format"]

    def test_list_missing_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["list", str(tmp_path), "/missing/"])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().out

    def test_serve_missing_directory_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["serve", str(tmp_path / "missing")])
        assert exc_info.value.code == 1

    def test_serve_runs_servers(self, tmp_path):
        with patch("file_browser.web_server.run_servers") as run_servers:
            main(["serve", str(tmp_path), "--port", "9000"])
        config = run_servers.call_args[0][0]
        assert config.port == 9000
        assert config.base_path == str(tmp_path.resolve())
