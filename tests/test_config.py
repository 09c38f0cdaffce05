# tests/test_config.py
import pytest

from stghunk.config import StgHunkConfig
from stghunk.git import GitRepo


class TestStgHunkConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = StgHunkConfig.load()
        assert config.git_executable == "git"
        assert config.context_lines == 3
        assert config.renames is False

    def test_explicit_file(self, tmp_path):
        cfg_file = tmp_path / "custom.yml"
        cfg_file.write_text("diff:\n  context_lines: 0\n  renames: true\n")
        config = StgHunkConfig.load(cfg_file)
        assert config.context_lines == 0
        assert config.renames is True
        assert config.git_executable == "git"

    def test_file_in_current_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".stghunk.yml").write_text("git:\n  executable: /usr/local/bin/git\n")
        monkeypatch.chdir(tmp_path)
        config = StgHunkConfig.load()
        assert config.git_executable == "/usr/local/bin/git"
        assert config.context_lines == 3

    def test_missing_explicit_file_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = StgHunkConfig.load(tmp_path / "nope.yml")
        assert config.context_lines == 3

    def test_empty_file(self, tmp_path):
        cfg_file = tmp_path / ".stghunk.yml"
        cfg_file.write_text("")
        assert StgHunkConfig.load(cfg_file).context_lines == 3

    def test_negative_context_lines(self, tmp_path):
        cfg_file = tmp_path / ".stghunk.yml"
        cfg_file.write_text("diff:\n  context_lines: -1\n")
        with pytest.raises(ValueError, match="context_lines"):
            StgHunkConfig.load(cfg_file)

    def test_repo_from_config(self, tmp_path):
        config = StgHunkConfig(git_executable="mygit", context_lines=1, renames=True)
        repo = GitRepo.from_config(config, cwd=tmp_path)
        assert repo.executable == "mygit"
        assert repo.context_lines == 1
        assert repo.renames is True
        assert repo.cwd == tmp_path
