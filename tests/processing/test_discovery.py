"""Tests for container discovery and directory helpers."""

import pytest

from iwd_trim.processing import ContainerDiscovery, directory_size, remove_directory


class TestContainerDiscovery:
    """Test container discovery."""
    
    def test_discovers_containers_at_depth_one(self, tmp_path, make_container):
        make_container("iw_01.iwd", [("a.cfg", b"a")])
        make_container("iw_00.iwd", [("a.cfg", b"a")])
        make_container("nested.iwd", [("a.cfg", b"a")], directory=tmp_path / "sub")
        (tmp_path / "readme.txt").write_text("not a container")
        (tmp_path / "iw_02.iwd.temp").write_bytes(b"leftover")
        (tmp_path / "folder.iwd").mkdir()
        
        containers = ContainerDiscovery(tmp_path).discover()
        
        assert [p.name for p in containers] == ["iw_00.iwd", "iw_01.iwd"]
    
    def test_custom_extension(self, tmp_path, make_container):
        make_container("pak0.pk3", [("a.cfg", b"a")])
        make_container("iw_00.iwd", [("a.cfg", b"a")])
        
        containers = ContainerDiscovery(tmp_path, extension=".pk3").discover()
        
        assert [p.name for p in containers] == ["pak0.pk3"]
    
    def test_extension_is_case_sensitive(self, tmp_path, make_container):
        make_container("IW_00.IWD", [("a.cfg", b"a")])
        
        assert ContainerDiscovery(tmp_path).discover() == []
    
    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ContainerDiscovery(tmp_path / "missing")
    
    def test_path_is_file(self, tmp_path):
        file_path = tmp_path / "file.txt"
        file_path.write_text("x")
        
        with pytest.raises(NotADirectoryError):
            ContainerDiscovery(file_path)


class TestDirectoryHelpers:
    """Test directory size and removal."""
    
    def test_directory_size_is_recursive(self, tmp_path):
        video = tmp_path / "video"
        (video / "sub").mkdir(parents=True)
        (video / "intro.bik").write_bytes(b"x" * 1000)
        (video / "sub" / "outro.bik").write_bytes(b"y" * 234)
        
        assert directory_size(video) == 1234
    
    def test_empty_directory_size(self, tmp_path):
        assert directory_size(tmp_path) == 0
    
    def test_remove_directory(self, tmp_path):
        video = tmp_path / "video"
        (video / "sub").mkdir(parents=True)
        (video / "sub" / "a.bik").write_bytes(b"x")
        
        freed = remove_directory(video)

        assert freed == 1
        assert not video.exists()
