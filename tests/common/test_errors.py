"""Tests for the error hierarchy."""

from iwd_trim.common import IwdTrimError, ConfigurationError
from iwd_trim.archive import (
    ArchiveError,
    CorruptEntryError,
    EntryCopyError,
    FinalizeError,
    OpenError,
    RebuildError,
    UnsupportedContainerError,
)


class TestIwdTrimError:
    """Test base error functionality."""
    
    def test_message_and_context(self):
        error = IwdTrimError("Test error", path="/test/path")
        
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {"path": "/test/path"}
    
    def test_context_defaults_to_empty(self):
        assert IwdTrimError("plain").context == {}
    
    def test_configuration_error(self):
        error = ConfigurationError("Bad config", path="config.toml")
        assert isinstance(error, IwdTrimError)
        assert error.context["path"] == "config.toml"


class TestArchiveErrors:
    """Test archive error types."""
    
    def test_open_errors(self):
        assert issubclass(OpenError, ArchiveError)
        assert issubclass(UnsupportedContainerError, OpenError)
        assert issubclass(ArchiveError, IwdTrimError)
    
    def test_rebuild_errors(self):
        assert issubclass(EntryCopyError, RebuildError)
        assert issubclass(FinalizeError, RebuildError)
        assert issubclass(RebuildError, ArchiveError)
    
    def test_corrupt_entry_index(self):
        """CorruptEntryError exposes the failing entry index."""
        error = CorruptEntryError("Bad header", index=3, name="maps/a.d3dbsp")
        
        assert error.index == 3
        assert error.context["name"] == "maps/a.d3dbsp"
        assert CorruptEntryError("no index").index is None
    
    def test_entry_copy_error_context(self):
        error = EntryCopyError("Cannot copy", index=1, name="b.dat")
        
        assert error.context == {"index": 1, "name": "b.dat"}
