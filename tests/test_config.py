"""Tests for configuration models"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from codemd.config import IgnoreConfig, ScanConfig


class TestIgnoreConfig:
    """Tests for IgnoreConfig"""

    def test_defaults(self):
        """Ignore sets are enabled and fail open by default"""
        config = IgnoreConfig()
        assert config.enabled is True
        assert config.strict is False


class TestScanConfig:
    """Tests for ScanConfig"""

    def test_defaults(self):
        """Defaults match the command-line defaults"""
        config = ScanConfig()
        assert config.root == Path(".")
        assert config.output == Path("CODE.md")
        assert config.file_types == []
        assert config.use_gitignore is True
        assert config.use_codeignore is False
        assert config.max_size_mb == 10
        assert config.max_bytes == 10 * 1024 * 1024

    def test_comma_separated_types(self):
        """Comma lists are split, stripped and de-dotted"""
        config = ScanConfig(file_types="go, .java,")
        assert config.file_types == ["go", "java"]

    def test_empty_type_flag(self):
        """An empty flag means no type filter"""
        assert ScanConfig(file_types="").file_types == []

    def test_comma_separated_excludes(self):
        """Exclude lists drop blanks and trailing slashes"""
        config = ScanConfig(exclude_dirs="vendor, node_modules/,")
        assert config.exclude_dirs == ["vendor", "node_modules"]

    @pytest.mark.parametrize("size", [0, -1])
    def test_max_size_must_be_positive(self, size):
        """Non-positive sizes are rejected"""
        with pytest.raises(ValidationError, match="max_size_mb"):
            ScanConfig(max_size_mb=size)
