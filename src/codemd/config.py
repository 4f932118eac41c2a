"""Configuration models for codemd."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class IgnoreConfig(BaseModel):
    """Behaviour switches handed to every ignore set.

    Attributes:
        enabled: When false, the ignore set never excludes anything
        strict: Reject malformed glob patterns when they are added instead
            of treating them as never matching
    """

    enabled: bool = True
    strict: bool = False


class ScanConfig(BaseModel):
    """Everything a single scan needs, built from the command line.

    Attributes:
        root: Directory to scan
        output: Markdown file to write
        file_types: Extensions (without dot) to keep; empty keeps all files
        exclude_dirs: Directory names that are never descended into
        include_hidden: Keep entries whose name starts with '.' or '_'
        use_gitignore: Honour the root's .gitignore
        use_codeignore: Honour the root's .codeignore
        extra_patterns: Additional ignore-pattern file
        max_size_mb: Maximum size of one output file before it is split
        verbose: Print progress lines
        ignore: Options passed to each loaded ignore set
    """

    root: Path = Path(".")
    output: Path = Path("CODE.md")
    file_types: List[str] = Field(default_factory=list)
    exclude_dirs: List[str] = Field(default_factory=list)
    include_hidden: bool = False
    use_gitignore: bool = True
    use_codeignore: bool = False
    extra_patterns: Optional[Path] = None
    max_size_mb: int = 10
    verbose: bool = False
    ignore: IgnoreConfig = Field(default_factory=IgnoreConfig)

    @field_validator("file_types", mode="before")
    @classmethod
    def _split_file_types(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return [t.strip().lstrip(".") for t in value if t and t.strip().lstrip(".")]

    @field_validator("exclude_dirs", mode="before")
    @classmethod
    def _split_exclude_dirs(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return [d.strip().strip("/") for d in value if d and d.strip().strip("/")]

    @field_validator("max_size_mb")
    @classmethod
    def _positive_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_size_mb must be greater than 0")
        return value

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024
