"""Conventions: the ordered steps of a deployment."""

from .base import Convention
from .extract import ExtractPackageToStagingDirectoryConvention, PackageExtractor
from .substitute import FileSubstituter, SubstituteInFilesConvention

__all__ = [
    "Convention",
    "ExtractPackageToStagingDirectoryConvention",
    "PackageExtractor",
    "FileSubstituter",
    "SubstituteInFilesConvention",
]
