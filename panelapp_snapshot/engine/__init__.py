"""Pipeline stages: catalog harvesting, panel download and concatenation."""

from .concatenator import concatenate
from .downloader import download_all
from .manifest import build_manifest
from .pipeline import Pipeline

__all__ = ["Pipeline", "build_manifest", "concatenate", "download_all"]
