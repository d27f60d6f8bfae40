"""
Packaging: DASH remux of the renditions and the job manifest.
"""

from .invoker import MPD_NAME, build_packager_command, package_renditions
from .manifest import assemble_manifest, write_manifest

__all__ = [
    "MPD_NAME",
    "assemble_manifest",
    "build_packager_command",
    "package_renditions",
    "write_manifest",
]
