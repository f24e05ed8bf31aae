from shaperfont.compiler import (
    CompilationResult,
    InsertMarker,
    ShaperFontCompiler,
    buildShaperFont,
)
from shaperfont.diagnostics import Message

__all__ = [
    "buildShaperFont",
    "CompilationResult",
    "InsertMarker",
    "Message",
    "ShaperFontCompiler",
]

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.0.0+unknown"
