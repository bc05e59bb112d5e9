"""Compiler collaborator contract and the reference implementation."""

from .contracts import BuildResult, Compiler, CompilerHooks, DoneHook
from .options import CompilerOptions, OutputOptions
from .static import StaticCompiler

__all__ = [
    "BuildResult",
    "Compiler",
    "CompilerHooks",
    "CompilerOptions",
    "DoneHook",
    "OutputOptions",
    "StaticCompiler",
]
