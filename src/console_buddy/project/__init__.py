"""Project analysis and code generation for the project tools."""

from .analyzer import ProjectAnalyzer, analyze_project
from .generator import CODE_KINDS, CodeGenerator, GeneratedCode
from .models import ProjectInfo

__all__ = [
    "CODE_KINDS",
    "CodeGenerator",
    "GeneratedCode",
    "ProjectAnalyzer",
    "ProjectInfo",
    "analyze_project",
]
