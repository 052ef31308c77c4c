"""Remote code-generation service client."""

from .client import CodegenClient

__all__ = ["CodegenClient"]
