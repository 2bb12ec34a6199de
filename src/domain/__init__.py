"""Domain layer: errors, schemas and constants."""

from .errors import (
    ChildCompileError,
    ConfigError,
    ErrorCodes,
    EvaluationError,
    PipelineError,
)
from .schemas import (
    AssetManifest,
    AssetTags,
    Chunk,
    ChunkAssets,
    CompiledTemplate,
    OutputArtifact,
    TagDescriptor,
    TemplateSource,
    WatchSnapshot,
)

__all__ = [
    "PipelineError",
    "ConfigError",
    "ChildCompileError",
    "EvaluationError",
    "ErrorCodes",
    "TemplateSource",
    "WatchSnapshot",
    "CompiledTemplate",
    "Chunk",
    "ChunkAssets",
    "AssetManifest",
    "TagDescriptor",
    "AssetTags",
    "OutputArtifact",
]
