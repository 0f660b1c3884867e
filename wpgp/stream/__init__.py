"""Incremental encryption and decryption of message containers."""

from wpgp.stream.pipeline import DecryptPipeline, EncryptPipeline, PipelineState
from wpgp.stream.stages import (
    Base64DecodeStage,
    Base64EncodeStage,
    CipherStage,
    MaskStage,
    Stage,
    StageChain,
)

__all__ = [
    "Base64DecodeStage",
    "Base64EncodeStage",
    "CipherStage",
    "DecryptPipeline",
    "EncryptPipeline",
    "MaskStage",
    "PipelineState",
    "Stage",
    "StageChain",
]
