"""Configuration classes for inference and CLI runs."""

from typing import Any

from pydantic import BaseModel, Field


class InferenceConfig(BaseModel):
    """Decoding and batching configuration."""

    threshold: float = Field(default=0.5, ge=0.0, le=1.0, description="Minimum span or label probability")
    flat_ner: bool = Field(default=True, description="Disallow nested entities")
    multi_label: bool = Field(default=False, description="Allow several labels on the same span")
    max_width: int = Field(default=12, ge=1, description="Maximum span width in words")
    batch_size: int = Field(default=8, ge=1, description="Texts per engine call")


class SpecialTokens(BaseModel):
    """Ids of the schema marker tokens of a GLiNER2 vocabulary."""

    model_config = {"populate_by_name": True}

    prompt: int = Field(..., alias="[P]", description="Task prompt marker")
    label: int = Field(..., alias="[L]", description="Classification label marker")
    entity: int = Field(..., alias="[E]", description="Entity label marker")
    sep_text: int = Field(..., alias="[SEP_TEXT]", description="Schema/text separator")


class OnnxFiles(BaseModel):
    """ONNX graph files of a GLiNER2 model, relative to the model directory."""

    encoder: str = Field(default="encoder.onnx", description="Token encoder")
    classifier: str = Field(default="classifier.onnx", description="Label classifier head")
    span_rep: str = Field(default="span_rep.onnx", description="Span representation head")
    count_embed: str = Field(default="count_embed.onnx", description="Label embedding transform")


class RunConfig(BaseModel):
    """CLI run configuration."""

    model: str = Field(..., description="Model family name (gliner1, gliner2)")
    model_name_or_path: str = Field(..., description="Model directory or file")
    labels: list[str] = Field(default_factory=list, description="Default label names")
    inference: InferenceConfig = Field(default_factory=InferenceConfig, description="Inference configuration")
    backend_args: dict[str, Any] = Field(default_factory=dict, description="Extra arguments for from_pretrained")
