# src/neuroshell/model.py
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ParseMode(str, Enum):
    """How a command's argument text is interpreted."""
    KEY_VALUE = "key_value"
    RAW = "raw"


ArgValue = Union[str, List[str]]


class ParsedCommand(BaseModel):
    """Structured form of one command line."""
    name: str
    args: Dict[str, ArgValue] = Field(default_factory=dict)
    input: str = ""
    parse_mode: ParseMode = ParseMode.KEY_VALUE
    original_text: str = ""


class PendingCommand(BaseModel):
    """An entry on the execution stack, created once and consumed once."""
    model_config = ConfigDict(frozen=True)

    command: str
    silent: bool = False
    try_: bool = False

    def render(self) -> str:
        prefix = ""
        if self.silent:
            prefix += "\\silent "
        if self.try_:
            prefix += "\\try "
        return prefix + self.command


class ModelConfig(BaseModel):
    """A named LLM model configuration."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    provider: str
    base_model: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    def short_id(self) -> str:
        return self.id[:8]
