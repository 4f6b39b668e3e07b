"""Configuration settings models using Pydantic."""

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompactionStrategy(str, Enum):
    """How the context compactor shrinks a transcript."""

    TRUNCATE_OLDEST = "truncate_oldest"  # Keep only the most recent messages
    SUMMARIZE = "summarize"  # Replace old messages with a generated summary
    BOOKEND = "bookend"  # Keep first and last N, compress the middle
    SELECTIVE = "selective"  # Keep only important messages


class CompactionConfig(BaseModel):
    """Budget and policy for context compaction.

    Frozen: change it by building a new instance (see
    ``ContextCompactor.update_config``).
    """

    model_config = ConfigDict(frozen=True)

    max_messages: int = Field(default=50, ge=0)
    max_tokens: int = Field(default=4000, ge=0)
    strategy: CompactionStrategy = CompactionStrategy.TRUNCATE_OLDEST
    preserve_system: bool = True
    preserve_functions: bool = True


class ConversationConfig(BaseModel):
    """Configuration for group chat behavior."""

    max_rounds: int = Field(default=10, ge=0)
    admin_name: str = "Admin"
    termination_marker: str = "terminate"
    speaker_selection: Literal["round_robin", "random", "manual", "constrained"] = "round_robin"
    allowed_speakers: list[str] = Field(default_factory=list)

    @field_validator("termination_marker")
    @classmethod
    def validate_termination_marker(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("termination_marker cannot be empty")
        return v

    @field_validator("admin_name")
    @classmethod
    def validate_admin_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("admin_name cannot be empty")
        return v.strip()


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None
    verbose: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @property
    def resolved_log_file(self) -> Optional[Path]:
        """Get the log file path with ~ expanded."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHORUS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
