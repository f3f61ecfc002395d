import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler

from pathprompt.rendering import RANGE_SIZE


def identity(value):
    return value


def accept_all(*args):
    return True


class Settings(BaseSettings):
    window_size: int = Field(RANGE_SIZE, ge=1)
    show_hidden: bool = False
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="PATHPROMPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


def get_settings(**kwargs) -> Settings:
    return Settings(**kwargs)


class PromptOptions(BaseModel):
    """
    Options of a path prompt.
    Validators may be plain or async callables returning True or an error message.
    """
    message: str
    cwd: Optional[str] = None
    default: Optional[str] = None
    directory_only: bool = False
    multi: bool = False
    show_hidden: bool = False
    window_size: int = Field(RANGE_SIZE, ge=1)
    filter: Callable[..., Any] = identity
    validate_entry: Callable[..., Any] = Field(accept_all, alias="validate")
    validate_multi: Callable[..., Any] = accept_all

    model_config = ConfigDict(populate_by_name=True)

    def starting_directory(self) -> str:
        return self.cwd or self.default or os.getcwd()


def setup_logging(settings: Settings):
    """Send the package logs to the configured file, otherwise to stderr through rich."""
    if settings.log_file:
        handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)

    logger = logging.getLogger("pathprompt")
    logger.handlers = [handler]
    logger.setLevel(settings.log_level.upper())
    return logger
