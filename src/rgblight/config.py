"""
RGB Light Controller Configuration Management

Settings come from (highest priority first) constructor arguments,
``RGBLIGHT_``-prefixed environment variables, a ``.env`` file and a JSON
config file (``./rgblight.conf.json`` by default).
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from rgblight.errors import ConfigError
from rgblight.models.color import ColorValue

DEFAULT_CONFIG_FILE = "./rgblight.conf.json"


class MqttSettings(BaseModel):
    """Broker connection"""

    host: str = Field(default="localhost", description="MQTT broker host")
    port: Optional[int] = Field(default=None, description="MQTT broker port (default 1883)")
    username: Optional[str] = Field(default=None, description="Username, if required")
    password: Optional[str] = Field(default=None, description="Password")
    client_id_prefix: str = Field(default="rgblight", description="Client identifier prefix")


class TopicSettings(BaseModel):
    """Topics carrying value updates (set-requests go to ``<topic>/set``)"""

    color: str = Field(default="zw/bulb/51/1/0", description="Light color topic")
    motion: str = Field(default="zw/motion/48/1/0", description="Motion sensor topic")
    door: str = Field(default="zw/door/48/1/0", description="Door sensor topic")


class MotionAnimationSettings(BaseModel):
    """Motion triggered color cycle"""

    total_animation_length_ms: int = Field(
        default=14000, ge=0, description="Length of the whole animation in ms"
    )
    single_color_length_ms: int = Field(
        default=2500, ge=0, description="How long each color of the cycle is shown"
    )


class DoorAnimationSettings(BaseModel):
    """Door open/close colors"""

    opened_color: str = Field(default="#00FF000000", description="Color shown when the door opens")
    closed_color: str = Field(default="#FF00000000", description="Color held while the door is closed")
    opened_color_duration_ms: int = Field(
        default=10000, ge=0, description="How long the opened color is shown in ms"
    )

    @field_validator("opened_color", "closed_color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        return str(ColorValue.parse(value))


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="RGBLIGHT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        json_file=DEFAULT_CONFIG_FILE,
        json_file_encoding="utf-8",
        extra="ignore",
    )

    mqtt: MqttSettings = Field(default_factory=MqttSettings)
    topics: TopicSettings = Field(default_factory=TopicSettings)
    motion_animation: MotionAnimationSettings = Field(default_factory=MotionAnimationSettings)
    door_animation: DoorAnimationSettings = Field(default_factory=DoorAnimationSettings)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    json_logs: bool = Field(default=False, description="Emit JSON formatted logs")
    log_file: Optional[str] = Field(default=None, description="Additional JSON log file")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
        )


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings, optionally from an explicit JSON config file

    Args:
        path: Config file to use instead of the default one

    Returns:
        Loaded settings

    Raises:
        ConfigError: If the file does not exist or its content is invalid
    """
    if path is None:
        settings_cls: Type[Settings] = Settings
    else:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"File not found: {config_path.resolve()}")

        class _FileSettings(Settings):
            model_config = SettingsConfigDict(json_file=config_path)

        settings_cls = _FileSettings

    try:
        return settings_cls()
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def export_settings(settings: Settings, path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> Path:
    """
    Write the effective settings as a JSON config file

    Returns:
        Path that was written
    """
    target = Path(path)
    target.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    return target


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return load_settings()
