"""
udpstats - configuration validation

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import json
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from udpstats.buffered import BufferedClient, connect_buffered
from udpstats.client import Client, connect
from udpstats.errors import InvalidConfigurationError
from udpstats.protocol import MessageFormat

# Fits in a single unfragmented datagram on a 1500 byte MTU path
DEFAULT_MAX_BUFFER_BYTES = 1432
DEFAULT_FLUSH_INTERVAL = 1.0


class StatsdConfig(BaseModel):
    # Extra values should be errors, as they are most likely typos
    model_config = ConfigDict(extra="forbid", validate_default=True)

    host: str = "127.0.0.1"
    port: int = Field(8125, gt=0, lt=65536)
    tags: Dict[str, Optional[str]] = Field(default_factory=dict)
    format: MessageFormat = MessageFormat.plain
    buffered: bool = False
    max_buffer_bytes: int = Field(DEFAULT_MAX_BUFFER_BYTES, gt=0)
    flush_interval: float = Field(DEFAULT_FLUSH_INTERVAL, gt=0)


def validate_config(config: Dict[str, Any]) -> StatsdConfig:
    try:
        return StatsdConfig.model_validate(config)
    except ValidationError as ex:
        raise InvalidConfigurationError("Invalid statsd configuration: {}".format(ex)) from ex


def read_json_config_file(filename: str) -> StatsdConfig:
    try:
        with open(filename, "r") as fp:
            config = json.load(fp)
    except FileNotFoundError:
        raise InvalidConfigurationError("Configuration file {!r} does not exist".format(filename))
    except ValueError as ex:
        raise InvalidConfigurationError("Configuration file {!r} does not contain valid JSON: {}".format(filename, str(ex)))
    except OSError as ex:
        raise InvalidConfigurationError(
            "Configuration file {!r} can't be opened: {}".format(filename, ex.__class__.__name__)
        )
    if not isinstance(config, dict):
        raise InvalidConfigurationError("Configuration file {!r} must contain a JSON object".format(filename))
    return validate_config(config)


def create_client(config: StatsdConfig, **kwargs) -> Union[Client, BufferedClient]:
    address = (config.host, config.port)
    kwargs.setdefault("tags", config.tags)
    kwargs.setdefault("message_format", config.format)
    if config.buffered:
        return connect_buffered(address, config.max_buffer_bytes, config.flush_interval, **kwargs)
    return connect(address, **kwargs)
