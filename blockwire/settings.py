"""Server settings and the checks they must pass before a server starts."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

_U16_MAX = 0xFFFF


class ConfigError(ValueError):
    """Raised when server settings are invalid."""


@dataclass
class DimensionSettings:
    """The parts of a dimension that constrain world layout and lighting."""

    min_y: int
    height: int
    ambient_light: float
    fixed_time: Optional[int] = None


def validate_dimension(index: int, dimension: DimensionSettings) -> None:
    """Raise ConfigError if ``dimension`` (number ``index``) is out of range."""
    min_y = dimension.min_y
    if not (min_y % 16 == 0 and -2032 <= min_y <= 2016):
        raise ConfigError(f"invalid min_y in dimension #{index}")

    height = dimension.height
    if not (height % 16 == 0 and 0 <= height <= 4064 and min_y + height <= 2032):
        raise ConfigError(f"invalid height in dimension #{index}")

    if not 0.0 <= dimension.ambient_light <= 1.0:
        raise ConfigError(f"ambient_light is out of range in dimension #{index}")

    fixed_time = dimension.fixed_time
    if fixed_time is not None and not 0 <= fixed_time <= 24_000:
        raise ConfigError(f"fixed_time is out of range in dimension #{index}")


@dataclass
class ServerSettings:
    """Everything a server needs to know before it starts.

    ``biomes`` holds the biome names, which must be unique.
    """

    address: Tuple[str, int]
    tick_rate: int
    online_mode: bool
    max_connections: int
    incoming_packet_capacity: int
    outgoing_packet_capacity: int
    dimensions: Sequence[DimensionSettings]
    biomes: Sequence[str]

    def validate(self) -> "ServerSettings":
        """Return these settings unchanged, or raise ConfigError if invalid."""
        if self.tick_rate <= 0:
            raise ConfigError("tick rate must be greater than zero")
        if self.incoming_packet_capacity <= 0:
            raise ConfigError("serverbound packet capacity must be nonzero")
        if self.outgoing_packet_capacity <= 0:
            raise ConfigError("outgoing packet capacity must be nonzero")

        if not self.dimensions:
            raise ConfigError("at least one dimension must be added")
        if len(self.dimensions) > _U16_MAX:
            raise ConfigError("more than u16::MAX dimensions added")
        for index, dimension in enumerate(self.dimensions):
            validate_dimension(index, dimension)

        if not self.biomes:
            raise ConfigError("at least one biome must be added")
        if len(self.biomes) > _U16_MAX:
            raise ConfigError("more than u16::MAX biomes added")
        seen = set()
        for name in self.biomes:
            if name in seen:
                raise ConfigError(f'biome "{name}" already added')
            seen.add(name)
        return self