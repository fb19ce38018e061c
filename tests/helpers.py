import os

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from ringmap.bootstrap.config.settings import RingmapConfig
from ringmap.core.models.host import Host
from ringmap.core.space.ring import Ring
from ringmap.core.space.token import Murmur3Token
from ringmap.core.space.vnode import VNode


class FakeRingmapConfig(RingmapConfig, BaseSettings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_RINGMAP_CONFIG"]),)


def make_ring(layout: list[tuple[str, int]]) -> Ring:
    """Build a Murmur3 ring from (address, token) pairs."""
    return Ring([VNode(Host(address), Murmur3Token(token)) for address, token in layout])
