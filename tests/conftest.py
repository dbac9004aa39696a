import typing
from pathlib import Path

import pytest

from cloudctl.client import ClientFactory
from cloudctl.config import ConfigStore
from cloudctl.testing import FakeCloud, ScriptedPrompter, cleared_cloudctl_env

TARGET = "https://api.example.com"


@pytest.fixture(scope="function", autouse=True)
def cleared_cloudctl_env_vars() -> typing.Generator[None, None, None]:
    """Clear CLOUDCTL_* environment variables for the duration of the test."""
    with cleared_cloudctl_env():
        yield


@pytest.fixture
def target() -> str:
    return TARGET


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    return ConfigStore(tmp_path / "config", home=tmp_path / "home")


@pytest.fixture
def cloud() -> FakeCloud:
    """A v2 cloud with one organization holding one space."""
    cloud = FakeCloud()
    org = cloud.add_organization("org-1", "acme")
    cloud.add_space("space-1", "dev", org)
    return cloud


@pytest.fixture
def factory(store: ConfigStore, cloud: FakeCloud, target: str) -> ClientFactory:
    store.write_target(target)
    return ClientFactory(store, builder=cloud.builder)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()
