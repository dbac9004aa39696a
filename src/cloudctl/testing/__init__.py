from cloudctl.testing._env import (
    cleared_cloudctl_env,
    config_dir_override,
    temp_env_vars,
)
from cloudctl.testing._fakes import (
    DEFAULT_PASSWORD,
    FakeCloud,
    FakeV1Client,
    FakeV2Client,
    ScriptedPrompter,
)

__all__ = [
    "DEFAULT_PASSWORD",
    "FakeCloud",
    "FakeV1Client",
    "FakeV2Client",
    "ScriptedPrompter",
    "cleared_cloudctl_env",
    "config_dir_override",
    "temp_env_vars",
]
