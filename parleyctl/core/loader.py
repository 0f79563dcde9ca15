import os
from pathlib import Path

import yaml

from parleyctl.core.model import ParleyConf


class ParleyConfLoader:
    """
    Loads and saves the parleyctl contexts file (parleyconf.yaml).

    Resolution order for the config path:
      1. Explicit --parleyconf argument
      2. PARLEYCONF environment variable
      3. Default: ~/.parley/parleyconf.yaml
    """

    DEFAULT_PATH = "~/.parley/parleyconf.yaml"

    def __init__(self, cli_path: str | None = None):
        if cli_path:
            self.path = Path(cli_path).expanduser()
            return

        env_path = os.environ.get("PARLEYCONF")
        if env_path:
            self.path = Path(env_path).expanduser()
            return

        self.path = Path(self.DEFAULT_PATH).expanduser()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> ParleyConf:
        if not self.exists():
            raise FileNotFoundError(f"parleyconf not found: {self.path}")

        try:
            data = yaml.safe_load(self.path.read_text())
            return ParleyConf.from_dict(data)
        except (yaml.YAMLError, KeyError, TypeError, AttributeError, ValueError) as ex:
            raise SystemExit(f"parleyconf format is invalid: {self.path.absolute()} ({ex!r})")

    def save(self, conf: ParleyConf) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        yaml_str = yaml.safe_dump(conf.to_dict(), sort_keys=False)
        self.path.write_text(yaml_str)
