"""Docker engine operations used by the push workflow."""

import shutil
from typing import Callable, Optional


class ContainerEngine:
    """Wraps the docker CLI: daemon probe, image lookup, tag, push and login."""

    def __init__(self, runner, logger, executable: str = "docker", which: Callable = shutil.which):
        self.runner = runner
        self.logger = logger
        self.executable = executable
        self.which = which

    def is_installed(self) -> bool:
        return self.which(self.executable) is not None

    def is_running(self) -> bool:
        result = self.runner.run([self.executable, "info"], check=False, capture_output=True)
        return result.returncode == 0

    def image_exists(self, image: str) -> bool:
        result = self.runner.run(
            [self.executable, "image", "inspect", image],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def pull(self, image: str):
        self.runner.run([self.executable, "pull", image])

    def tag(self, source: str, destination: str):
        self.runner.run([self.executable, "tag", source, destination])

    def push(self, image: str):
        self.runner.run([self.executable, "push", image])

    def login(self, registry: str, username: str, password: Optional[str]):
        self.logger.info("Logging into %s as %s", registry, username)
        self.runner.run(
            [self.executable, "login", "--username", username, "--password-stdin", registry],
            capture_output=True,
            input_text=password,
        )
