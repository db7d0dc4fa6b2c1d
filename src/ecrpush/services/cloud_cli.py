"""AWS CLI operations: identity, credentials and ECR repositories."""

import json
import shutil
from typing import Any, Callable, Dict

from ecrpush.errors import PusherError


class CloudCli:
    """Wraps the aws CLI calls needed to authenticate against ECR."""

    def __init__(self, runner, logger, executable: str = "aws", which: Callable = shutil.which):
        self.runner = runner
        self.logger = logger
        self.executable = executable
        self.which = which

    def is_installed(self) -> bool:
        return self.which(self.executable) is not None

    def identity_valid(self) -> bool:
        result = self.runner.run(
            [self.executable, "sts", "get-caller-identity"],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def caller_arn(self) -> str:
        result = self.runner.run(
            [self.executable, "sts", "get-caller-identity", "--query", "Arn", "--output", "text"],
            capture_output=True,
        )
        return result.stdout.strip()

    def caller_identity(self) -> Dict[str, Any]:
        result = self.runner.run(
            [self.executable, "sts", "get-caller-identity", "--output", "json"],
            capture_output=True,
        )
        try:
            identity = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise PusherError(f"Could not parse caller identity: {exc}") from exc
        if not isinstance(identity, dict):
            raise PusherError("Caller identity has an unexpected format.")
        return identity

    def configure(self):
        # Interactive: aws reads the keys straight from the terminal.
        self.runner.run([self.executable, "configure"])

    def get_login_password(self, region: str) -> str:
        result = self.runner.run(
            [self.executable, "ecr", "get-login-password", "--region", region],
            capture_output=True,
            log_output=False,
        )
        password = result.stdout.strip()
        if not password:
            raise PusherError("ECR returned an empty login password.")
        return password

    def repository_exists(self, repository: str, region: str) -> bool:
        result = self.runner.run(
            [
                self.executable,
                "ecr",
                "describe-repositories",
                "--repository-names",
                repository,
                "--region",
                region,
            ],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def create_repository(self, repository: str, region: str):
        self.logger.info("Creating ECR repository %s in %s", repository, region)
        self.runner.run(
            [
                self.executable,
                "ecr",
                "create-repository",
                "--repository-name",
                repository,
                "--region",
                region,
            ],
            capture_output=True,
        )
