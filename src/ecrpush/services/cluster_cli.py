"""kubectl operations: reachability, namespace context and pull secrets."""

import shutil
from typing import Callable, Dict, Optional


class ClusterCli:
    """Wraps the kubectl calls used to provision the registry pull secret.

    Every call accepts the kubeconfig path to use; ``None`` keeps whatever the
    process environment already points at.
    """

    def __init__(self, runner, logger, executable: str = "kubectl", which: Callable = shutil.which):
        self.runner = runner
        self.logger = logger
        self.executable = executable
        self.which = which

    @staticmethod
    def _env(kubeconfig: Optional[str]) -> Optional[Dict[str, str]]:
        if kubeconfig:
            return {"KUBECONFIG": kubeconfig}
        return None

    def is_installed(self) -> bool:
        return self.which(self.executable) is not None

    def cluster_reachable(self, kubeconfig: Optional[str] = None) -> bool:
        result = self.runner.run(
            [self.executable, "cluster-info"],
            check=False,
            capture_output=True,
            env=self._env(kubeconfig),
        )
        return result.returncode == 0

    def current_context(self, kubeconfig: Optional[str] = None) -> str:
        result = self.runner.run(
            [self.executable, "config", "current-context"],
            capture_output=True,
            env=self._env(kubeconfig),
        )
        return result.stdout.strip()

    def set_namespace(self, context: str, namespace: str, kubeconfig: Optional[str] = None):
        self.runner.run(
            [self.executable, "config", "set-context", context, f"--namespace={namespace}"],
            capture_output=True,
            env=self._env(kubeconfig),
        )

    def secret_exists(self, name: str, namespace: str, kubeconfig: Optional[str] = None) -> bool:
        result = self.runner.run(
            [self.executable, "get", "secret", name, "-n", namespace],
            check=False,
            capture_output=True,
            env=self._env(kubeconfig),
        )
        return result.returncode == 0

    def delete_secret(self, name: str, namespace: str, kubeconfig: Optional[str] = None) -> bool:
        result = self.runner.run(
            [self.executable, "delete", "secret", name, "-n", namespace],
            check=False,
            capture_output=True,
            env=self._env(kubeconfig),
        )
        return result.returncode == 0

    def create_docker_registry_secret(
        self,
        name: str,
        namespace: str,
        server: str,
        username: str,
        password: str,
        kubeconfig: Optional[str] = None,
    ):
        self.runner.run(
            [
                self.executable,
                "create",
                "secret",
                "docker-registry",
                name,
                f"--docker-server={server}",
                f"--docker-username={username}",
                f"--docker-password={password}",
                f"--namespace={namespace}",
            ],
            capture_output=True,
            env=self._env(kubeconfig),
            secrets=[password],
        )
