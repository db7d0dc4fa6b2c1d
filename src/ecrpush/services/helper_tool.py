"""kanopy-oidc helper: installation and kubeconfig bootstrap."""

import os
import platform
from typing import Optional

from ecrpush.constants import (
    ARCH_ALIASES,
    EXECUTABLE_MODE,
    HELPER_DOWNLOAD_URL_TEMPLATE,
    HELPER_PATH,
    HELPER_VERSION,
)


def normalize_arch(machine: str) -> str:
    """Map ``uname -m`` style names onto release asset names.

    ``x86_64`` becomes ``amd64`` and ``aarch64``/``arm64`` become ``arm64``.
    Anything else is returned unchanged.
    """
    return ARCH_ALIASES.get(machine, machine)


def build_download_url(version: str, os_name: str, machine: str) -> str:
    return HELPER_DOWNLOAD_URL_TEMPLATE.format(
        version=version,
        os=os_name.lower(),
        arch=normalize_arch(machine),
    )


class HelperTool:
    """Runs the helper binary that exchanges an OIDC session for cluster access."""

    def __init__(
        self,
        runner,
        logger,
        download_service,
        path: str = HELPER_PATH,
        version: str = HELPER_VERSION,
        platform_module=platform,
    ):
        self.runner = runner
        self.logger = logger
        self.download_service = download_service
        self.path = path
        self.version = version
        self.platform = platform_module

    def is_installed(self) -> bool:
        return os.path.isfile(self.path)

    def download_url(self) -> str:
        return build_download_url(self.version, self.platform.system(), self.platform.machine())

    def install(self) -> str:
        url = self.download_url()
        self.download_service.download_file(
            url,
            self.path,
            description=f"Downloading kanopy-oidc {self.version}...",
            mode=EXECUTABLE_MODE,
        )
        return url

    def kube_setup(self, environment: str) -> str:
        result = self.runner.run(
            [self.path, "kube", "setup", environment],
            capture_output=True,
            log_output=False,
        )
        return result.stdout

    def kube_login(self, kubeconfig: Optional[str]):
        env = {"KUBECONFIG": kubeconfig} if kubeconfig else None
        # Interactive: may open a browser or prompt on the terminal.
        self.runner.run([self.path, "kube", "login"], env=env)
