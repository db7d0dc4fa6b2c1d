"""Cluster access verification and kubeconfig bootstrap through the helper tool."""

import os
from typing import Optional

from ecrpush.constants import CLUSTER_ENVIRONMENTS, HELPER_NAME, KUBE_CONFIG_DIR
from ecrpush.errors import PusherError
from ecrpush.errors_catalog import actionable_error
from ecrpush.models import RunState
from ecrpush.services.prompts import Decision, describe_choices


class ClusterAccessService:
    """Makes sure kubectl can reach a cluster, or records that it cannot.

    When the cluster is unreachable and the helper is installed, the operator
    picks an environment and a per-environment kubeconfig is generated. A
    failed attempt restores both the previous kubeconfig reference and the
    previous contents of the generated file.
    """

    def __init__(
        self,
        cluster_cli,
        helper_tool,
        prompter,
        logger,
        console,
        namespace: str,
        kube_config_dir: str = KUBE_CONFIG_DIR,
    ):
        self.cluster_cli = cluster_cli
        self.helper_tool = helper_tool
        self.prompter = prompter
        self.logger = logger
        self.console = console
        self.namespace = namespace
        self.kube_config_dir = kube_config_dir

    def kubeconfig_path(self, environment: str) -> str:
        return os.path.join(self.kube_config_dir, f"config.{environment}")

    def ensure_access(self, state: RunState) -> bool:
        if self.cluster_cli.cluster_reachable(state.kubeconfig):
            self.console.print("[green]✅ kubectl is configured[/green]")
            state.cluster_configured = True
            return True

        self.console.print("[yellow]⚠️  kubectl is not configured to access a cluster[/yellow]")
        self.logger.warning("kubectl cannot reach a cluster")

        if not state.helper_available:
            proceed = self.prompter.confirm(
                Decision.CONTINUE_WITHOUT_CLUSTER,
                "Continue anyway?",
                default=False,
            )
            if not proceed:
                raise PusherError(actionable_error("cluster_access_declined", helper_name=HELPER_NAME))
            state.cluster_configured = False
            return False

        choices = " or ".join(describe_choices(CLUSTER_ENVIRONMENTS))
        environment = self.prompter.choose(
            Decision.CLUSTER_ENVIRONMENT,
            f"Select environment - {choices}",
            CLUSTER_ENVIRONMENTS,
        )
        if environment is None:
            self.console.print("[yellow]Invalid selection. Skipping kubectl configuration.[/yellow]")
            state.cluster_configured = False
            return False

        state.cluster_configured = self.configure(state, environment)
        return state.cluster_configured

    def configure(self, state: RunState, environment: str) -> bool:
        self.console.print(f"[blue]Configuring kubectl for {environment} environment...[/blue]")
        previous_kubeconfig = state.kubeconfig
        kubeconfig = self.kubeconfig_path(environment)
        try:
            backup = self._read_existing(kubeconfig)
        except OSError as exc:
            self.logger.warning("Could not back up %s: %s", kubeconfig, exc)
            self.console.print(
                f"[yellow]⚠️  Could not read existing {kubeconfig}; skipping kubectl configuration[/yellow]"
            )
            return False

        try:
            os.makedirs(os.path.dirname(kubeconfig), exist_ok=True)

            self.console.print(f"Running {HELPER_NAME} kube setup...")
            content = self.helper_tool.kube_setup(environment)
            with open(kubeconfig, "w", encoding="utf-8") as file_obj:
                file_obj.write(content)
            state.kubeconfig = kubeconfig

            self.console.print(f"Running {HELPER_NAME} kube login...")
            self.helper_tool.kube_login(kubeconfig)

            self.console.print(f"Setting namespace to {self.namespace}...")
            context = self.cluster_cli.current_context(kubeconfig)
            self.cluster_cli.set_namespace(context, self.namespace, kubeconfig)

            reachable = self.cluster_cli.cluster_reachable(kubeconfig)
        except (PusherError, OSError, UnicodeError) as exc:
            self.logger.warning("kubectl configuration for %s failed: %s", environment, exc)
            reachable = False

        if reachable:
            self.console.print(f"[green]✅ kubectl configured successfully for {environment}[/green]")
            self.console.print(f"[dim]To reuse this cluster session: export KUBECONFIG={kubeconfig}[/dim]")
            return True

        self.console.print("[red]❌ kubectl configuration failed[/red]")
        self._rollback(state, previous_kubeconfig, kubeconfig, backup)
        return False

    def _read_existing(self, path: str) -> Optional[bytes]:
        if not os.path.isfile(path):
            return None
        with open(path, "rb") as file_obj:
            return file_obj.read()

    def _rollback(self, state: RunState, previous_kubeconfig: Optional[str], kubeconfig: str, backup: Optional[bytes]):
        state.kubeconfig = previous_kubeconfig
        try:
            if backup is None:
                if os.path.exists(kubeconfig):
                    os.remove(kubeconfig)
            else:
                with open(kubeconfig, "wb") as file_obj:
                    file_obj.write(backup)
        except OSError as exc:
            self.logger.warning("Could not restore %s: %s", kubeconfig, exc)
        self.logger.info("Restored previous kubeconfig reference: %s", previous_kubeconfig or "<environment>")
