import logging
import os
import uuid
from typing import Any, Dict, Optional

import requests
from rich.console import Console

from .constants import (
    DEFAULT_ACCOUNT,
    DEFAULT_NAMESPACE,
    DEFAULT_REGION,
    DEFAULT_REPOSITORY,
    DEFAULT_SECRET_NAME,
    DEFAULT_TAG,
    HELPER_NAME,
    HELPER_PATH,
    HELPER_RELEASES_URL,
    HELPER_VERSION,
    KUBE_CONFIG_DIR,
    SECRET_VALIDITY_HOURS,
)
from .errors import PusherError
from .errors_catalog import actionable_error
from .models import RunConfig, RunState, WorkflowStage
from .services.cloud_cli import CloudCli
from .services.cluster_access import ClusterAccessService
from .services.cluster_cli import ClusterCli
from .services.command_runner import CommandRunner
from .services.container_engine import ContainerEngine
from .services.download import DownloadService
from .services.helper_tool import HelperTool
from .services.manifest import ManifestService
from .services.prompts import ConsolePrompter, Decision

console = Console()
logger = logging.getLogger("ecrpush")

RULE = "=" * 42


class EcrPusher:
    def __init__(
        self,
        source_image: str,
        tag: Optional[str] = None,
        region: str = DEFAULT_REGION,
        account: str = DEFAULT_ACCOUNT,
        repository: str = DEFAULT_REPOSITORY,
        namespace: str = DEFAULT_NAMESPACE,
        secret_name: str = DEFAULT_SECRET_NAME,
        helper_path: str = HELPER_PATH,
        helper_version: str = HELPER_VERSION,
        kube_config_dir: str = KUBE_CONFIG_DIR,
        manifest_file: Optional[str] = None,
        prompter=None,
    ):
        if not source_image:
            raise PusherError("Local image not specified.")

        self.config = RunConfig(
            source_image=source_image,
            tag=tag or DEFAULT_TAG,
            region=region,
            account=account,
            repository=repository,
            namespace=namespace,
            secret_name=secret_name,
        )
        self.run_id = uuid.uuid4().hex[:10]
        self.current_step_name: Optional[str] = None
        self.state: Optional[RunState] = None

        self.prompter = prompter or ConsolePrompter(console)
        self.manifest_service = ManifestService(manifest_file=manifest_file, logger=logger)
        self.command_runner = CommandRunner(logger=logger)
        self.download_service = DownloadService(
            logger=logger,
            console=console,
            requests_module=requests,
        )
        self.container_engine = ContainerEngine(runner=self.command_runner, logger=logger)
        self.cloud_cli = CloudCli(runner=self.command_runner, logger=logger)
        self.cluster_cli = ClusterCli(runner=self.command_runner, logger=logger)
        self.helper_tool = HelperTool(
            runner=self.command_runner,
            logger=logger,
            download_service=self.download_service,
            path=helper_path,
            version=helper_version,
        )
        self.cluster_access_service = ClusterAccessService(
            cluster_cli=self.cluster_cli,
            helper_tool=self.helper_tool,
            prompter=self.prompter,
            logger=logger,
            console=console,
            namespace=namespace,
            kube_config_dir=kube_config_dir,
        )

    @property
    def rerun_command(self) -> str:
        return f"ecrpush {self.config.source_image} {self.config.tag}"

    def _build_manifest_metadata(self) -> Dict[str, Any]:
        return {
            "source_image": self.config.source_image,
            "destination_image": self.config.destination_image,
            "tag": self.config.tag,
            "region": self.config.region,
            "account": self.config.account,
            "repository": self.config.repository,
            "namespace": self.config.namespace,
            "secret_name": self.config.secret_name,
        }

    def new_state(self) -> RunState:
        return RunState(kubeconfig=os.environ.get("KUBECONFIG") or None)

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.manifest_service.step_started(name)
        self.current_step_name = name

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            self.manifest_service.step_finished(name, "failed", error=str(exc))
            raise

        self.manifest_service.step_finished(name, "success")
        self.current_step_name = None
        return result

    def _skip_step(self, name: str, reason: str):
        self.manifest_service.step_started(name)
        self.manifest_service.step_finished(name, "skipped", details={"reason": reason})

    def _section(self, title: str):
        console.print(f"[bold]{RULE}[/bold]")
        console.print(f"[bold]{title}[/bold]")
        console.print(f"[bold]{RULE}[/bold]")

    def verify_dependencies(self, state: RunState):
        self._section("Checking prerequisites...")

        if not self.container_engine.is_installed():
            raise PusherError(actionable_error("docker_not_installed"))
        if not self.container_engine.is_running():
            raise PusherError(actionable_error("docker_not_running"))
        state.docker_available = True
        console.print("[green]✅ Docker is installed and running[/green]")

        if not self.cloud_cli.is_installed():
            raise PusherError(actionable_error("aws_cli_not_installed"))
        state.cloud_cli_available = True
        console.print("[green]✅ AWS CLI is installed[/green]")

        if not self.cluster_cli.is_installed():
            raise PusherError(actionable_error("kubectl_not_installed"))
        state.cluster_cli_available = True
        console.print("[green]✅ kubectl is installed[/green]")

        state.advance(WorkflowStage.DEPENDENCIES_CHECKED)

    def bootstrap_helper(self, state: RunState):
        if self.helper_tool.is_installed():
            console.print(f"[green]✅ {HELPER_NAME} is installed[/green]")
            state.helper_available = True
            state.advance(WorkflowStage.HELPER_READY)
            return

        console.print(f"[yellow]⚠️  {HELPER_NAME} not found at {self.helper_tool.path}[/yellow]")
        install = self.prompter.confirm(
            Decision.INSTALL_HELPER,
            f"Would you like to download and install {HELPER_NAME} {self.helper_tool.version}?",
            default=False,
        )
        if not install:
            console.print(f"Skipping {HELPER_NAME} installation")
            state.helper_available = False
            state.advance(WorkflowStage.HELPER_ABSENT)
            return

        console.print(f"Downloading from: {self.helper_tool.download_url()}")
        try:
            self.helper_tool.install()
        except PusherError as exc:
            logger.warning(str(exc))
            console.print(
                "[red]❌ "
                + actionable_error(
                    "helper_download_failed",
                    helper_name=HELPER_NAME,
                    releases_url=HELPER_RELEASES_URL,
                )
                + "[/red]"
            )
            state.helper_available = False
            state.advance(WorkflowStage.HELPER_ABSENT)
            return

        console.print(f"[green]✅ {HELPER_NAME} installed successfully[/green]")
        state.helper_available = True
        state.advance(WorkflowStage.HELPER_READY)

    def verify_cluster_access(self, state: RunState):
        if self.cluster_access_service.ensure_access(state):
            state.advance(WorkflowStage.CLUSTER_READY)
        else:
            state.advance(WorkflowStage.CLUSTER_SKIPPED)
        console.print("")

    def print_banner(self):
        self._section("ECR Push")
        config = self.config
        console.print(f"AWS Region: {config.region}")
        console.print(f"ECR Account: {config.account}")
        console.print(f"ECR Repository: {config.repository}")
        console.print(f"Local Image: {config.source_image}")
        console.print(f"ECR Image: {config.destination_image}")
        console.print(f"Tag: {config.tag}")
        console.print(f"Kubernetes Namespace: {config.namespace}")
        console.print(f"Kubernetes Secret: {config.secret_name}")
        console.print(f"[bold]{RULE}[/bold]")
        console.print("")

    def _run_aws_configure(self):
        console.print("Running aws configure...")
        console.print("Enter the following when prompted:")
        console.print("  - AWS Access Key ID: [your access key]", markup=False)
        console.print("  - AWS Secret Access Key: [your secret key]", markup=False)
        console.print(f"  - Default region name: {self.config.region}")
        console.print("  - Default output format: json")
        self.cloud_cli.configure()

    def configure_credentials(self, state: RunState):
        console.print("[bold blue]Step 1: Configuring AWS credentials...[/bold blue]")

        if self.cloud_cli.identity_valid():
            console.print(f"Found existing AWS credentials: {self.cloud_cli.caller_arn()}")
            reconfigure = self.prompter.confirm(
                Decision.RECONFIGURE_CREDENTIALS,
                "Do you want to reconfigure?",
                default=False,
            )
            if reconfigure:
                self._run_aws_configure()
            else:
                console.print("[green]✅ Using existing credentials[/green]")
        else:
            console.print("No AWS credentials found.")
            self._run_aws_configure()

        console.print("Verifying AWS credentials...")
        if not self.cloud_cli.identity_valid():
            raise PusherError(actionable_error("invalid_aws_credentials"))

        identity = self.cloud_cli.caller_identity()
        console.print("[green]✅ Authenticated as:[/green]")
        console.print_json(data=identity)
        logger.info("Authenticated as %s", identity.get("Arn", "<unknown>"))
        state.advance(WorkflowStage.CREDENTIALS_VERIFIED)

    def authenticate_registry(self, state: RunState):
        console.print("[bold blue]Step 2: Logging into AWS ECR...[/bold blue]")
        password = self.cloud_cli.get_login_password(self.config.region)
        self.container_engine.login(
            self.config.registry_endpoint,
            self.config.registry_username,
            password,
        )
        console.print("[green]✅ Successfully logged into ECR[/green]")
        state.advance(WorkflowStage.REGISTRY_AUTHENTICATED)

    def ensure_repository(self, state: RunState):
        console.print("[bold blue]Step 3: Checking if ECR repository exists...[/bold blue]")
        repository = self.config.repository
        if self.cloud_cli.repository_exists(repository, self.config.region):
            console.print(f"[green]✅ ECR repository '{repository}' already exists[/green]")
        else:
            console.print(f"Creating ECR repository '{repository}'...")
            self.cloud_cli.create_repository(repository, self.config.region)
            console.print("[green]✅ ECR repository created successfully[/green]")
        state.advance(WorkflowStage.REPOSITORY_READY)

    def ensure_local_image(self, state: RunState):
        console.print("[bold blue]Step 4: Checking for local image...[/bold blue]")
        image = self.config.source_image
        if self.container_engine.image_exists(image):
            console.print(f"[green]✅ Local image '{image}' found[/green]")
        else:
            console.print("Local image not found. Pulling from its registry...")
            self.container_engine.pull(image)
            console.print("[green]✅ Image pulled successfully[/green]")
        state.advance(WorkflowStage.IMAGE_READY)

    def tag_and_push(self, state: RunState):
        destination = self.config.destination_image

        console.print("[bold blue]Step 5: Tagging image for ECR...[/bold blue]")
        self.container_engine.tag(self.config.source_image, destination)
        console.print(f"[green]✅ Image tagged as '{destination}'[/green]")
        state.advance(WorkflowStage.IMAGE_TAGGED)

        console.print("[bold blue]Step 6: Pushing image to ECR...[/bold blue]")
        self.container_engine.push(destination)
        console.print("[green]✅ Image pushed successfully to ECR[/green]")
        state.advance(WorkflowStage.IMAGE_PUSHED)

    def provision_secret(self, state: RunState):
        console.print("[bold blue]Step 7: Creating Kubernetes secret for ECR authentication...[/bold blue]")
        config = self.config

        console.print("Getting ECR authorization token...")
        password = self.cloud_cli.get_login_password(config.region)

        if self.cluster_cli.secret_exists(config.secret_name, config.namespace, state.kubeconfig):
            console.print("Deleting existing secret...")
            if not self.cluster_cli.delete_secret(config.secret_name, config.namespace, state.kubeconfig):
                logger.warning(
                    "Could not delete existing secret '%s' in namespace '%s'",
                    config.secret_name,
                    config.namespace,
                )
                console.print("[yellow]⚠️  Could not delete the existing secret[/yellow]")

        self.cluster_cli.create_docker_registry_secret(
            name=config.secret_name,
            namespace=config.namespace,
            server=config.registry_endpoint,
            username=config.registry_username,
            password=password,
            kubeconfig=state.kubeconfig,
        )
        state.secret_provisioned = True
        console.print(
            f"[green]✅ Kubernetes secret '{config.secret_name}' created in namespace "
            f"'{config.namespace}'[/green]"
        )
        state.advance(WorkflowStage.SECRET_PROVISIONED)

    def skip_secret_provisioning(self, state: RunState):
        console.print("[bold blue]Step 7: Skipping Kubernetes secret creation (kubectl not configured)[/bold blue]")
        console.print("[yellow]⚠️  To create the secret later, configure kubectl and re-run:[/yellow]")
        console.print(f"  {self.rerun_command}")
        logger.warning("Kubernetes secret was not created; the run is incomplete")
        state.secret_provisioned = False
        state.advance(WorkflowStage.SECRET_SKIPPED)

    def print_summary(self, state: RunState):
        console.print("")
        self._section("[green]✅ All steps completed successfully![/green]")
        console.print(f"Image URI: {self.config.destination_image}")
        if state.secret_provisioned:
            console.print(
                f"[yellow]⚠️  IMPORTANT: The Kubernetes secret expires in {SECRET_VALIDITY_HOURS} hours[/yellow]"
            )
            console.print(f"After {SECRET_VALIDITY_HOURS} hours, recreate the secret by running:")
            console.print(f"  {self.rerun_command}")

    def run(self, state: Optional[RunState] = None) -> int:
        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None
        state = state or self.new_state()
        self.state = state

        try:
            logger.info("Starting ecrpush run %s", self.run_id)
            self.manifest_service.start_run(
                run_id=self.run_id,
                metadata=self._build_manifest_metadata(),
            )

            self._run_step("verify_dependencies", self.verify_dependencies, state)
            self._run_step("bootstrap_helper", self.bootstrap_helper, state)
            self._run_step("verify_cluster_access", self.verify_cluster_access, state)
            self.print_banner()
            self._run_step("configure_credentials", self.configure_credentials, state)
            self._run_step("authenticate_registry", self.authenticate_registry, state)
            self._run_step("ensure_repository", self.ensure_repository, state)
            self._run_step("ensure_local_image", self.ensure_local_image, state)
            self._run_step("tag_and_push", self.tag_and_push, state)

            if state.cluster_configured:
                self._run_step("provision_secret", self.provision_secret, state)
            else:
                self._skip_step("provision_secret", "kubectl not configured")
                self.skip_secret_provisioning(state)

            self.print_summary(state)
            state.advance(WorkflowStage.DONE)
            self.manifest_service.add_artifact("image_uri", self.config.destination_image)
            manifest_status = "success"
            manifest_error = None
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            return exit_code
        except PusherError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error("%s failed: %s", self.current_step_name or "run", exc)
            manifest_error = str(exc)
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_error = str(exc)
            return exit_code
        finally:
            self.manifest_service.record_outcome(state)
            self.manifest_service.finalize(manifest_status, error=manifest_error)
