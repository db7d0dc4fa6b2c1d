import logging
import os

import click
from rich.logging import RichHandler

from . import core
from .constants import DEFAULT_CONFIG_FILE
from .core import EcrPusher, PusherError
from .services.config_loader import ConfigLoader
from .services.prompts import AnswersPrompter, ConsolePrompter, NonInteractivePrompter

USAGE_EXAMPLES = """Usage: ecrpush IMAGE [TAG]

Examples:
  ecrpush n8nio/n8n:latest latest
  ecrpush sdmdock/n8n-toolstreaming-previous:latest v1.0.0
  ecrpush my-custom-n8n:dev staging"""


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _build_prompter(non_interactive: bool, answers):
    base = NonInteractivePrompter() if non_interactive else ConsolePrompter(core.console)
    if answers:
        return AnswersPrompter(answers, fallback=base)
    return base


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.argument("image", required=False)
@click.argument("tag", required=False)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--region", required=False, help="AWS region of the ECR registry (default: us-east-1).")
@click.option("--account", required=False, help="AWS account id that owns the registry.")
@click.option("--repository", required=False, help="ECR repository name (default: ts-tools/n8n).")
@click.option("--namespace", required=False, help="Kubernetes namespace for the pull secret.")
@click.option("--secret-name", required=False, help="Name of the docker-registry pull secret.")
@click.option("--helper-path", required=False, type=click.Path(), help="Location of the kanopy-oidc binary.")
@click.option("--helper-version", required=False, help="kanopy-oidc release to download when missing.")
@click.option(
    "--kube-config-dir",
    required=False,
    type=click.Path(),
    help="Directory for generated per-environment kubeconfig files (default: ~/.kube).",
)
@click.option(
    "--manifest-file",
    required=False,
    type=click.Path(),
    help="Write a JSON run manifest with per-step status to this path.",
)
@click.option(
    "--non-interactive",
    is_flag=True,
    default=None,
    help="Never prompt; unanswered questions take their default answer.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    image,
    tag,
    config,
    region,
    account,
    repository,
    namespace,
    secret_name,
    helper_path,
    helper_version,
    kube_config_dir,
    manifest_file,
    non_interactive,
    verbose,
    log_file,
):
    """Push IMAGE to ECR as TAG and refresh the Kubernetes pull secret."""
    logger = logging.getLogger("ecrpush")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except PusherError as exc:
        raise click.ClickException(str(exc)) from exc

    image = _resolve_option(image, config_values, "image")
    if not image:
        raise click.ClickException(f"Local image not specified.\n\n{USAGE_EXAMPLES}")

    options = {
        "tag": _resolve_option(tag, config_values, "tag"),
        "region": _resolve_option(region, config_values, "region"),
        "account": _resolve_option(account, config_values, "account"),
        "repository": _resolve_option(repository, config_values, "repository"),
        "namespace": _resolve_option(namespace, config_values, "namespace"),
        "secret_name": _resolve_option(secret_name, config_values, "secret_name"),
        "helper_path": _resolve_option(helper_path, config_values, "helper_path"),
        "helper_version": _resolve_option(helper_version, config_values, "helper_version"),
        "kube_config_dir": _resolve_option(kube_config_dir, config_values, "kube_config_dir"),
        "manifest_file": _resolve_option(manifest_file, config_values, "manifest_file"),
    }
    options = {key: str(value) for key, value in options.items() if value is not None}

    non_interactive = bool(_resolve_option(non_interactive, config_values, "non_interactive", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        prompter = _build_prompter(non_interactive, config_values.get("answers"))
        pusher = EcrPusher(source_image=str(image), prompter=prompter, **options)
    except PusherError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(pusher.run())


if __name__ == "__main__":
    main()
