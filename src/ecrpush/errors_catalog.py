"""Actionable error catalog for ecrpush."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "docker_not_installed": {
        "what": "Docker is not installed.",
        "next": "Install Docker: https://docs.docker.com/get-docker/",
    },
    "docker_not_running": {
        "what": "Docker is not running.",
        "next": "Start Docker Desktop or the Docker daemon and try again.",
    },
    "aws_cli_not_installed": {
        "what": "AWS CLI is not installed.",
        "next": "Install it with `brew install awscli` or see https://aws.amazon.com/cli/.",
    },
    "kubectl_not_installed": {
        "what": "kubectl is not installed.",
        "next": "Install it with `brew install kubectl` or see https://kubernetes.io/docs/tasks/tools/.",
    },
    "invalid_aws_credentials": {
        "what": "AWS credentials are invalid.",
        "next": "Run `aws configure` with the access key for the registry IAM user.",
    },
    "cluster_access_declined": {
        "what": "Aborted without cluster access.",
        "next": "Install {helper_name} or configure kubectl manually, then re-run.",
    },
    "helper_download_failed": {
        "what": "Failed to download {helper_name}.",
        "next": "Download it manually from {releases_url}",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
