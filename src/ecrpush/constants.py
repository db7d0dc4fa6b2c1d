"""Fixed defaults for the registry, cluster and helper tool."""

import os

DEFAULT_TAG = "latest"
DEFAULT_REGION = "us-east-1"
DEFAULT_ACCOUNT = "795250896452"
DEFAULT_REPOSITORY = "ts-tools/n8n"
DEFAULT_NAMESPACE = "ts-tools"
DEFAULT_SECRET_NAME = "ecr-registry-secret"
REGISTRY_USERNAME = "AWS"
REGISTRY_HOST_TEMPLATE = "{account}.dkr.ecr.{region}.amazonaws.com"

# ECR authorization tokens are valid for 12 hours.
SECRET_VALIDITY_HOURS = 12

HELPER_NAME = "kanopy-oidc"
HELPER_VERSION = "v0.7.0"
HELPER_PATH = os.path.join(os.path.expanduser("~"), "kanopy-oidc", "bin", "kanopy-oidc")
HELPER_RELEASES_URL = "https://github.com/kanopy-platform/kanopy-oidc/releases"
HELPER_DOWNLOAD_URL_TEMPLATE = HELPER_RELEASES_URL + "/download/{version}/kanopy-oidc_{os}_{arch}"

KUBE_CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".kube")
CLUSTER_ENVIRONMENTS = {
    "s": "staging",
    "p": "prod",
}

ARCH_ALIASES = {
    "x86_64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

EXECUTABLE_MODE = 0o755
DEFAULT_CONFIG_FILE = ".ecrpush.yml"
