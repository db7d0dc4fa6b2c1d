import pytest

from ecrpush.errors import PusherError
from ecrpush.models import RunState
from ecrpush.services.cluster_access import ClusterAccessService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeClusterCli:
    def __init__(self, reachable):
        self.reachable = list(reachable)
        self.probes = []
        self.namespaces = []

    def cluster_reachable(self, kubeconfig=None):
        self.probes.append(kubeconfig)
        return self.reachable.pop(0)

    def current_context(self, kubeconfig=None):
        return "staging-ctx"

    def set_namespace(self, context, namespace, kubeconfig=None):
        self.namespaces.append((context, namespace, kubeconfig))


class FakeHelperTool:
    def __init__(self, setup_output="apiVersion: v1\n", login_error=None):
        self.setup_output = setup_output
        self.login_error = login_error
        self.logins = []

    def kube_setup(self, environment):
        return self.setup_output

    def kube_login(self, kubeconfig):
        self.logins.append(kubeconfig)
        if self.login_error:
            raise self.login_error


class FakePrompter:
    def __init__(self, confirm=False, choice=None):
        self.confirm_answer = confirm
        self.choice = choice
        self.asked = []

    def confirm(self, decision, message, default=False):
        self.asked.append(decision.value)
        return self.confirm_answer

    def choose(self, decision, message, choices):
        self.asked.append(decision.value)
        return self.choice


def _service(tmp_path, cluster_cli, helper_tool=None, prompter=None):
    return ClusterAccessService(
        cluster_cli=cluster_cli,
        helper_tool=helper_tool or FakeHelperTool(),
        prompter=prompter or FakePrompter(),
        logger=DummyLogger(),
        console=DummyConsole(),
        namespace="ts-tools",
        kube_config_dir=str(tmp_path / ".kube"),
    )


def test_reachable_cluster_needs_no_prompt(tmp_path):
    prompter = FakePrompter()
    service = _service(tmp_path, FakeClusterCli([True]), prompter=prompter)
    state = RunState(helper_available=True)

    assert service.ensure_access(state) is True
    assert state.cluster_configured is True
    assert prompter.asked == []


def test_declining_without_helper_aborts(tmp_path):
    service = _service(tmp_path, FakeClusterCli([False]), prompter=FakePrompter(confirm=False))
    state = RunState(helper_available=False)

    with pytest.raises(PusherError, match="Aborted without cluster access"):
        service.ensure_access(state)


def test_continuing_without_helper_skips_cluster(tmp_path):
    prompter = FakePrompter(confirm=True)
    service = _service(tmp_path, FakeClusterCli([False]), prompter=prompter)
    state = RunState(helper_available=False)

    assert service.ensure_access(state) is False
    assert state.cluster_configured is False
    assert prompter.asked == ["continue_without_cluster"]


def test_invalid_environment_selection_skips_configuration(tmp_path):
    service = _service(tmp_path, FakeClusterCli([False]), prompter=FakePrompter(choice=None))
    state = RunState(helper_available=True)

    assert service.ensure_access(state) is False
    assert not (tmp_path / ".kube").exists()


def test_successful_configuration_switches_kubeconfig(tmp_path):
    cluster_cli = FakeClusterCli([False, True])
    service = _service(tmp_path, cluster_cli, prompter=FakePrompter(choice="staging"))
    state = RunState(kubeconfig="/old/config", helper_available=True)

    assert service.ensure_access(state) is True

    kubeconfig = str(tmp_path / ".kube" / "config.staging")
    assert state.kubeconfig == kubeconfig
    assert (tmp_path / ".kube" / "config.staging").read_text(encoding="utf-8") == "apiVersion: v1\n"
    assert cluster_cli.namespaces == [("staging-ctx", "ts-tools", kubeconfig)]
    assert cluster_cli.probes == ["/old/config", kubeconfig]


def test_failed_configuration_restores_reference_and_file(tmp_path):
    kube_dir = tmp_path / ".kube"
    kube_dir.mkdir()
    existing = kube_dir / "config.prod"
    existing.write_text("previous-config\n", encoding="utf-8")

    service = _service(
        tmp_path,
        FakeClusterCli([False, False]),
        helper_tool=FakeHelperTool(setup_output="broken\n"),
        prompter=FakePrompter(choice="prod"),
    )
    state = RunState(kubeconfig="/old/config", helper_available=True)

    assert service.ensure_access(state) is False
    assert state.kubeconfig == "/old/config"
    assert state.cluster_configured is False
    assert existing.read_text(encoding="utf-8") == "previous-config\n"


def test_failed_login_removes_generated_file(tmp_path):
    service = _service(
        tmp_path,
        FakeClusterCli([False]),
        helper_tool=FakeHelperTool(login_error=PusherError("login failed")),
        prompter=FakePrompter(choice="staging"),
    )
    state = RunState(helper_available=True)

    assert service.ensure_access(state) is False
    assert state.kubeconfig is None
    assert not (tmp_path / ".kube" / "config.staging").exists()


def test_failed_configuration_restores_non_utf8_file_byte_for_byte(tmp_path):
    kube_dir = tmp_path / ".kube"
    kube_dir.mkdir()
    existing = kube_dir / "config.staging"
    existing.write_bytes(b"\xff\xfelegacy\x00config")

    service = _service(tmp_path, FakeClusterCli([False, False]), prompter=FakePrompter(choice="staging"))
    state = RunState(helper_available=True)

    assert service.ensure_access(state) is False
    assert existing.read_bytes() == b"\xff\xfelegacy\x00config"


class RecordingHelperTool(FakeHelperTool):
    def __init__(self):
        super().__init__()
        self.setups = []

    def kube_setup(self, environment):
        self.setups.append(environment)
        return super().kube_setup(environment)


def test_unreadable_existing_config_skips_configuration(tmp_path, monkeypatch):
    kube_dir = tmp_path / ".kube"
    kube_dir.mkdir()
    existing = kube_dir / "config.prod"
    existing.write_text("keep-me\n", encoding="utf-8")

    helper = RecordingHelperTool()
    service = _service(
        tmp_path,
        FakeClusterCli([False]),
        helper_tool=helper,
        prompter=FakePrompter(choice="prod"),
    )

    def unreadable(_path):
        raise PermissionError("permission denied")

    monkeypatch.setattr(service, "_read_existing", unreadable)
    state = RunState(kubeconfig="/old/config", helper_available=True)

    assert service.ensure_access(state) is False
    assert state.cluster_configured is False
    assert state.kubeconfig == "/old/config"
    assert helper.setups == []
    assert existing.read_text(encoding="utf-8") == "keep-me\n"
