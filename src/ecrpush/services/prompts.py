"""Operator decisions, answered on the terminal or from preset answers."""

import enum
from typing import Any, Dict, Iterable, Mapping, Optional

from rich.prompt import Confirm, Prompt

from ecrpush.errors import PusherError


class Decision(enum.Enum):
    INSTALL_HELPER = "install_helper"
    CLUSTER_ENVIRONMENT = "cluster_environment"
    CONTINUE_WITHOUT_CLUSTER = "continue_without_cluster"
    RECONFIGURE_CREDENTIALS = "reconfigure_credentials"


YES_ANSWERS = {"y", "yes", "true", "1"}
NO_ANSWERS = {"n", "no", "false", "0", ""}


def _match_choice(answer: str, choices: Mapping[str, str]) -> Optional[str]:
    """Resolve a key (``s``) or a full name (``staging``) to the full name."""
    clean = answer.strip().lower()
    if clean in choices:
        return choices[clean]
    if clean in choices.values():
        return clean
    return None


class ConsolePrompter:
    """Asks the operator on the terminal. Blocks until an answer is given."""

    def __init__(self, console):
        self.console = console

    def confirm(self, decision: Decision, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def choose(self, decision: Decision, message: str, choices: Mapping[str, str]) -> Optional[str]:
        answer = Prompt.ask(message, console=self.console, default="")
        return _match_choice(answer, choices)


class NonInteractivePrompter:
    """Answers every question with its default. Used for unattended runs."""

    def confirm(self, decision: Decision, message: str, default: bool = False) -> bool:
        return default

    def choose(self, decision: Decision, message: str, choices: Mapping[str, str]) -> Optional[str]:
        return None


class AnswersPrompter:
    """Uses preset answers keyed by decision name, delegating the rest."""

    def __init__(self, answers: Mapping[str, Any], fallback):
        self.answers = self.validate(answers)
        self.fallback = fallback

    @staticmethod
    def validate(answers: Mapping[str, Any]) -> Dict[str, Any]:
        known = {decision.value for decision in Decision}
        unknown = sorted(set(answers) - known)
        if unknown:
            raise PusherError(f"Unknown answers: {', '.join(unknown)}")
        return dict(answers)

    def confirm(self, decision: Decision, message: str, default: bool = False) -> bool:
        if decision.value not in self.answers:
            return self.fallback.confirm(decision, message, default=default)

        value = self.answers[decision.value]
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in YES_ANSWERS:
            return True
        if text in NO_ANSWERS:
            return False
        raise PusherError(f"Invalid answer for {decision.value}: {value!r}")

    def choose(self, decision: Decision, message: str, choices: Mapping[str, str]) -> Optional[str]:
        if decision.value not in self.answers:
            return self.fallback.choose(decision, message, choices)

        value = self.answers[decision.value]
        if value is None:
            return None
        return _match_choice(str(value), choices)


def describe_choices(choices: Mapping[str, str]) -> Iterable[str]:
    for key, name in choices.items():
        yield f"({key}){name[len(key):]}" if name.startswith(key) else f"({key}) {name}"
