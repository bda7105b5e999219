"""Terminal implementations of the prompt and decision ports."""

from typing import Callable, Sequence, Tuple, TypeVar

from envsimple.cli.output import Output
from envsimple.errors import CancelledError, InteractiveRequired

T = TypeVar("T")


class TerminalPrompter:
    """Prompts on stdin/stdout.

    Args:
        interactive: False in JSON and service-token mode; every prompt then
            raises :class:`InteractiveRequired` instead of reading input.
        input_fn: Replaces :func:`input` (tests).
    """

    def __init__(self, interactive: bool = True, input_fn: Callable[[str], str] = input):
        self.interactive = interactive
        self._input = input_fn

    def _require_interactive(self) -> None:
        if not self.interactive:
            raise InteractiveRequired(
                "This command needs an interactive prompt. "
                "Pass the required flags or run without --json."
            )

    def _ask(self, prompt: str) -> str:
        self._require_interactive()
        try:
            return self._input(prompt).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            raise CancelledError("Aborted.")

    def confirm(self, message: str, default: bool = False) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        answer = self._ask(f"{message} {hint}: ").lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def select(self, message: str, choices: Sequence[Tuple[str, T]]) -> T:
        if not choices:
            raise ValueError("select() needs at least one choice")
        self._require_interactive()

        print(message)
        for i, (label, _) in enumerate(choices, 1):
            print(f"  {i}. {label}")
        print()

        while True:
            answer = self._ask(f"Enter choice [1-{len(choices)}]: ")
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1][1]
            print(f"Please enter a number between 1 and {len(choices)}.")


class TerminalDecisions:
    """Sync decisions answered by the person at the terminal.

    Without an interactive terminal a stale push is not retried, so the
    conflict surfaces as an error rather than a prompt failure.
    """

    def __init__(self, prompter: TerminalPrompter, output: Output):
        self.prompter = prompter
        self.output = output

    def confirm_overwrite(self, version_number: int, key_count: int) -> bool:
        if version_number == 0:
            self.output.warning("This environment has no versions yet (version 0).")
        else:
            self.output.warning(f"Version {version_number} contains no variables.")
        return self.prompter.confirm("Overwrite your local .env with an empty file?")

    def include_override_keys(self, keys: Sequence[str]) -> bool:
        self.output.warning("Your .env contains keys that are local overrides in .envsimple.local:")
        for key in keys:
            self.output.info(f"  - {key}")
        return self.prompter.confirm("Include these override values in the push?")

    def force_after_conflict(self, message: str) -> bool:
        if not self.prompter.interactive:
            return False
        self.output.warning(message)
        self.output.info("Someone pushed a newer version since your last pull.")
        return self.prompter.confirm("Force push and overwrite the remote version?")
