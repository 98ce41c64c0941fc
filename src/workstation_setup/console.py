"""Line-oriented operator console."""

from __future__ import annotations

import dataclasses
import sys
from typing import Callable, List, Sequence, TextIO, Tuple

from .errors import RunAborted

RULE = "-" * 50
HEAVY_RULE = "=" * 40

InputFunc = Callable[[str], str]


@dataclasses.dataclass(slots=True)
class Selection:
    """Parsed answer to a numbered multi-choice menu."""

    indices: List[int]
    invalid: List[str]


def parse_selection(raw: str, size: int) -> Selection:
    """Parse whitespace separated 1-based indices against a menu of ``size`` items.

    Valid indices are returned zero-based in the order given, duplicates kept.
    Tokens that are not numbers or fall outside the menu are collected in
    ``invalid`` and otherwise ignored.
    """

    indices: List[int] = []
    invalid: List[str] = []
    for token in raw.split():
        try:
            number = int(token)
        except ValueError:
            invalid.append(token)
            continue
        if 1 <= number <= size:
            indices.append(number - 1)
        else:
            invalid.append(token)
    return Selection(indices=indices, invalid=invalid)


class Console:
    """Prompts and messages exchanged with the operator."""

    def __init__(self, input_func: InputFunc | None = None, output: TextIO | None = None) -> None:
        self._input = input_func or input
        self._output = output

    def say(self, message: str = "") -> None:
        stream = self._output if self._output is not None else sys.stdout
        print(message, file=stream, flush=True)

    def ask(self, prompt: str) -> str:
        """Block until the operator answers.

        Ctrl-C or a closed input stream abort the whole run.
        """

        try:
            return self._input(prompt)
        except (KeyboardInterrupt, EOFError) as exc:
            self.say()
            raise RunAborted(f"Aborted by operator at prompt: {prompt.strip()}") from exc

    def pause(self, prompt: str = "Press ENTER to continue...") -> None:
        self.ask(prompt)

    def banner(self, *lines: str, rule: str = HEAVY_RULE) -> None:
        self.say(rule)
        for line in lines:
            self.say(line)
        self.say(rule)

    def menu(self, items: Sequence[str]) -> None:
        for number, item in enumerate(items, start=1):
            self.say(f"{number}) {item}")

    def choose_many(self, question: str, items: Sequence[str], prompt: str) -> Tuple[List[int], List[str]]:
        """Show a numbered menu and return the selected zero-based indices.

        Each invalid entry is reported to the operator before returning.
        """

        self.say(question)
        self.menu(items)
        answer = self.ask(prompt)
        selection = parse_selection(answer, len(items))
        for token in selection.invalid:
            self.say(f"Invalid selection: {token}")
        return selection.indices, selection.invalid
