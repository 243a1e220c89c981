from typing import List


class HarnessError(Exception):
    """Base class for harness failures"""


class ContainerCommandError(HarnessError):
    """A one-shot container command exited non-zero"""

    def __init__(self, command: List[str], exit_code: int, output: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f"Command {' '.join(command)!r} exited with code {exit_code}"
        )


class ScenarioFailure(HarnessError):
    """An explicit assertion about the system under test failed"""


class WaitTimeout(HarnessError):
    """A bounded polling loop ran out of attempts"""
