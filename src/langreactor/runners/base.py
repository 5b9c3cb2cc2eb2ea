from typing import List


class Runner:
    """Turns a whitelisted language token into the argv of the benchmark program."""

    def command(self, language: str) -> List[str]:
        raise NotImplementedError
