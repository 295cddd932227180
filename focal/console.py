# Operator console - prompts on stdout, one fresh line read from stdin per prompt
import sys
from typing import Optional, TextIO

QUIT_WORDS = ("q", "quit", "exit")


class OperatorConsole:

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None,
                 stderr: Optional[TextIO] = None):
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._stderr = stderr or sys.stderr

    def say(self, message: str = "") -> None:
        print(message, file=self._stdout, flush=True)

    def warn(self, message: str) -> None:
        """Operator-facing complaint about their input, kept off stdout"""
        print(message, file=self._stderr, flush=True)

    def ask(self, prompt: str) -> Optional[str]:
        """Print the prompt and return the stripped reply, or None at end of input"""
        self.say(prompt)
        line = self._stdin.readline()
        if not line:
            return None
        return line.strip()

    def wait_for_enter(self, prompt: str) -> bool:
        """False when input is already closed"""
        return self.ask(prompt) is not None

    @staticmethod
    def is_quit(reply: str) -> bool:
        return reply.lower() in QUIT_WORDS
