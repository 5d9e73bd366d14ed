from dataclasses import dataclass
from typing import Any


@dataclass
class Diagnostic:
    """A reported problem: a short category name and a message."""
    name: str
    message: str

    def __str__(self) -> str:
        return f"[{self.name}]: {self.message}"


class VsycError(Exception):
    """Exception type used to abort a single vsyc statement."""
    def __init__(self, diag: Diagnostic):
        super().__init__(f"VsycError: {diag.name}: {diag.message}")
        self.diag = diag


class ReturnSignal(Exception):
    """Internal exception to handle return statements in function bodies."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
