# vsyc language package
# This package provides a tokenizer and interpreter for the vsyc scripting language.
from .interpreter import run_program, run_file, Interpreter, KEYWORDS
from .errors import Diagnostic, VsycError
from .tokenizer import tokenize, render_nodes

__all__ = [
    'run_program',
    'run_file',
    'Interpreter',
    'KEYWORDS',
    'Diagnostic',
    'VsycError',
    'tokenize',
    'render_nodes',
]
