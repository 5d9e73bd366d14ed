"""Evaluator for the vsyc scripting language.

There is no AST. The interpreter walks a module's flat node sequence,
dispatching on each keyword node whose parent index is the scope being
run. Statements find their operands by scanning forward from the keyword
(see `nodes.operands`). Variables are realized by rewriting node text in
place: a `[#name]` placeholder is replaced by the variable's value and the
node is stamped with the variable's address, so a later change to the
variable can be pushed into every node that shows it.

All state lives on an `Interpreter` instance: its symbol table, its tree
store of loaded modules, and the host capabilities it was given.
"""

from __future__ import annotations

import re
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import Diagnostic, ReturnSignal, VsycError
from .forms import parse_args, parse_declaration, parse_params, parse_target
from .host import load_file_source
from .nodes import (
    Address, Node, KEYWORD, STRING, BLOCK, PAREN, OTHER, TOP_LEVEL,
    operand_of_kind, operands, statements, subtree,
)
from .symbols import FUNCTION, VARIABLE, FunctionInfo, Symbol, SymbolTable, VariableInfo
from .trees import ModuleTree, TreeStore
from .tokenizer import tokenize
from .values import COMPARISONS, compare, dump_array, load_array, parse_number, to_text

# Keywords that are never reported as unknown, whether or not they do anything.
KEYWORDS = (
    'declare',
    'func',
    'if',
    'else',
    'return',
    'for',
    'elseif',
    'c',
    'call',
    'print',
)

CONDITION_KEYWORDS = ('eq', 'lt', 'gt')
FUNCTION_MARKER = '*'
DO_MARKER = 'do:'
PLACEHOLDER_RE = re.compile(r'\[#([^\[\]]+)\]')


class Interpreter:
    """Runs vsyc modules against one symbol table and tree store."""
    def __init__(
        self,
        load_source: Callable[[str], str] = load_file_source,
        invoke_native: Optional[Callable[[str], str]] = None,
        debug_level: int = 0,
        debug_file: Optional[str] = None,
        allowed_keywords: Tuple[str, ...] = KEYWORDS,
    ):
        self.symbols = SymbolTable()
        self.trees = TreeStore()
        self.load_source = load_source
        self.invoke_native = invoke_native
        self.allowed_keywords = allowed_keywords
        self.diagnostics: List[Diagnostic] = []
        self.call_depth = 0
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        self.handlers: Dict[str, Callable[[int, Node], Any]] = {
            'c': self.exec_comment,
            'print': self.exec_print,
            'declare': self.exec_declare,
            'func': self.exec_func,
            'call': self.exec_call,
            'return': self.exec_return,
            'if': self.exec_if,
            'insert': self.exec_insert,
            'remove': self.exec_remove,
            'read': self.exec_read,
            'usingfile': self.exec_usingfile,
            'exportall': self.exec_exportall,
            'execjs': self.exec_native,
        }
        for keyword in COMPARISONS:
            self.handlers[keyword] = self.exec_compare

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def report(self, diag: Diagnostic):
        self.diagnostics.append(diag)
        print(str(diag), file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # Public API
    def run(self, source: str, name: str = 'root') -> ModuleTree:
        """Tokenize `source`, store it as module `name`, and evaluate it."""
        tree = self.trees.add(name, tokenize(source))
        self.debug(f"module {name}: {len(tree.nodes)} nodes")
        with self.trees.switch(name):
            # globals declared by an importing module
            self.substitute()
            self.execute_scope(TOP_LEVEL)
        return tree

    def run_file(self, path: str) -> ModuleTree:
        return self.run(self.load_source(path), name=path)

    def exported_symbols(self, name: str) -> List[Symbol]:
        exports = self.trees.get(name).exports or ()
        return [self.symbols.lookup(address) for address in exports]

    # Evaluation
    @property
    def nodes(self) -> List[Node]:
        return self.trees.tree.nodes

    def execute_scope(self, scope: int):
        """Run every statement directly inside `scope` of the current module."""
        nodes = self.nodes
        for i, node in statements(nodes, scope):
            prev = nodes[i - 1] if i > 0 else None
            if prev is not None and prev.kind == KEYWORD and prev.value.strip() == 'return' \
                    and prev.parent == node.parent:
                # operand of the return before it, not a statement
                continue
            self.execute(i)

    def execute(self, index: int) -> Any:
        node = self.nodes[index]
        keyword = node.value.strip()
        handler = self.handlers.get(keyword)
        if handler is None:
            if keyword not in self.allowed_keywords:
                self.report(Diagnostic('KeywordError', f'unknown keyword: {keyword}'))
            else:
                self.debug(f"ignoring keyword {keyword}", 2)
            return None
        self.debug(f"{self.trees.current}:{index} @{keyword}", 2)
        try:
            return handler(index, node)
        except VsycError as ex:
            self.report(ex.diag)
            return None

    def operand(self, index: int, kind: str, what: str, after: Optional[int] = None) -> Tuple[int, Node]:
        found = operand_of_kind(self.nodes, index, kind, after)
        if found is None:
            keyword = self.nodes[index].value.strip()
            raise VsycError(Diagnostic('SyntaxError', f'@{keyword} expects {what}'))
        return found

    # Substitution
    def substitute(self, tree: Optional[ModuleTree] = None):
        """Replace `[#name]` placeholders in a module's nodes with variable values.

        A placeholder is only replaced where the variable is visible: the
        variable is global, or it was declared in this module with the
        node's own parent index as its scope.
        """
        tree = tree or self.trees.tree
        for node in tree.nodes:
            if '[#' not in node.value:
                continue

            def replace(match):
                symbol = self.symbols.find_variable(match.group(1).strip(), tree.name, node.parent)
                if symbol is None:
                    return match.group(0)
                node.address = symbol.address
                self.debug(f"substitute [#{symbol.payload.name}] in {tree.name}", 3)
                return symbol.payload.text.strip()

            node.value = PLACEHOLDER_RE.sub(replace, node.value)

    def bound_nodes(self, address: Address):
        for tree in self.trees.modules.values():
            for node in tree.nodes:
                if node.address == address:
                    yield node

    def rewrite_bound(self, address: Address, old: str, new: str):
        """Replace the old value text with the new one in every bound node."""
        old, new = old.strip(), new.strip()
        for node in self.bound_nodes(address):
            if old:
                node.value = node.value.replace(old, new)
            elif not node.value.strip():
                node.value = new
            else:
                self.debug(f"cannot locate empty value in {node.value!r}", 3)

    def overwrite_bound(self, address: Address, text: str):
        for node in self.bound_nodes(address):
            node.value = text

    def declare(self, name: str, text: str, scope: int) -> Address:
        module = self.trees.current
        address = self.symbols.register(VARIABLE, VariableInfo(name, text, scope, module))
        self.debug(f"declare {name} = {text!r} at {address} (scope {scope})", 2)
        self.substitute()
        return address

    def reassign(self, symbol: Symbol, text: str):
        var = symbol.payload
        old = var.text
        var.text = text
        self.debug(f"assign {var.name} = {text!r}", 2)
        self.rewrite_bound(symbol.address, old, text)

    def store_result(self, name: str, text: str, scope: int):
        """Write a statement result into a variable, declaring it if needed."""
        symbol = self.symbols.find_variable(name, self.trees.current, scope)
        if symbol is None:
            self.declare(name, text, scope)
        else:
            self.reassign(symbol, text)

    def variable(self, name: str, scope: int) -> Symbol:
        symbol = self.symbols.find_variable(name, self.trees.current, scope)
        if symbol is None:
            raise VsycError(Diagnostic('NameError', f'undefined variable {name}'))
        return symbol

    # Statements
    def exec_comment(self, index: int, node: Node):
        return None

    def exec_print(self, index: int, node: Node):
        _, text = self.operand(index, STRING, 'a string')
        print(text.value)
        return text.value

    def exec_declare(self, index: int, node: Node):
        _, text = self.operand(index, STRING, 'a "name = value" string')
        decl = parse_declaration(text.value)
        existing = self.symbols.find_variable(decl.name, self.trees.current, node.parent)
        if existing is not None and existing.payload.module == self.trees.current \
                and existing.payload.scope == node.parent:
            self.reassign(existing, decl.value)
            return decl.value
        self.declare(decl.name, decl.value, node.parent)
        return decl.value

    def exec_func(self, index: int, node: Node):
        name_i, name = self.operand(index, BLOCK, 'a {name} block')
        params_i, params = self.operand(index, PAREN, 'a (parameters) list', after=name_i)
        body_i, _ = self.operand(index, BLOCK, 'a { body } block', after=params_i)
        func_name = name.value.strip()
        if not func_name:
            raise VsycError(Diagnostic('SyntaxError', 'function name is empty'))
        info = FunctionInfo(func_name, params.value, body_i, self.trees.current, parse_params(params.value))
        self.symbols.register(FUNCTION, info, override_key=func_name)
        self.debug(f"define function {func_name}({', '.join(info.params)}) body at {body_i}")
        return None

    def exec_call(self, index: int, node: Node):
        name_i, name = self.operand(index, STRING, 'a "*function" name')
        args_i, args = self.operand(index, PAREN, 'an (arguments) list', after=name_i)
        out = operand_of_kind(self.nodes, index, BLOCK, after=args_i)
        func_name = name.value.strip()
        if func_name.startswith(FUNCTION_MARKER):
            func_name = func_name[len(FUNCTION_MARKER):]
        symbol = self.symbols.function(func_name)
        if symbol is None:
            raise VsycError(Diagnostic('NameError', f'undefined function {func_name}'))
        result = self.call_function(symbol.payload, parse_args(args.value))
        if out is not None and result is not None:
            self.store_result(out[1].value.strip(), result, node.parent)
        return result

    def call_function(self, func: FunctionInfo, args: List[str]) -> Optional[str]:
        if len(args) != len(func.params):
            raise VsycError(Diagnostic(
                'ArityError', f"{func.name} expects {len(func.params)} arguments, got {len(args)}"))
        with self.trees.switch(func.module) as tree:
            nodes = tree.nodes
            if not 0 <= func.body < len(nodes) or nodes[func.body].kind != BLOCK:
                raise VsycError(Diagnostic('SyntaxError', f'function {func.name} has no body'))
            body = [nodes[i] for i in subtree(nodes, func.body)]
            saved = [(n.value, n.address) for n in body]
            for n in body:
                n.reset()
            for param, arg in zip(func.params, args):
                info = VariableInfo(f"{func.name}.args.{param}", arg, func.body, func.module)
                self.symbols.register(VARIABLE, info)
            self.substitute(tree)
            self.call_depth += 1
            try:
                self.execute_scope(func.body)
            except ReturnSignal as r:
                self.debug(f"{func.name} returned {r.value!r}", 2)
                return r.value
            finally:
                self.call_depth -= 1
                for n, (value, address) in zip(body, saved):
                    n.value, n.address = value, address
        return None

    def exec_return(self, index: int, node: Node):
        if self.call_depth == 0:
            raise VsycError(Diagnostic('SyntaxError', 'return outside of a function body'))
        nodes = self.nodes
        if index + 1 >= len(nodes) or nodes[index + 1].parent != node.parent:
            self.debug('return without a value', 2)
            return None
        target = nodes[index + 1]
        if target.kind == KEYWORD:
            value = self.execute(index + 1)
        else:
            value = target.value.strip()
        if value is None:
            return None
        raise ReturnSignal(to_text(value))

    def exec_if(self, index: int, node: Node):
        cond_i, _ = self.operand(index, BLOCK, 'a {condition} block')
        marker_i = None
        for i, candidate in operands(self.nodes, index):
            if i > cond_i and candidate.kind in (STRING, OTHER) and candidate.value.strip() == DO_MARKER:
                marker_i = i
                break
        if marker_i is None:
            raise VsycError(Diagnostic('SyntaxError', f'@if expects a "{DO_MARKER}" marker'))
        body_i, _ = self.operand(index, BLOCK, 'a { body } block', after=marker_i)
        # the condition is the first comparison anywhere in the module
        for i, candidate in enumerate(self.nodes):
            if candidate.kind == KEYWORD and candidate.value.strip() in CONDITION_KEYWORDS:
                truth = self.exec_compare(i, candidate)
                break
        else:
            raise VsycError(Diagnostic('SyntaxError', '@if found no @eq, @lt or @gt condition'))
        self.debug(f"if condition at {i} -> {truth}", 3)
        if truth:
            self.execute_scope(body_i)
        return truth

    def exec_compare(self, index: int, node: Node) -> bool:
        op = node.value.strip()
        left_i, left = self.operand(index, BLOCK, 'two {operand} blocks')
        _, right = self.operand(index, BLOCK, 'two {operand} blocks', after=left_i)
        result = compare(op, left.value, right.value)
        self.debug(f"{op} {left.value.strip()!r} {right.value.strip()!r} -> {result}", 3)
        return result

    def _array_operands(self, index: int, node: Node):
        value_i, value = self.operand(index, STRING, 'a "value" string')
        _, target = self.operand(index, BLOCK, 'an {array} block', after=value_i)
        symbol = self.variable(target.value.strip(), node.parent)
        return value.value, symbol, load_array(symbol.payload.text)

    def exec_insert(self, index: int, node: Node):
        value, symbol, items = self._array_operands(index, node)
        items.append(value)
        self.reassign(symbol, dump_array(items))
        return symbol.payload.text

    def exec_remove(self, index: int, node: Node):
        value, symbol, items = self._array_operands(index, node)
        if value not in items:
            raise VsycError(Diagnostic('ArrayError', f'"{value}" is not in {symbol.payload.name}'))
        items.remove(value)
        self.reassign(symbol, dump_array(items))
        return symbol.payload.text

    def exec_read(self, index: int, node: Node):
        mode_i, mode = self.operand(index, STRING, 'a "string|number|array" mode')
        source_i, source = self.operand(index, BLOCK, 'an {input} block', after=mode_i)
        _, target = self.operand(index, BLOCK, 'an {output} block', after=source_i)
        symbol = self.variable(source.value.strip(), node.parent)
        text = symbol.payload.text
        position, out_name = parse_target(target.value)
        kind = mode.value.strip()
        if kind == 'string':
            value: Any = text
        elif kind == 'number':
            value = parse_number(text)
            if value is None:
                raise VsycError(Diagnostic('ValueError', f'"{text}" is not a number'))
        elif kind == 'array':
            items = load_array(text)
            if position is None or not position.isdigit():
                raise VsycError(Diagnostic('ArrayError', f'@read array expects an index, got {position!r}'))
            if int(position) >= len(items):
                raise VsycError(Diagnostic('ArrayError', f'index {position} out of range for {symbol.payload.name}'))
            value = items[int(position)]
        else:
            raise VsycError(Diagnostic('SyntaxError', f'unknown read mode "{kind}"'))
        result = to_text(value)
        out = self.symbols.find_variable(out_name, self.trees.current, node.parent)
        if out is None:
            self.declare(out_name, result, node.parent)
        else:
            out.payload.text = result
            self.overwrite_bound(out.address, result)
        return result

    def exec_usingfile(self, index: int, node: Node):
        _, path = self.operand(index, STRING, 'a "file" string')
        name = path.value.strip()
        if not name:
            raise VsycError(Diagnostic('SyntaxError', '@usingfile expects a file name'))
        if name in self.trees:
            self.debug(f"module {name} already loaded")
        else:
            self.debug(f"loading module {name}")
            # loader errors are fatal and are not caught here
            self.run(self.load_source(name), name=name)
            exports = self.trees.get(name).exports
            if exports is not None:
                self.debug(f"module {name} exported {len(exports)} symbols")
        self.substitute()
        return None

    def exec_exportall(self, index: int, node: Node):
        self.trees.tree.exports = self.symbols.snapshot()
        return None

    def exec_native(self, index: int, node: Node):
        code_i, code = self.operand(index, STRING, 'a "source" string')
        out = operand_of_kind(self.nodes, index, BLOCK, after=code_i)
        if self.invoke_native is None:
            raise VsycError(Diagnostic('NativeError', 'native calls are disabled'))
        try:
            result = self.invoke_native(code.value)
        except Exception as e:
            raise VsycError(Diagnostic('NativeError', f'native call failed: {e}')) from e
        result = to_text(result)
        if out is not None:
            self.store_result(out[1].value.strip(), result, node.parent)
        return result


def run_program(source: str, **kwargs) -> Interpreter:
    """Convenience function to run a vsyc program from a source string."""
    with Interpreter(**kwargs) as interpreter:
        interpreter.run(source)
    return interpreter


def run_file(path: str, **kwargs) -> Interpreter:
    """Run a vsyc file, returning the interpreter instance."""
    with Interpreter(**kwargs) as interpreter:
        interpreter.run_file(path)
    return interpreter
