from __future__ import annotations
from dataclasses import dataclass
import math
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO

from loguru import logger

from .ast import Block, Call, FunDecl, If, Let, LoadVar, Loc, Node, Op, Program, Push, Word
from .config import AliceConfig
from .errors import AliceRuntimeError, ProgramExit
from .parser import parse_program
from .type_check import Signature, TypeChecker
from .types import AliceType, Value, bool_value, float_value, int_value, string_value

INT = AliceType.INT
STRING = AliceType.STRING

# largest result of an int ** int, in bits
MAX_POW_BITS = 1 << 22


@dataclass
class Binding:
    type: AliceType  # declared type, may be wider than value.type
    value: Value


@dataclass
class Function:
    decl: FunDecl
    closure: "Scope"

    @property
    def signature(self) -> Signature:
        return Signature.of(self.decl)


class Scope:
    def __init__(self, parent: Optional["Scope"] = None):
        self.parent = parent
        self.vars: Dict[str, Binding] = {}
        self.funs: Dict[str, Function] = {}

    def child(self) -> "Scope":
        return Scope(self)

    def lookup_var(self, name: str, loc: Optional[Loc] = None) -> Binding:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent
        raise AliceRuntimeError(f"unknown variable binding '{name}'", loc)

    def lookup_fun(self, name: str, loc: Optional[Loc] = None) -> Function:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.funs:
                return scope.funs[name]
            scope = scope.parent
        raise AliceRuntimeError(f"unknown function '{name}'", loc)


class Runtime:
    def __init__(self, config: Optional[AliceConfig] = None,
                 stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None):
        self.config = config or AliceConfig()
        self.stdout = stdout or sys.stdout
        self.stdin = stdin or sys.stdin
        self.program: Optional[Program] = None
        self.stack: List[Value] = []
        self.globals = Scope()
        # persistent checker state for interactive use
        self.checker = TypeChecker()
        self.console: List[str] = []
        self.metrics: Dict[str, float] = {"parse_ms": 0.0, "check_ms": 0.0, "exec_ms": 0.0, "calls": 0}
        self._depth = 0

    def log(self, msg: str):
        self.console.append(msg)
        logger.info(msg)

    # ---------- loading ----------
    def load(self, source: str | Path, filename: Optional[str] = None) -> Program:
        """Parse and type check a whole program, ready for `run`."""
        t0 = time.perf_counter()
        program = parse_program(source, filename)
        t1 = time.perf_counter()
        TypeChecker().check_program(program)
        t2 = time.perf_counter()
        self.metrics["parse_ms"] = (t1 - t0) * 1000.0
        self.metrics["check_ms"] = (t2 - t1) * 1000.0
        self.program = program
        logger.debug("loaded {} ({} items)", program.source_name, len(program.statements))
        if self.config.bench:
            self.log(f"[bench] reading, parsing:\t{self.metrics['parse_ms']:.3f} ms")
            self.log(f"[bench] type checking:\t\t{self.metrics['check_ms']:.3f} ms")
        return program

    # ---------- execution entry ----------
    def run(self) -> None:
        if self.program is None:
            raise AliceRuntimeError("No program loaded")
        self.stack.clear()
        self.globals = Scope()
        t0 = time.perf_counter()
        try:
            self.execute(self.program.statements)
        finally:
            self.metrics["exec_ms"] = (time.perf_counter() - t0) * 1000.0
            logger.debug("ran {} in {:.3f} ms ({} calls)",
                         self.program.source_name, self.metrics["exec_ms"], self.metrics["calls"])
            if self.config.bench:
                total = self.metrics["parse_ms"] + self.metrics["check_ms"] + self.metrics["exec_ms"]
                self.log(f"[bench] executing program:\t{self.metrics['exec_ms']:.3f} ms")
                self.log(f"[bench] total elapsed:\t\t{total:.3f} ms")

    def run_source(self, source: str | Path, filename: Optional[str] = None) -> None:
        self.load(source, filename)
        self.run()

    def execute(self, statements: Sequence[Node], scope: Optional[Scope] = None) -> None:
        try:
            self._exec_block(statements, self.stack, scope or self.globals)
        except RecursionError:
            raise AliceRuntimeError("interpreter recursion limit reached") from None

    def eval_interactive(self, source: str) -> None:
        """Parse, check and run one chunk of input against the persistent state."""
        program = parse_program(source, "<interactive>")
        self.checker.check_interactive(program.statements)
        try:
            self.execute(program.statements)
        except AliceRuntimeError:
            self._resync_checker()
            raise

    def _resync_checker(self) -> None:
        self.checker.resync(
            [v.type for v in self.stack],
            {name: b.type for name, b in self.globals.vars.items()},
            {name: f.signature for name, f in self.globals.funs.items()},
        )
        logger.debug("type stack rebuilt from {} runtime values", len(self.stack))

    # ---------- statement execution ----------
    def _exec_block(self, statements: Sequence[Node], stack: List[Value], scope: Scope):
        for node in statements:
            self._exec(node, stack, scope)

    def _exec(self, node: Node, stack: List[Value], scope: Scope):
        match node:
            case Push(value=value):
                stack.append(value)
            case Word(name=name):
                self._exec_word(name, stack, node.loc)
            case Op(symbol=op):
                b = self._pop(stack, node.loc)
                a = self._pop(stack, node.loc)
                stack.append(self._apply_bin_op(op, a, b, node.loc))
            case LoadVar(name=name):
                stack.append(scope.lookup_var(name, node.loc).value)
            case Call(name=name):
                self._call(scope.lookup_fun(name, node.loc), stack, node.loc)
            case Let(name=name, type=ty, init=init):
                value = init if init is not None else self._pop(stack, node.loc)
                scope.vars[name] = Binding(ty, value)
            case FunDecl(name=name):
                scope.funs[name] = Function(node, scope)
            case If(then_body=then_body, else_body=else_body):
                cond = self._pop(stack, node.loc)
                if cond.data:
                    self._exec_block(then_body, stack, scope.child())
                elif else_body is not None:
                    self._exec_block(else_body, stack, scope.child())
            case Block(body=body):
                self._exec_block(body, stack, scope.child())
            case _:
                raise AliceRuntimeError(f"Unsupported statement: {type(node).__name__}", node.loc)

    def _exec_word(self, name: str, stack: List[Value], loc: Loc):
        match name:
            case "dup":
                self._need(stack, 1, loc)
                stack.append(stack[-1])
            case "drop":
                self._pop(stack, loc)
            case "swap":
                self._need(stack, 2, loc)
                stack[-1], stack[-2] = stack[-2], stack[-1]
            case "over":
                self._need(stack, 2, loc)
                stack.append(stack[-2])
            case "rot":
                self._need(stack, 3, loc)
                stack.append(stack.pop(-3))
            case "clear":
                stack.clear()
            case "print":
                self._write(self._pop(stack, loc), loc, end="")
                self.stdout.flush()
            case "println":
                self._write(self._pop(stack, loc), loc)
            case "pstack":
                for val in stack:
                    self._write(val, loc)
            case "input":
                line = self.stdin.readline()
                stack.append(string_value(line[:-1] if line.endswith("\n") else line))
            case "exit":
                raise ProgramExit(int(self._pop(stack, loc).data))
            case "okexit":
                raise ProgramExit(0)
            case "not":
                stack.append(bool_value(not self._pop(stack, loc).data))
            case _:
                raise AliceRuntimeError(f"unknown word {name}", loc)

    def _call(self, fn: Function, stack: List[Value], loc: Loc):
        if self._depth >= self.config.max_call_depth:
            raise AliceRuntimeError(
                f"maximum call depth of {self.config.max_call_depth} exceeded in {fn.decl.name}()", loc)
        params = fn.decl.params
        self._need(stack, len(params), loc)
        split = len(stack) - len(params)
        args = stack[split:]
        del stack[split:]
        frame_scope = fn.closure.child()
        if fn.decl.named_params:
            for param, arg in zip(params, args):
                frame_scope.vars[param.name] = Binding(param.type, arg)
            frame: List[Value] = []
        else:
            frame = args
        self._depth += 1
        self.metrics["calls"] += 1
        try:
            self._exec_block(fn.decl.body, frame, frame_scope)
        finally:
            self._depth -= 1
        if fn.decl.return_type is not None:
            stack.append(self._pop(frame, loc))

    def _write(self, value: Value, loc: Loc, end: str = "\n"):
        try:
            text = str(value)
        except ValueError:
            # int exceeds the interpreter's digit conversion limit
            raise AliceRuntimeError("integer too large to print", loc) from None
        print(text, end=end, file=self.stdout)

    # ---------- stack helpers ----------
    def _need(self, stack: List[Value], n: int, loc: Loc):
        if len(stack) < n:
            raise AliceRuntimeError("empty stack", loc)

    def _pop(self, stack: List[Value], loc: Loc) -> Value:
        if not stack:
            raise AliceRuntimeError("empty stack", loc)
        return stack.pop()

    # ---------- operators ----------
    def _apply_bin_op(self, op: str, a: Value, b: Value, loc: Loc) -> Value:
        if op == "==":
            return bool_value(a.type == b.type and a.data == b.data)
        if op == "!=":
            return bool_value(not (a.type == b.type and a.data == b.data))
        if op == "<":
            return bool_value(a.data < b.data)
        if op == ">":
            return bool_value(a.data > b.data)
        if op == "<=":
            return bool_value(a.data <= b.data)
        if op == ">=":
            return bool_value(a.data >= b.data)
        if op == "+" and a.type == STRING:
            return string_value(a.data + b.data)
        x, y = a.data, b.data
        both_int = a.type == INT and b.type == INT
        try:
            if op == "+":
                r = x + y
            elif op == "-":
                r = x - y
            elif op == "*":
                r = x * y
            elif op == "/":
                r = _int_div(x, y, loc) if both_int else _float_div(float(x), float(y))
            elif op == "%":
                r = _int_mod(x, y, loc) if both_int else _float_mod(float(x), float(y))
            elif op == "**":
                r = _int_pow(x, y, loc) if both_int else _float_pow(float(x), y)
            else:
                raise AliceRuntimeError(f"Unknown operator {op}", loc)
        except OverflowError:
            raise AliceRuntimeError(f"numeric overflow in {op}", loc) from None
        return int_value(r) if both_int else float_value(float(r))


def _int_div(x: int, y: int, loc: Loc) -> int:
    # truncates toward zero
    if y == 0:
        raise AliceRuntimeError("attempt to divide by zero", loc)
    q = abs(x) // abs(y)
    return q if (x >= 0) == (y > 0) else -q


def _int_mod(x: int, y: int, loc: Loc) -> int:
    # result has the sign of the dividend
    if y == 0:
        raise AliceRuntimeError("attempt to calculate the remainder with a divisor of zero", loc)
    r = abs(x) % abs(y)
    return r if x >= 0 else -r


def _int_pow(x: int, y: int, loc: Loc) -> int:
    if y < 0:
        raise AliceRuntimeError(f"negative exponent {y} in integer power", loc)
    if abs(x) > 1 and y * (abs(x).bit_length() - 1) > MAX_POW_BITS:
        raise AliceRuntimeError(f"integer power {x} ** {y} is too large", loc)
    return x ** y


def _float_div(x: float, y: float) -> float:
    if y == 0.0:
        if x == 0.0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def _float_mod(x: float, y: float) -> float:
    if y == 0.0 or math.isinf(x):
        return math.nan
    return math.fmod(x, y)


def _odd_integer(y) -> bool:
    y = float(y)
    return math.isfinite(y) and abs(math.fmod(y, 2.0)) == 1.0


def _float_pow(x: float, y) -> float:
    if x == 0.0 and y < 0:
        # pole: signed infinity only for odd integer exponents
        return math.copysign(math.inf, x) if _odd_integer(y) else math.inf
    try:
        return math.pow(x, float(y))
    except ValueError:
        return math.nan
    except OverflowError:
        return -math.inf if x < 0 and _odd_integer(y) else math.inf
