from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .ast import Block, Call, FunDecl, If, Let, LoadVar, Loc, Node, Op, Program, Push, Word
from .errors import TypeCheckError
from .types import AliceType, type_name

INT = AliceType.INT
FLOAT = AliceType.FLOAT
STRING = AliceType.STRING
BOOL = AliceType.BOOL


@dataclass(frozen=True)
class Signature:
    params: Tuple[AliceType, ...]
    named: bool = False
    return_type: Optional[AliceType] = None

    @classmethod
    def of(cls, decl: FunDecl) -> "Signature":
        return cls(tuple(p.type for p in decl.params), decl.named_params, decl.return_type)

    def __str__(self) -> str:
        args = ", ".join(type_name(t) for t in self.params)
        ret = f" -> {type_name(self.return_type)}" if self.return_type is not None else ""
        return f"({args}){ret}"


class TypeEnv:
    """Static counterpart of a runtime scope: variable types and function signatures."""

    def __init__(self, parent: Optional["TypeEnv"] = None):
        self.parent = parent
        self.vars: Dict[str, AliceType] = {}
        self.funs: Dict[str, Signature] = {}

    def child(self) -> "TypeEnv":
        return TypeEnv(self)

    def lookup_var(self, name: str) -> Optional[AliceType]:
        env: Optional[TypeEnv] = self
        while env is not None:
            if name in env.vars:
                return env.vars[name]
            env = env.parent
        return None

    def lookup_fun(self, name: str) -> Optional[Signature]:
        env: Optional[TypeEnv] = self
        while env is not None:
            if name in env.funs:
                return env.funs[name]
            env = env.parent
        return None

    def declare_var(self, name: str, ty: AliceType, loc: Loc) -> None:
        if name in self.funs:
            raise TypeCheckError(f"'{name}' is already bound to a function in this scope", loc)
        prev = self.vars.get(name)
        if prev is not None and prev != ty:
            raise TypeCheckError(
                f"cannot rebind '{name}' of type {type_name(prev)} to type {type_name(ty)}", loc)
        self.vars[name] = ty

    def declare_fun(self, name: str, sig: Signature, loc: Loc) -> None:
        if name in self.vars:
            raise TypeCheckError(f"'{name}' is already bound to a variable in this scope", loc)
        prev = self.funs.get(name)
        if prev is not None and prev != sig:
            raise TypeCheckError(f"cannot redefine function '{name}{prev}' as '{name}{sig}'", loc)
        self.funs[name] = sig


@dataclass
class TypeStack:
    vals: List[AliceType] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.vals)

    def copy(self) -> "TypeStack":
        return TypeStack(list(self.vals))

    def push(self, ty: AliceType) -> None:
        self.vals.append(ty)

    def pop(self) -> AliceType:
        return self.vals.pop()

    def required_size(self, size: int, what: str, loc: Loc) -> None:
        if len(self.vals) < size:
            raise TypeCheckError(f"too few values on stack when {what} executes", loc)

    def pop_expect(self, expected: AliceType, what: str, loc: Loc) -> AliceType:
        self.required_size(1, what, loc)
        actual = self.vals.pop()
        if not expected.accepts(actual):
            raise TypeCheckError(
                f"wrong type on stack when {what} executes: expected {type_name(expected)}, "
                f"found {type_name(actual)}", loc)
        return actual


def binop_result(op: str, a: AliceType, b: AliceType, loc: Loc) -> AliceType:
    """Type of `a b op`, raising TypeCheckError when the operands don't fit."""
    if op in ("==", "!="):
        if a != b:
            raise TypeCheckError(
                f"cannot {op} compare values of different types ({type_name(a)} and {type_name(b)})", loc)
        return BOOL
    if op in ("<", "<=", ">", ">="):
        if a != b or a not in (INT, FLOAT):
            raise TypeCheckError(
                "can only arithmetically compare int to int and float to float!", loc)
        return BOOL
    if op == "+" and a == STRING and b == STRING:
        return STRING
    if a not in (INT, FLOAT) or b not in (INT, FLOAT):
        if op == "+":
            raise TypeCheckError("+ only works on numbers and string+string concat", loc)
        raise TypeCheckError(f"{op} only works on numbers", loc)
    if op == "**":
        if a == INT and b == FLOAT:
            raise TypeCheckError("cannot raise an int to the power of a float", loc)
        return a
    if a == INT and b == INT:
        return INT
    return FLOAT


class TypeChecker:
    """Simulates the value stack on types.

    A whole program must leave the stack empty. In interactive use the
    checker keeps its stack and global environment between calls to
    `check_interactive`, rolling back when a line fails.
    """

    def __init__(self, env: Optional[TypeEnv] = None, stack: Optional[TypeStack] = None):
        self.env = env or TypeEnv()
        self.stack = stack or TypeStack()

    # ---------- entry points ----------
    def check_program(self, program: Program) -> None:
        stack = TypeStack()
        try:
            self.check_block(program.statements, stack, self.env)
        except RecursionError:
            raise TypeCheckError("blocks nested too deep", Loc(program.source_name)) from None
        if stack.vals:
            raise TypeCheckError(f"{len(stack.vals)} excess values on the stack!", Loc(program.source_name))
        logger.debug("type check of {} passed", program.source_name)

    def check_interactive(self, statements: Sequence[Node]) -> None:
        saved_vals = list(self.stack.vals)
        saved_vars, saved_funs = dict(self.env.vars), dict(self.env.funs)
        try:
            self.check_block(statements, self.stack, self.env)
        except (TypeCheckError, RecursionError) as e:
            self.stack.vals = saved_vals
            self.env.vars, self.env.funs = saved_vars, saved_funs
            if isinstance(e, RecursionError):
                raise TypeCheckError("blocks nested too deep") from None
            raise

    def resync(self, values: Iterable[AliceType], variables: Dict[str, AliceType],
               functions: Dict[str, Signature]) -> None:
        """Rebuild interactive state from what the runtime actually holds."""
        self.stack.vals = list(values)
        self.env.vars = dict(variables)
        self.env.funs = dict(functions)

    # ---------- walking ----------
    def check_block(self, statements: Sequence[Node], stack: TypeStack, env: TypeEnv) -> None:
        for node in statements:
            self.check(node, stack, env)

    def check(self, node: Node, stack: TypeStack, env: TypeEnv) -> None:
        loc = node.loc
        match node:
            case Push(value=value):
                stack.push(value.type)
            case Word(name=name):
                self._check_word(name, stack, loc)
            case Op(symbol=op):
                stack.required_size(2, op, loc)
                b = stack.pop()
                a = stack.pop()
                stack.push(binop_result(op, a, b, loc))
            case LoadVar(name=name):
                ty = env.lookup_var(name)
                if ty is None:
                    if env.lookup_fun(name) is not None:
                        raise TypeCheckError(f"'{name}' is a function, call it with {name}()", loc)
                    raise TypeCheckError(f"variable binding {name} doesn't exist when this executes", loc)
                stack.push(ty)
            case Call(name=name):
                sig = env.lookup_fun(name)
                if sig is None:
                    if env.lookup_var(name) is not None:
                        raise TypeCheckError(f"'{name}' is a variable, not a function", loc)
                    raise TypeCheckError(f"function '{name}' doesn't exist when this executes!", loc)
                for expected in reversed(sig.params):
                    stack.pop_expect(expected, f"{name}()", loc)
                if sig.return_type is not None:
                    stack.push(sig.return_type)
            case Let(name=name, type=ty, init=init):
                if init is None:
                    stack.pop_expect(ty, f"let {name}", loc)
                env.declare_var(name, ty, loc)
            case FunDecl():
                self._check_fun(node, env)
            case If(then_body=then_body, else_body=else_body):
                stack.pop_expect(BOOL, "if", loc)
                then_stack = stack.copy()
                self.check_block(then_body, then_stack, env.child())
                if else_body is None:
                    if then_stack.vals != stack.vals:
                        raise TypeCheckError("if without else part is not allowed to modify stack", loc)
                    return
                else_stack = stack.copy()
                self.check_block(else_body, else_stack, env.child())
                if then_stack.vals != else_stack.vals:
                    raise TypeCheckError("if and else body don't have equal effect on stack", loc)
                stack.vals = then_stack.vals
            case Block(body=body):
                self.check_block(body, stack, env.child())
            case _:
                raise TypeCheckError(f"unsupported statement {type(node).__name__}", loc)

    def _check_word(self, name: str, stack: TypeStack, loc: Loc) -> None:
        match name:
            case "dup":
                stack.required_size(1, name, loc)
                stack.push(stack.vals[-1])
            case "drop" | "print" | "println":
                stack.required_size(1, name, loc)
                stack.pop()
            case "swap":
                stack.required_size(2, name, loc)
                stack.vals[-1], stack.vals[-2] = stack.vals[-2], stack.vals[-1]
            case "over":
                stack.required_size(2, name, loc)
                stack.push(stack.vals[-2])
            case "rot":
                stack.required_size(3, name, loc)
                stack.push(stack.vals.pop(-3))
            case "clear":
                stack.vals.clear()
            case "pstack" | "okexit":
                pass
            case "input":
                stack.push(STRING)
            case "exit":
                stack.pop_expect(INT, name, loc)
            case "not":
                stack.pop_expect(BOOL, name, loc)
                stack.push(BOOL)
            case _:
                raise TypeCheckError(f"unknown word {name}", loc)

    def _check_fun(self, decl: FunDecl, env: TypeEnv) -> None:
        sig = Signature.of(decl)
        env.declare_fun(decl.name, sig, decl.loc)
        body_env = env.child()
        body_stack = TypeStack()
        for param in decl.params:
            if sig.named:
                body_env.declare_var(param.name, param.type, decl.loc)
            else:
                body_stack.push(param.type)
        try:
            self.check_block(decl.body, body_stack, body_env)
        except TypeCheckError as e:
            raise TypeCheckError(f"function signature promise not correct: {e.message}", e.loc) from None
        if decl.return_type is None:
            if body_stack.vals:
                raise TypeCheckError(
                    f"function '{decl.name}' leaves {len(body_stack.vals)} values on the stack "
                    "but declares no return type", decl.loc)
            return
        if len(body_stack.vals) != 1:
            raise TypeCheckError("functions can only have one return value!", decl.loc)
        if not decl.return_type.accepts(body_stack.vals[0]):
            raise TypeCheckError(
                f"function has wrong return type! declared {type_name(decl.return_type)}, "
                f"body leaves {type_name(body_stack.vals[0])}", decl.loc)
