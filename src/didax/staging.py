"""Staged evaluation over a small named-variable program form.

A :class:`Program` is a straight-line list of equations, each binding a
fresh variable to a primitive applied to variables or literals:

    v0, v1 ->
      v2 = mul(v0, v1)
      v3 = sin(v2)
    v3

``trace`` records such a program by running a Python function on tracer
objects; ``evaluate_program`` interprets it; ``jit`` traces once per
argument count and reuses the program on later calls.

Primitives are looked up in :data:`PRIMITIVES`, which maps each name to the
forward-mode rule of the same name. Interpreting a program on constants
therefore gives exactly the primal values of the forward engine, and
interpreting it on dual numbers (``jvp_program``) gives forward-mode
derivatives through the staged form.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from functools import wraps
from numbers import Real
from typing import Any, Callable, Sequence

from didax import ops
from didax.forward import rules
from didax.forward.dual import DualNumber, lift
from didax.logger import didax_logger
from didax.utils.thread_safety import wrap_with_lock

__all__ = [
    "PRIMITIVES",
    "Var",
    "Literal",
    "Equation",
    "Program",
    "Tracer",
    "trace",
    "evaluate_program",
    "jvp_program",
    "jit",
]

PRIMITIVES: dict[str, Callable[..., DualNumber]] = {
    "add": rules.add,
    "sub": rules.sub,
    "mul": rules.mul,
    "div": rules.div,
    "neg": rules.neg,
    "sin": rules.sin,
    "cos": rules.cos,
    "exp": rules.exp,
    "log": rules.log,
}


@dataclass(frozen=True)
class Var:
    """A named program variable."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Literal:
    """A constant operand."""

    value: float

    def __str__(self) -> str:
        return repr(self.value)


Atom = Var | Literal


@dataclass(frozen=True)
class Equation:
    """``out = primitive(*args)``."""

    out: Var
    primitive: str
    args: tuple[Atom, ...]

    def __str__(self) -> str:
        return f"{self.out} = {self.primitive}({', '.join(str(a) for a in self.args)})"


@dataclass(frozen=True)
class Program:
    """A traced function: ordered inputs, equations and outputs."""

    inputs: tuple[Var, ...]
    equations: tuple[Equation, ...]
    outputs: tuple[Atom, ...]

    def __str__(self) -> str:
        lines = [", ".join(str(v) for v in self.inputs) + " ->"]
        lines.extend(f"  {eqn}" for eqn in self.equations)
        lines.append(", ".join(str(a) for a in self.outputs))
        return "\n".join(lines)


class _Builder:
    """Collects equations while a function is being traced."""

    def __init__(self):
        self.equations: list[Equation] = []
        self._names = (f"v{i}" for i in itertools.count())

    def fresh_var(self) -> Var:
        return Var(next(self._names))

    def emit(self, primitive: str, *args) -> Tracer:
        atoms = tuple(self.to_atom(a) for a in args)
        out = self.fresh_var()
        self.equations.append(Equation(out, primitive, atoms))
        return Tracer(self, out)

    def to_atom(self, x) -> Atom:
        if isinstance(x, Tracer):
            if x.builder is not self:
                raise ValueError("Tracer from a different trace used in this program.")
            return x.atom
        if isinstance(x, Real):
            return Literal(float(x))
        raise TypeError(f"Cannot stage a value of type {type(x).__name__}.")


class Tracer:
    """Stand-in value that records the operations applied to it."""

    __array_ufunc__ = None

    def __init__(self, builder: _Builder, atom: Atom):
        self.builder = builder
        self.atom = atom

    def _binary(self, primitive, other, reflected=False):
        if not isinstance(other, (Tracer, Real)):
            return NotImplemented
        args = (other, self) if reflected else (self, other)
        return self.builder.emit(primitive, *args)

    def __add__(self, other):
        return self._binary("add", other)

    def __radd__(self, other):
        return self._binary("add", other, reflected=True)

    def __sub__(self, other):
        return self._binary("sub", other)

    def __rsub__(self, other):
        return self._binary("sub", other, reflected=True)

    def __mul__(self, other):
        return self._binary("mul", other)

    def __rmul__(self, other):
        return self._binary("mul", other, reflected=True)

    def __truediv__(self, other):
        return self._binary("div", other)

    def __rtruediv__(self, other):
        return self._binary("div", other, reflected=True)

    def __neg__(self):
        return self.builder.emit("neg", self)

    def __repr__(self) -> str:
        return f"Tracer({self.atom})"


for _name in ("sin", "cos", "exp", "log"):
    getattr(ops, _name).register(
        Tracer, lambda x, _prim=_name: x.builder.emit(_prim, x)
    )


def trace(function: Callable[..., Any], n_args: int) -> Program:
    """Records ``function`` as a program with ``n_args`` inputs.

    ``function`` may use the arithmetic operators and ``didax.ops.sin``,
    ``cos``, ``exp`` and ``log``. It may return one value or a tuple/list of
    values; constant outputs become literals.

    Args:
        function: Function to trace.
        n_args: Number of positional arguments.

    Returns:
        The recorded program.
    """
    return _trace(function, n_args)[0]


def _trace(function: Callable[..., Any], n_args: int) -> tuple[Program, bool]:
    """Traces ``function``; the flag tells whether it returned a tuple or list."""
    builder = _Builder()
    inputs = tuple(builder.fresh_var() for _ in range(n_args))
    result = function(*(Tracer(builder, v) for v in inputs))
    multiple = isinstance(result, (tuple, list))
    results = result if multiple else (result,)
    outputs = tuple(builder.to_atom(r) for r in results)
    return Program(inputs, tuple(builder.equations), outputs), multiple


def _run(program: Program, args: Sequence[DualNumber]) -> list[DualNumber]:
    if len(args) != len(program.inputs):
        raise ValueError(
            f"Program takes {len(program.inputs)} argument(s); got {len(args)}."
        )
    env: dict[Var, DualNumber] = dict(zip(program.inputs, args))

    def read(atom: Atom) -> DualNumber:
        if isinstance(atom, Literal):
            return lift(atom.value)
        return env[atom]

    for eqn in program.equations:
        try:
            prim = PRIMITIVES[eqn.primitive]
        except KeyError:
            raise KeyError(f"Unknown primitive '{eqn.primitive}'.") from None
        env[eqn.out] = prim(*(read(a) for a in eqn.args))
    return [read(a) for a in program.outputs]


def evaluate_program(program: Program, args: Sequence[float]) -> list[float]:
    """Interprets ``program`` on concrete floats.

    Raises:
        ValueError: If the number of arguments does not match the program.
        KeyError: If an equation uses an unknown primitive.
    """
    return [out.primal for out in _run(program, [lift(float(a)) for a in args])]


def jvp_program(
    program: Program,
    primals: Sequence[float],
    tangents: Sequence[float],
) -> tuple[list[float], list[float]]:
    """Forward-mode derivative of ``program`` along ``tangents``.

    Returns:
        ``(output_primals, output_tangents)``.
    """
    outs = _run(program, [DualNumber(p, t) for p, t in zip(primals, tangents, strict=True)])
    return [o.primal for o in outs], [o.tangent for o in outs]


def jit(function: Callable[..., Any]) -> Callable[..., Any]:
    """Traces ``function`` on first use for each argument count and interprets the program.

    The wrapped function returns a float when ``function`` returns a single
    value and a tuple of floats when it returns a tuple or list. Traced
    programs are kept in ``wrapped.programs``, keyed by argument count.
    """
    programs: dict[int, Program] = {}
    multiple: dict[int, bool] = {}

    def get_program(n_args: int) -> Program:
        if n_args not in programs:
            didax_logger.debug(
                "jit: tracing %s with %d argument(s)", getattr(function, "__name__", function), n_args
            )
            programs[n_args], multiple[n_args] = _trace(function, n_args)
        return programs[n_args]

    locked_get = wrap_with_lock(get_program)

    @wraps(function)
    def wrapped(*args: float):
        program = locked_get(len(args))
        outs = evaluate_program(program, args)
        return tuple(outs) if multiple[len(args)] else outs[0]

    wrapped.programs = programs
    return wrapped
