"""
remit_vm.runtime.loader — turn a contract module into a deployable ContractCode.

A contract is a plain Python module. Its public functions (names not starting
with "_" and defined in the module itself, not imported into it) are entry
points; each takes an `InvocationContext` as its first positional argument.
An optional `init` function is the constructor: the host calls it once during
`deploy` and refuses to dispatch it afterwards.

Accepted targets
----------------
- a module object
- a dotted module name, e.g. "remit_contracts.killswitch.contract"
- a path to a ``.py`` file
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Callable, Dict, List, Optional, Union

from ..errors import EntryPointError

CONSTRUCTOR = "init"


@dataclass(frozen=True)
class ContractCode:
    """A loaded contract module and its dispatch table."""

    name: str
    module: ModuleType
    entry_points: Dict[str, Callable] = field(default_factory=dict)
    constructor: Optional[Callable] = None
    source: str = ""

    def exports(self) -> List[str]:
        return sorted(self.entry_points)

    def resolve(self, fn: str) -> Callable:
        if fn == CONSTRUCTOR:
            raise EntryPointError(
                "constructor can only run at deploy", context={"contract": self.name, "fn": fn}
            )
        try:
            return self.entry_points[fn]
        except KeyError:
            raise EntryPointError(
                f"no entry point {fn!r}", context={"contract": self.name, "fn": fn}
            ) from None


def _module_from_path(path: Path) -> ModuleType:
    if not path.is_file():
        raise EntryPointError(f"contract file not found: {path}")
    mod_name = f"remit_contract_{path.stem}"
    spec = importlib.util.spec_from_file_location(mod_name, path)
    if spec is None or spec.loader is None:
        raise EntryPointError(f"cannot load contract from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _resolve_module(target: Union[ModuleType, str, Path]) -> ModuleType:
    if isinstance(target, ModuleType):
        return target
    if isinstance(target, Path) or (isinstance(target, str) and target.endswith(".py")):
        return _module_from_path(Path(target))
    if isinstance(target, str):
        try:
            return importlib.import_module(target)
        except ImportError as e:
            raise EntryPointError(f"cannot import contract module {target!r}: {e}") from e
    raise EntryPointError(f"unsupported contract target: {type(target).__name__}")


def load_contract(target: Union[ModuleType, str, Path], *, name: Optional[str] = None) -> ContractCode:
    module = _resolve_module(target)
    source = str(target) if isinstance(target, (str, Path)) else module.__name__
    entry_points: Dict[str, Callable] = {}
    constructor: Optional[Callable] = None
    for attr, obj in vars(module).items():
        if attr.startswith("_") or not inspect.isfunction(obj):
            continue
        if obj.__module__ != module.__name__:
            continue
        if attr == CONSTRUCTOR:
            constructor = obj
        else:
            entry_points[attr] = obj
    if not entry_points:
        raise EntryPointError(f"contract module {module.__name__!r} exports no entry points")
    label = name or getattr(module, "CONTRACT_NAME", None) or module.__name__.rsplit(".", 1)[-1]
    return ContractCode(
        name=label,
        module=module,
        entry_points=entry_points,
        constructor=constructor,
        source=source,
    )


__all__ = ["CONSTRUCTOR", "ContractCode", "load_contract"]
