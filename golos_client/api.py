"""Typed call wrappers built once from the method registry."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .methods import METHODS, MethodDescriptor
from .protocol import is_subscription_method

_LOGGER = logging.getLogger(__name__)

RequestFn = Callable[[str, dict[str, Any]], Awaitable[Any]]

_NO_DEFAULT = object()


@dataclass(frozen=True)
class ParamSpec:
    """One declared parameter and its parsed default."""

    name: str
    default: Any = _NO_DEFAULT

    @property
    def required(self) -> bool:
        return self.default is _NO_DEFAULT


def parse_param(spec: str) -> ParamSpec:
    """Parse ``name`` or ``name=<json>``; an empty default means ``""``."""
    name, sep, raw = spec.partition("=")
    if not sep:
        return ParamSpec(name)
    if raw == "":
        return ParamSpec(name, "")
    try:
        return ParamSpec(name, json.loads(raw))
    except ValueError as err:
        raise ValueError(f"Invalid default for parameter {spec!r}") from err


class RpcMethod:
    """Callable bound to one registry entry.

    Positional and keyword arguments are mapped onto the declared parameters
    in order; omitted trailing parameters take their declared defaults.
    """

    def __init__(self, descriptor: MethodDescriptor, request: RequestFn) -> None:
        if is_subscription_method(descriptor.method):
            raise ValueError(
                f"{descriptor.method} is callback-style; use the client helper"
            )
        params = tuple(parse_param(spec) for spec in descriptor.params)
        if not descriptor.has_default_values and any(
            not param.required for param in params
        ):
            raise ValueError(
                f"{descriptor.method} declares defaults but has_default_values is False"
            )
        self.descriptor = descriptor
        self.params = params
        self._request = request

    @property
    def name(self) -> str:
        return self.descriptor.name

    def __repr__(self) -> str:
        names = ", ".join(param.name for param in self.params)
        return f"<RpcMethod {self.descriptor.api}.{self.descriptor.method}({names})>"

    def bind(self, *args: Any, **kwargs: Any) -> list[Any]:
        """Return the positional params list for a call.

        Raises:
            TypeError: Too many arguments, unknown or duplicated names, or a
                missing parameter without a default.
        """
        if len(args) > len(self.params):
            raise TypeError(
                f"{self.name}() takes {len(self.params)} arguments "
                f"but {len(args)} were given"
            )

        known = {param.name for param in self.params}
        unknown = set(kwargs) - known
        if unknown:
            raise TypeError(
                f"{self.name}() got unexpected arguments: {', '.join(sorted(unknown))}"
            )

        values: list[Any] = []
        for index, param in enumerate(self.params):
            if index < len(args):
                if param.name in kwargs:
                    raise TypeError(
                        f"{self.name}() got multiple values for {param.name!r}"
                    )
                values.append(args[index])
            elif param.name in kwargs:
                values.append(kwargs[param.name])
            elif not param.required:
                values.append(copy.deepcopy(param.default))
            else:
                raise TypeError(f"{self.name}() missing argument {param.name!r}")
        return values

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        params = self.bind(*args, **kwargs)
        return await self._request(
            self.descriptor.api,
            {"method": self.descriptor.method, "params": params},
        )

    async def with_options(self, options: Mapping[str, Any]) -> Any:
        """Call with an explicit named-parameter bag."""
        return await self(**dict(options))


def build_method_table(
    request: RequestFn,
    methods: Iterable[MethodDescriptor] = METHODS,
) -> dict[str, RpcMethod]:
    """Build the name -> call table once; duplicate names are rejected."""
    table: dict[str, RpcMethod] = {}
    for descriptor in methods:
        if descriptor.name in table:
            raise ValueError(f"Duplicate method name: {descriptor.name}")
        table[descriptor.name] = RpcMethod(descriptor, request)
    _LOGGER.debug("Built %d method wrappers", len(table))
    return table


class GolosApi(Mapping[str, RpcMethod]):
    """Read-only mapping of method name to bound call.

    Usage:
        block = await client.api["get_block"](5)
        props = await client.api["get_dynamic_global_properties"]()
    """

    def __init__(
        self,
        request: RequestFn,
        methods: Iterable[MethodDescriptor] = METHODS,
    ) -> None:
        self._table = build_method_table(request, methods)

    def __getitem__(self, name: str) -> RpcMethod:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)
