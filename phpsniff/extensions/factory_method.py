"""
Dynamic return types for factory methods.

A factory such as ``$builder->build(Invoice::class)`` returns an instance of
whatever class its argument names. This extension reads that argument and
reports the call's return type as ``ObjectType('App\\Invoice')`` instead of
``mixed``.

One extension instance covers one factory class and the methods that share
the same argument position:

    extension = FactoryMethodReturnTypeExtension(
        "App\\Builder\\ObjectBuilderInterface",
        ["build", "buildWithContext"],
    )

The argument's type comes from a Scope. SourceScope resolves string literals
and ``Name::class`` constants straight from the syntax tree.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol, Sequence

from pydantic import BaseModel
from tree_sitter import Node as TSNode

from phpsniff.context import FileContext, get_line_col, get_source_span, walk
from phpsniff.extensions.types import ConstantStringType, MixedType, ObjectType, Type
from phpsniff.findings.models import Location
from phpsniff.symbols import FileScope, scan_file

logger = logging.getLogger(__name__)

METHOD_CALL_NODE_TYPES = frozenset({"member_call_expression", "nullsafe_member_call_expression"})

_INTERPOLATION_FREE_PARTS = frozenset({"string_content", "string_value", "escape_sequence"})
_CLASS_CONSTANT_RE = re.compile(r"^(.+?)\s*::\s*class$", re.IGNORECASE)


@dataclass(frozen=True)
class MethodReflection:
    name: str


@dataclass(frozen=True)
class MethodCall:
    """A method call: the called name and its argument expressions in order."""

    name: str
    args: tuple[Any, ...] = ()

    @classmethod
    def from_node(cls, context: FileContext, node: TSNode) -> "MethodCall":
        name_node = node.child_by_field_name("name")
        arguments = node.child_by_field_name("arguments")
        args: list[TSNode] = []
        if arguments is not None:
            for argument in arguments.named_children:
                if argument.type != "argument" or argument.named_child_count == 0:
                    continue
                # named arguments (`class: Foo::class`) keep the value last
                args.append(argument.named_children[-1])
        name = get_source_span(context, name_node) if name_node is not None else ""
        return cls(name=name, args=tuple(args))


class Scope(Protocol):
    def get_type(self, expr: Any) -> Type: ...


class SourceScope:
    """Types literal expressions of one file; everything else is mixed."""

    def __init__(self, context: FileContext, file_scope: Optional[FileScope] = None) -> None:
        self.context = context
        self.file_scope = file_scope if file_scope is not None else scan_file(context)

    def get_type(self, expr: TSNode) -> Type:
        if expr.type == "parenthesized_expression" and expr.named_child_count == 1:
            return self.get_type(expr.named_children[0])
        if expr.type in ("string", "encapsed_string"):
            return self._string_type(expr)
        if expr.type == "class_constant_access_expression":
            return self._class_constant_type(expr)
        return MixedType()

    def _string_type(self, expr: TSNode) -> Type:
        if any(child.type not in _INTERPOLATION_FREE_PARTS for child in expr.named_children):
            return MixedType()
        text = get_source_span(self.context, expr)
        if text[:1] in ("b", "B"):
            text = text[1:]
        if len(text) < 2 or text[0] != text[-1] or text[0] not in ("'", '"'):
            return MixedType()
        quote = text[0]
        body = text[1:-1].replace("\\" + quote, quote).replace("\\\\", "\\")
        return ConstantStringType(value=body)

    def _class_constant_type(self, expr: TSNode) -> Type:
        match = _CLASS_CONSTANT_RE.match(get_source_span(self.context, expr).strip())
        if not match:
            return MixedType()
        name = match.group(1)
        if name.lower() in ("static", "parent"):
            return MixedType()
        if name.lower() == "self":
            owner = self.file_scope.class_at(expr)
            return ConstantStringType(value=owner.name) if owner is not None else MixedType()
        resolver = self.file_scope.resolver_at(expr.start_byte)
        return ConstantStringType(value=resolver.resolve(name))


class FactoryMethodReturnTypeExtension:
    """Return type of configured factory methods = the class named by one argument."""

    def __init__(self, class_name: str, methods: Sequence[str], dynamic_arg: Optional[int] = None) -> None:
        self._class = class_name
        self._dynamic_arg = dynamic_arg if dynamic_arg is not None else 0
        self._methods = list(methods)

    def get_class(self) -> str:
        return self._class

    def is_method_supported(self, method: MethodReflection) -> bool:
        return method.name in self._methods

    def get_type_from_method_call(self, method: MethodReflection, call: MethodCall, scope: Scope) -> Type:
        if self._dynamic_arg >= len(call.args):
            logger.debug("Call to %s has no argument %d; type is mixed", method.name, self._dynamic_arg)
            return MixedType()
        arg_type = scope.get_type(call.args[self._dynamic_arg])
        if not isinstance(arg_type, ConstantStringType):
            return MixedType()
        return ObjectType(class_name=arg_type.get_value())


class Inference(BaseModel):
    """One inferred factory call return type."""

    method: str
    type: Type
    location: Location

    model_config = {"arbitrary_types_allowed": True}


def infer_factory_calls(
    context: FileContext,
    extension: FactoryMethodReturnTypeExtension,
    scope: Optional[Scope] = None,
) -> Iterator[Inference]:
    """
    Yield the inferred return type of every supported method call in a file.

    Receivers are not type-checked: any call whose method name the extension
    supports is reported.
    """
    if scope is None:
        scope = SourceScope(context)
    for node in walk(context.root_node):
        if node.type not in METHOD_CALL_NODE_TYPES:
            continue
        call = MethodCall.from_node(context, node)
        method = MethodReflection(name=call.name)
        if not extension.is_method_supported(method):
            continue
        line, col = get_line_col(context, node)
        yield Inference(
            method=call.name,
            type=extension.get_type_from_method_call(method, call, scope),
            location=Location(
                path=context.path,
                line=line,
                column=col,
                snippet=get_source_span(context, node),
            ),
        )
