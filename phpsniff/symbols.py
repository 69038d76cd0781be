"""
Symbol table: class hierarchy collected from the analysed PHP files.

Rules that need to know whether a method overrides something (or whether a
class is a PHPUnit test case) cannot load PHP classes at runtime, so the
pipeline first scans every file for class, interface, trait and enum
declarations and records their resolved parents, interfaces and methods.

Names are resolved the way PHP resolves class references: against the
current namespace and the file's `use` imports. Class names are compared
case-insensitively, as in PHP.

Typical usage:
    table = build_symbol_table(contexts)
    table.inherits_method("App\\Handler", "handle")   # True / False / None
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from tree_sitter import Node as TSNode

from phpsniff.context import CLASS_LIKE_NODE_TYPES, FileContext, get_source_span, walk

logger = logging.getLogger(__name__)

TEST_CASE_PROTOTYPES = frozenset(
    {
        "phpunit_framework_testcase",
        "phpunit\\framework\\testcase",
    }
)

_NAME_NODE_TYPES = frozenset({"name", "qualified_name"})


@dataclass
class NameResolver:
    """Resolves class references within one namespace block."""

    namespace: str = ""
    uses: dict[str, str] = field(default_factory=dict)

    def qualify(self, short_name: str) -> str:
        """Fully qualified name of a declaration made in this namespace."""
        return f"{self.namespace}\\{short_name}" if self.namespace else short_name

    def resolve(self, name: str) -> str:
        name = name.strip()
        if name.startswith("\\"):
            return name[1:]
        if name.lower().startswith("namespace\\"):
            return self.qualify(name[len("namespace\\") :])
        head, sep, rest = name.partition("\\")
        imported = self.uses.get(head.lower())
        if imported is not None:
            return f"{imported}{sep}{rest}" if sep else imported
        return self.qualify(name)


def parse_use_statement(text: str) -> dict[str, str]:
    """
    Parse a `use` import statement into {lower-cased alias: fully qualified name}.

    Function and constant imports are ignored; group imports are expanded.
    """
    body = text.strip().rstrip(";").strip()
    body = re.sub(r"^use\s+", "", body, flags=re.IGNORECASE)
    if re.match(r"^(function|const)\s", body, flags=re.IGNORECASE):
        return {}

    prefix = ""
    group = re.match(r"^(.*?)\{(.*)\}$", body, flags=re.DOTALL)
    if group:
        prefix = group.group(1).strip().strip("\\")
        body = group.group(2)

    imports: dict[str, str] = {}
    for item in body.split(","):
        item = item.strip()
        if not item:
            continue
        parts = re.split(r"\s+as\s+", item, flags=re.IGNORECASE)
        target = parts[0].strip().lstrip("\\")
        if prefix:
            target = f"{prefix}\\{target}"
        alias = parts[1].strip() if len(parts) > 1 else target.rsplit("\\", 1)[-1]
        imports[alias.lower()] = target
    return imports


@dataclass(frozen=True)
class ClassSymbol:
    """One class-like declaration and what it inherits from."""

    name: str
    kind: str
    parents: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()
    traits: tuple[str, ...] = ()
    methods: frozenset[str] = frozenset()

    def declares_method(self, method: str) -> bool:
        return method.lower() in self.methods


@dataclass
class FileScope:
    """Namespace regions and class declarations found in one file."""

    regions: list[tuple[int, int, NameResolver]] = field(default_factory=list)
    declarations: list[tuple[int, int, ClassSymbol]] = field(default_factory=list)

    def resolver_at(self, byte_offset: int) -> NameResolver:
        best: Optional[tuple[int, int, NameResolver]] = None
        for region in self.regions:
            start, end, _ = region
            if start <= byte_offset < end and (best is None or end - start < best[1] - best[0]):
                best = region
        return best[2] if best is not None else NameResolver()

    def class_at(self, node: TSNode) -> Optional[ClassSymbol]:
        """Innermost class-like declaration enclosing node."""
        best: Optional[tuple[int, int, ClassSymbol]] = None
        for decl in self.declarations:
            start, end, _ = decl
            if start <= node.start_byte and node.end_byte <= end:
                if best is None or end - start < best[1] - best[0]:
                    best = decl
        return best[2] if best is not None else None


def _clause_names(context: FileContext, clause: Optional[TSNode]) -> list[str]:
    if clause is None:
        return []
    return [get_source_span(context, c) for c in clause.named_children if c.type in _NAME_NODE_TYPES]


def _child_of_type(node: TSNode, node_type: str) -> Optional[TSNode]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _class_symbol(context: FileContext, node: TSNode, resolver: NameResolver) -> Optional[ClassSymbol]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    extends = [resolver.resolve(n) for n in _clause_names(context, _child_of_type(node, "base_clause"))]
    implements = [
        resolver.resolve(n) for n in _clause_names(context, _child_of_type(node, "class_interface_clause"))
    ]
    if node.type == "interface_declaration":
        # interfaces extend other interfaces
        extends, implements = [], extends

    methods: set[str] = set()
    traits: list[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for member in body.named_children:
            if member.type == "method_declaration":
                method_name = member.child_by_field_name("name")
                if method_name is not None:
                    methods.add(get_source_span(context, method_name).lower())
            elif member.type == "use_declaration":
                traits.extend(resolver.resolve(n) for n in _clause_names(context, member))

    return ClassSymbol(
        name=resolver.qualify(get_source_span(context, name_node)),
        kind=node.type.replace("_declaration", ""),
        parents=tuple(extends),
        interfaces=tuple(implements),
        traits=tuple(traits),
        methods=frozenset(methods),
    )


def _scan_statements(
    context: FileContext,
    statements: Iterable[TSNode],
    resolver: NameResolver,
    scope: FileScope,
) -> None:
    for statement in statements:
        if statement.type == "namespace_use_declaration":
            resolver.uses.update(parse_use_statement(get_source_span(context, statement)))
            continue
        for node in walk(statement):
            if node.type not in CLASS_LIKE_NODE_TYPES:
                continue
            symbol = _class_symbol(context, node, resolver)
            if symbol is not None:
                scope.declarations.append((node.start_byte, node.end_byte, symbol))


def _namespace_name(context: FileContext, node: TSNode) -> str:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        name_node = _child_of_type(node, "namespace_name")
    return get_source_span(context, name_node).strip("\\ ") if name_node is not None else ""


def scan_file(context: FileContext) -> FileScope:
    """Collect namespace regions, imports and class declarations for one file."""
    scope = FileScope()
    current = NameResolver()
    current_start = 0
    for child in context.root_node.named_children:
        if child.type != "namespace_definition":
            _scan_statements(context, [child], current, scope)
            continue

        namespace = _namespace_name(context, child)
        body = child.child_by_field_name("body")
        if body is not None:
            inner = NameResolver(namespace=namespace)
            _scan_statements(context, body.named_children, inner, scope)
            scope.regions.append((child.start_byte, child.end_byte, inner))
            continue

        # `namespace Foo;` applies until the next namespace statement
        scope.regions.append((current_start, child.start_byte, current))
        current = NameResolver(namespace=namespace)
        current_start = child.start_byte

    scope.regions.append((current_start, len(context.source) + 1, current))
    return scope


class SymbolTable:
    """Class hierarchy index keyed by case-insensitive fully qualified name."""

    def __init__(self, symbols: Iterable[ClassSymbol] = ()) -> None:
        self._classes: dict[str, ClassSymbol] = {}
        for symbol in symbols:
            self.add(symbol)

    def add(self, symbol: ClassSymbol) -> None:
        key = symbol.name.lower()
        if key in self._classes:
            logger.debug("Duplicate declaration of %s; keeping the first one", symbol.name)
            return
        self._classes[key] = symbol

    def get(self, name: str) -> Optional[ClassSymbol]:
        return self._classes.get(name.lstrip("\\").lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._classes)

    def ancestors(self, name: str) -> list[str]:
        """
        All parents and interfaces of a class, transitively, nearest first.

        Names that are not declared in the analysed files are still listed;
        they just contribute no further ancestors.
        """
        symbol = self.get(name)
        if symbol is None:
            return []
        seen: set[str] = {symbol.name.lower()}
        result: list[str] = []
        queue = list(symbol.parents) + list(symbol.interfaces)
        while queue:
            current = queue.pop(0)
            if current.lower() in seen:
                continue
            seen.add(current.lower())
            result.append(current)
            known = self.get(current)
            if known is not None:
                queue.extend(known.parents)
                queue.extend(known.interfaces)
        return result

    def is_fully_resolved(self, name: str) -> bool:
        """True when the class and every one of its ancestors is declared."""
        if name not in self:
            return False
        return all(ancestor in self for ancestor in self.ancestors(name))

    def _has_method(self, name: str, method: str, seen: set[str]) -> bool:
        symbol = self.get(name)
        if symbol is None or symbol.name.lower() in seen:
            return False
        seen.add(symbol.name.lower())
        if symbol.declares_method(method):
            return True
        return any(self._has_method(trait, method, seen) for trait in symbol.traits)

    def inherits_method(self, name: str, method: str) -> Optional[bool]:
        """
        Whether some ancestor of ``name`` declares ``method``.

        Returns None when that cannot be decided from the analysed files
        (unknown class, or an undeclared ancestor that might define it).
        """
        if name not in self:
            return None
        for ancestor in self.ancestors(name):
            if self._has_method(ancestor, method, set()):
                return True
        return False if self.is_fully_resolved(name) else None

    def is_test_class(self, name: str) -> bool:
        return any(a.lower() in TEST_CASE_PROTOTYPES for a in self.ancestors(name))


def build_symbol_table(contexts: Iterable[FileContext]) -> SymbolTable:
    """First pass over all files: index every class-like declaration."""
    table = SymbolTable()
    for context in contexts:
        for _, _, symbol in scan_file(context).declarations:
            table.add(symbol)
    logger.info("Symbol table built: %d class-like declaration(s)", len(table))
    return table
