import asyncio
import logging
from pathlib import Path
from typing import cast

from tree_sitter import Node, Query, QueryCursor
from tree_sitter_language_pack import SupportedLanguage, get_language, get_parser

from estrella_build.errors import InterfaceNotFoundError
from estrella_build.models import InterfaceInfo, PropInfo

logger = logging.getLogger(__name__)

_LANGUAGE = "typescript"


def _load_query(language: str, query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{language}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def _text(source: bytes, node: Node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def _annotation_text(source: bytes, node: Node | None) -> str | None:
    if node is None:
        return None
    text = _text(source, node).strip()
    # type annotations span their leading colon
    if text.startswith(":"):
        text = text[1:].strip()
    return text or None


def _prop_name(source: bytes, node: Node) -> str:
    text = _text(source, node)
    if node.type == "string":
        return text[1:-1]
    return text


def _member(source: bytes, node: Node) -> PropInfo | None:
    if node.type == "property_signature":
        typestr = _annotation_text(source, node.child_by_field_name("type")) or "any"
    elif node.type == "method_signature":
        params = node.child_by_field_name("parameters")
        returns = _annotation_text(source, node.child_by_field_name("return_type")) or "void"
        typestr = f"{_text(source, params) if params else '()'} => {returns}"
    else:
        # call, construct and index signatures have no property name
        return None
    name = node.child_by_field_name("name")
    if name is None:
        return None
    return PropInfo(name=_prop_name(source, name), typestr=typestr)


def _union(types: list[str]) -> str:
    if len(types) == 1:
        return types[0]
    # function types must be parenthesized as union arms
    return " | ".join(f"({t})" if "=>" in t else t for t in types)


def _heritage(source: bytes, declaration: Node) -> list[str]:
    names: list[str] = []
    for clause in declaration.named_children:
        if clause.type != "extends_type_clause":
            continue
        for type_node in clause.children_by_field_name("type") or clause.named_children:
            if type_node.type == "generic_type":
                type_node = type_node.child_by_field_name("name") or type_node
            names.append(_text(source, type_node))
    return names


def _collect_declarations(source: bytes) -> dict[str, list[Node]]:
    parser = get_parser(cast(SupportedLanguage, _LANGUAGE))
    tree = parser.parse(source)
    cursor = QueryCursor(_load_query(_LANGUAGE, "interfaces"))

    declarations: dict[str, list[Node]] = {}
    for _, captures in cursor.matches(tree.root_node):
        for declaration, name in zip(captures["interface"], captures["interface.name"], strict=True):
            declarations.setdefault(_text(source, name), []).append(declaration)
    for nodes in declarations.values():
        nodes.sort(key=lambda n: n.start_byte)
    return declarations


def _build_info(
    name: str,
    declarations: dict[str, list[Node]],
    source: bytes,
    file: str,
    visiting: frozenset[str] = frozenset(),
) -> InterfaceInfo:
    visiting = visiting | {name}
    arms: dict[str, list[str]] = {}
    heritage: list[str] = []

    # all declarations sharing a name are merged in source order
    for declaration in declarations[name]:
        heritage.extend(h for h in _heritage(source, declaration) if h not in heritage)
        body = declaration.child_by_field_name("body")
        if body is None:
            continue
        for member in body.named_children:
            prop = _member(source, member)
            if prop is None:
                continue
            types = arms.setdefault(prop.name, [])
            if prop.typestr not in types:
                types.append(prop.typestr)
    props = {prop_name: PropInfo(name=prop_name, typestr=_union(types)) for prop_name, types in arms.items()}

    bases: list[InterfaceInfo] = []
    for base_name in heritage:
        if base_name in declarations and base_name not in visiting:
            bases.append(_build_info(base_name, declarations, source, file, visiting))
        else:
            logger.debug("%s extends %s which is not declared in %s; skipping", name, base_name, file)

    return InterfaceInfo(name=name, file=file, heritage=heritage, props=props, bases=bases)


def interface_info_from_source(source: bytes, interface_name: str, file: str = "<source>") -> InterfaceInfo:
    declarations = _collect_declarations(source)
    if interface_name not in declarations:
        raise InterfaceNotFoundError(interface_name, file)
    return _build_info(interface_name, declarations, source, file)


def interface_info(declaration_file: str | Path, interface_name: str) -> InterfaceInfo:
    """Reflect the member signatures of ``interface_name`` declared in ``declaration_file``.

    Types are reported as their literal source text; nothing is resolved or
    evaluated. Raises ``InterfaceNotFoundError`` when no declaration exists.
    """
    path = Path(declaration_file)
    try:
        source = path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {path}") from None
    return interface_info_from_source(source, interface_name, str(path))


async def ainterface_info(declaration_file: str | Path, interface_name: str) -> InterfaceInfo:
    return await asyncio.to_thread(interface_info, declaration_file, interface_name)
