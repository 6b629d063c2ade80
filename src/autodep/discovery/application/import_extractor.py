"""
Import extraction.

Finds the modules a Python source file depends on, in source order.
Relative imports keep their leading dots (``from ..pkg import x`` ->
``"..pkg.x"``) so that classification can stay purely lexical.
"""

from __future__ import annotations

import ast
import codecs
from pathlib import Path

from autodep.shared.domain.exceptions import ParseError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Dynamic loads of these are data files, not code dependencies
DATA_EXTENSIONS: tuple[str, ...] = (".json", ".yaml", ".yml", ".toml", ".csv", ".txt", ".ini", ".cfg")

_DYNAMIC_LOADERS = {"import_module", "__import__"}


def strip_interpreter_line(source: str | bytes) -> str | bytes:
    """
    Blank out a leading ``#!`` line, keeping line numbers stable.

    The newline is kept so that a coding cookie on the second line is still
    honoured when bytes are parsed. A UTF-8 BOM before the ``#!`` is kept too.
    """
    if isinstance(source, bytes):
        bom = codecs.BOM_UTF8 if source.startswith(codecs.BOM_UTF8) else b""
        body = source[len(bom):]
        if body.startswith(b"#!"):
            newline = body.find(b"\n")
            return bom + (b"" if newline == -1 else body[newline:])
        return source

    source = source.removeprefix("\ufeff")
    if source.startswith("#!"):
        newline = source.find("\n")
        return "" if newline == -1 else source[newline:]
    return source


def _is_module_name(value: str) -> bool:
    parts = value.lstrip(".").split(".")
    return all(part.isidentifier() for part in parts)


class _ImportCollector(ast.NodeVisitor):
    """Collects import specifiers in source order."""

    def __init__(self) -> None:
        self.specifiers: list[str] = []

    def _add(self, specifier: str) -> None:
        if specifier and specifier not in self.specifiers:
            self.specifiers.append(specifier)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._add(alias.name)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        prefix = "." * node.level
        module = node.module or ""
        for alias in node.names:
            if alias.name == "*":
                self._add(prefix + module)
            elif module:
                # May name a submodule; the resolver falls back to the module itself
                self._add(f"{prefix}{module}.{alias.name}")
            else:
                self._add(prefix + alias.name)

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", None)
        if name in _DYNAMIC_LOADERS and node.args:
            target = node.args[0]
            if isinstance(target, ast.Constant) and isinstance(target.value, str):
                value = target.value
                if not value.lower().endswith(DATA_EXTENSIONS) and _is_module_name(value):
                    self._add(value)
        self.generic_visit(node)


class ImportExtractor:
    """Extracts dependency specifiers from Python source."""

    def extract(self, source: str | bytes, path: str | Path = "<unknown>") -> list[str]:
        """
        Return the specifiers referenced by ``source`` in source order.

        Args:
            source: Module source. Raw bytes are decoded the way the interpreter
                decodes a file, honouring a BOM or a ``coding:`` cookie.
            path: Canonical path of the module, used for error reporting

        Raises:
            ParseError: The source is not valid Python. No partial list is returned.
        """
        try:
            tree = ast.parse(strip_interpreter_line(source), filename=str(path))
        except SyntaxError as e:
            raise ParseError(path, e.lineno, e.offset, e.msg) from e
        except ValueError as e:
            # e.g. source containing NUL bytes, or an unknown cookie encoding
            raise ParseError(path, reason=str(e)) from e

        collector = _ImportCollector()
        collector.visit(tree)
        logger.debug("imports_extracted", path=str(path), count=len(collector.specifiers))
        return collector.specifiers
