from __future__ import annotations

"""
A pygls-based Language Server for Ream.

Features:
- Text synchronization and document store
- Diagnostics: the first lex, parse, inclusion or type error of a buffer
- Hover: inferred types and `:doc` text of definitions, built-in signatures
- Completion: definitions and built-ins
- Document Symbols: from the indexer

Buffers are type checked but never evaluated.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

from pygls.server import LanguageServer
from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
    SymbolKind,
)

from ream import __version__
from ream.config import get_log_level
from ream_lsp.indexer import BUILTIN_SIGNATURES, DocumentIndex, build_index, describe

logger = logging.getLogger(__name__)

_DELIMITERS = " \t()\n\r\"'`;"

_SYMBOL_KINDS = {
    "function": SymbolKind.Function,
    "var": SymbolKind.Variable,
    "type": SymbolKind.Class,
}


@dataclass
class DocumentState:
    text: str
    index: DocumentIndex


class ReamLanguageServer(LanguageServer):
    CMD_NAME = "ream-ls"

    def __init__(self):
        super().__init__(self.CMD_NAME, __version__)
        self.documents: Dict[str, DocumentState] = {}


ls = ReamLanguageServer()


def _uri_to_path(uri: str) -> Optional[Path]:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(unquote(parsed.path))


def _update(uri: str, text: str) -> DocumentState:
    state = DocumentState(text=text, index=build_index(text, _uri_to_path(uri)))
    ls.documents[uri] = state
    ls.publish_diagnostics(uri, to_diagnostics(state.index))
    return state


# --- Text sync ---
@ls.feature("textDocument/didOpen")
def did_open(params: DidOpenTextDocumentParams):
    _update(params.text_document.uri, params.text_document.text or "")


@ls.feature("textDocument/didChange")
def did_change(params: DidChangeTextDocumentParams):
    # Changes may be incremental; pygls has already applied them to its copy
    uri = params.text_document.uri
    _update(uri, ls.workspace.get_text_document(uri).source)


@ls.feature("textDocument/didClose")
def did_close(params: DidCloseTextDocumentParams):
    uri = params.text_document.uri
    ls.documents.pop(uri, None)
    ls.publish_diagnostics(uri, [])


# --- Diagnostics ---
def to_diagnostics(idx: DocumentIndex) -> List[Diagnostic]:
    diags: List[Diagnostic] = []
    for problem in idx.problems:
        start = Position(line=problem.line, character=problem.col)
        end = Position(line=problem.line, character=problem.col + 1)
        diags.append(
            Diagnostic(
                range=Range(start=start, end=end),
                message=f"{problem.kind}: {problem.message}",
                severity=DiagnosticSeverity.Error,
                source=ReamLanguageServer.CMD_NAME,
            )
        )
    return diags


# --- Hover ---
@ls.feature("textDocument/hover")
def on_hover(params: HoverParams) -> Optional[Hover]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None

    word = word_at(state.text, params.position.line, params.position.character)
    if not word:
        return None

    contents = describe(word, state.index)
    if contents is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value=contents))


# --- Completion ---
@ls.feature("textDocument/completion")
def on_completion(params: CompletionParams) -> CompletionList:
    state = ls.documents.get(params.text_document.uri)
    items: List[CompletionItem] = []
    for name, signature in BUILTIN_SIGNATURES.items():
        items.append(CompletionItem(label=name, kind=CompletionItemKind.Function, detail=signature))
    if state:
        for name, sdef in state.index.symbols.items():
            kind = CompletionItemKind.Function if sdef.kind == "function" else CompletionItemKind.Variable
            items.append(CompletionItem(label=name, kind=kind, detail=sdef.type, documentation=sdef.doc))
    return CompletionList(is_incomplete=False, items=items)


# --- Document Symbols ---
@ls.feature("textDocument/documentSymbol")
def on_document_symbols(params: DocumentSymbolParams) -> Optional[List[DocumentSymbol]]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None
    symbols: List[DocumentSymbol] = []
    for name, sdef in state.index.symbols.items():
        rng = Range(
            start=Position(line=sdef.line, character=sdef.col),
            end=Position(line=sdef.line, character=sdef.col + len(name)),
        )
        symbols.append(
            DocumentSymbol(
                name=name,
                detail=sdef.type,
                kind=_SYMBOL_KINDS.get(sdef.kind, SymbolKind.Variable),
                range=rng,
                selection_range=rng,
            )
        )
    return symbols


# --- Helpers ---
def word_at(text: str, line: int, character: int) -> Optional[str]:
    """The identifier or atom under a 0-based (line, character) position."""
    lines = text.splitlines(True)
    if line >= len(lines):
        return None
    current = lines[line]
    start = min(character, len(current))
    while start > 0 and current[start - 1] not in _DELIMITERS:
        start -= 1
    end = min(character, len(current))
    while end < len(current) and current[end] not in _DELIMITERS:
        end += 1
    return current[start:end] or None


def main() -> None:
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")
    logger.info("starting %s %s over stdio", ReamLanguageServer.CMD_NAME, __version__)
    ls.start_io()


if __name__ == "__main__":
    main()
