"""
A minimal pygls-based Language Server for foreign headers.

Features:
- Full text synchronization and document store
- Diagnostics: header parse errors, records and macros that do not translate
- Hover: the native form a record or macro translates to
- Document Symbols: records and macros defined by the header

Note: Documents are only translated, never expanded into a program.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

from pygls.server import LanguageServer
from lsprotocol.types import (
    TextDocumentSyncKind,
    DidOpenTextDocumentParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    Diagnostic,
    DiagnosticSeverity,
    Position,
    Range,
    Hover,
    HoverParams,
    MarkupContent,
    MarkupKind,
    DocumentSymbolParams,
    DocumentSymbol,
    SymbolKind,
)

from zinc import __version__
from zinc import diagnostics as zdiag
from zinc_lsp.indexer import build_index, describe, HeaderIndex

SOURCE = "zinc-ls"


@dataclass
class DocumentState:
    text: str
    index: HeaderIndex


class ZincLanguageServer(LanguageServer):
    CMD_NAME = "zinc-ls"

    def __init__(self):
        super().__init__(self.CMD_NAME, __version__, text_document_sync_kind=TextDocumentSyncKind.Full)
        self.documents: Dict[str, DocumentState] = {}


ls = ZincLanguageServer()


def _uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    return uri


# --- Text sync ---
def _update(uri: str, text: str) -> None:
    idx = build_index(text, _uri_to_path(uri))
    ls.documents[uri] = DocumentState(text=text, index=idx)
    _publish_diagnostics(uri, idx)


@ls.feature("textDocument/didOpen")
def did_open(params: DidOpenTextDocumentParams):
    _update(params.text_document.uri, params.text_document.text or "")


@ls.feature("textDocument/didChange")
def did_change(params: DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if params.content_changes:
        text = params.content_changes[-1].text
    else:
        text = ls.documents[uri].text if uri in ls.documents else ""
    _update(uri, text)


@ls.feature("textDocument/didClose")
def did_close(params: DidCloseTextDocumentParams):
    uri = params.text_document.uri
    if uri in ls.documents:
        del ls.documents[uri]
    ls.publish_diagnostics(uri, [])


# --- Diagnostics ---
def _line_range(line: int) -> Range:
    row = max(line - 1, 0)
    return Range(start=Position(line=row, character=0), end=Position(line=row + 1, character=0))


def to_lsp_diagnostics(idx: HeaderIndex) -> List[Diagnostic]:
    return [
        Diagnostic(
            range=_line_range(d.line),
            message=d.message,
            severity=DiagnosticSeverity.Warning if d.severity == zdiag.WARNING else DiagnosticSeverity.Information,
            source=SOURCE,
        )
        for d in idx.diagnostics
    ]


def _publish_diagnostics(uri: str, idx: HeaderIndex):
    ls.publish_diagnostics(uri, to_lsp_diagnostics(idx))


# --- Hover ---
@ls.feature("textDocument/hover")
def on_hover(params: HoverParams) -> Optional[Hover]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None
    word = _extract_word_at(state.text, params.position)
    sdef = state.index.symbols.get(word) if word else None
    if sdef is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value=describe(sdef)))


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
                detail=describe(sdef),
                kind=SymbolKind.Struct if sdef.kind == "record" else SymbolKind.Constant,
                range=rng,
                selection_range=rng,
            )
        )
    return symbols


# --- Helpers ---
def _extract_word_at(text: str, pos: Position) -> Optional[str]:
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return None
    line = lines[pos.line]
    start = end = pos.character
    # foreign names: letters, digits, _ and @; a leading ? or # is not part of it
    while start > 0 and (line[start - 1].isalnum() or line[start - 1] in "_@"):
        start -= 1
    while end < len(line) and (line[end].isalnum() or line[end] in "_@"):
        end += 1
    return line[start:end] or None


if __name__ == "__main__":
    # Run the language server over stdio
    ls.start_io()
