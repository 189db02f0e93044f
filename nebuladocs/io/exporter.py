"""Compile a binder into a single manuscript file."""

import logging
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

from docx import Document as DocxDocument

from ..core.item import Container, Document, Item
from ..core.project import ProjectContent
from .file_handler import FileHandler

logger = logging.getLogger(__name__)

FORMATS = ("markdown", "text", "docx")


def _walk(items: Sequence[Item], level: int = 1) -> Iterator[Tuple[int, Item]]:
    for item in items:
        yield level, item
        if isinstance(item, Container):
            yield from _walk(item.children, level + 1)


class ManuscriptExporter:
    """Writes documents in binder order, using container titles as headings."""

    def __init__(self, file_handler: FileHandler = None):
        self.file_handler = file_handler or FileHandler()

    def export(self, content: ProjectContent, file_path: Union[str, Path], format_type: str = "markdown") -> Path:
        """
        Export a project's binder to a file.

        Args:
            content: Project content bundle to compile
            file_path: Path to output file
            format_type: Format to export ("markdown", "text", "docx")
        """
        path = Path(file_path)
        format_type = format_type.lower()

        if format_type == "markdown":
            self.file_handler.write_file(path, self.to_markdown(content))
        elif format_type == "text":
            self.file_handler.write_file(path, self.to_text(content))
        elif format_type == "docx":
            self._export_as_docx(content, path)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

        logger.info(f"Compiled manuscript to {path} ({format_type})")
        return path

    def to_markdown(self, content: ProjectContent) -> str:
        parts: List[str] = []
        for level, item in _walk(content.items):
            parts.append(f"{'#' * min(level, 6)} {item.title}\n\n")
            if isinstance(item, Document) and item.plain_text.strip():
                parts.append(_paragraphs(item) + "\n\n")
        return ''.join(parts)

    def to_text(self, content: ProjectContent) -> str:
        parts: List[str] = []
        for level, item in _walk(content.items):
            underline = "=" if level == 1 else "-"
            parts.append(f"{item.title}\n{underline * len(item.title)}\n\n")
            if isinstance(item, Document) and item.plain_text.strip():
                parts.append(_paragraphs(item) + "\n\n")
        return ''.join(parts)

    def _export_as_docx(self, content: ProjectContent, path: Path) -> None:
        doc = DocxDocument()

        for index, (level, item) in enumerate(_walk(content.items)):
            # Page break before each new top-level section
            if level == 1 and index > 0:
                doc.add_page_break()
            doc.add_heading(item.title, level=min(level, 9))
            if isinstance(item, Document):
                for paragraph in item.plain_text.split("\n"):
                    if paragraph.strip():
                        doc.add_paragraph(paragraph.strip())

        path.parent.mkdir(parents=True, exist_ok=True)
        doc.save(str(path))


def _paragraphs(document: Document) -> str:
    return "\n\n".join(document.plain_text.split("\n"))
