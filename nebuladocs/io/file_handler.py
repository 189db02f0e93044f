"""File handling utilities."""

import html
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import markdown
import yaml
from docx import Document as DocxDocument


class FileHandler:
    """Handles reading and writing various file formats."""

    def read_file(self, file_path: Union[str, Path]) -> str:
        """Read text content from various file formats."""
        path = Path(file_path)

        if path.suffix.lower() == '.docx':
            return self._read_docx(path)
        return path.read_text(encoding='utf-8')

    def read_as_body(self, file_path: Union[str, Path]) -> str:
        """Read a file and convert it to the HTML markup stored in document bodies."""
        path = Path(file_path)
        suffix = path.suffix.lower()

        if suffix in ('.md', '.markdown'):
            return markdown.markdown(path.read_text(encoding='utf-8'))
        if suffix in ('.html', '.htm'):
            return path.read_text(encoding='utf-8')
        return text_to_body(self.read_file(path))

    def write_file(self, file_path: Union[str, Path], content: str) -> None:
        """Write content to file."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')

    def read_json(self, file_path: Union[str, Path]) -> Any:
        """Read JSON file."""
        path = Path(file_path)
        with path.open('r', encoding='utf-8') as f:
            return json.load(f)

    def write_json(self, file_path: Union[str, Path], data: Any) -> None:
        """Write JSON file."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def read_yaml(self, file_path: Union[str, Path]) -> Any:
        """Read YAML file."""
        path = Path(file_path)
        with path.open('r', encoding='utf-8') as f:
            return yaml.safe_load(f)

    def write_yaml(self, file_path: Union[str, Path], data: Any) -> None:
        """Write YAML file."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def detect_chapters(self, content: str) -> List[Tuple[str, str]]:
        """
        Detect chapters in text content and return list of (title, content) tuples.
        Text without recognizable chapter headings comes back as one chapter.
        """
        chapter_patterns = [
            # "Chapter One", "Chapter 1", etc.
            r'\n\s*(Chapter\s+\w+(?:-\w+)?)\s*[:\.]?\s*\n',
            # "Ch. One", "Ch 1", etc.
            r'\n\s*(Ch\.?\s+\w+(?:-\w+)?)\s*[:\.]?\s*\n',
            # Just numbers: "1.", "2.", etc.
            r'\n\s*(\d+)\.\s*\n',
        ]

        best_splits = None
        text = '\n' + content
        for pattern in chapter_patterns:
            splits = re.split(pattern, text, flags=re.MULTILINE | re.IGNORECASE)
            if len(splits) >= 3 and len(splits) % 2 == 1:
                best_splits = splits
                break

        if not best_splits:
            return [("Chapter 1", content.strip())]

        chapters = []
        # splits[0] is the preamble, then alternating title / content
        for i in range(1, len(best_splits) - 1, 2):
            raw_title = best_splits[i].strip()
            chapter_content = best_splits[i + 1].strip()
            title = f"Chapter {raw_title}" if raw_title.isdigit() else raw_title.title()
            if chapter_content:
                chapters.append((title, chapter_content))

        if not chapters:
            return [("Chapter 1", content.strip())]
        return chapters

    def _read_docx(self, path: Path) -> str:
        """Read DOCX file."""
        doc = DocxDocument(path)
        return '\n'.join(paragraph.text for paragraph in doc.paragraphs)


def text_to_body(text: str) -> str:
    """Wrap plain-text paragraphs (separated by blank lines) in <p> tags."""
    paragraphs = [p.strip() for p in re.split(r'\n\s*\n', text) if p.strip()]
    return ''.join(f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs)
