# modules/documents/docx_generator.py
"""
DOCX mail merge on top of python-docx.

Word often splits a typed ``{placeholder}`` over several runs, so both
extraction and substitution work on the merged text of a paragraph. When a
paragraph changes, the first run receives the whole new text and the
remaining runs are emptied; the first run's formatting wins. Hyperlinks keep
their own runs, so text inside a link is rendered separately from the text
around it.
"""
import logging
import os
import re
from typing import Dict, Iterator, List

from docx import Document
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph
from docx.text.run import Run

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")


def _table_paragraphs(table) -> Iterator[Paragraph]:
    for row in table.rows:
        for cell in row.cells:
            yield from cell.paragraphs
            for nested in cell.tables:
                yield from _table_paragraphs(nested)


def _container_paragraphs(container) -> Iterator[Paragraph]:
    yield from container.paragraphs
    for table in container.tables:
        yield from _table_paragraphs(table)


def iter_paragraphs(document) -> Iterator[Paragraph]:
    """Body, tables (nested too) and every distinct header/footer."""
    yield from _container_paragraphs(document)
    for section in document.sections:
        for part in (
            section.header, section.first_page_header, section.even_page_header,
            section.footer, section.first_page_footer, section.even_page_footer,
        ):
            if part.is_linked_to_previous:
                continue
            yield from _container_paragraphs(part)


def extract_placeholders(template_path: str) -> List[str]:
    """Unique placeholder names (without braces), sorted."""
    document = Document(template_path)
    found = set()
    for paragraph in iter_paragraphs(document):
        for runs in _segments(paragraph):
            found.update(PLACEHOLDER_RE.findall("".join(run.text for run in runs)))
    return sorted(found)


def _segments(paragraph: Paragraph) -> Iterator[List[Run]]:
    """Consecutive plain runs form one segment, every hyperlink forms its own."""
    plain: List[Run] = []
    for item in paragraph.iter_inner_content():
        if isinstance(item, Hyperlink):
            if plain:
                yield plain
                plain = []
            yield item.runs
        else:
            plain.append(item)
    if plain:
        yield plain


def _render_runs(runs: List[Run], data: Dict[str, str]) -> bool:
    text = "".join(run.text for run in runs)
    if "{" not in text:
        return False
    rendered = PLACEHOLDER_RE.sub(lambda m: str(data.get(m.group(1), "") or ""), text)
    if rendered == text:
        return False
    runs[0].text = rendered
    for run in runs[1:]:
        run.text = ""
    return True


def _render_paragraph(paragraph: Paragraph, data: Dict[str, str]) -> bool:
    if "{" not in paragraph.text:
        return False
    results = [_render_runs(runs, data) for runs in _segments(paragraph) if runs]
    return any(results)


def generate_docx(template_path: str, data: Dict[str, str], output_path: str) -> int:
    """Render ``template_path`` into ``output_path``; unknown placeholders become empty."""
    if not os.path.exists(template_path):
        raise FileNotFoundError(template_path)
    document = Document(template_path)
    changed = sum(1 for paragraph in iter_paragraphs(document) if _render_paragraph(paragraph, data))
    os.makedirs(os.path.dirname(output_path), exist_ok=True)
    document.save(output_path)
    logger.info("Generated %s (%d paragraph(s) filled)", output_path, changed)
    return changed
