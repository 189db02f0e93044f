"""Cross-reference grid relating any two story dimensions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..core.item import Document
from ..core.project import PlotThread

CellContent = Union[str, int, None]


class Dimension(Enum):
    DOCUMENTS = "documents"
    PARTICIPANTS = "participants"
    LOCATIONS = "locations"
    DATES = "dates"
    THREADS = "threads"


@dataclass(frozen=True)
class GridCell:
    content: CellContent = None
    is_conflict: bool = False
    document_ids: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.document_ids


@dataclass
class Grid:
    """Cells indexed ``cells[row][column]``: rows follow ``y_labels``, columns ``x_labels``."""

    x: Dimension
    y: Dimension
    x_labels: List[str]
    y_labels: List[str]
    cells: List[List[GridCell]] = field(default_factory=list)

    def cell(self, x_label: str, y_label: str) -> GridCell:
        return self.cells[self.y_labels.index(y_label)][self.x_labels.index(x_label)]

    def transpose(self) -> "Grid":
        cells = [[self.cells[row][col] for row in range(len(self.y_labels))] for col in range(len(self.x_labels))]
        return Grid(self.y, self.x, list(self.y_labels), list(self.x_labels), cells)

    def filter_x(self, text: str) -> "Grid":
        """Keep only the columns whose label contains ``text`` (case-insensitive)."""
        needle = text.lower()
        keep = [i for i, label in enumerate(self.x_labels) if needle in label.lower()]
        return Grid(
            self.x,
            self.y,
            [self.x_labels[i] for i in keep],
            list(self.y_labels),
            [[row[i] for i in keep] for row in self.cells],
        )

    def non_empty(self) -> Dict[Tuple[str, str], GridCell]:
        """Filled cells keyed by ``(x_label, y_label)``."""
        return {
            (x_label, y_label): self.cells[row][col]
            for row, y_label in enumerate(self.y_labels)
            for col, x_label in enumerate(self.x_labels)
            if not self.cells[row][col].is_empty
        }


def _sorted_distinct(values) -> List[str]:
    return sorted({value for value in values if value})


def axis_labels(documents: Sequence[Document], threads: Sequence[PlotThread], dimension: Dimension) -> List[str]:
    if dimension == Dimension.DOCUMENTS:
        return [document.title for document in documents]
    if dimension == Dimension.PARTICIPANTS:
        return _sorted_distinct(name for document in documents for name in document.participant_names())
    if dimension == Dimension.LOCATIONS:
        return _sorted_distinct(document.location for document in documents)
    if dimension == Dimension.DATES:
        return _sorted_distinct(document.date_key for document in documents)
    return [thread.name for thread in threads]


def _matcher(dimension: Dimension, threads: Sequence[PlotThread]) -> Callable[[Document, str], bool]:
    if dimension == Dimension.DOCUMENTS:
        return lambda document, label: document.title == label
    if dimension == Dimension.PARTICIPANTS:
        return lambda document, label: label in document.participant_names()
    if dimension == Dimension.LOCATIONS:
        return lambda document, label: document.location == label
    if dimension == Dimension.DATES:
        # Bucketed by date_key, like the conflict report
        return lambda document, label: document.date_key == label

    def match_thread(document: Document, label: str) -> bool:
        thread = _thread_named(threads, label)
        return bool(thread and document.plot_points.get(thread.id))
    return match_thread


def _thread_named(threads: Sequence[PlotThread], name: str) -> Optional[PlotThread]:
    for thread in threads:
        if thread.name == name:
            return thread
    return None


def _pair(x: Dimension, y: Dimension, a: Dimension, b: Dimension) -> bool:
    return {x, y} == {a, b} and x != y


def _cell(
    hits: List[Document],
    x: Dimension,
    y: Dimension,
    x_label: str,
    y_label: str,
    threads: Sequence[PlotThread],
) -> GridCell:
    ids = tuple(document.id for document in hits)
    if not hits:
        return GridCell()

    if _pair(x, y, Dimension.DATES, Dimension.PARTICIPANTS):
        locations: List[str] = []
        for document in hits:
            if document.location and document.location not in locations:
                locations.append(document.location)
        if len(locations) > 1:
            return GridCell(f"{len(locations)} Locations", True, ids)
        return GridCell(locations[0] if locations else "-", False, ids)

    if _pair(x, y, Dimension.DOCUMENTS, Dimension.PARTICIPANTS):
        name = x_label if x == Dimension.PARTICIPANTS else y_label
        participant = hits[0].get_participant(name)
        return GridCell(participant.role.label if participant else "Present", False, ids)

    if _pair(x, y, Dimension.DOCUMENTS, Dimension.THREADS):
        thread = _thread_named(threads, x_label if x == Dimension.THREADS else y_label)
        text = hits[0].plot_points.get(thread.id) if thread else None
        return GridCell(text or "-", False, ids)

    if len(hits) == 1:
        return GridCell(hits[0].title, False, ids)
    return GridCell(len(hits), False, ids)


def build_grid(
    documents: Sequence[Document],
    threads: Sequence[PlotThread],
    x: Dimension,
    y: Dimension,
) -> Grid:
    """Relate two dimensions over a project's documents.

    Each cell holds the documents matching both labels. What a cell shows
    depends on the pair of dimensions: dates against participants shows the
    location (flagging a conflict when there are several), documents
    against participants shows the role, documents against threads shows
    the annotation, and any other pair shows a title or a count.
    """
    documents = list(documents)
    x_labels = axis_labels(documents, threads, x)
    y_labels = axis_labels(documents, threads, y)
    match_x = _matcher(x, threads)
    match_y = _matcher(y, threads)

    cells = []
    for y_label in y_labels:
        row = []
        for x_label in x_labels:
            hits = [d for d in documents if match_x(d, x_label) and match_y(d, y_label)]
            row.append(_cell(hits, x, y, x_label, y_label, threads))
        cells.append(row)
    return Grid(x, y, x_labels, y_labels, cells)


def thread_flow(documents: Sequence[Document], thread_id: str) -> List[Tuple[Document, str]]:
    """Every document's annotation for one thread, in binder order."""
    return [(document, document.plot_points[thread_id]) for document in documents if document.plot_points.get(thread_id)]
