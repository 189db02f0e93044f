"""Main CLI entry point for NebulaDocs."""

import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import click

from .. import __version__
from ..ai.assistant import Assistant, FallbackAssistant, OfflineAssistant
from ..ai.claude_client import ClaudeAssistant
from ..ai.scene_sync import SceneSync
from ..config import load_settings, setup_logging
from ..core import binder
from ..core.character import Participant, ParticipantRole
from ..core.exceptions import AssistUnavailableError, NebulaError
from ..core.item import Container, Document, Item, ItemKind, SceneSetting, TimelineData, new_document, new_id
from ..core.project import Project
from ..core.store import ProjectContentStore
from ..core.workspace import Workspace
from ..editor.continuity_tracker import ContinuityTracker
from ..editor.cross_reference import Dimension, Grid, build_grid, thread_flow
from ..io.exporter import FORMATS, ManuscriptExporter
from ..io.file_handler import FileHandler, text_to_body
from ..io.project_loader import ProjectLoader
from ..io.storage import FileKeyValueStore


ERRORS = (NebulaError, OSError, ValueError)


@click.group()
@click.version_option(version=__version__)
@click.option('--data-dir', type=click.Path(file_okay=False), help='Directory holding project data')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML settings file')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, data_dir, config_path, verbose):
    """NebulaDocs - a writing-project binder with cross-reference insight"""
    ctx.ensure_object(dict)
    try:
        settings = load_settings(config_path)
    except NebulaError as e:
        click.echo(f"❌ Error loading settings: {e}", err=True)
        sys.exit(1)
    if data_dir:
        settings.data_dir = Path(data_dir).expanduser()

    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)
    ctx.obj['settings'] = settings
    ctx.obj['file_handler'] = FileHandler()
    ctx.obj['project_loader'] = ProjectLoader()
    ctx.call_on_close(lambda: _flush(ctx))


def _store(ctx) -> ProjectContentStore:
    """The project store, opened on first use."""
    if 'store' not in ctx.obj:
        settings = ctx.obj['settings']
        store = ProjectContentStore(FileKeyValueStore(settings.data_dir), save_delay=settings.save_delay)
        store.load_projects()
        ctx.obj['store'] = store
    return ctx.obj['store']


def _flush(ctx) -> None:
    store = ctx.obj.get('store')
    if store is not None and not store.flush():
        click.echo("⚠️  Some changes could not be saved", err=True)


def _project(ctx, ref: str) -> Project:
    """Find a project by id or by title (case-insensitive)."""
    store = _store(ctx)
    if store.has_project(ref):
        return store.get_project(ref)
    for project in store.list_projects():
        if project.title.lower() == ref.lower():
            return project
    return store.get_project(ref)


def _item(items, ref: str) -> Item:
    """Find a binder item by id or by title."""
    item = binder.find(items, ref)
    if item is not None:
        return item
    for candidate in binder.iter_items(items):
        if candidate.title == ref:
            return candidate
    click.echo(f"❌ Item '{ref}' not found", err=True)
    sys.exit(1)


def _document(items, ref: str) -> Document:
    item = _item(items, ref)
    if not isinstance(item, Document):
        click.echo(f"❌ '{item.title}' is a container, not a document", err=True)
        sys.exit(1)
    return item


def _workspace(ctx, project_ref: str, item_ref: Optional[str] = None):
    project = _project(ctx, project_ref)
    ws = Workspace(_store(ctx), project.id)
    item = None
    if item_ref:
        item = _item(ws.items(), item_ref)
        ws.select(item.id)
    return ws, project, item


@cli.group()
def project():
    """Project management commands"""
    pass


@cli.group(name='binder')
def binder_group():
    """Binder tree commands"""
    pass


@cli.group()
def thread():
    """Plot thread commands"""
    pass


@cli.group()
def snapshot():
    """Document snapshot commands"""
    pass


@cli.group()
def insight():
    """Cross-reference and continuity commands"""
    pass


@cli.group()
def assist():
    """Generative assist commands"""
    pass


# Project Commands
@project.command()
@click.option('--title', prompt='Project title', help='Title of the project')
@click.option('--author', default='Author', help='Author of the project')
@click.option('--synopsis', default='', help='Short synopsis')
@click.pass_context
def create(ctx, title, author, synopsis):
    """Create a new project"""
    try:
        new_project = _store(ctx).create_project(title=title, author=author, synopsis=synopsis)
        click.echo(f"✅ Created project '{title}' ({new_project.id})")
    except ERRORS as e:
        click.echo(f"❌ Error creating project: {e}", err=True)
        sys.exit(1)


@project.command(name='list')
@click.pass_context
def list_projects(ctx):
    """List projects, favorites first"""
    try:
        projects = _store(ctx).list_projects()
        if not projects:
            click.echo("📭 No projects found")
            return

        click.echo("\n📚 Projects:")
        click.echo("=" * 50)
        for item in projects:
            star = "★ " if item.is_favorite else ""
            click.echo(f"{star}{item.title} by {item.author}")
            click.echo(f"   ID: {item.id}")
            click.echo(f"   Words: {item.word_count}  Modified: {item.last_modified.strftime('%Y-%m-%d %H:%M')}")
    except ERRORS as e:
        click.echo(f"❌ Error listing projects: {e}", err=True)
        sys.exit(1)


@project.command()
@click.argument('project_ref')
@click.pass_context
def info(ctx, project_ref):
    """Show project information"""
    try:
        item = _project(ctx, project_ref)
        content = _store(ctx).content(item.id)
        documents = binder.documents(content.items)

        click.echo(f"\n📖 Project: {item.title}")
        click.echo(f"👤 Author: {item.author}")
        if item.synopsis:
            click.echo(f"📝 Synopsis: {item.synopsis}")
        click.echo(f"📅 Modified: {item.last_modified.strftime('%Y-%m-%d %H:%M')}")
        click.echo(f"📊 Total words: {binder.word_count(content.items)}")
        click.echo(f"📄 Documents: {len(documents)}")
        click.echo(f"🧵 Threads: {', '.join(t.name for t in content.threads) or '-'}")
        click.echo(f"⭐ Favorite: {'yes' if item.is_favorite else 'no'}")
    except ERRORS as e:
        click.echo(f"❌ Error getting project info: {e}", err=True)
        sys.exit(1)


@project.command()
@click.argument('project_ref')
@click.pass_context
def favorite(ctx, project_ref):
    """Toggle a project's favorite flag"""
    try:
        item = _store(ctx).toggle_favorite(_project(ctx, project_ref).id)
        state = "added to" if item.is_favorite else "removed from"
        click.echo(f"✅ '{item.title}' {state} favorites")
    except ERRORS as e:
        click.echo(f"❌ Error updating project: {e}", err=True)
        sys.exit(1)


@project.command(name='delete')
@click.argument('project_ref')
@click.confirmation_option(prompt='Are you sure you want to delete this project?')
@click.pass_context
def delete_project(ctx, project_ref):
    """Delete a project and all its content"""
    try:
        item = _project(ctx, project_ref)
        _store(ctx).delete_project(item.id)
        click.echo(f"✅ Deleted project '{item.title}'")
    except ERRORS as e:
        click.echo(f"❌ Error deleting project: {e}", err=True)
        sys.exit(1)


@project.command(name='export')
@click.argument('project_ref')
@click.argument('output', type=click.Path(dir_okay=False))
@click.pass_context
def export_project(ctx, project_ref, output):
    """Export a project to a JSON or YAML record"""
    try:
        item = _project(ctx, project_ref)
        loader = ctx.obj['project_loader']
        loader.save_record(loader.export_project(_store(ctx), item.id), output)
        click.echo(f"✅ Exported '{item.title}' to {output}")
    except ERRORS as e:
        click.echo(f"❌ Error exporting project: {e}", err=True)
        sys.exit(1)


@project.command(name='import')
@click.argument('record_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_project(ctx, record_file):
    """Import a project from an exported record"""
    try:
        record = ctx.obj['project_loader'].load_record(record_file)
        ws = Workspace(_store(ctx))
        item = ws.import_project(record)
        click.echo(f"✅ Imported '{item.title}' as {item.id}")
    except ERRORS as e:
        click.echo(f"❌ Error importing project: {e}", err=True)
        sys.exit(1)


# Binder Commands
def _print_tree(items, depth: int = 0, show_all: bool = False) -> None:
    for item in items:
        indent = "  " * depth
        mark = " ★" if item.is_bookmarked else ""
        if isinstance(item, Container):
            arrow = "▾" if item.is_expanded else "▸"
            click.echo(f"{indent}{arrow} 📁 {item.title}{mark}  [{item.id}]")
            if item.is_expanded or show_all:
                _print_tree(item.children, depth + 1, show_all)
        else:
            click.echo(f"{indent}  📄 {item.title}{mark} ({item.word_count} words)  [{item.id}]")


@binder_group.command()
@click.argument('project_ref')
@click.option('--all', 'show_all', is_flag=True, help='Show children of collapsed containers')
@click.pass_context
def tree(ctx, project_ref, show_all):
    """Show the binder tree"""
    try:
        ws, item, _ = _workspace(ctx, project_ref)
        click.echo(f"\n📖 {item.title}")
        click.echo("=" * 50)
        if not ws.items():
            click.echo("📭 Binder is empty")
            return
        _print_tree(ws.items(), show_all=show_all)
    except ERRORS as e:
        click.echo(f"❌ Error showing binder: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('title')
@click.option('--kind', type=click.Choice(['document', 'container']), default='document', help='Item kind')
@click.option('--parent', 'parent_ref', help='Container id or title to add into')
@click.option('--from-file', 'from_file', type=click.Path(exists=True, dir_okay=False),
              help='Read the body from a text, Markdown, HTML or DOCX file')
@click.option('--split', is_flag=True, help='With --from-file, create a container holding one document per chapter')
@click.pass_context
def add(ctx, project_ref, title, kind, parent_ref, from_file, split):
    """Add a document or container"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        # Without --parent the item goes to the top level
        ws.navigate(None)
        parent_id = None
        if parent_ref:
            parent = _item(ws.items(), parent_ref)
            if not isinstance(parent, Container):
                click.echo(f"❌ '{parent.title}' is not a container", err=True)
                sys.exit(1)
            parent_id = parent.id
        handler = ctx.obj['file_handler']

        if from_file and split:
            group = ws.add_item(ItemKind.CONTAINER, parent_id, title)
            chapters = handler.detect_chapters(handler.read_file(from_file))
            children = tuple(new_document(name, text_to_body(text)) for name, text in chapters)
            ws.update_item(group.id, children=children)
            click.echo(f"✅ Imported {len(children)} chapter(s) into '{title}'")
            return

        item_kind = ItemKind.CONTAINER if kind == 'container' else ItemKind.DOCUMENT
        new_item = ws.add_item(item_kind, parent_id, title)
        if from_file and isinstance(new_item, Document):
            ws.write(handler.read_as_body(from_file), new_item.id)
        click.echo(f"✅ Added {kind} '{title}' ({new_item.id})")
    except ERRORS as e:
        click.echo(f"❌ Error adding item: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.argument('title')
@click.pass_context
def rename(ctx, project_ref, item_ref, title):
    """Rename an item"""
    try:
        ws, _, item = _workspace(ctx, project_ref, item_ref)
        ws.rename_item(item.id, title)
        click.echo(f"✅ Renamed '{item.title}' to '{title}'")
    except ERRORS as e:
        click.echo(f"❌ Error renaming item: {e}", err=True)
        sys.exit(1)


@binder_group.command(name='delete')
@click.argument('project_ref')
@click.argument('item_ref')
@click.confirmation_option(prompt='Are you sure you want to delete this item and everything inside it?')
@click.pass_context
def delete_item(ctx, project_ref, item_ref):
    """Delete an item with its whole subtree"""
    try:
        ws, _, item = _workspace(ctx, project_ref, item_ref)
        removed = ws.delete_item(item.id)
        click.echo(f"✅ Deleted '{item.title}' ({len(removed)} item(s))")
    except ERRORS as e:
        click.echo(f"❌ Error deleting item: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.pass_context
def bookmark(ctx, project_ref, item_ref):
    """Toggle an item's bookmark"""
    try:
        ws, _, item = _workspace(ctx, project_ref, item_ref)
        ws.toggle_bookmark(item.id)
        state = "Removed bookmark from" if item.is_bookmarked else "Bookmarked"
        click.echo(f"✅ {state} '{item.title}'")
    except ERRORS as e:
        click.echo(f"❌ Error bookmarking item: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.pass_context
def toggle(ctx, project_ref, item_ref):
    """Expand or collapse a container"""
    try:
        ws, _, item = _workspace(ctx, project_ref, item_ref)
        if not isinstance(item, Container):
            click.echo(f"❌ '{item.title}' is not a container", err=True)
            sys.exit(1)
        ws.toggle_expanded(item.id)
        click.echo(f"✅ {'Collapsed' if item.is_expanded else 'Expanded'} '{item.title}'")
    except ERRORS as e:
        click.echo(f"❌ Error toggling item: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.option('--text', help='New body text')
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False), help='Read the body from a file')
@click.pass_context
def write(ctx, project_ref, item_ref, text, file_path):
    """Replace a document's body"""
    try:
        if (text is None) == (file_path is None):
            click.echo("❌ Provide exactly one of --text or --file", err=True)
            sys.exit(1)
        ws, _, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        body = text_to_body(text) if text is not None else ctx.obj['file_handler'].read_as_body(file_path)
        ws.write(body, document.id)
        words = binder.find(ws.items(), document.id).word_count
        click.echo(f"✅ Updated '{document.title}' ({words} words)")
    except ERRORS as e:
        click.echo(f"❌ Error writing document: {e}", err=True)
        sys.exit(1)


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.option('--location', help='Where the scene happens')
@click.option('--time', 'time_text', help='Freeform scene time, such as a date or "Midnight"')
@click.option('--start', help='Scheduled start (YYYY-MM-DD or YYYY-MM-DDTHH:MM)')
@click.option('--participant', '-p', 'participants', multiple=True,
              help='Participant as NAME or NAME:ROLE (repeatable)')
@click.pass_context
def scene(ctx, project_ref, item_ref, location, time_text, start, participants):
    """Set a document's setting, schedule and participants"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        changes = {}

        if location is not None or time_text is not None:
            setting = document.setting or SceneSetting()
            changes['setting'] = replace(
                setting,
                location=setting.location if location is None else location,
                time=setting.time if time_text is None else time_text,
            )
        if start is not None:
            changes['timeline'] = replace(document.timeline or TimelineData(), start=start or None)
        if participants:
            changes['participants'] = tuple(_parse_participant(value) for value in participants)

        if not changes:
            click.echo("📭 Nothing to change")
            return
        ws.update_item(document.id, **changes)
        click.echo(f"✅ Updated scene details for '{document.title}'")
    except ERRORS as e:
        click.echo(f"❌ Error updating scene: {e}", err=True)
        sys.exit(1)


def _parse_participant(value: str) -> Participant:
    name, _, role = value.partition(':')
    return Participant(id=new_id("char"), name=name.strip(), role=ParticipantRole.parse(role))


@binder_group.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.pass_context
def show(ctx, project_ref, item_ref):
    """Show a document with its scene details"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        threads = {t.id: t.name for t in ws.threads()}

        click.echo(f"\n📄 {document.title}")
        click.echo("=" * 50)
        if document.location or document.date_key:
            click.echo(f"📍 {document.location or '-'}  📅 {document.date_key or '-'}")
        if document.participants:
            click.echo(f"👥 {', '.join(str(p) for p in document.participants)}")
        for thread_id, text in document.plot_points.items():
            click.echo(f"🧵 {threads.get(thread_id, thread_id)}: {text}")
        click.echo("")
        click.echo(document.plain_text or "(empty)")
        click.echo(f"\n📊 {document.word_count} words, {len(document.snapshots)} snapshot(s)")
    except ERRORS as e:
        click.echo(f"❌ Error showing document: {e}", err=True)
        sys.exit(1)


# Thread Commands
def _thread(ws, ref: str):
    content = ws.content()
    item = content.get_thread(ref) or content.thread_by_name(ref)
    if item is not None:
        return item
    click.echo(f"❌ Thread '{ref}' not found", err=True)
    sys.exit(1)


@thread.command(name='list')
@click.argument('project_ref')
@click.pass_context
def list_threads(ctx, project_ref):
    """List plot threads"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        for item in ws.threads():
            click.echo(f"🧵 {item.name} ({item.color})  [{item.id}]")
    except ERRORS as e:
        click.echo(f"❌ Error listing threads: {e}", err=True)
        sys.exit(1)


@thread.command(name='add')
@click.argument('project_ref')
@click.argument('name')
@click.option('--color', help='Hex color, random when omitted')
@click.pass_context
def add_thread(ctx, project_ref, name, color):
    """Add a plot thread"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        item = ws.add_thread(name, color)
        click.echo(f"✅ Added thread '{name}' ({item.id})")
    except ERRORS as e:
        click.echo(f"❌ Error adding thread: {e}", err=True)
        sys.exit(1)


@thread.command(name='remove')
@click.argument('project_ref')
@click.argument('thread_ref')
@click.pass_context
def remove_thread(ctx, project_ref, thread_ref):
    """Remove a plot thread and its annotations"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        item = _thread(ws, thread_ref)
        ws.remove_thread(item.id)
        click.echo(f"✅ Removed thread '{item.name}'")
    except ERRORS as e:
        click.echo(f"❌ Error removing thread: {e}", err=True)
        sys.exit(1)


@thread.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.argument('thread_ref')
@click.argument('text')
@click.pass_context
def annotate(ctx, project_ref, item_ref, thread_ref, text):
    """Set what a document contributes to a thread (empty text clears it)"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        item = _thread(ws, thread_ref)
        ws.annotate(document.id, item.id, text)
        click.echo(f"✅ Annotated '{document.title}' for '{item.name}'")
    except ERRORS as e:
        click.echo(f"❌ Error annotating document: {e}", err=True)
        sys.exit(1)


@thread.command()
@click.argument('project_ref')
@click.argument('thread_ref')
@click.pass_context
def flow(ctx, project_ref, thread_ref):
    """Show a thread's beats in binder order"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        item = _thread(ws, thread_ref)
        beats = thread_flow(binder.documents(ws.items()), item.id)
        if not beats:
            click.echo(f"📭 No documents advance '{item.name}'")
            return
        click.echo(f"\n🧵 {item.name}")
        for number, (document, text) in enumerate(beats, 1):
            click.echo(f"{number}. {document.title}: {text}")
    except ERRORS as e:
        click.echo(f"❌ Error showing thread: {e}", err=True)
        sys.exit(1)


# Snapshot Commands
def _snapshot(document: Document, ref: str):
    for item in document.snapshots:
        if item.id == ref or item.label == ref:
            return item
    click.echo(f"❌ Snapshot '{ref}' not found", err=True)
    sys.exit(1)


@snapshot.command(name='create')
@click.argument('project_ref')
@click.argument('item_ref')
@click.argument('label')
@click.pass_context
def create_snapshot(ctx, project_ref, item_ref, label):
    """Save a copy of a document's body"""
    try:
        ws, _, item = _workspace(ctx, project_ref, item_ref)
        saved = ws.create_snapshot(label)
        if saved is None:
            click.echo(f"❌ '{item.title}' is not a document", err=True)
            sys.exit(1)
        click.echo(f"✅ Saved snapshot '{label}' ({saved.id})")
    except ERRORS as e:
        click.echo(f"❌ Error creating snapshot: {e}", err=True)
        sys.exit(1)


@snapshot.command(name='list')
@click.argument('project_ref')
@click.argument('item_ref')
@click.pass_context
def list_snapshots(ctx, project_ref, item_ref):
    """List a document's snapshots"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        if not document.snapshots:
            click.echo("📭 No snapshots")
            return
        for item in document.snapshots:
            click.echo(f"🕓 {item.timestamp}  {item.label}  [{item.id}]")
    except ERRORS as e:
        click.echo(f"❌ Error listing snapshots: {e}", err=True)
        sys.exit(1)


@snapshot.command(name='restore')
@click.argument('project_ref')
@click.argument('item_ref')
@click.argument('snapshot_ref')
@click.pass_context
def restore_snapshot(ctx, project_ref, item_ref, snapshot_ref):
    """Replace a document's body with a snapshot"""
    try:
        ws, _, _ = _workspace(ctx, project_ref, item_ref)
        saved = _snapshot(ws.active_document(), snapshot_ref)
        ws.restore_snapshot(saved.id)
        click.echo(f"✅ Restored snapshot '{saved.label}'")
    except ERRORS as e:
        click.echo(f"❌ Error restoring snapshot: {e}", err=True)
        sys.exit(1)


@snapshot.command(name='delete')
@click.argument('project_ref')
@click.argument('item_ref')
@click.argument('snapshot_ref')
@click.pass_context
def delete_snapshot(ctx, project_ref, item_ref, snapshot_ref):
    """Delete a snapshot"""
    try:
        ws, _, _ = _workspace(ctx, project_ref, item_ref)
        saved = _snapshot(ws.active_document(), snapshot_ref)
        ws.delete_snapshot(saved.id)
        click.echo(f"✅ Deleted snapshot '{saved.label}'")
    except ERRORS as e:
        click.echo(f"❌ Error deleting snapshot: {e}", err=True)
        sys.exit(1)


# Insight Commands
DIMENSIONS = [d.value for d in Dimension]


def _render_grid(grid: Grid) -> List[str]:
    def text(cell) -> str:
        if cell.content is None:
            return ""
        return f"!{cell.content}" if cell.is_conflict else str(cell.content)

    header = [f"{grid.y.value} \\ {grid.x.value}"] + grid.x_labels
    rows = [[label] + [text(cell) for cell in row] for label, row in zip(grid.y_labels, grid.cells)]
    widths = [max(len(r[i]) for r in [header] + rows) for i in range(len(header))]
    lines = [" | ".join(value.ljust(width) for value, width in zip(header, widths))]
    lines.append("-+-".join("-" * width for width in widths))
    lines.extend(" | ".join(value.ljust(width) for value, width in zip(row, widths)) for row in rows)
    return lines


@insight.command()
@click.argument('project_ref')
@click.option('--x', 'x_dim', type=click.Choice(DIMENSIONS), default='dates', help='Column dimension')
@click.option('--y', 'y_dim', type=click.Choice(DIMENSIONS), default='participants', help='Row dimension')
@click.option('--filter', 'column_filter', help='Only show columns containing this text')
@click.pass_context
def grid(ctx, project_ref, x_dim, y_dim, column_filter):
    """Cross-reference two dimensions"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        result = build_grid(binder.documents(ws.items()), ws.threads(), Dimension(x_dim), Dimension(y_dim))
        if column_filter:
            result = result.filter_x(column_filter)
        if not result.x_labels or not result.y_labels:
            click.echo("📭 Nothing to cross-reference")
            return
        for line in _render_grid(result):
            click.echo(line)
    except ERRORS as e:
        click.echo(f"❌ Error building grid: {e}", err=True)
        sys.exit(1)


@insight.command()
@click.argument('project_ref')
@click.pass_context
def conflicts(ctx, project_ref):
    """Report participants scheduled in two places at once"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        found = ContinuityTracker(binder.documents(ws.items())).conflicts()
        if not found:
            click.echo("✅ No scheduling conflicts")
            return
        click.echo(f"\n⚠️  {len(found)} conflict(s):")
        for conflict in found:
            click.echo(f"- {conflict.description}")
            click.echo(f"  Scenes: {', '.join(title for _, title in conflict.documents)}")
    except ERRORS as e:
        click.echo(f"❌ Error checking conflicts: {e}", err=True)
        sys.exit(1)


@insight.command()
@click.argument('project_ref')
@click.option('--binder-order', is_flag=True, help='List in binder order instead of story time')
@click.pass_context
def timeline(ctx, project_ref, binder_order):
    """List documents in story-time order"""
    try:
        ws, _, _ = _workspace(ctx, project_ref)
        tracker = ContinuityTracker(binder.documents(ws.items()))
        for document in tracker.timeline(chronological=not binder_order):
            start = document.timeline.start if document.timeline and document.timeline.start else "unscheduled"
            click.echo(f"{start:<18} {document.title}")
        for group in tracker.timeline_collisions():
            click.echo(f"⚠️  Same start time: {', '.join(d.title for d in group)}")
    except ERRORS as e:
        click.echo(f"❌ Error building timeline: {e}", err=True)
        sys.exit(1)


# Assist Commands
def _assistant(ctx, offline: bool) -> Assistant:
    if offline:
        return OfflineAssistant()
    settings = ctx.obj['settings']
    try:
        primary = ClaudeAssistant(settings.anthropic_api_key or None, settings.model, settings.max_tokens)
    except AssistUnavailableError as e:
        click.echo(f"⚠️  {e}; running in offline mode", err=True)
        return OfflineAssistant()
    return FallbackAssistant(primary, OfflineAssistant())


@assist.command()
@click.argument('project_ref')
@click.argument('item_ref')
@click.option('--offline', is_flag=True, help='Use simulated results')
@click.pass_context
def sync(ctx, project_ref, item_ref, offline):
    """Fill a document's scene details from its text"""
    try:
        ws, project_obj, _ = _workspace(ctx, project_ref)
        document = _document(ws.items(), item_ref)
        syncer = SceneSync(_store(ctx), _assistant(ctx, offline))
        updated = asyncio.run(syncer.sync_document(project_obj.id, document.id))
        if updated is None:
            click.echo(f"📭 Nothing synced for '{document.title}'")
            return
        click.echo(f"✅ Synced '{updated.title}'")
        click.echo(f"   📍 {updated.location or '-'}  👥 {', '.join(updated.participant_names()) or '-'}")
    except ERRORS as e:
        click.echo(f"❌ Error syncing document: {e}", err=True)
        sys.exit(1)


@assist.command()
@click.argument('project_ref')
@click.option('--offline', is_flag=True, help='Use simulated results')
@click.pass_context
def scan(ctx, project_ref, offline):
    """Sync every document that is missing scene details"""
    try:
        item = _project(ctx, project_ref)
        syncer = SceneSync(_store(ctx), _assistant(ctx, offline))
        updated = asyncio.run(syncer.scan_project(item.id))
        click.echo(f"✅ Synced {len(updated)} document(s)")
    except ERRORS as e:
        click.echo(f"❌ Error scanning project: {e}", err=True)
        sys.exit(1)


# Manuscript Commands
@cli.command(name='compile')
@click.argument('project_ref')
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--format', 'format_type', type=click.Choice(FORMATS), default='markdown', help='Output format')
@click.pass_context
def compile_manuscript(ctx, project_ref, output, format_type):
    """Compile the binder into one manuscript file"""
    try:
        item = _project(ctx, project_ref)
        ManuscriptExporter(ctx.obj['file_handler']).export(_store(ctx).content(item.id), output, format_type)
        click.echo(f"✅ Compiled '{item.title}' to {output}")
    except ERRORS as e:
        click.echo(f"❌ Error compiling manuscript: {e}", err=True)
        sys.exit(1)


def main():
    """Main entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
