#!/usr/bin/env python3
"""
Terminal Rendering
==================
Rich tables for generated entities and catalog listings.

Usage:
    from nomina.ui import CatalogUI

    ui = CatalogUI()
    ui.print_entities(entities, show_bio=True)
"""

from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from nomina.composition.biography import mini_bio
from nomina.models import GeneratedEntity
from nomina.settings import get_setting

# Colour per genre tag
GENRE_STYLES = {
    'm': "cyan",
    'f': "magenta",
    'nb': "yellow",
}


class CatalogUI:
    """Prints Nomina results with rich."""

    def __init__(self, console: Console = None, quiet: bool = False):
        self.console = console or Console()
        self.quiet = quiet
        self.bio_width = get_setting("ui.max_bio_width", 60)

    def _names(self, records, ids) -> Dict[int, str]:
        return {r.id: r.name for r in records if r.id in ids}

    def print_entities(self, entities: Sequence[GeneratedEntity], show_bio: bool = False,
                       cultures: Sequence = (), categories: Sequence = ()):
        """Print one row per entity."""
        if self.quiet or not entities:
            return

        culture_names = self._names(cultures, {e.culture_id for e in entities})
        categorie_names = self._names(categories, {e.categorie_id for e in entities})

        table = Table(box=box.SIMPLE)
        table.add_column("Name", style="bold")
        table.add_column("Genre")
        table.add_column("Culture")
        table.add_column("Categorie")
        has_companions = any(e.companions for e in entities)
        if has_companions:
            table.add_column("Creatures")
        if show_bio:
            table.add_column("Biographie", max_width=self.bio_width)

        for entity in entities:
            row = [
                entity.display_name,
                Text(entity.genre or "-", style=GENRE_STYLES.get(entity.genre, "dim")),
                culture_names.get(entity.culture_id, str(entity.culture_id or "-")),
                categorie_names.get(entity.categorie_id, str(entity.categorie_id or "-")),
            ]
            if has_companions:
                row.append(", ".join(c.valeur for c in entity.companions) or "-")
            if show_bio:
                row.append(mini_bio(entity.biographie) or Text("-", style="dim"))
            table.add_row(*row)

        self.console.print(table)
        if len(entities) == 1 or any(e.relaxations for e in entities):
            self._print_footer(entities)

    def _print_footer(self, entities: Sequence[GeneratedEntity]):
        seeds = {e.seed for e in entities}
        if len(seeds) == 1:
            self.console.print(f"seed: {seeds.pop()}", style="dim")
        for entity in entities:
            for stage, steps in entity.relaxations.items():
                self.console.print(
                    f"{entity.full_name}: {stage} relaxed {', '.join(steps)}", style="yellow")

    def print_records(self, title: str, records: Sequence, columns: List[str]):
        """Print catalog records (cultures, categories...) by attribute name."""
        if self.quiet:
            return
        table = Table(title=title, box=box.SIMPLE)
        for column in columns:
            table.add_column(column.replace('_', ' ').title(), justify="right" if column == 'id' else "left")
        for record in records:
            table.add_row(*[_cell(getattr(record, column, None)) for column in columns])
        self.console.print(table)

    def print_concepts(self, sample, show_pitch: bool = False):
        """Print a ConceptSample."""
        if self.quiet:
            return
        table = Table(box=box.SIMPLE)
        table.add_column("Concept", style="bold")
        table.add_column("Type")
        table.add_column("Mood")
        table.add_column("Keywords", style="dim")
        for idea in sample.ideas:
            concept = idea.concept
            table.add_row(concept.valeur, _cell(concept.type), idea.mood,
                          ", ".join(idea.keywords))
        self.console.print(table)
        if show_pitch:
            for idea in sample.ideas:
                self.console.print(Text(idea.concept.valeur, style="bold"))
                self.console.print(f"  {idea.elevator_pitch}")
                self.console.print(f"  {idea.twist}", style="dim")
                self.console.print(f"  {idea.hook}", style="dim")
                for question in idea.questions:
                    self.console.print(f"  - {question}")
        if sample.used_fallback:
            self.console.print(
                f"No concept in categorie {sample.categorie_id}: drawn from the whole catalog",
                style="yellow")
        self.console.print(f"seed: {sample.seed}", style="dim")

    def print_stats(self, stats: dict):
        """Print CatalogDB.stats()."""
        if self.quiet:
            return
        table = Table(title="Catalog", box=box.SIMPLE)
        table.add_column("Table")
        table.add_column("Records", justify="right")
        for name, count in stats['tables'].items():
            table.add_row(name, str(count))
        table.add_row(Text("total", style="bold"), Text(str(stats['total']), style="bold"))
        self.console.print(table)

        if stats.get('fragments_by_scope'):
            scopes = ", ".join(f"{k or '?'}: {v}" for k, v in sorted(
                stats['fragments_by_scope'].items(), key=lambda x: str(x[0])))
            self.console.print(f"History fragments by scope: {scopes}")
        self.console.print(f"Last import: {stats.get('last_import') or 'never'}", style="dim")


def _cell(value: Optional[object]) -> str:
    return "-" if value is None else str(value)
