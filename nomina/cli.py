#!/usr/bin/env python3
"""
Nomina CLI
==========
Command-line interface for catalog-driven name generation.

Usage:
    nomina seed
    nomina generate character --culture 1 --genre f --bio
    nomina generate place -n 5 --categorie 2
    nomina concepts --categorie 1 -n 4
    nomina stats
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add parent to path
_parent = Path(__file__).parent.parent
if str(_parent) not in sys.path:
    sys.path.insert(0, str(_parent))

from nomina import __version__
from nomina.settings import get_setting

# =============================================================================
# Constants
# =============================================================================

ENTITY_KINDS = ['character', 'npc', 'place', 'lieu', 'creature']

# =============================================================================
# Utilities
# =============================================================================

class Output:
    """Handles CLI output with quiet mode support."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def print(self, *args, **kwargs):
        if not self.quiet:
            print(*args, **kwargs)

    def error(self, msg: str):
        print(f"Error: {msg}", file=sys.stderr)

    def success(self, msg: str):
        if not self.quiet:
            print(f"OK: {msg}")

    def json(self, data):
        print(json.dumps(data, indent=2, ensure_ascii=False))


def setup_logging(verbose: bool = False, level: str = None):
    """Configure the root logger from app.yaml (or DEBUG with -v)."""
    if verbose:
        level = 'DEBUG'
    if level is None:
        level = get_setting("logging.level", "WARNING")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format=get_setting("logging.format", "%(levelname)s %(name)s: %(message)s"),
    )


def get_reader(args):
    """Catalog reader over the SQLite store (never creates it)."""
    from catalogdb import CatalogDB
    from nomina.catalog import CatalogReader
    from nomina.config import config

    db_path = args.db or config().db_path
    return CatalogReader(CatalogDB(db_path, create=False))


def get_ui(out: Output):
    from nomina.ui import CatalogUI
    return CatalogUI(quiet=out.quiet)


# =============================================================================
# Commands
# =============================================================================

def cmd_generate(args, out: Output):
    """Generate characters, places or creatures."""
    from nomina.composition import CompositionAssembler, GenerationRequest
    from nomina.parallel import ParallelConfig, ParallelGenerator

    if args.count < 1:
        out.error("--count must be at least 1")
        return 1

    reader = get_reader(args)
    assembler = CompositionAssembler(reader)
    request = GenerationRequest(
        culture_id=args.culture,
        categorie_id=args.categorie,
        univers_id=args.univers,
        genre=args.genre,
        seed=args.seed,
        companion_count=args.companions,
        distinct_companions=args.distinct,
    )

    if args.count == 1:
        entities = [assembler.generate(args.kind, request)]
    elif args.parallel:
        generator = ParallelGenerator(assembler, ParallelConfig(workers=args.workers))
        entities = generator.generate_batch(args.kind, request, count=args.count)
    else:
        entities = assembler.generate_batch(args.kind, request, count=args.count)

    if args.json:
        out.json([e.to_dict() for e in entities])
        return 0

    get_ui(out).print_entities(
        entities,
        show_bio=args.bio,
        cultures=reader.cultures(),
        categories=reader.categories(),
    )
    return 0


def cmd_cultures(args, out: Output):
    """List cultures."""
    cultures = get_reader(args).cultures()
    if args.json:
        out.json([{'id': c.id, 'name': c.name, 'description': c.description} for c in cultures])
        return 0
    if not cultures:
        out.print("No cultures found.")
        return 0
    get_ui(out).print_records("Cultures", cultures, ['id', 'name', 'description'])
    return 0


def cmd_categories(args, out: Output):
    """List categories, optionally within one thematic universe."""
    reader = get_reader(args)
    categories = reader.categories()
    if args.univers is not None:
        ids = reader.categories_in_univers(args.univers)
        categories = [c for c in categories if c.id in ids]
    if args.json:
        out.json([
            {'id': c.id, 'name': c.name, 'description': c.description, 'univers_id': c.univers_id}
            for c in categories
        ])
        return 0
    if not categories:
        out.print("No categories found.")
        return 0
    get_ui(out).print_records("Categories", categories, ['id', 'name', 'univers_id', 'description'])
    return 0


def cmd_concepts(args, out: Output):
    """Draw concepts for a category."""
    from nomina.concepts import sample_concepts

    sample = sample_concepts(get_reader(args), categorie_id=args.categorie,
                             count=args.count, seed=args.seed)
    if args.json:
        out.json(sample.to_dict())
        return 0
    if not sample.items:
        out.print("No concepts found.")
        return 0
    get_ui(out).print_concepts(sample, show_pitch=args.pitch)
    return 0


def cmd_seed(args, out: Output):
    """Import a YAML seed catalog into the SQLite store."""
    from catalogdb import CatalogDB
    from nomina.config import config

    cfg = config()
    db = CatalogDB(args.db or cfg.db_path)
    seed_file = Path(args.file) if args.file else cfg.seed_file
    count = db.import_seed(seed_file, replace=args.replace)
    out.success(f"Imported {count} records from {seed_file} into {db.db_path}")
    return 0


def cmd_stats(args, out: Output):
    """Show catalog statistics."""
    from catalogdb import CatalogDB
    from nomina.config import config

    stats = CatalogDB(args.db or config().db_path, create=False).stats()
    if args.json:
        out.json(stats)
        return 0
    get_ui(out).print_stats(stats)
    return 0


# =============================================================================
# Main
# =============================================================================

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='nomina',
        description='Nomina - constraint-based name and biography generator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s seed --replace
  %(prog)s generate character --culture 1 --genre f --bio
  %(prog)s generate character -n 10 --univers 1 --companions 2 --parallel
  %(prog)s generate place --categorie 2 --seed 42 --json
  %(prog)s concepts --categorie 1 -n 4
  %(prog)s stats
"""
    )

    parser.add_argument('--version', '-V', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress non-essential output')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    parser.add_argument('--db', help='SQLite catalog path (default: NOMINA_DB_PATH or app.yaml)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # --- generate ---
    p = subparsers.add_parser('generate', aliases=['gen', 'g'], help='Generate entities')
    p.add_argument('kind', nargs='?', default='character', choices=ENTITY_KINDS,
                   help='Entity kind (default: character)')
    p.add_argument('-n', '--count', type=int, default=1, help='Number of entities (default: 1)')
    p.add_argument('--culture', '-c', type=int, help='Pin a culture id')
    p.add_argument('--categorie', '-k', type=int, help='Pin a categorie id')
    p.add_argument('--univers', '-u', type=int, help='Restrict to a thematic universe id')
    p.add_argument('--genre', '-g', help='Preferred genre (m, f, nb...)')
    p.add_argument('--seed', '-s', help='Seed for a reproducible result')
    p.add_argument('--companions', type=int, help='Number of companion creatures')
    p.add_argument('--distinct', action='store_true', help='Companions without repeats')
    p.add_argument('--bio', '-b', action='store_true', help='Show the biography')
    p.add_argument('--parallel', '-p', action='store_true', help='Generate the batch on a thread pool')
    p.add_argument('--workers', type=int, help='Thread pool size (default: parallel.workers)')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- cultures ---
    p = subparsers.add_parser('cultures', help='List cultures')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- categories ---
    p = subparsers.add_parser('categories', aliases=['cats'], help='List categories')
    p.add_argument('--univers', '-u', type=int, help='Only categories of this universe')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- concepts ---
    p = subparsers.add_parser('concepts', help='Draw concepts for a categorie')
    p.add_argument('--categorie', '-k', type=int, help='Categorie id')
    p.add_argument('-n', '--count', type=int, default=3, help='Number of concepts (default: 3)')
    p.add_argument('--pitch', action='store_true', help='Show pitch, twist, hook and questions')
    p.add_argument('--seed', '-s', help='Seed for a reproducible draw')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- seed ---
    p = subparsers.add_parser('seed', help='Import a YAML seed catalog')
    p.add_argument('--file', '-f', help='Seed file (default: catalog.seed_file)')
    p.add_argument('--replace', '-r', action='store_true', help='Empty the catalog first')

    # --- stats ---
    p = subparsers.add_parser('stats', help='Show catalog statistics')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # Parse
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Handle aliases
    cmd_map = {
        'gen': 'generate', 'g': 'generate',
        'cats': 'categories',
    }
    command = cmd_map.get(args.command, args.command)

    from nomina.config import config
    setup_logging(verbose=args.verbose, level=config().log_level)

    out = Output(quiet=args.quiet)

    # Dispatch
    commands = {
        'generate': cmd_generate,
        'cultures': cmd_cultures,
        'categories': cmd_categories,
        'concepts': cmd_concepts,
        'seed': cmd_seed,
        'stats': cmd_stats,
    }

    handler = commands.get(command)
    if handler:
        try:
            return handler(args, out)
        except KeyboardInterrupt:
            out.print("\nCancelled.")
            return 130
        except Exception as e:
            out.error(str(e))
            if args.verbose:
                import traceback
                traceback.print_exc()
            return 1

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
